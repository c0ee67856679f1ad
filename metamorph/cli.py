# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Command-line interface for MetaMorph

Reads the searchable metadata of a JPEG file, or writes new metadata
into a copy of it.

    metamorph read photo.jpg --format json
    metamorph write photo.jpg --title "Café à Brasília" --keywords "a, b; c"

Copyright 2025 DNAi inc.
"""

import argparse
import csv
import io
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from metamorph.collaborators import download_filename
from metamorph.core import CodecStatus, create_codec
from metamorph.metadata import Metadata


def format_output(metadata: dict, format_type: str = "text") -> str:
    """
    Format metadata output based on format type.

    Args:
        metadata: Dictionary of metadata
        format_type: Output format ('text', 'json', 'csv')

    Returns:
        Formatted output string
    """
    if format_type == "json":
        return json.dumps(metadata, indent=2, ensure_ascii=False)
    elif format_type == "csv":
        buffer = io.StringIO()
        writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
        writer.writerow(["Field", "Value"])
        for name, value in sorted(metadata.items()):
            writer.writerow([name, value])
        return buffer.getvalue().rstrip("\n")
    else:  # text format (default)
        return "\n".join(f"{name}: {value}" for name, value in sorted(metadata.items()))


def printable(metadata: dict) -> dict:
    """Replace lone surrogates left by UTF-16 decoding so the text can be printed."""
    return {
        name: value.encode("utf-8", "replace").decode("utf-8") if isinstance(value, str) else value
        for name, value in metadata.items()
    }


def parse_rating(value: str):
    """Accept either a star count ("4") or star glyphs ("★★★★")."""
    value = value.strip()
    return int(value) if value.isdigit() else value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="metamorph",
        description="Read and write searchable EXIF metadata in JPEG files",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    read_parser = subparsers.add_parser("read", help="Print the metadata of a JPEG file")
    read_parser.add_argument("file", type=Path)
    read_parser.add_argument("--format", choices=("text", "json", "csv"), default="text")

    write_parser = subparsers.add_parser("write", help="Write metadata into a JPEG file")
    write_parser.add_argument("file", type=Path)
    write_parser.add_argument("-o", "--output", type=Path,
                              help="Output file (default: named after the title, next to the input)")
    write_parser.add_argument("--title")
    write_parser.add_argument("--subject")
    write_parser.add_argument("--description")
    write_parser.add_argument("--artist")
    write_parser.add_argument("--copyright")
    write_parser.add_argument("--software")
    write_parser.add_argument("--datetime", dest="date_time", help="YYYY:MM:DD HH:MM:SS")
    write_parser.add_argument("--keywords", dest="user_comment",
                              help="Comma or semicolon separated keywords")
    write_parser.add_argument("--rating", type=parse_rating, help="Star count or star glyphs")
    write_parser.add_argument("--big-endian", action="store_true",
                              help="Write the TIFF structure in Motorola byte order")
    return parser


def read_command(args: argparse.Namespace) -> int:
    codec = create_codec()
    result = codec.decode(args.file.read_bytes())
    if result.status == CodecStatus.EMPTY:
        print(f"Error: {args.file} is not a JPEG file", file=sys.stderr)
        return 1
    if result.status == CodecStatus.DEGRADED:
        print(f"Warning: damaged EXIF data in {args.file}: {result.error}", file=sys.stderr)
    print(format_output(printable(result.metadata.to_dict()), args.format))
    return 0


def write_command(args: argparse.Namespace) -> int:
    metadata = Metadata(
        title=args.title,
        subject=args.subject,
        rating=args.rating,
        description=args.description,
        artist=args.artist,
        copyright=args.copyright,
        software=args.software,
        date_time=args.date_time,
        user_comment=args.user_comment,
    )
    codec = create_codec(endian='>' if args.big_endian else '<')
    result = codec.encode(args.file.read_bytes(), metadata)

    if result.status == CodecStatus.EMPTY:
        print(f"Error: {args.file} is not a JPEG file", file=sys.stderr)
        return 1
    if result.status == CodecStatus.DEGRADED:
        print(f"Error: could not write metadata: {result.error}", file=sys.stderr)
        return 1

    output = args.output or args.file.with_name(download_filename(metadata, args.file.name))
    output.write_bytes(result.data)
    print(f"Wrote {output}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command == "read":
            return read_command(args)
        return write_command(args)
    except (OSError, UnicodeEncodeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
