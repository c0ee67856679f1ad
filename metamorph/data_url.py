# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Base64 data URL helpers

Browser front ends hand images around as "data:image/jpeg;base64,..."
strings. These helpers unwrap them for the codec and wrap the result
again.

Copyright 2025 DNAi inc.
"""

import base64
import binascii
from typing import Optional, Tuple

from metamorph.core import MetadataCodec, create_codec
from metamorph.exceptions import UnsupportedFormatError
from metamorph.metadata import Metadata

JPEG_MIME_TYPES = ('image/jpeg', 'image/jpg')


def parse_data_url(url: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URL into MIME type and bytes.

    Args:
        url: "data:<mime>;base64,<payload>"

    Returns:
        Tuple of (mime type, decoded bytes)

    Raises:
        UnsupportedFormatError: If the URL is not a base64 data URL
    """
    if not url.startswith('data:') or ',' not in url:
        raise UnsupportedFormatError("Not a data URL")
    header, payload = url[5:].split(',', 1)
    parts = header.split(';')
    if 'base64' not in parts[1:]:
        raise UnsupportedFormatError("Only base64 data URLs are supported")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise UnsupportedFormatError(f"Invalid base64 payload: {e}")
    return parts[0] or 'text/plain', data


def to_data_url(mime_type: str, data: bytes) -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_url(url: str, codec: Optional[MetadataCodec] = None) -> Metadata:
    """Decode metadata from a JPEG data URL; other URLs give an empty record."""
    try:
        mime_type, data = parse_data_url(url)
    except UnsupportedFormatError:
        return Metadata()
    if mime_type not in JPEG_MIME_TYPES:
        return Metadata()
    return (codec or create_codec()).decode(data).metadata


def encode_data_url(url: str, metadata: Metadata, codec: Optional[MetadataCodec] = None) -> str:
    """
    Write metadata into a JPEG data URL.

    URLs that are not JPEG data URLs are returned unchanged, as is the
    original URL when the encode degrades.

    Args:
        url: Image as a data URL
        metadata: Record to write
        codec: Codec to use (defaults to the built-in backend)

    Returns:
        Data URL of the updated image
    """
    if not url.startswith(tuple(f'data:{mime}' for mime in JPEG_MIME_TYPES)):
        return url
    try:
        mime_type, data = parse_data_url(url)
    except UnsupportedFormatError:
        return url
    result = (codec or create_codec()).encode(data, metadata)
    if not result.ok:
        return url
    return to_data_url(mime_type, result.data)
