# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF metadata writer

This module turns a Metadata record into the two IFDs MetaMorph writes
(0th IFD and Exif sub-IFD) and serializes them into the payload of a
JPEG APP1 segment.

Copyright 2025 DNAi inc.
"""

import struct
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional

from metamorph.exceptions import InvalidTagError, MetadataWriteError
from metamorph.exif_tags import (
    EXIF_HEADER,
    EXIF_IFD_TAGS,
    FIELD_LAYOUT,
    TAG_SIZES,
    TAG_TYPES,
    TIFF_MAGIC,
    XP_TAGS,
    ExifTag,
)
from metamorph.jpeg_modifier import MAX_SEGMENT_PAYLOAD
from metamorph.metadata import Metadata
from metamorph.tag_values import (
    AsciiText,
    TagValue,
    UnicodeUserComment,
    UnsignedLong,
    UnsignedShort,
    Utf16XpText,
    normalize_keywords,
    rating_percent,
    to_ascii_safe,
)

EXIF_DATETIME_FORMAT = '%Y:%m:%d %H:%M:%S'

IFD = Dict[int, TagValue]


@dataclass
class ExifContainer:
    """The 0th IFD and the Exif sub-IFD, keyed by tag id."""
    zeroth: IFD = field(default_factory=dict)
    exif: IFD = field(default_factory=dict)


def format_exif_datetime(moment: datetime) -> str:
    """Format a datetime as EXIF expects it: YYYY:MM:DD HH:MM:SS."""
    return moment.strftime(EXIF_DATETIME_FORMAT)


def _text_value(tag: ExifTag, text: str) -> Optional[TagValue]:
    if tag in XP_TAGS:
        return Utf16XpText(text)
    if tag == ExifTag.USER_COMMENT:
        return UnicodeUserComment(text)
    if not to_ascii_safe(text):
        # Nothing survives ASCII folding; leave the mirror out
        return None
    return AsciiText(text)


def build_container(metadata: Metadata, now: datetime) -> ExifContainer:
    """
    Build the IFDs for a Metadata record.

    Empty or unset fields produce no tag at all. Rating and RatingPercent
    are always written (five stars by default), and DateTime falls back
    to ``now`` when the record has none.

    Args:
        metadata: Record to encode
        now: Instant used for a missing DateTime

    Returns:
        ExifContainer with 0th and Exif IFDs
    """
    container = ExifContainer()

    for layout in FIELD_LAYOUT:
        if layout.field == 'rating':
            stars = metadata.stars
            values = [UnsignedShort(stars), UnsignedShort(rating_percent(stars))]
        else:
            text = getattr(metadata, layout.field)
            if layout.field == 'user_comment' and text:
                text = normalize_keywords(text)
            elif layout.field == 'date_time' and not text:
                text = format_exif_datetime(now)
            if not text:
                continue
            values = [_text_value(tag, text) for tag in layout.tags]

        for tag, value in zip(layout.tags, values):
            if value is None:
                continue
            target = container.exif if tag in EXIF_IFD_TAGS else container.zeroth
            target[tag] = value

    return container


class EXIFWriter:
    """
    Serializes an ExifContainer into an APP1 payload.

    Layout: "Exif\\0\\0", TIFF header, 0th IFD and its data area, then the
    Exif IFD and its data area. Every offset is relative to the start of
    the TIFF header.
    """

    def __init__(self, endian: str = '<'):
        """
        Initialize EXIF writer.

        Args:
            endian: Byte order ('<' for little-endian, '>' for big-endian)
        """
        if endian not in ('<', '>'):
            raise ValueError(f"Invalid byte order: {endian!r}")
        self.endian = endian

    def build_payload(self, container: ExifContainer) -> bytes:
        """
        Build the APP1 payload (without marker and length).

        Args:
            container: IFDs to serialize

        Returns:
            "Exif\\0\\0" followed by the TIFF structure

        Raises:
            MetadataWriteError: If the payload does not fit in one segment
            InvalidTagError: If the 0th IFD carries the Exif pointer itself
        """
        if ExifTag.EXIF_IFD_POINTER in container.zeroth:
            raise InvalidTagError("ExifIFDPointer is computed by the writer")

        tiff_header = self._build_tiff_header()
        ifd0_offset = len(tiff_header)

        # The pointer is inline, so the 0th IFD size does not depend on its value
        zeroth = dict(container.zeroth)
        zeroth[ExifTag.EXIF_IFD_POINTER] = UnsignedLong(0)
        exif_ifd_offset = ifd0_offset + self._ifd_size(zeroth)
        zeroth[ExifTag.EXIF_IFD_POINTER] = UnsignedLong(exif_ifd_offset)

        tiff = bytearray(tiff_header)
        tiff.extend(self._write_ifd(zeroth, ifd0_offset))
        tiff.extend(self._write_ifd(container.exif, exif_ifd_offset))

        payload = EXIF_HEADER + bytes(tiff)
        if len(payload) > MAX_SEGMENT_PAYLOAD:
            raise MetadataWriteError(
                f"EXIF payload too large for one APP1 segment: {len(payload)} bytes"
            )
        return payload

    def _build_tiff_header(self) -> bytes:
        """
        Build TIFF header (required for EXIF).

        Returns:
            TIFF header bytes
        """
        header = b'II' if self.endian == '<' else b'MM'
        header += struct.pack(f'{self.endian}H', TIFF_MAGIC)
        # 0th IFD follows the 8-byte header directly
        header += struct.pack(f'{self.endian}I', 8)
        return header

    def _ifd_size(self, ifd: IFD) -> int:
        size = 2 + len(ifd) * 12 + 4
        for value in ifd.values():
            length = len(value.to_bytes(self.endian))
            if length > 4:
                size += length + (length % 2)
        return size

    def _write_ifd(self, ifd: IFD, ifd_offset: int) -> bytes:
        """
        Write an IFD followed by its data area.

        Entries are sorted by tag id. Values of up to four bytes are
        stored inline and left-justified; longer values go to the data
        area, each padded to an even length.

        Args:
            ifd: Tag id -> value
            ifd_offset: Offset of this IFD from the TIFF header

        Returns:
            IFD bytes including its data area

        Raises:
            InvalidTagError: If a value does not have its tag's type
        """
        entries = bytearray(struct.pack(f'{self.endian}H', len(ifd)))
        data = bytearray()
        data_offset = ifd_offset + 2 + len(ifd) * 12 + 4

        for tag_id, value in sorted(ifd.items()):
            if value.tag_type != TAG_TYPES.get(tag_id):
                raise InvalidTagError(
                    f"Tag 0x{tag_id:04X} cannot be written as {value.tag_type.name}"
                )
            encoded = value.to_bytes(self.endian)
            count = len(encoded) // TAG_SIZES[value.tag_type]
            entries.extend(struct.pack(f'{self.endian}HHI', tag_id, value.tag_type, count))

            if len(encoded) <= 4:
                entries.extend(encoded.ljust(4, b'\x00'))
            else:
                entries.extend(struct.pack(f'{self.endian}I', data_offset + len(data)))
                data.extend(encoded)
                if len(encoded) % 2:
                    data.append(0)

        # Offset to next IFD (0 = no more IFDs)
        entries.extend(struct.pack(f'{self.endian}I', 0))
        return bytes(entries + data)
