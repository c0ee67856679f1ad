# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF metadata parser

This module reads the payload of an EXIF APP1 segment: it walks the
0th IFD, follows the Exif IFD pointer, and turns the entries of the
supported tag set into typed values and finally a Metadata record.

Damaged entries are skipped one at a time so that a single bad tag
never hides the rest of the record.

Copyright 2025 DNAi inc.
"""

import logging
import struct
from typing import Optional

from metamorph.exceptions import MetadataReadError, MetaMorphError
from metamorph.exif_tags import (
    EXIF_HEADER,
    TAG_SIZES,
    TIFF_MAGIC,
    ExifTag,
    ExifTagType,
)
from metamorph.exif_writer import IFD, ExifContainer
from metamorph.metadata import Metadata
from metamorph.tag_values import (
    UnsignedLong,
    UnsignedShort,
    decode_tag_value,
    stars_to_glyphs,
)

logger = logging.getLogger(__name__)

_SUPPORTED_TAGS = frozenset(int(tag) for tag in ExifTag)


class ExifParser:
    """
    Parser for the EXIF payload of a JPEG APP1 segment.

    Offsets inside the payload are relative to the TIFF header, which
    starts right after the 6-byte "Exif\\0\\0" preamble.
    """

    def __init__(self, payload: bytes):
        """
        Initialize the EXIF parser.

        Args:
            payload: APP1 payload, starting with "Exif\\0\\0"
        """
        self.payload = payload
        self.tiff = b''
        self.endian = '<'

    def parse(self) -> ExifContainer:
        """
        Parse the 0th IFD and the Exif sub-IFD.

        Returns:
            ExifContainer with the supported tags that could be decoded

        Raises:
            MetadataReadError: If the preamble or TIFF header is invalid
        """
        if not self.payload.startswith(EXIF_HEADER):
            raise MetadataReadError("Missing Exif preamble")
        self.tiff = self.payload[len(EXIF_HEADER):]

        if len(self.tiff) < 8:
            raise MetadataReadError("Invalid TIFF header: too short")

        # Determine endianness
        if self.tiff[:2] == b'II':
            self.endian = '<'
        elif self.tiff[:2] == b'MM':
            self.endian = '>'
        else:
            raise MetadataReadError("Invalid TIFF header: bad byte order")

        magic, ifd0_offset = struct.unpack(f'{self.endian}HI', self.tiff[2:8])
        if magic != TIFF_MAGIC:
            raise MetadataReadError("Invalid TIFF header: bad magic number")
        if ifd0_offset + 2 > len(self.tiff):
            raise MetadataReadError("0th IFD offset outside the payload")

        container = ExifContainer()
        container.zeroth = self._parse_ifd(ifd0_offset)

        pointer = container.zeroth.pop(ExifTag.EXIF_IFD_POINTER, None)
        if isinstance(pointer, (UnsignedLong, UnsignedShort)):
            if pointer.value == ifd0_offset:
                logger.debug("Exif IFD pointer loops back to the 0th IFD")
            else:
                container.exif = {
                    tag: value
                    for tag, value in self._parse_ifd(pointer.value).items()
                    if tag == ExifTag.USER_COMMENT
                }
        return container

    def _parse_ifd(self, ifd_offset: int) -> IFD:
        """
        Parse an IFD (Image File Directory) structure.

        Args:
            ifd_offset: Offset to the IFD from the TIFF header

        Returns:
            Tag id -> value for supported tags
        """
        ifd: IFD = {}
        if ifd_offset + 2 > len(self.tiff):
            return ifd

        num_entries = struct.unpack(f'{self.endian}H', self.tiff[ifd_offset:ifd_offset + 2])[0]
        entry_offset = ifd_offset + 2

        for _ in range(num_entries):
            if entry_offset + 12 > len(self.tiff):
                break
            entry = self.tiff[entry_offset:entry_offset + 12]
            entry_offset += 12

            tag_id, tag_type, count = struct.unpack(f'{self.endian}HHI', entry[:8])
            if tag_id not in _SUPPORTED_TAGS or tag_id in ifd:
                continue

            try:
                raw = self._read_entry_bytes(tag_type, count, entry[8:12])
                ifd[tag_id] = decode_tag_value(tag_id, tag_type, raw, self.endian)
            except (MetaMorphError, struct.error, UnicodeDecodeError, ValueError) as e:
                logger.debug("Skipping tag 0x%04X: %s", tag_id, e)

        return ifd

    def _read_entry_bytes(self, tag_type: int, count: int, value_field: bytes) -> bytes:
        """
        Fetch the value bytes of an entry, inline or from the data area.

        Args:
            tag_type: TIFF type code
            count: Number of values
            value_field: The 4-byte value/offset field of the entry

        Returns:
            Value bytes

        Raises:
            MetadataReadError: If the type is unknown or the value lies
                outside the payload
        """
        try:
            tag_type_enum = ExifTagType(tag_type)
        except ValueError:
            raise MetadataReadError(f"Unknown type code {tag_type}")

        total_size = TAG_SIZES[tag_type_enum] * count
        if total_size <= 4:
            return value_field[:total_size]

        value_offset = struct.unpack(f'{self.endian}I', value_field)[0]
        if value_offset + total_size > len(self.tiff):
            raise MetadataReadError("Value offset outside the payload")
        return self.tiff[value_offset:value_offset + total_size]


def _text(ifd: IFD, tag: ExifTag) -> str:
    value = ifd.get(tag)
    return getattr(value, 'text', '') or ''


def container_to_metadata(
    container: ExifContainer,
    default_software: Optional[str] = None
) -> Metadata:
    """
    Resolve the decoded tags into a Metadata record.

    XP tags win over their ASCII mirrors; the keyword list comes from
    XPKeywords, or UserComment when XPKeywords is absent. A missing
    Rating reads as five stars.

    Args:
        container: Decoded IFDs
        default_software: Software value used when the tag is absent

    Returns:
        Metadata record
    """
    zeroth, exif = container.zeroth, container.exif
    description_mirror = _text(zeroth, ExifTag.IMAGE_DESCRIPTION)

    rating_value = zeroth.get(ExifTag.RATING)
    stars = rating_value.value if isinstance(rating_value, (UnsignedShort, UnsignedLong)) else None

    return Metadata(
        title=_text(zeroth, ExifTag.XP_TITLE) or description_mirror or None,
        subject=_text(zeroth, ExifTag.XP_SUBJECT) or None,
        rating=stars_to_glyphs(stars),
        description=_text(zeroth, ExifTag.XP_COMMENT) or description_mirror or None,
        artist=_text(zeroth, ExifTag.XP_AUTHOR) or _text(zeroth, ExifTag.ARTIST) or None,
        copyright=_text(zeroth, ExifTag.COPYRIGHT) or None,
        software=_text(zeroth, ExifTag.SOFTWARE) or default_software or None,
        date_time=_text(zeroth, ExifTag.DATE_TIME) or None,
        user_comment=_text(zeroth, ExifTag.XP_KEYWORDS) or _text(exif, ExifTag.USER_COMMENT) or None,
    )
