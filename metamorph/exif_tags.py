# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
EXIF tag definitions

This module contains the tag ids, TIFF type codes and field layout for
the tag set MetaMorph reads and writes. Based on the EXIF 2.3
standard plus the Windows "XP" and rating tags.

Copyright 2025 DNAi inc.
"""

from enum import IntEnum
from typing import Dict, NamedTuple, Tuple


class ExifTagType(IntEnum):
    """EXIF tag data types"""
    BYTE = 1
    ASCII = 2
    SHORT = 3
    LONG = 4
    RATIONAL = 5
    UNDEFINED = 7
    SLONG = 9
    SRATIONAL = 10


# EXIF tag sizes in bytes
TAG_SIZES = {
    ExifTagType.BYTE: 1,
    ExifTagType.ASCII: 1,
    ExifTagType.SHORT: 2,
    ExifTagType.LONG: 4,
    ExifTagType.RATIONAL: 8,
    ExifTagType.UNDEFINED: 1,
    ExifTagType.SLONG: 4,
    ExifTagType.SRATIONAL: 8,
}


class ExifTag(IntEnum):
    """Tag ids of the supported tag set."""
    # IFD0 (Image) tags
    IMAGE_DESCRIPTION = 0x010E
    SOFTWARE = 0x0131
    DATE_TIME = 0x0132
    ARTIST = 0x013B
    RATING = 0x4746
    RATING_PERCENT = 0x4749
    COPYRIGHT = 0x8298
    EXIF_IFD_POINTER = 0x8769
    # Windows XP tags (IFD0)
    XP_TITLE = 0x9C9B
    XP_COMMENT = 0x9C9C
    XP_AUTHOR = 0x9C9D
    XP_KEYWORDS = 0x9C9E
    XP_SUBJECT = 0x9C9F
    # EXIF IFD tags
    USER_COMMENT = 0x9286


# Type code each tag is written with; the writer rejects values of any other type
TAG_TYPES: Dict[int, ExifTagType] = {
    ExifTag.IMAGE_DESCRIPTION: ExifTagType.ASCII,
    ExifTag.SOFTWARE: ExifTagType.ASCII,
    ExifTag.DATE_TIME: ExifTagType.ASCII,
    ExifTag.ARTIST: ExifTagType.ASCII,
    ExifTag.RATING: ExifTagType.SHORT,
    ExifTag.RATING_PERCENT: ExifTagType.SHORT,
    ExifTag.COPYRIGHT: ExifTagType.ASCII,
    ExifTag.EXIF_IFD_POINTER: ExifTagType.LONG,
    ExifTag.XP_TITLE: ExifTagType.BYTE,
    ExifTag.XP_COMMENT: ExifTagType.BYTE,
    ExifTag.XP_AUTHOR: ExifTagType.BYTE,
    ExifTag.XP_KEYWORDS: ExifTagType.BYTE,
    ExifTag.XP_SUBJECT: ExifTagType.BYTE,
    ExifTag.USER_COMMENT: ExifTagType.UNDEFINED,
}

EXIF_IFD_TAGS = frozenset({ExifTag.USER_COMMENT})

XP_TAGS = frozenset({
    ExifTag.XP_TITLE,
    ExifTag.XP_COMMENT,
    ExifTag.XP_AUTHOR,
    ExifTag.XP_KEYWORDS,
    ExifTag.XP_SUBJECT,
})


class FieldLayout(NamedTuple):
    """Tags a Metadata field is written to, in write order."""
    field: str
    tags: Tuple[ExifTag, ...]


# Metadata field -> tags. The first tag of title and artist is the
# ASCII mirror read by legacy software.
FIELD_LAYOUT: Tuple[FieldLayout, ...] = (
    FieldLayout('title', (ExifTag.IMAGE_DESCRIPTION, ExifTag.XP_TITLE)),
    FieldLayout('description', (ExifTag.XP_COMMENT,)),
    FieldLayout('subject', (ExifTag.XP_SUBJECT,)),
    FieldLayout('rating', (ExifTag.RATING, ExifTag.RATING_PERCENT)),
    FieldLayout('artist', (ExifTag.ARTIST, ExifTag.XP_AUTHOR)),
    FieldLayout('user_comment', (ExifTag.XP_KEYWORDS, ExifTag.USER_COMMENT)),
    FieldLayout('software', (ExifTag.SOFTWARE,)),
    FieldLayout('copyright', (ExifTag.COPYRIGHT,)),
    FieldLayout('date_time', (ExifTag.DATE_TIME,)),
)


# JPEG/EXIF framing constants
EXIF_HEADER = b'Exif\x00\x00'
TIFF_MAGIC = 42
UNICODE_CHARSET = b'UNICODE\x00'
ASCII_CHARSET = b'ASCII\x00\x00\x00'
JIS_CHARSET = b'JIS\x00\x00\x00\x00\x00'
