# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Tag value encoding and decoding

This module holds the typed tag values stored in an IFD and the text
rules behind them:

- ASCII fields are folded to printable 7-bit text for legacy readers.
- XP fields are UTF-16LE with a double zero terminator.
- UserComment is "UNICODE\\0" followed by UTF-16BE code units.
- Ratings map star counts to the Windows rating percent.

Copyright 2025 DNAi inc.
"""

import re
import struct
import unicodedata
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

import chardet

from metamorph.exceptions import InvalidTagError
from metamorph.exif_tags import (
    ASCII_CHARSET,
    JIS_CHARSET,
    UNICODE_CHARSET,
    XP_TAGS,
    ExifTag,
    ExifTagType,
)

STAR = '★'

# Star count -> RatingPercent, as written by Windows Explorer
RATING_PERCENT = {1: 1, 2: 25, 3: 50, 4: 75, 5: 99}
DEFAULT_STARS = 5

_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
_NON_PRINTABLE_ASCII = re.compile('[^\x20-\x7e]')
_KEYWORD_SEPARATORS = re.compile('[,;]')


def to_ascii_safe(text: str) -> str:
    """
    Fold text to printable ASCII.

    Decomposes the text (NFD), drops combining diacritical marks and then
    drops whatever is still outside 0x20-0x7E. "Café à Brasília" becomes
    "Cafe a Brasilia". Never raises.

    Args:
        text: Any Unicode string

    Returns:
        Printable 7-bit string
    """
    decomposed = unicodedata.normalize('NFD', text)
    return _NON_PRINTABLE_ASCII.sub('', _COMBINING_MARKS.sub('', decomposed))


def normalize_keywords(raw: str) -> str:
    """
    Normalize a keyword list to "a; b; c".

    Splits on commas and semicolons, trims each entry and drops empty ones.
    """
    keywords = [part.strip() for part in _KEYWORD_SEPARATORS.split(raw)]
    return '; '.join(keyword for keyword in keywords if keyword)


def star_count(rating: Union[str, int, None]) -> int:
    """
    Resolve a rating to a star count in [1, 5].

    Strings count their star glyphs, integers are taken as-is. Zero,
    negative or missing ratings fall back to five stars; larger counts
    are clamped to five.

    Args:
        rating: Star-glyph string (e.g. "★★★"), star count, or None

    Returns:
        Star count between 1 and 5
    """
    if rating is None:
        return DEFAULT_STARS
    if isinstance(rating, int):
        count = rating
    else:
        count = str(rating).count(STAR)
    if count < 1:
        return DEFAULT_STARS
    return min(count, 5)


def rating_percent(stars: int) -> int:
    """Map a star count to the RatingPercent value."""
    return RATING_PERCENT.get(stars, RATING_PERCENT[DEFAULT_STARS])


def stars_to_glyphs(stars: Optional[int]) -> str:
    """Render a stored Rating tag as star glyphs; 0 or None means five stars."""
    if not stars:
        return STAR * DEFAULT_STARS
    return STAR * max(1, min(stars, 5))


def decode_legacy_text(raw: bytes) -> str:
    """
    Decode text written by an unknown legacy writer.

    Pure ASCII and valid UTF-8 are decoded directly. Anything else is
    handed to chardet; when detection is not confident the bytes are
    read as Latin-1, which never fails.

    Args:
        raw: Text bytes without terminator

    Returns:
        Decoded string
    """
    if not raw:
        return ''
    for encoding in ('ascii', 'utf-8'):
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue

    detected = chardet.detect(raw)
    encoding = detected.get('encoding')
    confidence = detected.get('confidence') or 0.0
    if encoding and confidence > 0.5:
        try:
            return raw.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            pass
    return raw.decode('latin-1')


def decode_xp_text(raw: bytes) -> str:
    """
    Decode an XP tag value.

    Reads UTF-16LE code units up to (not including) the first aligned
    double zero unit. A trailing odd byte is ignored.
    """
    usable = len(raw) - (len(raw) % 2)
    end = usable
    for index in range(0, usable, 2):
        if raw[index] == 0 and raw[index + 1] == 0:
            end = index
            break
    return raw[:end].decode('utf-16-le', errors='surrogatepass')


def decode_user_comment(raw: bytes) -> str:
    """
    Decode a UserComment value according to its 8-byte charset marker.

    UNICODE bodies are read big-endian, the byte order this package
    writes them in. ASCII and JIS bodies use their own codecs; an
    undefined marker falls back to legacy text detection.

    Args:
        raw: Complete UserComment bytes including the charset marker

    Returns:
        Comment text without padding
    """
    charset, body = raw[:8], raw[8:]
    if charset == UNICODE_CHARSET:
        body = body[:len(body) - (len(body) % 2)]
        text = body.decode('utf-16-be', errors='surrogatepass')
    elif charset == ASCII_CHARSET:
        text = body.decode('ascii', errors='ignore')
    elif charset == JIS_CHARSET:
        text = body.decode('shift_jis', errors='replace')
    else:
        text = decode_legacy_text(body.rstrip(b'\x00'))
    return text.rstrip('\x00 ')


def decode_ascii_text(raw: bytes) -> str:
    """Decode an ASCII tag value up to its first NUL."""
    null_pos = raw.find(b'\x00')
    if null_pos >= 0:
        raw = raw[:null_pos]
    return decode_legacy_text(raw).strip()


class TagValue:
    """
    Base class for a typed tag value.

    Subclasses know their TIFF type code and how to turn themselves into
    the bytes stored in the IFD (inline or in the data area).
    """
    tag_type: ClassVar[ExifTagType]

    def to_bytes(self, endian: str = '<') -> bytes:
        raise NotImplementedError


@dataclass(frozen=True)
class AsciiText(TagValue):
    """ASCII string, folded to printable 7-bit text when written."""
    text: str
    tag_type: ClassVar[ExifTagType] = ExifTagType.ASCII

    def to_bytes(self, endian: str = '<') -> bytes:
        return to_ascii_safe(self.text).encode('ascii') + b'\x00'

    @classmethod
    def from_bytes(cls, raw: bytes) -> 'AsciiText':
        return cls(decode_ascii_text(raw))


@dataclass(frozen=True)
class Utf16XpText(TagValue):
    """Windows XP tag text: UTF-16LE code units plus a double zero terminator."""
    text: str
    tag_type: ClassVar[ExifTagType] = ExifTagType.BYTE

    def to_bytes(self, endian: str = '<') -> bytes:
        # XP tags are byte arrays, so the TIFF byte order does not apply
        return self.text.encode('utf-16-le', errors='surrogatepass') + b'\x00\x00'

    @classmethod
    def from_bytes(cls, raw: bytes) -> 'Utf16XpText':
        return cls(decode_xp_text(raw))


@dataclass(frozen=True)
class UnicodeUserComment(TagValue):
    """UserComment with the UNICODE charset marker and big-endian code units."""
    text: str
    tag_type: ClassVar[ExifTagType] = ExifTagType.UNDEFINED

    def to_bytes(self, endian: str = '<') -> bytes:
        # Readers key off the charset marker; no terminator, no BOM
        return UNICODE_CHARSET + self.text.encode('utf-16-be', errors='surrogatepass')

    @classmethod
    def from_bytes(cls, raw: bytes) -> 'UnicodeUserComment':
        return cls(decode_user_comment(raw))


@dataclass(frozen=True)
class UnsignedShort(TagValue):
    value: int
    tag_type: ClassVar[ExifTagType] = ExifTagType.SHORT

    def __post_init__(self):
        if not 0 <= self.value <= 0xFFFF:
            raise InvalidTagError(f"SHORT value out of range: {self.value}")

    def to_bytes(self, endian: str = '<') -> bytes:
        return struct.pack(f'{endian}H', self.value)

    @classmethod
    def from_bytes(cls, raw: bytes, endian: str = '<') -> 'UnsignedShort':
        return cls(struct.unpack(f'{endian}H', raw[:2])[0])


@dataclass(frozen=True)
class UnsignedLong(TagValue):
    value: int
    tag_type: ClassVar[ExifTagType] = ExifTagType.LONG

    def __post_init__(self):
        if not 0 <= self.value <= 0xFFFFFFFF:
            raise InvalidTagError(f"LONG value out of range: {self.value}")

    def to_bytes(self, endian: str = '<') -> bytes:
        return struct.pack(f'{endian}I', self.value)

    @classmethod
    def from_bytes(cls, raw: bytes, endian: str = '<') -> 'UnsignedLong':
        return cls(struct.unpack(f'{endian}I', raw[:4])[0])


def decode_tag_value(tag_id: int, tag_type: int, raw: bytes, endian: str) -> TagValue:
    """
    Turn the raw bytes of an IFD entry into a typed value.

    XP tags and UserComment are recognised by tag id, since some writers
    store them as UNDEFINED or BYTE interchangeably. Everything else is
    dispatched on the stored type code.

    Args:
        tag_id: Tag id of the entry
        tag_type: TIFF type code of the entry
        raw: Value bytes (inline or fetched from the data area)
        endian: Byte order of the TIFF structure ('<' or '>')

    Returns:
        Typed tag value

    Raises:
        InvalidTagError: If the type code is not one this package reads
    """
    if tag_id in XP_TAGS:
        return Utf16XpText.from_bytes(raw)
    if tag_id == ExifTag.USER_COMMENT:
        return UnicodeUserComment.from_bytes(raw)
    if tag_type == ExifTagType.ASCII:
        return AsciiText.from_bytes(raw)
    if tag_type == ExifTagType.SHORT:
        return UnsignedShort.from_bytes(raw, endian)
    if tag_type == ExifTagType.LONG:
        return UnsignedLong.from_bytes(raw, endian)
    if tag_type == ExifTagType.BYTE and raw:
        return UnsignedShort(raw[0])
    raise InvalidTagError(f"Unsupported type {tag_type} for tag 0x{tag_id:04X}")
