# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
MetaMorph - searchable photo metadata for local SEO

Reads and writes the EXIF metadata search engines and Windows Explorer
index: title, subject, description, author, keywords, copyright and
star rating. The EXIF/TIFF structure is encoded and decoded in pure
Python and spliced into the JPEG byte stream without touching the
compressed image data.

Copyright 2025 DNAi inc.
"""

__version__ = "0.1.3"
__author__ = "DNAi inc."

from metamorph.core import (
    CodecStatus,
    DecodeResult,
    EncodeResult,
    ExifBackend,
    MetadataCodec,
    create_codec,
    decode,
    encode,
)
from metamorph.exceptions import (
    InvalidTagError,
    MetadataReadError,
    MetadataWriteError,
    MetaMorphError,
    UnsupportedFormatError,
)
from metamorph.metadata import Metadata
from metamorph.tag_values import normalize_keywords, rating_percent, star_count, to_ascii_safe

__all__ = [
    "CodecStatus",
    "DecodeResult",
    "EncodeResult",
    "ExifBackend",
    "MetadataCodec",
    "create_codec",
    "decode",
    "encode",
    "InvalidTagError",
    "MetadataReadError",
    "MetadataWriteError",
    "MetaMorphError",
    "UnsupportedFormatError",
    "Metadata",
    "normalize_keywords",
    "rating_percent",
    "star_count",
    "to_ascii_safe",
]
