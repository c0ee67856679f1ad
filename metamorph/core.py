# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
Core MetaMorph API

MetadataCodec is the single entry point collaborators use:

    codec = MetadataCodec(ExifBackend())
    metadata = codec.decode(jpeg_bytes).metadata
    new_bytes = codec.encode(jpeg_bytes, metadata).data

Neither call raises. Unsupported input yields an EMPTY result, and a
failed encode yields a DEGRADED result carrying the original bytes and
the exception that caused it.

Copyright 2025 DNAi inc.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from metamorph.exceptions import MetaMorphError
from metamorph.exif_parser import ExifParser, container_to_metadata
from metamorph.exif_writer import EXIFWriter, ExifContainer, build_container
from metamorph.jpeg_modifier import JPEGModifier, is_jpeg
from metamorph.metadata import Metadata

logger = logging.getLogger(__name__)

DEFAULT_SOFTWARE = "MetaMorph SEO"


class CodecStatus(Enum):
    """Outcome of a decode or encode call."""
    SUCCESS = "success"
    EMPTY = "empty"        # input not supported; nothing read or written
    DEGRADED = "degraded"  # partial read, or write abandoned with original bytes


@dataclass
class DecodeResult:
    metadata: Metadata
    status: CodecStatus
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == CodecStatus.SUCCESS


@dataclass
class EncodeResult:
    data: bytes
    status: CodecStatus
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status == CodecStatus.SUCCESS


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExifBackend:
    """
    EXIF reading and writing capability.

    MetadataCodec receives one of these explicitly; a codec built without
    a backend behaves as if EXIF support were missing.
    """

    def __init__(self, endian: str = '<'):
        """
        Args:
            endian: Byte order used when writing ('<' or '>')
        """
        self.writer = EXIFWriter(endian)

    @property
    def endian(self) -> str:
        return self.writer.endian

    def read(self, payload: bytes) -> ExifContainer:
        return ExifParser(payload).parse()

    def write(self, container: ExifContainer) -> bytes:
        return self.writer.build_payload(container)


class MetadataCodec:
    """
    Reads and writes searchable metadata in JPEG files.

    Each call is a pure function of its arguments; the codec only holds
    configuration and can be shared between threads.
    """

    def __init__(
        self,
        backend: Optional[ExifBackend],
        clock: Optional[Callable[[], datetime]] = None,
        default_software: Optional[str] = DEFAULT_SOFTWARE
    ):
        """
        Initialize the codec.

        Args:
            backend: EXIF capability, or None when it is unavailable
            clock: Returns the instant used for a missing DateTime
                (defaults to the current UTC time)
            default_software: Software value reported when a file has none
        """
        self.backend = backend
        self.clock = clock or utc_now
        self.default_software = default_software

    @property
    def supported(self) -> bool:
        return self.backend is not None

    def decode(self, data: bytes) -> DecodeResult:
        """
        Decode the metadata of a JPEG file.

        Args:
            data: File bytes

        Returns:
            DecodeResult; EMPTY with an empty record for non-JPEG input
            or a codec without backend, DEGRADED with default values when
            the existing EXIF structure is unreadable
        """
        if self.backend is None or not is_jpeg(data):
            logger.debug("Decode skipped: unsupported input")
            return DecodeResult(Metadata(), CodecStatus.EMPTY)

        container = ExifContainer()
        status = CodecStatus.SUCCESS
        error = None
        try:
            payload = JPEGModifier(data).get_exif_payload()
            if payload is not None:
                container = self.backend.read(payload)
        except MetaMorphError as e:
            logger.debug("Unreadable EXIF segment: %s", e)
            status, error = CodecStatus.DEGRADED, e

        metadata = container_to_metadata(container, self.default_software)
        return DecodeResult(metadata, status, error)

    def encode(self, data: bytes, metadata: Metadata) -> EncodeResult:
        """
        Replace the EXIF segment of a JPEG file.

        Any existing EXIF APP1 segment is dropped and a new one carrying
        ``metadata`` is inserted right after SOI. The scan data is left
        byte-for-byte intact.

        Args:
            data: File bytes
            metadata: Record to write

        Returns:
            EncodeResult; on EMPTY or DEGRADED, ``data`` is the original
            input unchanged
        """
        if self.backend is None or not is_jpeg(data):
            logger.debug("Encode skipped: unsupported input")
            return EncodeResult(data, CodecStatus.EMPTY)

        try:
            container = build_container(metadata, self.clock())
            payload = self.backend.write(container)
            new_data = JPEGModifier(data).replace_exif(payload)
        except Exception as e:
            logger.warning("Metadata injection failed, keeping original bytes: %s", e)
            return EncodeResult(data, CodecStatus.DEGRADED, e)

        return EncodeResult(new_data, CodecStatus.SUCCESS)


def create_codec(
    endian: str = '<',
    clock: Optional[Callable[[], datetime]] = None,
    default_software: Optional[str] = DEFAULT_SOFTWARE
) -> MetadataCodec:
    """Build a codec with the built-in EXIF backend."""
    return MetadataCodec(ExifBackend(endian), clock=clock, default_software=default_software)


_default_codec = create_codec()


def decode(data: bytes) -> Metadata:
    """Decode JPEG metadata with the default codec; never raises."""
    return _default_codec.decode(data).metadata


def encode(data: bytes, metadata: Metadata) -> bytes:
    """Encode JPEG metadata with the default codec; returns the input on failure."""
    return _default_codec.encode(data, metadata).data
