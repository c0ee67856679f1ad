# Copyright 2025 DNAi inc.

# Dual-licensed under the DNAi Free License v1.1 and the
# DNAi Commercial License v1.1.
# See the LICENSE files in the project root for details.

"""
JPEG file modifier

This module handles finding, removing and inserting the EXIF APP1
segment of a JPEG byte stream. Every other segment, the scan header,
the entropy-coded data and anything after it are copied byte-for-byte.

Copyright 2025 DNAi inc.
"""

import struct
from typing import List, NamedTuple, Optional

from metamorph.exceptions import MetadataReadError, MetadataWriteError, UnsupportedFormatError
from metamorph.exif_tags import EXIF_HEADER

MAX_SEGMENT_PAYLOAD = 0xFFFF - 2


class Segment(NamedTuple):
    """A marker segment located in the stream."""
    marker: int
    start: int          # first byte, including any 0xFF fill bytes
    marker_offset: int  # offset of the 0xFF that precedes the marker code
    end: int            # offset just past the segment


def is_jpeg(data: bytes) -> bool:
    """Check for an SOI marker followed by another marker."""
    return len(data) >= 3 and data[0] == 0xFF and data[1] == 0xD8 and data[2] == 0xFF


class JPEGModifier:
    """
    Modifies JPEG files to update the EXIF segment.

    Markers are walked from SOI up to the first SOS (or EOI). Everything
    from there on is treated as an opaque tail, so the compressed scan
    data is never interpreted or rewritten.
    """

    # JPEG markers
    SOI = 0xFFD8  # Start of Image
    EOI = 0xFFD9  # End of Image
    SOS = 0xFFDA  # Start of Scan
    APP1 = 0xFFE1  # APP1 (EXIF)

    # Markers without a length field
    STANDALONE = frozenset([0xFF01] + list(range(0xFFD0, 0xFFD8)))

    def __init__(self, file_data: bytes):
        """
        Initialize JPEG modifier.

        Args:
            file_data: Original JPEG file data

        Raises:
            UnsupportedFormatError: If the data does not start with SOI
            MetadataReadError: If a segment runs past the end of the data
        """
        if not is_jpeg(file_data):
            raise UnsupportedFormatError("Invalid JPEG file: missing SOI marker")
        self.file_data = bytes(file_data)
        self.segments: List[Segment] = []
        self.tail_offset = len(self.file_data)
        self._parse_segments()

    def _parse_segments(self) -> None:
        """
        Parse the marker segments between SOI and the first scan.
        """
        data = self.file_data
        i = start = 2

        while i < len(data):
            start = i
            if data[i] != 0xFF:
                # Not a marker; leave the rest untouched
                break

            # Skip fill bytes; they stay attached to the following segment
            while i + 1 < len(data) and data[i + 1] == 0xFF:
                i += 1
            if i + 1 >= len(data):
                break

            marker = 0xFF00 | data[i + 1]
            if marker in (self.SOS, self.EOI) or marker == 0xFF00:
                break

            if marker in self.STANDALONE or marker == self.SOI:
                end = i + 2
            else:
                if i + 4 > len(data):
                    raise MetadataReadError("Truncated JPEG segment header")
                length = struct.unpack('>H', data[i + 2:i + 4])[0]
                end = i + 2 + length
                if length < 2 or end > len(data):
                    raise MetadataReadError(f"Truncated JPEG segment 0x{marker:04X}")

            self.segments.append(Segment(marker, start, i, end))
            i = end

        self.tail_offset = start if i < len(data) else len(data)

    def is_exif_segment(self, segment: Segment) -> bool:
        if segment.marker != self.APP1:
            return False
        header_start = segment.marker_offset + 4
        return self.file_data[header_start:header_start + len(EXIF_HEADER)] == EXIF_HEADER

    def exif_segments(self) -> List[Segment]:
        return [segment for segment in self.segments if self.is_exif_segment(segment)]

    def get_exif_payload(self) -> Optional[bytes]:
        """
        Return the payload of the first EXIF APP1 segment.

        Returns:
            Payload starting with "Exif\\0\\0", or None if there is none
        """
        for segment in self.exif_segments():
            return self.file_data[segment.marker_offset + 4:segment.end]
        return None

    def scan_data(self) -> bytes:
        """Return everything from the first SOS (or EOI) on."""
        return self.file_data[self.tail_offset:]

    def _rebuild(self, new_segment: bytes, keep_exif: bool) -> bytes:
        new_data = bytearray(self.file_data[0:2])  # SOI
        new_data.extend(new_segment)
        for segment in self.segments:
            if not keep_exif and self.is_exif_segment(segment):
                continue
            new_data.extend(self.file_data[segment.start:segment.end])
        new_data.extend(self.file_data[self.tail_offset:])
        return bytes(new_data)

    def remove_exif(self) -> bytes:
        """
        Remove every EXIF APP1 segment.

        Returns:
            Modified JPEG file data without EXIF
        """
        return self._rebuild(b'', keep_exif=False)

    def insert_exif(self, exif_payload: bytes) -> bytes:
        """
        Insert an EXIF APP1 segment right after SOI.

        Existing segments are kept as they are; call remove_exif first,
        or use replace_exif, to avoid two EXIF segments.

        Args:
            exif_payload: Payload starting with "Exif\\0\\0"

        Returns:
            Modified JPEG file data
        """
        return self._rebuild(build_app1_segment(exif_payload), keep_exif=True)

    def replace_exif(self, exif_payload: bytes) -> bytes:
        """Drop any EXIF APP1 segment and insert a new one after SOI."""
        return self._rebuild(build_app1_segment(exif_payload), keep_exif=False)


def build_app1_segment(exif_payload: bytes) -> bytes:
    """
    Frame an EXIF payload as an APP1 segment.

    Args:
        exif_payload: Payload starting with "Exif\\0\\0"

    Returns:
        Marker, big-endian length (payload + 2) and payload

    Raises:
        MetadataWriteError: If the payload is not EXIF or is too large
    """
    if not exif_payload.startswith(EXIF_HEADER):
        raise MetadataWriteError("APP1 payload must start with the Exif preamble")
    if len(exif_payload) > MAX_SEGMENT_PAYLOAD:
        raise MetadataWriteError(f"APP1 payload too large: {len(exif_payload)} bytes")
    return b'\xFF\xE1' + struct.pack('>H', len(exif_payload) + 2) + exif_payload


def find_exif(data: bytes) -> Optional[bytes]:
    """Return the EXIF APP1 payload of a JPEG, or None (also for non-JPEG input)."""
    if not is_jpeg(data):
        return None
    return JPEGModifier(data).get_exif_payload()


def remove_exif(data: bytes) -> bytes:
    """Remove the EXIF APP1 segment; non-JPEG input is returned unchanged."""
    if not is_jpeg(data):
        return data
    return JPEGModifier(data).remove_exif()


def insert_exif(data: bytes, exif_payload: bytes) -> bytes:
    """Insert an EXIF APP1 segment after SOI; non-JPEG input is returned unchanged."""
    if not is_jpeg(data):
        return data
    return JPEGModifier(data).insert_exif(exif_payload)
