"""Pytest configuration and shared fixtures."""

import struct
from datetime import datetime, timezone

import pytest

from metamorph.core import create_codec

SOI = b'\xff\xd8'
EOI = b'\xff\xd9'

APP0_JFIF = b'\xff\xe0' + struct.pack('>H', 16) + b'JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
DQT = b'\xff\xdb' + struct.pack('>H', 67) + b'\x00' + bytes(range(1, 65))
SOF0 = b'\xff\xc0' + struct.pack('>H', 17) + bytes(
    [8, 0, 8, 0, 8, 3, 1, 0x22, 0, 2, 0x11, 1, 3, 0x11, 1]
)
DHT = b'\xff\xc4' + struct.pack('>H', 20) + b'\x00' + bytes([1] + [0] * 15) + b'\x00'
SOS = b'\xff\xda' + struct.pack('>H', 12) + bytes([3, 1, 0, 2, 0x11, 3, 0x11, 0, 0x3F, 0])
# Entropy-coded data with a stuffed 0xFF, a restart marker and bytes that
# would look like an EXIF segment if the scan were parsed as markers
SCAN_DATA = b'\x12\x34\xff\x00\x56\x78\xff\xd0\x9a\xbc\xff\x00\xff\xe1\x00\x08Exif\x00\x00\xde\xad'


def segment(marker: int, payload: bytes) -> bytes:
    return struct.pack('>HH', marker, len(payload) + 2) + payload


def raw_exif_payload(zeroth, exif=None, endian='<'):
    """
    Hand-craft an EXIF APP1 payload.

    ``zeroth`` and ``exif`` are lists of (tag, type, count, value bytes).
    Values of four bytes or fewer are stored inline as given, so a short
    value with a large count makes an entry whose offset is garbage.
    """
    header = (b'II' if endian == '<' else b'MM') + struct.pack(f'{endian}HI', 42, 8)

    def ifd_bytes(entries, offset):
        data_start = offset + 2 + 12 * len(entries) + 4
        body = struct.pack(f'{endian}H', len(entries))
        data = b''
        for tag, tag_type, count, raw in entries:
            body += struct.pack(f'{endian}HHI', tag, tag_type, count)
            if len(raw) <= 4:
                body += raw.ljust(4, b'\x00')
            else:
                body += struct.pack(f'{endian}I', data_start + len(data))
                data += raw
        return body + struct.pack(f'{endian}I', 0) + data

    if exif is None:
        return b'Exif\x00\x00' + header + ifd_bytes(list(zeroth), 8)

    def with_pointer(value):
        return list(zeroth) + [(0x8769, 4, 1, struct.pack(f'{endian}I', value))]

    exif_offset = 8 + len(ifd_bytes(with_pointer(0), 8))
    return (b'Exif\x00\x00' + header + ifd_bytes(with_pointer(exif_offset), 8)
            + ifd_bytes(list(exif), exif_offset))


@pytest.fixture
def make_jpeg():
    """Build a small baseline JPEG byte stream; extra segments go after SOI."""
    def _make(*extra_segments: bytes, jfif: bool = True) -> bytes:
        parts = [SOI]
        parts.extend(extra_segments)
        if jfif:
            parts.append(APP0_JFIF)
        parts.extend([DQT, SOF0, DHT, SOS, SCAN_DATA, EOI])
        return b''.join(parts)
    return _make


@pytest.fixture
def jpeg_bytes(make_jpeg):
    return make_jpeg()


@pytest.fixture
def scan_region():
    """Everything from SOS to EOI of the synthetic JPEG."""
    return SOS + SCAN_DATA + EOI


@pytest.fixture
def png_bytes():
    return b'\x89PNG\r\n\x1a\n' + b'\x00\x00\x00\rIHDR' + b'\x00' * 17


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 9, 14, 5, 7, tzinfo=timezone.utc)


@pytest.fixture
def codec(fixed_now):
    return create_codec(clock=lambda: fixed_now)


@pytest.fixture
def app1_segment():
    def _app1(payload: bytes) -> bytes:
        return segment(0xFFE1, payload)
    return _app1


@pytest.fixture
def exif_payload_builder():
    return raw_exif_payload
