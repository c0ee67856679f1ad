"""Unit tests for data URL helpers."""

import base64

import pytest

from metamorph.data_url import decode_data_url, encode_data_url, parse_data_url, to_data_url
from metamorph.exceptions import UnsupportedFormatError
from metamorph.metadata import Metadata


class TestParseDataUrl:
    """Test cases for splitting data URLs."""

    def test_round_trip(self, jpeg_bytes):
        url = to_data_url('image/jpeg', jpeg_bytes)
        assert url.startswith('data:image/jpeg;base64,')
        assert parse_data_url(url) == ('image/jpeg', jpeg_bytes)

    @pytest.mark.parametrize("url", [
        'https://example.com/a.jpg',
        'data:image/jpeg,rawtext',
        'data:image/jpeg;base64,@@@',
    ])
    def test_rejects(self, url):
        with pytest.raises(UnsupportedFormatError):
            parse_data_url(url)


class TestEncodeDataUrl:
    """Test cases for writing metadata through a data URL."""

    def test_jpeg(self, codec, jpeg_bytes):
        url = to_data_url('image/jpeg', jpeg_bytes)
        updated = encode_data_url(url, Metadata(title="Loja", user_comment="a,b"), codec)

        assert updated != url
        decoded = decode_data_url(updated, codec)
        assert decoded.title == "Loja"
        assert decoded.user_comment == "a; b"

    def test_png_unchanged(self, png_bytes):
        url = 'data:image/png;base64,' + base64.b64encode(png_bytes).decode('ascii')
        assert encode_data_url(url, Metadata(title="x")) == url
        assert decode_data_url(url) == {}

    def test_degraded_encode_returns_original_url(self, codec, jpeg_bytes):
        url = to_data_url('image/jpeg', jpeg_bytes[:30])
        assert encode_data_url(url, Metadata(title="x"), codec) == url

    def test_invalid_payload_unchanged(self):
        url = 'data:image/jpeg;base64,!!'
        assert encode_data_url(url, Metadata(title="x")) == url
        assert decode_data_url(url).is_empty
