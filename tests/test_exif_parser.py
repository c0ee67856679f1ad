"""Unit tests for the EXIF parser and metadata resolution."""

import struct

import pytest

from metamorph.exceptions import MetadataReadError
from metamorph.exif_parser import ExifParser, container_to_metadata
from metamorph.exif_tags import ExifTag
from metamorph.exif_writer import EXIFWriter, ExifContainer, build_container
from metamorph.metadata import Metadata
from metamorph.tag_values import AsciiText, UnicodeUserComment, UnsignedShort, Utf16XpText


def xp(text: str) -> bytes:
    return text.encode('utf-16-le') + b'\x00\x00'


class TestExifParser:
    """Test cases for walking IFDs."""

    @pytest.mark.parametrize("endian", ['<', '>'])
    def test_reads_what_the_writer_writes(self, endian, fixed_now):
        container = build_container(
            Metadata(title="Título", artist="Ana", user_comment="x;y", rating=2), fixed_now
        )
        payload = EXIFWriter(endian).build_payload(container)

        parsed = ExifParser(payload).parse()

        assert parsed.zeroth[ExifTag.XP_TITLE] == Utf16XpText("Título")
        assert parsed.zeroth[ExifTag.IMAGE_DESCRIPTION] == AsciiText("Titulo")
        assert parsed.zeroth[ExifTag.RATING] == UnsignedShort(2)
        assert ExifTag.EXIF_IFD_POINTER not in parsed.zeroth
        assert parsed.exif == {ExifTag.USER_COMMENT: UnicodeUserComment("x; y")}

    def test_big_endian_foreign_file(self, exif_payload_builder):
        payload = exif_payload_builder(
            [
                (0x010E, 2, 12, b'Sunset view\x00'),
                (0x4746, 3, 1, b'\x00\x03'),
                (0x9C9F, 1, len(xp("Praia")), xp("Praia")),
            ],
            endian='>',
        )
        parsed = ExifParser(payload).parse()

        assert parsed.zeroth[ExifTag.IMAGE_DESCRIPTION] == AsciiText("Sunset view")
        assert parsed.zeroth[ExifTag.RATING] == UnsignedShort(3)
        assert parsed.zeroth[ExifTag.XP_SUBJECT] == Utf16XpText("Praia")

    def test_bad_entry_does_not_hide_siblings(self, exif_payload_builder):
        payload = exif_payload_builder([
            (0x013B, 2, 7, b'Author\x00'),
            (0x9C9B, 1, 5000, b'\x00\x10\x00\x00'),   # offset past the end
            (0x8298, 12, 1, b'\x00\x00\x00\x00'),      # unknown type code
            (0x0131, 2, 5, b'Tool\x00'),
        ])
        parsed = ExifParser(payload).parse()

        assert parsed.zeroth == {
            ExifTag.ARTIST: AsciiText("Author"),
            ExifTag.SOFTWARE: AsciiText("Tool"),
        }

    def test_unknown_tags_are_ignored(self, exif_payload_builder):
        payload = exif_payload_builder([(0x010F, 2, 6, b'Canon\x00')])
        assert ExifParser(payload).parse().zeroth == {}

    def test_exif_pointer_loop(self, exif_payload_builder):
        payload = exif_payload_builder([(0x8769, 4, 1, struct.pack('<I', 8))])
        parsed = ExifParser(payload).parse()
        assert parsed.exif == {}

    def test_user_comment_from_foreign_exif_ifd(self, exif_payload_builder):
        comment = b'ASCII\x00\x00\x00tags here'
        payload = exif_payload_builder([], [(0x9286, 7, len(comment), comment)])
        parsed = ExifParser(payload).parse()
        assert parsed.exif[ExifTag.USER_COMMENT] == UnicodeUserComment("tags here")

    @pytest.mark.parametrize("payload", [
        b'',
        b'JFIF\x00\x00II*\x00\x08\x00\x00\x00',
        b'Exif\x00\x00II*\x00',
        b'Exif\x00\x00XX*\x00\x08\x00\x00\x00',
        b'Exif\x00\x00II+\x00\x08\x00\x00\x00',
        b'Exif\x00\x00II*\x00\xff\x00\x00\x00',
    ])
    def test_invalid_header(self, payload):
        with pytest.raises(MetadataReadError):
            ExifParser(payload).parse()


class TestContainerToMetadata:
    """Test cases for resolving tags into a Metadata record."""

    def test_xp_tags_win_over_mirrors(self):
        container = ExifContainer(zeroth={
            ExifTag.IMAGE_DESCRIPTION: AsciiText("Cafe"),
            ExifTag.XP_TITLE: Utf16XpText("Café"),
            ExifTag.ARTIST: AsciiText("Joao"),
            ExifTag.XP_AUTHOR: Utf16XpText("João"),
        })
        metadata = container_to_metadata(container)
        assert metadata.title == "Café"
        assert metadata.artist == "João"
        assert metadata.description == "Cafe"

    def test_mirrors_used_when_xp_missing(self):
        container = ExifContainer(zeroth={
            ExifTag.IMAGE_DESCRIPTION: AsciiText("Harbour"),
            ExifTag.ARTIST: AsciiText("Lee"),
        })
        metadata = container_to_metadata(container)
        assert metadata.title == "Harbour"
        assert metadata.description == "Harbour"
        assert metadata.artist == "Lee"

    def test_keywords_fall_back_to_user_comment(self):
        container = ExifContainer(exif={ExifTag.USER_COMMENT: UnicodeUserComment("a; b")})
        assert container_to_metadata(container).user_comment == "a; b"

    def test_defaults(self):
        metadata = container_to_metadata(ExifContainer(), default_software="MetaMorph SEO")
        assert metadata.to_dict() == {"rating": "★★★★★", "software": "MetaMorph SEO"}

    def test_stored_software_wins(self):
        container = ExifContainer(zeroth={ExifTag.SOFTWARE: AsciiText("GIMP")})
        assert container_to_metadata(container, "MetaMorph SEO").software == "GIMP"

    def test_rating_clamped(self):
        container = ExifContainer(zeroth={ExifTag.RATING: UnsignedShort(9)})
        assert container_to_metadata(container).rating == "★★★★★"
