"""Tests for the command-line interface."""

import json

import pytest

from metamorph.cli import build_parser, format_output, main, parse_rating, printable
from metamorph.core import create_codec
from metamorph.metadata import Metadata


@pytest.fixture
def jpeg_file(tmp_path, jpeg_bytes):
    path = tmp_path / "IMG_0001.jpg"
    path.write_bytes(jpeg_bytes)
    return path


class TestFormatOutput:
    """Test cases for output formatting."""

    def test_text(self):
        assert format_output({"title": "A", "artist": "B"}) == "artist: B\ntitle: A"

    def test_json_keeps_unicode(self):
        output = format_output({"rating": "★★"}, "json")
        assert "★★" in output
        assert json.loads(output) == {"rating": "★★"}

    def test_csv(self):
        output = format_output({"title": 'Say "hi"'}, "csv")
        assert output == '"Field","Value"\n"title","Say ""hi"""'


class TestPrintable:
    def test_lone_surrogate_replaced(self):
        assert printable({"title": "a\ud800b", "rating": "★★"}) == {"title": "a?b", "rating": "★★"}


class TestParseRating:
    @pytest.mark.parametrize("value,expected", [("4", 4), (" 2 ", 2), ("★★★", "★★★")])
    def test_values(self, value, expected):
        assert parse_rating(value) == expected


class TestCommands:
    """Test cases for the read and write subcommands."""

    def test_parser_requires_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_read_json(self, jpeg_file, capsys):
        assert main(["read", str(jpeg_file), "--format", "json"]) == 0
        output = json.loads(capsys.readouterr().out)
        assert output == {"rating": "★★★★★", "software": "MetaMorph SEO"}

    def test_write_then_read(self, jpeg_file, tmp_path, capsys):
        target = tmp_path / "out.jpg"
        exit_code = main([
            "write", str(jpeg_file), "-o", str(target),
            "--title", "Café à Brasília",
            "--keywords", "a, b ; c",
            "--rating", "3",
            "--datetime", "2024:01:15 10:20:30",
        ])
        assert exit_code == 0
        assert f"Wrote {target}" in capsys.readouterr().out

        metadata = create_codec().decode(target.read_bytes()).metadata
        assert metadata.title == "Café à Brasília"
        assert metadata.user_comment == "a; b; c"
        assert metadata.rating == "★★★"
        assert metadata.date_time == "2024:01:15 10:20:30"

    def test_write_default_output_named_after_title(self, jpeg_file, tmp_path):
        assert main(["write", str(jpeg_file), "--title", "Loja: Centro"]) == 0
        assert (tmp_path / "Loja Centro.jpg").exists()

    def test_write_big_endian(self, jpeg_file, tmp_path):
        target = tmp_path / "be.jpg"
        assert main(["write", str(jpeg_file), "-o", str(target), "--title", "x", "--big-endian"]) == 0
        assert b'Exif\x00\x00MM' in target.read_bytes()

    def test_non_jpeg(self, tmp_path, png_bytes, capsys):
        path = tmp_path / "shot.png"
        path.write_bytes(png_bytes)
        assert main(["read", str(path)]) == 1
        assert "not a JPEG" in capsys.readouterr().err
        assert main(["write", str(path), "--title", "x"]) == 1

    def test_missing_file(self, tmp_path, capsys):
        assert main(["read", str(tmp_path / "missing.jpg")]) == 1
        assert "Error" in capsys.readouterr().err

    def test_read_with_lone_surrogate_in_xp_title(self, tmp_path, jpeg_bytes, capsys):
        path = tmp_path / "broken.jpg"
        path.write_bytes(create_codec().encode(jpeg_bytes, Metadata(title="Mesa \ud800")).data)

        assert main(["read", str(path)]) == 0
        assert "title: Mesa ?" in capsys.readouterr().out
