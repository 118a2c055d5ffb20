"""
Tests for the inventory file parsers and the extension registry.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from recordstock.core import ValidationError
from recordstock.core.db.models import RawAlbumRow
from recordstock.core.parsers import (
    PARSERS,
    InputFileNotFoundError,
    ParseError,
    UnreadableFileError,
    UnsupportedFileTypeError,
    get_parser,
    group_quantities,
    parse_csv,
    parse_file,
    parse_pipe,
)


def write(tmp_path: Path, name: str, text: str) -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


# =============================================================================
# Row model
# =============================================================================


class TestRawAlbumRow:
    def test_from_mapping_with_strings(self) -> None:
        row = RawAlbumRow.from_mapping(
            {
                "artist": " Queen ",
                "title": "Jazz",
                "format": "CD",
                "release_year": "1978",
                "quantity": "3",
            }
        )

        assert row == RawAlbumRow("Queen", "Jazz", "CD", 1978, 3)

    def test_from_mapping_with_ints(self) -> None:
        row = RawAlbumRow.from_mapping(
            {"artist": "Queen", "title": "Jazz", "format": "CD", "release_year": 1978, "quantity": 2}
        )
        assert row.quantity == 2
        assert row.release_year == 1978

    def test_empty_release_year_is_none(self) -> None:
        row = RawAlbumRow.from_mapping(
            {"artist": "Queen", "title": "Jazz", "format": "CD", "release_year": "", "quantity": 1}
        )
        assert row.release_year is None

    def test_missing_field(self) -> None:
        with pytest.raises(ValidationError, match="quantity"):
            RawAlbumRow.from_mapping(
                {"artist": "Queen", "title": "Jazz", "format": "CD", "release_year": "1978"}
            )

    @pytest.mark.parametrize("quantity", ["three", "1.5", "-1"])
    def test_bad_quantity(self, quantity: str) -> None:
        with pytest.raises(ValidationError):
            RawAlbumRow.from_mapping(
                {
                    "artist": "Queen",
                    "title": "Jazz",
                    "format": "CD",
                    "release_year": "1978",
                    "quantity": quantity,
                }
            )

    def test_blank_artist(self) -> None:
        with pytest.raises(ValidationError):
            RawAlbumRow.from_mapping(
                {"artist": "  ", "title": "Jazz", "format": "CD", "release_year": "", "quantity": 1}
            )


# =============================================================================
# Pipe files
# =============================================================================


class TestPipeParser:
    def test_parse_lines(self, tmp_path: Path) -> None:
        path = write(
            tmp_path,
            "albums.pipe",
            "2 | CD | 1975 | Queen | A Night at the Opera\n"
            "\n"
            "1 | vinyl | 1975 | Queen | A Night at the Opera\n",
        )

        rows = parse_pipe(path)

        assert rows == [
            RawAlbumRow("Queen", "A Night at the Opera", "CD", 1975, 2),
            RawAlbumRow("Queen", "A Night at the Opera", "vinyl", 1975, 1),
        ]

    def test_wrong_column_count_reports_line(self, tmp_path: Path) -> None:
        path = write(
            tmp_path,
            "albums.pipe",
            "2 | CD | 1975 | Queen | Jazz\n1 | CD | 1975 | Queen\n",
        )

        with pytest.raises(ParseError) as excinfo:
            parse_pipe(path)

        assert excinfo.value.line_number == 2
        assert "line 2" in str(excinfo.value)

    def test_bad_quantity_reports_line(self, tmp_path: Path) -> None:
        path = write(tmp_path, "albums.pipe", "many | CD | 1975 | Queen | Jazz\n")

        with pytest.raises(ParseError) as excinfo:
            parse_pipe(path)

        assert excinfo.value.line_number == 1


# =============================================================================
# CSV files
# =============================================================================


class TestCsvParser:
    def test_duplicates_become_quantity(self, tmp_path: Path) -> None:
        path = write(
            tmp_path,
            "albums.csv",
            "artist,title,format,release_year\n"
            "Queen,A Night at the Opera,CD,1975\n"
            "ABBA,Arrival,Vinyl,1976\n"
            "Queen,A Night at the Opera,CD,1975\n",
        )

        rows = parse_csv(path)

        assert rows == [
            RawAlbumRow("Queen", "A Night at the Opera", "CD", 1975, 2),
            RawAlbumRow("ABBA", "Arrival", "Vinyl", 1976, 1),
        ]

    def test_header_is_optional(self, tmp_path: Path) -> None:
        path = write(tmp_path, "albums.csv", "Queen,Jazz,CD,1978\n")

        assert parse_csv(path) == [RawAlbumRow("Queen", "Jazz", "CD", 1978, 1)]

    def test_quoted_fields(self, tmp_path: Path) -> None:
        path = write(tmp_path, "albums.csv", '"Crosby, Stills & Nash",CSN,Vinyl,1977\n')

        rows = parse_csv(path)
        assert rows[0].artist == "Crosby, Stills & Nash"

    def test_wrong_column_count_reports_line(self, tmp_path: Path) -> None:
        path = write(tmp_path, "albums.csv", "Queen,Jazz,CD,1978\nQueen,Jazz\n")

        with pytest.raises(ParseError) as excinfo:
            parse_csv(path)

        assert excinfo.value.line_number == 2


def test_group_quantities_sums_counts() -> None:
    rows = [
        RawAlbumRow("Queen", "Jazz", "CD", 1978, 1),
        RawAlbumRow("Queen", "Jazz", "Vinyl", 1978, 1),
        RawAlbumRow("Queen", "Jazz", "CD", 1978, 1),
    ]

    grouped = group_quantities(rows)

    assert [(r.format, r.quantity) for r in grouped] == [("CD", 2), ("Vinyl", 1)]


# =============================================================================
# Registry
# =============================================================================


class TestRegistry:
    def test_known_extensions(self) -> None:
        assert PARSERS[".pipe"] is parse_pipe
        assert PARSERS[".csv"] is parse_csv

    def test_extension_lookup_ignores_case(self) -> None:
        assert get_parser(Path("ALBUMS.PIPE")) is parse_pipe

    def test_unsupported_extension(self, tmp_path: Path) -> None:
        path = write(tmp_path, "albums.xml", "<albums/>")

        with pytest.raises(UnsupportedFileTypeError, match=r"\.xml files are not supported"):
            parse_file(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(InputFileNotFoundError, match="is not a file"):
            parse_file(tmp_path / "nope.csv")

    def test_parse_file_dispatches(self, tmp_path: Path) -> None:
        path = write(tmp_path, "albums.pipe", "1 | CD | 1978 | Queen | Jazz\n")

        assert parse_file(str(path)) == [RawAlbumRow("Queen", "Jazz", "CD", 1978, 1)]

    @pytest.mark.parametrize("name", ["albums.pipe", "albums.csv"])
    def test_non_utf8_file(self, tmp_path: Path, name: str) -> None:
        path = tmp_path / name
        path.write_bytes(b"1 | CD | 1975 | Bj\xf6rk | Debut\n")

        with pytest.raises(UnreadableFileError, match="not valid UTF-8") as excinfo:
            parse_file(path)

        assert isinstance(excinfo.value, ValidationError)
        assert excinfo.value.path == path
