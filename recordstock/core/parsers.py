"""
Readers for inventory files.

Two formats are understood, picked by file extension through `PARSERS`:
- `.pipe`: one album per line, `quantity | format | release_year | artist | title`
- `.csv`: one copy per row, `artist,title,format,release_year`

Every reader returns `RawAlbumRow`s. Malformed or unreadable input raises a
`ValidationError` subclass naming the file.
"""

from __future__ import annotations

import csv
import logging
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from recordstock.core import ValidationError
from recordstock.core.db.models import RawAlbumRow

logger = logging.getLogger(__name__)

Parser = Callable[[Path], list[RawAlbumRow]]

# Column order of one line in a `.pipe` file.
PIPE_COLUMNS: tuple[str, ...] = ("quantity", "format", "release_year", "artist", "title")

# Column order of one row in a `.csv` file; quantity is the number of identical rows.
CSV_COLUMNS: tuple[str, ...] = ("artist", "title", "format", "release_year")


class InputFileNotFoundError(ValidationError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"{path} is not a file.")
        self.path = path


class UnsupportedFileTypeError(ValidationError):
    def __init__(self, path: Path) -> None:
        ext = path.suffix or "(no extension)"
        super().__init__(
            f"Sorry, {ext} files are not supported. Supported: {', '.join(sorted(PARSERS))}."
        )
        self.extension = path.suffix


class ParseError(ValidationError):
    """A malformed line in an input file; carries the 1-based line number."""

    def __init__(self, path: Path, line_number: int, message: str) -> None:
        super().__init__(f"Cannot load {path}. Error on line {line_number}: {message}")
        self.path = path
        self.line_number = line_number


class UnreadableFileError(ValidationError):
    """An input file that cannot be read as UTF-8 text."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"Cannot load {path}: {reason}")
        self.path = path


def _build_row(
    path: Path, line_number: int, labels: Sequence[str], values: Sequence[str]
) -> RawAlbumRow:
    if len(values) != len(labels):
        raise ParseError(
            path,
            line_number,
            f"Expected {len(labels)} values for album, got {len(values)}",
        )
    data = dict(zip(labels, (v.strip() for v in values)))
    data.setdefault("quantity", "1")
    try:
        return RawAlbumRow.from_mapping(data)
    except ValidationError as e:
        raise ParseError(path, line_number, str(e)) from e


def parse_pipe(path: Path) -> list[RawAlbumRow]:
    """
    Parse a pipe-delimited file:

        quantity | format | release_year | artist | title

    Blank lines are skipped.
    """
    rows: list[RawAlbumRow] = []
    with path.open(encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            if not line.strip():
                continue
            rows.append(_build_row(path, line_number, PIPE_COLUMNS, line.split("|")))
    return rows


def _is_csv_header(values: Sequence[str]) -> bool:
    return [v.strip().lower() for v in values] == list(CSV_COLUMNS)


def group_quantities(rows: Iterable[RawAlbumRow]) -> list[RawAlbumRow]:
    """
    Collapse identical rows into one row each, quantity = number of copies.

    First-seen order is kept.
    """
    counts: dict[tuple[str, str, str, int | None], int] = {}
    firsts: dict[tuple[str, str, str, int | None], RawAlbumRow] = {}
    for row in rows:
        key = (row.artist, row.title, row.format, row.release_year)
        counts[key] = counts.get(key, 0) + row.quantity
        firsts.setdefault(key, row)
    return [
        RawAlbumRow(
            artist=first.artist,
            title=first.title,
            format=first.format,
            release_year=first.release_year,
            quantity=counts[key],
        )
        for key, first in firsts.items()
    ]


def parse_csv(path: Path) -> list[RawAlbumRow]:
    """
    Parse a CSV file of `artist,title,format,release_year` rows.

    An optional header row with exactly those names is skipped. Quantity is
    reflected by duplicate rows.
    """
    rows: list[RawAlbumRow] = []
    with path.open(encoding="utf-8", newline="") as f:
        reader = csv.reader(f)
        for values in reader:
            line_number = reader.line_num
            if not values or not any(v.strip() for v in values):
                continue
            if not rows and _is_csv_header(values):
                continue
            rows.append(_build_row(path, line_number, CSV_COLUMNS, values))
    return group_quantities(rows)


PARSERS: dict[str, Parser] = {
    ".pipe": parse_pipe,
    ".csv": parse_csv,
}


def get_parser(path: Path) -> Parser:
    parser = PARSERS.get(path.suffix.lower())
    if parser is None:
        raise UnsupportedFileTypeError(path)
    return parser


def parse_file(path: str | Path) -> list[RawAlbumRow]:
    """Parse an inventory file, picking the parser from its extension."""
    path = Path(path)
    if not path.is_file():
        raise InputFileNotFoundError(path)

    parser = get_parser(path)
    try:
        rows = parser(path)
    except UnicodeDecodeError as e:
        reason = f"not valid UTF-8 text ({e.reason} at byte {e.start})"
        raise UnreadableFileError(path, reason) from e
    except OSError as e:
        raise UnreadableFileError(path, e.strerror or str(e)) from e
    logger.debug("Parsed %d row(s) from %s", len(rows), path)
    return rows
