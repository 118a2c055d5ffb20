"""
DB models (DTOs) and small normalization helpers.

This module is intentionally lightweight:
- No DB connection knowledge
- No SQL
- Pure dataclasses + helper functions
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from recordstock.core import ValidationError

RAW_ROW_FIELDS: tuple[str, ...] = ("artist", "title", "format", "release_year", "quantity")

# (artist_id, title) - album identity after the artist has been resolved.
AlbumKey = tuple[int, str]


@dataclass(frozen=True, slots=True)
class RawAlbumRow:
    """
    Denormalized input record handed over by the file parsers.

    One row describes one format of one album; the same pressing bought in
    several formats arrives as several rows sharing artist/title/release_year.
    """

    artist: str
    title: str
    format: str
    release_year: int | None
    quantity: int

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RawAlbumRow:
        """
        Build a row from a flat string-keyed mapping.

        `quantity` and `release_year` may be decimal strings or ints.
        """
        missing = [key for key in RAW_ROW_FIELDS if key not in data]
        if missing:
            raise ValidationError(f"Album row is missing fields: {', '.join(missing)}")

        artist = normalize_text(data["artist"])
        title = normalize_text(data["title"])
        fmt = normalize_text(data["format"])
        if artist is None or title is None or fmt is None:
            raise ValidationError("Album row needs a non-empty artist, title and format")

        quantity = parse_int(data["quantity"], "quantity")
        if quantity is None:
            raise ValidationError("Album row needs a quantity")
        if quantity < 0:
            raise ValidationError(f"Quantity cannot be negative: {quantity}")

        return cls(
            artist=artist,
            title=title,
            format=fmt,
            release_year=parse_int(data["release_year"], "release_year"),
            quantity=quantity,
        )

    @property
    def identity(self) -> AlbumIdentity:
        return AlbumIdentity(artist=self.artist, title=self.title, release_year=self.release_year)


@dataclass(frozen=True, slots=True)
class AlbumIdentity:
    """Album projection of a raw row (format and quantity dropped)."""

    artist: str
    title: str
    release_year: int | None


@dataclass(frozen=True, slots=True)
class ResolvedRow:
    """A raw row whose artist and album have been replaced by their stored ids."""

    artist_id: int
    album_id: int
    format: str
    quantity: int


@dataclass(frozen=True, slots=True)
class InventoryItem:
    """
    Flattened record of the artists/albums/inventory join.

    `id` is the inventory row id, which is what purchases refer to.
    """

    id: int
    artist: str
    title: str
    format: str
    release_year: int | None
    quantity: int


def normalize_text(value: Any) -> str | None:
    """
    Normalize optional text fields:
    - strip whitespace
    - coerce empty strings to None
    """
    if value is None:
        return None
    v = str(value).strip()
    return v if v else None


def parse_int(value: Any, field_name: str) -> int | None:
    """Coerce an int or decimal string to int; empty values become None."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field_name}: {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        raise ValidationError(f"Invalid {field_name}: {value!r} is not a whole number") from None


def normalize_format(value: str) -> str:
    """
    Canonical stored form of a format name.

    "cd", "CD" and "Cd" all become "Cd"; the column is NOCASE as well, but we
    store and look up one spelling so output stays consistent.
    """
    return value.strip().capitalize()
