"""
Search field whitelist and ORDER BY helpers for inventory queries.

Every searchable field maps to one column of the artists/albums/inventory join
and a fixed sort direction. Newer releases and alphabetically-late formats are
listed first; everything else sorts ascending.

Important:
- The returned strings are *static SQL fragments* selected from this table.
  Do NOT concatenate user input into ORDER BY.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal

SearchField = Literal[
    "id",
    "artist",
    "title",
    "format",
    "release_year",
    "quantity",
]


@dataclass(frozen=True, slots=True)
class SearchColumn:
    column: str
    order: Literal["ASC", "DESC"]


SEARCH_FIELDS: Final[dict[str, SearchColumn]] = {
    "id": SearchColumn("i.id", "ASC"),
    "artist": SearchColumn("ar.name", "ASC"),
    "title": SearchColumn("al.title", "ASC"),
    "format": SearchColumn("i.format", "DESC"),
    "release_year": SearchColumn("al.release_year", "DESC"),
    "quantity": SearchColumn("i.quantity", "ASC"),
}


def is_search_field(field: str) -> bool:
    return field in SEARCH_FIELDS


def search_fields() -> list[str]:
    return list(SEARCH_FIELDS)


def search_order_clause(field: str) -> str:
    """
    Return the ORDER BY clause for a search on `field`.

    Callers must validate `field` with `is_search_field` first.
    """
    search = SEARCH_FIELDS[field]
    if search.column == "i.id":
        return f"ORDER BY i.id {search.order}"
    return f"ORDER BY {search.column} {search.order}, i.id ASC"


def listing_order_clause() -> str:
    """Stable ordering for full inventory listings."""
    return (
        "ORDER BY "
        "ar.name COLLATE NOCASE ASC, "
        "al.title COLLATE NOCASE ASC, "
        "i.format COLLATE NOCASE ASC, "
        "i.id ASC"
    )
