"""
Joined inventory reads: lookup by id, fuzzy search and listings.

Design:
- Functions are *pure DB helpers*: they take an open `aiosqlite.Connection`
  and return `InventoryItem`s.
- All reads go through `select_items`, which joins artists, albums and
  inventory on their foreign keys.
- These functions assume `conn.row_factory = aiosqlite.Row`.

Important:
- Do NOT interpolate user input into SQL. Search terms are bound parameters;
  the searched column and its ORDER BY come from `ordering.SEARCH_FIELDS`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import aiosqlite

from recordstock.core import ValidationError
from recordstock.core.db.clauses import where_clause
from recordstock.core.db.models import InventoryItem
from recordstock.core.db.ordering import (
    SEARCH_FIELDS,
    is_search_field,
    listing_order_clause,
    search_fields,
    search_order_clause,
)

_JOINED_SELECT = """
    SELECT
        i.id AS id,
        ar.name AS artist,
        al.title AS title,
        i.format AS format,
        al.release_year AS release_year,
        i.quantity AS quantity
    FROM artists ar
    JOIN albums al ON al.artist_id = ar.id
    JOIN inventory i ON i.album_id = al.id
"""


class InvalidSearchFieldError(ValidationError):
    """Raised when a search names a field outside the searchable set."""

    def __init__(self, field: str) -> None:
        super().__init__(
            f"{field} is not a valid field name. Use one of: {', '.join(search_fields())}."
        )
        self.field = field


def _row_to_item(row: aiosqlite.Row) -> InventoryItem:
    return InventoryItem(
        id=int(row["id"]),
        artist=row["artist"],
        title=row["title"],
        format=row["format"],
        release_year=int(row["release_year"]) if row["release_year"] is not None else None,
        quantity=int(row["quantity"]),
    )


async def select_items(
    conn: aiosqlite.Connection,
    where_sql: str = "",
    params: Sequence[Any] = (),
    order_sql: str = "",
) -> list[InventoryItem]:
    """Run the joined select with an optional WHERE body and ORDER BY clause."""
    sql = _JOINED_SELECT
    if where_sql:
        sql += f" WHERE {where_sql}"
    if order_sql:
        sql += f" {order_sql}"
    cursor = await conn.execute(sql + ";", tuple(params))
    rows = await cursor.fetchall()
    return [_row_to_item(r) for r in rows]


async def get_item_by_id(conn: aiosqlite.Connection, inventory_id: int) -> InventoryItem | None:
    where = where_clause({"i.id": [int(inventory_id)]})
    items = await select_items(conn, where.sql, where.params)
    return items[0] if items else None


async def search_items(conn: aiosqlite.Connection, field: str, term: str) -> list[InventoryItem]:
    """
    Fuzzy search one field; exhausted stock is never returned.

    `field` is matched case-insensitively against the searchable set.
    """
    field = field.strip().lower()
    if not is_search_field(field):
        raise InvalidSearchFieldError(field)

    column = SEARCH_FIELDS[field].column
    return await select_items(
        conn,
        f"{column} LIKE ? AND i.quantity > 0",
        (f"%{term}%",),
        search_order_clause(field),
    )


async def list_items(
    conn: aiosqlite.Connection, *, include_empty: bool = False
) -> list[InventoryItem]:
    where_sql = "" if include_empty else "i.quantity > 0"
    return await select_items(conn, where_sql, (), listing_order_clause())


async def count_rows(conn: aiosqlite.Connection, table: str) -> int:
    if table not in ("artists", "albums", "inventory"):
        raise ValueError(f"Unknown table: {table}")
    cursor = await conn.execute(f"SELECT COUNT(*) AS c FROM {table};")
    row = await cursor.fetchone()
    return int(row["c"]) if row is not None else 0
