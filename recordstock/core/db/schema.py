"""
Database schema for recordstock.

Three tables, normalized from the flat album rows the loaders produce:

- artists    one row per artist name (case-insensitive unique)
- albums     one row per (artist_id, title); release_year stored, not keyed
- inventory  one row per (album_id, format) holding the stock quantity

Design notes:
- `ensure_schema()` is idempotent and safe to call on every startup.
- We use SQLite `PRAGMA user_version` only to refuse files written by a newer
  release. There are no migrations; a schema change means a new store file.
- Text columns used for lookups are `COLLATE NOCASE` so "Queen" and "QUEEN"
  hit the same row both in the unique constraints and in `=` / `IN` filters.
"""

from __future__ import annotations

from typing import Final

import aiosqlite

from recordstock.core import StorageError

SCHEMA_VERSION: Final[int] = 1

TABLES: Final[dict[str, str]] = {
    "artists": """
        CREATE TABLE IF NOT EXISTS artists (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL COLLATE NOCASE UNIQUE
        )
    """,
    "albums": """
        CREATE TABLE IF NOT EXISTS albums (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            artist_id INTEGER NOT NULL REFERENCES artists(id),
            title TEXT NOT NULL COLLATE NOCASE,
            release_year INTEGER,
            UNIQUE(artist_id, title)
        )
    """,
    "inventory": """
        CREATE TABLE IF NOT EXISTS inventory (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            album_id INTEGER NOT NULL REFERENCES albums(id),
            format TEXT NOT NULL COLLATE NOCASE,
            quantity INTEGER NOT NULL DEFAULT 0 CHECK (quantity >= 0),
            UNIQUE(album_id, format)
        )
    """,
}

INDEXES: Final[tuple[str, ...]] = (
    "CREATE INDEX IF NOT EXISTS idx_albums_artist_id ON albums(artist_id);",
    "CREATE INDEX IF NOT EXISTS idx_albums_release_year ON albums(release_year);",
    "CREATE INDEX IF NOT EXISTS idx_inventory_album_id ON inventory(album_id);",
    "CREATE INDEX IF NOT EXISTS idx_inventory_format ON inventory(format);",
)


async def ensure_schema(conn: aiosqlite.Connection) -> None:
    """
    Create the inventory tables if they are missing.

    This function assumes:
    - `conn` is an open aiosqlite connection
    - foreign_keys pragma is enabled by the caller
    """
    cursor = await conn.execute("PRAGMA user_version;")
    row = await cursor.fetchone()
    current = int(row[0]) if row is not None else 0

    if current > SCHEMA_VERSION:
        raise StorageError(
            f"Store schema version {current} is newer than supported {SCHEMA_VERSION}."
        )

    for ddl in TABLES.values():
        await conn.execute(ddl)
    for ddl in INDEXES:
        await conn.execute(ddl)

    if current != SCHEMA_VERSION:
        await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION};")
    await conn.commit()


async def table_names(conn: aiosqlite.Connection) -> list[str]:
    """Names of the user tables present in the store, sorted."""
    cursor = await conn.execute(
        """
        SELECT name FROM sqlite_master
        WHERE type = 'table' AND name NOT LIKE 'sqlite_%'
        ORDER BY name
        """
    )
    rows = await cursor.fetchall()
    return [str(r[0]) for r in rows]
