"""
Identity resolution: map denormalized album rows onto artist/album ids.

Loaders hand us one row per (album, format). We work our way outwards from
artists to albums since the latter need the ids of the former:

1. project the unique album identities (artist, title, release_year)
2. project the unique artist names from those
3. get-or-create every artist            -> {name: artist_id}
4. get-or-create every album             -> {(artist_id, title): album_id}
5. rewrite the *original* rows to ids    -> list[ResolvedRow]

Albums are keyed by the composite (artist_id, title) so two artists sharing an
album title never collide. `release_year` is stored on first insert only.

Design:
- Functions take an open `aiosqlite.Connection` and do not commit; the
  `InventoryDb` facade commits once the whole batch went through.
- These functions assume `conn.row_factory = aiosqlite.Row`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

import aiosqlite

from recordstock.core.db.clauses import insert, select
from recordstock.core.db.models import AlbumIdentity, AlbumKey, RawAlbumRow, ResolvedRow

logger = logging.getLogger(__name__)


def unique_albums(rows: Iterable[RawAlbumRow]) -> list[AlbumIdentity]:
    """Deduplicate rows down to album identities, keeping first-seen order."""
    return list(dict.fromkeys(row.identity for row in rows))


def unique_artists(albums: Iterable[AlbumIdentity]) -> list[str]:
    return list(dict.fromkeys(album.artist for album in albums))


async def ensure_artist(conn: aiosqlite.Connection, name: str) -> int:
    """Get or create an artist by (case-insensitive) name, return ID."""
    rows = await select(conn, "artists", {"name": [name]}, ("id",))
    if rows:
        return int(rows[0]["id"])

    artist_id = await insert(conn, "artists", {"name": name})
    logger.debug("Added artist %r (id=%d)", name, artist_id)
    return artist_id


async def ensure_album(
    conn: aiosqlite.Connection, artist_id: int, title: str, release_year: int | None
) -> int:
    """Get or create an album by artist_id + title, return ID."""
    rows = await select(conn, "albums", {"artist_id": [artist_id], "title": [title]}, ("id",))
    if rows:
        return int(rows[0]["id"])

    album_id = await insert(
        conn,
        "albums",
        {"artist_id": artist_id, "title": title, "release_year": release_year},
    )
    logger.debug("Added album %r for artist %d (id=%d)", title, artist_id, album_id)
    return album_id


async def resolve_artist_ids(
    conn: aiosqlite.Connection, names: Iterable[str]
) -> dict[str, int]:
    """
    Resolve artist names to ids, creating missing artists.

    Keys are the names exactly as given; different spellings of the same
    artist ("Queen", "QUEEN") map to the same id.
    """
    ids: dict[str, int] = {}
    for name in names:
        if name not in ids:
            ids[name] = await ensure_artist(conn, name)
    return ids


async def resolve_album_ids(
    conn: aiosqlite.Connection,
    albums: Iterable[AlbumIdentity],
    artist_ids: dict[str, int],
) -> dict[AlbumKey, int]:
    """Resolve album identities to ids, keyed by (artist_id, title)."""
    ids: dict[AlbumKey, int] = {}
    for album in albums:
        key = (artist_ids[album.artist], album.title)
        if key not in ids:
            ids[key] = await ensure_album(conn, key[0], album.title, album.release_year)
    return ids


async def resolve_rows(
    conn: aiosqlite.Connection, rows: Sequence[RawAlbumRow]
) -> list[ResolvedRow]:
    """
    Resolve every raw row to a `ResolvedRow`.

    Idempotent: resolving the same artist/album again returns the stored ids
    and never creates duplicates.
    """
    albums = unique_albums(rows)
    artist_ids = await resolve_artist_ids(conn, unique_artists(albums))
    album_ids = await resolve_album_ids(conn, albums, artist_ids)

    resolved: list[ResolvedRow] = []
    for row in rows:
        artist_id = artist_ids[row.artist]
        resolved.append(
            ResolvedRow(
                artist_id=artist_id,
                album_id=album_ids[(artist_id, row.title)],
                format=row.format,
                quantity=row.quantity,
            )
        )
    return resolved
