"""
Inventory store: connection handling + the public data-access facade.

Goals:
- One explicit handle per command; no module-level connection state.
- SQLite + aiosqlite, async/await friendly.
- Storage failures surface as `StorageError` and never terminate the process.

Note:
- Models/DTOs and normalization helpers live in `recordstock.core.db.models`
- Schema lives in `recordstock.core.db.schema`
- Identity resolution / stock / read queries live in their own modules
- `InventoryDb` remains the facade used by the rest of the codebase
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from types import TracebackType

import aiosqlite

from recordstock.core import StorageError
from recordstock.core.db import identity, queries_inventory, stock
from recordstock.core.db.models import InventoryItem, RawAlbumRow, ResolvedRow
from recordstock.core.db.schema import ensure_schema as ensure_schema_sql

logger = logging.getLogger(__name__)

# Seconds to wait for the aiosqlite worker thread after a failed connect.
WORKER_JOIN_TIMEOUT = 5.0


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Translate SQLite and filesystem failures raised inside the block into `StorageError`."""
    try:
        yield
    except (sqlite3.Error, OSError) as e:
        logger.debug("%s failed", operation, exc_info=True)
        raise StorageError(f"{operation} failed: {e}") from e


async def _connect(db_path: str) -> aiosqlite.Connection:
    """
    Open an aiosqlite connection.

    When the underlying connect fails, aiosqlite stops its worker thread and
    reports back to the running loop; wait for that thread to finish so it
    does not outlive the loop.
    """
    conn = aiosqlite.connect(db_path)
    try:
        return await conn
    except sqlite3.Error:
        await asyncio.to_thread(conn._thread.join, WORKER_JOIN_TIMEOUT)
        raise


class InventoryDb:
    """
    Async access layer for the inventory store.

    Usage:
        db = InventoryDb("inventory.db")
        await db.open()
        await db.ensure_schema()
        ... queries ...
        await db.close()

    or, for a whole command:

        async with InventoryDb(path) as db:
            ...

    Notes:
    - This class is designed to be injected into `RecordInventory`.
    - Connections are not pooled; one connection lives for one command.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def open(self) -> None:
        if self._conn is not None:
            return
        with storage_errors(f"Opening {self._db_path}"):
            if self._db_path != ":memory:":
                Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = await _connect(self._db_path)
            conn.row_factory = aiosqlite.Row
            try:
                await conn.execute("PRAGMA foreign_keys = ON;")
            except sqlite3.Error:
                await conn.close()
                raise
            self._conn = conn
        logger.debug("Opened inventory store %s", self._db_path)

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        with storage_errors(f"Closing {self._db_path}"):
            await conn.close()

    async def __aenter__(self) -> InventoryDb:
        await self.open()
        await self.ensure_schema()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("InventoryDb is not open. Call await db.open() first.")
        return self._conn

    async def ensure_schema(self) -> None:
        """Create the tables if missing. Safe to call on every startup."""
        conn = self._require_conn()
        with storage_errors("Creating schema"):
            await ensure_schema_sql(conn)

    # ===========================================================================
    # Writes
    # ===========================================================================

    async def add_albums(self, rows: Sequence[RawAlbumRow]) -> list[ResolvedRow]:
        """
        Add a batch of album rows to the inventory.

        Resolves (or creates) artists and albums, then accumulates stock per
        (album, format). The batch is committed as a whole; on a storage error
        nothing of it is committed.
        """
        conn = self._require_conn()
        with storage_errors("Adding albums"):
            resolved = await identity.resolve_rows(conn, rows)
            await stock.add_stock(conn, resolved)
            await conn.commit()
        logger.info("Added %d inventory row(s)", len(resolved))
        return resolved

    async def resolve_rows(self, rows: Sequence[RawAlbumRow]) -> list[ResolvedRow]:
        """Resolve rows to ids without touching stock (commits new artists/albums)."""
        conn = self._require_conn()
        with storage_errors("Resolving albums"):
            resolved = await identity.resolve_rows(conn, rows)
            await conn.commit()
        return resolved

    async def add_stock(self, rows: Sequence[ResolvedRow]) -> list[int]:
        conn = self._require_conn()
        with storage_errors("Adding stock"):
            ids = await stock.add_stock(conn, rows)
            await conn.commit()
        return ids

    async def remove_stock(self, inventory_id: int, quantity: int) -> int:
        """
        Raw decrement of an inventory record.

        Callers are expected to have checked the current stock first.
        """
        conn = self._require_conn()
        with storage_errors(f"Removing stock from {inventory_id}"):
            changed = await stock.remove_stock(conn, inventory_id, quantity)
            await conn.commit()
        return changed

    # ===========================================================================
    # Reads (delegated to queries_inventory module)
    # ===========================================================================

    async def get_item(self, inventory_id: int) -> InventoryItem | None:
        with storage_errors(f"Reading inventory item {inventory_id}"):
            return await queries_inventory.get_item_by_id(self._require_conn(), inventory_id)

    async def search(self, field: str, term: str) -> list[InventoryItem]:
        with storage_errors("Searching inventory"):
            return await queries_inventory.search_items(self._require_conn(), field, term)

    async def list_items(self, *, include_empty: bool = False) -> list[InventoryItem]:
        with storage_errors("Listing inventory"):
            return await queries_inventory.list_items(
                self._require_conn(), include_empty=include_empty
            )

    async def count_artists(self) -> int:
        with storage_errors("Counting artists"):
            return await queries_inventory.count_rows(self._require_conn(), "artists")

    async def count_albums(self) -> int:
        with storage_errors("Counting albums"):
            return await queries_inventory.count_rows(self._require_conn(), "albums")

    async def count_items(self) -> int:
        with storage_errors("Counting inventory"):
            return await queries_inventory.count_rows(self._require_conn(), "inventory")
