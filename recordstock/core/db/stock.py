"""
Stock mutations on the inventory table.

- `add_stock` upserts quantities keyed by (album_id, format)
- `remove_stock` performs the raw decrement used by purchases

Stock checks for purchases (out of stock, not enough units) live in
`recordstock.core.inventory.RecordInventory.purchase`, which needs the product
description for its messages anyway. The schema's CHECK constraint rejects a
decrement below zero as a last resort.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import aiosqlite

from recordstock.core.db.clauses import insert, select, update
from recordstock.core.db.models import ResolvedRow, normalize_format

logger = logging.getLogger(__name__)


async def add_stock(conn: aiosqlite.Connection, rows: Iterable[ResolvedRow]) -> list[int]:
    """
    Add each row's quantity to its (album, format) record.

    Existing records accumulate; missing records are created. Returns the
    inventory ids in input order.
    """
    inventory_ids: list[int] = []
    for row in rows:
        fmt = normalize_format(row.format)
        key = {"album_id": [row.album_id], "format": [fmt]}
        existing = await select(conn, "inventory", key, ("id", "quantity"))

        if existing:
            inventory_id = int(existing[0]["id"])
            quantity = int(existing[0]["quantity"]) + row.quantity
            await update(conn, "inventory", {"quantity": quantity}, {"id": [inventory_id]})
            logger.debug("Inventory %d (%s): quantity now %d", inventory_id, fmt, quantity)
        else:
            inventory_id = await insert(
                conn,
                "inventory",
                {"album_id": row.album_id, "format": fmt, "quantity": row.quantity},
            )
            logger.debug(
                "Inventory %d (%s) created for album %d with quantity %d",
                inventory_id,
                fmt,
                row.album_id,
                row.quantity,
            )
        inventory_ids.append(inventory_id)
    return inventory_ids


async def remove_stock(conn: aiosqlite.Connection, inventory_id: int, quantity: int) -> int:
    """Decrement an inventory record. Returns the number of rows changed (0 or 1)."""
    cursor = await conn.execute(
        "UPDATE inventory SET quantity = quantity - ? WHERE id = ?;",
        (int(quantity), int(inventory_id)),
    )
    return int(cursor.rowcount)
