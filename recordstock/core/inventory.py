"""
Inventory service used by the command line.

Loads files into the store, groups search and listing results per album and
checks stock before a purchase is written.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from recordstock.core import BusinessRuleError, NotFoundError, ValidationError
from recordstock.core.db.models import InventoryItem, RawAlbumRow
from recordstock.core.inventory_db import InventoryDb
from recordstock.core.parsers import parse_file

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FormatStock:
    id: int
    format: str
    quantity: int


@dataclass(frozen=True, slots=True)
class AlbumGroup:
    """All formats of one album found by a search or listing."""

    artist: str
    title: str
    release_year: int | None
    formats: tuple[FormatStock, ...]


@dataclass(frozen=True, slots=True)
class LoadResult:
    rows: int
    units: int
    artists: int
    albums: int


@dataclass(frozen=True, slots=True)
class PurchaseResult:
    item: InventoryItem
    quantity: int
    remaining: int


class ItemNotFoundError(NotFoundError):
    def __init__(self, inventory_id: int) -> None:
        super().__init__(f"{inventory_id} is not a valid id.")
        self.inventory_id = inventory_id


class OutOfStockError(BusinessRuleError):
    def __init__(self, item: InventoryItem) -> None:
        super().__init__(f"{album_description(item)} in {item.format} is out of stock.")
        self.item = item


class InsufficientStockError(BusinessRuleError):
    def __init__(self, item: InventoryItem, requested: int) -> None:
        super().__init__(
            f"There are not {requested} {product_description(item)} in stock "
            f"(only {item.quantity} left)."
        )
        self.item = item
        self.requested = requested


def album_description(item: InventoryItem) -> str:
    return f"{item.title} by {item.artist}"


def product_description(item: InventoryItem) -> str:
    return f"{item.format} of {album_description(item)}"


def group_by_album(items: Iterable[InventoryItem]) -> list[AlbumGroup]:
    """Group items per (artist, title, release_year), keeping first-seen order."""
    groups: dict[tuple[str, str, int | None], list[InventoryItem]] = {}
    for item in items:
        groups.setdefault((item.artist, item.title, item.release_year), []).append(item)
    return [
        AlbumGroup(
            artist=artist,
            title=title,
            release_year=year,
            formats=tuple(FormatStock(i.id, i.format, i.quantity) for i in members),
        )
        for (artist, title, year), members in groups.items()
    ]


class RecordInventory:
    """
    High-level facade used by the command line.

    Dependencies:
    - `InventoryDb` for persistence (must already be open)
    - `parsers` for reading inventory files

    Stock rules for purchases are checked here, before the raw decrement in
    the data layer runs.
    """

    def __init__(self, *, db: InventoryDb) -> None:
        self._db = db

    async def add(self, rows: Iterable[RawAlbumRow]) -> LoadResult:
        batch = list(rows)
        artists_before = await self._db.count_artists()
        albums_before = await self._db.count_albums()

        await self._db.add_albums(batch)

        return LoadResult(
            rows=len(batch),
            units=sum(r.quantity for r in batch),
            artists=await self._db.count_artists() - artists_before,
            albums=await self._db.count_albums() - albums_before,
        )

    async def load(self, path: str | Path) -> LoadResult:
        """Parse an inventory file and add its albums."""
        rows = parse_file(path)
        result = await self.add(rows)
        logger.info(
            "Loaded %s: %d row(s), %d unit(s), %d new artist(s), %d new album(s)",
            path,
            result.rows,
            result.units,
            result.artists,
            result.albums,
        )
        return result

    async def search(self, field: str, term: str) -> list[AlbumGroup]:
        return group_by_album(await self._db.search(field, term))

    async def list_albums(self, *, include_empty: bool = False) -> list[AlbumGroup]:
        return group_by_album(await self._db.list_items(include_empty=include_empty))

    async def get(self, inventory_id: int) -> InventoryItem:
        item = await self._db.get_item(inventory_id)
        if item is None:
            raise ItemNotFoundError(inventory_id)
        return item

    async def purchase(self, inventory_id: int, quantity: int = 1) -> PurchaseResult:
        """
        Remove `quantity` units of one inventory record.

        Nothing is changed when the record is out of stock or holds fewer
        units than requested.
        """
        if quantity < 1:
            raise ValidationError(f"Purchase quantity must be at least 1, got {quantity}.")

        item = await self.get(inventory_id)
        if item.quantity == 0:
            raise OutOfStockError(item)
        if item.quantity < quantity:
            raise InsufficientStockError(item, quantity)

        await self._db.remove_stock(item.id, quantity)
        logger.info("Purchased %d x %s", quantity, product_description(item))
        return PurchaseResult(item=item, quantity=quantity, remaining=item.quantity - quantity)
