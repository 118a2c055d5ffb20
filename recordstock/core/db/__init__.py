"""
Internal DB subpackage for recordstock.

The store is split into focused units (models, schema, clause builders,
identity resolution, stock mutation and joined reads) while `InventoryDb`
stays the single public interface the rest of the codebase imports.

Re-exports here are primarily for convenience inside the `core` package.
External code should import `InventoryDb` from `recordstock.core.inventory_db`.
"""

from __future__ import annotations

# Models / DTOs
from .models import AlbumIdentity, InventoryItem, RawAlbumRow, ResolvedRow

# Schema
from .schema import SCHEMA_VERSION, ensure_schema

__all__ = [
    # models
    "RawAlbumRow",
    "AlbumIdentity",
    "ResolvedRow",
    "InventoryItem",
    # schema
    "SCHEMA_VERSION",
    "ensure_schema",
]
