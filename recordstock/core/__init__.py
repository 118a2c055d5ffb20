"""
Core domain package.

This package contains the inventory logic, independent of any console or CLI
concerns. The data layer raises the typed errors below and never terminates the
process; only the top-level command dispatcher decides on exit codes.

We intentionally keep exports minimal; consumers should usually import from the
specific module they need (e.g. `recordstock.core.inventory`).
"""

from __future__ import annotations

__all__: list[str] = [
    "CoreError",
    "UsageError",
    "ValidationError",
    "StorageError",
    "BusinessRuleError",
    "NotFoundError",
]


class CoreError(Exception):
    """Base class for core-layer exceptions."""


class UsageError(CoreError):
    """Raised when a tool is invoked with the wrong arguments."""

    def __init__(self, message: str, *, usage: str | None = None) -> None:
        super().__init__(message)
        self.usage = usage


class ValidationError(CoreError):
    """Raised for bad input: unknown fields, missing files, malformed rows."""


class StorageError(CoreError):
    """Raised when the underlying SQLite store fails. Always fatal for a command."""


class BusinessRuleError(CoreError):
    """Raised when a requested mutation violates a stock rule. Not fatal."""


class NotFoundError(CoreError):
    """Raised when an entity (inventory item/album/artist) cannot be found."""
