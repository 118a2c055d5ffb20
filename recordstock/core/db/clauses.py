"""
Generic parameterized clause builders.

Lookups, existence checks and stock updates are all expressed as small
column -> values mappings and turned into SQL here:

    where_clause({"a": [1, 2], "b": [3]})
        -> Clause("a IN (?,?) AND b IN (?)", (1, 2, 3))

    set_clause({"quantity": 5})
        -> Clause("quantity = ?", (5,))

Important:
- Only *values* are bound as parameters. Table and column names are
  interpolated, so they must come from code, never from user input; they are
  checked against a plain identifier pattern as a guard.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import aiosqlite

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


@dataclass(frozen=True, slots=True)
class Clause:
    sql: str
    params: tuple[Any, ...]


def check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Not a valid SQL identifier: {name!r}")
    return name


def placeholders(count: int) -> str:
    """Return `?,?,...` for `count` bound values."""
    return ",".join("?" * count)


def _as_values(values: Any) -> tuple[Any, ...]:
    # A bare scalar (including a string) counts as a single acceptable value.
    if isinstance(values, (str, bytes)) or not isinstance(values, Sequence):
        return (values,)
    return tuple(values)


def where_clause(filters: Mapping[str, Any]) -> Clause:
    """
    Build `col IN (?,..) AND col IN (?,..)` with parameters in matching order.

    Each value is a list of acceptable values for that column; a scalar is
    accepted as a one-element list.
    """
    if not filters:
        raise ValueError("where_clause() needs at least one column filter")

    parts: list[str] = []
    params: list[Any] = []
    for column, values in filters.items():
        vals = _as_values(values)
        parts.append(f"{check_identifier(column)} IN ({placeholders(len(vals))})")
        params.extend(vals)
    return Clause(" AND ".join(parts), tuple(params))


def set_clause(values: Mapping[str, Any]) -> Clause:
    """Build the `col = ?, col = ?` assignment list of an UPDATE."""
    if not values:
        raise ValueError("set_clause() needs at least one column")
    sql = ", ".join(f"{check_identifier(column)} = ?" for column in values)
    return Clause(sql, tuple(values.values()))


async def select(
    conn: aiosqlite.Connection,
    table: str,
    filters: Mapping[str, Any],
    columns: Sequence[str] = ("*",),
) -> list[aiosqlite.Row]:
    where = where_clause(filters)
    cols = ", ".join(c if c == "*" else check_identifier(c) for c in columns)
    cursor = await conn.execute(
        f"SELECT {cols} FROM {check_identifier(table)} WHERE {where.sql};",
        where.params,
    )
    return list(await cursor.fetchall())


async def insert(conn: aiosqlite.Connection, table: str, values: Mapping[str, Any]) -> int:
    """Insert one row and return its generated id."""
    if not values:
        raise ValueError("insert() needs at least one column")
    columns = ", ".join(check_identifier(c) for c in values)
    cursor = await conn.execute(
        f"INSERT INTO {check_identifier(table)} ({columns}) "
        f"VALUES ({placeholders(len(values))});",
        tuple(values.values()),
    )
    if cursor.lastrowid is None:
        raise RuntimeError(f"Insert into {table} did not produce a row id.")
    return int(cursor.lastrowid)


async def update(
    conn: aiosqlite.Connection,
    table: str,
    values: Mapping[str, Any],
    filters: Mapping[str, Any],
) -> int:
    """Update matching rows and return how many were changed."""
    assignments = set_clause(values)
    where = where_clause(filters)
    cursor = await conn.execute(
        f"UPDATE {check_identifier(table)} SET {assignments.sql} WHERE {where.sql};",
        assignments.params + where.params,
    )
    return int(cursor.rowcount)
