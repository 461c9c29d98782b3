"""Parameterized statement assembly for filtered selects and partial updates.

Fragments are written with ``?`` markers; ``build()`` renders them in the
placeholder style of the target driver (``qmark`` for SQLite, ``numeric``
``$n`` for asyncpg) and collects the bound values in order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

QMARK = "qmark"
NUMERIC = "numeric"


@dataclass
class Statement:
    sql: str
    params: list[Any]


class _Binder:
    def __init__(self, style: str):
        if style not in (QMARK, NUMERIC):
            raise ValueError(f"Unsupported placeholder style: {style}")
        self.style = style
        self.values: list[Any] = []

    def bind(self, value: Any) -> str:
        self.values.append(value)
        return "?" if self.style == QMARK else f"${len(self.values)}"

    def render(self, fragment: str, values: tuple[Any, ...]) -> str:
        pieces = fragment.split("?")
        if len(pieces) - 1 != len(values):
            raise ValueError(f"Fragment {fragment!r} expects {len(pieces) - 1} values, got {len(values)}")
        out = [pieces[0]]
        for value, piece in zip(values, pieces[1:]):
            out.append(self.bind(value))
            out.append(piece)
        return "".join(out)


@dataclass
class SelectBuilder:
    columns: list[str]
    table: str
    joins: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    predicates: list[tuple[str, tuple[Any, ...]]] = field(default_factory=list)
    order: str | None = None
    row_limit: int | None = None

    def join(self, clause: str, *values: Any) -> "SelectBuilder":
        self.joins.append((clause, values))
        return self

    def where(self, predicate: str, *values: Any) -> "SelectBuilder":
        self.predicates.append((predicate, values))
        return self

    def order_by(self, clause: str) -> "SelectBuilder":
        self.order = clause
        return self

    def limit(self, count: int | None) -> "SelectBuilder":
        self.row_limit = count
        return self

    def build(self, style: str = QMARK) -> Statement:
        binder = _Binder(style)
        parts = [f"SELECT {', '.join(self.columns)} FROM {self.table}"]
        for clause, values in self.joins:
            parts.append(binder.render(clause, values))
        if self.predicates:
            rendered = [binder.render(pred, values) for pred, values in self.predicates]
            parts.append("WHERE " + " AND ".join(f"({p})" for p in rendered))
        if self.order:
            parts.append(f"ORDER BY {self.order}")
        if self.row_limit is not None:
            parts.append(f"LIMIT {binder.bind(self.row_limit)}")
        return Statement(" ".join(parts), binder.values)


@dataclass
class UpdateBuilder:
    """Ordered ``(column, value)`` assignments applied to the row matching a key."""

    table: str
    assignments: list[tuple[str, Any]] = field(default_factory=list)

    def set(self, column: str, value: Any) -> "UpdateBuilder":
        self.assignments.append((column, value))
        return self

    def is_empty(self) -> bool:
        return not self.assignments

    def build(self, key_column: str, key_value: Any, style: str = QMARK) -> Statement | None:
        # Nothing to assign means nothing to execute; an empty SET is never emitted.
        if self.is_empty():
            return None
        binder = _Binder(style)
        sets = ", ".join(f"{column} = {binder.bind(value)}" for column, value in self.assignments)
        where = f"{key_column} = {binder.bind(key_value)}"
        return Statement(f"UPDATE {self.table} SET {sets} WHERE {where}", binder.values)
