"""
Typed building blocks of a dynamic table query.

Raw request parameters are turned into these objects before anything is
rendered as SQL; the builder never sees the caller's parameter map.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


# ── Targets & columns ────────────────────────────────────

@dataclass(frozen=True)
class TableIdentity:
    schema: str
    table: str

    @property
    def qualified_name(self) -> str:
        return f"{self.schema}.{self.table}"

    def __str__(self) -> str:
        return self.qualified_name


class ColumnType(str, enum.Enum):
    """Closed set of column kinds that drive coercion and operator choice."""

    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"
    TIMESTAMP = "timestamp"
    TEXT = "text"
    OTHER = "other"

    @classmethod
    def from_data_type(cls, data_type: str | None) -> "ColumnType":
        """Map a PostgreSQL ``information_schema.columns.data_type`` value."""
        t = (data_type or "").lower().strip()
        if t in ("integer", "smallint", "bigint"):
            return cls.INTEGER
        if t in ("real", "double precision", "numeric", "decimal"):
            return cls.FLOAT
        if t == "boolean":
            return cls.BOOLEAN
        if t == "date":
            return cls.DATE
        if t in ("timestamp without time zone", "timestamp with time zone"):
            return cls.TIMESTAMP
        if t in ("text", "character varying", "varchar", "character", "char"):
            return cls.TEXT
        return cls.OTHER

    @property
    def is_textual(self) -> bool:
        return self is ColumnType.TEXT


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    column_type: ColumnType


# ── Request clauses ──────────────────────────────────────

@dataclass(frozen=True)
class FilterClause:
    """One caller-supplied ``column=value`` filter; value is still untyped."""
    column: str
    raw_value: str


@dataclass(frozen=True)
class DateRangeClause:
    column: str | None
    from_value: str | None = None
    to_value: str | None = None


class SortDirection(str, enum.Enum):
    ASC = "ASC"
    DESC = "DESC"

    @classmethod
    def parse(cls, raw: str | None) -> "SortDirection":
        """``desc`` in any case sorts descending; anything else ascends."""
        if raw is not None and raw.strip().lower() == "desc":
            return cls.DESC
        return cls.ASC


@dataclass(frozen=True)
class SortSpec:
    column: str
    direction: SortDirection = SortDirection.ASC


# ── Output ───────────────────────────────────────────────

@dataclass
class ParameterizedQuery:
    """SQL text plus the named parameters bound into it."""

    text: str
    params: dict[str, Any] = field(default_factory=dict)
