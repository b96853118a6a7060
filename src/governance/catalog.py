"""
Schema catalog -- answers "does this table / column exist and what is its type?"
from live database metadata.

Lookups are read-only, bound-parameter queries against ``information_schema``.
Each lookup borrows a connection and hands it back immediately, so one
catalog instance is safe to share between concurrent requests.

``CachedSchemaCatalog`` can front any catalog with a TTL cache; call
``invalidate()`` after a schema change so stale metadata is never served.
"""
from __future__ import annotations

import threading
import time
from contextlib import AbstractContextManager
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from src.core.errors import ColumnNotFoundError, InfrastructureError
from src.core.logging import get_logger
from src.db.connection import readonly_connection
from src.query.model import ColumnDescriptor, ColumnType

logger = get_logger(__name__)


class SchemaCatalog(Protocol):
    def table_exists(self, schema: str, table: str) -> bool: ...

    def column_exists(self, schema: str, table: str, column: str) -> bool: ...

    def column_type(self, schema: str, table: str, column: str) -> ColumnType: ...

    def list_columns(self, schema: str, table: str) -> list[ColumnDescriptor]: ...


# ── information_schema implementation ───────────────────

_TABLE_EXISTS_SQL = text(
    "SELECT EXISTS (SELECT 1 FROM information_schema.tables "
    "WHERE table_schema = :schema AND table_name = :table)"
)

_COLUMN_EXISTS_SQL = text(
    "SELECT EXISTS (SELECT 1 FROM information_schema.columns "
    "WHERE table_schema = :schema AND table_name = :table AND column_name = :column)"
)

_COLUMN_TYPE_SQL = text(
    "SELECT data_type FROM information_schema.columns "
    "WHERE table_schema = :schema AND table_name = :table AND column_name = :column"
)

_LIST_COLUMNS_SQL = text(
    "SELECT column_name, data_type FROM information_schema.columns "
    "WHERE table_schema = :schema AND table_name = :table "
    "ORDER BY ordinal_position"
)


class InformationSchemaCatalog:
    """Catalog backed by PostgreSQL ``information_schema`` views.

    Parameters
    ----------
    connect : callable
        Zero-argument factory returning a context manager that yields a
        SQLAlchemy ``Connection``.  Defaults to ``readonly_connection``.
    """

    def __init__(self, connect: Callable[[], AbstractContextManager[Connection]] = readonly_connection):
        self._connect = connect

    def table_exists(self, schema: str, table: str) -> bool:
        return bool(self._scalar(_TABLE_EXISTS_SQL, schema=schema, table=table))

    def column_exists(self, schema: str, table: str, column: str) -> bool:
        return bool(self._scalar(_COLUMN_EXISTS_SQL, schema=schema, table=table, column=column))

    def column_type(self, schema: str, table: str, column: str) -> ColumnType:
        data_type = self._scalar(_COLUMN_TYPE_SQL, schema=schema, table=table, column=column)
        if data_type is None:
            raise ColumnNotFoundError(
                f"Invalid filter column: {column} in {schema}.{table}", column=column,
            )
        return ColumnType.from_data_type(data_type)

    def list_columns(self, schema: str, table: str) -> list[ColumnDescriptor]:
        try:
            with self._connect() as conn:
                rows = conn.execute(_LIST_COLUMNS_SQL, {"schema": schema, "table": table}).fetchall()
        except SQLAlchemyError as exc:
            logger.exception("Metadata lookup failed for %s.%s", schema, table)
            raise InfrastructureError(f"Metadata lookup failed for {schema}.{table}") from exc
        return [ColumnDescriptor(name=name, column_type=ColumnType.from_data_type(dt)) for name, dt in rows]

    # ── Internals ───────────────────────────────────────

    def _scalar(self, stmt, **params: str) -> Any:
        try:
            with self._connect() as conn:
                return conn.execute(stmt, params).scalar()
        except SQLAlchemyError as exc:
            logger.exception("Metadata lookup failed params=%s", params)
            raise InfrastructureError(
                f"Metadata lookup failed for {params.get('schema')}.{params.get('table')}"
            ) from exc


# ── Caching wrapper ─────────────────────────────────────


@dataclass
class _Entry:
    value: Any
    created_at: float


DEFAULT_MAX_SIZE = 1024


class CachedSchemaCatalog:
    """Thread-safe TTL cache in front of another catalog.

    Parameters
    ----------
    inner : SchemaCatalog
        The catalog that actually talks to the database.
    ttl : float
        Seconds an answer stays valid.  ``0`` disables caching entirely.
    max_size : int
        Maximum number of entries.  Expired entries are purged on every
        write; the oldest live entry is evicted when still full.
    """

    def __init__(self, inner: SchemaCatalog, ttl: float = 0.0, max_size: int = DEFAULT_MAX_SIZE):
        self._inner = inner
        self._ttl = ttl
        self._max_size = max_size
        self._store: dict[tuple, _Entry] = {}
        self._lock = threading.Lock()

    def table_exists(self, schema: str, table: str) -> bool:
        return self._cached(("table", schema, table), lambda: self._inner.table_exists(schema, table))

    def column_exists(self, schema: str, table: str, column: str) -> bool:
        return self._cached(
            ("column", schema, table, column),
            lambda: self._inner.column_exists(schema, table, column),
        )

    def column_type(self, schema: str, table: str, column: str) -> ColumnType:
        return self._cached(
            ("type", schema, table, column),
            lambda: self._inner.column_type(schema, table, column),
        )

    def list_columns(self, schema: str, table: str) -> list[ColumnDescriptor]:
        return list(self._cached(
            ("columns", schema, table),
            lambda: tuple(self._inner.list_columns(schema, table)),
        ))

    def invalidate(self) -> int:
        """Drop every cached answer. Returns number of entries removed."""
        with self._lock:
            count = len(self._store)
            self._store.clear()
        logger.info("Schema catalog cache cleared (%d entries)", count)
        return count

    @property
    def size(self) -> int:
        with self._lock:
            return len(self._store)

    # ── Internals ───────────────────────────────────────

    def _cached(self, key: tuple, load: Callable[[], Any]) -> Any:
        if self._ttl <= 0:
            return load()
        now = time.monotonic()
        with self._lock:
            entry = self._store.get(key)
            if entry is not None and now - entry.created_at <= self._ttl:
                return entry.value
        # Errors propagate and are never cached.
        value = load()
        with self._lock:
            now = time.monotonic()
            self._purge_expired(now)
            if len(self._store) >= self._max_size and key not in self._store:
                self._evict_oldest()
            self._store[key] = _Entry(value=value, created_at=now)
        return value

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, e in self._store.items() if now - e.created_at > self._ttl]
        for k in expired:
            del self._store[k]

    def _evict_oldest(self) -> None:
        if not self._store:
            return
        oldest_key = min(self._store, key=lambda k: self._store[k].created_at)
        del self._store[oldest_key]
