"""
Unit tests -- schema catalog: information_schema lookups and TTL cache.

The information_schema catalog is driven through a mocked connection; the
real SQL is exercised by tests/integration/test_catalog_db.py.
"""
import time
from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from src.core.errors import ColumnNotFoundError, InfrastructureError, InvalidFilterColumnError
from src.governance.catalog import CachedSchemaCatalog, InformationSchemaCatalog
from src.query.model import ColumnDescriptor, ColumnType


def _catalog_returning(scalar=None, rows=None):
    conn = MagicMock()
    conn.execute.return_value.scalar.return_value = scalar
    conn.execute.return_value.fetchall.return_value = rows or []
    opened = []

    @contextmanager
    def connect():
        opened.append(conn)
        yield conn

    return InformationSchemaCatalog(connect=connect), conn, opened


# ── InformationSchemaCatalog ────────────────────────────

def test_table_exists_true():
    catalog, conn, _ = _catalog_returning(scalar=True)
    assert catalog.table_exists("mdm_internal", "location_master_vw") is True
    stmt, params = conn.execute.call_args.args
    assert "information_schema.tables" in str(stmt)
    assert params == {"schema": "mdm_internal", "table": "location_master_vw"}


def test_table_exists_false():
    catalog, _, _ = _catalog_returning(scalar=False)
    assert catalog.table_exists("mdm_internal", "nope") is False


def test_column_exists_binds_identifiers():
    catalog, conn, _ = _catalog_returning(scalar=True)
    assert catalog.column_exists("s", "t", "c'; DROP TABLE x; --") is True
    stmt, params = conn.execute.call_args.args
    assert "DROP" not in str(stmt)
    assert params["column"] == "c'; DROP TABLE x; --"


def test_column_type_mapped():
    catalog, _, _ = _catalog_returning(scalar="character varying")
    assert catalog.column_type("s", "t", "code") is ColumnType.TEXT


def test_column_type_missing_raises_not_found():
    catalog, _, _ = _catalog_returning(scalar=None)
    with pytest.raises(ColumnNotFoundError) as exc_info:
        catalog.column_type("s", "t", "ghost")
    assert isinstance(exc_info.value, InvalidFilterColumnError)
    assert exc_info.value.column == "ghost"


def test_list_columns():
    catalog, _, _ = _catalog_returning(rows=[("id", "integer"), ("name", "text"), ("tags", "ARRAY")])
    assert catalog.list_columns("s", "t") == [
        ColumnDescriptor("id", ColumnType.INTEGER),
        ColumnDescriptor("name", ColumnType.TEXT),
        ColumnDescriptor("tags", ColumnType.OTHER),
    ]


def test_connection_borrowed_per_lookup():
    catalog, _, opened = _catalog_returning(scalar=True)
    catalog.table_exists("s", "t")
    catalog.column_exists("s", "t", "c")
    assert len(opened) == 2


def test_metadata_failure_is_infrastructure_error():
    @contextmanager
    def connect():
        raise OperationalError("SELECT 1", {}, Exception("could not connect"))
        yield  # pragma: no cover

    catalog = InformationSchemaCatalog(connect=connect)
    with pytest.raises(InfrastructureError):
        catalog.table_exists("s", "t")
    with pytest.raises(InfrastructureError):
        catalog.list_columns("s", "t")


# ── CachedSchemaCatalog ─────────────────────────────────

def test_cache_disabled_by_default(catalog):
    cached = CachedSchemaCatalog(catalog)
    cached.table_exists("mdm_internal", "location_master_vw")
    cached.table_exists("mdm_internal", "location_master_vw")
    assert len(catalog.calls) == 2
    assert cached.size == 0


def test_cache_hit(catalog):
    cached = CachedSchemaCatalog(catalog, ttl=60)
    assert cached.column_exists("mdm_internal", "location_master_vw", "is_active") is True
    assert cached.column_exists("mdm_internal", "location_master_vw", "is_active") is True
    assert len(catalog.calls) == 1


def test_cache_keys_are_distinct(catalog):
    cached = CachedSchemaCatalog(catalog, ttl=60)
    assert cached.column_type("mdm_internal", "location_master_vw", "is_active") is ColumnType.BOOLEAN
    assert cached.column_type("mdm_internal", "location_master_vw", "location_id") is ColumnType.INTEGER
    assert cached.column_exists("mdm_internal", "location_master_vw", "foo") is False


def test_cache_expiry(catalog):
    cached = CachedSchemaCatalog(catalog, ttl=0.05)
    cached.table_exists("mdm_internal", "location_master_vw")
    time.sleep(0.1)
    cached.table_exists("mdm_internal", "location_master_vw")
    assert len(catalog.calls) == 2


def test_invalidate_after_schema_change(catalog):
    cached = CachedSchemaCatalog(catalog, ttl=60)
    assert cached.column_exists("mdm_internal", "location_master_vw", "region") is False
    catalog.tables[("mdm_internal", "location_master_vw")]["region"] = "text"
    assert cached.column_exists("mdm_internal", "location_master_vw", "region") is False  # still cached
    assert cached.invalidate() == 1
    assert cached.column_exists("mdm_internal", "location_master_vw", "region") is True


def test_errors_not_cached(catalog):
    cached = CachedSchemaCatalog(catalog, ttl=60)
    with pytest.raises(ColumnNotFoundError):
        cached.column_type("mdm_internal", "location_master_vw", "ghost")
    assert cached.size == 0


def test_list_columns_cached_copy(catalog):
    cached = CachedSchemaCatalog(catalog, ttl=60)
    first = cached.list_columns("mdm_internal", "location_master_vw")
    first.clear()
    assert len(cached.list_columns("mdm_internal", "location_master_vw")) == 8


def test_expired_entries_purged_on_write(catalog):
    cached = CachedSchemaCatalog(catalog, ttl=0.05)
    for i in range(500):
        cached.column_exists("mdm_internal", "location_master_vw", f"junk_{i}")
    assert cached.size == 500
    time.sleep(0.1)
    cached.column_exists("mdm_internal", "location_master_vw", "is_active")
    assert cached.size == 1


def test_size_capped_with_oldest_evicted(catalog):
    cached = CachedSchemaCatalog(catalog, ttl=60, max_size=10)
    for i in range(50):
        cached.column_exists("mdm_internal", "location_master_vw", f"junk_{i}")
    assert cached.size == 10
    calls_before = len(catalog.calls)
    cached.column_exists("mdm_internal", "location_master_vw", "junk_49")  # newest, still cached
    assert len(catalog.calls) == calls_before
    cached.column_exists("mdm_internal", "location_master_vw", "junk_0")   # evicted, looked up again
    assert len(catalog.calls) == calls_before + 1
