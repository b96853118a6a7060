"""Shared test fixtures.

The schema catalog and query executor are replaced by in-memory fakes, so
unit tests never need a running PostgreSQL.
"""
from __future__ import annotations

from typing import Any

import pytest

from src.core.errors import ColumnNotFoundError
from src.governance.allow_list import AllowList
from src.query.builder import QueryBuilder
from src.query.model import ColumnDescriptor, ColumnType, ParameterizedQuery

LOCATION_COLUMNS = {
    "location_id": "integer",
    "location_code": "character varying",
    "location_name": "text",
    "latitude": "double precision",
    "is_active": "boolean",
    "opened_on": "date",
    "load_timestamp": "timestamp without time zone",
    "attributes": "jsonb",
}


class FakeCatalog:
    """In-memory catalog keyed by (schema, table) -> {column: data_type}."""

    def __init__(self, tables: dict[tuple[str, str], dict[str, str]]):
        self.tables = tables
        self.calls: list[tuple] = []

    def table_exists(self, schema: str, table: str) -> bool:
        self.calls.append(("table_exists", schema, table))
        return (schema, table) in self.tables

    def column_exists(self, schema: str, table: str, column: str) -> bool:
        self.calls.append(("column_exists", schema, table, column))
        return column in self.tables.get((schema, table), {})

    def column_type(self, schema: str, table: str, column: str) -> ColumnType:
        self.calls.append(("column_type", schema, table, column))
        columns = self.tables.get((schema, table), {})
        if column not in columns:
            raise ColumnNotFoundError(f"Invalid filter column: {column}", column=column)
        return ColumnType.from_data_type(columns[column])

    def list_columns(self, schema: str, table: str) -> list[ColumnDescriptor]:
        self.calls.append(("list_columns", schema, table))
        return [
            ColumnDescriptor(name, ColumnType.from_data_type(dt))
            for name, dt in self.tables.get((schema, table), {}).items()
        ]


class RecordingExecutor:
    """Executor that records queries and returns canned rows."""

    def __init__(self, rows: list[dict[str, Any]] | None = None, error: Exception | None = None):
        self.rows = rows or []
        self.error = error
        self.queries: list[ParameterizedQuery] = []

    def execute(self, query: ParameterizedQuery) -> list[dict[str, Any]]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.rows


@pytest.fixture
def allow_list() -> AllowList:
    return AllowList.of([
        ("mdm_internal", "location_master_raw_tb"),
        ("mdm_internal", "location_master_vw"),
        ("mdm_product", "location_master_raw_tb"),
    ])


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog({
        ("mdm_internal", "location_master_raw_tb"): dict(LOCATION_COLUMNS),
        ("mdm_internal", "location_master_vw"): dict(LOCATION_COLUMNS),
        # Exists in the database but not on the allow-list
        ("mdm_internal", "secret_tb"): {"password": "text"},
    })


@pytest.fixture
def builder(allow_list, catalog) -> QueryBuilder:
    return QueryBuilder(allow_list, catalog)


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor(rows=[{"location_id": 1, "location_code": "LOC-001", "is_active": True}])


@pytest.fixture
def failing_executor() -> RecordingExecutor:
    return RecordingExecutor(error=RuntimeError("connection reset by peer"))
