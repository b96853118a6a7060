"""
Data service -- orchestrates request parameters -> clauses -> build -> execute.

Reserved query parameters (``dateColumn``, ``fromDate``, ``toDate``,
``sortBy``, ``sortOrder``) configure the date range and sort; every other
parameter is treated as a column filter.
"""
from __future__ import annotations

from typing import Any, Iterable

from pydantic import BaseModel, Field

from src.core.logging import get_logger
from src.core.utils import timer
from src.db.executor import QueryExecutor
from src.query.builder import QueryBuilder
from src.query.model import (
    DateRangeClause,
    FilterClause,
    ParameterizedQuery,
    SortDirection,
    SortSpec,
    TableIdentity,
)

logger = get_logger(__name__)

RESERVED_PARAMS = frozenset({"dateColumn", "fromDate", "toDate", "sortBy", "sortOrder"})


class DataRequest(BaseModel):
    """Parsed representation of one ``GET /api/data/{schema}/{table}`` call."""

    schema_name: str
    table_name: str
    date_column: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    sort_by: str | None = None
    sort_order: str | None = None
    filters: list[tuple[str, str]] = Field(
        default_factory=list,
        description="Filter parameters in request order, repeats preserved",
    )

    @classmethod
    def from_query_params(
        cls,
        schema: str,
        table: str,
        items: Iterable[tuple[str, str]],
    ) -> "DataRequest":
        reserved: dict[str, str] = {}
        filters: list[tuple[str, str]] = []
        for key, value in items:
            if key in RESERVED_PARAMS:
                reserved.setdefault(key, value)
            else:
                filters.append((key, value))
        return cls(
            schema_name=schema,
            table_name=table,
            date_column=reserved.get("dateColumn"),
            from_date=reserved.get("fromDate"),
            to_date=reserved.get("toDate"),
            sort_by=reserved.get("sortBy"),
            sort_order=reserved.get("sortOrder"),
            filters=filters,
        )

    @property
    def identity(self) -> TableIdentity:
        return TableIdentity(self.schema_name, self.table_name)

    def filter_clauses(self) -> list[FilterClause]:
        return [FilterClause(column=k, raw_value=v) for k, v in self.filters]

    def date_range(self) -> DateRangeClause | None:
        if not self.date_column:
            return None
        return DateRangeClause(self.date_column, self.from_date, self.to_date)

    def sort(self) -> SortSpec | None:
        if not self.sort_by:
            return None
        return SortSpec(self.sort_by, SortDirection.parse(self.sort_order))


class DataService:
    def __init__(self, builder: QueryBuilder, executor: QueryExecutor):
        self._builder = builder
        self._executor = executor

    def build(self, request: DataRequest) -> ParameterizedQuery:
        return self._builder.build(
            request.identity,
            filters=request.filter_clauses(),
            date_range=request.date_range(),
            sort=request.sort(),
        )

    def fetch(self, request: DataRequest) -> list[dict[str, Any]]:
        """End-to-end: request -> rows.

        Client errors from the builder and infrastructure errors from the
        executor propagate unchanged.
        """
        with timer() as t:
            query = self.build(request)
            rows = self._executor.execute(query)
        logger.info(
            "Fetched %d rows from %s in %d ms (filters=%d)",
            len(rows), request.identity, t["elapsed_ms"], len(request.filters),
        )
        return rows
