"""
Dynamic query builder -- turns a table identity plus untrusted filter, date
range and sort parameters into one parameterized SELECT.

Gates, in order:
  1. Target must be on the static allow-list        -> InvalidTargetError
  2. Target must exist in the schema catalog         -> InvalidTargetError
  3. Date-range column must exist                    -> InvalidFilterColumnError
  4. Each filter column must exist                   -> logged and skipped
  5. Sort column must exist                          -> silently ignored

Column names are inlined only after the catalog has confirmed them; every
value is bound as a named parameter after coercion to the column's type.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable

from src.core.errors import InvalidFilterColumnError, InvalidTargetError
from src.core.logging import get_logger
from src.core.utils import bind_name, quote_identifier
from src.governance.allow_list import AllowList
from src.governance.catalog import SchemaCatalog
from src.query.coercion import coerce_value
from src.query.model import (
    ColumnDescriptor,
    ColumnType,
    DateRangeClause,
    FilterClause,
    ParameterizedQuery,
    SortSpec,
    TableIdentity,
)

logger = get_logger(__name__)

_WILDCARD = "%"
_RANGE_PREFIXES = (">", "<")


@dataclass(frozen=True)
class Predicate:
    """A validated, typed ``column <op> :param`` condition."""
    column: ColumnDescriptor
    operator: str
    value: Any


def choose_operator(raw: str, column_type: ColumnType) -> tuple[str, str]:
    """Return ``(operator, value)`` for a raw filter value.

    Textual columns switch to LIKE when the value holds a ``%`` wildcard and
    never get range operators.  Other columns accept a leading ``>`` or ``<``,
    which is stripped from the value.
    """
    if column_type.is_textual:
        if _WILDCARD in raw:
            return "LIKE", raw
    elif raw.startswith(_RANGE_PREFIXES):
        return raw[0], raw[1:].strip()
    return "=", raw


class _Statement:
    """Accumulates WHERE conditions and their bind parameters."""

    def __init__(self, identity: TableIdentity):
        self.parts = [
            f"SELECT * FROM {quote_identifier(identity.schema)}.{quote_identifier(identity.table)} WHERE 1=1"
        ]
        self.params: dict[str, Any] = {}

    def condition(self, column: str, operator: str, param: str, value: Any) -> None:
        name = self._unique(param)
        self.parts.append(f"AND {quote_identifier(column)} {operator} :{name}")
        self.params[name] = value

    def order_by(self, sort: SortSpec) -> None:
        self.parts.append(f"ORDER BY {quote_identifier(sort.column)} {sort.direction.value}")

    def render(self) -> ParameterizedQuery:
        return ParameterizedQuery(text=" ".join(self.parts), params=self.params)

    def _unique(self, param: str) -> str:
        # Repeated filters on one column keep every occurrence: status, status_2, ...
        if param not in self.params:
            return param
        n = 2
        while f"{param}_{n}" in self.params:
            n += 1
        return f"{param}_{n}"


class QueryBuilder:
    """Builds parameterized queries for allow-listed tables.

    Parameters
    ----------
    allow_list : AllowList
        Tables the operator has chosen to expose.
    catalog : SchemaCatalog
        Live metadata used to validate every identifier.
    """

    def __init__(self, allow_list: AllowList, catalog: SchemaCatalog):
        self._allow_list = allow_list
        self._catalog = catalog

    def build(
        self,
        identity: TableIdentity,
        filters: Iterable[FilterClause] = (),
        date_range: DateRangeClause | None = None,
        sort: SortSpec | None = None,
    ) -> ParameterizedQuery:
        self.check_target(identity)

        stmt = _Statement(identity)

        if date_range is not None and date_range.column:
            self._apply_date_range(stmt, identity, date_range)

        for clause in filters:
            predicate = self.resolve_filter(identity, clause)
            if predicate is not None:
                stmt.condition(
                    predicate.column.name,
                    predicate.operator,
                    bind_name(predicate.column.name),
                    predicate.value,
                )

        if sort is not None and sort.column:
            if self._catalog.column_exists(identity.schema, identity.table, sort.column):
                stmt.order_by(sort)
            else:
                logger.debug("Ignoring unknown sort column %r on %s", sort.column, identity)

        query = stmt.render()
        logger.debug("Built SQL: %s", query.text)
        logger.debug("With parameters: %s", query.params)
        return query

    def check_target(self, identity: TableIdentity) -> None:
        """Raise InvalidTargetError unless *identity* is allow-listed and exists."""
        if not self._allow_list.permits(identity):
            logger.warning("Invalid schema/table combination: %s / %s", identity.schema, identity.table)
            raise InvalidTargetError("Invalid schema or table name")
        if not self._catalog.table_exists(identity.schema, identity.table):
            logger.warning("Allow-listed table missing from database: %s", identity)
            raise InvalidTargetError(f"Invalid schema or table name: {identity}")

    def resolve_filter(self, identity: TableIdentity, clause: FilterClause) -> Predicate | None:
        """Validate and type one filter; ``None`` when its column is unknown."""
        if not self._catalog.column_exists(identity.schema, identity.table, clause.column):
            logger.warning("Invalid filter column: %s", clause.column)
            return None
        column_type = self._catalog.column_type(identity.schema, identity.table, clause.column)
        operator, raw = choose_operator(clause.raw_value, column_type)
        return Predicate(
            column=ColumnDescriptor(clause.column, column_type),
            operator=operator,
            value=coerce_value(raw, column_type),
        )

    # ── Internals ───────────────────────────────────────

    def _apply_date_range(self, stmt: _Statement, identity: TableIdentity, date_range: DateRangeClause) -> None:
        column = date_range.column
        if not self._catalog.column_exists(identity.schema, identity.table, column):
            logger.warning("Invalid date column: %s", column)
            raise InvalidFilterColumnError(
                f"Invalid date column: {column} in {identity}", column=column,
            )
        if date_range.from_value is not None:
            stmt.condition(column, ">", "fromDate", coerce_value(date_range.from_value, ColumnType.TIMESTAMP))
        if date_range.to_value is not None:
            stmt.condition(column, "<", "toDate", coerce_value(date_range.to_value, ColumnType.TIMESTAMP))
