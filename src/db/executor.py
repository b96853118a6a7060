"""
Read-only query executor.

Every query built by the data API runs through `QueryExecutor.execute`, which:
  1. Opens a READ ONLY transaction (Postgres-enforced)
  2. Binds every value through text() named parameters
  3. Converts Decimal/date/datetime to JSON-safe Python types
  4. Enforces query timeout (statement_timeout)
"""
from __future__ import annotations

import decimal
import datetime
from contextlib import AbstractContextManager
from typing import Any, Callable

from sqlalchemy import text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from src.core.errors import InfrastructureError
from src.core.logging import get_logger
from src.db.connection import readonly_connection
from src.query.model import ParameterizedQuery

logger = get_logger(__name__)


def _serialise_value(val: Any) -> Any:
    """Convert DB types to JSON-serialisable Python types."""
    if isinstance(val, decimal.Decimal):
        return float(val)
    if isinstance(val, (datetime.date, datetime.datetime)):
        return val.isoformat()
    if isinstance(val, datetime.timedelta):
        return str(val)
    return val


class QueryExecutor:
    """Runs parameterized queries and returns rows as ordered dicts.

    Parameters
    ----------
    connect : callable
        Zero-argument factory returning a context manager that yields a
        SQLAlchemy ``Connection``.
    timeout_ms : int, optional
        Per-statement timeout; ``None`` skips ``SET LOCAL statement_timeout``.
    """

    def __init__(
        self,
        connect: Callable[[], AbstractContextManager[Connection]] = readonly_connection,
        timeout_ms: int | None = None,
    ):
        self._connect = connect
        self._timeout_ms = timeout_ms

    def execute(self, query: ParameterizedQuery) -> list[dict[str, Any]]:
        """Execute *query* and return rows as serialisable dicts.

        Raises
        ------
        InfrastructureError
            If the database rejects or fails the statement.
        """
        logger.info("Executing SQL (%d chars, %d params)", len(query.text), len(query.params))
        try:
            with self._connect() as conn:
                if self._timeout_ms:
                    conn.execute(text(f"SET LOCAL statement_timeout = {int(self._timeout_ms)}"))
                result = conn.execute(text(query.text), query.params)
                columns = list(result.keys())
                rows = [
                    {col: _serialise_value(val) for col, val in zip(columns, row)}
                    for row in result.fetchall()
                ]
        except SQLAlchemyError as exc:
            logger.exception("Error executing query: %s", query.text)
            raise InfrastructureError("Failed to execute query") from exc

        logger.info("Returned %d rows", len(rows))
        return rows
