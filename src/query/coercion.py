"""
Coerces raw request strings into typed values according to a column's
declared type.

| type      | accepted input                    |
|-----------|-----------------------------------|
| integer   | ``int()`` literal                 |
| float     | ``float()`` literal               |
| boolean   | ``true`` (any case); else False   |
| date      | ``YYYY-MM-DD``                    |
| timestamp | ``YYYY-MM-DD HH:MM:SS``           |
| text      | unchanged                         |
| other     | unchanged                         |
"""
from __future__ import annotations

import datetime
from typing import Any

from src.core.errors import InvalidValueError
from src.core.logging import get_logger
from src.query.model import ColumnType

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def coerce_value(raw: str, column_type: ColumnType) -> Any:
    """Return *raw* converted for *column_type*.

    Raises
    ------
    InvalidValueError
        If *raw* is not a valid literal for a numeric, date or timestamp column.
    """
    try:
        if column_type is ColumnType.INTEGER:
            return int(raw)
        if column_type is ColumnType.FLOAT:
            return float(raw)
        if column_type is ColumnType.BOOLEAN:
            return _coerce_boolean(raw)
        if column_type is ColumnType.DATE:
            return datetime.date.fromisoformat(raw)
        if column_type is ColumnType.TIMESTAMP:
            return datetime.datetime.strptime(raw, TIMESTAMP_FORMAT)
    except (TypeError, ValueError) as exc:
        logger.warning("Failed to parse value %r for type %s", raw, column_type.value)
        raise InvalidValueError(raw, column_type.value) from exc
    return raw


def _coerce_boolean(raw: str) -> bool:
    # Unknown tokens become False rather than an error; callers relying on
    # e.g. "yes" or "1" silently get False.
    token = raw.strip().lower()
    if token == "true":
        return True
    if token != "false":
        logger.warning("Unrecognised boolean token %r coerced to False", raw)
    return False
