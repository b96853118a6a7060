"""
Small shared utilities.
"""
from __future__ import annotations

import re
import time
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.dialects import postgresql

_PREPARER = postgresql.dialect().identifier_preparer
_PLAIN_IDENTIFIER = re.compile(r"[a-z_][a-z0-9_$]*")
_NON_WORD = re.compile(r"\W")


@contextmanager
def timer() -> Generator[dict, None, None]:
    """Context manager that records elapsed wall-clock milliseconds."""
    result: dict = {}
    start = time.perf_counter()
    try:
        yield result
    finally:
        result["elapsed_ms"] = int((time.perf_counter() - start) * 1000)


def quote_identifier(name: str) -> str:
    """Render a catalog-validated identifier for inlining into SQL.

    PostgreSQL reserved words (``order``, ``user`` ...), mixed case and
    special characters are double-quoted; plain lower-case names stay bare.
    """
    quoted = _PREPARER.quote(name)
    if quoted == name and not _PLAIN_IDENTIFIER.fullmatch(name):
        return _PREPARER.quote_identifier(name)
    return quoted


def bind_name(name: str) -> str:
    """Turn a column name into a legal bind-parameter name."""
    return _NON_WORD.sub("_", name)
