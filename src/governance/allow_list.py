"""
Loads the static allow-list of (schema, table) pairs exposed by the data API.

The allow-list is configuration, not data: it lives in a YAML file
(``settings.allow_list_path``) and is injected into the query builder, so a
table that exists in the database but was never listed cannot be queried.

Example YAML:
  version: 1
  schemas:
    mdm_internal: [location_master_raw_tb, location_master_vw]
"""
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Iterable

import yaml

from src.core.config import get_settings
from src.query.model import TableIdentity


@dataclass(frozen=True)
class AllowList:
    """Immutable set of permitted tables."""

    tables: frozenset[TableIdentity] = field(default_factory=frozenset)
    version: int = 1

    @classmethod
    def of(cls, pairs: Iterable[tuple[str, str]]) -> "AllowList":
        return cls(tables=frozenset(TableIdentity(s, t) for s, t in pairs))

    def permits(self, identity: TableIdentity) -> bool:
        return identity in self.tables

    def sorted_tables(self) -> list[TableIdentity]:
        return sorted(self.tables, key=lambda t: (t.schema, t.table))

    def __len__(self) -> int:
        return len(self.tables)


# ── Parsing ──────────────────────────────────────────────

def parse_allow_list(raw: dict[str, Any] | None) -> AllowList:
    """Parse the YAML document; a missing ``schemas`` section permits nothing."""
    if not raw:
        return AllowList()
    schemas = raw.get("schemas") or {}
    pairs: list[tuple[str, str]] = []
    for schema, tables in schemas.items():
        if isinstance(tables, str):
            tables = [tables]
        for table in tables or []:
            pairs.append((str(schema), str(table)))
    allow_list = AllowList.of(pairs)
    return AllowList(tables=allow_list.tables, version=raw.get("version", 1))


# ── Public API ───────────────────────────────────────────

def load_allow_list_file(path: Path) -> AllowList:
    with open(path) as f:
        raw = yaml.safe_load(f)
    return parse_allow_list(raw)


@lru_cache
def load_allow_list() -> AllowList:
    """Load and cache the allow-list configured in settings."""
    return load_allow_list_file(get_settings().allow_list_path)
