"""
GET /api/catalog, GET /api/catalog/{schema}/{table}/columns,
POST /api/catalog/cache/clear -- metadata endpoints.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from src.api.deps import get_allow_list, get_catalog, get_query_builder
from src.governance.allow_list import AllowList
from src.governance.catalog import CachedSchemaCatalog
from src.query.builder import QueryBuilder
from src.query.model import TableIdentity

router = APIRouter()


class TableItem(BaseModel):
    schema_name: str = Field(serialization_alias="schema")
    table_name: str = Field(serialization_alias="table")


class ColumnItem(BaseModel):
    name: str
    type: str


@router.get("", response_model=list[TableItem])
def list_tables(allow_list: AllowList = Depends(get_allow_list)) -> list[TableItem]:
    """Return every allow-listed table."""
    return [
        TableItem(schema_name=t.schema, table_name=t.table)
        for t in allow_list.sorted_tables()
    ]


@router.get("/{schema}/{table}/columns", response_model=list[ColumnItem])
def list_columns(
    schema: str,
    table: str,
    builder: QueryBuilder = Depends(get_query_builder),
    catalog: CachedSchemaCatalog = Depends(get_catalog),
) -> list[ColumnItem]:
    """Return column names and coercion types for an allow-listed table."""
    identity = TableIdentity(schema, table)
    builder.check_target(identity)
    return [
        ColumnItem(name=c.name, type=c.column_type.value)
        for c in catalog.list_columns(schema, table)
    ]


@router.post("/cache/clear")
def clear_cache(catalog: CachedSchemaCatalog = Depends(get_catalog)) -> dict:
    """Flush cached schema metadata (call after a schema change)."""
    return {"cleared": catalog.invalidate()}
