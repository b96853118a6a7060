"""Dependency injection for FastAPI routes.

Route handlers receive the allow-list, catalog, builder, executor and data
service through Depends(); tests swap any of them via
``app.dependency_overrides``.
"""
from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from src.core.config import get_settings
from src.db.executor import QueryExecutor
from src.governance.allow_list import AllowList, load_allow_list
from src.governance.catalog import CachedSchemaCatalog, InformationSchemaCatalog
from src.query.builder import QueryBuilder
from src.query.service import DataService


def get_allow_list() -> AllowList:
    return load_allow_list()


@lru_cache
def get_catalog() -> CachedSchemaCatalog:
    """Process-wide catalog; caching is off unless a TTL is configured."""
    return CachedSchemaCatalog(
        InformationSchemaCatalog(),
        ttl=get_settings().catalog_cache_ttl_seconds,
        max_size=get_settings().catalog_cache_max_size,
    )


@lru_cache
def get_executor() -> QueryExecutor:
    return QueryExecutor(timeout_ms=get_settings().query_timeout_ms)


def get_query_builder(
    allow_list: AllowList = Depends(get_allow_list),
    catalog: CachedSchemaCatalog = Depends(get_catalog),
) -> QueryBuilder:
    return QueryBuilder(allow_list, catalog)


def get_data_service(
    builder: QueryBuilder = Depends(get_query_builder),
    executor: QueryExecutor = Depends(get_executor),
) -> DataService:
    return DataService(builder, executor)
