"""GET /api/data/{schema}/{table} -- dynamic filtered table read."""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from src.api.deps import get_data_service
from src.query.service import DataRequest, DataService

router = APIRouter()


@router.get("/{schema}/{table}")
def fetch_data(
    schema: str,
    table: str,
    request: Request,
    service: DataService = Depends(get_data_service),
) -> list[dict[str, Any]]:
    """Return rows of an allow-listed table.

    Optional parameters ``dateColumn``, ``fromDate``, ``toDate`` (``YYYY-MM-DD HH:MM:SS``),
    ``sortBy`` and ``sortOrder`` (``asc`` | ``desc``); every other query
    parameter filters on the column of the same name.  Values may start with
    ``>`` / ``<`` on non-text columns, or contain ``%`` on text columns for LIKE.
    """
    data_request = DataRequest.from_query_params(schema, table, request.query_params.multi_items())
    return service.fetch(data_request)
