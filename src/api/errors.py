"""Exception handlers translating engine errors into JSON responses.

Client errors return their message; anything else returns a generic
``Internal Server Error`` body and keeps the detail in the server log.
"""
from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.core.errors import DataApiError
from src.core.logging import get_logger

logger = get_logger(__name__)

INTERNAL_ERROR_BODY = {"error": "Internal Server Error"}


async def data_api_error_handler(request: Request, exc: DataApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.public_message})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unexpected error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DataApiError, data_api_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
