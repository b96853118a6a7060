"""
FastAPI application entry-point.
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import register_exception_handlers
from src.api.routers import catalog, data
from src.core.config import get_settings

app = FastAPI(
    title="Dynamic Table Data API",
    version="0.1.0",
    description="Filter, date-range and sort any allow-listed table without per-table code",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(data.router, prefix="/api/data", tags=["Data"])
app.include_router(catalog.router, prefix="/api/catalog", tags=["Catalog"])


@app.get("/health")
def health():
    return {"status": "ok"}
