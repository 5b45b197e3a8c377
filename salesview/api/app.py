"""
FastAPI application for SalesView.

`create_app()` wires the sales routes, CORS, request logging and the error
handlers. Without an injected service, the lifespan opens the connection pool,
builds the `SalesService` and warms the filter-options cache. If the database
cannot be reached the server still starts and sales routes answer 503.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Optional

import psycopg
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from salesview import __version__
from salesview.api.middleware import LoggingMiddleware
from salesview.api.routers import sales
from salesview.config import Settings, get_settings
from salesview.exceptions import SalesViewError, StoreUnavailableError
from salesview.infrastructure.db_factory import PoolManager
from salesview.infrastructure.store import PostgresSalesStore
from salesview.service import SalesService
from salesview.utils.logging import get_logger

log = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if app.state.service is not None:
        yield
        return

    settings: Settings = app.state.settings
    manager = PoolManager(settings)
    try:
        pool = await manager.open()
    except psycopg.Error as exc:
        log.error(
            "Database unreachable, starting without it",
            extra={"error_type": type(exc).__name__, "db_host": settings.db_host},
        )
        yield
        return

    store = PostgresSalesStore(
        pool, table=settings.db_table, estimate_timeout_ms=settings.count_timeout_ms
    )
    service = SalesService(store, settings)
    await service.warm_up()
    app.state.service = service
    try:
        yield
    finally:
        app.state.service = None
        await manager.close()


async def _store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    log.error(
        "Store unavailable",
        extra={"path": request.url.path, "error": str(exc)},
        exc_info=exc.__cause__ is not None,
    )
    return JSONResponse(status_code=503, content={"error": "Service unavailable"})


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error(f"Unhandled exception: {exc}", extra={"path": request.url.path}, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message})


def create_app(
    service: Optional[SalesService] = None, settings: Optional[Settings] = None
) -> FastAPI:
    """
    Build the application.

    Parameters
    ----------
    service : SalesService, optional
        Pre-built service (tests, embedding). When omitted the lifespan builds one
        against PostgreSQL.
    settings : Settings, optional
        Defaults to `get_settings()`.
    """
    app = FastAPI(
        title="SalesView API",
        description="Paginated, filtered and searchable retail sales listing.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or get_settings()
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(StoreUnavailableError, _store_unavailable_handler)
    app.add_exception_handler(SalesViewError, _unhandled_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)

    app.include_router(sales.router, prefix="/api")

    @app.get("/health", tags=["Health"])
    async def health():
        return {
            "status": "OK",
            "message": "Server is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": "Retail Sales Management System API",
            "version": __version__,
            "endpoints": {
                "health": "/health",
                "filters": "/api/sales/filters",
                "sales": "/api/sales?page=1&limit=10",
            },
        }

    return app


__all__ = ["create_app", "lifespan"]
