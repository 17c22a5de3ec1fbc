"""FastAPI application for the realtime trade feed.

Routes are thin: request bodies go straight to ``TradeFeedService`` and
``TradeFeedError`` subclasses are mapped to JSON error bodies by the
exception handlers registered here.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from starship_realtime import __version__
from starship_realtime.api.schemas import (
    ErrorResponse,
    HealthResponse,
    HorizonInfoResponse,
    TimePingResponse,
    TradesResponse,
)
from starship_realtime.config import Settings, get_settings
from starship_realtime.errors import TradeFeedError
from starship_realtime.ingestor.bitquery_client import BitqueryClient
from starship_realtime.service import TradeFeedService

logger = logging.getLogger(__name__)

router = APIRouter()


def _service(request: Request) -> TradeFeedService:
    service: TradeFeedService = request.app.state.service
    return service


@router.get("/healthz", response_model=HealthResponse)
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/horizon-info", response_model=HorizonInfoResponse)
@router.get("/api/candles", response_model=HorizonInfoResponse, include_in_schema=False)
async def horizon_info(request: Request) -> dict[str, Any]:
    """Publish canonical windows and bounds so the client never guesses."""
    return _service(request).horizon_info()


@router.get("/time-ping", response_model=TimePingResponse)
@router.get("/api/time", response_model=TimePingResponse, include_in_schema=False)
async def time_ping(request: Request) -> dict[str, str]:
    return _service(request).time_ping()


@router.post(
    "/trades",
    response_model=TradesResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
@router.post("/api/trades", response_model=TradesResponse, include_in_schema=False)
async def trades(request: Request) -> dict[str, Any]:
    """Fetch, merge and return trades for the submitted windows."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        body = None
    return await _service(request).fetch_trades(body)


async def _trade_feed_error_handler(request: Request, exc: TradeFeedError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.details)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Server error", "details": str(exc)})


def _add_static_routes(app: FastAPI, static_dir: Path) -> None:
    """Serve the browser client with an SPA fallback to ``index.html``."""
    root = static_dir.resolve()
    index = root / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    async def spa(full_path: str) -> FileResponse:
        if full_path.startswith("api/"):
            raise HTTPException(status_code=404, detail="Not Found")
        candidate = (root / full_path).resolve()
        if full_path and candidate.is_relative_to(root) and candidate.is_file():
            return FileResponse(candidate)
        if index.is_file():
            return FileResponse(index)
        raise HTTPException(status_code=404, detail="Not Found")


def create_app(
    settings: Settings | None = None,
    *,
    service: TradeFeedService | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Application settings (defaults to ``get_settings()``).
        service: Pre-built service. When omitted, one backed by a
            ``BitqueryClient`` is created on startup and closed on shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if service is not None:
            app.state.service = service
            yield
            return

        token = settings.validate_requirements()
        async with BitqueryClient(
            token=token,
            url=settings.bitquery.url,
            timeout_seconds=settings.bitquery.timeout_seconds,
        ) as client:
            app.state.service = TradeFeedService.from_settings(settings, client)
            yield

    app = FastAPI(title="Starship Realtime", version=__version__, lifespan=lifespan)
    if service is not None:
        app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(TradeFeedError, _trade_feed_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    app.include_router(router)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        _add_static_routes(app, static_dir)
    else:
        logger.debug("Static directory %s not found; serving API only", static_dir)

    return app
