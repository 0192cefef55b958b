"""FastAPI application factory for the metal price API."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bullion.api.routes import admin, metals
from bullion.config import AppSettings
from bullion.exceptions import (
    InvalidConfiguration,
    InvalidObservation,
    StoreReadFailure,
    StoreWriteFailure,
)
from bullion.logging import get_logger

logger = get_logger(__name__)


async def _invalid_observation_handler(request: Request, exc: InvalidObservation) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid price data", "details": str(exc)})


async def _invalid_configuration_handler(request: Request, exc: InvalidConfiguration) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _store_failure_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("store_failure", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content={"error": "Storage failure", "details": str(exc)})


def create_app(settings: AppSettings, lifespan: Any = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Route handlers read their collaborators from app.state: `settings`,
    `clock`, `service`, and `price_sync`. The caller (main.py lifespan or a
    test) is responsible for setting the last three.

    Args:
        settings: Application settings (API key, allowed CORS origins).
        lifespan: Optional async context manager for startup/shutdown.
    """
    app = FastAPI(title="Bullion Metal Prices API", lifespan=lifespan)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(InvalidObservation, _invalid_observation_handler)
    app.add_exception_handler(InvalidConfiguration, _invalid_configuration_handler)
    app.add_exception_handler(StoreReadFailure, _store_failure_handler)
    app.add_exception_handler(StoreWriteFailure, _store_failure_handler)

    app.include_router(metals.router)
    app.include_router(admin.router)

    return app
