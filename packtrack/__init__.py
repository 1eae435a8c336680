"""Application factory and top-level wiring for the Pack Tracker service.

This module is the glue that brings together configuration, the in-memory
inventory store, the scanner session, API routers and error handling. It gives
a new developer a bird's-eye view of *what* pieces exist, *when* they are
created, *why* they are required, and *how* they interact.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.catalog import GameCatalog
from .core.config import AppSettings, get_settings
from .core.errors import (
    PackTrackError,
    domain_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from .middlewares import RequestIdMiddleware
from .routers import api_reports, api_scanner, api_slots
from .services.inventory_store import InventoryStore
from .services.preferences import ScannerPreferences
from .services.scan_buffer import Scheduler
from .services.scan_session import ScanSession

logger = logging.getLogger(__name__)


def build_store(settings: AppSettings) -> InventoryStore:
    """Create a store sized and localised from configuration, with slots ready."""

    catalog = GameCatalog.from_json(settings.GAME_CATALOG_PATH) if settings.GAME_CATALOG_PATH else GameCatalog()
    store = InventoryStore(slot_count=settings.SLOT_COUNT, catalog=catalog, tz=settings.tzinfo)
    store.initialize_slots()
    return store


def create_app(
    settings: AppSettings | None = None,
    *,
    store: InventoryStore | None = None,
    preferences: ScannerPreferences | None = None,
    scheduler: Scheduler | None = None,
) -> FastAPI:
    """Build a FastAPI app around the given (or freshly built) state objects."""

    settings = settings or get_settings()
    if store is None:
        store = build_store(settings)
    elif not store.is_initialized:
        store.initialize_slots()
    if preferences is None:
        preferences = ScannerPreferences(settings.preferences_path, default_delay=settings.SCANNER_DELAY_MS)

    app = FastAPI(title=settings.APP_NAME)

    # Shared state lives on the app so dependencies (see ``packtrack.deps``)
    # can reach it without globals.
    app.state.settings = settings
    app.state.store = store
    app.state.scan_session = ScanSession(store, preferences=preferences, scheduler=scheduler)

    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_slots.router)
    app.include_router(api_scanner.router)
    app.include_router(api_reports.router)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PackTrackError, domain_exception_handler)

    logger.info(
        "app.created",
        extra={"extra_data": {"slot_count": store.slot_count, "scanner_delay_ms": preferences.get_delay()}},
    )
    return app


__all__ = ["build_store", "create_app"]
