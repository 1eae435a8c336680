"""FastAPI dependencies that hand request handlers the shared state objects.

The store, scan session and settings live on ``app.state`` (see
``packtrack.create_app``) so tests can build an app around their own
instances instead of a module-level singleton.
"""

from __future__ import annotations

from fastapi import Request

from ..core.config import AppSettings
from ..services.inventory_store import InventoryStore
from ..services.scan_session import ScanSession


def get_store(request: Request) -> InventoryStore:
    return request.app.state.store


def get_scan_session(request: Request) -> ScanSession:
    return request.app.state.scan_session


def get_app_settings(request: Request) -> AppSettings:
    return request.app.state.settings
