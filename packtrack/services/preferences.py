"""
Design (preferences.py)
- Purpose: Hold the operator's scanner delay preference.
- Inputs: Optional JSON file path; default delay in milliseconds.
- Outputs: get_delay() -> int, set_delay(int).
- Side effects: Reads the file once at start-up and rewrites it on every set.
  A missing or unreadable file falls back to the default.
- Thread-safety: Internal lock; the scan timer reads while requests write.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from .scan_buffer import DEFAULT_SCANNER_DELAY_MS

logger = logging.getLogger(__name__)

PREFERENCE_KEY = "scanner_delay"


class ScannerPreferences:
    def __init__(self, path: Optional[Path] = None, *, default_delay: int = DEFAULT_SCANNER_DELAY_MS) -> None:
        self._lock = threading.Lock()
        self._path = path
        self._default = default_delay
        self._delay = self._load()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    def _load(self) -> int:
        if self._path is None or not self._path.exists():
            return self._default
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError):
            logger.warning("preferences.load_failed", extra={"extra_data": {"path": str(self._path)}})
            return self._default
        value = data.get(PREFERENCE_KEY) if isinstance(data, dict) else None
        try:
            return int(value)
        except (TypeError, ValueError):
            return self._default

    def get_delay(self) -> int:
        with self._lock:
            return self._delay

    def set_delay(self, delay_ms: int) -> None:
        """Store a new delay. Range checks belong to whoever collects the value."""

        with self._lock:
            self._delay = int(delay_ms)
            if self._path is not None:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with open(self._path, "w", encoding="utf-8") as f:
                    json.dump({PREFERENCE_KEY: self._delay}, f, indent=2)
        logger.info("preferences.scanner_delay_set", extra={"extra_data": {"delay_ms": delay_ms}})


__all__ = ["PREFERENCE_KEY", "ScannerPreferences"]
