"""Rebuild one logical scan out of the fragments a keyboard-wedge scanner types.

Design:
- Fragments are appended to ``pending_text``; every fragment cancels the
  pending timer.
- Once the text looks complete (CR/LF seen, a full 24-digit frame, or the
  30-character safety ceiling) a single timer is armed for the configured
  scanner delay. Late fragments re-arm it, so the flush happens once the line
  has been quiet for the whole delay.
- ``flush`` extracts the identifier, empties the buffer and hands the result
  to the submit callback. A manual submit is simply ``flush``.
- Timers come from a ``Scheduler`` so tests can drive time by hand.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Protocol

from ..core.barcodes import FRAME_LENGTH, clean_digits, extract_identifier

logger = logging.getLogger(__name__)

DEFAULT_SCANNER_DELAY_MS = 500
# Bounds buffer growth when a scanner never sends a terminator.
MAX_PENDING_CHARS = 30

SubmitHandler = Callable[[str, str], Any]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """Run callbacks on daemon ``threading.Timer`` threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


def is_scan_complete(text: str) -> bool:
    if "\n" in text or "\r" in text:
        return True
    if len(clean_digits(text)) >= FRAME_LENGTH:
        return True
    return len(text) >= MAX_PENDING_CHARS


class ScanBuffer:
    def __init__(
        self,
        on_submit: SubmitHandler,
        *,
        scheduler: Scheduler | None = None,
        delay_provider: Callable[[], int] | None = None,
    ) -> None:
        self._on_submit = on_submit
        self._scheduler = scheduler or ThreadingScheduler()
        self._delay_provider = delay_provider or (lambda: DEFAULT_SCANNER_DELAY_MS)
        self._lock = threading.Lock()
        self._pending_text = ""
        self._timer: Optional[TimerHandle] = None
        # Bumped whenever the armed timer is superseded, so a timer thread that
        # already woke up cannot flush text it was not armed for.
        self._generation = 0

    @property
    def pending_text(self) -> str:
        with self._lock:
            return self._pending_text

    @property
    def has_pending_timer(self) -> bool:
        with self._lock:
            return self._timer is not None

    def _cancel_timer_locked(self) -> None:
        self._generation += 1
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def on_fragment(self, text: str) -> bool:
        """Append a fragment; return True when an auto-submit was armed."""

        with self._lock:
            self._pending_text += text
            self._cancel_timer_locked()
            if not is_scan_complete(self._pending_text):
                return False
            delay_ms = self._delay_provider()
            generation = self._generation
            self._timer = self._scheduler.call_later(delay_ms / 1000.0, lambda: self._fire(generation))
        logger.debug("scan.flush_scheduled", extra={"extra_data": {"delay_ms": delay_ms}})
        return True

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            raw_text = self._take_locked()
        self._submit(raw_text)

    def _take_locked(self) -> str:
        self._cancel_timer_locked()
        raw_text = self._pending_text
        self._pending_text = ""
        return raw_text

    def _submit(self, raw_text: str) -> Any:
        identifier = extract_identifier(raw_text)
        logger.info(
            "scan.flushed",
            extra={"extra_data": {"raw_length": len(raw_text), "identifier_length": len(identifier)}},
        )
        return self._on_submit(identifier, raw_text)

    def flush(self) -> Any:
        """Submit whatever is buffered right now and return the handler's result."""

        with self._lock:
            raw_text = self._take_locked()
        return self._submit(raw_text)

    def reset(self) -> None:
        """Drop buffered text and any armed timer without submitting."""

        with self._lock:
            self._cancel_timer_locked()
            self._pending_text = ""


__all__ = [
    "DEFAULT_SCANNER_DELAY_MS",
    "MAX_PENDING_CHARS",
    "ScanBuffer",
    "Scheduler",
    "ThreadingScheduler",
    "TimerHandle",
    "is_scan_complete",
]
