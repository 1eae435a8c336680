import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from packtrack.core.catalog import GameCatalog
from packtrack.services.inventory_store import InventoryStore


class FixedClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current = self.current + timedelta(**kwargs)
        return self.current


class FakeHandle:
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Collects delayed callbacks and fires them when time is advanced by hand."""

    def __init__(self) -> None:
        self.now = 0.0
        self.handles: List[FakeHandle] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(self.now + delay, callback)
        self.handles.append(handle)
        return handle

    @property
    def active(self) -> List[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def advance_ms(self, milliseconds: float) -> None:
        target = self.now + milliseconds / 1000.0
        while True:
            due = [h for h in self.active if h.due <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: h.due)
            self.now = handle.due
            handle.fired = True
            handle.callback()
        self.now = target

    @property
    def last(self) -> Optional[FakeHandle]:
        return self.handles[-1] if self.handles else None


@pytest.fixture()
def clock():
    return FixedClock(datetime(2024, 6, 1, 15, 0, tzinfo=timezone.utc))


@pytest.fixture()
def store(clock):
    inventory = InventoryStore(catalog=GameCatalog(), tz=timezone.utc, clock=clock)
    inventory.initialize_slots()
    return inventory


@pytest.fixture()
def scheduler():
    return FakeScheduler()
