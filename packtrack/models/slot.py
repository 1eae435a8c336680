"""Beginner-friendly overview for this module.

WHAT: Describes one physical dispenser slot and what it currently holds.
WHEN: Created by the inventory store at start-up and replaced on every change.
WHY: Keeps the "explicitly empty" marker an explicit state instead of a magic
string; the all-zero sentinels only appear when a slot is projected for the
wire.
HOW: ``Slot`` is a frozen dataclass; the store swaps in a new instance with
``dataclasses.replace`` whenever something happens to the slot.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from ..core.barcodes import SENTINEL_BARCODE, SENTINEL_GAMEPACK


class SlotStatus(str, enum.Enum):
    EMPTY = "empty"
    SCANNED = "scanned"
    PENDING = "pending"


@dataclass(frozen=True)
class Untouched:
    """Nothing recorded yet (fresh start or cleared)."""


@dataclass(frozen=True)
class ExplicitlyEmpty:
    """The operator confirmed there is no pack in the slot."""


@dataclass(frozen=True)
class Occupied:
    barcode: str
    gamepack_number: str


SlotContents = Union[Untouched, ExplicitlyEmpty, Occupied]

UNTOUCHED = Untouched()
EXPLICITLY_EMPTY = ExplicitlyEmpty()


@dataclass(frozen=True)
class Slot:
    id: int
    status: SlotStatus = SlotStatus.EMPTY
    contents: SlotContents = field(default=UNTOUCHED)
    sold_out: bool = False
    timestamp: Optional[datetime] = None

    @property
    def barcode(self) -> Optional[str]:
        if isinstance(self.contents, Occupied):
            return self.contents.barcode
        if isinstance(self.contents, ExplicitlyEmpty):
            return SENTINEL_BARCODE
        return None

    @property
    def gamepack_number(self) -> Optional[str]:
        if isinstance(self.contents, Occupied):
            return self.contents.gamepack_number
        if isinstance(self.contents, ExplicitlyEmpty):
            return SENTINEL_GAMEPACK
        return None

    @property
    def is_untouched(self) -> bool:
        return isinstance(self.contents, Untouched)

    @property
    def is_explicitly_empty(self) -> bool:
        return isinstance(self.contents, ExplicitlyEmpty)

    @property
    def active_gamepack(self) -> Optional[str]:
        """The real pack in this slot, ignoring the empty-slot sentinel."""

        gamepack = self.gamepack_number
        if gamepack is None or gamepack == SENTINEL_GAMEPACK:
            return None
        return gamepack


__all__ = [
    "EXPLICITLY_EMPTY",
    "ExplicitlyEmpty",
    "Occupied",
    "Slot",
    "SlotContents",
    "SlotStatus",
    "UNTOUCHED",
    "Untouched",
]
