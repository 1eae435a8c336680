"""Slot and sold-out bookkeeping.

The store is the only owner of slot state. Everything else either asks for a
read-only ``InventorySnapshot`` or calls one of the mutating methods below.
Each mutation runs under a single re-entrant writer lock, and ``transaction``
hands that lock to callers that must validate and apply a scan as one step.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone, tzinfo
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from ..core.barcodes import SENTINEL_GAMEPACK, gamepack_from_barcode
from ..core.catalog import GameCatalog
from ..core.errors import SlotNotFoundError
from ..models.inventory import SoldOutPack
from ..models.slot import EXPLICITLY_EMPTY, UNTOUCHED, Occupied, Slot, SlotStatus

logger = logging.getLogger(__name__)

DEFAULT_SLOT_COUNT = 20

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class InventorySnapshot:
    """Slot state frozen at one instant.

    ``today`` is the calendar day of ``taken_at`` in the store's timezone; it
    decides which slot timestamps count as "active today".
    """

    slots: Tuple[Slot, ...]
    taken_at: datetime
    tz: tzinfo

    @property
    def today(self) -> date:
        return self.taken_at.astimezone(self.tz).date()

    def get_slot(self, slot_id: int) -> Optional[Slot]:
        for slot in self.slots:
            if slot.id == slot_id:
                return slot
        return None

    def get_previous_gamepack(self, slot_id: int) -> Optional[str]:
        """The real pack currently recorded for ``slot_id``, if any."""

        slot = self.get_slot(slot_id)
        if slot is None or slot.barcode is None:
            return None
        return slot.active_gamepack

    def check_gamepack_uniqueness(self, gamepack: str, exclude_slot_id: Optional[int] = None) -> bool:
        """True when no slot holds ``gamepack`` as an active, same-day pack.

        Sold-out packs and packs recorded on an earlier day never block reuse;
        the empty-slot sentinel is always unique.
        """

        if gamepack == SENTINEL_GAMEPACK:
            return True
        for slot in self.slots:
            if exclude_slot_id is not None and slot.id == exclude_slot_id:
                continue
            if slot.timestamp is None or slot.gamepack_number != gamepack:
                continue
            if slot.timestamp.astimezone(self.tz).date() == self.today and not slot.sold_out:
                return False
        return True


class InventoryStore:
    """In-memory owner of the fixed slot collection and the sold-out ledger."""

    def __init__(
        self,
        *,
        slot_count: int = DEFAULT_SLOT_COUNT,
        catalog: GameCatalog | None = None,
        tz: tzinfo = timezone.utc,
        clock: Clock = utc_now,
    ) -> None:
        self.slot_count = slot_count
        self.catalog = catalog or GameCatalog()
        self.tz = tz
        self._clock = clock
        self._lock = threading.RLock()
        self._slots: Dict[int, Slot] = {}
        self._sold_out: List[SoldOutPack] = []

    # -------- Lifecycle --------

    def initialize_slots(self) -> None:
        """Fill the collection with untouched slots ``1..slot_count``.

        This resets existing slot state; callers check ``is_initialized``
        first when they only want to populate a fresh store.
        """

        with self._lock:
            self._slots = {slot_id: Slot(id=slot_id) for slot_id in range(1, self.slot_count + 1)}
        logger.info("slots.initialized", extra={"extra_data": {"slot_count": self.slot_count}})

    @property
    def is_initialized(self) -> bool:
        with self._lock:
            return bool(self._slots)

    @contextmanager
    def transaction(self) -> Iterator["InventoryStore"]:
        """Hold the writer lock across a read-validate-write sequence."""

        with self._lock:
            yield self

    def now(self) -> datetime:
        return self._clock()

    # -------- Reads --------

    def _require(self, slot_id: int) -> Slot:
        slot = self._slots.get(slot_id)
        if slot is None:
            raise SlotNotFoundError(slot_id)
        return slot

    def get_slot(self, slot_id: int) -> Slot:
        with self._lock:
            return self._require(slot_id)

    def list_slots(self) -> List[Slot]:
        with self._lock:
            return [self._slots[key] for key in sorted(self._slots)]

    def snapshot(self) -> InventorySnapshot:
        with self._lock:
            slots = tuple(self._slots[key] for key in sorted(self._slots))
            return InventorySnapshot(slots=slots, taken_at=self._clock(), tz=self.tz)

    def get_previous_gamepack(self, slot_id: int) -> Optional[str]:
        return self.snapshot().get_previous_gamepack(slot_id)

    def check_gamepack_uniqueness(self, gamepack: str, exclude_slot_id: Optional[int] = None) -> bool:
        return self.snapshot().check_gamepack_uniqueness(gamepack, exclude_slot_id=exclude_slot_id)

    def get_sold_out_packs_for_day(self, day: date) -> List[SoldOutPack]:
        """Sold-out packs whose local calendar day is ``day``, newest first."""

        with self._lock:
            packs = [pack for pack in self._sold_out if pack.sold_out_date.astimezone(self.tz).date() == day]
        return sorted(packs, key=lambda pack: pack.sold_out_date, reverse=True)

    def get_sold_out_packs_for_today(self) -> List[SoldOutPack]:
        return self.get_sold_out_packs_for_day(self._clock().astimezone(self.tz).date())

    def list_sold_out_packs(self) -> List[SoldOutPack]:
        with self._lock:
            return list(self._sold_out)

    # -------- Mutations --------

    def update_slot(self, slot_id: int, barcode: str) -> Slot:
        """Record a newly scanned pack. The barcode must already be validated."""

        with self._lock:
            slot = self._require(slot_id)
            updated = replace(
                slot,
                status=SlotStatus.SCANNED,
                contents=Occupied(barcode=barcode, gamepack_number=gamepack_from_barcode(barcode)),
                sold_out=False,
                timestamp=self._clock(),
            )
            self._slots[slot_id] = updated
        logger.info(
            "slot.updated",
            extra={"extra_data": {"slot_id": slot_id, "gamepack_number": updated.gamepack_number}},
        )
        return updated

    def clear_slot(self, slot_id: int) -> Slot:
        """Forget everything about the slot, as if it was never touched."""

        with self._lock:
            slot = self._require(slot_id)
            cleared = replace(slot, status=SlotStatus.EMPTY, contents=UNTOUCHED, sold_out=False, timestamp=None)
            self._slots[slot_id] = cleared
        logger.info("slot.cleared", extra={"extra_data": {"slot_id": slot_id}})
        return cleared

    def mark_as_empty(self, slot_id: int) -> Slot:
        """Record that the operator checked the slot and it holds nothing."""

        with self._lock:
            slot = self._require(slot_id)
            emptied = replace(slot, status=SlotStatus.EMPTY, contents=EXPLICITLY_EMPTY, timestamp=self._clock())
            self._slots[slot_id] = emptied
        logger.info("slot.marked_empty", extra={"extra_data": {"slot_id": slot_id}})
        return emptied

    def mark_pending(self, slot_id: int) -> Slot:
        """Flag a slot for revisiting; its recorded contents stay as they are."""

        with self._lock:
            slot = self._require(slot_id)
            pending = replace(slot, status=SlotStatus.PENDING)
            self._slots[slot_id] = pending
        logger.info("slot.marked_pending", extra={"extra_data": {"slot_id": slot_id}})
        return pending

    def mark_as_sold_out(self, slot_id: int) -> Optional[SoldOutPack]:
        """Close out the pack in ``slot_id`` and append it to the ledger.

        Slots without a real pack (untouched, cleared or explicitly empty) are
        left alone and ``None`` is returned; this is not an error.
        """

        with self._lock:
            slot = self._require(slot_id)
            gamepack = slot.active_gamepack
            if gamepack is None:
                logger.debug("slot.sold_out_skipped", extra={"extra_data": {"slot_id": slot_id}})
                return None

            now = self._clock()
            game = self.catalog.for_gamepack(gamepack)
            pack = SoldOutPack(
                id=self._next_pack_id(gamepack, now),
                gamepack_number=gamepack,
                game_name=game.name,
                price=game.price,
                type=game.type,
                sold_out_date=now,
                slot_id=slot_id,
            )
            self._slots[slot_id] = replace(slot, sold_out=True)
            self._sold_out.append(pack)
        logger.info(
            "slot.sold_out",
            extra={"extra_data": {"slot_id": slot_id, "gamepack_number": gamepack, "pack_id": pack.id}},
        )
        return pack

    def _next_pack_id(self, gamepack: str, when: datetime) -> str:
        base = f"{gamepack}-{when.isoformat()}"
        existing = {pack.id for pack in self._sold_out}
        candidate = base
        counter = 2
        while candidate in existing:
            candidate = f"{base}-{counter}"
            counter += 1
        return candidate


__all__ = ["DEFAULT_SLOT_COUNT", "InventorySnapshot", "InventoryStore", "utc_now"]
