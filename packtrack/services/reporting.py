from __future__ import annotations

from typing import Any, Dict, Iterable, List

from ..models.inventory import SoldOutPack
from ..models.slot import Slot, SlotStatus
from .inventory_store import InventorySnapshot


def _count(slots: Iterable[Slot], predicate) -> int:
    return sum(1 for slot in slots if predicate(slot))


def build_review_summary(snapshot: InventorySnapshot, sold_out_today: List[SoldOutPack]) -> Dict[str, Any]:
    """Aggregate the end-of-count review: what is scanned, what is empty, what sold out.

    ``empty_total`` includes both never-touched and explicitly empty slots;
    the two are also reported separately so an operator can spot slots that
    were skipped rather than checked.
    """

    slots = snapshot.slots
    scanned = [slot for slot in slots if slot.status is SlotStatus.SCANNED]
    totals = {
        "slots_total": len(slots),
        "scanned_total": len(scanned),
        "empty_total": _count(slots, lambda slot: slot.status is SlotStatus.EMPTY),
        "explicitly_empty_total": _count(
            slots, lambda slot: slot.status is SlotStatus.EMPTY and slot.is_explicitly_empty
        ),
        "untouched_total": _count(slots, lambda slot: slot.status is SlotStatus.EMPTY and slot.is_untouched),
        "pending_total": _count(slots, lambda slot: slot.status is SlotStatus.PENDING),
        "sold_out_today_total": len(sold_out_today),
    }
    return {
        "day": snapshot.today,
        "generated_at": snapshot.taken_at,
        "totals": totals,
        "scanned_slots": scanned,
        "sold_out_today": sorted(sold_out_today, key=lambda pack: pack.sold_out_date, reverse=True),
    }


__all__ = ["build_review_summary"]
