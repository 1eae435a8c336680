from __future__ import annotations

from typing import Iterable

from ..models.slot import Slot, SlotStatus

FALLBACK_SLOT_ID = 1


def find_next_slot(slots: Iterable[Slot]) -> int:
    """Pick the slot the operator should scan next.

    Priority: any pending slot, then the first never-touched empty slot, then
    the first slot that is not scanned (explicitly empty ones), and finally
    slot 1 once everything is scanned.
    """

    ordered = sorted(slots, key=lambda slot: slot.id)

    for slot in ordered:
        if slot.status is SlotStatus.PENDING:
            return slot.id

    for slot in ordered:
        if slot.status is SlotStatus.EMPTY and slot.barcode is None:
            return slot.id

    for slot in ordered:
        if slot.status is not SlotStatus.SCANNED:
            return slot.id

    return FALLBACK_SLOT_ID


__all__ = ["FALLBACK_SLOT_ID", "find_next_slot"]
