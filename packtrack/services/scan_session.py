"""Scan workflow for one scanner station.

``ScanSession`` is the glue between the scanner, the validator and the store:
it remembers which slot is selected, feeds fragments through a ``ScanBuffer``,
applies accepted scans, parks scans that need a sold-out confirmation, and
moves the selection on to the next slot that needs attention.

``process_scan`` is the stateless core of that workflow; the direct
``POST /slots/{id}/scan`` endpoint uses it on its own.
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Optional

from ..core.barcodes import check_scan_completeness
from ..core.errors import NoPendingConfirmationError, NoSlotSelectedError
from .inventory_store import InventoryStore
from .navigator import find_next_slot
from .preferences import ScannerPreferences
from .scan_buffer import ScanBuffer, Scheduler
from .validation import Accept, Reject, RequiresConfirmation, duplicate_message, validate_scan

logger = logging.getLogger(__name__)

MSG_NO_SLOT = "No slot selected"
MSG_NOT_SOLD_OUT = "Previous pack must be sold out before adding a new pack"
MSG_SLOT_CHANGED = "Slot changed since the sold-out question was asked; scan again"


class OutcomeStatus(str, enum.Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CONFIRMATION_REQUIRED = "confirmation_required"
    MARKED_EMPTY = "marked_empty"


@dataclass(frozen=True)
class ScanOutcome:
    status: OutcomeStatus
    slot_id: Optional[int]
    at: datetime
    identifier: str = ""
    gamepack_number: Optional[str] = None
    message: Optional[str] = None
    previous_gamepack: Optional[str] = None
    warning: Optional[str] = None
    sold_out_pack_id: Optional[str] = None
    next_slot_id: Optional[int] = None


@dataclass(frozen=True)
class PendingConfirmation:
    slot_id: int
    identifier: str
    gamepack_number: str
    previous_gamepack: str
    message: str
    warning: Optional[str] = None


def completeness_warning(raw_text: str) -> Optional[str]:
    """Message for scans that are usable but shorter than a full frame."""

    result = check_scan_completeness(raw_text)
    if result.is_valid and not result.is_complete:
        return result.message
    return None


def process_scan(
    store: InventoryStore,
    slot_id: int,
    identifier: str,
    *,
    raw_text: str | None = None,
    confirm_sold_out: bool | None = None,
) -> ScanOutcome:
    """Validate ``identifier`` for ``slot_id`` and apply it when allowed.

    ``confirm_sold_out`` answers the sold-out question in advance: ``True``
    closes out the previous pack and records the new one, ``False`` discards
    the scan, ``None`` reports that a confirmation is required.
    """

    store.get_slot(slot_id)
    warning = completeness_warning(raw_text if raw_text is not None else identifier)
    with store.transaction():
        decision = validate_scan(identifier, slot_id, store.snapshot())
        now = store.now()

        if isinstance(decision, Accept):
            store.update_slot(slot_id, identifier)
            return ScanOutcome(
                status=OutcomeStatus.ACCEPTED,
                slot_id=slot_id,
                at=now,
                identifier=identifier,
                gamepack_number=decision.gamepack_number,
                warning=warning,
            )

        if isinstance(decision, Reject):
            return ScanOutcome(
                status=OutcomeStatus.REJECTED,
                slot_id=slot_id,
                at=now,
                identifier=identifier,
                gamepack_number=decision.gamepack_number,
                message=decision.reason,
                warning=warning,
            )

        if confirm_sold_out is None:
            return ScanOutcome(
                status=OutcomeStatus.CONFIRMATION_REQUIRED,
                slot_id=slot_id,
                at=now,
                identifier=identifier,
                gamepack_number=decision.gamepack_number,
                message=decision.message,
                previous_gamepack=decision.previous_gamepack,
                warning=warning,
            )

        return _resolve_replacement(store, slot_id, identifier, decision, confirm_sold_out, warning)


def _resolve_replacement(
    store: InventoryStore,
    slot_id: int,
    identifier: str,
    decision: RequiresConfirmation,
    sold_out: bool,
    warning: Optional[str],
) -> ScanOutcome:
    with store.transaction():
        now = store.now()
        if not sold_out:
            return ScanOutcome(
                status=OutcomeStatus.REJECTED,
                slot_id=slot_id,
                at=now,
                identifier=identifier,
                gamepack_number=decision.gamepack_number,
                message=MSG_NOT_SOLD_OUT,
                previous_gamepack=decision.previous_gamepack,
                warning=warning,
            )

        # The answer only covers the pack named in the question.
        current = store.snapshot().get_previous_gamepack(slot_id)
        if current != decision.previous_gamepack:
            return ScanOutcome(
                status=OutcomeStatus.REJECTED,
                slot_id=slot_id,
                at=now,
                identifier=identifier,
                gamepack_number=decision.gamepack_number,
                message=MSG_SLOT_CHANGED,
                previous_gamepack=current,
                warning=warning,
            )

        # The new pack must not be active in another slot, confirmation or not.
        if not store.snapshot().check_gamepack_uniqueness(decision.gamepack_number, exclude_slot_id=slot_id):
            return ScanOutcome(
                status=OutcomeStatus.REJECTED,
                slot_id=slot_id,
                at=now,
                identifier=identifier,
                gamepack_number=decision.gamepack_number,
                message=duplicate_message(decision.gamepack_number),
                previous_gamepack=decision.previous_gamepack,
                warning=warning,
            )

        pack = store.mark_as_sold_out(slot_id)
        store.update_slot(slot_id, identifier)
        return ScanOutcome(
            status=OutcomeStatus.ACCEPTED,
            slot_id=slot_id,
            at=now,
            identifier=identifier,
            gamepack_number=decision.gamepack_number,
            previous_gamepack=decision.previous_gamepack,
            warning=warning,
            sold_out_pack_id=pack.id if pack else None,
        )


@dataclass(frozen=True)
class SessionState:
    selected_slot_id: Optional[int]
    pending_text: str
    auto_submit_armed: bool
    scanner_delay: int
    pending_confirmation: Optional[PendingConfirmation] = None
    last_outcome: Optional[ScanOutcome] = None


class ScanSession:
    def __init__(
        self,
        store: InventoryStore,
        *,
        preferences: ScannerPreferences | None = None,
        scheduler: Scheduler | None = None,
        on_outcome: Callable[[ScanOutcome], None] | None = None,
    ) -> None:
        self.store = store
        self.preferences = preferences or ScannerPreferences()
        self._on_outcome = on_outcome
        self._lock = threading.RLock()
        self._selected_slot_id: Optional[int] = None
        self._pending: Optional[PendingConfirmation] = None
        self._last_outcome: Optional[ScanOutcome] = None
        # Slot that was selected when the buffered text was fed.
        self._input_slot_id: Optional[int] = None
        self.buffer = ScanBuffer(
            self._handle_buffered,
            scheduler=scheduler,
            delay_provider=self.preferences.get_delay,
        )

    # -------- Selection --------

    @property
    def selected_slot_id(self) -> Optional[int]:
        with self._lock:
            return self._selected_slot_id

    @property
    def pending_confirmation(self) -> Optional[PendingConfirmation]:
        with self._lock:
            return self._pending

    @property
    def last_outcome(self) -> Optional[ScanOutcome]:
        with self._lock:
            return self._last_outcome

    def select_slot(self, slot_id: int) -> int:
        """Point the scanner at ``slot_id``, dropping half-finished input."""

        self.store.get_slot(slot_id)
        with self._lock:
            self._selected_slot_id = slot_id
            self._pending = None
            self.buffer.reset()
        return slot_id

    def select_next_slot(self) -> int:
        return self.select_slot(find_next_slot(self.store.list_slots()))

    def _advance_from(self, slot_id: int) -> Optional[int]:
        """Advance only if the operator has not picked another slot meanwhile."""

        if self._selected_slot_id != slot_id:
            return self._selected_slot_id
        return self._advance()

    def _advance(self) -> int:
        next_slot_id = find_next_slot(self.store.list_slots())
        self._selected_slot_id = next_slot_id
        return next_slot_id

    # -------- Scanner input --------

    def feed(self, text: str) -> bool:
        """Pass one scanner fragment to the buffer; True when auto-submit is armed."""

        with self._lock:
            self._input_slot_id = self._selected_slot_id
            return self.buffer.on_fragment(text)

    def submit(self) -> ScanOutcome:
        """Manual submit: flush the buffer now."""

        return self.buffer.flush()

    def submit_identifier(self, identifier: str, raw_text: str | None = None) -> ScanOutcome:
        with self._lock:
            raw = raw_text if raw_text is not None else identifier
            return self._handle_scan(identifier, raw, self._selected_slot_id)

    def reset(self) -> None:
        with self._lock:
            self._pending = None
            self.buffer.reset()

    def _handle_buffered(self, identifier: str, raw_text: str) -> ScanOutcome:
        # A selection change can land between the timer taking the text and
        # this call; the scan still belongs to the slot it was fed for.
        with self._lock:
            slot_id = self._input_slot_id if raw_text else self._selected_slot_id
            return self._handle_scan(identifier, raw_text, slot_id)

    def _handle_scan(self, identifier: str, raw_text: str, slot_id: Optional[int]) -> ScanOutcome:
        with self._lock:
            if slot_id is None:
                outcome = ScanOutcome(
                    status=OutcomeStatus.REJECTED,
                    slot_id=None,
                    at=self.store.now(),
                    identifier=identifier,
                    message=MSG_NO_SLOT,
                )
                return self._record(outcome)

            outcome = process_scan(self.store, slot_id, identifier, raw_text=raw_text)
            if outcome.status is OutcomeStatus.ACCEPTED:
                outcome = _with_next(outcome, self._advance_from(slot_id))
            elif outcome.status is OutcomeStatus.CONFIRMATION_REQUIRED:
                self._pending = PendingConfirmation(
                    slot_id=slot_id,
                    identifier=identifier,
                    gamepack_number=outcome.gamepack_number or "",
                    previous_gamepack=outcome.previous_gamepack or "",
                    message=outcome.message or "",
                    warning=outcome.warning,
                )
            return self._record(outcome)

    # -------- Operator answers --------

    def resolve_confirmation(self, sold_out: bool) -> ScanOutcome:
        """Answer the pending "was the previous pack sold out?" question."""

        with self._lock:
            pending = self._pending
            if pending is None:
                raise NoPendingConfirmationError()
            self._pending = None
            decision = RequiresConfirmation(
                previous_gamepack=pending.previous_gamepack,
                message=pending.message,
                gamepack_number=pending.gamepack_number,
            )
            outcome = _resolve_replacement(
                self.store, pending.slot_id, pending.identifier, decision, sold_out, pending.warning
            )
            if outcome.status is OutcomeStatus.ACCEPTED:
                outcome = _with_next(outcome, self._advance_from(pending.slot_id))
            else:
                self.buffer.reset()
            return self._record(outcome)

    def mark_selected_empty(self) -> ScanOutcome:
        with self._lock:
            slot_id = self._selected_slot_id
            if slot_id is None:
                raise NoSlotSelectedError()
            self._pending = None
            self.buffer.reset()
            slot = self.store.mark_as_empty(slot_id)
            outcome = ScanOutcome(
                status=OutcomeStatus.MARKED_EMPTY,
                slot_id=slot_id,
                at=slot.timestamp or self.store.now(),
                identifier=slot.barcode or "",
                gamepack_number=slot.gamepack_number,
                next_slot_id=self._advance(),
            )
            return self._record(outcome)

    def state(self) -> SessionState:
        with self._lock:
            return SessionState(
                selected_slot_id=self._selected_slot_id,
                pending_text=self.buffer.pending_text,
                auto_submit_armed=self.buffer.has_pending_timer,
                scanner_delay=self.preferences.get_delay(),
                pending_confirmation=self._pending,
                last_outcome=self._last_outcome,
            )

    def _record(self, outcome: ScanOutcome) -> ScanOutcome:
        self._last_outcome = outcome
        logger.info(
            "scan.outcome",
            extra={
                "extra_data": {
                    "status": outcome.status.value,
                    "slot_id": outcome.slot_id,
                    "gamepack_number": outcome.gamepack_number,
                    "reason": outcome.message,
                }
            },
        )
        if self._on_outcome is not None:
            self._on_outcome(outcome)
        return outcome


def _with_next(outcome: ScanOutcome, next_slot_id: Optional[int]) -> ScanOutcome:
    return replace(outcome, next_slot_id=next_slot_id)


__all__ = [
    "MSG_NOT_SOLD_OUT",
    "MSG_SLOT_CHANGED",
    "MSG_NO_SLOT",
    "OutcomeStatus",
    "PendingConfirmation",
    "ScanOutcome",
    "ScanSession",
    "SessionState",
    "completeness_warning",
    "process_scan",
]
