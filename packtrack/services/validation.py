"""Decide what to do with an extracted identifier for a given slot.

``validate_scan`` never mutates anything and never raises: it inspects a
snapshot and returns one of three decisions. Callers apply the consequences
(mark the old pack sold out, record the new one) themselves.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from ..core.barcodes import GAMEPACK_LENGTH, IDENTIFIER_LENGTH, SENTINEL_GAMEPACK
from .inventory_store import InventorySnapshot

MSG_EMPTY = "Please enter a barcode"
MSG_TOO_SHORT = f"Barcode must be at least {IDENTIFIER_LENGTH} digits"
MSG_NOT_NUMERIC = "Barcode must contain only numbers"


@dataclass(frozen=True)
class Accept:
    gamepack_number: str

    @property
    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class Reject:
    reason: str
    gamepack_number: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return False


@dataclass(frozen=True)
class RequiresConfirmation:
    previous_gamepack: str
    message: str
    gamepack_number: str

    @property
    def is_valid(self) -> bool:
        return False


ScanDecision = Union[Accept, Reject, RequiresConfirmation]


def confirmation_message(previous_gamepack: str, slot_id: int) -> str:
    return f"Was the previous pack ({previous_gamepack}) in Slot {slot_id} completely sold out?"


def duplicate_message(gamepack_number: str) -> str:
    return f"This gamepack ({gamepack_number}) is already active in another slot today."


def _is_ascii_digits(value: str) -> bool:
    # str.isdigit() accepts superscripts and other Unicode digits.
    return value.isascii() and value.isdigit()


def validate_scan(identifier: str, slot_id: int, snapshot: InventorySnapshot) -> ScanDecision:
    """Run the format checks, then the business rules, stopping at the first hit."""

    if not identifier or not identifier.strip():
        return Reject(MSG_EMPTY)
    if len(identifier) < IDENTIFIER_LENGTH:
        return Reject(MSG_TOO_SHORT)
    if not _is_ascii_digits(identifier):
        return Reject(MSG_NOT_NUMERIC)

    gamepack_number = identifier[:GAMEPACK_LENGTH]

    # The empty-slot marker bypasses every pack rule.
    if gamepack_number == SENTINEL_GAMEPACK:
        return Accept(gamepack_number)

    previous = snapshot.get_previous_gamepack(slot_id)
    if previous and previous != SENTINEL_GAMEPACK and previous != gamepack_number:
        return RequiresConfirmation(
            previous_gamepack=previous,
            message=confirmation_message(previous, slot_id),
            gamepack_number=gamepack_number,
        )

    if not snapshot.check_gamepack_uniqueness(gamepack_number, exclude_slot_id=slot_id):
        return Reject(duplicate_message(gamepack_number), gamepack_number=gamepack_number)

    return Accept(gamepack_number)


__all__ = [
    "Accept",
    "MSG_EMPTY",
    "MSG_NOT_NUMERIC",
    "MSG_TOO_SHORT",
    "Reject",
    "RequiresConfirmation",
    "ScanDecision",
    "confirmation_message",
    "duplicate_message",
    "validate_scan",
]
