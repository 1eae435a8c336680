"""Scanner payload helpers explained for newcomers.

Keyboard-wedge scanners "type" their payload into whatever has focus, so the
service receives raw text sprinkled with carriage returns, tabs and sometimes
prefix bytes. These functions reveal *what* we keep (ASCII digits), *when* we
apply the rules (every time a scan is flushed), *why* the offsets matter (the
ticket identifier is only part of the printed barcode), and *how* the code
arrives at the canonical 14-digit identifier.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Tuple

__all__ = [
    "BarcodeAnalysis",
    "FRAME_LENGTH",
    "GAMEPACK_LENGTH",
    "IDENTIFIER_LENGTH",
    "SENTINEL_BARCODE",
    "SENTINEL_GAMEPACK",
    "ScanCompleteness",
    "analyze",
    "check_scan_completeness",
    "clean_digits",
    "extract_identifier",
    "gamepack_from_barcode",
]


# Number of meaningful digits at the front of a full scanner frame.
IDENTIFIER_LENGTH = 14
# Fixed payload length emitted by the lottery pack scanners.
FRAME_LENGTH = 24
# Leading digits of an identifier that name the pack itself.
GAMEPACK_LENGTH = 11

# All-zero values meaning "operator confirmed this slot holds nothing".
SENTINEL_BARCODE = "0" * IDENTIFIER_LENGTH
SENTINEL_GAMEPACK = "0" * GAMEPACK_LENGTH

# ``\D`` would also keep non-ASCII digits such as "٣", which scanners never send.
_NON_DIGIT_RE = re.compile(r"[^0-9]")


def clean_digits(raw: str | None) -> str:
    """Drop every character that is not an ASCII digit, preserving order."""

    if not raw:
        return ""
    return _NON_DIGIT_RE.sub("", raw)


def extract_identifier(raw: str | None) -> str:
    """Return the canonical ticket identifier hidden inside a raw scan.

    * 24 digits or more: keep the last 24 (a full frame, ignoring any leading
      noise) and return the first 14 of that window. The trailing 10 digits of
      the frame are a suffix we do not need.
    * 15 to 23 digits: return the last 14.
    * Anything shorter is returned untouched; callers treat it as incomplete.

    Taking the *last* 24 rather than the first 24 mirrors what the deployed
    scanners emit; it is a scanner-specific rule, not a barcode standard.
    """

    digits = clean_digits(raw)
    if len(digits) >= FRAME_LENGTH:
        return digits[-FRAME_LENGTH:][:IDENTIFIER_LENGTH]
    if len(digits) > IDENTIFIER_LENGTH:
        return digits[-IDENTIFIER_LENGTH:]
    return digits


def gamepack_from_barcode(barcode: str) -> str:
    """The first 11 digits, or the whole string when it is shorter."""

    return barcode[:GAMEPACK_LENGTH] if len(barcode) >= GAMEPACK_LENGTH else barcode


def _utf16_units(char: str) -> Tuple[int, ...]:
    code = ord(char)
    if code < 0x10000:
        return (code,)
    code -= 0x10000
    return (0xD800 + (code >> 10), 0xDC00 + (code & 0x3FF))


@dataclass(frozen=True)
class BarcodeAnalysis:
    """Operator-facing breakdown of one raw scan."""

    raw_length: int
    cleaned_barcode: str
    cleaned_length: int
    char_codes: List[int] = field(default_factory=list)
    control_chars: List[Tuple[int, int]] = field(default_factory=list)


def analyze(raw: str | None) -> BarcodeAnalysis:
    """Describe a raw scan the way the scanner debug screen shows it.

    Lengths count UTF-16 code units and each character reports the code of its
    first unit, so the numbers match what browser-based scanner test pages
    display. Control characters are codes below 32 plus DEL (127), reported as
    ``(code, position)`` pairs.
    """

    raw = raw or ""
    cleaned = clean_digits(raw)
    char_codes: List[int] = []
    control_chars: List[Tuple[int, int]] = []
    raw_length = 0
    for position, char in enumerate(raw):
        units = _utf16_units(char)
        raw_length += len(units)
        code = units[0]
        char_codes.append(code)
        if code < 32 or code == 127:
            control_chars.append((code, position))
    return BarcodeAnalysis(
        raw_length=raw_length,
        cleaned_barcode=cleaned,
        cleaned_length=len(cleaned),
        char_codes=char_codes,
        control_chars=control_chars,
    )


@dataclass(frozen=True)
class ScanCompleteness:
    is_valid: bool
    is_complete: bool = False
    message: str | None = None


def check_scan_completeness(raw: str | None) -> ScanCompleteness:
    """Judge whether a raw scan looks like a whole frame.

    A short scan is still *valid* (the operator may have typed the 14-digit
    identifier by hand); it is only flagged as possibly incomplete.
    """

    if not raw or not raw.strip():
        return ScanCompleteness(is_valid=False, message="Barcode is empty")

    cleaned = clean_digits(raw)
    if not cleaned:
        return ScanCompleteness(is_valid=False, message="Barcode must contain numbers")

    if len(cleaned) < IDENTIFIER_LENGTH:
        return ScanCompleteness(
            is_valid=True,
            is_complete=False,
            message=f"Barcode may be incomplete ({len(cleaned)}/{IDENTIFIER_LENGTH} digits minimum)",
        )

    if len(cleaned) < FRAME_LENGTH:
        return ScanCompleteness(
            is_valid=True,
            is_complete=False,
            message=f"Barcode may be incomplete ({len(cleaned)}/{FRAME_LENGTH} digits expected)",
        )

    return ScanCompleteness(is_valid=True, is_complete=True)
