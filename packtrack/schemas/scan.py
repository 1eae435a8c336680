"""Pydantic schemas for the scanner station endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..services.scan_session import OutcomeStatus

SCANNER_DELAY_MIN_MS = 100
SCANNER_DELAY_MAX_MS = 1000


class ScanOutcomeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


class PendingConfirmationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slot_id: int
    identifier: str
    gamepack_number: str
    previous_gamepack: str
    message: str
    warning: Optional[str] = None


class SessionStateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    selected_slot_id: Optional[int]
    pending_text: str
    auto_submit_armed: bool
    scanner_delay: int
    pending_confirmation: Optional[PendingConfirmationOut] = None
    last_outcome: Optional[ScanOutcomeOut] = None


class FragmentIn(BaseModel):
    text: str = Field(max_length=256)


class FragmentAccepted(BaseModel):
    auto_submit_armed: bool
    pending_length: int


class SelectSlotIn(BaseModel):
    slot_id: int


class ConfirmIn(BaseModel):
    sold_out: bool


class ScannerDelay(BaseModel):
    delay_ms: int = Field(ge=SCANNER_DELAY_MIN_MS, le=SCANNER_DELAY_MAX_MS)


class AnalyzeIn(BaseModel):
    raw: str = Field(max_length=1024)


class ControlCharOut(BaseModel):
    code: int
    position: int


class BarcodeAnalysisOut(BaseModel):
    raw_length: int
    cleaned_barcode: str
    cleaned_length: int
    char_codes: List[int]
    control_chars: List[ControlCharOut]
    identifier: str
    is_complete: bool
    completeness_message: Optional[str] = None
