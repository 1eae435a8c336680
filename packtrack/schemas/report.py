from __future__ import annotations

from datetime import date, datetime
from typing import List

from pydantic import BaseModel

from .slot import SlotOut, SoldOutPackOut


class ReviewTotals(BaseModel):
    slots_total: int
    scanned_total: int
    empty_total: int
    explicitly_empty_total: int
    untouched_total: int
    pending_total: int
    sold_out_today_total: int


class ReviewSummary(BaseModel):
    day: date
    generated_at: datetime
    totals: ReviewTotals
    scanned_slots: List[SlotOut]
    sold_out_today: List[SoldOutPackOut]


class SoldOutReport(BaseModel):
    day: date
    packs: List[SoldOutPackOut]
