from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.slot import SlotStatus


class SlotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: SlotStatus
    barcode: Optional[str] = None
    gamepack_number: Optional[str] = None
    sold_out: bool = False
    timestamp: Optional[datetime] = None
    is_explicitly_empty: bool = False


class NextSlotOut(BaseModel):
    slot_id: int


class SoldOutPackOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    gamepack_number: str
    game_name: str
    price: str
    type: str
    sold_out_date: datetime
    slot_id: int


class SlotSoldOutResult(BaseModel):
    slot: SlotOut
    sold_out_pack: Optional[SoldOutPackOut] = None


class ScanRequest(BaseModel):
    barcode: str = Field(max_length=512)
    confirm_sold_out: Optional[bool] = None
