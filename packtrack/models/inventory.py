from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SoldOutPack:
    """A pack that left its slot after selling out.

    Records are appended by the store when an operator confirms a pack sold
    out and are never edited afterwards.
    """

    id: str
    gamepack_number: str
    game_name: str
    price: str
    type: str
    sold_out_date: datetime
    slot_id: int


__all__ = ["SoldOutPack"]
