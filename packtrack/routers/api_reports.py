from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends

from ..deps import get_store
from ..deps.auth import require_api_key
from ..schemas.report import ReviewSummary, ReviewTotals, SoldOutReport
from ..schemas.slot import SlotOut, SoldOutPackOut
from ..services.inventory_store import InventoryStore
from ..services.reporting import build_review_summary

router = APIRouter(prefix="/api/v1/reports", tags=["reports"], dependencies=[Depends(require_api_key)])


@router.get("/review", response_model=ReviewSummary)
def api_review_summary(store: InventoryStore = Depends(get_store)):
    snapshot = store.snapshot()
    summary = build_review_summary(snapshot, store.get_sold_out_packs_for_day(snapshot.today))
    return ReviewSummary(
        day=summary["day"],
        generated_at=summary["generated_at"],
        totals=ReviewTotals(**summary["totals"]),
        scanned_slots=[SlotOut.model_validate(slot) for slot in summary["scanned_slots"]],
        sold_out_today=[SoldOutPackOut.model_validate(pack) for pack in summary["sold_out_today"]],
    )


@router.get("/sold-out", response_model=SoldOutReport)
def api_sold_out_report(day: date | None = None, store: InventoryStore = Depends(get_store)):
    """Sold-out packs for ``day`` (store timezone), newest first. Defaults to today."""

    if day is None:
        day = store.snapshot().today
    packs = store.get_sold_out_packs_for_day(day)
    return SoldOutReport(day=day, packs=[SoldOutPackOut.model_validate(pack) for pack in packs])
