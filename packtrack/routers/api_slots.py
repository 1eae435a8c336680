from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ..core.barcodes import extract_identifier
from ..deps import get_store
from ..deps.auth import require_api_key
from ..schemas.scan import ScanOutcomeOut
from ..schemas.slot import NextSlotOut, ScanRequest, SlotOut, SlotSoldOutResult, SoldOutPackOut
from ..services.inventory_store import InventoryStore
from ..services.navigator import find_next_slot
from ..services.scan_session import process_scan

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/slots", tags=["slots"], dependencies=[Depends(require_api_key)])


@router.get("", response_model=list[SlotOut])
def api_list_slots(store: InventoryStore = Depends(get_store)):
    return [SlotOut.model_validate(slot) for slot in store.list_slots()]


@router.get("/next", response_model=NextSlotOut)
def api_next_slot(store: InventoryStore = Depends(get_store)):
    return NextSlotOut(slot_id=find_next_slot(store.list_slots()))


@router.get("/{slot_id}", response_model=SlotOut)
def api_get_slot(slot_id: int, store: InventoryStore = Depends(get_store)):
    return SlotOut.model_validate(store.get_slot(slot_id))


@router.post("/{slot_id}/scan", response_model=ScanOutcomeOut)
def api_scan_slot(slot_id: int, payload: ScanRequest, store: InventoryStore = Depends(get_store)):
    """Validate and record a complete scan for one slot.

    The raw barcode goes through the same digit extraction as scanner input,
    so callers may send the scanner payload as-is.
    """

    identifier = extract_identifier(payload.barcode)
    outcome = process_scan(
        store,
        slot_id,
        identifier,
        raw_text=payload.barcode,
        confirm_sold_out=payload.confirm_sold_out,
    )
    logger.info(
        "slot.scan_processed",
        extra={"extra_data": {"slot_id": slot_id, "status": outcome.status.value}},
    )
    return ScanOutcomeOut.model_validate(outcome)


@router.post("/{slot_id}/empty", response_model=SlotOut)
def api_mark_empty(slot_id: int, store: InventoryStore = Depends(get_store)):
    return SlotOut.model_validate(store.mark_as_empty(slot_id))


@router.post("/{slot_id}/sold-out", response_model=SlotSoldOutResult)
def api_mark_sold_out(slot_id: int, store: InventoryStore = Depends(get_store)):
    pack = store.mark_as_sold_out(slot_id)
    return SlotSoldOutResult(
        slot=SlotOut.model_validate(store.get_slot(slot_id)),
        sold_out_pack=SoldOutPackOut.model_validate(pack) if pack else None,
    )


@router.post("/{slot_id}/pending", response_model=SlotOut)
def api_mark_pending(slot_id: int, store: InventoryStore = Depends(get_store)):
    return SlotOut.model_validate(store.mark_pending(slot_id))


@router.post("/{slot_id}/clear", response_model=SlotOut)
def api_clear_slot(slot_id: int, store: InventoryStore = Depends(get_store)):
    return SlotOut.model_validate(store.clear_slot(slot_id))
