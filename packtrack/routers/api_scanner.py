"""Scanner station endpoints.

A scanner terminal streams raw keyboard-wedge fragments to ``/fragments``;
the session buffers them and auto-submits after the configured quiet delay.
Terminals poll ``/state`` for the result, or call ``/submit`` to flush right
away. Sold-out questions are answered through ``/confirm``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ..core.barcodes import analyze, check_scan_completeness, extract_identifier
from ..deps import get_scan_session
from ..deps.auth import require_api_key
from ..schemas.scan import (
    AnalyzeIn,
    BarcodeAnalysisOut,
    ConfirmIn,
    ControlCharOut,
    FragmentAccepted,
    FragmentIn,
    ScanOutcomeOut,
    ScannerDelay,
    SelectSlotIn,
    SessionStateOut,
)
from ..services.scan_session import ScanSession

router = APIRouter(prefix="/api/v1/scanner", tags=["scanner"], dependencies=[Depends(require_api_key)])


@router.get("/state", response_model=SessionStateOut)
def api_scanner_state(session: ScanSession = Depends(get_scan_session)):
    return SessionStateOut.model_validate(session.state())


@router.post("/select", response_model=SessionStateOut)
def api_select_slot(payload: SelectSlotIn, session: ScanSession = Depends(get_scan_session)):
    session.select_slot(payload.slot_id)
    return SessionStateOut.model_validate(session.state())


@router.post("/select-next", response_model=SessionStateOut)
def api_select_next_slot(session: ScanSession = Depends(get_scan_session)):
    session.select_next_slot()
    return SessionStateOut.model_validate(session.state())


@router.post("/fragments", response_model=FragmentAccepted, status_code=202)
def api_scanner_fragment(payload: FragmentIn, session: ScanSession = Depends(get_scan_session)):
    armed = session.feed(payload.text)
    return FragmentAccepted(auto_submit_armed=armed, pending_length=len(session.buffer.pending_text))


@router.post("/submit", response_model=ScanOutcomeOut)
def api_scanner_submit(session: ScanSession = Depends(get_scan_session)):
    return ScanOutcomeOut.model_validate(session.submit())


@router.post("/confirm", response_model=ScanOutcomeOut)
def api_scanner_confirm(payload: ConfirmIn, session: ScanSession = Depends(get_scan_session)):
    return ScanOutcomeOut.model_validate(session.resolve_confirmation(payload.sold_out))


@router.post("/empty", response_model=ScanOutcomeOut)
def api_scanner_mark_empty(session: ScanSession = Depends(get_scan_session)):
    return ScanOutcomeOut.model_validate(session.mark_selected_empty())


@router.post("/reset", response_model=SessionStateOut)
def api_scanner_reset(session: ScanSession = Depends(get_scan_session)):
    session.reset()
    return SessionStateOut.model_validate(session.state())


@router.get("/delay", response_model=ScannerDelay)
def api_get_scanner_delay(session: ScanSession = Depends(get_scan_session)):
    return ScannerDelay(delay_ms=session.preferences.get_delay())


@router.put("/delay", response_model=ScannerDelay)
def api_set_scanner_delay(payload: ScannerDelay, session: ScanSession = Depends(get_scan_session)):
    session.preferences.set_delay(payload.delay_ms)
    return ScannerDelay(delay_ms=session.preferences.get_delay())


@router.post("/analyze", response_model=BarcodeAnalysisOut)
def api_analyze_scan(payload: AnalyzeIn):
    analysis = analyze(payload.raw)
    completeness = check_scan_completeness(payload.raw)
    return BarcodeAnalysisOut(
        raw_length=analysis.raw_length,
        cleaned_barcode=analysis.cleaned_barcode,
        cleaned_length=analysis.cleaned_length,
        char_codes=analysis.char_codes,
        control_chars=[ControlCharOut(code=code, position=position) for code, position in analysis.control_chars],
        identifier=extract_identifier(payload.raw),
        is_complete=completeness.is_complete,
        completeness_message=completeness.message,
    )
