"""End-to-end scan workflow against the store, driven by a fake timer."""

import pytest

from packtrack.core.errors import NoPendingConfirmationError, NoSlotSelectedError, SlotNotFoundError
from packtrack.models.slot import SlotStatus
from packtrack.services.preferences import ScannerPreferences
from packtrack.services.scan_session import (
    MSG_NO_SLOT,
    MSG_NOT_SOLD_OUT,
    MSG_SLOT_CHANGED,
    OutcomeStatus,
    ScanSession,
    process_scan,
)

PACK_A = "12345678901234"
PACK_B = "23456000001111"
FRAME_A = "123456789012340000000000"


@pytest.fixture()
def outcomes():
    return []


@pytest.fixture()
def session(store, scheduler, outcomes):
    return ScanSession(
        store,
        preferences=ScannerPreferences(None),
        scheduler=scheduler,
        on_outcome=outcomes.append,
    )


def test_fragmented_scan_is_recorded_and_selection_advances(session, store, scheduler, outcomes):
    session.select_slot(1)
    session.feed("12345")
    session.feed("678901234\n")
    assert session.state().auto_submit_armed

    scheduler.advance_ms(500)

    assert len(outcomes) == 1
    outcome = session.last_outcome
    assert outcome.status is OutcomeStatus.ACCEPTED
    assert outcome.slot_id == 1
    assert outcome.gamepack_number == "12345678901"
    assert outcome.next_slot_id == 2
    assert outcome.warning == "Barcode may be incomplete (14/24 digits expected)"
    assert store.get_slot(1).barcode == PACK_A
    assert session.selected_slot_id == 2
    assert session.state().pending_text == ""


def test_full_frame_has_no_completeness_warning(session, scheduler):
    session.select_slot(1)
    session.feed(FRAME_A + "\r")
    scheduler.advance_ms(500)
    assert session.last_outcome.status is OutcomeStatus.ACCEPTED
    assert session.last_outcome.warning is None


def test_manual_submit_returns_outcome(session, store):
    session.select_slot(3)
    session.feed(PACK_A)
    outcome = session.submit()
    assert outcome.status is OutcomeStatus.ACCEPTED
    assert store.get_slot(3).status is SlotStatus.SCANNED


def test_rejected_scan_keeps_selection(session, store):
    session.select_slot(2)
    session.feed("12345")
    outcome = session.submit()
    assert outcome.status is OutcomeStatus.REJECTED
    assert outcome.message == "Barcode must be at least 14 digits"
    assert session.selected_slot_id == 2
    assert store.get_slot(2).is_untouched


def test_scan_without_selection_is_rejected(session, outcomes):
    outcome = session.submit_identifier(PACK_A)
    assert outcome.status is OutcomeStatus.REJECTED
    assert outcome.message == MSG_NO_SLOT
    assert outcome.slot_id is None
    assert outcomes == [outcome]


def test_replacement_confirmed_sold_out(session, store):
    store.update_slot(1, PACK_A)
    session.select_slot(1)

    asked = session.submit_identifier(PACK_B)
    assert asked.status is OutcomeStatus.CONFIRMATION_REQUIRED
    assert asked.previous_gamepack == "12345678901"
    assert session.pending_confirmation.slot_id == 1
    assert store.get_slot(1).barcode == PACK_A

    outcome = session.resolve_confirmation(True)
    assert outcome.status is OutcomeStatus.ACCEPTED
    assert outcome.sold_out_pack_id is not None
    assert outcome.next_slot_id == 2
    assert session.pending_confirmation is None

    slot = store.get_slot(1)
    assert slot.barcode == PACK_B
    assert slot.sold_out is False
    [pack] = store.list_sold_out_packs()
    assert pack.gamepack_number == "12345678901"
    assert pack.game_name == "Lucky 7s"


def test_replacement_declined_keeps_previous_pack(session, store):
    store.update_slot(1, PACK_A)
    session.select_slot(1)
    session.submit_identifier(PACK_B)

    outcome = session.resolve_confirmation(False)
    assert outcome.status is OutcomeStatus.REJECTED
    assert outcome.message == MSG_NOT_SOLD_OUT
    assert session.selected_slot_id == 1
    assert store.get_slot(1).barcode == PACK_A
    assert store.list_sold_out_packs() == []


def test_confirmed_replacement_still_rejects_duplicate(session, store):
    store.update_slot(1, PACK_A)
    store.update_slot(2, PACK_B)
    session.select_slot(2)
    assert session.submit_identifier(PACK_A).status is OutcomeStatus.CONFIRMATION_REQUIRED

    outcome = session.resolve_confirmation(True)
    assert outcome.status is OutcomeStatus.REJECTED
    assert "already active in another slot" in outcome.message
    assert store.get_slot(2).barcode == PACK_B
    assert store.list_sold_out_packs() == []


def test_resolve_without_pending_question_raises(session):
    with pytest.raises(NoPendingConfirmationError):
        session.resolve_confirmation(True)


def test_selecting_a_slot_drops_pending_question_and_buffer(session, store):
    store.update_slot(1, PACK_A)
    session.select_slot(1)
    session.submit_identifier(PACK_B)
    session.feed("999")

    session.select_slot(4)
    state = session.state()
    assert state.pending_confirmation is None
    assert state.pending_text == ""
    assert state.selected_slot_id == 4


def test_select_unknown_slot_raises(session):
    with pytest.raises(SlotNotFoundError):
        session.select_slot(42)


def test_select_next_slot_uses_navigator(session, store):
    store.update_slot(1, PACK_A)
    store.mark_pending(5)
    assert session.select_next_slot() == 5


def test_mark_selected_empty(session, store):
    session.select_slot(3)
    outcome = session.mark_selected_empty()
    assert outcome.status is OutcomeStatus.MARKED_EMPTY
    assert outcome.gamepack_number == "00000000000"
    assert outcome.next_slot_id == 1
    assert store.get_slot(3).is_explicitly_empty


def test_mark_empty_without_selection_raises(session):
    with pytest.raises(NoSlotSelectedError):
        session.mark_selected_empty()


def test_state_reports_delay_from_preferences(store, scheduler):
    preferences = ScannerPreferences(None, default_delay=250)
    session = ScanSession(store, preferences=preferences, scheduler=scheduler)
    session.select_slot(1)
    session.feed(PACK_A + "\n")
    assert scheduler.last.due == pytest.approx(0.25)
    assert session.state().scanner_delay == 250


def test_reset_clears_buffer_without_submitting(session, scheduler, outcomes):
    session.select_slot(1)
    session.feed(PACK_A + "\n")
    session.reset()
    scheduler.advance_ms(1000)
    assert outcomes == []


def test_process_scan_answers_confirmation_up_front(store):
    store.update_slot(7, PACK_A)
    outcome = process_scan(store, 7, PACK_B, confirm_sold_out=True)
    assert outcome.status is OutcomeStatus.ACCEPTED
    assert store.get_slot(7).barcode == PACK_B
    assert len(store.list_sold_out_packs()) == 1


def test_process_scan_unknown_slot_raises(store):
    with pytest.raises(SlotNotFoundError):
        process_scan(store, 99, PACK_A)


def test_sold_out_answer_is_void_once_slot_changed(session, store):
    session.select_slot(4)
    assert session.submit_identifier(PACK_A).status is OutcomeStatus.ACCEPTED
    session.select_slot(4)
    assert session.submit_identifier(PACK_B).status is OutcomeStatus.CONFIRMATION_REQUIRED

    # Another station replaces the pack before the operator answers.
    process_scan(store, 4, "34567000002222", confirm_sold_out=True)

    outcome = session.resolve_confirmation(True)
    assert outcome.status is OutcomeStatus.REJECTED
    assert outcome.message == MSG_SLOT_CHANGED
    assert outcome.previous_gamepack == "34567000002"
    assert [pack.gamepack_number for pack in store.list_sold_out_packs()] == ["12345678901"]
    assert store.get_slot(4).barcode == "34567000002222"
    assert store.get_slot(4).sold_out is False


def test_sold_out_answer_is_void_once_slot_cleared(session, store):
    store.update_slot(2, PACK_A)
    session.select_slot(2)
    session.submit_identifier(PACK_B)
    store.clear_slot(2)

    outcome = session.resolve_confirmation(True)
    assert outcome.message == MSG_SLOT_CHANGED
    assert store.list_sold_out_packs() == []
    assert store.get_slot(2).is_untouched


def test_flushed_scan_stays_with_slot_it_was_fed_for(session, store, scheduler):
    session.select_slot(1)
    session.feed(PACK_A + "\n")

    deliver = session.buffer._on_submit

    def select_during_flush(identifier, raw_text):
        # Operator picks another slot after the timer took the text.
        session.select_slot(6)
        return deliver(identifier, raw_text)

    session.buffer._on_submit = select_during_flush
    scheduler.advance_ms(500)

    assert store.get_slot(1).barcode == PACK_A
    assert store.get_slot(6).is_untouched
    assert session.last_outcome.slot_id == 1
    assert session.last_outcome.next_slot_id == 6
    assert session.selected_slot_id == 6


def test_empty_manual_submit_after_reselect_targets_new_slot(session):
    session.select_slot(1)
    session.feed("123")
    session.select_slot(3)
    outcome = session.submit()
    assert outcome.slot_id == 3
    assert outcome.message == "Please enter a barcode"
