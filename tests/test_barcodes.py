"""Digit extraction and scan diagnostics."""

import pytest

from packtrack.core.barcodes import (
    SENTINEL_BARCODE,
    analyze,
    check_scan_completeness,
    clean_digits,
    extract_identifier,
    gamepack_from_barcode,
)


def test_clean_digits_keeps_ascii_digits_in_order():
    assert clean_digits("\x02AB12-34 5\r\n6\t") == "123456"
    assert clean_digits("") == ""
    assert clean_digits(None) == ""
    # Arabic-Indic digits are not scanner output and are dropped.
    assert clean_digits("12٣٥4") == "124"


def test_extract_identifier_empty_input():
    assert extract_identifier("") == ""


def test_extract_identifier_full_frame_takes_first_14_of_last_24():
    raw = "12345000001234500001299988"
    digits = clean_digits(raw)
    assert len(digits) == 26
    assert extract_identifier(raw) == digits[-24:][:14]
    assert extract_identifier(raw) == "34500000123450"


def test_extract_identifier_ignores_leading_noise_and_terminators():
    frame = "123456789012340000000000"
    assert extract_identifier("\x1b]99" + frame + "\r\n") == "12345678901234"


def test_extract_identifier_between_14_and_24_digits_keeps_last_14():
    assert extract_identifier("123456789012345678") == "56789012345678"


def test_extract_identifier_short_input_is_returned_unchanged():
    assert extract_identifier("12-34 56") == "123456"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "abc",
        "1" * 13,
        "1" * 14,
        "9" * 23,
        "8" * 24,
        "x7" * 40,
        "\r\n123456789012345678901234567890\r\n",
    ],
)
def test_extract_identifier_is_digits_only_and_at_most_14(raw):
    identifier = extract_identifier(raw)
    assert identifier == clean_digits(identifier)
    assert len(identifier) <= 14
    # Already-extracted identifiers are a fixed point.
    assert extract_identifier(identifier) == identifier


def test_gamepack_from_barcode():
    assert gamepack_from_barcode("12345678901234") == "12345678901"
    assert gamepack_from_barcode("1234") == "1234"
    assert gamepack_from_barcode(SENTINEL_BARCODE) == "00000000000"


def test_analyze_reports_codes_and_control_characters():
    result = analyze("12\r\n3\x7f")
    assert result.raw_length == 6
    assert result.cleaned_barcode == "123"
    assert result.cleaned_length == 3
    assert result.char_codes == [49, 50, 13, 10, 51, 127]
    assert result.control_chars == [(13, 2), (10, 3), (127, 5)]


def test_analyze_counts_utf16_units_for_astral_characters():
    result = analyze("1\U0001F600")
    assert result.raw_length == 3
    assert result.char_codes == [49, 0xD83D]
    assert result.control_chars == []


@pytest.mark.parametrize(
    "raw, is_valid, is_complete, message",
    [
        ("", False, False, "Barcode is empty"),
        ("   ", False, False, "Barcode is empty"),
        ("abc", False, False, "Barcode must contain numbers"),
        ("1234567", True, False, "Barcode may be incomplete (7/14 digits minimum)"),
        ("1" * 20, True, False, "Barcode may be incomplete (20/24 digits expected)"),
        ("1" * 24 + "\r", True, True, None),
    ],
)
def test_check_scan_completeness(raw, is_valid, is_complete, message):
    result = check_scan_completeness(raw)
    assert result.is_valid is is_valid
    assert result.is_complete is is_complete
    assert result.message == message
