from __future__ import annotations

from ticket_healing.error_extractor import extract_error_signal, format_error_signal
from ticket_healing.models import ErrorSignal


def test_extracts_type_and_message_from_error_line() -> None:
    signal = extract_error_signal("TypeError: cannot read x")

    assert signal.error_type == "TypeError"
    assert signal.error_message == "cannot read x"
    assert signal.has_signal


def test_extracts_stack_frames_and_location() -> None:
    description = (
        "Checkout breaks.\n"
        "ReferenceError: total is not defined\n"
        "    at computeTotal (src/cart/total.ts:42:13)\n"
        "    at render (src/cart/view.tsx:10:5)\n"
    )

    signal = extract_error_signal(description)

    assert signal.error_type == "ReferenceError"
    assert signal.stack_trace.splitlines() == [
        "at computeTotal (src/cart/total.ts:42:13)",
        "at render (src/cart/view.tsx:10:5)",
    ]
    assert signal.file_path == "src/cart/total.ts"
    assert signal.line_number == 42


def test_extracts_test_failure() -> None:
    signal = extract_error_signal("FAIL src/parser.test.ts\nExpected: 3\nReceived: 4")

    assert signal.test_failure == "src/parser.test.ts"


def test_expected_is_used_when_no_fail_marker() -> None:
    signal = extract_error_signal("Expected 3 items but saw 2")

    assert signal.test_failure == "3 items but saw 2"


def test_plain_description_yields_empty_signal() -> None:
    signal = extract_error_signal("The button colour looks off on mobile")

    assert signal == ErrorSignal()
    assert not signal.has_signal
    assert format_error_signal(signal) == ""


def test_format_error_signal_renders_all_sections() -> None:
    signal = ErrorSignal(
        error_type="TypeError",
        error_message="cannot read x",
        stack_trace="at f (a.ts:1:2)",
        file_path="a.ts",
        line_number=1,
    )

    block = format_error_signal(signal)

    assert "Error Type: TypeError" in block
    assert "Error Message: cannot read x" in block
    assert "Location: a.ts:1" in block
    assert "Stack Trace:\nat f (a.ts:1:2)" in block
