"""
Error signal extraction from free-text ticket descriptions
"""

import re

from ticket_healing.models import ErrorSignal

# Each family is tried in order; the first pattern that matches wins.
STACK_TRACE_PATTERNS = [
    re.compile(r'(?:Stack ?trace|Traceback[^\n]*):?\s*\n?([\s\S]+?)(?:\n\n|\n[A-Z]|$)', re.IGNORECASE),
    re.compile(r'^\s*at\s+\S+\s+\([^():\s]+:\d+:\d+\)\s*$', re.MULTILINE),
    re.compile(r'^\s*File "[^"]+", line \d+.*$', re.MULTILINE),
]

ERROR_MESSAGE_PATTERNS = [
    re.compile(r'(?:Error message):\s*([^\n]+)', re.IGNORECASE),
    re.compile(r'(?:Error|Exception|Failed|Fails?):\s*([^\n]+)', re.IGNORECASE),
    re.compile(r'"([^"]*Error[^"]*)"|\'([^\']*Error[^\']*)\''),
]

TEST_FAILURE_PATTERNS = [
    re.compile(r'(?:Test|Spec)\s+(?:failed|failure|error)[:\s]+([^\n]+)', re.IGNORECASE),
    re.compile(r'\b(?:FAIL|FAILED)\b\s+([^\n]+)'),
    re.compile(r'\bExpected:?\s+([^\n]+)', re.IGNORECASE),
    re.compile(r'\bActual:?\s+([^\n]+)', re.IGNORECASE),
]

FILE_LINE_PATTERN = re.compile(r'([/\w\-.]+\.(?:ts|tsx|js|jsx|py)):(\d+)')

ERROR_TYPE_PATTERN = re.compile(r'\b([A-Z]\w*(?:Error|Exception))\b')
GENERIC_ERROR_TYPE_PATTERN = re.compile(r'\b(Error|Exception)\b', re.IGNORECASE)


def _first_group(match) -> str:
    for group in match.groups():
        if group:
            return group.strip()
    return match.group(0).strip()


def _stack_trace(description: str):
    for pattern in STACK_TRACE_PATTERNS:
        if pattern.groups:
            match = pattern.search(description)
            if match:
                return _first_group(match)
            continue
        # Frame patterns collect every frame, not just the first one
        frames = [m.group(0).strip() for m in pattern.finditer(description)]
        if frames:
            return "\n".join(frames)
    return None


def _first_match(patterns, description: str):
    for pattern in patterns:
        match = pattern.search(description)
        if match:
            return _first_group(match)
    return None


def extract_error_signal(description: str) -> ErrorSignal:
    """
    Mine error details from a ticket description

    Best effort: any field may be missing and no input raises.
    """
    signal = ErrorSignal()
    if not description:
        return signal

    signal.stack_trace = _stack_trace(description)
    signal.error_message = _first_match(ERROR_MESSAGE_PATTERNS, description)
    signal.test_failure = _first_match(TEST_FAILURE_PATTERNS, description)

    file_match = FILE_LINE_PATTERN.search(description)
    if file_match:
        signal.file_path = file_match.group(1)
        signal.line_number = int(file_match.group(2))

    type_match = ERROR_TYPE_PATTERN.search(description) or GENERIC_ERROR_TYPE_PATTERN.search(description)
    if type_match:
        signal.error_type = type_match.group(1)

    return signal


def format_error_signal(signal: ErrorSignal) -> str:
    """Render extracted error details as a prompt block"""
    if not (signal.error_message or signal.stack_trace or signal.test_failure):
        return ''

    formatted = '\n---\nError Information:\n\n'

    if signal.error_type:
        formatted += f"Error Type: {signal.error_type}\n"

    if signal.error_message:
        formatted += f"Error Message: {signal.error_message}\n"

    if signal.file_path and signal.line_number:
        formatted += f"Location: {signal.file_path}:{signal.line_number}\n"

    if signal.stack_trace:
        formatted += f"\nStack Trace:\n{signal.stack_trace}\n"

    if signal.test_failure:
        formatted += f"\nTest Failure:\n{signal.test_failure}\n"

    formatted += '---\n'
    return formatted
