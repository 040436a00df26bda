"""
Safety guard applied to file changes before anything is committed
"""

import re
import logging
from typing import List, Optional

from ticket_healing import audit
from ticket_healing.errors import SafetyGuardError
from ticket_healing.models import FileChange, GuardResult

BLOCKED_PATTERNS = [
    '.github/',
    'infra/',
    'auth/',
    'secrets',
    '.env',
    'package-lock.json',
    'yarn.lock',
    'pnpm-lock.yaml',
]

MAX_FILE_CHANGES = 3

ALLOWED_EXTENSIONS = re.compile(r'\.(ts|tsx|js|jsx|json|md|css|scss|html)$')


def is_path_blocked(path: str) -> bool:
    lower_path = path.lower()
    return any(pattern in lower_path for pattern in BLOCKED_PATTERNS)


def is_path_invalid(path: str) -> bool:
    if '..' in path or path.startswith('/'):
        return True
    return not ALLOWED_EXTENSIONS.search(path)


def evaluate_file_changes(file_changes: List[FileChange]) -> GuardResult:
    """
    Evaluate file changes against the safety rules

    Rules run in order and the first failing rule decides:
    change count, blocked paths, then path format.
    """
    if len(file_changes) > MAX_FILE_CHANGES:
        return GuardResult(
            allowed=False,
            reason=f"Exceeds maximum file change limit of {MAX_FILE_CHANGES}",
            blocked_files=[fc.path for fc in file_changes],
        )

    blocked = [fc.path for fc in file_changes if is_path_blocked(fc.path)]
    if blocked:
        return GuardResult(
            allowed=False,
            reason="Contains files in blocked paths",
            blocked_files=blocked,
        )

    invalid = [fc.path for fc in file_changes if is_path_invalid(fc.path)]
    if invalid:
        return GuardResult(
            allowed=False,
            reason="Contains invalid file paths",
            blocked_files=invalid,
        )

    return GuardResult(allowed=True)


def enforce_file_changes(file_changes: List[FileChange], ticket_key: Optional[str] = None) -> GuardResult:
    """Evaluate the guard and raise SafetyGuardError on rejection"""
    result = evaluate_file_changes(file_changes)
    if not result.allowed:
        logging.warning(f"Safety guard blocked changes: {result.reason} {result.blocked_files}")
        if ticket_key:
            audit.log_guard_blocked(ticket_key, result.reason, result.blocked_files)
        raise SafetyGuardError(result)
    return result
