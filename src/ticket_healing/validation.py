"""
Pre-submission validation of generated code

Only content defects block submission. Missing tooling in the environment
degrades to a warning.
"""

import os
import shutil
import logging
from typing import Callable, List, Optional

from ticket_healing.models import FileChange, ValidationResult

CODE_EXTENSIONS = ('.ts', '.tsx', '.js', '.jsx')
TYPESCRIPT_EXTENSIONS = ('.ts', '.tsx')

DELIMITERS = [
    ('{', '}', 'braces'),
    ('(', ')', 'parentheses'),
    ('[', ']', 'brackets'),
]


def check_balance(path: str, content: str) -> List[str]:
    """Literal delimiter count; not a parser, comments and strings count too"""
    errors = []
    for opening, closing, name in DELIMITERS:
        if content.count(opening) != content.count(closing):
            errors.append(f"{path}: Unmatched {name}")
    return errors


def find_tool(name: str, project_root: Optional[str] = None, which: Callable = shutil.which) -> Optional[str]:
    """Locate a CLI tool on PATH or in the project's node_modules/.bin"""
    if project_root:
        local_bin = os.path.join(project_root, 'node_modules', '.bin')
        found = which(name, path=local_bin)
        if found:
            return found
    return which(name)


def validate_generated_code(
    file_changes: List[FileChange],
    project_root: Optional[str] = None,
    which: Callable = shutil.which
) -> ValidationResult:
    """
    Validate generated file changes before creating a PR

    Args:
        file_changes: Changes that already passed the safety guard
        project_root: Optional checkout used to look up local tooling
        which: Tool lookup, replaceable in tests

    Returns:
        ValidationResult; errors block submission, warnings never do
    """
    result = ValidationResult()

    code_files = [fc for fc in file_changes if fc.path.endswith(CODE_EXTENSIONS)]
    if not code_files:
        result.warnings.append('No code files to validate')
        return result

    # 1. Syntax check (delimiter balance)
    for file_change in code_files:
        for error in check_balance(file_change.path, file_change.content):
            result.add_error(error)
    result.details['syntax_check'] = result.success

    # 2. Type check availability
    if any(fc.path.endswith(TYPESCRIPT_EXTENSIONS) for fc in code_files):
        if find_tool('tsc', project_root, which):
            result.details['type_check'] = True
            result.warnings.append('Full type checking requires project context - skipped')
        else:
            result.details['type_check'] = False
            result.warnings.append('TypeScript compiler not available - type check skipped')

    # 3. Lint availability
    if find_tool('eslint', project_root, which):
        result.details['lint_check'] = True
        result.warnings.append('Full linting requires project context - skipped')
    else:
        result.details['lint_check'] = False
        result.warnings.append('ESLint not available - lint check skipped')

    if result.errors:
        logging.warning(f"Validation failed: {result.errors}")
    return result
