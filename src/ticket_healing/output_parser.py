"""
Turn raw model output into file changes

The model gives no format guarantee, so parsing is a tolerant scan over lines:

- "File: <path>" at column 0 (optionally "## File: <path>") or a fence
  carrying a path ("```ts:lib/a.ts") opens a new file, flushing the
  previous one
- bare fence lines are dropped
- a code-looking line before any header opens DEFAULT_PATH
- if nothing was produced from non-empty output, the whole output becomes
  FALLBACK_PATH

Paths that escape the repository or carry an unsupported extension are
dropped with a warning.
"""

import re
import logging
from typing import List, Optional

from ticket_healing.models import FileChange

DEFAULT_PATH = 'lib/fix.ts'
FALLBACK_PATH = 'lib/ai-fix.ts'

ALLOWED_EXTENSIONS = ('ts', 'tsx', 'js', 'jsx', 'json', 'md')

# Headers start at column 0; an indented or comment-prefixed "File:" belongs to the code
FILE_HEADER = re.compile(r'^(?:#{1,2}[ \t]*)?File:\s*(.+?)\s*$', re.IGNORECASE)
FENCE_WITH_PATH = re.compile(r'^```(?:\w+[:\s]\s*)?([^\s`:]*[./][^\s`]*)\s*$')
FENCE = re.compile(r'^\s*```')
CODE_HINTS = ('import', 'export', 'function')

_EXTENSION = re.compile(r'\.(' + '|'.join(ALLOWED_EXTENSIONS) + r')$')


def _clean_path(raw: str) -> str:
    return raw.strip().strip('`*\'"').strip()


def match_header(line: str) -> Optional[str]:
    """Return the declared path when the line opens a new file"""
    match = FILE_HEADER.match(line) or FENCE_WITH_PATH.match(line)
    if not match:
        return None
    path = _clean_path(match.group(1))
    return path or None


def is_safe_path(path: str) -> bool:
    if '..' in path or path.startswith('/'):
        logging.warning(f"Rejected invalid file path: {path}")
        return False
    if not _EXTENSION.search(path):
        logging.warning(f"Rejected file with unsupported extension: {path}")
        return False
    return True


def parse_ai_output(
    ai_output: str,
    default_path: str = DEFAULT_PATH,
    fallback_path: str = FALLBACK_PATH
) -> List[FileChange]:
    """
    Parse generated text into file changes

    Never raises. Returns an empty list only when the output is blank or
    every candidate path was rejected.
    """
    if not ai_output:
        return []

    changes: List[FileChange] = []
    current_path: Optional[str] = None
    current_content: List[str] = []

    def flush():
        if current_path and current_content:
            changes.append(FileChange(path=current_path, content='\n'.join(current_content)))

    for line in ai_output.splitlines():
        path = match_header(line)
        if path:
            flush()
            current_path = path
            current_content = []
            continue

        if FENCE.match(line):
            continue

        if current_path:
            current_content.append(line)
        elif any(hint in line for hint in CODE_HINTS):
            current_path = default_path
            current_content = [line]

    flush()

    if not changes and ai_output.strip():
        changes.append(FileChange(path=fallback_path, content=ai_output.strip()))

    return [change for change in changes if is_safe_path(change.path)]
