"""
Code context retrieval: keyword extraction, file scoring and snippet fetching
"""

import logging
import re
from typing import List, Tuple

from ticket_healing import audit
from ticket_healing.models import Ticket, CodeContextEntry

MAX_KEYWORDS = 20
MAX_CONTEXT_FILES = 3
MAX_FILE_CHARS = 8000
TRUNCATION_MARKER = "\n// ... (truncated)"

STOP_WORDS = frozenset([
    'the', 'a', 'an', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of',
    'with', 'by', 'is', 'are', 'was', 'were', 'be', 'been', 'have', 'has', 'had',
    'do', 'does', 'did', 'will', 'would', 'should', 'could', 'may', 'might',
    'must', 'can', 'this', 'that', 'these', 'those', 'i', 'you', 'he', 'she',
    'it', 'we', 'they', 'what', 'which', 'who', 'when', 'where', 'why', 'how',
    'all', 'each', 'every', 'both', 'few', 'more', 'most', 'other', 'some',
    'such', 'no', 'nor', 'not', 'only', 'own', 'same', 'so', 'than', 'too',
    'very', 'just', 'now',
])

IGNORE_PATTERNS = [
    'node_modules',
    'dist',
    'build',
    '.next',
    '.env',
    '.git',
    'coverage',
    '.DS_Store',
]

SOURCE_EXTENSIONS = ('.ts', '.tsx', '.js', '.jsx')

ALPHA_WORD = re.compile(r'^[a-z]+$')


def extract_keywords(summary: str, description: str) -> List[str]:
    """Derive up to 20 search terms from ticket text, in first-seen order"""
    words = f"{summary} {description}".lower().split()

    keywords = []
    seen = set()
    for word in words:
        if len(word) <= 3 or word in STOP_WORDS or not ALPHA_WORD.match(word):
            continue
        if word in seen:
            continue
        seen.add(word)
        keywords.append(word)
        if len(keywords) == MAX_KEYWORDS:
            break

    return keywords


def should_ignore_file(path: str) -> bool:
    return any(pattern in path for pattern in IGNORE_PATTERNS)


def has_relevant_extension(path: str) -> bool:
    return path.endswith(SOURCE_EXTENSIONS)


def score_file(path: str, keywords: List[str]) -> int:
    """+10 per keyword in the path, +20 more when it is in the filename"""
    lower_path = path.lower()
    filename = lower_path.rsplit('/', 1)[-1]

    score = 0
    for keyword in keywords:
        if keyword in lower_path:
            score += 10
        if keyword in filename:
            score += 20
    return score


def select_relevant_files(
    paths: List[str],
    keywords: List[str],
    limit: int = MAX_CONTEXT_FILES
) -> List[Tuple[str, int]]:
    """
    Rank candidate source files against the keywords

    A score of 0 is still eligible so there is always some context
    when the repository has source files at all.

    Returns:
        List of (path, score), best first, listing order on ties
    """
    candidates = [
        (path, score_file(path, keywords))
        for path in paths
        if has_relevant_extension(path) and not should_ignore_file(path)
    ]
    # sorted() is stable, so equal scores keep listing order
    ranked = sorted(candidates, key=lambda item: item[1], reverse=True)
    return ranked[:limit]


def truncate_content(content: str, limit: int = MAX_FILE_CHARS) -> str:
    if len(content) > limit:
        return content[:limit] + TRUNCATION_MARKER
    return content


async def get_code_context(ticket: Ticket, source_control) -> List[CodeContextEntry]:
    """
    Fetch the most relevant repository files for a ticket

    Never raises: a failed tree listing yields no context, a failed file
    fetch drops only that file.
    """
    contexts: List[CodeContextEntry] = []
    try:
        keywords = extract_keywords(ticket.summary, ticket.description)
        logging.info(f"Extracted keywords: {keywords}")

        ref = source_control.default_branch
        all_files = await source_control.list_tree(ref)
        logging.info(f"Found {len(all_files)} files in repository")

        selected = select_relevant_files(all_files, keywords)
        logging.info(f"Selected files: {selected}")

        for path, _score in selected:
            try:
                content = await source_control.get_file_content(path, ref)
                contexts.append(CodeContextEntry(filename=path, content=truncate_content(content)))
            except Exception as e:
                logging.warning(f"Failed to fetch content for {path}: {str(e)}")

    except Exception as e:
        logging.error(f"Error fetching code context: {str(e)}")
        contexts = []

    audit.log_code_context_fetched(ticket.key, len(contexts))
    return contexts
