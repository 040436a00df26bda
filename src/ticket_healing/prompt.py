"""
Prompt composition for code generation
"""

from typing import List, Optional

from ticket_healing.error_extractor import format_error_signal
from ticket_healing.models import Ticket, CodeContextEntry, ErrorSignal


def format_code_context(code_context: List[CodeContextEntry]) -> str:
    if not code_context:
        return ''

    section = '\n---\nRelevant Code Context:\n\n'
    for entry in code_context:
        section += f"File: {entry.filename}\n{entry.content}\n\n"
    section += '---\n'
    return section


def build_prompt(
    ticket: Ticket,
    code_context: Optional[List[CodeContextEntry]] = None,
    error_signal: Optional[ErrorSignal] = None
) -> str:
    """Build the completion request for a ticket. Pure function of its inputs."""
    priority_text = f"Priority: {ticket.priority}" if ticket.priority else 'Priority: Not specified'
    error_section = format_error_signal(error_signal) if error_signal else ''
    context_section = format_code_context(code_context or [])

    return f"""You are a senior full-stack engineer. A bug has been reported in Jira.

Issue Key: {ticket.key}
Summary: {ticket.summary}
{priority_text}

Description:
{ticket.description}
{error_section}{context_section}
Please provide a FIX in code for this bug.

Requirements:
- Do not change public APIs
- Output only code (no explanations)
- Provide a complete, production-ready solution
- Use the provided code context to understand the codebase structure
- Start every file with a line of the form "File: <relative/path>"

Code fix:"""
