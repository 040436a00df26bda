"""
Jira webhook payload handling
"""

from typing import Any

from ticket_healing.errors import InvalidPayloadError
from ticket_healing.models import Ticket


def adf_to_text(node: Any) -> str:
    """Flatten an Atlassian Document Format node into plain text"""
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        return ''.join(adf_to_text(child) for child in node)
    if not isinstance(node, dict):
        return ''

    node_type = node.get('type')
    if node_type == 'text':
        return node.get('text', '')
    if node_type == 'hardBreak':
        return '\n'

    text = adf_to_text(node.get('content', []))
    if node_type in ('paragraph', 'heading', 'codeBlock', 'listItem', 'blockquote'):
        text += '\n'
    return text


def ticket_from_payload(payload: Any) -> Ticket:
    """
    Convert a raw Jira webhook payload into a Ticket

    Raises:
        InvalidPayloadError: the payload shape is wrong or key, summary or
            description is missing
    """
    if not isinstance(payload, dict):
        raise InvalidPayloadError("Invalid webhook payload structure")

    issue = payload.get('issue')
    if not isinstance(issue, dict) or not isinstance(issue.get('fields'), dict):
        raise InvalidPayloadError("Invalid webhook payload structure")

    fields = issue['fields']
    description = fields.get('description')
    if isinstance(description, (dict, list)):
        description = adf_to_text(description).strip()

    key = issue.get('key')
    summary = fields.get('summary')
    if not key or not summary or not description:
        raise InvalidPayloadError("Missing required fields in payload")

    priority = fields.get('priority')
    priority_name = priority.get('name') if isinstance(priority, dict) else None

    return Ticket(
        id=str(issue.get('id') or ''),
        key=str(key),
        summary=str(summary),
        description=str(description),
        priority=priority_name,
    )
