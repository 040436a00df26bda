"""
Audit trail for the ticket healer

Every event is written as one JSON document on the "audit" logger. Prompts and
model output never reach the audit trail, only a hash and their length.
"""

import hashlib
import json
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List

audit_logger = logging.getLogger("audit")


class AuditEventType(str, Enum):
    JIRA_TICKET_RECEIVED = "jira_ticket_received"
    CODE_CONTEXT_FETCHED = "code_context_fetched"
    PROMPT_SENT_TO_AI = "prompt_sent_to_ai"
    AI_OUTPUT_RECEIVED = "ai_output_received"
    GITHUB_BRANCH_CREATED = "github_branch_created"
    COMMIT_CREATED = "commit_created"
    PULL_REQUEST_CREATED = "pull_request_created"
    SAFETY_GUARD_BLOCKED = "safety_guard_blocked"
    OPERATION_FAILED = "operation_failed"


def hash_data(data: str) -> str:
    """Short SHA-256 fingerprint of sensitive text"""
    return hashlib.sha256(data.encode("utf-8")).hexdigest()[:16]


def log_audit_event(
    ticket_key: str,
    event_type: AuditEventType,
    status: str,
    metadata: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Emit a structured audit event and return it"""
    entry = {
        "type": "AUDIT_LOG",
        "ticketKey": ticket_key,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "eventType": event_type.value,
        "status": status,
        "metadata": metadata or {},
    }
    audit_logger.info(json.dumps(entry, default=str))
    return entry


def log_ticket_received(ticket_key: str, summary: str, priority: Optional[str] = None) -> None:
    log_audit_event(ticket_key, AuditEventType.JIRA_TICKET_RECEIVED, "success", {
        "summary": summary,
        "priority": priority or "not_specified",
    })


def log_code_context_fetched(ticket_key: str, file_count: int) -> None:
    log_audit_event(ticket_key, AuditEventType.CODE_CONTEXT_FETCHED, "success", {
        "fileCount": file_count,
    })


def log_prompt_sent(ticket_key: str, prompt: str) -> None:
    log_audit_event(ticket_key, AuditEventType.PROMPT_SENT_TO_AI, "success", {
        "promptHash": hash_data(prompt),
        "promptLength": len(prompt),
    })


def log_output_received(ticket_key: str, output: str) -> None:
    log_audit_event(ticket_key, AuditEventType.AI_OUTPUT_RECEIVED, "success", {
        "outputHash": hash_data(output),
        "outputLength": len(output),
    })


def log_branch_created(ticket_key: str, branch_name: str, sha: str) -> None:
    log_audit_event(ticket_key, AuditEventType.GITHUB_BRANCH_CREATED, "success", {
        "branchName": branch_name,
        "sha": sha,
    })


def log_commit_created(ticket_key: str, commit_sha: str, file_count: int) -> None:
    log_audit_event(ticket_key, AuditEventType.COMMIT_CREATED, "success", {
        "commitSha": commit_sha,
        "fileCount": file_count,
    })


def log_pull_request_created(ticket_key: str, pr_url: str, pr_number: int) -> None:
    log_audit_event(ticket_key, AuditEventType.PULL_REQUEST_CREATED, "success", {
        "prUrl": pr_url,
        "prNumber": pr_number,
    })


def log_guard_blocked(ticket_key: str, reason: str, blocked_files: List[str]) -> None:
    log_audit_event(ticket_key, AuditEventType.SAFETY_GUARD_BLOCKED, "failed", {
        "reason": reason,
        "blockedFiles": blocked_files,
    })


def log_operation_failed(ticket_key: str, stage: str, error: str) -> None:
    log_audit_event(ticket_key, AuditEventType.OPERATION_FAILED, "failed", {
        "failedStage": stage,
        "error": error,
    })
