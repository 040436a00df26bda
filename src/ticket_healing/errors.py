"""
Exceptions raised across the ticket healing pipeline
"""

from typing import Optional

from ticket_healing.models import GuardResult


class InvalidPayloadError(ValueError):
    """Webhook payload is malformed or misses required fields"""


class GenerationError(Exception):
    """The generation service failed to produce a fix"""


class BillingError(GenerationError):
    """Generation failed because of billing or permission settings"""

    hint = "Enable billing for the model provider or set USE_MOCK_AI=true for development"


class SafetyGuardError(Exception):
    """File changes were rejected by the safety guard"""

    def __init__(self, result: GuardResult):
        self.result = result
        message = f"Safety guard blocked: {result.reason}."
        if result.blocked_files:
            message += f" Blocked files: {', '.join(result.blocked_files)}"
        super().__init__(message)


class SubmissionError(Exception):
    """Branch, commit or pull request creation failed"""

    def __init__(self, step: str, message: str, cause: Optional[Exception] = None):
        self.step = step
        self.cause = cause
        super().__init__(f"Failed to create PR ({step}): {message}")
