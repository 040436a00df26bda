"""
Data models for the ticket healing pipeline
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, Dict, List, Any


@dataclass(frozen=True)
class Ticket:
    """Bug ticket received from the issue tracker"""
    id: str
    key: str
    summary: str
    description: str
    priority: Optional[str] = None


@dataclass(frozen=True)
class CodeContextEntry:
    """Repository file handed to the model as context"""
    filename: str
    content: str


@dataclass
class ErrorSignal:
    """Error details mined from a ticket description"""
    error_type: Optional[str] = None
    error_message: Optional[str] = None
    stack_trace: Optional[str] = None
    test_failure: Optional[str] = None
    file_path: Optional[str] = None
    line_number: Optional[int] = None

    @property
    def has_signal(self) -> bool:
        return any(value is not None for value in asdict(self).values())


@dataclass(frozen=True)
class FileChange:
    """A proposed create/update of one repository file"""
    path: str
    content: str
    sha: Optional[str] = None


@dataclass(frozen=True)
class GuardResult:
    """Outcome of the safety guard"""
    allowed: bool
    reason: Optional[str] = None
    blocked_files: List[str] = field(default_factory=list)


@dataclass
class ValidationResult:
    """Outcome of pre-submission validation"""
    success: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    details: Dict[str, bool] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        self.errors.append(message)
        self.success = False


class CIStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"


@dataclass(frozen=True)
class CheckRun:
    name: str
    status: str
    conclusion: Optional[str] = None


@dataclass
class CICheckResult:
    """Result of waiting on CI for a pull request"""
    status: CIStatus
    conclusion: Optional[str] = None
    checks: List[CheckRun] = field(default_factory=list)


@dataclass
class SubmissionOutcome:
    """Terminal record of submitting a fix for one ticket"""
    pr_url: Optional[str] = None
    pr_number: Optional[int] = None
    branch: Optional[str] = None
    submission_error: Optional[str] = None
    ci_status: CIStatus = CIStatus.PENDING
    ci_conclusion: Optional[str] = None


@dataclass
class PipelineResult:
    """Response surface of one pipeline run"""
    status: str
    ticket_key: str
    pr_url: Optional[str] = None
    pr_number: Optional[int] = None
    submission_error: Optional[str] = None
    ci_status: Optional[CIStatus] = None
    ci_conclusion: Optional[str] = None
    has_error_info: bool = False
    files: List[str] = field(default_factory=list)
    reason: Optional[str] = None
    blocked_files: List[str] = field(default_factory=list)
    validation_errors: List[str] = field(default_factory=list)
    validation_warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.ci_status is not None:
            data["ci_status"] = self.ci_status.value
        return {key: value for key, value in data.items() if value not in (None, [])}
