"""
End-to-end orchestration: ticket in, draft pull request out
"""

import logging
from typing import Optional

from ticket_healing import audit
from ticket_healing.ci_checker import CIReconciler
from ticket_healing.config import Settings
from ticket_healing.context import get_code_context
from ticket_healing.error_extractor import extract_error_signal
from ticket_healing.errors import GenerationError, SubmissionError
from ticket_healing.guards import evaluate_file_changes
from ticket_healing.models import Ticket, PipelineResult
from ticket_healing.output_parser import parse_ai_output
from ticket_healing.prompt import build_prompt
from ticket_healing.submission import SubmissionManager
from ticket_healing.validation import validate_generated_code

STATUS_PR_CREATED = "pr_created"
STATUS_AI_GENERATED = "ai_generated"
STATUS_BLOCKED = "blocked"
STATUS_VALIDATION_FAILED = "validation_failed"


class TicketPipeline:
    """Runs every stage for one ticket; stages short-circuit on failure"""

    def __init__(
        self,
        settings: Settings,
        source_control,
        generator,
        reconciler: Optional[CIReconciler] = None,
        validator=validate_generated_code
    ):
        self.settings = settings
        self.source_control = source_control
        self.generator = generator
        self.submission = SubmissionManager(source_control)
        self.reconciler = reconciler or CIReconciler(
            source_control,
            max_wait=settings.ci_max_wait_seconds,
            poll_interval=settings.ci_poll_interval_seconds,
        )
        self.validator = validator

    async def run(self, ticket: Ticket) -> PipelineResult:
        """
        Process one ticket

        Raises:
            GenerationError: the generation service failed; nothing was committed
        """
        audit.log_ticket_received(ticket.key, ticket.summary, ticket.priority)

        error_signal = extract_error_signal(ticket.description)
        result = PipelineResult(status=STATUS_AI_GENERATED, ticket_key=ticket.key,
                                has_error_info=error_signal.has_signal)

        logging.info("Fetching code context from repository...")
        code_context = await get_code_context(ticket, self.source_control)
        logging.info(f"Retrieved {len(code_context)} relevant file(s) from repository")

        prompt = build_prompt(ticket, code_context, error_signal)
        audit.log_prompt_sent(ticket.key, prompt)

        try:
            ai_output = await self.generator.generate(prompt)
        except GenerationError as e:
            logging.error(f"Error generating code: {str(e)}", exc_info=True)
            audit.log_operation_failed(ticket.key, "generation", str(e))
            raise

        audit.log_output_received(ticket.key, ai_output)

        file_changes = parse_ai_output(ai_output)
        result.files = [fc.path for fc in file_changes]
        logging.info(f"Found {len(file_changes)} file change(s): {result.files}")

        if not file_changes:
            result.submission_error = "No valid file changes found in AI output"
            audit.log_operation_failed(ticket.key, "parse", result.submission_error)
            return result

        guard = evaluate_file_changes(file_changes)
        if not guard.allowed:
            audit.log_guard_blocked(ticket.key, guard.reason, guard.blocked_files)
            result.status = STATUS_BLOCKED
            result.reason = guard.reason
            result.blocked_files = list(guard.blocked_files)
            return result

        try:
            validation = self.validator(file_changes, self.settings.validation_project_root)
        except Exception as e:
            logging.error(f"Validation could not run, submitting anyway: {str(e)}", exc_info=True)
            validation = None

        if validation is not None:
            result.validation_warnings = list(validation.warnings)
            if not validation.success:
                result.status = STATUS_VALIDATION_FAILED
                result.reason = "Generated code failed validation"
                result.validation_errors = list(validation.errors)
                audit.log_operation_failed(ticket.key, "validation", "; ".join(validation.errors))
                return result

        try:
            outcome = await self.submission.submit(ticket, file_changes)
        except SubmissionError as e:
            result.submission_error = str(e)
            return result

        result.status = STATUS_PR_CREATED
        result.pr_url = outcome.pr_url
        result.pr_number = outcome.pr_number
        result.ci_status = outcome.ci_status

        if self.settings.wait_for_ci:
            ci = await self.reconciler.reconcile(outcome.pr_number)
            result.ci_status = ci.status
            result.ci_conclusion = ci.conclusion

        return result
