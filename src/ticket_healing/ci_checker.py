"""
CI reconciliation for auto-fix pull requests

Polls the head commit of a pull request until its checks succeed, fail or
the deadline passes, then promotes or annotates the pull request.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, List

from ticket_healing.models import CheckRun, CICheckResult, CIStatus

SUCCESS_CONCLUSIONS = {'success', 'neutral', 'skipped'}
FAILURE_CONCLUSIONS = {'failure', 'error', 'timed_out', 'cancelled', 'action_required'}


def evaluate_check_runs(check_runs: List[CheckRun]) -> CIStatus:
    """Status implied by one snapshot of check runs"""
    if not check_runs:
        return CIStatus.PENDING

    completed = [run for run in check_runs if run.status == 'completed']
    if any(run.conclusion in FAILURE_CONCLUSIONS for run in completed):
        return CIStatus.FAILURE
    if len(completed) == len(check_runs) and all(run.conclusion in SUCCESS_CONCLUSIONS for run in completed):
        return CIStatus.SUCCESS
    return CIStatus.PENDING


def format_failure_comment(result: CICheckResult) -> str:
    lines = ["## ❌ CI checks failed", ""]
    if result.checks:
        for check in result.checks:
            lines.append(f"- **{check.name}**: {check.conclusion or check.status}")
    else:
        lines.append(f"Combined commit status: {result.conclusion}")
    lines += ["", "The pull request stays in draft. Please review the failing checks before promoting it."]
    return '\n'.join(lines)


SUCCESS_COMMENT = """## ✅ CI checks passed

All checks succeeded. This pull request has been marked ready for review.
A human review is still required before merging."""

PENDING_COMMENT = """## ⏳ CI checks still running

Checks did not finish within the polling window. This pull request stays in
draft and will be promoted once CI completes successfully."""


class CIReconciler:
    """Drives the CI status of one pull request to a terminal outcome"""

    def __init__(
        self,
        source_control,
        max_wait: float = 300.0,
        poll_interval: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.source_control = source_control
        self.max_wait = max_wait
        self.poll_interval = poll_interval
        self.clock = clock
        self.sleep = sleep

    async def poll_once(self, pr_number: int) -> CICheckResult:
        sha = await self.source_control.get_pull_head_sha(pr_number)

        state = await self.source_control.get_combined_status(sha)
        if state == 'success':
            return CICheckResult(status=CIStatus.SUCCESS, conclusion='success')
        if state in ('failure', 'error'):
            return CICheckResult(status=CIStatus.FAILURE, conclusion=state)

        check_runs = await self.source_control.list_check_runs(sha)
        status = evaluate_check_runs(check_runs)
        conclusion = status.value if status != CIStatus.PENDING else None
        return CICheckResult(status=status, conclusion=conclusion, checks=check_runs)

    async def wait_for_checks(self, pr_number: int) -> CICheckResult:
        """
        Poll until success, failure or the deadline

        Poll errors are logged and polling continues. Reaching the deadline
        returns PENDING with conclusion "timeout"; it is not an error.
        """
        start = self.clock()

        while True:
            elapsed = self.clock() - start
            if elapsed >= self.max_wait:
                break

            try:
                result = await self.poll_once(pr_number)
                if result.status in (CIStatus.SUCCESS, CIStatus.FAILURE):
                    logging.info(f"CI for PR #{pr_number} finished: {result.status.value}")
                    return result
            except Exception as e:
                logging.warning(f"Error checking CI status for PR #{pr_number}: {str(e)}")

            remaining = self.max_wait - (self.clock() - start)
            if remaining <= 0:
                break
            await self.sleep(min(self.poll_interval, remaining))

        logging.info(f"CI for PR #{pr_number} still pending after {self.max_wait}s")
        return CICheckResult(status=CIStatus.PENDING, conclusion='timeout')

    async def reconcile(self, pr_number: int) -> CICheckResult:
        """Wait for CI and update the pull request to match"""
        result = await self.wait_for_checks(pr_number)

        try:
            if result.status == CIStatus.SUCCESS:
                await self.source_control.set_draft(pr_number, False)
                await self.source_control.add_comment(pr_number, SUCCESS_COMMENT)
            elif result.status == CIStatus.FAILURE:
                await self.source_control.add_comment(pr_number, format_failure_comment(result))
            else:
                await self.source_control.add_comment(pr_number, PENDING_COMMENT)
        except Exception as e:
            logging.error(f"Error updating PR #{pr_number} after CI: {str(e)}")
            return CICheckResult(status=CIStatus.ERROR, conclusion=str(e), checks=result.checks)

        return result

