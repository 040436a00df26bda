"""
Submission of guarded file changes as a draft pull request
"""

import logging
from typing import List, Optional

from ticket_healing import audit
from ticket_healing.errors import SubmissionError
from ticket_healing.github_operations import BranchExistsError
from ticket_healing.guards import enforce_file_changes
from ticket_healing.models import Ticket, FileChange, SubmissionOutcome


def branch_name_for(ticket: Ticket) -> str:
    return f"autofix/{ticket.key}-ai-fix"


def build_pr_body(ticket: Ticket, file_changes: List[FileChange], ai_summary: Optional[str] = None) -> str:
    modified_files = '\n'.join(f"- `{fc.path}`" for fc in file_changes)
    summary_section = f"## AI-Generated Summary\n{ai_summary}\n\n" if ai_summary else ''

    return f"""## Jira Ticket
**Key:** {ticket.key}
**Summary:** {ticket.summary}
**Priority:** {ticket.priority or 'Not specified'}

## Description
{ticket.description}

{summary_section}## Modified Files
{modified_files}

---

**Note:** This PR was generated automatically from the ticket above and requires human review.

**⚠️ Please review all changes before merging.**"""


class SubmissionManager:
    """Creates the fix branch, commits file changes and opens a draft PR"""

    def __init__(self, source_control):
        self.source_control = source_control

    async def create_branch(self, ticket: Ticket) -> str:
        """Create the ticket's branch from the default branch, reusing it if present"""
        branch = branch_name_for(ticket)
        base_sha = await self.source_control.get_branch_sha(self.source_control.default_branch)

        try:
            sha = await self.source_control.create_branch(branch, base_sha)
            logging.info(f"Branch created: {branch}")
        except BranchExistsError:
            sha = await self.source_control.get_branch_sha(branch)
            logging.info(f"Branch {branch} already exists, reusing it")

        audit.log_branch_created(ticket.key, branch, sha)
        return branch

    async def commit_changes(self, ticket: Ticket, branch: str, file_changes: List[FileChange]) -> str:
        if not file_changes:
            raise ValueError("No file changes to commit")

        last_commit_sha = None
        for file_change in file_changes:
            try:
                sha = file_change.sha or await self.source_control.get_file_sha(file_change.path, branch)
            except Exception as e:
                logging.warning(f"Could not look up {file_change.path}, treating as new file: {str(e)}")
                sha = None

            last_commit_sha = await self.source_control.put_file(
                path=file_change.path,
                content=file_change.content,
                branch=branch,
                message=f"Automata AI fix for {ticket.key}: update {file_change.path}",
                sha=sha,
            )
            logging.info(f"{'Updated' if sha else 'Created'} file: {file_change.path}")

        audit.log_commit_created(ticket.key, last_commit_sha, len(file_changes))
        return last_commit_sha

    async def submit(
        self,
        ticket: Ticket,
        file_changes: List[FileChange],
        ai_summary: Optional[str] = None
    ) -> SubmissionOutcome:
        """
        Commit file changes and open a draft pull request

        Raises:
            SafetyGuardError: the changes fail the safety guard
            SubmissionError: any GitHub step failed
        """
        enforce_file_changes(file_changes, ticket.key)

        step = "create_branch"
        try:
            branch = await self.create_branch(ticket)

            step = "commit"
            logging.info(f"Committing {len(file_changes)} file(s) to branch: {branch}")
            await self.commit_changes(ticket, branch, file_changes)

            step = "create_pull_request"
            pr = await self.source_control.create_pull_request(
                branch=branch,
                base=self.source_control.default_branch,
                title=f"Fix: {ticket.key} – {ticket.summary}",
                body=build_pr_body(ticket, file_changes, ai_summary),
                draft=True,
            )
        except Exception as e:
            logging.error(f"❌ Error creating PR from AI code at {step}: {str(e)}", exc_info=True)
            audit.log_operation_failed(ticket.key, step, str(e))
            raise SubmissionError(step, str(e), e) from e

        audit.log_pull_request_created(ticket.key, pr["pr_url"], pr["pr_number"])
        return SubmissionOutcome(pr_url=pr["pr_url"], pr_number=pr["pr_number"], branch=branch)
