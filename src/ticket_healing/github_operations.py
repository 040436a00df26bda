"""
GitHub operations used by the ticket healer: repository reads, branches,
commits, pull requests and CI status
"""

import logging
from typing import Dict, List, Optional

from github import Github, GithubException

from ticket_healing.config import Settings
from ticket_healing.models import CheckRun


class BranchExistsError(Exception):
    """The branch to create already exists"""


class GitHubOperations:
    """Source-control service backed by the GitHub REST API"""

    def __init__(self, settings: Settings, client: Optional[Github] = None):
        if not settings.github_token and client is None:
            raise ValueError("GITHUB_TOKEN must be set")
        if not settings.github_owner or not settings.github_repo:
            raise ValueError("GITHUB_OWNER and GITHUB_REPO must be set")

        self.client = client or Github(settings.github_token)
        self.repo_full_name = settings.repo_full_name
        self.default_branch = settings.github_default_branch
        self._repo = None
        logging.info(f"GitHub client initialized for {self.repo_full_name}")

    @property
    def repo(self):
        if self._repo is None:
            self._repo = self.client.get_repo(self.repo_full_name)
        return self._repo

    async def list_tree(self, ref: str) -> List[str]:
        """Paths of every blob in the tree at ref"""
        tree = self.repo.get_git_tree(ref, recursive=True)
        if tree.raw_data.get('truncated'):
            logging.warning(f"Repository tree for {ref} was truncated by GitHub")
        return [entry.path for entry in tree.tree if entry.type == 'blob']

    async def get_file_content(self, path: str, ref: str) -> str:
        contents = self.repo.get_contents(path, ref=ref)
        if isinstance(contents, list):
            raise ValueError(f"{path} is a directory")
        return contents.decoded_content.decode('utf-8')

    async def get_branch_sha(self, branch: str) -> str:
        ref = self.repo.get_git_ref(f"heads/{branch}")
        return ref.object.sha

    async def create_branch(self, branch: str, sha: str) -> str:
        """
        Create a branch at sha

        Raises:
            BranchExistsError: the branch is already there (HTTP 422)
        """
        try:
            ref = self.repo.create_git_ref(ref=f"refs/heads/{branch}", sha=sha)
        except GithubException as e:
            if e.status == 422:
                raise BranchExistsError(branch) from e
            raise
        return ref.object.sha

    async def get_file_sha(self, path: str, branch: str) -> Optional[str]:
        """Blob SHA of path on branch, None when the file does not exist"""
        try:
            contents = self.repo.get_contents(path, ref=branch)
        except GithubException as e:
            if e.status != 404:
                logging.warning(f"Could not look up {path} on {branch}, treating as new file: {str(e)}")
            return None
        if isinstance(contents, list):
            return None
        return contents.sha

    async def put_file(
        self,
        path: str,
        content: str,
        branch: str,
        message: str,
        sha: Optional[str] = None
    ) -> str:
        """Create or update a file, returning the commit SHA"""
        if sha:
            result = self.repo.update_file(path=path, message=message, content=content, sha=sha, branch=branch)
        else:
            result = self.repo.create_file(path=path, message=message, content=content, branch=branch)
        return result['commit'].sha

    async def create_pull_request(self, branch: str, base: str, title: str, body: str, draft: bool = True) -> Dict:
        pr = self.repo.create_pull(title=title, body=body, head=branch, base=base, draft=draft)
        logging.info(f"PR created: {pr.html_url}")

        try:
            pr.add_to_labels("automated", "ai-generated")
        except GithubException as label_error:
            logging.warning(f"Could not add labels: {str(label_error)}")

        return {"pr_url": pr.html_url, "pr_number": pr.number}

    async def set_draft(self, pr_number: int, draft: bool) -> None:
        pr = self.repo.get_pull(pr_number)
        if draft:
            pr.convert_to_draft()
        else:
            pr.mark_ready_for_review()

    async def add_comment(self, pr_number: int, body: str) -> None:
        self.repo.get_issue(pr_number).create_comment(body)

    async def get_pull_head_sha(self, pr_number: int) -> str:
        return self.repo.get_pull(pr_number).head.sha

    async def get_combined_status(self, sha: str) -> str:
        return self.repo.get_commit(sha).get_combined_status().state

    async def list_check_runs(self, sha: str) -> List[CheckRun]:
        return [
            CheckRun(name=run.name, status=run.status, conclusion=run.conclusion)
            for run in self.repo.get_commit(sha).get_check_runs()
        ]
