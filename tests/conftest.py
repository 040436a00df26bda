from __future__ import annotations

from typing import Any

import pytest

from ticket_healing.config import Settings
from ticket_healing.github_operations import BranchExistsError
from ticket_healing.models import CheckRun


class FakeSourceControl:
    """In-memory stand-in for GitHubOperations."""

    def __init__(
        self,
        files: dict[str, str] | None = None,
        default_branch: str = "main",
    ) -> None:
        self.default_branch = default_branch
        self.files = dict(files or {})
        self.branches: dict[str, str] = {default_branch: "base-sha"}
        self.commits: list[dict[str, Any]] = []
        self.pull_requests: list[dict[str, Any]] = []
        self.comments: list[tuple[int, str]] = []
        self.draft_updates: list[tuple[int, bool]] = []
        self.calls: list[str] = []
        self.fail_tree = False
        self.fail_content: set[str] = set()
        self.fail_put = False
        self.fail_comment = False
        self.combined_states: list[str] = []
        self.check_run_snapshots: list[list[CheckRun]] = []
        self.poll_errors = 0

    async def list_tree(self, ref: str) -> list[str]:
        self.calls.append("list_tree")
        if self.fail_tree:
            raise RuntimeError("tree unavailable")
        return list(self.files)

    async def get_file_content(self, path: str, ref: str) -> str:
        self.calls.append(f"get_file_content:{path}")
        if path in self.fail_content:
            raise RuntimeError(f"cannot read {path}")
        return self.files[path]

    async def get_branch_sha(self, branch: str) -> str:
        self.calls.append(f"get_branch_sha:{branch}")
        return self.branches[branch]

    async def create_branch(self, branch: str, sha: str) -> str:
        self.calls.append(f"create_branch:{branch}")
        if branch in self.branches:
            raise BranchExistsError(branch)
        self.branches[branch] = sha
        return sha

    async def get_file_sha(self, path: str, branch: str) -> str | None:
        return f"sha-{path}" if path in self.files else None

    async def put_file(self, path: str, content: str, branch: str, message: str, sha: str | None = None) -> str:
        self.calls.append(f"put_file:{path}")
        if self.fail_put:
            raise RuntimeError("422 Unprocessable Entity")
        self.commits.append(
            {"path": path, "content": content, "branch": branch, "message": message, "sha": sha}
        )
        return f"commit-{len(self.commits)}"

    async def create_pull_request(self, branch: str, base: str, title: str, body: str, draft: bool = True) -> dict:
        self.calls.append("create_pull_request")
        number = len(self.pull_requests) + 1
        self.pull_requests.append(
            {"branch": branch, "base": base, "title": title, "body": body, "draft": draft}
        )
        return {"pr_url": f"https://github.com/acme/app/pull/{number}", "pr_number": number}

    async def set_draft(self, pr_number: int, draft: bool) -> None:
        if self.fail_comment:
            raise RuntimeError("cannot update PR")
        self.draft_updates.append((pr_number, draft))

    async def add_comment(self, pr_number: int, body: str) -> None:
        if self.fail_comment:
            raise RuntimeError("cannot comment")
        self.comments.append((pr_number, body))

    async def get_pull_head_sha(self, pr_number: int) -> str:
        if self.poll_errors:
            self.poll_errors -= 1
            raise RuntimeError("502 Bad Gateway")
        return "head-sha"

    async def get_combined_status(self, sha: str) -> str:
        if len(self.combined_states) > 1:
            return self.combined_states.pop(0)
        return self.combined_states[0] if self.combined_states else "pending"

    async def list_check_runs(self, sha: str) -> list[CheckRun]:
        if len(self.check_run_snapshots) > 1:
            return self.check_run_snapshots.pop(0)
        return self.check_run_snapshots[0] if self.check_run_snapshots else []


class FakeGenerator:
    def __init__(self, output: str = "", error: Exception | None = None) -> None:
        self.output = output
        self.error = error
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.output


class FakeClock:
    """Monotonic clock advanced only by the fake sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def settings() -> Settings:
    return Settings(
        github_token="token",
        github_owner="acme",
        github_repo="app",
        openai_api_key="key",
        wait_for_ci=False,
    )


@pytest.fixture
def source_control() -> FakeSourceControl:
    return FakeSourceControl()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

