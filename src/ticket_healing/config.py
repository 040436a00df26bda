"""
Runtime settings for the ticket healer, loaded once from the environment
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def parse_repo_url(repo_url: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Extract owner and repo name from a GitHub URL

    Args:
        repo_url: Full GitHub URL (https or ssh)

    Returns:
        Tuple of (owner, repo_name), (None, None) when not a GitHub URL
    """
    if not repo_url or 'github.com' not in repo_url:
        return None, None

    if repo_url.startswith('git@'):
        # git@github.com:owner/repo.git
        parts = repo_url.split(':', 1)[1].split('/')
    else:
        parts = repo_url.replace('https://', '').replace('http://', '').split('/')
        parts = [p for p in parts if p and p != 'github.com']

    if len(parts) >= 2:
        repo_name = parts[1][:-4] if parts[1].endswith('.git') else parts[1]
        return parts[0], repo_name

    return None, None


@dataclass(frozen=True)
class Settings:
    """Explicit configuration injected into every collaborator client"""
    github_token: Optional[str] = None
    github_owner: Optional[str] = None
    github_repo: Optional[str] = None
    github_default_branch: str = "main"
    openai_api_key: Optional[str] = None
    openai_endpoint: Optional[str] = None
    openai_deployment_name: str = "gpt-4o"
    openai_api_version: str = "2024-08-01-preview"
    use_mock_ai: bool = False
    wait_for_ci: bool = True
    ci_max_wait_seconds: float = 300.0
    ci_poll_interval_seconds: float = 10.0
    validation_project_root: Optional[str] = None

    @property
    def repo_full_name(self) -> str:
        return f"{self.github_owner}/{self.github_repo}"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        source = os.environ if env is None else env

        owner = source.get("GITHUB_OWNER")
        repo = source.get("GITHUB_REPO")
        if not (owner and repo) and source.get("GITHUB_REPO_URL"):
            owner, repo = parse_repo_url(source["GITHUB_REPO_URL"])

        return cls(
            github_token=source.get("GITHUB_TOKEN"),
            github_owner=owner,
            github_repo=repo,
            github_default_branch=source.get("GITHUB_DEFAULT_BRANCH") or "main",
            openai_api_key=source.get("OPENAI_API_KEY"),
            openai_endpoint=source.get("OPENAI_ENDPOINT"),
            openai_deployment_name=source.get("OPENAI_DEPLOYMENT_NAME") or "gpt-4o",
            openai_api_version=source.get("OPENAI_API_VERSION") or "2024-08-01-preview",
            use_mock_ai=_as_bool(source.get("USE_MOCK_AI")),
            wait_for_ci=_as_bool(source.get("WAIT_FOR_CI"), default=True),
            ci_max_wait_seconds=float(source.get("CI_MAX_WAIT_SECONDS") or 300),
            ci_poll_interval_seconds=float(source.get("CI_POLL_INTERVAL_SECONDS") or 10),
            validation_project_root=source.get("VALIDATION_PROJECT_ROOT") or None,
        )
