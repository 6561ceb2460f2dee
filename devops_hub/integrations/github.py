"""
GitHub Integration for DevOps Hub

Commit comparisons, merged pull requests and repository file commits.
"""

import base64
import logging
from datetime import date, datetime
from typing import Optional
from dataclasses import dataclass

import httpx

from ..capability import Capability
from ..config import GitHubSettings
from ..errors import ConfigurationError, DataSourceError
from .jira import error_detail, parse_timestamp

logger = logging.getLogger(__name__)


@dataclass
class PullRequest:
    """Represents a GitHub Pull Request."""
    number: int
    title: str
    author: str
    state: str
    created_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    html_url: Optional[str] = None

    @property
    def is_merged(self) -> bool:
        return self.merged_at is not None

    @classmethod
    def from_api(cls, data: dict) -> "PullRequest":
        user = data.get("user") or {}
        return cls(
            number=data["number"],
            title=data.get("title", ""),
            author=user.get("login", ""),
            state=data.get("state", ""),
            created_at=parse_timestamp(data.get("created_at")),
            merged_at=parse_timestamp(data.get("merged_at")),
            html_url=data.get("html_url")
        )


@dataclass
class CommitComparison:
    """Summary of a base...head comparison."""
    status: str
    ahead_by: int
    behind_by: int
    total_commits: int
    files_changed: int


class GitHubClient:
    """
    GitHub API client.

    Usage:
        client = GitHubClient(token="ghp_xxx")
        comparison = await client.compare_commits("acme", "api", "main", "develop")
        prs = await client.get_merged_pull_requests("acme", "api", since, until)
    """

    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: Optional[str],
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not token:
            raise ConfigurationError("GitHub token required. Set GITHUB_TOKEN.")

        self.token = token
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github.v3+json",
            "X-GitHub-Api-Version": "2022-11-28"
        }

    async def _request(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        method: str = "GET",
        json: Optional[dict] = None
    ):
        """Make authenticated request to GitHub API."""
        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.request(
                method,
                f"{self.BASE_URL}{endpoint}",
                headers=self.headers,
                params=params,
                json=json,
                timeout=30.0
            )
        if not response.is_success:
            raise DataSourceError("GitHub", response.status_code, error_detail(response))
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            raise DataSourceError("GitHub", response.status_code, "Response is not valid JSON") from None

    async def compare_commits(
        self,
        owner: str,
        repo: str,
        base: str = "main",
        head: str = "develop"
    ) -> CommitComparison:
        """Compare two refs (branches, tags or SHAs)."""
        data = await self._request(f"/repos/{owner}/{repo}/compare/{base}...{head}")
        return CommitComparison(
            status=data.get("status", ""),
            ahead_by=data.get("ahead_by", 0),
            behind_by=data.get("behind_by", 0),
            total_commits=data.get("total_commits", 0),
            files_changed=len(data.get("files") or [])
        )

    async def get_pull_requests(
        self,
        owner: str,
        repo: str,
        state: str = "open"
    ) -> list[PullRequest]:
        """Get pull requests for a repository (first 100)."""
        data = await self._request(
            f"/repos/{owner}/{repo}/pulls",
            {"state": state, "per_page": 100}
        )
        return [PullRequest.from_api(pr) for pr in data]

    async def get_merged_pull_requests(
        self,
        owner: str,
        repo: str,
        since: date,
        until: date
    ) -> list[PullRequest]:
        """
        Closed pull requests merged within [since, until].

        Dates are compared as whole days, both ends inclusive.
        """
        prs = await self.get_pull_requests(owner, repo, state="closed")
        return [
            pr for pr in prs
            if pr.merged_at is not None and since <= pr.merged_at.date() <= until
        ]

    async def get_file_sha(
        self,
        owner: str,
        repo: str,
        path: str,
        ref: Optional[str] = None
    ) -> str:
        """SHA of an existing file; raises DataSourceError (404) when absent."""
        params = {"ref": ref} if ref else None
        data = await self._request(f"/repos/{owner}/{repo}/contents/{path}", params)
        return data["sha"]

    async def put_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        sha: Optional[str] = None,
        branch: Optional[str] = None
    ) -> dict:
        """
        Create or update a file through the contents API.

        Returns:
            Dict with the file's html_url and new sha
        """
        body = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        }
        if sha:
            body["sha"] = sha
        if branch:
            body["branch"] = branch

        result = await self._request(
            f"/repos/{owner}/{repo}/contents/{path}",
            method="PUT",
            json=body
        )
        saved = result.get("content") or {}
        logger.info("Committed %s to %s/%s", path, owner, repo)
        return {"url": saved.get("html_url"), "sha": saved.get("sha")}


def create_github_client(
    settings: GitHubSettings,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> Capability[GitHubClient]:
    """GitHub capability: present when a token is configured."""
    if not settings.configured:
        return Capability.absent("GitHub", "set GITHUB_TOKEN to enable it")
    logger.info("GitHub integration enabled")
    return Capability.present("GitHub", GitHubClient(settings.token, transport=transport))
