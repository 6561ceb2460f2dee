"""
Jira Integration for DevOps Hub

Searches issues, resolves sprints and creates issues through the Jira REST
and Agile APIs. Works against Jira Cloud (basic auth, API v3) and Jira
Server / Data Center (personal access token, API v2).
"""

import logging
import re
from datetime import datetime
from typing import Optional
from dataclasses import dataclass, field

import httpx

from ..config import JiraSettings
from ..errors import ConfigurationError, DataSourceError

logger = logging.getLogger(__name__)

ISSUE_FIELDS = (
    "summary,status,assignee,reporter,priority,issuetype,labels,created,updated,"
    "description,timeoriginalestimate,timespent,timeestimate"
)

_OFFSET_WITHOUT_COLON = re.compile(r"([+-]\d{2})(\d{2})$")


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse Jira/GitHub ISO timestamps such as 2024-01-15T10:30:00.000+0000."""
    if not value:
        return None
    value = value.replace("Z", "+00:00")
    value = _OFFSET_WITHOUT_COLON.sub(r"\1:\2", value)
    return datetime.fromisoformat(value)


def error_detail(response: httpx.Response) -> str:
    """Extract a human-readable error from an HTTP response."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] if response.text else f"HTTP {response.status_code}"
    if isinstance(data, dict):
        messages = data.get("errorMessages") or data.get("message") or data.get("errors")
        if messages:
            return "; ".join(messages) if isinstance(messages, list) else str(messages)
    return str(data)[:200]


def _display_name(person: Optional[dict]) -> Optional[str]:
    return person.get("displayName") if person else None


@dataclass
class JiraIssue:
    """Read-only view of a Jira issue."""
    key: str
    summary: str
    status: str
    assignee: Optional[str] = None
    reporter: Optional[str] = None
    priority: Optional[str] = None
    issue_type: str = "Task"
    description: Optional[str] = None
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    labels: list[str] = field(default_factory=list)
    time_original_estimate: Optional[int] = None
    time_spent: Optional[int] = None
    time_remaining: Optional[int] = None

    @classmethod
    def from_api(cls, data: dict) -> "JiraIssue":
        """Build from a REST issue payload."""
        fields = data.get("fields") or {}
        status = fields.get("status") or {}
        priority = fields.get("priority")
        issue_type = fields.get("issuetype") or {}
        description = fields.get("description")

        return cls(
            key=data["key"],
            summary=fields.get("summary") or "",
            status=status.get("name", ""),
            assignee=_display_name(fields.get("assignee")),
            reporter=_display_name(fields.get("reporter")),
            priority=priority.get("name") if priority else None,
            issue_type=issue_type.get("name", "Task"),
            # Cloud returns Atlassian Document Format here; only plain text is kept
            description=description if isinstance(description, str) else None,
            created=parse_timestamp(fields.get("created")),
            updated=parse_timestamp(fields.get("updated")),
            labels=list(fields.get("labels") or []),
            time_original_estimate=fields.get("timeoriginalestimate"),
            time_spent=fields.get("timespent"),
            time_remaining=fields.get("timeestimate"),
        )


@dataclass
class SearchResult:
    """One page of a JQL search."""
    issues: list[JiraIssue]
    total: int


@dataclass
class Sprint:
    """Represents a Jira Sprint."""
    id: int
    name: str
    state: str  # active, closed, future
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    goal: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.state == "active"


@dataclass
class Worklog:
    """A single time entry logged against an issue."""
    author: str
    time_spent: str
    time_spent_seconds: int
    started: Optional[datetime] = None
    comment: Optional[str] = None


def _adf(text: str) -> dict:
    """Wrap plain text as an Atlassian Document Format paragraph."""
    return {
        "type": "doc",
        "version": 1,
        "content": [{"type": "paragraph", "content": [{"type": "text", "text": text}]}],
    }


class JiraClient:
    """
    Jira REST API client.

    Usage:
        client = JiraClient(
            url="https://company.atlassian.net",
            email="user@company.com",
            token="api_token"
        )
        result = await client.search_issues('project = "PROJ"')
        issues = await client.get_sprint_issues(42)
    """

    def __init__(
        self,
        url: Optional[str],
        token: Optional[str],
        email: Optional[str] = None,
        is_cloud: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not url or not token:
            raise ConfigurationError(
                "Missing required Jira configuration. Set JIRA_BASE_URL and JIRA_API_TOKEN."
            )

        self.url = url.rstrip("/")
        self.email = email
        self.token = token
        self.is_cloud = ".atlassian.net" in self.url if is_cloud is None else is_cloud
        self.transport = transport

        if self.is_cloud and not email:
            raise ConfigurationError("Missing JIRA_EMAIL. Jira Cloud requires an account email.")

        # Cloud uses basic auth with email:token, Server/Data Center a bearer PAT
        if self.is_cloud:
            self.auth = (email, token)
            self.headers = {"Accept": "application/json"}
            self.api_version = "3"
        else:
            self.auth = None
            self.headers = {"Accept": "application/json", "Authorization": f"Bearer {token}"}
            self.api_version = "2"

    @classmethod
    def from_settings(
        cls,
        settings: JiraSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "JiraClient":
        client = cls(
            url=settings.url,
            token=settings.token,
            email=settings.email,
            is_cloud=settings.is_cloud,
            transport=transport
        )
        logger.info(
            "Connecting to %s at %s",
            "Jira Cloud" if client.is_cloud else "Jira Server/Data Center",
            client.url
        )
        return client

    async def _send(
        self,
        method: str,
        url: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None
    ) -> dict:
        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.request(
                method,
                url,
                auth=self.auth,
                params=params,
                json=json,
                headers=self.headers,
                timeout=30.0
            )
        if not response.is_success:
            raise DataSourceError("Jira", response.status_code, error_detail(response))
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            raise DataSourceError("Jira", response.status_code, "Response is not valid JSON") from None

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None
    ) -> dict:
        """Make authenticated request to Jira API."""
        return await self._send(method, f"{self.url}/rest/api/{self.api_version}{endpoint}", params, json)

    async def _agile_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None
    ) -> dict:
        """Make request to Jira Agile API."""
        return await self._send(method, f"{self.url}/rest/agile/1.0{endpoint}", params)

    async def search_issues(
        self,
        jql: str,
        max_results: int = 50,
        start_at: int = 0
    ) -> SearchResult:
        """
        Search for issues using JQL.

        Args:
            jql: Jira Query Language string
            max_results: Maximum issues to return
            start_at: Offset of the first issue
        """
        result = await self._request(
            "GET",
            "/search",
            params={
                "jql": jql,
                "maxResults": max_results,
                "startAt": start_at,
                "fields": ISSUE_FIELDS
            }
        )
        issues = [JiraIssue.from_api(issue) for issue in result.get("issues", [])]
        logger.debug("JQL %r returned %d of %s issues", jql, len(issues), result.get("total"))
        return SearchResult(issues=issues, total=result.get("total", len(issues)))

    async def get_issue(self, issue_key: str) -> JiraIssue:
        """Get a single issue by key or ID."""
        data = await self._request("GET", f"/issue/{issue_key}", params={"fields": ISSUE_FIELDS})
        return JiraIssue.from_api(data)

    async def get_sprint_issues(self, sprint_id: int, max_results: int = 200) -> list[JiraIssue]:
        """Get all issues in a sprint."""
        result = await self._agile_request(
            "GET",
            f"/sprint/{sprint_id}/issue",
            {"maxResults": max_results, "fields": ISSUE_FIELDS}
        )
        return [JiraIssue.from_api(issue) for issue in result.get("issues", [])]

    async def get_boards(self, project: Optional[str] = None) -> list[dict]:
        """Get all boards, optionally for one project."""
        params = {"projectKeyOrId": project} if project else {}
        result = await self._agile_request("GET", "/board", params)
        return result.get("values", [])

    async def get_sprints(
        self,
        board_id: int,
        state: Optional[str] = None
    ) -> list[Sprint]:
        """
        Get sprints for a board.

        Args:
            board_id: Jira board ID
            state: Filter by state (active, closed, future)
        """
        params = {}
        if state:
            params["state"] = state

        result = await self._agile_request("GET", f"/board/{board_id}/sprint", params)

        return [
            Sprint(
                id=s["id"],
                name=s["name"],
                state=s.get("state", ""),
                start_date=parse_timestamp(s.get("startDate")),
                end_date=parse_timestamp(s.get("endDate")),
                goal=s.get("goal")
            )
            for s in result.get("values", [])
        ]

    async def get_sprint_name(self, board_id: int, sprint_id: int) -> Optional[str]:
        """Display name of a sprint on a board, or None when it is not listed."""
        for sprint in await self.get_sprints(board_id):
            if sprint.id == sprint_id:
                return sprint.name
        return None

    async def create_issue(
        self,
        project_key: str,
        summary: str,
        issue_type: str = "Task",
        description: Optional[str] = None,
        priority: Optional[str] = None,
        labels: Optional[list[str]] = None,
        assignee_id: Optional[str] = None
    ) -> str:
        """Create an issue and return its key."""
        fields = {
            "project": {"key": project_key},
            "summary": summary,
            "issuetype": {"name": issue_type},
        }
        if description:
            fields["description"] = _adf(description) if self.is_cloud else description
        if priority:
            fields["priority"] = {"name": priority}
        if assignee_id:
            # Cloud identifies users by accountId, Server by name
            fields["assignee"] = {"accountId": assignee_id} if self.is_cloud else {"name": assignee_id}
        if labels:
            fields["labels"] = list(labels)

        result = await self._request("POST", "/issue", json={"fields": fields})
        logger.info("Created issue %s in %s", result.get("key"), project_key)
        return result["key"]

    async def get_worklogs(self, issue_key: str) -> list[Worklog]:
        """Get the worklogs recorded on an issue."""
        result = await self._request("GET", f"/issue/{issue_key}/worklog")
        worklogs = []
        for entry in result.get("worklogs", []):
            comment = entry.get("comment")
            worklogs.append(Worklog(
                author=_display_name(entry.get("author")) or "Unknown",
                time_spent=entry.get("timeSpent", ""),
                time_spent_seconds=entry.get("timeSpentSeconds", 0),
                started=parse_timestamp(entry.get("started")),
                comment=comment if isinstance(comment, str) else None
            ))
        return worklogs
