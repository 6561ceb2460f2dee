"""
Time tracking summaries built from Jira time fields and worklogs.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from .health import round_half_up
from .integrations.jira import JiraIssue, Worklog

WORKLOG_FETCH_LIMIT = 100
UNASSIGNED = "Unassigned"


def format_duration(seconds: int) -> str:
    """Render seconds as "2h 30m", "2h" or "45m"."""
    if not seconds:
        return "0m"
    hours, remainder = divmod(int(seconds), 3600)
    minutes = remainder // 60
    if hours and minutes:
        return f"{hours}h {minutes}m"
    elif hours:
        return f"{hours}h"
    return f"{minutes}m"


def build_worklog_jql(
    project_key: Optional[str] = None,
    sprint_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
) -> str:
    jql = "timespent > 0"
    if project_key:
        jql += f' AND project = "{project_key}"'
    if sprint_id:
        jql += f" AND sprint = {sprint_id}"
    if start_date:
        jql += f' AND worklogDate >= "{start_date.isoformat()}"'
    if end_date:
        jql += f' AND worklogDate <= "{end_date.isoformat()}"'
    return jql


@dataclass
class TimeTrackingSummary:
    """Logged time against the estimate for one issue."""
    issue_key: str
    issue_summary: str
    time_spent: int = 0
    original_estimate: int = 0
    remaining_estimate: int = 0
    worklogs: list[Worklog] = field(default_factory=list)

    @classmethod
    def from_issue(cls, issue: JiraIssue, worklogs: Iterable[Worklog] = ()) -> "TimeTrackingSummary":
        return cls(
            issue_key=issue.key,
            issue_summary=issue.summary,
            time_spent=issue.time_spent or 0,
            original_estimate=issue.time_original_estimate or 0,
            remaining_estimate=issue.time_remaining or 0,
            worklogs=list(worklogs)
        )

    @property
    def progress(self) -> int:
        """Percent of the original estimate used, capped at 100."""
        if self.original_estimate <= 0:
            return 0
        return min(100, round_half_up(self.time_spent / self.original_estimate * 100))

    def to_dict(self) -> dict:
        return {
            "issue_key": self.issue_key,
            "issue_summary": self.issue_summary,
            "time_spent": self.time_spent,
            "time_spent_formatted": format_duration(self.time_spent),
            "original_estimate": self.original_estimate,
            "remaining_estimate": self.remaining_estimate,
            "progress": self.progress,
            "worklogs": [
                {
                    "author": w.author,
                    "time_spent": w.time_spent,
                    "started": w.started.isoformat() if w.started else None,
                    "comment": w.comment
                }
                for w in self.worklogs
            ]
        }


@dataclass(frozen=True)
class TimeEntry:
    """Logged seconds for one issue or one person."""
    name: str
    seconds: int
    summary: Optional[str] = None

    @property
    def formatted(self) -> str:
        return format_duration(self.seconds)

    def to_dict(self) -> dict:
        data = {"name": self.name, "time_spent": self.seconds, "time_spent_formatted": self.formatted}
        if self.summary is not None:
            data["summary"] = self.summary
        return data


@dataclass
class TeamWorklogSummary:
    total_seconds: int = 0
    issues: list[TimeEntry] = field(default_factory=list)
    users: list[TimeEntry] = field(default_factory=list)

    @property
    def total_formatted(self) -> str:
        return format_duration(self.total_seconds)

    def to_dict(self) -> dict:
        return {
            "total_time_logged": self.total_seconds,
            "total_time_logged_formatted": self.total_formatted,
            "issue_breakdown": [e.to_dict() for e in self.issues],
            "user_breakdown": [e.to_dict() for e in self.users]
        }


def summarize_team_worklogs(issues: Iterable[JiraIssue]) -> TeamWorklogSummary:
    """
    Total logged time per issue and per assignee, largest first.

    Time is attributed to the issue's assignee, not to the worklog author.
    """
    per_issue = []
    per_user: dict[str, int] = {}
    for issue in issues:
        spent = issue.time_spent or 0
        per_issue.append(TimeEntry(name=issue.key, seconds=spent, summary=issue.summary))
        user = issue.assignee or UNASSIGNED
        per_user[user] = per_user.get(user, 0) + spent

    per_issue.sort(key=lambda e: e.seconds, reverse=True)
    users = sorted(
        (TimeEntry(name=user, seconds=seconds) for user, seconds in per_user.items()),
        key=lambda e: e.seconds,
        reverse=True
    )
    return TeamWorklogSummary(
        total_seconds=sum(e.seconds for e in per_issue),
        issues=per_issue,
        users=users
    )
