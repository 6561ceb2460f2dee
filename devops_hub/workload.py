"""
Team Workload Analyzer

Groups open issues by assignee, flags overloaded and stale members and
scores how evenly work is spread across the team.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from .health import round_half_up
from .integrations.jira import JiraIssue

STALE_AFTER = timedelta(days=14)
WIP_LIMIT = 3
WORKLOAD_FETCH_LIMIT = 200


class WorkloadStatus(Enum):
    """Workload status by assigned issue count."""
    UNDERUTILIZED = "underutilized"  # 0-2
    OPTIMAL = "optimal"              # 3-5
    HEAVY = "heavy"                  # 6-8
    OVERLOADED = "overloaded"        # 9+

    @classmethod
    def from_assigned(cls, assigned: int) -> "WorkloadStatus":
        if assigned <= 2:
            return cls.UNDERUTILIZED
        elif assigned <= 5:
            return cls.OPTIMAL
        elif assigned <= 8:
            return cls.HEAVY
        return cls.OVERLOADED

    @property
    def emoji(self) -> str:
        return {
            WorkloadStatus.UNDERUTILIZED: "🔵",
            WorkloadStatus.OPTIMAL: "🟢",
            WorkloadStatus.HEAVY: "🟡",
            WorkloadStatus.OVERLOADED: "🔴"
        }[self]


def build_workload_jql(project_key: Optional[str] = None, sprint_id: Optional[int] = None) -> str:
    """JQL for assigned issues, scoped to a sprint or to everything still open."""
    jql = "assignee is not EMPTY"
    if project_key:
        jql += f' AND project = "{project_key}"'
    if sprint_id:
        jql += f" AND sprint = {sprint_id}"
    else:
        jql += " AND status != Done AND status != Closed"
    return jql


def is_in_progress(status: str) -> bool:
    status = status.lower()
    return "progress" in status or "review" in status


def is_stale(issue: JiraIssue, now: datetime) -> bool:
    """Open issue with no update for more than 14 days."""
    if issue.updated is None:
        return False
    status = issue.status.lower()
    if "done" in status or "closed" in status:
        return False
    updated = issue.updated
    if updated.tzinfo is None:
        updated = updated.replace(tzinfo=timezone.utc)
    return now - updated > STALE_AFTER


def balance_score(workloads: list[int]) -> int:
    """
    100 - 10 * population standard deviation, clamped to [0, 100].

    A plain dispersion measure: an even team scores 100 and every unit of
    standard deviation costs ten points.
    """
    if not workloads:
        return 100
    avg = sum(workloads) / len(workloads)
    variance = sum((w - avg) ** 2 for w in workloads) / len(workloads)
    return round_half_up(max(0.0, min(100.0, 100 - variance ** 0.5 * 10)))


@dataclass
class MemberWorkload:
    """Workload picture for one assignee."""
    name: str
    assigned_issues: int = 0
    in_progress_issues: int = 0
    overdue_issues: int = 0
    issue_keys: list[str] = field(default_factory=list)
    risk_factors: list[str] = field(default_factory=list)

    @property
    def status(self) -> WorkloadStatus:
        return WorkloadStatus.from_assigned(self.assigned_issues)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "assigned_issues": self.assigned_issues,
            "in_progress_issues": self.in_progress_issues,
            "overdue_issues": self.overdue_issues,
            "status": self.status.value,
            "emoji": self.status.emoji,
            "risk_factors": list(self.risk_factors)
        }


@dataclass
class WorkloadDashboard:
    """Team-wide workload summary."""
    members: list[MemberWorkload] = field(default_factory=list)
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    sprint_name: Optional[str] = None
    total_issues: int = 0
    average_workload: float = 0.0
    balance_score: int = 100
    recommendations: list[str] = field(default_factory=list)
    bottlenecks: list[str] = field(default_factory=list)

    @property
    def team_size(self) -> int:
        return len(self.members)

    def members_with_status(self, status: WorkloadStatus) -> list[MemberWorkload]:
        return [m for m in self.members if m.status == status]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "generated_at": self.generated_at.isoformat(),
            "sprint_name": self.sprint_name,
            "summary": {
                "team_size": self.team_size,
                "total_issues": self.total_issues,
                "average_workload": self.average_workload,
                "balance_score": self.balance_score
            },
            "members": [m.to_dict() for m in self.members],
            "recommendations": list(self.recommendations),
            "bottlenecks": list(self.bottlenecks)
        }


class WorkloadAnalyzer:
    """
    Builds a workload dashboard from a set of issues.

    Usage:
        analyzer = WorkloadAnalyzer()
        dashboard = analyzer.analyze(issues, sprint_id=42)
        for member in dashboard.members_with_status(WorkloadStatus.OVERLOADED):
            print(f"  {member.name}: {member.assigned_issues}")
    """

    def analyze_member(
        self,
        name: str,
        issues: list[JiraIssue],
        now: datetime
    ) -> MemberWorkload:
        """
        Analyze workload for a single team member.

        Args:
            name: Assignee display name
            issues: Issues assigned to the member
            now: Reference time for staleness

        Returns:
            MemberWorkload with counts and risk factors
        """
        member = MemberWorkload(
            name=name,
            assigned_issues=len(issues),
            issue_keys=[i.key for i in issues]
        )
        for issue in issues:
            if is_in_progress(issue.status):
                member.in_progress_issues += 1
            if is_stale(issue, now):
                member.overdue_issues += 1

        if member.status == WorkloadStatus.OVERLOADED:
            member.risk_factors.append(f"Has {member.assigned_issues} assigned issues")
        if member.in_progress_issues > WIP_LIMIT:
            member.risk_factors.append("Too many items in progress simultaneously")
        if member.overdue_issues > 0:
            member.risk_factors.append(f"{member.overdue_issues} potentially stale issue(s)")

        return member

    def analyze(
        self,
        issues: list[JiraIssue],
        sprint_id: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> WorkloadDashboard:
        """
        Analyze workload for the entire team.

        Unassigned issues are ignored and do not count toward the totals.

        Args:
            issues: Issues to distribute by assignee
            sprint_id: Sprint the issues were fetched for, if any
            now: Reference time (defaults to the current UTC time)
        """
        now = now or datetime.now(timezone.utc)

        by_assignee: dict[str, list[JiraIssue]] = {}
        for issue in issues:
            if issue.assignee:
                by_assignee.setdefault(issue.assignee, []).append(issue)

        members = [self.analyze_member(name, assigned, now) for name, assigned in by_assignee.items()]
        workloads = [m.assigned_issues for m in members]

        dashboard = WorkloadDashboard(
            members=members,
            generated_at=now,
            sprint_name=f"Sprint {sprint_id}" if sprint_id else None,
            total_issues=sum(workloads),
            average_workload=round_half_up(sum(workloads) / len(workloads) * 10) / 10 if workloads else 0.0,
            balance_score=balance_score(workloads)
        )
        self.suggest_rebalancing(dashboard)
        return dashboard

    def suggest_rebalancing(self, dashboard: WorkloadDashboard):
        """Fill in recommendations and bottlenecks for a dashboard."""
        overloaded = dashboard.members_with_status(WorkloadStatus.OVERLOADED)
        underutilized = dashboard.members_with_status(WorkloadStatus.UNDERUTILIZED)

        if overloaded and underutilized:
            dashboard.recommendations.append(
                f"Redistribute work from {', '.join(m.name for m in overloaded)} "
                f"to {', '.join(m.name for m in underutilized)}"
            )

        for member in overloaded:
            dashboard.bottlenecks.append(
                f"{member.name} is overloaded with {member.assigned_issues} issues"
            )

        high_wip = [m for m in dashboard.members if m.in_progress_issues > WIP_LIMIT]
        if high_wip:
            dashboard.recommendations.append(
                f"{', '.join(m.name for m in high_wip)} should focus on completing "
                "current work before starting new items"
            )

        if dashboard.balance_score < 50:
            dashboard.recommendations.append(
                "Team workload is uneven - consider more balanced task distribution"
            )
