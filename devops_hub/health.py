"""
Sprint Health Scorer

Scores a sprint from its issues: completion, blocked work, WIP overload and
remaining scope each pull the score down from 100.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from .integrations.jira import JiraIssue

DONE_STATUSES = frozenset({"done", "closed", "resolved"})
IN_PROGRESS_STATUSES = frozenset({"in progress", "in review", "code review"})
BLOCKED_STATUSES = frozenset({"blocked", "impediment"})

WIP_SHARE_LIMIT = 0.4
UNASSIGNED_RISK = "Unassigned issue"


def round_half_up(value: float) -> int:
    """Round .5 upwards (2.5 -> 3), unlike Python's banker's rounding."""
    return math.floor(value + 0.5)


class StatusBucket(Enum):
    """Mutually exclusive status buckets."""
    DONE = "done"
    IN_PROGRESS = "in_progress"
    BLOCKED = "blocked"
    TODO = "todo"


def classify_status(status: Optional[str]) -> StatusBucket:
    """Map a status name onto exactly one bucket (exact, case-insensitive)."""
    name = (status or "").lower()
    if name in DONE_STATUSES:
        return StatusBucket.DONE
    if name in IN_PROGRESS_STATUSES:
        return StatusBucket.IN_PROGRESS
    if name in BLOCKED_STATUSES:
        return StatusBucket.BLOCKED
    return StatusBucket.TODO


class HealthStatus(Enum):
    """Sprint health band."""
    EXCELLENT = "excellent"  # 80+
    GOOD = "good"            # 60-79
    AT_RISK = "at-risk"      # 40-59
    CRITICAL = "critical"    # <40

    @classmethod
    def from_score(cls, score: int) -> "HealthStatus":
        if score >= 80:
            return cls.EXCELLENT
        elif score >= 60:
            return cls.GOOD
        elif score >= 40:
            return cls.AT_RISK
        return cls.CRITICAL

    @property
    def emoji(self) -> str:
        return {
            HealthStatus.EXCELLENT: "🟢",
            HealthStatus.GOOD: "🔵",
            HealthStatus.AT_RISK: "🟡",
            HealthStatus.CRITICAL: "🔴"
        }[self]


class BurndownHealth(Enum):
    AHEAD = "ahead"
    ON_TRACK = "on-track"
    BEHIND = "behind"


@dataclass(frozen=True)
class IssueBreakdown:
    """Issue counts per status bucket."""
    total: int = 0
    done: int = 0
    in_progress: int = 0
    todo: int = 0
    blocked: int = 0

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "done": self.done,
            "in_progress": self.in_progress,
            "todo": self.todo,
            "blocked": self.blocked
        }


@dataclass(frozen=True)
class SprintHealthResult:
    """Health of one sprint at the time it was scored."""
    sprint_id: int
    sprint_name: str
    health_score: int
    health_status: HealthStatus
    breakdown: IssueBreakdown
    completion_rate: int
    burndown_health: BurndownHealth
    risks: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    blocked_issues: tuple[str, ...] = ()

    @property
    def blocked_count(self) -> int:
        return self.breakdown.blocked

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "sprint_id": self.sprint_id,
            "sprint_name": self.sprint_name,
            "health_score": self.health_score,
            "health_status": self.health_status.value,
            "breakdown": self.breakdown.to_dict(),
            "metrics": {
                "completion_rate": self.completion_rate,
                "burndown_health": self.burndown_health.value,
                "blocked_count": self.blocked_count
            },
            "risks": list(self.risks),
            "recommendations": list(self.recommendations),
            "blocked_issues": list(self.blocked_issues)
        }


class SprintHealthScorer:
    """
    Scores sprint health from a sprint's issues.

    Usage:
        scorer = SprintHealthScorer()
        result = scorer.score(issues, sprint_id=42)
        print(f"{result.sprint_name}: {result.health_score} ({result.health_status.value})")
    """

    def breakdown(self, issues: Iterable[JiraIssue]) -> IssueBreakdown:
        counts = {bucket: 0 for bucket in StatusBucket}
        total = 0
        for issue in issues:
            counts[classify_status(issue.status)] += 1
            total += 1
        return IssueBreakdown(
            total=total,
            done=counts[StatusBucket.DONE],
            in_progress=counts[StatusBucket.IN_PROGRESS],
            todo=counts[StatusBucket.TODO],
            blocked=counts[StatusBucket.BLOCKED]
        )

    def score(
        self,
        issues: list[JiraIssue],
        sprint_id: int,
        sprint_name: Optional[str] = None
    ) -> SprintHealthResult:
        """
        Score a sprint.

        Args:
            issues: All issues in the sprint
            sprint_id: Sprint identifier
            sprint_name: Resolved display name, defaults to "Sprint <id>"

        Returns:
            SprintHealthResult
        """
        breakdown = self.breakdown(issues)
        risks = []
        blocked_issues = []

        # Risks are per issue and may repeat a key under different headings
        for issue in issues:
            bucket = classify_status(issue.status)
            if bucket == StatusBucket.BLOCKED:
                blocked_issues.append(f"{issue.key}: {issue.summary}")
            if bucket != StatusBucket.DONE:
                if not issue.assignee:
                    risks.append(f"{UNASSIGNED_RISK}: {issue.key}")
                if not issue.priority:
                    risks.append(f"No priority set: {issue.key}")

        completion_rate = (
            round_half_up(breakdown.done / breakdown.total * 100) if breakdown.total else 0
        )
        wip_overload = breakdown.in_progress > breakdown.total * WIP_SHARE_LIMIT

        health_score = 100
        health_score -= max(0, 50 - completion_rate)
        health_score -= breakdown.blocked * 5

        if wip_overload:
            health_score -= 10
            risks.append("Too many issues in progress (WIP overload)")

        if breakdown.todo > breakdown.done and completion_rate < 50:
            health_score -= 10
            risks.append("More work remaining than completed")

        health_score = max(0, min(100, health_score))
        health_status = HealthStatus.from_score(health_score)

        if completion_rate > 70:
            burndown = BurndownHealth.AHEAD
        elif completion_rate < 30 and breakdown.in_progress < 3:
            burndown = BurndownHealth.BEHIND
        else:
            burndown = BurndownHealth.ON_TRACK

        recommendations = []
        if breakdown.blocked > 0:
            recommendations.append(f"Address {breakdown.blocked} blocked issue(s) immediately")
        if wip_overload:
            recommendations.append("Focus on completing in-progress work before starting new items")
        if any(r.startswith(UNASSIGNED_RISK) for r in risks):
            recommendations.append("Assign owners to all remaining issues")
        if completion_rate < 50 and breakdown.todo > 5:
            recommendations.append("Consider reducing sprint scope")
        if not recommendations and health_status == HealthStatus.EXCELLENT:
            recommendations.append("Sprint is progressing well - maintain current pace")

        return SprintHealthResult(
            sprint_id=sprint_id,
            sprint_name=sprint_name or f"Sprint {sprint_id}",
            health_score=health_score,
            health_status=health_status,
            breakdown=breakdown,
            completion_rate=completion_rate,
            burndown_health=burndown,
            risks=tuple(risks),
            recommendations=tuple(recommendations),
            blocked_issues=tuple(blocked_issues)
        )
