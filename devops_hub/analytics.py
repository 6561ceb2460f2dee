"""
DevOps Analytics

Each operation fetches its data once (plus at most one best-effort lookup)
and hands it to the pure scoring modules. Operations are independent.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Sequence

from .capability import Capability
from .classifier import (
    SIMILAR_ISSUE_LIMIT,
    IssueTextAnalysis,
    IssueTextClassifier,
    SimilarIssue,
    build_similarity_jql,
    extract_search_terms,
    summarize_text,
)
from .config import Config
from .health import SprintHealthResult, SprintHealthScorer
from .integrations.confluence import ConfluenceClient, ConfluencePage, create_confluence_client
from .integrations.github import GitHubClient, create_github_client
from .integrations.jira import JiraClient, JiraIssue
from .lookup import attempt
from .release_notes import (
    RELEASE_FETCH_LIMIT,
    ReleaseNotes,
    ReleaseNotesBuilder,
    ReleaseStats,
    build_release_jql,
    default_window,
)
from .workload import WORKLOAD_FETCH_LIMIT, WorkloadAnalyzer, WorkloadDashboard, build_workload_jql
from .worklogs import (
    WORKLOG_FETCH_LIMIT,
    TeamWorklogSummary,
    TimeTrackingSummary,
    build_worklog_jql,
    summarize_team_worklogs,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GitHubTarget:
    """Repository and branches to compare for release statistics."""
    owner: str
    repo: str
    base: str = "main"
    head: str = "develop"


@dataclass(frozen=True)
class SmartIssueResult:
    key: str
    summary: str
    analysis: IssueTextAnalysis

    def to_dict(self) -> dict:
        return {"key": self.key, "summary": self.summary, "analysis": self.analysis.to_dict()}


class DevOpsAnalytics:
    """
    Analytics over Jira, with optional GitHub and Confluence.

    Usage:
        analytics = DevOpsAnalytics(jira_client, github=create_github_client(settings))
        health = await analytics.analyze_sprint_health(42, board_id=7)
        dashboard = await analytics.generate_workload_dashboard(project_key="PROJ")
    """

    def __init__(
        self,
        jira: JiraClient,
        github: Optional[Capability[GitHubClient]] = None,
        confluence: Optional[Capability[ConfluenceClient]] = None
    ):
        self.jira = jira
        self.github = github or Capability.absent("GitHub")
        self.confluence = confluence or Capability.absent("Confluence")
        self.health_scorer = SprintHealthScorer()
        self.workload_analyzer = WorkloadAnalyzer()
        self.classifier = IssueTextClassifier()
        self.release_builder = ReleaseNotesBuilder()

    async def analyze_sprint_health(
        self,
        sprint_id: int,
        board_id: Optional[int] = None
    ) -> SprintHealthResult:
        """Score a sprint; the sprint name is looked up only when a board is given."""
        issues = await self.jira.get_sprint_issues(sprint_id)

        sprint_name = None
        if board_id:
            lookup = await attempt(
                self.jira.get_sprint_name(board_id, sprint_id),
                f"Resolving name of sprint {sprint_id}"
            )
            sprint_name = lookup.unwrap_or(None)

        return self.health_scorer.score(issues, sprint_id, sprint_name)

    async def generate_workload_dashboard(
        self,
        project_key: Optional[str] = None,
        sprint_id: Optional[int] = None
    ) -> WorkloadDashboard:
        jql = build_workload_jql(project_key, sprint_id)
        result = await self.jira.search_issues(jql, max_results=WORKLOAD_FETCH_LIMIT)
        return self.workload_analyzer.analyze(result.issues, sprint_id=sprint_id)

    async def find_similar_issues(self, text: str, project_key: str) -> list[SimilarIssue]:
        """Best-effort full-text search; any failure yields an empty list."""
        jql = build_similarity_jql(project_key, extract_search_terms(text))
        if jql is None:
            return []
        lookup = await attempt(
            self.jira.search_issues(jql, max_results=SIMILAR_ISSUE_LIMIT),
            "Similar issue search"
        )
        if not lookup.ok:
            return []
        return [SimilarIssue.from_issue(issue) for issue in lookup.value.issues]

    async def analyze_issue_text(self, text: str, project_key: str) -> IssueTextAnalysis:
        similar = await self.find_similar_issues(text, project_key)
        return self.classifier.classify(text, similar)

    async def create_smart_issue(
        self,
        text: str,
        project_key: str,
        issue_type: Optional[str] = None,
        priority: Optional[str] = None,
        labels: Optional[Sequence[str]] = None,
        assignee: Optional[str] = None
    ) -> SmartIssueResult:
        """
        Create an issue from free text, filling gaps with the analysis.

        Explicit type, priority, labels and assignee override the suggestions.
        """
        analysis = await self.analyze_issue_text(text, project_key)
        summary = summarize_text(text)
        key = await self.jira.create_issue(
            project_key=project_key,
            summary=summary,
            issue_type=issue_type or analysis.suggested_type,
            description=text,
            priority=priority or analysis.suggested_priority,
            labels=list(labels) if labels is not None else list(analysis.suggested_labels),
            assignee_id=assignee
        )
        return SmartIssueResult(key=key, summary=summary, analysis=analysis)

    async def git_stats(
        self,
        target: Optional[GitHubTarget],
        start_date: date,
        end_date: date
    ) -> ReleaseStats:
        """Commit and pull request counts; zeros when GitHub is absent or fails."""
        if target is None or not self.github.available:
            return ReleaseStats()
        client = self.github.client

        comparison = await attempt(
            client.compare_commits(target.owner, target.repo, target.base, target.head),
            f"Comparing {target.base}...{target.head}"
        )
        if not comparison.ok:
            return ReleaseStats()
        prs = await attempt(
            client.get_merged_pull_requests(target.owner, target.repo, start_date, end_date),
            "Listing merged pull requests"
        )
        if not prs.ok:
            return ReleaseStats()

        return ReleaseStats(
            total_prs=len(prs.value),
            total_commits=comparison.value.total_commits,
            files_changed=comparison.value.files_changed
        )

    async def generate_release_notes(
        self,
        project_key: str,
        version: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        jql_filter: Optional[str] = None,
        github: Optional[GitHubTarget] = None
    ) -> ReleaseNotes:
        default_start, default_end = default_window()
        start_date = start_date or default_start
        end_date = end_date or default_end

        jql = jql_filter or build_release_jql(project_key, start_date, end_date)
        result = await self.jira.search_issues(jql, max_results=RELEASE_FETCH_LIMIT)
        stats = await self.git_stats(github, start_date, end_date)
        return self.release_builder.build(result.issues, version, end_date, stats)

    async def publish_release_notes(
        self,
        notes: ReleaseNotes,
        space_key: Optional[str] = None,
        parent_page_id: Optional[str] = None
    ) -> ConfluencePage:
        """Create a labelled Confluence page; requires Confluence."""
        client = self.confluence.require()
        page = await client.create_page(
            title=notes.page_title,
            content=notes.storage,
            space_key=space_key,
            parent_id=parent_page_id
        )
        await client.add_page_labels(page.id, notes.labels)
        return page

    async def get_time_tracking(self, issue_key: str) -> TimeTrackingSummary:
        issue = await self.jira.get_issue(issue_key)
        worklogs = await attempt(self.jira.get_worklogs(issue_key), f"Fetching worklogs for {issue_key}")
        return TimeTrackingSummary.from_issue(issue, worklogs.unwrap_or([]))

    async def get_team_worklogs(
        self,
        project_key: Optional[str] = None,
        sprint_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> TeamWorklogSummary:
        jql = build_worklog_jql(project_key, sprint_id, start_date, end_date)
        result = await self.jira.search_issues(jql, max_results=WORKLOG_FETCH_LIMIT)
        return summarize_team_worklogs(result.issues)

    async def search_issues(self, jql: str, max_results: int = 50) -> list[JiraIssue]:
        result = await self.jira.search_issues(jql, max_results=max_results)
        return result.issues


def build_analytics(config: Config) -> DevOpsAnalytics:
    """
    Wire clients from configuration.

    Raises:
        ConfigurationError: Jira is not configured
    """
    jira = JiraClient.from_settings(config.jira)
    return DevOpsAnalytics(
        jira=jira,
        github=create_github_client(config.github),
        confluence=create_confluence_client(config.confluence)
    )
