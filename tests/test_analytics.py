"""
Tests for the analytics orchestration layer with mocked clients.
"""

from datetime import date
from unittest.mock import AsyncMock

import httpx
import pytest

from devops_hub.analytics import DevOpsAnalytics, GitHubTarget, build_analytics
from devops_hub.capability import Capability
from devops_hub.config import Config
from devops_hub.errors import CapabilityUnavailableError, ConfigurationError, DataSourceError
from devops_hub.integrations.confluence import ConfluencePage
from devops_hub.integrations.github import CommitComparison, PullRequest
from devops_hub.integrations.jira import JiraClient, SearchResult, Worklog


@pytest.fixture
def jira():
    client = AsyncMock()
    client.search_issues.return_value = SearchResult(issues=[], total=0)
    return client


def server_jira(handler):
    return JiraClient("https://jira.internal", "pat", transport=httpx.MockTransport(handler))


class TestSprintHealth:
    """Tests for analyze_sprint_health."""

    async def test_uses_resolved_sprint_name(self, jira, make_issue):
        jira.get_sprint_issues.return_value = [make_issue("Done")]
        jira.get_sprint_name.return_value = "Sprint Beta"

        health = await DevOpsAnalytics(jira).analyze_sprint_health(2, board_id=7)

        jira.get_sprint_issues.assert_awaited_once_with(2)
        jira.get_sprint_name.assert_awaited_once_with(7, 2)
        assert health.sprint_name == "Sprint Beta"

    async def test_name_lookup_failure_keeps_default(self, jira):
        jira.get_sprint_issues.return_value = []
        jira.get_sprint_name.side_effect = DataSourceError("Jira", 500, "boom")

        health = await DevOpsAnalytics(jira).analyze_sprint_health(2, board_id=7)

        assert health.sprint_name == "Sprint 2"
        assert health.health_score == 50

    async def test_transport_failure_keeps_default(self, jira):
        jira.get_sprint_issues.return_value = []
        jira.get_sprint_name.side_effect = httpx.ConnectError("unreachable")

        health = await DevOpsAnalytics(jira).analyze_sprint_health(2, board_id=7)

        assert health.sprint_name == "Sprint 2"

    async def test_malformed_sprint_list_keeps_default(self):
        def handler(request):
            if request.url.path == "/rest/agile/1.0/sprint/2/issue":
                return httpx.Response(200, json={"issues": []})
            return httpx.Response(200, json={"values": [{"id": 2}]})

        health = await DevOpsAnalytics(server_jira(handler)).analyze_sprint_health(2, board_id=7)

        assert health.sprint_name == "Sprint 2"

    async def test_no_board_means_no_lookup(self, jira):
        jira.get_sprint_issues.return_value = []

        await DevOpsAnalytics(jira).analyze_sprint_health(2)

        jira.get_sprint_name.assert_not_called()

    async def test_primary_fetch_failure_propagates(self, jira):
        jira.get_sprint_issues.side_effect = DataSourceError("Jira", 401, "Unauthorized")

        with pytest.raises(DataSourceError):
            await DevOpsAnalytics(jira).analyze_sprint_health(2)


class TestWorkload:
    async def test_dashboard_query(self, jira, make_issue):
        jira.search_issues.return_value = SearchResult(
            issues=[make_issue("To Do", assignee="Ann")], total=1
        )

        dashboard = await DevOpsAnalytics(jira).generate_workload_dashboard("PROJ", 12)

        jira.search_issues.assert_awaited_once_with(
            'assignee is not EMPTY AND project = "PROJ" AND sprint = 12', max_results=200
        )
        assert dashboard.total_issues == 1
        assert dashboard.sprint_name == "Sprint 12"


class TestIssueText:
    """Tests for issue text analysis and smart issue creation."""

    async def test_similar_issues_found(self, jira, make_issue):
        jira.search_issues.return_value = SearchResult(
            issues=[make_issue("Done", key="PROJ-5", summary="Login crash")], total=1
        )

        analysis = await DevOpsAnalytics(jira).analyze_issue_text("Login crashes on submit", "PROJ")

        jql = jira.search_issues.await_args.args[0]
        assert 'text ~ "Login OR crashes OR submit"' in jql
        assert analysis.similar_issues[0].key == "PROJ-5"

    async def test_similar_search_failure_is_empty(self, jira):
        jira.search_issues.side_effect = DataSourceError("Jira", 400, "bad query")

        analysis = await DevOpsAnalytics(jira).analyze_issue_text("Login crashes on submit", "PROJ")

        assert analysis.similar_issues == ()
        assert analysis.suggested_type == "Bug"

    async def test_non_json_similar_search_is_empty(self):
        def handler(request):
            return httpx.Response(200, text="<html>Login</html>", headers={"content-type": "text/html"})

        analysis = await DevOpsAnalytics(server_jira(handler)).analyze_issue_text("Login crashes on submit", "PROJ")

        assert analysis.similar_issues == ()
        assert analysis.suggested_type == "Bug"

    async def test_short_words_skip_search(self, jira):
        await DevOpsAnalytics(jira).analyze_issue_text("fix it", "PROJ")
        jira.search_issues.assert_not_called()

    async def test_smart_issue_uses_suggestions(self, jira):
        jira.create_issue.return_value = "PROJ-42"
        text = "URGENT: production database is broken. Customers cannot log in."

        result = await DevOpsAnalytics(jira).create_smart_issue(text, "PROJ")

        kwargs = jira.create_issue.await_args.kwargs
        assert result.key == "PROJ-42"
        assert kwargs["summary"] == "URGENT: production database is broken"
        assert kwargs["issue_type"] == "Bug"
        assert kwargs["priority"] == "Critical"
        assert "backend" in kwargs["labels"]
        assert kwargs["description"] == text

    async def test_smart_issue_overrides(self, jira):
        jira.create_issue.return_value = "PROJ-43"

        await DevOpsAnalytics(jira).create_smart_issue(
            "Crash on save", "PROJ", issue_type="Task", priority="Low", labels=[], assignee="abc"
        )

        kwargs = jira.create_issue.await_args.kwargs
        assert kwargs["issue_type"] == "Task"
        assert kwargs["priority"] == "Low"
        assert kwargs["labels"] == []
        assert kwargs["assignee_id"] == "abc"


class TestReleaseNotes:
    """Tests for release notes generation and publishing."""

    async def test_defaults_without_github(self, jira, make_issue):
        jira.search_issues.return_value = SearchResult(
            issues=[make_issue("Done", issue_type="Bug")], total=1
        )

        notes = await DevOpsAnalytics(jira).generate_release_notes(
            "PROJ", "1.0.0", date(2024, 1, 1), date(2024, 1, 31),
            github=GitHubTarget("acme", "api")
        )

        assert notes.stats.total_commits == 0
        assert notes.stats.total_prs == 0
        assert notes.release_date == "2024-01-31"
        assert len(notes.categories.bug_fixes) == 1

    async def test_custom_filter(self, jira):
        await DevOpsAnalytics(jira).generate_release_notes("PROJ", "1.0.0", jql_filter="fixVersion = 1.0.0")
        assert jira.search_issues.await_args.args[0] == "fixVersion = 1.0.0"

    async def test_git_stats(self, jira):
        github = AsyncMock()
        github.compare_commits.return_value = CommitComparison("ahead", 5, 0, 5, 12)
        github.get_merged_pull_requests.return_value = [PullRequest(1, "a", "x", "closed")] * 3
        analytics = DevOpsAnalytics(jira, github=Capability.present("GitHub", github))

        notes = await analytics.generate_release_notes(
            "PROJ", "1.0.0", date(2024, 1, 1), date(2024, 1, 31), github=GitHubTarget("acme", "api")
        )

        github.compare_commits.assert_awaited_once_with("acme", "api", "main", "develop")
        assert notes.stats.total_prs == 3
        assert notes.stats.total_commits == 5
        assert notes.stats.files_changed == 12

    async def test_git_failure_degrades_to_zero(self, jira):
        github = AsyncMock()
        github.compare_commits.side_effect = DataSourceError("GitHub", 404, "Not Found")
        analytics = DevOpsAnalytics(jira, github=Capability.present("GitHub", github))

        stats = await analytics.git_stats(GitHubTarget("acme", "api"), date(2024, 1, 1), date(2024, 1, 31))

        assert stats.total_commits == 0
        github.get_merged_pull_requests.assert_not_called()

    async def test_publish_requires_confluence(self, jira):
        analytics = DevOpsAnalytics(jira)
        notes = await analytics.generate_release_notes("PROJ", "1.0.0")

        with pytest.raises(CapabilityUnavailableError):
            await analytics.publish_release_notes(notes)

    async def test_publish_creates_labelled_page(self, jira):
        confluence = AsyncMock()
        confluence.create_page.return_value = ConfluencePage(id="7", title="t", url="https://wiki/7")
        analytics = DevOpsAnalytics(jira, confluence=Capability.present("Confluence", confluence))
        notes = await analytics.generate_release_notes("PROJ", "1.2.0", date(2024, 1, 1), date(2024, 1, 31))

        page = await analytics.publish_release_notes(notes, space_key="ENG")

        confluence.create_page.assert_awaited_once_with(
            title="Release Notes - v1.2.0 (2024-01-31)",
            content=notes.storage,
            space_key="ENG",
            parent_id=None
        )
        confluence.add_page_labels.assert_awaited_once_with("7", ["release-notes", "version-1-2-0"])
        assert page.id == "7"


class TestTimeTracking:
    async def test_worklog_failure_keeps_issue_times(self, jira, make_issue):
        jira.get_issue.return_value = make_issue("Done", key="PROJ-1", time_spent=3600)
        jira.get_worklogs.side_effect = DataSourceError("Jira", 403, "Forbidden")

        summary = await DevOpsAnalytics(jira).get_time_tracking("PROJ-1")

        assert summary.time_spent == 3600
        assert summary.worklogs == []

    async def test_worklogs_included(self, jira, make_issue):
        jira.get_issue.return_value = make_issue("Done", key="PROJ-1")
        jira.get_worklogs.return_value = [Worklog("Alice", "1h", 3600)]

        summary = await DevOpsAnalytics(jira).get_time_tracking("PROJ-1")

        assert summary.worklogs[0].author == "Alice"

    async def test_team_worklogs(self, jira, make_issue):
        jira.search_issues.return_value = SearchResult(
            issues=[make_issue("Done", time_spent=1800)], total=1
        )

        summary = await DevOpsAnalytics(jira).get_team_worklogs(project_key="PROJ")

        assert jira.search_issues.await_args.args[0] == 'timespent > 0 AND project = "PROJ"'
        assert summary.total_seconds == 1800


class TestBuildAnalytics:
    def test_requires_jira(self, tmp_path):
        config = Config(str(tmp_path / "none.yaml"), environ={})
        with pytest.raises(ConfigurationError):
            build_analytics(config)

    def test_optional_integrations(self, tmp_path):
        config = Config(str(tmp_path / "none.yaml"), environ={
            "JIRA_BASE_URL": "https://jira.internal",
            "JIRA_API_TOKEN": "pat",
            "GITHUB_TOKEN": "ghp_x",
        })
        analytics = build_analytics(config)

        assert analytics.github.available
        assert not analytics.confluence.available
