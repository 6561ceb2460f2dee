"""
Tests for report rendering.
"""

import pytest
from datetime import datetime, timezone

from devops_hub.health import SprintHealthScorer
from devops_hub.visualizer import ASCIICharts, MarkdownReporter, Visualizer
from devops_hub.workload import WorkloadAnalyzer
from devops_hub.worklogs import summarize_team_worklogs

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def dashboard(make_issue):
    issues = (
        [make_issue("To Do", assignee="Ann") for _ in range(10)]
        + [make_issue("In Progress", assignee="<Ben>")]
    )
    return WorkloadAnalyzer().analyze(issues, now=NOW)


class TestASCIICharts:
    """Tests for ASCII charts."""

    def test_horizontal_bar(self):
        bar = ASCIICharts.horizontal_bar(50, 100, 10)
        assert bar == "█████░░░░░"

    def test_bar_overflow_is_capped(self):
        assert ASCIICharts.horizontal_bar(150, 100, 10) == "█" * 10

    def test_zero_max(self):
        assert ASCIICharts.horizontal_bar(5, 0, 4) == "░░░░"

    def test_workload_bar(self):
        assert ASCIICharts.workload_bar(9, 9, 5) == "█████   9 🔴"


class TestMarkdownReporter:
    """Tests for markdown reports."""

    def test_sprint_health(self, make_issue):
        health = SprintHealthScorer().score(
            [make_issue("Done"), make_issue("Blocked", key="PROJ-2", summary="Waiting on vendor")],
            sprint_id=4
        )
        report = MarkdownReporter.sprint_health(health)

        assert report.startswith("# Sprint Health Analysis: Sprint 4")
        assert "- Done: 1 (50%)" in report
        assert "### 🚫 Blocked Issues\n- PROJ-2: Waiting on vendor" in report

    def test_workload_dashboard(self, dashboard):
        report = MarkdownReporter.workload_dashboard(dashboard)

        assert "### 🔴 Ann" in report
        assert "- Risks: Has 10 assigned issues" in report
        assert "## 🚧 Bottlenecks\n- Ann is overloaded with 10 issues" in report

    def test_team_worklogs_limit(self, make_issue):
        summary = summarize_team_worklogs(
            [make_issue("Done", assignee=f"User {n}", time_spent=60 * n) for n in range(1, 15)]
        )
        report = MarkdownReporter.team_worklogs(summary, limit=3)

        assert "- User 14: 14m" in report
        assert "User 11" not in report


class TestVisualizer:
    """Tests for the format switch."""

    def test_text_report(self, dashboard):
        report = Visualizer().workload_report(dashboard, format="text")

        assert "TEAM WORKLOAD REPORT" in report
        assert "Balance Score:" in report

    def test_html_report_escapes_names(self, dashboard):
        html = Visualizer().workload_report(dashboard, format="html")

        assert "&lt;Ben&gt;" in html
        assert "<Ben>" not in html
        assert "Team Workload Dashboard" in html

    def test_unknown_format(self, dashboard):
        with pytest.raises(ValueError):
            Visualizer().workload_report(dashboard, format="pdf")
