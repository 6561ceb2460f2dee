"""
Tests for time tracking summaries.
"""

import pytest
from datetime import date, datetime, timezone

from devops_hub.integrations.jira import Worklog
from devops_hub.worklogs import (
    TimeTrackingSummary,
    build_worklog_jql,
    format_duration,
    summarize_team_worklogs
)


class TestFormatDuration:
    """Tests for duration formatting."""

    @pytest.mark.parametrize("seconds,text", [
        (0, "0m"),
        (None, "0m"),
        (2700, "45m"),
        (7200, "2h"),
        (9000, "2h 30m"),
        (59, "0m"),
    ])
    def test_format(self, seconds, text):
        assert format_duration(seconds) == text


class TestTimeTrackingSummary:
    """Tests for per-issue time tracking."""

    def test_progress(self, make_issue):
        issue = make_issue(
            "In Progress", time_spent=5400, time_original_estimate=7200, time_remaining=1800
        )
        summary = TimeTrackingSummary.from_issue(issue)

        assert summary.progress == 75
        assert summary.to_dict()["time_spent_formatted"] == "1h 30m"

    def test_progress_is_capped(self, make_issue):
        issue = make_issue("Done", time_spent=10800, time_original_estimate=3600)
        assert TimeTrackingSummary.from_issue(issue).progress == 100

    def test_no_estimate(self, make_issue):
        summary = TimeTrackingSummary.from_issue(make_issue("To Do"))

        assert summary.time_spent == 0
        assert summary.progress == 0

    def test_worklogs_serialized(self, make_issue):
        worklog = Worklog(
            author="Alice",
            time_spent="1h",
            time_spent_seconds=3600,
            started=datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc),
            comment="Pairing"
        )
        data = TimeTrackingSummary.from_issue(make_issue("To Do"), [worklog]).to_dict()

        assert data["worklogs"] == [{
            "author": "Alice",
            "time_spent": "1h",
            "started": "2024-03-01T09:00:00+00:00",
            "comment": "Pairing"
        }]


class TestTeamWorklogs:
    """Tests for team-wide aggregation."""

    def test_totals_by_issue_and_assignee(self, make_issue):
        issues = [
            make_issue("Done", key="PROJ-1", assignee="Alice", time_spent=3600),
            make_issue("Done", key="PROJ-2", assignee="Bob", time_spent=7200),
            make_issue("Done", key="PROJ-3", assignee="Alice", time_spent=5400),
            make_issue("Done", key="PROJ-4", assignee=None, time_spent=600),
        ]
        summary = summarize_team_worklogs(issues)

        assert summary.total_seconds == 16800
        assert summary.total_formatted == "4h 40m"
        assert [e.name for e in summary.issues] == ["PROJ-2", "PROJ-3", "PROJ-1", "PROJ-4"]
        assert [(e.name, e.seconds) for e in summary.users] == [
            ("Alice", 9000), ("Bob", 7200), ("Unassigned", 600)
        ]

    def test_empty(self):
        summary = summarize_team_worklogs([])
        assert summary.total_seconds == 0
        assert summary.to_dict()["user_breakdown"] == []


class TestWorklogJql:
    def test_all_filters(self):
        jql = build_worklog_jql("PROJ", 5, date(2024, 1, 1), date(2024, 1, 31))
        assert jql == (
            'timespent > 0 AND project = "PROJ" AND sprint = 5 '
            'AND worklogDate >= "2024-01-01" AND worklogDate <= "2024-01-31"'
        )

    def test_no_filters(self):
        assert build_worklog_jql() == "timespent > 0"
