"""
Shared fixtures.
"""

import pytest

from devops_hub.integrations.jira import JiraIssue


@pytest.fixture
def make_issue():
    """Factory for JiraIssue with sensible defaults."""
    counter = {"n": 0}

    def _make(status="To Do", **kwargs):
        counter["n"] += 1
        kwargs.setdefault("key", f"PROJ-{counter['n']}")
        kwargs.setdefault("summary", f"Issue {counter['n']}")
        kwargs.setdefault("assignee", "Alice")
        kwargs.setdefault("priority", "Medium")
        return JiraIssue(status=status, **kwargs)

    return _make
