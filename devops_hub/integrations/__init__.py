"""
DevOps Hub - Integrations

This module provides clients for the external services:
- Jira: issues, sprints, worklogs, issue creation
- GitHub: commit comparisons, pull requests, file commits
- Confluence: page publishing and labels
"""

from .jira import JiraClient, JiraIssue, SearchResult, Sprint, Worklog
from .github import GitHubClient, PullRequest, CommitComparison, create_github_client
from .confluence import ConfluenceClient, ConfluencePage, create_confluence_client

__all__ = [
    # Jira
    "JiraClient",
    "JiraIssue",
    "SearchResult",
    "Sprint",
    "Worklog",

    # GitHub
    "GitHubClient",
    "PullRequest",
    "CommitComparison",
    "create_github_client",

    # Confluence
    "ConfluenceClient",
    "ConfluencePage",
    "create_confluence_client",
]
