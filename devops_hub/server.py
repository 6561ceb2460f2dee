"""DevOps Hub MCP server.

Exposes sprint health, workload, issue text analysis, release notes, time
tracking and report saving as MCP tools over stdio, plus sprint review
and workload analysis prompts.
"""

import logging
from datetime import date
from typing import Optional

from mcp.server.fastmcp import FastMCP

from .analytics import DevOpsAnalytics, GitHubTarget, build_analytics
from .config import Config, setup_logging
from .docs import (
    RELEASE_NOTES_PATH,
    SPRINT_REPORTS_PATH,
    WORKLOAD_REPORTS_PATH,
    DocsGenerator,
    GeneratedDoc,
)
from .visualizer import MarkdownReporter

logger = logging.getLogger(__name__)

mcp = FastMCP("devops-hub")

_state: dict = {"analytics": None, "docs": None}


def configure(analytics: DevOpsAnalytics, docs: Optional[DocsGenerator] = None):
    """Install the analytics and docs instances the tools use."""
    _state["analytics"] = analytics
    _state["docs"] = docs or DocsGenerator(github=analytics.github)


def _analytics() -> DevOpsAnalytics:
    if _state["analytics"] is None:
        config = Config()
        analytics = build_analytics(config)
        configure(analytics, DocsGenerator(config.docs, github=analytics.github))
    return _state["analytics"]


def _docs() -> DocsGenerator:
    _analytics()
    return _state["docs"]


def _date(value: str) -> Optional[date]:
    return date.fromisoformat(value) if value else None


async def _save(
    doc: GeneratedDoc,
    save_to_github: bool,
    github_owner: str,
    github_repo: str,
    path: str
) -> str:
    docs = _docs()
    if save_to_github:
        result = await docs.save_to_github(doc, github_owner or None, github_repo or None, path=path)
        return f"✅ {doc.title} committed to GitHub\n\nURL: {result['url']}"
    saved = docs.save_to_local(doc)
    return f"✅ {doc.title} saved\n\nFile: {saved}"


# ── Analytics ────────────────────────────────────────────────


@mcp.tool()
async def analyze_sprint_health(sprint_id: int, board_id: int = 0) -> str:
    """Score a sprint's health: completion, blocked work, WIP overload, risks.

    Pass board_id to show the sprint's real name instead of "Sprint <id>".
    """
    health = await _analytics().analyze_sprint_health(sprint_id, board_id or None)
    return MarkdownReporter.sprint_health(health)


@mcp.tool()
async def get_workload_dashboard(project_key: str = "", sprint_id: int = 0) -> str:
    """Team workload per assignee with balance score, bottlenecks and recommendations.

    Without a sprint, all open assigned issues are considered.
    """
    dashboard = await _analytics().generate_workload_dashboard(project_key or None, sprint_id or None)
    return MarkdownReporter.workload_dashboard(dashboard)


@mcp.tool()
async def analyze_issue_text(text: str, project_key: str) -> str:
    """Suggest type, priority, labels and story points for an issue description
    and look for similar existing issues."""
    analysis = await _analytics().analyze_issue_text(text, project_key)
    return MarkdownReporter.issue_analysis(analysis)


@mcp.tool()
async def create_smart_issue(
    text: str,
    project_key: str,
    issue_type: str = "",
    priority: str = "",
    assignee: str = "",
) -> str:
    """Create a Jira issue from free text using the suggested type, priority and labels.

    Explicit issue_type / priority / assignee override the suggestions.
    """
    result = await _analytics().create_smart_issue(
        text,
        project_key,
        issue_type=issue_type or None,
        priority=priority or None,
        assignee=assignee or None,
    )
    analysis = result.analysis
    return "\n".join([
        f"✅ Issue Created: **{result.key}**",
        "",
        f"Summary: {result.summary}",
        "",
        "## Analysis Applied",
        f"- Type: {issue_type or analysis.suggested_type}",
        f"- Priority: {priority or analysis.suggested_priority}",
        f"- Labels: {', '.join(analysis.suggested_labels) or 'None'}",
    ])


@mcp.tool()
async def generate_release_notes(
    project_key: str,
    version: str,
    start_date: str = "",
    end_date: str = "",
    github_owner: str = "",
    github_repo: str = "",
) -> str:
    """Generate markdown release notes from issues resolved in a date range
    (default: last 30 days). Dates are YYYY-MM-DD.

    Pass github_owner and github_repo to include commit and PR statistics.
    """
    target = GitHubTarget(github_owner, github_repo) if github_owner and github_repo else None
    notes = await _analytics().generate_release_notes(
        project_key, version, _date(start_date), _date(end_date), github=target
    )
    return notes.markdown


@mcp.tool()
async def publish_release_notes_to_confluence(
    project_key: str,
    version: str,
    space_key: str = "",
    parent_page_id: str = "",
    start_date: str = "",
    end_date: str = "",
) -> str:
    """Generate release notes and publish them as a labelled Confluence page."""
    analytics = _analytics()
    analytics.confluence.require()
    notes = await analytics.generate_release_notes(
        project_key, version, _date(start_date), _date(end_date)
    )
    page = await analytics.publish_release_notes(notes, space_key or None, parent_page_id or None)
    return f"✅ Release notes published to Confluence!\n\nPage ID: {page.id}\nURL: {page.url}"


@mcp.tool()
async def get_time_tracking(issue_key: str) -> str:
    """Original estimate, time spent, remaining time and worklogs for one issue."""
    summary = await _analytics().get_time_tracking(issue_key)
    return MarkdownReporter.time_tracking(summary)


@mcp.tool()
async def get_team_worklogs(
    project_key: str = "",
    sprint_id: int = 0,
    start_date: str = "",
    end_date: str = "",
) -> str:
    """Logged time per user and per issue for a project, sprint or date range."""
    summary = await _analytics().get_team_worklogs(
        project_key or None, sprint_id or None, _date(start_date), _date(end_date)
    )
    return MarkdownReporter.team_worklogs(summary)


# ── Jira ─────────────────────────────────────────────────────


@mcp.tool()
async def search_issues(jql: str, max_results: int = 50) -> str:
    """Search Jira issues with JQL."""
    issues = await _analytics().search_issues(jql, max_results)
    lines = [
        f"- **{i.key}**: {i.summary} [{i.status}] ({i.assignee or 'Unassigned'})"
        for i in issues
    ]
    return "\n".join(lines) if lines else "No issues found."


@mcp.tool()
async def get_sprints(board_id: int, state: str = "") -> str:
    """List sprints on a board, optionally filtered by state (active, closed, future)."""
    sprints = await _analytics().jira.get_sprints(board_id, state or None)
    lines = [f"- {s.name} (id: {s.id}, {s.state})" for s in sprints]
    return "\n".join(lines) if lines else "No sprints found."


# ── Documentation (no Confluence needed) ─────────────────────


@mcp.tool()
async def save_sprint_report(
    sprint_id: int,
    board_id: int = 0,
    save_to_github: bool = False,
    github_owner: str = "",
    github_repo: str = "",
) -> str:
    """Generate a sprint report and save it locally or commit it to GitHub."""
    health = await _analytics().analyze_sprint_health(sprint_id, board_id or None)
    doc = _docs().sprint_report(health)
    return await _save(doc, save_to_github, github_owner, github_repo, SPRINT_REPORTS_PATH)


@mcp.tool()
async def save_workload_report(
    project_key: str = "",
    sprint_id: int = 0,
    save_to_github: bool = False,
    github_owner: str = "",
    github_repo: str = "",
) -> str:
    """Generate a team workload report and save it locally or commit it to GitHub."""
    dashboard = await _analytics().generate_workload_dashboard(project_key or None, sprint_id or None)
    doc = _docs().workload_report(dashboard)
    return await _save(doc, save_to_github, github_owner, github_repo, WORKLOAD_REPORTS_PATH)


@mcp.tool()
async def save_release_notes_to_file(
    project_key: str,
    version: str,
    start_date: str = "",
    end_date: str = "",
    save_to_github: bool = False,
    github_owner: str = "",
    github_repo: str = "",
) -> str:
    """Generate release notes and save them locally or commit them to GitHub."""
    notes = await _analytics().generate_release_notes(
        project_key, version, _date(start_date), _date(end_date)
    )
    doc = _docs().release_notes(notes)
    return await _save(doc, save_to_github, github_owner, github_repo, RELEASE_NOTES_PATH)


@mcp.tool()
async def save_doc_to_github(
    title: str,
    content: str,
    author: str = "",
    project: str = "",
    tags: str = "",
    save_to_github: bool = True,
    github_owner: str = "",
    github_repo: str = "",
    path: str = "docs",
) -> str:
    """Save any markdown content as a page with YAML front matter.

    tags is a comma-separated list. Set save_to_github to false to write the
    page to the local output directory instead.
    """
    tag_list = [tag.strip() for tag in tags.split(",") if tag.strip()]
    doc = _docs().doc_page(title, content, author=author or None, project=project or None, tags=tag_list)
    return await _save(doc, save_to_github, github_owner, github_repo, path)


# ── Prompts ──────────────────────────────────────────────────


@mcp.prompt()
def sprint_review(sprint_id: str, board_id: str = "") -> str:
    """Comprehensive sprint review with health analysis."""
    board = f" with board_id {board_id}" if board_id else ""
    return (
        f"Review sprint {sprint_id}. Call analyze_sprint_health for sprint_id {sprint_id}{board} "
        "and get_workload_dashboard for the same sprint. Summarize the health score, "
        "completion, blocked work and risks, name the team members who are overloaded, "
        "and finish with the three most important actions for the next sprint."
    )


@mcp.prompt()
def workload_analysis(project_key: str = "", sprint_id: str = "") -> str:
    """Team workload analysis with rebalancing recommendations."""
    scope = []
    if project_key:
        scope.append(f"project_key {project_key}")
    if sprint_id:
        scope.append(f"sprint_id {sprint_id}")
    target = f" with {' and '.join(scope)}" if scope else ""
    return (
        f"Call get_workload_dashboard{target}. Explain the balance score, point out "
        "bottlenecks and stale issues, and propose concrete reassignments from "
        "overloaded to underutilized team members."
    )


def main():
    config = Config()
    setup_logging(config.log_level)
    analytics = build_analytics(config)
    configure(analytics, DocsGenerator(config.docs, github=analytics.github))
    logger.info("DevOps Hub MCP server starting")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
