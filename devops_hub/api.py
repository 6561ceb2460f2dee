"""
FastAPI Backend for DevOps Hub

REST access to the analytics operations and the HTML workload dashboard.
"""

import logging
from datetime import date, datetime
from typing import Optional
from contextlib import asynccontextmanager

import httpx
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from .analytics import DevOpsAnalytics, GitHubTarget, build_analytics
from .config import Config, setup_logging
from .errors import (
    CapabilityUnavailableError,
    ConfigurationError,
    DataSourceError,
    HubError,
    SpaceAccessError,
)
from .visualizer import Visualizer

logger = logging.getLogger(__name__)

config = Config()
visualizer = Visualizer()

_analytics: dict = {"instance": None}


def get_analytics() -> DevOpsAnalytics:
    """Shared analytics instance, built from configuration on first use."""
    if _analytics["instance"] is None:
        try:
            _analytics["instance"] = build_analytics(config)
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e))
    return _analytics["instance"]


def _http_error(exc: Exception) -> HTTPException:
    """Map a hub error onto one HTTP status with a descriptive detail."""
    if isinstance(exc, (ConfigurationError, CapabilityUnavailableError)):
        status = 400
    elif isinstance(exc, SpaceAccessError):
        status = 403
    elif isinstance(exc, DataSourceError) and exc.status_code == 404:
        status = 404
    elif isinstance(exc, (DataSourceError, httpx.HTTPError)):
        status = 502
    else:
        status = 500
    logger.warning("Request failed (%s): %s", status, exc)
    return HTTPException(status_code=status, detail=str(exc))


# Pydantic models for API
class SmartIssueRequest(BaseModel):
    text: str
    project_key: str
    issue_type: Optional[str] = None
    priority: Optional[str] = None
    labels: Optional[list[str]] = None
    assignee: Optional[str] = None


class IssueTextRequest(BaseModel):
    text: str
    project_key: str


class ReleaseNotesRequest(BaseModel):
    project_key: str
    version: str
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    jql_filter: Optional[str] = None
    github_owner: Optional[str] = None
    github_repo: Optional[str] = None
    base_branch: str = "main"
    head_branch: str = "develop"

    def github_target(self) -> Optional[GitHubTarget]:
        if self.github_owner and self.github_repo:
            return GitHubTarget(self.github_owner, self.github_repo, self.base_branch, self.head_branch)
        return None


class PublishRequest(ReleaseNotesRequest):
    space_key: Optional[str] = None
    parent_page_id: Optional[str] = None


# Lifespan context manager
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging(config.log_level)
    logger.info("DevOps Hub API starting up")
    yield
    logger.info("DevOps Hub API shutting down")


# Create FastAPI app
app = FastAPI(
    title="DevOps Hub",
    description="Sprint health, workload, issue triage and release notes over Jira, GitHub and Confluence",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "integrations": {
            "jira": config.jira.configured,
            "github": config.github.configured,
            "confluence": config.confluence.configured
        }
    }


# Sprint endpoints
@app.get("/api/sprints/{sprint_id}/health")
async def get_sprint_health(
    sprint_id: int,
    board_id: Optional[int] = None,
    analytics: DevOpsAnalytics = Depends(get_analytics)
):
    """Score a sprint's health."""
    try:
        health = await analytics.analyze_sprint_health(sprint_id, board_id)
        return health.to_dict()
    except (HubError, httpx.HTTPError) as e:
        raise _http_error(e)


@app.get("/api/sprints/{sprint_id}/report")
async def get_sprint_report(
    sprint_id: int,
    board_id: Optional[int] = None,
    analytics: DevOpsAnalytics = Depends(get_analytics)
):
    """Markdown sprint health report."""
    try:
        health = await analytics.analyze_sprint_health(sprint_id, board_id)
        return {"report": visualizer.sprint_report(health)}
    except (HubError, httpx.HTTPError) as e:
        raise _http_error(e)


# Team workload endpoints
@app.get("/api/workload")
async def get_team_workload(
    project_key: Optional[str] = None,
    sprint_id: Optional[int] = None,
    analytics: DevOpsAnalytics = Depends(get_analytics)
):
    """Get current team workload dashboard."""
    try:
        dashboard = await analytics.generate_workload_dashboard(project_key, sprint_id)
        return dashboard.to_dict()
    except (HubError, httpx.HTTPError) as e:
        raise _http_error(e)


@app.get("/api/reports/workload", response_class=HTMLResponse)
async def get_workload_html_report(
    project_key: Optional[str] = None,
    sprint_id: Optional[int] = None,
    analytics: DevOpsAnalytics = Depends(get_analytics)
):
    """Get HTML dashboard for team workload."""
    try:
        dashboard = await analytics.generate_workload_dashboard(project_key, sprint_id)
    except (HubError, httpx.HTTPError) as e:
        raise _http_error(e)
    return visualizer.workload_report(dashboard, format="html")


@app.get("/api/reports/workload/text")
async def get_workload_text_report(
    project_key: Optional[str] = None,
    sprint_id: Optional[int] = None,
    analytics: DevOpsAnalytics = Depends(get_analytics)
):
    """Get text report for team workload."""
    try:
        dashboard = await analytics.generate_workload_dashboard(project_key, sprint_id)
    except (HubError, httpx.HTTPError) as e:
        raise _http_error(e)
    return {"report": visualizer.workload_report(dashboard, format="text")}


# Issue endpoints
@app.post("/api/issues/analyze")
async def analyze_issue_text(
    request: IssueTextRequest,
    analytics: DevOpsAnalytics = Depends(get_analytics)
):
    """Suggest type, priority, labels and story points for issue text."""
    try:
        analysis = await analytics.analyze_issue_text(request.text, request.project_key)
        return analysis.to_dict()
    except (HubError, httpx.HTTPError) as e:
        raise _http_error(e)


@app.post("/api/issues", status_code=201)
async def create_smart_issue(
    request: SmartIssueRequest,
    analytics: DevOpsAnalytics = Depends(get_analytics)
):
    """Create an issue from free text with suggested defaults."""
    try:
        result = await analytics.create_smart_issue(
            request.text,
            request.project_key,
            issue_type=request.issue_type,
            priority=request.priority,
            labels=request.labels,
            assignee=request.assignee
        )
        return result.to_dict()
    except (HubError, httpx.HTTPError) as e:
        raise _http_error(e)


@app.get("/api/issues/{issue_key}/time-tracking")
async def get_time_tracking(
    issue_key: str,
    analytics: DevOpsAnalytics = Depends(get_analytics)
):
    try:
        summary = await analytics.get_time_tracking(issue_key)
        return summary.to_dict()
    except (HubError, httpx.HTTPError) as e:
        raise _http_error(e)


@app.get("/api/worklogs")
async def get_team_worklogs(
    project_key: Optional[str] = None,
    sprint_id: Optional[int] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    analytics: DevOpsAnalytics = Depends(get_analytics)
):
    try:
        summary = await analytics.get_team_worklogs(project_key, sprint_id, start_date, end_date)
        return summary.to_dict()
    except (HubError, httpx.HTTPError) as e:
        raise _http_error(e)


# Release notes endpoints
@app.post("/api/release-notes")
async def generate_release_notes(
    request: ReleaseNotesRequest,
    analytics: DevOpsAnalytics = Depends(get_analytics)
):
    """Generate release notes for resolved issues in a date range."""
    try:
        notes = await analytics.generate_release_notes(
            request.project_key,
            request.version,
            request.start_date,
            request.end_date,
            jql_filter=request.jql_filter,
            github=request.github_target()
        )
        return notes.to_dict()
    except (HubError, httpx.HTTPError) as e:
        raise _http_error(e)


@app.post("/api/release-notes/publish")
async def publish_release_notes(
    request: PublishRequest,
    analytics: DevOpsAnalytics = Depends(get_analytics)
):
    """Generate release notes and publish them to Confluence."""
    try:
        analytics.confluence.require()
        notes = await analytics.generate_release_notes(
            request.project_key,
            request.version,
            request.start_date,
            request.end_date,
            jql_filter=request.jql_filter,
            github=request.github_target()
        )
        page = await analytics.publish_release_notes(notes, request.space_key, request.parent_page_id)
        return {"page_id": page.id, "title": page.title, "url": page.url}
    except (HubError, httpx.HTTPError) as e:
        raise _http_error(e)


# Run with: uvicorn devops_hub.api:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
