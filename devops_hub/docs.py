"""
Documentation Generator

Builds markdown reports and saves them to a local directory or commits
them to a GitHub repository. Works without Confluence.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Literal, Optional

from .capability import Capability
from .config import DocsSettings
from .errors import ConfigurationError
from .health import SprintHealthResult, round_half_up
from .integrations.github import GitHubClient
from .lookup import attempt
from .release_notes import ReleaseNotes
from .workload import WorkloadDashboard

logger = logging.getLogger(__name__)

FOOTER = "_This report was auto-generated by DevOps Hub_"

SPRINT_REPORTS_PATH = "docs/sprint-reports"
WORKLOAD_REPORTS_PATH = "docs/workload-reports"
RELEASE_NOTES_PATH = "docs/release-notes"


@dataclass
class GeneratedDoc:
    title: str
    filename: str
    content: str
    format: Literal["markdown", "html"] = "markdown"

    @property
    def extension(self) -> str:
        return ".md" if self.format == "markdown" else ".html"

    @property
    def full_filename(self) -> str:
        if self.filename.endswith(self.extension):
            return self.filename
        return f"{self.filename}{self.extension}"


def safe_filename(title: str) -> str:
    """Lower-case slug: "Q3 Plan (draft)" -> "q3-plan-draft"."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


def _percent(count: int, total: int) -> int:
    return round_half_up(count / total * 100) if total else 0


def _bullets(items, empty: str) -> str:
    return "\n".join(f"- {item}" for item in items) if items else empty


class DocsGenerator:
    """
    Generates report documents and stores them.

    Usage:
        docs = DocsGenerator(settings, github=create_github_client(config.github))
        doc = docs.sprint_report(health)
        path = docs.save_to_local(doc)
    """

    def __init__(
        self,
        settings: Optional[DocsSettings] = None,
        github: Optional[Capability[GitHubClient]] = None
    ):
        self.settings = settings or DocsSettings()
        self.github = github or Capability.absent("GitHub")

    def sprint_report(self, health: SprintHealthResult, generated: Optional[date] = None) -> GeneratedDoc:
        day = (generated or date.today()).isoformat()
        b = health.breakdown
        content = f"""# Sprint Report: {health.sprint_name}

**Generated:** {day}
**Sprint ID:** {health.sprint_id}

---

## 📊 Sprint Health

| Metric | Value |
|--------|-------|
| **Health Score** | {health.health_score}/100 |
| **Status** | {health.health_status.value.upper()} |
| **Completion Rate** | {health.completion_rate}% |
| **Burndown** | {health.burndown_health.value} |

---

## 📈 Issue Breakdown

| Status | Count | Percentage |
|--------|-------|------------|
| ✅ Done | {b.done} | {_percent(b.done, b.total)}% |
| 🔄 In Progress | {b.in_progress} | {_percent(b.in_progress, b.total)}% |
| 📋 To Do | {b.todo} | {_percent(b.todo, b.total)}% |
| 🚫 Blocked | {b.blocked} | {_percent(b.blocked, b.total)}% |
| **Total** | **{b.total}** | {100 if b.total else 0}% |

---

## ⚠️ Risks

{_bullets(health.risks, "_No risks identified_")}

---

## 💡 Recommendations

{_bullets(health.recommendations, "_No recommendations_")}

---

{FOOTER}
"""
        return GeneratedDoc(
            title=f"Sprint Report - {health.sprint_name}",
            filename=f"sprint-report-{health.sprint_id}-{day}",
            content=content
        )

    def workload_report(self, dashboard: WorkloadDashboard) -> GeneratedDoc:
        day = dashboard.generated_at.date().isoformat()
        rows = "\n".join(
            f"| {m.status.emoji} {m.name} | {m.assigned_issues} | {m.in_progress_issues} | {m.status.value} |"
            for m in dashboard.members
        )
        content = f"""# Team Workload Report

**Generated:** {day}
**Team Size:** {dashboard.team_size}
**Total Issues:** {dashboard.total_issues}
**Balance Score:** {dashboard.balance_score}/100

---

## 👥 Individual Workload

| Team Member | Assigned | In Progress | Status |
|-------------|----------|-------------|--------|
{rows}

---

## 🚧 Bottlenecks

{_bullets(dashboard.bottlenecks, "_No bottlenecks identified_")}

---

## 💡 Recommendations

{_bullets(dashboard.recommendations, "_No recommendations_")}

---

{FOOTER}
"""
        return GeneratedDoc(
            title=f"Team Workload Report - {day}",
            filename=f"workload-report-{day}",
            content=content
        )

    def release_notes(self, notes: ReleaseNotes) -> GeneratedDoc:
        return GeneratedDoc(
            title=f"Release Notes - v{notes.version}",
            filename=f"release-notes-v{notes.version}",
            content=notes.markdown
        )

    def doc_page(
        self,
        title: str,
        content: str,
        author: Optional[str] = None,
        project: Optional[str] = None,
        tags: Optional[list[str]] = None,
        generated: Optional[date] = None
    ) -> GeneratedDoc:
        """Generic page with YAML front matter."""
        day = (generated or date.today()).isoformat()
        front_matter = ["---", f"title: {title}", f"date: {day}"]
        if author:
            front_matter.append(f"author: {author}")
        if project:
            front_matter.append(f"project: {project}")
        if tags:
            front_matter.append(f"tags: [{', '.join(tags)}]")
        front_matter.append("---")

        body = "\n".join(front_matter) + f"\n\n{content}\n\n---\n\n_Generated by DevOps Hub on {day}_\n"
        return GeneratedDoc(title=title, filename=f"{safe_filename(title)}-{day}", content=body)

    def save_to_local(self, doc: GeneratedDoc, output_dir: Optional[str] = None) -> Path:
        """Write the document under the output directory and return its path."""
        directory = Path(output_dir or self.settings.output_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / doc.full_filename
        path.write_text(doc.content, encoding="utf-8")
        logger.info("Saved %s to %s", doc.title, path)
        return path

    async def save_to_github(
        self,
        doc: GeneratedDoc,
        owner: Optional[str] = None,
        repo: Optional[str] = None,
        path: str = "docs",
        branch: Optional[str] = None,
        commit_message: Optional[str] = None
    ) -> dict:
        """
        Create or update the document in a GitHub repository.

        Raises:
            CapabilityUnavailableError: GitHub is not configured
            ConfigurationError: no owner/repo given or configured
        """
        client = self.github.require()
        owner = owner or self.settings.github_owner
        repo = repo or self.settings.github_repo
        if not owner or not repo:
            raise ConfigurationError(
                "GitHub owner and repo required. Pass them or set DOCS_GITHUB_OWNER and DOCS_GITHUB_REPO."
            )

        file_path = f"{path.strip('/')}/{doc.full_filename}" if path else doc.full_filename
        existing = await attempt(
            client.get_file_sha(owner, repo, file_path, branch),
            f"Looking up {file_path}"
        )
        return await client.put_file(
            owner,
            repo,
            file_path,
            doc.content,
            message=commit_message or f"docs: Add {doc.title}",
            sha=existing.unwrap_or(None),
            branch=branch
        )
