"""
Release Notes Generator

Sorts resolved issues into five exclusive categories and renders them as
markdown and as Confluence storage format.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import Optional

from .integrations.jira import JiraIssue
from .markup import markdown_to_storage

DEFAULT_WINDOW_DAYS = 30
DESCRIPTION_LIMIT = 200
RELEASE_FETCH_LIMIT = 200

BREAKING_LABELS = frozenset({"breaking-change", "breaking"})
DEPRECATED_LABELS = frozenset({"deprecated"})
BUG_TYPES = frozenset({"bug", "defect"})
FEATURE_TYPES = frozenset({"story", "feature", "new feature"})


class ReleaseCategory(Enum):
    """Release note sections, in rendering order."""
    BREAKING_CHANGES = "breaking_changes"
    FEATURES = "features"
    IMPROVEMENTS = "improvements"
    BUG_FIXES = "bug_fixes"
    DEPRECATED = "deprecated"

    @property
    def heading(self) -> str:
        return {
            ReleaseCategory.BREAKING_CHANGES: "⚠️ Breaking Changes",
            ReleaseCategory.FEATURES: "✨ New Features",
            ReleaseCategory.IMPROVEMENTS: "🔧 Improvements",
            ReleaseCategory.BUG_FIXES: "🐛 Bug Fixes",
            ReleaseCategory.DEPRECATED: "📦 Deprecated"
        }[self]


def categorize_issue(issue: JiraIssue) -> ReleaseCategory:
    """Exactly one category per issue; labels take precedence over type."""
    labels = {label.lower() for label in issue.labels}
    issue_type = issue.issue_type.lower()

    if labels & BREAKING_LABELS:
        return ReleaseCategory.BREAKING_CHANGES
    if labels & DEPRECATED_LABELS:
        return ReleaseCategory.DEPRECATED
    if issue_type in BUG_TYPES:
        return ReleaseCategory.BUG_FIXES
    if issue_type in FEATURE_TYPES:
        return ReleaseCategory.FEATURES
    return ReleaseCategory.IMPROVEMENTS


def default_window(today: Optional[date] = None) -> tuple[date, date]:
    """The last 30 days, ending today."""
    end = today or date.today()
    return end - timedelta(days=DEFAULT_WINDOW_DAYS), end


def build_release_jql(project_key: str, start_date: date, end_date: date) -> str:
    return (
        f'project = "{project_key}" AND status IN (Done, Closed, Resolved) '
        f'AND resolved >= "{start_date.isoformat()}" AND resolved <= "{end_date.isoformat()}"'
    )


@dataclass(frozen=True)
class ReleaseItem:
    key: str
    summary: str
    description: Optional[str] = None

    @classmethod
    def from_issue(cls, issue: JiraIssue) -> "ReleaseItem":
        description = issue.description[:DESCRIPTION_LIMIT] if issue.description else None
        return cls(key=issue.key, summary=issue.summary, description=description)

    def to_dict(self) -> dict:
        return {"key": self.key, "summary": self.summary, "description": self.description}


@dataclass
class ReleaseCategories:
    """Issues grouped by release category."""
    features: list[ReleaseItem] = field(default_factory=list)
    improvements: list[ReleaseItem] = field(default_factory=list)
    bug_fixes: list[ReleaseItem] = field(default_factory=list)
    breaking_changes: list[ReleaseItem] = field(default_factory=list)
    deprecated: list[ReleaseItem] = field(default_factory=list)

    def items(self, category: ReleaseCategory) -> list[ReleaseItem]:
        return getattr(self, category.value)

    def add(self, category: ReleaseCategory, item: ReleaseItem):
        self.items(category).append(item)

    @property
    def total(self) -> int:
        return sum(len(self.items(c)) for c in ReleaseCategory)

    def to_dict(self) -> dict:
        return {c.value: [i.to_dict() for i in self.items(c)] for c in ReleaseCategory}


@dataclass(frozen=True)
class ReleaseStats:
    total_issues: int = 0
    total_prs: int = 0
    total_commits: int = 0
    files_changed: int = 0

    def to_dict(self) -> dict:
        return {
            "total_issues": self.total_issues,
            "total_prs": self.total_prs,
            "total_commits": self.total_commits,
            "files_changed": self.files_changed
        }


@dataclass
class ReleaseNotes:
    """Release notes for one version."""
    version: str
    release_date: str
    summary: str
    highlights: list[str]
    categories: ReleaseCategories
    contributors: list[str]
    stats: ReleaseStats
    markdown: str = ""
    storage: str = ""

    @property
    def page_title(self) -> str:
        return f"Release Notes - v{self.version} ({self.release_date})"

    @property
    def labels(self) -> list[str]:
        return ["release-notes", f"version-{self.version.replace('.', '-')}"]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "version": self.version,
            "release_date": self.release_date,
            "summary": self.summary,
            "highlights": list(self.highlights),
            "categories": self.categories.to_dict(),
            "contributors": list(self.contributors),
            "stats": self.stats.to_dict(),
            "markdown": self.markdown,
            "storage": self.storage
        }


def render_markdown(
    version: str,
    release_date: str,
    summary: str,
    highlights: list[str],
    categories: ReleaseCategories,
    contributors: list[str],
    stats: ReleaseStats
) -> str:
    """Markdown release notes; empty sections are left out."""
    lines = [
        f"# Release Notes - v{version}",
        "",
        f"**Release Date:** {release_date}",
        "",
        "## Summary",
        "",
        summary,
        "",
    ]

    if highlights:
        lines += ["## Highlights", ""]
        lines += [f"- {highlight}" for highlight in highlights]
        lines.append("")

    for category in ReleaseCategory:
        items = categories.items(category)
        if not items:
            continue
        lines += [f"## {category.heading}", ""]
        lines += [f"- **{item.key}**: {item.summary}" for item in items]
        lines.append("")

    if contributors:
        lines += [
            "## 👥 Contributors",
            "",
            f"Thanks to all contributors: {', '.join(contributors)}",
            "",
        ]

    if stats.total_commits > 0 or stats.total_prs > 0:
        lines += [
            "## 📊 Statistics",
            "",
            f"- {stats.total_prs} pull requests merged",
            f"- {stats.total_commits} commits",
            f"- {stats.files_changed} files changed",
        ]

    return "\n".join(lines) + "\n"


class ReleaseNotesBuilder:
    """
    Builds release notes from resolved issues.

    Usage:
        builder = ReleaseNotesBuilder()
        notes = builder.build(issues, version="1.4.0", release_date=date(2024, 3, 1))
        print(notes.markdown)
    """

    def categorize(self, issues: list[JiraIssue]) -> ReleaseCategories:
        categories = ReleaseCategories()
        for issue in issues:
            categories.add(categorize_issue(issue), ReleaseItem.from_issue(issue))
        return categories

    def contributors(self, issues: list[JiraIssue]) -> list[str]:
        """Assignees and reporters, first-seen order."""
        seen = {}
        for issue in issues:
            for name in (issue.assignee, issue.reporter):
                if name:
                    seen.setdefault(name, None)
        return list(seen)

    def highlights(self, categories: ReleaseCategories) -> list[str]:
        highlights = []
        if categories.features:
            highlights.append(f"{len(categories.features)} new feature(s) added")
            highlights.append(f"✨ {categories.features[0].summary}")
        if categories.bug_fixes:
            highlights.append(f"{len(categories.bug_fixes)} bug(s) fixed")
        if categories.breaking_changes:
            highlights.append(
                f"⚠️ {len(categories.breaking_changes)} breaking change(s) - review before upgrading"
            )
        return highlights

    def build(
        self,
        issues: list[JiraIssue],
        version: str,
        release_date: date,
        git_stats: Optional[ReleaseStats] = None
    ) -> ReleaseNotes:
        """
        Build release notes.

        Args:
            issues: Resolved issues in the release window
            version: Release version string
            release_date: End of the release window
            git_stats: Optional pull request / commit statistics
        """
        categories = self.categorize(issues)
        git_stats = git_stats or ReleaseStats()
        stats = ReleaseStats(
            total_issues=len(issues),
            total_prs=git_stats.total_prs,
            total_commits=git_stats.total_commits,
            files_changed=git_stats.files_changed
        )
        contributors = self.contributors(issues)
        highlights = self.highlights(categories)
        summary = (
            f"Release {version} includes {len(issues)} changes: "
            f"{len(categories.features)} new features, {len(categories.improvements)} improvements, "
            f"and {len(categories.bug_fixes)} bug fixes."
        )
        date_text = release_date.isoformat()
        markdown = render_markdown(
            version, date_text, summary, highlights, categories, contributors, stats
        )

        return ReleaseNotes(
            version=version,
            release_date=date_text,
            summary=summary,
            highlights=highlights,
            categories=categories,
            contributors=contributors,
            stats=stats,
            markdown=markdown,
            storage=markdown_to_storage(markdown)
        )
