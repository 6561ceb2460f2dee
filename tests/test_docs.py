"""
Tests for the documentation generator.
"""

from datetime import date, datetime, timezone
from unittest.mock import AsyncMock

import pytest

from devops_hub.capability import Capability
from devops_hub.config import DocsSettings
from devops_hub.docs import DocsGenerator, GeneratedDoc, safe_filename
from devops_hub.errors import CapabilityUnavailableError, ConfigurationError, DataSourceError
from devops_hub.health import SprintHealthScorer
from devops_hub.release_notes import ReleaseNotesBuilder
from devops_hub.workload import WorkloadAnalyzer


class TestBuilders:
    """Tests for document builders."""

    def test_sprint_report(self, make_issue):
        health = SprintHealthScorer().score([make_issue("Done"), make_issue("To Do")], sprint_id=9)
        doc = DocsGenerator().sprint_report(health, generated=date(2024, 3, 1))

        assert doc.filename == "sprint-report-9-2024-03-01"
        assert doc.full_filename == "sprint-report-9-2024-03-01.md"
        assert "| ✅ Done | 1 | 50% |" in doc.content
        assert "_This report was auto-generated by DevOps Hub_" in doc.content

    def test_empty_sprint_report(self):
        health = SprintHealthScorer().score([], sprint_id=1)
        doc = DocsGenerator().sprint_report(health, generated=date(2024, 3, 1))

        assert "| ✅ Done | 0 | 0% |" in doc.content
        assert "_No risks identified_" in doc.content

    def test_workload_report(self, make_issue):
        now = datetime(2024, 3, 15, tzinfo=timezone.utc)
        dashboard = WorkloadAnalyzer().analyze([make_issue("To Do", assignee="Ann")], now=now)
        doc = DocsGenerator().workload_report(dashboard)

        assert doc.filename == "workload-report-2024-03-15"
        assert "| 🔵 Ann | 1 | 0 | underutilized |" in doc.content

    def test_release_notes(self):
        notes = ReleaseNotesBuilder().build([], "2.1.0", date(2024, 3, 1))
        doc = DocsGenerator().release_notes(notes)

        assert doc.full_filename == "release-notes-v2.1.0.md"
        assert doc.content == notes.markdown

    def test_doc_page_front_matter(self):
        doc = DocsGenerator().doc_page(
            "Q3 Plan (draft)", "Body", author="Sam", tags=["plan", "q3"], generated=date(2024, 7, 1)
        )

        assert doc.filename == "q3-plan-draft-2024-07-01"
        assert doc.content.startswith(
            "---\ntitle: Q3 Plan (draft)\ndate: 2024-07-01\nauthor: Sam\ntags: [plan, q3]\n---\n\nBody"
        )

    def test_safe_filename(self):
        assert safe_filename("  Hello, World!  ") == "hello-world"

    def test_html_extension(self):
        doc = GeneratedDoc(title="t", filename="report.html", content="", format="html")
        assert doc.full_filename == "report.html"


class TestSaving:
    """Tests for local and GitHub storage."""

    def test_save_to_local(self, tmp_path):
        docs = DocsGenerator(DocsSettings(output_dir=str(tmp_path / "out")))
        path = docs.save_to_local(GeneratedDoc(title="T", filename="t", content="# T"))

        assert path == tmp_path / "out" / "t.md"
        assert path.read_text(encoding="utf-8") == "# T"

    def test_save_to_explicit_directory(self, tmp_path):
        path = DocsGenerator().save_to_local(GeneratedDoc("T", "t", "x"), output_dir=str(tmp_path))
        assert path.parent == tmp_path

    async def test_github_not_configured(self):
        with pytest.raises(CapabilityUnavailableError):
            await DocsGenerator().save_to_github(GeneratedDoc("T", "t", "x"), "acme", "docs")

    async def test_github_requires_repo(self):
        docs = DocsGenerator(github=Capability.present("GitHub", AsyncMock()))
        with pytest.raises(ConfigurationError):
            await docs.save_to_github(GeneratedDoc("T", "t", "x"))

    async def test_new_file_on_github(self):
        github = AsyncMock()
        github.get_file_sha.side_effect = DataSourceError("GitHub", 404, "Not Found")
        github.put_file.return_value = {"url": "https://github.com/acme/docs/blob/main/docs/t.md", "sha": "s"}
        docs = DocsGenerator(
            DocsSettings(github_owner="acme", github_repo="docs"),
            github=Capability.present("GitHub", github)
        )

        result = await docs.save_to_github(GeneratedDoc("T", "t", "x"), path="/docs/")

        github.put_file.assert_awaited_once_with(
            "acme", "docs", "docs/t.md", "x", message="docs: Add T", sha=None, branch=None
        )
        assert result["url"].endswith("docs/t.md")

    async def test_existing_file_is_updated(self):
        github = AsyncMock()
        github.get_file_sha.return_value = "abc"
        docs = DocsGenerator(github=Capability.present("GitHub", github))

        await docs.save_to_github(GeneratedDoc("T", "t", "x"), "acme", "docs", branch="wiki")

        assert github.put_file.await_args.kwargs["sha"] == "abc"
        assert github.put_file.await_args.kwargs["branch"] == "wiki"
