"""
Tests for the issue text classifier.
"""

import pytest

from devops_hub.classifier import (
    IssueTextClassifier,
    SimilarIssue,
    build_similarity_jql,
    estimate_story_points,
    extract_search_terms,
    infer_issue_type,
    infer_priority,
    suggest_labels,
    summarize_text
)


class TestInference:
    """Tests for the keyword rules."""

    def test_urgent_production_bug(self):
        """Bug keywords win over feature keywords; urgent means Critical."""
        text = "URGENT: production database connection pooling is broken, causing crashes"
        analysis = IssueTextClassifier().classify(text)

        assert analysis.suggested_type == "Bug"
        assert analysis.suggested_priority == "Critical"
        assert "backend" in analysis.suggested_labels
        assert analysis.estimated_story_points == 3

    @pytest.mark.parametrize("text,issue_type", [
        ("Epic: billing revamp", "Epic"),
        ("As a user I want to export invoices", "Story"),
        ("Checkout fails on submit", "Bug"),
        ("Implement dark mode", "Story"),
        ("Refactor the invoice module", "Improvement"),
        ("Update copyright year", "Task"),
    ])
    def test_issue_type(self, text, issue_type):
        assert infer_issue_type(text) == issue_type

    def test_matching_is_case_insensitive(self):
        assert infer_issue_type("CRASH on startup") == infer_issue_type("crash on startup") == "Bug"

    def test_matching_is_substring(self):
        """"address" contains "add", so it reads as a feature."""
        assert infer_issue_type("Change billing address label") == "Story"

    @pytest.mark.parametrize("text,priority", [
        ("Blocker for release", "Critical"),
        ("This is important for Q3", "High"),
        ("Nice to have: tooltips", "Low"),
        ("Rename variable", "Medium"),
    ])
    def test_priority(self, text, priority):
        assert infer_priority(text) == priority

    def test_labels_in_category_order(self):
        labels = suggest_labels("Kubernetes rollout of the API breaks the React page")
        assert labels == ["frontend", "backend", "infrastructure"]

    def test_no_labels(self):
        assert suggest_labels("Rename variable") == []

    @pytest.mark.parametrize("text,points", [
        ("Migration of the entire billing system", 13),
        ("Complex rewrite of scheduler", 8),
        ("Quick typo fix", 1),
        ("Rename variable", 3),
    ])
    def test_story_points(self, text, points):
        assert estimate_story_points(text) == points


class TestSuggestions:
    """Tests for the free-text suggestions."""

    def test_short_bug_without_reproduction_steps(self):
        analysis = IssueTextClassifier().classify("Login crashes")
        assert analysis.suggestions == (
            "Consider adding more detail to the description",
            "Add steps to reproduce the bug",
        )

    def test_story_without_acceptance_criteria(self):
        text = "As a user I want to download my invoices as PDF so that I can file my taxes on time"
        analysis = IssueTextClassifier().classify(text)
        assert analysis.suggestions == ("Consider adding acceptance criteria",)

    def test_similar_issues_add_duplicate_hint(self):
        similar = [SimilarIssue("PROJ-1", "Login crash"), SimilarIssue("PROJ-2", "Login error")]
        analysis = IssueTextClassifier().classify("Login crashes", similar)

        assert analysis.similar_issues[0].similarity == 0.7
        assert analysis.suggestions[-1] == (
            "Found 2 potentially related issue(s) - check for duplicates"
        )

    def test_components_are_empty(self):
        assert IssueTextClassifier().classify("Anything").suggested_components == ()


class TestSearchTerms:
    """Tests for similar-issue query building."""

    def test_first_three_long_words(self):
        assert extract_search_terms("The login button crashes when users click twice") == [
            "login", "button", "crashes"
        ]

    def test_no_terms_means_no_query(self):
        assert build_similarity_jql("PROJ", extract_search_terms("fix it now")) is None

    def test_query_escapes_quotes(self):
        jql = build_similarity_jql("PROJ", ['"quoted"'])
        assert jql == 'project = "PROJ" AND text ~ "\\"quoted\\"" ORDER BY updated DESC'


class TestSummarizeText:
    """Tests for summary extraction."""

    def test_first_sentence(self):
        assert summarize_text("Login fails. Steps: open page") == "Login fails"

    def test_long_sentence_is_truncated(self):
        summary = summarize_text("x" * 150)
        assert len(summary) == 100
        assert summary.endswith("...")
