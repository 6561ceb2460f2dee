"""
Issue Text Classifier

Keyword heuristics that suggest a type, priority, labels and a story point
estimate for free-text issue descriptions. Matching is case-insensitive
substring containment ("classic" contains "class"); the first keyword set
that matches wins.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from .integrations.jira import JiraIssue

EPIC_KEYWORDS = ("epic", "initiative", "large", "multiple sprints")
STORY_KEYWORDS = ("as a user", "as an admin", "i want", "so that", "user story")
BUG_KEYWORDS = (
    "bug", "error", "crash", "fail", "broken", "not working", "issue", "problem", "fix"
)
FEATURE_KEYWORDS = ("feature", "add", "new", "implement", "create", "develop", "build")
IMPROVEMENT_KEYWORDS = ("improve", "enhance", "optimize", "refactor", "performance")

# Checked in order; features are filed as stories
TYPE_RULES = (
    ("Epic", EPIC_KEYWORDS),
    ("Story", STORY_KEYWORDS),
    ("Bug", BUG_KEYWORDS),
    ("Story", FEATURE_KEYWORDS),
    ("Improvement", IMPROVEMENT_KEYWORDS),
)

PRIORITY_RULES = (
    ("Critical", ("urgent", "critical", "blocker", "asap", "emergency", "production down")),
    ("High", ("high priority", "important", "severe", "major")),
    ("Low", ("low priority", "minor", "nice to have", "when possible")),
)

LABEL_KEYWORDS = {
    "frontend": ("ui", "frontend", "css", "react", "vue", "angular", "html", "button", "page", "component"),
    "backend": ("api", "backend", "server", "database", "endpoint", "service"),
    "infrastructure": ("deploy", "ci", "cd", "pipeline", "docker", "kubernetes", "aws", "cloud"),
    "security": ("security", "auth", "permission", "vulnerability", "ssl", "encryption"),
    "performance": ("performance", "slow", "optimize", "speed", "memory", "cpu"),
    "documentation": ("doc", "readme", "guide", "tutorial"),
    "testing": ("test", "qa", "automation", "e2e", "unit test"),
}

STORY_POINT_RULES = (
    (13, ("entire", "complete overhaul", "from scratch", "migration")),
    (8, ("complex", "large", "multiple", "refactor", "architecture", "rewrite")),
    (1, ("simple", "easy", "quick", "small", "typo", "config change")),
)

DEFAULT_TYPE = "Task"
DEFAULT_PRIORITY = "Medium"
DEFAULT_STORY_POINTS = 3

SIMILARITY_PLACEHOLDER = 0.7
SIMILAR_ISSUE_LIMIT = 5
MAX_SEARCH_TERMS = 3
MIN_TERM_LENGTH = 5
MAX_SUMMARY_LENGTH = 100


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def infer_issue_type(text: str) -> str:
    lowered = text.lower()
    for issue_type, keywords in TYPE_RULES:
        if _contains_any(lowered, keywords):
            return issue_type
    return DEFAULT_TYPE


def infer_priority(text: str) -> str:
    lowered = text.lower()
    for priority, keywords in PRIORITY_RULES:
        if _contains_any(lowered, keywords):
            return priority
    return DEFAULT_PRIORITY


def suggest_labels(text: str) -> list[str]:
    """Every label category with a keyword in the text, in category order."""
    lowered = text.lower()
    return [label for label, keywords in LABEL_KEYWORDS.items() if _contains_any(lowered, keywords)]


def estimate_story_points(text: str) -> int:
    lowered = text.lower()
    for points, keywords in STORY_POINT_RULES:
        if _contains_any(lowered, keywords):
            return points
    return DEFAULT_STORY_POINTS


def extract_search_terms(text: str) -> list[str]:
    """First three whitespace-separated words longer than four characters."""
    return [word for word in text.split() if len(word) >= MIN_TERM_LENGTH][:MAX_SEARCH_TERMS]


def build_similarity_jql(project_key: str, terms: Sequence[str]) -> Optional[str]:
    """Full-text JQL for issues resembling the terms, or None without terms."""
    if not terms:
        return None
    query = " OR ".join(terms).replace("\\", "\\\\").replace('"', '\\"')
    return f'project = "{project_key}" AND text ~ "{query}" ORDER BY updated DESC'


def summarize_text(text: str) -> str:
    """First sentence of the text, cut to 97 characters plus "..." if too long."""
    first_sentence = re.split(r"[.!?]", text, maxsplit=1)[0]
    if len(first_sentence) > MAX_SUMMARY_LENGTH:
        return first_sentence[:MAX_SUMMARY_LENGTH - 3] + "..."
    return first_sentence


@dataclass(frozen=True)
class SimilarIssue:
    key: str
    summary: str
    similarity: float = SIMILARITY_PLACEHOLDER

    @classmethod
    def from_issue(cls, issue: JiraIssue) -> "SimilarIssue":
        return cls(key=issue.key, summary=issue.summary)

    def to_dict(self) -> dict:
        return {"key": self.key, "summary": self.summary, "similarity": self.similarity}


@dataclass(frozen=True)
class IssueTextAnalysis:
    """Suggestions derived from an issue's text."""
    suggested_type: str
    suggested_priority: str
    suggested_labels: tuple[str, ...] = ()
    estimated_story_points: int = DEFAULT_STORY_POINTS
    similar_issues: tuple[SimilarIssue, ...] = ()
    suggestions: tuple[str, ...] = ()
    # Would need project components to suggest any
    suggested_components: tuple[str, ...] = field(default=())

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "suggested_type": self.suggested_type,
            "suggested_priority": self.suggested_priority,
            "suggested_labels": list(self.suggested_labels),
            "suggested_components": list(self.suggested_components),
            "estimated_story_points": self.estimated_story_points,
            "similar_issues": [s.to_dict() for s in self.similar_issues],
            "suggestions": list(self.suggestions)
        }


class IssueTextClassifier:
    """
    Classifies free-text issue descriptions.

    Usage:
        classifier = IssueTextClassifier()
        analysis = classifier.classify("Login page crashes on submit")
        analysis.suggested_type      # "Bug"
        analysis.suggested_labels    # ("frontend",)
    """

    def classify(
        self,
        text: str,
        similar_issues: Iterable[SimilarIssue] = ()
    ) -> IssueTextAnalysis:
        """
        Classify text, folding in any similar issues already found.

        Args:
            text: Issue title and/or description
            similar_issues: Result of the similar-issue search, if any

        Returns:
            IssueTextAnalysis
        """
        lowered = text.lower()
        issue_type = infer_issue_type(text)
        similar = tuple(similar_issues)

        suggestions = []
        if len(text) < 50:
            suggestions.append("Consider adding more detail to the description")
        if issue_type == "Bug" and "reproduce" not in lowered:
            suggestions.append("Add steps to reproduce the bug")
        if issue_type == "Story" and "acceptance" not in lowered:
            suggestions.append("Consider adding acceptance criteria")
        if similar:
            suggestions.append(
                f"Found {len(similar)} potentially related issue(s) - check for duplicates"
            )

        return IssueTextAnalysis(
            suggested_type=issue_type,
            suggested_priority=infer_priority(text),
            suggested_labels=tuple(suggest_labels(text)),
            estimated_story_points=estimate_story_points(text),
            similar_issues=similar,
            suggestions=tuple(suggestions)
        )
