"""
DevOps Hub

Jira, GitHub and Confluence tools with rule-based sprint health, workload,
issue triage and release notes analytics.
"""

__version__ = "1.0.0"

from .health import (
    SprintHealthScorer,
    SprintHealthResult,
    IssueBreakdown,
    HealthStatus,
    BurndownHealth,
    classify_status
)

from .workload import (
    WorkloadAnalyzer,
    WorkloadDashboard,
    MemberWorkload,
    WorkloadStatus,
    balance_score
)

from .classifier import (
    IssueTextClassifier,
    IssueTextAnalysis,
    SimilarIssue
)

from .release_notes import (
    ReleaseNotesBuilder,
    ReleaseNotes,
    ReleaseCategory,
    categorize_issue
)

from .analytics import DevOpsAnalytics, GitHubTarget, build_analytics
from .capability import Capability
from .config import Config
from .errors import (
    HubError,
    ConfigurationError,
    CapabilityUnavailableError,
    DataSourceError,
    SpaceAccessError
)

__all__ = [
    # Version
    "__version__",

    # Sprint health
    "SprintHealthScorer",
    "SprintHealthResult",
    "IssueBreakdown",
    "HealthStatus",
    "BurndownHealth",
    "classify_status",

    # Workload
    "WorkloadAnalyzer",
    "WorkloadDashboard",
    "MemberWorkload",
    "WorkloadStatus",
    "balance_score",

    # Classifier
    "IssueTextClassifier",
    "IssueTextAnalysis",
    "SimilarIssue",

    # Release notes
    "ReleaseNotesBuilder",
    "ReleaseNotes",
    "ReleaseCategory",
    "categorize_issue",

    # Orchestration
    "DevOpsAnalytics",
    "GitHubTarget",
    "build_analytics",
    "Capability",
    "Config",

    # Errors
    "HubError",
    "ConfigurationError",
    "CapabilityUnavailableError",
    "DataSourceError",
    "SpaceAccessError",
]
