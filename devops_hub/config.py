"""
Configuration for DevOps Hub

Settings come from an optional YAML file overlaid with environment
variables. They are read once at process start and handed to the client
constructors; the analytics modules never look at configuration.
"""

import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, Optional

import yaml

DEFAULT_CONFIG_PATH = "config/config.yaml"


def _parse_bool(value) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() == "true"


def _detect_cloud(url: Optional[str], explicit: Optional[bool]) -> bool:
    """Atlassian Cloud unless told otherwise; detected from the host name."""
    if explicit is not None:
        return explicit
    return bool(url) and ".atlassian.net" in url


@dataclass
class JiraSettings:
    url: Optional[str] = None
    email: Optional[str] = None
    token: Optional[str] = None
    is_cloud: bool = False

    @property
    def configured(self) -> bool:
        return bool(self.url and self.token)


@dataclass
class GitHubSettings:
    token: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(self.token)


@dataclass
class ConfluenceSettings:
    url: Optional[str] = None
    email: Optional[str] = None
    token: Optional[str] = None
    is_cloud: bool = False
    space_key: Optional[str] = None

    @property
    def configured(self) -> bool:
        return bool(self.url and self.token)


@dataclass
class DocsSettings:
    output_dir: str = "./generated-docs"
    github_owner: Optional[str] = None
    github_repo: Optional[str] = None


class Config:
    """Load configuration from config.yaml and environment."""

    env_mapping = {
        "JIRA_BASE_URL": ("jira", "url"),
        "JIRA_EMAIL": ("jira", "email"),
        "JIRA_API_TOKEN": ("jira", "token"),
        "JIRA_IS_CLOUD": ("jira", "is_cloud"),
        "GITHUB_TOKEN": ("github", "token"),
        "CONFLUENCE_BASE_URL": ("confluence", "url"),
        "CONFLUENCE_EMAIL": ("confluence", "email"),
        "CONFLUENCE_API_TOKEN": ("confluence", "token"),
        "CONFLUENCE_IS_CLOUD": ("confluence", "is_cloud"),
        "CONFLUENCE_SPACE_KEY": ("confluence", "space_key"),
        "DOCS_OUTPUT_DIR": ("docs", "output_dir"),
        "DOCS_GITHUB_OWNER": ("docs", "github_owner"),
        "DOCS_GITHUB_REPO": ("docs", "github_repo"),
        "LOG_LEVEL": ("logging", "level"),
    }

    def __init__(
        self,
        config_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None
    ):
        self.environ = os.environ if environ is None else environ
        self.config_path = config_path or self.environ.get("DEVOPS_HUB_CONFIG", DEFAULT_CONFIG_PATH)
        self.config = {}

        if os.path.exists(self.config_path):
            with open(self.config_path) as f:
                self.config = yaml.safe_load(f) or {}

        # Override with environment variables
        self._load_env()

    def _load_env(self):
        """Load configuration from environment variables."""
        for env_var, (section, key) in self.env_mapping.items():
            value = self.environ.get(env_var)
            if value:
                self.config.setdefault(section, {})[key] = value

    def get(self, section: str, key: str, default=None):
        """Get configuration value."""
        return (self.config.get(section) or {}).get(key, default)

    @property
    def jira(self) -> JiraSettings:
        url = self.get("jira", "url")
        return JiraSettings(
            url=url.rstrip("/") if url else None,
            email=self.get("jira", "email"),
            token=self.get("jira", "token"),
            is_cloud=_detect_cloud(url, _parse_bool(self.get("jira", "is_cloud"))),
        )

    @property
    def github(self) -> GitHubSettings:
        return GitHubSettings(token=self.get("github", "token"))

    @property
    def confluence(self) -> ConfluenceSettings:
        url = self.get("confluence", "url")
        return ConfluenceSettings(
            url=url.rstrip("/") if url else None,
            email=self.get("confluence", "email"),
            token=self.get("confluence", "token"),
            is_cloud=_detect_cloud(url, _parse_bool(self.get("confluence", "is_cloud"))),
            space_key=self.get("confluence", "space_key"),
        )

    @property
    def docs(self) -> DocsSettings:
        return DocsSettings(
            output_dir=self.get("docs", "output_dir", "./generated-docs"),
            github_owner=self.get("docs", "github_owner"),
            github_repo=self.get("docs", "github_repo"),
        )

    @property
    def log_level(self) -> str:
        return str(self.get("logging", "level", "INFO")).upper()


def setup_logging(level: str = "INFO") -> None:
    """Send log records to stderr; stdout is reserved for the MCP transport."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
