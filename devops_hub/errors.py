"""
Error types for DevOps Hub.

The main classes of failure are:
- configuration problems, raised before any data is fetched
- data source failures on the primary fetch of an operation
- missing optional integrations (GitHub, Confluence)

Best-effort secondary lookups never raise; see ``devops_hub.lookup``.
"""

from typing import Optional


class HubError(Exception):
    """Base class for all DevOps Hub errors."""


class ConfigurationError(HubError, ValueError):
    """Required credentials or settings are missing."""


class CapabilityUnavailableError(HubError):
    """An operation needs an integration that is not configured."""

    def __init__(self, capability: str, reason: Optional[str] = None):
        self.capability = capability
        self.reason = reason
        message = f"{capability} integration is not configured"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class DataSourceError(HubError):
    """A data source answered with an error status."""

    def __init__(self, service: str, status_code: int, detail: str = ""):
        self.service = service
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{service} API error ({status_code}): {detail}")


class SpaceAccessError(HubError):
    """A wiki operation targets a space outside the configured default space."""

    def __init__(self, allowed: str, attempted: str):
        self.allowed = allowed
        self.attempted = attempted
        super().__init__(
            f'Access denied: operations are restricted to space "{allowed}", '
            f'attempted "{attempted}"'
        )
