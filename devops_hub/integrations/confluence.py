"""
Confluence Integration for DevOps Hub

Publishes pages in storage format and labels them. Cloud instances live
under /wiki/rest/api, Server / Data Center under /rest/api. When a default
space is configured every operation is restricted to it.
"""

import logging
from typing import Optional
from dataclasses import dataclass

import httpx

from ..capability import Capability
from ..config import ConfluenceSettings
from ..errors import ConfigurationError, DataSourceError, SpaceAccessError
from .jira import error_detail

logger = logging.getLogger(__name__)


@dataclass
class ConfluencePage:
    """A created or fetched wiki page."""
    id: str
    title: str
    space_key: Optional[str] = None
    version: int = 1
    url: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict, base_url: str = "") -> "ConfluencePage":
        links = data.get("_links") or {}
        webui = links.get("webui")
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            space_key=(data.get("space") or {}).get("key"),
            version=(data.get("version") or {}).get("number", 1),
            url=f"{links.get('base', base_url)}{webui}" if webui else None
        )


class ConfluenceClient:
    """
    Confluence REST API client.

    Usage:
        client = ConfluenceClient(
            url="https://company.atlassian.net",
            email="user@company.com",
            token="api_token",
            default_space_key="ENG"
        )
        page = await client.create_page("Release Notes - v1.2.0", "<p>...</p>")
        await client.add_page_labels(page.id, ["release-notes"])
    """

    def __init__(
        self,
        url: Optional[str],
        token: Optional[str],
        email: Optional[str] = None,
        is_cloud: Optional[bool] = None,
        default_space_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        if not url or not token:
            raise ConfigurationError(
                "Missing required Confluence configuration. "
                "Set CONFLUENCE_BASE_URL and CONFLUENCE_API_TOKEN."
            )

        self.url = url.rstrip("/")
        self.is_cloud = ".atlassian.net" in self.url if is_cloud is None else is_cloud
        self.default_space_key = default_space_key or None
        self.transport = transport

        if self.is_cloud and not email:
            raise ConfigurationError("Missing CONFLUENCE_EMAIL. Confluence Cloud requires an account email.")

        if self.is_cloud:
            self.auth = (email, token)
            self.headers = {"Accept": "application/json"}
        else:
            self.auth = None
            self.headers = {"Accept": "application/json", "Authorization": f"Bearer {token}"}

        self.api_base = f"{self.url}/wiki/rest/api" if self.is_cloud else f"{self.url}/rest/api"
        self.web_base = f"{self.url}/wiki" if self.is_cloud else self.url

    def is_space_allowed(self, space_key: str) -> bool:
        if not self.default_space_key:
            return True
        return space_key.upper() == self.default_space_key.upper()

    def _check_space(self, space_key: str):
        if not self.is_space_allowed(space_key):
            raise SpaceAccessError(self.default_space_key, space_key)

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        json=None
    ):
        """Make authenticated request to Confluence API."""
        async with httpx.AsyncClient(transport=self.transport) as client:
            response = await client.request(
                method,
                f"{self.api_base}{endpoint}",
                auth=self.auth,
                params=params,
                json=json,
                headers=self.headers,
                timeout=30.0
            )
        if not response.is_success:
            raise DataSourceError("Confluence", response.status_code, error_detail(response))
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            raise DataSourceError("Confluence", response.status_code, "Response is not valid JSON") from None

    async def create_page(
        self,
        title: str,
        content: str,
        space_key: Optional[str] = None,
        parent_id: Optional[str] = None
    ) -> ConfluencePage:
        """
        Create a page from storage-format content.

        Args:
            title: Page title
            content: Body in Confluence storage format
            space_key: Target space, defaults to the configured space
            parent_id: Optional ancestor page
        """
        space_key = space_key or self.default_space_key
        if not space_key:
            raise ConfigurationError(
                "Space key is required. Pass one or configure CONFLUENCE_SPACE_KEY."
            )
        self._check_space(space_key)

        body = {
            "type": "page",
            "title": title,
            "space": {"key": space_key},
            "body": {"storage": {"value": content, "representation": "storage"}},
        }
        if parent_id:
            body["ancestors"] = [{"id": parent_id}]

        data = await self._request("POST", "/content", json=body)
        page = ConfluencePage.from_api(data, self.web_base)
        logger.info("Created Confluence page %s (%s) in %s", page.id, title, space_key)
        return page

    async def get_page(self, page_id: str) -> ConfluencePage:
        data = await self._request("GET", f"/content/{page_id}", {"expand": "version,space"})
        page = ConfluencePage.from_api(data, self.web_base)
        if page.space_key:
            self._check_space(page.space_key)
        return page

    async def add_page_labels(self, page_id: str, labels: list[str]):
        """Attach global labels to a page."""
        await self._request(
            "POST",
            f"/content/{page_id}/label",
            json=[{"prefix": "global", "name": name} for name in labels]
        )


def create_confluence_client(
    settings: ConfluenceSettings,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> Capability[ConfluenceClient]:
    """Confluence capability: present when URL and token are configured."""
    if not settings.configured:
        return Capability.absent(
            "Confluence", "set CONFLUENCE_BASE_URL and CONFLUENCE_API_TOKEN to enable it"
        )
    client = ConfluenceClient(
        url=settings.url,
        token=settings.token,
        email=settings.email,
        is_cloud=settings.is_cloud,
        default_space_key=settings.space_key,
        transport=transport
    )
    logger.info(
        "Confluence integration enabled at %s%s",
        client.url,
        f" (restricted to space {client.default_space_key})" if client.default_space_key else ""
    )
    return Capability.present("Confluence", client)
