"""
Best-effort lookups.

Secondary calls (sprint name resolution, similar-issue search, GitHub
statistics) must never fail the operation that makes them. ``attempt``
awaits the call and returns a ``Lookup`` holding either the value or the
caught error, so the caller picks its documented default explicitly.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

import httpx

from .errors import HubError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Lookup(Generic[T]):
    """Outcome of a best-effort call."""
    value: Optional[T] = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, value: T) -> "Lookup[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception) -> "Lookup[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        """Value of a successful lookup, otherwise ``default``."""
        if self.ok and self.value is not None:
            return self.value
        return default


async def attempt(call: Awaitable[T], description: str) -> Lookup[T]:
    """Await ``call`` and capture failures instead of raising.

    Besides data source and transport errors this absorbs the
    ``ValueError`` / ``KeyError`` / ``TypeError`` raised while parsing a
    malformed payload.
    """
    try:
        return Lookup.success(await call)
    except (HubError, httpx.HTTPError, ValueError, KeyError, TypeError) as exc:
        logger.warning("%s failed, using default: %s", description, exc)
        return Lookup.failure(exc)
