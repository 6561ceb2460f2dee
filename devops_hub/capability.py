"""
Optional integrations.

A ``Capability`` is either present (wrapping a configured client) or absent
(carrying the reason it is unavailable). Operations call ``require()`` and
fail fast with ``CapabilityUnavailableError`` instead of dereferencing None.
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import CapabilityUnavailableError

C = TypeVar("C")


@dataclass(frozen=True)
class Capability(Generic[C]):
    """An integration that may or may not be configured."""
    name: str
    client: Optional[C] = None
    reason: Optional[str] = None

    @classmethod
    def present(cls, name: str, client: C) -> "Capability[C]":
        return cls(name=name, client=client)

    @classmethod
    def absent(cls, name: str, reason: Optional[str] = None) -> "Capability[C]":
        return cls(name=name, client=None, reason=reason)

    @property
    def available(self) -> bool:
        return self.client is not None

    def require(self) -> C:
        """Return the client or raise CapabilityUnavailableError."""
        if self.client is None:
            raise CapabilityUnavailableError(self.name, self.reason)
        return self.client
