"""
Protocols for the collaborators ReadCore depends on but does not implement.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, runtime_checkable


@runtime_checkable
class DurableStore(Protocol):
    """Persistent byte-valued key/value storage behind the artifact cache."""

    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored value, or ``None`` if the key is absent."""
        ...

    async def set(self, key: str, value: bytes) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    async def remove(self, key: str) -> None:
        """Delete ``key``; removing an absent key is not an error."""
        ...


@runtime_checkable
class Summarizer(Protocol):
    """External generator of the expensive artifacts the cache memoizes."""

    async def generate(self, text: str, settings: Mapping[str, Any]) -> Any:
        """
        Produce an artifact (summary, highlights) for extracted article text.

        Args:
            text: Whitespace-normalized article text.
            settings: Settings that shape the artifact.

        Returns:
            A JSON-serializable payload.
        """
        ...
