"""KeyValueStore abstract base class: session-scoped storage interface."""

from __future__ import annotations

from abc import ABC, abstractmethod


class KeyValueStore(ABC):
    """Pluggable string key-value storage scoped to one session."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value for key. None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key. Returns True if it existed."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry. Ends the session."""

    def keys(self) -> list[str]:
        """List stored keys. Backends that cannot enumerate return []."""
        return []
