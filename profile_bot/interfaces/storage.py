"""Interface contract for key-value storage backends."""

from abc import ABC, abstractmethod
from typing import Any


class StorageBackend(ABC):
    """Persists one JSON-compatible document per key."""

    @abstractmethod
    async def load(self, key: str) -> dict[str, Any] | None:
        """Return the document stored under key, or None."""
        raise NotImplementedError

    @abstractmethod
    async def save(self, key: str, document: dict[str, Any]) -> None:
        """Store document under key, replacing any previous one."""
        raise NotImplementedError

