"""In-process storage backend."""

from __future__ import annotations

import copy
from typing import Any

from profile_bot.interfaces.storage import StorageBackend


class MemoryStorage(StorageBackend):
    """Keeps documents in RAM, copying on every read and write."""

    def __init__(self) -> None:
        self._documents: dict[str, dict[str, Any]] = {}

    async def load(self, key: str) -> dict[str, Any] | None:
        document = self._documents.get(key)
        if document is None:
            return None
        return copy.deepcopy(document)

    async def save(self, key: str, document: dict[str, Any]) -> None:
        self._documents[key] = copy.deepcopy(document)

