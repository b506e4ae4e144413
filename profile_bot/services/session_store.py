"""Per-conversation state store keyed by Session Key."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from profile_bot.interfaces.storage import StorageBackend
from profile_bot.schemas.dialog_state import DialogState, SessionDocument
from profile_bot.schemas.profile import UserProfile
from profile_bot.schemas.turn import InboundTurn

logger = logging.getLogger(__name__)


def session_key_for(turn: InboundTurn) -> str:
    """Derive the Session Key for a turn from its channel and conversation ids.

    The sender id is not part of the key: two users in one conversation share
    state, one user in two conversations does not.
    """
    return f"{turn.channel_id}/conversations/{turn.conversation_id}"


class SessionStore:
    """Maps Session Keys to a profile and the dialog state of that conversation.

    ``get``/``set``/``clear`` and the dialog state accessors do not lock. Callers that
    read-modify-write an entry hold ``lock(key)`` for the whole operation; the
    step runner does this for every turn.
    """

    def __init__(self, storage: StorageBackend) -> None:
        self.storage = storage
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @asynccontextmanager
    async def lock(self, key: str) -> AsyncIterator[None]:
        """Serialize access to one key; other keys proceed independently.

        A key's lock is dropped once no task holds or waits for it.
        """
        key_lock = self._locks.get(key)
        if key_lock is None:
            key_lock = asyncio.Lock()
            self._locks[key] = key_lock
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with key_lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if self._lock_users[key] == 0:
                del self._lock_users[key]
                del self._locks[key]

    async def get(self, key: str) -> UserProfile:
        """Return the profile for key, or a fresh empty profile on first access."""
        document = await self._load(key)
        return document.profile

    async def set(self, key: str, profile: UserProfile) -> None:
        """Associate profile with key."""
        document = await self._load(key)
        document.profile = profile.model_copy(deep=True)
        await self._save(key, document)
        logger.debug("Stored profile for key=%s", key)

    async def clear(self, key: str) -> None:
        """Reset the profile for key to an empty profile."""
        document = await self._load(key)
        document.profile = UserProfile()
        await self._save(key, document)
        logger.debug("Cleared profile for key=%s", key)

    async def get_dialog_state(self, key: str) -> DialogState:
        """Return where the conversation for key is suspended."""
        document = await self._load(key)
        return document.dialog

    async def set_dialog_state(self, key: str, state: DialogState) -> None:
        """Record where the conversation for key is suspended."""
        document = await self._load(key)
        document.dialog = state.model_copy(deep=True)
        await self._save(key, document)

    async def _load(self, key: str) -> SessionDocument:
        raw_document = await self.storage.load(key)
        if raw_document is None:
            return SessionDocument()
        return SessionDocument.model_validate(raw_document)

    async def _save(self, key: str, document: SessionDocument) -> None:
        await self.storage.save(key, document.model_dump(mode="json"))
