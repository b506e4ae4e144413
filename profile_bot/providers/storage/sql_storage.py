"""SQLAlchemy-backed storage backend."""

from __future__ import annotations

import copy
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from profile_bot.interfaces.storage import StorageBackend
from profile_bot.models.session_state import SessionState

logger = logging.getLogger(__name__)


class SqlStorage(StorageBackend):
    """Stores documents as JSON rows in the session_states table."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self.session_factory = session_factory

    async def load(self, key: str) -> dict[str, Any] | None:
        with self.session_factory() as db:
            row = db.execute(select(SessionState).where(SessionState.key == key)).scalar_one_or_none()
            if row is None:
                return None
            return copy.deepcopy(row.document)

    async def save(self, key: str, document: dict[str, Any]) -> None:
        with self.session_factory() as db:
            row = db.get(SessionState, key)
            if row is None:
                row = SessionState(key=key, document=copy.deepcopy(document))
            else:
                row.document = copy.deepcopy(document)
            db.add(row)
            try:
                db.commit()
            except Exception:
                db.rollback()
                logger.exception("Failed to save session state for key=%s", key)
                raise

