"""Session state model."""

from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, String, TIMESTAMP, func
from sqlalchemy.orm import Mapped, mapped_column

from profile_bot.db.base import Base


class SessionState(Base):
    """Stored document for one Session Key."""

    __tablename__ = "session_states"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    document: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[Any] = mapped_column(TIMESTAMP(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[Any] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
