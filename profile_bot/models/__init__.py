"""Domain models package."""

from profile_bot.models.session_state import SessionState

__all__ = [
    "SessionState",
]
