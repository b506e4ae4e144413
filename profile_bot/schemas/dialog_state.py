"""Persisted dialog state: where a conversation is suspended in the script."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from profile_bot.schemas.profile import UserProfile


class Choice(BaseModel):
    """One option of a closed choice prompt."""

    value: str
    synonyms: list[str] = Field(default_factory=list)


class PendingPrompt(BaseModel):
    """Prompt the conversation is waiting on."""

    prompt_id: str
    text: str
    retry_text: str | None = None
    choices: list[Choice] = Field(default_factory=list)


class DialogState(BaseModel):
    """Suspension point of one conversation.

    ``step_index`` is ``None`` when no script is running for the conversation.
    ``values`` holds data carried between steps of the running script.
    """

    dialog_id: str | None = None
    step_index: int | None = None
    pending_prompt: PendingPrompt | None = None
    values: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.step_index is not None


class SessionDocument(BaseModel):
    """Everything the Session Store keeps for one Session Key."""

    profile: UserProfile = Field(default_factory=UserProfile)
    dialog: DialogState = Field(default_factory=DialogState)
