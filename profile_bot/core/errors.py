"""Error taxonomy for the profile dialog bot."""

from __future__ import annotations

import json
from typing import Any


class ProfileBotError(Exception):
    """Base class for bot errors."""


class StructuralInvariantError(ProfileBotError):
    """A step found a field missing that an earlier step must have populated.

    This means the profile handed to the step does not belong to the conversation
    being processed. It is never recovered from.
    """

    def __init__(self, *, step: str, missing_field: str, profile: dict[str, Any] | None) -> None:
        self.step = step
        self.missing_field = missing_field
        self.profile = profile
        rendered = json.dumps(profile, default=str, sort_keys=True)
        super().__init__(
            f"{missing_field} property does not exist in userProfile at step '{step}'.\nuserProfile:\n {rendered}"
        )


class AttachmentRenderError(ProfileBotError):
    """Raised by a messaging provider that cannot display an attachment on the channel."""


class UnknownDialogVariantError(ProfileBotError, ValueError):
    """Requested dialog variant is not registered."""
