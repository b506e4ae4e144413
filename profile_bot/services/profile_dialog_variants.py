"""Profile dialogs that keep in-flight state in the wrong place.

Both variants behave exactly like ``ProfileDialog`` while a single conversation
uses them. As soon as two conversations interleave, the second one's first turn
replaces the profile the first one is still filling in, and the first
conversation's summary shows the second one's answers.
"""

from __future__ import annotations

from collections.abc import Iterable

from profile_bot.schemas.profile import UserProfile
from profile_bot.services.profile_dialog import BaseProfileDialog
from profile_bot.services.session_store import SessionStore
from profile_bot.services.step_runner import StepContext

# Shared by every conversation in the process.
_global_user_profile: UserProfile | None = None


class GlobalProfileDialog(BaseProfileDialog):
    """Keeps the in-flight profile in a module-level variable."""

    def __init__(
        self,
        session_store: SessionStore,
        *,
        attachment_unsupported_channels: Iterable[str] = ("msteams",),
    ) -> None:
        super().__init__(
            "userProfileDialogGlobal",
            session_store,
            attachment_unsupported_channels=attachment_unsupported_channels,
        )

    async def begin_profile(self, step: StepContext) -> UserProfile:
        global _global_user_profile
        _global_user_profile = UserProfile()
        return _global_user_profile

    def current_profile(self, step: StepContext) -> UserProfile | None:
        return _global_user_profile

    def keep_profile(self, step: StepContext, profile: UserProfile) -> None:
        global _global_user_profile
        _global_user_profile = profile

    async def save_profile(self, step: StepContext, profile: UserProfile) -> None:
        await self.session_store.set(step.session_key, profile)

    async def discard_profile(self, step: StepContext) -> None:
        global _global_user_profile
        _global_user_profile = UserProfile()
        await self.session_store.clear(step.session_key)


def reset_global_profile() -> None:
    """Forget the shared profile (test helper)."""
    global _global_user_profile
    _global_user_profile = None


class InstanceProfileDialog(BaseProfileDialog):
    """Keeps the in-flight profile on the dialog object shared by all conversations."""

    def __init__(
        self,
        session_store: SessionStore,
        *,
        attachment_unsupported_channels: Iterable[str] = ("msteams",),
    ) -> None:
        super().__init__(
            "userProfileDialogProperty",
            session_store,
            attachment_unsupported_channels=attachment_unsupported_channels,
        )
        self.user_profile: UserProfile | None = None

    async def begin_profile(self, step: StepContext) -> UserProfile:
        self.user_profile = UserProfile()
        return self.user_profile

    def current_profile(self, step: StepContext) -> UserProfile | None:
        return self.user_profile

    def keep_profile(self, step: StepContext, profile: UserProfile) -> None:
        self.user_profile = profile

    async def save_profile(self, step: StepContext, profile: UserProfile) -> None:
        await self.session_store.set(step.session_key, profile)

    async def discard_profile(self, step: StepContext) -> None:
        self.user_profile = UserProfile()
        await self.session_store.clear(step.session_key)
