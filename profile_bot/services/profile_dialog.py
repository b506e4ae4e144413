"""Seven-step user profile dialog."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from profile_bot.core.errors import AttachmentRenderError, StructuralInvariantError
from profile_bot.schemas.profile import Transport, UserProfile
from profile_bot.schemas.turn import Attachment
from profile_bot.services.prompts import (
    AttachmentPrompt,
    ChoicePrompt,
    ConfirmPrompt,
    NumberPrompt,
    PromptValidatorContext,
    TextPrompt,
    to_choices,
)
from profile_bot.services.session_store import SessionStore
from profile_bot.services.step_runner import StepAction, StepContext, StepRunner

logger = logging.getLogger(__name__)

ATTACHMENT_PROMPT = "ATTACHMENT_PROMPT"
CHOICE_PROMPT = "CHOICE_PROMPT"
CONFIRM_PROMPT = "CONFIRM_PROMPT"
NAME_PROMPT = "NAME_PROMPT"
NUMBER_PROMPT = "NUMBER_PROMPT"

VALID_PICTURE_TYPES = frozenset({"image/jpeg", "image/png"})
CHANNEL_LABELS = {"msteams": "Teams"}

MIN_AGE_EXCLUSIVE = 0
MAX_AGE_EXCLUSIVE = 150


class BaseProfileDialog(StepRunner, ABC):
    """Transport, name, age, picture, summary and save, asked in that order.

    Each step skips its question when the profile already holds the answer, and
    acknowledgements ("Thanks ...", "I have your age as ...") are only sent for
    answers given in the current run. Subclasses decide where the in-flight
    profile lives between turns.
    """

    def __init__(
        self,
        dialog_id: str,
        session_store: SessionStore,
        *,
        attachment_unsupported_channels: Iterable[str] = ("msteams",),
    ) -> None:
        super().__init__(dialog_id=dialog_id, session_store=session_store)
        self.attachment_unsupported_channels = frozenset(attachment_unsupported_channels)

        self.add_prompt(TextPrompt(NAME_PROMPT))
        self.add_prompt(ChoicePrompt(CHOICE_PROMPT))
        self.add_prompt(ConfirmPrompt(CONFIRM_PROMPT))
        self.add_prompt(NumberPrompt(NUMBER_PROMPT, self.age_prompt_validator))
        self.add_prompt(AttachmentPrompt(ATTACHMENT_PROMPT, self.picture_prompt_validator))

        self.add_steps(
            [
                self.transport_step,
                self.name_step,
                self.name_confirm_step,
                self.age_step,
                self.picture_step,
                self.confirm_step,
                self.save_step,
            ]
        )

    @abstractmethod
    async def begin_profile(self, step: StepContext) -> UserProfile:
        """Return the profile this run starts from."""
        raise NotImplementedError

    @abstractmethod
    def current_profile(self, step: StepContext) -> UserProfile | None:
        """Return the in-flight profile."""
        raise NotImplementedError

    @abstractmethod
    def keep_profile(self, step: StepContext, profile: UserProfile) -> None:
        """Hold the in-flight profile until the next step runs."""
        raise NotImplementedError

    @abstractmethod
    async def save_profile(self, step: StepContext, profile: UserProfile) -> None:
        """Persist the finished profile."""
        raise NotImplementedError

    @abstractmethod
    async def discard_profile(self, step: StepContext) -> None:
        """Drop the profile after the user declined to save it."""
        raise NotImplementedError

    async def transport_step(self, step: StepContext) -> StepAction:
        profile = await self.begin_profile(step)
        self.keep_profile(step, profile)

        if profile.transport is not None:
            return step.next(profile.transport.value)

        return step.prompt(
            CHOICE_PROMPT,
            "Please enter your mode of transport.",
            choices=to_choices([transport.value for transport in Transport]),
        )

    async def name_step(self, step: StepContext) -> StepAction:
        profile = self._require(step, "name_step")
        profile.transport = Transport(step.result)
        self.keep_profile(step, profile)

        if profile.name:
            return step.next(profile.name, skipped=True)

        return step.prompt(NAME_PROMPT, "Please enter your name.")

    async def name_confirm_step(self, step: StepContext) -> StepAction:
        profile = self._require(step, "name_confirm_step", "transport")
        profile.name = step.result
        self.keep_profile(step, profile)

        if not step.skipped:
            await step.context.send_text(f"Thanks {profile.name}.")

        if profile.has_age:
            return step.next(True)
        return step.prompt(CONFIRM_PROMPT, "Do you want to give your age?")

    async def age_step(self, step: StepContext) -> StepAction:
        profile = self._require(step, "age_step", "name")

        if profile.has_age:
            return step.next(profile.age, skipped=True)

        if step.result:
            return step.prompt(
                NUMBER_PROMPT,
                "Please enter your age.",
                retry_text="The value entered must be greater than 0 and less than 150.",
            )

        profile.age_declined = True
        self.keep_profile(step, profile)
        return step.next(None)

    async def picture_step(self, step: StepContext) -> StepAction:
        profile = self._require(step, "picture_step")

        if not step.skipped:
            if step.result is not None:
                profile.age = int(step.result)
                self.keep_profile(step, profile)
            message = "No age given." if profile.age_declined else f"I have your age as {profile.age}."
            await step.context.send_text(message)

        if profile.picture is not None:
            return step.next(profile.picture)

        channel_id = step.context.channel_id
        if channel_id in self.attachment_unsupported_channels:
            label = CHANNEL_LABELS.get(channel_id, channel_id)
            await step.context.send_text(f"Skipping attachment prompt in {label} channel...")
            return step.next(None)

        return step.prompt(
            ATTACHMENT_PROMPT,
            "Please attach a profile picture (or type any message to skip).",
            retry_text="The attachment must be a jpeg/png image file.",
        )

    async def confirm_step(self, step: StepContext) -> StepAction:
        profile = self._require(step, "confirm_step", "age")
        profile.picture = _first_picture(step.result)
        self.keep_profile(step, profile)

        await step.context.send_text(profile.describe())
        if profile.picture is not None:
            try:
                await step.context.send_attachment(profile.picture, "This is your profile picture.")
            except AttachmentRenderError:
                logger.warning("Profile picture could not be rendered on channel=%s", step.context.channel_id)
                await step.context.send_text("A profile picture was saved but could not be displayed here.")

        return step.prompt(CONFIRM_PROMPT, "Would you like me to save this information?")

    async def save_step(self, step: StepContext) -> StepAction:
        if step.result:
            profile = self._require(step, "save_step")
            profile.saved = True
            self.keep_profile(step, profile)
            await self.save_profile(step, profile)
            await step.context.send_text("User Profile Saved.")
        else:
            await self.discard_profile(step)
            await step.context.send_text("Thanks. Your profile will not be kept.")

        return step.end()

    async def age_prompt_validator(self, prompt_context: PromptValidatorContext) -> bool:
        recognized = prompt_context.recognized
        return recognized.succeeded and MIN_AGE_EXCLUSIVE < recognized.value < MAX_AGE_EXCLUSIVE

    async def picture_prompt_validator(self, prompt_context: PromptValidatorContext) -> bool:
        recognized = prompt_context.recognized
        if recognized.succeeded:
            valid_images = [
                attachment for attachment in recognized.value if attachment.content_type in VALID_PICTURE_TYPES
            ]
            recognized.value = valid_images
            return bool(valid_images)

        # No attachments at all is an answer: continue without a picture.
        await prompt_context.context.send_text("No attachments received. Proceeding without a profile picture...")
        return True

    def _require(self, step: StepContext, step_name: str, field: str | None = None) -> UserProfile:
        profile = self.current_profile(step)
        if profile is None:
            raise StructuralInvariantError(step=step_name, missing_field="userProfile", profile=None)
        if field is None:
            return profile

        present = profile.has_age if field == "age" else getattr(profile, field) is not None
        if not present:
            raise StructuralInvariantError(
                step=step_name,
                missing_field=field,
                profile=profile.model_dump(mode="json"),
            )
        return profile


class ProfileDialog(BaseProfileDialog):
    """Keeps the in-flight profile in the conversation's own dialog state.

    The run starts from the profile stored under the Session Key, carries it in
    the per-conversation ``values`` between turns and writes it back to the
    session store at the save step.
    """

    PROFILE_VALUE = "userProfile"

    def __init__(
        self,
        session_store: SessionStore,
        *,
        attachment_unsupported_channels: Iterable[str] = ("msteams",),
    ) -> None:
        super().__init__(
            "userProfileDialogNormal",
            session_store,
            attachment_unsupported_channels=attachment_unsupported_channels,
        )

    async def begin_profile(self, step: StepContext) -> UserProfile:
        return await self.session_store.get(step.session_key)

    def current_profile(self, step: StepContext) -> UserProfile | None:
        raw_profile = step.values.get(self.PROFILE_VALUE)
        if raw_profile is None:
            return None
        return UserProfile.model_validate(raw_profile)

    def keep_profile(self, step: StepContext, profile: UserProfile) -> None:
        step.values[self.PROFILE_VALUE] = profile.model_dump(mode="json")

    async def save_profile(self, step: StepContext, profile: UserProfile) -> None:
        await self.session_store.set(step.session_key, profile)

    async def discard_profile(self, step: StepContext) -> None:
        step.values.pop(self.PROFILE_VALUE, None)
        await self.session_store.clear(step.session_key)


def _first_picture(result: object) -> Attachment | None:
    if isinstance(result, Attachment):
        return result
    if isinstance(result, list) and result:
        return result[0]
    return None
