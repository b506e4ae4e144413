"""Prompt primitives: how a question is rendered and how its answer is recognized."""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from profile_bot.schemas.dialog_state import Choice, PendingPrompt
from profile_bot.services.turn_context import TurnContext

_NUMBER_PATTERN = re.compile(r"-?\d+(?:\.\d+)?")
_ORDINAL_WORDS = {
    "first": 1,
    "second": 2,
    "third": 3,
    "fourth": 4,
    "fifth": 5,
}
_YES_WORDS = frozenset({"yes", "y", "yeah", "yep", "yup", "sure", "ok", "okay", "true"})
_NO_WORDS = frozenset({"no", "n", "nope", "nah", "false"})


@dataclass(slots=True)
class PromptRecognition:
    """Outcome of recognizing a reply against a prompt."""

    succeeded: bool
    value: Any = None


@dataclass(slots=True)
class PromptValidatorContext:
    """What a validator sees; validators may replace ``recognized.value``."""

    context: TurnContext
    recognized: PromptRecognition


PromptValidator = Callable[[PromptValidatorContext], Awaitable[bool]]


def to_choices(values: Sequence[str]) -> list[Choice]:
    """Build plain choices from option values."""
    return [Choice(value=value) for value in values]


def inline_choice_list(choices: Sequence[Choice]) -> str:
    """Render choices as ``(1) A, (2) B, or (3) C`` (``(1) A or (2) B`` for two)."""
    labels = [f"({index}) {choice.value}" for index, choice in enumerate(choices, start=1)]
    if len(labels) <= 1:
        return "".join(labels)
    if len(labels) == 2:
        return f"{labels[0]} or {labels[1]}"
    return ", ".join(labels[:-1]) + f", or {labels[-1]}"


class Prompt(ABC):
    """Base prompt registered on a dialog under an id."""

    def __init__(self, prompt_id: str, validator: PromptValidator | None = None) -> None:
        self.prompt_id = prompt_id
        self.validator = validator

    def render(self, pending: PendingPrompt) -> str:
        """Text sent to ask the question."""
        return pending.text

    def render_retry(self, pending: PendingPrompt) -> str:
        """Text sent after a reply failed recognition or validation."""
        return pending.retry_text or self.render(pending)

    @abstractmethod
    def recognize(self, context: TurnContext, pending: PendingPrompt) -> PromptRecognition:
        """Interpret the turn as an answer to this prompt."""
        raise NotImplementedError

    async def resolve(self, context: TurnContext, pending: PendingPrompt) -> PromptRecognition:
        """Recognize the turn and run the validator, if any."""
        recognized = self.recognize(context, pending)
        if self.validator is None:
            return recognized
        is_valid = await self.validator(PromptValidatorContext(context=context, recognized=recognized))
        return PromptRecognition(succeeded=bool(is_valid), value=recognized.value)


class TextPrompt(Prompt):
    """Accepts any non-empty text."""

    def recognize(self, context: TurnContext, pending: PendingPrompt) -> PromptRecognition:
        del pending
        text = context.text
        if not text:
            return PromptRecognition(succeeded=False)
        return PromptRecognition(succeeded=True, value=text)


class ChoicePrompt(Prompt):
    """Closed choice; result is the matched choice value."""

    def render(self, pending: PendingPrompt) -> str:
        return f"{pending.text} {inline_choice_list(pending.choices)}"

    def recognize(self, context: TurnContext, pending: PendingPrompt) -> PromptRecognition:
        choice = match_choice(context.text, pending.choices)
        if choice is None:
            return PromptRecognition(succeeded=False)
        return PromptRecognition(succeeded=True, value=choice.value)


class ConfirmPrompt(ChoicePrompt):
    """Yes/no question; result is a bool."""

    CHOICES = ("Yes", "No")

    def render(self, pending: PendingPrompt) -> str:
        return f"{pending.text} {inline_choice_list(pending.choices or to_choices(self.CHOICES))}"

    def recognize(self, context: TurnContext, pending: PendingPrompt) -> PromptRecognition:
        del pending
        normalized = context.text.lower().rstrip(".!")
        if normalized in _YES_WORDS or normalized == "1":
            return PromptRecognition(succeeded=True, value=True)
        if normalized in _NO_WORDS or normalized == "2":
            return PromptRecognition(succeeded=True, value=False)
        return PromptRecognition(succeeded=False)


class NumberPrompt(Prompt):
    """Numeric answer; the first integral number in the text."""

    def recognize(self, context: TurnContext, pending: PendingPrompt) -> PromptRecognition:
        del pending
        match = _NUMBER_PATTERN.search(context.text)
        if match is None:
            return PromptRecognition(succeeded=False)
        number = float(match.group(0))
        if not number.is_integer():
            return PromptRecognition(succeeded=False)
        return PromptRecognition(succeeded=True, value=int(number))


class AttachmentPrompt(Prompt):
    """Succeeds when the turn carries at least one attachment."""

    def recognize(self, context: TurnContext, pending: PendingPrompt) -> PromptRecognition:
        del pending
        attachments = context.attachments
        if not attachments:
            return PromptRecognition(succeeded=False)
        return PromptRecognition(succeeded=True, value=attachments)


def match_choice(text: str, choices: Sequence[Choice]) -> Choice | None:
    """Match text against choice values, synonyms, then 1-based ordinals."""
    normalized = text.strip().lower().rstrip(".!")
    if not normalized:
        return None

    for choice in choices:
        candidates = [choice.value, *choice.synonyms]
        if any(normalized == candidate.lower() for candidate in candidates):
            return choice

    ordinal = _ORDINAL_WORDS.get(normalized)
    if ordinal is None and normalized.isdigit():
        ordinal = int(normalized)
    if ordinal is not None and 1 <= ordinal <= len(choices):
        return choices[ordinal - 1]
    return None
