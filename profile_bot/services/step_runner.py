"""Linear step runner with suspend/resume keyed by Session Key."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from profile_bot.core.errors import StructuralInvariantError
from profile_bot.schemas.dialog_state import Choice, DialogState, PendingPrompt
from profile_bot.services.prompts import Prompt
from profile_bot.services.session_store import SessionStore
from profile_bot.services.turn_context import TurnContext

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Ask:
    """Send a prompt and suspend until the conversation's next message."""

    prompt_id: str
    text: str
    retry_text: str | None = None
    choices: list[Choice] = field(default_factory=list)


@dataclass(slots=True)
class Next:
    """Continue with the following step in the same turn."""

    value: Any = None
    skipped: bool = False


@dataclass(slots=True)
class Finish:
    """End the script for this conversation."""


StepAction = Ask | Next | Finish


@dataclass(slots=True)
class StepContext:
    """Inputs of one step: the turn, the persisted state and the previous result."""

    context: TurnContext
    state: DialogState
    result: Any = None
    skipped: bool = False

    @property
    def session_key(self) -> str:
        return self.context.session_key

    @property
    def values(self) -> dict[str, Any]:
        return self.state.values

    def prompt(
        self,
        prompt_id: str,
        text: str,
        *,
        retry_text: str | None = None,
        choices: Sequence[Choice] | None = None,
    ) -> Ask:
        return Ask(prompt_id=prompt_id, text=text, retry_text=retry_text, choices=list(choices or []))

    def next(self, value: Any = None, *, skipped: bool = False) -> Next:
        return Next(value=value, skipped=skipped)

    def end(self) -> Finish:
        return Finish()


Step = Callable[[StepContext], Awaitable[StepAction]]


class StepRunner:
    """Runs a fixed sequence of steps, one conversation turn at a time.

    Between turns only the step index, the waiting prompt and ``values`` survive,
    persisted in the session store under the turn's Session Key. A reply is routed
    to the prompt the conversation is waiting on; if it is accepted the runner
    resumes at the following step, otherwise it re-prompts and stays put.
    """

    def __init__(self, dialog_id: str, session_store: SessionStore) -> None:
        self.dialog_id = dialog_id
        self.session_store = session_store
        self.prompts: dict[str, Prompt] = {}
        self.steps: list[Step] = []

    def add_prompt(self, prompt: Prompt) -> None:
        self.prompts[prompt.prompt_id] = prompt

    def add_steps(self, steps: Sequence[Step]) -> None:
        self.steps.extend(steps)

    async def run(self, context: TurnContext) -> None:
        """Process one inbound turn."""
        key = context.session_key
        context.log_inbound()
        async with self.session_store.lock(key):
            state = await self.session_store.get_dialog_state(key)
            if not state.is_active or state.dialog_id != self.dialog_id or state.pending_prompt is None:
                logger.debug("Starting dialog=%s for key=%s", self.dialog_id, key)
                state = DialogState(dialog_id=self.dialog_id, step_index=0)
                await self._run_from(context, state, Next())
                return

            pending = state.pending_prompt
            prompt = self.prompts[pending.prompt_id]
            recognition = await prompt.resolve(context, pending)
            if not recognition.succeeded:
                logger.info("Re-prompting prompt=%s for key=%s", pending.prompt_id, key)
                await context.send_text(prompt.render_retry(pending))
                return

            state.pending_prompt = None
            state.step_index = (state.step_index or 0) + 1
            await self._run_from(context, state, Next(value=recognition.value))

    async def _run_from(self, context: TurnContext, state: DialogState, incoming: Next) -> None:
        key = context.session_key
        result = incoming
        while state.step_index is not None and state.step_index < len(self.steps):
            step = self.steps[state.step_index]
            step_context = StepContext(context=context, state=state, result=result.value, skipped=result.skipped)
            try:
                action = await step(step_context)
            except StructuralInvariantError:
                logger.exception("Aborting turn for key=%s at step=%s", key, getattr(step, "__name__", step))
                raise

            if isinstance(action, Ask):
                pending = PendingPrompt(
                    prompt_id=action.prompt_id,
                    text=action.text,
                    retry_text=action.retry_text,
                    choices=action.choices,
                )
                state.pending_prompt = pending
                await context.send_text(self.prompts[action.prompt_id].render(pending))
                await self.session_store.set_dialog_state(key, state)
                return
            if isinstance(action, Finish):
                break
            result = action
            state.step_index += 1

        logger.debug("Dialog=%s finished for key=%s", self.dialog_id, key)
        await self.session_store.set_dialog_state(key, DialogState())
