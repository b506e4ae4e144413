"""Bot service entrypoint that routes turns to a profile dialog variant."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from enum import Enum

from profile_bot.core.errors import UnknownDialogVariantError
from profile_bot.interfaces.messaging_provider import MessagingProvider
from profile_bot.schemas.turn import InboundTurn, Reply
from profile_bot.services.profile_dialog import BaseProfileDialog, ProfileDialog
from profile_bot.services.profile_dialog_variants import GlobalProfileDialog, InstanceProfileDialog
from profile_bot.services.session_store import SessionStore
from profile_bot.services.turn_context import TurnContext

logger = logging.getLogger(__name__)


class DialogVariant(str, Enum):
    """Where a dialog keeps in-flight profile data."""

    NORMAL = "normal"
    GLOBAL = "global"
    PROPERTY = "property"


_VARIANT_SYNONYMS: dict[str, DialogVariant] = {
    "normal": DialogVariant.NORMAL,
    "global": DialogVariant.GLOBAL,
    "globally": DialogVariant.GLOBAL,
    "property": DialogVariant.PROPERTY,
    "properties": DialogVariant.PROPERTY,
    "singleton": DialogVariant.PROPERTY,
    "instance": DialogVariant.PROPERTY,
}


def resolve_variant(name: str | DialogVariant) -> DialogVariant:
    """Map a variant name or synonym to a DialogVariant."""
    if isinstance(name, DialogVariant):
        return name
    variant = _VARIANT_SYNONYMS.get(name.strip().lower())
    if variant is None:
        raise UnknownDialogVariantError(
            f"Unknown dialog variant '{name}'. Expected one of: {', '.join(v.value for v in DialogVariant)}."
        )
    return variant


class BotService:
    """Thin facade that runs one inbound turn through a profile dialog."""

    def __init__(
        self,
        session_store: SessionStore,
        messaging_provider: MessagingProvider,
        *,
        default_variant: str | DialogVariant = DialogVariant.NORMAL,
        attachment_unsupported_channels: Iterable[str] = ("msteams",),
    ) -> None:
        self.session_store = session_store
        self.messaging_provider = messaging_provider
        self.default_variant = resolve_variant(default_variant)
        channels = tuple(attachment_unsupported_channels)
        # One long-lived dialog per variant, shared by every conversation.
        self.dialogs: dict[DialogVariant, BaseProfileDialog] = {
            DialogVariant.NORMAL: ProfileDialog(session_store, attachment_unsupported_channels=channels),
            DialogVariant.GLOBAL: GlobalProfileDialog(session_store, attachment_unsupported_channels=channels),
            DialogVariant.PROPERTY: InstanceProfileDialog(session_store, attachment_unsupported_channels=channels),
        }

    async def handle_turn(self, turn: InboundTurn, variant: str | DialogVariant | None = None) -> list[Reply]:
        """Process one turn and return the replies sent for it."""
        resolved_variant = self.default_variant if variant is None else resolve_variant(variant)
        dialog = self.dialogs[resolved_variant]
        context = TurnContext(turn=turn, messaging_provider=self.messaging_provider)
        logger.debug("Dispatching turn for conversation=%s to variant=%s", turn.conversation_id, resolved_variant.value)
        await dialog.run(context)
        return context.replies
