"""Per-turn context: the inbound message and the replies sent for it."""

from __future__ import annotations

import logging

from profile_bot.interfaces.messaging_provider import MessagingProvider
from profile_bot.schemas.turn import Attachment, InboundTurn, Reply
from profile_bot.services.session_store import session_key_for

logger = logging.getLogger(__name__)


class TurnContext:
    """Wraps one inbound turn and dispatches replies to its sender."""

    def __init__(self, turn: InboundTurn, messaging_provider: MessagingProvider) -> None:
        self.turn = turn
        self.messaging_provider = messaging_provider
        self.session_key = session_key_for(turn)
        self.replies: list[Reply] = []

    @property
    def channel_id(self) -> str:
        return self.turn.channel_id

    @property
    def text(self) -> str:
        return (self.turn.text or "").strip()

    @property
    def attachments(self) -> list[Attachment]:
        return list(self.turn.attachments)

    def log_inbound(self) -> None:
        sender = self.turn.sender_name or self.turn.sender_id
        if self.turn.text is not None:
            logger.debug("[User: %s]: %s", sender, self.turn.text)
        else:
            logger.debug("[User: %s]: Activity: attachments(%d)", sender, len(self.turn.attachments))

    async def send_text(self, text: str) -> None:
        """Send a text reply to the sender of this turn."""
        await self.messaging_provider.send_message(
            user=self.turn.sender_id,
            conversation_id=self.turn.conversation_id,
            message=text,
        )
        self.replies.append(
            Reply(recipient_id=self.turn.sender_id, conversation_id=self.turn.conversation_id, text=text)
        )
        logger.debug("[Bot]: %s", text)

    async def send_attachment(self, attachment: Attachment, text: str | None = None) -> None:
        """Send an attachment reply; AttachmentRenderError propagates to the caller."""
        await self.messaging_provider.send_attachment(
            user=self.turn.sender_id,
            conversation_id=self.turn.conversation_id,
            attachment=attachment,
            message=text,
        )
        self.replies.append(
            Reply(
                recipient_id=self.turn.sender_id,
                conversation_id=self.turn.conversation_id,
                text=text,
                attachment=attachment,
            )
        )
        logger.debug("[Bot]: Activity: attachment(%s)", attachment.content_type)
