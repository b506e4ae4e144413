"""Messaging provider that only logs outbound traffic."""

import logging

from profile_bot.interfaces.messaging_provider import MessagingProvider
from profile_bot.schemas.turn import Attachment

logger = logging.getLogger(__name__)


class LoggingMessagingProvider(MessagingProvider):
    """Log-based sender used when replies are returned over HTTP."""

    async def send_message(self, user: str, conversation_id: str, message: str) -> None:
        logger.info("-> user=%s conversation=%s | message=%s", user, conversation_id, message)

    async def send_attachment(
        self,
        user: str,
        conversation_id: str,
        attachment: Attachment,
        message: str | None = None,
    ) -> None:
        logger.info(
            "-> user=%s conversation=%s | attachment=%s | message=%s",
            user,
            conversation_id,
            attachment.content_type,
            message,
        )
