"""Interface contract for messaging providers."""

from abc import ABC, abstractmethod

from profile_bot.schemas.turn import Attachment


class MessagingProvider(ABC):
    """Defines outbound message delivery behavior."""

    @abstractmethod
    async def send_message(self, user: str, conversation_id: str, message: str) -> None:
        """Send a text message to a target user in a conversation."""
        raise NotImplementedError

    @abstractmethod
    async def send_attachment(
        self,
        user: str,
        conversation_id: str,
        attachment: Attachment,
        message: str | None = None,
    ) -> None:
        """Send an attachment; raise AttachmentRenderError when the channel cannot display it."""
        raise NotImplementedError
