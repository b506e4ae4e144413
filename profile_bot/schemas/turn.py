"""Inbound turn and outbound reply payloads."""

from pydantic import BaseModel, Field


class Attachment(BaseModel):
    """Attachment reference carried by a turn or a reply."""

    content_type: str = Field(..., description="MIME type", examples=["image/png"])
    content_url: str | None = Field(default=None, description="Where the content can be fetched")
    name: str | None = None


class InboundTurn(BaseModel):
    """One message delivered by the transport layer."""

    conversation_id: str = Field(..., min_length=1, description="Conversation identifier", examples=["alfred-conv"])
    sender_id: str = Field(..., min_length=1, description="Sender identifier", examples=["alfred"])
    sender_name: str | None = Field(default=None, examples=["Alfred"])
    channel_id: str = Field(default="test", description="Channel the message arrived on")
    text: str | None = Field(default=None, examples=["hello"])
    attachments: list[Attachment] = Field(default_factory=list)


class Reply(BaseModel):
    """One outbound message produced while processing a turn."""

    recipient_id: str
    conversation_id: str
    text: str | None = None
    attachment: Attachment | None = None


class TurnResponse(BaseModel):
    """Response payload for /messages."""

    replies: list[Reply]
