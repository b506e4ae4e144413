"""Endpoint delivering inbound turns to the profile dialog."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from profile_bot.core.errors import StructuralInvariantError, UnknownDialogVariantError
from profile_bot.core.settings import Settings, settings
from profile_bot.db.base import Base
from profile_bot.db.session import build_session_factory, get_engine
from profile_bot.interfaces.storage import StorageBackend
from profile_bot.providers.messaging.logging_messaging import LoggingMessagingProvider
from profile_bot.providers.storage.memory_storage import MemoryStorage
from profile_bot.providers.storage.sql_storage import SqlStorage
from profile_bot.schemas.turn import InboundTurn, TurnResponse
from profile_bot.services.bot_service import BotService
from profile_bot.services.session_store import SessionStore

router = APIRouter()


def build_storage(config: Settings) -> StorageBackend:
    """Create the storage backend selected by configuration."""
    backend = config.storage_backend.strip().lower()
    if backend == "memory":
        return MemoryStorage()
    if backend == "sql":
        engine = get_engine(config.database_url)
        Base.metadata.create_all(engine)
        return SqlStorage(build_session_factory(engine))
    raise ValueError(f"Unsupported storage backend '{config.storage_backend}'. Use 'memory' or 'sql'.")


# Shared service instances for the process.
bot_service = BotService(
    session_store=SessionStore(build_storage(settings)),
    messaging_provider=LoggingMessagingProvider(),
    default_variant=settings.dialog_variant,
    attachment_unsupported_channels=settings.attachment_unsupported_channels,
)


@router.post("/messages", response_model=TurnResponse)
async def receive_message(payload: InboundTurn, variant: str | None = None) -> TurnResponse:
    """Run one inbound turn through the dialog and return the bot's replies."""
    try:
        replies = await bot_service.handle_turn(payload, variant=variant)
    except UnknownDialogVariantError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except StructuralInvariantError as exc:
        raise HTTPException(status_code=500, detail="Sorry, something went wrong.") from exc
    return TurnResponse(replies=replies)
