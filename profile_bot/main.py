"""FastAPI entrypoint for the profile dialog bot."""

import logging

from fastapi import FastAPI

from profile_bot.api.v1.router import api_router
from profile_bot.core.settings import settings

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title=settings.app_name, version=settings.app_version)


@app.get("/")
async def health_check() -> dict[str, str]:
    """Simple health endpoint to validate service status."""
    return {"status": "ok", "message": "Profile dialog bot backend is running"}


# Mount API v1 routes under /api/v1.
app.include_router(api_router, prefix="/api/v1")
