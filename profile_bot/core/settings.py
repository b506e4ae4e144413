"""Application settings management."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global settings loaded from environment variables."""

    app_name: str = "Profile Dialog Bot"
    app_version: str = "0.1.0"
    environment: str = "development"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    storage_backend: str = Field(default="memory", alias="STORAGE_BACKEND")
    database_url: str = Field(default="sqlite:///./profile_bot.db", alias="DATABASE_URL")

    dialog_variant: str = Field(default="normal", alias="DIALOG_VARIANT")
    attachment_unsupported_channels: list[str] = Field(
        default_factory=lambda: ["msteams"],
        alias="ATTACHMENT_UNSUPPORTED_CHANNELS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="forbid",
        populate_by_name=True,
    )


settings = Settings()
