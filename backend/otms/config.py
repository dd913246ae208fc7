from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "OTMS"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://otms:otms@db:5432/otms"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    auto_create_schema: bool = False

    # Push notification gateway. When unset, notifications are only logged.
    notifier_url: str | None = None
    notification_timeout_seconds: float = 5.0


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
