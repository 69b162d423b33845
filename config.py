"""
Service configuration, read from the environment (and an optional .env file).

Settings are built once by the entry point and handed to ``create_app``;
nothing else in the service reads the environment.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase Postgres
    database_url: str = Field(description="Postgres DSN of the Supabase database")
    database_password: str | None = Field(
        default=None,
        validation_alias=AliasChoices("database_password", "supabase_service_key"),
        description="Credential used when the DSN does not carry one",
    )

    # OpenPhone
    openphone_webhook_secret: str | None = None

    # HTTP
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]

    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    return Settings()
