# progress_hub/core/config.py
from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Global application configuration.

    Values are loaded from environment variables (or a local `.env` file) at
    runtime. The storage backend and its connection parameters live here and
    nowhere else; the store itself never knows which backend it talks to.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "Progress Hub"
    APP_ENV: str = Field("local", description="Environment name: local/dev/stage/prod")
    LOG_LEVEL: str = Field("INFO", description="Root log level for the service.")

    STORAGE_BACKEND: Literal["json_file", "remote_api", "database"] = Field(
        "json_file",
        description="Which persistence adapter the store mirrors its collections to.",
    )

    # --- Local JSON file backend ---
    DATA_DIR: str = Field(
        "./data",
        description="Directory holding one JSON file per collection.",
    )
    STORAGE_MAX_BYTES: int | None = Field(
        default=5 * 1024 * 1024,
        description=(
            "Upper bound for the total size of the JSON files. Writes beyond "
            "this limit are rejected as quota exceeded. Unset to disable."
        ),
    )

    # --- Remote spreadsheet-backed web app ---
    REMOTE_API_URL: AnyHttpUrl | None = Field(
        default=None,
        description="Deployment URL of the remote web app exposing the collections.",
    )
    REMOTE_API_KEY: str | None = Field(
        default=None,
        description="Optional bearer token sent to the remote web app.",
    )
    REMOTE_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Per-request timeout for the remote web app.",
    )

    # --- Relational backend with live subscription ---
    DB_URL: str = Field(
        "sqlite+aiosqlite:///./progress_hub.db",
        description="SQLAlchemy-compatible async database URL",
    )
    SUBSCRIPTION_POLL_SECONDS: float = Field(
        default=2.0,
        description="How often the database subscription checks for new revisions.",
    )

    INTERNAL_API_KEY: str | None = Field(
        default=None,
        description="API key required for hitting /internal endpoints",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Cached accessor for application settings.

    Using LRU cache ensures settings are read and validated only once,
    while still being easily importable across the app.
    """
    return Settings()
