"""
Application configuration models and helpers.

Centralizes settings management so the HTTP layer, the token lifecycle and the
storage backends share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

import os

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


_SETTINGS_CONFIG = SettingsConfigDict(extra="ignore", populate_by_name=True)


class TwitterSettings(BaseSettings):
    """Configuration required for the X (Twitter) OAuth2 and v2 APIs."""

    model_config = _SETTINGS_CONFIG

    client_id: str = Field(..., validation_alias="TWITTER_CLIENT_ID")
    client_secret: Optional[str] = Field(
        None,
        validation_alias="TWITTER_CLIENT_SECRET",
        description="Omit for public clients; confidential clients use HTTP Basic auth.",
    )
    redirect_uri: AnyHttpUrl = Field(
        "http://localhost:3001/callback", validation_alias="REDIRECT_URI"
    )
    scopes: str = Field(
        "tweet.read users.read bookmark.read", validation_alias="TWITTER_SCOPES"
    )
    authorize_url: str = Field(
        "https://twitter.com/i/oauth2/authorize",
        validation_alias="TWITTER_AUTHORIZE_URL",
    )
    token_url: str = Field(
        "https://api.twitter.com/2/oauth2/token", validation_alias="TWITTER_TOKEN_URL"
    )
    api_base_url: str = Field(
        "https://api.twitter.com/2", validation_alias="TWITTER_API_BASE_URL"
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _normalize_scopes(cls, value: str | list[str] | tuple[str, ...]) -> str:
        """Accept comma- or space-separated scopes and emit the space-joined form."""
        if isinstance(value, (list, tuple)):
            parts = list(value)
        else:
            parts = value.replace(",", " ").split()
        return " ".join(scope.strip() for scope in parts if scope.strip())


class StorageSettings(BaseSettings):
    """Selects and configures the token persistence backend."""

    model_config = _SETTINGS_CONFIG

    backend: Literal["file", "env", "sqlite", "dynamodb", "remote"] = Field(
        "file", validation_alias="TOKEN_STORE_BACKEND"
    )
    file_path: str = Field(
        "/tmp/twitter-tokens.json", validation_alias="TOKEN_FILE_PATH"
    )
    sqlite_path: str = Field(
        "data/tokens.db", validation_alias="TOKEN_SQLITE_PATH"
    )
    env_prefix: str = Field("TWITTER_", validation_alias="TOKEN_ENV_PREFIX")
    region_name: str = Field("us-east-1", validation_alias="AWS_REGION")
    dynamodb_table_name: Optional[str] = Field(
        None, validation_alias="TOKEN_DYNAMODB_TABLE"
    )
    remote_url: Optional[str] = Field(
        None,
        validation_alias="TOKEN_REMOTE_URL",
        description="Base URL of a PostgREST-compatible table API.",
    )
    remote_key: Optional[str] = Field(None, validation_alias="TOKEN_REMOTE_KEY")
    remote_table: str = Field("oauth_tokens", validation_alias="TOKEN_REMOTE_TABLE")


class HTTPSettings(BaseSettings):
    """Outbound HTTP behaviour shared by the provider and API clients."""

    model_config = _SETTINGS_CONFIG

    timeout_seconds: float = Field(10.0, validation_alias="HTTP_TIMEOUT_SECONDS")
    retry_attempts: int = Field(3, validation_alias="HTTP_RETRY_ATTEMPTS")
    retry_backoff_seconds: float = Field(
        0.5, validation_alias="HTTP_RETRY_BACKOFF_SECONDS"
    )
    user_agent: str = Field(
        "TwitterBookmarksClient/1.0", validation_alias="HTTP_USER_AGENT"
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = _SETTINGS_CONFIG

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(3001, validation_alias="PORT")
    twitter: TwitterSettings = Field(default_factory=TwitterSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "HTTPSettings",
    "StorageSettings",
    "TwitterSettings",
    "get_settings",
]
