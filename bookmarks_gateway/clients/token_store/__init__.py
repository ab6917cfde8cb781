"""Token store backends and the factory that picks one from configuration."""

from bookmarks_gateway.core.config import HTTPSettings, StorageSettings

from .base import TokenStorageError, TokenStore
from .dynamodb import DynamoDBTokenStore
from .environment import EnvironmentTokenStore
from .file import FileTokenStore
from .remote import RemoteTableTokenStore
from .sqlite import SQLiteTokenStore


def build_token_store(
    settings: StorageSettings, http_settings: HTTPSettings | None = None
) -> TokenStore:
    """Instantiate the backend named by ``TOKEN_STORE_BACKEND``."""
    backend = settings.backend
    if backend == "file":
        return FileTokenStore(settings.file_path)
    if backend == "env":
        return EnvironmentTokenStore(settings.env_prefix)
    if backend == "sqlite":
        return SQLiteTokenStore(settings.sqlite_path)
    if backend == "dynamodb":
        if not settings.dynamodb_table_name:
            raise ValueError("TOKEN_DYNAMODB_TABLE is required for the dynamodb backend.")
        return DynamoDBTokenStore(
            table_name=settings.dynamodb_table_name,
            region_name=settings.region_name,
        )
    if backend == "remote":
        if not settings.remote_url or not settings.remote_key:
            raise ValueError(
                "TOKEN_REMOTE_URL and TOKEN_REMOTE_KEY are required for the remote backend."
            )
        timeout = http_settings.timeout_seconds if http_settings else 10.0
        return RemoteTableTokenStore(
            base_url=settings.remote_url,
            api_key=settings.remote_key,
            table=settings.remote_table,
            timeout=timeout,
        )
    raise ValueError(f"Unknown token store backend {backend!r}.")


__all__ = [
    "DynamoDBTokenStore",
    "EnvironmentTokenStore",
    "FileTokenStore",
    "RemoteTableTokenStore",
    "SQLiteTokenStore",
    "TokenStorageError",
    "TokenStore",
    "build_token_store",
]
