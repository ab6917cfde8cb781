"""
Factory functions to provide shared clients and services as FastAPI dependencies.

Each factory is cached so the process holds exactly one token store, one
controller (and with it one PKCE session slot) and one proxy.
"""

from functools import lru_cache

from bookmarks_gateway.clients import (
    TokenStore,
    TwitterBookmarksClient,
    TwitterOAuthClient,
    build_token_store,
)
from bookmarks_gateway.core.config import get_settings
from bookmarks_gateway.services import (
    BookmarksProxy,
    PKCESessionManager,
    TokenLifecycleController,
)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the configured token persistence backend."""
    settings = _settings()
    return build_token_store(settings.storage, settings.http)


@lru_cache()
def get_oauth_client() -> TwitterOAuthClient:
    """Create a singleton X OAuth client."""
    settings = _settings()
    return TwitterOAuthClient(settings.twitter, settings.http)


@lru_cache()
def get_bookmarks_client() -> TwitterBookmarksClient:
    """Provide the X bookmarks API client."""
    settings = _settings()
    return TwitterBookmarksClient(settings.twitter, settings.http)


@lru_cache()
def get_pkce_manager() -> PKCESessionManager:
    """Provide the holder of the in-flight login handshake."""
    return PKCESessionManager()


@lru_cache()
def get_token_controller() -> TokenLifecycleController:
    """Provide the token lifecycle controller."""
    return TokenLifecycleController(
        store=get_token_store(),
        oauth_client=get_oauth_client(),
        pkce_manager=get_pkce_manager(),
    )


@lru_cache()
def get_bookmarks_proxy() -> BookmarksProxy:
    """Provide the bookmarks proxy bound to the shared controller."""
    return BookmarksProxy(
        controller=get_token_controller(),
        api_client=get_bookmarks_client(),
    )


__all__ = [
    "get_bookmarks_client",
    "get_bookmarks_proxy",
    "get_oauth_client",
    "get_pkce_manager",
    "get_token_controller",
    "get_token_store",
]
