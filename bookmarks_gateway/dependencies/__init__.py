"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_bookmarks_client,
    get_bookmarks_proxy,
    get_oauth_client,
    get_pkce_manager,
    get_token_controller,
    get_token_store,
)

__all__ = [
    "get_bookmarks_client",
    "get_bookmarks_proxy",
    "get_oauth_client",
    "get_pkce_manager",
    "get_token_controller",
    "get_token_store",
]
