"""Expose constructed client wrappers."""

from .token_store import TokenStorageError, TokenStore, build_token_store
from .twitter_api import DownstreamAPIError, TwitterBookmarksClient
from .twitter_oauth import (
    OAuthError,
    TokenExchangeError,
    TokenRefreshError,
    TwitterOAuthClient,
)

__all__ = [
    "DownstreamAPIError",
    "OAuthError",
    "TokenExchangeError",
    "TokenRefreshError",
    "TokenStorageError",
    "TokenStore",
    "TwitterBookmarksClient",
    "TwitterOAuthClient",
    "build_token_store",
]
