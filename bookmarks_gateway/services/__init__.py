"""Service layer exports."""

from .bookmarks import BookmarksProxy, shape_bookmarks
from .pkce import PKCESession, PKCESessionManager, generate_code_challenge
from .token_lifecycle import (
    InvalidOAuthStateError,
    NotAuthenticatedError,
    TokenLifecycleController,
    TokenState,
)

__all__ = [
    "BookmarksProxy",
    "InvalidOAuthStateError",
    "NotAuthenticatedError",
    "PKCESession",
    "PKCESessionManager",
    "TokenLifecycleController",
    "TokenState",
    "generate_code_challenge",
    "shape_bookmarks",
]
