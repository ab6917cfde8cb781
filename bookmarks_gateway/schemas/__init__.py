"""Public schema exports."""

from .auth import OAuthCallbackParams
from .bookmarks import (
    BookmarkAuthor,
    BookmarkListResponse,
    BookmarkView,
    StatusResponse,
)

__all__ = [
    "BookmarkAuthor",
    "BookmarkListResponse",
    "BookmarkView",
    "OAuthCallbackParams",
    "StatusResponse",
]
