"""
Bookmarks proxy with a single refresh-and-retry on expired access tokens.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from bookmarks_gateway.clients.twitter_api import DownstreamAPIError, TwitterBookmarksClient
from bookmarks_gateway.schemas.bookmarks import (
    BookmarkAuthor,
    BookmarkListResponse,
    BookmarkView,
)
from bookmarks_gateway.services.token_lifecycle import (
    NotAuthenticatedError,
    TokenLifecycleController,
)

logger = logging.getLogger(__name__)

PERMALINK_TEMPLATE = "https://x.com/i/status/{id}"


def shape_bookmarks(payload: Dict[str, Any]) -> BookmarkListResponse:
    """Map a raw bookmarks payload to views, keeping the downstream order."""
    users = (payload.get("includes") or {}).get("users") or []
    users_by_id = {user.get("id"): user for user in users}

    bookmarks: List[BookmarkView] = []
    for tweet in payload.get("data") or []:
        author = users_by_id.get(tweet.get("author_id"))
        bookmarks.append(
            BookmarkView(
                id=tweet["id"],
                text=tweet.get("text"),
                created_at=tweet.get("created_at"),
                author=(
                    BookmarkAuthor(username=author.get("username"), name=author.get("name"))
                    if author
                    else None
                ),
                url=PERMALINK_TEMPLATE.format(id=tweet["id"]),
                metrics=tweet.get("public_metrics"),
            )
        )
    return BookmarkListResponse(count=len(bookmarks), bookmarks=bookmarks)


class BookmarksProxy:
    """Calls the bookmarks API with the current token, refreshing at most once."""

    def __init__(
        self,
        *,
        controller: TokenLifecycleController,
        api_client: TwitterBookmarksClient,
    ) -> None:
        self._controller = controller
        self._api = api_client

    async def list_bookmarks(self, limit: int = 10) -> BookmarkListResponse:
        if limit < 1:
            raise ValueError("limit must be at least 1")

        access_token = await self._controller.current_access_token()
        if not access_token:
            raise NotAuthenticatedError("Not authenticated. Visit /login first.")

        try:
            payload = await self._api.fetch_bookmarks(access_token, limit=limit)
        except DownstreamAPIError as exc:
            if not exc.is_unauthorized:
                logger.error("Bookmarks fetch failed: %s", exc.details)
                raise
            if not await self._controller.current_refresh_token():
                logger.warning("Access token rejected and no refresh token is stored")
                raise

            logger.info("Access token rejected; refreshing once and retrying")
            access_token = await self._controller.refresh_access_token()
            # A second failure, including another 401, is terminal.
            payload = await self._api.fetch_bookmarks(access_token, limit=limit)

        return shape_bookmarks(payload)


__all__ = ["BookmarksProxy", "shape_bookmarks"]
