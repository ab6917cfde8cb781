"""Thin wrapper around the X v2 bookmarks endpoints."""

from __future__ import annotations

from typing import Any, Dict

import httpx

from bookmarks_gateway.core.config import HTTPSettings, TwitterSettings

TWEET_FIELDS = "created_at,public_metrics"
USER_FIELDS = "username,name"
EXPANSIONS = "author_id"


class DownstreamAPIError(Exception):
    """Raised when the X API answers with a non-success status."""

    def __init__(self, status_code: int, details: Any = None) -> None:
        super().__init__(f"X API request failed with HTTP {status_code}")
        self.status_code = status_code
        self.details = details

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == httpx.codes.UNAUTHORIZED


class TwitterBookmarksClient:
    """Fetch the authenticated user's bookmarks with author expansion."""

    def __init__(
        self,
        twitter_settings: TwitterSettings,
        http_settings: HTTPSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = twitter_settings.api_base_url.rstrip("/")
        self._http = http_settings or HTTPSettings()
        self._transport = transport

    async def _get(
        self, client: httpx.AsyncClient, path: str, params: Dict[str, Any] | None = None
    ) -> Dict[str, Any]:
        try:
            response = await client.get(f"{self._base_url}{path}", params=params)
        except httpx.HTTPError as exc:
            raise DownstreamAPIError(
                httpx.codes.BAD_GATEWAY, {"error": str(exc)}
            ) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {"raw": response.text}

        if response.is_error:
            raise DownstreamAPIError(response.status_code, payload)
        return payload

    async def fetch_bookmarks(self, access_token: str, *, limit: int) -> Dict[str, Any]:
        """
        Return the raw bookmarks payload (``data`` plus ``includes.users``).

        The authenticated user's id is resolved first because the bookmarks
        endpoint is addressed per user.
        """
        headers = {
            "Authorization": f"Bearer {access_token}",
            "User-Agent": self._http.user_agent,
        }
        async with httpx.AsyncClient(
            headers=headers,
            timeout=self._http.timeout_seconds,
            transport=self._transport,
        ) as client:
            me = await self._get(client, "/users/me")
            user_id = (me.get("data") or {}).get("id")
            if not user_id:
                raise DownstreamAPIError(httpx.codes.BAD_GATEWAY, me)

            return await self._get(
                client,
                f"/users/{user_id}/bookmarks",
                params={
                    "max_results": limit,
                    "tweet.fields": TWEET_FIELDS,
                    "user.fields": USER_FIELDS,
                    "expansions": EXPANSIONS,
                },
            )


__all__ = ["DownstreamAPIError", "TwitterBookmarksClient"]
