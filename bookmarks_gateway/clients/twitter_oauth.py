"""
X (Twitter) OAuth2 utilities.

These helpers build the PKCE authorization URL and perform the
authorization-code and refresh-token grants against the provider.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from bookmarks_gateway.core.config import HTTPSettings, TwitterSettings
from bookmarks_gateway.models.tokens import TokenPair
from bookmarks_gateway.utils.http import RetryConfig, request_with_retry

logger = logging.getLogger(__name__)

# Token endpoint answers that mean the refresh token is invalid, expired or revoked.
_REJECTION_STATUSES = frozenset({httpx.codes.BAD_REQUEST, httpx.codes.UNAUTHORIZED})


class OAuthError(Exception):
    """Raised when the token endpoint rejects a grant or cannot be reached."""

    def __init__(
        self,
        message: str,
        *,
        details: Any = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.details = details
        self.status_code = status_code


class TokenExchangeError(OAuthError):
    """The authorization code was rejected; the user has to log in again."""


class TokenRefreshError(OAuthError):
    """The refresh grant failed; a rejected refresh token requires a new login."""

    @property
    def rejected(self) -> bool:
        """True when the provider refused the refresh token itself (HTTP 400 or 401)."""
        return self.status_code in _REJECTION_STATUSES


def _response_payload(response: httpx.Response) -> Dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {"raw": response.text}
    return payload if isinstance(payload, dict) else {"raw": payload}


class TwitterOAuthClient:
    """Build X authorization URLs and exchange codes or refresh tokens."""

    def __init__(
        self,
        twitter_settings: TwitterSettings,
        http_settings: HTTPSettings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._twitter = twitter_settings
        self._http = http_settings or HTTPSettings()
        self._transport = transport

    def build_authorization_url(self, *, state: str, code_challenge: str) -> str:
        """Construct the X OAuth consent URL for the S256 PKCE method."""
        params = {
            "response_type": "code",
            "client_id": self._twitter.client_id,
            "redirect_uri": str(self._twitter.redirect_uri),
            "scope": self._twitter.scopes,
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        return f"{self._twitter.authorize_url}?{urlencode(params)}"

    def _client(self) -> httpx.AsyncClient:
        auth = None
        if self._twitter.client_secret:
            auth = httpx.BasicAuth(self._twitter.client_id, self._twitter.client_secret)
        return httpx.AsyncClient(
            auth=auth,
            timeout=self._http.timeout_seconds,
            transport=self._transport,
            headers={"User-Agent": self._http.user_agent},
        )

    async def exchange_authorization_code(self, code: str, code_verifier: str) -> TokenPair:
        """
        Exchange an authorization code for tokens.

        Codes are single-use, so this request is never retried.
        """
        payload: Dict[str, str] = {
            "code": code,
            "grant_type": "authorization_code",
            "client_id": self._twitter.client_id,
            "redirect_uri": str(self._twitter.redirect_uri),
            "code_verifier": code_verifier,
        }

        try:
            async with self._client() as client:
                response = await client.post(self._twitter.token_url, data=payload)
        except httpx.HTTPError as exc:
            raise TokenExchangeError(
                "Token endpoint unreachable.", details={"error": str(exc)}
            ) from exc

        token_payload = _response_payload(response)
        if response.status_code != httpx.codes.OK:
            logger.error("Token exchange rejected: %s", token_payload)
            raise TokenExchangeError(
                "Token exchange failed",
                details=token_payload,
                status_code=response.status_code,
            )

        access_token = token_payload.get("access_token")
        if not access_token:
            raise TokenExchangeError(
                "Incomplete token payload returned from X.",
                details=token_payload,
                status_code=response.status_code,
            )
        return TokenPair(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token"),
        )

    async def refresh_token(self, refresh_token: str) -> TokenPair:
        """Refresh the access token using a stored refresh token.

        ``refresh_token`` on the result is ``None`` when the provider did not
        rotate it.
        """
        payload = {
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
            "client_id": self._twitter.client_id,
        }
        retry = RetryConfig(
            attempts=self._http.retry_attempts,
            backoff_seconds=self._http.retry_backoff_seconds,
        )

        try:
            async with self._client() as client:
                response = await request_with_retry(
                    client.post,
                    self._twitter.token_url,
                    data=payload,
                    retry_config=retry,
                )
        except httpx.HTTPError as exc:
            raise TokenRefreshError(
                "Token endpoint unreachable.", details={"error": str(exc)}
            ) from exc

        token_payload = _response_payload(response)
        if response.status_code != httpx.codes.OK:
            logger.error("Token refresh rejected: %s", token_payload)
            raise TokenRefreshError(
                "Token refresh failed",
                details=token_payload,
                status_code=response.status_code,
            )

        access_token = token_payload.get("access_token")
        if not access_token:
            raise TokenRefreshError(
                "Incomplete refresh payload returned from X.",
                details=token_payload,
                status_code=response.status_code,
            )
        return TokenPair(
            access_token=access_token,
            refresh_token=token_payload.get("refresh_token"),
        )


__all__ = [
    "OAuthError",
    "TokenExchangeError",
    "TokenRefreshError",
    "TwitterOAuthClient",
]
