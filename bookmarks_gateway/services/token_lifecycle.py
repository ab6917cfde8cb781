"""
Token lifecycle orchestration: login, read-through access and refresh.
"""

from __future__ import annotations

import enum
import hmac
import logging
from typing import Optional

from bookmarks_gateway.clients.token_store import TokenStore
from bookmarks_gateway.clients.twitter_oauth import TokenRefreshError, TwitterOAuthClient
from bookmarks_gateway.models.tokens import TokenPair
from bookmarks_gateway.services.pkce import PKCESessionManager

logger = logging.getLogger(__name__)


class NotAuthenticatedError(Exception):
    """Raised when no usable token is stored; the user has to visit /login."""


class InvalidOAuthStateError(Exception):
    """Raised when a callback does not match the in-flight login handshake."""


class TokenState(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    REFRESH_PENDING = "refresh_pending"


class TokenLifecycleController:
    """Owns the token store, the OAuth client and the current PKCE session.

    Every read goes to the store so that tokens written by another process
    sharing the backend are picked up. Concurrent refreshes are not serialized;
    the last write wins.
    """

    def __init__(
        self,
        *,
        store: TokenStore,
        oauth_client: TwitterOAuthClient,
        pkce_manager: PKCESessionManager | None = None,
    ) -> None:
        self._store = store
        self._oauth = oauth_client
        self._pkce = pkce_manager or PKCESessionManager()
        self._refreshes_in_flight = 0
        self._rejected_refresh_token: Optional[str] = None

    @property
    def pkce(self) -> PKCESessionManager:
        return self._pkce

    def begin_login(self) -> str:
        """Start a new PKCE handshake and return the provider consent URL."""
        session = self._pkce.begin_session()
        return self._oauth.build_authorization_url(
            state=session.state, code_challenge=session.code_challenge
        )

    async def current_access_token(self) -> Optional[str]:
        return await self._store.get("access_token")

    async def current_refresh_token(self) -> Optional[str]:
        return await self._store.get("refresh_token")

    async def state(self) -> TokenState:
        if self._refreshes_in_flight:
            return TokenState.REFRESH_PENDING
        if not await self.current_access_token():
            return TokenState.UNAUTHENTICATED
        refresh_token = await self.current_refresh_token()
        if refresh_token and refresh_token == self._rejected_refresh_token:
            return TokenState.UNAUTHENTICATED
        return TokenState.AUTHENTICATED

    async def complete_login(self, code: str, state: Optional[str]) -> TokenPair:
        """Validate the callback against the current session and exchange the code."""
        session = self._pkce.current
        if session is None:
            raise InvalidOAuthStateError("No login in progress. Visit /login first.")
        if not state or not hmac.compare_digest(
            state.encode("utf-8"), session.state.encode("utf-8")
        ):
            raise InvalidOAuthStateError("OAuth state mismatch. Restart the login.")

        # The code is single-use, so the session cannot be reused even if this fails.
        self._pkce.consume(session)
        tokens = await self._oauth.exchange_authorization_code(code, session.code_verifier)

        await self._store.set("access_token", tokens.access_token)
        if tokens.refresh_token:
            await self._store.set("refresh_token", tokens.refresh_token)
        self._rejected_refresh_token = None
        logger.info("OAuth login completed")
        return tokens

    async def refresh_access_token(self) -> str:
        """Trade the stored refresh token for a new access token."""
        refresh_token = await self.current_refresh_token()
        if not refresh_token:
            raise NotAuthenticatedError("No refresh token stored. Visit /login first.")

        self._refreshes_in_flight += 1
        try:
            tokens = await self._oauth.refresh_token(refresh_token)
        except TokenRefreshError as exc:
            if exc.rejected:
                self._rejected_refresh_token = refresh_token
            raise
        finally:
            self._refreshes_in_flight -= 1

        await self._store.set("access_token", tokens.access_token)
        if tokens.refresh_token:
            await self._store.set("refresh_token", tokens.refresh_token)
        self._rejected_refresh_token = None
        logger.info("Access token refreshed")
        return tokens.access_token


__all__ = [
    "InvalidOAuthStateError",
    "NotAuthenticatedError",
    "TokenLifecycleController",
    "TokenState",
]
