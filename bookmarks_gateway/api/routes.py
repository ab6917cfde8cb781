"""
FastAPI routes for the bookmarks gateway.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from bookmarks_gateway.clients.twitter_api import DownstreamAPIError
from bookmarks_gateway.clients.twitter_oauth import TokenExchangeError, TokenRefreshError
from bookmarks_gateway.dependencies import get_bookmarks_proxy, get_token_controller
from bookmarks_gateway.schemas import OAuthCallbackParams, StatusResponse
from bookmarks_gateway.services.token_lifecycle import (
    InvalidOAuthStateError,
    NotAuthenticatedError,
)

router = APIRouter()
logger = logging.getLogger(__name__)

_LOGIN_SUCCESS_HTML = """<!DOCTYPE html>
<html>
  <body>
    <h1>Authentication Successful!</h1>
    <p>You can now use the /bookmarks endpoint.</p>
    <p>Return to your terminal.</p>
    <script>window.close();</script>
  </body>
</html>
"""


def _error(status_code: int, error: str, details: Any = None) -> JSONResponse:
    body: dict[str, Any] = {"error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/login")
async def login(
    controller: Annotated[Any, Depends(get_token_controller)],
) -> RedirectResponse:
    """Start a PKCE login and redirect the browser to the X consent screen."""
    authorization_url = controller.begin_login()
    return RedirectResponse(url=authorization_url, status_code=HTTPStatus.FOUND)


@router.get("/callback")
async def oauth_callback(
    controller: Annotated[Any, Depends(get_token_controller)],
    code: str | None = Query(default=None, description="Authorization code."),
    state: str | None = Query(default=None, description="State issued at /login."),
    error: str | None = Query(default=None, description="Provider error code."),
    error_description: str | None = Query(default=None),
) -> Any:
    """Complete the OAuth exchange and persist the resulting tokens."""
    params = OAuthCallbackParams(
        code=code, state=state, error=error, error_description=error_description
    )
    if not params.code:
        details = None
        if params.error:
            details = {"error": params.error, "error_description": params.error_description}
        return _error(HTTPStatus.BAD_REQUEST, "No code provided", details)

    try:
        await controller.complete_login(params.code, params.state)
    except InvalidOAuthStateError as exc:
        logger.warning("Rejected OAuth callback: %s", exc)
        return _error(HTTPStatus.BAD_REQUEST, str(exc))
    except TokenExchangeError as exc:
        logger.error("Token exchange failed: %s", exc.details)
        return _error(
            HTTPStatus.INTERNAL_SERVER_ERROR, "Token exchange failed", exc.details
        )

    return HTMLResponse(content=_LOGIN_SUCCESS_HTML, status_code=HTTPStatus.OK)


@router.get("/bookmarks")
async def list_bookmarks(
    proxy: Annotated[Any, Depends(get_bookmarks_proxy)],
    limit: int = Query(default=10, ge=1, le=100, description="Bookmarks to return."),
) -> Any:
    """Return the authenticated user's bookmarks."""
    try:
        result = await proxy.list_bookmarks(limit=limit)
    except NotAuthenticatedError:
        return _error(HTTPStatus.UNAUTHORIZED, "Not authenticated. Visit /login first.")
    except TokenRefreshError as exc:
        if exc.rejected:
            return _error(
                HTTPStatus.UNAUTHORIZED,
                "Token refresh failed. Visit /login to re-authenticate.",
                exc.details,
            )
        logger.warning("Token refresh did not complete: %s", exc)
        status_code = exc.status_code
        if not status_code or status_code < HTTPStatus.BAD_REQUEST:
            status_code = HTTPStatus.BAD_GATEWAY
        return _error(status_code, "Token refresh failed", exc.details)
    except DownstreamAPIError as exc:
        return _error(exc.status_code, "Failed to fetch bookmarks", exc.details)

    return result.model_dump()


@router.get("/status", response_model=StatusResponse)
async def status(
    controller: Annotated[Any, Depends(get_token_controller)],
) -> StatusResponse:
    """Report whether an access token is currently stored."""
    access_token = await controller.current_access_token()
    return StatusResponse(authenticated=bool(access_token))


__all__ = ["router"]
