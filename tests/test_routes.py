try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from bookmarks_gateway.clients.twitter_api import DownstreamAPIError
from bookmarks_gateway.clients.twitter_oauth import (
    TokenExchangeError,
    TokenRefreshError,
    TwitterOAuthClient,
)
from bookmarks_gateway.core.config import TwitterSettings
from bookmarks_gateway.main import app
from bookmarks_gateway.services.bookmarks import BookmarksProxy
from bookmarks_gateway.services.token_lifecycle import TokenLifecycleController
from fakes import DummyOAuthClient, InMemoryTokenStore, ScriptedBookmarksClient

pytestmark = pytest.mark.anyio("asyncio")


class Harness:
    def __init__(self) -> None:
        self.store = InMemoryTokenStore()
        self.oauth = DummyOAuthClient()
        self.api = ScriptedBookmarksClient()
        self.controller = TokenLifecycleController(store=self.store, oauth_client=self.oauth)
        self.proxy = BookmarksProxy(controller=self.controller, api_client=self.api)


@pytest.fixture()
def harness():
    from bookmarks_gateway import dependencies

    state = Harness()
    app.dependency_overrides.clear()
    app.dependency_overrides.update(
        {
            dependencies.get_token_controller: lambda: state.controller,
            dependencies.get_bookmarks_proxy: lambda: state.proxy,
        }
    )

    yield state

    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    )


async def test_login_redirects_to_provider_with_pkce_query(harness) -> None:
    settings = TwitterSettings(
        TWITTER_CLIENT_ID="client", REDIRECT_URI="http://localhost:3001/callback"
    )
    harness.controller = TokenLifecycleController(
        store=harness.store, oauth_client=TwitterOAuthClient(settings)
    )

    async with _client() as client:
        response = await client.get("/login")

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert location.netloc == "twitter.com"
    params = {key: values[0] for key, values in parse_qs(location.query).items()}
    session = harness.controller.pkce.current
    assert params["state"] == session.state
    assert params["code_challenge"] == session.code_challenge
    assert params["code_challenge_method"] == "S256"
    assert params["scope"] == "tweet.read users.read bookmark.read"
    assert params["response_type"] == "code"


async def test_callback_completes_login(harness) -> None:
    async with _client() as client:
        await client.get("/login")
        state = harness.controller.pkce.current.state
        response = await client.get("/callback", params={"code": "c1", "state": state})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Authentication Successful" in response.text
    assert harness.store.data == {"access_token": "access-1", "refresh_token": "refresh-1"}


async def test_callback_without_code_is_bad_request(harness) -> None:
    async with _client() as client:
        response = await client.get("/callback", params={"error": "access_denied"})

    assert response.status_code == 400
    assert response.json()["error"] == "No code provided"
    assert response.json()["details"]["error"] == "access_denied"


async def test_callback_with_wrong_state_is_rejected(harness) -> None:
    async with _client() as client:
        await client.get("/login")
        response = await client.get("/callback", params={"code": "c1", "state": "forged"})

    assert response.status_code == 400
    assert "error" in response.json()
    assert harness.oauth.exchange_calls == []


async def test_callback_with_non_ascii_state_is_rejected(harness) -> None:
    async with _client() as client:
        await client.get("/login")
        response = await client.get("/callback", params={"code": "c1", "state": "été"})

    assert response.status_code == 400
    assert "error" in response.json()
    assert harness.oauth.exchange_calls == []


async def test_callback_exchange_failure_is_500_with_details(harness) -> None:
    harness.oauth.exchange_error = TokenExchangeError(
        "Token exchange failed", details={"error": "invalid_request"}, status_code=400
    )

    async with _client() as client:
        await client.get("/login")
        state = harness.controller.pkce.current.state
        response = await client.get("/callback", params={"code": "c1", "state": state})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Token exchange failed",
        "details": {"error": "invalid_request"},
    }


async def test_bookmarks_requires_login(harness) -> None:
    async with _client() as client:
        response = await client.get("/bookmarks")

    assert response.status_code == 401
    assert response.json() == {"error": "Not authenticated. Visit /login first."}
    assert harness.api.calls == []


async def test_bookmarks_returns_shaped_payload(harness) -> None:
    harness.store.data["access_token"] = "a1"
    harness.api.outcomes.append(
        {
            "data": [{"id": "1", "text": "hello", "author_id": "a"}],
            "includes": {"users": [{"id": "a", "username": "u", "name": "N"}]},
        }
    )

    async with _client() as client:
        response = await client.get("/bookmarks", params={"limit": 3})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["bookmarks"][0]["author"] == {"username": "u", "name": "N"}
    assert body["bookmarks"][0]["url"] == "https://x.com/i/status/1"
    assert harness.api.calls == [("a1", 3)]


async def test_bookmarks_defaults_limit_to_ten(harness) -> None:
    harness.store.data["access_token"] = "a1"
    harness.api.outcomes.append({"data": []})

    async with _client() as client:
        response = await client.get("/bookmarks")

    assert response.json() == {"count": 0, "bookmarks": []}
    assert harness.api.calls == [("a1", 10)]


async def test_bookmarks_rejects_invalid_limit(harness) -> None:
    harness.store.data["access_token"] = "a1"

    async with _client() as client:
        response = await client.get("/bookmarks", params={"limit": 0})

    assert response.status_code == 422
    assert harness.api.calls == []


async def test_bookmarks_surfaces_downstream_status(harness) -> None:
    harness.store.data["access_token"] = "a1"
    harness.api.outcomes.append(DownstreamAPIError(429, {"title": "Too Many Requests"}))

    async with _client() as client:
        response = await client.get("/bookmarks")

    assert response.status_code == 429
    assert response.json() == {
        "error": "Failed to fetch bookmarks",
        "details": {"title": "Too Many Requests"},
    }


async def test_bookmarks_refresh_failure_is_401(harness) -> None:
    harness.store.data.update(access_token="expired", refresh_token="revoked")
    harness.api.outcomes.append(DownstreamAPIError(401, {"title": "Unauthorized"}))
    harness.oauth.refresh_error = TokenRefreshError(
        "Token refresh failed", details={"error": "invalid_request"}, status_code=400
    )

    async with _client() as client:
        response = await client.get("/bookmarks")

    assert response.status_code == 401
    assert response.json()["details"] == {"error": "invalid_request"}


async def test_bookmarks_refresh_outage_surfaces_provider_status(harness) -> None:
    harness.store.data.update(access_token="expired", refresh_token="refresh-1")
    harness.api.outcomes.append(DownstreamAPIError(401, {"title": "Unauthorized"}))
    harness.oauth.refresh_error = TokenRefreshError(
        "Token refresh failed", details={"title": "Service Unavailable"}, status_code=503
    )

    async with _client() as client:
        response = await client.get("/bookmarks")

    assert response.status_code == 503
    assert response.json() == {
        "error": "Token refresh failed",
        "details": {"title": "Service Unavailable"},
    }
    assert await harness.controller.state() == "authenticated"


async def test_bookmarks_refresh_unreachable_is_bad_gateway(harness) -> None:
    harness.store.data.update(access_token="expired", refresh_token="refresh-1")
    harness.api.outcomes.append(DownstreamAPIError(401, {"title": "Unauthorized"}))
    harness.oauth.refresh_error = TokenRefreshError(
        "Token endpoint unreachable.", details={"error": "connection refused"}
    )

    async with _client() as client:
        response = await client.get("/bookmarks")

    assert response.status_code == 502
    assert response.json()["details"] == {"error": "connection refused"}


async def test_status_reads_store_live(harness) -> None:
    async with _client() as client:
        before = await client.get("/status")
        harness.store.data["access_token"] = "a1"
        after = await client.get("/status")

    assert before.json() == {
        "authenticated": False,
        "server": "running",
        "bookmarks_endpoint": "/bookmarks?limit=10",
    }
    assert after.json()["authenticated"] is True


async def test_health(harness) -> None:
    async with _client() as client:
        response = await client.get("/health")

    assert response.json() == {"status": "ok"}
