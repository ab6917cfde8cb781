from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from bookmarks_gateway.clients.twitter_oauth import (
    TokenExchangeError,
    TokenRefreshError,
    TwitterOAuthClient,
)
from bookmarks_gateway.core.config import HTTPSettings, TwitterSettings

TOKEN_URL = "https://api.twitter.com/2/oauth2/token"


def _settings(**overrides: str) -> TwitterSettings:
    values = {
        "TWITTER_CLIENT_ID": "client",
        "TWITTER_CLIENT_SECRET": "secret",
        "REDIRECT_URI": "http://localhost:3001/callback",
    }
    values.update(overrides)
    return TwitterSettings(**values)


def _http_settings() -> HTTPSettings:
    return HTTPSettings(HTTP_RETRY_ATTEMPTS=3, HTTP_RETRY_BACKOFF_SECONDS=0)


class RecordingTokenEndpoint:
    def __init__(self, *responses: httpx.Response | Exception) -> None:
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.responses.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def form(self, index: int = -1) -> dict[str, str]:
        body = parse_qs(self.requests[index].content.decode())
        return {key: values[0] for key, values in body.items()}


def test_authorization_url_carries_pkce_parameters() -> None:
    client = TwitterOAuthClient(_settings())

    url = client.build_authorization_url(state="nonce", code_challenge="challenge")

    parsed = urlparse(url)
    params = {key: values[0] for key, values in parse_qs(parsed.query).items()}
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
        "https://twitter.com/i/oauth2/authorize"
    )
    assert params == {
        "response_type": "code",
        "client_id": "client",
        "redirect_uri": "http://localhost:3001/callback",
        "scope": "tweet.read users.read bookmark.read",
        "state": "nonce",
        "code_challenge": "challenge",
        "code_challenge_method": "S256",
    }


@pytest.mark.asyncio
async def test_exchange_posts_form_encoded_grant() -> None:
    endpoint = RecordingTokenEndpoint(
        httpx.Response(200, json={"access_token": "a1", "refresh_token": "r1"})
    )
    client = TwitterOAuthClient(
        _settings(), _http_settings(), transport=httpx.MockTransport(endpoint)
    )

    tokens = await client.exchange_authorization_code("the-code", "the-verifier")

    assert tokens.access_token == "a1"
    assert tokens.refresh_token == "r1"
    request = endpoint.requests[0]
    assert str(request.url) == TOKEN_URL
    assert request.headers["content-type"] == "application/x-www-form-urlencoded"
    assert request.headers["authorization"].startswith("Basic ")
    assert endpoint.form() == {
        "code": "the-code",
        "grant_type": "authorization_code",
        "client_id": "client",
        "redirect_uri": "http://localhost:3001/callback",
        "code_verifier": "the-verifier",
    }


@pytest.mark.asyncio
async def test_exchange_rejection_carries_provider_payload() -> None:
    error_payload = {
        "error": "invalid_request",
        "error_description": "Value passed for the authorization code was invalid.",
    }
    endpoint = RecordingTokenEndpoint(httpx.Response(400, json=error_payload))
    client = TwitterOAuthClient(
        _settings(), _http_settings(), transport=httpx.MockTransport(endpoint)
    )

    with pytest.raises(TokenExchangeError) as excinfo:
        await client.exchange_authorization_code("used-code", "verifier")

    assert excinfo.value.details == error_payload
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
async def test_exchange_is_never_retried() -> None:
    endpoint = RecordingTokenEndpoint(httpx.ConnectError("reset"))
    client = TwitterOAuthClient(
        _settings(), _http_settings(), transport=httpx.MockTransport(endpoint)
    )

    with pytest.raises(TokenExchangeError):
        await client.exchange_authorization_code("code", "verifier")

    assert len(endpoint.requests) == 1


@pytest.mark.asyncio
async def test_refresh_retries_transport_errors_with_same_token() -> None:
    endpoint = RecordingTokenEndpoint(
        httpx.ConnectError("reset"),
        httpx.Response(200, json={"access_token": "a2", "refresh_token": "r2"}),
    )
    client = TwitterOAuthClient(
        _settings(), _http_settings(), transport=httpx.MockTransport(endpoint)
    )

    tokens = await client.refresh_token("r1")

    assert tokens.access_token == "a2"
    assert tokens.refresh_token == "r2"
    assert len(endpoint.requests) == 2
    assert endpoint.form(0) == endpoint.form(1)
    assert endpoint.form() == {
        "refresh_token": "r1",
        "grant_type": "refresh_token",
        "client_id": "client",
    }


@pytest.mark.asyncio
async def test_refresh_without_rotation_returns_no_refresh_token() -> None:
    endpoint = RecordingTokenEndpoint(httpx.Response(200, json={"access_token": "a2"}))
    client = TwitterOAuthClient(
        _settings(), _http_settings(), transport=httpx.MockTransport(endpoint)
    )

    tokens = await client.refresh_token("r1")

    assert tokens.access_token == "a2"
    assert tokens.refresh_token is None


@pytest.mark.asyncio
async def test_refresh_rejection_is_marked_as_rejected() -> None:
    endpoint = RecordingTokenEndpoint(
        httpx.Response(400, json={"error": "invalid_request"})
    )
    client = TwitterOAuthClient(
        _settings(), _http_settings(), transport=httpx.MockTransport(endpoint)
    )

    with pytest.raises(TokenRefreshError) as excinfo:
        await client.refresh_token("revoked")

    assert excinfo.value.rejected
    assert excinfo.value.details == {"error": "invalid_request"}
    assert len(endpoint.requests) == 1


@pytest.mark.asyncio
async def test_refresh_provider_outage_is_not_a_rejection() -> None:
    endpoint = RecordingTokenEndpoint(
        httpx.Response(503, json={"title": "Service Unavailable"})
    )
    client = TwitterOAuthClient(
        _settings(), _http_settings(), transport=httpx.MockTransport(endpoint)
    )

    with pytest.raises(TokenRefreshError) as excinfo:
        await client.refresh_token("r1")

    assert not excinfo.value.rejected
    assert excinfo.value.status_code == 503


@pytest.mark.asyncio
async def test_refresh_transport_exhaustion_is_not_a_rejection() -> None:
    endpoint = RecordingTokenEndpoint(*(httpx.ConnectError("down") for _ in range(3)))
    client = TwitterOAuthClient(
        _settings(), _http_settings(), transport=httpx.MockTransport(endpoint)
    )

    with pytest.raises(TokenRefreshError) as excinfo:
        await client.refresh_token("r1")

    assert not excinfo.value.rejected
    assert len(endpoint.requests) == 3
