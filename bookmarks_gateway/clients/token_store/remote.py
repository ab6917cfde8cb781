"""
Remote table backend reached over HTTP.

Targets a PostgREST-compatible endpoint (for example a Supabase project's
``/rest/v1`` root) exposing a table with ``key``, ``value`` and ``updated_at``
columns.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from bookmarks_gateway.models.tokens import StoredTokenRecord

from .base import TokenStorageError, TokenStore


class RemoteTableTokenStore(TokenStore):
    """Update-then-insert token persistence against a REST table API."""

    backend_name = "remote"

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        table: str = "oauth_tokens",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__()
        self._table_url = f"{base_url.rstrip('/')}/{table}"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            headers=self._headers, timeout=self._timeout, transport=self._transport
        )

    @staticmethod
    def _check(response: httpx.Response, action: str) -> None:
        if response.is_error:
            raise TokenStorageError(
                f"{action} failed with HTTP {response.status_code}: {response.text}"
            )

    async def _read(self, key: str) -> Optional[str]:
        params = {"key": f"eq.{key}", "select": "value"}
        try:
            async with self._client() as client:
                response = await client.get(self._table_url, params=params)
        except httpx.HTTPError as exc:
            raise TokenStorageError(str(exc)) from exc

        self._check(response, "select")
        try:
            rows = response.json()
        except ValueError as exc:
            raise TokenStorageError(f"select returned invalid JSON: {exc}") from exc
        if not isinstance(rows, list):
            raise TokenStorageError(f"select returned {type(rows).__name__}, expected rows")
        if not rows:
            return None
        row = rows[0]
        if not isinstance(row, dict):
            raise TokenStorageError(f"select returned malformed row: {row!r}")
        value = row.get("value")
        return value if isinstance(value, str) else None

    async def _update(self, client: httpx.AsyncClient, key: str, body: Dict[str, Any]) -> bool:
        response = await client.patch(
            self._table_url,
            params={"key": f"eq.{key}"},
            json=body,
            headers={"Prefer": "return=representation"},
        )
        self._check(response, "update")
        return bool(response.content and response.json())

    async def _write(self, key: str, value: str) -> None:
        record = StoredTokenRecord(key=key, value=value).model_dump(mode="json")
        update_body: Dict[str, Any] = {
            "value": record["value"],
            "updated_at": record["updated_at"],
        }
        try:
            async with self._client() as client:
                if await self._update(client, key, update_body):
                    return

                response = await client.post(
                    self._table_url,
                    json=record,
                    headers={"Prefer": "return=minimal"},
                )
                if response.status_code == httpx.codes.CONFLICT:
                    # Another writer inserted the row first.
                    if await self._update(client, key, update_body):
                        return
                self._check(response, "insert")
        except (httpx.HTTPError, ValueError) as exc:
            raise TokenStorageError(str(exc)) from exc


__all__ = ["RemoteTableTokenStore"]
