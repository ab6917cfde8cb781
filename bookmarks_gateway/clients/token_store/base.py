"""
Storage contract shared by every token persistence backend.

Backends only implement ``_read`` and ``_write``; the public ``get``/``set``
pair absorbs backend failures so a broken persistence layer never interrupts
the request path. A token whose write failed is kept in process memory and
served while the backend stays unwritable. Each ``get`` of such a key retries
the write first; once it succeeds the held value is dropped and reads go back
to the backend. The retried write is last-write-wins against other processes
sharing the backend.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from bookmarks_gateway.models.tokens import TOKEN_KEYS

logger = logging.getLogger(__name__)


class TokenStorageError(Exception):
    """Raised by a backend when it cannot read or persist a token."""


def _check_key(key: str) -> None:
    if key not in TOKEN_KEYS:
        raise ValueError(f"Unsupported token key {key!r}; expected one of {TOKEN_KEYS}.")


class TokenStore(ABC):
    """Durable key-value persistence for the access and refresh tokens."""

    backend_name = "abstract"

    def __init__(self) -> None:
        self._unpersisted: Dict[str, str] = {}

    @property
    def unpersisted_keys(self) -> tuple[str, ...]:
        """Keys whose latest value only lives in this process."""
        return tuple(self._unpersisted)

    async def get(self, key: str) -> Optional[str]:
        """Return the stored token, or ``None`` when missing or unreadable."""
        _check_key(key)
        pending = self._unpersisted
        if key in pending and not await self._flush(key):
            return pending[key]
        try:
            value = await self._read(key)
        except TokenStorageError as exc:
            logger.warning(
                "Token store %s could not read %s: %s", self.backend_name, key, exc
            )
            return None
        return value or None

    async def set(self, key: str, value: str) -> None:
        """Persist ``value`` under ``key``; failures are logged, not raised."""
        _check_key(key)
        pending = self._unpersisted
        try:
            await self._write(key, value)
        except TokenStorageError as exc:
            pending[key] = value
            logger.warning(
                "Token store %s could not persist %s; token is only valid for this process: %s",
                self.backend_name,
                key,
                exc,
            )
            return
        pending.pop(key, None)
        logger.info("Stored %s in %s backend", key, self.backend_name)

    async def _flush(self, key: str) -> bool:
        value = self._unpersisted[key]
        try:
            await self._write(key, value)
        except TokenStorageError as exc:
            logger.debug("Token store %s still unwritable: %s", self.backend_name, exc)
            return False
        if self._unpersisted.get(key) == value:
            del self._unpersisted[key]
        logger.info("Persisted held %s to %s backend", key, self.backend_name)
        return True

    @abstractmethod
    async def _read(self, key: str) -> Optional[str]:
        """Fetch the raw value from the backend without caching."""

    @abstractmethod
    async def _write(self, key: str, value: str) -> None:
        """Insert or update the value in the backend."""


__all__ = ["TokenStorageError", "TokenStore"]
