"""JSON file backend holding the two-key token mapping."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

from bookmarks_gateway.models.tokens import TOKEN_KEYS

from .base import TokenStorageError, TokenStore

logger = logging.getLogger(__name__)


class FileTokenStore(TokenStore):
    """Persist tokens as ``{"access_token": ..., "refresh_token": ...}`` on disk."""

    backend_name = "file"

    def __init__(self, path: str) -> None:
        super().__init__()
        self._path = Path(path)

    def _load(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise TokenStorageError(f"Unable to load {self._path}: {exc}") from exc
        if not isinstance(data, dict):
            raise TokenStorageError(f"{self._path} does not contain a JSON object.")
        return data

    def _save(self, key: str, value: str) -> None:
        try:
            existing = self._load()
        except TokenStorageError as exc:
            logger.warning("Discarding unreadable token file: %s", exc)
            existing = {}

        record = {name: existing.get(name) for name in TOKEN_KEYS}
        record[key] = value

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
            )
        except OSError as exc:
            raise TokenStorageError(f"Unable to write {self._path}: {exc}") from exc

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(record, handle, indent=2)
            os.replace(tmp_name, self._path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise TokenStorageError(f"Unable to write {self._path}: {exc}") from exc

    async def _read(self, key: str) -> Optional[str]:
        data = await asyncio.to_thread(self._load)
        value = data.get(key)
        return value if isinstance(value, str) else None

    async def _write(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._save, key, value)


__all__ = ["FileTokenStore"]
