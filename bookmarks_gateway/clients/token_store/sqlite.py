"""SQLite-backed token table."""

from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import Optional

from bookmarks_gateway.models.tokens import StoredTokenRecord

from .base import TokenStorageError, TokenStore


class SQLiteTokenStore(TokenStore):
    """Token rows keyed by name with an ``updated_at`` timestamp."""

    backend_name = "sqlite"

    def __init__(self, db_path: str) -> None:
        super().__init__()
        self._db_path = Path(db_path)
        self._schema_ready = False

    def _connect(self) -> sqlite3.Connection:
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        if not self._schema_ready:
            with conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS oauth_tokens (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    )
                    """
                )
            self._schema_ready = True
        return conn

    def _select(self, key: str) -> Optional[str]:
        try:
            conn = self._connect()
            try:
                row = conn.execute(
                    "SELECT value FROM oauth_tokens WHERE key = ?", (key,)
                ).fetchone()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as exc:
            raise TokenStorageError(str(exc)) from exc
        if not row:
            return None
        return row["value"]

    def _upsert(self, key: str, value: str) -> None:
        record = StoredTokenRecord(key=key, value=value)
        try:
            conn = self._connect()
            try:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO oauth_tokens (key, value, updated_at)
                        VALUES (?, ?, ?)
                        ON CONFLICT(key) DO UPDATE SET
                            value = excluded.value,
                            updated_at = excluded.updated_at
                        """,
                        (record.key, record.value, record.updated_at.isoformat()),
                    )
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as exc:
            raise TokenStorageError(str(exc)) from exc

    async def _read(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._select, key)

    async def _write(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._upsert, key, value)


__all__ = ["SQLiteTokenStore"]
