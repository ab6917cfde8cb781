"""
Domain models for OAuth token persistence.
"""

from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

TokenKey = Literal["access_token", "refresh_token"]

TOKEN_KEYS: tuple[str, ...] = ("access_token", "refresh_token")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenPair(BaseModel):
    """Access/refresh token pair; either side may be absent before first login."""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class StoredTokenRecord(BaseModel):
    """Represents a single token row in a table-shaped backend."""

    key: TokenKey = Field(..., description="Which token this row holds.")
    value: str
    updated_at: datetime = Field(default_factory=_utcnow)


__all__ = ["TOKEN_KEYS", "StoredTokenRecord", "TokenKey", "TokenPair"]
