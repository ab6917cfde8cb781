"""Schemas related to OAuth flows."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class OAuthCallbackParams(BaseModel):
    """Query parameters the provider appends to the redirect URI."""

    code: Optional[str] = Field(None, description="Authorization code returned by X.")
    state: Optional[str] = Field(None, description="State nonce issued at /login.")
    error: Optional[str] = Field(None, description="Set when the user denied consent.")
    error_description: Optional[str] = None


__all__ = ["OAuthCallbackParams"]
