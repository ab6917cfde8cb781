"""PKCE (RFC 7636) session generation for the login handshake."""

from __future__ import annotations

import base64
import hashlib
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


def generate_code_verifier() -> str:
    """32 random bytes, base64url encoded (43 characters)."""
    return secrets.token_urlsafe(32)


def generate_code_challenge(verifier: str) -> str:
    """S256 challenge: unpadded base64url of the verifier's SHA-256 digest."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def generate_state() -> str:
    return secrets.token_hex(16)


@dataclass(frozen=True)
class PKCESession:
    code_verifier: str
    code_challenge: str
    state: str
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PKCESessionManager:
    """Holds the single in-flight authorization handshake.

    Beginning a new session replaces the previous one, so at most one login can
    be completed at a time.
    """

    def __init__(self) -> None:
        self._current: Optional[PKCESession] = None

    @property
    def current(self) -> Optional[PKCESession]:
        return self._current

    def begin_session(self) -> PKCESession:
        verifier = generate_code_verifier()
        session = PKCESession(
            code_verifier=verifier,
            code_challenge=generate_code_challenge(verifier),
            state=generate_state(),
        )
        self._current = session
        return session

    def consume(self, session: PKCESession) -> None:
        """Drop ``session`` if it is still current."""
        if self._current is session:
            self._current = None


__all__ = [
    "PKCESession",
    "PKCESessionManager",
    "generate_code_challenge",
    "generate_code_verifier",
    "generate_state",
]
