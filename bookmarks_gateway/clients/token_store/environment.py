"""Process-environment backend.

Suited to platforms that inject the tokens as environment variables at boot.
Writes update ``os.environ`` for the running process only; anything obtained
after boot is lost on restart unless the platform is updated out of band.
"""

from __future__ import annotations

import os
from typing import Optional

from .base import TokenStore


class EnvironmentTokenStore(TokenStore):
    backend_name = "env"

    def __init__(self, prefix: str = "TWITTER_") -> None:
        super().__init__()
        self._prefix = prefix

    def variable_name(self, key: str) -> str:
        return f"{self._prefix}{key.upper()}"

    async def _read(self, key: str) -> Optional[str]:
        return os.environ.get(self.variable_name(key))

    async def _write(self, key: str, value: str) -> None:
        os.environ[self.variable_name(key)] = value


__all__ = ["EnvironmentTokenStore"]
