"""Confirmation token generation."""

from __future__ import annotations

import secrets
from typing import Protocol

TOKEN_BYTES = 32


class TokenGenerator(Protocol):
    def generate(self) -> str: ...


class SecureTokenGenerator:
    """Default generator: 32 random bytes as 64 lowercase hex characters.

    Collisions are not checked here; the store's unique constraint is the
    final arbiter.
    """

    def __init__(self, nbytes: int = TOKEN_BYTES) -> None:
        self._nbytes = nbytes

    def generate(self) -> str:
        return secrets.token_hex(self._nbytes)
