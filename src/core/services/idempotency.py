"""Idempotency keys for mutating requests.

The key lets the server deduplicate a request the caller may send twice; the
CLI itself still makes a single attempt.
"""

from __future__ import annotations

import uuid


class IdempotencyKeyProvider:
    """Hands out fresh keys (UUID4, 122 random bits) and never repeats one."""

    def __init__(self) -> None:
        self._issued: set[str] = set()

    def generate(self) -> str:
        key = str(uuid.uuid4())
        while key in self._issued:
            key = str(uuid.uuid4())
        self._issued.add(key)
        return key

    def resolve(self, explicit: str | None) -> str:
        """Return the caller's key when given, otherwise a fresh one."""

        if explicit is not None and explicit.strip():
            return explicit
        return self.generate()
