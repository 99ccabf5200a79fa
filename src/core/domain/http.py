"""Request/response primitives shared by the gateway contract and its adapter."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

IDEMPOTENCY_HEADER = "Idempotency-Key"
MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class NoContent(Enum):
    """Explicit "no content" result (204 or an empty body)."""

    NO_CONTENT = "no-content"


NO_CONTENT = NoContent.NO_CONTENT


@dataclass(frozen=True)
class ApiRequest:
    """One HTTP exchange. Built per call and discarded after the response."""

    path: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any | None = None

    def with_header(self, name: str, value: str) -> "ApiRequest":
        return ApiRequest(
            path=self.path,
            method=self.method,
            headers={**self.headers, name: value},
            body=self.body,
        )
