"""Gateway contract.

Core services (pagination, merged listings) depend on this Protocol, not on
the httpx adapter, so they can be exercised with any object that performs
one authenticated exchange per call.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from core.domain.http import ApiRequest


@runtime_checkable
class ApiGateway(Protocol):
    """Minimal contract for an authenticated API client.

    Rules:
    - `execute` performs exactly one attempt; failures are raised, never retried.
    - Non-2xx responses raise `ApiError`; malformed 2xx bodies raise `DecodeError`.
    - 204/empty bodies return `NO_CONTENT`.
    """

    async def execute(self, request: ApiRequest) -> Any:
        ...

    async def mutate(
        self,
        path: str,
        body: Mapping[str, Any] | None = None,
        *,
        method: str = "POST",
        idempotency_key: str | None = None,
    ) -> Any:
        ...
