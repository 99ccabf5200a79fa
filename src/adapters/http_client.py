"""httpx client builder.

All API traffic goes through one `httpx.AsyncClient` built here, so timeout,
redirect policy and default headers are the same for every command.
"""

from __future__ import annotations

import httpx

from core.config import AppSettings

JSON_MEDIA_TYPE = "application/json"


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with the CLI defaults.

    `transport` is only set by tests (`httpx.MockTransport`).
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
        "Accept": JSON_MEDIA_TYPE,
        "Content-Type": JSON_MEDIA_TYPE,
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=False,
        headers=headers,
        transport=transport,
    )
