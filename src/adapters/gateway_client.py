"""Gateway client: one authenticated HTTP exchange per call.

Responsibilities:
- Compose the absolute URL from the base URL and the request path.
- Attach the bearer credential and JSON headers (caller headers win).
- Decode 2xx bodies as JSON, map non-2xx responses to `ApiError`.
- Attach an `Idempotency-Key` to mutating calls.

It never retries and never backs off: one failure is one reported failure.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import httpx

from adapters.http_client import build_async_client
from core.config import AppSettings
from core.domain.http import IDEMPOTENCY_HEADER, MUTATING_METHODS, NO_CONTENT, ApiRequest
from core.exceptions import ApiError, DecodeError, NotAuthenticatedError, TransportError
from core.interfaces.gateway import ApiGateway
from core.services.idempotency import IdempotencyKeyProvider

logger = logging.getLogger(__name__)


def _is_absolute(path: str) -> bool:
    return path.startswith("http://") or path.startswith("https://")


def _error_from_response(response: httpx.Response) -> ApiError:
    status = response.status_code
    fallback = ApiError(status, f"HTTP {status}", response.reason_phrase or None)
    try:
        body = response.json()
    except ValueError:
        return fallback
    if not isinstance(body, dict):
        return fallback

    error = body.get("error")
    message = body.get("message")
    error_code = error if isinstance(error, str) and error else f"HTTP {status}"
    if not isinstance(message, str) or not message:
        message = None
    return ApiError(status, error_code, message, body.get("details"))


class GatewayClient(ApiGateway):
    """Authenticated client bound to one credential and one base URL.

    A missing credential is allowed at construction time (commands such as
    `version` never call the API); every call then fails with
    `NotAuthenticatedError` before any network activity.
    """

    def __init__(
        self,
        *,
        token: str | None,
        base_url: str,
        settings: AppSettings | None = None,
        idempotency_keys: IdempotencyKeyProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = (token or "").strip() or None
        self._base_url = base_url.rstrip("/")
        self._settings = settings or AppSettings()
        self._keys = idempotency_keys or IdempotencyKeyProvider()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def is_authenticated(self) -> bool:
        return self._token is not None

    def url_for(self, path: str) -> str:
        if _is_absolute(path):
            return path
        if not path.startswith("/"):
            path = "/" + path
        return f"{self._base_url}{path}"

    def _http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = build_async_client(self._settings, transport=self._transport)
        return self._client

    async def execute(self, request: ApiRequest) -> Any:
        if self._token is None:
            raise NotAuthenticatedError()

        url = self.url_for(request.path)
        headers = httpx.Headers({"Authorization": f"Bearer {self._token}"})
        headers.update(dict(request.headers))
        content = None
        if request.body is not None:
            content = json.dumps(request.body).encode("utf-8")

        logger.debug("%s %s", request.method, url)
        try:
            response = await self._http().request(
                request.method,
                url,
                headers=headers,
                content=content,
            )
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"Request timed out: {request.method} {url}",
                hint="Raise BREX_HTTP_TIMEOUT_SECONDS if the API is slow.",
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Request failed: {request.method} {url}: {exc}") from exc

        logger.debug("%s %s -> %s", request.method, url, response.status_code)
        return self._decode(response)

    def _decode(self, response: httpx.Response) -> Any:
        if not response.is_success:
            raise _error_from_response(response)
        if response.status_code == 204:
            return NO_CONTENT

        text = response.text.strip()
        if not text:
            return NO_CONTENT
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise DecodeError(
                f"Invalid JSON in response ({response.status_code}) from {response.request.url}"
            ) from exc

    async def mutate(
        self,
        path: str,
        body: Mapping[str, Any] | None = None,
        *,
        method: str = "POST",
        idempotency_key: str | None = None,
    ) -> Any:
        """Send a state-changing request with an `Idempotency-Key` header.

        The key is the caller's when given, otherwise a fresh one.
        """

        method = method.upper()
        if method not in MUTATING_METHODS:
            raise ValueError(f"{method} is not a mutating method")
        key = self._keys.resolve(idempotency_key)
        request = ApiRequest(path=path, method=method, body=body).with_header(IDEMPOTENCY_HEADER, key)
        return await self.execute(request)

    async def get(self, path: str) -> Any:
        return await self.execute(ApiRequest(path=path))

    async def delete(self, path: str) -> Any:
        return await self.execute(ApiRequest(path=path, method="DELETE"))

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
