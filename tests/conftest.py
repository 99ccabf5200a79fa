from __future__ import annotations

import json
from io import StringIO
from typing import Any, Callable

import httpx
import pytest
from rich.console import Console

from adapters.gateway_client import GatewayClient
from cli.registry import ExecutionContext
from cli.rendering import OutputMode, Renderer
from core.config import AppSettings
from core.services.idempotency import IdempotencyKeyProvider

BASE_URL = "https://api.brex.test"
TOKEN = "test-token"


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in ("BREX_TOKEN", "BREX_API_BASE_URL", "BREX_HTTP_TIMEOUT_SECONDS", "BREX_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.chdir(tmp_path)


def make_console() -> Console:
    return Console(file=StringIO(), force_terminal=False, color_system=None, width=240)


def output_of(console: Console) -> str:
    return console.file.getvalue()  # type: ignore[attr-defined]


def make_settings(**overrides: Any) -> AppSettings:
    values: dict[str, Any] = {"token": TOKEN, "api_base_url": BASE_URL}
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


class ApiStub:
    """Route table for `httpx.MockTransport`; records every request."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}

    def add(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if body is None:
                return httpx.Response(status)
            return httpx.Response(status, json=body)

        self._routes[(method, path)] = respond

    def add_handler(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self._routes[(method, path)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self._routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"error": "not_found", "message": f"no route {request.url.path}"})
        return route(request)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def json_body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


@pytest.fixture
def api() -> ApiStub:
    return ApiStub()


@pytest.fixture
def console() -> Console:
    return make_console()


@pytest.fixture
def make_context(api: ApiStub, console: Console) -> Callable[..., ExecutionContext]:
    def factory(mode: OutputMode = OutputMode.TABLE, *, token: str | None = TOKEN) -> ExecutionContext:
        keys = IdempotencyKeyProvider()
        client = GatewayClient(
            token=token,
            base_url=BASE_URL,
            settings=make_settings(token=token),
            idempotency_keys=keys,
            transport=api.transport(),
        )
        return ExecutionContext(client=client, renderer=Renderer(mode, console), idempotency_keys=keys)

    return factory
