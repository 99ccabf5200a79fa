from __future__ import annotations

import httpx
import pytest

from adapters.gateway_client import GatewayClient
from conftest import BASE_URL, TOKEN, ApiStub, make_settings
from core.domain.http import NO_CONTENT, ApiRequest
from core.exceptions import ApiError, DecodeError, NotAuthenticatedError, TransportError


def _client(api: ApiStub, token: str | None = TOKEN) -> GatewayClient:
    return GatewayClient(token=token, base_url=BASE_URL + "/", settings=make_settings(), transport=api.transport())


@pytest.mark.asyncio
async def test_missing_token_fails_before_any_request(api: ApiStub) -> None:
    async with _client(api, token="  ") as client:
        with pytest.raises(NotAuthenticatedError):
            await client.execute(ApiRequest(path="/v2/users"))
    assert api.requests == []


@pytest.mark.asyncio
async def test_request_carries_bearer_and_json_headers(api: ApiStub) -> None:
    api.add("GET", "/v2/users", body={"items": []})
    async with _client(api) as client:
        payload = await client.execute(ApiRequest(path="/v2/users"))

    assert payload == {"items": []}
    request = api.requests[0]
    assert str(request.url) == f"{BASE_URL}/v2/users"
    assert request.headers["Authorization"] == f"Bearer {TOKEN}"
    assert request.headers["Accept"] == "application/json"
    assert request.headers["Content-Type"] == "application/json"
    assert request.headers["User-Agent"].startswith("brex-cli/")


@pytest.mark.asyncio
async def test_caller_headers_override_defaults(api: ApiStub) -> None:
    api.add("GET", "/v2/users", body={})
    async with _client(api) as client:
        await client.execute(ApiRequest(path="/v2/users", headers={"Accept": "text/csv"}))
    assert api.requests[0].headers["Accept"] == "text/csv"


@pytest.mark.asyncio
async def test_absolute_paths_are_used_as_is(api: ApiStub) -> None:
    api.add("GET", "/v2/cards", body={})
    async with _client(api) as client:
        await client.execute(ApiRequest(path="https://other.test/v2/cards"))
    assert api.requests[0].url.host == "other.test"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [204, 200])
async def test_empty_body_is_no_content(api: ApiStub, status: int) -> None:
    api.add("DELETE", "/v1/webhooks/wh_1", status=status)
    async with _client(api) as client:
        assert await client.execute(ApiRequest(path="/v1/webhooks/wh_1", method="DELETE")) is NO_CONTENT


@pytest.mark.asyncio
async def test_invalid_json_on_success_is_a_decode_error(api: ApiStub) -> None:
    api.add_handler("GET", "/v2/company", lambda request: httpx.Response(200, text="<html>"))
    async with _client(api) as client:
        with pytest.raises(DecodeError):
            await client.execute(ApiRequest(path="/v2/company"))


@pytest.mark.asyncio
async def test_error_body_is_mapped_to_api_error(api: ApiStub) -> None:
    api.add("GET", "/v2/users/u_1", status=403, body={"error": "forbidden", "message": "No access", "details": {"scope": "users"}})
    async with _client(api) as client:
        with pytest.raises(ApiError) as info:
            await client.execute(ApiRequest(path="/v2/users/u_1"))

    error = info.value
    assert (error.http_status, error.error_code, error.message) == (403, "forbidden", "No access")
    assert error.raw_details == {"scope": "users"}
    assert str(error) == "API error 403 (forbidden): No access"


@pytest.mark.asyncio
async def test_unparseable_error_body_gets_synthetic_code(api: ApiStub) -> None:
    api.add_handler("GET", "/v2/users", lambda request: httpx.Response(502, text="Bad Gateway"))
    async with _client(api) as client:
        with pytest.raises(ApiError) as info:
            await client.execute(ApiRequest(path="/v2/users"))

    assert info.value.http_status == 502
    assert info.value.error_code == "HTTP 502"
    assert info.value.message == "Bad Gateway"


@pytest.mark.asyncio
async def test_non_object_error_body_gets_synthetic_code(api: ApiStub) -> None:
    api.add("GET", "/v2/users", status=500, body=["oops"])
    async with _client(api) as client:
        with pytest.raises(ApiError) as info:
            await client.execute(ApiRequest(path="/v2/users"))
    assert info.value.error_code == "HTTP 500"


@pytest.mark.asyncio
async def test_transport_failure_is_wrapped_and_not_retried() -> None:
    calls = []

    def boom(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    client = GatewayClient(token=TOKEN, base_url=BASE_URL, settings=make_settings(), transport=httpx.MockTransport(boom))
    async with client:
        with pytest.raises(TransportError):
            await client.execute(ApiRequest(path="/v2/users"))
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_mutate_generates_a_key_when_omitted(api: ApiStub) -> None:
    api.add("POST", "/v1/webhooks", body={"id": "wh_1"})
    async with _client(api) as client:
        await client.mutate("/v1/webhooks", {"url": "https://hook.test"})
        await client.mutate("/v1/webhooks", {"url": "https://hook.test"})

    first, second = (r.headers["Idempotency-Key"] for r in api.requests)
    assert first and second and first != second
    assert api.json_body(0) == {"url": "https://hook.test"}


@pytest.mark.asyncio
async def test_mutate_keeps_an_explicit_key(api: ApiStub) -> None:
    api.add("PUT", "/v1/webhooks/wh_1", body={"id": "wh_1"})
    async with _client(api) as client:
        await client.mutate("/v1/webhooks/wh_1", {}, method="put", idempotency_key="key-1")
    assert api.requests[0].method == "PUT"
    assert api.requests[0].headers["Idempotency-Key"] == "key-1"


@pytest.mark.asyncio
async def test_mutate_rejects_safe_methods(api: ApiStub) -> None:
    async with _client(api) as client:
        with pytest.raises(ValueError):
            await client.mutate("/v1/webhooks", method="GET")
