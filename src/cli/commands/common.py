"""Helpers shared by the resource commands.

A resource module only declares its flags, its columns and how one API item
becomes one table row; fetching, decoding and rendering go through here.
"""

from __future__ import annotations

from typing import Any, Callable, Mapping, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from cli.flags import ScannedArgs
from cli.registry import ExecutionContext
from cli.rendering import Column
from core.domain.http import ApiRequest, NoContent
from core.exceptions import DecodeError, MissingArgumentError
from core.services.pagination import DEFAULT_ITEM_KEYS, extract_entity, fetch_page

M = TypeVar("M", bound=BaseModel)

PLACEHOLDER = "-"


def parse_item(model: type[M], raw: Mapping[str, Any]) -> M:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise DecodeError(f"Unexpected {model.__name__} payload: {exc.errors()[0]['msg']}") from exc


def require_id(scanned: ScannedArgs, what: str, usage: str) -> str:
    value = scanned.positional(0)
    if not value:
        raise MissingArgumentError(f"Missing {what}. Usage: {usage}")
    return value


def short_date(value: str | None) -> str:
    if not value:
        return PLACEHOLDER
    return value[:10]


def short_datetime(value: str | None) -> str:
    if not value:
        return PLACEHOLDER
    return value[:19].replace("T", " ")


def or_placeholder(value: Any) -> Any:
    if value is None or value == "":
        return PLACEHOLDER
    return value


async def list_resource(
    context: ExecutionContext,
    path: str,
    *,
    params: Mapping[str, Any],
    item_keys: Sequence[str] = DEFAULT_ITEM_KEYS,
    model: type[M],
    columns: Sequence[Column],
    to_row: Callable[[M], dict[str, Any]],
    noun: str,
) -> None:
    """Fetch one page, normalise it and hand it to the renderer."""

    page = await fetch_page(context.client, path, params=params, item_keys=item_keys)
    rows: list[dict[str, Any]] = []
    if not context.renderer.is_json:
        rows = [to_row(parse_item(model, item)) for item in page.items]
    context.renderer.render_page(page, columns, rows, noun=noun)


async def get_entity(
    context: ExecutionContext,
    path: str,
    *,
    wrapper_keys: Sequence[str] = (),
) -> dict[str, Any]:
    payload = await context.client.execute(ApiRequest(path=path))
    return unwrap(payload, wrapper_keys)


def unwrap(payload: Any, wrapper_keys: Sequence[str]) -> dict[str, Any]:
    if isinstance(payload, NoContent):
        raise DecodeError("Expected a JSON object, got an empty response.")
    return extract_entity(payload, wrapper_keys)
