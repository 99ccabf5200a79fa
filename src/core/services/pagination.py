"""Cursor pagination and envelope extraction.

The same resource can appear under different field names depending on the
endpoint version (`items`, `accounts`, `cash_accounts`, ...). Every call site
describes the candidates as an ordered tuple of keys and goes through the
helpers below instead of probing the payload ad hoc.

Iteration is caller-driven: one page per invocation. The cursor is opaque
and goes back to the server unchanged as the `cursor` query parameter.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence
from urllib.parse import urlencode

from core.domain.http import ApiRequest, NoContent
from core.domain.models import PageEnvelope
from core.exceptions import DecodeError
from core.interfaces.gateway import ApiGateway

logger = logging.getLogger(__name__)

DEFAULT_ITEM_KEYS: tuple[str, ...] = ("items",)
CURSOR_PARAM = "cursor"
NEXT_CURSOR_KEY = "next_cursor"


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (str, list, dict, tuple)):
        return len(value) == 0
    return False


def first_present(payload: Mapping[str, Any], keys: Sequence[str]) -> Any | None:
    """Value of the first key in `keys` that holds a non-empty value."""

    for key in keys:
        value = payload.get(key)
        if not _is_empty(value):
            return value
    return None


def extract_items(payload: Any, keys: Sequence[str] = DEFAULT_ITEM_KEYS) -> list[Any]:
    """First non-empty list among `keys`, or an empty list."""

    if not isinstance(payload, Mapping):
        return []
    for key in keys:
        value = payload.get(key)
        if isinstance(value, list) and value:
            return value
    return []


def extract_entity(payload: Any, keys: Sequence[str]) -> dict[str, Any]:
    """Unwrap a single entity.

    Endpoints answer either with the entity itself or wrapped under one of
    `keys` (`{"transfer": {...}}`, `{"item": {...}}`). The first wrapper that
    holds an object wins; otherwise the payload is the entity.
    """

    if not isinstance(payload, Mapping):
        raise DecodeError("Expected a JSON object in the response body.")
    for key in keys:
        value = payload.get(key)
        if isinstance(value, Mapping):
            return dict(value)
    return dict(payload)


def page_from_payload(
    payload: Any,
    item_keys: Sequence[str] = DEFAULT_ITEM_KEYS,
) -> PageEnvelope[dict[str, Any]]:
    if isinstance(payload, NoContent):
        return PageEnvelope[dict[str, Any]]()
    if not isinstance(payload, Mapping):
        raise DecodeError("Expected a JSON object for a list response.")

    items = [item for item in extract_items(payload, item_keys) if isinstance(item, Mapping)]
    cursor = payload.get(NEXT_CURSOR_KEY)
    next_cursor = cursor if isinstance(cursor, str) and cursor else None
    return PageEnvelope[dict[str, Any]](items=[dict(i) for i in items], next_cursor=next_cursor)


def build_path(base: str, params: Mapping[str, Any] | None = None) -> str:
    """Append the explicitly present `params` as a query string.

    Values that are `None` are skipped; everything else (including the
    cursor) is sent as given.
    """

    if not params:
        return base
    present = [(key, str(value)) for key, value in params.items() if value is not None]
    if not present:
        return base
    return f"{base}?{urlencode(present)}"


async def fetch_page(
    client: ApiGateway,
    path: str,
    *,
    params: Mapping[str, Any] | None = None,
    item_keys: Sequence[str] = DEFAULT_ITEM_KEYS,
) -> PageEnvelope[dict[str, Any]]:
    payload = await client.execute(ApiRequest(path=build_path(path, params)))
    page = page_from_payload(payload, item_keys)
    logger.debug("page %s: %d items, next_cursor=%s", path, len(page.items), page.next_cursor is not None)
    return page


@dataclass(frozen=True)
class PageSource:
    """One independently paginated stream in a merged listing."""

    label: str
    path: str
    item_keys: tuple[str, ...] = DEFAULT_ITEM_KEYS
    params: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class MergedPage:
    """Pages of several sources, kept in the order the caller declared them."""

    sources: list[tuple[PageSource, PageEnvelope[dict[str, Any]]]]

    def rows(self) -> list[tuple[str, dict[str, Any]]]:
        """(label, item) pairs: every item of one source before the next source."""

        out: list[tuple[str, dict[str, Any]]] = []
        for source, page in self.sources:
            out.extend((source.label, item) for item in page.items)
        return out

    def to_json(self) -> dict[str, Any]:
        return {source.label: page.to_json() for source, page in self.sources}


async def fetch_merged(client: ApiGateway, sources: Sequence[PageSource]) -> MergedPage:
    """Fetch every source concurrently and merge them in declaration order.

    Completion order does not matter: `asyncio.gather` returns results in the
    order of its arguments. Items are concatenated per source, never
    interleaved by timestamp.
    """

    pages = await asyncio.gather(
        *(
            fetch_page(client, source.path, params=source.params, item_keys=source.item_keys)
            for source in sources
        )
    )
    return MergedPage(sources=list(zip(sources, pages)))
