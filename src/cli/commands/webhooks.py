"""`brex webhooks`: webhook subscriptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, TypedDict

from cli.commands.common import get_entity, list_resource, or_placeholder, parse_item, require_id, unwrap
from cli.flags import CURSOR, LIMIT, Flag, FlagScanner, ListFlag, ScannedArgs
from cli.registry import CommandDescriptor, ExecutionContext
from cli.rendering import Column
from cli.subcommands import Subcommand, split_subcommand
from core.domain.models import Webhook
from core.exceptions import DecodeError

USAGE = """brex webhooks
brex webhooks list [--cursor <cursor>] [--limit <N>]
brex webhooks get <webhook-id>
brex webhooks create --url <url> [--events <event1,event2>]
brex webhooks update <webhook-id> [--url <url>] [--events <event1,event2>]
brex webhooks delete <webhook-id>
brex webhooks --json"""

WRAPPER_KEYS = ("webhook", "item")

COLUMNS = (
    Column("id", "ID", 36),
    Column("url", "URL", 40),
    Column("status", "Status", 12),
    Column("events", "Events", 35),
)

_URL = Flag("--url")
_EVENTS = ListFlag("--events", metavar="event1,event2")

_list_flags = FlagScanner(CURSOR, LIMIT)
_write_flags = FlagScanner(_URL, _EVENTS)
_id_flags = FlagScanner()


@dataclass(frozen=True)
class WebhookOptions:
    url: str | None = None
    event_types: list[str] | None = None

    @classmethod
    def from_args(cls, scanned: ScannedArgs) -> "WebhookOptions":
        return cls(url=scanned.get("url"), event_types=scanned.get("events"))


class WebhookBody(TypedDict, total=False):
    url: str
    event_types: list[str]


def build_create_body(options: WebhookOptions) -> WebhookBody:
    body: WebhookBody = {}
    if options.url is not None:
        body["url"] = options.url
    if options.event_types is not None:
        body["event_types"] = options.event_types
    return body


def build_update_body(options: WebhookOptions, current: Webhook) -> WebhookBody:
    """Full replacement body: unspecified fields keep their current values."""

    body: WebhookBody = {}
    url = options.url if options.url is not None else current.url
    if url is not None:
        body["url"] = url
    body["event_types"] = options.event_types if options.event_types is not None else list(current.event_types)
    return body


def webhook_row(webhook: Webhook) -> dict[str, Any]:
    return {
        "id": webhook.id,
        "url": or_placeholder(webhook.url),
        "status": or_placeholder(webhook.status),
        "events": or_placeholder(", ".join(webhook.event_types)),
    }


def _render_webhook(context: ExecutionContext, raw: dict[str, Any], title: str) -> None:
    row = webhook_row(parse_item(Webhook, raw))
    context.renderer.render_entity(
        raw,
        title,
        [("ID", row["id"]), ("URL", row["url"]), ("Status", row["status"]), ("Events", row["events"])],
    )


async def _list(context: ExecutionContext, args: list[str]) -> None:
    scanned = _list_flags.scan(args)
    await list_resource(
        context,
        "/v1/webhooks",
        params={"cursor": scanned.get("cursor"), "limit": scanned.get("limit")},
        item_keys=("items", "webhooks"),
        model=Webhook,
        columns=COLUMNS,
        to_row=webhook_row,
        noun="webhooks",
    )


async def _get(context: ExecutionContext, args: list[str]) -> None:
    webhook_id = require_id(_id_flags.scan(args), "webhook ID", "brex webhooks get <webhook-id>")
    raw = await get_entity(context, f"/v1/webhooks/{webhook_id}", wrapper_keys=WRAPPER_KEYS)
    _render_webhook(context, raw, "Webhook Details")


async def _create(context: ExecutionContext, args: list[str]) -> None:
    scanned = _write_flags.scan(args)
    scanned.require("url", "--url")
    body = build_create_body(WebhookOptions.from_args(scanned))
    payload = await context.client.mutate("/v1/webhooks", body)
    _render_webhook(context, unwrap(payload, WRAPPER_KEYS), "Webhook Created")


async def _update(context: ExecutionContext, args: list[str]) -> None:
    scanned = _write_flags.scan(args)
    webhook_id = require_id(scanned, "webhook ID", "brex webhooks update <webhook-id> [--url <url>] [--events <list>]")
    options = WebhookOptions.from_args(scanned)

    # PUT replaces the whole resource, so read it first.
    current_raw = await get_entity(context, f"/v1/webhooks/{webhook_id}", wrapper_keys=WRAPPER_KEYS)
    if not current_raw.get("id") and not current_raw.get("url"):
        raise DecodeError(f"Could not retrieve existing webhook {webhook_id}: unexpected API response")
    current = parse_item(Webhook, {"id": webhook_id, **current_raw})

    payload = await context.client.mutate(
        f"/v1/webhooks/{webhook_id}",
        build_update_body(options, current),
        method="PUT",
    )
    _render_webhook(context, unwrap(payload, WRAPPER_KEYS), "Webhook Updated")


async def _delete(context: ExecutionContext, args: list[str]) -> None:
    webhook_id = require_id(_id_flags.scan(args), "webhook ID", "brex webhooks delete <webhook-id>")
    await context.client.mutate(f"/v1/webhooks/{webhook_id}", method="DELETE")
    context.renderer.render_message(f"Webhook {webhook_id} deleted.", {"id": webhook_id, "deleted": True})


async def handle(context: ExecutionContext, args: list[str]) -> None:
    verb, rest = split_subcommand(
        args,
        command="webhooks",
        allowed=tuple(Subcommand),
        default=Subcommand.LIST,
    )
    handlers = {
        Subcommand.LIST: _list,
        Subcommand.GET: _get,
        Subcommand.CREATE: _create,
        Subcommand.UPDATE: _update,
        Subcommand.DELETE: _delete,
    }
    await handlers[verb](context, rest)


COMMAND = CommandDescriptor(
    name="webhooks",
    aliases=frozenset({"webhook", "wh"}),
    usage=USAGE,
    summary="Manage webhook subscriptions.",
    handler=handle,
)
