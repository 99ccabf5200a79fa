"""`brex events`: webhook events delivered to this organization."""

from __future__ import annotations

import json
from typing import Any

from cli.commands.common import get_entity, list_resource, or_placeholder, parse_item, require_id, short_datetime
from cli.flags import CURSOR, LIMIT, Flag, FlagScanner
from cli.registry import CommandDescriptor, ExecutionContext
from cli.rendering import Column
from cli.subcommands import Subcommand, split_subcommand
from core.domain.models import ApiEvent

USAGE = """brex events list [--event-type <type>] [--after-date <ISO>] [--before-date <ISO>] [--cursor <cursor>] [--limit <N>]
brex events get <event-id>
brex events --json"""

COLUMNS = (
    Column("id", "Event ID", 36),
    Column("type", "Type", 30),
    Column("occurred_at", "Occurred", 20),
    Column("webhook_id", "Webhook ID", 36),
)

_list_flags = FlagScanner(
    Flag("--event-type", metavar="type"),
    Flag("--after-date", metavar="ISO"),
    Flag("--before-date", metavar="ISO"),
    CURSOR,
    LIMIT,
)
_get_flags = FlagScanner()


def event_row(event: ApiEvent) -> dict[str, Any]:
    return {
        "id": event.id,
        "type": or_placeholder(event.event_type),
        "occurred_at": short_datetime(event.occurred_at),
        "webhook_id": or_placeholder(event.webhook_id),
    }


async def _list(context: ExecutionContext, args: list[str]) -> None:
    scanned = _list_flags.scan(args)
    await list_resource(
        context,
        "/v1/events",
        params={
            "event_type": scanned.get("event_type"),
            "after_date": scanned.get("after_date"),
            "before_date": scanned.get("before_date"),
            "cursor": scanned.get("cursor"),
            "limit": scanned.get("limit"),
        },
        item_keys=("items", "events"),
        model=ApiEvent,
        columns=COLUMNS,
        to_row=event_row,
        noun="events",
    )


async def _get(context: ExecutionContext, args: list[str]) -> None:
    event_id = require_id(_get_flags.scan(args), "event ID", "brex events get <event-id>")
    raw = await get_entity(context, f"/v1/events/{event_id}", wrapper_keys=("event", "item"))
    event = parse_item(ApiEvent, raw)
    row = event_row(event)
    context.renderer.render_entity(
        raw,
        "Event Details",
        [
            ("ID", row["id"]),
            ("Type", row["type"]),
            ("Occurred", row["occurred_at"]),
            ("Webhook ID", row["webhook_id"]),
            ("Payload", json.dumps(event.payload if event.payload is not None else {}, indent=2)),
        ],
    )


async def handle(context: ExecutionContext, args: list[str]) -> None:
    verb, rest = split_subcommand(
        args,
        command="events",
        allowed=(Subcommand.LIST, Subcommand.GET),
        default=Subcommand.LIST,
    )
    if verb is Subcommand.GET:
        await _get(context, rest)
    else:
        await _list(context, rest)


COMMAND = CommandDescriptor(
    name="events",
    aliases=frozenset({"event"}),
    usage=USAGE,
    summary="List and view webhook events.",
    handler=handle,
)
