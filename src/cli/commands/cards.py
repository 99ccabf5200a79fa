"""`brex cards`: issued cards."""

from __future__ import annotations

from typing import Any

from cli.commands.common import get_entity, list_resource, or_placeholder, parse_item, require_id
from cli.flags import CURSOR, LIMIT, Flag, FlagScanner
from cli.registry import CommandDescriptor, ExecutionContext
from cli.rendering import Column
from cli.subcommands import Subcommand, split_subcommand
from core.domain.models import Card

USAGE = """brex cards [list] [--user-id <user-id>] [--cursor <cursor>] [--limit <N>]
brex cards get <card-id>
brex cards --json"""

COLUMNS = (
    Column("id", "Card ID", 36),
    Column("name", "Name", 22),
    Column("last_four", "Last 4", 8),
    Column("status", "Status", 12),
    Column("expires", "Expires", 10),
    Column("user_id", "User ID", 36),
)

_list_flags = FlagScanner(Flag("--user-id", metavar="user-id"), CURSOR, LIMIT)
_get_flags = FlagScanner()


def card_row(card: Card) -> dict[str, Any]:
    return {
        "id": card.id,
        "name": or_placeholder(card.card_name),
        "last_four": or_placeholder(card.last_digits),
        "status": or_placeholder(card.status),
        "expires": or_placeholder(card.expiration),
        "user_id": or_placeholder(card.cardholder.user_id if card.cardholder else None),
    }


async def _list(context: ExecutionContext, args: list[str]) -> None:
    scanned = _list_flags.scan(args)
    await list_resource(
        context,
        "/v2/cards",
        params={
            "user_id": scanned.get("user_id"),
            "cursor": scanned.get("cursor"),
            "limit": scanned.get("limit"),
        },
        item_keys=("items", "cards"),
        model=Card,
        columns=COLUMNS,
        to_row=card_row,
        noun="cards",
    )


async def _get(context: ExecutionContext, args: list[str]) -> None:
    card_id = require_id(_get_flags.scan(args), "card ID", "brex cards get <card-id>")
    raw = await get_entity(context, f"/v2/cards/{card_id}", wrapper_keys=("card", "item"))
    row = card_row(parse_item(Card, raw))
    context.renderer.render_entity(
        raw,
        "Card Details",
        [
            ("ID", row["id"]),
            ("Name", row["name"]),
            ("Status", row["status"]),
            ("Last 4", row["last_four"]),
            ("Expires", row["expires"]),
            ("User ID", row["user_id"]),
        ],
    )


async def handle(context: ExecutionContext, args: list[str]) -> None:
    verb, rest = split_subcommand(
        args,
        command="cards",
        allowed=(Subcommand.LIST, Subcommand.GET),
        default=Subcommand.LIST,
    )
    if verb is Subcommand.GET:
        await _get(context, rest)
    else:
        await _list(context, rest)


COMMAND = CommandDescriptor(
    name="cards",
    aliases=frozenset({"card"}),
    usage=USAGE,
    summary="List and view cards.",
    handler=handle,
)
