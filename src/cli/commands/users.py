"""`brex users`: organization users."""

from __future__ import annotations

from typing import Any

from cli.commands.common import get_entity, list_resource, or_placeholder, parse_item, require_id
from cli.flags import CURSOR, Flag, FlagScanner
from cli.registry import CommandDescriptor, ExecutionContext
from cli.rendering import Column
from cli.subcommands import Subcommand, split_subcommand
from core.domain.models import User

USAGE = """brex users [list] [--cursor <cursor>] [--email <email>]
brex users get <user-id>
brex users --json"""

COLUMNS = (
    Column("id", "ID", 36),
    Column("first_name", "First Name", 14),
    Column("last_name", "Last Name", 14),
    Column("email", "Email", 30),
    Column("department", "Department", 15),
    Column("status", "Status", 10),
)

_list_flags = FlagScanner(CURSOR, Flag("--email"))
_get_flags = FlagScanner()


def user_row(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "first_name": or_placeholder(user.first_name),
        "last_name": or_placeholder(user.last_name),
        "email": or_placeholder(user.email),
        "department": or_placeholder(user.department),
        "status": or_placeholder(user.status),
    }


async def _list(context: ExecutionContext, args: list[str]) -> None:
    scanned = _list_flags.scan(args)
    await list_resource(
        context,
        "/v2/users",
        params={"cursor": scanned.get("cursor"), "email": scanned.get("email")},
        item_keys=("items", "users"),
        model=User,
        columns=COLUMNS,
        to_row=user_row,
        noun="users",
    )


async def _get(context: ExecutionContext, args: list[str]) -> None:
    user_id = require_id(_get_flags.scan(args), "user ID", "brex users get <user-id>")
    raw = await get_entity(context, f"/v2/users/{user_id}", wrapper_keys=("user", "item"))
    user = parse_item(User, raw)
    fields: list[tuple[str, Any]] = [
        ("ID", user.id),
        ("Name", f"{user.first_name or '-'} {user.last_name or '-'}"),
        ("Email", or_placeholder(user.email)),
        ("Department", or_placeholder(user.department)),
        ("Status", or_placeholder(user.status)),
    ]
    if user.manager_id:
        fields.append(("Manager ID", user.manager_id))
    context.renderer.render_entity(raw, "User Details", fields)


async def handle(context: ExecutionContext, args: list[str]) -> None:
    verb, rest = split_subcommand(
        args,
        command="users",
        allowed=(Subcommand.LIST, Subcommand.GET),
        default=Subcommand.LIST,
    )
    if verb is Subcommand.GET:
        await _get(context, rest)
    else:
        await _list(context, rest)


COMMAND = CommandDescriptor(
    name="users",
    aliases=frozenset({"user"}),
    usage=USAGE,
    summary="List and view organization users.",
    handler=handle,
)
