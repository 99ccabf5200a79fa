"""`brex accounts`: cash and card accounts."""

from __future__ import annotations

from typing import Any

from cli.commands.common import PLACEHOLDER, get_entity, list_resource, or_placeholder, parse_item, require_id
from cli.flags import CURSOR, ChoiceFlag, FlagScanner
from cli.registry import CommandDescriptor, ExecutionContext
from cli.rendering import Column
from cli.subcommands import Subcommand, split_subcommand
from core.domain.models import CardAccount, CashAccount
from core.domain.money import format_money, money_from_decimal
from core.exceptions import ApiError, UsageError
from core.services.pagination import PageSource, fetch_merged

USAGE = """brex accounts
brex accounts list [--type cash|card|all] [--cursor <cursor>]
brex accounts get <account-id> [--type cash|card]
brex accounts --json"""

CASH = "cash"
CARD = "card"
ALL = "all"

CASH_SOURCE = PageSource(label=CASH, path="/v2/accounts/cash", item_keys=("items", "cash_accounts", "accounts"))
CARD_SOURCE = PageSource(label=CARD, path="/v2/accounts/card", item_keys=("items", "card_accounts", "accounts"))

COLUMNS = (
    Column("id", "ID", 36),
    Column("name", "Name", 22),
    Column("type", "Type", 12),
    Column("status", "Status", 10),
    Column("account_number", "Account #", 12),
    Column("available", "Available", 14),
    Column("current", "Current", 14),
)

_list_flags = FlagScanner(ChoiceFlag("--type", choices=(CASH, CARD, ALL), metavar="cash|card|all"), CURSOR)
_get_flags = FlagScanner(ChoiceFlag("--type", choices=(CASH, CARD), metavar="cash|card"))


def _parse(raw: dict[str, Any], kind: str) -> CashAccount | CardAccount:
    if kind == CASH:
        return parse_item(CashAccount, raw)
    return parse_item(CardAccount, raw)


def account_row(account: CashAccount | CardAccount, kind: str) -> dict[str, Any]:
    available = account.available_balance if isinstance(account, CashAccount) else None
    return {
        "id": account.id,
        "name": or_placeholder(account.account_name),
        "type": account.account_type or kind,
        "status": or_placeholder(account.status),
        "account_number": or_placeholder(getattr(account, "account_number", None)),
        "available": format_money(money_from_decimal(available or account.current_balance)),
        "current": format_money(money_from_decimal(account.current_balance)),
    }


async def _list(context: ExecutionContext, args: list[str]) -> None:
    scanned = _list_flags.scan(args)
    kind = scanned.get("type", ALL)
    cursor = scanned.get("cursor")

    if kind == ALL:
        if cursor is not None:
            raise UsageError("--cursor can only be used with --type cash or --type card")
        merged = await fetch_merged(context.client, [CASH_SOURCE, CARD_SOURCE])
        rows = []
        if not context.renderer.is_json:
            rows = [account_row(_parse(item, label), label) for label, item in merged.rows()]
        context.renderer.render_merged(merged, COLUMNS, rows, noun="accounts")
        return

    source = CASH_SOURCE if kind == CASH else CARD_SOURCE
    await list_resource(
        context,
        source.path,
        params={"cursor": cursor},
        item_keys=source.item_keys,
        model=CashAccount if kind == CASH else CardAccount,
        columns=COLUMNS,
        to_row=lambda account: account_row(account, kind),
        noun="accounts",
    )


def _render_account(context: ExecutionContext, raw: dict[str, Any], kind: str) -> None:
    row = account_row(_parse(raw, kind), kind)
    fields: list[tuple[str, Any]] = [
        ("ID", row["id"]),
        ("Name", row["name"]),
        ("Type", row["type"]),
        ("Status", row["status"]),
    ]
    if row["account_number"] != PLACEHOLDER:
        fields.append(("Account Number", row["account_number"]))
    routing = raw.get("routing_number")
    if routing:
        fields.append(("Routing Number", routing))
    fields.extend([("Available", row["available"]), ("Current", row["current"])])
    context.renderer.render_entity(raw, "Account Details", fields)


async def _get(context: ExecutionContext, args: list[str]) -> None:
    scanned = _get_flags.scan(args)
    account_id = require_id(scanned, "account ID", "brex accounts get <account-id> [--type cash|card]")
    kind = scanned.get("type")

    if kind is not None:
        raw = await get_entity(context, f"/v2/accounts/{kind}/{account_id}")
        _render_account(context, raw, kind)
        return

    # Without --type the account may be either kind; cash is tried first.
    try:
        raw = await get_entity(context, f"/v2/accounts/cash/{account_id}")
    except ApiError as exc:
        if exc.http_status != 404:
            raise
    else:
        _render_account(context, raw, CASH)
        return

    raw = await get_entity(context, f"/v2/accounts/card/{account_id}")
    _render_account(context, raw, CARD)


async def handle(context: ExecutionContext, args: list[str]) -> None:
    verb, rest = split_subcommand(
        args,
        command="accounts",
        allowed=(Subcommand.LIST, Subcommand.GET),
        default=Subcommand.LIST,
    )
    if verb is Subcommand.GET:
        await _get(context, rest)
    else:
        await _list(context, rest)


COMMAND = CommandDescriptor(
    name="accounts",
    aliases=frozenset({"account", "acc"}),
    usage=USAGE,
    summary="List and view cash and card accounts.",
    handler=handle,
)
