"""`brex transactions`: one page of cash or card transactions.

Transaction amounts are integer minor units (cents), unlike account
balances and transfers.
"""

from __future__ import annotations

from typing import Any

from cli.commands.common import list_resource, or_placeholder, short_date
from cli.flags import CURSOR, LIMIT, ChoiceFlag, Flag, FlagScanner
from cli.registry import CommandDescriptor, ExecutionContext
from cli.rendering import Column
from cli.subcommands import Subcommand
from core.domain.models import Transaction
from core.domain.money import format_money, money_from_minor_units
from core.exceptions import MissingArgumentError, UnsupportedOperationError

USAGE = """brex transactions <account-id> [--type cash] [--limit <N>] [--cursor <cursor>] [--posted-at-start <ISO>]
brex transactions --type card [--limit <N>] [--cursor <cursor>] [--posted-at-start <ISO>]
brex transactions --json"""

COLUMNS = (
    Column("id", "ID", 36),
    Column("type", "Type", 16),
    Column("amount", "Amount", 14),
    Column("description", "Description", 28),
    Column("posted", "Posted", 12),
)

_flags = FlagScanner(
    ChoiceFlag("--type", choices=("cash", "card"), metavar="cash|card"),
    LIMIT,
    CURSOR,
    Flag("--posted-at-start", aliases=("--start-time", "--start"), metavar="ISO"),
)


def transaction_row(tx: Transaction) -> dict[str, Any]:
    description = tx.merchant.raw_descriptor if tx.merchant and tx.merchant.raw_descriptor else tx.description
    return {
        "id": tx.id,
        "type": or_placeholder(tx.type),
        "amount": format_money(money_from_minor_units(tx.amount)),
        "description": or_placeholder(description),
        "posted": short_date(tx.posted_at_date or tx.initiated_at_date),
    }


async def handle(context: ExecutionContext, args: list[str]) -> None:
    if args and args[0] == "send":
        raise UnsupportedOperationError(
            "Transactions cannot send money.",
            hint="Use 'brex transfer' instead.",
        )
    if args and args[0] == Subcommand.LIST.value:
        args = args[1:]

    scanned = _flags.scan(args)
    kind = scanned.get("type", "cash")
    if kind == "cash":
        account_id = scanned.positional(0)
        if not account_id:
            raise MissingArgumentError(
                "Missing account ID for cash transactions. Usage: brex transactions <account-id>"
            )
        path = f"/v2/transactions/cash/{account_id}"
    else:
        path = "/v2/transactions/card/primary"

    await list_resource(
        context,
        path,
        params={
            "limit": scanned.get("limit"),
            "cursor": scanned.get("cursor"),
            "posted_at_start": scanned.get("posted_at_start"),
        },
        model=Transaction,
        columns=COLUMNS,
        to_row=transaction_row,
        noun="transactions",
    )


COMMAND = CommandDescriptor(
    name="transactions",
    aliases=frozenset({"tx", "txn"}),
    usage=USAGE,
    summary="List cash or card transactions.",
    handler=handle,
)
