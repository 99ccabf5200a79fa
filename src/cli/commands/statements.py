"""`brex statements`: card account statements.

Statements belong to the primary card account unless `--scope additional`
names an additional card account with `--account-id`. Balances are integer
minor units, like transactions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from cli.commands.common import get_entity, list_resource, or_placeholder, parse_item, require_id, short_date
from cli.flags import CURSOR, ChoiceFlag, Flag, FlagScanner, ScannedArgs
from cli.registry import CommandDescriptor, ExecutionContext
from cli.rendering import Column
from cli.subcommands import Subcommand, split_subcommand
from core.domain.models import Statement
from core.domain.money import format_money, money_from_minor_units
from core.exceptions import MissingArgumentError

USAGE = """brex statements [list] [--scope primary|additional] [--account-id <card-account-id>] [--cursor <cursor>]
brex statements get <statement-id> [--scope primary|additional] [--account-id <card-account-id>]
brex statements --json"""

WRAPPER_KEYS = ("account_statement", "statement", "item")

COLUMNS = (
    Column("id", "Statement ID", 36),
    Column("start", "Start", 12),
    Column("end", "End", 12),
    Column("start_balance", "Start Bal", 14),
    Column("end_balance", "End Bal", 14),
)

_SCOPE = ChoiceFlag("--scope", choices=("primary", "additional"), metavar="primary|additional")
_ACCOUNT_ID = Flag("--account-id", metavar="card-account-id")

_list_flags = FlagScanner(_SCOPE, _ACCOUNT_ID, CURSOR)
_get_flags = FlagScanner(_SCOPE, _ACCOUNT_ID)


@dataclass(frozen=True)
class StatementScope:
    scope: str = "primary"
    account_id: str | None = None

    @classmethod
    def from_args(cls, scanned: ScannedArgs) -> "StatementScope":
        scope = scanned.get("scope", "primary")
        account_id = scanned.get("account_id")
        if scope == "additional" and account_id is None:
            raise MissingArgumentError("--account-id is required when --scope additional")
        return cls(scope=scope, account_id=account_id)

    @property
    def base_path(self) -> str:
        if self.scope == "additional":
            return f"/v2/accounts/card/additional/{self.account_id}/statements"
        return "/v2/accounts/card/primary/statements"


def statement_row(statement: Statement) -> dict[str, Any]:
    return {
        "id": statement.id,
        "start": short_date(statement.period_start),
        "end": short_date(statement.period_end),
        "start_balance": format_money(money_from_minor_units(statement.start_balance)),
        "end_balance": format_money(money_from_minor_units(statement.end_balance)),
    }


async def _list(context: ExecutionContext, args: list[str]) -> None:
    scanned = _list_flags.scan(args)
    scope = StatementScope.from_args(scanned)
    await list_resource(
        context,
        scope.base_path,
        params={"cursor": scanned.get("cursor")},
        item_keys=("items", "statements"),
        model=Statement,
        columns=COLUMNS,
        to_row=statement_row,
        noun="statements",
    )


async def _get(context: ExecutionContext, args: list[str]) -> None:
    scanned = _get_flags.scan(args)
    statement_id = require_id(scanned, "statement ID", "brex statements get <statement-id>")
    scope = StatementScope.from_args(scanned)
    raw = await get_entity(context, f"{scope.base_path}/{statement_id}", wrapper_keys=WRAPPER_KEYS)
    statement = parse_item(Statement, raw)
    row = statement_row(statement)
    context.renderer.render_entity(
        raw,
        "Statement Details",
        [
            ("ID", row["id"]),
            ("Period Start", row["start"]),
            ("Period End", row["end"]),
            ("Start Bal", row["start_balance"]),
            ("End Bal", row["end_balance"]),
            ("Due Date", short_date(statement.due_date)),
            ("Download", or_placeholder(statement.download_url)),
        ],
    )


async def handle(context: ExecutionContext, args: list[str]) -> None:
    verb, rest = split_subcommand(
        args,
        command="statements",
        allowed=(Subcommand.LIST, Subcommand.GET),
        default=Subcommand.LIST,
    )
    if verb is Subcommand.GET:
        await _get(context, rest)
    else:
        await _list(context, rest)


COMMAND = CommandDescriptor(
    name="statements",
    aliases=frozenset({"statement"}),
    usage=USAGE,
    summary="List and view card account statements.",
    handler=handle,
)
