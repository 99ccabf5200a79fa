"""`brex transfer`: create, inspect and list transfers."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, TypedDict

from cli.commands.common import get_entity, list_resource, or_placeholder, parse_item, require_id, unwrap
from cli.flags import CURSOR, IDEMPOTENCY_KEY, LIMIT, AmountFlag, Flag, FlagScanner, ScannedArgs
from cli.registry import CommandDescriptor, ExecutionContext
from cli.rendering import Column
from cli.subcommands import Subcommand, split_subcommand
from core.domain.models import Transfer
from core.domain.money import DEFAULT_CURRENCY, format_money, money_from_decimal

USAGE = """brex transfer --from <cash-account-id> --to <counterparty-id> --amount <decimal> [--currency <code>] [--idempotency-key <key>]
brex transfer get <transfer-id>
brex transfer list [--cursor <cursor>] [--limit <N>] [--status <status>] [--from-account-id <id>] [--to-counterparty-id <id>]
brex transfer --json"""

WRAPPER_KEYS = ("transfer", "item")

COLUMNS = (
    Column("id", "Transfer ID", 36),
    Column("from", "From Account", 36),
    Column("to", "To Counterparty", 36),
    Column("amount", "Amount", 14),
    Column("status", "Status", 14),
)

_create_flags = FlagScanner(
    Flag("--from", metavar="cash-account-id"),
    Flag("--to", metavar="counterparty-id"),
    AmountFlag("--amount"),
    Flag("--currency", metavar="code"),
    IDEMPOTENCY_KEY,
)
_list_flags = FlagScanner(
    CURSOR,
    LIMIT,
    Flag("--status"),
    Flag("--from-account-id", metavar="id"),
    Flag("--to-counterparty-id", metavar="id"),
)
_get_flags = FlagScanner()


@dataclass(frozen=True)
class TransferOptions:
    from_account_id: str
    to_counterparty_id: str
    amount: Decimal
    currency: str = DEFAULT_CURRENCY
    idempotency_key: str | None = None

    @classmethod
    def from_args(cls, scanned: ScannedArgs) -> "TransferOptions":
        currency = scanned.get("currency")
        return cls(
            from_account_id=scanned.require("from", "--from"),
            to_counterparty_id=scanned.require("to", "--to"),
            amount=scanned.require("amount", "--amount"),
            currency=currency.upper() if currency is not None else DEFAULT_CURRENCY,
            idempotency_key=scanned.get("idempotency_key"),
        )


class _CashAccountRef(TypedDict):
    id: str


class _FromAccount(TypedDict):
    cash_account: _CashAccountRef


class _CounterpartyRef(TypedDict):
    id: str


class _Recipient(TypedDict):
    payment_counterparty: _CounterpartyRef


class _Amount(TypedDict):
    amount: str
    currency: str


class CreateTransferBody(TypedDict):
    from_account: _FromAccount
    recipient: _Recipient
    amount: _Amount
    idempotency_key: str


def build_transfer_body(options: TransferOptions, idempotency_key: str) -> CreateTransferBody:
    return {
        "from_account": {"cash_account": {"id": options.from_account_id}},
        "recipient": {"payment_counterparty": {"id": options.to_counterparty_id}},
        "amount": {"amount": f"{options.amount:.2f}", "currency": options.currency},
        "idempotency_key": idempotency_key,
    }


def transfer_row(transfer: Transfer) -> dict[str, Any]:
    return {
        "id": transfer.id,
        "from": or_placeholder(transfer.from_account_id),
        "to": or_placeholder(transfer.counterparty_id),
        "amount": format_money(money_from_decimal(transfer.amount)),
        "status": or_placeholder(transfer.status),
    }


def _render_transfer(context: ExecutionContext, raw: dict[str, Any], title: str) -> None:
    transfer = parse_item(Transfer, raw)
    row = transfer_row(transfer)
    fields: list[tuple[str, Any]] = [
        ("ID", row["id"]),
        ("From Account", row["from"]),
        ("To Recipient", row["to"]),
        ("Amount", row["amount"]),
        ("Status", row["status"]),
    ]
    if transfer.idempotency_key:
        fields.append(("Idempotency", transfer.idempotency_key))
    context.renderer.render_entity(raw, title, fields)


async def _create(context: ExecutionContext, args: list[str]) -> None:
    options = TransferOptions.from_args(_create_flags.scan(args))
    # The same key goes in the header and in the body.
    key = context.idempotency_keys.resolve(options.idempotency_key)
    body = build_transfer_body(options, key)
    payload = await context.client.mutate("/v1/transfers", body, idempotency_key=key)
    _render_transfer(context, unwrap(payload, WRAPPER_KEYS), "Transfer Created")


async def _get(context: ExecutionContext, args: list[str]) -> None:
    transfer_id = require_id(_get_flags.scan(args), "transfer ID", "brex transfer get <transfer-id>")
    raw = await get_entity(context, f"/v1/transfers/{transfer_id}", wrapper_keys=WRAPPER_KEYS)
    _render_transfer(context, raw, "Transfer Details")


async def _list(context: ExecutionContext, args: list[str]) -> None:
    scanned = _list_flags.scan(args)
    await list_resource(
        context,
        "/v1/transfers",
        params={
            "cursor": scanned.get("cursor"),
            "limit": scanned.get("limit"),
            "status": scanned.get("status"),
            "from_account_id": scanned.get("from_account_id"),
            "to_counterparty_id": scanned.get("to_counterparty_id"),
        },
        item_keys=("items", "transfers"),
        model=Transfer,
        columns=COLUMNS,
        to_row=transfer_row,
        noun="transfers",
    )


async def handle(context: ExecutionContext, args: list[str]) -> None:
    verb, rest = split_subcommand(
        args,
        command="transfer",
        allowed=(Subcommand.CREATE, Subcommand.GET, Subcommand.LIST),
        default=Subcommand.CREATE,
    )
    if verb is Subcommand.GET:
        await _get(context, rest)
    elif verb is Subcommand.LIST:
        await _list(context, rest)
    else:
        await _create(context, rest)


COMMAND = CommandDescriptor(
    name="transfer",
    aliases=frozenset({"transfers"}),
    usage=USAGE,
    summary="Create and inspect transfers.",
    handler=handle,
)
