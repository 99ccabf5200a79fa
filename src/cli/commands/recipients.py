"""`brex recipients`: payment counterparties (vendors)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, TypedDict

from cli.commands.common import get_entity, list_resource, or_placeholder, parse_item, require_id, unwrap
from cli.flags import CURSOR, IDEMPOTENCY_KEY, LIMIT, ChoiceFlag, Flag, FlagScanner, ScannedArgs
from cli.registry import CommandDescriptor, ExecutionContext
from cli.rendering import Column
from cli.subcommands import Subcommand, split_subcommand
from core.domain.models import Vendor
from core.exceptions import MissingArgumentError

USAGE = """brex recipients list [--limit <N>] [--cursor <cursor>] [--name <name>]
brex recipients get <vendor-id>
brex recipients create --name <company-name> [--email <email>] [--phone <phone>] [--routing <number> --account <number> --account-type CHECKING|SAVING --account-class BUSINESS|PERSONAL]
brex recipients delete <vendor-id>
brex recipients --json"""

COLUMNS = (
    Column("id", "ID", 36),
    Column("name", "Company Name", 30),
    Column("email", "Email", 25),
    Column("type", "Pay Type", 20),
    Column("instrument", "Instrument ID", 20),
)

ACH_FLAGS = ("--routing", "--account", "--account-type", "--account-class")

_list_flags = FlagScanner(LIMIT, CURSOR, Flag("--name"))
_create_flags = FlagScanner(
    Flag("--name", metavar="company-name"),
    Flag("--email"),
    Flag("--phone"),
    Flag("--routing", metavar="number"),
    Flag("--account", metavar="number"),
    ChoiceFlag("--account-type", choices=("CHECKING", "SAVING"), case_insensitive=True),
    ChoiceFlag("--account-class", choices=("BUSINESS", "PERSONAL"), case_insensitive=True),
    IDEMPOTENCY_KEY,
)
_id_flags = FlagScanner()


@dataclass(frozen=True)
class AchDetails:
    routing_number: str
    account_number: str
    account_type: Literal["CHECKING", "SAVING"]
    account_class: Literal["BUSINESS", "PERSONAL"]


@dataclass(frozen=True)
class RecipientOptions:
    company_name: str
    email: str | None = None
    phone: str | None = None
    ach: AchDetails | None = None
    idempotency_key: str | None = None

    @classmethod
    def from_args(cls, scanned: ScannedArgs) -> "RecipientOptions":
        company_name = scanned.require("name", "--name <company-name>")
        ach_values = [
            scanned.get("routing"),
            scanned.get("account"),
            scanned.get("account_type"),
            scanned.get("account_class"),
        ]
        provided = [value for value in ach_values if value is not None]
        if provided and len(provided) < len(ach_values):
            raise MissingArgumentError(
                f"ACH payment account requires all of: {', '.join(ACH_FLAGS)}"
            )
        ach = AchDetails(*ach_values) if provided else None
        return cls(
            company_name=company_name,
            email=scanned.get("email"),
            phone=scanned.get("phone"),
            ach=ach,
            idempotency_key=scanned.get("idempotency_key"),
        )


class AchAccountDetails(TypedDict):
    type: Literal["ACH"]
    routing_number: str
    account_number: str
    account_type: str
    account_class: str


class PaymentAccountBody(TypedDict):
    details: AchAccountDetails


class CreateVendorBody(TypedDict, total=False):
    company_name: str
    email: str
    phone: str
    payment_accounts: list[PaymentAccountBody]


def build_vendor_body(options: RecipientOptions) -> CreateVendorBody:
    body: CreateVendorBody = {"company_name": options.company_name}
    if options.email is not None:
        body["email"] = options.email
    if options.phone is not None:
        body["phone"] = options.phone
    if options.ach is not None:
        body["payment_accounts"] = [
            {
                "details": {
                    "type": "ACH",
                    "routing_number": options.ach.routing_number,
                    "account_number": options.ach.account_number,
                    "account_type": options.ach.account_type,
                    "account_class": options.ach.account_class,
                }
            }
        ]
    return body


def vendor_row(vendor: Vendor) -> dict[str, Any]:
    details = vendor.payment_accounts[0].details if vendor.payment_accounts else None
    return {
        "id": vendor.id,
        "name": or_placeholder(vendor.company_name),
        "email": or_placeholder(vendor.email),
        "type": or_placeholder(details.type if details else None),
        "instrument": or_placeholder(details.payment_instrument_id if details else None),
    }


def _vendor_fields(vendor: Vendor) -> list[tuple[str, Any]]:
    fields: list[tuple[str, Any]] = [("ID", vendor.id), ("Company Name", or_placeholder(vendor.company_name))]
    if vendor.email:
        fields.append(("Email", vendor.email))
    if vendor.phone:
        fields.append(("Phone", vendor.phone))
    for index, account in enumerate(vendor.payment_accounts, start=1):
        details = account.details
        prefix = f"Payment Account {index}"
        fields.append((f"{prefix} Type", or_placeholder(details.type)))
        if details.payment_instrument_id:
            fields.append((f"{prefix} Instrument", details.payment_instrument_id))
        if details.routing_number:
            fields.append((f"{prefix} Routing", details.routing_number))
        if details.account_number:
            fields.append((f"{prefix} Account", f"...{details.account_number[-4:]}"))
        if details.account_type:
            fields.append((f"{prefix} Account Type", details.account_type))
        if details.beneficiary_name:
            fields.append((f"{prefix} Beneficiary", details.beneficiary_name))
    return fields


async def _list(context: ExecutionContext, args: list[str]) -> None:
    scanned = _list_flags.scan(args)
    await list_resource(
        context,
        "/v1/vendors",
        params={
            "limit": scanned.get("limit"),
            "cursor": scanned.get("cursor"),
            "name": scanned.get("name"),
        },
        model=Vendor,
        columns=COLUMNS,
        to_row=vendor_row,
        noun="vendors",
    )


async def _get(context: ExecutionContext, args: list[str]) -> None:
    vendor_id = require_id(_id_flags.scan(args), "vendor ID", "brex recipients get <vendor-id>")
    raw = await get_entity(context, f"/v1/vendors/{vendor_id}")
    context.renderer.render_entity(raw, "Vendor Details", _vendor_fields(parse_item(Vendor, raw)))


async def _create(context: ExecutionContext, args: list[str]) -> None:
    options = RecipientOptions.from_args(_create_flags.scan(args))
    payload = await context.client.mutate(
        "/v1/vendors",
        build_vendor_body(options),
        idempotency_key=options.idempotency_key,
    )
    raw = unwrap(payload, ("vendor", "item"))
    context.renderer.render_entity(raw, "Vendor Created", _vendor_fields(parse_item(Vendor, raw)))


async def _delete(context: ExecutionContext, args: list[str]) -> None:
    vendor_id = require_id(_id_flags.scan(args), "vendor ID", "brex recipients delete <vendor-id>")
    await context.client.mutate(f"/v1/vendors/{vendor_id}", method="DELETE")
    context.renderer.render_message(f"Vendor {vendor_id} deleted.", {"id": vendor_id, "deleted": True})


async def handle(context: ExecutionContext, args: list[str]) -> None:
    verb, rest = split_subcommand(
        args,
        command="recipients",
        allowed=(Subcommand.LIST, Subcommand.GET, Subcommand.CREATE, Subcommand.DELETE),
        default=Subcommand.LIST,
    )
    handlers = {
        Subcommand.LIST: _list,
        Subcommand.GET: _get,
        Subcommand.CREATE: _create,
        Subcommand.DELETE: _delete,
    }
    await handlers[verb](context, rest)


COMMAND = CommandDescriptor(
    name="recipients",
    aliases=frozenset({"recipient", "recip"}),
    usage=USAGE,
    summary="Manage payment counterparties.",
    handler=handle,
)
