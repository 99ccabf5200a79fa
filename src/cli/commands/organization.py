"""`brex organization`: company details."""

from __future__ import annotations

from typing import Any

from cli.commands.common import get_entity, or_placeholder, parse_item
from cli.flags import FlagScanner
from cli.registry import CommandDescriptor, ExecutionContext
from core.domain.models import Company, CompanyLocation

USAGE = """brex organization
brex org
brex organization --json"""

_flags = FlagScanner()


def address_lines(location: CompanyLocation) -> list[str]:
    lines = [location.address_line_1 or "-"]
    if location.address_line_2:
        lines.append(location.address_line_2)
    city_region = ", ".join(part for part in (location.city, location.state) if part)
    locality = " ".join(part for part in (city_region, location.postal_code) if part)
    if locality:
        lines.append(locality)
    if location.country:
        lines.append(location.country)
    return lines


async def handle(context: ExecutionContext, args: list[str]) -> None:
    _flags.scan(args)
    raw = await get_entity(context, "/v2/company", wrapper_keys=("company", "item"))
    company = parse_item(Company, raw)

    fields: list[tuple[str, Any]] = [
        ("ID", or_placeholder(company.id)),
        ("Legal Name", or_placeholder(company.legal_name)),
    ]
    if company.dba_name:
        fields.append(("DBA Name", company.dba_name))
    if company.tax_id:
        fields.append(("Tax ID", company.tax_id))
    if company.status:
        fields.append(("Status", company.status))
    location = company.primary_location
    if location is not None:
        fields.append(("Address", "\n         ".join(address_lines(location))))
    context.renderer.render_entity(raw, "Organization Details", fields)


COMMAND = CommandDescriptor(
    name="organization",
    aliases=frozenset({"org"}),
    usage=USAGE,
    summary="Show organization details.",
    handler=handle,
)
