"""`brex doctor`: environment diagnostics."""

from __future__ import annotations

from rich.table import Table

from cli.flags import FlagScanner
from cli.registry import CommandDescriptor, ExecutionContext
from core.config import get_user_env_file
from core.domain.http import ApiRequest
from core.exceptions import BrexCliError
from core.metadata import get_version

CONNECTIVITY_PATH = "/v2/company"

_flags = FlagScanner()


async def _check_api(context: ExecutionContext) -> tuple[str, str]:
    """Authenticated round trip; reports the failure instead of raising it."""

    if not context.client.is_authenticated:
        return "SKIP", "No token configured"
    try:
        await context.client.execute(ApiRequest(path=CONNECTIVITY_PATH))
    except BrexCliError as exc:
        return "FAIL", str(exc)
    return "OK", f"GET {CONNECTIVITY_PATH}"


async def collect_checks(context: ExecutionContext) -> list[dict[str, str]]:
    settings = context.client.settings
    env_file = get_user_env_file()
    checks: list[dict[str, str]] = [
        {"check": "Version", "status": "OK", "details": get_version()},
    ]

    if context.client.is_authenticated:
        checks.append({"check": "API token", "status": "OK", "details": "Token configured"})
    else:
        checks.append({"check": "API token", "status": "MISSING", "details": "Run 'brex login' or set BREX_TOKEN"})
    checks.append({"check": "Base URL", "status": "OK", "details": context.client.base_url})
    checks.append({"check": "Timeout", "status": "OK", "details": f"{settings.http_timeout_seconds:g}s"})
    checks.append(
        {
            "check": "User config",
            "status": "OK" if env_file.exists() else "ABSENT",
            "details": str(env_file),
        }
    )

    status, details = await _check_api(context)
    checks.append({"check": "API connectivity", "status": status, "details": details})
    return checks


async def handle(context: ExecutionContext, args: list[str]) -> None:
    _flags.scan(args)
    checks = await collect_checks(context)

    renderer = context.renderer
    if renderer.is_json:
        renderer.emit_json({"checks": checks})
        return

    table = Table(title="brex-cli Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")
    for check in checks:
        table.add_row(check["check"], check["status"], check["details"])
    renderer.console.print(table)

    if any(check["status"] == "FAIL" for check in checks):
        renderer.console.print("\n[yellow]Note:[/yellow] Run with --verbose to see the HTTP exchange.")


COMMAND = CommandDescriptor(
    name="doctor",
    usage="brex doctor",
    summary="Check configuration and API connectivity.",
    handler=handle,
)
