"""Process entry point (Typer).

Typer owns the global options (`--json`, `--verbose`, `--version`); every
other token is forwarded untouched to the command router, which does its own
flag scanning per command.

`main()` is the only error boundary: it turns exceptions into one `Error:`
line on stderr and an exit code.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Sequence

import httpx
import typer
from rich.console import Console
from rich.markup import escape

from adapters.gateway_client import GatewayClient
from cli import exit_codes
from cli.commands import build_registry
from cli.commands.version import version_line
from cli.logging_config import configure_logging
from cli.registry import CommandRegistry, ContextFactory, ExecutionContext, Router
from cli.rendering import OutputMode, Renderer
from core.config import AppSettings, load_settings
from core.exceptions import BrexCliError, UnknownCommandError, UsageError
from core.services.idempotency import IdempotencyKeyProvider

logger = logging.getLogger(__name__)

HELP_TOKENS = frozenset({"-h", "--help"})

app = typer.Typer(add_completion=False)

PASSTHROUGH_CONTEXT = {
    "allow_extra_args": True,
    "ignore_unknown_options": True,
    "help_option_names": [],
}


def make_context_factory(
    settings: AppSettings,
    renderer: Renderer,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ContextFactory:
    def factory() -> ExecutionContext:
        keys = IdempotencyKeyProvider()
        client = GatewayClient(
            token=settings.token,
            base_url=settings.api_base_url,
            settings=settings,
            idempotency_keys=keys,
            transport=transport,
        )
        return ExecutionContext(client=client, renderer=renderer, idempotency_keys=keys)

    return factory


def _report(err_console: Console, exc: BrexCliError) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
    if exc.hint:
        err_console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")


def main(
    argv: Sequence[str],
    *,
    json_output: bool = False,
    verbose: bool = False,
    settings: AppSettings | None = None,
    console: Console | None = None,
    err_console: Console | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Run one invocation and return the process exit code."""

    err_console = err_console or Console(stderr=True, highlight=False)
    argv = list(argv)
    if not argv or argv[0] in HELP_TOKENS:
        argv = ["help", *argv[1:]]

    registry: CommandRegistry = build_registry()
    try:
        settings = settings or load_settings()
        configure_logging(settings.log_level, verbose=verbose)
        renderer = Renderer(OutputMode.JSON if json_output else OutputMode.TABLE, console)
        router = Router(registry, make_context_factory(settings, renderer, transport=transport))
        asyncio.run(router.dispatch(argv))
    except UnknownCommandError as exc:
        _report(err_console, exc)
        err_console.print()
        err_console.print(registry.usage_summary(), markup=False)
        return exit_codes.USAGE_ERROR
    except UsageError as exc:
        _report(err_console, exc)
        return exit_codes.USAGE_ERROR
    except BrexCliError as exc:
        _report(err_console, exc)
        return exit_codes.GENERAL_ERROR
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Aborted by user.[/yellow]")
        return exit_codes.KEYBOARD_INTERRUPT
    except Exception as exc:  # noqa: BLE001
        logger.debug("unexpected error", exc_info=True)
        err_console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Run with --verbose for details.\n"
            f"  {type(exc).__name__}: {escape(str(exc))}"
        )
        return exit_codes.UNEXPECTED_ERROR
    return exit_codes.SUCCESS


@app.command(context_settings=PASSTHROUGH_CONTEXT)
def brex(
    args: Optional[List[str]] = typer.Argument(None, metavar="COMMAND [ARGS]..."),
    json_output: bool = typer.Option(False, "--json", help="Print raw JSON instead of tables."),
    verbose: bool = typer.Option(False, "--verbose", help="Log HTTP activity to stderr."),
    show_version: bool = typer.Option(False, "--version", help="Print the version and exit."),
) -> None:
    """Brex API from the terminal."""

    if show_version:
        typer.echo(version_line())
        raise typer.Exit(exit_codes.SUCCESS)
    raise typer.Exit(main(args or [], json_output=json_output, verbose=verbose))


def run() -> None:
    """Console-script entry point (`brex`)."""

    app()
