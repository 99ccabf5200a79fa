"""`brex version`."""

from __future__ import annotations

from cli.flags import FlagScanner
from cli.registry import CommandDescriptor, ExecutionContext
from core.metadata import DISTRIBUTION_NAME, get_version

_flags = FlagScanner()


def version_line() -> str:
    return f"{DISTRIBUTION_NAME} v{get_version()}"


async def handle(context: ExecutionContext, args: list[str]) -> None:
    _flags.scan(args)
    context.renderer.render_message(
        version_line(),
        {"name": DISTRIBUTION_NAME, "version": get_version()},
    )


COMMAND = CommandDescriptor(
    name="version",
    aliases=frozenset({"v"}),
    usage="brex version",
    summary="Print the CLI version.",
    handler=handle,
)
