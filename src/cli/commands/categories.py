"""`brex categories`: kept as a command so the user gets a pointer, not an unknown-command error."""

from __future__ import annotations

from cli.registry import CommandDescriptor, ExecutionContext
from core.exceptions import UnsupportedOperationError


async def handle(context: ExecutionContext, args: list[str]) -> None:
    raise UnsupportedOperationError(
        "The Brex APIs currently used by this CLI do not expose a direct transaction categories endpoint.",
        hint="See https://developer.brex.com/ for available resources.",
    )


COMMAND = CommandDescriptor(
    name="categories",
    aliases=frozenset({"category", "cat"}),
    usage="brex categories",
    summary="Not available through the Brex public APIs.",
    handler=handle,
)
