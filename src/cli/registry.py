"""Command registry and router.

The registry maps every command name and alias to one `CommandDescriptor`.
The router takes the leading argument, resolves it, builds a fresh
`ExecutionContext` and awaits the handler with the remaining arguments.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Sequence

from adapters.gateway_client import GatewayClient
from cli.rendering import Renderer
from core.exceptions import DuplicateCommandError, UnknownCommandError
from core.services.idempotency import IdempotencyKeyProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionContext:
    """Everything a handler needs for one invocation.

    Passed by reference to the handler; nothing in it is reassigned after
    the router builds it.
    """

    client: GatewayClient
    renderer: Renderer
    idempotency_keys: IdempotencyKeyProvider

    async def aclose(self) -> None:
        await self.client.aclose()


Handler = Callable[[ExecutionContext, list[str]], Awaitable[None]]
ContextFactory = Callable[[], ExecutionContext]


@dataclass(frozen=True)
class CommandDescriptor:
    name: str
    usage: str
    handler: Handler
    aliases: frozenset[str] = field(default_factory=frozenset)
    summary: str = ""

    def names(self) -> tuple[str, ...]:
        return (self.name, *sorted(self.aliases))


GLOBAL_OPTIONS_NOTE = (
    "",
    "Global options: --json, --verbose, --version (recognised anywhere on the line).",
    "A bare -- ends option parsing and is dropped; put it before a value that starts",
    "with --, e.g. brex users --cursor -- --json.",
)


class CommandRegistry:
    def __init__(self) -> None:
        self._by_name: dict[str, CommandDescriptor] = {}
        self._ordered: list[CommandDescriptor] = []

    def register(self, descriptor: CommandDescriptor) -> CommandDescriptor:
        for name in descriptor.names():
            if name in self._by_name:
                raise DuplicateCommandError(name)
        for name in descriptor.names():
            self._by_name[name] = descriptor
        self._ordered.append(descriptor)
        return descriptor

    def resolve(self, name: str) -> CommandDescriptor | None:
        return self._by_name.get(name)

    def commands(self) -> list[CommandDescriptor]:
        return list(self._ordered)

    def usage_summary(self) -> str:
        width = max((len(d.name) for d in self._ordered), default=0)
        lines = ["Usage: brex <command> [subcommand] [options] [--json]", "", "Commands:"]
        for descriptor in self._ordered:
            lines.append(f"  {descriptor.name.ljust(width)}  {descriptor.summary}")
        lines.extend(GLOBAL_OPTIONS_NOTE)
        return "\n".join(lines)


class Router:
    def __init__(self, registry: CommandRegistry, context_factory: ContextFactory) -> None:
        self.registry = registry
        self._context_factory = context_factory

    async def dispatch(self, argv: Sequence[str]) -> None:
        name = argv[0] if argv else None
        descriptor = self.registry.resolve(name) if name else None
        if descriptor is None:
            raise UnknownCommandError(name)

        logger.debug("dispatch %s", descriptor.name)
        context = self._context_factory()
        try:
            await descriptor.handler(context, list(argv[1:]))
        finally:
            await context.aclose()
