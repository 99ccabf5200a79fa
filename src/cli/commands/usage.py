"""`brex help [command]`."""

from __future__ import annotations

from cli.registry import CommandDescriptor, CommandRegistry, ExecutionContext, Handler
from core.exceptions import UnknownCommandError


def make_handler(registry: CommandRegistry) -> Handler:
    async def handle(context: ExecutionContext, args: list[str]) -> None:
        if not args:
            context.renderer.line(registry.usage_summary())
            return
        descriptor = registry.resolve(args[0])
        if descriptor is None:
            raise UnknownCommandError(args[0])
        context.renderer.line(f"{descriptor.name}: {descriptor.summary}")
        if descriptor.aliases:
            context.renderer.line(f"Aliases: {', '.join(sorted(descriptor.aliases))}")
        context.renderer.line()
        context.renderer.line(descriptor.usage)

    return handle


def make_descriptor(registry: CommandRegistry) -> CommandDescriptor:
    return CommandDescriptor(
        name="help",
        usage="brex help [command]",
        summary="List commands or show one command's usage.",
        handler=make_handler(registry),
    )
