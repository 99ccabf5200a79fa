"""Built-in commands.

`build_registry` is the only place that decides which commands exist and in
which order `brex help` lists them.
"""

from __future__ import annotations

from cli.commands import (
    accounts,
    cards,
    categories,
    doctor,
    events,
    organization,
    recipients,
    session,
    statements,
    transactions,
    transfer,
    usage,
    users,
    version,
    webhooks,
)
from cli.registry import CommandRegistry


def build_registry() -> CommandRegistry:
    registry = CommandRegistry()
    for descriptor in (
        accounts.COMMAND,
        transactions.COMMAND,
        statements.COMMAND,
        transfer.COMMAND,
        recipients.COMMAND,
        webhooks.COMMAND,
        users.COMMAND,
        cards.COMMAND,
        events.COMMAND,
        categories.COMMAND,
        organization.COMMAND,
        session.LOGIN,
        session.LOGOUT,
        doctor.COMMAND,
        version.COMMAND,
    ):
        registry.register(descriptor)
    registry.register(usage.make_descriptor(registry))
    return registry


__all__ = ["build_registry"]
