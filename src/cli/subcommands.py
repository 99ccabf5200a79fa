"""Closed set of subcommand verbs.

A resource command declares which verbs it accepts and, optionally, the verb
used when the invocation carries none (bare command or a leading flag).
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

from core.exceptions import UnknownSubcommandError


class Subcommand(str, Enum):
    LIST = "list"
    GET = "get"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def split_subcommand(
    args: Sequence[str],
    *,
    command: str,
    allowed: Sequence[Subcommand],
    default: Subcommand | None = None,
) -> tuple[Subcommand, list[str]]:
    """Split `args` into the selected verb and the remaining arguments."""

    names = [verb.value for verb in allowed]
    if not args or args[0].startswith("-"):
        if default is None:
            raise UnknownSubcommandError(command, None, names)
        return default, list(args)

    token = args[0]
    for verb in allowed:
        if token == verb.value:
            return verb, list(args[1:])
    raise UnknownSubcommandError(command, token, names)
