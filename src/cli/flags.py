"""Flag scanner shared by every resource command.

Walks the arguments left to right:
- a registered flag consumes exactly one following token as its value;
- any other token starting with `-` is an unknown flag;
- everything else is a positional, kept in order.

Typed flags validate their value as soon as it is consumed, so a malformed
command line fails before any request is built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Sequence

from core.exceptions import FlagValueError, MissingArgumentError, MissingFlagValueError, UnknownFlagError


@dataclass(frozen=True)
class Flag:
    """A `--name value` option. The base class accepts any non-empty string."""

    name: str
    aliases: tuple[str, ...] = ()
    metavar: str = "value"

    @property
    def dest(self) -> str:
        return self.name.lstrip("-").replace("-", "_")

    def spellings(self) -> tuple[str, ...]:
        return (self.name, *self.aliases)

    def convert(self, raw: str, spelling: str) -> Any:
        if raw == "":
            raise FlagValueError(spelling, "must not be empty")
        return raw


@dataclass(frozen=True)
class PositiveIntFlag(Flag):
    metavar: str = "N"

    def convert(self, raw: str, spelling: str) -> int:
        try:
            value = int(raw, 10)
        except ValueError:
            raise FlagValueError(spelling, "must be a positive integer") from None
        if value <= 0:
            raise FlagValueError(spelling, "must be a positive integer")
        return value


@dataclass(frozen=True)
class ChoiceFlag(Flag):
    """Enumeration flag. Returns the canonical spelling from `choices`."""

    choices: tuple[str, ...] = ()
    case_insensitive: bool = False

    def convert(self, raw: str, spelling: str) -> str:
        for choice in self.choices:
            if raw == choice or (self.case_insensitive and raw.lower() == choice.lower()):
                return choice
        raise FlagValueError(spelling, f"must be one of: {', '.join(self.choices)}")


@dataclass(frozen=True)
class AmountFlag(Flag):
    """Positive decimal amount in major units, kept to two decimal places."""

    metavar: str = "decimal"

    def convert(self, raw: str, spelling: str) -> Decimal:
        try:
            value = Decimal(raw)
        except InvalidOperation:
            raise FlagValueError(spelling, "must be a positive number (e.g. 125.50)") from None
        if not value.is_finite() or value <= 0:
            raise FlagValueError(spelling, "must be a positive number (e.g. 125.50)")
        return value.quantize(Decimal("0.01"))


@dataclass(frozen=True)
class ListFlag(Flag):
    """Comma-separated values; blanks are dropped."""

    metavar: str = "a,b,..."

    def convert(self, raw: str, spelling: str) -> list[str]:
        values = [part.strip() for part in raw.split(",") if part.strip()]
        if not values:
            raise FlagValueError(spelling, "must list at least one value")
        return values


@dataclass(frozen=True)
class ScannedArgs:
    flags: Mapping[str, Any] = field(default_factory=dict)
    positionals: tuple[str, ...] = ()

    def get(self, dest: str, default: Any = None) -> Any:
        return self.flags.get(dest, default)

    def has(self, dest: str) -> bool:
        return dest in self.flags

    def require(self, dest: str, spelling: str) -> Any:
        if dest not in self.flags:
            raise MissingArgumentError(f"Missing required {spelling}")
        return self.flags[dest]

    def positional(self, index: int) -> str | None:
        if index < len(self.positionals):
            return self.positionals[index]
        return None


class FlagScanner:
    def __init__(self, *flags: Flag) -> None:
        self._by_spelling: dict[str, Flag] = {}
        for flag in flags:
            for spelling in flag.spellings():
                if spelling in self._by_spelling:
                    raise ValueError(f"flag declared twice: {spelling}")
                self._by_spelling[spelling] = flag

    def scan(self, args: Sequence[str]) -> ScannedArgs:
        values: dict[str, Any] = {}
        positionals: list[str] = []
        index = 0
        while index < len(args):
            token = args[index]
            flag = self._by_spelling.get(token)
            if flag is not None:
                if index + 1 >= len(args):
                    raise MissingFlagValueError(token)
                values[flag.dest] = flag.convert(args[index + 1], token)
                index += 2
                continue
            if token.startswith("-"):
                raise UnknownFlagError(token)
            positionals.append(token)
            index += 1
        return ScannedArgs(flags=values, positionals=tuple(positionals))


# Flags reused across resource commands.
CURSOR = Flag("--cursor", metavar="cursor")
LIMIT = PositiveIntFlag("--limit")
IDEMPOTENCY_KEY = Flag("--idempotency-key", metavar="key")
