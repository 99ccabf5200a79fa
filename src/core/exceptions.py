"""Exception hierarchy for brex-cli.

Every error that crosses a layer boundary inherits from
:class:`BrexCliError`. Raw ``httpx`` exceptions never leave the adapters
layer; they are re-raised as one of the types below.

Hierarchy
---------
BrexCliError
├── UsageError
│   ├── UnknownCommandError
│   ├── UnknownSubcommandError
│   ├── UnknownFlagError
│   ├── MissingFlagValueError
│   ├── FlagValueError
│   └── MissingArgumentError
├── DuplicateCommandError
├── NotAuthenticatedError
├── ApiError
├── DecodeError
├── TransportError
├── UnsupportedOperationError
└── ConfigurationError
"""

from __future__ import annotations

from typing import Any


class BrexCliError(Exception):
    """Base exception for all brex-cli errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint


# --- Usage (local, never reach the network) ---------------------------------

class UsageError(BrexCliError):
    """Raised when the command line cannot be turned into a request."""


class UnknownCommandError(UsageError):
    def __init__(self, name: str | None) -> None:
        if name:
            message = f"Unknown command: {name}"
        else:
            message = "Missing command."
        super().__init__(message, hint="Run 'brex help' to list available commands.")
        self.name: str | None = name


class UnknownSubcommandError(UsageError):
    def __init__(self, command: str, subcommand: str | None, allowed: list[str]) -> None:
        choices = ", ".join(allowed)
        if subcommand:
            message = f"Unknown subcommand for {command}: {subcommand}. Use one of: {choices}"
        else:
            message = f"Missing subcommand for {command}. Use one of: {choices}"
        super().__init__(message)
        self.command = command
        self.subcommand = subcommand


class UnknownFlagError(UsageError):
    def __init__(self, flag: str) -> None:
        super().__init__(f"Unknown option: {flag}")
        self.flag = flag


class MissingFlagValueError(UsageError):
    def __init__(self, flag: str) -> None:
        super().__init__(f"{flag} requires a value")
        self.flag = flag


class FlagValueError(UsageError):
    """A typed flag received a value outside its domain."""

    def __init__(self, flag: str, expected: str) -> None:
        super().__init__(f"{flag} {expected}")
        self.flag = flag
        self.expected = expected


class MissingArgumentError(UsageError):
    """A required positional argument or flag was not provided."""


# --- Registry ---------------------------------------------------------------

class DuplicateCommandError(BrexCliError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Command name or alias already registered: {name}")
        self.name = name


# --- Gateway ----------------------------------------------------------------

class NotAuthenticatedError(BrexCliError):
    def __init__(self) -> None:
        super().__init__(
            "Not authenticated.",
            hint="Run 'brex login' first or set BREX_TOKEN.",
        )


class ApiError(BrexCliError):
    """Non-2xx response from the API."""

    def __init__(
        self,
        http_status: int,
        error_code: str,
        message: str | None = None,
        raw_details: Any | None = None,
    ) -> None:
        super().__init__(message or error_code)
        self.http_status = http_status
        self.error_code = error_code
        self.message = message
        self.raw_details = raw_details

    def __str__(self) -> str:
        text = self.message or self.error_code
        return f"API error {self.http_status} ({self.error_code}): {text}"


class DecodeError(BrexCliError):
    """A successful response carried a body that is not the expected JSON."""


class TransportError(BrexCliError):
    """The request never produced an HTTP response (connection, timeout)."""


class UnsupportedOperationError(BrexCliError):
    """The API does not expose what the command asked for."""


class ConfigurationError(BrexCliError):
    """Settings from the environment or a `.env` file are invalid."""
