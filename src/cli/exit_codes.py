"""Process exit codes.

Only `cli.main` maps exceptions to these values.
"""

from __future__ import annotations

SUCCESS: int = 0
"""Command completed."""

GENERAL_ERROR: int = 1
"""A known BrexCliError was reported (API, authentication, decode, transport)."""

USAGE_ERROR: int = 2
"""The command line could not be turned into a request."""

UNEXPECTED_ERROR: int = 3
"""An exception outside the BrexCliError hierarchy escaped the command."""

KEYBOARD_INTERRUPT: int = 130
"""Ctrl+C (128 + SIGINT)."""
