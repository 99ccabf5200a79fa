"""Logging setup for one CLI invocation.

Modules log through `logging.getLogger(__name__)`; this installs the single
stderr handler so log lines never mix with table or JSON output on stdout.
"""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def resolve_level(level: str | int | None, *, verbose: bool = False) -> int:
    if verbose:
        return logging.DEBUG
    if isinstance(level, int):
        return level
    if level:
        value = logging.getLevelName(level.strip().upper())
        if isinstance(value, int):
            return value
    return logging.WARNING


def configure_logging(level: str | int | None = None, *, verbose: bool = False) -> int:
    """Configure the root logger and return the effective level."""

    effective = resolve_level(level, verbose=verbose)
    logging.basicConfig(
        level=effective,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    # httpx/httpcore are chatty at DEBUG; keep them one notch quieter.
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(max(effective, logging.INFO))
    return effective
