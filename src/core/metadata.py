"""Distribution metadata."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

DISTRIBUTION_NAME = "brex-cli"


def get_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        # Running from a source checkout (python -m main) without an install.
        return "0.0.0+source"
