"""Application configuration.

Centralises environment variables (pydantic-settings) so the CLI and the
adapters read the credential, base URL and HTTP policy the same way.

Lookup order for every field: process environment, `./.env`, then the
per-user `.env` written by `brex login`.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.exceptions import ConfigurationError
from core.metadata import DISTRIBUTION_NAME, get_version

APP_DIR_NAME = DISTRIBUTION_NAME
DEFAULT_API_BASE_URL = "https://platform.brexapis.com"

TOKEN_ENV_VAR = "BREX_TOKEN"
BASE_URL_ENV_VAR = "BREX_API_BASE_URL"


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no extra dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / APP_DIR_NAME
    return Path.home() / ".config" / APP_DIR_NAME


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def _read_env_file(env_path: Path) -> dict[str, str]:
    if not env_path.exists():
        return {}
    return _parse_env_lines(env_path.read_text(encoding="utf-8"))


def _write_env_file(env_path: Path, values: dict[str, str]) -> None:
    env_path.parent.mkdir(parents=True, exist_ok=True)
    lines = ["# brex-cli user config (.env)"]
    for key in sorted(values.keys()):
        lines.append(f"{key}={values[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    # The file holds a bearer token.
    os.chmod(env_path, 0o600)


def write_user_env_vars(values: dict[str, str | None], *, env_path: Path | None = None) -> Path:
    """Write or update variables in the user's global .env."""

    env_path = env_path or get_user_env_file()
    existing = _read_env_file(env_path)
    existing.update({k: v for k, v in values.items() if v is not None})
    _write_env_file(env_path, existing)
    return env_path


def remove_user_env_vars(keys: list[str], *, env_path: Path | None = None) -> list[str]:
    """Delete `keys` from the user's .env. Returns the keys that were present."""

    env_path = env_path or get_user_env_file()
    existing = _read_env_file(env_path)
    removed = [key for key in keys if key in existing]
    if not removed:
        return []
    for key in removed:
        del existing[key]
    _write_env_file(env_path, existing)
    return removed


class AppSettings(BaseSettings):
    """Central configuration for one CLI invocation.

    `token` and `api_base_url` are the only two things the command core needs
    from persisted state: a credential (or nothing) and a base URL (or the
    default).
    """

    model_config = SettingsConfigDict(
        env_prefix="BREX_",
        extra="ignore",
        case_sensitive=False,
        # Project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    token: str | None = Field(
        default=None,
        description="Bearer token for the Brex API.",
    )
    api_base_url: str = Field(
        default=DEFAULT_API_BASE_URL,
        min_length=8,
        description="Base URL; request paths are appended to it.",
    )
    http_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Timeout per request (seconds).",
    )
    user_agent: str = Field(
        default_factory=lambda: f"{DISTRIBUTION_NAME}/{get_version()}",
        min_length=1,
        description="User-Agent sent with every request.",
    )
    log_level: str = Field(
        default="WARNING",
        description="Logging level when --verbose is not given.",
    )

    def has_token(self) -> bool:
        return bool((self.token or "").strip())


def load_settings(**overrides: Any) -> AppSettings:
    """Build `AppSettings`, reporting invalid values as `ConfigurationError`.

    The user `.env` path is resolved per call so `XDG_CONFIG_HOME` changes are
    honoured.
    """

    overrides.setdefault("_env_file", (".env", str(get_user_env_file())))

    try:
        return AppSettings(**overrides)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'settings'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ConfigurationError(
            f"Invalid configuration: {problems}",
            hint="Check BREX_* environment variables and the .env files.",
        ) from exc
