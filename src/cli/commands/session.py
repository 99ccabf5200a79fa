"""`brex login` / `brex logout`: the stored credential.

The token lives in the per-user `.env` (0600) next to the optional base URL
override, where `AppSettings` picks it up on the next invocation.
"""

from __future__ import annotations

import typer

from cli.flags import Flag, FlagScanner
from cli.registry import CommandDescriptor, ExecutionContext
from core.config import BASE_URL_ENV_VAR, TOKEN_ENV_VAR, remove_user_env_vars, write_user_env_vars
from core.exceptions import MissingArgumentError

LOGIN_USAGE = """brex login [--token <token>] [--base-url <url>]"""
LOGOUT_USAGE = """brex logout"""

_login_flags = FlagScanner(
    Flag("--token", metavar="token"),
    Flag("--base-url", metavar="url"),
)
_logout_flags = FlagScanner()


def _prompt_token() -> str:
    return typer.prompt("Brex API token", hide_input=True).strip()


async def login(context: ExecutionContext, args: list[str]) -> None:
    scanned = _login_flags.scan(args)
    token = scanned.get("token")
    if token is None:
        token = _prompt_token()
    if not token:
        raise MissingArgumentError("Missing token. Usage: " + LOGIN_USAGE)

    env_path = write_user_env_vars(
        {
            TOKEN_ENV_VAR: token,
            BASE_URL_ENV_VAR: scanned.get("base_url"),
        }
    )
    context.renderer.render_message(
        f"Saved credentials to {env_path}",
        {"saved": True, "path": str(env_path)},
    )


async def logout(context: ExecutionContext, args: list[str]) -> None:
    _logout_flags.scan(args)
    removed = remove_user_env_vars([TOKEN_ENV_VAR])
    if removed:
        text = "Logged out. Stored token removed."
    else:
        text = "No stored token found."
    context.renderer.render_message(text, {"loggedOut": bool(removed)})


LOGIN = CommandDescriptor(
    name="login",
    usage=LOGIN_USAGE,
    summary="Store an API token for later commands.",
    handler=login,
)

LOGOUT = CommandDescriptor(
    name="logout",
    usage=LOGOUT_USAGE,
    summary="Remove the stored API token.",
    handler=logout,
)
