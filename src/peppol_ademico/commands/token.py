"""Token commands -- obtain and inspect the bearer token.

Provides the ``ademico token`` sub-command group::

    ademico token get       # print a valid token, refreshing if needed
    ademico token status    # show the persisted token's expiry
    ademico token clear     # delete the persisted token
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from peppol_ademico.output import error, format_response, info, print_data, success


token_app = typer.Typer(no_args_is_help=True)


def _config_path(ctx: typer.Context) -> Optional[Path]:
    return ctx.obj.get("config") if ctx.obj else None


def _mask(token: str) -> str:
    if len(token) <= 12:
        return "*" * len(token)
    return f"{token[:6]}...{token[-4:]}"


@token_app.command("get")
def token_get(ctx: typer.Context) -> None:
    """Print a currently valid bearer token to stdout.

    Reuses the persisted token when it is still valid for more than five
    minutes, otherwise performs a client-credentials exchange.

    Example::

        curl -H "Authorization: Bearer $(ademico token get)" ...
    """
    from peppol_ademico.auth import create_token_coordinator
    from peppol_ademico.config import load_settings

    settings = load_settings(_config_path(ctx))
    if not settings.token_endpoint:
        error("No token endpoint configured.")
        info("Set one with: ademico config set token_endpoint <url>")
        raise typer.Exit(code=2)

    coordinator = create_token_coordinator(settings)
    try:
        token = coordinator.get_valid_token()
    finally:
        coordinator.close()
    print_data(token)


@token_app.command("status")
def token_status(ctx: typer.Context) -> None:
    """Show where the token is persisted and when it expires."""
    from peppol_ademico.auth import TokenStore
    from peppol_ademico.config import default_token_path, load_settings
    from peppol_ademico.exceptions import TokenStoreError
    from peppol_ademico.timeutil import format_utc_ms, utc_now

    settings = load_settings(_config_path(ctx))
    if not settings.access_token_path:
        info("Token persistence is disabled.")
        info(f"Enable it with: ademico config set access_token_path {default_token_path()}")
        return

    store = TokenStore(settings.access_token_path)
    try:
        cached = store.read()
    except TokenStoreError as exc:
        error(f"Persisted token is unreadable and will be replaced on next use: {exc}")
        raise typer.Exit(code=1) from None

    if cached is None:
        info(f"No persisted token at {store.path}")
        return

    remaining = cached.expires_at - utc_now()
    format_response(
        {
            "path": str(store.path),
            "token": _mask(cached.value),
            "expires_at": format_utc_ms(cached.expires_at),
            "expired": remaining.total_seconds() <= 0,
            "seconds_remaining": max(int(remaining.total_seconds()), 0),
        }
    )


@token_app.command("clear")
def token_clear(ctx: typer.Context) -> None:
    """Delete the persisted token so the next call performs a fresh exchange."""
    from peppol_ademico.auth import TokenStore
    from peppol_ademico.config import load_settings

    settings = load_settings(_config_path(ctx))
    if not settings.access_token_path:
        info("Token persistence is disabled; nothing to clear.")
        return
    store = TokenStore(settings.access_token_path)
    store.clear()
    success(f"Removed persisted token at {store.path}")
