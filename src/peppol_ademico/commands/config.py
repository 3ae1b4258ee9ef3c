"""Config commands -- view and modify the settings file.

Provides the ``ademico config`` sub-command group for reading, updating,
and resetting :class:`~peppol_ademico.models.AdemicoSettings`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from peppol_ademico.output import error, format_response, info, success


config_app = typer.Typer(no_args_is_help=True)


def _config_path(ctx: typer.Context) -> Optional[Path]:
    return ctx.obj.get("config") if ctx.obj else None


@config_app.command("show")
def config_show(ctx: typer.Context) -> None:
    """Show the effective settings (file plus environment overrides).

    Example::

        ademico config show --json
    """
    from peppol_ademico.config import load_settings, settings_path

    path = _config_path(ctx)
    settings = load_settings(path)
    info(f"Settings file: {settings_path(path)}")
    format_response(settings.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(help="Setting name, e.g. 'token_endpoint'."),
    value: str = typer.Argument(help="Value to set ('none' clears optional settings)."),
) -> None:
    """Set a single setting and save the file.

    The value is validated against
    :class:`~peppol_ademico.models.AdemicoSettings` before saving.

    Example::

        ademico config set token_endpoint https://auth.example.com/oauth2/token
        ademico config set access_token_path ~/.local/share/peppol-ademico/access_token
    """
    from peppol_ademico.config import load_settings, save_settings
    from peppol_ademico.models import AdemicoSettings

    path = _config_path(ctx)
    data = load_settings(path, apply_env=False).model_dump(mode="json")
    if key not in data:
        error(f"Unknown setting: {key}")
        raise typer.Exit(code=2)

    coerced: Optional[str] = value
    if value.lower() == "none" and not AdemicoSettings.model_fields[key].is_required():
        coerced = None
    data[key] = coerced

    try:
        new_settings = AdemicoSettings.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    written = save_settings(new_settings, path)
    success(f"Set {key} = {coerced} ({written})")


@config_app.command("reset")
def config_reset(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation."),
) -> None:
    """Reset the settings file to defaults."""
    from peppol_ademico.config import save_settings
    from peppol_ademico.models import AdemicoSettings

    if not force and not typer.confirm("Reset all settings to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_settings(AdemicoSettings(), _config_path(ctx))
    success("Settings reset to defaults.")
