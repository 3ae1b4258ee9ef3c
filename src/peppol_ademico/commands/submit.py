"""Submit command -- upload a UBL document to the Peppol network.

Registered directly on the root app as ``ademico submit``.
"""

from __future__ import annotations

from pathlib import Path

import typer

from peppol_ademico.output import error, format_response, success


def submit_command(
    ctx: typer.Context,
    file: Path = typer.Argument(help="UBL XML document to submit."),
) -> None:
    """Submit a UBL invoice, credit note or order.

    Example::

        ademico submit invoice.xml
    """
    from peppol_ademico.client import AdemicoClient
    from peppol_ademico.config import load_settings

    if not file.is_file():
        error(f"File not found: {file}")
        raise typer.Exit(code=2)

    settings = load_settings(ctx.obj.get("config") if ctx.obj else None)
    with AdemicoClient(settings) as client:
        result = client.submit_ubl(file)
    success(f"Submitted {file.name}")
    format_response(result.to_payload())
