"""Notification commands -- list notifications and decode saved payloads.

Provides the ``ademico notifications`` sub-command group::

    ademico notifications list --page 0 --size 20
    ademico notifications decode payload.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer

from peppol_ademico.output import (
    OutputFormat,
    error,
    format_response,
    get_output,
    info,
    print_table,
)


notifications_app = typer.Typer(no_args_is_help=True)

_HEADERS = ["ID", "Event", "Document type", "Variant", "Document"]


def _rows(notifications: list) -> list[list[str]]:
    rows = []
    for n in notifications:
        variant = n.active_variant
        rows.append(
            [
                str(getattr(variant, "notification_id", None) or ""),
                n.event_type or "",
                n.peppol_document_type or "",
                n.variant.value if n.variant is not None else "(unrecognised)",
                str(getattr(variant, "document_id", None) or ""),
            ]
        )
    return rows


def _render(notifications: list, pagination: Any = None) -> None:
    output = get_output()
    if output.format == OutputFormat.JSON:
        data: dict[str, Any] = {"notifications": [n.to_payload() for n in notifications]}
        if pagination is not None:
            data["pagination"] = pagination.to_payload()
        format_response(data)
        return

    print_table(_HEADERS, _rows(notifications), title="Notifications")
    if pagination is not None and pagination.total_pages is not None:
        info(f"Page {pagination.page} of {pagination.total_pages} ({pagination.total_elements} total)")


@notifications_app.command("list")
def notifications_list(
    ctx: typer.Context,
    page: Optional[int] = typer.Option(None, "--page", help="Zero-based page index."),
    size: Optional[int] = typer.Option(None, "--size", help="Page size."),
) -> None:
    """Fetch a page of notifications from the API."""
    from peppol_ademico.client import AdemicoClient
    from peppol_ademico.config import load_settings

    settings = load_settings(ctx.obj.get("config") if ctx.obj else None)
    with AdemicoClient(settings) as client:
        response = client.list_notifications(page=page, size=size)
    _render(response.notifications, response.pagination)


@notifications_app.command("decode")
def notifications_decode(
    file: Path = typer.Argument(help="JSON file with a notification, a list, or a page envelope."),
) -> None:
    """Decode a saved notification payload without calling the API.

    Unrecognised ``eventType`` / ``peppolDocumentType`` pairs are shown as
    ``(unrecognised)`` instead of failing.
    """
    from pydantic import ValidationError

    from peppol_ademico.notifications import (
        decode_notification,
        decode_notifications_response,
    )

    try:
        payload = json.loads(file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        error(f"Cannot read {file}: {exc}")
        raise typer.Exit(code=2) from None

    try:
        if isinstance(payload, dict) and "notifications" in payload:
            response = decode_notifications_response(payload)
            _render(response.notifications, response.pagination)
        elif isinstance(payload, list):
            _render([decode_notification(item) for item in payload])
        else:
            _render([decode_notification(payload)])
    except ValidationError as exc:
        error(f"Invalid notification payload: {exc}")
        raise typer.Exit(code=2) from None
