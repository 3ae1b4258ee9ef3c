"""Decode notification payloads into typed models.

Decoding happens in two steps: the discriminator table picks a variant from
``(eventType, peppolDocumentType)``, then that variant's model validates the
whole payload. A payload that matches no rule decodes to an empty
:class:`~peppol_ademico.notifications.models.Notification` instead of
failing, so new server-side event types do not break existing clients.

The decoder holds no state and is safe to call from any thread or task.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from peppol_ademico.notifications.models import Notification, NotificationsResponse


def decode_notification(payload: Mapping[str, Any]) -> Notification:
    """Decode a single notification payload.

    Args:
        payload: The JSON object received from the API.

    Returns:
        A :class:`Notification` with the selected variant populated, or an
        empty union when the discriminators are not recognised.

    Raises:
        pydantic.ValidationError: If *payload* is not an object, or a
            recognised variant carries fields of the wrong type.
    """
    return Notification.model_validate(payload)


def decode_notifications_response(payload: Mapping[str, Any]) -> NotificationsResponse:
    """Decode a ``{"notifications": [...], "pagination": {...}}`` envelope.

    Each element of ``notifications`` goes through :func:`decode_notification`.
    """
    return NotificationsResponse.model_validate(payload)
