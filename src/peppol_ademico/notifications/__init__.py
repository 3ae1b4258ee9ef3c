"""Notification payload models and the discriminator-driven decoder.

- :func:`select_variant` -- map ``(eventType, peppolDocumentType)`` to a
  :class:`VariantTag` using an ordered, case-insensitive rule table.
- :func:`decode_notification` / :func:`decode_notifications_response` --
  turn raw JSON into :class:`Notification` / :class:`NotificationsResponse`.
"""

from peppol_ademico.notifications.decoder import (
    decode_notification,
    decode_notifications_response,
)
from peppol_ademico.notifications.discriminator import (
    EventType,
    PeppolDocumentType,
    VariantTag,
    select_variant,
)
from peppol_ademico.notifications.models import (
    DocumentSubmissionResult,
    InvoiceReceivingNotification,
    InvoiceResponseReceivingNotification,
    InvoiceResponseSendingNotification,
    InvoiceSendingNotification,
    IrasSendingNotification,
    LegalEntityCorppassC5Notification,
    LegalEntityCorppassKycNotification,
    MLRReceivingNotification,
    Notification,
    NotificationBase,
    NotificationsResponse,
    OrderReceivingNotification,
    OrderSendingNotification,
    Pagination,
)

__all__ = [
    "DocumentSubmissionResult",
    "EventType",
    "InvoiceReceivingNotification",
    "InvoiceResponseReceivingNotification",
    "InvoiceResponseSendingNotification",
    "InvoiceSendingNotification",
    "IrasSendingNotification",
    "LegalEntityCorppassC5Notification",
    "LegalEntityCorppassKycNotification",
    "MLRReceivingNotification",
    "Notification",
    "NotificationBase",
    "NotificationsResponse",
    "OrderReceivingNotification",
    "OrderSendingNotification",
    "Pagination",
    "PeppolDocumentType",
    "VariantTag",
    "decode_notification",
    "decode_notifications_response",
    "select_variant",
]
