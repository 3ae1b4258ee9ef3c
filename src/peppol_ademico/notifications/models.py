"""Pydantic models for Ademico notification payloads.

Every model uses camelCase aliases on the wire (``peppolDocumentType``) and
snake_case attributes in Python. Unknown fields are kept in ``model_extra``
so that newer server payloads survive a decode/encode cycle.

The server sends timestamps such as ``2024-03-01T10:15:30.123`` without a
zone designator; :data:`UtcDatetime` reads those as UTC.

:class:`Notification` is the tagged union. Validating a raw payload with it
runs :func:`~peppol_ademico.notifications.discriminator.select_variant` and
populates at most one of its ten variant fields.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from peppol_ademico.notifications.discriminator import VariantTag, select_variant
from peppol_ademico.timeutil import ensure_utc

logger = logging.getLogger(__name__)

UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
        coerce_numbers_to_str=True,
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialise back to the camelCase wire shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Notification variants ---


class NotificationBase(_WireModel):
    """Fields shared by every notification."""

    notification_id: Optional[str] = None
    event_type: Optional[str] = None
    peppol_document_type: Optional[str] = None
    event_date_time: Optional[UtcDatetime] = None


class _DocumentNotification(NotificationBase):
    transmission_id: Optional[str] = None
    document_id: Optional[str] = None
    document_number: Optional[str] = None
    sender_participant_id: Optional[str] = None
    receiver_participant_id: Optional[str] = None


class _ReceivingMixin(_DocumentNotification):
    received_at: Optional[UtcDatetime] = None
    document_url: Optional[str] = None


class _SendingMixin(_DocumentNotification):
    sent_at: Optional[UtcDatetime] = None
    errors: list[Any] = Field(default_factory=list)


class InvoiceReceivingNotification(_ReceivingMixin):
    """An invoice or credit note arrived for one of our participants."""

    invoice_number: Optional[str] = None


class InvoiceSendingNotification(_SendingMixin):
    """An invoice or credit note was delivered, or its delivery failed."""

    invoice_number: Optional[str] = None


class OrderReceivingNotification(_ReceivingMixin):
    order_number: Optional[str] = None


class OrderSendingNotification(_SendingMixin):
    order_number: Optional[str] = None


class InvoiceResponseReceivingNotification(_ReceivingMixin):
    """The buyer answered one of our invoices (Peppol Invoice Response)."""

    response_code: Optional[str] = None
    referenced_document_id: Optional[str] = None


class InvoiceResponseSendingNotification(_SendingMixin):
    response_code: Optional[str] = None
    referenced_document_id: Optional[str] = None


class MLRReceivingNotification(_ReceivingMixin):
    """A Message Level Response about a document we sent."""

    response_code: Optional[str] = None
    referenced_transmission_id: Optional[str] = None
    issues: list[Any] = Field(default_factory=list)


class IrasSendingNotification(_SendingMixin):
    """Status of a document reported to IRAS (Singapore tax authority)."""

    iras_status: Optional[str] = None


class LegalEntityCorppassC5Notification(NotificationBase):
    legal_entity_id: Optional[str] = None
    uen: Optional[str] = None
    status: Optional[str] = None


class LegalEntityCorppassKycNotification(NotificationBase):
    legal_entity_id: Optional[str] = None
    uen: Optional[str] = None
    kyc_status: Optional[str] = None


# Order in which a populated union reports its variant.
_VARIANT_PRIORITY: tuple[VariantTag, ...] = (
    VariantTag.INVOICE_RECEIVING,
    VariantTag.INVOICE_RESPONSE_RECEIVING,
    VariantTag.INVOICE_RESPONSE_SENDING,
    VariantTag.INVOICE_SENDING,
    VariantTag.IRAS_SENDING,
    VariantTag.LEGAL_ENTITY_CORPPASS_C5,
    VariantTag.LEGAL_ENTITY_CORPPASS_KYC,
    VariantTag.MLR_RECEIVING,
    VariantTag.ORDER_RECEIVING,
    VariantTag.ORDER_SENDING,
)

_STRUCTURED_KEYS = frozenset(
    [tag.value for tag in VariantTag] + [to_camel(tag.value) for tag in VariantTag]
)


# --- Union ---


class Notification(BaseModel):
    """A notification whose concrete shape was chosen by its discriminators.

    At most one variant field is populated. An unrecognised
    ``(eventType, peppolDocumentType)`` pair produces an empty union rather
    than a validation error.

    Example::

        n = Notification.model_validate(
            {"eventType": "DOCUMENT_RECEIVED", "peppolDocumentType": "INVOICE",
             "invoiceNumber": "INV-1"}
        )
        assert n.variant is VariantTag.INVOICE_RECEIVING
        assert n.invoice_receiving.invoice_number == "INV-1"
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    event_type: Optional[str] = None
    peppol_document_type: Optional[str] = None

    invoice_receiving: Optional[InvoiceReceivingNotification] = None
    invoice_sending: Optional[InvoiceSendingNotification] = None
    order_receiving: Optional[OrderReceivingNotification] = None
    order_sending: Optional[OrderSendingNotification] = None
    invoice_response_receiving: Optional[InvoiceResponseReceivingNotification] = None
    invoice_response_sending: Optional[InvoiceResponseSendingNotification] = None
    mlr_receiving: Optional[MLRReceivingNotification] = None
    iras_sending: Optional[IrasSendingNotification] = None
    legal_entity_corppass_c5: Optional[LegalEntityCorppassC5Notification] = None
    legal_entity_corppass_kyc: Optional[LegalEntityCorppassKycNotification] = None

    @model_validator(mode="before")
    @classmethod
    def _route_payload(cls, data: Any) -> Any:
        """Move a flat wire payload into the variant field its discriminators select."""
        if not isinstance(data, Mapping) or _STRUCTURED_KEYS.intersection(data):
            return data

        event_type = data.get("eventType", data.get("event_type"))
        document_type = data.get("peppolDocumentType", data.get("peppol_document_type"))
        routed: dict[str, Any] = {
            "event_type": event_type if isinstance(event_type, str) else None,
            "peppol_document_type": document_type if isinstance(document_type, str) else None,
        }
        tag = select_variant(event_type, document_type)
        if tag is None:
            logger.debug(
                "No notification variant for eventType=%r peppolDocumentType=%r",
                event_type,
                document_type,
            )
            return routed
        routed[tag.value] = dict(data)
        return routed

    @property
    def variant(self) -> Optional[VariantTag]:
        """Tag of the populated variant, or ``None`` for an empty union."""
        for tag in _VARIANT_PRIORITY:
            if getattr(self, tag.value) is not None:
                return tag
        return None

    @property
    def active_variant(self) -> Optional[NotificationBase]:
        """The populated variant model, or ``None`` for an empty union."""
        tag = self.variant
        return getattr(self, tag.value) if tag is not None else None

    @property
    def is_empty(self) -> bool:
        return self.variant is None

    def to_payload(self) -> dict[str, Any]:
        """Flatten back to the wire shape (only the discriminators for an empty union)."""
        active = self.active_variant
        if active is not None:
            return active.to_payload()
        payload: dict[str, Any] = {}
        if self.event_type is not None:
            payload["eventType"] = self.event_type
        if self.peppol_document_type is not None:
            payload["peppolDocumentType"] = self.peppol_document_type
        return payload


# --- Envelopes ---


class Pagination(_WireModel):
    page: Optional[int] = None
    size: Optional[int] = None
    total_elements: Optional[int] = None
    total_pages: Optional[int] = None


class NotificationsResponse(BaseModel):
    """A page of notifications as returned by ``GET /notifications``."""

    model_config = ConfigDict(frozen=True)

    notifications: list[Notification] = Field(default_factory=list)
    pagination: Optional[Pagination] = None


class DocumentSubmissionResult(_WireModel):
    """Response to a UBL document submission."""

    transmission_id: Optional[str] = None
    document_id: Optional[str] = None
    status: Optional[str] = None
