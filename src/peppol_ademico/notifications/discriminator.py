"""Discriminator table for notification payloads.

Notifications carry no explicit type tag. Their concrete shape follows from
two string fields, ``eventType`` and ``peppolDocumentType``, compared
case-insensitively against the rules below. Rules are checked in order and
the first match wins:

====  ===========================================  =======================  ===========================
 #    eventType                                    peppolDocumentType       variant
====  ===========================================  =======================  ===========================
 1    DOCUMENT_RECEIVED                            INVOICE, CREDIT_NOTE     INVOICE_RECEIVING
 2    DOCUMENT_RECEIVED                            ORDER                    ORDER_RECEIVING
 3    DOCUMENT_SENT, DOCUMENT_SEND_FAILED          INVOICE, CREDIT_NOTE     INVOICE_SENDING
 4    DOCUMENT_SENT, DOCUMENT_SEND_FAILED          ORDER                    ORDER_SENDING
 5    INVOICE_RESPONSE_RECEIVED                    (any)                    INVOICE_RESPONSE_RECEIVING
 6    INVOICE_RESPONSE_SENT, ..._SEND_FAILED       (any)                    INVOICE_RESPONSE_SENDING
 7    MLR_RECEIVED                                 (any)                    MLR_RECEIVING
====  ===========================================  =======================  ===========================

The IRAS and Corppass variants exist in the notification model but no rule
selects them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, NamedTuple, Optional


class EventType(str, Enum):
    """Known values of the ``eventType`` field."""

    DOCUMENT_RECEIVED = "DOCUMENT_RECEIVED"
    DOCUMENT_SENT = "DOCUMENT_SENT"
    DOCUMENT_SEND_FAILED = "DOCUMENT_SEND_FAILED"
    INVOICE_RESPONSE_RECEIVED = "INVOICE_RESPONSE_RECEIVED"
    INVOICE_RESPONSE_SENT = "INVOICE_RESPONSE_SENT"
    INVOICE_RESPONSE_SEND_FAILED = "INVOICE_RESPONSE_SEND_FAILED"
    MLR_RECEIVED = "MLR_RECEIVED"


class PeppolDocumentType(str, Enum):
    """Known values of the ``peppolDocumentType`` field."""

    INVOICE = "INVOICE"
    CREDIT_NOTE = "CREDIT_NOTE"
    ORDER = "ORDER"
    INVOICE_RESPONSE = "INVOICE_RESPONSE"
    MLR = "MLR"


class VariantTag(str, Enum):
    """The concrete notification shapes a payload can decode into."""

    INVOICE_RECEIVING = "invoice_receiving"
    INVOICE_SENDING = "invoice_sending"
    ORDER_RECEIVING = "order_receiving"
    ORDER_SENDING = "order_sending"
    INVOICE_RESPONSE_RECEIVING = "invoice_response_receiving"
    INVOICE_RESPONSE_SENDING = "invoice_response_sending"
    MLR_RECEIVING = "mlr_receiving"
    IRAS_SENDING = "iras_sending"
    LEGAL_ENTITY_CORPPASS_C5 = "legal_entity_corppass_c5"
    LEGAL_ENTITY_CORPPASS_KYC = "legal_entity_corppass_kyc"


class _Rule(NamedTuple):
    event_types: frozenset[str]
    # None means the document type is not consulted
    document_types: Optional[frozenset[str]]
    variant: VariantTag

    def matches(self, event_type: str, document_type: Optional[str]) -> bool:
        if event_type not in self.event_types:
            return False
        if self.document_types is None:
            return True
        return document_type is not None and document_type in self.document_types


def _keys(*members: Enum) -> frozenset[str]:
    return frozenset(m.value.casefold() for m in members)


_INVOICE_DOCUMENTS = _keys(PeppolDocumentType.INVOICE, PeppolDocumentType.CREDIT_NOTE)
_ORDER_DOCUMENTS = _keys(PeppolDocumentType.ORDER)
_RECEIVED = _keys(EventType.DOCUMENT_RECEIVED)
_SENT = _keys(EventType.DOCUMENT_SENT, EventType.DOCUMENT_SEND_FAILED)

RULES: tuple[_Rule, ...] = (
    _Rule(_RECEIVED, _INVOICE_DOCUMENTS, VariantTag.INVOICE_RECEIVING),
    _Rule(_RECEIVED, _ORDER_DOCUMENTS, VariantTag.ORDER_RECEIVING),
    _Rule(_SENT, _INVOICE_DOCUMENTS, VariantTag.INVOICE_SENDING),
    _Rule(_SENT, _ORDER_DOCUMENTS, VariantTag.ORDER_SENDING),
    _Rule(_keys(EventType.INVOICE_RESPONSE_RECEIVED), None, VariantTag.INVOICE_RESPONSE_RECEIVING),
    _Rule(
        _keys(EventType.INVOICE_RESPONSE_SENT, EventType.INVOICE_RESPONSE_SEND_FAILED),
        None,
        VariantTag.INVOICE_RESPONSE_SENDING,
    ),
    _Rule(_keys(EventType.MLR_RECEIVED), None, VariantTag.MLR_RECEIVING),
)
"""Ordered discriminator rules; the first matching rule wins."""


def _normalise(value: Any) -> Optional[str]:
    if isinstance(value, Enum):
        value = value.value
    if not isinstance(value, str):
        return None
    return value.casefold()


def select_variant(event_type: Any, document_type: Any) -> Optional[VariantTag]:
    """Pick the notification variant for an ``(eventType, peppolDocumentType)`` pair.

    Comparison is case-insensitive but otherwise exact: surrounding
    whitespace is not trimmed. Values that are missing or not strings never
    match.

    Returns:
        The :class:`VariantTag` of the first matching rule, or ``None`` if no
        rule matches. Never raises.

    Example::

        >>> select_variant("document_received", "Invoice")
        <VariantTag.INVOICE_RECEIVING: 'invoice_receiving'>
        >>> select_variant("UNKNOWN_EVENT", "INVOICE") is None
        True
    """
    event = _normalise(event_type)
    if event is None:
        return None
    document = _normalise(document_type)
    for rule in RULES:
        if rule.matches(event, document):
            return rule.variant
    return None
