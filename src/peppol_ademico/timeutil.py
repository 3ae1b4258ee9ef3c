"""UTC time helpers shared by the token store and the notification models.

The Ademico API and the persisted token file both exchange timestamps with
millisecond precision (``yyyy-MM-ddTHH:mm:ss.fff``). The API omits the zone
designator even though every value is UTC, so parsing treats naive values as
UTC instead of local time.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime, or convert an aware one to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_utc_ms(value: datetime) -> str:
    """Format *value* as ``yyyy-MM-ddTHH:mm:ss.fffZ``.

    Example::

        >>> format_utc_ms(datetime(2024, 1, 1, tzinfo=timezone.utc))
        '2024-01-01T00:00:00.000Z'
    """
    value = ensure_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_utc(text: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating zone-less values as UTC.

    Accepts a trailing ``Z`` as well as explicit offsets.

    Raises:
        ValueError: If *text* is not a valid ISO-8601 timestamp.
    """
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))
