"""In-memory holder for the current bearer token.

:class:`TokenCache` is deliberately not thread-safe; the
:class:`~peppol_ademico.auth.coordinator.TokenCoordinator` only touches it
while holding its lock.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CachedToken(BaseModel):
    """A bearer token and the instant it stops being valid.

    Instances are immutable; a refresh replaces the whole object.
    """

    model_config = ConfigDict(frozen=True)

    value: str
    expires_at: datetime

    def is_fresh(self, now: datetime, buffer: timedelta) -> bool:
        """Return ``True`` while *now* is earlier than ``expires_at - buffer``."""
        return now + buffer < self.expires_at


class TokenCache:
    """Single-slot cache for a :class:`CachedToken`."""

    def __init__(self) -> None:
        self._token: Optional[CachedToken] = None

    def get(self) -> Optional[CachedToken]:
        return self._token

    def set(self, token: CachedToken) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None

    @property
    def is_empty(self) -> bool:
        return self._token is None or not self._token.value
