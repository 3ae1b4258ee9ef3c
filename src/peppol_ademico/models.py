"""Pydantic models for settings, credentials and the token endpoint wire format.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`AdemicoSettings`.

**Auth models** -- used by the token refresher:
    :class:`ClientCredentials`, :class:`TokenResponse`,
    :class:`TokenErrorResponse`.

Notification payload models live in :mod:`peppol_ademico.notifications.models`.
"""

from __future__ import annotations

import base64
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SCOPE = "peppol/document"
"""The only scope the Ademico token endpoint grants to API clients."""


# --- Settings ---


class AdemicoSettings(BaseModel):
    """Connection settings for the Ademico API.

    Client id and secret are not stored directly; the ``*_source`` fields
    point at where to read them (``env:VAR``, ``file:/path``, ``prompt``)
    and are resolved by :func:`peppol_ademico.config.load_credentials`.

    Example::

        AdemicoSettings(
            token_endpoint="https://auth.example.com/oauth2/token",
            api_base_url="https://api.example.com",
            access_token_path="~/.local/share/peppol-ademico/access_token",
        )
    """

    token_endpoint: str = Field(default="", description="OAuth2 token endpoint URL")
    api_base_url: str = Field(default="", description="Base URL of the Peppol API")
    client_id_source: str = Field(
        default="env:ADEMICO_CLIENT_ID",
        description="Credential source for the client id: env:VAR, file:/path, prompt",
    )
    client_secret_source: str = Field(
        default="env:ADEMICO_CLIENT_SECRET",
        description="Credential source for the client secret: env:VAR, file:/path, prompt",
    )
    access_token_path: Optional[str] = Field(
        default=None,
        description="File used to persist the bearer token between runs (None = memory only)",
    )
    scope: str = Field(default=DEFAULT_SCOPE, description="OAuth2 scope to request")
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")


# --- Auth ---


class ClientCredentials(BaseModel):
    """OAuth2 client id/secret pair, immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    id: str
    secret: str = Field(repr=False)

    def basic_auth_header(self) -> str:
        """Return the ``Authorization`` header value for the client-credentials grant."""
        raw = f"{self.id}:{self.secret}".encode("utf-8")
        return "Basic " + base64.b64encode(raw).decode("ascii")


class TokenResponse(BaseModel):
    """Successful token endpoint response (snake_case on the wire)."""

    access_token: str = Field(min_length=1)
    expires_in: int
    token_type: str = ""


class TokenErrorResponse(BaseModel):
    """Error body returned by the token endpoint on a non-2xx status."""

    error: str = ""
