"""OAuth2 client-credentials exchange against the Ademico token endpoint.

Implements the grant from :rfc:`6749` section 4.4 the way the Ademico
authorization server expects it: the client id and secret travel in a
``Basic`` ``Authorization`` header, and the form body only carries the grant
type and the scope.

A single exchange is attempted per call. Any failure is raised as
:class:`~peppol_ademico.exceptions.AuthError` straight to the coordinator;
retrying is left to the caller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from peppol_ademico.auth.cache import CachedToken
from peppol_ademico.exceptions import AuthError
from peppol_ademico.models import (
    DEFAULT_SCOPE,
    ClientCredentials,
    TokenErrorResponse,
    TokenResponse,
)
from peppol_ademico.timeutil import utc_now

logger = logging.getLogger(__name__)


def _build_request_kwargs(credentials: ClientCredentials, scope: str) -> dict:
    return {
        "data": {"grant_type": "client_credentials", "scope": scope},
        "headers": {
            "Authorization": credentials.basic_auth_header(),
            "Accept": "application/json",
        },
    }


def _error_message(response: httpx.Response) -> str:
    """Extract ``error`` from a failed response, or ``""`` if the body is unusable."""
    try:
        return TokenErrorResponse.model_validate_json(response.content).error
    except ValidationError:
        return ""


def _parse_token_response(
    response: httpx.Response, clock: Callable[[], datetime]
) -> CachedToken:
    """Turn a token endpoint response into a :class:`CachedToken`.

    Raises:
        AuthError: On a non-2xx status or an absent/unparseable body.
    """
    status = response.status_code
    if not response.is_success:
        message = _error_message(response)
        raise AuthError(
            f"Token request failed with status {status}: {message}",
            status_code=status,
            server_message=message,
        )

    try:
        token = TokenResponse.model_validate_json(response.content)
    except ValidationError as exc:
        raise AuthError(
            f"Token request returned status {status} with an empty or malformed body",
            status_code=status,
        ) from exc

    try:
        expires_at = clock() + timedelta(seconds=token.expires_in)
    except OverflowError as exc:
        raise AuthError(
            f"Token request returned status {status} with an out-of-range expires_in: {token.expires_in}",
            status_code=status,
        ) from exc
    return CachedToken(value=token.access_token, expires_at=expires_at)


class TokenRefresher:
    """Blocking client-credentials exchange.

    Args:
        http_client: Client used for the POST. When ``None`` a private
            :class:`httpx.Client` is created lazily and closed by :meth:`close`.
        scope: OAuth2 scope to request.
        clock: Source of the current UTC time, used to compute the expiry.
        timeout: Request timeout in seconds for the private client.
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        scope: str = DEFAULT_SCOPE,
        clock: Callable[[], datetime] = utc_now,
        timeout: float = 30.0,
    ) -> None:
        self._client = http_client
        self._owns_client = http_client is None
        self._scope = scope
        self._clock = clock
        self._timeout = timeout

    def exchange(self, credentials: ClientCredentials, endpoint: str) -> CachedToken:
        """POST the client-credentials grant to *endpoint*.

        Returns:
            The new token with ``expires_at = now + expires_in``.

        Raises:
            AuthError: On transport failure, a non-2xx status (with the
                server's ``error`` message), or an unparseable body.
        """
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout)
        logger.debug("Requesting client-credentials token from %s", endpoint)
        try:
            response = self._client.post(endpoint, **_build_request_kwargs(credentials, self._scope))
        except httpx.HTTPError as exc:
            raise AuthError(f"Token request failed: {exc}") from exc
        return _parse_token_response(response, self._clock)

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None


class AsyncTokenRefresher:
    """Non-blocking counterpart of :class:`TokenRefresher` over :class:`httpx.AsyncClient`."""

    def __init__(
        self,
        http_client: Optional[httpx.AsyncClient] = None,
        scope: str = DEFAULT_SCOPE,
        clock: Callable[[], datetime] = utc_now,
        timeout: float = 30.0,
    ) -> None:
        self._client = http_client
        self._owns_client = http_client is None
        self._scope = scope
        self._clock = clock
        self._timeout = timeout

    async def exchange(self, credentials: ClientCredentials, endpoint: str) -> CachedToken:
        """Async version of :meth:`TokenRefresher.exchange`."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        logger.debug("Requesting client-credentials token from %s", endpoint)
        try:
            response = await self._client.post(
                endpoint, **_build_request_kwargs(credentials, self._scope)
            )
        except httpx.HTTPError as exc:
            raise AuthError(f"Token request failed: {exc}") from exc
        return _parse_token_response(response, self._clock)

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
