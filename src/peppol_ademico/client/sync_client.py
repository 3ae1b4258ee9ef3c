"""Synchronous client for the Ademico Peppol API.

:class:`AdemicoClient` wraps :class:`httpx.Client` and layers on:

- **Auth injection** -- every request carries a bearer token from the
  :class:`~peppol_ademico.auth.coordinator.TokenCoordinator` through
  :class:`~peppol_ademico.auth.httpx_auth.BearerTokenAuth`.
- **Error mapping** -- 4xx/5xx responses become typed
  :class:`~peppol_ademico.exceptions.AdemicoError` subclasses.
- **Typed responses** -- notification pages are decoded with
  :func:`~peppol_ademico.notifications.decode_notifications_response`.

Requests are sent once; retrying is left to the transport.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

import httpx

from peppol_ademico.auth.coordinator import TokenCoordinator, create_token_coordinator
from peppol_ademico.auth.httpx_auth import BearerTokenAuth
from peppol_ademico.exceptions import AuthError, ConnectionError_, NotFoundError, ServerError
from peppol_ademico.models import AdemicoSettings
from peppol_ademico.notifications import (
    DocumentSubmissionResult,
    NotificationsResponse,
    decode_notifications_response,
)

logger = logging.getLogger(__name__)

NOTIFICATIONS_PATH = "/api/peppol/v1/notifications"
UBL_SUBMISSIONS_PATH = "/api/peppol/v1/invoices/ubl-submissions"


class AdemicoClient:
    """Blocking client for the notification and submission endpoints.

    Must be used as a context manager so that the underlying transport is
    opened and closed properly.

    Args:
        settings: Connection settings (``api_base_url``, ``timeout``, ...).
        coordinator: Token source. Built from *settings* when omitted.
        transport: Optional httpx transport, mainly for tests.

    Example::

        with AdemicoClient(settings) as client:
            page = client.list_notifications(page=0, size=20)
    """

    def __init__(
        self,
        settings: AdemicoSettings,
        coordinator: Optional[TokenCoordinator] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._coordinator = coordinator
        self._owns_coordinator = coordinator is None
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> AdemicoClient:
        if self._coordinator is None:
            self._coordinator = create_token_coordinator(self._settings)
        self._client = httpx.Client(
            base_url=self._settings.api_base_url,
            timeout=self._settings.timeout,
            auth=BearerTokenAuth(self._coordinator),
            transport=self._transport,
            follow_redirects=True,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None
        if self._owns_coordinator and self._coordinator is not None:
            self._coordinator.close()
            self._coordinator = None

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    def list_notifications(
        self,
        page: Optional[int] = None,
        size: Optional[int] = None,
        **filters: Any,
    ) -> NotificationsResponse:
        """Fetch one page of notifications.

        Args:
            page: Zero-based page index.
            size: Page size.
            **filters: Additional query parameters passed through as-is
                (``None`` values are dropped).

        Returns:
            The decoded :class:`~peppol_ademico.notifications.NotificationsResponse`.
        """
        params = {"page": page, "size": size, **filters}
        params = {k: v for k, v in params.items() if v is not None}
        response = self.request("GET", NOTIFICATIONS_PATH, params=params)
        return decode_notifications_response(response.json())

    def submit_ubl(
        self,
        document: Union[str, Path, bytes],
        filename: Optional[str] = None,
    ) -> DocumentSubmissionResult:
        """Upload a UBL document as ``multipart/form-data``.

        Args:
            document: Path to the XML file, or its raw bytes.
            filename: File name sent with the upload; defaults to the path's
                name, or ``document.xml`` for raw bytes.
        """
        if isinstance(document, bytes):
            content = document
            name = filename or "document.xml"
        else:
            path = Path(document).expanduser()
            content = path.read_bytes()
            name = filename or path.name
        files = {"file": (name, content, "application/xml")}
        response = self.request("POST", UBL_SUBMISSIONS_PATH, files=files)
        return DocumentSubmissionResult.model_validate(response.json())

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request and map error statuses to exceptions.

        Raises:
            AuthError: On 401 / 403, or when no token could be obtained.
            NotFoundError: On 404.
            ServerError: On any other 4xx or a 5xx.
            ConnectionError_: On network / timeout errors.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"

        headers = {"Accept": "application/json", **kwargs.pop("headers", {})}
        logger.debug("%s %s", method, path)
        try:
            response = self._client.request(method, path, headers=headers, **kwargs)
        except (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError) as exc:
            raise ConnectionError_(f"Connection failed: {exc}") from exc

        _map_response_error(response)
        return response


def _map_response_error(response: httpx.Response) -> None:
    """Raise a typed exception for error HTTP status codes."""
    status = response.status_code
    if status < 400:
        return

    # The API reports errors as ApplicationMessage / FileSubmissionResultError objects
    try:
        detail = response.json()
        if isinstance(detail, dict):
            msg = detail.get("message") or detail.get("error") or detail.get("detail") or ""
        else:
            msg = str(detail)
    except ValueError:
        msg = response.text[:200] if response.text else ""

    prefix = f"HTTP {status}"
    full_msg = f"{prefix}: {msg}" if msg else prefix

    if status in (401, 403):
        raise AuthError(full_msg, status_code=status, server_message=str(msg))
    if status == 404:
        raise NotFoundError(full_msg)
    raise ServerError(full_msg)
