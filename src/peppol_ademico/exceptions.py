"""Exception hierarchy for peppol_ademico.

All public exceptions inherit from :class:`AdemicoError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`peppol_ademico.exit_codes`. The top-level error handler in
:func:`peppol_ademico.app.main` catches ``AdemicoError`` and exits with the
appropriate code.

Subclass hierarchy::

    AdemicoError (exit 1)
    +-- AuthError           (exit 3)
    +-- NotFoundError       (exit 4)
    +-- ServerError         (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- ConfigError         (exit 1)
    +-- TokenStoreError     (exit 1, never escapes TokenStore.load)
"""

from __future__ import annotations

from typing import Optional

from peppol_ademico.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class AdemicoError(Exception):
    """Base exception for all peppol_ademico errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class AuthError(AdemicoError):
    """Raised when the token exchange fails or the API rejects the token.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the failed response, or ``None`` when the
            request never produced one (network failure).
        server_message: The ``error`` value reported by the server, or an
            empty string when the error body could not be parsed.
    """

    exit_code = EXIT_AUTH_FAILURE

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        server_message: str = "",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.server_message = server_message


class NotFoundError(AdemicoError):
    """Raised when the API returns HTTP 404 (resource not found)."""

    exit_code = EXIT_NOT_FOUND


class ServerError(AdemicoError):
    """Raised when the API returns HTTP 400 or a 5xx server error."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(AdemicoError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ConfigError(AdemicoError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class TokenStoreError(AdemicoError):
    """Raised by :meth:`~peppol_ademico.auth.token_store.TokenStore.read` on unreadable records.

    :meth:`~peppol_ademico.auth.token_store.TokenStore.load` converts it into
    a cache miss, so callers of the coordinator never see it.
    """
