"""Bearer-token management for the Ademico API.

The main entry points are:

- :class:`TokenCoordinator` / :class:`AsyncTokenCoordinator` -- hand out a
  currently valid token, refreshing at most once for any number of
  concurrent callers.
- :func:`create_token_coordinator` -- build a coordinator from
  :class:`~peppol_ademico.models.AdemicoSettings`.
- :class:`BearerTokenAuth` -- ``httpx.Auth`` adapter for API clients.
- :class:`TokenStore` -- the one-line token file that survives restarts.

Typical usage::

    from peppol_ademico.auth import create_token_coordinator
    from peppol_ademico.config import load_settings

    coordinator = create_token_coordinator(load_settings())
    token = coordinator.get_valid_token()
"""

from peppol_ademico.auth.cache import CachedToken, TokenCache
from peppol_ademico.auth.coordinator import (
    AsyncTokenCoordinator,
    TokenCoordinator,
    create_token_coordinator,
)
from peppol_ademico.auth.httpx_auth import BearerTokenAuth
from peppol_ademico.auth.refresher import AsyncTokenRefresher, TokenRefresher
from peppol_ademico.auth.token_store import TokenStore

__all__ = [
    "AsyncTokenCoordinator",
    "AsyncTokenRefresher",
    "BearerTokenAuth",
    "CachedToken",
    "TokenCache",
    "TokenCoordinator",
    "TokenRefresher",
    "TokenStore",
    "create_token_coordinator",
]
