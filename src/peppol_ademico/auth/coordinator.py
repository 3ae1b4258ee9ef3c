"""Token coordinator -- the single entry point for obtaining a bearer token.

:class:`TokenCoordinator` owns the :class:`~peppol_ademico.auth.cache.TokenCache`
and serialises every access to it behind one lock. The lock is held across
the whole check-then-refresh-then-store sequence, so a burst of callers that
all find the token expired results in exactly one exchange: the first caller
refreshes, the others wait on the lock and then find a fresh token.

On a cold start the coordinator seeds the cache from the optional
:class:`~peppol_ademico.auth.token_store.TokenStore`. A token is reused while
``now < expires_at - expiry_buffer`` (five minutes by default).

:class:`AsyncTokenCoordinator` implements the same algorithm for asyncio
tasks with an :class:`asyncio.Lock`.

Refreshes are demand-driven; there is no background timer, and an exchange
in progress cannot be cancelled by the waiting callers.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

import httpx

from peppol_ademico.auth.cache import CachedToken, TokenCache
from peppol_ademico.auth.refresher import AsyncTokenRefresher, TokenRefresher
from peppol_ademico.auth.token_store import TokenStore
from peppol_ademico.exceptions import AuthError
from peppol_ademico.models import AdemicoSettings, ClientCredentials
from peppol_ademico.timeutil import format_utc_ms, utc_now

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY_BUFFER = timedelta(minutes=5)


class _CoordinatorState:
    """Cache plus persistence logic shared by the sync and async coordinators.

    None of these methods lock; callers hold the coordinator's lock.
    """

    def __init__(
        self,
        store: Optional[TokenStore],
        clock: Callable[[], datetime],
        expiry_buffer: timedelta,
    ) -> None:
        self._cache = TokenCache()
        self._store = store
        self._clock = clock
        self._buffer = expiry_buffer

    def usable_token(self) -> Optional[str]:
        """Return the cached token if it is still fresh, seeding the cache on a cold start."""
        if self._cache.is_empty and self._store is not None:
            persisted = self._store.load()
            if persisted is not None:
                logger.debug("Loaded persisted token expiring at %s", format_utc_ms(persisted.expires_at))
                self._cache.set(persisted)

        cached = self._cache.get()
        if cached is not None and cached.value and cached.is_fresh(self._clock(), self._buffer):
            return cached.value
        return None

    def accept(self, token: CachedToken) -> str:
        self._cache.set(token)
        if self._store is not None:
            self._store.save(token)
        logger.info("Token refreshed successfully. Expires at: %s", format_utc_ms(token.expires_at))
        return token.value

    def invalidate(self, persisted: bool) -> None:
        self._cache.clear()
        if persisted and self._store is not None:
            try:
                self._store.clear()
            except OSError as exc:
                logger.error("Failed to remove persisted token %s: %s", self._store.path, exc)

    @property
    def cached(self) -> Optional[CachedToken]:
        return self._cache.get()


class TokenCoordinator:
    """Thread-safe provider of a currently valid bearer token.

    Args:
        credentials: The OAuth2 client id/secret.
        token_endpoint: URL of the authorization server's token endpoint.
        refresher: Performs the actual exchange.
        store: Optional persistent store used across process restarts.
        clock: Source of the current UTC time.
        expiry_buffer: Safety margin subtracted from the token's expiry.

    Example::

        coordinator = TokenCoordinator(creds, settings.token_endpoint, TokenRefresher())
        token = coordinator.get_valid_token()
    """

    def __init__(
        self,
        credentials: ClientCredentials,
        token_endpoint: str,
        refresher: TokenRefresher,
        store: Optional[TokenStore] = None,
        clock: Callable[[], datetime] = utc_now,
        expiry_buffer: timedelta = DEFAULT_EXPIRY_BUFFER,
    ) -> None:
        self._credentials = credentials
        self._endpoint = token_endpoint
        self._refresher = refresher
        self._state = _CoordinatorState(store, clock, expiry_buffer)
        self._lock = threading.Lock()

    def get_valid_token(self) -> str:
        """Return a bearer token valid for at least the expiry buffer.

        Raises:
            AuthError: If a refresh was needed and the exchange failed. The
                cached token is left untouched in that case.
        """
        with self._lock:
            token = self._state.usable_token()
            if token is not None:
                return token
            try:
                refreshed = self._refresher.exchange(self._credentials, self._endpoint)
            except AuthError:
                logger.exception("Failed to refresh token")
                raise
            return self._state.accept(refreshed)

    def invalidate(self, persisted: bool = False) -> None:
        """Forget the cached token so the next call refreshes.

        Args:
            persisted: Also delete the persisted token file.
        """
        with self._lock:
            self._state.invalidate(persisted)

    @property
    def cached_token(self) -> Optional[CachedToken]:
        """The token currently held in memory, if any."""
        return self._state.cached

    def close(self) -> None:
        self._refresher.close()


class AsyncTokenCoordinator:
    """asyncio counterpart of :class:`TokenCoordinator`.

    The lock is an :class:`asyncio.Lock`, so an instance must only be used
    from a single event loop.
    """

    def __init__(
        self,
        credentials: ClientCredentials,
        token_endpoint: str,
        refresher: AsyncTokenRefresher,
        store: Optional[TokenStore] = None,
        clock: Callable[[], datetime] = utc_now,
        expiry_buffer: timedelta = DEFAULT_EXPIRY_BUFFER,
    ) -> None:
        self._credentials = credentials
        self._endpoint = token_endpoint
        self._refresher = refresher
        self._state = _CoordinatorState(store, clock, expiry_buffer)
        self._lock = asyncio.Lock()

    async def get_valid_token(self) -> str:
        """Async version of :meth:`TokenCoordinator.get_valid_token`."""
        async with self._lock:
            token = self._state.usable_token()
            if token is not None:
                return token
            try:
                refreshed = await self._refresher.exchange(self._credentials, self._endpoint)
            except AuthError:
                logger.exception("Failed to refresh token")
                raise
            return self._state.accept(refreshed)

    async def invalidate(self, persisted: bool = False) -> None:
        async with self._lock:
            self._state.invalidate(persisted)

    @property
    def cached_token(self) -> Optional[CachedToken]:
        return self._state.cached

    async def aclose(self) -> None:
        await self._refresher.aclose()


def create_token_coordinator(
    settings: AdemicoSettings,
    credentials: Optional[ClientCredentials] = None,
    http_client: Optional[httpx.Client] = None,
    clock: Callable[[], datetime] = utc_now,
) -> TokenCoordinator:
    """Build a :class:`TokenCoordinator` from *settings*.

    Credentials are resolved from the settings' sources unless given.
    Persistence is enabled only when ``settings.access_token_path`` is set.

    Raises:
        ConfigError: If the credentials cannot be resolved.
    """
    from peppol_ademico.config import load_credentials

    if credentials is None:
        credentials = load_credentials(settings)
    store = TokenStore(settings.access_token_path) if settings.access_token_path else None
    refresher = TokenRefresher(
        http_client=http_client,
        scope=settings.scope,
        clock=clock,
        timeout=settings.timeout,
    )
    return TokenCoordinator(
        credentials,
        settings.token_endpoint,
        refresher,
        store=store,
        clock=clock,
    )
