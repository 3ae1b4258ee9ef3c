"""httpx integration -- stamps the coordinator's token on outgoing requests.

:class:`BearerTokenAuth` is the only thing the HTTP layer needs to know about
token management: it asks the coordinator for a valid token right before
each request is sent.
"""

from __future__ import annotations

from typing import AsyncGenerator, Generator, Union

import httpx

from peppol_ademico.auth.coordinator import AsyncTokenCoordinator, TokenCoordinator


class BearerTokenAuth(httpx.Auth):
    """``httpx.Auth`` that adds ``Authorization: Bearer <token>``.

    Pass a :class:`TokenCoordinator` for :class:`httpx.Client` or an
    :class:`AsyncTokenCoordinator` for :class:`httpx.AsyncClient`.

    Example::

        client = httpx.Client(base_url=url, auth=BearerTokenAuth(coordinator))
    """

    def __init__(self, coordinator: Union[TokenCoordinator, AsyncTokenCoordinator]) -> None:
        self._coordinator = coordinator

    def sync_auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        if not isinstance(self._coordinator, TokenCoordinator):
            raise RuntimeError("BearerTokenAuth needs a TokenCoordinator for sync requests")
        token = self._coordinator.get_valid_token()
        request.headers["Authorization"] = f"Bearer {token}"
        yield request

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        if not isinstance(self._coordinator, AsyncTokenCoordinator):
            raise RuntimeError("BearerTokenAuth needs an AsyncTokenCoordinator for async requests")
        token = await self._coordinator.get_valid_token()
        request.headers["Authorization"] = f"Bearer {token}"
        yield request
