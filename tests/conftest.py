"""Shared test fixtures for peppol_ademico.

Provides a controllable clock, client credentials, mock token endpoints,
and an isolated XDG environment. These fixtures are discovered by pytest
and available to all test modules without explicit imports.
"""

from __future__ import annotations

import asyncio
import json
import threading
import time
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

import httpx
import pytest

from peppol_ademico.models import ClientCredentials
from peppol_ademico.output import reset_output

# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests():
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr; when
    CliRunner swaps those streams the cached ones go stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc))


# ---------------------------------------------------------------------------
# Credentials and token endpoint
# ---------------------------------------------------------------------------


@pytest.fixture
def credentials() -> ClientCredentials:
    return ClientCredentials(id="client-id", secret="client-secret")


class TokenEndpoint:
    """Mock token endpoint recording every request it receives.

    Each call hands out ``token-<n>``. Set :attr:`status` / :attr:`body` to
    simulate failures, and :attr:`delay` to keep the exchange in flight.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status = 200
        self.body: Any = None
        self.expires_in = 3600
        self.delay = 0.0
        self._lock = threading.Lock()

    @property
    def calls(self) -> int:
        return len(self.requests)

    def _respond(self, request: httpx.Request) -> httpx.Response:
        with self._lock:
            self.requests.append(request)
            n = len(self.requests)
        if self.body is not None or self.status != 200:
            content = self.body if isinstance(self.body, (bytes, str)) else json.dumps(self.body or {})
            return httpx.Response(self.status, content=content, request=request)
        return httpx.Response(
            200,
            json={"access_token": f"token-{n}", "expires_in": self.expires_in, "token_type": "Bearer"},
            request=request,
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.delay:
            time.sleep(self.delay)
        return self._respond(request)

    async def async_handler(self, request: httpx.Request) -> httpx.Response:
        if self.delay:
            await asyncio.sleep(self.delay)
        return self._respond(request)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.async_handler))


@pytest.fixture
def token_endpoint() -> TokenEndpoint:
    return TokenEndpoint()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points the XDG directories at *tmp_path*, clears ``ADEMICO_*`` variables
    and changes the working directory to *tmp_path*.
    """
    monkeypatch.setattr("peppol_ademico.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "ADEMICO_CONFIG",
        "ADEMICO_TOKEN_ENDPOINT",
        "ADEMICO_API_BASE_URL",
        "ADEMICO_ACCESS_TOKEN_PATH",
        "ADEMICO_CLIENT_ID",
        "ADEMICO_CLIENT_SECRET",
    ]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()

