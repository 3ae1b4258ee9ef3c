"""Tests for the token coordinator (single-flight refresh, expiry buffer, persistence)."""

from __future__ import annotations

import asyncio
import logging
import threading
from datetime import timedelta
from pathlib import Path

import pytest

from peppol_ademico.auth.cache import CachedToken
from peppol_ademico.auth.coordinator import (
    AsyncTokenCoordinator,
    TokenCoordinator,
    create_token_coordinator,
)
from peppol_ademico.auth.refresher import AsyncTokenRefresher, TokenRefresher
from peppol_ademico.auth.token_store import TokenStore
from peppol_ademico.exceptions import AuthError
from peppol_ademico.models import AdemicoSettings

TOKEN_URL = "https://auth.example.com/oauth2/token"


@pytest.fixture()
def make_coordinator(token_endpoint, credentials, clock):
    def factory(store: TokenStore | None = None) -> TokenCoordinator:
        refresher = TokenRefresher(http_client=token_endpoint.client(), clock=clock)
        return TokenCoordinator(credentials, TOKEN_URL, refresher, store=store, clock=clock)

    return factory


class TestFreshness:
    def test_first_call_refreshes(self, make_coordinator, token_endpoint) -> None:
        coordinator = make_coordinator()
        assert coordinator.get_valid_token() == "token-1"
        assert token_endpoint.calls == 1

    def test_reuses_token_outside_buffer(self, make_coordinator, token_endpoint, clock) -> None:
        coordinator = make_coordinator()
        coordinator.get_valid_token()

        clock.advance(minutes=54)  # six minutes left
        assert coordinator.get_valid_token() == "token-1"
        assert token_endpoint.calls == 1

    def test_refreshes_inside_buffer(self, make_coordinator, token_endpoint, clock) -> None:
        coordinator = make_coordinator()
        coordinator.get_valid_token()

        clock.advance(minutes=56)  # four minutes left
        assert coordinator.get_valid_token() == "token-2"
        assert token_endpoint.calls == 2

    def test_custom_buffer(self, token_endpoint, credentials, clock) -> None:
        refresher = TokenRefresher(http_client=token_endpoint.client(), clock=clock)
        coordinator = TokenCoordinator(
            credentials, TOKEN_URL, refresher, clock=clock, expiry_buffer=timedelta(0)
        )
        coordinator.get_valid_token()
        clock.advance(minutes=59)
        assert coordinator.get_valid_token() == "token-1"

    def test_refresh_logged(self, make_coordinator, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="peppol_ademico.auth.coordinator"):
            make_coordinator().get_valid_token()
        assert "Token refreshed successfully. Expires at: 2024-01-01T13:00:00.000Z" in caplog.text


class TestSingleFlight:
    def test_concurrent_threads_share_one_refresh(self, make_coordinator, token_endpoint) -> None:
        token_endpoint.delay = 0.05
        coordinator = make_coordinator()
        n = 16
        barrier = threading.Barrier(n)
        results: list[str] = []
        errors: list[BaseException] = []

        def worker() -> None:
            barrier.wait()
            try:
                results.append(coordinator.get_valid_token())
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(n)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert results == ["token-1"] * n
        assert token_endpoint.calls == 1

    def test_concurrent_tasks_share_one_refresh(self, token_endpoint, credentials, clock) -> None:
        token_endpoint.delay = 0.05

        async def run() -> list[str]:
            refresher = AsyncTokenRefresher(http_client=token_endpoint.async_client(), clock=clock)
            coordinator = AsyncTokenCoordinator(credentials, TOKEN_URL, refresher, clock=clock)
            try:
                return await asyncio.gather(*(coordinator.get_valid_token() for _ in range(16)))
            finally:
                await coordinator.aclose()

        assert asyncio.run(run()) == ["token-1"] * 16
        assert token_endpoint.calls == 1


class TestFailure:
    def test_failed_refresh_keeps_previous_token(
        self, make_coordinator, token_endpoint, clock, caplog: pytest.LogCaptureFixture
    ) -> None:
        coordinator = make_coordinator()
        coordinator.get_valid_token()
        before = coordinator.cached_token

        clock.advance(minutes=58)
        token_endpoint.status = 503
        token_endpoint.body = {"error": "temporarily_unavailable"}

        with caplog.at_level(logging.ERROR, logger="peppol_ademico.auth.coordinator"):
            with pytest.raises(AuthError) as exc_info:
                coordinator.get_valid_token()

        assert exc_info.value.status_code == 503
        assert coordinator.cached_token == before
        assert "Failed to refresh token" in caplog.text

    def test_out_of_range_expiry_is_auth_error(
        self, make_coordinator, token_endpoint, caplog: pytest.LogCaptureFixture
    ) -> None:
        token_endpoint.expires_in = 10**12
        coordinator = make_coordinator()

        with caplog.at_level(logging.ERROR, logger="peppol_ademico.auth.coordinator"):
            with pytest.raises(AuthError):
                coordinator.get_valid_token()

        assert coordinator.cached_token is None
        assert "Failed to refresh token" in caplog.text

    def test_next_call_retries_after_failure(self, make_coordinator, token_endpoint) -> None:
        token_endpoint.status = 500
        token_endpoint.body = {}
        coordinator = make_coordinator()
        with pytest.raises(AuthError):
            coordinator.get_valid_token()

        token_endpoint.status = 200
        token_endpoint.body = None
        assert coordinator.get_valid_token() == "token-2"


class TestPersistence:
    def test_cold_start_uses_persisted_token(self, make_coordinator, token_endpoint, clock, tmp_path: Path) -> None:
        store = TokenStore(tmp_path / "access_token")
        store.save(CachedToken(value="persisted", expires_at=clock.now + timedelta(hours=1)))

        coordinator = make_coordinator(store)
        assert coordinator.get_valid_token() == "persisted"
        assert token_endpoint.calls == 0

    def test_cold_start_with_stale_persisted_token(
        self, make_coordinator, token_endpoint, clock, tmp_path: Path
    ) -> None:
        store = TokenStore(tmp_path / "access_token")
        store.save(CachedToken(value="persisted", expires_at=clock.now + timedelta(minutes=3)))

        coordinator = make_coordinator(store)
        assert coordinator.get_valid_token() == "token-1"
        assert store.load().value == "token-1"
        assert store.load().expires_at == clock.now + timedelta(hours=1)

    def test_minimum_timestamp_record_triggers_refresh(
        self, make_coordinator, token_endpoint, tmp_path: Path
    ) -> None:
        path = tmp_path / "access_token"
        path.write_text("0001-01-01T00:00:00.000Z|old-token")

        coordinator = make_coordinator(TokenStore(path))
        assert coordinator.get_valid_token() == "token-1"
        assert token_endpoint.calls == 1

    def test_corrupt_persisted_token_triggers_refresh(
        self, make_coordinator, token_endpoint, tmp_path: Path
    ) -> None:
        path = tmp_path / "access_token"
        path.write_text("garbage")

        coordinator = make_coordinator(TokenStore(path))
        assert coordinator.get_valid_token() == "token-1"
        assert path.read_text().endswith("|token-1\n")

    def test_save_failure_does_not_propagate(self, make_coordinator, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        coordinator = make_coordinator(TokenStore(blocker / "access_token"))
        assert coordinator.get_valid_token() == "token-1"
        assert coordinator.cached_token.value == "token-1"

    def test_memory_only_without_store(self, make_coordinator, tmp_path: Path) -> None:
        make_coordinator().get_valid_token()
        assert list(tmp_path.iterdir()) == []


class TestInvalidate:
    def test_invalidate_forces_refresh(self, make_coordinator, token_endpoint) -> None:
        coordinator = make_coordinator()
        coordinator.get_valid_token()
        coordinator.invalidate()
        assert coordinator.cached_token is None
        assert coordinator.get_valid_token() == "token-2"

    def test_invalidate_keeps_persisted_token_by_default(self, make_coordinator, tmp_path: Path) -> None:
        store = TokenStore(tmp_path / "access_token")
        coordinator = make_coordinator(store)
        coordinator.get_valid_token()

        coordinator.invalidate()
        assert store.path.exists()
        # The persisted copy is still fresh, so it is picked up again
        assert coordinator.get_valid_token() == "token-1"

    def test_invalidate_persisted(self, make_coordinator, token_endpoint, tmp_path: Path) -> None:
        store = TokenStore(tmp_path / "access_token")
        coordinator = make_coordinator(store)
        coordinator.get_valid_token()

        coordinator.invalidate(persisted=True)
        assert not store.path.exists()
        assert coordinator.get_valid_token() == "token-2"

    def test_async_invalidate(self, token_endpoint, credentials, clock) -> None:
        async def run() -> tuple[str, str]:
            refresher = AsyncTokenRefresher(http_client=token_endpoint.async_client(), clock=clock)
            coordinator = AsyncTokenCoordinator(credentials, TOKEN_URL, refresher, clock=clock)
            first = await coordinator.get_valid_token()
            await coordinator.invalidate()
            return first, await coordinator.get_valid_token()

        assert asyncio.run(run()) == ("token-1", "token-2")


class TestFactory:
    def test_builds_with_store(self, token_endpoint, credentials, clock, tmp_path: Path) -> None:
        settings = AdemicoSettings(
            token_endpoint=TOKEN_URL, access_token_path=str(tmp_path / "access_token")
        )
        coordinator = create_token_coordinator(
            settings, credentials=credentials, http_client=token_endpoint.client(), clock=clock
        )
        assert coordinator.get_valid_token() == "token-1"
        assert (tmp_path / "access_token").is_file()

    def test_resolves_credentials_from_environment(
        self, token_endpoint, clock, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("ADEMICO_CLIENT_ID", "env-id")
        monkeypatch.setenv("ADEMICO_CLIENT_SECRET", "env-secret")
        coordinator = create_token_coordinator(
            AdemicoSettings(token_endpoint=TOKEN_URL),
            http_client=token_endpoint.client(),
            clock=clock,
        )
        coordinator.get_valid_token()
        assert token_endpoint.requests[0].headers["Authorization"] == "Basic ZW52LWlkOmVudi1zZWNyZXQ="
