"""Tests for settings loading, XDG paths and credential resolution."""

from __future__ import annotations

import io
import json
import os
import stat
from pathlib import Path

import pytest

from peppol_ademico.config import (
    _atomic_write,
    default_token_path,
    get_config_dir,
    get_data_dir,
    load_credentials,
    load_settings,
    resolve_credential,
    save_settings,
    settings_path,
)
from peppol_ademico.exceptions import ConfigError
from peppol_ademico.models import AdemicoSettings


# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------


class TestDirectories:
    def test_xdg_dirs(self, isolated_config: Path) -> None:
        assert get_config_dir() == isolated_config / "config" / "peppol-ademico"
        assert get_data_dir() == isolated_config / "data" / "peppol-ademico"
        assert get_config_dir().is_dir()

    def test_fallback_dirs(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("peppol_ademico.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", lambda: isolated_config / "home")
        assert get_config_dir() == isolated_config / "home" / ".peppol-ademico"
        assert get_data_dir() == isolated_config / "home" / ".peppol-ademico" / "data"

    def test_default_token_path(self, isolated_config: Path) -> None:
        assert default_token_path() == isolated_config / "data" / "peppol-ademico" / "access_token"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_mode_applied(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "secret"
        _atomic_write(target, "data\n", mode=0o600)
        assert target.read_text() == "data\n"
        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    def test_failure_leaves_no_temp_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("peppol_ademico.config.os.replace", fail)
        with pytest.raises(OSError):
            _atomic_write(tmp_path / "secret", "data")
        assert list(tmp_path.iterdir()) == []


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestSettings:
    def test_defaults_without_file(self, isolated_config: Path) -> None:
        settings = load_settings()
        assert settings == AdemicoSettings()
        assert settings.scope == "peppol/document"
        assert settings.access_token_path is None

    def test_save_then_load(self, isolated_config: Path) -> None:
        written = save_settings(
            AdemicoSettings(token_endpoint="https://auth.example.com/token", timeout=10)
        )
        assert written == isolated_config / "config" / "peppol-ademico" / "config.json"
        assert json.loads(written.read_text())["token_endpoint"] == "https://auth.example.com/token"

        loaded = load_settings()
        assert loaded.token_endpoint == "https://auth.example.com/token"
        assert loaded.timeout == 10

    def test_env_overrides_file(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_settings(AdemicoSettings(api_base_url="https://file.example.com"))
        monkeypatch.setenv("ADEMICO_API_BASE_URL", "https://env.example.com")
        monkeypatch.setenv("ADEMICO_ACCESS_TOKEN_PATH", "/tmp/token")

        settings = load_settings()
        assert settings.api_base_url == "https://env.example.com"
        assert settings.access_token_path == "/tmp/token"

        raw = load_settings(apply_env=False)
        assert raw.api_base_url == "https://file.example.com"
        assert raw.access_token_path is None

    def test_path_precedence(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        explicit = isolated_config / "explicit.json"
        env_file = isolated_config / "env.json"
        monkeypatch.setenv("ADEMICO_CONFIG", str(env_file))

        assert settings_path(explicit) == explicit
        assert settings_path() == env_file

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"timeout": -1}'])
    def test_invalid_file(self, isolated_config: Path, content: str) -> None:
        path = isolated_config / "bad.json"
        path.write_text(content)
        with pytest.raises(ConfigError, match="Invalid settings"):
            load_settings(path)


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class TestCredentials:
    def test_env_source(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MY_SECRET", "s3cret")
        assert resolve_credential("env:MY_SECRET") == "s3cret"

    def test_env_source_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("MY_SECRET", raising=False)
        with pytest.raises(ConfigError, match="MY_SECRET"):
            resolve_credential("env:MY_SECRET")

    def test_file_source(self, tmp_path: Path) -> None:
        secret = tmp_path / "secret"
        secret.write_text("  from-file\n")
        assert resolve_credential(f"file:{secret}") == "from-file"

    def test_file_source_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'nope'}")

    def test_prompt_requires_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin", io.StringIO())
        with pytest.raises(ConfigError, match="not a TTY"):
            resolve_credential("prompt")

    def test_unknown_source(self) -> None:
        with pytest.raises(ConfigError, match="Unknown credential source"):
            resolve_credential("vault:thing")

    def test_load_credentials(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ADEMICO_CLIENT_ID", "id-1")
        monkeypatch.setenv("ADEMICO_CLIENT_SECRET", "secret-1")
        creds = load_credentials(load_settings())
        assert creds.id == "id-1"
        assert creds.secret == "secret-1"
        assert "secret-1" not in repr(creds)
        assert creds.basic_auth_header() == "Basic aWQtMTpzZWNyZXQtMQ=="
