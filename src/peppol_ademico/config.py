"""Configuration management with XDG paths, atomic writes, and precedence resolution.

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.peppol-ademico/`` on macOS and Windows. See :func:`get_config_dir`
  and :func:`get_data_dir`.
* **Settings** -- a single :class:`~peppol_ademico.models.AdemicoSettings`
  JSON file, overridable through ``ADEMICO_*`` environment variables.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or interactive prompts.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional

from peppol_ademico.exceptions import ConfigError
from peppol_ademico.models import AdemicoSettings, ClientCredentials

_APP_NAME = "peppol-ademico"
_CONFIG_FILENAME = "config.json"

_ENV_OVERRIDES = {
    "ADEMICO_TOKEN_ENDPOINT": "token_endpoint",
    "ADEMICO_API_BASE_URL": "api_base_url",
    "ADEMICO_ACCESS_TOKEN_PATH": "access_token_path",
}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/peppol-ademico/`` (default
    ``~/.config/peppol-ademico/``). On macOS/Windows: ``~/.peppol-ademico/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs, persisted tokens), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/peppol-ademico/`` (default
    ``~/.local/share/peppol-ademico/``). On macOS/Windows:
    ``~/.peppol-ademico/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_token_path() -> Path:
    """Suggested location for the persisted bearer token."""
    return get_data_dir() / "access_token"


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str, mode: Optional[int] = None) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. When *mode* is given
    the temp file gets those permissions before any data is written. On any
    failure the temp file is cleaned up and the error re-raised.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        if mode is not None:
            os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Settings ---


def settings_path(path: Optional[Path] = None) -> Path:
    """Resolve the settings file location.

    Precedence: explicit *path* > ``ADEMICO_CONFIG`` > the config directory.
    """
    if path is not None:
        return Path(path).expanduser()
    env_path = os.environ.get("ADEMICO_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


def load_settings(path: Optional[Path] = None, apply_env: bool = True) -> AdemicoSettings:
    """Load settings from disk and apply environment overrides.

    Precedence (high to low):
        1. ``ADEMICO_TOKEN_ENDPOINT``, ``ADEMICO_API_BASE_URL``,
           ``ADEMICO_ACCESS_TOKEN_PATH``
        2. The settings file (see :func:`settings_path`)
        3. Model defaults

    Args:
        path: Explicit settings file; see :func:`settings_path`.
        apply_env: Set to ``False`` to read the file alone, e.g. before
            rewriting it.

    Returns:
        The resolved :class:`~peppol_ademico.models.AdemicoSettings`.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    file_path = settings_path(path)
    data: dict = {}
    if file_path.is_file():
        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            raise ConfigError(f"Invalid settings at {file_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Invalid settings at {file_path}: expected a JSON object")

    if apply_env:
        for env_var, field_name in _ENV_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value:
                data[field_name] = value

    try:
        return AdemicoSettings.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid settings at {file_path}: {exc}") from exc


def save_settings(settings: AdemicoSettings, path: Optional[Path] = None) -> Path:
    """Persist *settings* atomically and return the file written."""
    file_path = settings_path(path)
    data = settings.model_dump(mode="json")
    _atomic_write(file_path, json.dumps(data, indent=2) + "\n")
    return file_path


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a credential from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Enter credential: ")

    raise ConfigError(f"Unknown credential source format: {source}")


def load_credentials(settings: AdemicoSettings) -> ClientCredentials:
    """Resolve the client id and secret configured in *settings*.

    Raises:
        ConfigError: If either source cannot be resolved.
    """
    return ClientCredentials(
        id=resolve_credential(settings.client_id_source),
        secret=resolve_credential(settings.client_secret_source),
    )
