"""Persistent bearer-token store.

The token survives process restarts in a single one-line text file::

    2024-01-01T00:00:00.000Z|eyJraWQiOiJ...

i.e. the expiry formatted as ``yyyy-MM-ddTHH:mm:ss.fffZ``, a ``|``
separator, then the opaque token. Files are written atomically with
``0o600`` permissions, the same way the settings file is written.

The store has two read paths:

- :meth:`TokenStore.read` keeps "no file" (``None``) and "unreadable file"
  (:class:`~peppol_ademico.exceptions.TokenStoreError`) apart.
- :meth:`TokenStore.load` is what the coordinator uses: every failure is
  logged and reported as a cache miss, so a corrupt file only costs one
  token exchange.

The separator is not escaped. Only the first ``|`` separates the fields, so a
token that contains ``|`` still reads back whole. There is no cross-process
locking: the last writer wins.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

from peppol_ademico.auth.cache import CachedToken
from peppol_ademico.config import _atomic_write
from peppol_ademico.exceptions import TokenStoreError
from peppol_ademico.timeutil import format_utc_ms, parse_utc

logger = logging.getLogger(__name__)

SEPARATOR = "|"


def format_record(token: CachedToken) -> str:
    """Serialise *token* to its one-line ``timestamp|token`` form (no newline)."""
    return f"{format_utc_ms(token.expires_at)}{SEPARATOR}{token.value}"


def parse_record(text: str) -> CachedToken:
    """Parse a ``timestamp|token`` record.

    Raises:
        TokenStoreError: If the record is empty, has no separator, carries an
            unparseable timestamp, or an empty token.
    """
    text = text.strip()
    if not text:
        raise TokenStoreError("Token record is empty")
    stamp, sep, value = text.partition(SEPARATOR)
    if not sep:
        raise TokenStoreError("Token record has no separator")
    try:
        expires_at = parse_utc(stamp)
    except (ValueError, OverflowError) as exc:
        raise TokenStoreError(f"Token record has an invalid timestamp: {stamp!r}") from exc
    if not value:
        raise TokenStoreError("Token record has an empty token")
    return CachedToken(value=value, expires_at=expires_at)


class TokenStore:
    """Read/write the persisted token file.

    Args:
        path: Location of the token file. ``~`` is expanded.

    Example::

        store = TokenStore("~/.local/share/peppol-ademico/access_token")
        store.save(CachedToken(value="abc", expires_at=expiry))
        cached = store.load()
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        """The filesystem path of the token file."""
        return self._path

    def read(self) -> Optional[CachedToken]:
        """Read the stored token.

        Returns:
            The stored :class:`CachedToken`, or ``None`` if the file does not
            exist.

        Raises:
            TokenStoreError: If the file cannot be read or parsed.
        """
        try:
            if not self._path.is_file():
                return None
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise TokenStoreError(f"Cannot read token file {self._path}: {exc}") from exc
        return parse_record(text)

    def load(self) -> Optional[CachedToken]:
        """Best-effort read: any failure is logged and treated as "no token"."""
        try:
            return self.read()
        except TokenStoreError as exc:
            logger.warning("Ignoring persisted token at %s: %s", self._path, exc)
            return None

    def save(self, token: CachedToken) -> bool:
        """Persist *token* atomically with ``0o600`` permissions.

        Returns:
            ``True`` on success, ``False`` if the file could not be written.
            Failures are logged, never raised.
        """
        try:
            _atomic_write(self._path, format_record(token) + "\n", mode=0o600)
        except OSError as exc:
            logger.error("Failed to persist token to %s: %s", self._path, exc)
            return False
        return True

    def clear(self) -> None:
        """Delete the token file if it exists."""
        if self._path.is_file():
            self._path.unlink()
