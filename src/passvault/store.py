"""Encrypted vault file I/O.

Binary file format
------------------
Offset  Length  Content
0       12      AES-GCM nonce
12      …       Ciphertext of the JSON-encoded RecordStore, 16-byte tag appended

There is no magic header or version byte, so vaults written by earlier
releases of the tool load unchanged.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from . import codec
from .models import RecordStore

try:
    import fcntl
except ImportError:
    fcntl = None

try:
    import msvcrt
except ImportError:
    msvcrt = None

logger = logging.getLogger(__name__)

VAULT_FILENAME = ".pass_vault"


class BadVaultError(Exception):
    """Raised when the vault file cannot be decrypted or decoded."""


def vault_path() -> Path:
    """Return the fixed vault location, in the home directory when it resolves."""
    try:
        base = Path.home()
    except (RuntimeError, KeyError):
        base = Path.cwd()
    return base / VAULT_FILENAME


class VaultRepository:
    """Reads and writes the single encrypted vault file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path if path is not None else vault_path()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        return self.path.exists()

    def init(self, key: bytes) -> None:
        """Create a new, empty vault protected by *key*."""
        self.save(RecordStore(), key)

    def load(self, key: bytes, *, strict: bool = False) -> RecordStore:
        """Read and decrypt the vault.

        A missing file is an empty vault. A file that does not decrypt is also
        treated as an empty vault unless *strict* is set, in which case
        :class:`BadVaultError` is raised.
        """
        if not self.path.exists():
            return RecordStore()

        data = self.path.read_bytes()
        store = codec.decrypt(data, key)
        if store is None:
            if strict:
                raise BadVaultError("Wrong master password or corrupted vault.")
            logger.warning("Could not decrypt %s; treating it as an empty vault", self.path)
            return RecordStore()

        logger.debug("Loaded %d record(s) from %s", len(store), self.path)
        return store

    def save(self, store: RecordStore, key: bytes) -> None:
        """Encrypt *store* and replace the vault file with it."""
        data = codec.encrypt(store, key)

        self.path.parent.mkdir(parents=True, exist_ok=True)

        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.unlink(missing_ok=True)
        try:
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL | getattr(os, "O_BINARY", 0), 0o600)
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            tmp.replace(self.path)
        except BaseException:
            tmp.unlink(missing_ok=True)
            raise

        os.chmod(self.path, 0o600)
        logger.debug("Saved %d record(s) to %s", len(store), self.path)

    @contextmanager
    def transaction(self, key: bytes) -> Iterator[RecordStore]:
        """Load, yield and save the store while holding the vault lock.

        The store is only written back when the block finishes without an
        exception. The lock is released either way.
        """
        with self._locked():
            store = self.load(key)
            yield store
            self.save(store, key)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    @contextmanager
    def _locked(self) -> Iterator[None]:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.lock_path, "a+b") as fh:
            _lock(fh.fileno())
            logger.debug("Acquired lock %s", self.lock_path)
            try:
                yield
            finally:
                _unlock(fh.fileno())
                logger.debug("Released lock %s", self.lock_path)


# ---------------------------------------------------------------------------
# Locking helpers
# ---------------------------------------------------------------------------

def _lock(fd: int) -> None:
    if fcntl is not None:
        fcntl.flock(fd, fcntl.LOCK_EX)
    elif msvcrt is not None:
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_LOCK, 1)


def _unlock(fd: int) -> None:
    if fcntl is not None:
        fcntl.flock(fd, fcntl.LOCK_UN)
    elif msvcrt is not None:
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
