"""Cryptographic primitives for passvault.

Key derivation: a single SHA-256 pass over the master password (no salt).
Encryption:     AES-256-GCM, 12-byte random nonce, 16-byte tag, no AAD.

Sealed blob layout: ``nonce (12 bytes) || ciphertext || tag (16 bytes)``.
"""

from __future__ import annotations

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16


class DecryptionError(ValueError):
    """Raised when a sealed blob cannot be opened with the given key."""


def derive_key(master_password: str) -> bytes:
    """Derive the 32-byte vault key from *master_password*.

    The same password always yields the same key; the key itself is never
    stored, only re-derived on every run.
    """
    digest = hashes.Hash(hashes.SHA256())
    digest.update(master_password.encode("utf-8"))
    return digest.finalize()


def generate_nonce() -> bytes:
    """Return a fresh 12-byte nonce from the OS random source."""
    return os.urandom(NONCE_SIZE)


def _check_key(key: bytes) -> None:
    # AESGCM would also accept 16- and 24-byte keys.
    if len(key) != KEY_SIZE:
        raise ValueError(f"Key must be exactly {KEY_SIZE} bytes.")


def seal(plaintext: bytes, key: bytes) -> bytes:
    """Encrypt *plaintext* under *key*; returns ``nonce || ciphertext+tag``."""
    _check_key(key)
    aesgcm = AESGCM(key)
    nonce = generate_nonce()
    return nonce + aesgcm.encrypt(nonce, plaintext, None)


def unseal(blob: bytes, key: bytes) -> bytes:
    """Decrypt a blob produced by :func:`seal`; raises :class:`DecryptionError`."""
    _check_key(key)
    if len(blob) < NONCE_SIZE:
        raise DecryptionError("Blob is shorter than the nonce.")

    nonce, ciphertext = blob[:NONCE_SIZE], blob[NONCE_SIZE:]
    try:
        return AESGCM(key).decrypt(nonce, ciphertext, None)
    except InvalidTag as exc:
        raise DecryptionError("Decryption failed: wrong password or corrupted vault.") from exc
