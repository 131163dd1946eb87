"""Conversion between a :class:`RecordStore` and an encrypted vault blob.

The plaintext is the JSON form of the store (``{"entries": [...]}``), sealed
with AES-256-GCM. See :mod:`passvault.crypto` for the blob layout.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError

from .crypto import seal, unseal
from .models import RecordStore

logger = logging.getLogger(__name__)


def encrypt(store: RecordStore, key: bytes) -> bytes:
    """Serialise and seal *store*; every call uses a fresh nonce."""
    plaintext = store.model_dump_json().encode("utf-8")
    return seal(plaintext, key)


def decrypt(blob: bytes, key: bytes) -> Optional[RecordStore]:
    """Open *blob* and rebuild the store, or return ``None`` on any failure.

    A wrong key (including one of the wrong length), a tampered or truncated
    blob and an undecodable plaintext all look the same to the caller.
    """
    try:
        plaintext = unseal(blob, key)
    except ValueError as exc:
        logger.debug("Vault blob rejected: %s", exc)
        return None

    try:
        return RecordStore.model_validate_json(plaintext)
    except ValidationError as exc:
        logger.debug("Vault plaintext is not a record store (%d errors)", exc.error_count())
        return None
