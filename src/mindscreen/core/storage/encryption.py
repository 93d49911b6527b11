"""Encryption at rest for the guidance text stored with each assessment.

Only the suggestion and tips columns are encrypted. Scores and the severity
state stay in the clear so history can be listed and ordered in SQL.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)


class EncryptionError(Exception):
    """A key, value or token could not be used."""


class FieldEncryptor:
    """JSON value <-> Fernet token (str).

    ``None`` maps to ``""`` and back, so optional columns need no special case::

        enc = FieldEncryptor(settings.encryption_key)
        column = enc.encrypt({"en": "...", "id": "..."})
        enc.decrypt(column)
    """

    def __init__(self, key: str) -> None:
        if not (key and key.strip()):
            raise EncryptionError("Encryption key must not be empty")
        try:
            self._fernet = Fernet(key.strip().encode("ascii"))
        except (ValueError, UnicodeEncodeError) as exc:
            raise EncryptionError(f"Invalid encryption key: {exc}") from exc

    @classmethod
    def ephemeral(cls) -> FieldEncryptor:
        """A fresh random key held only in memory."""
        logger.warning("Using an ephemeral encryption key; stored guidance will not survive a restart")
        return cls(Fernet.generate_key().decode("ascii"))

    def encrypt(self, data: Any) -> str:
        if data is None:
            return ""
        try:
            serialized = json.dumps(data, ensure_ascii=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise EncryptionError(f"Encryption failed: {exc}") from exc
        return self._fernet.encrypt(serialized.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> Any:
        """Inverse of ``encrypt``; a token from another key raises EncryptionError."""
        if not token:
            return None
        try:
            serialized = self._fernet.decrypt(token.encode("ascii"))
        except InvalidToken as exc:
            raise EncryptionError("Decryption failed: invalid token or wrong key") from exc
        return json.loads(serialized.decode("utf-8"))
