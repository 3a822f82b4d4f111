"""
Application-layer encryption for stored bundles.

Bundles embed patient demographics, so the copy kept after submission is
encrypted with Fernet (AES-128-CBC + HMAC). The key comes from
PHI_ENCRYPTION_KEY.
"""

from __future__ import annotations

import json
from typing import Any

from cryptography.fernet import Fernet

from lab_bundle.config import settings


class EncryptionService:
    """Wraps Fernet symmetric encryption for PHI payloads."""

    def __init__(self, key: str | bytes | None = None):
        raw_key = key or settings.PHI_ENCRYPTION_KEY
        if raw_key:
            self._fernet = Fernet(raw_key.encode() if isinstance(raw_key, str) else raw_key)
        else:
            # Development only: records written with a generated key cannot be
            # read back after a restart.
            self._fernet = Fernet(Fernet.generate_key())

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a string and return base64-encoded ciphertext."""
        if not plaintext:
            return ""
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, ciphertext: str) -> str:
        """Decrypt base64-encoded ciphertext back to plaintext."""
        if not ciphertext:
            return ""
        return self._fernet.decrypt(ciphertext.encode()).decode()

    def encrypt_json(self, document: dict[str, Any]) -> str:
        return self.encrypt(json.dumps(document, separators=(",", ":")))

    def decrypt_json(self, ciphertext: str) -> dict[str, Any]:
        plaintext = self.decrypt(ciphertext)
        return json.loads(plaintext) if plaintext else {}
