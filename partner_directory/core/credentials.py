# partner_directory/core/credentials.py
"""
Client credential generation and at-rest encoding of client secrets.

Two encoders share one contract: decode(encode(s)) == s, and the encoded
form is plain text that fits the same column as the secret would.

- Base64CredentialEncoder: reversible encoding only. Anyone with database
  access can read the secrets. Kept for compatibility with rows written
  by earlier deployments.
- AesGcmCredentialEncoder: AES-256-GCM keyed by a secret held outside the
  database (settings.credential_encryption_key). Values without the "v1:"
  prefix are read as base64, so switching encoders leaves older rows
  readable. New and rotated secrets are always encrypted.
"""

import base64
import binascii
import hashlib
import os
import secrets
from functools import lru_cache
from typing import NamedTuple

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from partner_directory.core.config import get_settings

CLIENT_ID_BYTES = 16
CLIENT_SECRET_BYTES = 32

_AESGCM_PREFIX = "v1:"
_NONCE_LENGTH = 12


class CredentialDecodeError(Exception):
    pass


class ClientCredentials(NamedTuple):
    client_id: str
    client_secret: str


def generate_credentials() -> ClientCredentials:
    """
    Fresh client id (128 bits) and client secret (256 bits), hex encoded.
    """
    return ClientCredentials(
        client_id=secrets.token_hex(CLIENT_ID_BYTES),
        client_secret=secrets.token_hex(CLIENT_SECRET_BYTES),
    )


class CredentialEncoder:
    def encode(self, secret: str) -> str:
        raise NotImplementedError

    def decode(self, encoded: str) -> str:
        raise NotImplementedError


class Base64CredentialEncoder(CredentialEncoder):
    def encode(self, secret: str) -> str:
        return base64.b64encode(secret.encode("utf-8")).decode("ascii")

    def decode(self, encoded: str) -> str:
        try:
            return base64.b64decode(encoded.encode("ascii"), validate=True).decode("utf-8")
        except (binascii.Error, UnicodeError) as exc:
            raise CredentialDecodeError("Invalid encoded secret") from exc


class AesGcmCredentialEncoder(CredentialEncoder):
    """
    Output format: "v1:" + urlsafe-base64(nonce || ciphertext+tag).

    The prefix cannot appear in base64 output, so unprefixed values are
    decoded as base64.
    """

    def __init__(self, key: str):
        if not key:
            raise ValueError("An encryption key is required for AES-GCM credential encoding")
        # Derive a fixed-size 256-bit key from whatever passphrase is configured
        self._aesgcm = AESGCM(hashlib.sha256(key.encode("utf-8")).digest())

    def encode(self, secret: str) -> str:
        nonce = os.urandom(_NONCE_LENGTH)
        ciphertext = self._aesgcm.encrypt(nonce, secret.encode("utf-8"), None)
        return _AESGCM_PREFIX + base64.urlsafe_b64encode(nonce + ciphertext).decode("ascii")

    def decode(self, encoded: str) -> str:
        if not encoded.startswith(_AESGCM_PREFIX):
            return Base64CredentialEncoder().decode(encoded)
        try:
            payload = base64.urlsafe_b64decode(encoded[len(_AESGCM_PREFIX):].encode("ascii"))
        except (binascii.Error, UnicodeError) as exc:
            raise CredentialDecodeError("Invalid encoded secret") from exc

        nonce, ciphertext = payload[:_NONCE_LENGTH], payload[_NONCE_LENGTH:]
        try:
            return self._aesgcm.decrypt(nonce, ciphertext, None).decode("utf-8")
        except (InvalidTag, ValueError) as exc:
            raise CredentialDecodeError("Secret could not be decrypted") from exc


@lru_cache()
def get_credential_encoder() -> CredentialEncoder:
    """
    Encoder selected by settings.credential_encoder ("base64" or "aesgcm").
    """
    settings = get_settings()
    kind = settings.credential_encoder.lower()
    if kind == "aesgcm":
        return AesGcmCredentialEncoder(settings.credential_encryption_key or "")
    if kind == "base64":
        return Base64CredentialEncoder()
    raise ValueError(f"Unknown credential encoder: {settings.credential_encoder}")
