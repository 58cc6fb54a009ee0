"""
Encryption service implementations.

- NoopEncryptionService: stores the plaintext inside the envelope
- LocalEncryptionService: AES-256-GCM with a 32-byte local key
- KMSEncryptionService: AWS KMS through boto3
"""
import base64
import binascii
import hashlib
import logging
import os
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from resourcestore.encryption.base import EncryptedData, EncryptionService
from resourcestore.exceptions import EncryptionError

logger = logging.getLogger(__name__)

KEY_SIZE = 32
NONCE_SIZE = 12


class NoopEncryptionService(EncryptionService):
    """Pass-through service used when no key is configured."""

    @property
    def algorithm(self) -> str:
        return "noop"

    @property
    def key_id(self) -> str:
        return "noop"

    def encrypt(self, plaintext: str) -> EncryptedData:
        return EncryptedData(encrypted_value=plaintext, metadata=self.metadata())

    def decrypt(self, encrypted: EncryptedData) -> str:
        return encrypted.encrypted_value


def key_fingerprint(key: bytes) -> str:
    """Return ``sha256:`` followed by the hex of the first 8 digest bytes."""
    return "sha256:" + hashlib.sha256(key).digest()[:8].hex()


class LocalEncryptionService(EncryptionService):
    """AES-256-GCM with a locally held key.

    Ciphertext is ``base64(nonce || sealed)`` with a random 12-byte nonce.
    """

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise EncryptionError(
                f"encryption key must be {KEY_SIZE} bytes for AES-256, got {len(key)} bytes",
                operation="configure",
            )
        self._aead = AESGCM(key)
        self._key_id = key_fingerprint(key)

    @classmethod
    def from_file(cls, path: str) -> "LocalEncryptionService":
        try:
            with open(path, "rb") as f:
                key = f.read()
        except OSError as e:
            raise EncryptionError(
                f"failed to read encryption key from file: {e}",
                operation="configure",
                original_error=e,
            ) from e
        return cls(key)

    @classmethod
    def from_base64(cls, encoded: str) -> "LocalEncryptionService":
        try:
            key = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EncryptionError(
                f"failed to decode encryption key: {e}",
                operation="configure",
                original_error=e,
            ) from e
        return cls(key)

    @property
    def algorithm(self) -> str:
        return "aes-256-gcm"

    @property
    def key_id(self) -> str:
        return self._key_id

    def encrypt(self, plaintext: str) -> EncryptedData:
        nonce = os.urandom(NONCE_SIZE)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        return EncryptedData(
            encrypted_value=base64.b64encode(nonce + sealed).decode("ascii"),
            metadata=self.metadata(),
        )

    def decrypt(self, encrypted: EncryptedData) -> str:
        try:
            raw = base64.b64decode(encrypted.encrypted_value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EncryptionError(
                f"failed to decode ciphertext: {e}", operation="decrypt", original_error=e
            ) from e
        if len(raw) < NONCE_SIZE:
            raise EncryptionError(
                f"ciphertext too short: {len(raw)} bytes, expected at least {NONCE_SIZE} bytes",
                operation="decrypt",
            )
        try:
            plaintext = self._aead.decrypt(raw[:NONCE_SIZE], raw[NONCE_SIZE:], None)
        except InvalidTag as e:
            raise EncryptionError(
                "failed to decrypt: authentication tag mismatch", operation="decrypt", original_error=e
            ) from e
        return plaintext.decode("utf-8")


class KMSEncryptionService(EncryptionService):
    """Envelope encryption delegated to AWS KMS."""

    def __init__(self, key_id: str, region: str, client: Optional[object] = None):
        self._key_id = key_id
        self._region = region
        self._client = client or boto3.client("kms", region_name=region)

    @property
    def algorithm(self) -> str:
        return "aws-kms"

    @property
    def key_id(self) -> str:
        return self._key_id

    def encrypt(self, plaintext: str) -> EncryptedData:
        try:
            response = self._client.encrypt(KeyId=self._key_id, Plaintext=plaintext.encode("utf-8"))
        except (ClientError, BotoCoreError) as e:
            raise EncryptionError(
                f"failed to encrypt with KMS: {e}", operation="encrypt", original_error=e
            ) from e
        return EncryptedData(
            encrypted_value=base64.b64encode(response["CiphertextBlob"]).decode("ascii"),
            metadata=self.metadata(),
        )

    def decrypt(self, encrypted: EncryptedData) -> str:
        try:
            blob = base64.b64decode(encrypted.encrypted_value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise EncryptionError(
                f"failed to decode ciphertext: {e}", operation="decrypt", original_error=e
            ) from e
        try:
            response = self._client.decrypt(CiphertextBlob=blob, KeyId=self._key_id)
        except (ClientError, BotoCoreError) as e:
            raise EncryptionError(
                f"failed to decrypt with KMS: {e}", operation="decrypt", original_error=e
            ) from e
        return response["Plaintext"].decode("utf-8")
