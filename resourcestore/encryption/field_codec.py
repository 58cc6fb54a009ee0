"""
Field encryption codec.

Wraps and unwraps individual sensitive string fields. Each field is handled
on its own: a record may mix encrypted and legacy plaintext fields, and a
failure names the field it happened on.
"""
import logging
from typing import Dict, Optional

from resourcestore.encryption.base import EncryptedData
from resourcestore.encryption.registry import EncryptionServiceRegistry
from resourcestore.exceptions import EncryptionError

logger = logging.getLogger(__name__)


class FieldEncryptionCodec:
    """Encrypts values into envelopes and decodes envelopes or plaintext back."""

    def __init__(self, registry: EncryptionServiceRegistry):
        self.registry = registry

    def encrypt(self, plaintext: str, field: Optional[str] = None) -> str:
        """
        Encrypt one value.

        Args:
            plaintext: Value to protect; empty values are returned unchanged
            field: Field path used in error messages

        Returns:
            JSON text of the encrypted envelope, or "" for ""

        Raises:
            EncryptionError: The service failed; the error names ``field``
        """
        if plaintext == "":
            return ""
        service = self.registry.for_encryption()
        try:
            envelope = service.encrypt(plaintext)
        except EncryptionError as e:
            raise EncryptionError(
                f"failed to encrypt {field or 'value'}: {e.message}",
                field=field,
                operation="encrypt",
                original_error=e.original_error or e,
            ) from e
        return envelope.to_json()

    def decrypt(self, value: str, field: Optional[str] = None) -> str:
        """
        Decrypt one stored value.

        Values that are not an encrypted envelope are legacy plaintext and are
        returned unchanged without error.

        Raises:
            EncryptionError: The value is an envelope that could not be decrypted
        """
        if value == "":
            return ""
        envelope = EncryptedData.from_stored(value)
        if envelope is None:
            return value
        service = self.registry.for_decryption(envelope.metadata)
        try:
            return service.decrypt(envelope)
        except EncryptionError as e:
            raise EncryptionError(
                f"failed to decrypt {field or 'value'}: {e.message}",
                field=field,
                operation="decrypt",
                original_error=e.original_error or e,
            ) from e

    def encrypt_map(self, values: Dict[str, str], field: str) -> Dict[str, str]:
        """Encrypt every value of a map; errors name ``field.<key>``."""
        return {k: self.encrypt(v, f"{field}.{k}") for k, v in values.items()}

    def decrypt_map(self, values: Dict[str, str], field: str) -> Dict[str, str]:
        return {k: self.decrypt(v, f"{field}.{k}") for k, v in values.items()}
