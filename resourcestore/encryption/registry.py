"""
Registry of encryption services.

New values are always encrypted with the primary service. Stored values
are decrypted by whichever registered service produced them, so rotating
keys or switching from local keys to KMS keeps old data readable.
"""
import logging
from typing import Dict

from resourcestore.encryption.base import EncryptionMetadata, EncryptionService

logger = logging.getLogger(__name__)


class EncryptionServiceRegistry:
    """Maps envelope metadata to the service able to decrypt it."""

    def __init__(self, primary: EncryptionService):
        self._primary = primary
        self._by_algorithm_and_key: Dict[str, EncryptionService] = {}
        self._by_algorithm: Dict[str, EncryptionService] = {}
        self.register(primary)

    @staticmethod
    def _key(algorithm: str, key_id: str) -> str:
        return f"{algorithm}:{key_id}"

    def register(self, service: EncryptionService) -> None:
        """Register a service for decryption; the first per algorithm wins algorithm-only lookups."""
        self._by_algorithm_and_key[self._key(service.algorithm, service.key_id)] = service
        self._by_algorithm.setdefault(service.algorithm, service)
        logger.debug(f"Registered encryption service {service.algorithm} ({service.key_id})")

    @property
    def primary(self) -> EncryptionService:
        return self._primary

    def set_primary(self, service: EncryptionService) -> None:
        self.register(service)
        self._primary = service

    def for_encryption(self) -> EncryptionService:
        return self._primary

    def for_decryption(self, metadata: EncryptionMetadata) -> EncryptionService:
        """
        Pick the service that should decrypt a value.

        Lookup order: exact algorithm and key id, algorithm only, primary.
        """
        service = self._by_algorithm_and_key.get(self._key(metadata.algorithm, metadata.key_id))
        if service is not None:
            return service

        service = self._by_algorithm.get(metadata.algorithm)
        if service is not None:
            logger.info(
                f"Using algorithm-only match for {metadata.algorithm} (key id: {metadata.key_id})"
            )
            return service

        logger.warning(
            f"No encryption service registered for {metadata.algorithm} "
            f"(key id: {metadata.key_id}), using primary"
        )
        return self._primary
