"""
Selects the encryption service from configuration.

Priority: KMS (only if a test encryption succeeds), then a local AES key,
then noop. Failures to set up a preferred service are logged and the next
option is tried.
"""
import logging
from typing import Callable, Optional

from resourcestore.config import StoreSettings, get_settings
from resourcestore.encryption.base import EncryptionService
from resourcestore.encryption.registry import EncryptionServiceRegistry
from resourcestore.encryption.services import (
    KMSEncryptionService,
    LocalEncryptionService,
    NoopEncryptionService,
)
from resourcestore.exceptions import EncryptionError

logger = logging.getLogger(__name__)


class EncryptionServiceFactory:
    """Builds the primary EncryptionService from StoreSettings."""

    def __init__(
        self,
        settings: Optional[StoreSettings] = None,
        kms_factory: Callable[[str, str], EncryptionService] = KMSEncryptionService,
    ):
        self.settings = settings or get_settings()
        self._kms_factory = kms_factory

    def create(self) -> EncryptionService:
        """
        Create the encryption service to use for new values.

        Returns:
            KMS, local or noop service, in that order of preference
        """
        s = self.settings
        if s.encryption_kms_key_id and s.encryption_kms_region:
            try:
                service = self._kms_factory(s.encryption_kms_key_id, s.encryption_kms_region)
                service.encrypt("test")
                logger.info(
                    f"Using AWS KMS encryption (key: {s.encryption_kms_key_id}, "
                    f"region: {s.encryption_kms_region})"
                )
                return service
            except EncryptionError as e:
                logger.warning(f"KMS unavailable, falling back to next option: {e}")

        if s.encryption_key_file or s.encryption_key:
            try:
                if s.encryption_key_file:
                    service = LocalEncryptionService.from_file(s.encryption_key_file)
                else:
                    service = LocalEncryptionService.from_base64(s.encryption_key)
                logger.info(f"Using local AES-256-GCM encryption (key fingerprint: {service.key_id})")
                return service
            except EncryptionError as e:
                logger.warning(f"Failed to create local encryption service: {e}")

        logger.info("No encryption configured, using noop encryption (plaintext)")
        return NoopEncryptionService()

    def create_registry(self) -> EncryptionServiceRegistry:
        """Create a registry whose primary is create() and which can always read noop envelopes."""
        primary = self.create()
        registry = EncryptionServiceRegistry(primary)
        if primary.algorithm != "noop":
            registry.register(NoopEncryptionService())
        return registry
