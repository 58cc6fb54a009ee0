"""
Field-level encryption for sensitive values stored by resourcestore.
"""
from resourcestore.encryption.base import EncryptedData, EncryptionMetadata, EncryptionService
from resourcestore.encryption.services import (
    KMSEncryptionService,
    LocalEncryptionService,
    NoopEncryptionService,
    key_fingerprint,
)
from resourcestore.encryption.registry import EncryptionServiceRegistry
from resourcestore.encryption.factory import EncryptionServiceFactory
from resourcestore.encryption.field_codec import FieldEncryptionCodec

__all__ = [
    "EncryptedData",
    "EncryptionMetadata",
    "EncryptionService",
    "KMSEncryptionService",
    "LocalEncryptionService",
    "NoopEncryptionService",
    "key_fingerprint",
    "EncryptionServiceRegistry",
    "EncryptionServiceFactory",
    "FieldEncryptionCodec",
]
