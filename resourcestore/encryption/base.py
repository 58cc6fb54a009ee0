"""
Encryption service contract and the stored envelope format.

An encrypted field is stored as the JSON text of an EncryptedData envelope:

    {"EncryptedValue": "<ciphertext>",
     "Metadata": {"Algorithm": "aes-256-gcm", "KeyID": "sha256:...",
                  "EncryptedAt": "...", "Version": "v1"}}

Anything that does not parse as such an envelope is legacy plaintext.
"""
import json
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from resourcestore.entities.base import utcnow

ENVELOPE_VERSION = "v1"


class EncryptionMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    algorithm: str = Field(alias="Algorithm")
    key_id: str = Field(default="", alias="KeyID")
    encrypted_at: datetime = Field(default_factory=utcnow, alias="EncryptedAt")
    version: str = Field(default=ENVELOPE_VERSION, alias="Version")


class EncryptedData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    encrypted_value: str = Field(alias="EncryptedValue")
    metadata: EncryptionMetadata = Field(alias="Metadata")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_stored(cls, value: str) -> Optional["EncryptedData"]:
        """
        Parse a stored field value as an envelope.

        Returns None for anything that is not a well-formed envelope,
        including JSON objects that merely look similar, so that legacy
        plaintext is never mistaken for ciphertext.
        """
        if not value or not value.lstrip().startswith("{"):
            return None
        try:
            raw = json.loads(value)
        except ValueError:
            return None
        if not isinstance(raw, dict) or not isinstance(raw.get("EncryptedValue"), str):
            return None
        metadata = raw.get("Metadata")
        if not isinstance(metadata, dict) or not metadata.get("Algorithm"):
            return None
        try:
            return cls.model_validate(raw)
        except PydanticValidationError:
            return None


class EncryptionService(ABC):
    """Encrypts and decrypts single string values."""

    @property
    @abstractmethod
    def algorithm(self) -> str:
        """Algorithm name recorded in envelope metadata."""

    @property
    @abstractmethod
    def key_id(self) -> str:
        """Key identifier recorded in envelope metadata."""

    @abstractmethod
    def encrypt(self, plaintext: str) -> EncryptedData:
        pass

    @abstractmethod
    def decrypt(self, encrypted: EncryptedData) -> str:
        pass

    def metadata(self) -> EncryptionMetadata:
        return EncryptionMetadata(
            algorithm=self.algorithm,
            key_id=self.key_id,
            encrypted_at=utcnow(),
            version=ENVELOPE_VERSION,
        )
