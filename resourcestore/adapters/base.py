"""
Backend-neutral view of stored objects and the errors adapters raise.

Adapters isolate third-party client imports (kubernetes, boto3) so the
storage layer only ever sees StoredObject and the exceptions below.
"""
from abc import ABC, abstractmethod
from typing import Dict, List

from pydantic import BaseModel, Field

KIND_CONFIG_MAP = "configmap"
KIND_SECRET = "secret"


class StoredObject(BaseModel):
    """One named metadata object: labels, annotations and a text payload map."""

    kind: str = KIND_CONFIG_MAP
    name: str
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    data: Dict[str, str] = Field(default_factory=dict)


class AdapterError(Exception):
    """Base class for errors raised by backend adapters."""

    def __init__(self, message: str, *, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class ObjectNotFoundError(AdapterError):
    pass


class ObjectExistsError(AdapterError):
    pass


class ClientCallError(AdapterError):
    """Any other failure of the underlying client call."""


class MetadataObjectClient(ABC):
    """Named key/value objects with label selection (ConfigMap/Secret semantics)."""

    @abstractmethod
    def create(self, obj: StoredObject) -> None:
        """Create ``obj``; raise ObjectExistsError if the name is taken."""

    @abstractmethod
    def read(self, kind: str, name: str) -> StoredObject:
        """Return the object; raise ObjectNotFoundError if absent."""

    @abstractmethod
    def replace(self, obj: StoredObject) -> None:
        """Overwrite labels, annotations and data wholesale."""

    @abstractmethod
    def delete(self, kind: str, name: str) -> None:
        pass

    @abstractmethod
    def list(self, kind: str, label_selector: str) -> List[StoredObject]:
        """Return every object whose labels satisfy the equality selector."""


class ObjectStorageClient(ABC):
    """Flat key space with prefix listing (S3 semantics)."""

    @abstractmethod
    def put(self, key: str, body: bytes, metadata: Dict[str, str]) -> None:
        pass

    @abstractmethod
    def get(self, key: str) -> bytes:
        """Return the object body; raise ObjectNotFoundError if absent."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    @abstractmethod
    def list_keys(self, prefix: str) -> List[str]:
        """Return every key under ``prefix``, following pagination."""
