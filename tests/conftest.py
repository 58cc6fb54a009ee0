"""
Pytest configuration and shared fixtures.

Provides fake backend clients implementing the adapter interfaces, so
repositories can be exercised without a cluster or a bucket.
"""
from typing import Dict, List

import pytest

from resourcestore.adapters import (
    ClientCallError,
    ObjectNotFoundError,
    ObjectStorageClient,
    StoredObject,
)
from resourcestore.adapters.memory_client import InMemoryMetadataClient
from resourcestore.encryption import (
    EncryptionServiceRegistry,
    FieldEncryptionCodec,
    LocalEncryptionService,
    NoopEncryptionService,
)

TEST_KEY = bytes(range(32))


class FakeMetadataClient(InMemoryMetadataClient):
    """In-memory metadata client that records calls and can be told to fail.

    Set ``fail[operation] = exception`` to make the next calls of that
    operation raise.
    """

    def __init__(self):
        super().__init__()
        self.calls: List[tuple] = []
        self.fail: Dict[str, Exception] = {}

    def _record(self, operation: str, *args) -> None:
        self.calls.append((operation,) + args)
        if operation in self.fail:
            raise self.fail[operation]

    def create(self, obj: StoredObject) -> None:
        self._record("create", obj.kind, obj.name)
        super().create(obj)

    def read(self, kind: str, name: str) -> StoredObject:
        self._record("read", kind, name)
        return super().read(kind, name)

    def replace(self, obj: StoredObject) -> None:
        self._record("replace", obj.kind, obj.name)
        super().replace(obj)

    def delete(self, kind: str, name: str) -> None:
        self._record("delete", kind, name)
        super().delete(kind, name)

    def list(self, kind: str, label_selector: str) -> List[StoredObject]:
        self._record("list", kind, label_selector)
        return super().list(kind, label_selector)

    def stored(self, kind: str, name: str) -> StoredObject:
        """Read an object without recording the call."""
        return InMemoryMetadataClient.read(self, kind, name)

    def put_raw(self, obj: StoredObject) -> None:
        """Store an object as-is (e.g. a corrupt or legacy one)."""
        InMemoryMetadataClient.create(self, obj)

    def operations(self, operation: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == operation]


class FakeObjectClient(ObjectStorageClient):
    """Dict-backed object storage client."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.metadata: Dict[str, Dict[str, str]] = {}
        self.failing_prefixes: set = set()
        self.listed_prefixes: List[str] = []

    def put(self, key: str, body: bytes, metadata: Dict[str, str]) -> None:
        self.objects[key] = body
        self.metadata[key] = dict(metadata)

    def get(self, key: str) -> bytes:
        if key not in self.objects:
            raise ObjectNotFoundError(f"object {key} not found")
        return self.objects[key]

    def exists(self, key: str) -> bool:
        return key in self.objects

    def delete(self, key: str) -> None:
        self.objects.pop(key, None)
        self.metadata.pop(key, None)

    def list_keys(self, prefix: str) -> List[str]:
        self.listed_prefixes.append(prefix)
        if prefix in self.failing_prefixes:
            raise ClientCallError(f"failed to list objects under {prefix}")
        return sorted(k for k in self.objects if k.startswith(prefix))


@pytest.fixture
def metadata_client():
    return FakeMetadataClient()


@pytest.fixture
def object_client():
    return FakeObjectClient()


@pytest.fixture
def local_service():
    return LocalEncryptionService(TEST_KEY)


@pytest.fixture
def codec(local_service):
    """Codec encrypting with AES-256-GCM and able to read noop envelopes."""
    registry = EncryptionServiceRegistry(local_service)
    registry.register(NoopEncryptionService())
    return FieldEncryptionCodec(registry)


@pytest.fixture
def noop_codec():
    return FieldEncryptionCodec(EncryptionServiceRegistry(NoopEncryptionService()))
