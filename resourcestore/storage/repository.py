"""
Base class for per-resource repositories.

A repository validates input, delegates to one backend store and lets the
store translate backend failures into the exception taxonomy. Subclasses
only add resource-specific names and lookups.
"""
import logging
from typing import Generic, List, Optional, TypeVar, Union

from resourcestore.annotations import LabelSchema
from resourcestore.adapters import MetadataObjectClient, ObjectStorageClient
from resourcestore.encryption import FieldEncryptionCodec
from resourcestore.entities import Entity
from resourcestore.filters import ResourceFilter
from resourcestore.storage.descriptors import ResourceDescriptor
from resourcestore.storage.metadata_store import MetadataObjectStore
from resourcestore.storage.object_store import ObjectStorageStore

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)
Store = Union[MetadataObjectStore, ObjectStorageStore]


class ResourceRepository(Generic[E]):
    """Uniform create/get/list/update/delete over one store."""

    descriptor: ResourceDescriptor

    def __init__(self, store: Store):
        self.store = store

    @classmethod
    def on_metadata_objects(
        cls,
        client: MetadataObjectClient,
        *,
        codec: Optional[FieldEncryptionCodec] = None,
        schema: Optional[LabelSchema] = None,
        **kwargs,
    ):
        """Build the repository over ConfigMaps/Secrets (or the in-memory client)."""
        return cls(MetadataObjectStore(client, cls.descriptor, codec=codec, schema=schema), **kwargs)

    @classmethod
    def on_object_storage(
        cls,
        client: ObjectStorageClient,
        *,
        prefix: str,
        codec: Optional[FieldEncryptionCodec] = None,
        **kwargs,
    ):
        """Build the repository over an object-storage bucket prefix."""
        return cls(ObjectStorageStore(client, cls.descriptor, prefix=prefix, codec=codec), **kwargs)

    def create(self, entity: E) -> None:
        self.store.create(entity)

    def get(self, key: str) -> E:
        return self.store.get(key)

    def find(self, key: str) -> Optional[E]:
        return self.store.find(key)

    def exists(self, key: str) -> bool:
        return self.store.exists(key)

    def list(self, flt: Optional[ResourceFilter] = None) -> List[E]:
        return self.store.list(flt)

    def update(self, entity: E) -> None:
        self.store.update(entity)

    def delete(self, key: str) -> None:
        self.store.delete(key)
