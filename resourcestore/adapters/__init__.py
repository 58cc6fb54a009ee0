"""
Adapters for the storage backends' client libraries.
"""
from resourcestore.adapters.base import (
    KIND_CONFIG_MAP,
    KIND_SECRET,
    AdapterError,
    ClientCallError,
    MetadataObjectClient,
    ObjectExistsError,
    ObjectNotFoundError,
    ObjectStorageClient,
    StoredObject,
)

__all__ = [
    "KIND_CONFIG_MAP",
    "KIND_SECRET",
    "AdapterError",
    "ClientCallError",
    "MetadataObjectClient",
    "ObjectExistsError",
    "ObjectNotFoundError",
    "ObjectStorageClient",
    "StoredObject",
]
