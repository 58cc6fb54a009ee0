"""
In-process MetadataObjectClient.

Backs the ``memory`` backend (single-process deployments and local
development) and the repository tests. Objects are copied on the way in and
on the way out so callers can never mutate stored state.
"""
from typing import Dict, List, Tuple

from resourcestore.adapters.base import (
    MetadataObjectClient,
    ObjectExistsError,
    ObjectNotFoundError,
    StoredObject,
)
from resourcestore.locks import ReadWriteLock


def parse_selector(label_selector: str) -> Dict[str, str]:
    """Parse an equality-only selector ("a=b,c=d") into a dict."""
    wanted = {}
    for term in label_selector.split(","):
        term = term.strip()
        if not term:
            continue
        key, _, value = term.partition("=")
        wanted[key.strip()] = value.strip()
    return wanted


class InMemoryMetadataClient(MetadataObjectClient):
    def __init__(self):
        self._objects: Dict[Tuple[str, str], StoredObject] = {}
        self._lock = ReadWriteLock()

    def create(self, obj: StoredObject) -> None:
        with self._lock.write_locked():
            if (obj.kind, obj.name) in self._objects:
                raise ObjectExistsError(f"{obj.kind} {obj.name} already exists")
            self._objects[(obj.kind, obj.name)] = obj.model_copy(deep=True)

    def read(self, kind: str, name: str) -> StoredObject:
        with self._lock.read_locked():
            obj = self._objects.get((kind, name))
            if obj is None:
                raise ObjectNotFoundError(f"{kind} {name} not found")
            return obj.model_copy(deep=True)

    def replace(self, obj: StoredObject) -> None:
        with self._lock.write_locked():
            if (obj.kind, obj.name) not in self._objects:
                raise ObjectNotFoundError(f"{obj.kind} {obj.name} not found")
            self._objects[(obj.kind, obj.name)] = obj.model_copy(deep=True)

    def delete(self, kind: str, name: str) -> None:
        with self._lock.write_locked():
            if self._objects.pop((kind, name), None) is None:
                raise ObjectNotFoundError(f"{kind} {name} not found")

    def list(self, kind: str, label_selector: str) -> List[StoredObject]:
        wanted = parse_selector(label_selector)
        with self._lock.read_locked():
            return [
                obj.model_copy(deep=True)
                for (obj_kind, _), obj in sorted(self._objects.items())
                if obj_kind == kind and all(obj.labels.get(k) == v for k, v in wanted.items())
            ]
