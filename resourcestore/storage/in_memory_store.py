"""
In-process backend for entities that never leave the process (sessions,
users, notifications).

One map per store, guarded by a single ReadWriteLock. Entities are cloned
on every write and every read, so a caller mutating a returned entity never
changes stored state.
"""
import logging
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from resourcestore.entities import Entity
from resourcestore.exceptions import DuplicateError, NotFoundError
from resourcestore.locks import ReadWriteLock

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)
Predicate = Callable[[E], bool]


class InMemoryStore(Generic[E]):
    """Keyed in-memory store with the repository contract."""

    def __init__(self, not_found: Callable[[str], NotFoundError], key_field: str = "id"):
        """
        Args:
            not_found: Builds the NotFoundError subclass for a key
            key_field: Attribute holding the entity key
        """
        self._items: Dict[str, E] = {}
        self._lock = ReadWriteLock()
        self._not_found = not_found
        self._key_field = key_field

    def _key(self, entity: E) -> str:
        return getattr(entity, self._key_field)

    def create(self, entity: E) -> None:
        entity.check()
        key = self._key(entity)
        with self._lock.write_locked():
            if key in self._items:
                raise DuplicateError(entity.resource_name, self._key_field, key)
            self._items[key] = entity.clone()

    def save(self, entity: E) -> None:
        """Insert or overwrite."""
        entity.check()
        with self._lock.write_locked():
            self._items[self._key(entity)] = entity.clone()

    def find(self, key: str) -> Optional[E]:
        with self._lock.read_locked():
            entity = self._items.get(key)
            return entity.clone() if entity is not None else None

    def get(self, key: str) -> E:
        entity = self.find(key)
        if entity is None:
            raise self._not_found(key)
        return entity

    def exists(self, key: str) -> bool:
        with self._lock.read_locked():
            return key in self._items

    def find_all(self, predicate: Optional[Predicate] = None) -> List[E]:
        with self._lock.read_locked():
            return [e.clone() for e in self._items.values() if predicate is None or predicate(e)]

    def find_first(self, predicate: Predicate) -> Optional[E]:
        with self._lock.read_locked():
            for entity in self._items.values():
                if predicate(entity):
                    return entity.clone()
        return None

    def count(self, predicate: Optional[Predicate] = None) -> int:
        with self._lock.read_locked():
            if predicate is None:
                return len(self._items)
            return sum(1 for e in self._items.values() if predicate(e))

    def update(self, entity: E) -> None:
        entity.check()
        key = self._key(entity)
        with self._lock.write_locked():
            if key not in self._items:
                raise self._not_found(key)
            self._items[key] = entity.clone()

    def delete(self, key: str) -> None:
        with self._lock.write_locked():
            if self._items.pop(key, None) is None:
                raise self._not_found(key)
        logger.debug(f"Deleted in-memory entry {key}")
