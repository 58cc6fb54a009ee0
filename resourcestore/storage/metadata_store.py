"""
Metadata-object backend adapter.

Stores one entity per ConfigMap or Secret:

- name: ``{prefix}{sanitized key}``
- labels: type, key hash, scope, owner/team hashes, index labels
- annotations: exact key, owner and team IDs
- data: the entity JSON (sensitive fields encrypted)

Because sanitization is lossy, two different keys can map to one object
name. The exact key annotation is checked on every read so such a
collision surfaces as NotFound/AlreadyExists instead of returning or
overwriting someone else's entity.
"""
import logging
from typing import Dict, List, Optional

from resourcestore.adapters import (
    ClientCallError,
    MetadataObjectClient,
    ObjectExistsError,
    ObjectNotFoundError,
    StoredObject,
)
from resourcestore.annotations import (
    LabelSchema,
    build_annotations,
    build_labels,
    resolve_annotations,
    stored_key,
)
from resourcestore.encryption import FieldEncryptionCodec
from resourcestore.entities import Entity
from resourcestore.exceptions import BackendError, DuplicateError
from resourcestore.filters import ResourceFilter, matches
from resourcestore.identifiers import hash_id, label_value, object_name
from resourcestore.index_planner import NativeQuery, plan
from resourcestore.storage.descriptors import MalformedRecordError, ResourceDescriptor

logger = logging.getLogger(__name__)


class MetadataObjectStore:
    """Generic create/get/list/update/delete over a MetadataObjectClient."""

    def __init__(
        self,
        client: MetadataObjectClient,
        descriptor: ResourceDescriptor,
        *,
        codec: Optional[FieldEncryptionCodec] = None,
        schema: Optional[LabelSchema] = None,
    ):
        self.client = client
        self.descriptor = descriptor
        self.codec = codec
        self.schema = schema or LabelSchema()

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def object_name(self, key: str) -> str:
        return object_name(self.descriptor.name_prefix, key)

    def to_object(self, entity: Entity) -> StoredObject:
        d = self.descriptor
        return StoredObject(
            kind=d.kind,
            name=self.object_name(d.key_of(entity)),
            labels=build_labels(entity, d, self.schema),
            annotations=build_annotations(entity, d, self.schema),
            data=d.encode(entity, self.codec),
        )

    def from_object(self, obj: StoredObject) -> Entity:
        entity = self.descriptor.decode(obj.data, self.codec)
        return resolve_annotations(obj.annotations, entity, self.descriptor, self.schema)

    def selector(self, query: NativeQuery) -> str:
        """Render a native query as a Kubernetes equality label selector."""
        s = self.schema
        parts = [f"{s.type_label}={self.descriptor.type_name}"]
        for name, value in query.equals.items():
            if name == "scope":
                parts.append(f"{s.scope_label}={label_value(value)}")
            elif name == "owner_id":
                parts.append(f"{s.owner_hash_label}={hash_id(value)}")
            elif name == "team_id":
                parts.append(f"{s.team_hash_label}={hash_id(value)}")
            elif name in self.descriptor.index_labels:
                suffix = self.descriptor.index_labels[name][0]
                parts.append(f"{s.key(suffix)}={label_value(value)}")
        return ",".join(parts)

    def _belongs_to(self, obj: StoredObject, key: str) -> bool:
        written_for = stored_key(obj.annotations, self.schema)
        return not written_for or written_for == key

    def _backend_error(self, e: ClientCallError, operation: str) -> BackendError:
        return BackendError(
            f"failed to {operation} {self.descriptor.resource_name}: {e}",
            operation=operation,
            original_error=e.original_error or e,
        )

    def _read(self, key: str) -> Optional[StoredObject]:
        name = self.object_name(key)
        try:
            obj = self.client.read(self.descriptor.kind, name)
        except ObjectNotFoundError:
            return None
        except ClientCallError as e:
            raise self._backend_error(e, "get") from e
        if not self._belongs_to(obj, key):
            logger.warning(
                f"{self.descriptor.resource_name} object {name} belongs to a different key, "
                f"treating '{key}' as absent"
            )
            return None
        return obj

    def _decode_one(self, obj: StoredObject) -> Entity:
        try:
            return self.from_object(obj)
        except MalformedRecordError as e:
            raise BackendError(
                f"stored {self.descriptor.resource_name} {obj.name} is malformed: {e}",
                operation="decode",
                original_error=e,
            ) from e

    def _collision(self, key: str) -> DuplicateError:
        d = self.descriptor
        return DuplicateError(
            d.resource_name,
            d.key_field,
            key,
            message=f"{d.resource_name} '{key}' maps to object {self.object_name(key)} owned by another key",
        )

    # ------------------------------------------------------------------
    # Repository contract
    # ------------------------------------------------------------------

    def create(self, entity: Entity) -> None:
        """
        Create a new object for ``entity``.

        Raises:
            ValidationError: The entity is invalid (no backend call made)
            DuplicateError: An object already exists under the computed name
            BackendError: The backend call failed
        """
        entity.check()
        d = self.descriptor
        obj = self.to_object(entity)
        try:
            self.client.create(obj)
        except ObjectExistsError as e:
            raise DuplicateError(d.resource_name, d.key_field, d.key_of(entity)) from e
        except ClientCallError as e:
            raise self._backend_error(e, "create") from e
        logger.info(f"Created {d.resource_name} {d.key_of(entity)} ({obj.name})")

    def find(self, key: str) -> Optional[Entity]:
        """Return the entity for ``key`` or None when absent."""
        obj = self._read(key)
        if obj is None:
            return None
        return self._decode_one(obj)

    def get(self, key: str) -> Entity:
        """
        Return the entity for ``key``.

        Raises:
            NotFoundError: No object exists for the key
            BackendError: The backend call failed or the payload is malformed
            EncryptionError: A sensitive field could not be decrypted
        """
        entity = self.find(key)
        if entity is None:
            raise self.descriptor.not_found(key)
        return entity

    def exists(self, key: str) -> bool:
        return self._read(key) is not None

    def list(self, flt: Optional[ResourceFilter] = None) -> List[Entity]:
        """
        List entities matching ``flt``.

        Malformed objects are logged and skipped. The result is always a
        list, empty when nothing matches.
        """
        flt = flt or ResourceFilter()
        query_plan = plan(flt, self.descriptor)
        found: Dict[str, Entity] = {}
        for query in query_plan.queries:
            selector = self.selector(query)
            try:
                objects = self.client.list(self.descriptor.kind, selector)
            except ClientCallError as e:
                raise self._backend_error(e, "list") from e
            for obj in objects:
                try:
                    entity = self.from_object(obj)
                except MalformedRecordError as e:
                    logger.warning(f"Skipping malformed {self.descriptor.resource_name} {obj.name}: {e}")
                    continue
                if not matches(entity, query_plan.residual, self.descriptor):
                    continue
                found.setdefault(self.descriptor.key_of(entity), entity)
        return list(found.values())

    def update(self, entity: Entity) -> None:
        """
        Rewrite the object of an existing entity.

        Raises:
            ValidationError: The entity is invalid (no backend call made)
            NotFoundError: No object exists for the entity's key
            BackendError: The backend call failed
        """
        entity.check()
        d = self.descriptor
        key = d.key_of(entity)
        if self._read(key) is None:
            raise d.not_found(key)
        entity.touch()
        self._replace(entity, "update")
        logger.info(f"Updated {d.resource_name} {key}")

    def save(self, entity: Entity) -> None:
        """
        Create or overwrite the object of ``entity`` (upsert).

        Raises:
            ValidationError: The entity is invalid
            DuplicateError: The object name is taken by a different key
            BackendError: The backend call failed
        """
        entity.check()
        d = self.descriptor
        key = d.key_of(entity)
        obj = self.to_object(entity)
        try:
            self.client.create(obj)
            logger.info(f"Created {d.resource_name} {key} ({obj.name})")
            return
        except ObjectExistsError:
            pass
        except ClientCallError as e:
            raise self._backend_error(e, "create") from e

        try:
            existing = self.client.read(d.kind, obj.name)
        except (ObjectNotFoundError, ClientCallError) as e:
            raise self._backend_error(ClientCallError(str(e), original_error=e), "get") from e
        if not self._belongs_to(existing, key):
            raise self._collision(key)
        entity.touch()
        self._replace(entity, "update")
        logger.info(f"Updated {d.resource_name} {key}")

    def _replace(self, entity: Entity, operation: str) -> None:
        try:
            self.client.replace(self.to_object(entity))
        except ObjectNotFoundError as e:
            raise self.descriptor.not_found(self.descriptor.key_of(entity)) from e
        except ClientCallError as e:
            raise self._backend_error(e, operation) from e

    def delete(self, key: str) -> None:
        """
        Delete the object for ``key``.

        Raises:
            NotFoundError: The object is absent, unless the type deletes idempotently
            BackendError: The backend call failed
        """
        d = self.descriptor
        if self._read(key) is None:
            if d.delete_missing_ok:
                logger.debug(f"{d.resource_name} {key} already absent")
                return
            raise d.not_found(key)
        try:
            self.client.delete(d.kind, self.object_name(key))
        except ObjectNotFoundError as e:
            if d.delete_missing_ok:
                return
            raise d.not_found(key) from e
        except ClientCallError as e:
            raise self._backend_error(e, "delete") from e
        logger.info(f"Deleted {d.resource_name} {key}")
