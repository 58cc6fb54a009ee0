"""
Object-storage backend adapter.

Stores one entity per object at ``{prefix}{scope}/{hash(owner or team)}/{id}.json``.
Prefix listing stands in for label selectors:

- scope user + owner -> ``user/{hash(owner)}/``
- scope team + team -> ``team/{hash(team)}/``
- scope only -> ``user/`` or ``team/``
- a set of team IDs -> one ``team/{hash(team)}/`` listing per team, merged by ID
- anything else -> the whole prefix

Lookups by ID do not know the scope or owner, so they scan the whole prefix
for a key ending in ``/{id}.json``. That is linear in the number of stored
objects; callers that know the owner should list instead.
"""
import logging
from typing import Dict, List, Optional

from resourcestore.adapters import ClientCallError, ObjectNotFoundError, ObjectStorageClient
from resourcestore.config import DEFAULT_S3_PREFIX
from resourcestore.encryption import FieldEncryptionCodec
from resourcestore.entities import Entity
from resourcestore.entities.base import SCOPE_TEAM, SCOPE_USER
from resourcestore.exceptions import BackendError, DuplicateError
from resourcestore.filters import ResourceFilter, matches
from resourcestore.identifiers import hash_id
from resourcestore.index_planner import NativeQuery, plan
from resourcestore.storage.descriptors import MalformedRecordError, ResourceDescriptor

logger = logging.getLogger(__name__)


class ObjectStorageStore:
    """Generic create/get/list/update/delete over an ObjectStorageClient."""

    def __init__(
        self,
        client: ObjectStorageClient,
        descriptor: ResourceDescriptor,
        *,
        prefix: str = DEFAULT_S3_PREFIX,
        codec: Optional[FieldEncryptionCodec] = None,
    ):
        self.client = client
        self.descriptor = descriptor
        self.prefix = prefix if prefix.endswith("/") else prefix + "/"
        self.codec = codec

    # ------------------------------------------------------------------
    # Key layout
    # ------------------------------------------------------------------

    def _scope_of(self, entity: Entity) -> str:
        d = self.descriptor
        return getattr(entity, d.scope_field) if d.scope_field else SCOPE_USER

    def key_for(self, entity: Entity) -> str:
        d = self.descriptor
        if self._scope_of(entity) == SCOPE_TEAM:
            segment = f"{SCOPE_TEAM}/{hash_id(getattr(entity, d.team_field))}"
        else:
            segment = f"{SCOPE_USER}/{hash_id(getattr(entity, d.owner_field))}"
        return f"{self.prefix}{segment}/{d.key_of(entity)}.json"

    def list_prefix(self, query: NativeQuery, by_team: bool = False) -> str:
        """
        Compute the key prefix that answers a native query.

        Args:
            query: Native query from the planner
            by_team: The query is one branch of a team ID fan-out
        """
        equals = query.equals
        scope = equals.get("scope", "")
        if by_team and equals.get("team_id"):
            return f"{self.prefix}{SCOPE_TEAM}/{hash_id(equals['team_id'])}/"
        if scope == SCOPE_USER and equals.get("owner_id"):
            return f"{self.prefix}{SCOPE_USER}/{hash_id(equals['owner_id'])}/"
        if scope == SCOPE_TEAM and equals.get("team_id"):
            return f"{self.prefix}{SCOPE_TEAM}/{hash_id(equals['team_id'])}/"
        if scope in (SCOPE_USER, SCOPE_TEAM):
            return f"{self.prefix}{scope}/"
        return self.prefix

    def metadata_for(self, entity: Entity) -> Dict[str, str]:
        d = self.descriptor
        metadata = {"scope": self._scope_of(entity)}
        if d.owner_field and getattr(entity, d.owner_field):
            metadata["owner-id"] = getattr(entity, d.owner_field)
        if d.team_field and getattr(entity, d.team_field):
            metadata["team-id"] = getattr(entity, d.team_field)
        return metadata

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _backend_error(self, e: ClientCallError, operation: str) -> BackendError:
        return BackendError(
            f"failed to {operation} {self.descriptor.resource_name}: {e}",
            operation=operation,
            original_error=e.original_error or e,
        )

    def _keys(self, prefix: str, operation: str) -> List[str]:
        try:
            return self.client.list_keys(prefix)
        except ClientCallError as e:
            raise self._backend_error(e, operation) from e

    def _key_matches(self, object_key: str, key: str) -> bool:
        # {scope}/{hash}/{id}.json, where the id itself may contain "/"
        parts = object_key[len(self.prefix):].split("/", 2)
        return len(parts) == 3 and parts[2] == f"{key}.json"

    def _find_key(self, key: str) -> Optional[str]:
        matched = [k for k in self._keys(self.prefix, "get") if self._key_matches(k, key)]
        if not matched:
            return None
        if len(matched) > 1:
            logger.warning(
                f"{self.descriptor.resource_name} {key} stored under {len(matched)} keys, using {matched[0]}"
            )
        return matched[0]

    def _load(self, object_key: str) -> Entity:
        try:
            body = self.client.get(object_key)
        except ClientCallError as e:
            raise self._backend_error(e, "get") from e
        try:
            text = body.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedRecordError(f"{object_key} is not UTF-8") from e
        return self.descriptor.decode({self.descriptor.data_key: text}, self.codec)

    def _put(self, entity: Entity, object_key: str, operation: str) -> None:
        d = self.descriptor
        body = d.encode(entity, self.codec)[d.data_key].encode("utf-8")
        try:
            self.client.put(object_key, body, self.metadata_for(entity))
        except ClientCallError as e:
            raise self._backend_error(e, operation) from e

    # ------------------------------------------------------------------
    # Repository contract
    # ------------------------------------------------------------------

    def create(self, entity: Entity) -> None:
        """
        Write a new object for ``entity``.

        Raises:
            ValidationError: The entity is invalid (no backend call made)
            DuplicateError: An object already exists at the computed key
            BackendError: The backend call failed
        """
        entity.check()
        d = self.descriptor
        object_key = self.key_for(entity)
        try:
            taken = self.client.exists(object_key)
        except ClientCallError as e:
            raise self._backend_error(e, "create") from e
        if taken:
            raise DuplicateError(d.resource_name, d.key_field, d.key_of(entity))
        self._put(entity, object_key, "create")
        logger.info(f"Created {d.resource_name} {d.key_of(entity)} at {object_key}")

    def find(self, key: str) -> Optional[Entity]:
        object_key = self._find_key(key)
        if object_key is None:
            return None
        try:
            return self._load(object_key)
        except ObjectNotFoundError:
            return None
        except MalformedRecordError as e:
            raise BackendError(
                f"stored {self.descriptor.resource_name} {object_key} is malformed: {e}",
                operation="decode",
                original_error=e,
            ) from e

    def get(self, key: str) -> Entity:
        """
        Return the entity stored under ``{id}.json`` anywhere below the prefix.

        Raises:
            NotFoundError: No object carries the ID
            BackendError: The backend call failed or the payload is malformed
        """
        entity = self.find(key)
        if entity is None:
            raise self.descriptor.not_found(key)
        return entity

    def exists(self, key: str) -> bool:
        return self._find_key(key) is not None

    def list(self, flt: Optional[ResourceFilter] = None) -> List[Entity]:
        """
        List entities matching ``flt``.

        A failure of any prefix listing fails the whole call. Malformed or
        concurrently deleted objects are skipped.
        """
        flt = flt or ResourceFilter()
        d = self.descriptor
        query_plan = plan(flt, d, fan_out_team_ids=True)
        by_team = bool(query_plan.residual.team_ids) and not d.team_ids_user_passthrough
        found: Dict[str, Entity] = {}
        for query in query_plan.queries:
            for object_key in self._keys(self.list_prefix(query, by_team), "list"):
                if not object_key.endswith(".json"):
                    continue
                try:
                    entity = self._load(object_key)
                except ObjectNotFoundError:
                    logger.debug(f"{object_key} disappeared during listing")
                    continue
                except MalformedRecordError as e:
                    logger.warning(f"Skipping malformed {d.resource_name} {object_key}: {e}")
                    continue
                if not matches(entity, query_plan.residual, d):
                    continue
                found.setdefault(d.key_of(entity), entity)
        return list(found.values())

    def update(self, entity: Entity) -> None:
        """
        Rewrite an existing entity, moving it when its scope or owner changed.

        Raises:
            ValidationError: The entity is invalid (no backend call made)
            NotFoundError: No object carries the entity's ID
            BackendError: The backend call failed
        """
        entity.check()
        d = self.descriptor
        key = d.key_of(entity)
        old_key = self._find_key(key)
        if old_key is None:
            raise d.not_found(key)
        entity.touch()
        new_key = self.key_for(entity)
        self._put(entity, new_key, "update")
        if old_key != new_key:
            try:
                self.client.delete(old_key)
            except ClientCallError as e:
                raise self._backend_error(e, "update") from e
            logger.info(f"Moved {d.resource_name} {key} from {old_key} to {new_key}")
        logger.info(f"Updated {d.resource_name} {key}")

    def delete(self, key: str) -> None:
        """
        Delete the object carrying ``key``.

        Raises:
            NotFoundError: No object carries the ID
            BackendError: The backend call failed
        """
        d = self.descriptor
        object_key = self._find_key(key)
        if object_key is None:
            raise d.not_found(key)
        try:
            self.client.delete(object_key)
        except ObjectNotFoundError as e:
            raise d.not_found(key) from e
        except ClientCallError as e:
            raise self._backend_error(e, "delete") from e
        logger.info(f"Deleted {d.resource_name} {key}")
