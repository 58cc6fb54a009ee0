"""
Per-resource-type storage descriptors.

A ResourceDescriptor tells the generic stores everything type-specific:
object naming, which attributes hold the key/owner/team/scope, which
filter fields have a stable 1:1 label, how the payload is encoded and
which fields are encrypted. The stores themselves hold no per-type code.
"""
import logging
from typing import Callable, Dict, Optional, Tuple, Type

from pydantic import ValidationError as PydanticValidationError

from resourcestore.adapters import KIND_CONFIG_MAP
from resourcestore.encryption import FieldEncryptionCodec
from resourcestore.entities import Entity
from resourcestore.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class MalformedRecordError(Exception):
    """A stored payload could not be decoded into an entity."""


# Hook signature for field encryption: (entity, codec) -> entity copy.
FieldTransform = Callable[[Entity, FieldEncryptionCodec], Entity]


class ResourceDescriptor:
    """Static description of how one entity type is stored."""

    def __init__(
        self,
        *,
        type_name: str,
        entity_cls: Type[Entity],
        name_prefix: str,
        data_key: str,
        not_found: Callable[[str], NotFoundError],
        key_field: str = "id",
        kind: str = KIND_CONFIG_MAP,
        owner_field: Optional[str] = "owner_id",
        team_field: Optional[str] = "team_id",
        scope_field: Optional[str] = "scope",
        index_labels: Optional[Dict[str, Tuple[str, str]]] = None,
        tags_field: Optional[str] = None,
        search_fields: Tuple[str, ...] = (),
        team_ids_user_passthrough: bool = False,
        delete_missing_ok: bool = False,
        protect: Optional[FieldTransform] = None,
        reveal: Optional[FieldTransform] = None,
    ):
        """
        Args:
            type_name: Value of the type label (e.g. "memory")
            entity_cls: Entity model class
            name_prefix: Object name prefix (e.g. "agentapi-memory-")
            data_key: Payload key holding the entity JSON
            not_found: Builds the NotFoundError subclass for a key
            key_field: Attribute holding the ID or natural key
            kind: "configmap" or "secret"
            owner_field: Attribute holding the owner ID (None if unowned)
            team_field: Attribute holding the team ID (None if not team-aware)
            scope_field: Attribute holding the scope (None if unscoped)
            index_labels: Filter field -> (label suffix, entity attribute)
                for attributes pushed down as labels
            tags_field: Attribute holding the tag map
            search_fields: Attributes searched by the text query
            team_ids_user_passthrough: team_ids only restricts team-scoped entries
            delete_missing_ok: Deleting an absent object succeeds silently
            protect: Encrypts sensitive fields of a copy before writing
            reveal: Decrypts sensitive fields after reading
        """
        self.type_name = type_name
        self.entity_cls = entity_cls
        self.name_prefix = name_prefix
        self.data_key = data_key
        self.not_found = not_found
        self.key_field = key_field
        self.kind = kind
        self.owner_field = owner_field
        self.team_field = team_field
        self.scope_field = scope_field
        self.index_labels = index_labels or {}
        self.tags_field = tags_field
        self.search_fields = search_fields
        self.team_ids_user_passthrough = team_ids_user_passthrough
        self.delete_missing_ok = delete_missing_ok
        self.protect = protect
        self.reveal = reveal

    @property
    def resource_name(self) -> str:
        return self.entity_cls.resource_name

    def key_of(self, entity: Entity) -> str:
        return getattr(entity, self.key_field)

    def filter_attr(self, filter_field: str) -> Optional[str]:
        """Entity attribute compared against ``filter_field`` (None if irrelevant)."""
        if filter_field == "scope":
            return self.scope_field
        if filter_field == "owner_id":
            return self.owner_field
        if filter_field == "team_id":
            return self.team_field
        if filter_field in self.index_labels:
            return self.index_labels[filter_field][1]
        return None

    # ------------------------------------------------------------------
    # Payload encoding
    # ------------------------------------------------------------------

    def encode(self, entity: Entity, codec: Optional[FieldEncryptionCodec]) -> Dict[str, str]:
        """Serialize an entity into the object's payload map, encrypting sensitive fields."""
        if self.protect is not None and codec is not None:
            entity = self.protect(entity.clone(), codec)
        return {self.data_key: entity.model_dump_json()}

    def decode(self, data: Dict[str, str], codec: Optional[FieldEncryptionCodec]) -> Entity:
        """
        Deserialize a payload map into an entity.

        Raises:
            MalformedRecordError: The payload is missing or not valid JSON for the type
            EncryptionError: A sensitive field holds an envelope that cannot be decrypted
        """
        raw = data.get(self.data_key)
        if raw is None:
            raise MalformedRecordError(f"missing data key {self.data_key}")
        try:
            entity = self.entity_cls.model_validate_json(raw)
        except PydanticValidationError as e:
            raise MalformedRecordError(f"invalid {self.resource_name} payload: {e}") from e
        if self.reveal is not None and codec is not None:
            entity = self.reveal(entity, codec)
        return entity
