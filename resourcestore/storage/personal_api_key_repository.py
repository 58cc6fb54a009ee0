"""
Repository for personal API keys.

The key itself lives under its own data key (``api_key``, encrypted) and
everything else under ``metadata.json``, so tooling can read metadata
without touching the secret value.
"""
from typing import Dict, Optional

from pydantic import ValidationError as PydanticValidationError

from resourcestore.adapters import KIND_SECRET
from resourcestore.encryption import FieldEncryptionCodec
from resourcestore.entities import PersonalAPIKey
from resourcestore.exceptions import PersonalAPIKeyNotFoundError
from resourcestore.storage.descriptors import MalformedRecordError, ResourceDescriptor
from resourcestore.storage.repository import ResourceRepository

API_KEY_DATA_KEY = "api_key"
METADATA_DATA_KEY = "metadata.json"


class PersonalAPIKeyDescriptor(ResourceDescriptor):
    """Splits the key and its metadata into two payload entries."""

    def encode(self, entity: PersonalAPIKey, codec: Optional[FieldEncryptionCodec]) -> Dict[str, str]:
        api_key = entity.api_key
        if codec is not None:
            api_key = codec.encrypt(api_key, "api_key")
        return {
            API_KEY_DATA_KEY: api_key,
            METADATA_DATA_KEY: entity.model_dump_json(exclude={"api_key"}),
        }

    def decode(self, data: Dict[str, str], codec: Optional[FieldEncryptionCodec]) -> PersonalAPIKey:
        raw = data.get(METADATA_DATA_KEY)
        if raw is None:
            raise MalformedRecordError(f"missing data key {METADATA_DATA_KEY}")
        try:
            entity = PersonalAPIKey.model_validate_json(raw)
        except PydanticValidationError as e:
            raise MalformedRecordError(f"invalid PersonalAPIKey metadata: {e}") from e
        api_key = data.get(API_KEY_DATA_KEY, "")
        entity.api_key = codec.decrypt(api_key, "api_key") if codec is not None else api_key
        return entity


PERSONAL_API_KEY_DESCRIPTOR = PersonalAPIKeyDescriptor(
    type_name="personal-api-key",
    entity_cls=PersonalAPIKey,
    name_prefix="agentapi-personal-api-key-",
    data_key=METADATA_DATA_KEY,
    not_found=PersonalAPIKeyNotFoundError,
    key_field="user_id",
    kind=KIND_SECRET,
    owner_field="user_id",
    team_field=None,
    scope_field=None,
    delete_missing_ok=True,
)


class PersonalAPIKeyRepository(ResourceRepository[PersonalAPIKey]):
    """Repository for personal API key operations.

    Deleting a key that does not exist succeeds, so revocation can be retried.
    """

    descriptor = PERSONAL_API_KEY_DESCRIPTOR

    def save(self, key: PersonalAPIKey) -> None:
        self.store.save(key)

    def find_by_user_id(self, user_id: str) -> PersonalAPIKey:
        """
        Raises:
            PersonalAPIKeyNotFoundError: The user has no key
        """
        return self.get(user_id)
