"""
Repository for per-user and per-team settings.

Settings are keyed by name (a user ID or team ID) and saved with upsert
semantics. Credentials are encrypted field by field:

- claude_code_oauth_token
- bedrock.access_key_id and bedrock.secret_access_key
- every value of mcp_servers[*].env and mcp_servers[*].headers

Records written before encryption was enabled still load, since plaintext
values pass through decryption unchanged.
"""
import logging
from typing import List

from resourcestore.adapters import KIND_SECRET
from resourcestore.encryption import FieldEncryptionCodec
from resourcestore.entities import Settings
from resourcestore.exceptions import SettingsNotFoundError
from resourcestore.storage.descriptors import ResourceDescriptor
from resourcestore.storage.repository import ResourceRepository

logger = logging.getLogger(__name__)


def _transform(settings: Settings, value, value_map) -> Settings:
    settings.claude_code_oauth_token = value(settings.claude_code_oauth_token, "claude_code_oauth_token")
    if settings.bedrock is not None:
        settings.bedrock.access_key_id = value(settings.bedrock.access_key_id, "bedrock.access_key_id")
        settings.bedrock.secret_access_key = value(
            settings.bedrock.secret_access_key, "bedrock.secret_access_key"
        )
    for name, server in settings.mcp_servers.items():
        server.env = value_map(server.env, f"mcp_servers.{name}.env")
        server.headers = value_map(server.headers, f"mcp_servers.{name}.headers")
    return settings


def protect_settings(settings: Settings, codec: FieldEncryptionCodec) -> Settings:
    return _transform(settings, codec.encrypt, codec.encrypt_map)


def reveal_settings(settings: Settings, codec: FieldEncryptionCodec) -> Settings:
    return _transform(settings, codec.decrypt, codec.decrypt_map)


SETTINGS_DESCRIPTOR = ResourceDescriptor(
    type_name="settings",
    entity_cls=Settings,
    name_prefix="agentapi-settings-",
    data_key="settings.json",
    not_found=SettingsNotFoundError,
    key_field="name",
    kind=KIND_SECRET,
    owner_field=None,
    team_field=None,
    scope_field=None,
    protect=protect_settings,
    reveal=reveal_settings,
)


class SettingsRepository(ResourceRepository[Settings]):
    """Repository for settings operations."""

    descriptor = SETTINGS_DESCRIPTOR

    def save(self, settings: Settings) -> None:
        """
        Create or overwrite settings.

        Args:
            settings: Settings to persist (plaintext credentials)

        Raises:
            ValidationError: The settings are invalid
            DuplicateError: Another name already owns the same object name
            EncryptionError: A credential could not be encrypted
        """
        self.store.save(settings)

    def find_by_name(self, name: str) -> Settings:
        """
        Load settings by name with credentials decrypted.

        Raises:
            SettingsNotFoundError: No settings exist under ``name``
        """
        return self.get(name)

    def list_all(self) -> List[Settings]:
        return self.list()
