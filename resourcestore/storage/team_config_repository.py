"""
Repository for team configurations.
"""
from resourcestore.adapters import KIND_SECRET
from resourcestore.encryption import FieldEncryptionCodec
from resourcestore.entities import TeamConfig
from resourcestore.exceptions import TeamConfigNotFoundError
from resourcestore.storage.descriptors import ResourceDescriptor
from resourcestore.storage.repository import ResourceRepository


def protect_team_config(config: TeamConfig, codec: FieldEncryptionCodec) -> TeamConfig:
    if config.service_account is not None:
        config.service_account.api_key = codec.encrypt(config.service_account.api_key, "service_account.api_key")
    return config


def reveal_team_config(config: TeamConfig, codec: FieldEncryptionCodec) -> TeamConfig:
    if config.service_account is not None:
        config.service_account.api_key = codec.decrypt(config.service_account.api_key, "service_account.api_key")
    return config


TEAM_CONFIG_DESCRIPTOR = ResourceDescriptor(
    type_name="team-config",
    entity_cls=TeamConfig,
    name_prefix="agentapi-team-config-",
    data_key="config",
    not_found=TeamConfigNotFoundError,
    key_field="team_id",
    kind=KIND_SECRET,
    owner_field=None,
    scope_field=None,
    protect=protect_team_config,
    reveal=reveal_team_config,
)


class TeamConfigRepository(ResourceRepository[TeamConfig]):
    """Repository for team configuration operations."""

    descriptor = TEAM_CONFIG_DESCRIPTOR

    def save(self, config: TeamConfig) -> None:
        """Create or overwrite the configuration of ``config.team_id``."""
        self.store.save(config)

    def find_by_team_id(self, team_id: str) -> TeamConfig:
        """
        Raises:
            TeamConfigNotFoundError: The team has no configuration
        """
        return self.get(team_id)
