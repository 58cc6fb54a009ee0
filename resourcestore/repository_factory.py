"""
Wires settings, backend clients and encryption into repositories.

Backend clients are built from settings unless the caller passes them in
(tests pass fakes).
"""
import logging
from dataclasses import dataclass
from typing import Optional

from resourcestore.adapters import MetadataObjectClient, ObjectStorageClient
from resourcestore.adapters.kubernetes_client import KubernetesMetadataClient
from resourcestore.adapters.memory_client import InMemoryMetadataClient
from resourcestore.adapters.s3_client import S3ObjectClient
from resourcestore.annotations import LabelSchema
from resourcestore.config import StoreSettings, get_settings
from resourcestore.encryption import EncryptionServiceFactory, FieldEncryptionCodec
from resourcestore.exceptions import ValidationError
from resourcestore.storage import (
    BotRepository,
    MemoryRepository,
    NotificationRepository,
    PersonalAPIKeyRepository,
    SessionRepository,
    SettingsRepository,
    ShareRepository,
    TaskGroupRepository,
    TaskRepository,
    TeamConfigRepository,
    UserRepository,
    WebhookRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    """Every repository of one deployment."""

    memories: MemoryRepository
    tasks: TaskRepository
    task_groups: TaskGroupRepository
    webhooks: WebhookRepository
    bots: BotRepository
    settings: SettingsRepository
    team_configs: TeamConfigRepository
    personal_api_keys: PersonalAPIKeyRepository
    shares: ShareRepository
    sessions: SessionRepository
    users: UserRepository
    notifications: NotificationRepository
    codec: FieldEncryptionCodec


def create_metadata_client(settings: StoreSettings) -> MetadataObjectClient:
    if settings.backend == "memory":
        return InMemoryMetadataClient()
    return KubernetesMetadataClient.from_config(settings.namespace, settings.kubeconfig)


def create_object_client(settings: StoreSettings) -> ObjectStorageClient:
    """
    Raises:
        ValidationError: No bucket is configured
    """
    if not settings.s3_bucket:
        raise ValidationError("s3_bucket is required for the s3 backend", field="s3_bucket")
    return S3ObjectClient.from_config(settings.s3_bucket, settings.s3_region, settings.s3_endpoint_url)


def build_repositories(
    settings: Optional[StoreSettings] = None,
    *,
    metadata_client: Optional[MetadataObjectClient] = None,
    object_client: Optional[ObjectStorageClient] = None,
    codec: Optional[FieldEncryptionCodec] = None,
) -> Repositories:
    """
    Build every repository for the configured backend.

    Memories, tasks and task groups use object storage when ``backend`` is
    ``s3``; everything else always uses metadata objects (in process when
    ``backend`` is ``memory``).

    Args:
        settings: Settings (defaults to get_settings())
        metadata_client: Client to use instead of one built from settings
        object_client: Client to use instead of one built from settings
        codec: Field codec to use instead of one built from settings

    Returns:
        Repositories bundle
    """
    settings = settings or get_settings()
    codec = codec or FieldEncryptionCodec(EncryptionServiceFactory(settings).create_registry())
    schema = LabelSchema(settings.label_namespace)
    metadata_client = metadata_client or create_metadata_client(settings)

    if settings.backend == "s3":
        object_client = object_client or create_object_client(settings)
        memories = MemoryRepository.on_object_storage(object_client, prefix=settings.s3_prefix, codec=codec)
        tasks = TaskRepository.on_object_storage(object_client, prefix=settings.s3_task_prefix, codec=codec)
        task_groups = TaskGroupRepository.on_object_storage(
            object_client, prefix=settings.s3_task_group_prefix, codec=codec
        )
    else:
        memories = MemoryRepository.on_metadata_objects(metadata_client, codec=codec, schema=schema)
        tasks = TaskRepository.on_metadata_objects(metadata_client, codec=codec, schema=schema)
        task_groups = TaskGroupRepository.on_metadata_objects(metadata_client, codec=codec, schema=schema)

    logger.info(f"Using {settings.backend} backend (namespace: {settings.namespace})")
    return Repositories(
        memories=memories,
        tasks=tasks,
        task_groups=task_groups,
        webhooks=WebhookRepository.on_metadata_objects(
            metadata_client,
            codec=codec,
            schema=schema,
            default_github_enterprise_host=settings.default_github_enterprise_host,
        ),
        bots=BotRepository.on_metadata_objects(metadata_client, codec=codec, schema=schema),
        settings=SettingsRepository.on_metadata_objects(metadata_client, codec=codec, schema=schema),
        team_configs=TeamConfigRepository.on_metadata_objects(metadata_client, codec=codec, schema=schema),
        personal_api_keys=PersonalAPIKeyRepository.on_metadata_objects(metadata_client, codec=codec, schema=schema),
        shares=ShareRepository(metadata_client, schema=schema),
        sessions=SessionRepository(),
        users=UserRepository(),
        notifications=NotificationRepository(),
        codec=codec,
    )
