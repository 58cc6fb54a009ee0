"""
Backend stores and per-resource repositories.
"""
from resourcestore.storage.descriptors import MalformedRecordError, ResourceDescriptor
from resourcestore.storage.metadata_store import MetadataObjectStore
from resourcestore.storage.object_store import ObjectStorageStore
from resourcestore.storage.in_memory_store import InMemoryStore
from resourcestore.storage.repository import ResourceRepository
from resourcestore.storage.memory_repository import MemoryRepository
from resourcestore.storage.task_repository import TaskGroupRepository, TaskRepository
from resourcestore.storage.webhook_repository import WebhookRepository
from resourcestore.storage.bot_repository import BotRepository
from resourcestore.storage.settings_repository import SettingsRepository
from resourcestore.storage.team_config_repository import TeamConfigRepository
from resourcestore.storage.personal_api_key_repository import PersonalAPIKeyRepository
from resourcestore.storage.share_repository import ShareRepository
from resourcestore.storage.session_repository import SessionFilter, SessionRepository
from resourcestore.storage.user_repository import UserRepository
from resourcestore.storage.notification_repository import NotificationRepository

__all__ = [
    "MalformedRecordError",
    "ResourceDescriptor",
    "MetadataObjectStore",
    "ObjectStorageStore",
    "InMemoryStore",
    "ResourceRepository",
    "MemoryRepository",
    "TaskRepository",
    "TaskGroupRepository",
    "WebhookRepository",
    "BotRepository",
    "SettingsRepository",
    "TeamConfigRepository",
    "PersonalAPIKeyRepository",
    "ShareRepository",
    "SessionFilter",
    "SessionRepository",
    "UserRepository",
    "NotificationRepository",
]
