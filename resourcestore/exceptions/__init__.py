"""
Standard exceptions raised by resourcestore repositories.
"""
from resourcestore.exceptions.errors import (
    ServiceError,
    NotFoundError,
    ValidationError,
    DuplicateError,
    EncryptionError,
    BackendError,
    MemoryNotFoundError,
    TaskNotFoundError,
    TaskGroupNotFoundError,
    WebhookNotFoundError,
    BotNotFoundError,
    SettingsNotFoundError,
    TeamConfigNotFoundError,
    PersonalAPIKeyNotFoundError,
    ShareNotFoundError,
    SessionNotFoundError,
    UserNotFoundError,
    NotificationNotFoundError,
    to_http_status,
)

__all__ = [
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "DuplicateError",
    "EncryptionError",
    "BackendError",
    "MemoryNotFoundError",
    "TaskNotFoundError",
    "TaskGroupNotFoundError",
    "WebhookNotFoundError",
    "BotNotFoundError",
    "SettingsNotFoundError",
    "TeamConfigNotFoundError",
    "PersonalAPIKeyNotFoundError",
    "ShareNotFoundError",
    "SessionNotFoundError",
    "UserNotFoundError",
    "NotificationNotFoundError",
    "to_http_status",
]
