"""
Standard Exception Hierarchy for resourcestore

Every repository in the package raises exceptions from this module so that
callers can branch on the failure kind without knowing which backend served
the call. All exceptions inherit from ServiceError.

Taxonomy:
- NotFoundError: lookup/update/delete target absent
- DuplicateError: create collision (or two natural keys sharing one object name)
- ValidationError: entity failed local validation, no backend call was made
- EncryptionError: a named sensitive field could not be encrypted/decrypted
- BackendError: the platform/storage call failed for any other reason
"""
from typing import Any


# ============================================================================
# Base Exception Class
# ============================================================================

class ServiceError(Exception):
    """Base exception for all resourcestore errors.

    Attributes:
        message: Human-readable error message
        request_id: Optional request ID for tracing
        context: Dictionary of additional context
        original_error: Optional original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        *,
        request_id: str | None = None,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None
    ):
        super().__init__(message)
        self.message = message
        self.request_id = request_id
        self.context = context or {}
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization.

        Returns:
            Dictionary representation of the exception
        """
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
        }
        if self.request_id:
            result["request_id"] = self.request_id
        if self.context:
            result["context"] = self.context
        if self.original_error:
            result["original_error"] = {
                "type": type(self.original_error).__name__,
                "message": str(self.original_error)
            }
        return result


# ============================================================================
# Common Exception Types
# ============================================================================

class NotFoundError(ServiceError):
    """Raised when a requested resource is not found.

    Attributes:
        resource_type: Type of resource (e.g., "Memory", "Webhook", "Settings")
        resource_id: ID or natural key of the resource that was not found
    """

    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        *,
        message: str | None = None,
        request_id: str | None = None,
        context: dict[str, Any] | None = None
    ):
        if message is None:
            message = f"{resource_type} '{resource_id}' not found"

        super().__init__(message, request_id=request_id, context=context)
        self.resource_type = resource_type
        self.resource_id = str(resource_id)
        self.context.setdefault("resource_type", resource_type)
        self.context.setdefault("resource_id", str(resource_id))


class ValidationError(ServiceError):
    """Raised when an entity fails validation before reaching a backend.

    Attributes:
        field: Optional field name that failed validation
        value: Optional value that failed validation
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        request_id: str | None = None,
        context: dict[str, Any] | None = None
    ):
        super().__init__(message, request_id=request_id, context=context)
        self.field = field
        self.value = value
        if field is not None:
            self.context.setdefault("field", field)
        if value is not None:
            self.context.setdefault("value", str(value))


class DuplicateError(ServiceError):
    """Raised when attempting to create a resource that already exists.

    Attributes:
        resource_type: Type of resource
        field: Field that has duplicate value
        value: Duplicate value
    """

    def __init__(
        self,
        resource_type: str,
        field: str,
        value: str,
        *,
        message: str | None = None,
        request_id: str | None = None,
        context: dict[str, Any] | None = None
    ):
        if message is None:
            message = f"{resource_type} with {field} '{value}' already exists"

        super().__init__(message, request_id=request_id, context=context)
        self.resource_type = resource_type
        self.field = field
        self.value = value
        self.context.setdefault("resource_type", resource_type)
        self.context.setdefault("field", field)
        self.context.setdefault("value", value)


class EncryptionError(ServiceError):
    """Raised when a sensitive field cannot be encrypted or decrypted.

    Attributes:
        field: Dotted path of the field that failed (e.g. "bedrock.access_key_id")
        operation: "encrypt" or "decrypt"
    """

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        operation: str | None = None,
        original_error: Exception | None = None,
        request_id: str | None = None,
        context: dict[str, Any] | None = None
    ):
        super().__init__(message, request_id=request_id, context=context, original_error=original_error)
        self.field = field
        self.operation = operation
        if field is not None:
            self.context.setdefault("field", field)
        if operation is not None:
            self.context.setdefault("operation", operation)


class BackendError(ServiceError):
    """Raised when a storage backend call fails.

    Attributes:
        operation: Backend operation that failed (e.g., "create", "list")
        original_error: The client library exception
    """

    def __init__(
        self,
        message: str,
        *,
        original_error: Exception | None = None,
        operation: str | None = None,
        request_id: str | None = None,
        context: dict[str, Any] | None = None
    ):
        super().__init__(message, request_id=request_id, context=context, original_error=original_error)
        self.operation = operation
        if operation is not None:
            self.context.setdefault("operation", operation)


# ============================================================================
# Resource-Specific Exceptions
# ============================================================================

class MemoryNotFoundError(NotFoundError):
    """Raised when a memory is not found."""

    def __init__(self, memory_id: str, **kwargs):
        super().__init__("Memory", memory_id, **kwargs)
        self.memory_id = memory_id


class TaskNotFoundError(NotFoundError):
    """Raised when a task is not found."""

    def __init__(self, task_id: str, **kwargs):
        super().__init__("Task", task_id, **kwargs)
        self.task_id = task_id


class TaskGroupNotFoundError(NotFoundError):
    """Raised when a task group is not found."""

    def __init__(self, group_id: str, **kwargs):
        super().__init__("TaskGroup", group_id, **kwargs)
        self.group_id = group_id


class WebhookNotFoundError(NotFoundError):
    """Raised when a webhook is not found."""

    def __init__(self, webhook_id: str, **kwargs):
        super().__init__("Webhook", webhook_id, **kwargs)
        self.webhook_id = webhook_id


class BotNotFoundError(NotFoundError):
    """Raised when a bot configuration is not found."""

    def __init__(self, bot_id: str, **kwargs):
        super().__init__("Bot", bot_id, **kwargs)
        self.bot_id = bot_id


class SettingsNotFoundError(NotFoundError):
    """Raised when settings are not found."""

    def __init__(self, name: str, **kwargs):
        super().__init__("Settings", name, **kwargs)
        self.name = name


class TeamConfigNotFoundError(NotFoundError):
    """Raised when a team configuration is not found."""

    def __init__(self, team_id: str, **kwargs):
        super().__init__("TeamConfig", team_id, **kwargs)
        self.team_id = team_id


class PersonalAPIKeyNotFoundError(NotFoundError):
    """Raised when a personal API key is not found."""

    def __init__(self, user_id: str, **kwargs):
        super().__init__("PersonalAPIKey", user_id, **kwargs)
        self.user_id = user_id


class SessionNotFoundError(NotFoundError):
    """Raised when a session is not found."""

    def __init__(self, session_id: str, **kwargs):
        super().__init__("Session", session_id, **kwargs)
        self.session_id = session_id


class UserNotFoundError(NotFoundError):
    """Raised when a user is not found."""

    def __init__(self, user_id: str, **kwargs):
        super().__init__("User", user_id, **kwargs)
        self.user_id = user_id


class NotificationNotFoundError(NotFoundError):
    """Raised when a notification is not found."""

    def __init__(self, notification_id: str, **kwargs):
        super().__init__("Notification", notification_id, **kwargs)
        self.notification_id = notification_id


class ShareNotFoundError(NotFoundError):
    """Raised when a session share is not found."""

    def __init__(self, key: str, **kwargs):
        super().__init__("SessionShare", key, **kwargs)
        self.key = key


# ============================================================================
# Helper Functions for HTTP Callers
# ============================================================================

def to_http_status(exc: ServiceError, *, default_status_code: int = 500) -> int:
    """Map a ServiceError to the HTTP status class callers should answer with.

    Args:
        exc: Service error to convert
        default_status_code: Status code used for unmapped errors

    Returns:
        HTTP status code
    """
    status_code_map = {
        NotFoundError: 404,
        ValidationError: 400,
        DuplicateError: 409,
        EncryptionError: 500,
        BackendError: 500,
    }
    for exc_type in type(exc).__mro__:
        if exc_type in status_code_map:
            return status_code_map[exc_type]
    return default_status_code


# ============================================================================
# Exports
# ============================================================================

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
