"""
Domain entities persisted by resourcestore.
"""
from resourcestore.entities.base import Entity, ScopedEntity, SCOPE_USER, SCOPE_TEAM, SCOPES, utcnow
from resourcestore.entities.memory import Memory
from resourcestore.entities.task import Task, TaskGroup, TaskLink
from resourcestore.entities.webhook import (
    Bot,
    DeliveryRecord,
    GitHubConfig,
    GitHubMatcher,
    SessionConfig,
    SessionParams,
    TriggerConditions,
    Webhook,
    WebhookTrigger,
)
from resourcestore.entities.settings import (
    BedrockSettings,
    Marketplace,
    MCPServer,
    PersonalAPIKey,
    ServiceAccount,
    Settings,
    TeamConfig,
)
from resourcestore.entities.session import Notification, Session, SessionShare, User

__all__ = [
    "Entity",
    "ScopedEntity",
    "SCOPE_USER",
    "SCOPE_TEAM",
    "SCOPES",
    "utcnow",
    "Memory",
    "Task",
    "TaskGroup",
    "TaskLink",
    "Bot",
    "DeliveryRecord",
    "GitHubConfig",
    "GitHubMatcher",
    "SessionConfig",
    "SessionParams",
    "TriggerConditions",
    "Webhook",
    "WebhookTrigger",
    "BedrockSettings",
    "Marketplace",
    "MCPServer",
    "PersonalAPIKey",
    "ServiceAccount",
    "Settings",
    "TeamConfig",
    "Notification",
    "Session",
    "SessionShare",
    "User",
]
