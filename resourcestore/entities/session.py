"""
Session-related entities: shares, sessions, users and notifications.

Shares are persisted in a single shared metadata object; sessions, users
and notifications only ever live in process memory.
"""
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from pydantic import Field

from resourcestore.entities.base import Entity, utcnow

SESSION_STATUS_STARTING = "starting"
SESSION_STATUS_ACTIVE = "active"
SESSION_STATUS_TERMINATING = "terminating"
SESSION_STATUS_FAILED = "failed"
SESSION_STATUS_STOPPED = "stopped"

USER_STATUS_ACTIVE = "active"
USER_STATUS_INACTIVE = "inactive"
USER_STATUS_SUSPENDED = "suspended"

NOTIFICATION_STATUS_PENDING = "pending"
NOTIFICATION_STATUS_DELIVERED = "delivered"
NOTIFICATION_STATUS_FAILED = "failed"
NOTIFICATION_STATUS_CLICKED = "clicked"


def generate_share_token() -> str:
    """Generate a 32-character hex share token."""
    return secrets.token_hex(16)


class SessionShare(Entity):
    """A read-only link to a session, addressed by token."""

    resource_name = "SessionShare"

    token: str
    session_id: str
    created_by: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: Optional[datetime] = None

    @classmethod
    def new(cls, session_id: str, created_by: str, ttl: Optional[timedelta] = None) -> "SessionShare":
        created_at = utcnow()
        return cls(
            token=generate_share_token(),
            session_id=session_id,
            created_by=created_by,
            created_at=created_at,
            expires_at=created_at + ttl if ttl else None,
        )

    def check(self) -> None:
        self.require("token")
        self.require("session_id")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or utcnow()) > self.expires_at


class Session(Entity):
    resource_name = "Session"

    id: str
    user_id: str
    status: str = SESSION_STATUS_STARTING
    port: int = 0
    tags: Dict[str, str] = Field(default_factory=dict)
    repository: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def check(self) -> None:
        self.require("id")
        self.require("user_id")

    def is_active(self) -> bool:
        return self.status == SESSION_STATUS_ACTIVE


class User(Entity):
    resource_name = "User"

    id: str
    user_type: str = "regular"
    username: str = ""
    email: Optional[str] = None
    display_name: Optional[str] = None
    status: str = USER_STATUS_ACTIVE
    roles: List[str] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    last_used_at: Optional[datetime] = None

    def check(self) -> None:
        self.require("id")
        self.require("username")


class Notification(Entity):
    resource_name = "Notification"

    id: str
    user_id: str
    subscription_id: str = ""
    session_id: str = ""
    title: str = ""
    body: str = ""
    type: str = ""
    url: Optional[str] = None
    tags: Dict[str, str] = Field(default_factory=dict)
    data: Dict[str, Any] = Field(default_factory=dict)
    status: str = NOTIFICATION_STATUS_PENDING
    created_at: datetime = Field(default_factory=utcnow)
    sent_at: Optional[datetime] = None

    def check(self) -> None:
        self.require("id")
        self.require("user_id")
        self.require("title")
