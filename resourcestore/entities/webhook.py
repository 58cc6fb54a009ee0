"""
Webhook and bot entities.

Both are owned through ``user_id`` rather than ``owner_id``; the storage
descriptors map the generic owner predicate onto that field.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from resourcestore.entities.base import SCOPE_TEAM, SCOPE_USER, SCOPES, Entity, utcnow
from resourcestore.exceptions import ValidationError

WEBHOOK_TYPE_GITHUB = "github"
WEBHOOK_TYPE_CUSTOM = "custom"
WEBHOOK_TYPES = (WEBHOOK_TYPE_GITHUB, WEBHOOK_TYPE_CUSTOM)

STATUS_ACTIVE = "active"
STATUS_PAUSED = "paused"
STATUSES = (STATUS_ACTIVE, STATUS_PAUSED)

DEFAULT_BOT_MAX_SESSIONS = 10


class SessionParams(BaseModel):
    github_token: str = ""


class SessionConfig(BaseModel):
    """Parameters for sessions started on behalf of a webhook or bot."""

    environment: Dict[str, str] = Field(default_factory=dict)
    tags: Dict[str, str] = Field(default_factory=dict)
    initial_message_template: str = ""
    params: Optional[SessionParams] = None


class GitHubConfig(BaseModel):
    enterprise_url: str = ""
    allowed_events: List[str] = Field(default_factory=list)
    allowed_repositories: List[str] = Field(default_factory=list)


class GitHubConditions(BaseModel):
    events: List[str] = Field(default_factory=list)
    actions: List[str] = Field(default_factory=list)
    branches: List[str] = Field(default_factory=list)
    repositories: List[str] = Field(default_factory=list)
    labels: List[str] = Field(default_factory=list)
    paths: List[str] = Field(default_factory=list)
    base_branches: List[str] = Field(default_factory=list)
    draft: Optional[bool] = None
    sender: List[str] = Field(default_factory=list)


class JSONPathCondition(BaseModel):
    path: str
    operator: str
    value: Any = None


class TriggerConditions(BaseModel):
    github: Optional[GitHubConditions] = None
    jsonpath: List[JSONPathCondition] = Field(default_factory=list)


class WebhookTrigger(BaseModel):
    id: str = ""
    name: str = ""
    priority: int = 0
    enabled: bool = True
    conditions: TriggerConditions = Field(default_factory=TriggerConditions)
    session_config: Optional[SessionConfig] = None
    stop_on_match: bool = False


class DeliveryRecord(BaseModel):
    """Outcome of one inbound webhook delivery."""

    id: str
    received_at: datetime = Field(default_factory=utcnow)
    status: str = ""
    matched_trigger: str = ""
    session_id: str = ""
    error: str = ""


class GitHubMatcher(BaseModel):
    """Identifies an inbound GitHub event for webhook lookup."""

    repository: str
    enterprise_url: str = ""
    event: str = ""


class Webhook(Entity):
    resource_name = "Webhook"

    id: str
    name: str = ""
    user_id: str = ""
    scope: str = SCOPE_USER
    team_id: str = ""
    status: str = STATUS_ACTIVE
    type: str = WEBHOOK_TYPE_CUSTOM
    secret: str = ""
    signature_header: str = ""
    signature_type: str = ""
    github: Optional[GitHubConfig] = None
    triggers: List[WebhookTrigger] = Field(default_factory=list)
    session_config: Optional[SessionConfig] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    last_delivery: Optional[DeliveryRecord] = None
    delivery_count: int = 0

    def check(self) -> None:
        self.require("id")
        self.require("name")
        self.require("user_id")
        self.require_one_of("type", WEBHOOK_TYPES)
        self.require_one_of("scope", SCOPES)
        if self.scope == SCOPE_TEAM and not self.team_id:
            raise ValidationError("Webhook team_id is required when scope is 'team'", field="team_id")
        if not self.triggers:
            raise ValidationError("Webhook requires at least one trigger", field="triggers")

    def record_delivery(self, record: DeliveryRecord) -> None:
        self.last_delivery = record
        self.delivery_count += 1


class Bot(Entity):
    """Slack bot configuration."""

    resource_name = "Bot"

    id: str
    name: str = ""
    user_id: str = ""
    scope: str = SCOPE_USER
    team_id: str = ""
    status: str = STATUS_ACTIVE
    signing_secret: str = ""
    bot_token_secret_name: str = ""
    bot_token_secret_key: str = ""
    allowed_event_types: List[str] = Field(default_factory=list)
    allowed_channel_ids: List[str] = Field(default_factory=list)
    session_config: Optional[SessionConfig] = None
    max_sessions: int = DEFAULT_BOT_MAX_SESSIONS
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def check(self) -> None:
        self.require("id")
        self.require("name")
        self.require("user_id")
        self.require("signing_secret")
        if self.max_sessions < 0:
            raise ValidationError(
                "Bot max_sessions must be non-negative",
                field="max_sessions",
                value=self.max_sessions,
            )
        self.require_one_of("scope", SCOPES)
