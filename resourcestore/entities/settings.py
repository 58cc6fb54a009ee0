"""
Settings, team configuration and personal API key entities.

These are keyed by a natural identifier (settings name, team ID, user ID)
rather than a generated ID, and hold credentials that are encrypted at rest.
"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from resourcestore.entities.base import Entity, utcnow
from resourcestore.exceptions import ValidationError

AUTH_MODE_OAUTH = "oauth"
AUTH_MODE_BEDROCK = "bedrock"
AUTH_MODES = ("", AUTH_MODE_OAUTH, AUTH_MODE_BEDROCK)

MCP_SERVER_TYPES = ("stdio", "http", "sse")


class BedrockSettings(BaseModel):
    enabled: bool = False
    model: str = ""
    access_key_id: str = ""
    secret_access_key: str = ""
    role_arn: str = ""
    profile: str = ""


class MCPServer(BaseModel):
    type: str = ""
    url: str = ""
    command: str = ""
    args: List[str] = Field(default_factory=list)
    env: Dict[str, str] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)

    def check(self, name: str) -> None:
        field = f"mcp_servers.{name}"
        if self.type not in MCP_SERVER_TYPES:
            raise ValidationError(
                f"MCP server '{name}' type must be stdio, http, or sse",
                field=field,
                value=self.type,
            )
        if self.type == "stdio" and not self.command:
            raise ValidationError(f"MCP server '{name}' requires a command", field=field)
        if self.type in ("http", "sse") and not self.url:
            raise ValidationError(f"MCP server '{name}' requires a url", field=field)


class Marketplace(BaseModel):
    url: str = ""


class Settings(Entity):
    """Per-user or per-team agent settings."""

    resource_name = "Settings"

    name: str
    bedrock: Optional[BedrockSettings] = None
    mcp_servers: Dict[str, MCPServer] = Field(default_factory=dict)
    marketplaces: Dict[str, Marketplace] = Field(default_factory=dict)
    claude_code_oauth_token: str = ""
    auth_mode: str = ""
    enabled_plugins: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def check(self) -> None:
        self.require("name")
        self.require_one_of("auth_mode", AUTH_MODES)
        for name, server in self.mcp_servers.items():
            server.check(name)
        for name, marketplace in self.marketplaces.items():
            if not marketplace.url:
                raise ValidationError(
                    f"marketplace '{name}' url is required",
                    field=f"marketplaces.{name}",
                )


class ServiceAccount(BaseModel):
    user_id: str
    api_key: str = ""
    permissions: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class TeamConfig(Entity):
    """Team-wide service account and environment."""

    resource_name = "TeamConfig"

    team_id: str
    service_account: Optional[ServiceAccount] = None
    env_vars: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def check(self) -> None:
        self.require("team_id")
        if self.service_account is not None and not self.service_account.user_id:
            raise ValidationError("service account user_id is required", field="service_account.user_id")


class PersonalAPIKey(Entity):
    resource_name = "PersonalAPIKey"

    user_id: str
    api_key: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def check(self) -> None:
        self.require("user_id")
        self.require("api_key")
