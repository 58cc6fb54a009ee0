"""
Shared building blocks for domain entities.

Entities are pydantic models whose JSON form is the stored payload. Fields
that newer records carry and older ones lack are declared with explicit
defaults, so an old payload simply loads with the default.
"""
from datetime import datetime, timezone
from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from resourcestore.exceptions import ValidationError

SCOPE_USER = "user"
SCOPE_TEAM = "team"
SCOPES = (SCOPE_USER, SCOPE_TEAM)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Entity(BaseModel):
    """Base class for every persisted entity."""

    model_config = ConfigDict(extra="ignore")

    # Human-readable type name used in error messages and logs.
    resource_name: ClassVar[str] = "Entity"

    def check(self) -> None:
        """Validate the entity locally; raise ValidationError on failure."""

    def clone(self):
        """Return a deep copy so stored state never aliases caller state."""
        return self.model_copy(deep=True)

    def touch(self) -> None:
        """Bump updated_at when the entity carries one."""
        if "updated_at" in type(self).model_fields:
            self.updated_at = utcnow()

    def require(self, field: str) -> None:
        """Raise ValidationError when ``field`` is empty."""
        value = getattr(self, field)
        if value is None or value == "":
            raise ValidationError(
                f"{self.resource_name} {field} is required",
                field=field,
            )

    def require_one_of(self, field: str, allowed: tuple) -> None:
        value = getattr(self, field)
        if value not in allowed:
            raise ValidationError(
                f"{self.resource_name} {field} must be one of {', '.join(allowed)}",
                field=field,
                value=value,
            )


class ScopedEntity(Entity):
    """Entity owned by a user or shared with a team."""

    scope: str = SCOPE_USER
    owner_id: str = ""
    team_id: str = ""

    def check_scope(self) -> None:
        self.require_one_of("scope", SCOPES)
        if self.scope == SCOPE_TEAM and not self.team_id:
            raise ValidationError(
                f"{self.resource_name} team_id is required when scope is 'team'",
                field="team_id",
            )
