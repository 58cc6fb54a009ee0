"""
Memory entity: a titled note with free-form tags.
"""
from datetime import datetime
from typing import Dict

from pydantic import Field

from resourcestore.entities.base import ScopedEntity, utcnow


class Memory(ScopedEntity):
    """A note owned by a user or shared with a team."""

    resource_name = "Memory"

    id: str
    title: str = ""
    content: str = ""
    tags: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def check(self) -> None:
        self.require("id")
        self.require("title")
        self.require("owner_id")
        self.check_scope()

