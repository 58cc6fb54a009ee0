"""
Task and task group entities.
"""
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field

from resourcestore.entities.base import ScopedEntity, utcnow

TASK_STATUS_TODO = "todo"
TASK_STATUS_DONE = "done"
TASK_STATUSES = (TASK_STATUS_TODO, TASK_STATUS_DONE)

TASK_TYPE_USER = "user"
TASK_TYPE_AGENT = "agent"
TASK_TYPES = (TASK_TYPE_USER, TASK_TYPE_AGENT)


class TaskLink(BaseModel):
    id: str = ""
    url: str
    title: str = ""


class Task(ScopedEntity):
    """A to-do item, optionally grouped and attached to an agent session."""

    resource_name = "Task"

    id: str
    title: str = ""
    description: str = ""
    status: str = TASK_STATUS_TODO
    task_type: str = TASK_TYPE_USER
    group_id: str = ""
    session_id: str = ""
    links: List[TaskLink] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def check(self) -> None:
        self.require("id")
        self.require("title")
        self.require("owner_id")
        self.require_one_of("status", TASK_STATUSES)
        self.require_one_of("task_type", TASK_TYPES)
        self.check_scope()



class TaskGroup(ScopedEntity):
    """A named collection of tasks."""

    resource_name = "TaskGroup"

    id: str
    name: str = ""
    description: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def check(self) -> None:
        self.require("id")
        self.require("name")
        self.require("owner_id")
        self.check_scope()
