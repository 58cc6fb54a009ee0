"""
Repositories for tasks and task groups.

Task type, status, group and session have a 1:1 label each, so filtering on
them is pushed down to the backend's label selector.
"""
from typing import List

from resourcestore.entities import Task, TaskGroup
from resourcestore.exceptions import TaskGroupNotFoundError, TaskNotFoundError
from resourcestore.filters import ResourceFilter
from resourcestore.storage.descriptors import ResourceDescriptor
from resourcestore.storage.repository import ResourceRepository

TASK_DESCRIPTOR = ResourceDescriptor(
    type_name="task",
    entity_cls=Task,
    name_prefix="agentapi-task-",
    data_key="task.json",
    not_found=TaskNotFoundError,
    index_labels={
        "type": ("task-type", "task_type"),
        "status": ("task-status", "status"),
        "group_id": ("group-id", "group_id"),
        "session_id": ("session-id", "session_id"),
    },
    search_fields=("title", "description"),
)

TASK_GROUP_DESCRIPTOR = ResourceDescriptor(
    type_name="task-group",
    entity_cls=TaskGroup,
    name_prefix="agentapi-task-group-",
    data_key="task_group.json",
    not_found=TaskGroupNotFoundError,
    search_fields=("name", "description"),
)


class TaskRepository(ResourceRepository[Task]):
    """Repository for task operations."""

    descriptor = TASK_DESCRIPTOR

    def get_by_id(self, task_id: str) -> Task:
        return self.get(task_id)

    def list_by_group(self, group_id: str, flt: ResourceFilter = None) -> List[Task]:
        """
        List the tasks of one group.

        Args:
            group_id: Task group ID
            flt: Further predicates (scope, owner, status...)
        """
        flt = (flt or ResourceFilter()).model_copy(update={"group_id": group_id})
        return self.list(flt)


class TaskGroupRepository(ResourceRepository[TaskGroup]):
    """Repository for task group operations."""

    descriptor = TASK_GROUP_DESCRIPTOR

    def get_by_id(self, group_id: str) -> TaskGroup:
        return self.get(group_id)
