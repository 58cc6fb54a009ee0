"""
Tests for TaskRepository and TaskGroupRepository.
"""
import pytest

from resourcestore.adapters import KIND_CONFIG_MAP
from resourcestore.entities import Task, TaskGroup, TaskLink
from resourcestore.exceptions import TaskGroupNotFoundError, TaskNotFoundError, ValidationError
from resourcestore.filters import ResourceFilter
from resourcestore.identifiers import hash_id
from resourcestore.storage import TaskGroupRepository, TaskRepository


def make_task(task_id="t1", **kwargs):
    fields = dict(id=task_id, title="Fix bug", owner_id="alice")
    fields.update(kwargs)
    return Task(**fields)


@pytest.fixture
def tasks(metadata_client):
    return TaskRepository.on_metadata_objects(metadata_client)


@pytest.fixture
def groups(metadata_client):
    return TaskGroupRepository.on_metadata_objects(metadata_client)


class TestTaskRepository:
    """Tests for tasks stored as ConfigMaps."""

    def test_create_and_get(self, tasks, metadata_client):
        task = make_task(links=[TaskLink(url="https://example.com/pr/1", title="PR")])
        tasks.create(task)
        assert metadata_client.stored(KIND_CONFIG_MAP, "agentapi-task-t1").data["task.json"]
        loaded = tasks.get_by_id("t1")
        assert loaded.links[0].url == "https://example.com/pr/1"
        assert loaded.status == "todo"

    def test_invalid_status(self, tasks):
        with pytest.raises(ValidationError) as exc_info:
            tasks.create(make_task(status="blocked"))
        assert exc_info.value.field == "status"

    def test_status_and_type_pushed_down(self, tasks, metadata_client):
        tasks.create(make_task("t1", status="done", task_type="agent"))
        tasks.create(make_task("t2"))

        listed = tasks.list(ResourceFilter(status="done", type="agent"))
        assert [t.id for t in listed] == ["t1"]
        selector = metadata_client.operations("list")[-1][2]
        assert "agentapi.proxy/task-status=done" in selector
        assert "agentapi.proxy/task-type=agent" in selector

    def test_list_by_group(self, tasks, metadata_client):
        tasks.create(make_task("t1", group_id="g/1"))
        tasks.create(make_task("t2", group_id="g/2"))
        assert [t.id for t in tasks.list_by_group("g/1")] == ["t1"]
        assert f"agentapi.proxy/group-id={hash_id('g/1')}" in metadata_client.operations("list")[-1][2]

    def test_list_by_session_and_text(self, tasks):
        tasks.create(make_task("t1", session_id="s1", description="flaky login test"))
        tasks.create(make_task("t2", session_id="s1"))
        listed = tasks.list(ResourceFilter(session_id="s1", query="LOGIN"))
        assert [t.id for t in listed] == ["t1"]

    def test_update_status(self, tasks):
        task = make_task()
        tasks.create(task)
        created_at = tasks.get_by_id("t1").updated_at
        task.status = "done"
        tasks.update(task)
        loaded = tasks.get_by_id("t1")
        assert loaded.status == "done"
        assert loaded.updated_at >= created_at
        assert tasks.list(ResourceFilter(status="todo")) == []

    def test_delete_missing(self, tasks):
        with pytest.raises(TaskNotFoundError):
            tasks.delete("missing")


class TestTaskGroupRepository:
    """Tests for task groups."""

    def test_round_trip(self, groups):
        groups.create(TaskGroup(id="g1", name="Sprint", owner_id="alice", scope="team", team_id="org/t"))
        group = groups.get_by_id("g1")
        assert group.name == "Sprint"
        assert [g.id for g in groups.list(ResourceFilter(team_ids=["org/t"]))] == ["g1"]

    def test_name_required(self, groups):
        with pytest.raises(ValidationError):
            groups.create(TaskGroup(id="g1", owner_id="alice"))

    def test_missing(self, groups):
        with pytest.raises(TaskGroupNotFoundError):
            groups.get_by_id("g1")


class TestObjectStorage:
    """Tasks and groups use separate object storage prefixes."""

    def test_prefixes_do_not_mix(self, object_client):
        tasks = TaskRepository.on_object_storage(object_client, prefix="agentapi-task/")
        groups = TaskGroupRepository.on_object_storage(object_client, prefix="agentapi-task-group/")
        tasks.create(make_task("t1"))
        groups.create(TaskGroup(id="g1", name="Sprint", owner_id="alice"))

        assert [t.id for t in tasks.list()] == ["t1"]
        assert [g.id for g in groups.list()] == ["g1"]
        assert f"agentapi-task/user/{hash_id('alice')}/t1.json" in object_client.objects

    def test_status_filtered_in_process(self, object_client):
        tasks = TaskRepository.on_object_storage(object_client, prefix="agentapi-task/")
        tasks.create(make_task("t1", status="done"))
        tasks.create(make_task("t2"))
        assert [t.id for t in tasks.list(ResourceFilter(status="done"))] == ["t1"]
