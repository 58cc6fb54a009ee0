"""
Tests for labels, annotations, the index planner and the residual filter.
"""
from resourcestore.annotations import (
    LabelSchema,
    build_annotations,
    build_labels,
    resolve_annotations,
    stored_key,
)
from resourcestore.entities import Memory, Task, Webhook, WebhookTrigger
from resourcestore.filters import ResourceFilter, matches, matches_tags, matches_text
from resourcestore.identifiers import hash_id
from resourcestore.index_planner import plan
from resourcestore.storage.memory_repository import MEMORY_DESCRIPTOR
from resourcestore.storage.task_repository import TASK_DESCRIPTOR
from resourcestore.storage.webhook_repository import WEBHOOK_DESCRIPTOR

SCHEMA = LabelSchema()


def team_memory(**kwargs):
    fields = dict(id="m1", title="Runbook", owner_id="alice", scope="team", team_id="org/platform-team")
    fields.update(kwargs)
    return Memory(**fields)


class TestLabelsAndAnnotations:
    """Tests for label and annotation building."""

    def test_labels_hash_identifiers(self):
        labels = build_labels(team_memory(), MEMORY_DESCRIPTOR, SCHEMA)
        assert labels["agentapi.proxy/type"] == "memory"
        assert labels["agentapi.proxy/scope"] == "team"
        assert labels["agentapi.proxy/team-hash"] == hash_id("org/platform-team")
        assert labels["agentapi.proxy/owner-hash"] == hash_id("alice")
        assert labels["agentapi.proxy/key-hash"] == hash_id("m1")

    def test_annotations_keep_exact_values(self):
        annotations = build_annotations(team_memory(), MEMORY_DESCRIPTOR, SCHEMA)
        assert annotations["agentapi.proxy/team-id"] == "org/platform-team"
        assert annotations["agentapi.proxy/owner-id"] == "alice"
        assert stored_key(annotations, SCHEMA) == "m1"

    def test_label_hash_matches_annotation(self):
        memory = team_memory(owner_id="user@example.com")
        labels = build_labels(memory, MEMORY_DESCRIPTOR, SCHEMA)
        annotations = build_annotations(memory, MEMORY_DESCRIPTOR, SCHEMA)
        assert labels[SCHEMA.owner_hash_label] == hash_id(annotations[SCHEMA.owner_annotation])
        assert labels[SCHEMA.team_hash_label] == hash_id(annotations[SCHEMA.team_annotation])

    def test_empty_team_not_labelled(self):
        memory = Memory(id="m2", title="t", owner_id="bob")
        assert SCHEMA.team_hash_label not in build_labels(memory, MEMORY_DESCRIPTOR, SCHEMA)
        assert SCHEMA.team_annotation not in build_annotations(memory, MEMORY_DESCRIPTOR, SCHEMA)

    def test_index_labels(self):
        task = Task(id="t1", title="x", owner_id="bob", task_type="agent", group_id="g/1")
        labels = build_labels(task, TASK_DESCRIPTOR, SCHEMA)
        assert labels["agentapi.proxy/task-type"] == "agent"
        assert labels["agentapi.proxy/task-status"] == "todo"
        assert labels["agentapi.proxy/group-id"] == hash_id("g/1")
        assert "agentapi.proxy/session-id" not in labels

    def test_annotation_overrides_payload(self):
        payload = team_memory(team_id="org-platform-team")
        annotations = {SCHEMA.team_annotation: "org/platform-team", SCHEMA.owner_annotation: ""}
        resolved = resolve_annotations(annotations, payload, MEMORY_DESCRIPTOR, SCHEMA)
        assert resolved.team_id == "org/platform-team"
        assert resolved.owner_id == "alice"

    def test_custom_namespace(self):
        schema = LabelSchema("example.com/")
        assert schema.type_label == "example.com/type"


class TestPlanner:
    """Tests for the secondary index planner."""

    def test_pushes_down_scope_owner_team(self):
        flt = ResourceFilter(scope="team", owner_id="alice", team_id="org/t")
        result = plan(flt, MEMORY_DESCRIPTOR)
        assert len(result.queries) == 1
        assert result.queries[0].equals == {"scope": "team", "owner_id": "alice", "team_id": "org/t"}
        assert result.residual.owner_id == "alice"

    def test_pushes_down_index_labels(self):
        result = plan(ResourceFilter(type="agent", status="done", query="x"), TASK_DESCRIPTOR)
        assert result.queries[0].equals == {"type": "agent", "status": "done"}
        assert result.residual.query == "x"

    def test_ignores_irrelevant_fields(self):
        result = plan(ResourceFilter(status="done", group_id="g"), MEMORY_DESCRIPTOR)
        assert result.queries[0].equals == {}

    def test_team_ids_become_residual(self):
        flt = ResourceFilter(scope="team", owner_id="alice", team_ids=["a", "b", "a"])
        result = plan(flt, MEMORY_DESCRIPTOR)
        assert len(result.queries) == 1
        assert result.queries[0].equals == {"scope": "team"}
        assert result.residual.team_ids == ["a", "b"]
        assert result.residual.owner_id == ""
        assert not result.is_fan_out

    def test_team_ids_fan_out(self):
        result = plan(ResourceFilter(team_ids=["a", "b", "a"]), MEMORY_DESCRIPTOR, fan_out_team_ids=True)
        assert [q.equals for q in result.queries] == [{"team_id": "a"}, {"team_id": "b"}]
        assert result.is_fan_out

    def test_passthrough_types_keep_owner(self):
        flt = ResourceFilter(owner_id="alice", team_ids=["a"])
        result = plan(flt, WEBHOOK_DESCRIPTOR, fan_out_team_ids=True)
        assert [q.equals for q in result.queries] == [{"owner_id": "alice"}]
        assert result.residual.team_ids == ["a"]


class TestResidualFilter:
    """Tests for in-process matching."""

    def test_tags_subset(self):
        assert matches_tags({"env": "prod", "tier": "1"}, {"env": "prod"})
        assert not matches_tags({"env": "prod"}, {"env": "prod", "tier": "1"})
        assert matches_tags({}, {})

    def test_text_query(self):
        assert matches_text(["Runbook", "restart the pods"], "POD")
        assert not matches_text(["Runbook"], "deploy")
        assert matches_text([], "")

    def test_exact_fields_rechecked(self):
        memory = team_memory()
        assert matches(memory, ResourceFilter(team_id="org/platform-team"), MEMORY_DESCRIPTOR)
        assert not matches(memory, ResourceFilter(team_id="org/other"), MEMORY_DESCRIPTOR)
        assert not matches(memory, ResourceFilter(owner_id="bob"), MEMORY_DESCRIPTOR)

    def test_team_ids_membership(self):
        memory = team_memory()
        assert matches(memory, ResourceFilter(team_ids=["x", "org/platform-team"]), MEMORY_DESCRIPTOR)
        assert not matches(memory, ResourceFilter(team_ids=["x"]), MEMORY_DESCRIPTOR)

    def test_team_ids_pass_user_webhooks(self):
        trigger = WebhookTrigger(id="t")
        user_hook = Webhook(id="w1", name="w", user_id="alice", triggers=[trigger])
        team_hook = Webhook(id="w2", name="w", user_id="alice", scope="team", team_id="b", triggers=[trigger])
        flt = ResourceFilter(team_ids=["a"])
        assert matches(user_hook, flt, WEBHOOK_DESCRIPTOR)
        assert not matches(team_hook, flt, WEBHOOK_DESCRIPTOR)

    def test_tags_and_query(self):
        memory = team_memory(tags={"env": "prod"}, content="restart pods")
        assert matches(memory, ResourceFilter(tags={"env": "prod"}, query="RESTART"), MEMORY_DESCRIPTOR)
        assert not matches(memory, ResourceFilter(tags={"env": "dev"}), MEMORY_DESCRIPTOR)
