"""
Label and annotation scheme for stored objects.

Labels are short and character-restricted, so identifiers go into them
hashed (or verbatim when already label-legal). Annotations carry the exact
identifiers, and on read they win over whatever the JSON payload says,
because older payloads may predate a field moving into annotations.

Invariant: for every stored object, ``hash_id(annotation[owner-id]) ==
label[owner-hash]`` (and the same for team and key), since both sides are
derived from the same value in one place.
"""
from typing import Dict

from resourcestore.config import DEFAULT_LABEL_NAMESPACE
from resourcestore.identifiers import hash_id, label_value


class LabelSchema:
    """Label and annotation keys under one namespace (``agentapi.proxy`` by default)."""

    def __init__(self, namespace: str = DEFAULT_LABEL_NAMESPACE):
        self.namespace = namespace.rstrip("/")

    def key(self, suffix: str) -> str:
        return f"{self.namespace}/{suffix}"

    @property
    def type_label(self) -> str:
        return self.key("type")

    @property
    def scope_label(self) -> str:
        return self.key("scope")

    @property
    def owner_hash_label(self) -> str:
        return self.key("owner-hash")

    @property
    def team_hash_label(self) -> str:
        return self.key("team-hash")

    @property
    def key_hash_label(self) -> str:
        return self.key("key-hash")

    @property
    def owner_annotation(self) -> str:
        return self.key("owner-id")

    @property
    def team_annotation(self) -> str:
        return self.key("team-id")

    @property
    def key_annotation(self) -> str:
        return self.key("key-id")


def _value(entity, field) -> str:
    if not field:
        return ""
    return getattr(entity, field) or ""


def build_labels(entity, descriptor, schema: LabelSchema) -> Dict[str, str]:
    """
    Build the indexing labels for an entity.

    Args:
        entity: Entity being written
        descriptor: ResourceDescriptor of the entity's type
        schema: Label namespace

    Returns:
        Label map (type, key hash, scope, owner/team hashes, index labels)
    """
    labels = {
        schema.type_label: descriptor.type_name,
        schema.key_hash_label: hash_id(descriptor.key_of(entity)),
    }
    scope = _value(entity, descriptor.scope_field)
    if scope:
        labels[schema.scope_label] = label_value(scope)
    owner = _value(entity, descriptor.owner_field)
    if owner:
        labels[schema.owner_hash_label] = hash_id(owner)
    team = _value(entity, descriptor.team_field)
    if team:
        labels[schema.team_hash_label] = hash_id(team)
    for label_suffix, attr in descriptor.index_labels.values():
        value = _value(entity, attr)
        if value:
            labels[schema.key(label_suffix)] = label_value(value)
    return labels


def build_annotations(entity, descriptor, schema: LabelSchema) -> Dict[str, str]:
    """Return the exact values of every identifier that labels only carry lossily."""
    annotations = {schema.key_annotation: descriptor.key_of(entity)}
    owner = _value(entity, descriptor.owner_field)
    if owner:
        annotations[schema.owner_annotation] = owner
    team = _value(entity, descriptor.team_field)
    if team:
        annotations[schema.team_annotation] = team
    return annotations


def resolve_annotations(annotations: Dict[str, str], entity, descriptor, schema: LabelSchema):
    """
    Apply annotation values onto a freshly decoded entity.

    Precedence is annotation, then payload, then absent. Empty annotation
    values are ignored.

    Returns:
        The same entity, updated in place
    """
    owner = annotations.get(schema.owner_annotation)
    if owner and descriptor.owner_field:
        setattr(entity, descriptor.owner_field, owner)
    team = annotations.get(schema.team_annotation)
    if team and descriptor.team_field:
        setattr(entity, descriptor.team_field, team)
    return entity


def stored_key(annotations: Dict[str, str], schema: LabelSchema) -> str:
    """Exact key the object was written for, or "" for objects written before key annotations."""
    return annotations.get(schema.key_annotation, "")
