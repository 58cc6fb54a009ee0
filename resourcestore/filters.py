"""
Filter shape shared by every List call, and the in-process residual filter.

matches() runs after every backend read, whether or not the native query
already narrowed by the same predicate: hashed labels can collide and key
prefixes can be broader than the filter.
"""
from typing import Dict, List

from pydantic import BaseModel, Field

from resourcestore.entities.base import SCOPE_TEAM

# Filter fields compared for equality against an entity attribute.
EXACT_FIELDS = ("scope", "owner_id", "team_id", "status", "type", "group_id", "session_id")


class ResourceFilter(BaseModel):
    """Superset of filter fields; fields irrelevant to a resource type are ignored."""

    scope: str = ""
    owner_id: str = ""
    team_id: str = ""
    team_ids: List[str] = Field(default_factory=list)
    tags: Dict[str, str] = Field(default_factory=dict)
    query: str = ""
    status: str = ""
    type: str = ""
    group_id: str = ""
    session_id: str = ""


def matches_tags(entity_tags: Dict[str, str], wanted: Dict[str, str]) -> bool:
    """Subset semantics: every wanted key must be present with the same value."""
    for key, value in wanted.items():
        if entity_tags.get(key) != value:
            return False
    return True


def matches_text(values: List[str], query: str) -> bool:
    """Case-insensitive substring match against any of ``values``."""
    if not query:
        return True
    needle = query.lower()
    return any(needle in (v or "").lower() for v in values)


def matches(entity, flt: ResourceFilter, descriptor) -> bool:
    """
    Evaluate every predicate of ``flt`` against ``entity`` in process.

    Args:
        entity: Decoded entity
        flt: Filter to apply
        descriptor: ResourceDescriptor mapping filter fields onto attributes

    Returns:
        True when the entity satisfies all predicates relevant to its type
    """
    for name in EXACT_FIELDS:
        wanted = getattr(flt, name)
        if not wanted:
            continue
        attr = descriptor.filter_attr(name)
        if attr is None:
            continue
        if getattr(entity, attr) != wanted:
            return False

    if flt.team_ids and descriptor.team_field:
        scope = getattr(entity, descriptor.scope_field) if descriptor.scope_field else SCOPE_TEAM
        passthrough = descriptor.team_ids_user_passthrough and scope != SCOPE_TEAM
        if not passthrough and getattr(entity, descriptor.team_field) not in flt.team_ids:
            return False

    if flt.tags and descriptor.tags_field:
        if not matches_tags(getattr(entity, descriptor.tags_field), flt.tags):
            return False

    if flt.query and descriptor.search_fields:
        if not matches_text([getattr(entity, f) for f in descriptor.search_fields], flt.query):
            return False

    return True
