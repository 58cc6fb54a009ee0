"""
Secondary index planner.

Splits a ResourceFilter into native queries the backend can answer
(conjunctive label equality or a key prefix) and a residual filter
evaluated in process. Label selectors have no OR, so a set of team IDs
either becomes one native query per team (backends that can union the
results themselves, deduplicating by ID) or is left entirely to the
residual filter.
"""
from typing import Dict, List

from pydantic import BaseModel, Field

from resourcestore.filters import ResourceFilter


class NativeQuery(BaseModel):
    """Conjunction of equality predicates over raw (unhashed) values.

    Keys are filter field names: ``scope``, ``owner_id``, ``team_id`` and
    any index label field of the resource type.
    """

    equals: Dict[str, str] = Field(default_factory=dict)


class QueryPlan(BaseModel):
    queries: List[NativeQuery]
    residual: ResourceFilter

    @property
    def is_fan_out(self) -> bool:
        return len(self.queries) > 1


def plan(flt: ResourceFilter, descriptor, *, fan_out_team_ids: bool = False) -> QueryPlan:
    """
    Plan a List call.

    When ``team_ids`` is set it takes priority over ``owner_id`` and
    ``team_id``: the listing is "team resources of any of these teams".
    Types flagged ``team_ids_user_passthrough`` (webhooks, bots) instead keep
    every other predicate and let user-scoped entries through.

    Args:
        flt: Caller filter
        descriptor: ResourceDescriptor of the listed type
        fan_out_team_ids: Issue one query per team ID instead of scope-only

    Returns:
        QueryPlan whose queries' results must be unioned (deduplicated by
        key) and then refined with ``residual``
    """
    base: Dict[str, str] = {}
    if flt.scope and descriptor.scope_field:
        base["scope"] = flt.scope
    for name in descriptor.index_labels:
        value = getattr(flt, name, "")
        if value:
            base[name] = value

    team_ids = list(dict.fromkeys(t for t in flt.team_ids if t))
    residual = flt.model_copy(deep=True)

    if not team_ids or not descriptor.team_field or descriptor.team_ids_user_passthrough:
        # Pass-through types only use team_ids to restrict team-scoped
        # entries, so every other predicate still applies.
        residual.team_ids = team_ids if descriptor.team_field else []
        if flt.owner_id and descriptor.owner_field:
            base["owner_id"] = flt.owner_id
        if flt.team_id and descriptor.team_field:
            base["team_id"] = flt.team_id
        return QueryPlan(queries=[NativeQuery(equals=base)], residual=residual)

    residual.team_ids = team_ids
    residual.owner_id = ""
    residual.team_id = ""
    if not fan_out_team_ids:
        return QueryPlan(queries=[NativeQuery(equals=base)], residual=residual)

    queries = [NativeQuery(equals={**base, "team_id": team_id}) for team_id in team_ids]
    return QueryPlan(queries=queries, residual=residual)
