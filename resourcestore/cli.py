#!/usr/bin/env python3
"""
Command-line interface for resourcestore.

Operator commands for inspecting and maintaining stored resources.
"""
import base64
import json
import secrets
import sys
from typing import Any, Dict, List, Tuple

import click

from resourcestore.config import BACKENDS, configure_logging, get_settings
from resourcestore.encryption import EncryptionServiceFactory
from resourcestore.entities import Entity
from resourcestore.exceptions import ServiceError
from resourcestore.filters import ResourceFilter
from resourcestore.repository_factory import Repositories, build_repositories

# CLI name -> Repositories attribute
LISTABLE = {
    "memories": "memories",
    "tasks": "tasks",
    "task-groups": "task_groups",
    "webhooks": "webhooks",
    "bots": "bots",
    "settings": "settings",
    "team-configs": "team_configs",
}
DELETABLE = {**LISTABLE, "personal-api-keys": "personal_api_keys"}


def get_repositories(ctx: click.Context) -> Repositories:
    """Build the repositories once per invocation."""
    if ctx.obj.get("repositories") is None:
        ctx.obj["repositories"] = build_repositories(ctx.obj["settings"])
    return ctx.obj["repositories"]


def parse_tags(values: Tuple[str, ...]) -> Dict[str, str]:
    tags = {}
    for value in values:
        key, sep, tag_value = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"tag must be key=value, got '{value}'", param_hint="--tag")
        tags[key] = tag_value
    return tags


def summarize(entity: Entity) -> str:
    """Format one entity as a single table row."""
    data = entity.model_dump()
    key = data.get("id") or data.get("name") or data.get("team_id") or data.get("user_id")
    label = data.get("title") or data.get("name") or ""
    owner = data.get("owner_id") or data.get("user_id") or ""
    scope = data.get("scope", "")
    return "  ".join(part for part in (str(key), label, scope, owner) if part)


def format_json(entities: List[Entity]) -> str:
    """Format entities as JSON."""
    return json.dumps([e.model_dump(mode="json") for e in entities], indent=2)


@click.group()
@click.option('--backend', type=click.Choice(BACKENDS, case_sensitive=False), default=None,
              help='Storage backend (overrides RESOURCESTORE_BACKEND)')
@click.option('--namespace', default=None,
              help='Namespace holding the metadata objects (overrides RESOURCESTORE_NAMESPACE)')
@click.pass_context
def cli(ctx, backend, namespace):
    """resourcestore CLI tool for managing stored resources."""
    ctx.ensure_object(dict)
    settings = get_settings()
    updates = {}
    if backend:
        updates["backend"] = backend.lower()
    if namespace:
        updates["namespace"] = namespace
    if updates:
        settings = settings.model_copy(update=updates)
    configure_logging(settings)
    ctx.obj["settings"] = settings


@cli.command("generate-key")
def generate_key():
    """Print a new base64 AES-256 key for AGENTAPI_ENCRYPTION_KEY."""
    click.echo(base64.b64encode(secrets.token_bytes(32)).decode("ascii"))


@cli.command("encryption-info")
@click.pass_context
def encryption_info(ctx):
    """Show which encryption service new values are written with."""
    service = EncryptionServiceFactory(ctx.obj["settings"]).create()
    click.echo(f"Algorithm: {service.algorithm}")
    click.echo(f"Key ID: {service.key_id or '-'}")


@cli.command("list")
@click.argument('resource', type=click.Choice(sorted(LISTABLE)))
@click.option('--scope', type=click.Choice(['user', 'team']), help='Filter by scope')
@click.option('--owner', 'owner_id', default='', help='Filter by owner (user) ID')
@click.option('--team', 'team_id', default='', help='Filter by team ID')
@click.option('--team-ids', 'team_ids', multiple=True, help='Match any of these team IDs (repeatable)')
@click.option('--tag', 'tags', multiple=True, help='Tag filter as key=value (repeatable)')
@click.option('--query', default='', help='Case-insensitive text search')
@click.option('--status', default='', help='Filter by status')
@click.option('--type', 'type_', default='', help='Filter by type')
@click.option('--format', 'output_format', type=click.Choice(['table', 'json']),
              default='table', help='Output format')
@click.pass_context
def list_resources(ctx, resource, scope, owner_id, team_id, team_ids, tags, query, status, type_, output_format):
    """List stored resources with optional filters."""
    flt = ResourceFilter(
        scope=scope or "",
        owner_id=owner_id,
        team_id=team_id,
        team_ids=list(team_ids),
        tags=parse_tags(tags),
        query=query,
        status=status,
        type=type_,
    )
    try:
        repository = getattr(get_repositories(ctx), LISTABLE[resource])
        entities = repository.list(flt)
    except ServiceError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    if output_format == 'json':
        click.echo(format_json(entities))
    elif not entities:
        click.echo(f"No {resource} found.")
    else:
        for entity in entities:
            click.echo(summarize(entity))


@cli.command("delete")
@click.argument('resource', type=click.Choice(sorted(DELETABLE)))
@click.argument('resource_id')
@click.pass_context
def delete_resource(ctx, resource, resource_id):
    """Delete one stored resource by ID or natural key."""
    try:
        repository = getattr(get_repositories(ctx), DELETABLE[resource])
        repository.delete(resource_id)
    except ServiceError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)
    click.echo(f"Deleted {resource} {resource_id}")


@cli.command("cleanup-shares")
@click.pass_context
def cleanup_shares(ctx):
    """Remove expired session shares."""
    try:
        removed = get_repositories(ctx).shares.cleanup_expired()
    except ServiceError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)
    click.echo(f"Removed {removed} expired share(s)")


def main(argv: Any = None) -> None:
    """Console script entry point."""
    cli(args=argv, obj={})


if __name__ == '__main__':
    main()
