#!/usr/bin/env python3
"""
ytctl - local driver for the YouTube video reconciliation core.

Configures a provider session from the environment, runs one reconciler
operation per command and persists successful results to a JSON state file.
"""

import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, Dict, Optional

import click
import yaml
from tabulate import tabulate

from config import get_config
from diagnostics import Diagnostics, Severity
from errors import ValidationError
from plugins.base import ReconcileResult
from resource_schema import VIDEO_RESOURCE_SCHEMA, DeclarationSource, ResourceSchema
from session import ProviderSession
from state_store import StateStore, StateStoreError

__version__ = "0.1.0"

RESOURCE_TYPE = "youtube_video"
MUTABLE_ATTRIBUTES = ("title", "description")

logger = logging.getLogger(__name__)

Operation = Callable[[ProviderSession], Awaitable[ReconcileResult]]


def _load_declaration(filename: str) -> Dict[str, Any]:
    """Read a declaration from a YAML or JSON file."""
    with open(filename, "r") as f:
        if filename.endswith(".yaml") or filename.endswith(".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    if not isinstance(data, dict):
        raise click.BadParameter(
            f"{filename} must contain a mapping of attributes", param_hint="FILENAME"
        )
    return data


def _echo_diagnostics(diagnostics: Diagnostics) -> None:
    for diagnostic in diagnostics:
        label = "Error" if diagnostic.severity is Severity.ERROR else "Warning"
        click.echo(f"{label}: {diagnostic.summary}", err=True)
        if diagnostic.detail:
            click.echo(f"  {diagnostic.detail}", err=True)


def _echo_state(state: Dict[str, Any], output: str) -> None:
    if output == "yaml":
        click.echo(yaml.safe_dump(state, default_flow_style=False, sort_keys=False))
    else:
        click.echo(json.dumps(state, indent=2))


async def _run_operation(
    ctx_obj: Dict[str, Any], operation: Operation, configure: bool = True
) -> ReconcileResult:
    """Configure a session, run one operation and close the session."""
    cfg = ctx_obj["config"]
    async with ProviderSession(version=__version__, settings=cfg.youtube) as session:
        if not configure:
            return await operation(session)
        diagnostics = await session.configure(
            {"access_token": cfg.youtube.access_token}
        )
        if diagnostics.has_error():
            result = ReconcileResult(operation="configure")
            result.diagnostics.extend(diagnostics)
            return result
        return await operation(session)


def _execute(
    ctx: click.Context,
    operation: Operation,
    persist_id: Optional[str] = None,
    configure: bool = True,
) -> ReconcileResult:
    """Run an operation, report diagnostics and persist state on success."""
    result = asyncio.run(_run_operation(ctx.obj, operation, configure))
    logger.debug(f"{result.operation} finished in phase {result.phase.value}")
    _echo_diagnostics(result.diagnostics)

    if not result.success:
        sys.exit(1)

    if persist_id is not None and result.state is not None:
        ctx.obj["store"].put(RESOURCE_TYPE, persist_id, result.state)
    return result


def _stored_state(ctx: click.Context, video_id: str) -> Dict[str, Any]:
    try:
        state = ctx.obj["store"].get(RESOURCE_TYPE, video_id)
    except StateStoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if state is None:
        click.echo(
            f"Error: {RESOURCE_TYPE} {video_id} is not tracked. "
            f"Use 'ytctl import {video_id}' first.",
            err=True,
        )
        sys.exit(1)
    return state


@click.group()
@click.option(
    "--state-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="State file path (default: $YTCTL_STATE_FILE or ytctl-state.json)",
)
@click.option("--log-level", default=None, help="Log level (default: $LOG_LEVEL)")
@click.version_option(__version__)
@click.pass_context
def cli(ctx, state_file, log_level):
    """ytctl - reconcile YouTube videos against declared title and description"""
    cfg = get_config()
    if state_file:
        cfg.state.path = state_file
    if log_level:
        cfg.logging.level = log_level.upper()

    logging.basicConfig(level=cfg.logging.level, format=cfg.logging.format)

    ctx.ensure_object(dict)
    ctx.obj["config"] = cfg
    ctx.obj["store"] = StateStore(cfg.state.path)


@cli.command()
@click.option("--data-source", is_flag=True, help="Show the data source schema")
@click.pass_context
def schema(ctx, data_source):
    """Show the youtube_video attribute schema"""
    from plugins.reconcilers.video import VideoDataSource, VideoResource

    plugin_schema: ResourceSchema = (
        VideoDataSource.schema if data_source else VideoResource.schema
    )
    rows = [
        [a.name, a.type, a.role.value, "yes" if a.sensitive else "", a.description]
        for a in plugin_schema.describe()
    ]
    click.echo(plugin_schema.description)
    click.echo(
        tabulate(
            rows,
            headers=["Attribute", "Type", "Role", "Sensitive", "Description"],
            tablefmt="grid",
        )
    )


@cli.command()
@click.argument("video_id")
@click.option("--output", "-o", type=click.Choice(["json", "yaml"]), default="json")
@click.pass_context
def read(ctx, video_id, output):
    """Read a video through the youtube_video data source"""
    result = _execute(
        ctx, lambda s: s.data_source(RESOURCE_TYPE).read({"id": video_id})
    )
    _echo_state(result.state, output)


@cli.command(name="import")
@click.argument("video_id")
@click.pass_context
def import_(ctx, video_id):
    """Start tracking an existing video"""
    try:
        tracked = ctx.obj["store"].get(RESOURCE_TYPE, video_id)
    except StateStoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    if tracked is not None:
        click.echo(f"Error: {RESOURCE_TYPE} {video_id} is already tracked", err=True)
        sys.exit(1)

    result = _execute(
        ctx,
        lambda s: s.resource(RESOURCE_TYPE).import_state(video_id),
        persist_id=video_id,
    )
    click.echo(f"Imported {RESOURCE_TYPE} {video_id}")
    click.echo(f"Title: {result.state['title']}")


@cli.command()
@click.argument("video_id")
@click.pass_context
def refresh(ctx, video_id):
    """Refresh the stored state of a tracked video"""
    stored = _stored_state(ctx, video_id)
    result = _execute(
        ctx, lambda s: s.resource(RESOURCE_TYPE).read(stored), persist_id=video_id
    )
    click.echo(f"Refreshed {RESOURCE_TYPE} {video_id}")
    click.echo(f"Title: {result.state['title']}")


@cli.command()
@click.argument("filename", type=click.Path(exists=True))
@click.pass_context
def apply(ctx, filename):
    """Apply a declaration (id, title, description) from a YAML/JSON file"""
    try:
        declaration = VIDEO_RESOURCE_SCHEMA.decode(
            _load_declaration(filename), DeclarationSource.CONFIG
        )
    except ValidationError as e:
        diagnostics = Diagnostics()
        diagnostics.add_error(e.summary or "Invalid declaration", e.message)
        _echo_diagnostics(diagnostics)
        sys.exit(1)

    video_id = declaration["id"]
    store = ctx.obj["store"]
    try:
        stored = store.get(RESOURCE_TYPE, video_id)
    except StateStoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if stored is None:
        # Untracked videos are never created; this always reports an error
        _execute(ctx, lambda s: s.resource(RESOURCE_TYPE).create(declaration))
        return

    updated = []

    async def reconcile(session: ProviderSession) -> ReconcileResult:
        resource = session.resource(RESOURCE_TYPE)
        refreshed = await resource.read(stored)
        if not refreshed.success:
            return refreshed
        store.put(RESOURCE_TYPE, video_id, refreshed.state)
        if all(refreshed.state[k] == declaration[k] for k in MUTABLE_ATTRIBUTES):
            return refreshed
        updated.append(video_id)
        return await resource.update(declaration)

    _execute(ctx, reconcile, persist_id=video_id)
    if updated:
        click.echo(f"Updated {RESOURCE_TYPE} {video_id}")
    else:
        click.echo(f"No changes. {RESOURCE_TYPE} {video_id} is up to date.")


@cli.command()
@click.argument("video_id")
@click.confirmation_option(
    prompt="Stop tracking this video? It will NOT be deleted from YouTube."
)
@click.pass_context
def forget(ctx, video_id):
    """Stop tracking a video without deleting it"""
    stored = _stored_state(ctx, video_id)
    # Detaching needs no credential, so the session is left unconfigured
    _execute(ctx, lambda s: s.detach(RESOURCE_TYPE, stored), configure=False)
    ctx.obj["store"].remove(RESOURCE_TYPE, video_id)
    click.echo(f"{RESOURCE_TYPE} {video_id} is no longer tracked")


@cli.command()
@click.pass_context
def state(ctx):
    """List tracked videos"""
    try:
        entries = ctx.obj["store"].list_resources(RESOURCE_TYPE)
    except StateStoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not entries:
        click.echo("No tracked videos")
        return

    rows = [
        [e["id"], e["state"].get("title"), e["state"].get("description")]
        for e in entries
    ]
    click.echo(tabulate(rows, headers=["ID", "Title", "Description"], tablefmt="grid"))


if __name__ == "__main__":
    cli()
