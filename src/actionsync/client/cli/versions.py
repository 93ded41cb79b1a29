"""Listing commands for actionsync CLI.

Commands:
- versions: List the versions of the project
- release-channels: List the release channels of the project
"""

from __future__ import annotations

import click

from actionsync.client.cli.common import (
    CLIContext,
    api_client,
    open_project,
    pass_cli_context,
    reported_errors,
)


@click.command()
@pass_cli_context
def versions(ctx: CLIContext) -> None:
    """List the versions of the project."""
    from actionsync.client.sdk import list_versions

    project = open_project(ctx)
    with reported_errors(), api_client(ctx) as client:
        items = list_versions(client, project.project_id)
    if not items:
        click.echo("No versions found.")
        return
    click.echo(f"{'Version':<12}{'State':<40}{'Last modified by':<32}Modified on")
    for v in items:
        click.echo(f"{v.id:<12}{v.state:<40}{v.creator:<32}{v.update_time}")


@click.command("release-channels")
@pass_cli_context
def release_channels(ctx: CLIContext) -> None:
    """List the release channels of the project."""
    from actionsync.client.sdk import channel_display_name, list_release_channels

    project = open_project(ctx)
    with reported_errors(), api_client(ctx) as client:
        items = list_release_channels(client, project.project_id)
    if not items:
        click.echo("No release channels found.")
        return
    click.echo(f"{'Channel':<40}{'Current version':<20}Pending version")
    for c in items:
        click.echo(f"{channel_display_name(c.name):<40}{c.current_version:<20}{c.pending_version}")
