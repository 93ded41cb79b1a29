"""Deploy commands for actionsync CLI.

Commands:
- deploy preview: Deploy the local project to the simulator
- deploy release: Create a version and submit it to a release channel
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


@click.group()
def deploy() -> None:
    """Deploy the local project."""


@deploy.command()
@click.option(
    "--sandbox/--no-sandbox",
    default=True,
    help="Use sandbox for transactions in the preview.",
)
@pass_cli_context
def preview(ctx: CLIContext, sandbox: bool) -> None:
    """Deploy the local project for testing in the simulator."""
    from actionsync.client.sdk import deploy_preview

    project = open_project(ctx)
    with reported_errors(), api_client(ctx) as client:
        result = deploy_preview(client, project, sandbox=sandbox)
    click.echo(f"You can now test your changes in Simulator with this URL: {result.simulator_url}")


@deploy.command()
@click.option("--channel", required=True, help="Release channel (e.g. actions.channels.Production).")
@pass_cli_context
def release(ctx: CLIContext, channel: str) -> None:
    """Create a version and deploy it to a release channel."""
    from actionsync.client.sdk import channel_display_name, create_version

    project = open_project(ctx)
    with reported_errors(), api_client(ctx) as client:
        version_id = create_version(client, project, channel)
    click.echo(
        f"Version {version_id} has been successfully created and submitted for "
        f"deployment to {channel_display_name(channel)} channel."
    )
