"""Command-line interface for actionsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- push: Write the local project to the draft
- pull: Write the draft, or a version, to disk
- deploy preview: Deploy the local project to the simulator
- deploy release: Create a version for a release channel
- versions: List versions
- release-channels: List release channels
- login: Store an API token
- encrypt / decrypt: Account linking client secret
"""

from __future__ import annotations

import logging
from pathlib import Path

import click

from actionsync.client.cli.common import CLIContext, setup_logging
from actionsync.client.cli.deploy import deploy
from actionsync.client.cli.login import login
from actionsync.client.cli.pull import pull
from actionsync.client.cli.push import push
from actionsync.client.cli.secret import decrypt, encrypt
from actionsync.client.cli.versions import release_channels, versions


@click.group()
@click.version_option(package_name="actionsync")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs.")
@click.option("--quiet", "-q", is_flag=True, help="Only show warnings and errors.")
@click.option("--api-url", default=None, help="Base URL of the Actions API.")
@click.option("--project-id", default="", help="Project id, overriding settings/settings.yaml.")
@click.option(
    "--project-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: closest directory with manifest.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    api_url: str | None,
    project_id: str,
    project_root: Path | None,
) -> None:
    """actionsync - push and pull Actions projects."""
    if verbose:
        setup_logging(logging.DEBUG)
    elif quiet:
        setup_logging(logging.WARNING)
    else:
        setup_logging(logging.INFO)
    ctx.obj = CLIContext(api_url=api_url, project_id=project_id, project_root=project_root)


# Setup commands
cli.add_command(login)

# Sync commands
cli.add_command(push)
cli.add_command(pull)

# Deploy commands
cli.add_command(deploy)

# Listing commands
cli.add_command(versions)
cli.add_command(release_channels)

# Account linking commands
cli.add_command(encrypt)
cli.add_command(decrypt)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
]
