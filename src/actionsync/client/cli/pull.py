"""Pull command for actionsync CLI.

Commands:
- pull: Write the draft, or a version, of the project to disk
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
@click.option("--force", is_flag=True, help="Overwrite existing local files without asking.")
@click.option("--clean", is_flag=True, help="Remove local files that are not in the pulled project.")
@click.option("--version-id", default=None, help="Pull this version instead of the draft.")
@pass_cli_context
def pull(ctx: CLIContext, force: bool, clean: bool, version_id: str | None) -> None:
    """Pull the project from Actions Console into the local directory."""
    from actionsync.client.sdk import pull as pull_project

    project = open_project(ctx)
    with reported_errors(), api_client(ctx) as client:
        result = pull_project(client, project, force=force, clean=clean, version_id=version_id)
    click.echo(f"Pulled {len(result.seen)} files into {project.project_root}.")
    if result.extra and not clean:
        click.echo(f"{len(result.extra)} local files are not present remotely (see warnings).")
