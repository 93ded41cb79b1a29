"""Push command for actionsync CLI.

Commands:
- push: Write the local project to the draft
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
def push(ctx: CLIContext) -> None:
    """Push the local project to the draft in Actions Console."""
    from actionsync.client.sdk import push as push_draft

    project = open_project(ctx)
    with reported_errors(), api_client(ctx) as client:
        push_draft(client, project)
        url = client.config.project_url(project.project_id)
    click.echo(
        "Files were pushed to Actions Console, and you can now view your project "
        f"with this URL: {url}. If you want to test your changes, run "
        '"actionsync deploy preview", or navigate to the Test section in the Console.'
    )
