"""Account linking secret commands for actionsync CLI.

Commands:
- encrypt: Encrypt the client secret into settings/accountLinkingSecret.yaml
- decrypt: Decrypt the client secret into a plain text file
"""

from __future__ import annotations

from pathlib import Path

import click

from actionsync.client.cli.common import (
    CLIContext,
    api_client,
    open_project,
    pass_cli_context,
    reported_errors,
)


def resolve_output(path: Path, root: Path) -> Path:
    """Expand ~ and anchor relative paths at the project root."""
    path = path.expanduser()
    if path.is_absolute():
        return path
    return root / path


@click.command()
@pass_cli_context
def encrypt(ctx: CLIContext) -> None:
    """Encrypt the client secret used in account linking."""
    from actionsync.client.sdk import encrypt_secret

    project = open_project(ctx)
    with reported_errors(), api_client(ctx) as client:
        secret = click.prompt("Write your secret", hide_input=True)
        target = encrypt_secret(client, project, secret)
    if target is not None:
        click.echo(f"Encrypted secret is in {target}")


@click.command()
@click.argument("plain_text_file", type=click.Path(dir_okay=False, path_type=Path))
@pass_cli_context
def decrypt(ctx: CLIContext, plain_text_file: Path) -> None:
    """Decrypt the client secret used in account linking into PLAIN_TEXT_FILE.

    Relative paths are taken from the project root.
    """
    from actionsync.client.sdk import decrypt_secret

    project = open_project(ctx)
    out = resolve_output(plain_text_file, project.project_root)
    with reported_errors(), api_client(ctx) as client:
        written = decrypt_secret(client, project, out)
    if written:
        click.echo(f"Decrypted client secret key is in {out}.")
