"""Login command for actionsync CLI.

Commands:
- login: Store an API token in the config file
"""

from __future__ import annotations

import click

from actionsync.client.cli.config import get_config_file, load_config, save_config


@click.command()
@click.option(
    "--token", prompt=True, hide_input=True, help="OAuth2 access token for the Actions API."
)
@click.option(
    "--api-url", "login_api_url", default=None, help="Base URL of the Actions API to remember."
)
def login(token: str, login_api_url: str | None) -> None:
    """Store an API token for later commands."""
    token = token.strip()
    if not token:
        raise click.BadParameter("token must not be empty", param_hint="--token")
    config = load_config()
    config["token"] = token
    if login_api_url:
        config["api_url"] = login_api_url.rstrip("/")
    save_config(config)
    click.echo(f"Token saved to {get_config_file()}")
