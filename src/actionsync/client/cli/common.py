"""Helpers shared by actionsync CLI commands."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import NoReturn

import click
import httpx

from actionsync.client.api import ActionsClient, APIError
from actionsync.client.cli.config import TOKEN_ENV, build_api_config, get_config_file
from actionsync.client.project import Studio, find_project_root
from actionsync.client.sync.types import SyncError


@dataclass
class CLIContext:
    """Options of the top-level command group."""

    api_url: str | None = None
    project_id: str = ""
    project_root: Path | None = None


def setup_logging(level: int) -> None:
    """Send actionsync logs to stderr at the given level."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    actionsync_logger = logging.getLogger("actionsync")
    for existing in actionsync_logger.handlers[:]:
        actionsync_logger.removeHandler(existing)
    actionsync_logger.addHandler(handler)
    actionsync_logger.setLevel(level)
    actionsync_logger.propagate = False


def fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def open_project(ctx: CLIContext) -> Studio:
    """Open the project at the configured root, or the one containing the cwd."""
    try:
        root = ctx.project_root or find_project_root()
    except SyncError as e:
        fail(str(e))
    return Studio(root, project_id=ctx.project_id)


@contextmanager
def api_client(ctx: CLIContext) -> Iterator[ActionsClient]:
    """Open an API client, exiting if no token is configured."""
    config = build_api_config(ctx.api_url)
    if config is None:
        fail(
            f"No API token configured. Run 'actionsync login', set {TOKEN_ENV} "
            f"or add a token to {get_config_file()}."
        )
    with ActionsClient(config) as client:
        yield client


@contextmanager
def reported_errors() -> Iterator[None]:
    """Turn sync, API and transport errors into a CLI error exit."""
    try:
        yield
    except (SyncError, APIError) as e:
        fail(str(e))
    except httpx.HTTPError as e:
        fail(f"Request failed: {e}")


pass_cli_context = click.make_pass_decorator(CLIContext)
