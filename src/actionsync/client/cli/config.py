"""Configuration utilities for actionsync CLI.

This module provides shared configuration functions used across CLI commands.

The config file holds the API URL and the OAuth2 token obtained outside
of actionsync. Environment variables override it.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from actionsync.core.config import DEFAULT_API_URL, DEFAULT_CONSOLE_URL, ApiConfig

TOKEN_ENV = "ACTIONSYNC_TOKEN"
API_URL_ENV = "ACTIONSYNC_API_URL"
CONSUMER_ENV = "ACTIONSYNC_CONSUMER"


def get_config_dir() -> Path:
    """Get the configuration directory for actionsync.

    Returns:
        Path to ~/.actionsync or equivalent.
    """
    return Path.home() / ".actionsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def build_api_config(api_url: str | None = None) -> ApiConfig | None:
    """Build the API configuration from flags, environment and config file.

    Precedence: explicit api_url, then environment, then config file.

    Returns:
        ApiConfig, or None if no token is configured.
    """
    config = load_config()
    token = os.environ.get(TOKEN_ENV) or config.get("token", "")
    if not token:
        return None
    return ApiConfig(
        api_url=api_url or os.environ.get(API_URL_ENV) or config.get("api_url") or DEFAULT_API_URL,
        token=token,
        console_url=config.get("console_url") or DEFAULT_CONSOLE_URL,
        consumer=os.environ.get(CONSUMER_ENV) or config.get("consumer", ""),
    )
