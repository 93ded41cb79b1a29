"""Core module - Shared configuration and YAML helpers."""

from actionsync.core.config import (
    DEFAULT_API_URL,
    DEFAULT_CONSOLE_URL,
    MAX_CHUNK_SIZE_BYTES,
    PADDING,
    ApiConfig,
)
from actionsync.core.yamlutils import dump_yaml, load_yaml_map

__all__ = [
    # Config
    "ApiConfig",
    "DEFAULT_API_URL",
    "DEFAULT_CONSOLE_URL",
    "MAX_CHUNK_SIZE_BYTES",
    "PADDING",
    # YAML
    "dump_yaml",
    "load_yaml_map",
]
