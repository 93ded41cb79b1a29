"""YAML helpers for project configuration files.

Config files are YAML on disk and JSON objects on the wire. This module
converts between the two representations.
"""

from __future__ import annotations

from typing import Any

import yaml


class _ConfigLoader(yaml.SafeLoader):
    """Safe loader that keeps timestamps as plain strings.

    Dates must survive a YAML -> JSON -> YAML round trip unchanged.
    """


_ConfigLoader.yaml_implicit_resolvers = {
    first: [
        (tag, regexp)
        for tag, regexp in resolvers
        if tag != "tag:yaml.org,2002:timestamp"
    ]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _stringify_keys(value: Any) -> Any:
    """Recursively convert mapping keys to strings so the value is JSON-encodable."""
    if isinstance(value, dict):
        return {str(k): _stringify_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_stringify_keys(v) for v in value]
    return value


def load_yaml_map(data: bytes | str) -> dict[str, Any]:
    """Parse a YAML document into a JSON-compatible mapping.

    Args:
        data: Raw YAML content.

    Returns:
        Mapping with string keys. An empty document yields an empty mapping.

    Raises:
        ValueError: If the content is not valid YAML or is not a mapping.
    """
    try:
        parsed = yaml.load(data, Loader=_ConfigLoader)  # noqa: S506 - safe loader subclass
    except yaml.YAMLError as e:
        raise ValueError(str(e)) from e
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError(f"expected a mapping at the top level, got {type(parsed).__name__}")
    return _stringify_keys(parsed)


def dump_yaml(mapping: dict[str, Any]) -> bytes:
    """Serialize a mapping into the on-disk YAML form of a config file."""
    text = yaml.safe_dump(
        mapping,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=True,
    )
    return text.encode("utf-8")
