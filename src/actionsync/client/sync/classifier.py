"""File classification for Actions projects.

This module provides:
- FileCategory: Semantic category of a project file, with its wire key
- classify: Map a relative path to its category
- Path predicates (is_manifest, is_settings, ...) used across the sync package
- config_files: Select the config files of a project
- wire_key / key_in_config_response: Category keys for requests and responses

Paths are forward-slash separated and relative to the project root.
"""

from __future__ import annotations

import posixpath
from collections.abc import Callable, Mapping
from enum import Enum

from actionsync.client.sync.types import ClassificationError

ACCOUNT_LINKING_SECRET_PATH = "settings/accountLinkingSecret.yaml"
BASE_SETTINGS_PATH = "settings/settings.yaml"
MANIFEST_PATH = "manifest.yaml"


class FileCategory(Enum):
    """Semantic category of a project file.

    The value of a config category is the key its content is sent under.
    """

    MANIFEST = "manifest"
    SETTINGS = "settings"
    ACTIONS = "actions"
    INTENT = "intent"
    GLOBAL = "globalIntentEvent"
    SCENE = "scene"
    TYPE = "type"
    PROMPT = "staticPrompt"
    VERTICAL = "verticalSettings"
    RESOURCE_BUNDLE = "resourceBundle"
    ACCOUNT_LINKING_SECRET = "accountLinkingSecret"
    WEBHOOK = "webhook"
    DATA_FILE = "dataFile"
    WEBHOOK_CODE = "webhookCode"
    UNRECOGNIZED = "unrecognized"

    @property
    def is_config(self) -> bool:
        """True for categories sent as config files."""
        return self not in (
            FileCategory.DATA_FILE,
            FileCategory.WEBHOOK_CODE,
            FileCategory.UNRECOGNIZED,
        )


def _ext(path: str) -> str:
    return posixpath.splitext(path)[1]


def _yaml_under(path: str, prefix: str) -> bool:
    return path.startswith(prefix) and _ext(path) == ".yaml"


def is_manifest(path: str) -> bool:
    """True if the file contains the manifest of the project."""
    return posixpath.basename(path) == "manifest.yaml"


def is_settings(path: str) -> bool:
    """True if the file contains base or localized settings."""
    return posixpath.basename(path) == "settings.yaml"


def is_localized_settings(path: str) -> bool:
    """True if path is a localized settings file.

    "settings/zh-TW/settings.yaml" is localized, "settings/settings.yaml"
    is not: the parent directory of a localized file is a locale.
    """
    parts = path.split("/")
    if len(parts) < 2:
        return False
    return parts[-2] != "settings"


def is_actions(path: str) -> bool:
    """True if the file contains the Action declarations of the project."""
    return posixpath.basename(path) == "actions.yaml"


def is_intent(path: str) -> bool:
    return _yaml_under(path, "custom/intents/")


def is_global(path: str) -> bool:
    """True if the file declares a global intent event handler."""
    return _yaml_under(path, "custom/global/")


def is_scene(path: str) -> bool:
    return _yaml_under(path, "custom/scenes/")


def is_type(path: str) -> bool:
    return _yaml_under(path, "custom/types/")


def is_prompt(path: str) -> bool:
    return _yaml_under(path, "custom/prompts/")


def is_vertical(path: str) -> bool:
    return _yaml_under(path, "verticals/")


def is_resource_bundle(path: str) -> bool:
    """True for base or localized string resource bundles."""
    return _yaml_under(path, "resources/strings/")


def is_account_linking_secret(path: str) -> bool:
    return path == ACCOUNT_LINKING_SECRET_PATH


def is_webhook(path: str) -> bool:
    """True for any webhook file, definitions and function code alike."""
    return path.startswith("webhooks/")


def is_webhook_definition(path: str) -> bool:
    """True if the file contains a YAML definition of a webhook."""
    return is_webhook(path) and _ext(path) == ".yaml"


def is_resource_data(path: str) -> bool:
    """True for binary resources (images, audio, animations)."""
    return path.startswith("resources/") and not is_resource_bundle(path)


_Rule = tuple[Callable[[str], bool], FileCategory]

# Most specific rules first
_UPLOAD_RULES: tuple[_Rule, ...] = (
    (is_account_linking_secret, FileCategory.ACCOUNT_LINKING_SECRET),
    (is_manifest, FileCategory.MANIFEST),
    (is_settings, FileCategory.SETTINGS),
    (is_actions, FileCategory.ACTIONS),
    (is_webhook_definition, FileCategory.WEBHOOK),
    (is_intent, FileCategory.INTENT),
    (is_global, FileCategory.GLOBAL),
    (is_type, FileCategory.TYPE),
    (is_prompt, FileCategory.PROMPT),
    (is_scene, FileCategory.SCENE),
    (is_vertical, FileCategory.VERTICAL),
    (is_resource_bundle, FileCategory.RESOURCE_BUNDLE),
)

# The server names a config file by its path; resolve which key holds its content
_RESPONSE_RULES: tuple[_Rule, ...] = (
    (is_webhook_definition, FileCategory.WEBHOOK),
    (is_vertical, FileCategory.VERTICAL),
    (is_manifest, FileCategory.MANIFEST),
    (is_actions, FileCategory.ACTIONS),
    (is_intent, FileCategory.INTENT),
    (is_global, FileCategory.GLOBAL),
    (is_scene, FileCategory.SCENE),
    (is_type, FileCategory.TYPE),
    (is_prompt, FileCategory.PROMPT),
    (is_resource_bundle, FileCategory.RESOURCE_BUNDLE),
    (is_settings, FileCategory.SETTINGS),
    (is_account_linking_secret, FileCategory.ACCOUNT_LINKING_SECRET),
)


def _match(path: str, rules: tuple[_Rule, ...]) -> FileCategory | None:
    for predicate, category in rules:
        if predicate(path):
            return category
    return None


def classify(path: str) -> FileCategory:
    """Classify a project file by its relative path.

    Args:
        path: Forward-slash path relative to the project root.

    Returns:
        The category of the file. Never raises: paths matching no rule
        are FileCategory.UNRECOGNIZED.
    """
    category = _match(path, _UPLOAD_RULES)
    if category is not None:
        return category
    if is_webhook(path):
        return FileCategory.WEBHOOK_CODE
    if is_resource_data(path):
        return FileCategory.DATA_FILE
    return FileCategory.UNRECOGNIZED


def is_config_file(path: str) -> bool:
    return classify(path).is_config


def wire_key(path: str) -> str:
    """Get the request key a config file's content is sent under.

    Raises:
        ClassificationError: If path is not a config file.
    """
    category = _match(path, _UPLOAD_RULES)
    if category is None:
        raise ClassificationError(path)
    return category.value


def key_in_config_response(path: str) -> str:
    """Get the response key holding a config file's content.

    Raises:
        ClassificationError: If path is not a config file.
    """
    category = _match(path, _RESPONSE_RULES)
    if category is None:
        raise ClassificationError(path)
    return category.value


def config_files(files: Mapping[str, bytes]) -> dict[str, bytes]:
    """Select the config files from the files of a project."""
    return {path: content for path, content in files.items() if is_config_file(path)}
