"""Tests for project file classification."""

from __future__ import annotations

import pytest

from actionsync.client.sync.classifier import (
    FileCategory,
    classify,
    config_files,
    is_config_file,
    is_localized_settings,
    key_in_config_response,
    wire_key,
)
from actionsync.client.sync.types import ClassificationError


class TestClassify:
    """Tests for classify."""

    @pytest.mark.parametrize(
        ("path", "category"),
        [
            ("manifest.yaml", FileCategory.MANIFEST),
            ("settings/settings.yaml", FileCategory.SETTINGS),
            ("settings/zh-TW/settings.yaml", FileCategory.SETTINGS),
            ("settings/accountLinkingSecret.yaml", FileCategory.ACCOUNT_LINKING_SECRET),
            ("actions/actions.yaml", FileCategory.ACTIONS),
            ("custom/intents/buy.yaml", FileCategory.INTENT),
            ("custom/intents/fr/buy.yaml", FileCategory.INTENT),
            ("custom/global/actions.intent.CANCEL.yaml", FileCategory.GLOBAL),
            ("custom/scenes/Main.yaml", FileCategory.SCENE),
            ("custom/types/color.yaml", FileCategory.TYPE),
            ("custom/prompts/welcome.yaml", FileCategory.PROMPT),
            ("verticals/CharacterAlarm.yaml", FileCategory.VERTICAL),
            ("resources/strings/bundle.yaml", FileCategory.RESOURCE_BUNDLE),
            ("resources/strings/en/bundle.yaml", FileCategory.RESOURCE_BUNDLE),
            ("webhooks/webhook1.yaml", FileCategory.WEBHOOK),
            ("webhooks/webhook1/index.js", FileCategory.WEBHOOK_CODE),
            ("webhooks/webhook1/package.json", FileCategory.WEBHOOK_CODE),
            ("resources/images/logo.png", FileCategory.DATA_FILE),
            ("resources/audio/audio1.xyz", FileCategory.DATA_FILE),
            ("README.md", FileCategory.UNRECOGNIZED),
            ("custom/intents/buy.json", FileCategory.UNRECOGNIZED),
        ],
    )
    def test_categories(self, path: str, category: FileCategory) -> None:
        """Each path should map to exactly one category."""
        assert classify(path) is category

    def test_global_handler_is_not_actions(self) -> None:
        """A global handler named after a system intent is not actions.yaml."""
        assert classify("custom/global/actions.intent.MAIN.yaml") is FileCategory.GLOBAL

    def test_config_flag(self) -> None:
        """Only config categories should be sent as config files."""
        assert is_config_file("manifest.yaml")
        assert is_config_file("webhooks/webhook1.yaml")
        assert not is_config_file("webhooks/webhook1/index.js")
        assert not is_config_file("resources/images/logo.png")
        assert not is_config_file("notes.txt")


class TestLocalizedSettings:
    """Tests for is_localized_settings."""

    def test_base_settings(self) -> None:
        """The settings folder itself is not a locale."""
        assert is_localized_settings("settings/settings.yaml") is False

    def test_localized_settings(self) -> None:
        """A settings file inside a locale folder is localized."""
        assert is_localized_settings("settings/zh-TW/settings.yaml") is True


class TestWireKeys:
    """Tests for request and response keys."""

    @pytest.mark.parametrize(
        ("path", "key"),
        [
            ("manifest.yaml", "manifest"),
            ("settings/en/settings.yaml", "settings"),
            ("custom/global/actions.intent.CANCEL.yaml", "globalIntentEvent"),
            ("custom/prompts/welcome.yaml", "staticPrompt"),
            ("verticals/CharacterAlarm.yaml", "verticalSettings"),
            ("resources/strings/bundle.yaml", "resourceBundle"),
            ("settings/accountLinkingSecret.yaml", "accountLinkingSecret"),
            ("webhooks/webhook1.yaml", "webhook"),
        ],
    )
    def test_request_and_response_keys_agree(self, path: str, key: str) -> None:
        """Content should be read back under the key it was sent with."""
        assert wire_key(path) == key
        assert key_in_config_response(path) == key

    def test_request_and_response_orders_diverge(self) -> None:
        """Name-based rules win on upload, folder-based rules on download."""
        assert wire_key("custom/intents/settings.yaml") == "settings"
        assert key_in_config_response("custom/intents/settings.yaml") == "intent"
        assert wire_key("webhooks/manifest.yaml") == "manifest"
        assert key_in_config_response("webhooks/manifest.yaml") == "webhook"

    def test_unknown_path_raises(self) -> None:
        """A path with no config category should be rejected."""
        with pytest.raises(ClassificationError, match="unknown config file type"):
            wire_key("notes.txt")
        with pytest.raises(ClassificationError):
            key_in_config_response("resources/images/logo.png")


class TestConfigFiles:
    """Tests for config_files."""

    def test_selects_config_files(self) -> None:
        """Should keep config files and drop data, code and unknown files."""
        files = {
            "manifest.yaml": b"a",
            "custom/scenes/Main.yaml": b"b",
            "webhooks/w/index.js": b"c",
            "resources/images/logo.png": b"d",
            "README.md": b"e",
        }
        assert config_files(files) == {
            "manifest.yaml": b"a",
            "custom/scenes/Main.yaml": b"b",
        }
