"""Tests for core configuration classes."""

from __future__ import annotations

import pytest

from actionsync.core.config import MAX_CHUNK_SIZE_BYTES, PADDING, ApiConfig


class TestApiConfig:
    """Tests for ApiConfig class."""

    def test_init_basic(self) -> None:
        """Should initialize with required fields and defaults."""
        config = ApiConfig(api_url="https://example.com", token="test-token")
        assert config.api_url == "https://example.com"
        assert config.token == "test-token"
        assert config.timeout == 180.0
        assert config.response_read_timeout == 5.0
        assert config.consumer == ""

    def test_default_chunk_size_leaves_padding(self) -> None:
        """Default budget should be the server limit minus the envelope padding."""
        config = ApiConfig(api_url="https://example.com", token="t")
        assert config.chunk_size == MAX_CHUNK_SIZE_BYTES - PADDING
        assert config.chunk_size == 10 * 1024 * 1024 - 512 * 1024

    def test_url_trailing_slash_removed(self) -> None:
        """Should strip trailing slash from the URLs."""
        config = ApiConfig(
            api_url="https://example.com/",
            token="t",
            console_url="https://console.example.com/",
        )
        assert config.api_url == "https://example.com"
        assert config.console_url == "https://console.example.com"

    @pytest.mark.parametrize("size", [0, -1])
    def test_rejects_non_positive_chunk_size(self, size: int) -> None:
        """Should refuse a budget that cannot hold any file."""
        with pytest.raises(ValueError):
            ApiConfig(api_url="https://example.com", token="t", chunk_size=size)

    def test_endpoint(self) -> None:
        """Should join the API root and an endpoint path."""
        config = ApiConfig(api_url="https://example.com/", token="t")
        assert config.endpoint("v2/projects/p/draft:write") == (
            "https://example.com/v2/projects/p/draft:write"
        )
        assert config.endpoint("/v2/x") == "https://example.com/v2/x"

    def test_project_url(self) -> None:
        """Should point at the project overview in the console."""
        config = ApiConfig(
            api_url="https://example.com", token="t", console_url="https://console.test"
        )
        assert config.project_url("my-proj") == "https://console.test/project/my-proj/overview"
