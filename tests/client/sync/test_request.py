"""Tests for request templates and chunk planning."""

from __future__ import annotations

import base64
import logging
from typing import Any

import pytest

from actionsync.client.sync.request import (
    RequestStreamer,
    create_version,
    decrypt_secret,
    encrypt_secret,
    estimated_size,
    order_config_files,
    read_draft,
    read_version,
    write_draft,
    write_preview,
)
from actionsync.client.sync.types import ChunkSizeError, MalformedContentError

MANIFEST = b'version: "1.0"\n'
SETTINGS = b"projectId: my-proj\ndefaultLocale: en\n"


def make_streamer(
    configs: dict[str, bytes] | None = None,
    data: dict[str, bytes] | None = None,
    chunk_size: int = 1024,
) -> RequestStreamer:
    """Create a streamer with a trivial request factory."""
    return RequestStreamer(
        configs or {},
        data or {},
        lambda: write_draft("my-proj"),
        chunk_size=chunk_size,
    )


def config_paths(req: dict[str, Any]) -> list[str]:
    return [f["filePath"] for f in req["files"]["configFiles"]["configFiles"]]


def data_paths(req: dict[str, Any]) -> list[str]:
    return [f["filePath"] for f in req["files"]["dataFiles"]["dataFiles"]]


class TestTemplates:
    """Tests for request templates."""

    def test_write_draft(self) -> None:
        """Should name the parent project."""
        assert write_draft("p") == {"parent": "projects/p"}

    def test_write_preview(self) -> None:
        """Should carry the sandbox setting."""
        assert write_preview("p", False) == {
            "parent": "projects/p",
            "previewSettings": {"sandbox": False},
        }

    def test_create_version(self) -> None:
        """Should carry the release channel."""
        assert create_version("p", "actions.channels.Production") == {
            "parent": "projects/p",
            "release_channel": "actions.channels.Production",
        }

    def test_read_draft(self) -> None:
        """Key version should only be sent when known."""
        assert read_draft("p") == {"name": "projects/p/draft"}
        assert read_draft("p", "v1") == {
            "name": "projects/p/draft",
            "clientSecretEncryptionKeyVersion": "v1",
        }

    def test_read_version(self) -> None:
        """Should name the version."""
        assert read_version("p", "7") == {"name": "projects/p/versions/7"}

    def test_secret_templates(self) -> None:
        """Secret requests carry the plain or encrypted secret."""
        assert encrypt_secret("s") == {"clientSecret": "s"}
        assert decrypt_secret("e") == {"encryptedClientSecret": "e"}


class TestSizes:
    """Tests for size estimation and ordering."""

    def test_config_size_is_raw(self) -> None:
        """Config files are counted by raw size."""
        assert estimated_size(b"abcd", is_data_file=False) == 4

    def test_data_size_is_base64(self) -> None:
        """Data files are counted by their base64 size."""
        assert estimated_size(b"abcd", is_data_file=True) == 8

    def test_order_config_files(self) -> None:
        """Manifest and settings come first, the rest by ascending size."""
        sizes = {
            "custom/scenes/Big.yaml": 50,
            "manifest.yaml": 30,
            "custom/intents/small.yaml": 5,
            "settings/settings.yaml": 40,
            "settings/fr/settings.yaml": 1,
        }
        assert order_config_files(list(sizes), sizes) == [
            "manifest.yaml",
            "settings/settings.yaml",
            "settings/fr/settings.yaml",
            "custom/intents/small.yaml",
            "custom/scenes/Big.yaml",
        ]


class TestRequestStreamer:
    """Tests for RequestStreamer."""

    def test_rejects_non_positive_budget(self) -> None:
        """A budget of zero cannot hold any file."""
        with pytest.raises(ValueError):
            make_streamer({"manifest.yaml": MANIFEST}, chunk_size=0)

    def test_budget_and_sizes(self) -> None:
        """Sizes are raw for config files and base64 for data files."""
        streamer = make_streamer(
            {"manifest.yaml": MANIFEST},
            {"resources/a.png": b"a" * 45},
            chunk_size=100,
        )
        assert streamer.chunk_size == 100
        assert streamer.size_of("manifest.yaml") == len(MANIFEST)
        assert streamer.size_of("resources/a.png") == 60

    def test_empty_project(self) -> None:
        """A streamer without files has nothing to send."""
        streamer = make_streamer()
        assert streamer.has_next() is False
        with pytest.raises(StopIteration):
            streamer.next()

    def test_manifest_and_settings_first(self) -> None:
        """Manifest and settings should lead the first request."""
        streamer = make_streamer({
            "custom/intents/a.yaml": b"a: 1\n",
            "settings/settings.yaml": SETTINGS,
            "manifest.yaml": MANIFEST,
        })
        first = streamer.next()
        assert config_paths(first)[:2] == ["settings/settings.yaml", "manifest.yaml"]

    def test_config_entry_shape(self) -> None:
        """Config content should be sent as a mapping under its category key."""
        streamer = make_streamer({"manifest.yaml": MANIFEST})
        req = streamer.next()
        assert req == {
            "parent": "projects/my-proj",
            "files": {
                "configFiles": {
                    "configFiles": [{"filePath": "manifest.yaml", "manifest": {"version": "1.0"}}]
                }
            },
        }

    def test_data_entry_shape(self) -> None:
        """Data content should be sent base64 encoded with its content type."""
        streamer = make_streamer(data={"resources/images/logo.png": b"\x89PNG"})
        req = streamer.next()
        assert req["files"]["dataFiles"]["dataFiles"] == [{
            "filePath": "resources/images/logo.png",
            "contentType": "image/png",
            "payload": base64.b64encode(b"\x89PNG").decode(),
        }]

    def test_config_before_data(self) -> None:
        """No data file should be sent before every config file has been."""
        streamer = make_streamer(
            {"manifest.yaml": MANIFEST, "settings/settings.yaml": SETTINGS},
            {"resources/images/a.png": b"x" * 10},
            chunk_size=40,
        )
        kinds = ["configFiles" if "configFiles" in req["files"] else "dataFiles" for req in streamer]
        assert kinds == ["configFiles", "configFiles", "dataFiles"]

    def test_two_files_over_budget_need_two_requests(self) -> None:
        """Two data files that do not fit together are split."""
        # 45 raw bytes -> 60 base64 bytes each
        streamer = make_streamer(
            data={"resources/a.png": b"a" * 45, "resources/b.png": b"b" * 45},
            chunk_size=100,
        )
        requests = list(streamer)
        assert len(requests) == 2
        assert [data_paths(r) for r in requests] == [["resources/a.png"], ["resources/b.png"]]

    def test_budget_of_first_two_files(self) -> None:
        """A budget equal to the first two sizes packs exactly those two first."""
        data = {f"resources/{name}.png": name.encode() * 45 for name in ("a", "b", "c")}
        streamer = make_streamer(data=data, chunk_size=120)
        chunks = streamer.plan()
        assert [c.paths for c in chunks] == [
            ["resources/a.png", "resources/b.png"],
            ["resources/c.png"],
        ]
        assert chunks[0].payload_bytes == 120

    def test_every_chunk_within_budget(self) -> None:
        """Planned chunks should cover all files without exceeding the budget."""
        configs = {"manifest.yaml": MANIFEST, "settings/settings.yaml": SETTINGS}
        configs.update({f"custom/intents/i{n}.yaml": b"k: " + b"v" * n + b"\n" for n in range(1, 30)})
        data = {f"resources/images/{n}.png": b"p" * (n * 3) for n in range(1, 16)}
        streamer = make_streamer(configs, data, chunk_size=64)

        chunks = streamer.plan()

        assert all(0 < c.payload_bytes <= 64 for c in chunks)
        sent = [p for c in chunks for p in c.paths]
        assert sorted(sent) == sorted([*configs, *data])
        assert len(sent) == len(set(sent))

    def test_plan_matches_requests(self) -> None:
        """plan() should predict the requests without consuming them."""
        streamer = make_streamer(
            {"manifest.yaml": MANIFEST, "settings/settings.yaml": SETTINGS},
            {"resources/a.png": b"a" * 45, "resources/b.png": b"b" * 45},
            chunk_size=100,
        )
        planned = streamer.plan()
        requests = list(streamer)
        assert len(planned) == len(requests)

    def test_ascending_size_order(self) -> None:
        """Data files should be packed smallest first."""
        streamer = make_streamer(
            data={"resources/big.png": b"b" * 30, "resources/small.png": b"s" * 3},
        )
        assert streamer.data_names == ["resources/small.png", "resources/big.png"]

    def test_oversized_file_raises_without_partial_request(self) -> None:
        """A file larger than the budget fails the stream at that file."""
        streamer = make_streamer(
            {"manifest.yaml": MANIFEST, "custom/scenes/Huge.yaml": b"k: " + b"v" * 200},
            chunk_size=100,
        )
        assert config_paths(streamer.next()) == ["manifest.yaml"]
        with pytest.raises(ChunkSizeError) as exc_info:
            streamer.next()
        assert exc_info.value.path == "custom/scenes/Huge.yaml"
        assert streamer.has_next()

    def test_fresh_request_per_chunk(self) -> None:
        """The factory should be called once per request, never reused."""
        calls: list[dict[str, Any]] = []

        def factory() -> dict[str, Any]:
            req = {"parent": "projects/p"}
            calls.append(req)
            return req

        streamer = RequestStreamer(
            {},
            {"resources/a.png": b"a" * 45, "resources/b.png": b"b" * 45},
            factory,
            chunk_size=100,
        )
        requests = list(streamer)
        assert len(calls) == 2
        assert requests[0] is not requests[1]
        assert data_paths(requests[0]) == ["resources/a.png"]

    def test_unsupported_data_files_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        """Files with an unsupported extension are dropped and use no budget."""
        streamer = make_streamer(
            data={"resources/audio1.xyz": b"x" * 300, "resources/logo.png": b"p" * 3},
            chunk_size=100,
        )
        with caplog.at_level(logging.WARNING):
            requests = list(streamer)
        assert len(requests) == 1
        assert data_paths(requests[0]) == ["resources/logo.png"]
        assert "Can't recognize an extension" in caplog.text

    def test_malformed_config(self) -> None:
        """Invalid YAML should fail with the file path."""
        streamer = make_streamer({"manifest.yaml": b"version: [1\n"})
        with pytest.raises(MalformedContentError, match="manifest.yaml"):
            streamer.next()
