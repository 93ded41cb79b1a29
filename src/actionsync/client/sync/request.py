"""Request construction and chunk planning.

This module provides:
- Request templates (write_draft, write_preview, create_version, read_draft,
  read_version, encrypt_secret, decrypt_secret)
- RequestStreamer: Plans the files of a project into size-bounded requests

Requirements on the request stream:
1. All config files are sent before any data file.
   1a. Manifest and settings files (base and localized) come first, so the
       server can identify the project before the bulk of the configuration.
   1b. The files of each request fit within the chunk budget.
2. Data files follow in one or several requests, each within the budget.
Remaining files are ordered by ascending size so each request packs as
many files as possible.
"""

from __future__ import annotations

import base64
import logging
import posixpath
from collections.abc import Iterator, Mapping
from typing import Any

from actionsync.client.sync.classifier import is_manifest, is_settings, wire_key
from actionsync.client.sync.content_types import content_type
from actionsync.client.sync.types import (
    Chunk,
    ChunkSizeError,
    MalformedContentError,
    ProjectFile,
    RequestFactory,
)
from actionsync.core.yamlutils import load_yaml_map

logger = logging.getLogger(__name__)


# === Request templates ===


def write_draft(project_id: str) -> dict[str, Any]:
    return {"parent": f"projects/{project_id}"}


def write_preview(project_id: str, sandbox: bool) -> dict[str, Any]:
    return {
        "parent": f"projects/{project_id}",
        "previewSettings": {"sandbox": sandbox},
    }


def create_version(project_id: str, channel: str) -> dict[str, Any]:
    return {
        "parent": f"projects/{project_id}",
        "release_channel": channel,
    }


def read_draft(project_id: str, key_version: str = "") -> dict[str, Any]:
    """Build a ReadDraft request.

    Args:
        project_id: Project to read.
        key_version: Encryption key version of the account linking secret, if any.
    """
    req: dict[str, Any] = {"name": f"projects/{project_id}/draft"}
    if key_version:
        req["clientSecretEncryptionKeyVersion"] = key_version
    return req


def read_version(project_id: str, version_id: str, key_version: str = "") -> dict[str, Any]:
    req: dict[str, Any] = {"name": f"projects/{project_id}/versions/{version_id}"}
    if key_version:
        req["clientSecretEncryptionKeyVersion"] = key_version
    return req


def encrypt_secret(secret: str) -> dict[str, Any]:
    return {"clientSecret": secret}


def decrypt_secret(encrypted: str) -> dict[str, Any]:
    return {"encryptedClientSecret": encrypted}


# === Chunk planning ===


def estimated_size(content: bytes, is_data_file: bool) -> int:
    """Estimate the bytes a file occupies in a JSON request.

    Data files are embedded as base64 strings, which inflates them.
    """
    if is_data_file:
        return len(base64.b64encode(content))
    return len(content)


def order_config_files(names: list[str], sizes: Mapping[str, int]) -> list[str]:
    """Order config files: manifest and settings first, the rest by ascending size."""
    first = [n for n in names if is_manifest(n) or is_settings(n)]
    rest = [n for n in names if not (is_manifest(n) or is_settings(n))]
    return first + sorted(rest, key=lambda n: sizes[n])


class RequestStreamer:
    """Produces the sequence of requests needed to send a project.

    Config files and data files are kept in two independently ordered
    lists, each with its own cursor. Every call to next() starts from a
    fresh request built by make_request, then packs the files that follow
    the active cursor until the chunk budget is reached.

    The streamer is also an iterator over the requests.
    """

    def __init__(
        self,
        config_files: Mapping[str, bytes],
        data_files: Mapping[str, bytes],
        make_request: RequestFactory,
        root: str = "",
        chunk_size: int = 0,
    ) -> None:
        """Initialize the streamer.

        Args:
            config_files: Config files by relative path.
            data_files: Data files by relative path.
            make_request: Factory for the routing fields of each request.
            root: Project root, used in log messages.
            chunk_size: Byte budget for the files of a single request.
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        self._files: dict[str, bytes] = {}
        self._sizes: dict[str, int] = {}
        for name, content in config_files.items():
            self._files[name] = content
            self._sizes[name] = estimated_size(content, is_data_file=False)
        for name, content in data_files.items():
            self._files[name] = content
            self._sizes[name] = estimated_size(content, is_data_file=True)

        self._config_names = order_config_files(list(config_files), self._sizes)
        self._data_names = sorted(data_files, key=lambda n: self._sizes[n])
        self._data_set = frozenset(self._data_names)
        self._make_request = make_request
        self._root = root
        self._chunk_size = chunk_size
        self._i = 0  # cursor in config names
        self._j = 0  # cursor in data names

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    @property
    def config_names(self) -> list[str]:
        """Config file names in send order."""
        return list(self._config_names)

    @property
    def data_names(self) -> list[str]:
        """Data file names in send order."""
        return list(self._data_names)

    def size_of(self, name: str) -> int:
        """Estimated wire size of a file."""
        return self._sizes[name]

    def has_next(self) -> bool:
        """Check whether another request remains in the stream."""
        return self._i < len(self._config_names) or self._j < len(self._data_names)

    def _weight(self, name: str) -> int:
        # Unsupported data files are dropped from the request, so they take no room
        if name in self._data_set and content_type(name) is None:
            return 0
        return self._sizes[name]

    def _next_chunk(self, names: list[str], start: int) -> Chunk:
        """Greedily pack the files following start within the budget.

        Raises:
            ChunkSizeError: If the first file alone exceeds the budget.
        """
        chunk = Chunk()
        for name in names[start:]:
            size = self._weight(name)
            if chunk.payload_bytes + size > self._chunk_size:
                break
            chunk.payload_bytes += size
            chunk.files.append(ProjectFile(name, self._files[name]))
        if not chunk.files:
            raise ChunkSizeError(names[start], self._chunk_size)
        return chunk

    def _display(self, name: str) -> str:
        return posixpath.join(self._root, name) if self._root else name

    def _add_config_files(self, req: dict[str, Any], chunk: Chunk) -> None:
        entries: list[dict[str, Any]] = []
        for f in chunk.files:
            logger.debug(f"Adding {self._display(f.path)} to configFiles request")
            key = wire_key(f.path)
            try:
                content = load_yaml_map(f.content)
            except ValueError as e:
                raise MalformedContentError(self._display(f.path), str(e)) from e
            entries.append({"filePath": f.path, key: content})
        req["files"] = {"configFiles": {"configFiles": entries}}

    def _add_data_files(self, req: dict[str, Any], chunk: Chunk) -> None:
        entries: list[dict[str, Any]] = []
        for f in chunk.files:
            logger.debug(f"Adding {self._display(f.path)} to dataFiles request")
            ctype = content_type(f.path)
            if ctype is None:
                logger.warning(
                    f"Can't recognize an extension for {self._display(f.path)}. "
                    "The supported extensions are audio/mpeg, image/jpeg, image/png, "
                    "audio/wav, audio/x-wav, .flr and .zip"
                )
                continue
            entries.append({
                "filePath": f.path,
                "contentType": ctype,
                "payload": base64.b64encode(f.content).decode("ascii"),
            })
        if entries:
            req["files"] = {"dataFiles": {"dataFiles": entries}}

    def next(self) -> dict[str, Any]:
        """Build the next request of the stream.

        Returns:
            A fresh request holding either a config-file or a data-file batch.

        Raises:
            StopIteration: If the stream is exhausted.
            ChunkSizeError: If the next file alone exceeds the budget.
            ClassificationError: If a config file has no known category.
            MalformedContentError: If a config file is not valid YAML.
        """
        if not self.has_next():
            raise StopIteration
        req = self._make_request()
        if self._i < len(self._config_names):
            if self._i == 0:
                logger.info("Sending configuration files...")
            chunk = self._next_chunk(self._config_names, self._i)
            self._add_config_files(req, chunk)
            self._i += len(chunk.files)
        else:
            if self._j == 0:
                logger.info("Sending resources...")
            chunk = self._next_chunk(self._data_names, self._j)
            self._add_data_files(req, chunk)
            self._j += len(chunk.files)
        return req

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return self

    def __next__(self) -> dict[str, Any]:
        return self.next()

    def plan(self) -> list[Chunk]:
        """Plan every remaining chunk without building requests or moving the cursors.

        Raises:
            ChunkSizeError: If any file alone exceeds the budget.
        """
        chunks: list[Chunk] = []
        for names, start in ((self._config_names, self._i), (self._data_names, self._j)):
            while start < len(names):
                chunk = self._next_chunk(names, start)
                chunks.append(chunk)
                start += len(chunk.files)
        return chunks
