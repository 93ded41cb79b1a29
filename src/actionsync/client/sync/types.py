"""Shared types and exceptions for sync operations.

This module provides:
- SyncError and its subclasses: Exception classes for push/pull passes
- ProjectFile: A single project file
- Chunk: A planned, size-bounded group of files
- Type aliases for request factories and the seen set
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any


class SyncError(Exception):
    """Base exception for sync errors."""


class ProjectError(SyncError):
    """The local project is incomplete or inconsistent."""


class ClassificationError(SyncError):
    """A path claimed as a config file matches no known category."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{path} is unknown config file type")


class ChunkSizeError(SyncError):
    """A single file does not fit in the chunk budget."""

    def __init__(self, path: str, limit: int) -> None:
        self.path = path
        self.limit = limit
        super().__init__(f"{path} exceeds the limit of {limit} bytes")


class MalformedContentError(SyncError):
    """A config file is not parseable YAML."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(f"{path} has incorrect syntax: {reason}")


class StreamDecodeError(SyncError):
    """The response stream is not a well-formed JSON array of records."""


@dataclass(frozen=True)
class ProjectFile:
    """A project file identified by its forward-slash relative path."""

    path: str
    content: bytes


@dataclass
class Chunk:
    """Files packed into a single request.

    Attributes:
        payload_bytes: Sum of the estimated wire sizes of the files.
        files: Files in the order they are sent.
    """

    payload_bytes: int = 0
    files: list[ProjectFile] = field(default_factory=list)

    @property
    def paths(self) -> list[str]:
        """Paths of the files in this chunk."""
        return [f.path for f in self.files]


# Produces a fresh request skeleton (routing fields only) for every chunk
RequestFactory = Callable[[], dict[str, Any]]

# Paths confirmed by the server during one download pass
SeenSet = dict[str, bool]
