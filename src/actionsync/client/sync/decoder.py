"""Decoding of the download stream.

This module provides:
- iter_records: Incrementally decodes a top-level JSON array of records
- receive_stream: Writes the files carried by each record to disk

The server answers a read request with a JSON array whose elements are
records of the form:

    {"files": {"configFiles": {"configFiles": [{"filePath": ..., "<key>": {...}}]},
               "dataFiles": {"dataFiles": [{"filePath": ..., "contentType": ...,
                                            "payload": "<base64>"}]}}}

Records are applied strictly in stream order, so a later record may
overwrite a file written by an earlier one.
"""

from __future__ import annotations

import base64
import binascii
import codecs
import json
import logging
import posixpath
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING, Any

from actionsync.client.sync.bundle import names_from_zip
from actionsync.client.sync.classifier import key_in_config_response
from actionsync.client.sync.content_types import is_cloud_function_bundle
from actionsync.client.sync.types import SeenSet, StreamDecodeError
from actionsync.core.yamlutils import dump_yaml

if TYPE_CHECKING:
    from actionsync.client.project import Studio

logger = logging.getLogger(__name__)

_WHITESPACE = " \t\n\r"


class _ArrayReader:
    """Pulls JSON values out of a byte stream one at a time."""

    def __init__(self, chunks: Iterable[bytes]) -> None:
        self._chunks = iter(chunks)
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._decoder = json.JSONDecoder()
        self._buf = ""
        self._pos = 0
        self._eof = False

    def _fill(self) -> bool:
        """Append the next chunk to the buffer. Returns False at end of stream."""
        if self._eof:
            return False
        for chunk in self._chunks:
            if not chunk:
                continue
            # Drop the consumed prefix to keep the buffer small
            self._buf = self._buf[self._pos :] + self._utf8.decode(chunk)
            self._pos = 0
            return True
        self._eof = True
        self._buf = self._buf[self._pos :] + self._utf8.decode(b"", final=True)
        self._pos = 0
        return False

    def peek(self) -> str:
        """Get the next non-whitespace character without consuming it ("" at EOF)."""
        while True:
            while self._pos < len(self._buf) and self._buf[self._pos] in _WHITESPACE:
                self._pos += 1
            if self._pos < len(self._buf):
                return self._buf[self._pos]
            if not self._fill():
                return ""

    def expect(self, delim: str) -> None:
        token = self.peek()
        if token != delim:
            raise StreamDecodeError(f"expected {delim} got {token or 'end of stream'}")
        self._pos += 1

    def read_object(self) -> dict[str, Any]:
        """Decode the JSON object starting at the current position."""
        token = self.peek()
        if token != "{":
            raise StreamDecodeError(f"expected a record object got {token or 'end of stream'}")
        while True:
            try:
                value, end = self._decoder.raw_decode(self._buf, self._pos)
            except json.JSONDecodeError as e:
                # Either malformed or not fully received yet; read at least
                # as much again before retrying to keep decoding linear.
                target = 2 * (len(self._buf) - self._pos)
                while len(self._buf) - self._pos < target:
                    if not self._fill():
                        break
                if self._eof and len(self._buf) - self._pos < target:
                    try:
                        value, end = self._decoder.raw_decode(self._buf, self._pos)
                    except json.JSONDecodeError:
                        raise StreamDecodeError(f"malformed record: {e}") from e
                else:
                    continue
            self._pos = end
            return value


def iter_records(chunks: Iterable[bytes]) -> Iterator[dict[str, Any]]:
    """Decode a streamed top-level JSON array of records.

    Args:
        chunks: Response body as an iterable of byte chunks.

    Yields:
        Each record, as soon as it has been fully received.

    Raises:
        StreamDecodeError: If the stream is not exactly one JSON array of objects.
    """
    reader = _ArrayReader(chunks)
    reader.expect("[")
    if reader.peek() == "]":
        reader.expect("]")
    else:
        while True:
            yield reader.read_object()
            if reader.peek() == ",":
                reader.expect(",")
                continue
            reader.expect("]")
            break
    trailing = reader.peek()
    if trailing:
        raise StreamDecodeError(f"unexpected {trailing} after the end of the stream")


def _receive_config_files(
    project: Studio,
    batch: Any,
    force: bool,
    seen: SeenSet,
) -> None:
    if not isinstance(batch, dict):
        raise StreamDecodeError(f"configFiles {batch!r} is not an object")
    entries = batch.get("configFiles") or []
    if not isinstance(entries, list):
        raise StreamDecodeError(f"configFiles {entries!r} is not an array")
    for cfg in entries:
        if not isinstance(cfg, dict):
            raise StreamDecodeError(f"config file entry {cfg!r} is not an object")
        if "filePath" not in cfg:
            raise StreamDecodeError(f"{cfg} doesn't have required filePath field")
        path = cfg["filePath"]
        if not isinstance(path, str):
            raise StreamDecodeError(
                f"{cfg} has a filePath of incorrect type {type(path).__name__}, want string"
            )
        key = key_in_config_response(path)
        value = cfg.get(key)
        if not isinstance(value, dict):
            raise StreamDecodeError(
                f"{path} has a {key} of incorrect type {type(value).__name__}"
            )
        project.write_to_disk(path, "", dump_yaml(value), force)
        seen[path] = True


def _receive_data_files(
    project: Studio,
    batch: Any,
    force: bool,
    seen: SeenSet,
) -> None:
    if not isinstance(batch, dict):
        raise StreamDecodeError(f"dataFiles {batch!r} is not an object")
    entries = batch.get("dataFiles") or []
    if not isinstance(entries, list):
        raise StreamDecodeError(f"dataFiles {entries!r} is not an array")
    for df in entries:
        if not isinstance(df, dict):
            raise StreamDecodeError(f"data file entry {df!r} is not an object")
        path = df.get("filePath")
        if not isinstance(path, str):
            raise StreamDecodeError(f"data file {path!r} has no valid filePath")
        ctype = df.get("contentType") or ""
        try:
            payload = base64.b64decode(df.get("payload") or "", validate=True)
        except (binascii.Error, TypeError) as e:
            raise StreamDecodeError(f"{path} has an invalid payload: {e}") from e

        project.write_to_disk(path, ctype, payload, force)
        seen[path] = True
        if not is_cloud_function_bundle(ctype):
            continue
        # The bundle was unpacked into a folder; record the extracted files too
        folder = path[: -len(".zip")] if path.endswith(".zip") else path
        for name in names_from_zip(payload):
            seen[posixpath.join(folder, name)] = True


def receive_stream(
    project: Studio,
    body: Iterable[bytes],
    force: bool,
    seen: SeenSet,
) -> int:
    """Write every file of a download stream to disk.

    Args:
        project: Project receiving the files.
        body: Response body as an iterable of byte chunks.
        force: Overwrite existing files without asking.
        seen: Updated with every path confirmed by the server.

    Returns:
        Number of records processed.

    Raises:
        StreamDecodeError: If the stream or a record is malformed.
        ClassificationError: If a config file path has no known category.
    """
    logger.debug("Starts processing the stream")
    count = 0
    for record in iter_records(body):
        files = record.get("files") or {}
        if not isinstance(files, dict):
            raise StreamDecodeError(f"files {files!r} of record {count} is not an object")
        if files.get("configFiles") is not None:
            _receive_config_files(project, files["configFiles"], force, seen)
        if files.get("dataFiles") is not None:
            _receive_data_files(project, files["dataFiles"], force, seen)
        count += 1
    logger.debug(f"Finished processing the stream ({count} records)")
    return count
