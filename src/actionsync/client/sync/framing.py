"""Framing of the upload stream.

This module provides:
- BytePipe: Bounded in-memory byte channel between the framer and the HTTP client
- send_files: Writes the requests of a streamer as one top-level JSON array

The framer and the HTTP request run concurrently: the framer writes into
the pipe from the calling thread while the HTTP client reads the request
body from the other end in a worker thread. The pipe holds at most
`max_blocks` pending writes, so a slow reader blocks the writer and the
serialized project is never held in memory as a whole.

The writer end must be closed exactly once on every exit path: the
reader waits for it, and an unclosed pipe deadlocks the transfer.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from actionsync.client.sync.request import RequestStreamer

logger = logging.getLogger(__name__)

DEFAULT_MAX_BLOCKS = 16
BLOCK_SIZE = 64 * 1024
POLL_INTERVAL = 0.1  # seconds


class PipeClosedError(BrokenPipeError):
    """The reader end of the pipe has been closed."""


class _Abort:
    """Marks a writer-side failure, re-raised on the reader side."""

    def __init__(self, error: BaseException) -> None:
        self.error = error


_EOF = object()


class BytePipe:
    """Bounded, thread-safe byte channel with a single writer and a single reader.

    Writes block while the channel is full. Closing the writer end is
    idempotent; closing the reader end makes pending and later writes
    fail with PipeClosedError instead of blocking forever.
    """

    def __init__(self, max_blocks: int = DEFAULT_MAX_BLOCKS) -> None:
        """Initialize the pipe.

        Args:
            max_blocks: Maximum number of pending blocks before writes block.
        """
        self._queue: queue.Queue[object] = queue.Queue(maxsize=max_blocks)
        self._lock = threading.Lock()
        self._writer_closed = False
        self._reader_closed = threading.Event()
        self.bytes_written = 0

    @property
    def closed(self) -> bool:
        """True once the writer end is closed."""
        return self._writer_closed

    @property
    def reader_closed(self) -> bool:
        return self._reader_closed.is_set()

    def _put(self, item: object) -> None:
        while True:
            if self._reader_closed.is_set():
                raise PipeClosedError("read end of the pipe is closed")
            try:
                self._queue.put(item, timeout=POLL_INTERVAL)
                return
            except queue.Full:
                continue

    def write(self, data: bytes) -> int:
        """Write bytes, blocking while the reader is not draining.

        Returns:
            Number of bytes written.

        Raises:
            ValueError: If the writer end is already closed.
            PipeClosedError: If the reader end is closed.
        """
        if self._writer_closed:
            raise ValueError("write to closed pipe")
        view = memoryview(data)
        for offset in range(0, len(view), BLOCK_SIZE):
            self._put(bytes(view[offset : offset + BLOCK_SIZE]))
        self.bytes_written += len(data)
        return len(data)

    def _close_with(self, marker: object) -> bool:
        with self._lock:
            if self._writer_closed:
                return False
            self._writer_closed = True
        try:
            self._put(marker)
        except PipeClosedError:
            # Nobody is reading anymore
            pass
        return True

    def close(self) -> None:
        """Close the writer end. The reader sees end of stream once drained."""
        if self._close_with(_EOF):
            logger.debug(f"Pipe closed after {self.bytes_written} bytes")

    def abort(self, error: BaseException) -> None:
        """Close the writer end so that the reader fails with error."""
        if self._close_with(_Abort(error)):
            logger.debug(f"Pipe aborted: {error}")

    def close_reader(self) -> None:
        """Close the reader end, unblocking any pending write."""
        self._reader_closed.set()
        # Drop what is left so a blocked writer can notice
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break

    def reader(self) -> Iterator[bytes]:
        """Iterate over written blocks until the writer end is closed.

        Raises:
            BaseException: The error given to abort(), if any.
        """
        try:
            while True:
                item = self._queue.get()
                if item is _EOF:
                    return
                if isinstance(item, _Abort):
                    raise item.error
                yield item  # type: ignore[misc]
        finally:
            self._reader_closed.set()


def send_files(streamer: RequestStreamer, sink: BytePipe) -> None:
    """Stream every request of streamer to sink as a JSON array.

    Writes "[", then each request separated by ",", then "]", and always
    closes sink. A write failing because the reader is gone is logged and
    ends the stream without error: the server may stop reading after
    rejecting the upload, and reports why in its response.

    Args:
        streamer: Planner producing the requests.
        sink: Writer end of the upload channel.

    Raises:
        SyncError: If planning a request fails. The sink is aborted first.
    """
    try:
        sink.write(b"[")
        while streamer.has_next():
            req = streamer.next()
            data = json.dumps(req).encode("utf-8")
            logger.debug(f"Total request size is {len(data)} bytes.")
            sink.write(data)
            if streamer.has_next():
                sink.write(b",")
        sink.write(b"]")
    except PipeClosedError as e:
        logger.info(f"Failed to send previous request: {e}")
    except BaseException as e:
        sink.abort(e)
        raise
    finally:
        sink.close()
