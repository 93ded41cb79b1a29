"""HTTP client for the Actions configuration API.

This module provides:
- ActionsClient: HTTP client for communicating with the API
- Streaming uploads fed by the framer through a BytePipe
- Streaming downloads handed to the stream decoder
- Paginated listing of versions and release channels
- Plain JSON calls (client secret encryption)
"""

from __future__ import annotations

import json
import logging
import platform
import queue
import threading
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx

from actionsync import __version__
from actionsync.client.sync.framing import BytePipe, send_files

if TYPE_CHECKING:
    from actionsync.client.sync.request import RequestStreamer
    from actionsync.core.config import ApiConfig

logger = logging.getLogger(__name__)

CONSUMER_HEADER = "Actionsync-Consumer"
USER_PROJECT_HEADER = "X-Goog-User-Project"


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Authentication failed."""


class PermissionDeniedError(APIError):
    """The API is disabled or the user lacks access to the project."""


class NotFoundError(APIError):
    """Resource not found."""


def public_error_message(error: dict[str, Any]) -> str:
    """Render the public part of an API error.

    Details are only surfaced for 400 (failed precondition or invalid
    argument). 403 and 404 keep their message, which often points to the
    API console. Anything else is reported as an internal error.
    """
    code = error.get("code", 0)
    if code == 400:
        out = {k: error[k] for k in ("code", "message", "details") if k in error}
    elif code in (403, 404):
        out = {"code": code, "message": error.get("message", "")}
    else:
        out = {"code": code, "message": "Internal error occurred"}
    return json.dumps({"error": out}, indent=2)


def parse_error(body: bytes, status_code: int) -> APIError:
    """Build the exception for a non-200 response body.

    The body is either a public error object, a JSON array of them (for
    streamed responses), or not JSON at all (e.g., an HTML error page),
    in which case it is surfaced verbatim.
    """
    logger.debug(body.decode("utf-8", errors="replace"))
    try:
        payload = json.loads(body)
    except ValueError:
        return APIError(body.decode("utf-8", errors="replace"), status_code)

    if isinstance(payload, list):
        payload = payload[0] if payload else {}
    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict):
        return APIError("Server did not return HTTP 200.", status_code)

    message = f"Server did not return HTTP 200.\n{public_error_message(error)}"
    if status_code == 401:
        return AuthenticationError(message, status_code)
    if status_code == 403:
        return PermissionDeniedError(message, status_code)
    if status_code == 404:
        return NotFoundError(message, status_code)
    return APIError(message, status_code)


class _ReadFailed:
    """Carries an error raised while reading a response body."""

    def __init__(self, error: Exception) -> None:
        self.error = error


def read_body_with_timeout(response: httpx.Response, timeout: float) -> bytes:
    """Read a response body until it ends or the deadline expires.

    The body is read in a background thread so that a server sending
    nothing cannot hold the caller past the deadline. The deadline starts
    when this function is called. What was read before it expired is
    returned.

    Raises:
        httpx.HTTPError: If reading the body fails before the deadline.
    """
    blocks: queue.Queue[object] = queue.Queue()

    def _read() -> None:
        try:
            for block in response.iter_bytes():
                blocks.put(block)
        except Exception as e:
            blocks.put(_ReadFailed(e))
        else:
            blocks.put(None)

    threading.Thread(target=_read, name="ResponseReader", daemon=True).start()

    deadline = time.monotonic() + timeout
    buf = bytearray()
    while True:
        try:
            item = blocks.get(timeout=max(deadline - time.monotonic(), 0))
        except queue.Empty:
            logger.debug(f"Stopped reading response body after {timeout}s")
            break
        if item is None:
            break
        if isinstance(item, _ReadFailed):
            raise item.error
        buf.extend(item)  # type: ignore[arg-type]
    return bytes(buf)


@dataclass
class UploadOutcome:
    """Response of a streamed upload."""

    status_code: int
    body: bytes

    def json(self) -> dict[str, Any]:
        try:
            data = json.loads(self.body)
        except ValueError as e:
            raise APIError(self.body.decode("utf-8", errors="replace"), self.status_code) from e
        if not isinstance(data, dict):
            raise APIError(f"unexpected response: {data!r}", self.status_code)
        return data


class ActionsClient:
    """HTTP client for the Actions configuration API."""

    def __init__(self, config: ApiConfig, transport: httpx.BaseTransport | None = None) -> None:
        """Initialize the client.

        Args:
            config: API configuration.
            transport: Optional httpx transport (used by tests).
        """
        self._config = config
        headers = {
            "Authorization": f"Bearer {config.token}",
            "User-Agent": (
                f"actionsync/{__version__} ({platform.system().lower()} {platform.machine()})"
            ),
        }
        if config.consumer:
            headers[CONSUMER_HEADER] = config.consumer
        self._client = httpx.Client(
            timeout=config.timeout,
            headers=headers,
            transport=transport,
        )

    @property
    def config(self) -> ApiConfig:
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> ActionsClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _headers(self, project_id: str) -> dict[str, str]:
        # Attributes quota to the developer's project rather than the CLI's
        return {
            "Content-Type": "application/json",
            USER_PROJECT_HEADER: project_id,
        }

    # === Streaming upload ===

    def stream_upload(
        self,
        path: str,
        project_id: str,
        streamer: RequestStreamer,
        extra_headers: dict[str, str] | None = None,
    ) -> UploadOutcome:
        """POST the requests of streamer as a single streamed JSON array.

        The HTTP exchange runs in a worker thread reading the body from a
        BytePipe, while the framer fills the pipe from the calling thread.

        Args:
            path: Endpoint path relative to the API root.
            project_id: Project the upload is attributed to.
            streamer: Planner producing the requests.
            extra_headers: Additional request headers.

        Returns:
            Status and body of the response.

        Raises:
            SyncError: If planning fails.
            APIError: If the server does not return HTTP 200.
            httpx.HTTPError: On transport failures.
        """
        url = self._config.endpoint(path)
        headers = self._headers(project_id)
        if extra_headers:
            headers.update(extra_headers)

        pipe = BytePipe()
        result: dict[str, Any] = {}

        def _post() -> None:
            try:
                with self._client.stream("POST", url, content=pipe.reader(), headers=headers) as resp:
                    body = read_body_with_timeout(resp, self._config.response_read_timeout)
                    result["outcome"] = UploadOutcome(resp.status_code, body)
            except Exception as e:
                result["error"] = e
            finally:
                pipe.close_reader()

        thread = threading.Thread(target=_post, name="UploadRequest", daemon=True)
        thread.start()
        try:
            send_files(streamer, pipe)
        except BaseException:
            # The aborted pipe fails the request, so the worker exits promptly
            thread.join()
            raise
        logger.info("Waiting for server to respond...")
        thread.join()

        if "error" in result:
            raise result["error"]
        outcome: UploadOutcome = result["outcome"]
        if outcome.status_code != 200:
            raise parse_error(outcome.body, outcome.status_code)
        return outcome

    # === Streaming download ===

    def stream_download(
        self,
        path: str,
        project_id: str,
        body: dict[str, Any],
        consume: Callable[[Iterator[bytes]], None],
    ) -> None:
        """POST a read request and hand the streamed response body to consume.

        Raises:
            APIError: If the server does not return HTTP 200.
            httpx.HTTPError: On transport failures.
        """
        url = self._config.endpoint(path)
        with self._client.stream(
            "POST", url, json=body, headers=self._headers(project_id)
        ) as resp:
            if resp.status_code != 200:
                # Error bodies are small
                error_body = read_body_with_timeout(resp, self._config.response_read_timeout)
                raise parse_error(error_body, resp.status_code)
            consume(resp.iter_bytes())

    # === Plain requests ===

    def post_json(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """POST a JSON request that is not tied to a project.

        Raises:
            APIError: If the server does not return HTTP 200.
        """
        resp = self._client.post(
            self._config.endpoint(path),
            json=body,
            headers={"Content-Type": "application/json"},
        )
        if resp.status_code != 200:
            raise parse_error(resp.content, resp.status_code)
        return UploadOutcome(resp.status_code, resp.content).json()

    # === Listing ===

    def list_paged(self, path: str, field: str) -> list[dict[str, Any]]:
        """Collect every item of a paginated list endpoint.

        Args:
            path: Endpoint path relative to the API root.
            field: Name of the list field in each page.
        """
        url = self._config.endpoint(path)
        items: list[dict[str, Any]] = []
        page_token = ""
        while True:
            # List endpoints take no body; the page token goes into the query
            resp = self._client.get(url, params={"pageToken": page_token})
            if resp.status_code != 200:
                raise parse_error(resp.content, resp.status_code)
            page = resp.json()
            items.extend(page.get(field) or [])
            page_token = page.get("nextPageToken") or ""
            if not page_token:
                return items
