"""Shared configuration classes for actionsync.

This module defines the API configuration threaded through the client
and the sync components, along with the wire size constants enforced by
the remote service.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_API_URL = "https://actions.googleapis.com"
DEFAULT_CONSOLE_URL = "https://console.actions.google.com"

# Max size of a single JSON request/response in the stream, enforced by the server.
MAX_CHUNK_SIZE_BYTES = 10 * 1024 * 1024  # 10 MB
# Room for the envelope fields that surround the files of a request.
PADDING = 512 * 1024  # 512 KB


@dataclass
class ApiConfig:
    """Configuration for talking to the Actions configuration service.

    Passed explicitly to every component that needs an endpoint or a limit.

    Attributes:
        api_url: Base URL of the API (e.g., "https://actions.googleapis.com").
        token: OAuth2 bearer token for the user.
        console_url: Base URL of the web console, used in user-facing messages.
        timeout: Request/connection timeout in seconds.
        response_read_timeout: Time limit to read a response body once
            the request body has been fully sent.
        chunk_size: Byte budget for the files of a single request.
        consumer: Optional string identifying the caller.
    """

    api_url: str
    token: str
    console_url: str = DEFAULT_CONSOLE_URL
    timeout: float = 180.0
    response_read_timeout: float = 5.0
    chunk_size: int = MAX_CHUNK_SIZE_BYTES - PADDING
    consumer: str = ""

    def __post_init__(self) -> None:
        """Normalize URLs and validate limits."""
        self.api_url = self.api_url.rstrip("/")
        self.console_url = self.console_url.rstrip("/")
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")

    def endpoint(self, path: str) -> str:
        """Get the full URL of an API endpoint.

        Args:
            path: Endpoint path relative to the API root (e.g., "v2/projects/p/draft:write").

        Returns:
            Absolute URL.
        """
        return f"{self.api_url}/{path.lstrip('/')}"

    def project_url(self, project_id: str) -> str:
        """Get the console URL of a project overview page."""
        return f"{self.console_url}/project/{project_id}/overview"
