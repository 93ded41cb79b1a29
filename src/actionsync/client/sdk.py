"""Push, pull and deploy operations on an Actions project.

This module provides:
- push / deploy_preview / create_version: Stream the project to the API
- pull: Stream the draft or a version back to disk, then reconcile
- list_versions / list_release_channels: Paginated listings
- encrypt_secret / decrypt_secret: Account linking client secret
- Result dataclasses for the above
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from actionsync.client.sync.classifier import ACCOUNT_LINKING_SECRET_PATH
from actionsync.client.sync.decoder import receive_stream
from actionsync.client.sync.reconcile import (
    DRAFT_WARNING,
    VERSION_WARNING,
    find_extra,
    reconcile,
)
from actionsync.client.sync.request import (
    RequestStreamer,
    create_version as create_version_request,
    decrypt_secret as decrypt_secret_request,
    encrypt_secret as encrypt_secret_request,
    read_draft,
    read_version,
    write_draft,
    write_preview,
)
from actionsync.client.sync.types import RequestFactory, SeenSet, SyncError
from actionsync.core.yamlutils import dump_yaml

if TYPE_CHECKING:
    from pathlib import Path

    from actionsync.client.api import ActionsClient, UploadOutcome
    from actionsync.client.project import Studio

logger = logging.getLogger(__name__)

# Cloud Function deployment can take 1-2 minutes
PREVIEW_SERVER_TIMEOUT = "180"

BUILT_IN_RELEASE_CHANNELS = {
    "actions.channels.Production": "prod",
}

_VERSION_NAME = re.compile(r"^projects/[^/]+/versions/(?P<version_id>[^/]+)$")


@dataclass
class ValidationResult:
    """Validation issue reported by the server for a pushed project."""

    message: str
    language_code: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationResult:
        """Create from API response dictionary."""
        return cls(
            message=data.get("validationMessage", ""),
            language_code=(data.get("validationContext") or {}).get("languageCode", ""),
        )


@dataclass
class WriteResult:
    """Outcome of a push or preview deployment."""

    name: str
    validation_results: list[ValidationResult] = field(default_factory=list)
    simulator_url: str = ""


@dataclass
class Version:
    """Version of a project."""

    id: str
    state: str
    creator: str
    update_time: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Version:
        """Create from API response dictionary."""
        return cls(
            id=data.get("name", "").removeprefix("versions/"),
            state=(data.get("versionState") or {}).get("message", ""),
            creator=data.get("creator", ""),
            update_time=data.get("updateTime", ""),
        )


@dataclass
class ReleaseChannel:
    """Release channel with its current and pending versions."""

    name: str
    current_version: str
    pending_version: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReleaseChannel:
        """Create from API response dictionary."""
        return cls(
            name=data.get("name", "").removeprefix("releaseChannels/"),
            current_version=data.get("currentVersion", ""),
            pending_version=data.get("pendingVersion", ""),
        )


@dataclass
class PullResult:
    """Outcome of a pull."""

    records: int
    seen: SeenSet
    extra: list[str]
    removed: list[Path]


def build_streamer(
    project: Studio,
    make_request: RequestFactory,
    chunk_size: int,
) -> RequestStreamer:
    """Plan the upload of a project.

    Raises:
        ProjectError: If the manifest or base settings are missing.
    """
    configs = project.config_files()
    project.check(configs)
    return RequestStreamer(
        configs,
        project.data_files(),
        make_request,
        str(project.project_root),
        chunk_size,
    )


def _validation_results(data: dict[str, Any]) -> list[ValidationResult]:
    results = [
        ValidationResult.from_dict(r)
        for r in (data.get("validationResults") or {}).get("results") or []
    ]
    if results:
        logger.warning("Server found validation issues (however, your files were still pushed):")
        for r in results:
            logger.warning(f"  {r.language_code or '-'}: {r.message}")
    return results


def _upload(
    client: ActionsClient,
    project: Studio,
    path: str,
    make_request: RequestFactory,
    extra_headers: dict[str, str] | None = None,
) -> UploadOutcome:
    streamer = build_streamer(project, make_request, client.config.chunk_size)
    return client.stream_upload(path, project.project_id, streamer, extra_headers)


def push(client: ActionsClient, project: Studio) -> WriteResult:
    """Write the local project to the draft.

    Returns:
        The draft name and any validation results.
    """
    project_id = project.project_id
    logger.info(
        f"Pushing files in the project {project_id!r} to Actions Console. "
        "This may take a few minutes."
    )
    outcome = _upload(
        client,
        project,
        f"v2/projects/{project_id}/draft:write",
        lambda: write_draft(project_id),
    )
    data = outcome.json()
    return WriteResult(name=data.get("name", ""), validation_results=_validation_results(data))


def deploy_preview(client: ActionsClient, project: Studio, sandbox: bool = True) -> WriteResult:
    """Write the local project to the preview and return the simulator URL."""
    project_id = project.project_id
    logger.info(
        f"Deploying files in the project {project_id!r} to Actions Console for preview. "
        "This may take a few minutes."
    )
    outcome = _upload(
        client,
        project,
        f"v2/projects/{project_id}/preview:write",
        lambda: write_preview(project_id, sandbox),
        {"X-Server-Timeout": PREVIEW_SERVER_TIMEOUT},
    )
    data = outcome.json()
    simulator_url = data.get("simulatorUrl", "")
    if not simulator_url:
        logger.warning("The API response body doesn't contain the simulator link.")
    return WriteResult(
        name=data.get("name", ""),
        validation_results=_validation_results(data),
        simulator_url=simulator_url,
    )


def create_version(client: ActionsClient, project: Studio, channel: str) -> str:
    """Create a version from the local project and submit it to a release channel.

    Returns:
        The version id, or "" if the server did not report one.
    """
    project_id = project.project_id
    logger.info(f"Deploying files in the project {project_id!r} to the {channel!r} release channel...")
    outcome = _upload(
        client,
        project,
        f"v2/projects/{project_id}/versions:create",
        lambda: create_version_request(project_id, channel),
    )
    name = outcome.json().get("name", "")
    match = _VERSION_NAME.match(name)
    if match is None:
        logger.debug(f"version id absent in the response {name} returned from the server")
        return ""
    return match.group("version_id")


def channel_display_name(channel: str) -> str:
    return BUILT_IN_RELEASE_CHANNELS.get(channel, channel)


def pull(
    client: ActionsClient,
    project: Studio,
    force: bool = False,
    clean: bool = False,
    version_id: str | None = None,
) -> PullResult:
    """Write the draft, or a version, of the project to disk.

    Local files are captured before the download. Once the whole stream
    has been applied, files the server did not confirm are reported, or
    removed when clean is set.

    Args:
        client: API client.
        project: Local project.
        force: Overwrite existing files without asking.
        clean: Remove local files absent from the server's response.
        version_id: Version to pull instead of the draft.
    """
    project_id = project.project_id
    local_files = list(project.files())
    key_version = project.encryption_key_version()
    if version_id:
        logger.info(f"Pulling version {version_id!r} of the project {project_id!r} from Actions Console...")
        path = f"v2/projects/{project_id}/versions/{version_id}:read"
        body = read_version(project_id, version_id, key_version)
        warning = VERSION_WARNING
    else:
        logger.info(f"Pulling files in the project {project_id!r} from Actions Console...")
        path = f"v2/projects/{project_id}/draft:read"
        body = read_draft(project_id, key_version)
        warning = DRAFT_WARNING

    seen: SeenSet = {}
    records = 0

    def _consume(chunks: Any) -> None:
        nonlocal records
        records = receive_stream(project, chunks, force, seen)

    client.stream_download(path, project_id, body, _consume)

    extra = find_extra(local_files, seen)
    removed = reconcile(project.project_root, extra, clean, warning)
    return PullResult(records=records, seen=seen, extra=extra, removed=removed)


def list_versions(client: ActionsClient, project_id: str) -> list[Version]:
    items = client.list_paged(f"v2/projects/{project_id}/versions", "versions")
    return [Version.from_dict(item) for item in items]


def list_release_channels(client: ActionsClient, project_id: str) -> list[ReleaseChannel]:
    items = client.list_paged(f"v2/projects/{project_id}/releaseChannels", "releaseChannels")
    return [ReleaseChannel.from_dict(item) for item in items]


# === Account linking secret ===


def encrypt_secret(
    client: ActionsClient,
    project: Studio,
    secret: str,
    force: bool = False,
) -> Path | None:
    """Encrypt a client secret and store it in the account linking secret file.

    The server returns the encrypted secret along with its encryption key
    version; both are written to settings/accountLinkingSecret.yaml.

    Returns:
        Path of the secret file, or None if the user declined to overwrite it.

    Raises:
        SyncError: If the response holds no account linking secret.
    """
    logger.info("Encrypting your client secret...")
    data = client.post_json("v2:encryptSecret", encrypt_secret_request(secret))
    linking_secret = data.get("accountLinkingSecret")
    if not isinstance(linking_secret, dict):
        raise SyncError("The API response body doesn't contain the account linking secret.")
    if not project.write_to_disk(ACCOUNT_LINKING_SECRET_PATH, "", dump_yaml(linking_secret), force):
        return None
    target = project.local_path(ACCOUNT_LINKING_SECRET_PATH)
    return target


def decrypt_secret(client: ActionsClient, project: Studio, out: Path, force: bool = False) -> bool:
    """Decrypt the client secret of the project into out.

    Args:
        client: API client.
        project: Local project holding settings/accountLinkingSecret.yaml.
        out: Destination of the plain text secret.
        force: Overwrite out without asking.

    Returns:
        True if written, False if the user declined to overwrite out.

    Raises:
        ProjectError: If the project has no account linking secret.
    """
    encrypted = project.encrypted_client_secret()
    logger.info("Decrypting your client secret...")
    data = client.post_json("v2:decryptSecret", decrypt_secret_request(encrypted))
    plain = data.get("clientSecret")
    if not isinstance(plain, str):
        raise SyncError("The API response body doesn't contain the client secret.")
    if not project.write_file(out, plain.encode("utf-8"), force):
        return False
    logger.warning(
        f"Decrypted key will be stored at {out}. "
        "Committing this file to source control is not recommended."
    )
    return True
