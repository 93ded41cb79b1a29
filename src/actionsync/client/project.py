"""Local Actions project on disk.

This module provides:
- Studio: Files, root and project id of a local project, and the disk-write policy
- find_project_root: Locate the root of a project from a working directory
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable
from pathlib import Path, PurePosixPath
from urllib.parse import quote

import click

from actionsync.client.sync.bundle import add_inline_webhooks, unzip_files
from actionsync.client.sync.classifier import (
    ACCOUNT_LINKING_SECRET_PATH,
    BASE_SETTINGS_PATH,
    MANIFEST_PATH,
    config_files,
    is_localized_settings,
    is_resource_data,
    is_settings,
)
from actionsync.client.sync.content_types import is_cloud_function_bundle
from actionsync.client.sync.types import MalformedContentError, ProjectError, SyncError
from actionsync.core.yamlutils import load_yaml_map

logger = logging.getLogger(__name__)

PLACEHOLDER_PROJECT_ID = "placeholder_project"

# Asks the user a yes/no question; returns True for yes
ConfirmCallback = Callable[[str], bool]


def _click_confirm(message: str) -> bool:
    return click.confirm(message, default=False)


def find_project_root(start: Path | None = None) -> Path:
    """Find the closest directory containing manifest.yaml.

    Args:
        start: Directory to start from (default: current working directory).

    Raises:
        ProjectError: If no parent directory contains manifest.yaml.
    """
    current = (start or Path.cwd()).resolve()
    for candidate in (current, *current.parents):
        if (candidate / MANIFEST_PATH).exists():
            return candidate
    raise ProjectError("manifest.yaml was not found")


def _is_hidden(rel: PurePosixPath) -> bool:
    return any(part.startswith(".") for part in rel.parts)


class Studio:
    """An Actions project rooted at a local directory.

    Files are read once and cached for the lifetime of the instance: the
    set read before a pull is the one reconciled after it.
    """

    def __init__(
        self,
        root: Path,
        project_id: str = "",
        confirm: ConfirmCallback | None = None,
    ) -> None:
        """Initialize the project.

        Args:
            root: Project root directory.
            project_id: Project id given explicitly (e.g., via a flag).
            confirm: Overwrite confirmation prompt (default: click.confirm).
        """
        self._root = Path(root)
        self._flag_project_id = project_id
        self._project_id: str | None = None
        self._confirm = confirm or _click_confirm
        self._files: dict[str, bytes] | None = None

    @property
    def project_root(self) -> Path:
        return self._root

    # === Files ===

    def files(self) -> dict[str, bytes]:
        """Get all non-hidden project files by forward-slash relative path."""
        if self._files is not None:
            return self._files

        files: dict[str, bytes] = {}
        for dirpath, dirnames, filenames in os.walk(self._root):
            dirnames.sort()
            for name in sorted(filenames):
                full = Path(dirpath) / name
                rel = PurePosixPath(full.relative_to(self._root).as_posix())
                if _is_hidden(rel):
                    continue
                files[str(rel)] = full.read_bytes()
        self._files = files
        return files

    def config_files(self) -> dict[str, bytes]:
        return config_files(self.files())

    def data_files(self) -> dict[str, bytes]:
        """Get the data files: binary resources plus bundled inline webhooks."""
        files = self.files()
        data = {path: content for path, content in files.items() if is_resource_data(path)}
        add_inline_webhooks(data, files, str(self._root))
        return data

    @staticmethod
    def check(configs: dict[str, bytes]) -> None:
        """Ensure the config files identify a project.

        Raises:
            ProjectError: If base settings or the manifest are missing.
        """
        if not configs:
            raise ProjectError("configuration files for your Action were not found")
        if BASE_SETTINGS_PATH not in configs:
            raise ProjectError(f"{BASE_SETTINGS_PATH} for your Action was not found")
        if MANIFEST_PATH not in configs:
            raise ProjectError(f"{MANIFEST_PATH} for your Action was not found")

    # === Project id ===

    def _project_id_from_settings(self) -> str:
        for path, content in self.files().items():
            if not is_settings(path) or is_localized_settings(path):
                continue
            try:
                settings = load_yaml_map(content)
            except ValueError as e:
                raise MalformedContentError(path, str(e)) from e
            pid = settings.get("projectId")
            if pid is None:
                raise ProjectError("projectId is not present in the settings file")
            if not isinstance(pid, str):
                raise ProjectError(f"invalid project ID: {pid}")
            if pid == PLACEHOLDER_PROJECT_ID:
                logger.warning(
                    f"{pid} is not a valid project id. Update {path} with your "
                    "Google project id found in your GCP console. E.g. \"123456789\""
                )
            return pid
        raise ProjectError("can't find a project id: settings.yaml not found")

    @property
    def project_id(self) -> str:
        """Project id, URL-path escaped.

        An id given explicitly takes priority over the one in
        settings/settings.yaml; a warning is logged when both differ.

        Raises:
            ProjectError: If no project id can be found.
        """
        if self._project_id is not None:
            return self._project_id

        flag = self._flag_project_id
        try:
            from_settings = self._project_id_from_settings()
        except ProjectError:
            if not flag:
                raise ProjectError(
                    "no project ID is specified. Specify the project ID in "
                    "settings/settings.yaml, or via flag, if applicable."
                ) from None
            from_settings = ""

        if flag and from_settings and flag != from_settings:
            logger.warning(
                f"Two Google Project IDs are specified: {flag!r} via the flag, "
                f"{from_settings!r} via the settings file. {flag!r} takes a priority."
            )
        pid = flag or from_settings
        logger.info(f"Using {pid!r}.")
        self._project_id = quote(pid, safe="")
        return self._project_id

    def encryption_key_version(self) -> str:
        """Get the encryption key version of the account linking secret, if any."""
        content = self.files().get(ACCOUNT_LINKING_SECRET_PATH)
        if content is None:
            return ""
        try:
            secret = load_yaml_map(content)
        except ValueError:
            return ""
        version = secret.get("encryptionKeyVersion")
        return version if isinstance(version, str) else ""

    def encrypted_client_secret(self) -> str:
        """Get the encrypted client secret of the account linking secret.

        Raises:
            ProjectError: If the project has no account linking secret.
            MalformedContentError: If the secret file is not valid YAML.
        """
        content = self.files().get(ACCOUNT_LINKING_SECRET_PATH)
        if content is None:
            raise ProjectError(
                f"{ACCOUNT_LINKING_SECRET_PATH} not found in project files. Try encrypting "
                "your client secret first, or pulling an existing project with a client secret"
            )
        try:
            secret = load_yaml_map(content)
        except ValueError as e:
            raise MalformedContentError(ACCOUNT_LINKING_SECRET_PATH, str(e)) from e
        value = secret.get("encryptedClientSecret")
        return value if isinstance(value, str) else ""

    # === Disk writes ===

    def local_path(self, path: str) -> Path:
        """Map a forward-slash relative path into the project root."""
        return self._root / PurePosixPath(path)

    def write_to_disk(
        self,
        path: str,
        content_type: str,
        payload: bytes,
        force: bool,
    ) -> bool:
        """Write a file received from the server into the project.

        Cloud function bundles ("webhooks/<name>.zip") are unpacked into
        "webhooks/<name>/". If the destination exists and force is False,
        the user is asked once whether to overwrite it.

        Args:
            path: Forward-slash path relative to the project root.
            content_type: Content type of a data file ("" for config files).
            payload: File content.
            force: Overwrite without asking.

        Returns:
            True if written, False if the user declined to overwrite.

        Raises:
            SyncError: If path does not name a location inside the project.
        """
        root = self._root.resolve()
        target = self.local_path(path).resolve()
        if target == root or not target.is_relative_to(root):
            raise SyncError(f"{path} is outside of the project root {self._root}")

        bundle = is_cloud_function_bundle(content_type)
        if bundle and target.suffix == ".zip":
            target = target.with_suffix("")
        return self.write_file(target, payload, force, unpack=bundle)

    def write_file(
        self,
        target: Path,
        payload: bytes,
        force: bool,
        unpack: bool = False,
    ) -> bool:
        """Write payload to target, asking before replacing an existing file.

        Args:
            target: Destination path.
            payload: File content, or a ZIP archive when unpack is set.
            force: Overwrite without asking.
            unpack: Extract payload into the target directory.

        Returns:
            True if written, False if the user declined to overwrite.
        """
        if target.exists():
            if not force and not self._confirm(
                f"{target} already exists. Would you like to overwrite it?"
            ):
                logger.info(f"Skipping {target}")
                return False
            logger.info(f"Removing {target}")
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()

        target.parent.mkdir(parents=True, exist_ok=True)
        if unpack:
            unzip_files(target, payload)
            return True
        logger.info(f"Writing {target}")
        target.write_bytes(payload)
        return True
