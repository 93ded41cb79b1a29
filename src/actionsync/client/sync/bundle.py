"""ZIP bundling of inline cloud functions.

This module provides:
- zip_files / names_from_zip / unzip_files: ZIP primitives for function code
- add_inline_webhooks: Bundle the code of inline webhooks into data files

An inline webhook "webhooks/<name>.yaml" declares `inlineCloudFunction`
and keeps its code under "webhooks/<name>/". The code is sent as a
single "webhooks/<name>.zip" data file.
"""

from __future__ import annotations

import io
import logging
import posixpath
import zipfile
from collections.abc import Mapping
from pathlib import Path, PurePosixPath

from actionsync.client.sync.classifier import is_webhook, is_webhook_definition
from actionsync.client.sync.types import MalformedContentError, ProjectError, SyncError
from actionsync.core.yamlutils import load_yaml_map

logger = logging.getLogger(__name__)

INLINE_FUNCTION_KEY = "inlineCloudFunction"


def zip_files(files: Mapping[str, bytes]) -> bytes:
    """Pack files into a ZIP archive.

    Members are stored by basename: the server expects the function
    folder to be stripped (webhooks/myfunction/index.js -> index.js).
    """
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name in sorted(files):
            zf.writestr(posixpath.basename(name), files[name])
    return buf.getvalue()


def names_from_zip(content: bytes) -> list[str]:
    """List the file members of a ZIP archive."""
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            return [info.filename for info in zf.infolist() if not info.is_dir()]
    except zipfile.BadZipFile as e:
        raise SyncError(f"Invalid cloud function archive: {e}") from e


def unzip_files(directory: Path, content: bytes) -> list[Path]:
    """Extract a ZIP archive into directory.

    Returns:
        Paths of the extracted files.

    Raises:
        SyncError: If the archive is invalid or a member escapes directory.
    """
    root = directory.resolve()
    written: list[Path] = []
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                target = (directory / PurePosixPath(info.filename)).resolve()
                if not target.is_relative_to(root):
                    raise SyncError(f"{info.filename} escapes {directory}")
                target.parent.mkdir(parents=True, exist_ok=True)
                logger.info(f"Writing {target}")
                target.write_bytes(zf.read(info))
                written.append(target)
    except zipfile.BadZipFile as e:
        raise SyncError(f"Invalid cloud function archive: {e}") from e
    return written


def _is_inline_source(path: str, folder: str) -> bool:
    # Inline cloud functions only ship index.js and package.json style files
    return (
        path.startswith(folder + "/")
        and "node_modules" not in path
        and posixpath.splitext(path)[1] in (".js", ".json")
    )


def add_inline_webhooks(
    data_files: dict[str, bytes],
    files: Mapping[str, bytes],
    root: str = "",
) -> None:
    """Add a zipped bundle for every inline webhook to data_files.

    Args:
        data_files: Data files of the project, updated in place.
        files: All files of the project.
        root: Project root, used in messages only.

    Raises:
        MalformedContentError: If a webhook definition is not valid YAML.
        ProjectError: If the code folder of an inline webhook is missing.
    """
    definitions = {p: c for p, c in files.items() if is_webhook_definition(p)}
    code = {p: c for p, c in files.items() if is_webhook(p) and not is_webhook_definition(p)}

    for path in sorted(definitions):
        try:
            definition = load_yaml_map(definitions[path])
        except ValueError as e:
            raise MalformedContentError(path, str(e)) from e

        if INLINE_FUNCTION_KEY not in definition:
            logger.debug(f"Found external cloud function: {posixpath.join(root, path)}")
            continue

        # "webhooks/a.yaml" means "webhooks/a/*" holds the code
        name = posixpath.splitext(posixpath.basename(path))[0]
        folder = posixpath.join("webhooks", name)
        sources = {p: c for p, c in code.items() if _is_inline_source(p, folder)}
        if not sources:
            raise ProjectError(f"folder for inline cloud function is not found for {path}")
        data_files[folder + ".zip"] = zip_files(sources)
