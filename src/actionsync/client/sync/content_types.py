"""Content types of data files.

Data files are sent with an explicit content type. Only a small set of
media types is accepted by the server; anything else is excluded from
the upload with a warning.
"""

from __future__ import annotations

import mimetypes
import posixpath

CLOUD_FUNCTION_CONTENT_TYPE = "application/zip;zip_type=cloud_function"
ANIMATION_CONTENT_TYPE = "x-world/x-vrml"

SUPPORTED_MEDIA_TYPES = frozenset({
    "audio/mpeg",
    "image/jpeg",
    "image/png",
    "audio/wav",
    "audio/x-wav",
})


def guess_media_type(path: str) -> str | None:
    """Standard extension -> MIME lookup, without restrictions."""
    media_type, _ = mimetypes.guess_type(posixpath.basename(path), strict=False)
    return media_type


def content_type(path: str) -> str | None:
    """Resolve the wire content type of a data file.

    Args:
        path: Forward-slash path relative to the project root.

    Returns:
        The content type, or None if the extension is not supported.
    """
    ext = posixpath.splitext(path)[1].lower()
    if ext == ".zip":
        return CLOUD_FUNCTION_CONTENT_TYPE
    if ext == ".flr":
        return ANIMATION_CONTENT_TYPE
    media_type = guess_media_type(path)
    if media_type in SUPPORTED_MEDIA_TYPES:
        return media_type
    return None


def is_cloud_function_bundle(content_type_value: str) -> bool:
    return content_type_value == CLOUD_FUNCTION_CONTENT_TYPE
