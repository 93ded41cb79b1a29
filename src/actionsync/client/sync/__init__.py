"""Chunked file synchronization with the Actions configuration API.

Architecture:
    upload:   classifier → RequestStreamer → send_files → BytePipe → HTTP
    download: HTTP → receive_stream → find_extra / reconcile

Components:
- **classifier**: Maps project paths to semantic categories and wire keys
- **content_types**: Resolves the content type of data files
- **bundle**: Zips inline cloud functions and unpacks received ones
- **RequestStreamer**: Plans files into size-bounded requests
- **send_files / BytePipe**: Frames requests into a streamed JSON array
- **receive_stream**: Decodes a streamed JSON array of records onto disk
- **find_extra / reconcile**: Flags or removes files the server no longer has
"""

from actionsync.client.sync.bundle import (
    add_inline_webhooks,
    names_from_zip,
    unzip_files,
    zip_files,
)
from actionsync.client.sync.classifier import (
    FileCategory,
    classify,
    config_files,
    is_config_file,
    is_localized_settings,
    key_in_config_response,
    wire_key,
)
from actionsync.client.sync.content_types import (
    ANIMATION_CONTENT_TYPE,
    CLOUD_FUNCTION_CONTENT_TYPE,
    SUPPORTED_MEDIA_TYPES,
    content_type,
)
from actionsync.client.sync.decoder import iter_records, receive_stream
from actionsync.client.sync.framing import BytePipe, PipeClosedError, send_files
from actionsync.client.sync.reconcile import find_extra, reconcile
from actionsync.client.sync.request import RequestStreamer, estimated_size
from actionsync.client.sync.types import (
    Chunk,
    ChunkSizeError,
    ClassificationError,
    MalformedContentError,
    ProjectError,
    ProjectFile,
    RequestFactory,
    SeenSet,
    StreamDecodeError,
    SyncError,
)

__all__ = [
    # Types and exceptions
    "Chunk",
    "ChunkSizeError",
    "ClassificationError",
    "MalformedContentError",
    "ProjectError",
    "ProjectFile",
    "RequestFactory",
    "SeenSet",
    "StreamDecodeError",
    "SyncError",
    # Classification
    "FileCategory",
    "classify",
    "config_files",
    "is_config_file",
    "is_localized_settings",
    "key_in_config_response",
    "wire_key",
    # Content types
    "ANIMATION_CONTENT_TYPE",
    "CLOUD_FUNCTION_CONTENT_TYPE",
    "SUPPORTED_MEDIA_TYPES",
    "content_type",
    # Bundles
    "add_inline_webhooks",
    "names_from_zip",
    "unzip_files",
    "zip_files",
    # Upload
    "BytePipe",
    "PipeClosedError",
    "RequestStreamer",
    "estimated_size",
    "send_files",
    # Download
    "find_extra",
    "iter_records",
    "receive_stream",
    "reconcile",
]
