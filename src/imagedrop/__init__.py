"""imagedrop: insert images into a rich-text editor on drop or paste.

Files, pasted ``<img>`` markup and pasted image URLs become placeholder
nodes right away; dropped files are optionally uploaded, with progress,
the final URL and any error folded back into the node's data.

Public re-exports
-----------------

* **Plugin:** :func:`create_plugin`, :class:`DropOrPasteImages`
* **Configuration:** :class:`PluginConfig`, :func:`validate_config`
* **Errors:** Every :class:`ImageDropError` subclass and :class:`ErrorCode`
* **Models:** Events, node data, upload outcomes
* **Upload:** :class:`AsyncUploader`

Usage::

    from imagedrop import create_plugin

    plugin = create_plugin(
        applyTransform=insert_image_block,
        uploadImages=True,
        uploadUrl="/upload",
        getImageUrl=lambda response: response["src"],
    )
"""

from __future__ import annotations

# ── Configuration ───────────────────────────────────────────────────────
from imagedrop.config import PluginConfig, validate_config

# ── Errors ──────────────────────────────────────────────────────────────
from imagedrop.errors import (
    ConfigError,
    ErrorCode,
    ImageDropError,
    ImageParseError,
    ImageUrlError,
    ImageVerificationError,
    UploadError,
    UploadStatusError,
    UploadTransportError,
)

# ── Models ──────────────────────────────────────────────────────────────
from imagedrop.models import (
    Failure,
    FileHandle,
    FilesEvent,
    HtmlEvent,
    ImageNodeData,
    InsertionEvent,
    InsertionKind,
    Progress,
    Success,
    TextEvent,
    UploadOutcome,
    coerce_event,
    generate_key,
)

# ── Plugin ──────────────────────────────────────────────────────────────
from imagedrop.plugin import DropOrPasteImages, create_plugin
from imagedrop.upload import AsyncUploader

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Plugin
    "create_plugin",
    "DropOrPasteImages",
    "AsyncUploader",
    # Configuration
    "PluginConfig",
    "validate_config",
    # Errors
    "ImageDropError",
    "ErrorCode",
    "ConfigError",
    "ImageParseError",
    "UploadError",
    "UploadStatusError",
    "UploadTransportError",
    "ImageUrlError",
    "ImageVerificationError",
    # Models: events
    "InsertionEvent",
    "InsertionKind",
    "FilesEvent",
    "HtmlEvent",
    "TextEvent",
    "FileHandle",
    "coerce_event",
    # Models: node data
    "ImageNodeData",
    "generate_key",
    # Models: upload outcomes
    "UploadOutcome",
    "Progress",
    "Success",
    "Failure",
]
