"""Public data models for imagedrop.

This module contains the insertion event union, the per-node image data
record, and the outcome types emitted by the uploader.  Events and
outcomes are frozen dataclasses; :class:`ImageNodeData` is mutable and
updated in place as its upload progresses.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from imagedrop.errors import UploadError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class InsertionKind(str, Enum):
    """The kind of payload carried by a drop or paste event."""

    FILES = "files"
    """One or more files (dropped from the desktop or pasted from the clipboard)."""

    HTML = "html"
    """An HTML fragment, typically copied from a web page."""

    TEXT = "text"
    """Plain text, possibly a bare image URL."""


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FileHandle:
    """A file offered to the editor by a drop or paste.

    Attributes
    ----------
    name:
        File name as reported by the host (e.g. ``"photo.png"``).
    content_type:
        Declared MIME type (e.g. ``"image/png"``).  Extension filtering
        for files is derived from this, not from *name*.
    data:
        Raw file bytes.
    """

    name: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)


# ---------------------------------------------------------------------------
# Insertion events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FilesEvent:
    """Files dropped or pasted, in the order the host reported them."""

    kind: ClassVar[InsertionKind] = InsertionKind.FILES

    files: tuple[FileHandle, ...]
    target: Any | None = None


@dataclass(frozen=True)
class HtmlEvent:
    """An HTML fragment pasted or dropped into the editor."""

    kind: ClassVar[InsertionKind] = InsertionKind.HTML

    markup: str
    target: Any | None = None


@dataclass(frozen=True)
class TextEvent:
    """Plain text pasted or dropped into the editor."""

    kind: ClassVar[InsertionKind] = InsertionKind.TEXT

    text: str
    target: Any | None = None


InsertionEvent = Union[FilesEvent, HtmlEvent, TextEvent]

_EVENT_TYPES = (FilesEvent, HtmlEvent, TextEvent)


def coerce_event(data: Any) -> InsertionEvent | None:
    """Validate a classified drop/paste payload into an :data:`InsertionEvent`.

    Parameters
    ----------
    data:
        Either an event instance, or a mapping as produced by the host's
        transfer classifier: ``{"type": "files", "files": [...], "target": ...}``,
        ``{"type": "html", "html": "..."}`` or ``{"type": "text", "text": "..."}``.
        ``"kind"`` is accepted in place of ``"type"`` and ``"markup"`` in
        place of ``"html"``.

    Returns
    -------
    InsertionEvent | None
        The validated event, or ``None`` when the kind is not recognised
        or the payload lacks the field its kind requires.
    """
    if isinstance(data, _EVENT_TYPES):
        return data
    if not isinstance(data, Mapping):
        return None

    raw_kind = data.get("kind", data.get("type"))
    try:
        kind = InsertionKind(raw_kind)
    except ValueError:
        return None

    target = data.get("target")

    if kind is InsertionKind.FILES:
        files = data.get("files")
        if files is None:
            return None
        handles = tuple(files)
        if not all(isinstance(f, FileHandle) for f in handles):
            return None
        return FilesEvent(files=handles, target=target)

    if kind is InsertionKind.HTML:
        markup = data.get("html", data.get("markup"))
        if not isinstance(markup, str):
            return None
        return HtmlEvent(markup=markup, target=target)

    text = data.get("text")
    if not isinstance(text, str):
        return None
    return TextEvent(text=text, target=target)


# ---------------------------------------------------------------------------
# Node data
# ---------------------------------------------------------------------------

def generate_key() -> str:
    """Return a fresh node key.

    UUID4 hex: 122 random bits, so collisions are not a practical concern
    even across very large documents.
    """
    return uuid.uuid4().hex


@dataclass(eq=False)
class ImageNodeData:
    """Data attached to one image node, addressed by its node key.

    The pipeline creates exactly one record per inserted image and mutates
    it in place; every mutation is followed by a re-apply so the host
    document reflects the new state.  Records compare by identity.

    Attributes
    ----------
    is_upload:
        Whether the image is being uploaded (``False`` for pasted URLs).
    upload_progress:
        Percent of the request body sent, ``0``-``100``.
    src:
        Final image URL.  ``None`` until an upload succeeds (uploads) or
        set from the start (pasted URLs).
    file:
        The dropped file, retained while its upload is in flight so the
        host can render a local preview; cleared once the upload succeeds
        or fails.
    errors:
        ``None`` until the first error; then the list of folded errors.
    """

    is_upload: bool
    upload_progress: int = 0
    src: str | None = None
    file: FileHandle | None = None
    errors: list[UploadError] | None = None

    def as_dict(self) -> dict[str, Any]:
        """Plain-mapping view for hosts that store node data as dicts."""
        return {
            "is_upload": self.is_upload,
            "upload_progress": self.upload_progress,
            "src": self.src,
            "file": self.file,
            "errors": list(self.errors) if self.errors is not None else None,
        }


# ---------------------------------------------------------------------------
# Upload outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Progress:
    """Transfer progress tick, ``floor(100 * loaded / total)``."""

    percent: int

    @property
    def terminal(self) -> bool:
        return False


@dataclass(frozen=True)
class Success:
    """The upload finished with a 2xx status.

    ``response`` is the parsed JSON body, the raw text, or the invalid-JSON
    placeholder; interpreting it is up to ``get_image_url``.
    """

    response: Any

    @property
    def terminal(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """The upload failed; ``error`` says why."""

    error: UploadError

    @property
    def terminal(self) -> bool:
        return True


UploadOutcome = Union[Progress, Success, Failure]
