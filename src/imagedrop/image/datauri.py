"""Convert ``data:`` URIs into :class:`~imagedrop.models.FileHandle` objects.

Clipboard images sometimes arrive as ``data:image/png;base64,...`` strings
rather than files.  Turning them into a file handle lets them go through
the same filtering and upload path as dropped files.
"""

from __future__ import annotations

import base64
import binascii
import re
from urllib.parse import unquote_to_bytes

from imagedrop.errors import ImageParseError
from imagedrop.image.detect import mime_to_extension
from imagedrop.models import FileHandle

# data:[<mediatype>][;base64],<data>
_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[^;,]+)?(?P<params>(?:;[^;,]+)*?)(?:;(?P<encoding>base64))?,(?P<data>.*)$",
    re.IGNORECASE | re.DOTALL,
)


def parse_data_uri(src: str) -> tuple[str, bytes]:
    """Parse a data URI and return ``(mime_type, decoded_bytes)``.

    Raises
    ------
    ImageParseError
        If the data URI is malformed or cannot be decoded.
    """
    match = _DATA_URI_RE.match(src.strip())
    if not match:
        raise ImageParseError(
            message="Invalid data URI format",
            context={"src": _truncate_src(src), "reason": "regex_no_match"},
        )

    mime_type = (match.group("mime") or "text/plain").strip().lower()
    encoding = match.group("encoding")
    raw_data = match.group("data")

    if encoding:
        try:
            decoded = base64.b64decode(raw_data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ImageParseError(
                message="Failed to decode base64 data URI",
                context={"src": _truncate_src(src), "reason": "base64_decode_error"},
                cause=exc,
            ) from exc
    else:
        decoded = unquote_to_bytes(raw_data)

    return mime_type, decoded


def file_from_data_uri(src: str, name: str | None = None) -> FileHandle:
    """Build a :class:`FileHandle` from a data URI.

    Parameters
    ----------
    src:
        The ``data:`` URI.
    name:
        File name for the upload.  Defaults to ``"image.<ext>"`` with the
        extension derived from the URI's MIME type.
    """
    mime_type, data = parse_data_uri(src)
    if name is None:
        ext = mime_to_extension(mime_type) or "bin"
        name = f"image.{ext}"
    return FileHandle(name=name, content_type=mime_type, data=data)


def _truncate_src(src: str, max_len: int = 200) -> str:
    """Truncate a source string for inclusion in error context."""
    if len(src) <= max_len:
        return src
    return src[:max_len] + "..."
