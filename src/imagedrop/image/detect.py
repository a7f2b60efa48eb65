"""Image source detection and extension filtering.

Derives a comparable extension from a file's declared MIME type or from
a URL path, decides whether pasted text is an image URL, and checks
extensions against the configured allow-list.
"""

from __future__ import annotations

import mimetypes
from collections.abc import Collection
from pathlib import PurePosixPath
from urllib.parse import unquote, urlparse

# Common image file extensions for URL heuristics.
_IMAGE_EXTENSIONS = frozenset({
    ".jpg", ".jpeg", ".jpe", ".png", ".gif", ".webp", ".svg",
    ".bmp", ".tiff", ".tif", ".ico", ".avif", ".heic", ".apng",
})

# Preferred extension per MIME type.  ``mimetypes`` is only consulted for
# types missing here, because its choice varies across platforms.
_MIME_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpeg",
    "image/jpg": "jpg",
    "image/pjpeg": "jpeg",
    "image/png": "png",
    "image/apng": "apng",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "image/bmp": "bmp",
    "image/x-ms-bmp": "bmp",
    "image/tiff": "tif",
    "image/x-icon": "ico",
    "image/vnd.microsoft.icon": "ico",
    "image/avif": "avif",
    "image/heic": "heic",
}

# Spellings treated as the same extension by the allow-list.
_EXTENSION_ALIASES: dict[str, str] = {
    "jpg": "jpeg",
    "jpe": "jpeg",
    "tif": "tiff",
}


def mime_to_extension(mime: str | None) -> str | None:
    """Return the extension (lower case, no dot) for a MIME type.

    Parameters after ``;`` are ignored.  Returns ``None`` for an empty
    or unknown type.
    """
    if not mime:
        return None
    base = mime.split(";", 1)[0].strip().lower()
    if not base:
        return None
    if base in _MIME_EXTENSIONS:
        return _MIME_EXTENSIONS[base]
    guessed = mimetypes.guess_extension(base)
    if guessed is None:
        return None
    return guessed.lstrip(".")


def url_extension(url: str) -> str:
    """Return the extension of *url*'s path, without the dot.

    Query string and fragment are ignored and the case is preserved.
    Returns ``""`` when the path has no extension.
    """
    path = unquote(urlparse(url.strip()).path)
    return PurePosixPath(path).suffix[1:]


def is_url(text: str) -> bool:
    """Return ``True`` if *text* is a single absolute ``http(s)`` URL.

    Any non-empty host is accepted, dotted or not; whitespace anywhere
    disqualifies the text.
    """
    if not text or any(ch.isspace() for ch in text):
        return False
    try:
        parsed = urlparse(text)
        host = parsed.hostname
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(host)


def is_image_url(text: str) -> bool:
    """Heuristic: ``True`` if *text*'s path ends in a known image extension."""
    suffix = "." + url_extension(text).lower()
    return suffix in _IMAGE_EXTENSIONS


def _canonical(ext: str) -> str:
    ext = ext.strip().lstrip(".").lower()
    return _EXTENSION_ALIASES.get(ext, ext)


def extension_allowed(ext: str | None, allowed: Collection[str] | None) -> bool:
    """Check *ext* against the *allowed* list, case-insensitively.

    ``allowed=None`` means no filtering.  A missing extension never passes
    a configured list.  ``jpg``/``jpeg``/``jpe`` and ``tif``/``tiff`` are
    treated as the same extension.
    """
    if allowed is None:
        return True
    if not ext:
        return False
    return _canonical(ext) in {_canonical(a) for a in allowed}
