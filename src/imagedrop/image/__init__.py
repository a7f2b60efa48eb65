"""Image helpers for classifying and checking inserted images.

Exports
-------
mime_to_extension / url_extension
    Derive a comparable extension from a MIME type or a URL.
is_url / is_image_url
    Decide whether pasted text is an image URL.
extension_allowed
    Case-insensitive allow-list check.
first_image_src
    Extract the image URL from pasted HTML.
file_from_data_uri / parse_data_uri
    Turn ``data:`` URIs into file handles.
verify_image_url
    Check that a URL serves an image before it is committed.
"""

from .datauri import file_from_data_uri, parse_data_uri
from .detect import (
    extension_allowed,
    is_image_url,
    is_url,
    mime_to_extension,
    url_extension,
)
from .markup import first_image_src
from .preload import verify_image_url

__all__ = [
    "extension_allowed",
    "file_from_data_uri",
    "first_image_src",
    "is_image_url",
    "is_url",
    "mime_to_extension",
    "parse_data_uri",
    "url_extension",
    "verify_image_url",
]
