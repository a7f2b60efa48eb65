"""Upload of dropped files to a remote endpoint.

Exports
-------
AsyncUploader
    Multipart uploader emitting progress and a terminal outcome.
encode_multipart
    Encode form fields and a file as ``multipart/form-data``.
parse_response
    Decode an upload response body.
INVALID_JSON
    Placeholder response for JSON bodies that fail to parse.
"""

from .uploader import INVALID_JSON, AsyncUploader, encode_multipart, parse_response

__all__ = [
    "INVALID_JSON",
    "AsyncUploader",
    "encode_multipart",
    "parse_response",
]
