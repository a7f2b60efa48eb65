"""Error hierarchy for imagedrop.

Every public error class inherits from ImageDropError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Only :class:`ConfigError` is ever raised into host editor code.  Every
error produced by the asynchronous upload flow is folded into the
affected node's ``errors`` list and written to the diagnostic logger.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error the plugin can produce."""

    CONFIG_ERROR = "CONFIG_ERROR"
    IMAGE_PARSE_ERROR = "IMAGE_PARSE_ERROR"
    UPLOAD_ERROR = "UPLOAD_ERROR"
    UPLOAD_STATUS_ERROR = "UPLOAD_STATUS_ERROR"
    UPLOAD_TRANSPORT_ERROR = "UPLOAD_TRANSPORT_ERROR"
    IMAGE_URL_ERROR = "IMAGE_URL_ERROR"
    IMAGE_VERIFICATION_ERROR = "IMAGE_VERIFICATION_ERROR"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class ImageDropError(Exception):
    """Base exception for all imagedrop errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys and expected types are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Construction errors
# ---------------------------------------------------------------------------

class ConfigError(ImageDropError):
    """The plugin options are invalid.

    Raised synchronously at construction.  ``errors`` holds every
    violation found, in check order, not just the first one.

    Context keys: ``errors``.
    """

    def __init__(
        self,
        errors: list[str],
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.errors: list[str] = list(errors)
        super().__init__(
            code=ErrorCode.CONFIG_ERROR,
            message="; ".join(self.errors),
            context={"errors": self.errors, **(context or {})},
            cause=cause,
        )


class ImageParseError(ImageDropError):
    """A data-URI image could not be decoded (malformed base64 / header).

    Context keys: ``src``, ``reason``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_PARSE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Upload flow errors (folded into node data, never raised to the host)
# ---------------------------------------------------------------------------

class UploadError(ImageDropError):
    """Base class for errors surfaced by the upload flow.

    Context varies by subclass.
    """

    def __init__(
        self,
        code: str = ErrorCode.UPLOAD_ERROR,
        message: str = "Upload error",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=code,
            message=message,
            context=context,
            cause=cause,
        )


class UploadStatusError(UploadError):
    """The upload endpoint answered with a status code of 300 or above.

    The response body is not inspected.

    Context keys: ``url``, ``status_code``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UPLOAD_STATUS_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class UploadTransportError(UploadError):
    """The transfer failed before a response arrived (network, timeout, abort).

    Context keys: ``url``, ``method``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.UPLOAD_TRANSPORT_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ImageUrlError(UploadError):
    """The caller-supplied ``get_image_url`` mapping raised or returned no URL.

    Context keys: ``key``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_URL_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class ImageVerificationError(UploadError):
    """The final image URL could not be fetched as an image.

    Context keys: ``url``, ``status_code``, ``content_type``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.IMAGE_VERIFICATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
