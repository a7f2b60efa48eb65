"""Plugin configuration for imagedrop.

:class:`PluginConfig` is a frozen dataclass that captures every option
accepted at plugin construction.  It is validated once, in
``__post_init__``, and never changes afterwards; the plugin passes the
same instance by reference to every operation.

:func:`validate_config` builds a config from a loose options mapping,
accepting both the camelCase option names used by editor integrations
(``applyTransform``, ``uploadUrl``, ...) and the dataclass field names.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from imagedrop.errors import ConfigError

# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

MISSING_APPLY_TRANSFORM = "You must supply an applyTransform function."
MISSING_UPLOAD_URL = "You must supply uploadUrl to upload images"
MISSING_GET_IMAGE_URL = "You must supply a getImageUrl function to upload images."

DEFAULT_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PluginConfig:
    """Complete configuration for a :class:`DropOrPasteImages` plugin.

    Parameters
    ----------
    apply_transform:
        ``(transform, key, data) -> Any``.  Inserts the placeholder node
        for *key* with *data* into *transform*.  **Required.**  May return
        an awaitable; the plugin commits the transform once it settles.
    upload_enabled:
        Upload dropped files to ``upload_url``.  When ``False`` files are
        inserted with ``is_upload=False`` and the host renders them
        locally.
    upload_url:
        Endpoint receiving the multipart upload.  Required when
        ``upload_enabled`` is set.
    upload_method:
        HTTP method of the upload request.
    upload_param_name:
        Form field name carrying the file.
    upload_params:
        Extra form fields, sent before the file field.
    upload_headers:
        Extra request headers.  Values are masked in ``repr``.
    get_image_url:
        ``(response) -> str``, possibly async.  Maps the parsed upload
        response to the final image URL.  Required when
        ``upload_enabled`` is set.
    allowed_extensions:
        Optional allow-list of extensions.  Normalised to lower case
        without a leading dot; matching is case-insensitive.  ``None``
        accepts everything.
    verify_image_url:
        Fetch the final URL before committing it to ``src``; a URL that
        does not serve an image is folded into the node's errors.
    timeout_seconds:
        HTTP timeout for uploads and verification requests.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    upload_chunk_size:
        Body chunk size in bytes; one progress tick is emitted per chunk.
    metrics:
        Optional :class:`~imagedrop.observability.MetricsHook`.
    """

    # ── Insertion ───────────────────────────────────────────────────────
    apply_transform: Callable[..., Any] | None = None

    allowed_extensions: frozenset[str] | None = None

    # ── Upload ──────────────────────────────────────────────────────────
    upload_enabled: bool = False

    upload_url: str | None = None

    upload_method: str = "post"

    upload_param_name: str = "file"

    upload_params: Mapping[str, str] = field(default_factory=dict)

    upload_headers: Mapping[str, str] = field(default_factory=dict)

    get_image_url: Callable[[Any], str | Awaitable[str]] | None = None

    verify_image_url: bool = False

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    upload_chunk_size: int = DEFAULT_CHUNK_SIZE

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    def __post_init__(self) -> None:
        """Normalise and validate; raise :class:`ConfigError` listing every violation."""
        # Frozen dataclass: normalised values go through object.__setattr__.
        object.__setattr__(
            self, "allowed_extensions", normalize_extensions(self.allowed_extensions),
        )
        object.__setattr__(
            self, "upload_params", MappingProxyType(dict(self.upload_params)),
        )
        object.__setattr__(
            self, "upload_headers", MappingProxyType(dict(self.upload_headers)),
        )

        errors = collect_config_errors(self)
        if errors:
            raise ConfigError(errors)

    def __repr__(self) -> str:
        """Mask header values so credentials never reach logs."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "upload_headers":
                masked = {k: "****" for k in val}
                parts.append(f"upload_headers={masked!r}")
            elif f.name == "upload_params":
                parts.append(f"{f.name}={dict(val)!r}")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"PluginConfig({', '.join(parts)})"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def normalize_extensions(extensions: Iterable[str] | None) -> frozenset[str] | None:
    """Lower-case *extensions* and strip any leading dot.

    A bare string is treated as a single extension rather than an
    iterable of characters.
    """
    if extensions is None:
        return None
    if isinstance(extensions, str):
        extensions = [extensions]
    return frozenset(ext.strip().lstrip(".").lower() for ext in extensions)


def collect_config_errors(config: PluginConfig) -> list[str]:
    """Return every violation in *config*, in check order.

    All checks run; none short-circuits another.
    """
    errors: list[str] = []

    if not callable(config.apply_transform):
        errors.append(MISSING_APPLY_TRANSFORM)

    if config.upload_enabled and not config.upload_url:
        errors.append(MISSING_UPLOAD_URL)
    if config.upload_enabled and not callable(config.get_image_url):
        errors.append(MISSING_GET_IMAGE_URL)

    if config.timeout_seconds <= 0:
        errors.append(f"timeout_seconds must be > 0, got {config.timeout_seconds}")
    if config.upload_chunk_size < 1:
        errors.append(f"upload_chunk_size must be >= 1, got {config.upload_chunk_size}")

    return errors


# camelCase option name -> dataclass field name.
_OPTION_ALIASES: dict[str, str] = {
    "applyTransform": "apply_transform",
    "uploadImages": "upload_enabled",
    "uploadEnabled": "upload_enabled",
    "uploadUrl": "upload_url",
    "uploadMethod": "upload_method",
    "uploadParamName": "upload_param_name",
    "uploadParams": "upload_params",
    "uploadHeaders": "upload_headers",
    "getImageUrl": "get_image_url",
    "extensions": "allowed_extensions",
    "allowedExtensions": "allowed_extensions",
    "verifyImageUrl": "verify_image_url",
    "timeoutSeconds": "timeout_seconds",
    "httpProxy": "http_proxy",
    "uploadChunkSize": "upload_chunk_size",
}

_FIELD_NAMES = frozenset(f.name for f in dataclasses.fields(PluginConfig))


def validate_config(options: Mapping[str, Any]) -> PluginConfig:
    """Build a validated, defaulted :class:`PluginConfig` from *options*.

    Parameters
    ----------
    options:
        Plugin options keyed by camelCase option name or by field name.
        ``None`` values are treated as absent so the field default applies.

    Returns
    -------
    PluginConfig
        The validated configuration.

    Raises
    ------
    ConfigError
        If any option is unknown or any requirement is violated.  The
        error lists every problem found.
    """
    kwargs: dict[str, Any] = {}
    unknown: list[str] = []

    for name, value in options.items():
        field_name = _OPTION_ALIASES.get(name, name)
        if field_name not in _FIELD_NAMES:
            unknown.append(f"Unknown option: {name}")
            continue
        if value is None:
            continue
        kwargs[field_name] = value

    try:
        config = PluginConfig(**kwargs)
    except ConfigError as exc:
        raise ConfigError(unknown + exc.errors) from None

    if unknown:
        raise ConfigError(unknown)
    return config
