"""Editor plugin: drop and paste entry points.

:func:`create_plugin` validates the options and returns a
:class:`DropOrPasteImages` capability object exposing exactly the two
hooks an editor calls, :meth:`~DropOrPasteImages.on_drop` and
:meth:`~DropOrPasteImages.on_paste`.

Usage::

    from imagedrop import create_plugin

    plugin = create_plugin(
        applyTransform=lambda transform, key, data: transform.insert_node(
            {"type": "image", "key": key, "data": data}
        ),
        uploadImages=True,
        uploadUrl="https://example.com/upload",
        getImageUrl=lambda response: response["src"],
    )

    # inside the editor's event loop
    document = plugin.on_drop(event, {"type": "files", "files": files}, document, editor)
"""

from __future__ import annotations

from typing import Any

from imagedrop.config import PluginConfig, validate_config
from imagedrop.host import Document, Editor
from imagedrop.models import FilesEvent, HtmlEvent, TextEvent, coerce_event
from imagedrop.observability import get_logger
from imagedrop.pipeline import InsertionPipeline
from imagedrop.upload import AsyncUploader

log = get_logger("imagedrop.plugin")


class DropOrPasteImages:
    """Inserts images on drop or paste, uploading them when configured.

    Both hooks must be called from inside a running event loop, since
    placements and uploads continue as asyncio tasks after the hook
    returns.

    Parameters
    ----------
    config:
        A validated :class:`PluginConfig`.
    uploader:
        Optional uploader, e.g. one sharing an application-wide
        ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        config: PluginConfig,
        uploader: AsyncUploader | None = None,
    ) -> None:
        self._config = config
        self._owns_uploader = uploader is None
        self._pipeline = InsertionPipeline(config, uploader)

    @property
    def config(self) -> PluginConfig:
        return self._config

    # -- editor hooks ------------------------------------------------------

    def on_drop(self, event: Any, data: Any, document: Document, editor: Editor) -> Document:
        """Handle a drop.  Returns *document*; changes arrive via ``editor.on_change``."""
        return self._on_insert(event, data, document, editor)

    def on_paste(self, event: Any, data: Any, document: Document, editor: Editor) -> Document:
        """Handle a paste.  Same contract as :meth:`on_drop`."""
        return self._on_insert(event, data, document, editor)

    def _on_insert(self, event: Any, data: Any, document: Document, editor: Editor) -> Document:
        insertion = coerce_event(data)
        if insertion is None:
            log.debug(
                "Ignoring unrecognised insertion payload",
                extra={"extra_fields": {"op": "insert", "payload_type": type(data).__name__}},
            )
            return document

        if isinstance(insertion, FilesEvent):
            return self._pipeline.insert_files(insertion, document, editor)
        if isinstance(insertion, HtmlEvent):
            return self._pipeline.insert_html(insertion, document, editor)
        if isinstance(insertion, TextEvent):
            return self._pipeline.insert_text(insertion, document, editor)
        return document

    # -- lifecycle ---------------------------------------------------------

    async def wait_idle(self) -> None:
        """Wait for every placement and upload started so far."""
        await self._pipeline.wait_idle()

    async def aclose(self) -> None:
        """Finish pending work and close the plugin's own HTTP client."""
        await self._pipeline.wait_idle()
        if self._owns_uploader:
            await self._pipeline.uploader.aclose()

    async def __aenter__(self) -> DropOrPasteImages:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()


def create_plugin(uploader: AsyncUploader | None = None, **options: Any) -> DropOrPasteImages:
    """Validate *options* and build a :class:`DropOrPasteImages` plugin.

    Options may use the camelCase names (``applyTransform``,
    ``uploadImages``, ``uploadUrl``, ``extensions``, ...) or the
    :class:`PluginConfig` field names.

    Raises
    ------
    ConfigError
        Synchronously, listing every invalid or missing option.
    """
    return DropOrPasteImages(validate_config(options), uploader=uploader)
