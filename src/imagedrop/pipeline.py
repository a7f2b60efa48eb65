"""Insertion pipeline: placeholders, uploads, and document re-applies.

Each inserted image goes through the same life cycle:

1. **Filter** -- drop the file or URL if its extension is not allowed.
2. **Place** -- call ``apply_transform(transform, key, data)`` right away
   and commit the transform through ``editor.on_change``.  An awaitable
   result is committed once it settles.
3. **Upload** (dropped files only, when uploading is enabled) -- consume
   the uploader's outcome stream in a background task.  Every outcome is
   folded into the node's :class:`~imagedrop.models.ImageNodeData` and
   followed by a re-apply against the editor's current document.  Uploads
   of one drop wait until every placeholder of that drop has landed.
   The file is released once the upload ends, whether it succeeded or
   failed.

The document snapshot passed in is always returned unchanged; visible
changes reach the host only through ``editor.on_change``.  Nothing that
fails after the synchronous boundary is raised into host code: errors
are appended to the node's ``errors`` list and logged.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Coroutine
from contextlib import aclosing
from typing import Any

from imagedrop.config import PluginConfig
from imagedrop.errors import ImageUrlError, ImageVerificationError, UploadError
from imagedrop.host import Document, Editor, Transform
from imagedrop.image import (
    extension_allowed,
    first_image_src,
    is_image_url,
    is_url,
    mime_to_extension,
    url_extension,
    verify_image_url,
)
from imagedrop.models import (
    FilesEvent,
    HtmlEvent,
    ImageNodeData,
    InsertionKind,
    Progress,
    Success,
    TextEvent,
    generate_key,
)
from imagedrop.observability import NoopMetricsHook, get_logger
from imagedrop.upload import AsyncUploader

log = get_logger("imagedrop.pipeline")


class InsertionPipeline:
    """Turns classified insertion events into placeholder nodes and uploads.

    Parameters
    ----------
    config:
        The validated plugin configuration, shared by reference.
    uploader:
        Uploader used for dropped files.  Defaults to one built from
        *config*.
    """

    def __init__(
        self,
        config: PluginConfig,
        uploader: AsyncUploader | None = None,
    ) -> None:
        self._config = config
        self._uploader = uploader if uploader is not None else AsyncUploader.from_config(config)
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._uploads_in_flight = 0

    @property
    def uploader(self) -> AsyncUploader:
        return self._uploader

    @property
    def pending(self) -> int:
        """Number of background tasks that have not finished yet."""
        return len(self._tasks)

    # -- routines ----------------------------------------------------------

    def insert_files(self, event: FilesEvent, document: Document, editor: Editor) -> Document:
        """Insert one placeholder per allowed file, in order, and start uploads."""
        transform = document.transform()
        uploads: list[tuple[str, ImageNodeData, asyncio.Task[bool] | None]] = []

        for file in event.files:
            if self._config.allowed_extensions is not None:
                ext = mime_to_extension(file.content_type)
                if not extension_allowed(ext, self._config.allowed_extensions):
                    log.debug(
                        "File skipped by extension filter",
                        extra={
                            "extra_fields": {
                                "op": "insert_files",
                                "file": file.name,
                                "content_type": file.content_type,
                                "extension": ext,
                            }
                        },
                    )
                    continue

            data = ImageNodeData(
                is_upload=self._config.upload_enabled,
                upload_progress=0,
                src=None,
                file=file,
            )
            key, placement = self._process(
                transform, editor, data, event.target, InsertionKind.FILES,
            )
            if data.is_upload:
                uploads.append((key, data, placement))

        # Every async placement commits the shared batch transform, so no
        # upload may fold an outcome until the last of them has landed.
        batch = tuple(placement for _, _, placement in uploads if placement is not None)
        for key, data, placement in uploads:
            self._spawn(
                self._drive_upload(editor, key, data, placement, batch),
                name=f"imagedrop-upload-{key}",
            )
        return document

    def insert_html(self, event: HtmlEvent, document: Document, editor: Editor) -> Document:
        """Insert the image when the pasted fragment starts with an ``<img>``."""
        src = first_image_src(event.markup)
        if src is None:
            return document
        return self._insert_url(src, event.target, document, editor, InsertionKind.HTML)

    def insert_text(self, event: TextEvent, document: Document, editor: Editor) -> Document:
        """Insert the image when the pasted text is an image URL."""
        text = event.text.strip()
        if not is_url(text) or not is_image_url(text):
            return document
        return self._insert_url(text, event.target, document, editor, InsertionKind.TEXT)

    def _insert_url(
        self,
        src: str,
        target: Any,
        document: Document,
        editor: Editor,
        kind: InsertionKind,
    ) -> Document:
        if not extension_allowed(url_extension(src), self._config.allowed_extensions):
            log.debug(
                "URL skipped by extension filter",
                extra={"extra_fields": {"op": f"insert_{kind.value}", "src": src}},
            )
            return document

        transform = editor.get_current_document().transform()
        data = ImageNodeData(is_upload=False, upload_progress=0, src=src, file=None)
        self._process(transform, editor, data, target, kind)
        return document

    # -- placement ---------------------------------------------------------

    def _process(
        self,
        transform: Transform,
        editor: Editor,
        data: ImageNodeData,
        target: Any,
        kind: InsertionKind,
    ) -> tuple[str, asyncio.Task[bool] | None]:
        key = generate_key()
        if target is not None:
            transform.select(target)

        placement = self._place(transform, editor, key, data, target)
        self._metrics.increment(
            "imagedrop.placeholders_total", tags={"kind": kind.value},
        )
        return key, placement

    def _place(
        self,
        transform: Transform,
        editor: Editor,
        key: str,
        data: ImageNodeData,
        target: Any,
    ) -> asyncio.Task[bool] | None:
        """Call ``apply_transform`` now; commit now or once it settles.

        Returns ``None`` when the placeholder is already committed, or the
        task that resolves to whether it landed.
        """
        result = self._config.apply_transform(transform, key, data)
        if not inspect.isawaitable(result):
            self._commit(transform, editor)
            return None
        return self._spawn(
            self._settle_placement(result, transform, editor, key, target),
            name=f"imagedrop-place-{key}",
        )

    async def _settle_placement(
        self,
        pending: Awaitable[Any],
        transform: Transform,
        editor: Editor,
        key: str,
        target: Any,
    ) -> bool:
        # The batch shares one transform; restore this file's position.
        if target is not None:
            transform.select(target)
        try:
            await pending
            self._commit(transform, editor)
        except Exception:
            log.exception(
                "Placeholder insertion failed",
                extra={"extra_fields": {"op": "apply_transform", "key": key}},
            )
            return False
        return True

    @staticmethod
    def _commit(transform: Transform, editor: Editor) -> None:
        editor.on_change(transform.apply())

    @staticmethod
    def _reapply(editor: Editor, key: str, data: ImageNodeData) -> None:
        transform = editor.get_current_document().transform()
        transform.set_node_data(key, data)
        editor.on_change(transform.apply())

    # -- upload flow -------------------------------------------------------

    async def _drive_upload(
        self,
        editor: Editor,
        key: str,
        data: ImageNodeData,
        placement: asyncio.Task[bool] | None,
        batch: tuple[asyncio.Task[bool], ...] = (),
    ) -> None:
        """Fold the uploader's outcomes for *key* into *data*.

        The first outcome is held back until every placement in *batch*
        has settled; the upload is abandoned when its own did not land.
        """
        config = self._config
        assert data.file is not None
        file = data.file

        started = time.monotonic()
        result = "failure"
        self._uploads_in_flight += 1
        self._metrics.gauge("imagedrop.uploads_in_flight", self._uploads_in_flight)

        outcomes = self._uploader.upload(
            file,
            url=config.upload_url or "",
            method=config.upload_method,
            param_name=config.upload_param_name,
            params=config.upload_params,
            headers=config.upload_headers,
        )
        try:
            async with aclosing(outcomes):
                async for outcome in outcomes:
                    if batch:
                        await asyncio.wait(batch)
                        batch = ()
                    if placement is not None:
                        landed = await placement
                        placement = None
                        if not landed:
                            log.warning(
                                "Upload abandoned; placeholder was never inserted",
                                extra={"extra_fields": {"op": "upload", "key": key}},
                            )
                            result = "abandoned"
                            return

                    if isinstance(outcome, Progress):
                        data.upload_progress = outcome.percent
                        self._reapply(editor, key, data)
                    elif isinstance(outcome, Success):
                        if await self._complete(editor, key, data, outcome.response):
                            result = "success"
                    else:
                        self._fold_error(editor, key, data, outcome.error)
        finally:
            self._uploads_in_flight -= 1
            self._metrics.gauge("imagedrop.uploads_in_flight", self._uploads_in_flight)
            self._metrics.timing(
                "imagedrop.upload_duration_ms",
                (time.monotonic() - started) * 1000,
                tags={"outcome": result},
            )

    async def _complete(
        self,
        editor: Editor,
        key: str,
        data: ImageNodeData,
        response: Any,
    ) -> bool:
        """Resolve the final URL and commit it; fold any failure instead."""
        data.upload_progress = 100

        try:
            src = self._config.get_image_url(response)
            if inspect.isawaitable(src):
                src = await src
        except Exception as exc:
            self._fold_error(editor, key, data, ImageUrlError(
                message=f"get_image_url failed: {exc}",
                context={"key": key},
                cause=exc,
            ))
            return False

        if not isinstance(src, str) or not src:
            self._fold_error(editor, key, data, ImageUrlError(
                message=f"get_image_url returned no URL (got {src!r})",
                context={"key": key},
            ))
            return False

        if self._config.verify_image_url:
            try:
                await verify_image_url(self._uploader.client, src)
            except ImageVerificationError as exc:
                self._fold_error(editor, key, data, exc)
                return False

        data.src = src
        data.file = None
        self._metrics.increment("imagedrop.upload_success_total")
        log.info(
            "Upload complete",
            extra={"extra_fields": {"op": "upload", "key": key, "src": src}},
        )
        self._reapply(editor, key, data)
        return True

    def _fold_error(
        self,
        editor: Editor,
        key: str,
        data: ImageNodeData,
        error: UploadError,
    ) -> None:
        if data.errors is None:
            data.errors = []
        data.errors.append(error)

        log.error(
            "Upload failed",
            extra={
                "extra_fields": {
                    **error.context,
                    "op": "upload",
                    "key": key,
                    "file": data.file.name if data.file is not None else None,
                    "code": error.code,
                    "error": error.message,
                }
            },
        )
        self._metrics.increment(
            "imagedrop.upload_failure_total", tags={"code": error.code},
        )
        # Every folded error ends its upload.
        data.file = None
        self._reapply(editor, key, data)

    # -- task bookkeeping --------------------------------------------------

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.error(
                "Background insertion task failed",
                exc_info=exc,
                extra={"extra_fields": {"op": "insert", "task": task.get_name()}},
            )

    async def wait_idle(self) -> None:
        """Wait until every placement and upload started so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
