"""Multipart file upload with progress reporting.

:class:`AsyncUploader` sends one file per call to a configured endpoint
and reports the transfer as an asynchronous stream of outcomes:

1. Encode the form: extra fields first, then the file (servers that
   stream-parse the body see the named fields before the file).
2. Stream the encoded body in fixed-size chunks, emitting
   ``Progress(floor(100 * loaded / total))`` as each chunk is handed to
   the transport.
3. On a status of ``300`` or above -- ``Failure(UploadStatusError)``.
4. On ``2xx`` -- ``Success(body)``, with the body parsed as JSON only when
   the response declares a JSON content type.
5. On a transport failure (connect, timeout, abort) --
   ``Failure(UploadTransportError)``.

Progress ticks travel through a queue fed by the body stream; the
terminal outcome is produced by the send task.  Exactly one terminal
outcome is emitted and it is always the last item.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Mapping
from typing import Any

import httpx

from imagedrop.config import DEFAULT_CHUNK_SIZE, PluginConfig
from imagedrop.errors import UploadError, UploadStatusError, UploadTransportError
from imagedrop.models import Failure, FileHandle, Progress, Success, UploadOutcome
from imagedrop.observability import get_logger

log = get_logger("imagedrop.upload")

INVALID_JSON = "INVALID JSON"
"""Placeholder response used when a JSON-typed body fails to parse."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def encode_multipart(
    file: FileHandle,
    url: str,
    param_name: str = "file",
    params: Mapping[str, str] | None = None,
) -> tuple[bytes, str]:
    """Encode *params* and *file* as ``multipart/form-data``.

    Returns
    -------
    tuple[bytes, str]
        ``(body, content_type)``; the content type carries the boundary.
    """
    request = httpx.Request(
        "POST",
        url,
        data=dict(params or {}),
        files={param_name: (file.name, file.data, file.content_type)},
    )
    return request.read(), request.headers["Content-Type"]


def parse_response(response: httpx.Response, url: str | None = None) -> Any:
    """Return the response body as JSON when declared as such, else as text.

    A body that declares ``application/json`` but does not parse yields
    :data:`INVALID_JSON` instead of failing the upload.
    """
    content_type = response.headers.get("content-type", "")
    if "application/json" not in content_type.lower():
        return response.text
    try:
        return response.json()
    except ValueError:
        log.warning(
            "Upload response declared JSON but did not parse",
            extra={
                "extra_fields": {
                    "op": "upload",
                    "url": url,
                    "status_code": response.status_code,
                }
            },
        )
        return INVALID_JSON


# ---------------------------------------------------------------------------
# Uploader
# ---------------------------------------------------------------------------

class AsyncUploader:
    """Asynchronous multipart uploader built on ``httpx.AsyncClient``.

    Parameters
    ----------
    timeout_seconds:
        HTTP timeout applied to the owned client.
    http_proxy:
        Optional proxy URL for the owned client.
    chunk_size:
        Body chunk size in bytes; one progress tick per chunk.
    client:
        An existing client to use instead of creating one.  An injected
        client is not closed by :meth:`aclose`.
    """

    def __init__(
        self,
        *,
        timeout_seconds: float = 30.0,
        http_proxy: str | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._chunk_size = chunk_size
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            proxy=http_proxy,
        )

    @classmethod
    def from_config(
        cls,
        config: PluginConfig,
        client: httpx.AsyncClient | None = None,
    ) -> AsyncUploader:
        """Build an uploader with the HTTP settings of *config*."""
        return cls(
            timeout_seconds=config.timeout_seconds,
            http_proxy=config.http_proxy,
            chunk_size=config.upload_chunk_size,
            client=client,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    # -- public API --------------------------------------------------------

    async def upload(
        self,
        file: FileHandle,
        *,
        url: str,
        method: str = "post",
        param_name: str = "file",
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> AsyncIterator[UploadOutcome]:
        """Upload *file* and yield its outcomes.

        Parameters
        ----------
        file:
            The file to send.
        url:
            Upload endpoint.
        method:
            HTTP method, case-insensitive.
        param_name:
            Form field name for the file.
        params:
            Extra form fields, encoded before the file.
        headers:
            Extra request headers.

        Yields
        ------
        UploadOutcome
            Zero or more :class:`Progress` items followed by exactly one
            :class:`Success` or :class:`Failure`.  Closing the iterator
            early cancels the in-flight request.
        """
        queue: asyncio.Queue[UploadOutcome] = asyncio.Queue()

        def _on_send_done(task: asyncio.Task[None]) -> None:
            if task.cancelled():
                return
            exc = task.exception()
            if exc is not None:
                log.error(
                    "Upload failed unexpectedly",
                    exc_info=exc,
                    extra={"extra_fields": {"op": "upload", "url": url}},
                )
                queue.put_nowait(Failure(UploadError(
                    message=f"Upload to {url} failed: {exc}",
                    context={"url": url, "method": method.upper()},
                    cause=exc if isinstance(exc, Exception) else None,
                )))

        task = asyncio.create_task(
            self._send(file, url, method, param_name, params, headers, queue)
        )
        task.add_done_callback(_on_send_done)

        try:
            while True:
                outcome = await queue.get()
                yield outcome
                if outcome.terminal:
                    return
        finally:
            if not task.done():
                task.cancel()

    async def _send(
        self,
        file: FileHandle,
        url: str,
        method: str,
        param_name: str,
        params: Mapping[str, str] | None,
        headers: Mapping[str, str] | None,
        queue: asyncio.Queue[UploadOutcome],
    ) -> None:
        chunk_size = self._chunk_size

        try:
            body, content_type = encode_multipart(file, url, param_name, params)
        except httpx.InvalidURL as exc:
            queue.put_nowait(Failure(UploadTransportError(
                message=f"Invalid upload URL {url!r}: {exc}",
                context={"url": url, "method": method.upper()},
                cause=exc,
            )))
            return

        total = len(body)

        async def _body() -> AsyncIterator[bytes]:
            loaded = 0
            for offset in range(0, total, chunk_size):
                piece = body[offset : offset + chunk_size]
                loaded += len(piece)
                queue.put_nowait(Progress(percent=100 * loaded // total))
                yield piece

        request_headers = {
            **dict(headers or {}),
            "Content-Type": content_type,
            "Content-Length": str(total),
        }

        try:
            response = await self._client.request(
                method.upper(), url, content=_body(), headers=request_headers,
            )
        except httpx.HTTPError as exc:
            log.warning(
                "Upload transport error",
                extra={
                    "extra_fields": {
                        "op": "upload",
                        "method": method.upper(),
                        "url": url,
                        "file": file.name,
                        "error": str(exc),
                    }
                },
            )
            queue.put_nowait(Failure(UploadTransportError(
                message=f"Upload to {url} failed: {exc}",
                context={"url": url, "method": method.upper()},
                cause=exc,
            )))
            return

        if response.status_code >= 300:
            queue.put_nowait(Failure(UploadStatusError(
                message=f"Upload to {url} answered with status {response.status_code}",
                context={"url": url, "status_code": response.status_code},
            )))
            return

        queue.put_nowait(Success(parse_response(response, url)))

    # -- lifecycle ---------------------------------------------------------

    async def aclose(self) -> None:
        """Close the owned HTTP client and release resources."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> AsyncUploader:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
