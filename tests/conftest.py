"""Shared test fixtures for the imagedrop test suite."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest
from fakes import ApplyRecorder, FakeEditor, json_handler, make_uploader, png_file

from imagedrop.config import PluginConfig
from imagedrop.models import FileHandle
from imagedrop.plugin import DropOrPasteImages
from imagedrop.upload import AsyncUploader


@pytest.fixture
def editor() -> FakeEditor:
    return FakeEditor()


@pytest.fixture
def apply_recorder() -> ApplyRecorder:
    return ApplyRecorder()


@pytest.fixture
def make_png() -> Callable[..., FileHandle]:
    return png_file


@pytest.fixture
def uploader_factory() -> Callable[..., AsyncUploader]:
    return make_uploader


@pytest.fixture
def make_plugin(apply_recorder: ApplyRecorder):
    """Factory for plugins wired to ``apply_recorder`` and a mock upload endpoint.

    Passing *handler* enables uploads to ``https://uploads.example.com/images``
    with ``get_image_url`` reading ``response["src"]``.
    """

    def _make(
        handler: Callable[[httpx.Request], Any] | None = None,
        chunk_size: int = 256,
        **overrides: Any,
    ) -> DropOrPasteImages:
        options: dict[str, Any] = {"apply_transform": apply_recorder}
        if handler is not None:
            options.update(
                upload_enabled=True,
                upload_url="https://uploads.example.com/images",
                get_image_url=lambda response: response["src"],
            )
        options.update(overrides)
        uploader = make_uploader(handler or json_handler({}), chunk_size=chunk_size)
        return DropOrPasteImages(PluginConfig(**options), uploader=uploader)

    return _make
