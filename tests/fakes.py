"""In-memory host editor fakes and helpers shared by the tests.

The host editor is replaced by small in-memory fakes that satisfy the
protocols in :mod:`imagedrop.host`.  ``FakeEditor`` records a snapshot of
every node's data on each ``on_change`` so tests can inspect the full
history of a node, not just its final state.
"""

from __future__ import annotations

import copy
from collections.abc import Callable
from typing import Any

import httpx

from imagedrop.models import FileHandle, ImageNodeData
from imagedrop.upload import AsyncUploader

# ---------------------------------------------------------------------------
# Fake host editor
# ---------------------------------------------------------------------------


class FakeDocument:
    def __init__(
        self,
        nodes: dict[str, ImageNodeData] | None = None,
        placements: list[tuple[str, Any]] | None = None,
        selection: Any = None,
    ) -> None:
        self.nodes = nodes or {}
        self.placements = placements or []
        self.selection = selection

    def transform(self) -> FakeTransform:
        return FakeTransform(self)


class FakeTransform:
    def __init__(self, document: FakeDocument) -> None:
        self.nodes = dict(document.nodes)
        self.placements = list(document.placements)
        self.selection = document.selection
        self.applied = 0

    def select(self, position: Any) -> FakeTransform:
        self.selection = position
        return self

    def insert_node(self, key: str, data: ImageNodeData) -> FakeTransform:
        self.nodes[key] = data
        self.placements.append((key, self.selection))
        return self

    def set_node_data(self, key: str, data: ImageNodeData) -> FakeTransform:
        if key not in self.nodes:
            raise KeyError(key)
        self.nodes[key] = data
        return self

    def apply(self) -> FakeDocument:
        self.applied += 1
        return FakeDocument(dict(self.nodes), list(self.placements), self.selection)


class CopyingDocument(FakeDocument):
    """Document whose transforms store node data by value, not by reference."""

    def transform(self) -> CopyingTransform:
        return CopyingTransform(self)


class CopyingTransform(FakeTransform):
    def insert_node(self, key: str, data: ImageNodeData) -> CopyingTransform:
        super().insert_node(key, copy.copy(data))
        return self

    def set_node_data(self, key: str, data: ImageNodeData) -> CopyingTransform:
        super().set_node_data(key, copy.copy(data))
        return self

    def apply(self) -> CopyingDocument:
        self.applied += 1
        return CopyingDocument(dict(self.nodes), list(self.placements), self.selection)


class FakeEditor:
    def __init__(self, document: FakeDocument | None = None) -> None:
        self.document = document or FakeDocument()
        self.changes: list[FakeDocument] = []
        self.snapshots: list[dict[str, dict[str, Any]]] = []

    def on_change(self, document: FakeDocument) -> None:
        self.document = document
        self.changes.append(document)
        self.snapshots.append({k: v.as_dict() for k, v in document.nodes.items()})

    def get_current_document(self) -> FakeDocument:
        return self.document

    def history(self, key: str) -> list[dict[str, Any]]:
        """Every recorded state of node *key*, oldest first."""
        return [snap[key] for snap in self.snapshots if key in snap]


class ApplyRecorder:
    """``apply_transform`` double that inserts the node and records the call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, ImageNodeData]] = []

    def __call__(self, transform: FakeTransform, key: str, data: ImageNodeData) -> FakeTransform:
        self.calls.append((key, data))
        return transform.insert_node(key, data)

    @property
    def keys(self) -> list[str]:
        return [key for key, _ in self.calls]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def png_file(name: str = "photo.png", size: int = 1000) -> FileHandle:
    return FileHandle(name=name, content_type="image/png", data=b"\x89PNG" + b"x" * (size - 4))


def json_handler(body: dict, status: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status, json=body)
    return handler


def make_uploader(
    handler: Callable[[httpx.Request], Any],
    chunk_size: int = 256,
) -> AsyncUploader:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AsyncUploader(chunk_size=chunk_size, client=client)


