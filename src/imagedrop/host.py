"""Protocols for the host editor collaborators.

imagedrop never owns the document model.  It consumes three capabilities
from the host editor, described structurally here so any editor binding
can satisfy them without inheriting from imagedrop classes.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Transform(Protocol):
    """Builder-style mutation handle over a document snapshot.

    Edits accumulate on the transform and are committed by :meth:`apply`.
    """

    def select(self, position: Any) -> Any:
        """Move the transform's cursor to *position*."""
        ...

    def set_node_data(self, key: str, data: Any) -> Any:
        """Replace the data of the node addressed by *key*."""
        ...

    def apply(self) -> Document:
        """Commit the accumulated edits and return the new document."""
        ...


@runtime_checkable
class Document(Protocol):
    """Immutable document snapshot."""

    def transform(self) -> Transform:
        ...


@runtime_checkable
class Editor(Protocol):
    """The editor instance the plugin is attached to."""

    def on_change(self, document: Document) -> Any:
        """Publish *document* as the editor's new visible state."""
        ...

    def get_current_document(self) -> Document:
        ...
