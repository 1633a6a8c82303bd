"""
Host Protocol - Contract for the design application hosting the plugin.

The host owns the document model. The plugin only needs:
- the current selection and each layer's export slices
- writing a slice to disk
- string tags stored on layers and documents
- files dropped onto the panel
- opening a local file in the default external viewer
"""

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

__all__ = ["DocumentProtocol", "ExportSlice", "HostContextProtocol"]


@runtime_checkable
class ExportSlice(Protocol):
    """One configured export rendering of a layer."""

    @property
    def name(self) -> str:
        """Export name; may contain '/' for grouped exports."""
        ...

    @property
    def format(self) -> str:
        """File format extension, e.g. 'png', 'svg', 'pdf'."""
        ...


@runtime_checkable
class DocumentProtocol(Protocol):
    """An open host document."""

    def selected_layers(self) -> list[Any]:
        """Layers in the current selection, in selection order."""
        ...

    def export_slices(self, layer: Any) -> list[ExportSlice]:
        """Slices defined by the layer's export configuration (may be empty)."""
        ...

    def save_slice(self, export_slice: ExportSlice, path: Path) -> None:
        """Render a slice to ``path``."""
        ...

    def layer_value(self, key: str, layer: Any) -> str | None:
        """Read a tag stored on a layer."""
        ...

    def set_layer_value(self, key: str, value: str, layer: Any) -> None:
        """Store a tag on a layer, overwriting any previous value."""
        ...

    def document_value(self, key: str) -> str | None:
        """Read a tag stored on the document."""
        ...

    def set_document_value(self, key: str, value: str) -> None:
        """Store a tag on the document."""
        ...


@runtime_checkable
class HostContextProtocol(Protocol):
    """Entry point the host hands to the plugin on each command."""

    def document(self) -> DocumentProtocol | None:
        """The current document, or None if it cannot be resolved."""
        ...

    def dropped_files(self) -> list[Path]:
        """Files provided by the current drag-and-drop gesture."""
        ...

    def open_file(self, path: Path) -> None:
        """Hand a local file to the default external viewer."""
        ...
