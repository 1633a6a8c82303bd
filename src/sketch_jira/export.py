"""
Export Engine - selected layers to files on disk, tagged with an issue.

Layers are exported one after another in selection order: every export
reads and writes host document state. Tags live on the host objects
themselves, under fixed property names, never in plugin storage.

A document that cannot be resolved turns every operation into a logged
no-op with an empty result rather than an error. Failures writing a slice
file propagate to the caller.
"""

import tempfile
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import structlog

from .analytics import Analytics
from .config import config
from .contracts import DocumentProtocol, ExportSlice, HostContextProtocol
from .errors import ResolutionError

__all__ = [
    "DOCUMENT_LAST_VIEWED_ISSUE",
    "ExportEngine",
    "LAYER_LAST_EXPORTED_ISSUE",
    "filename_for_slice",
]

logger = structlog.get_logger(__name__)

LAYER_LAST_EXPORTED_ISSUE = "jira.lastExportedIssue"
DOCUMENT_LAST_VIEWED_ISSUE = "jira.lastViewedIssue"

T = TypeVar("T")


def filename_for_slice(export_slice: ExportSlice) -> str:
    """'icons/add' exported as png -> 'icons_add.png'. Only '/' is replaced."""
    return f"{export_slice.name.replace('/', '_')}.{export_slice.format}"


class ExportEngine:
    """Exports the host selection and tracks which issue it went to."""

    def __init__(
        self,
        context: HostContextProtocol,
        analytics: Analytics | None = None,
        export_root: Path | None = None,
    ) -> None:
        self._context = context
        self._analytics = analytics or Analytics()
        self._export_root = export_root or config.export_dir

    def export_selection(self, issue_key: str) -> list[str]:
        """Export every selected layer's slices into one fresh directory.

        Returns:
            Absolute paths of the written files, in export order
        """
        exported: list[str] = []

        def run(document: DocumentProtocol) -> None:
            layers = document.selected_layers()
            if not layers:
                return
            directory = self._fresh_directory()
            for layer in layers:
                exported.extend(self._export_layer(document, layer, directory))
                self._tag_layer(document, layer, issue_key)

            logger.info("selection_exported", issue_key=issue_key, files=len(exported), dir=str(directory))
            if len(layers) > 1:
                self._analytics("exportSelectedLayers", {"count": len(layers)})
            else:
                self._analytics("exportSelectedLayer")

        self._with_document(run)
        return exported

    def get_last_exported_issue_for_selection(self) -> str | None:
        """Tag of the first selected layer that has one."""

        def find(document: DocumentProtocol) -> str | None:
            for layer in document.selected_layers():
                issue_key = document.layer_value(LAYER_LAST_EXPORTED_ISSUE, layer)
                if issue_key:
                    return str(issue_key)
            return None

        return self._with_document(find)

    def set_last_viewed_issue_for_document(self, issue_key: str) -> None:
        self._with_document(
            lambda document: document.set_document_value(DOCUMENT_LAST_VIEWED_ISSUE, issue_key)
        )

    def get_last_viewed_issue_for_document(self) -> str | None:
        def read(document: DocumentProtocol) -> str | None:
            issue_key = document.document_value(DOCUMENT_LAST_VIEWED_ISSUE)
            return str(issue_key) if issue_key else None

        return self._with_document(read)

    def are_layers_selected(self) -> bool:
        return bool(self._with_document(lambda document: len(document.selected_layers()) > 0))

    def _export_layer(self, document: DocumentProtocol, layer: Any, directory: Path) -> list[str]:
        paths = []
        for export_slice in document.export_slices(layer):
            path = directory / filename_for_slice(export_slice)
            document.save_slice(export_slice, path)
            paths.append(str(path.resolve()))

        if len(paths) > 1:
            self._analytics("exportMultipleFormats", {"count": len(paths)})
        else:
            self._analytics("exportSingleFormat")
        return paths

    def _tag_layer(self, document: DocumentProtocol, layer: Any, issue_key: str) -> None:
        try:
            document.set_layer_value(LAYER_LAST_EXPORTED_ISSUE, issue_key, layer)
        except Exception as e:
            logger.warning("layer_tag_failed", issue_key=issue_key, error=str(e))

    def _fresh_directory(self) -> Path:
        self._export_root.mkdir(parents=True, exist_ok=True)
        stamp = int(time.time() * 1000)
        return Path(tempfile.mkdtemp(prefix=f"export-{stamp}-", dir=self._export_root))

    def _with_document(self, fn: Callable[[DocumentProtocol], T]) -> T | None:
        try:
            document = self._context.document()
            if document is None:
                raise ResolutionError("Couldn't resolve document from context")
        except ResolutionError as e:
            logger.error("document_unresolved", error=str(e))
            return None
        return fn(document)
