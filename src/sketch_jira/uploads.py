"""
Upload Controller.

Turns dropped or exported files into UploadJobs and pushes them to JIRA.
A job owns its transfer state until it resolves; the resulting Attachment is
handed back to the caller. The controller never touches an issue's
attachment list; the view-model applies results.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import structlog

from .analytics import Analytics
from .contracts import HostContextProtocol, IssueTrackerProtocol
from .export import ExportEngine
from .models import Attachment, FileDescriptor
from .progress import ProgressCallback

__all__ = ["UploadController", "UploadJob", "UploadState"]

logger = structlog.get_logger(__name__)

Uploader = Callable[[str, FileDescriptor, ProgressCallback | None], Awaitable[Attachment]]


class UploadState(Enum):
    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class UploadJob:
    """One file transfer.

    ``placeholder()`` gives the optimistic attachment the UI shows
    immediately; ``upload()`` can then be started independently.
    """

    file: FileDescriptor
    uploader: Uploader = field(repr=False)
    state: UploadState = UploadState.PENDING
    progress: float = 0.0
    attachment: Attachment | None = None
    error: Exception | None = None

    def placeholder(self) -> Attachment:
        return Attachment.placeholder(self.file)

    async def upload(self, issue_key: str, on_progress: ProgressCallback | None = None) -> Attachment:
        """Run the transfer. Raises the client error when it fails."""
        if self.state is not UploadState.PENDING:
            raise RuntimeError(f"Upload of {self.file.name} already {self.state.value}")

        def progress(fraction: float) -> None:
            self.progress = fraction
            if on_progress is not None:
                on_progress(fraction)

        self.state = UploadState.UPLOADING
        try:
            attachment = await self.uploader(issue_key, self.file, progress)
        except Exception as e:
            self.state = UploadState.FAILED
            self.error = e
            logger.warning("upload_failed", issue_key=issue_key, file=self.file.name, error=str(e))
            raise
        self.state = UploadState.SUCCEEDED
        self.attachment = attachment
        return attachment


class UploadController:
    """Uploads files to issues with per-file progress."""

    def __init__(
        self,
        context: HostContextProtocol,
        jira: IssueTrackerProtocol,
        exporter: ExportEngine | None = None,
        analytics: Analytics | None = None,
    ) -> None:
        self.context = context
        self.jira = jira
        self.analytics = analytics or Analytics()
        self.exporter = exporter or ExportEngine(context, self.analytics)

    async def upload_attachment(
        self,
        issue_key: str,
        file: FileDescriptor,
        on_progress: ProgressCallback | None = None,
    ) -> Attachment:
        logger.info("upload_started", issue_key=issue_key, file=file.name, size=file.size)
        attachment = await self.jira.upload_attachment(issue_key, file, on_progress)
        self.analytics("viewIssueAttachmentUpload", {"mimeType": file.mime_type, "size": file.size})
        return attachment

    def job(self, path: str | Path) -> UploadJob:
        return UploadJob(FileDescriptor.from_path(path), self.upload_attachment)

    def get_dropped_files(self) -> list[UploadJob]:
        """Files from the current drag-and-drop gesture, as pending jobs."""
        return [self.job(path) for path in self.context.dropped_files()]

    def export_and_upload(self, issue_key: str) -> list[UploadJob]:
        """Export the current selection for ``issue_key`` as pending jobs."""
        return [self.job(path) for path in self.exporter.export_selection(issue_key)]
