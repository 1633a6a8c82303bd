"""
Attachment Sync Controller.

touch_issue_and_reload_attachments runs, in order:
1. fetch the issue's attachment field, bumping its "recently viewed" entry
2. publish the attachment list (jira.attachments.loaded)
3. post analytics for the list
4. fetch thumbnails, at most `concurrency` at a time, publishing each one
   as it arrives (jira.thumbnail.loaded)

Step 2 is always published before any thumbnail. Thumbnail events are keyed
by attachment id, so a superseded reload's late thumbnails are harmless and
are not cancelled.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

import click
import structlog

from .analytics import Analytics
from .config import config
from .contracts import IssueTrackerProtocol
from .models import Attachment, Issue
from .progress import ProgressCallback

if TYPE_CHECKING:
    from .bridge import PanelBridge

__all__ = ["AttachmentSync", "ThumbnailErrorHandler"]

logger = structlog.get_logger(__name__)

ThumbnailErrorHandler = Callable[[str, Attachment, Exception], None]


def skip_thumbnail(issue_key: str, attachment: Attachment, error: Exception) -> None:
    """Default thumbnail failure policy: log and treat as no thumbnail."""
    logger.warning(
        "thumbnail_failed",
        issue_key=issue_key,
        attachment_id=attachment.id,
        error=str(error),
    )


class AttachmentSync:
    """Loads attachments and thumbnails for an issue into the panel."""

    def __init__(
        self,
        webui: PanelBridge,
        jira: IssueTrackerProtocol,
        analytics: Analytics | None = None,
        concurrency: int | None = None,
        on_thumbnail_error: ThumbnailErrorHandler = skip_thumbnail,
        opener: Callable[[Path], object] | None = None,
    ) -> None:
        self.webui = webui
        self.jira = jira
        self.analytics = analytics or Analytics()
        self.concurrency = concurrency or config.thumbnail_concurrency
        self.on_thumbnail_error = on_thumbnail_error
        self.opener = opener or (lambda path: click.launch(str(path)))

    async def touch_issue_and_reload_attachments(self, issue_key: str) -> Issue:
        issue = await self.jira.get_issue(issue_key, fields=["attachment"], update_history=True)
        attachments = issue.attachments

        await self.webui.dispatch_window_event(
            "jira.attachments.loaded",
            {"issueKey": issue_key, "attachments": [a.to_dict() for a in attachments]},
        )
        self._post_analytics(attachments)

        semaphore = asyncio.Semaphore(self.concurrency)

        async def bounded(attachment: Attachment) -> None:
            async with semaphore:
                await self.load_thumbnail(issue_key, attachment)

        await asyncio.gather(*[bounded(a) for a in attachments if a.thumbnail and a.mime_type])
        return issue

    async def load_thumbnail(self, issue_key: str, attachment: Attachment) -> None:
        """Fetch and publish one thumbnail. Failures go to on_thumbnail_error."""
        if not (attachment.thumbnail and attachment.mime_type):
            return
        try:
            data_uri = await self.jira.get_image_as_data_uri(attachment.thumbnail, attachment.mime_type)
        except Exception as e:
            self.on_thumbnail_error(issue_key, attachment, e)
            return
        logger.debug("thumbnail_loaded", issue_key=issue_key, attachment_id=attachment.id)
        await self.webui.dispatch_window_event(
            "jira.thumbnail.loaded",
            {"issueKey": issue_key, "id": attachment.id, "dataUri": data_uri},
        )

    async def get_thumbnail(self, url: str, mime_type: str) -> str:
        return await self.jira.get_image_as_data_uri(url, mime_type)

    async def delete_attachment(self, issue_key: str, attachment_id: str, is_replace: bool = False) -> None:
        """Delete on the server.

        A delete that is the first half of a replace does not publish
        jira.delete.complete, so the UI never shows the slot as removed.
        """
        await self.jira.delete_attachment(attachment_id)
        if not is_replace:
            await self.webui.dispatch_window_event(
                "jira.delete.complete",
                {"issueKey": issue_key, "attachmentId": attachment_id},
            )

    async def open_attachment(self, url: str, filename: str, on_progress: ProgressCallback | None = None) -> Path:
        """Download an attachment and open it in the default viewer.

        Download errors propagate to the caller.
        """
        path = await self.jira.download_attachment(url, filename, on_progress)
        self.opener(path)
        self.analytics("viewIssueAttachmentOpen")
        return path

    def _post_analytics(self, attachments: list[Attachment]) -> None:
        events = [
            self.analytics.event(
                "viewIssueAttachmentLoaded",
                {
                    "mimeType": a.mime_type,
                    "thumbnail": bool(a.thumbnail),
                    "size": a.size,
                },
            )
            for a in attachments
        ]
        events.append(self.analytics.event("viewIssueAttachmentsLoaded", {"count": len(attachments)}))
        self.analytics.post_multiple(events)
