"""
Issue View-Model - client-side state of one open issue.

Owns the issue's attachment list; controllers are reached through the panel
bridge and only return results, which are applied here. Uploads in flight
keep their placeholder at the top of the list across reloads.

Example:
    vm = IssueViewModel(issue_payload, bridge)
    await vm.on_selected()
    await vm.upload_dropped_files()

    vm.comment_text = "Looks good"
    await vm.post_comment()
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import structlog

from ..analytics import Analytics
from ..bridge import PanelBridge
from ..errors import SketchJiraError, ValidationError
from ..models import Attachment, FileDescriptor, browse_url
from ..progress import ProgressCallback
from ..uploads import UploadJob
from .attachment_list import AttachmentList

__all__ = ["IssueViewModel"]

logger = structlog.get_logger(__name__)

Listener = Callable[["IssueViewModel"], None]


class IssueViewModel:
    def __init__(
        self,
        issue: dict[str, Any],
        bridge: PanelBridge,
        attachments: list[Attachment] | None = None,
        analytics: Analytics | None = None,
    ) -> None:
        self.issue = dict(issue)
        self.bridge = bridge
        self.analytics = analytics or Analytics(bridge.bus)
        if attachments is None:
            attachments = [Attachment.from_dict(a) for a in self.issue.pop("attachments", None) or []]
        self.attachments = AttachmentList(attachments)

        self.comment_text = ""
        self.posting_comment = False
        self.posted_comment_href: str | None = None

        self._listeners: list[Listener] = []
        self._logger = logger.bind(issue_key=self.key)

    @property
    def key(self) -> str:
        return self.issue["key"]

    @property
    def self_url(self) -> str:
        return self.issue.get("self", "")

    @property
    def browse_url(self) -> str:
        return browse_url(self.self_url, self.key)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` after every state change. Returns a disposer."""
        self._listeners.append(listener)

        def dispose() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return dispose

    def _changed(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ─────────────────────────────────────────────────────────────────
    # Attachments
    # ─────────────────────────────────────────────────────────────────

    async def on_selected(self) -> None:
        """Reload the issue's attachments and merge them under in-flight uploads."""
        payload = await self.bridge.request("touchIssueAndReloadAttachments", self.key)
        self.issue.update({k: v for k, v in payload.items() if k != "attachments"})
        self.attachments.merge_reload(Attachment.from_dict(a) for a in payload.get("attachments") or [])
        self._changed()
        self._logger.debug("attachments_merged", total=len(self.attachments), uploading=len(self.attachments.uploading()))
        self.analytics("viewIssue", {"attachments": len(self.attachments)})

    def index_of_attachment(self, attachment_id: str) -> int:
        return self.attachments.index_of(attachment_id)

    async def upload_dropped_files(self) -> list[UploadJob]:
        files = await self.bridge.request("getDroppedFiles")
        return await self._upload_all(files)

    async def upload_exported_selection(self) -> list[UploadJob]:
        files = await self.bridge.request("exportSelection", self.key)
        return await self._upload_all(files)

    async def _upload_all(self, files: list[dict[str, Any]]) -> list[UploadJob]:
        jobs = [UploadJob(FileDescriptor.from_dict(f), self._upload_via_bridge) for f in files]
        placeholders = []
        for job in jobs:
            placeholder = job.placeholder()
            self.attachments.prepend(placeholder)
            placeholders.append(placeholder)
        if jobs:
            self._changed()
        await asyncio.gather(*[self._run_upload(job, p) for job, p in zip(jobs, placeholders)])
        return jobs

    async def _upload_via_bridge(
        self,
        issue_key: str,
        file: FileDescriptor,
        on_progress: ProgressCallback | None,
    ) -> Attachment:
        result = await self.bridge.request("uploadAttachment", issue_key, file.to_dict(), on_progress)
        return Attachment.from_dict(result)

    async def _run_upload(self, job: UploadJob, placeholder: Attachment) -> None:
        def progress(fraction: float) -> None:
            self.attachments.update_progress(placeholder, fraction)
            self._changed()

        try:
            attachment = await job.upload(self.key, progress)
        except SketchJiraError as e:
            self.attachments.mark_failed(placeholder, e.message)
        else:
            self.attachments.resolve_upload(placeholder, attachment)
        self._changed()

    async def delete_attachment(self, attachment_id: str) -> None:
        await self.bridge.request("deleteAttachment", self.key, attachment_id, False)
        # the panel also publishes jira.delete.complete; applying it twice is harmless
        self.on_delete_complete(self.key, attachment_id)

    async def replace_attachment(self, attachment_id: str) -> UploadJob | None:
        """Swap an attachment for the first dropped file, keeping its slot."""
        index = self.index_of_attachment(attachment_id)
        if index < 0:
            raise ValidationError(f"No attachment {attachment_id} on {self.key}")
        files = await self.bridge.request("getDroppedFiles")
        if not files:
            return None

        job = UploadJob(FileDescriptor.from_dict(files[0]), self._upload_via_bridge)
        original = self.attachments[index]
        placeholder = job.placeholder()
        self.attachments.replace_at(index, placeholder)
        self._changed()

        try:
            await self.bridge.request("deleteAttachment", self.key, attachment_id, True)
        except SketchJiraError:
            self.attachments.replace_in_place(placeholder, original)
            self._changed()
            raise

        await self._run_upload(job, placeholder)
        return job

    async def open_attachment(self, attachment: Attachment, on_progress: ProgressCallback | None = None) -> str:
        return await self.bridge.request("openAttachment", attachment.content, attachment.filename, on_progress)

    # ─────────────────────────────────────────────────────────────────
    # Comments
    # ─────────────────────────────────────────────────────────────────

    async def post_comment(self) -> bool:
        """Post ``comment_text``. Returns False when refused by the guard."""
        if self.posting_comment or not self.comment_text.strip():
            return False

        self.posting_comment = True
        self.posted_comment_href = None
        self._changed()
        try:
            href = await self.bridge.request("addComment", self.key, self.comment_text)
        except SketchJiraError:
            self.posting_comment = False
            self._changed()
            raise
        if self.posting_comment:
            self.on_comment_added(self.key, href)
        return True

    async def open_in_browser(self) -> None:
        await self.bridge.request("openInBrowser", self.browse_url)

    async def open_posted_comment_in_browser(self) -> None:
        if self.posted_comment_href:
            await self.bridge.request("openInBrowser", self.posted_comment_href)

    # ─────────────────────────────────────────────────────────────────
    # Window events
    # ─────────────────────────────────────────────────────────────────

    def on_attachments_loaded(self, issue_key: str, attachments: list[dict[str, Any]]) -> None:
        if issue_key != self.key:
            return
        self.attachments.merge_reload(Attachment.from_dict(a) for a in attachments)
        self._changed()

    def on_comment_added(self, issue_key: str, href: str) -> None:
        if issue_key != self.key or not self.posting_comment:
            return
        self.comment_text = ""
        self.posting_comment = False
        self.posted_comment_href = href
        self._changed()

    def on_delete_complete(self, issue_key: str, attachment_id: str) -> None:
        if issue_key != self.key:
            return
        if self.attachments.remove_by_id(attachment_id) is not None:
            self._changed()

    def on_thumbnail_loaded(self, issue_key: str, attachment_id: str, data_uri: str) -> None:
        if issue_key != self.key:
            return
        attachment = self.attachments.find(attachment_id)
        if attachment is not None:
            attachment.data_uri = data_uri
            self._changed()
