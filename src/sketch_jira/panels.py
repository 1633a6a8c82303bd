"""
Issues panel - wires the pipeline controllers to the panel bridge handlers.

Handler results are plain JSON-able values (``to_dict`` payloads); progress
callbacks passed by the UI are forwarded untouched.
"""

from collections.abc import Callable
from typing import Any

import click
import structlog

from .analytics import Analytics
from .attachments import AttachmentSync
from .bridge import PanelBridge
from .config import PluginConfig, config as default_config
from .contracts import HostContextProtocol, IssueTrackerProtocol, WindowProtocol
from .events import EventBus
from .export import ExportEngine
from .filters import Filters
from .models import FileDescriptor
from .progress import ProgressCallback
from .uploads import UploadController

__all__ = ["IssuesPanel", "create_issues_panel"]

logger = structlog.get_logger(__name__)



class IssuesPanel:
    """The issue list / issue view panel of one host window."""

    def __init__(
        self,
        context: HostContextProtocol,
        jira: IssueTrackerProtocol,
        window: WindowProtocol | None = None,
        bus: EventBus | None = None,
        analytics: Analytics | None = None,
        on_reauthorize: Callable[[], None] | None = None,
        config: PluginConfig = default_config,
    ) -> None:
        self.context = context
        self.jira = jira
        self.config = config
        self.analytics = analytics or Analytics(bus)
        self.on_reauthorize = on_reauthorize

        self.bridge = PanelBridge("issues", window=window, bus=bus)
        self.exporter = ExportEngine(context, self.analytics, export_root=config.export_dir)
        self.filters = Filters(jira, self.analytics)
        self.attachments = AttachmentSync(
            self.bridge,
            jira,
            self.analytics,
            concurrency=config.thumbnail_concurrency,
            opener=context.open_file,
        )
        self.uploads = UploadController(context, jira, self.exporter, self.analytics)

        for name, handler in self.handlers().items():
            self.bridge.register(name, handler)

        self.analytics("viewIssueListPanelOpen")

    def handlers(self) -> dict[str, Callable[..., Any]]:
        """Bridge handler table, keyed by the names the web view calls."""
        return {
            "loadFilters": self.load_filters,
            "loadProfile": self.load_profile,
            "loadIssuesForFilter": self.load_issues_for_filter,
            "getDroppedFiles": self.get_dropped_files,
            "exportSelection": self.export_selection,
            "uploadAttachment": self.upload_attachment,
            "touchIssueAndReloadAttachments": self.touch_issue_and_reload_attachments,
            "getThumbnail": self.get_thumbnail,
            "openAttachment": self.open_attachment,
            "deleteAttachment": self.delete_attachment,
            "addComment": self.add_comment,
            "findUsersForPicker": self.find_users_for_picker,
            "openInBrowser": self.open_in_browser,
            "viewSettings": self.view_settings,
            "reauthorize": self.reauthorize,
            "resizeForIssueList": self.resize_for_issue_list,
            "resizeForIssueView": self.resize_for_issue_view,
        }

    # ─────────────────────────────────────────────────────────────────
    # Issue list
    # ─────────────────────────────────────────────────────────────────

    async def load_filters(self) -> list[dict[str, Any]]:
        return [f.to_dict() for f in await self.filters.load_filters()]

    async def load_profile(self) -> dict[str, Any]:
        return (await self.jira.get_profile()).to_dict()

    async def load_issues_for_filter(self, filter_key: str) -> list[dict[str, Any]]:
        return [i.to_dict() for i in await self.filters.on_filter_changed(filter_key)]

    # ─────────────────────────────────────────────────────────────────
    # Attachments
    # ─────────────────────────────────────────────────────────────────

    def get_dropped_files(self) -> list[dict[str, Any]]:
        return [job.file.to_dict() for job in self.uploads.get_dropped_files()]

    def export_selection(self, issue_key: str) -> list[dict[str, Any]]:
        return [job.file.to_dict() for job in self.uploads.export_and_upload(issue_key)]

    async def upload_attachment(
        self,
        issue_key: str,
        file: dict[str, Any],
        progress: ProgressCallback | None = None,
    ) -> dict[str, Any]:
        attachment = await self.uploads.upload_attachment(issue_key, FileDescriptor.from_dict(file), progress)
        return attachment.to_dict()

    async def touch_issue_and_reload_attachments(self, issue_key: str) -> dict[str, Any]:
        self.exporter.set_last_viewed_issue_for_document(issue_key)
        issue = await self.attachments.touch_issue_and_reload_attachments(issue_key)
        return issue.to_dict()

    async def get_thumbnail(self, url: str, mime_type: str) -> str:
        return await self.attachments.get_thumbnail(url, mime_type)

    async def open_attachment(self, url: str, filename: str, progress: ProgressCallback | None = None) -> str:
        return str(await self.attachments.open_attachment(url, filename, progress))

    async def delete_attachment(self, issue_key: str, attachment_id: str, is_replace: bool = False) -> None:
        await self.attachments.delete_attachment(issue_key, attachment_id, is_replace)

    # ─────────────────────────────────────────────────────────────────
    # Comments & users
    # ─────────────────────────────────────────────────────────────────

    async def add_comment(self, issue_key: str, comment: str) -> str:
        self.analytics("viewIssueCommentAdd", {"length": len(comment), "lines": len(comment.split("\n"))})
        href = await self.jira.add_comment(issue_key, comment)
        await self.bridge.dispatch_window_event("jira.comment.added", {"issueKey": issue_key, "href": href})
        return href

    async def find_users_for_picker(self, query: str) -> list[dict[str, Any]]:
        return [u.to_dict() for u in await self.jira.find_users_for_picker(query)]

    # ─────────────────────────────────────────────────────────────────
    # Window
    # ─────────────────────────────────────────────────────────────────

    def open_in_browser(self, url: str) -> None:
        click.launch(url)

    def view_settings(self) -> None:
        self._reconnect()

    def reauthorize(self) -> None:
        self._reconnect()

    def resize_for_issue_list(self) -> None:
        self.bridge.resize(*self.config.issue_list_size)

    def resize_for_issue_view(self) -> None:
        self.bridge.resize(*self.config.issue_view_size)

    def _reconnect(self) -> None:
        """Close the panel and hand over to the connect flow."""
        self.bridge.close()
        if self.on_reauthorize is not None:
            self.on_reauthorize()
        else:
            logger.info("reauthorize_requested", panel=self.bridge.name)


def create_issues_panel(
    context: HostContextProtocol,
    jira: IssueTrackerProtocol,
    **kwargs: Any,
) -> PanelBridge:
    """Build the issues panel and return its bridge."""
    return IssuesPanel(context, jira, **kwargs).bridge
