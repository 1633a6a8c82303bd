"""
JIRA REST API v2 client.

Implements IssueTrackerProtocol on top of HTTPConnector. Every call can fail
with AuthError, NotFound, NetworkError or ServerError (see HTTPConnector).

Endpoints:
- GET    /rest/api/2/issue/{key}                 issue (optionally touching history)
- POST   /rest/api/2/issue/{key}/comment         add comment
- POST   /rest/api/2/issue/{key}/attachments     upload attachment (multipart)
- DELETE /rest/api/2/attachment/{id}             delete attachment
- GET    /rest/api/2/user/picker                 user search for mentions
- GET    /rest/api/2/myself                      current profile
- GET    /rest/api/2/filter/favourite            saved filters
- POST   /rest/api/2/search                      run JQL
"""

import base64
import shutil
import tempfile
from pathlib import Path
from typing import Any

import structlog

from ..config import PluginConfig, config as default_config
from ..models import Attachment, FileDescriptor, Filter, Issue, IssueSummary, Profile, UserSummary, browse_url
from ..progress import ProgressCallback, ProgressReader, ProgressTracker
from .http import ConnectorConfig, HTTPConnector

__all__ = ["JiraClient"]

logger = structlog.get_logger(__name__)

API = "/rest/api/2"
SEARCH_FIELDS = ["summary", "status", "issuetype", "assignee", "updated"]
SEARCH_LIMIT = 50
USER_PICKER_LIMIT = 10


class JiraClient:
    """Async JIRA client.

    Example:
        async with JiraClient.from_config(config) as jira:
            issue = await jira.get_issue("PROJ-1", fields=["attachment"])
    """

    def __init__(self, connector: HTTPConnector, download_dir: Path | None = None) -> None:
        self._connector = connector
        self._download_dir = download_dir or default_config.download_dir

    @classmethod
    def from_config(cls, config: PluginConfig = default_config, **overrides: Any) -> "JiraClient":
        connector = HTTPConnector(ConnectorConfig.from_plugin_config(config, **overrides))
        return cls(connector, download_dir=config.download_dir)

    @property
    def connector(self) -> HTTPConnector:
        return self._connector

    async def connect(self) -> None:
        await self._connector.connect()

    async def disconnect(self) -> None:
        await self._connector.disconnect()

    async def __aenter__(self) -> "JiraClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.disconnect()

    # ─────────────────────────────────────────────────────────────────
    # Issues & comments
    # ─────────────────────────────────────────────────────────────────

    async def get_issue(
        self,
        key: str,
        fields: list[str] | None = None,
        update_history: bool = False,
    ) -> Issue:
        params: dict[str, str] = {}
        if fields:
            params["fields"] = ",".join(fields)
        if update_history:
            params["updateHistory"] = "true"
        response = await self._connector.get(f"{API}/issue/{key}", params=params)
        return Issue.from_api(response.json())

    async def add_comment(self, key: str, text: str) -> str:
        response = await self._connector.post(f"{API}/issue/{key}/comment", json={"body": text})
        comment_id = response.json()["id"]
        logger.info("comment_added", issue_key=key, comment_id=comment_id)
        issue_url = browse_url(self._connector.base_url + API, key)
        return f"{issue_url}?focusedCommentId={comment_id}#comment-{comment_id}"

    async def run_filter(self, jql: str) -> list[IssueSummary]:
        response = await self._connector.post(
            f"{API}/search",
            json={"jql": jql, "fields": SEARCH_FIELDS, "maxResults": SEARCH_LIMIT},
        )
        return [IssueSummary.from_api(i) for i in response.json().get("issues", [])]

    async def load_filters(self) -> list[Filter]:
        response = await self._connector.get(f"{API}/filter/favourite")
        return [
            Filter(key=str(f["id"]), name=f["name"], jql=f.get("jql", ""), favourite=True)
            for f in response.json()
        ]

    # ─────────────────────────────────────────────────────────────────
    # Users
    # ─────────────────────────────────────────────────────────────────

    async def find_users_for_picker(self, query: str) -> list[UserSummary]:
        response = await self._connector.get(
            f"{API}/user/picker",
            params={"query": query, "maxResults": USER_PICKER_LIMIT},
        )
        return [UserSummary.from_api(u) for u in response.json().get("users", [])]

    async def get_profile(self) -> Profile:
        response = await self._connector.get(f"{API}/myself")
        return Profile.from_api(response.json())

    # ─────────────────────────────────────────────────────────────────
    # Attachments
    # ─────────────────────────────────────────────────────────────────

    async def upload_attachment(
        self,
        key: str,
        file: FileDescriptor,
        on_progress: ProgressCallback | None = None,
    ) -> Attachment:
        tracker = ProgressTracker(file.size, on_progress)
        with open(file.path, "rb") as fh:
            response = await self._connector.post(
                f"{API}/issue/{key}/attachments",
                files={"file": (file.name, ProgressReader(fh, tracker), file.mime_type)},
                headers={"X-Atlassian-Token": "no-check"},
            )
        tracker.finish()
        records = response.json()
        attachment = Attachment.from_api(records[0])
        logger.info("attachment_uploaded", issue_key=key, attachment_id=attachment.id, size=file.size)
        return attachment

    async def delete_attachment(self, attachment_id: str) -> None:
        await self._connector.delete(f"{API}/attachment/{attachment_id}")
        logger.info("attachment_deleted", attachment_id=attachment_id)

    async def download_attachment(
        self,
        url: str,
        filename: str,
        on_progress: ProgressCallback | None = None,
    ) -> Path:
        self._download_dir.mkdir(parents=True, exist_ok=True)
        directory = Path(tempfile.mkdtemp(prefix="attachment-", dir=self._download_dir))
        target = directory / filename

        try:
            async with self._connector.stream("GET", url) as response:
                total = int(response.headers.get("Content-Length") or 0)
                tracker = ProgressTracker(total, on_progress)
                with open(target, "wb") as fh:
                    async for chunk in response.aiter_bytes():
                        fh.write(chunk)
                        tracker.advance(response.num_bytes_downloaded - tracker.transferred)
        except BaseException:
            # no partial files left behind, cancellation included
            shutil.rmtree(directory, ignore_errors=True)
            logger.warning("attachment_download_failed", filename=filename)
            raise
        tracker.finish()

        logger.info("attachment_downloaded", filename=filename, path=str(target), size=tracker.transferred)
        return target

    async def get_image_as_data_uri(self, url: str, mime_type: str) -> str:
        response = await self._connector.get(url)
        content_type = response.headers.get("Content-Type", "").split(";")[0].strip()
        if content_type.startswith("image/"):
            mime_type = content_type
        encoded = base64.b64encode(response.content).decode("ascii")
        return f"data:{mime_type};base64,{encoded}"
