"""
Issue Tracker Protocol - Contract for the remote JIRA client.

Every method is async and fails with an error from ``sketch_jira.errors``:
AuthError (Unauthorized), NotFound, NetworkError, ServerError, Cancelled.
Timeouts are the client's responsibility.
"""

from pathlib import Path
from typing import Protocol, runtime_checkable

from ..models import Attachment, FileDescriptor, Filter, Issue, IssueSummary, Profile, UserSummary
from ..progress import ProgressCallback

__all__ = ["IssueTrackerProtocol"]


@runtime_checkable
class IssueTrackerProtocol(Protocol):
    """Issue, comment, attachment and user operations against the tracker."""

    async def get_issue(
        self,
        key: str,
        fields: list[str] | None = None,
        update_history: bool = False,
    ) -> Issue:
        """Fetch an issue.

        Args:
            key: Issue key like PROJ-123
            fields: Restrict the returned fields
            update_history: Record the issue as recently viewed

        Raises:
            NotFound: Unknown key
            AuthError: No access
        """
        ...

    async def add_comment(self, key: str, text: str) -> str:
        """Add a comment. Returns a browser URL focused on the comment."""
        ...

    async def find_users_for_picker(self, query: str) -> list[UserSummary]:
        ...

    async def get_profile(self) -> Profile:
        ...

    async def load_filters(self) -> list[Filter]:
        """Saved (favourite) filters of the current user."""
        ...

    async def run_filter(self, jql: str) -> list[IssueSummary]:
        ...

    async def upload_attachment(
        self,
        key: str,
        file: FileDescriptor,
        on_progress: ProgressCallback | None = None,
    ) -> Attachment:
        """Upload a file. Returns the server-confirmed attachment."""
        ...

    async def delete_attachment(self, attachment_id: str) -> None:
        ...

    async def download_attachment(
        self,
        url: str,
        filename: str,
        on_progress: ProgressCallback | None = None,
    ) -> Path:
        """Download to a local file. Returns its path."""
        ...

    async def get_image_as_data_uri(self, url: str, mime_type: str) -> str:
        """Fetch an image and encode it as a data URI."""
        ...
