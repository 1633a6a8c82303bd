"""Client-side state for the issue view."""

from .attachment_list import AttachmentList
from .bind_events import bind_window_events
from .issue import IssueViewModel

__all__ = ["AttachmentList", "IssueViewModel", "bind_window_events"]
