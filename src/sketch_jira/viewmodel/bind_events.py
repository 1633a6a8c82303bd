"""
Route panel window events to an issue view-model.
"""

from collections.abc import Callable

from ..events import Event, EventBus
from .issue import IssueViewModel

__all__ = ["bind_window_events"]


def bind_window_events(view_model: IssueViewModel, bus: EventBus) -> Callable[[], None]:
    """Subscribe ``view_model`` to the panel events it applies.

    Returns a function that removes every subscription made here.
    """

    def attachments_loaded(event: Event) -> None:
        view_model.on_attachments_loaded(event.data["issueKey"], event.data["attachments"])

    def comment_added(event: Event) -> None:
        view_model.on_comment_added(event.data["issueKey"], event.data["href"])

    def delete_complete(event: Event) -> None:
        view_model.on_delete_complete(event.data["issueKey"], event.data["attachmentId"])

    def thumbnail_loaded(event: Event) -> None:
        view_model.on_thumbnail_loaded(event.data["issueKey"], event.data["id"], event.data["dataUri"])

    disposers = [
        bus.on(attachments_loaded, source="panel", topic="jira.attachments.loaded"),
        bus.on(comment_added, source="panel", topic="jira.comment.added"),
        bus.on(delete_complete, source="panel", topic="jira.delete.complete"),
        bus.on(thumbnail_loaded, source="panel", topic="jira.thumbnail.loaded"),
    ]

    def unbind() -> None:
        for dispose in disposers:
            dispose()

    return unbind
