"""
sketch-jira - attach design exports to JIRA issues.

Export selected layers, upload and replace attachments with progress, load
attachments with their thumbnails, and comment on issues from a panel
hosted by the design application.
"""

__version__ = "0.4.0"

from .analytics import Analytics
from .attachments import AttachmentSync
from .bridge import BridgeRequest, BridgeResponse, PanelBridge
from .config import PluginConfig, config
from .connectors import JiraClient
from .errors import (
    AuthError,
    Cancelled,
    NetworkError,
    NotFound,
    ResolutionError,
    ServerError,
    SketchJiraError,
    Unauthorized,
    ValidationError,
)
from .events import EventBus, get_event_bus
from .export import ExportEngine
from .models import Attachment, FileDescriptor, Issue
from .panels import IssuesPanel, create_issues_panel
from .uploads import UploadController, UploadJob, UploadState
from .viewmodel import AttachmentList, IssueViewModel, bind_window_events

__all__ = [
    "Analytics",
    "Attachment",
    "AttachmentList",
    "AttachmentSync",
    "AuthError",
    "BridgeRequest",
    "BridgeResponse",
    "Cancelled",
    "EventBus",
    "ExportEngine",
    "FileDescriptor",
    "Issue",
    "IssueViewModel",
    "IssuesPanel",
    "JiraClient",
    "NetworkError",
    "NotFound",
    "PanelBridge",
    "PluginConfig",
    "ResolutionError",
    "ServerError",
    "SketchJiraError",
    "Unauthorized",
    "UploadController",
    "UploadJob",
    "UploadState",
    "ValidationError",
    "__version__",
    "bind_window_events",
    "config",
    "create_issues_panel",
    "get_event_bus",
]
