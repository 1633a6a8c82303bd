"""
Contracts - Protocols for the plugin's external collaborators.
"""

from .host import DocumentProtocol, ExportSlice, HostContextProtocol
from .tracker import IssueTrackerProtocol
from .window import WindowProtocol

__all__ = [
    "DocumentProtocol",
    "ExportSlice",
    "HostContextProtocol",
    "IssueTrackerProtocol",
    "WindowProtocol",
]
