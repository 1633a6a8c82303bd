"""
Window Protocol - Contract for the panel window hosting the web view.

Layout and rendering live in the presentation layer; the plugin only
closes and resizes the window.
"""

from typing import Protocol, runtime_checkable

__all__ = ["WindowProtocol"]


@runtime_checkable
class WindowProtocol(Protocol):

    def close(self) -> None:
        ...

    def resize(self, width: int, height: int) -> None:
        ...
