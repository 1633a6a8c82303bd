"""
Transfer progress reporting for uploads and downloads.

Callbacks receive a fraction in [0, 1]. Reported values never decrease and
the last call of a finished transfer is always exactly 1.0.
"""

from collections.abc import Callable
from typing import IO

__all__ = ["ProgressCallback", "ProgressReader", "ProgressTracker"]

ProgressCallback = Callable[[float], None]


class ProgressTracker:
    """Turns byte counts into monotonic fractions."""

    def __init__(self, total: int | None, callback: ProgressCallback | None = None) -> None:
        self.total = total if total and total > 0 else None
        self.transferred = 0
        self.reported = 0.0
        self._callback = callback
        self._finished = False

    def advance(self, nbytes: int) -> None:
        self.transferred += nbytes
        if self.total is None:
            return
        self._report(min(self.transferred / self.total, 1.0))

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._report(1.0)

    def _report(self, fraction: float) -> None:
        if fraction <= self.reported:
            return
        self.reported = fraction
        if self._callback is not None:
            self._callback(fraction)


class ProgressReader:
    """File wrapper that reports progress as an HTTP client reads it.

    httpx seeks file fields back to 0 before streaming a multipart body;
    the tracker keeps its high-water mark so progress still only moves
    forward.
    """

    def __init__(self, fileobj: IO[bytes], tracker: ProgressTracker) -> None:
        self._file = fileobj
        self._tracker = tracker
        self._position = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self._file.read(size)
        self._position += len(chunk)
        if self._position > self._tracker.transferred:
            self._tracker.advance(self._position - self._tracker.transferred)
        return chunk

    def seek(self, offset: int, whence: int = 0) -> int:
        self._position = self._file.seek(offset, whence)
        return self._position

    def tell(self) -> int:
        return self._file.tell()

    def fileno(self) -> int:
        return self._file.fileno()

    def close(self) -> None:
        self._file.close()
