"""
Event Bus - async pub/sub between the plugin core and the panel UI.

Carries two kinds of traffic:
- UI-bound window events ("jira.attachments.loaded", "jira.thumbnail.loaded", ...)
  emitted by the panel bridge with source "panel"
- analytics events emitted with intent "metric"

Usage:
    await bus.emit("panel", "jira.delete.complete", {"issueKey": "PROJ-1", "attachmentId": "10"})

    dispose = bus.on(handler, topic="jira.*")   # wildcard
    bus.on(handler, intent="metric")            # analytics only
    dispose()                                   # unsubscribe
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from datetime import datetime
from fnmatch import fnmatch
from typing import Any

import structlog

__all__ = [
    "Event",
    "EventBus",
    "Handler",
    "Subscription",
    "get_event_bus",
    "init_event_bus",
]

logger = structlog.get_logger(__name__)

Handler = Callable[["Event"], Any | Coroutine[Any, Any, Any]]


@dataclass(slots=True, frozen=True)
class Event:
    """Immutable event envelope.

    Attributes:
        source: Origin identifier ("panel", "analytics")
        topic: Event name ("jira.thumbnail.loaded", "viewIssue")
        data: Payload, JSON-serializable
        intent: Optional routing hint ("metric")
        ts: Timestamp (auto-set)
    """
    source: str
    topic: str
    data: dict = field(default_factory=dict)
    intent: str | None = None
    ts: float = field(default_factory=lambda: datetime.now().timestamp())


@dataclass(slots=True)
class Subscription:
    """Single subscription with filters."""
    handler: Handler
    source: str = "*"
    topic: str = "*"
    intent: str | None = None

    def matches(self, event: Event) -> bool:
        if not fnmatch(event.source, self.source):
            return False
        if not fnmatch(event.topic, self.topic):
            return False
        if self.intent is not None and event.intent != self.intent:
            return False
        return True


class EventBus:
    """Async event bus with pattern-based subscriptions.

    Handlers for one event run concurrently; a failing handler is logged
    and never affects the emitter or sibling handlers.
    """

    __slots__ = ("_subs", "_pending", "_logger")

    def __init__(self) -> None:
        self._subs: list[Subscription] = []
        self._pending: set[asyncio.Task] = set()
        self._logger = logger.bind(component="event_bus")

    def on(
        self,
        handler: Handler,
        *,
        source: str = "*",
        topic: str = "*",
        intent: str | None = None,
    ) -> Callable[[], None]:
        """Subscribe to events matching filters.

        Args:
            handler: Async or sync callable receiving Event
            source: Glob pattern for source filter
            topic: Glob pattern for topic filter
            intent: Exact match for intent (None = any)

        Returns:
            Unsubscribe function
        """
        sub = Subscription(handler, source, topic, intent)
        self._subs.append(sub)

        def dispose() -> None:
            if sub in self._subs:
                self._subs.remove(sub)

        return dispose

    @property
    def subscription_count(self) -> int:
        return len(self._subs)

    async def emit(
        self,
        source: str,
        topic: str,
        data: dict | None = None,
        intent: str | None = None,
    ) -> None:
        """Emit an event to all matching subscribers and wait for them."""
        event = Event(source, topic, data or {}, intent)

        handlers = [s.handler for s in self._subs if s.matches(event)]
        if not handlers:
            return

        async def run_handler(h: Handler) -> None:
            try:
                result = h(event)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                self._logger.error(
                    "handler_error",
                    source=event.source,
                    topic=event.topic,
                    error=str(e),
                )

        await asyncio.gather(*[run_handler(h) for h in handlers])

    def emit_nowait(
        self,
        source: str,
        topic: str,
        data: dict | None = None,
        intent: str | None = None,
    ) -> None:
        """Fire-and-forget emit. Dropped when no event loop is running."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.debug("event_dropped", source=source, topic=topic)
            return
        task = loop.create_task(self.emit(source, topic, data, intent))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for outstanding fire-and-forget emits."""
        while self._pending:
            await asyncio.gather(*list(self._pending))


# ─────────────────────────────────────────────────────────────────────────────
# Global singleton
# ─────────────────────────────────────────────────────────────────────────────

_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get or create the global event bus."""
    global _bus
    if _bus is None:
        _bus = EventBus()
    return _bus


def init_event_bus() -> EventBus:
    """Initialize fresh event bus (for testing)."""
    global _bus
    _bus = EventBus()
    return _bus
