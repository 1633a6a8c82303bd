"""
Analytics sink.

Usage signals are fire-and-forget: they go onto the event bus with
intent "metric" and nothing in the pipeline waits for them. Whatever ships
them somewhere subscribes with ``bus.on(handler, intent="metric")``.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import structlog

from .events import EventBus, get_event_bus

__all__ = ["Analytics", "AnalyticsEvent"]

logger = structlog.get_logger(__name__)

SOURCE = "analytics"


@dataclass(frozen=True)
class AnalyticsEvent:
    name: str
    properties: dict[str, Any] = field(default_factory=dict)


class Analytics:
    """Emit usage events onto the bus."""

    def __init__(self, bus: EventBus | None = None) -> None:
        self._bus = bus or get_event_bus()

    def __call__(self, name: str, properties: dict[str, Any] | None = None) -> None:
        self.post(AnalyticsEvent(name, properties or {}))

    @staticmethod
    def event(name: str, properties: dict[str, Any] | None = None) -> AnalyticsEvent:
        return AnalyticsEvent(name, properties or {})

    def post(self, event: AnalyticsEvent) -> None:
        logger.debug("analytics_event", name=event.name, properties=event.properties)
        self._bus.emit_nowait(SOURCE, event.name, dict(event.properties), intent="metric")

    def post_multiple(self, events: Iterable[AnalyticsEvent]) -> None:
        for event in events:
            self.post(event)
