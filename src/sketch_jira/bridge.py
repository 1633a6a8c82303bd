"""
Panel Bridge - request/response and one-way events between web view and plugin.

Two channels:
- requests: the UI calls a named handler with positional args and gets a
  BridgeResponse back (result, or an error with a `kind`)
- window events: the plugin publishes fire-and-forget events on the event
  bus with source "panel"; the UI subscribes by topic

Example:
    bridge = PanelBridge("issues", {"loadProfile": load_profile}, window=window)
    response = await bridge.handle(BridgeRequest(name="loadProfile"))

    profile = await bridge.request("loadProfile")   # raises typed errors
"""

import asyncio
import uuid
from collections.abc import Callable
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from .contracts import WindowProtocol
from .errors import SketchJiraError, error_for_kind
from .events import EventBus, get_event_bus

__all__ = [
    "BridgeErrorInfo",
    "BridgeRequest",
    "BridgeResponse",
    "PanelBridge",
]

logger = structlog.get_logger(__name__)

EVENT_SOURCE = "panel"


class BridgeRequest(BaseModel):
    """Call of a named handler. Args may include progress callbacks."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:8])
    name: str
    args: list[Any] = Field(default_factory=list)


class BridgeErrorInfo(BaseModel):
    kind: str
    message: str


class BridgeResponse(BaseModel):
    id: str
    ok: bool
    result: Any = None
    error: BridgeErrorInfo | None = None

    @classmethod
    def success(cls, request_id: str, result: Any) -> "BridgeResponse":
        return cls(id=request_id, ok=True, result=result)

    @classmethod
    def failure(cls, request_id: str, kind: str, message: str) -> "BridgeResponse":
        return cls(id=request_id, ok=False, error=BridgeErrorInfo(kind=kind, message=message))


class PanelBridge:
    """Handler table for one panel plus its event channel."""

    def __init__(
        self,
        name: str,
        handlers: dict[str, Callable[..., Any]] | None = None,
        window: WindowProtocol | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.name = name
        self.window = window
        self.bus = bus or get_event_bus()
        self._handlers: dict[str, Callable[..., Any]] = dict(handlers or {})
        self._logger = logger.bind(panel=name)

    @property
    def handler_names(self) -> list[str]:
        return list(self._handlers)

    def register(self, name: str, handler: Callable[..., Any]) -> None:
        if name in self._handlers:
            raise ValueError(f"Handler already registered: {name}")
        self._handlers[name] = handler

    async def handle(self, request: BridgeRequest) -> BridgeResponse:
        """Run a handler and wrap its outcome in a response envelope."""
        handler = self._handlers.get(request.name)
        if handler is None:
            return BridgeResponse.failure(request.id, "unknown_handler", f"No handler named {request.name}")

        try:
            result = handler(*request.args)
            if asyncio.iscoroutine(result):
                result = await result
        except SketchJiraError as e:
            self._logger.warning("handler_error", handler=request.name, kind=e.kind, error=e.message)
            return BridgeResponse.failure(request.id, e.kind, e.message)
        except Exception as e:
            self._logger.exception("handler_crashed", handler=request.name)
            return BridgeResponse.failure(request.id, "internal", str(e))

        return BridgeResponse.success(request.id, result)

    async def request(self, name: str, *args: Any) -> Any:
        """Call a handler in-process, raising the error a failure carries."""
        response = await self.handle(BridgeRequest(name=name, args=list(args)))
        if not response.ok:
            raise error_for_kind(response.error.kind, response.error.message)
        return response.result

    async def dispatch_window_event(self, name: str, detail: dict[str, Any]) -> None:
        """Publish a one-way event to the UI."""
        await self.bus.emit(EVENT_SOURCE, name, detail)

    def close(self) -> None:
        if self.window is not None:
            self.window.close()

    def resize(self, width: int, height: int) -> None:
        if self.window is not None:
            self.window.resize(width, height)
