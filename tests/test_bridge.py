"""Tests for the panel bridge."""

import pytest

from sketch_jira.bridge import BridgeRequest, BridgeResponse, PanelBridge
from sketch_jira.errors import AuthError, NotFound, SketchJiraError, error_for_kind

from conftest import FakeWindow


class TestErrorForKind:
    """Error envelopes map back onto typed errors."""

    def test_known_kind(self):
        error = error_for_kind("not_found", "Issue does not exist")

        assert isinstance(error, NotFound)
        assert error.message == "Issue does not exist"

    def test_unknown_kind_keeps_kind(self):
        error = error_for_kind("unknown_handler", "No handler named x")

        assert type(error) is SketchJiraError
        assert error.kind == "unknown_handler"


class TestPanelBridge:
    """Request handling and window events."""

    @pytest.mark.asyncio
    async def test_sync_and_async_handlers(self, bus):
        async def add(a, b):
            return a + b

        bridge = PanelBridge("issues", {"add": add, "echo": lambda x: x}, bus=bus)

        assert await bridge.request("add", 1, 2) == 3
        assert await bridge.request("echo", "hi") == "hi"

    @pytest.mark.asyncio
    async def test_handle_success_envelope(self, bus):
        bridge = PanelBridge("issues", {"ping": lambda: "pong"}, bus=bus)

        response = await bridge.handle(BridgeRequest(id="r1", name="ping"))

        assert response == BridgeResponse(id="r1", ok=True, result="pong")

    @pytest.mark.asyncio
    async def test_unknown_handler(self, bus):
        bridge = PanelBridge("issues", bus=bus)

        response = await bridge.handle(BridgeRequest(name="nope"))

        assert response.ok is False
        assert response.error.kind == "unknown_handler"

    @pytest.mark.asyncio
    async def test_plugin_error_keeps_kind(self, bus):
        def fail():
            raise AuthError("Session expired")

        bridge = PanelBridge("issues", {"fail": fail}, bus=bus)

        response = await bridge.handle(BridgeRequest(name="fail"))
        assert response.error.kind == "unauthorized"

        with pytest.raises(AuthError, match="Session expired"):
            await bridge.request("fail")

    @pytest.mark.asyncio
    async def test_unexpected_error_is_internal(self, bus):
        def crash():
            raise KeyError("x")

        bridge = PanelBridge("issues", {"crash": crash}, bus=bus)

        response = await bridge.handle(BridgeRequest(name="crash"))

        assert response.error.kind == "internal"

    def test_duplicate_registration(self, bus):
        bridge = PanelBridge("issues", {"ping": lambda: None}, bus=bus)

        with pytest.raises(ValueError):
            bridge.register("ping", lambda: None)

    @pytest.mark.asyncio
    async def test_window_events(self, bus, panel_events):
        bridge = PanelBridge("issues", bus=bus)

        await bridge.dispatch_window_event("jira.delete.complete", {"issueKey": "DES-1", "attachmentId": "2"})

        assert panel_events.of("jira.delete.complete") == [{"issueKey": "DES-1", "attachmentId": "2"}]

    def test_window_control(self, bus):
        window = FakeWindow()
        bridge = PanelBridge("issues", window=window, bus=bus)

        bridge.resize(512, 400)
        bridge.close()

        assert window.sizes == [(512, 400)]
        assert window.closed is True

    def test_window_control_without_window(self, bus):
        bridge = PanelBridge("issues", bus=bus)

        bridge.resize(512, 400)
        bridge.close()
