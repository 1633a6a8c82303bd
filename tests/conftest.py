"""Shared test fixtures."""

import asyncio
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest

from sketch_jira.analytics import Analytics
from sketch_jira.errors import NotFound
from sketch_jira.events import Event, init_event_bus
from sketch_jira.models import Attachment, FileDescriptor, Filter, Issue, IssueSummary, Profile, UserSummary


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


# ─────────────────────────────────────────────────────────────────────────────
# Host application
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FakeSlice:
    name: str
    format: str


@dataclass(eq=False)
class FakeLayer:
    name: str
    slices: list[FakeSlice] = field(default_factory=list)
    values: dict[str, str] = field(default_factory=dict)
    tag_error: Exception | None = None


class FakeDocument:
    def __init__(self, layers: list[FakeLayer] | None = None):
        self.layers = layers or []
        self.values: dict[str, str] = {}
        self.saved: list[Path] = []

    def selected_layers(self) -> list[FakeLayer]:
        return list(self.layers)

    def export_slices(self, layer: FakeLayer) -> list[FakeSlice]:
        return list(layer.slices)

    def save_slice(self, export_slice: FakeSlice, path: Path) -> None:
        path.write_bytes(f"{export_slice.name}.{export_slice.format}".encode())
        self.saved.append(path)

    def layer_value(self, key: str, layer: FakeLayer) -> str | None:
        return layer.values.get(key)

    def set_layer_value(self, key: str, value: str, layer: FakeLayer) -> None:
        if layer.tag_error is not None:
            raise layer.tag_error
        layer.values[key] = value

    def document_value(self, key: str) -> str | None:
        return self.values.get(key)

    def set_document_value(self, key: str, value: str) -> None:
        self.values[key] = value


class FakeHost:
    def __init__(self, document: FakeDocument | None = None, dropped: list[Path] | None = None):
        self._document = document
        self.dropped = dropped or []
        self.opened: list[Path] = []

    def document(self) -> FakeDocument | None:
        return self._document

    def dropped_files(self) -> list[Path]:
        return list(self.dropped)

    def open_file(self, path: Path) -> None:
        self.opened.append(path)


class FakeWindow:
    def __init__(self):
        self.closed = False
        self.sizes: list[tuple[int, int]] = []

    def close(self) -> None:
        self.closed = True

    def resize(self, width: int, height: int) -> None:
        self.sizes.append((width, height))


# ─────────────────────────────────────────────────────────────────────────────
# JIRA
# ─────────────────────────────────────────────────────────────────────────────

SELF_URL = "https://jira.example.com/rest/api/2/issue/10001"


def make_attachment(id: str, thumbnail: bool = True, mime_type: str | None = "image/png") -> Attachment:
    return Attachment(
        id=id,
        filename=f"file-{id}.png",
        mime_type=mime_type,
        size=100 * int(id),
        thumbnail=f"https://jira.example.com/thumbnail/{id}" if thumbnail else None,
        content=f"https://jira.example.com/attachment/{id}",
    )


class FakeTracker:
    """In-memory IssueTrackerProtocol that records calls.

    ``delay`` slows thumbnail and upload calls; ``fail`` maps a method name
    (or a thumbnail url) to the exception it should raise.
    """

    def __init__(self, attachments: list[Attachment] | None = None, delay: float = 0.0):
        self.attachments = attachments or []
        self.delay = delay
        self.fail: dict[str, Exception] = {}
        self.calls: list[tuple[str, tuple]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.next_id = 900

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        if name in self.fail:
            raise self.fail[name]

    def called(self, name: str) -> list[tuple]:
        return [args for call, args in self.calls if call == name]

    async def get_issue(self, key, fields=None, update_history=False):
        self._record("get_issue", key, fields, update_history)
        return Issue(key=key, self_url=SELF_URL, fields={"summary": "Login"}, attachments=list(self.attachments))

    async def add_comment(self, key, text):
        self._record("add_comment", key, text)
        return f"https://jira.example.com/browse/{key}?focusedCommentId=1#comment-1"

    async def find_users_for_picker(self, query):
        self._record("find_users_for_picker", query)
        return [UserSummary(name="jdoe", display_name="J. Doe")]

    async def get_profile(self):
        self._record("get_profile")
        return Profile(name="me", display_name="Me")

    async def load_filters(self):
        self._record("load_filters")
        return [Filter(key="10100", name="Design review", jql="project = DES", favourite=True)]

    async def run_filter(self, jql):
        self._record("run_filter", jql)
        return [IssueSummary(key="DES-1", self_url=SELF_URL, summary="Login")]

    async def upload_attachment(self, key, file: FileDescriptor, on_progress=None):
        self._record("upload_attachment", key, file.name)
        for fraction in (0.25, 0.5, 0.75):
            await asyncio.sleep(self.delay)
            if on_progress is not None:
                on_progress(fraction)
        if on_progress is not None:
            on_progress(1.0)
        self.next_id += 1
        return Attachment(id=str(self.next_id), filename=file.name, mime_type=file.mime_type, size=file.size)

    async def delete_attachment(self, attachment_id):
        self._record("delete_attachment", attachment_id)

    async def download_attachment(self, url, filename, on_progress=None):
        self._record("download_attachment", url, filename)
        for fraction in (0.5, 1.0):
            if on_progress is not None:
                on_progress(fraction)
        return Path("/tmp") / filename

    async def get_image_as_data_uri(self, url, mime_type):
        self.calls.append(("get_image_as_data_uri", (url, mime_type)))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if url in self.fail:
                raise self.fail[url]
            return f"data:{mime_type};base64,{url.rsplit('/', 1)[-1]}"
        finally:
            self.in_flight -= 1


# ─────────────────────────────────────────────────────────────────────────────
# Bus & analytics
# ─────────────────────────────────────────────────────────────────────────────


class Recorder:
    """Collects events delivered by the bus."""

    def __init__(self):
        self.events: list[Event] = []

    def __call__(self, event: Event) -> None:
        self.events.append(event)

    def topics(self, source: str | None = None) -> list[str]:
        return [e.topic for e in self.events if source is None or e.source == source]

    def of(self, topic: str) -> list[dict]:
        return [e.data for e in self.events if e.topic == topic]


@pytest.fixture
def bus():
    return init_event_bus()


@pytest.fixture
def panel_events(bus):
    recorder = Recorder()
    bus.on(recorder, source="panel")
    return recorder


@pytest.fixture
def metrics(bus):
    recorder = Recorder()
    bus.on(recorder, intent="metric")
    return recorder


@pytest.fixture
def analytics(bus):
    return Analytics(bus)


@pytest.fixture
def tracker():
    return FakeTracker([make_attachment("1"), make_attachment("2"), make_attachment("3", thumbnail=False)])


@pytest.fixture
def missing_issue_tracker():
    t = FakeTracker()
    t.fail["get_issue"] = NotFound("Issue does not exist")
    return t
