"""Tests for the export engine."""

from pathlib import Path

import pytest

from sketch_jira.export import (
    DOCUMENT_LAST_VIEWED_ISSUE,
    LAYER_LAST_EXPORTED_ISSUE,
    ExportEngine,
    filename_for_slice,
)

from conftest import FakeDocument, FakeHost, FakeLayer, FakeSlice


@pytest.fixture
def icon_layer():
    return FakeLayer("icon", [FakeSlice("icons/add", "png"), FakeSlice("icons/add", "svg")])


@pytest.fixture
def banner_layer():
    return FakeLayer("banner", [FakeSlice("banner", "jpg")])


class TestFilenameForSlice:
    """Slice names become file names."""

    def test_slashes_replaced(self):
        assert filename_for_slice(FakeSlice("icons/add/large", "png")) == "icons_add_large.png"

    def test_other_characters_untouched(self):
        assert filename_for_slice(FakeSlice("a b:c", "pdf")) == "a b:c.pdf"


class TestExportSelection:
    """Export of the current selection."""

    def test_exports_every_slice_into_one_directory(self, temp_dir, analytics, icon_layer, banner_layer):
        """Two layers, three slices: three files, one fresh directory."""
        document = FakeDocument([icon_layer, banner_layer])
        engine = ExportEngine(FakeHost(document), analytics, export_root=temp_dir)

        paths = engine.export_selection("DES-12")

        assert [Path(p).name for p in paths] == ["icons_add.png", "icons_add.svg", "banner.jpg"]
        assert len({Path(p).parent for p in paths}) == 1
        assert all(Path(p).is_absolute() and Path(p).exists() for p in paths)
        assert Path(paths[0]).parent.parent == temp_dir

    def test_same_slice_name_on_two_layers(self, temp_dir, analytics):
        """Identical name and format write the same file; the later layer's export wins."""
        first = FakeLayer("first", [FakeSlice("icon", "svg")], values={LAYER_LAST_EXPORTED_ISSUE: "PROJ-1"})
        second = FakeLayer("second", [FakeSlice("icon", "svg")])
        document = FakeDocument([first, second])
        engine = ExportEngine(FakeHost(document), analytics, export_root=temp_dir)

        assert engine.get_last_exported_issue_for_selection() == "PROJ-1"

        paths = engine.export_selection("PROJ-2")

        assert len(paths) == 2
        assert all(p.endswith("icon.svg") for p in paths)
        assert len({Path(p).parent for p in paths}) == 1
        assert len(list(Path(paths[0]).parent.iterdir())) == 1
        assert engine.get_last_exported_issue_for_selection() == "PROJ-2"

    def test_each_export_gets_fresh_directory(self, temp_dir, analytics, banner_layer):
        engine = ExportEngine(FakeHost(FakeDocument([banner_layer])), analytics, export_root=temp_dir)

        first = engine.export_selection("DES-1")
        second = engine.export_selection("DES-1")

        assert Path(first[0]).parent != Path(second[0]).parent

    def test_layers_tagged_with_issue(self, temp_dir, analytics, icon_layer, banner_layer):
        icon_layer.values[LAYER_LAST_EXPORTED_ISSUE] = "OLD-1"
        engine = ExportEngine(FakeHost(FakeDocument([icon_layer, banner_layer])), analytics, export_root=temp_dir)

        engine.export_selection("DES-12")

        assert icon_layer.values[LAYER_LAST_EXPORTED_ISSUE] == "DES-12"
        assert banner_layer.values[LAYER_LAST_EXPORTED_ISSUE] == "DES-12"

    def test_tag_failure_does_not_stop_export(self, temp_dir, analytics, icon_layer, banner_layer):
        """A layer that can't be tagged still leaves later layers exported and tagged."""
        icon_layer.tag_error = RuntimeError("locked")
        engine = ExportEngine(FakeHost(FakeDocument([icon_layer, banner_layer])), analytics, export_root=temp_dir)

        paths = engine.export_selection("DES-12")

        assert len(paths) == 3
        assert LAYER_LAST_EXPORTED_ISSUE not in icon_layer.values
        assert banner_layer.values[LAYER_LAST_EXPORTED_ISSUE] == "DES-12"

    def test_write_failure_propagates(self, temp_dir, analytics, banner_layer):
        class FullDiskDocument(FakeDocument):
            def save_slice(self, export_slice, path):
                raise OSError("No space left on device")

        engine = ExportEngine(FakeHost(FullDiskDocument([banner_layer])), analytics, export_root=temp_dir)

        with pytest.raises(OSError):
            engine.export_selection("DES-12")
        assert LAYER_LAST_EXPORTED_ISSUE not in banner_layer.values

    def test_layer_without_slices(self, temp_dir, analytics):
        layer = FakeLayer("empty")
        engine = ExportEngine(FakeHost(FakeDocument([layer])), analytics, export_root=temp_dir)

        assert engine.export_selection("DES-12") == []
        assert layer.values[LAYER_LAST_EXPORTED_ISSUE] == "DES-12"

    def test_empty_selection(self, temp_dir, analytics):
        engine = ExportEngine(FakeHost(FakeDocument([])), analytics, export_root=temp_dir)

        assert engine.export_selection("DES-12") == []
        assert list(temp_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_analytics(self, bus, temp_dir, analytics, metrics, icon_layer, banner_layer):
        engine = ExportEngine(FakeHost(FakeDocument([icon_layer, banner_layer])), analytics, export_root=temp_dir)

        engine.export_selection("DES-12")
        await bus.drain()

        assert metrics.topics() == ["exportMultipleFormats", "exportSingleFormat", "exportSelectedLayers"]
        assert metrics.of("exportSelectedLayers") == [{"count": 2}]
        assert metrics.of("exportMultipleFormats") == [{"count": 2}]

    @pytest.mark.asyncio
    async def test_single_layer_analytics(self, bus, temp_dir, analytics, metrics, banner_layer):
        engine = ExportEngine(FakeHost(FakeDocument([banner_layer])), analytics, export_root=temp_dir)

        engine.export_selection("DES-12")
        await bus.drain()

        assert metrics.topics() == ["exportSingleFormat", "exportSelectedLayer"]


class TestIssueTags:
    """Layer and document tags."""

    @pytest.mark.parametrize(
        "tags,expected",
        [
            (["PROJ-1", None, "PROJ-2"], "PROJ-1"),
            ([None, "DES-2", "DES-3"], "DES-2"),
            ([None, None], None),
        ],
    )
    def test_first_tagged_layer_wins(self, analytics, tags, expected):
        layers = [
            FakeLayer(f"layer-{i}", values={LAYER_LAST_EXPORTED_ISSUE: tag} if tag else {})
            for i, tag in enumerate(tags)
        ]
        engine = ExportEngine(FakeHost(FakeDocument(layers)), analytics)

        assert engine.get_last_exported_issue_for_selection() == expected

    def test_empty_selection(self, analytics):
        engine = ExportEngine(FakeHost(FakeDocument([])), analytics)

        assert engine.get_last_exported_issue_for_selection() is None
        assert engine.are_layers_selected() is False

    def test_last_viewed_issue(self, analytics):
        document = FakeDocument([FakeLayer("a")])
        engine = ExportEngine(FakeHost(document), analytics)

        assert engine.get_last_viewed_issue_for_document() is None
        engine.set_last_viewed_issue_for_document("DES-7")

        assert document.values[DOCUMENT_LAST_VIEWED_ISSUE] == "DES-7"
        assert engine.get_last_viewed_issue_for_document() == "DES-7"
        assert engine.are_layers_selected() is True


class TestUnresolvedDocument:
    """No document: every operation is a quiet no-op."""

    def test_operations_return_empty(self, temp_dir, analytics):
        engine = ExportEngine(FakeHost(None), analytics, export_root=temp_dir)

        assert engine.export_selection("DES-12") == []
        assert engine.get_last_exported_issue_for_selection() is None
        assert engine.get_last_viewed_issue_for_document() is None
        assert engine.are_layers_selected() is False
        engine.set_last_viewed_issue_for_document("DES-12")
        assert list(temp_dir.iterdir()) == []
