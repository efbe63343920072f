"""Unit tests for the scene module."""

import pytest

from flowlink.models import BoundingBox, Style
from flowlink.planner import build_line_spec
from flowlink.scene import (
    ChangeKind,
    InMemoryScene,
    SceneChange,
    SceneError,
    SelectionChange,
    bounds_of,
)


@pytest.fixture
def events(scene):
    received = []
    scene.subscribe(received.append)
    return received


class TestSceneChange:
    """Tests for SceneChange."""

    @pytest.mark.parametrize("prop", ["x", "y", "width", "height"])
    def test_geometry_properties(self, prop):
        change = SceneChange(ChangeKind.PROPERTY_CHANGE, "a", frozenset({prop}))
        assert change.touches_geometry

    def test_other_properties(self):
        change = SceneChange(ChangeKind.PROPERTY_CHANGE, "a", frozenset({"name", "fills"}))
        assert not change.touches_geometry

    def test_delete_is_not_geometry(self):
        assert not SceneChange(ChangeKind.DELETE, "a").touches_geometry


class TestInMemoryScene:
    """Tests for InMemoryScene."""

    def test_add_object(self, scene, events):
        obj = scene.add_object("a", 0, 0, 50, 50, name="Box")
        assert obj.name == "Box"
        assert scene.get_bounding_box("a") == BoundingBox(0, 0, 50, 50)
        assert events == [[SceneChange(ChangeKind.CREATE, "a")]]

    def test_duplicate_id_rejected(self, scene):
        scene.add_object("a", 0, 0, 50, 50)
        with pytest.raises(SceneError):
            scene.add_object("a", 0, 0, 50, 50)

    def test_move_reports_changed_axes(self, scene, events):
        scene.add_object("a", 0, 0, 50, 50)
        events.clear()
        scene.move("a", 10, 0)
        assert events == [[SceneChange(ChangeKind.PROPERTY_CHANGE, "a", frozenset({"x"}))]]

    def test_move_to_same_place_is_silent(self, scene, events):
        scene.add_object("a", 0, 0, 50, 50)
        events.clear()
        scene.move("a", 0, 0)
        assert events == []

    def test_resize(self, scene, events):
        scene.add_object("a", 0, 0, 50, 50)
        events.clear()
        scene.resize("a", 80, 50)
        assert scene.get_bounding_box("a") == BoundingBox(0, 0, 80, 50)
        assert events[0][0].properties == frozenset({"width"})

    def test_rename_is_not_geometry(self, scene, events):
        scene.add_object("a", 0, 0, 50, 50)
        events.clear()
        scene.rename("a", "Renamed")
        assert not events[0][0].touches_geometry

    def test_delete(self, scene, events):
        scene.add_object("a", 0, 0, 50, 50)
        events.clear()
        scene.delete("a")
        assert scene.lookup("a") is None
        assert scene.get_bounding_box("a") is None
        assert events == [[SceneChange(ChangeKind.DELETE, "a")]]

    def test_remove_twice_raises(self, scene):
        obj = scene.add_object("a", 0, 0, 50, 50)
        scene.remove(obj)
        with pytest.raises(SceneError):
            scene.remove(obj)

    def test_unknown_object(self, scene):
        with pytest.raises(SceneError):
            scene.move("missing", 0, 0)

    def test_batch_delivers_once(self, scene, events):
        with scene.batch():
            scene.add_object("a", 0, 0, 50, 50)
            scene.move("a", 5, 5)
            assert events == []
        assert len(events) == 1
        assert [c.kind for c in events[0]] == [ChangeKind.CREATE, ChangeKind.PROPERTY_CHANGE]

    def test_nested_batch(self, scene, events):
        with scene.batch():
            scene.add_object("a", 0, 0, 50, 50)
            with scene.batch():
                scene.move("a", 5, 5)
        assert len(events) == 1

    def test_create_line_and_append(self, scene):
        spec = build_line_spec("Flow", [(0, 0), (10, 0)], Style())
        line = scene.create_line(spec)
        assert line.kind == "line"
        assert line.parent is None
        assert line not in scene.visible_objects()
        scene.append_to_parent(line)
        assert line.parent == "page"
        assert line in scene.visible_objects()
        assert scene.lookup(line.id).spec is spec

    def test_generated_ids_are_unique(self, scene):
        spec = build_line_spec("Flow", [(0, 0), (10, 0)], Style())
        ids = {scene.create_line(spec).id for _ in range(5)}
        assert len(ids) == 5

    def test_selection(self, scene):
        received = []
        scene.on_selection(received.append)
        scene.select("a", "b")
        assert received == [SelectionChange(("a", "b"))]
        assert scene.selection == ("a", "b")

    def test_deleted_object_leaves_selection(self, scene):
        scene.add_object("a", 0, 0, 50, 50)
        scene.select("a")
        scene.delete("a")
        assert scene.selection == ()

    def test_objects_of_kind(self, scene):
        scene.add_object("a", 0, 0, 50, 50)
        scene.create_line(build_line_spec("Flow", [(0, 0), (10, 0)], Style()))
        assert [o.id for o in scene.objects_of_kind("shape")] == ["a"]
        assert len(scene.objects_of_kind("line")) == 1


def test_bounds_of():
    assert bounds_of([(5, 10), (0, 20), (15, 0)]) == BoundingBox(0, 0, 15, 20)
