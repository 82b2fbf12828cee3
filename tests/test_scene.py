"""
Tests for the render clock and the scene graph.

Tests cover:
- Easing and transition sampling
- Superseding in-flight transitions
- Diff/join identity across updates
- Tag clearing, z-order and default restoration
- Scene teardown
"""

import pytest

from payscope.data.schemas import SalaryRecord
from payscope.exceptions import DataValidationError, SceneClosedError
from payscope.features.aggregators import GroupStat
from payscope.scene.clock import RenderClock, ease_cubic_in_out
from payscope.scene.graph import Annotation, Scene, default_key


# =============================================================================
# FIXTURES
# =============================================================================


def encode_value(value: int) -> dict:
    return {"cx": float(value), "r": 5}


@pytest.fixture
def scene() -> Scene:
    return Scene(RenderClock())


# =============================================================================
# CLOCK TESTS
# =============================================================================


class TestRenderClock:
    """Tests for RenderClock."""

    def test_easing_endpoints(self) -> None:
        assert ease_cubic_in_out(0) == 0
        assert ease_cubic_in_out(0.5) == 0.5
        assert ease_cubic_in_out(1) == 1

    def test_instant_change_not_scheduled(self) -> None:
        clock = RenderClock()
        assert clock.schedule("k", {"x": 0}, {"x": 1}, 0) is None
        assert clock.pending == 0

    def test_sample_midway(self) -> None:
        clock = RenderClock()
        clock.schedule("k", {"x": 0}, {"x": 100}, 1000)
        clock.tick(500)
        assert clock.sample("k", {})["x"] == 50

    def test_non_numeric_attrs_jump(self) -> None:
        clock = RenderClock()
        clock.schedule("k", {"fill": "red"}, {"fill": "blue"}, 1000)
        assert clock.sample("k", {})["fill"] == "blue"

    def test_supersede_starts_from_current_value(self) -> None:
        clock = RenderClock()
        clock.schedule("k", {"x": 0}, {"x": 100}, 1000)
        clock.tick(500)

        transition = clock.schedule("k", {"x": 100}, {"x": 0}, 1000)

        assert clock.superseded_count == 1
        assert transition.start["x"] == 50
        assert clock.pending == 1

    def test_tick_retires_finished(self) -> None:
        clock = RenderClock()
        clock.schedule("a", {"x": 0}, {"x": 1}, 100)
        clock.schedule("b", {"x": 0}, {"x": 1}, 1000)

        assert clock.tick(100) == ["a"]
        assert clock.is_animating("b")
        assert clock.flush() == ["b"]
        assert clock.pending == 0

    def test_sample_idle_returns_fallback(self) -> None:
        clock = RenderClock()
        assert clock.sample("k", {"x": 3}) == {"x": 3}


# =============================================================================
# JOIN TESTS
# =============================================================================


class TestSetShapes:
    """Tests for Scene.set_shapes."""

    def test_enter(self, scene) -> None:
        result = scene.set_shapes("dots", [1, 2, 3], encode_value, kind="circle")
        assert len(result.entered) == 3
        assert len(scene) == 3
        assert scene.count("dots") == 3

    def test_update_keeps_identity(self, scene) -> None:
        first = scene.set_shapes("dots", [1, 2], encode_value, kind="circle")
        ids = {s.key: s.shape_id for s in first.entered}

        second = scene.set_shapes("dots", [2, 1], lambda v: {"cx": v * 10.0}, kind="circle")

        assert second.entered == []
        assert {s.key: s.shape_id for s in second.updated} == ids
        assert scene.find("dots", 2).attrs["cx"] == 20.0

    def test_exit(self, scene) -> None:
        scene.set_shapes("dots", [1, 2, 3], encode_value, kind="circle")
        result = scene.set_shapes("dots", [2], encode_value, kind="circle")

        assert [s.key for s in result.exited] == [1, 3]
        assert [s.key for s in scene.select("dots")] == [2]

    def test_other_tags_untouched(self, scene) -> None:
        scene.set_shapes("dots", [1], encode_value, kind="circle")
        scene.set_shapes("lines", [1], encode_value, kind="line")
        scene.set_shapes("dots", [], encode_value, kind="circle")

        assert scene.tags() == {"lines"}

    def test_update_is_animated(self, scene) -> None:
        scene.set_shapes("dots", [1], encode_value, kind="circle")
        scene.set_shapes("dots", [1], lambda v: {"cx": 100.0, "r": 5}, kind="circle", duration=1000)
        shape = scene.find("dots", 1)

        assert shape.attrs["cx"] == 100.0
        assert scene.clock.is_animating(shape.clock_key)
        scene.clock.tick(500)
        assert scene.clock.sample(shape.clock_key, shape.attrs)["cx"] == 50.5

    def test_unchanged_update_not_animated(self, scene) -> None:
        scene.set_shapes("dots", [1], encode_value, kind="circle")
        scene.set_shapes("dots", [1], encode_value, kind="circle", duration=1000)
        assert scene.clock.pending == 0

    def test_enter_from(self, scene) -> None:
        scene.set_shapes("dots", [1], encode_value, kind="circle", duration=1000, enter_from={"r": 0})
        shape = scene.find("dots", 1)
        assert scene.clock.sample(shape.clock_key, shape.attrs)["r"] == 0

    def test_duplicate_keys_rejected(self, scene) -> None:
        with pytest.raises(DataValidationError):
            scene.set_shapes("dots", [1, 1], encode_value, kind="circle")

    def test_unknown_kind_rejected(self, scene) -> None:
        with pytest.raises(DataValidationError):
            scene.set_shapes("dots", [1], encode_value, kind="hexagon")

    def test_kind_change_recreates(self, scene) -> None:
        scene.set_shapes("marks", [1], encode_value, kind="circle")
        old_id = scene.find("marks", 1).shape_id

        scene.set_shapes("marks", [1], encode_value, kind="rect")

        shape = scene.find("marks", 1)
        assert shape.kind == "rect"
        assert shape.shape_id != old_id

    def test_default_keys(self) -> None:
        record = SalaryRecord(record_id=4, entity="A")
        assert default_key(record) == ("record", 4)
        assert default_key(GroupStat("A")) == ("group", "A")
        assert default_key(Annotation(key="cap", kind="rect")) == ("annotation", "cap")


# =============================================================================
# APPEARANCE AND Z-ORDER TESTS
# =============================================================================


class TestSceneOrdering:
    """Tests for clearing, z-order and defaults."""

    def test_clear_tags(self, scene) -> None:
        scene.set_shapes("dots", [1, 2], encode_value, kind="circle")
        scene.set_shapes("lines", [1], encode_value, kind="line")

        assert scene.clear_tags(["dots", "missing"]) == 2
        assert scene.tags() == {"lines"}

    def test_raise_and_lower(self, scene) -> None:
        scene.set_shapes("dots", [1, 2], encode_value, kind="circle")
        scene.set_shapes("lines", [1], encode_value, kind="line")

        scene.lower_tag("lines")
        assert [s.tag for s in scene] == ["lines", "dots", "dots"]

        scene.raise_shapes([scene.find("dots", 1)])
        assert [(s.tag, s.key) for s in scene] == [("lines", 1), ("dots", 2), ("dots", 1)]

    def test_restore_defaults(self, scene) -> None:
        scene.set_shapes("dots", [1], encode_value, kind="circle")
        shape = scene.find("dots", 1)

        scene.set_attrs([shape], opacity=0.2)
        assert shape.attrs["opacity"] == 0.2
        assert "opacity" not in shape.defaults

        scene.restore_defaults()
        assert shape.attrs == {"cx": 1.0, "r": 5}

    def test_version_tracks_rewrites(self, scene) -> None:
        scene.set_shapes("dots", [1], encode_value, kind="circle")
        shape = scene.find("dots", 1)
        versions = [shape.version]

        scene.set_attrs([shape], opacity=0.2)
        versions.append(shape.version)
        scene.restore_defaults()
        versions.append(shape.version)
        scene.set_shapes("dots", [1], encode_value, kind="circle")
        versions.append(shape.version)
        scene.raise_shapes([shape])
        versions.append(shape.version)

        assert versions == [0, 1, 2, 3, 3]

    def test_snapshot_comparable(self, scene) -> None:
        scene.set_shapes("dots", [1, 2], encode_value, kind="circle")
        before = scene.snapshot()
        scene.set_shapes("dots", [1, 2], encode_value, kind="circle")
        assert scene.snapshot() == before


# =============================================================================
# LIFECYCLE TESTS
# =============================================================================


class TestSceneLifecycle:
    """Tests for Scene.close."""

    def test_close_releases_shapes(self, scene) -> None:
        scene.set_shapes("dots", [1], encode_value, kind="circle", duration=1000, enter_from={"r": 0})
        scene.close()

        assert len(scene) == 0
        assert scene.clock.pending == 0

    def test_mutation_after_close(self, scene) -> None:
        scene.close()
        with pytest.raises(SceneClosedError):
            scene.set_shapes("dots", [1], encode_value, kind="circle")
        with pytest.raises(SceneClosedError):
            scene.clear_tags(["dots"])

    def test_context_manager(self) -> None:
        with Scene() as scene:
            scene.set_shapes("dots", [1], encode_value, kind="circle")
        assert scene.closed
