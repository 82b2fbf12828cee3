"""
Tests for the narrative step controller.

Tests cover:
- Geometry of each step (average lines, reference highlight, clipping overlays)
- Aborting a step when the reference record is missing
- Idempotent re-entry and residue-free transitions between any two steps
- Z-order and value domains per step
"""

import logging

import pytest

from payscope.data.schemas import SalaryRecord
from payscope.exceptions import SceneClosedError, UnknownStepError
from payscope.settings import Settings
from payscope.story.controller import NarrativeController
from payscope.story.steps import (
    ARROW,
    AVG_LINE,
    CALLOUT,
    CAP,
    HIGHLIGHT_LABEL,
    HIGHLIGHT_POINT,
    SCATTER_POINT,
    STEP_TABLE,
    NarrativeStep,
    parse_step,
)


# =============================================================================
# FIXTURES
# =============================================================================


def make_record(record_id: int, entity: str, metric: float, name: str = "") -> SalaryRecord:
    """Helper to create SalaryRecord."""
    return SalaryRecord(
        record_id=record_id,
        entity=entity,
        name=name or f"Person {record_id}",
        metric=metric,
        role="Professor",
    )


def make_settings(**overrides) -> Settings:
    values = {
        "entities": ["A", "B"],
        "reference_name": "Smith, Jane",
        "focus_entity": "A",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def small_records() -> list[SalaryRecord]:
    return [
        make_record(0, "A", 100, "Smith, Jane"),
        make_record(1, "A", 200),
        make_record(2, "B", 300),
    ]


@pytest.fixture
def clipped_records() -> list[SalaryRecord]:
    """Group B has one entry far above every average."""
    return [
        make_record(0, "A", 100000, "Smith, Jane"),
        make_record(1, "A", 120000),
        make_record(2, "B", 150000),
        make_record(3, "B", 500000),
    ]


@pytest.fixture
def controller(small_records):
    with NarrativeController(small_records, make_settings()) as ctrl:
        yield ctrl


# =============================================================================
# STEP TABLE TESTS
# =============================================================================


class TestParseStep:
    """Tests for parse_step."""

    def test_accepts_enum_value_and_name(self) -> None:
        assert parse_step(NarrativeStep.CLEAR) is NarrativeStep.CLEAR
        assert parse_step("average_lines") is NarrativeStep.AVERAGE_LINES
        assert parse_step("filter_top_k") is NarrativeStep.FILTER_TOP_K
        assert parse_step("RESCALE_FULL") is NarrativeStep.RESCALE_FULL

    def test_unknown_step(self) -> None:
        with pytest.raises(UnknownStepError) as exc_info:
            parse_step("bogus")
        assert exc_info.value.step == "bogus"

    def test_preserved_tags_are_drawn(self) -> None:
        for definition in STEP_TABLE.values():
            assert set(definition.preserves) <= set(definition.draws)


# =============================================================================
# STEP GEOMETRY TESTS
# =============================================================================


class TestAverageLines:
    """Tests for the average-lines step."""

    def test_line_height_matches_group_mean(self, controller) -> None:
        outcome = controller.average_lines()

        line_a = controller.scene.find(AVG_LINE, ("group", "A"))
        line_b = controller.scene.find(AVG_LINE, ("group", "B"))
        assert outcome.applied
        assert line_a.attrs["y1"] == controller.axes.y(150)
        assert line_a.attrs["y2"] == line_a.attrs["y1"]
        assert line_b.attrs["y1"] == controller.axes.y(300)

    def test_line_spans_band(self, controller) -> None:
        controller.average_lines()
        line = controller.scene.find(AVG_LINE, ("group", "A"))
        assert line.attrs["x1"] == controller.axes.band_start("A")
        assert line.attrs["x2"] == controller.axes.band_end("A")

    def test_domain_falls_back_to_zero(self, controller) -> None:
        # Floor above the highest mean + headroom starts the axis at 0
        controller.average_lines()
        assert controller.axes.domain == (0, 10300)

    def test_domain_uses_floor(self, clipped_records) -> None:
        with NarrativeController(clipped_records, make_settings()) as ctrl:
            ctrl.average_lines()
            assert ctrl.axes.domain == (70000, 335000)

    def test_focus_label(self, controller) -> None:
        controller.average_lines()
        label = controller.scene.select(HIGHLIGHT_LABEL)[0]
        assert label.attrs["text"] == "A has an average salary of $150."
        assert controller.scene.count(ARROW) == 1

    def test_narration(self, controller) -> None:
        heard = []
        controller.on_narration = heard.append

        outcome = controller.average_lines()

        assert outcome.narration == controller.narratives[NarrativeStep.AVERAGE_LINES].text
        assert heard == [outcome.narration]
        assert controller.active_step == NarrativeStep.AVERAGE_LINES


class TestHighlightReference:
    """Tests for the reference highlight step."""

    def test_highlights_reference(self, controller) -> None:
        outcome = controller.highlight_reference()

        points = controller.scene.select(HIGHLIGHT_POINT)
        assert outcome.applied
        assert [p.key for p in points] == [("record", 0)]
        assert points[0].attrs["cy"] == controller.axes.y(100)
        assert points[0].attrs["r"] == 8
        assert controller.scene.count(AVG_LINE) == 2

    def test_reference_label(self, controller) -> None:
        controller.highlight_reference()
        label = controller.scene.select(HIGHLIGHT_LABEL)[0]
        assert label.attrs["text"] == "This is Jane Smith with a salary of $100."

    def test_highlight_drawn_on_top(self, controller) -> None:
        controller.highlight_reference()
        assert controller.scene.select()[-1].tag == HIGHLIGHT_POINT

    def test_average_lines_preserved(self, controller) -> None:
        controller.average_lines()
        ids = {s.key: s.shape_id for s in controller.scene.select(AVG_LINE)}

        controller.highlight_reference()

        assert {s.key: s.shape_id for s in controller.scene.select(AVG_LINE)} == ids


class TestMissingReference:
    """A missing reference aborts the step and leaves the scene alone."""

    def test_aborts_without_mutation(self, small_records, caplog) -> None:
        with NarrativeController(small_records, make_settings(reference_name="Nobody")) as ctrl:
            ctrl.average_lines()
            before = ctrl.scene.snapshot()
            narration = ctrl.narration

            with caplog.at_level(logging.ERROR):
                outcome = ctrl.highlight_reference()

            assert not outcome.applied
            assert ctrl.scene.snapshot() == before
            assert ctrl.narration == narration
            assert ctrl.active_step == NarrativeStep.AVERAGE_LINES
            assert ctrl.last_error.name == "Nobody"
            assert "Nobody" in outcome.diagnostic
            assert "3 records" in outcome.diagnostic
            assert "not found" in caplog.text

    def test_abort_from_empty_scene(self, small_records) -> None:
        with NarrativeController(small_records, make_settings(reference_name="Nobody")) as ctrl:
            outcome = ctrl.highlight_reference()
            assert not outcome.applied
            assert len(ctrl.scene) == 0
            assert ctrl.active_step is None

    def test_later_step_clears_error(self, small_records) -> None:
        with NarrativeController(small_records, make_settings(reference_name="Nobody")) as ctrl:
            ctrl.highlight_reference()
            assert ctrl.all_entries().applied
            assert ctrl.last_error is None


class TestAllEntries:
    """Tests for the all-entries step and its clipping overlays."""

    def test_points_under_lines(self, controller) -> None:
        controller.all_entries()
        tags = [s.tag for s in controller.scene]

        assert tags.count(SCATTER_POINT) == 3
        last_point = max(i for i, t in enumerate(tags) if t == SCATTER_POINT)
        first_line = tags.index(AVG_LINE)
        assert last_point < first_line
        assert tags[-1] == CAP

    def test_no_clipping_overlays_when_everything_fits(self, controller) -> None:
        controller.all_entries()
        assert controller.scene.count(ARROW) == 0
        assert controller.scene.count(CALLOUT) == 0
        assert controller.scene.count(CAP) == 1

    def test_clipping_overlays(self, clipped_records) -> None:
        with NarrativeController(clipped_records, make_settings()) as ctrl:
            ctrl.all_entries()

            arrows = ctrl.scene.select(ARROW)
            callout = ctrl.scene.select(CALLOUT)
            assert [a.key for a in arrows] == [("annotation", "clipped:B")]
            assert [c.kind for c in callout] == ["rect", "text", "text", "text"]

            panel = callout[0]
            assert 0 <= panel.attrs["x"] <= ctrl.settings.canvas.width - panel.attrs["width"]

    def test_point_style(self, controller) -> None:
        controller.all_entries()
        point = controller.scene.find(SCATTER_POINT, ("record", 2))
        assert point.attrs["r"] == 5
        assert point.attrs["opacity"] == 0.3
        assert point.attrs["cx"] == controller.axes.band_center("B")


class TestRescaleFull:
    """Tests for the full rescale."""

    def test_domain_covers_every_record(self, clipped_records) -> None:
        with NarrativeController(clipped_records, make_settings()) as ctrl:
            ctrl.all_entries()
            outcome = ctrl.rescale_full()

            assert outcome.domain == (0, 500000)
            top = ctrl.scene.find(SCATTER_POINT, ("record", 3))
            assert top.attrs["cy"] == ctrl.settings.canvas.plot_top

    def test_lines_follow_new_scale(self, controller) -> None:
        controller.all_entries()
        controller.rescale_full()
        line = controller.scene.find(AVG_LINE, ("group", "A"))
        assert line.attrs["y1"] == controller.axes.y(150)

    def test_points_animate_to_new_positions(self, controller) -> None:
        controller.all_entries()
        point = controller.scene.find(SCATTER_POINT, ("record", 0))
        shape_id = point.shape_id

        controller.rescale_full()

        moved = controller.scene.find(SCATTER_POINT, ("record", 0))
        assert moved.shape_id == shape_id
        assert controller.scene.clock.is_animating(moved.clock_key)


class TestFilterTopK:
    """Tests for the top-K filter."""

    def test_at_most_k_per_entity(self) -> None:
        records = [make_record(i, "A", 1000 + i) for i in range(15)]
        records.append(make_record(15, "B", 50, "Smith, Jane"))

        with NarrativeController(records, make_settings()) as ctrl:
            ctrl.filter_top_k()
            points_a = ctrl.scene.select(SCATTER_POINT, lambda s: s.datum.entity == "A")
            metrics = sorted((s.datum.metric for s in points_a), reverse=True)

            assert len(points_a) == 10
            assert metrics == [1014 - i for i in range(10)]
            assert ctrl.scene.tags() == {SCATTER_POINT}
            assert ctrl.axes.domain == (0, 1014)


# =============================================================================
# TRANSITION PROPERTY TESTS
# =============================================================================


class TestTransitions:
    """Properties that hold for every step."""

    @pytest.mark.parametrize("step", list(NarrativeStep))
    def test_reentry_is_idempotent(self, clipped_records, step) -> None:
        with NarrativeController(clipped_records, make_settings()) as ctrl:
            ctrl.show(step)
            first = ctrl.scene.snapshot()
            ctrl.show(step)
            assert ctrl.scene.snapshot() == first

    @pytest.mark.parametrize("previous", list(NarrativeStep))
    @pytest.mark.parametrize("step", list(NarrativeStep))
    def test_no_residue_between_steps(self, clipped_records, previous, step) -> None:
        with NarrativeController(clipped_records, make_settings()) as ctrl:
            ctrl.show(previous)
            ctrl.show(step)
            assert ctrl.scene.tags() <= set(STEP_TABLE[step].draws)

    def test_clear_empties_scene(self, controller) -> None:
        controller.all_entries()
        outcome = controller.clear()
        assert outcome.applied
        assert len(controller.scene) == 0

    def test_unknown_step(self, controller) -> None:
        with pytest.raises(UnknownStepError):
            controller.show("bogus")

    def test_closed_controller(self, small_records) -> None:
        ctrl = NarrativeController(small_records, make_settings())
        ctrl.close()
        with pytest.raises(SceneClosedError):
            ctrl.average_lines()
