"""
Module: controller

Purpose: Drive one shared scene through the narrative steps.

Key Functions:
- NarrativeController.show: Transition to any step, from any step
- NarrativeController.average_lines / highlight_reference / all_entries /
  rescale_full / filter_top_k / clear: One entry point per step

Architecture Notes:
- Each transition is planned first (data subset, domain, overlays) and only
  then applied, so a failed plan leaves the previous scene untouched
- Applying a plan clears the step's declared tags, re-fits the value domain,
  joins the step's layers and appends its overlays; re-entering the same step
  yields an identical scene
- Transitions are synchronous; animations are scheduled on the render clock
  and never awaited
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from payscope.data.schemas import Record
from payscope.exceptions import ReferenceRecordNotFoundError
from payscope.features.aggregators import (
    GroupStat,
    find_reference_record,
    group_stats,
    max_mean,
    max_metric,
    stats_by_entity,
    top_k_per_entity,
)
from payscope.scene.axes import AxisController
from payscope.scene.clock import RenderClock
from payscope.scene.graph import Annotation, Scene
from payscope.scene.svg import ARROWHEAD_ID, CAP_GRADIENT_ID
from payscope.settings import Settings
from payscope.story.base import StepNarrative, StepOutcome
from payscope.story.narratives import (
    CALLOUT_LINES,
    focus_average_label,
    generate_all_narratives,
    reference_label,
)
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

logger = logging.getLogger(__name__)

# Palette
AVG_LINE_COLOR = "#ACFAD8"
POINT_COLOR = "#519FAB"
HIGHLIGHT_COLOR = "#79D0B4"
CALLOUT_FILL = "rgba(21, 31, 44, 0.8)"
POINT_OPACITY = 0.3

# Callout panel geometry
CALLOUT_WIDTH = 400
CALLOUT_HEIGHT = 85


# =============================================================================
# PLAN OBJECTS
# =============================================================================


@dataclass
class Layer:
    """One data-bound shape group to join."""

    tag: str
    kind: str
    data: Sequence[Any]
    encoder: Callable[[Any], dict[str, Any]]
    animate: bool = True


@dataclass
class StepPlan:
    """Everything a transition will do, computed before the scene is touched."""

    step: NarrativeStep
    clears: tuple[str, ...]
    domain: tuple[float, float] | None = None
    layers: list[Layer] = field(default_factory=list)
    overlays: Callable[[], dict[str, list[Annotation]]] | None = None
    lower: tuple[str, ...] = ()
    raise_: tuple[str, ...] = ()


# =============================================================================
# CONTROLLER
# =============================================================================


class NarrativeController:
    """
    Finite state machine over the salary story's steps.

    The controller owns the scene and axes for one visualization session.
    Records must be fully loaded before it is constructed.

    Usage:
        controller = NarrativeController(records, settings)
        controller.average_lines()
        outcome = controller.highlight_reference()
        if not outcome.applied:
            print(outcome.diagnostic)
        controller.close()
    """

    def __init__(
        self,
        records: Sequence[Record],
        settings: Settings | None = None,
        *,
        narratives: dict[NarrativeStep, StepNarrative] | None = None,
        clock: RenderClock | None = None,
        on_narration: Callable[[str], None] | None = None,
    ):
        self.settings = settings or Settings()
        self.scene = Scene(clock or RenderClock())
        self.axes = AxisController(
            self.settings.canvas,
            self.settings.entities,
            self.scene.clock,
            duration_ms=self.settings.transition_ms,
        )
        self.on_narration = on_narration
        self.active_step: NarrativeStep | None = None
        self.narration = ""
        self.last_error: ReferenceRecordNotFoundError | None = None
        self._custom_narratives = narratives
        self.load(records)

    # -------------------------------------------------------------------------
    # Data
    # -------------------------------------------------------------------------

    def load(self, records: Sequence[Record]) -> None:
        """Replace the record set and recompute every derived view."""
        self.records = list(records)
        self.stats: list[GroupStat] = group_stats(
            self.records, self.settings.entities, k=self.settings.top_k
        )
        self._stats_index = stats_by_entity(self.stats)
        try:
            self.reference: Record | None = find_reference_record(
                self.records, self.settings.reference_name
            )
        except ReferenceRecordNotFoundError:
            self.reference = None
        self.narratives = self._custom_narratives or generate_all_narratives(
            self.records, self.stats, self.reference, k=self.settings.top_k
        )
        logger.info(
            f"Loaded {len(self.records)} records across {len(self.stats)} entities"
        )

    def stat_for(self, entity: str) -> GroupStat | None:
        return self._stats_index.get(entity)

    def baseline_domain(self) -> tuple[float, float]:
        """Domain used by the average-line steps: just above the highest mean."""
        upper = max_mean(self.stats) + self.settings.baseline_headroom
        lower = self.settings.baseline_floor
        if lower >= upper:
            lower = 0.0
        return (lower, upper)

    # -------------------------------------------------------------------------
    # Encoders
    # -------------------------------------------------------------------------

    def _encode_avg_line(self, stat: GroupStat) -> dict[str, Any]:
        y = self.axes.y(stat.mean)
        return {
            "x1": self.axes.band_start(stat.entity),
            "x2": self.axes.band_end(stat.entity),
            "y1": y,
            "y2": y,
            "stroke": AVG_LINE_COLOR,
            "stroke-width": 2,
            "opacity": 1.0,
        }

    def _encode_point(self, record: Record) -> dict[str, Any]:
        return {
            "cx": self.axes.band_center(record.entity),
            "cy": self.axes.y(record.metric),
            "r": 5,
            "fill": POINT_COLOR,
            "opacity": POINT_OPACITY,
        }

    def _encode_highlight(self, record: Record) -> dict[str, Any]:
        return {
            "cx": self.axes.band_center(record.entity),
            "cy": self.axes.y(record.metric),
            "r": 8,
            "fill": HIGHLIGHT_COLOR,
            "opacity": 1.0,
        }

    @staticmethod
    def _label(key: str, x: float, y: float, text: str, *, size: int = 14, anchor: str = "start") -> Annotation:
        return Annotation(key=key, kind="text", attrs={
            "x": x,
            "y": y,
            "text": text,
            "fill": "white",
            "font-size": size,
            "text-anchor": anchor,
            "opacity": 1.0,
        })

    @staticmethod
    def _arrow(key: str, x1: float, y1: float, x2: float, y2: float) -> Annotation:
        return Annotation(key=key, kind="line", attrs={
            "x1": x1,
            "y1": y1,
            "x2": x2,
            "y2": y2,
            "stroke": "white",
            "stroke-width": 2,
            "marker-end": f"url(#{ARROWHEAD_ID})",
            "opacity": 1.0,
        })

    # -------------------------------------------------------------------------
    # Overlays
    # -------------------------------------------------------------------------

    def _focus_overlays(self) -> dict[str, list[Annotation]]:
        stat = self.stat_for(self.settings.focus_entity)
        if stat is None:
            return {}
        x = self.axes.band_center(stat.entity)
        y = self.axes.y(stat.mean)
        label_x, label_y = x + 100, y - 10
        return {
            HIGHLIGHT_LABEL: [self._label("focus-average", label_x, label_y, focus_average_label(stat))],
            ARROW: [self._arrow("focus-average", label_x - 10, label_y, x + 25, y)],
        }

    def _reference_overlays(self, reference: Record) -> dict[str, list[Annotation]]:
        x = self.axes.band_center(reference.entity)
        y = self.axes.y(reference.metric)
        label_x, label_y = x + 100, y - 5
        return {
            HIGHLIGHT_LABEL: [self._label("reference", label_x, label_y, reference_label(reference))],
            ARROW: [self._arrow("reference", label_x - 5, label_y - 5, x + 10, y)],
        }

    def _clipping_overlays(self, domain: tuple[float, float]) -> dict[str, list[Annotation]]:
        canvas = self.settings.canvas
        top = canvas.plot_top
        clipped = [
            s for s in self.stats
            if s.max_metric is not None and s.max_metric > domain[1]
        ]

        arrows = []
        for stat in clipped:
            x = self.axes.band_center(stat.entity)
            arrows.append(self._arrow(f"clipped:{stat.entity}", x + 40, top + 30, x + 10, top - 20))

        callout: list[Annotation] = []
        if clipped:
            anchor = self.axes.band_center(clipped[-1].entity)
            panel_x = min(max(anchor - 250, 0.0), canvas.width - CALLOUT_WIDTH)
            callout.append(Annotation(key="panel", kind="rect", attrs={
                "x": panel_x,
                "y": top + 35,
                "width": CALLOUT_WIDTH,
                "height": CALLOUT_HEIGHT,
                "rx": 10,
                "ry": 10,
                "fill": CALLOUT_FILL,
                "opacity": 1.0,
            }))
            for i, line in enumerate(CALLOUT_LINES):
                callout.append(self._label(
                    f"line-{i}",
                    panel_x + CALLOUT_WIDTH / 2,
                    top + 55 + 25 * i,
                    line,
                    size=12,
                    anchor="middle",
                ))

        cap = Annotation(key="cap", kind="rect", attrs={
            "x": 0,
            "y": 0,
            "width": canvas.width,
            "height": canvas.margin.top,
            "fill": f"url(#{CAP_GRADIENT_ID})",
        })
        return {ARROW: arrows, CALLOUT: callout, CAP: [cap]}

    # -------------------------------------------------------------------------
    # Planning
    # -------------------------------------------------------------------------

    def _avg_layer(self) -> Layer:
        return Layer(AVG_LINE, "line", self.stats, self._encode_avg_line)

    def _points_layer(self, records: Sequence[Record]) -> Layer:
        return Layer(SCATTER_POINT, "circle", records, self._encode_point)

    def _plan(self, step: NarrativeStep) -> StepPlan:
        """Build the transition for a step without touching the scene.

        Raises:
            ReferenceRecordNotFoundError: For the reference highlight when
                the named record is absent
        """
        clears = STEP_TABLE[step].clears

        if step == NarrativeStep.AVERAGE_LINES:
            return StepPlan(
                step=step,
                clears=clears,
                domain=self.baseline_domain(),
                layers=[self._avg_layer()],
                overlays=self._focus_overlays,
            )

        if step == NarrativeStep.HIGHLIGHT_REFERENCE:
            reference = find_reference_record(self.records, self.settings.reference_name)
            return StepPlan(
                step=step,
                clears=clears,
                domain=self.baseline_domain(),
                layers=[
                    self._avg_layer(),
                    Layer(HIGHLIGHT_POINT, "circle", [reference], self._encode_highlight),
                ],
                overlays=lambda: self._reference_overlays(reference),
                raise_=(HIGHLIGHT_POINT,),
            )

        if step == NarrativeStep.ALL_ENTRIES:
            domain = self.baseline_domain()
            return StepPlan(
                step=step,
                clears=clears,
                domain=domain,
                layers=[self._points_layer(self.records), self._avg_layer()],
                overlays=lambda: self._clipping_overlays(domain),
                lower=(SCATTER_POINT,),
                raise_=(CAP,),
            )

        if step == NarrativeStep.RESCALE_FULL:
            return StepPlan(
                step=step,
                clears=clears,
                domain=(0.0, max_metric(self.records)),
                layers=[self._points_layer(self.records), self._avg_layer()],
                lower=(SCATTER_POINT,),
            )

        if step == NarrativeStep.FILTER_TOP_K:
            top = top_k_per_entity(self.records, self.settings.entities, self.settings.top_k)
            return StepPlan(
                step=step,
                clears=clears,
                domain=(0.0, max_metric(top)),
                layers=[self._points_layer(top)],
            )

        return StepPlan(step=step, clears=clears)

    def _apply(self, plan: StepPlan) -> None:
        scene = self.scene
        duration = self.settings.transition_ms

        scene.clear_tags(plan.clears)
        if plan.domain is not None:
            self.axes.fit(plan.domain)

        for layer in plan.layers:
            scene.set_shapes(
                layer.tag,
                layer.data,
                layer.encoder,
                kind=layer.kind,
                duration=duration if layer.animate else 0,
            )

        if plan.overlays is not None:
            for tag, annotations in plan.overlays().items():
                fade = self.settings.annotation_fade_ms if tag == ARROW else duration
                scene.set_shapes(
                    tag,
                    annotations,
                    lambda a: a.attrs,
                    kind=lambda a: a.kind,
                    duration=0 if tag == CAP else fade,
                    enter_from=None if tag == CAP else {"opacity": 0.0},
                )

        for tag in plan.lower:
            scene.lower_tag(tag)
        for tag in plan.raise_:
            scene.raise_tag(tag)

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    def show(self, step: NarrativeStep | str) -> StepOutcome:
        """
        Transition to a step.

        Args:
            step: Target step (enum, value or name)

        Returns:
            StepOutcome; when `applied` is False the previous scene and
            narration are untouched and `diagnostic` names the problem

        Raises:
            UnknownStepError: If the step name is not recognised
            SceneClosedError: If the controller has been closed
        """
        step = parse_step(step)

        try:
            plan = self._plan(step)
        except ReferenceRecordNotFoundError as e:
            self.last_error = e
            diagnostic = (
                f"{step.value} aborted: reference record {e.name!r} "
                f"not found among {e.record_count} records"
            )
            logger.error(diagnostic)
            return StepOutcome(
                step=step,
                applied=False,
                narration=self.narration,
                domain=self.axes.domain if self.axes.fitted else None,
                shape_count=len(self.scene),
                diagnostic=diagnostic,
            )

        self._apply(plan)
        self.active_step = step
        self.last_error = None
        narrative = self.narratives.get(step)
        self.narration = narrative.text if narrative is not None else ""
        if self.on_narration is not None:
            self.on_narration(self.narration)

        logger.info(f"Entered step {step.value} ({len(self.scene)} shapes)")
        return StepOutcome(
            step=step,
            applied=True,
            narration=self.narration,
            domain=self.axes.domain if self.axes.fitted else None,
            shape_count=len(self.scene),
        )

    def average_lines(self) -> StepOutcome:
        return self.show(NarrativeStep.AVERAGE_LINES)

    def highlight_reference(self) -> StepOutcome:
        return self.show(NarrativeStep.HIGHLIGHT_REFERENCE)

    def all_entries(self) -> StepOutcome:
        return self.show(NarrativeStep.ALL_ENTRIES)

    def rescale_full(self) -> StepOutcome:
        return self.show(NarrativeStep.RESCALE_FULL)

    def filter_top_k(self) -> StepOutcome:
        return self.show(NarrativeStep.FILTER_TOP_K)

    def clear(self) -> StepOutcome:
        return self.show(NarrativeStep.CLEAR)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Tear down the scene at session end."""
        self.scene.close()
        self.active_step = None

    def __enter__(self) -> "NarrativeController":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
