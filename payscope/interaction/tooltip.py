"""
Hover tooltips with on-the-fly comparison ratios.

Given a hovered record, compares its metric against its group's mean, its
group's top earner and the fixed reference record. A ratio whose denominator
is missing (or zero) renders as a "not available" sentinel instead of failing.
"""

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from payscope.data.schemas import Record, SalaryRecord
from payscope.features.aggregators import GroupStat, stats_by_entity
from payscope.scene.graph import Scene, Shape
from payscope.story.narratives import display_name, short_name
from payscope.story.steps import HIGHLIGHT_POINT, SCATTER_POINT

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "N/A"
HOVER_TAGS: tuple[str, ...] = (SCATTER_POINT, HIGHLIGHT_POINT)

# Attributes the hover emphasis overrides
HOVER_EMPHASIS: dict[str, Any] = {"opacity": 1.0, "stroke": "black", "stroke-width": 2}


def format_ratio(numerator: float, denominator: float | None) -> str:
    """Ratio to 2 decimal places, or NOT_AVAILABLE when it can't be computed."""
    if denominator is None or denominator == 0:
        return NOT_AVAILABLE
    ratio = numerator / denominator
    if not math.isfinite(ratio):
        return NOT_AVAILABLE
    return f"{ratio:.2f}"


@dataclass(frozen=True)
class Comparison:
    """Formatted comparison ratios for one record."""

    vs_group_mean: str
    vs_group_top: str
    vs_reference: str


def compare_record(
    record: Record,
    stat: GroupStat | None,
    reference: Record | None,
) -> Comparison:
    """Compare a record against its group and the reference record."""
    return Comparison(
        vs_group_mean=format_ratio(record.metric, stat.mean if stat is not None else None),
        vs_group_top=format_ratio(record.metric, stat.max_metric if stat is not None else None),
        vs_reference=format_ratio(record.metric, reference.metric if reference is not None else None),
    )


@dataclass(frozen=True)
class Tooltip:
    """What the tooltip surface should show."""

    text: str = ""
    x: float = 0.0
    y: float = 0.0
    visible: bool = False


HIDDEN = Tooltip()


def tooltip_text(record: Record, comparison: Comparison, reference: Record | None) -> str:
    """Multi-line tooltip body for a record."""
    role = record.role if isinstance(record, SalaryRecord) else ""
    group = short_name(record.entity)
    reference_name = display_name(reference.name) if reference is not None else "Reference"
    lines = [
        record.name or "Unavailable",
        f"Salary: ${record.metric:,.0f}",
        f"Position: {role or 'Unavailable'}",
        "Compared to:",
        f"- {group} avg: {comparison.vs_group_mean}x",
        f"- {group} top: {comparison.vs_group_top}x",
        f"- {reference_name}: {comparison.vs_reference}x",
    ]
    return "\n".join(lines)


class HoverController:
    """
    Hover-enter / hover-exit handling for record shapes.

    On enter the hovered shape is emphasized and `on_render` receives the
    tooltip; on exit the shape returns to the appearance it had before the
    hover and the tooltip is hidden. Nothing persists between hovers.

    Exit only undoes the emphasized attributes, and only if nothing else
    (a step re-join, a search update) rewrote the shape after the hover
    began; otherwise the shape already shows the current state.
    """

    def __init__(
        self,
        scene: Scene,
        stats: Sequence[GroupStat],
        reference: Record | None,
        *,
        on_render: Callable[[Tooltip], None] | None = None,
        offset: tuple[float, float] = (10.0, 10.0),
    ):
        self.scene = scene
        self.stats = stats_by_entity(stats)
        self.reference = reference
        self.on_render = on_render
        self.offset = offset
        self.current = HIDDEN
        self._hovered: Shape | None = None
        self._saved_attrs: dict[str, Any] | None = None
        self._emphasized_version = 0

    def describe(self, record: Record) -> str:
        comparison = compare_record(record, self.stats.get(record.entity), self.reference)
        return tooltip_text(record, comparison, self.reference)

    def _emit(self, tooltip: Tooltip) -> Tooltip:
        self.current = tooltip
        if self.on_render is not None:
            self.on_render(tooltip)
        return tooltip

    def enter(self, shape: Shape, x: float, y: float) -> Tooltip:
        """Handle pointer entering a shape at screen coordinates (x, y)."""
        if self._hovered is not None:
            self.exit()

        if shape.tag not in HOVER_TAGS or not isinstance(shape.datum, Record):
            return self._emit(HIDDEN)

        self._hovered = shape
        self._saved_attrs = {name: shape.attrs.get(name) for name in HOVER_EMPHASIS}
        self.scene.set_attrs([shape], **HOVER_EMPHASIS)
        self._emphasized_version = shape.version

        return self._emit(Tooltip(
            text=self.describe(shape.datum),
            x=x + self.offset[0],
            y=y + self.offset[1],
            visible=True,
        ))

    def exit(self) -> Tooltip:
        """Handle pointer leaving the hovered shape."""
        shape, saved = self._hovered, self._saved_attrs
        self._hovered = None
        self._saved_attrs = None
        if (
            shape is not None
            and saved is not None
            and shape in self.scene
            and shape.version == self._emphasized_version
        ):
            for name, value in saved.items():
                if value is None:
                    shape.attrs.pop(name, None)
                else:
                    shape.attrs[name] = value
        return self._emit(HIDDEN)


def attach_tooltips(scene: Scene, hover: HoverController, tags: Iterable[str] = HOVER_TAGS) -> int:
    """Store each record shape's tooltip text as its `title` attribute.

    Used for static exports where there is no live pointer.

    Returns:
        Number of shapes annotated
    """
    shapes = [s for s in scene.select(list(tags)) if isinstance(s.datum, Record)]
    for shape in shapes:
        shape.attrs["title"] = hover.describe(shape.datum)
    logger.debug(f"Attached tooltips to {len(shapes)} shapes")
    return len(shapes)
