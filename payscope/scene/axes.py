"""
Scale & axis controller.

Owns the categorical (entity) scale and the numeric value scale for one
canvas. The entity scale is fixed at construction; the value scale's domain is
re-fitted by each narrative step and the axis redraw is animated on the
render clock.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from payscope.exceptions import DataValidationError
from payscope.scene.clock import RenderClock
from payscope.scene.scales import BandScale, LinearScale, format_currency, truncate_label
from payscope.settings import CanvasConfig

logger = logging.getLogger(__name__)

Y_AXIS_KEY = "axis:y"


@dataclass(frozen=True)
class Tick:
    """One axis tick: domain value, canvas position and label."""

    value: float | str
    position: float
    label: str


class AxisController:
    """Entity band scale on x, animated value scale on y."""

    def __init__(
        self,
        canvas: CanvasConfig,
        entities: Sequence[str],
        clock: RenderClock,
        *,
        duration_ms: int = 1000,
        tick_count: int = 10,
    ):
        self.canvas = canvas
        self.clock = clock
        self.duration_ms = duration_ms
        self.tick_count = tick_count
        self.x = BandScale(
            entities,
            (canvas.plot_left, canvas.plot_right),
            padding=canvas.band_padding,
        )
        self.y = LinearScale((0.0, 1.0), (canvas.plot_bottom, canvas.plot_top))
        self.fitted = False

    @property
    def domain(self) -> tuple[float, float]:
        return self.y.domain

    def fit(self, domain: tuple[float, float], *, duration_ms: int | None = None) -> bool:
        """
        Re-fit the value scale and animate the axis to the new domain.

        Args:
            domain: New (min, max) for the value scale
            duration_ms: Override for the animation duration

        Returns:
            True if the domain changed
        """
        lo, hi = float(domain[0]), float(domain[1])
        if hi < lo:
            raise DataValidationError(
                "Value domain must be ascending",
                field="domain",
                value=(lo, hi),
            )

        previous = self.y.domain
        changed = previous != (lo, hi) or not self.fitted
        self.y.domain = (lo, hi)

        duration = self.duration_ms if duration_ms is None else duration_ms
        if changed and self.fitted:
            self.clock.schedule(
                Y_AXIS_KEY,
                {"d0": previous[0], "d1": previous[1]},
                {"d0": lo, "d1": hi},
                duration,
            )
        self.fitted = True

        if changed:
            logger.debug(f"Value domain {previous} -> {(lo, hi)}")
        return changed

    def visual_scale(self) -> LinearScale:
        """The value scale as currently drawn (mid-animation aware)."""
        d0, d1 = self.y.domain
        sampled = self.clock.sample(Y_AXIS_KEY, {"d0": d0, "d1": d1})
        return LinearScale((sampled["d0"], sampled["d1"]), self.y.range)

    def y_ticks(self, *, animated: bool = False) -> list[Tick]:
        scale = self.visual_scale() if animated else self.y
        return [
            Tick(value=v, position=scale(v), label=format_currency(v))
            for v in scale.ticks(self.tick_count)
        ]

    def x_ticks(self) -> list[Tick]:
        return [
            Tick(value=entity, position=self.x.center(entity), label=truncate_label(entity))
            for entity in self.x.domain
        ]

    def band_start(self, entity: str) -> float:
        return self.x(entity)

    def band_end(self, entity: str) -> float:
        return self.x(entity) + self.x.bandwidth

    def band_center(self, entity: str) -> float:
        return self.x.center(entity)
