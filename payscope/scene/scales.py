"""
Positional and value scales.

A scale is a pure function from a domain value to a canvas coordinate:
- BandScale: categorical entity -> band start (fixed domain and range)
- LinearScale: number -> coordinate (domain re-fitted per narrative step)

Band geometry and tick generation follow d3's scaleBand / ticks so charts
line up with the published versions.
"""

import math
from collections.abc import Sequence

_E10 = math.sqrt(50)
_E5 = math.sqrt(10)
_E2 = math.sqrt(2)


# =============================================================================
# TICKS
# =============================================================================


def tick_increment(start: float, stop: float, count: int) -> float:
    """d3 tick increment: positive step, or negative inverse step below 1."""
    step = (stop - start) / max(0, count)
    if step <= 0 or not math.isfinite(step):
        return 0.0
    power = math.floor(math.log10(step))
    error = step / 10**power
    if error >= _E10:
        factor = 10
    elif error >= _E5:
        factor = 5
    elif error >= _E2:
        factor = 2
    else:
        factor = 1
    if power >= 0:
        return factor * 10**power
    return -(10 ** -power) / factor


def nice_ticks(start: float, stop: float, count: int = 10) -> list[float]:
    """Roughly `count` evenly spaced, human-friendly values in [start, stop]."""
    if count <= 0:
        return []
    if start == stop:
        return [float(start)]

    reverse = stop < start
    if reverse:
        start, stop = stop, start

    inc = tick_increment(start, stop, count)
    if inc == 0:
        return []

    if inc > 0:
        lo, hi = math.ceil(start / inc), math.floor(stop / inc)
        values = [float(i * inc) for i in range(lo, hi + 1)]
    else:
        inv = -inc
        lo, hi = math.ceil(start * inv), math.floor(stop * inv)
        values = [i / inv for i in range(lo, hi + 1)]

    return values[::-1] if reverse else values


# =============================================================================
# SCALES
# =============================================================================


class BandScale:
    """Categorical scale mapping each domain value to the start of its band."""

    def __init__(
        self,
        domain: Sequence[str],
        range_: tuple[float, float],
        *,
        padding: float = 0.0,
        align: float = 0.5,
    ):
        self._domain = list(domain)
        self._index = {value: i for i, value in enumerate(self._domain)}
        self._range = (float(range_[0]), float(range_[1]))
        self.padding_inner = padding
        self.padding_outer = padding
        self.align = align
        self._rescale()

    def _rescale(self) -> None:
        n = len(self._domain)
        r0, r1 = self._range
        reverse = r1 < r0
        start, stop = (r1, r0) if reverse else (r0, r1)
        step = (stop - start) / max(1.0, n - self.padding_inner + self.padding_outer * 2)
        start += (stop - start - step * (n - self.padding_inner)) * self.align
        self._step = step
        self._bandwidth = step * (1 - self.padding_inner)
        values = [start + step * i for i in range(n)]
        self._values = values[::-1] if reverse else values

    @property
    def domain(self) -> list[str]:
        return list(self._domain)

    @property
    def range(self) -> tuple[float, float]:
        return self._range

    @property
    def bandwidth(self) -> float:
        return self._bandwidth

    @property
    def step(self) -> float:
        return self._step

    def __contains__(self, value: str) -> bool:
        return value in self._index

    def __call__(self, value: str) -> float:
        try:
            return self._values[self._index[value]]
        except KeyError:
            raise KeyError(f"{value!r} is not in the band scale domain") from None

    def center(self, value: str) -> float:
        """Midpoint of a value's band."""
        return self(value) + self._bandwidth / 2


class LinearScale:
    """Continuous scale with a mutable domain."""

    def __init__(
        self,
        domain: tuple[float, float] = (0.0, 1.0),
        range_: tuple[float, float] = (0.0, 1.0),
    ):
        self._domain = (float(domain[0]), float(domain[1]))
        self._range = (float(range_[0]), float(range_[1]))

    @property
    def domain(self) -> tuple[float, float]:
        return self._domain

    @domain.setter
    def domain(self, value: tuple[float, float]) -> None:
        self._domain = (float(value[0]), float(value[1]))

    @property
    def range(self) -> tuple[float, float]:
        return self._range

    def __call__(self, value: float) -> float:
        d0, d1 = self._domain
        r0, r1 = self._range
        span = d1 - d0
        if span == 0:
            return (r0 + r1) / 2
        return r0 + (value - d0) / span * (r1 - r0)

    def invert(self, coordinate: float) -> float:
        d0, d1 = self._domain
        r0, r1 = self._range
        span = r1 - r0
        if span == 0:
            return (d0 + d1) / 2
        return d0 + (coordinate - r0) / span * (d1 - d0)

    def ticks(self, count: int = 10) -> list[float]:
        return nice_ticks(self._domain[0], self._domain[1], count)

    def copy(self) -> "LinearScale":
        return LinearScale(self._domain, self._range)


# =============================================================================
# FORMATTING
# =============================================================================


def format_currency(value: float) -> str:
    """Whole-dollar currency with thousands separators ($,.0f)."""
    if value < 0:
        return f"-${-value:,.0f}"
    return f"${value:,.0f}"


def truncate_label(text: str, limit: int = 15) -> str:
    """Shorten long category labels with an ellipsis."""
    return text[:limit] + "..." if len(text) > limit else text
