"""
Tests for scales, ticks and the axis controller.
"""

import pytest

from payscope.exceptions import DataValidationError
from payscope.scene.axes import Y_AXIS_KEY, AxisController
from payscope.scene.clock import RenderClock
from payscope.scene.scales import (
    BandScale,
    LinearScale,
    format_currency,
    nice_ticks,
    truncate_label,
)
from payscope.settings import CanvasConfig


# =============================================================================
# BAND SCALE TESTS
# =============================================================================


class TestBandScale:
    """Tests for BandScale."""

    def test_band_geometry(self) -> None:
        scale = BandScale(["A", "B"], (0, 100), padding=0.5)
        assert scale.step == 40
        assert scale.bandwidth == 20
        assert scale("A") == 20
        assert scale("B") == 60

    def test_center(self) -> None:
        scale = BandScale(["A", "B"], (0, 100), padding=0.5)
        assert scale.center("A") == 30

    def test_no_padding(self) -> None:
        scale = BandScale(["A", "B", "C", "D"], (0, 100))
        assert [scale(v) for v in "ABCD"] == [0, 25, 50, 75]
        assert scale.bandwidth == 25

    def test_unknown_value(self) -> None:
        scale = BandScale(["A"], (0, 100))
        assert "Z" not in scale
        with pytest.raises(KeyError):
            scale("Z")


# =============================================================================
# LINEAR SCALE TESTS
# =============================================================================


class TestLinearScale:
    """Tests for LinearScale."""

    def test_maps_to_inverted_range(self) -> None:
        scale = LinearScale((0, 100), (420, 40))
        assert scale(0) == 420
        assert scale(100) == 40
        assert scale(50) == 230

    def test_invert(self) -> None:
        scale = LinearScale((0, 100), (420, 40))
        assert scale.invert(230) == 50

    def test_domain_is_mutable(self) -> None:
        scale = LinearScale((0, 100), (0, 10))
        scale.domain = (0, 1000)
        assert scale(500) == 5

    def test_degenerate_domain(self) -> None:
        scale = LinearScale((5, 5), (0, 10))
        assert scale(5) == 5

    def test_copy_is_independent(self) -> None:
        scale = LinearScale((0, 100), (0, 10))
        clone = scale.copy()
        clone.domain = (0, 1)
        assert scale.domain == (0, 100)


# =============================================================================
# TICKS AND FORMATTING TESTS
# =============================================================================


class TestTicks:
    """Tests for nice_ticks and label formatting."""

    def test_round_increments(self) -> None:
        ticks = nice_ticks(0, 10300, 10)
        assert ticks[0] == 0
        assert ticks[-1] == 10000
        assert ticks[1] - ticks[0] == 1000

    def test_fractional_increments(self) -> None:
        assert nice_ticks(0, 1, 5) == [0.0, 0.2, 0.4, 0.6, 0.8, 1.0]

    def test_single_value(self) -> None:
        assert nice_ticks(3, 3) == [3.0]

    def test_format_currency(self) -> None:
        assert format_currency(1234567.4) == "$1,234,567"
        assert format_currency(0) == "$0"
        assert format_currency(-50) == "-$50"

    def test_truncate_label(self) -> None:
        assert truncate_label("University of British Columbia (UBC)") == "University of B..."
        assert truncate_label("BCIT") == "BCIT"


# =============================================================================
# AXIS CONTROLLER TESTS
# =============================================================================


@pytest.fixture
def axes() -> AxisController:
    return AxisController(CanvasConfig(), ["A", "B"], RenderClock(), duration_ms=1000)


class TestAxisController:
    """Tests for AxisController."""

    def test_value_range_spans_plot_area(self, axes) -> None:
        axes.fit((0, 100))
        assert axes.y(0) == 420
        assert axes.y(100) == 40

    def test_bands_inside_plot_area(self, axes) -> None:
        assert axes.band_start("A") >= 70
        assert axes.band_end("B") <= 870
        assert axes.band_end("A") - axes.band_start("A") == axes.x.bandwidth

    def test_first_fit_not_animated(self, axes) -> None:
        assert axes.fit((0, 100)) is True
        assert not axes.clock.is_animating(Y_AXIS_KEY)

    def test_refit_animated(self, axes) -> None:
        axes.fit((0, 100))
        axes.fit((0, 200))

        assert axes.clock.is_animating(Y_AXIS_KEY)
        axes.clock.tick(500)
        mid = axes.visual_scale().domain
        assert mid == (0, 150)

        axes.clock.flush()
        assert axes.visual_scale().domain == (0, 200)

    def test_same_domain_unchanged(self, axes) -> None:
        axes.fit((0, 100))
        assert axes.fit((0, 100)) is False

    def test_descending_domain_rejected(self, axes) -> None:
        with pytest.raises(DataValidationError):
            axes.fit((100, 0))

    def test_ticks(self, axes) -> None:
        axes.fit((0, 10300))
        y_ticks = axes.y_ticks()
        assert y_ticks[0].label == "$0"
        assert y_ticks[-1].label == "$10,000"
        assert [t.label for t in axes.x_ticks()] == ["A", "B"]
