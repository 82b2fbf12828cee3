"""
SVG output for a scene using Jinja2 templates.

Renders the scene's shapes in z-order together with both axes and the shared
defs (arrowhead marker, top-cap gradient). With `animated=True` the current
interpolated frame on the render clock is drawn instead of the settled state.
"""

import logging
from typing import Any

from jinja2 import Environment, select_autoescape
from markupsafe import Markup, escape

from payscope.scene.axes import AxisController
from payscope.scene.graph import Scene

logger = logging.getLogger(__name__)

ARROWHEAD_ID = "arrowhead"
CAP_GRADIENT_ID = "vertical-gradient"
BACKGROUND = "#17212E"
AXIS_COLOR = "#CBD5E0"

# Attributes that are element content rather than SVG attributes
_CONTENT_ATTRS = {"text", "title"}


def _svg_attrs(attrs: dict[str, Any]) -> Markup:
    """Serialize shape attributes, skipping None values and content attrs."""
    parts = []
    for name, value in attrs.items():
        if name in _CONTENT_ATTRS or value is None:
            continue
        if isinstance(value, float):
            value = f"{value:.2f}".rstrip("0").rstrip(".")
        parts.append(f'{escape(name)}="{escape(value)}"')
    return Markup(" ".join(parts))


def get_template_env() -> Environment:
    """Get Jinja2 environment configured for SVG output."""
    env = Environment(
        autoescape=select_autoescape(default_for_string=True, default=True),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["svg_attrs"] = _svg_attrs
    return env


_SVG_TEMPLATE = '''<svg xmlns="http://www.w3.org/2000/svg" width="{{ width }}" height="{{ height }}" viewBox="0 0 {{ width }} {{ height }}">
  <defs>
    <marker id="{{ arrowhead_id }}" viewBox="0 0 10 10" refX="10" refY="5" markerWidth="6" markerHeight="6" orient="auto">
      <path d="M 0 0 L 10 5 L 0 10 Z" fill="white"/>
    </marker>
    <linearGradient id="{{ gradient_id }}" x1="0%" y1="0%" x2="0%" y2="100%">
      <stop offset="0%" stop-color="{{ background }}" stop-opacity="1"/>
      <stop offset="100%" stop-color="{{ background }}" stop-opacity="0"/>
    </linearGradient>
  </defs>
  <rect class="background" x="0" y="0" width="{{ width }}" height="{{ height }}" fill="{{ background }}"/>
  <g class="x-axis" transform="translate(0, {{ plot_bottom }})" fill="{{ axis_color }}" font-size="10">
    <line x1="{{ plot_left }}" x2="{{ plot_right }}" y1="0" y2="0" stroke="{{ axis_color }}"/>
    {% for tick in x_ticks %}
    <text x="{{ tick.position }}" y="10" text-anchor="end" transform="rotate(-45, {{ tick.position }}, 10)">{{ tick.label }}</text>
    {% endfor %}
  </g>
  <g class="y-axis" transform="translate({{ plot_left }}, 0)" fill="{{ axis_color }}" font-size="10">
    <line x1="0" x2="0" y1="{{ plot_top }}" y2="{{ plot_bottom }}" stroke="{{ axis_color }}"/>
    {% for tick in y_ticks %}
    <line x1="-6" x2="0" y1="{{ tick.position }}" y2="{{ tick.position }}" stroke="{{ axis_color }}"/>
    <text x="-9" y="{{ tick.position }}" dy="0.32em" text-anchor="end">{{ tick.label }}</text>
    {% endfor %}
  </g>
  {% for shape in shapes %}
  <{{ shape.kind }} class="{{ shape.tag }}" data-key="{{ shape.key }}" {{ shape.attrs | svg_attrs }}>{% if shape.attrs.title %}<title>{{ shape.attrs.title }}</title>{% endif %}{% if shape.attrs.text is defined %}{{ shape.attrs.text }}{% endif %}</{{ shape.kind }}>
  {% endfor %}
</svg>'''


def render_svg(
    scene: Scene,
    axes: AxisController,
    *,
    animated: bool = False,
    background: str = BACKGROUND,
) -> str:
    """
    Render the scene and axes to an SVG document.

    Args:
        scene: Scene to draw
        axes: Axis controller providing ticks and canvas geometry
        animated: If True, draw the current interpolated frame
        background: Canvas background colour

    Returns:
        SVG markup as a string
    """
    canvas = axes.canvas
    shapes = []
    for shape in scene:
        attrs = scene.clock.sample(shape.clock_key, shape.attrs) if animated else shape.attrs
        shapes.append({"kind": shape.kind, "tag": shape.tag, "key": shape.key, "attrs": attrs})

    env = get_template_env()
    template = env.from_string(_SVG_TEMPLATE)
    svg = template.render(
        width=canvas.width,
        height=canvas.height,
        plot_left=canvas.plot_left,
        plot_right=canvas.plot_right,
        plot_top=canvas.plot_top,
        plot_bottom=canvas.plot_bottom,
        x_ticks=axes.x_ticks(),
        y_ticks=axes.y_ticks(animated=animated),
        shapes=shapes,
        arrowhead_id=ARROWHEAD_ID,
        gradient_id=CAP_GRADIENT_ID,
        background=background,
        axis_color=AXIS_COLOR,
    )
    logger.debug(f"Rendered SVG with {len(shapes)} shapes")
    return svg
