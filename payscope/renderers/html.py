"""
HTML renderer for narrated stories using Jinja2 templates.

Renders Story objects to a standalone HTML document with:
- A banner of key insights
- One frame (inline SVG + narration) per narrative step
- Previous / next step navigation
- Native SVG tooltips on record points
"""

import json
import logging
from pathlib import Path

from jinja2 import Environment, select_autoescape
from markupsafe import Markup

from payscope.story.base import Story

logger = logging.getLogger(__name__)


# =============================================================================
# TEMPLATE LOADING
# =============================================================================


def get_template_env() -> Environment:
    """Get Jinja2 environment for story templates."""
    env = Environment(
        autoescape=select_autoescape(["html", "xml"], default_for_string=True),
        trim_blocks=True,
        lstrip_blocks=True,
    )

    env.filters["tojson"] = lambda x: json.dumps(x, default=str, indent=2)
    env.filters["format_number"] = _format_number
    env.filters["svg"] = lambda s: Markup(s)

    return env


def _format_number(value: float | int, decimals: int = 0) -> str:
    """Format number with thousand separators."""
    if isinstance(value, int) or decimals == 0:
        return f"{int(value):,}"
    return f"{value:,.{decimals}f}"


# =============================================================================
# HTML RENDERING
# =============================================================================


def render_story_html(story: Story) -> str:
    """Render a story to complete HTML.

    Args:
        story: The Story object to render

    Returns:
        Complete HTML document as string
    """
    env = get_template_env()
    template = env.from_string(_get_main_template())

    return template.render(
        story=story,
        frames=story.frames,
        key_insights=story.key_insights,
        story_data=story.to_dict(),
        story_css=_get_story_css(),
        story_js=_get_story_js(),
    )


# =============================================================================
# INLINE TEMPLATES
# =============================================================================


def _get_main_template() -> str:
    """Get the main story HTML template."""
    return '''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ story.title }}</title>
    <style>
{{ story_css | safe }}
    </style>
</head>
<body>
    <header class="banner">
        <h1>{{ story.title }}</h1>
        <p class="subtitle">{{ story.subtitle }}</p>

        {% if key_insights %}
        <div class="key-insights">
            {% for insight in key_insights[:4] %}
            <div class="insight-card" title="{{ insight.text }}">
                <span class="insight-value">{{ insight.metric_value }}</span>
                <span class="insight-label">{{ insight.metric_label }}</span>
            </div>
            {% endfor %}
        </div>
        {% endif %}

        <div class="metadata">
            <span>{{ story.record_count | format_number }} records</span>
            <span class="separator">|</span>
            <span>{{ story.entity_count }} institutions</span>
            <span class="separator">|</span>
            <span>Generated {{ story.generated_at.strftime('%B %d, %Y') }}</span>
        </div>
    </header>

    <main class="story">
        {% for frame in frames %}
        <section class="frame{% if loop.first %} active{% endif %}{% if not frame.applied %} aborted{% endif %}" data-step="{{ frame.step.value }}">
            <h2>{{ frame.title }}</h2>
            {% if frame.applied %}
            <p class="narration">{{ frame.narration }}</p>
            <div class="chart">{{ frame.svg | svg }}</div>
            {% else %}
            <p class="diagnostic">{{ frame.diagnostic }}</p>
            {% endif %}
        </section>
        {% endfor %}

        <nav class="stepper">
            <button type="button" data-dir="-1">Previous</button>
            <span class="position"></span>
            <button type="button" data-dir="1">Next</button>
        </nav>
    </main>

    <script>
        window.STORY_DATA = {{ story_data | tojson | safe }};
    </script>
    <script>
{{ story_js | safe }}
    </script>
</body>
</html>'''


def _get_story_css() -> str:
    """Get embedded CSS for stories."""
    return '''
body {
    margin: 0;
    background: #17212E;
    color: #E2E8F0;
    font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif;
}
.banner {
    padding: 2rem 3rem 1rem;
    border-bottom: 1px solid #2D3748;
}
.banner h1 { margin: 0 0 0.25rem; }
.subtitle { color: #A0AEC0; margin: 0 0 1.5rem; }
.key-insights { display: flex; gap: 1rem; flex-wrap: wrap; }
.insight-card {
    background: #1F2B3A;
    border-radius: 8px;
    padding: 0.75rem 1rem;
    min-width: 160px;
}
.insight-value { display: block; font-size: 1.5rem; color: #ACFAD8; }
.insight-label { font-size: 0.85rem; color: #A0AEC0; }
.metadata { margin-top: 1rem; font-size: 0.8rem; color: #718096; }
.separator { margin: 0 0.5rem; }
.story { padding: 1.5rem 3rem; }
.frame { display: none; }
.frame.active { display: block; }
.narration { font-size: 1.1rem; max-width: 900px; }
.diagnostic { color: #FC8181; font-family: monospace; }
.scatter-point:hover { opacity: 1; stroke: black; stroke-width: 2; }
.stepper { display: flex; align-items: center; gap: 1rem; margin-top: 1rem; }
.stepper button {
    background: #2D3748;
    color: #E2E8F0;
    border: none;
    border-radius: 4px;
    padding: 0.5rem 1rem;
    cursor: pointer;
}
'''


def _get_story_js() -> str:
    """Get embedded JavaScript for step navigation."""
    return '''
(function () {
    const frames = Array.from(document.querySelectorAll(".frame"));
    const position = document.querySelector(".stepper .position");
    let current = 0;

    function show(index) {
        current = Math.max(0, Math.min(frames.length - 1, index));
        frames.forEach((frame, i) => frame.classList.toggle("active", i === current));
        if (position) position.textContent = `${current + 1} / ${frames.length}`;
    }

    document.querySelectorAll(".stepper button").forEach((button) => {
        button.addEventListener("click", () => show(current + Number(button.dataset.dir)));
    });
    document.addEventListener("keydown", (event) => {
        if (event.key === "ArrowRight") show(current + 1);
        if (event.key === "ArrowLeft") show(current - 1);
    });

    show(0);
})();
'''


# =============================================================================
# FILE OUTPUT
# =============================================================================


def save_story_html(html: str, output_path: Path | str) -> None:
    """Save rendered HTML to file.

    Args:
        html: The rendered HTML string
        output_path: Path to write HTML file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        f.write(html)

    logger.info(f"Saved story to {output_path}")
