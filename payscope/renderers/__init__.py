"""HTML output for stories."""

from payscope.renderers.html import render_story_html, save_story_html

__all__ = ["render_story_html", "save_story_html"]
