"""Hover tooltips and live search over the rendered scene."""

from payscope.interaction.search import SearchHighlighter, SearchResult
from payscope.interaction.tooltip import HoverController, Tooltip

__all__ = [
    "HoverController",
    "SearchHighlighter",
    "SearchResult",
    "Tooltip",
]
