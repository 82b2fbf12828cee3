"""
Live name search over the rendered scene.

Each keystroke re-derives the highlight state of every rendered shape from
the query alone; no data is re-fetched or re-aggregated.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from payscope.data.schemas import Record
from payscope.scene.graph import Scene, Shape, default_key
from payscope.story.steps import AVG_LINE, CAP, HIGHLIGHT_POINT, SCATTER_POINT

logger = logging.getLogger(__name__)

DIM_OPACITY = 0.2
MATCH_FILL = "green"
MATCH_RADIUS = 8
GROUP_MATCH_STROKE = "blue"

RECORD_TAGS: tuple[str, ...] = (SCATTER_POINT, HIGHLIGHT_POINT)
GROUP_TAGS: tuple[str, ...] = (AVG_LINE,)


@dataclass
class SearchResult:
    """Outcome of one search update."""

    query: str
    match: Record | None = None
    emphasized: list[Shape] = field(default_factory=list)

    @property
    def dimmed(self) -> bool:
        return self.match is not None


def find_first_match(records: Sequence[Record], query: str) -> Record | None:
    """First record (in data order) whose name contains the query, ignoring case."""
    needle = query.lower()
    if not needle:
        return None
    for record in records:
        if needle in record.name.lower():
            return record
    return None


class SearchHighlighter:
    """
    Re-highlight the scene from a live text query.

    - Empty query: every shape returns to its default appearance
    - No match: the scene stays at its defaults (nothing is dimmed)
    - Match: record and group shapes dim, the first matching record's shape
      and its entity's average line are emphasized and raised (the clipping
      cap stays on top)
    """

    def __init__(
        self,
        scene: Scene,
        records: Sequence[Record],
        *,
        record_tags: Sequence[str] = RECORD_TAGS,
        group_tags: Sequence[str] = GROUP_TAGS,
        on_update: Callable[[SearchResult], None] | None = None,
    ):
        self.scene = scene
        self.records = list(records)
        self.record_tags = tuple(record_tags)
        self.group_tags = tuple(group_tags)
        self.on_update = on_update
        self.query = ""

    def _emit(self, result: SearchResult) -> SearchResult:
        if self.on_update is not None:
            self.on_update(result)
        return result

    def update(self, query: str) -> SearchResult:
        """Apply the current query to every rendered shape."""
        self.query = query
        self.scene.restore_defaults()
        result = SearchResult(query=query)

        match = find_first_match(self.records, query)
        if match is None:
            return self._emit(result)

        result.match = match
        self.scene.set_attrs(
            self.scene.select(self.record_tags + self.group_tags),
            opacity=DIM_OPACITY,
        )

        match_key = default_key(match)
        points = self.scene.select(self.record_tags, lambda s: s.key == match_key)
        self.scene.set_attrs(points, fill=MATCH_FILL, r=MATCH_RADIUS, opacity=1.0)
        self.scene.raise_shapes(points)

        lines = self.scene.select(
            self.group_tags,
            lambda s: getattr(s.datum, "entity", None) == match.entity,
        )
        self.scene.set_attrs(lines, stroke=GROUP_MATCH_STROKE, opacity=1.0)
        self.scene.raise_shapes(lines)
        # The clipping cap stays above every data shape
        self.scene.raise_tag(CAP)

        result.emphasized = points + lines
        logger.debug(f"Search {query!r} matched {match.name!r} ({len(result.emphasized)} shapes)")
        return self._emit(result)

    def reset(self) -> SearchResult:
        return self.update("")
