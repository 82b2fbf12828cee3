"""
Base dataclasses for narrated stories.

This module defines the core data structures for story generation:
- StepNarrative: Auto-generated narration with manual override support
- StepOutcome: Result of one step transition
- StoryFrame: One rendered step of a story
- KeyInsight: Headline metric shown in the story banner
- Story: Complete story composed of frames
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from payscope.story.steps import NarrativeStep


@dataclass
class StepNarrative:
    """Auto-generated narration for a step, with manual override support.

    The narration explains what the step shows. It's generated from the
    data but can be overridden via YAML config.
    """

    step: NarrativeStep

    # Auto-generated from data analysis
    auto_text: str = ""

    # Manual override (None = use auto-generated)
    override_text: str | None = None

    @property
    def text(self) -> str:
        """Get narration, preferring override if set."""
        return self.override_text if self.override_text is not None else self.auto_text

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "step": self.step.value,
            "text": self.text,
            "auto_text": self.auto_text,
            "has_override": self.override_text is not None,
        }


@dataclass
class StepOutcome:
    """Result of one step transition.

    When `applied` is False the scene was left untouched and `diagnostic`
    explains why.
    """

    step: NarrativeStep
    applied: bool
    narration: str = ""
    domain: tuple[float, float] | None = None
    shape_count: int = 0
    diagnostic: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "step": self.step.value,
            "applied": self.applied,
            "narration": self.narration,
            "domain": list(self.domain) if self.domain else None,
            "shape_count": self.shape_count,
            "diagnostic": self.diagnostic,
        }


@dataclass
class StoryFrame:
    """A single rendered step of a story."""

    step: NarrativeStep
    title: str
    narration: str
    svg: str = ""
    applied: bool = True
    diagnostic: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "step": self.step.value,
            "title": self.title,
            "narration": self.narration,
            "applied": self.applied,
            "diagnostic": self.diagnostic,
        }


@dataclass
class KeyInsight:
    """A key metric to highlight in the story banner."""

    text: str  # "Average salary at UBC is $120,000"
    metric_value: str | float  # "$120,000"
    metric_label: str  # "average at UBC"
    category: str = "general"  # "salary", "tuition", "reference"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "text": self.text,
            "metric_value": self.metric_value,
            "metric_label": self.metric_label,
            "category": self.category,
        }


@dataclass
class Story:
    """A complete narrated story composed of frames.

    This is the top-level structure that gets rendered to HTML.
    """

    story_id: str
    title: str
    subtitle: str

    # Frames in narrative order
    frames: list[StoryFrame]

    # Key insights for the banner
    key_insights: list[KeyInsight] = field(default_factory=list)

    # Metadata
    generated_at: datetime = field(default_factory=datetime.now)
    record_count: int = 0
    entity_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "story_id": self.story_id,
            "title": self.title,
            "subtitle": self.subtitle,
            "frames": [f.to_dict() for f in self.frames],
            "key_insights": [i.to_dict() for i in self.key_insights],
            "generated_at": self.generated_at.isoformat(),
            "record_count": self.record_count,
            "entity_count": self.entity_count,
        }
