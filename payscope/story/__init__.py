"""
Narrative step engine for the salary story.

Key components:
- steps: NarrativeStep enum and the tags each step clears/draws
- base: StepNarrative, StepOutcome, StoryFrame, KeyInsight, Story
- narratives: Data-driven captions and label text
- overrides: Load/apply manual narration overrides from YAML
- controller: NarrativeController, one entry point per step

Example usage:
    from payscope.story import NarrativeController

    controller = NarrativeController(records, settings)
    controller.average_lines()
    controller.all_entries()
"""

from payscope.story.base import KeyInsight, StepNarrative, StepOutcome, Story, StoryFrame
from payscope.story.controller import NarrativeController
from payscope.story.steps import STORY_ORDER, NarrativeStep

__all__ = [
    "KeyInsight",
    "NarrativeController",
    "NarrativeStep",
    "STORY_ORDER",
    "StepNarrative",
    "StepOutcome",
    "Story",
    "StoryFrame",
]
