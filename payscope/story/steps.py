"""
Narrative steps and the shape tags each one owns.

Every step names the tags it clears on entry, the tags it draws, and the tags
it carries over from the previous step. After a transition the scene holds
only shapes under `draws`.
"""

from dataclasses import dataclass
from enum import Enum

from payscope.exceptions import UnknownStepError


class NarrativeStep(str, Enum):
    """Named states of the salary story."""

    AVERAGE_LINES = "average_lines"
    HIGHLIGHT_REFERENCE = "highlight_reference"
    ALL_ENTRIES = "all_entries"
    RESCALE_FULL = "rescale_full"
    FILTER_TOP_K = "filter_top_k"
    CLEAR = "clear"


# =============================================================================
# SHAPE TAGS
# =============================================================================

AVG_LINE = "avg-line"
SCATTER_POINT = "scatter-point"
HIGHLIGHT_POINT = "highlight-point"
HIGHLIGHT_LABEL = "highlight-label"
ARROW = "arrow-shaft"
CALLOUT = "callout"
CAP = "cap-rect"

STEP_TAGS: tuple[str, ...] = (
    AVG_LINE,
    SCATTER_POINT,
    HIGHLIGHT_POINT,
    HIGHLIGHT_LABEL,
    ARROW,
    CALLOUT,
    CAP,
)

# Overlays are rebuilt from scratch by every step that shows them
_OVERLAYS = (HIGHLIGHT_POINT, HIGHLIGHT_LABEL, ARROW, CALLOUT, CAP)


@dataclass(frozen=True)
class StepDefinition:
    """Tag bookkeeping for one narrative step."""

    step: NarrativeStep
    title: str
    clears: tuple[str, ...]
    draws: tuple[str, ...]
    preserves: tuple[str, ...] = ()


STEP_TABLE: dict[NarrativeStep, StepDefinition] = {
    NarrativeStep.AVERAGE_LINES: StepDefinition(
        step=NarrativeStep.AVERAGE_LINES,
        title="Average salary by institution",
        clears=(SCATTER_POINT,) + _OVERLAYS,
        draws=(AVG_LINE, HIGHLIGHT_LABEL, ARROW),
    ),
    NarrativeStep.HIGHLIGHT_REFERENCE: StepDefinition(
        step=NarrativeStep.HIGHLIGHT_REFERENCE,
        title="A closer look at one entry",
        clears=(SCATTER_POINT,) + _OVERLAYS,
        draws=(AVG_LINE, HIGHLIGHT_POINT, HIGHLIGHT_LABEL, ARROW),
        preserves=(AVG_LINE,),
    ),
    NarrativeStep.ALL_ENTRIES: StepDefinition(
        step=NarrativeStep.ALL_ENTRIES,
        title="Every entry",
        clears=_OVERLAYS,
        draws=(SCATTER_POINT, AVG_LINE, ARROW, CALLOUT, CAP),
        preserves=(AVG_LINE,),
    ),
    NarrativeStep.RESCALE_FULL: StepDefinition(
        step=NarrativeStep.RESCALE_FULL,
        title="Rescaled to fit everyone",
        clears=_OVERLAYS,
        draws=(SCATTER_POINT, AVG_LINE),
        preserves=(AVG_LINE,),
    ),
    NarrativeStep.FILTER_TOP_K: StepDefinition(
        step=NarrativeStep.FILTER_TOP_K,
        title="The top earners",
        clears=(AVG_LINE,) + _OVERLAYS,
        draws=(SCATTER_POINT,),
    ),
    NarrativeStep.CLEAR: StepDefinition(
        step=NarrativeStep.CLEAR,
        title="Clear",
        clears=STEP_TAGS,
        draws=(),
    ),
}

# Order in which the story is told
STORY_ORDER: tuple[NarrativeStep, ...] = (
    NarrativeStep.AVERAGE_LINES,
    NarrativeStep.HIGHLIGHT_REFERENCE,
    NarrativeStep.ALL_ENTRIES,
    NarrativeStep.RESCALE_FULL,
    NarrativeStep.FILTER_TOP_K,
)


def parse_step(step: NarrativeStep | str) -> NarrativeStep:
    """Resolve a step from its enum, value or member name."""
    if isinstance(step, NarrativeStep):
        return step
    try:
        return NarrativeStep(step)
    except ValueError:
        pass
    try:
        return NarrativeStep[str(step).upper()]
    except KeyError:
        raise UnknownStepError(f"Unknown narrative step {step!r}", step=str(step)) from None
