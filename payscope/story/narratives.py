"""
Auto-narration from data insights.

This module generates the caption text shown alongside each narrative step
and the wording of on-canvas labels. Narration is data-driven and updates
automatically with the loaded records.
"""

import re
from collections.abc import Sequence

from payscope.data.schemas import Record
from payscope.features.aggregators import GroupStat, max_mean
from payscope.story.base import StepNarrative
from payscope.story.steps import NarrativeStep

_ABBREVIATION = re.compile(r"\(([^)]+)\)\s*$")

CALLOUT_LINES: tuple[str, ...] = (
    "There seems to be a lot more entries in these universities...",
    "This is because these universities have some very highly paid faculty.",
    "Let's redraw the chart to have a scale that shows the rest!",
)


# =============================================================================
# NAME HELPERS
# =============================================================================


def short_name(entity: str) -> str:
    """Use a trailing parenthesised abbreviation when there is one.

    "University of British Columbia (UBC)" -> "UBC"
    """
    match = _ABBREVIATION.search(entity)
    return match.group(1) if match else entity


def display_name(name: str) -> str:
    """Turn "Last, First" into "First Last"."""
    if "," not in name:
        return name
    last, first = (part.strip() for part in name.split(",", 1))
    return f"{first} {last}".strip()


# =============================================================================
# LABEL TEXT
# =============================================================================


def focus_average_label(stat: GroupStat) -> str:
    """On-canvas label for the focus entity's average line."""
    return f"{short_name(stat.entity)} has an average salary of ${stat.mean:,.0f}."


def reference_label(record: Record) -> str:
    """On-canvas label for the highlighted reference record."""
    return f"This is {display_name(record.name)} with a salary of ${record.metric:,.0f}."


# =============================================================================
# NARRATION GENERATORS
# =============================================================================


def generate_average_lines_narrative(stats: Sequence[GroupStat]) -> StepNarrative:
    """Narration for the average-lines baseline."""
    text = "Let's start off with the average salary for each university..."
    populated = [s for s in stats if s.count > 0]
    if populated:
        leader = max(populated, key=lambda s: s.mean)
        text += (
            f" {short_name(leader.entity)} leads with an average of "
            f"${max_mean(populated):,.0f}."
        )
    return StepNarrative(step=NarrativeStep.AVERAGE_LINES, auto_text=text)


def generate_highlight_reference_narrative(
    reference: Record | None,
    stats: Sequence[GroupStat],
) -> StepNarrative:
    """Narration for the reference-record highlight."""
    if reference is None:
        return StepNarrative(
            step=NarrativeStep.HIGHLIGHT_REFERENCE,
            auto_text="Let's look closer at a single entry.",
        )

    group = next((s for s in stats if s.entity == reference.entity), None)
    text = f"Let's look closer at {display_name(reference.name)}"
    if group is not None and group.count > 0:
        text += (
            f", whose salary of ${reference.metric:,.0f} sits near the "
            f"{short_name(group.entity)} average of ${group.mean:,.0f}."
        )
    else:
        text += "."
    return StepNarrative(step=NarrativeStep.HIGHLIGHT_REFERENCE, auto_text=text)


def generate_all_entries_narrative(records: Sequence[Record]) -> StepNarrative:
    """Narration for the all-entries step."""
    return StepNarrative(
        step=NarrativeStep.ALL_ENTRIES,
        auto_text=(
            f"But when we add the rest of the {len(records):,} entries, "
            "it doesn't fit on the chart..."
        ),
    )


def generate_rescale_narrative() -> StepNarrative:
    """Narration for the full rescale."""
    return StepNarrative(
        step=NarrativeStep.RESCALE_FULL,
        auto_text="That's much better! We can see the rest of the chart.",
    )


def generate_filter_narrative(k: int) -> StepNarrative:
    """Narration for the top-K filter."""
    return StepNarrative(
        step=NarrativeStep.FILTER_TOP_K,
        auto_text=(
            f"Filtering this data for the top {k} highest paid faculty members "
            "shows us something interesting..."
        ),
    )


def generate_all_narratives(
    records: Sequence[Record],
    stats: Sequence[GroupStat],
    reference: Record | None,
    *,
    k: int = 10,
) -> dict[NarrativeStep, StepNarrative]:
    """Generate narration for every step.

    Args:
        records: Normalized records
        stats: Group stats in entity order
        reference: The reference record, or None when it is missing
        k: Top-K size used by the filter step

    Returns:
        Narration keyed by step
    """
    narratives = [
        generate_average_lines_narrative(stats),
        generate_highlight_reference_narrative(reference, stats),
        generate_all_entries_narrative(records),
        generate_rescale_narrative(),
        generate_filter_narrative(k),
        StepNarrative(step=NarrativeStep.CLEAR, auto_text=""),
    ]
    return {n.step: n for n in narratives}


def export_narratives_to_dict(
    narratives: dict[NarrativeStep, StepNarrative],
) -> dict[str, dict[str, object]]:
    """Export narratives keyed by step value for serialization."""
    return {step.value: n.to_dict() for step, n in narratives.items()}
