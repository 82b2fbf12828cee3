"""
Module: pipeline

Purpose: Orchestrate a full story from CSV files to rendered frames.

Key Functions:
- build_story: Load data per Settings and tell the whole story
- build_story_from_records: Tell the story from already-normalized records
- PipelineResult: Container for the story and the outcomes of every step

Architecture Notes:
- Data is fully loaded before the step controller is created
- Each step is rendered after its animations have settled
- A step that aborts (missing reference) becomes a frame carrying the
  diagnostic, and the story continues with the next step
"""

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from payscope.data.local_loader import LocalDataLoader
from payscope.data.schemas import Record, TuitionRecord
from payscope.exceptions import PipelineError, ReferenceRecordNotFoundError
from payscope.features.aggregators import GroupStat, find_reference_record, group_stats
from payscope.interaction.tooltip import HoverController, attach_tooltips
from payscope.scene.svg import render_svg
from payscope.settings import Settings
from payscope.story.base import KeyInsight, StepOutcome, Story, StoryFrame
from payscope.story.controller import NarrativeController
from payscope.story.narratives import display_name, generate_all_narratives, short_name
from payscope.story.overrides import apply_overrides, load_overrides_safe
from payscope.story.steps import STEP_TABLE, STORY_ORDER

logger = logging.getLogger(__name__)


# =============================================================================
# RESULTS
# =============================================================================


@dataclass
class PipelineResult:
    """Complete story generation result."""

    story: Story
    outcomes: list[StepOutcome] = field(default_factory=list)
    stats: list[GroupStat] = field(default_factory=list)
    total_duration_ms: float = 0.0

    @property
    def aborted_steps(self) -> list[str]:
        return [o.step.value for o in self.outcomes if not o.applied]

    def get_summary(self) -> dict[str, Any]:
        """Get summary of the generated story."""
        return {
            "story_id": self.story.story_id,
            "record_count": self.story.record_count,
            "frames": len(self.story.frames),
            "aborted_steps": self.aborted_steps,
            "total_duration_ms": self.total_duration_ms,
        }


# =============================================================================
# KEY INSIGHTS
# =============================================================================


def build_key_insights(
    records: Sequence[Record],
    stats: Sequence[GroupStat],
    reference: Record | None,
    tuition: Sequence[Record] = (),
) -> list[KeyInsight]:
    """Headline metrics for the story banner."""
    insights = [
        KeyInsight(
            text=f"{len(records):,} salary disclosures",
            metric_value=f"{len(records):,}",
            metric_label="salary disclosures",
            category="salary",
        ),
    ]

    populated = [s for s in stats if s.count > 0]
    if populated:
        leader = max(populated, key=lambda s: s.mean)
        insights.append(KeyInsight(
            text=f"Highest average salary: {leader.entity}",
            metric_value=f"${leader.mean:,.0f}",
            metric_label=f"average at {short_name(leader.entity)}",
            category="salary",
        ))

    if reference is not None:
        insights.append(KeyInsight(
            text=f"Reference: {display_name(reference.name)}",
            metric_value=f"${reference.metric:,.0f}",
            metric_label=display_name(reference.name),
            category="reference",
        ))

    priced = [r for r in tuition if isinstance(r, TuitionRecord)]
    if priced:
        top = max(priced, key=lambda r: r.tuition_per_student)
        insights.append(KeyInsight(
            text=f"Highest tuition per student: {top.entity}",
            metric_value=f"${top.tuition_per_student:,.0f}",
            metric_label=f"tuition per student at {short_name(top.entity)}",
            category="tuition",
        ))

    return insights


# =============================================================================
# PIPELINE EXECUTION
# =============================================================================


def build_story_from_records(
    records: Sequence[Record],
    settings: Settings | None = None,
    *,
    tuition: Sequence[Record] = (),
) -> PipelineResult:
    """
    Drive every narrative step over in-memory records and collect frames.

    Args:
        records: Normalized salary records
        settings: Story configuration
        tuition: Optional normalized tuition records for the banner

    Returns:
        PipelineResult with the Story and one StepOutcome per step
    """
    start = time.perf_counter()
    settings = settings or Settings()

    stats = group_stats(records, settings.entities, k=settings.top_k)
    try:
        reference: Record | None = find_reference_record(records, settings.reference_name)
    except ReferenceRecordNotFoundError:
        reference = None
        logger.warning(f"Reference record {settings.reference_name!r} is missing")

    narratives = generate_all_narratives(records, stats, reference, k=settings.top_k)
    apply_overrides(narratives, load_overrides_safe(settings.overrides_path))

    frames: list[StoryFrame] = []
    outcomes: list[StepOutcome] = []

    with NarrativeController(records, settings, narratives=narratives) as controller:
        hover = HoverController(controller.scene, controller.stats, controller.reference)

        for step in STORY_ORDER:
            outcome = controller.show(step)
            outcomes.append(outcome)
            title = STEP_TABLE[step].title

            if not outcome.applied:
                frames.append(StoryFrame(
                    step=step,
                    title=title,
                    narration=outcome.narration,
                    applied=False,
                    diagnostic=outcome.diagnostic,
                ))
                continue

            controller.scene.clock.flush()
            attach_tooltips(controller.scene, hover)
            frames.append(StoryFrame(
                step=step,
                title=title,
                narration=outcome.narration,
                svg=render_svg(controller.scene, controller.axes),
            ))

    story = Story(
        story_id="salary-story",
        title="Who gets paid at BC's universities?",
        subtitle="Public-sector salary disclosures, told one step at a time",
        frames=frames,
        key_insights=build_key_insights(records, stats, reference, tuition),
        record_count=len(records),
        entity_count=len(settings.entities),
    )

    duration = (time.perf_counter() - start) * 1000
    logger.info(f"Built story with {len(frames)} frames in {duration:.1f}ms")
    return PipelineResult(
        story=story,
        outcomes=outcomes,
        stats=stats,
        total_duration_ms=duration,
    )


def build_story(settings: Settings | None = None) -> PipelineResult:
    """
    Load the configured CSV files and build the full story.

    Args:
        settings: Story configuration (data paths, entities, reference, ...)

    Returns:
        PipelineResult with the Story and step outcomes

    Raises:
        PipelineError: If the salary table cannot be loaded
    """
    settings = settings or Settings()
    loader = LocalDataLoader(settings.entities)

    salaries = loader.load_salaries(settings.salary_data_path)
    if not salaries.ok:
        raise PipelineError(
            "Salary data could not be loaded",
            stage="load",
            context={"errors": salaries.errors},
        )

    tuition: list[Record] = []
    if settings.tuition_data_path is not None:
        tuition_result = loader.load_tuition(settings.tuition_data_path)
        if tuition_result.ok:
            tuition = tuition_result.records
        else:
            logger.warning(f"Skipping tuition data: {tuition_result.errors}")

    return build_story_from_records(salaries.records, settings, tuition=tuition)
