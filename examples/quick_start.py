#!/usr/bin/env python3
"""Quick start example for the salary story engine.

Steps through the narrative on a handful of in-memory records and prints the
scene after each step, then exercises hover and search.

Usage:
    python examples/quick_start.py
"""

from payscope.data.normalizer import normalize_rows
from payscope.interaction.search import SearchHighlighter
from payscope.interaction.tooltip import HoverController
from payscope.settings import Settings
from payscope.story.controller import NarrativeController
from payscope.story.steps import SCATTER_POINT, STORY_ORDER

ROWS = [
    {"Agency": "University of British Columbia (UBC)", "Name": "Abel-Co, Karen", "Remuneration": "98,500", "Position": "Advisor"},
    {"Agency": "University of British Columbia (UBC)", "Name": "Hill, Ana", "Remuneration": "412,000", "Position": "Dean"},
    {"Agency": "University of British Columbia (UBC)", "Name": "Park, Min", "Remuneration": "121,300", "Position": "Professor"},
    {"Agency": "BCIT", "Name": "Singh, Ravi", "Remuneration": "104,900", "Position": "Instructor"},
    {"Agency": "BCIT", "Name": "Lee, Sam", "Remuneration": "not disclosed", "Position": ""},
    {"Agency": "Langara College", "Name": "Tran, Bao", "Remuneration": "88,000", "Position": "Instructor"},
    {"Agency": "Some Other Agency", "Name": "Ignored, Row", "Remuneration": "1,000,000", "Position": "CEO"},
]


def main() -> None:
    """Run a quick story demo."""
    print("=" * 60)
    print("Salary Story - Quick Start Demo")
    print("=" * 60)

    settings = Settings()
    records = normalize_rows(ROWS, settings.entities)
    print(f"\nNormalized {len(records)} of {len(ROWS)} rows")

    with NarrativeController(records, settings) as controller:
        for step in STORY_ORDER:
            outcome = controller.show(step)
            print(f"\n[{step.value}] applied={outcome.applied} shapes={outcome.shape_count}")
            print(f"  domain: {outcome.domain}")
            print(f"  {outcome.narration}")
            if outcome.diagnostic:
                print(f"  ! {outcome.diagnostic}")

        controller.all_entries()
        controller.scene.clock.flush()

        hover = HoverController(controller.scene, controller.stats, controller.reference)
        point = controller.scene.select(SCATTER_POINT)[1]
        tooltip = hover.enter(point, 200, 150)
        print("\n" + "=" * 60)
        print("TOOLTIP")
        print("=" * 60)
        print(tooltip.text)
        hover.exit()

        search = SearchHighlighter(controller.scene, controller.records)
        result = search.update("singh")
        print(f"\nSearch 'singh' matched: {result.match.name if result.match else None}")
        search.reset()


if __name__ == "__main__":
    main()
