#!/usr/bin/env python3
"""
Generate the narrated salary story from the CSV salary disclosures.

This script loads the salary (and optionally tuition) tables, drives the
narrative step engine through every step and writes a standalone HTML file
with one frame per step.

Usage:
    # Generate with defaults (datasets/ paths from settings)
    python scripts/generate_story.py --output output/salary_story.html

    # Use a YAML settings file
    python scripts/generate_story.py --config config/story.yaml

    # Apply manual narration overrides
    python scripts/generate_story.py --overrides config/narration_overrides.yaml

    # Export auto-generated narration (to edit and use as overrides)
    python scripts/generate_story.py --export-narration config/narration_draft.yaml
"""

import argparse
import json
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from payscope.data.local_loader import LocalDataLoader
from payscope.exceptions import PayscopeError, ReferenceRecordNotFoundError
from payscope.features.aggregators import find_reference_record, group_stats
from payscope.pipeline import build_story
from payscope.renderers.html import render_story_html, save_story_html
from payscope.settings import load_settings
from payscope.story.narratives import generate_all_narratives
from payscope.story.overrides import export_narratives_to_yaml

logger = logging.getLogger("generate_story")


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Generate the narrated salary story as standalone HTML",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="YAML settings file (default: built-in settings + PAYSCOPE_* environment)",
    )

    parser.add_argument(
        "--salary-data",
        type=str,
        default=None,
        help="CSV file with salary disclosures (overrides settings)",
    )

    parser.add_argument(
        "--tuition-data",
        type=str,
        default=None,
        help="CSV file with tuition figures (optional)",
    )

    parser.add_argument(
        "--overrides",
        type=str,
        default=None,
        help="Path to YAML file with narration overrides",
    )

    parser.add_argument(
        "--export-narration",
        type=str,
        default=None,
        help="Export auto-generated narration to YAML file for editing",
    )

    parser.add_argument(
        "--output",
        type=str,
        default="output/salary_story.html",
        help="Output HTML file (default: output/salary_story.html)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    return parser.parse_args()


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings(args.config)
    updates = {}
    if args.salary_data:
        updates["salary_data_path"] = Path(args.salary_data)
    if args.tuition_data:
        updates["tuition_data_path"] = Path(args.tuition_data)
    if args.overrides:
        updates["overrides_path"] = Path(args.overrides)
    if updates:
        settings = settings.model_copy(update=updates)

    if args.export_narration:
        loader = LocalDataLoader(settings.entities)
        result = loader.load_salaries(settings.salary_data_path)
        if not result.ok:
            logger.error(f"Cannot export narration: {result.errors}")
            return 1
        stats = group_stats(result.records, settings.entities, k=settings.top_k)
        try:
            reference = find_reference_record(result.records, settings.reference_name)
        except ReferenceRecordNotFoundError:
            reference = None
        narratives = generate_all_narratives(result.records, stats, reference, k=settings.top_k)
        export_narratives_to_yaml(narratives, args.export_narration)
        return 0

    try:
        result = build_story(settings)
    except PayscopeError as e:
        logger.error(f"{e.message} {e.context}")
        return 1

    html = render_story_html(result.story)
    save_story_html(html, args.output)

    summary = result.get_summary()
    if args.verbose:
        print(json.dumps(summary, indent=2))
    if result.aborted_steps:
        logger.warning(f"Aborted steps: {', '.join(result.aborted_steps)}")

    print(f"Story written to {args.output} ({summary['frames']} frames)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
