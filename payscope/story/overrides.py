"""
Load and apply manual narration overrides from YAML.

This module handles loading user-provided narration overrides and applying
them to auto-generated narration. Users can override the caption of any
step while keeping the rest auto-generated.
"""

import logging
from pathlib import Path

import yaml

from payscope.exceptions import UnknownStepError
from payscope.story.base import StepNarrative
from payscope.story.steps import NarrativeStep, parse_step

logger = logging.getLogger(__name__)


# =============================================================================
# OVERRIDE LOADING
# =============================================================================


def load_overrides(path: Path | str) -> dict[NarrativeStep, str | None]:
    """Load narration overrides from a YAML file.

    Expected YAML format:
    ```yaml
    narration:
      average_lines: "Custom caption here"
      highlight_reference: null  # Use auto-generated
      filter_top_k: "Another custom caption"
    ```

    Args:
        path: Path to the YAML override file

    Returns:
        Dictionary mapping step to override text

    Raises:
        FileNotFoundError: If the override file doesn't exist
        yaml.YAMLError: If the YAML is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Override file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}

    narration = data.get("narration", {}) if isinstance(data, dict) else None

    if not isinstance(narration, dict):
        logger.warning("Invalid 'narration' section in override file, expected dict")
        return {}

    result: dict[NarrativeStep, str | None] = {}

    for step_name, text in narration.items():
        try:
            step = parse_step(step_name)
        except UnknownStepError:
            logger.warning(f"Ignoring override for unknown step {step_name!r}")
            continue

        if text is not None and not isinstance(text, str):
            logger.warning(f"Invalid override for {step_name}, expected string")
            continue

        result[step] = text

    return result


def load_overrides_safe(path: Path | str | None) -> dict[NarrativeStep, str | None]:
    """Load overrides, returning empty dict on any error.

    Args:
        path: Path to override file, or None

    Returns:
        Override dictionary, or empty dict if path is None or file can't be loaded
    """
    if path is None:
        return {}

    try:
        return load_overrides(path)
    except FileNotFoundError:
        logger.info(f"No override file found at {path}")
        return {}
    except yaml.YAMLError as e:
        logger.warning(f"Invalid YAML in override file {path}: {e}")
        return {}
    except OSError as e:
        logger.warning(f"Error loading overrides from {path}: {e}")
        return {}


# =============================================================================
# OVERRIDE APPLICATION
# =============================================================================


def apply_overrides(
    narratives: dict[NarrativeStep, StepNarrative],
    overrides: dict[NarrativeStep, str | None],
) -> dict[NarrativeStep, StepNarrative]:
    """Apply manual overrides to auto-generated narration.

    Args:
        narratives: Dictionary of auto-generated StepNarrative objects
        overrides: Dictionary of override values from YAML

    Returns:
        Updated narratives dictionary with overrides applied
    """
    for step, narrative in narratives.items():
        text = overrides.get(step)
        if text is not None:
            narrative.override_text = text

    return narratives


# =============================================================================
# EXPORT FUNCTIONS
# =============================================================================


def export_narratives_to_yaml(
    narratives: dict[NarrativeStep, StepNarrative],
    path: Path | str,
    include_auto: bool = True,
) -> None:
    """Export narration to YAML format for editing.

    Args:
        narratives: Dictionary of StepNarrative objects
        path: Path to write the YAML file
        include_auto: If True, pre-fill each step with its auto-generated text
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    narration = {
        step.value: (narrative.auto_text if include_auto else None)
        for step, narrative in narratives.items()
    }

    with open(path, "w", encoding="utf-8") as f:
        f.write("# Story Narration Overrides\n")
        f.write("# Edit any step to override the auto-generated caption\n")
        f.write("# Set to null or delete to use auto-generated text\n")
        f.write("#\n")
        f.write("# Available steps:\n")
        for step in narratives:
            f.write(f"#   - {step.value}\n")
        f.write("#\n\n")

        yaml.dump(
            {"narration": narration},
            f,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=100,
        )

    logger.info(f"Exported narration to {path}")
