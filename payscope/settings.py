"""
Module: settings

Purpose: Centralized configuration management for the story engine.

Key Functions:
- load_settings: Load settings from a YAML file plus environment variables
- Settings: pydantic-settings model with validation

Architecture Notes:
- Uses pydantic-settings for type-safe configuration
- All settings have sensible defaults matching the published charts
- Environment variables (PAYSCOPE_*) override values from the YAML file
"""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from payscope.exceptions import DataValidationError

logger = logging.getLogger(__name__)


# =============================================================================
# DEFAULTS
# =============================================================================

BC_INSTITUTIONS: list[str] = [
    "University of British Columbia (UBC)",
    "Simon Fraser University (SFU)",
    "BCIT",
    "University of Victoria",
    "Kwantlen Polytechnic University",
    "Vancouver Community College (VCC)",
    "Langara College",
    "Douglas College",
    "Justice Institute of B.C.",
    "University of the Fraser Valley",
]


# =============================================================================
# MODELS
# =============================================================================


class Margin(BaseModel):
    """Canvas margins in pixels."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    top: int = 40
    right: int = 30
    bottom: int = 80
    left: int = 70


class CanvasConfig(BaseModel):
    """Drawing surface geometry."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    width: int = Field(default=900, gt=0)
    height: int = Field(default=500, gt=0)
    margin: Margin = Field(default_factory=Margin)
    band_padding: float = Field(default=0.5, ge=0.0, lt=1.0)

    @property
    def plot_left(self) -> float:
        return float(self.margin.left)

    @property
    def plot_right(self) -> float:
        return float(self.width - self.margin.right)

    @property
    def plot_top(self) -> float:
        return float(self.margin.top)

    @property
    def plot_bottom(self) -> float:
        return float(self.height - self.margin.bottom)


class Settings(BaseSettings):
    """Story engine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PAYSCOPE_",
        env_nested_delimiter="__",
        extra="forbid",
    )

    canvas: CanvasConfig = Field(default_factory=CanvasConfig)

    # Animation
    transition_ms: int = Field(default=1000, ge=0)
    annotation_fade_ms: int = Field(default=2000, ge=0)

    # Narrative parameters
    entities: list[str] = Field(default_factory=lambda: list(BC_INSTITUTIONS))
    reference_name: str = "Abel-Co, Karen"
    focus_entity: str = "University of British Columbia (UBC)"
    top_k: int = Field(default=10, gt=0)
    baseline_floor: float = 70000.0
    baseline_headroom: float = 10000.0

    # Data sources
    salary_data_path: Path = Path("datasets/public_sector_salary-fy20_21-universities.csv")
    tuition_data_path: Path | None = None
    overrides_path: Path | None = None

    @field_validator("entities")
    @classmethod
    def _entities_unique(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("entity allow-list must not be empty")
        if len(set(value)) != len(value):
            raise ValueError("entity allow-list contains duplicates")
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over values passed in from a YAML file.
        return env_settings, init_settings, dotenv_settings, file_secret_settings


# =============================================================================
# LOADING
# =============================================================================


def load_settings(path: Path | str | None = None) -> Settings:
    """Load settings from an optional YAML file.

    Expected YAML format:
    ```yaml
    reference_name: "Abel-Co, Karen"
    top_k: 10
    canvas:
      width: 900
      height: 500
    salary_data_path: datasets/salaries.csv
    ```

    Args:
        path: Path to the YAML settings file, or None for defaults + environment

    Returns:
        Validated Settings

    Raises:
        FileNotFoundError: If the settings file doesn't exist
        DataValidationError: If the file is not a YAML mapping
    """
    if path is None:
        return Settings()

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data: Any = yaml.safe_load(f)

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DataValidationError(
            "Settings file must contain a mapping",
            field="<root>",
            value=type(data).__name__,
            context={"path": str(path)},
        )

    settings = Settings(**data)
    logger.info(f"Loaded settings from {path}")
    return settings
