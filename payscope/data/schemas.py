"""
Module: schemas

Purpose: Pydantic models for the typed records produced by normalization.

All records are frozen: derived views are recomputed, never patched in place.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS
# =============================================================================


class DatasetKind(str, Enum):
    """Supported tabular dataset kinds."""

    SALARY = "salary"
    TUITION = "tuition"


# =============================================================================
# BASE MODELS
# =============================================================================


class BaseSchema(BaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )


# =============================================================================
# RECORD SCHEMAS
# =============================================================================


class Record(BaseSchema):
    """One row-level observation belonging to exactly one entity.

    `record_id` is the row's position in the raw input and serves as the
    record's identity for scene joins and tie-breaking.
    """

    record_id: int = Field(ge=0)
    entity: str = Field(min_length=1)
    name: str = ""
    metric: float = 0.0


class SalaryRecord(Record):
    """Public-sector remuneration for one named person."""

    kind: Literal[DatasetKind.SALARY] = DatasetKind.SALARY
    role: str = ""


class TuitionRecord(Record):
    """Tuition and enrolment figures for one institution.

    The primary metric is tuition per student; total revenue is derived.
    """

    kind: Literal[DatasetKind.TUITION] = DatasetKind.TUITION
    tuition_per_student: float = 0.0
    total_students: float = 0.0
    tuition_fees: float = 0.0
    total_revenue: float = 0.0
