"""
Column mapping for the supported tabular datasets.

Instead of hardcoding column names in the normalizer, each dataset kind has a
mapping configuration naming the source column (plus alternatives) for every
semantic field. Alternatives cover the differently-named exports of the same
table.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from payscope.data.schemas import DatasetKind


class SemanticField(str, Enum):
    """Semantic fields a source column can map to."""

    ENTITY = "entity"
    NAME = "name"
    METRIC = "metric"
    ROLE = "role"
    TOTAL_STUDENTS = "total_students"
    TUITION_FEES = "tuition_fees"



@dataclass
class FieldMapping:
    """
    Mapping from a source column to a semantic field.

    Attributes:
        source_field: The column name in the source table
        semantic_type: The semantic meaning of this column
        default: Value used when no candidate column is present
        alternatives: Alternative column names to try, in order
    """
    source_field: str
    semantic_type: SemanticField
    default: Any = None
    alternatives: list[str] = field(default_factory=list)

    def get_source_fields(self) -> list[str]:
        """Get all possible source column names (primary + alternatives)."""
        return [self.source_field] + self.alternatives


@dataclass
class DatasetSchemaConfig:
    """
    Complete column configuration for one dataset kind.

    Attributes:
        kind: Which typed record the rows normalize into
        description: Human-readable description of the source table
        mappings: Column mappings, at most one per semantic field
    """
    kind: DatasetKind
    description: str = ""
    mappings: list[FieldMapping] = field(default_factory=list)

    def get_mapping(self, semantic_type: SemanticField) -> FieldMapping | None:
        """Return the mapping for a semantic field, if configured."""
        for mapping in self.mappings:
            if mapping.semantic_type == semantic_type:
                return mapping
        return None

    @property
    def entity_field(self) -> FieldMapping:
        mapping = self.get_mapping(SemanticField.ENTITY)
        if mapping is None:
            raise KeyError(f"{self.kind.value} schema has no entity column")
        return mapping


def extract_field(row: dict[str, Any], mapping: FieldMapping | None) -> Any:
    """Return the first present column value for a mapping.

    Args:
        row: Raw row (column name -> untyped value)
        mapping: Field mapping to resolve, or None

    Returns:
        The raw cell value, or the mapping default if no candidate column exists
    """
    if mapping is None:
        return None
    for source in mapping.get_source_fields():
        if source in row:
            return row[source]
    return mapping.default


# =============================================================================
# PREDEFINED CONFIGS
# =============================================================================


def create_salary_config() -> DatasetSchemaConfig:
    """Column mapping for the public-sector salary disclosure export."""
    return DatasetSchemaConfig(
        kind=DatasetKind.SALARY,
        description="Public sector salaries, FY20/21, universities",
        mappings=[
            FieldMapping("Agency", SemanticField.ENTITY),
            FieldMapping("Name", SemanticField.NAME, default=""),
            FieldMapping("Remuneration", SemanticField.METRIC, default=0),
            FieldMapping("Position", SemanticField.ROLE, default="", alternatives=["Role"]),
        ],
    )


def create_tuition_config() -> DatasetSchemaConfig:
    """Column mapping for the BC universities tuition table."""
    return DatasetSchemaConfig(
        kind=DatasetKind.TUITION,
        description="BC universities 2022/23 tuition",
        mappings=[
            FieldMapping("Institutions", SemanticField.ENTITY, alternatives=["Institution"]),
            FieldMapping(
                "tuitionPerStudent",
                SemanticField.METRIC,
                default=0,
                alternatives=["2022/23 Tuition For Each Student"],
            ),
            FieldMapping(
                "totalStudents",
                SemanticField.TOTAL_STUDENTS,
                default=0,
                alternatives=["2022/23 Total Students"],
            ),
            FieldMapping(
                "tuition",
                SemanticField.TUITION_FEES,
                default=0,
                alternatives=["2022/23 Tuition Fees"],
            ),
        ],
    )


def get_config_for_kind(kind: DatasetKind | str) -> DatasetSchemaConfig:
    """Get the predefined column mapping for a dataset kind."""
    kind = DatasetKind(kind)
    if kind == DatasetKind.SALARY:
        return create_salary_config()
    return create_tuition_config()
