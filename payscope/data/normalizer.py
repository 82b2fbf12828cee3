"""
Module: normalizer

Purpose: Turn raw tabular rows into typed, allow-listed Records.

Key Functions:
- coerce_numeric: Lenient numeric coercion (malformed cells become 0)
- normalize_rows: Filter rows to the entity allow-list and build Records

Architecture Notes:
- Pure and idempotent: the same raw input always yields identical Records
- Malformed numeric cells degrade to 0 instead of aborting the dataset
- Rows for entities outside the allow-list are dropped, order is preserved
"""

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from payscope.data.field_mapping import (
    DatasetSchemaConfig,
    SemanticField,
    extract_field,
    get_config_for_kind,
)
from payscope.data.schemas import DatasetKind, Record, SalaryRecord, TuitionRecord
from payscope.exceptions import DataValidationError

logger = logging.getLogger(__name__)

# Characters stripped from numeric cells before parsing ("$1,234.50")
_NUMERIC_NOISE = str.maketrans("", "", ",$ \u00a0")


def coerce_numeric(value: Any) -> float:
    """Coerce an untyped cell to a float.

    Non-numeric, missing and non-finite values yield 0.0.

    Args:
        value: Raw cell value

    Returns:
        Parsed float, or 0.0 when the cell cannot be parsed
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).translate(_NUMERIC_NOISE)
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return 0.0

    if not math.isfinite(number):
        return 0.0
    return number


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def _build_record(
    record_id: int,
    entity: str,
    row: Mapping[str, Any],
    config: DatasetSchemaConfig,
) -> Record:
    metric = coerce_numeric(extract_field(row, config.get_mapping(SemanticField.METRIC)))

    if config.kind == DatasetKind.SALARY:
        return SalaryRecord(
            record_id=record_id,
            entity=entity,
            name=_coerce_text(extract_field(row, config.get_mapping(SemanticField.NAME))),
            metric=metric,
            role=_coerce_text(extract_field(row, config.get_mapping(SemanticField.ROLE))),
        )

    total_students = coerce_numeric(
        extract_field(row, config.get_mapping(SemanticField.TOTAL_STUDENTS))
    )
    tuition_fees = coerce_numeric(
        extract_field(row, config.get_mapping(SemanticField.TUITION_FEES))
    )
    return TuitionRecord(
        record_id=record_id,
        entity=entity,
        name=entity,
        metric=metric,
        tuition_per_student=metric,
        total_students=total_students,
        tuition_fees=tuition_fees,
        total_revenue=total_students * tuition_fees,
    )


def normalize_rows(
    rows: Iterable[Mapping[str, Any]],
    entities: Sequence[str],
    config: DatasetSchemaConfig | DatasetKind | str = DatasetKind.SALARY,
) -> list[Record]:
    """Normalize raw rows into typed Records.

    Args:
        rows: Raw rows (column name -> untyped value), in source order
        entities: Fixed entity allow-list
        config: Column mapping, or a dataset kind to use its predefined mapping

    Returns:
        Records for allow-listed entities, in source order

    Raises:
        DataValidationError: If a kept row cannot form a valid Record
    """
    if not isinstance(config, DatasetSchemaConfig):
        config = get_config_for_kind(config)

    allowed = set(entities)
    entity_mapping = config.entity_field
    records: list[Record] = []
    dropped = 0

    for record_id, row in enumerate(rows):
        entity = _coerce_text(extract_field(row, entity_mapping))
        if entity not in allowed:
            dropped += 1
            continue

        try:
            records.append(_build_record(record_id, entity, row, config))
        except ValidationError as e:
            raise DataValidationError(
                f"Row {record_id} failed {config.kind.value} record validation",
                field=entity_mapping.source_field,
                value=entity,
                context={"row": record_id, "errors": e.errors()},
            ) from e

    logger.debug(
        f"Normalized {len(records)} {config.kind.value} records "
        f"({dropped} rows outside the allow-list)"
    )
    return records
