"""Typed records, column mappings, normalization and CSV loading."""

from payscope.data.normalizer import coerce_numeric, normalize_rows
from payscope.data.schemas import DatasetKind, Record, SalaryRecord, TuitionRecord

__all__ = [
    "DatasetKind",
    "Record",
    "SalaryRecord",
    "TuitionRecord",
    "coerce_numeric",
    "normalize_rows",
]
