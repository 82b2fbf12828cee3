"""
Local data loader for the CSV salary and tuition tables.

Reads CSV exports into raw rows (column name -> untyped value) and hands them
to the normalizer, which applies the entity allow-list and numeric coercion.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from payscope.data.field_mapping import DatasetSchemaConfig, get_config_for_kind
from payscope.data.normalizer import normalize_rows
from payscope.data.schemas import DatasetKind, Record

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class LoadResult:
    """Result of loading one local table."""

    kind: DatasetKind
    source: Path
    records: list[Record] = field(default_factory=list)

    # Statistics
    total_rows: int = 0
    kept_rows: int = 0
    load_duration_ms: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


# =============================================================================
# LOCAL DATA LOADER
# =============================================================================


class LocalDataLoader:
    """
    Load the salary and tuition tables from local CSV files.

    Every cell is read as text; numeric coercion is left to the normalizer
    so malformed cells degrade to 0 instead of failing the whole table.

    Usage:
        loader = LocalDataLoader(entities=settings.entities)
        result = loader.load(settings.salary_data_path, DatasetKind.SALARY)
        if result.ok:
            records = result.records
    """

    def __init__(
        self,
        entities: list[str],
        *,
        schema_configs: dict[DatasetKind, DatasetSchemaConfig] | None = None,
    ):
        """
        Initialize loader.

        Args:
            entities: Entity allow-list applied to every table
            schema_configs: Per-kind column mappings. Missing kinds use the
                            predefined mapping.
        """
        self.entities = list(entities)
        self.schema_configs = dict(schema_configs or {})
        self._pandas_module: Any = None

    def _get_pandas(self) -> Any:
        """Lazy import of pandas."""
        if self._pandas_module is None:
            try:
                import pandas as pd
                self._pandas_module = pd
            except ImportError:
                raise ImportError("pandas is required: pip install pandas")
        return self._pandas_module

    def _config_for(self, kind: DatasetKind) -> DatasetSchemaConfig:
        return self.schema_configs.get(kind) or get_config_for_kind(kind)

    def read_rows(self, path: Path | str) -> list[dict[str, Any]]:
        """Read a CSV file into raw rows, all cells as text."""
        pd = self._get_pandas()
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        return df.to_dict(orient="records")

    def load(self, path: Path | str, kind: DatasetKind | str) -> LoadResult:
        """
        Load and normalize one table.

        Args:
            path: CSV file path
            kind: Dataset kind (salary or tuition)

        Returns:
            LoadResult with records and statistics. Read failures are
            reported in `errors` rather than raised.
        """
        start_time = time.perf_counter()
        kind = DatasetKind(kind)
        path = Path(path)
        result = LoadResult(kind=kind, source=path)

        if not path.exists():
            result.errors.append(f"Data file not found: {path}")
            logger.error(result.errors[-1])
            return result

        try:
            rows = self.read_rows(path)
        except Exception as e:
            error_msg = f"Error reading {path}: {e}"
            logger.error(error_msg)
            result.errors.append(error_msg)
            return result

        result.total_rows = len(rows)
        result.records = normalize_rows(rows, self.entities, self._config_for(kind))
        result.kept_rows = len(result.records)
        result.load_duration_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            f"Loaded {result.kept_rows} of {result.total_rows} {kind.value} rows "
            f"from {path.name} in {result.load_duration_ms:.1f}ms"
        )
        return result

    def load_salaries(self, path: Path | str) -> LoadResult:
        """Load the public-sector salary table."""
        return self.load(path, DatasetKind.SALARY)

    def load_tuition(self, path: Path | str) -> LoadResult:
        """Load the tuition table."""
        return self.load(path, DatasetKind.TUITION)
