"""
Module: aggregators

Purpose: Group-level statistics over normalized records.

Pure functions for computing per-entity aggregates (mean, maximum, top-K) and
looking up the named reference record. Empty groups are recovered locally:
their mean is 0 and their maximum/top-K are empty.
"""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from payscope.data.schemas import Record
from payscope.exceptions import ReferenceRecordNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TOP_K = 10


@dataclass(frozen=True)
class GroupStat:
    """Per-entity aggregate over its records."""

    entity: str
    mean: float = 0.0
    max_record: Record | None = None
    count: int = 0
    top: tuple[Record, ...] = field(default_factory=tuple)

    @property
    def max_metric(self) -> float | None:
        return self.max_record.metric if self.max_record is not None else None


def records_for(records: Iterable[Record], entity: str) -> list[Record]:
    """Records belonging to one entity, in data order."""
    return [r for r in records if r.entity == entity]


def top_k(records: Iterable[Record], entity: str, k: int = DEFAULT_TOP_K) -> list[Record]:
    """
    Return up to k records for an entity, highest metric first.

    The sort is stable, so records with equal metrics keep their data order.

    Args:
        records: Normalized records
        entity: Entity to select
        k: Maximum number of records to return

    Returns:
        At most k records sorted by metric descending
    """
    if k <= 0:
        return []
    ranked = sorted(records_for(records, entity), key=lambda r: r.metric, reverse=True)
    return ranked[:k]


def top_k_per_entity(
    records: Sequence[Record],
    entities: Sequence[str],
    k: int = DEFAULT_TOP_K,
) -> list[Record]:
    """Concatenate top_k for every entity, in entity order."""
    result: list[Record] = []
    for entity in entities:
        result.extend(top_k(records, entity, k))
    return result


def group_stats(
    records: Sequence[Record],
    entities: Sequence[str],
    *,
    k: int = DEFAULT_TOP_K,
) -> list[GroupStat]:
    """
    Compute one GroupStat per entity, preserving entity order.

    Args:
        records: Normalized records
        entities: Fixed entity list (display order)
        k: Size of each group's top-K list

    Returns:
        GroupStat per entity; empty groups have mean 0 and no max record
    """
    stats: list[GroupStat] = []
    for entity in entities:
        members = records_for(records, entity)
        if not members:
            stats.append(GroupStat(entity=entity))
            continue

        ranked = sorted(members, key=lambda r: r.metric, reverse=True)
        stats.append(GroupStat(
            entity=entity,
            mean=sum(r.metric for r in members) / len(members),
            max_record=ranked[0],
            count=len(members),
            top=tuple(ranked[:k]),
        ))

    logger.debug(f"Computed group stats for {len(stats)} entities over {len(records)} records")
    return stats


def stats_by_entity(stats: Iterable[GroupStat]) -> dict[str, GroupStat]:
    """Index group stats by entity name."""
    return {s.entity: s for s in stats}


def max_metric(records: Iterable[Record]) -> float:
    """Largest metric among records, 0 when there are none."""
    return max((r.metric for r in records), default=0.0)


def max_mean(stats: Iterable[GroupStat]) -> float:
    """Largest group mean, 0 when there are no groups."""
    return max((s.mean for s in stats), default=0.0)


def find_reference_record(records: Sequence[Record], name: str) -> Record:
    """
    Look up the reference record by exact name match.

    Args:
        records: Normalized records
        name: Exact person name, e.g. "Abel-Co, Karen"

    Returns:
        The first record with that name, in data order

    Raises:
        ReferenceRecordNotFoundError: If no record carries that name
    """
    for record in records:
        if record.name == name:
            return record

    raise ReferenceRecordNotFoundError(
        f"Reference record {name!r} not found in filtered records",
        name=name,
        record_count=len(records),
    )
