"""Collaboration statistics over normalized rows."""

from collections.abc import Callable, Iterable
from typing import TypeVar

from dblp_masterfile.models.model_dblp import (
    CollaborationRow,
    MasterfileStats,
    PaperDetail,
)

T = TypeVar("T")


def average(values: Iterable[float]) -> float:
    """Arithmetic mean; 0.0 for no values."""
    values = list(values)
    if not values:
        return 0.0
    return sum(values) / len(values)


def group_count(items: Iterable[T], key: Callable[[T], str]) -> dict[str, int]:
    """Count items per key, keys in first-seen order."""
    counts: dict[str, int] = {}
    for item in items:
        k = key(item)
        counts[k] = counts.get(k, 0) + 1
    return counts


def aggregate(rows: list[CollaborationRow]) -> MasterfileStats:
    distinct_coauthors = {cid for row in rows for cid in row.coauthor_ids}
    return MasterfileStats(
        publication_count=len(rows),
        distinct_coauthor_count=len(distinct_coauthors),
        by_type=group_count(rows, lambda r: r.type),
        avg_strength_in_set=average(r.avg_strength_in_set for r in rows),
        avg_strength_global=average(r.avg_strength_global for r in rows),
    )


def per_paper(rows: list[CollaborationRow]) -> list[PaperDetail]:
    return [
        PaperDetail.model_validate(
            row.model_dump(exclude={"coauthor_names", "coauthor_ids"})
        )
        for row in rows
    ]
