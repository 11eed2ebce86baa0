"""Ranker - deterministic ordering with dense or gapped rank values.

Ranking is an explicit stable sort on the declared key followed by a scan
that tracks the position in the sorted list. Rank values only look at the
primary key; the remaining keys decide order inside a tie group.
"""
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence


DENSE = "dense"
GAPPED = "gapped"
DISCIPLINES = (DENSE, GAPPED)


@dataclass(frozen=True)
class SortKey:
    """One column of a ranking key."""
    column: str
    descending: bool = True


def desc(column: str) -> SortKey:
    return SortKey(column, descending=True)


def asc(column: str) -> SortKey:
    return SortKey(column, descending=False)


def sort_records(records: Sequence[Mapping], keys: Sequence[SortKey]) -> List[Mapping]:
    """Stable multi-column sort; ties on the full key keep input order."""
    if not keys:
        raise ValueError("A ranking needs at least one sort key")

    ordered = list(records)
    # Sort by the least significant key first; stability preserves earlier passes
    for key in reversed(keys):
        ordered.sort(key=lambda record: record[key.column], reverse=key.descending)
    return ordered


def assign_ranks(
    ordered: Sequence[Mapping],
    column: str,
    discipline: str = DENSE,
    rank_field: str = "rank",
) -> List[dict]:
    """Attach rank values to already-sorted records, grouping equal ``column`` values."""
    if discipline not in DISCIPLINES:
        raise ValueError(f"Unknown ranking discipline '{discipline}', expected one of {DISCIPLINES}")

    ranked: List[dict] = []
    rank = 0
    previous = None
    for position, record in enumerate(ordered):
        value = record[column]
        if position == 0 or value != previous:
            rank = rank + 1 if discipline == DENSE else position + 1
            previous = value
        row = dict(record)
        row[rank_field] = rank
        ranked.append(row)
    return ranked


def rank_records(
    records: Sequence[Mapping],
    keys: Sequence[SortKey],
    discipline: str = DENSE,
    rank_field: str = "rank",
    limit: Optional[int] = None,
) -> List[dict]:
    """Sort by ``keys``, rank on the primary key, then cut to ``limit`` rows."""
    ranked = assign_ranks(sort_records(records, keys), keys[0].column, discipline, rank_field)
    if limit is not None:
        ranked = ranked[:limit]
    return ranked


def top_n(records: Sequence[Mapping], keys: Sequence[SortKey], limit: Optional[int] = None) -> List[dict]:
    """Sorted records without a rank column."""
    ordered = [dict(record) for record in sort_records(records, keys)]
    if limit is not None:
        ordered = ordered[:limit]
    return ordered
