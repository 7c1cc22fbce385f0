from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from typing import FrozenSet, Iterable, List, Optional, Tuple

import pandas as pd

from ..schemas import MeasurementCategory, MeasurementEvent

GRANULARITIES = ("month", "quarter", "year")


@dataclass(frozen=True)
class PeriodBucket:
    period_key: str
    total_kg: float
    event_count: int
    average_kg: float
    subject_ids: FrozenSet[str]
    date_count: int
    events: Tuple[MeasurementEvent, ...]
    avg_change_pct: Optional[float] = None
    subject_count_change_pct: Optional[float] = None
    entering_subject_ids: FrozenSet[str] = frozenset()
    exiting_subject_ids: FrozenSet[str] = frozenset()
    previous_subject_count: int = 0

    @property
    def subject_count(self) -> int:
        return len(self.subject_ids)


def period_key(day: date, granularity: str = "month") -> str:
    if granularity == "month":
        return f"{day.year:04d}-{day.month:02d}"
    if granularity == "quarter":
        return f"{day.year:04d}-Q{(day.month - 1) // 3 + 1}"
    if granularity == "year":
        return f"{day.year:04d}"
    raise ValueError(f"unknown granularity {granularity!r}; expected one of {GRANULARITIES}")


def _pct_change(current: float, previous: float) -> Optional[float]:
    if not previous:
        return None
    return (current - previous) / previous * 100.0


def rollup_history(
    events: Iterable[MeasurementEvent],
    category: Optional[MeasurementCategory] = None,
    granularity: str = "month",
) -> List[PeriodBucket]:
    """Period buckets, most recent first, each compared against the next older one."""
    events = [e for e in events if category is None or e.category == category]
    if not events:
        return []

    df = pd.DataFrame({
        "subject_id": [e.subject_id for e in events],
        "date": [e.date for e in events],
        "kg": [float(e.kg) for e in events],
        "period": [period_key(e.date, granularity) for e in events],
    })

    buckets: List[PeriodBucket] = []
    for key, group in df.groupby("period", sort=False):
        total = float(group["kg"].sum())
        count = int(len(group))
        buckets.append(PeriodBucket(
            period_key=str(key),
            total_kg=total,
            event_count=count,
            average_kg=total / count if count else 0.0,
            subject_ids=frozenset(group["subject_id"]),
            date_count=int(group["date"].nunique()),
            events=tuple(events[i] for i in group.index),
        ))

    buckets.sort(key=lambda b: b.period_key, reverse=True)

    linked: List[PeriodBucket] = []
    for i, bucket in enumerate(buckets):
        previous = buckets[i + 1] if i + 1 < len(buckets) else None
        if previous is None:
            linked.append(replace(bucket, entering_subject_ids=bucket.subject_ids))
            continue
        linked.append(replace(
            bucket,
            avg_change_pct=_pct_change(bucket.average_kg, previous.average_kg),
            subject_count_change_pct=_pct_change(bucket.subject_count, previous.subject_count),
            entering_subject_ids=bucket.subject_ids - previous.subject_ids,
            exiting_subject_ids=previous.subject_ids - bucket.subject_ids,
            previous_subject_count=previous.subject_count,
        ))
    return linked
