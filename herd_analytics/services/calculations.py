from __future__ import annotations

import bisect
import math
from datetime import date
from typing import Any, Iterable, Optional, Sequence, Tuple

from ..schemas import LactationEvent, LactationStatus, parse_day

Point = Tuple[float, float]

MILKING_STATUSES = frozenset({LactationStatus.ACTIVE, LactationStatus.DRYING})


def days_between(start: Any, end: Any) -> int:
    d0 = parse_day(start)
    d1 = parse_day(end)
    if d0 is None or d1 is None:
        return 0
    return (d1 - d0).days


def days_in_milk(lactation_start: Any, as_of: Any) -> int:
    return max(0, days_between(lactation_start, as_of))


def governing_lactation(
    lactations: Iterable[LactationEvent],
    subject_id: str,
    on: date,
) -> Optional[LactationEvent]:
    """Most recent milking (active or drying) lactation of the subject started on or before `on`."""
    candidates = [
        lac for lac in lactations
        if lac.subject_id == subject_id
        and lac.status in MILKING_STATUSES
        and lac.start_date <= on
    ]
    if not candidates:
        return None
    return max(candidates, key=lambda lac: lac.start_date)


def weighted_score(kg: float, del_days: float, pivot: float = 50.0) -> float:
    # neutral at DEL == pivot; early lactation discounted, late lactation rewarded
    return kg * (1.0 + (del_days - pivot) / (del_days + pivot))


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_std_dev(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    mu = mean(values)
    return math.sqrt(sum((v - mu) ** 2 for v in values) / len(values))


def interpolate(points: Sequence[Point], x: float) -> Optional[float]:
    """Piecewise-linear lookup over x-sorted points, clamped at both ends."""
    if not points:
        return None
    xs = [p[0] for p in points]
    if x <= xs[0]:
        return float(points[0][1])
    if x >= xs[-1]:
        return float(points[-1][1])

    i = bisect.bisect_left(xs, x)
    x1, y1 = points[i]
    if x1 == x:
        return float(y1)
    x0, y0 = points[i - 1]
    if x1 == x0:
        return float(y0)
    return y0 + (x - x0) / (x1 - x0) * (y1 - y0)
