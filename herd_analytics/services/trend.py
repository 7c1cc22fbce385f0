from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from ..schemas import MeasurementEvent, collapse_same_day


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    STABLE = "stable"
    SINGLE = "single"
    NONE = "none"


@dataclass(frozen=True)
class TrendResult:
    trend: Trend
    difference: float
    is_long_trend: bool
    recent: Tuple[MeasurementEvent, ...]  # newest first, at most two


def _newest_first(history: Iterable[MeasurementEvent]) -> List[MeasurementEvent]:
    # a same-day re-entry replaces the reading it corrects
    return sorted(collapse_same_day(history), key=lambda e: e.date, reverse=True)


def _direction(diff: float, margin: float) -> Trend:
    if diff > margin:
        return Trend.UP
    if diff < -margin:
        return Trend.DOWN
    return Trend.STABLE


def is_long_trend(history: Iterable[MeasurementEvent], margin: float = 0.15) -> bool:
    events = _newest_first(history)
    if len(events) < 3:
        return False
    latest = _direction(events[0].kg - events[1].kg, margin)
    earlier = _direction(events[1].kg - events[2].kg, margin)
    return latest != Trend.STABLE and latest == earlier


def detect_trend(history: Iterable[MeasurementEvent], margin: float = 0.15) -> TrendResult:
    events = _newest_first(history)
    if not events:
        return TrendResult(Trend.NONE, 0.0, False, ())
    if len(events) == 1:
        return TrendResult(Trend.SINGLE, 0.0, False, (events[0],))

    latest, previous = events[0], events[1]
    diff = latest.kg - previous.kg
    return TrendResult(
        trend=_direction(diff, margin),
        difference=diff,
        is_long_trend=is_long_trend(events, margin),
        recent=(latest, previous),
    )


def trend_for_event(
    history: Iterable[MeasurementEvent],
    event: MeasurementEvent,
    margin: float = 0.15,
) -> Trend:
    """Trend of `event` against the subject's closest earlier measurement."""
    earlier: Optional[MeasurementEvent] = None
    for e in history:
        if e.category != event.category or e.date >= event.date:
            continue
        if earlier is None or e.date >= earlier.date:
            earlier = e
    if earlier is None:
        return Trend.SINGLE
    return _direction(event.kg - earlier.kg, margin)
