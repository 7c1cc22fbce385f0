from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, FrozenSet, Iterable, List, Mapping, Sequence, Set

from ..config import (
    DEFAULT_ANALYTICS_CONFIG,
    DEFAULT_GROWTH_TARGETS,
    AnalyticsConfig,
    GrowthTargetConfig,
)
from ..schemas import (
    LactationEvent,
    LactationStatus,
    MeasurementCategory,
    MeasurementEvent,
    Subject,
    collapse_same_day,
    events_by_subject,
)
from .calculations import days_in_milk
from .growth import age_in_days


class CandidateReason(str, Enum):
    DEL_WINDOW = "del-window"
    DECLINING_WHILE_PREGNANT = "declining-while-pregnant"
    ALREADY_DRYING = "already-drying"


@dataclass(frozen=True)
class CandidateSet:
    subject_ids: FrozenSet[str]
    reasons: Mapping[str, FrozenSet[CandidateReason]]

    def __contains__(self, subject_id: object) -> bool:
        return subject_id in self.subject_ids

    def __len__(self) -> int:
        return len(self.subject_ids)


@dataclass(frozen=True)
class WeaningCandidate:
    subject_id: str
    age_days: int
    current_weight: float


def is_strictly_declining(history: Sequence[MeasurementEvent], run_length: int = 4) -> bool:
    newest = sorted(collapse_same_day(history), key=lambda e: e.date, reverse=True)[:run_length]
    if len(newest) < run_length:
        return False
    # newest first: each reading below the one before it
    return all(newer.kg < older.kg for newer, older in zip(newest, newest[1:]))


def drying_off_candidates(
    subjects: Iterable[Subject],
    lactations: Iterable[LactationEvent],
    measurements: Iterable[MeasurementEvent],
    as_of: date,
    config: AnalyticsConfig = DEFAULT_ANALYTICS_CONFIG,
) -> CandidateSet:
    lactations = list(lactations)
    reasons: Dict[str, Set[CandidateReason]] = defaultdict(set)

    low, high = config.dry_off_window
    for lac in lactations:
        if lac.status != LactationStatus.ACTIVE:
            continue
        if low <= days_in_milk(lac.start_date, as_of) <= high:
            reasons[lac.subject_id].add(CandidateReason.DEL_WINDOW)

    histories = events_by_subject(measurements, MeasurementCategory.MILK_YIELD)
    for s in subjects:
        if not s.is_pregnant or s.is_reference:
            continue
        if is_strictly_declining(histories.get(s.subject_id, []), config.decline_run_length):
            reasons[s.subject_id].add(CandidateReason.DECLINING_WHILE_PREGNANT)

    for lac in lactations:
        if lac.status == LactationStatus.DRYING:
            reasons[lac.subject_id].add(CandidateReason.ALREADY_DRYING)

    return CandidateSet(
        subject_ids=frozenset(reasons),
        reasons={sid: frozenset(r) for sid, r in reasons.items()},
    )


def weaning_candidates(
    subjects: Iterable[Subject],
    weighings: Iterable[MeasurementEvent],
    as_of: date,
    targets: GrowthTargetConfig = DEFAULT_GROWTH_TARGETS,
    config: AnalyticsConfig = DEFAULT_ANALYTICS_CONFIG,
) -> List[WeaningCandidate]:
    """Unweaned subjects inside the weaning age window that already carry weaning weight."""
    histories = events_by_subject(weighings, MeasurementCategory.BODY_WEIGHT)
    min_age = targets.weaning.age_days
    max_age = min_age + config.weaning_age_tolerance_days

    found: List[WeaningCandidate] = []
    for s in subjects:
        if s.weaning_date is not None or s.is_reference or s.birth_date is None:
            continue
        age = age_in_days(s.birth_date, as_of)
        if not min_age <= age <= max_age:
            continue
        history = histories.get(s.subject_id)
        current = history[-1].kg if history else s.birth_weight
        if current is None:
            continue
        if current >= targets.weaning.target_for(s.sex) - config.weaning_weight_tolerance_kg:
            found.append(WeaningCandidate(s.subject_id, age, current))

    found.sort(key=lambda c: c.age_days, reverse=True)
    return found
