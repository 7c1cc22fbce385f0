from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import (
    DEFAULT_ANALYTICS_CONFIG,
    DEFAULT_GROWTH_TARGETS,
    AnalyticsConfig,
    GrowthTargetConfig,
    Milestone,
)
from ..schemas import MeasurementCategory, MeasurementEvent, Sex, Subject, parse_day
from .calculations import Point, days_between, interpolate, mean

logger = logging.getLogger(__name__)


class MilestoneStatus(str, Enum):
    MET = "met"
    CLOSE = "close"
    PENDING = "pending"
    MISSED = "missed"
    NO_DATA = "no-data"


class GrowthBand(str, Enum):
    SUPERIOR = "superior"
    ON_TARGET = "on-target"
    BELOW_TARGET = "below-target"
    ALERT = "alert"
    NO_DATA = "no-data"


STATUS_POINTS: Dict[MilestoneStatus, float] = {
    MilestoneStatus.MET: 1.0,
    MilestoneStatus.CLOSE: 0.75,
    MilestoneStatus.PENDING: 0.5,
    MilestoneStatus.MISSED: 0.25,
    MilestoneStatus.NO_DATA: 0.0,
}

WEIGHT_GAP_SHARE = 0.6
MAX_RELATIVE_GAP = 0.5


@dataclass(frozen=True)
class MilestoneResult:
    milestone: Milestone
    age_days: float
    target_kg: float
    actual_kg: Optional[float]
    status: MilestoneStatus


@dataclass(frozen=True)
class GrowthProfile:
    subject_id: str
    age_days: int
    current_weight: Optional[float]
    target_weight_today: float
    daily_gain: Optional[float]
    milestones: Tuple[MilestoneResult, ...]
    score: float
    band: GrowthBand
    days_to_service_weight: Optional[int]


@dataclass(frozen=True)
class CurvePoint:
    age_days: int
    target_kg: float
    herd_mean_kg: Optional[float]


class TargetCurve:
    def __init__(self, points: Iterable[Point]):
        self.points = sorted(points)

    @classmethod
    def for_sex(cls, sex: Sex, config: GrowthTargetConfig = DEFAULT_GROWTH_TARGETS) -> "TargetCurve":
        return cls((t.age_days, t.target_for(sex)) for _, t in config.milestones())

    def weight_at(self, age: float) -> float:
        w = interpolate(self.points, age)
        return w if w is not None else 0.0


def age_in_days(birth_date, as_of) -> int:
    if parse_day(birth_date) is None:
        return 0
    return days_between(birth_date, as_of)


def growth_points(subject: Subject, weighings: Iterable[MeasurementEvent]) -> List[Point]:
    """(age, kg) points of a subject, birth weight included as age 0 when known."""
    if subject.birth_date is None:
        return []
    points: List[Point] = []
    if subject.birth_weight is not None:
        points.append((0.0, subject.birth_weight))
    for w in weighings:
        if w.subject_id != subject.subject_id or w.category != MeasurementCategory.BODY_WEIGHT:
            continue
        points.append((float(days_between(subject.birth_date, w.date)), w.kg))
    points.sort(key=lambda p: p[0])
    return points


def interpolated_weight_at_age(points: Sequence[Point], target_age: float) -> Optional[float]:
    return interpolate(points, target_age)


def target_weight_at_age(
    age: float,
    sex: Sex,
    config: GrowthTargetConfig = DEFAULT_GROWTH_TARGETS,
) -> float:
    return TargetCurve.for_sex(sex, config).weight_at(age)


def milestone_status(
    actual: Optional[float],
    target: float,
    milestone_age: float,
    current_age: float,
    tolerance: float = DEFAULT_ANALYTICS_CONFIG.milestone_close_tolerance,
) -> MilestoneStatus:
    if actual is None:
        return MilestoneStatus.NO_DATA
    if milestone_age > current_age:
        return MilestoneStatus.PENDING
    if actual >= target:
        return MilestoneStatus.MET
    if actual >= target * (1.0 - tolerance):
        return MilestoneStatus.CLOSE
    return MilestoneStatus.MISSED


def growth_score(
    current_weight: Optional[float],
    target_weight_today: float,
    milestone_statuses: Iterable[MilestoneStatus],
) -> float:
    """
    0..10 composite: 60% relative weight gap vs. the target curve today,
    40% average milestone points (met > close > pending > missed > no-data).
    """
    if current_weight is None:
        gap_term = 0.0
    elif target_weight_today <= 0:
        gap_term = 0.5
    else:
        gap = (current_weight - target_weight_today) / target_weight_today
        gap = max(-MAX_RELATIVE_GAP, min(MAX_RELATIVE_GAP, gap))
        gap_term = (gap + MAX_RELATIVE_GAP) / (2 * MAX_RELATIVE_GAP)

    points = [STATUS_POINTS[s] for s in milestone_statuses]
    milestone_term = mean(points) if points else 0.5

    score = 10.0 * (WEIGHT_GAP_SHARE * gap_term + (1.0 - WEIGHT_GAP_SHARE) * milestone_term)
    return max(0.0, min(10.0, score))


def average_daily_gain(
    birth_date,
    birth_weight: Optional[float],
    ordered_weighings: Iterable[MeasurementEvent],
) -> Optional[float]:
    dated: List[Tuple[date, float]] = [(w.date, w.kg) for w in ordered_weighings]
    born = parse_day(birth_date)
    if born is not None and birth_weight is not None and birth_weight > 0:
        dated.append((born, birth_weight))
    if len(dated) < 2:
        return None

    dated.sort(key=lambda p: p[0])
    (d0, w0), (d1, w1) = dated[0], dated[-1]
    elapsed = (d1 - d0).days
    if elapsed <= 0:
        return None
    return (w1 - w0) / elapsed


def growth_band(
    current_weight: Optional[float],
    target_weight_today: float,
    age: int,
    point_count: int,
    config: AnalyticsConfig = DEFAULT_ANALYTICS_CONFIG,
) -> GrowthBand:
    # a lone birth point is not a growth record
    if age < 0 or point_count <= 1 or current_weight is None:
        return GrowthBand.NO_DATA
    ratio = current_weight / target_weight_today if target_weight_today > 0 else 0.0
    if ratio >= config.growth_superior_ratio:
        return GrowthBand.SUPERIOR
    if ratio >= config.growth_on_target_ratio:
        return GrowthBand.ON_TARGET
    if ratio < config.growth_alert_ratio:
        return GrowthBand.ALERT
    return GrowthBand.BELOW_TARGET


def days_to_service_weight(
    current_weight: Optional[float],
    daily_gain: Optional[float],
    service_weight: float,
    horizon_days: int = DEFAULT_ANALYTICS_CONFIG.service_projection_horizon_days,
) -> Optional[int]:
    if current_weight is None or daily_gain is None or daily_gain <= 0:
        return None
    if current_weight >= service_weight:
        return None
    needed = (service_weight - current_weight) / daily_gain
    if needed > horizon_days:
        return None
    return int(math.ceil(needed))


def growth_profile(
    subject: Subject,
    weighings: Iterable[MeasurementEvent],
    as_of: date,
    targets: GrowthTargetConfig = DEFAULT_GROWTH_TARGETS,
    config: AnalyticsConfig = DEFAULT_ANALYTICS_CONFIG,
) -> GrowthProfile:
    own = sorted(
        (
            w for w in weighings
            if w.subject_id == subject.subject_id and w.category == MeasurementCategory.BODY_WEIGHT
        ),
        key=lambda w: w.date,
    )
    points = growth_points(subject, own)
    age = age_in_days(subject.birth_date, as_of)
    curve = TargetCurve.for_sex(subject.sex, targets)
    target_today = curve.weight_at(age)

    if subject.birth_date is None:
        logger.debug("subject %s has no usable birth date; milestones degrade to no-data", subject.subject_id)

    if own:
        current: Optional[float] = own[-1].kg
    else:
        current = subject.birth_weight

    results: List[MilestoneResult] = []
    for name, target in targets.milestones():
        actual = interpolated_weight_at_age(points, target.age_days)
        results.append(MilestoneResult(
            milestone=name,
            age_days=target.age_days,
            target_kg=target.target_for(subject.sex),
            actual_kg=actual,
            status=milestone_status(
                actual,
                target.target_for(subject.sex),
                target.age_days,
                age,
                config.milestone_close_tolerance,
            ),
        ))

    gdp = average_daily_gain(subject.birth_date, subject.birth_weight, own)
    service_weight = targets.first_service.target_for(subject.sex)
    projection = None
    if subject.sex == Sex.FEMALE:
        projection = days_to_service_weight(
            current, gdp, service_weight, config.service_projection_horizon_days
        )

    return GrowthProfile(
        subject_id=subject.subject_id,
        age_days=age,
        current_weight=current,
        target_weight_today=target_today,
        daily_gain=gdp,
        milestones=tuple(results),
        score=growth_score(current, target_today, [r.status for r in results]),
        band=growth_band(current, target_today, age, len(points), config),
        days_to_service_weight=projection,
    )


def herd_growth_curve(
    subjects: Iterable[Subject],
    weighings: Iterable[MeasurementEvent],
    targets: GrowthTargetConfig = DEFAULT_GROWTH_TARGETS,
    step_days: int = 30,
    max_age_days: int = 450,
) -> List[CurvePoint]:
    """Female target curve next to the herd's mean interpolated weight at each age step."""
    weighings = list(weighings)
    by_subject: Mapping[str, List[Point]] = {
        s.subject_id: growth_points(s, weighings) for s in subjects if not s.is_reference
    }
    curve = TargetCurve.for_sex(Sex.FEMALE, targets)

    series: List[CurvePoint] = []
    for age in range(0, max_age_days + 1, step_days):
        values = [
            w for w in (interpolated_weight_at_age(p, age) for p in by_subject.values())
            if w is not None
        ]
        series.append(CurvePoint(
            age_days=age,
            target_kg=curve.weight_at(age),
            herd_mean_kg=mean(values) if values else None,
        ))
    return series
