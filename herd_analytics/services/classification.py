from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..config import DEFAULT_ANALYTICS_CONFIG, AnalyticsConfig
from ..schemas import LactationEvent, MeasurementCategory, MeasurementEvent, Subject
from .calculations import days_in_milk, governing_lactation, mean, population_std_dev, weighted_score
from .trend import Trend, trend_for_event

logger = logging.getLogger(__name__)


class Classification(str, Enum):
    POOR = "poor"
    AVERAGE = "average"
    OUTSTANDING = "outstanding"


BUCKET_ORDER = (Classification.POOR, Classification.AVERAGE, Classification.OUTSTANDING)


@dataclass(frozen=True)
class ClassifiedSubject:
    subject_id: str
    kg: float
    del_days: int
    score: float
    classification: Classification
    trend: Trend
    event: MeasurementEvent


@dataclass(frozen=True)
class CohortClassification:
    classified: Tuple[ClassifiedSubject, ...] = ()
    distribution: Tuple[Tuple[Classification, int], ...] = ()
    mean: float = 0.0
    std_dev: float = 0.0
    weighted_mean: float = 0.0
    weighted_std_dev: float = 0.0
    weighted: bool = False
    unscored_subject_ids: Tuple[str, ...] = ()

    @property
    def score_mean(self) -> float:
        return self.weighted_mean if self.weighted else self.mean

    @property
    def score_std_dev(self) -> float:
        return self.weighted_std_dev if self.weighted else self.std_dev

    def by_subject(self) -> Dict[str, ClassifiedSubject]:
        return {c.subject_id: c for c in self.classified}


@dataclass(frozen=True)
class ClassifiedGain:
    subject_id: str
    daily_gain: float
    classification: Classification


@dataclass(frozen=True)
class GainClassification:
    classified: Tuple[ClassifiedGain, ...] = ()
    distribution: Tuple[Tuple[Classification, int], ...] = ()
    mean: float = 0.0
    std_dev: float = 0.0


def classify_score(
    score: float,
    mean_score: float,
    std_dev: float,
    band: float = DEFAULT_ANALYTICS_CONFIG.classification_band,
    min_std_dev: float = DEFAULT_ANALYTICS_CONFIG.min_std_dev,
) -> Classification:
    # near-uniform cohorts are not split on noise
    if std_dev <= min_std_dev:
        return Classification.AVERAGE
    if score < mean_score - band * std_dev:
        return Classification.POOR
    if score > mean_score + band * std_dev:
        return Classification.OUTSTANDING
    return Classification.AVERAGE


def distribution_of(labels: Iterable[Classification]) -> Tuple[Tuple[Classification, int], ...]:
    counts = {c: 0 for c in BUCKET_ORDER}
    for label in labels:
        counts[label] += 1
    return tuple((c, counts[c]) for c in BUCKET_ORDER)


def cohort_batches(
    events: Iterable[MeasurementEvent],
    category: MeasurementCategory = MeasurementCategory.MILK_YIELD,
) -> Dict[date, List[MeasurementEvent]]:
    batches: Dict[date, List[MeasurementEvent]] = defaultdict(list)
    for e in events:
        if e.category == category:
            batches[e.date].append(e)
    return dict(sorted(batches.items()))


def classify_cohort(
    batch: Sequence[MeasurementEvent],
    lactations: Sequence[LactationEvent],
    histories: Optional[Mapping[str, Sequence[MeasurementEvent]]] = None,
    weighted: bool = False,
    subjects: Optional[Mapping[str, Subject]] = None,
    config: AnalyticsConfig = DEFAULT_ANALYTICS_CONFIG,
) -> CohortClassification:
    histories = histories or {}

    scored: List[dict] = []
    unscored: List[str] = []
    for event in batch:
        subject = subjects.get(event.subject_id) if subjects is not None else None
        if subject is not None and subject.is_reference:
            continue

        lactation = governing_lactation(lactations, event.subject_id, event.date)
        if lactation is None:
            unscored.append(event.subject_id)
            continue

        del_days = days_in_milk(lactation.start_date, event.date)
        scored.append({
            "event": event,
            "del": del_days,
            "weighted": weighted_score(event.kg, del_days, config.weighting_pivot_del),
            "trend": trend_for_event(histories.get(event.subject_id, ()), event, config.trend_margin_kg),
        })

    if unscored:
        logger.debug("cohort: %d entries without a governing lactation dropped", len(unscored))

    if not scored:
        return CohortClassification(weighted=weighted, unscored_subject_ids=tuple(unscored))

    raw = [s["event"].kg for s in scored]
    wtd = [s["weighted"] for s in scored]
    mu, sigma = mean(raw), population_std_dev(raw)
    wmu, wsigma = mean(wtd), population_std_dev(wtd)

    score_mu, score_sigma = (wmu, wsigma) if weighted else (mu, sigma)
    if score_sigma <= config.min_std_dev:
        logger.debug("cohort: degenerate spread (sigma=%.4f); everyone is average", score_sigma)

    classified: List[ClassifiedSubject] = []
    for s in scored:
        score = s["weighted"] if weighted else s["event"].kg
        classified.append(ClassifiedSubject(
            subject_id=s["event"].subject_id,
            kg=s["event"].kg,
            del_days=s["del"],
            score=score,
            classification=classify_score(
                score, score_mu, score_sigma, config.classification_band, config.min_std_dev
            ),
            trend=s["trend"],
            event=s["event"],
        ))

    return CohortClassification(
        classified=tuple(classified),
        distribution=distribution_of(c.classification for c in classified),
        mean=mu,
        std_dev=sigma,
        weighted_mean=wmu,
        weighted_std_dev=wsigma,
        weighted=weighted,
        unscored_subject_ids=tuple(unscored),
    )


def classify_daily_gains(
    gains: Mapping[str, Optional[float]],
    config: AnalyticsConfig = DEFAULT_ANALYTICS_CONFIG,
) -> GainClassification:
    """Same Gaussian rule over average daily gain; only positive gains take part."""
    valid = [(sid, g) for sid, g in gains.items() if g is not None and g > 0]
    if len(valid) < 2:
        return GainClassification()

    values = [g for _, g in valid]
    mu, sigma = mean(values), population_std_dev(values)
    classified = [
        ClassifiedGain(
            subject_id=sid,
            daily_gain=g,
            classification=classify_score(
                g, mu, sigma, config.classification_band, config.daily_gain_min_std_dev
            ),
        )
        for sid, g in valid
    ]
    classified.sort(key=lambda c: c.daily_gain, reverse=True)
    return GainClassification(
        classified=tuple(classified),
        distribution=distribution_of(c.classification for c in classified),
        mean=mu,
        std_dev=sigma,
    )
