from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from herd_analytics import (
    LactationEvent,
    LactationStatus,
    MeasurementCategory,
    MeasurementEvent,
    Sex,
    Subject,
    classify_cohort,
    drying_off_candidates,
    events_by_subject,
    growth_profile,
    rollup_history,
    weaning_candidates,
)
from herd_analytics.services.classification import cohort_batches

logger = logging.getLogger(__name__)


@dataclass
class HerdSnapshot:
    subjects: List[Subject] = field(default_factory=list)
    lactations: List[LactationEvent] = field(default_factory=list)
    measurements: List[MeasurementEvent] = field(default_factory=list)


def expected_yield(del_days: int) -> float:
    # rough goat lactation curve: peak around DEL 50, slow decline afterwards
    if del_days <= 50:
        return 1.6 + del_days * 0.028
    return max(0.6, 3.0 - (del_days - 50) * 0.0075)


def add_weighing(snapshot: HerdSnapshot, subject_id: str, day: date, kg: float, category: MeasurementCategory):
    snapshot.measurements.append(MeasurementEvent(
        subject_id=subject_id,
        date=day,
        kg=round(max(0.0, kg), 2),
        category=category,
    ))


def seed_scenarios(snapshot: HerdSnapshot, today: date, weeks: int = 12):
    # Fixed demo subjects (IDs you can reference during presentations)
    demo = [
        # A) Healthy producer mid-lactation
        dict(subject_id="DEMO-A-HEALTHY", del_today=90, pregnant=False, status=LactationStatus.ACTIVE, factor=1.10),
        # B) Late lactation, inside the dry-off window
        dict(subject_id="DEMO-B-LATE", del_today=280, pregnant=True, status=LactationStatus.ACTIVE, factor=1.0),
        # C) Pregnant and falling every weighing
        dict(subject_id="DEMO-C-DECLINE", del_today=200, pregnant=True, status=LactationStatus.ACTIVE, factor=None),
        # D) Drying-off already started
        dict(subject_id="DEMO-D-DRYING", del_today=310, pregnant=True, status=LactationStatus.DRYING, factor=0.7),
        # E) Underperformer
        dict(subject_id="DEMO-E-LOW", del_today=120, pregnant=False, status=LactationStatus.ACTIVE, factor=0.65),
    ]

    for d in demo:
        sid = d["subject_id"]
        start = today - timedelta(days=d["del_today"])
        snapshot.subjects.append(Subject(
            subject_id=sid,
            birth_date=today - relativedelta(years=random.randint(2, 5), months=random.randint(0, 11)),
            lifecycle_stage="adult",
            is_pregnant=d["pregnant"],
        ))
        snapshot.lactations.append(LactationEvent(subject_id=sid, start_date=start, status=d["status"]))

        for w in range(weeks):
            day = today - timedelta(weeks=weeks - 1 - w)
            del_days = (day - start).days
            if del_days < 0:
                continue
            if d["factor"] is None:
                kg = 3.2 - w * 0.18
            else:
                kg = expected_yield(del_days) * d["factor"] + random.gauss(0, 0.08)
            add_weighing(snapshot, sid, day, kg, MeasurementCategory.MILK_YIELD)


def seed_random_herd(snapshot: HerdSnapshot, today: date, n_adults: int = 30, n_kids: int = 12, weeks: int = 12):
    for i in range(n_adults):
        sid = f"GOAT-{2000 + i}"
        start = today - timedelta(days=random.randint(10, 320))
        snapshot.subjects.append(Subject(
            subject_id=sid,
            birth_date=today - relativedelta(years=random.randint(2, 7), months=random.randint(0, 11)),
            lifecycle_stage="adult",
            is_pregnant=random.random() < 0.3,
            is_reference=random.random() < 0.05,
        ))
        snapshot.lactations.append(LactationEvent(subject_id=sid, start_date=start))

        underperformer = random.random() < 0.15
        for w in range(weeks):
            day = today - timedelta(weeks=weeks - 1 - w)
            del_days = (day - start).days
            if del_days < 0:
                continue
            kg = expected_yield(del_days) + random.gauss(0, 0.25)
            if underperformer:
                kg *= random.uniform(0.6, 0.8)
            add_weighing(snapshot, sid, day, kg, MeasurementCategory.MILK_YIELD)

    for i in range(n_kids):
        sid = f"KID-{3000 + i}"
        sex = random.choice([Sex.FEMALE, Sex.MALE])
        born = today - timedelta(days=random.randint(20, 300))
        birth_weight = round(random.uniform(2.8, 4.2), 2)
        snapshot.subjects.append(Subject(
            subject_id=sid,
            sex=sex,
            birth_date=born,
            birth_weight=birth_weight,
            lifecycle_stage="kid",
        ))
        gain = random.uniform(0.08, 0.16)
        day = born + timedelta(days=30)
        while day <= today:
            age = (day - born).days
            kg = birth_weight + gain * age + random.gauss(0, 0.4)
            add_weighing(snapshot, sid, day, kg, MeasurementCategory.BODY_WEIGHT)
            day += timedelta(days=30)


def build_demo_herd(today: Optional[date] = None, seed: int = 42) -> HerdSnapshot:
    random.seed(seed)
    today = today or date.today()
    snapshot = HerdSnapshot()
    seed_scenarios(snapshot, today)
    seed_random_herd(snapshot, today)
    return snapshot


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    today = date.today()
    herd = build_demo_herd(today)

    milk = [m for m in herd.measurements if m.category == MeasurementCategory.MILK_YIELD]
    weights = [m for m in herd.measurements if m.category == MeasurementCategory.BODY_WEIGHT]
    subjects = {s.subject_id: s for s in herd.subjects}
    histories = events_by_subject(milk)

    batches = cohort_batches(milk)
    latest_day = max(batches)
    result = classify_cohort(batches[latest_day], herd.lactations, histories, weighted=True, subjects=subjects)
    logger.info(
        "Cohort %s: mean=%.2f kg sigma=%.2f weighted mean=%.2f distribution=%s",
        latest_day.isoformat(), result.mean, result.std_dev, result.weighted_mean,
        {c.value: n for c, n in result.distribution},
    )

    for bucket in rollup_history(milk)[:3]:
        logger.info(
            "Period %s: avg=%.2f kg subjects=%d entering=%d exiting=%d",
            bucket.period_key, bucket.average_kg, bucket.subject_count,
            len(bucket.entering_subject_ids), len(bucket.exiting_subject_ids),
        )

    dry = drying_off_candidates(herd.subjects, herd.lactations, milk, today)
    logger.info("Drying-off candidates: %s", ", ".join(sorted(dry.subject_ids)) or "(none)")

    weaning = weaning_candidates(herd.subjects, weights, today)
    logger.info("Weaning candidates: %s", ", ".join(c.subject_id for c in weaning) or "(none)")

    for s in herd.subjects:
        if s.lifecycle_stage != "kid":
            continue
        profile = growth_profile(s, weights, today)
        logger.info(
            "%s age=%dd weight=%s score=%.1f band=%s",
            s.subject_id, profile.age_days, profile.current_weight, profile.score, profile.band.value,
        )


if __name__ == "__main__":
    main()
