"""
Demo herd smoke tests
"""

from datetime import date

from data.seed import build_demo_herd

from herd_analytics import (
    MeasurementCategory,
    classify_cohort,
    drying_off_candidates,
    growth_profile,
    rollup_history,
)
from herd_analytics.services.classification import cohort_batches

TODAY = date(2024, 6, 1)


class TestDemoHerd:
    def test_reproducible(self):
        assert build_demo_herd(TODAY) == build_demo_herd(TODAY)

    def test_demo_drying_candidates(self):
        herd = build_demo_herd(TODAY)
        milk = [m for m in herd.measurements if m.category == MeasurementCategory.MILK_YIELD]
        dry = drying_off_candidates(herd.subjects, herd.lactations, milk, TODAY)
        assert {"DEMO-B-LATE", "DEMO-C-DECLINE", "DEMO-D-DRYING"} <= dry.subject_ids
        assert "DEMO-A-HEALTHY" not in dry

    def test_engines_run_over_demo_herd(self):
        herd = build_demo_herd(TODAY)
        milk = [m for m in herd.measurements if m.category == MeasurementCategory.MILK_YIELD]
        batches = cohort_batches(milk)
        result = classify_cohort(batches[max(batches)], herd.lactations, weighted=True)
        assert sum(n for _, n in result.distribution) == len(result.classified)

        buckets = rollup_history(milk)
        assert sum(b.event_count for b in buckets) == len(milk)

        kids = [s for s in herd.subjects if s.lifecycle_stage == "kid"]
        weights = [m for m in herd.measurements if m.category == MeasurementCategory.BODY_WEIGHT]
        for kid in kids:
            profile = growth_profile(kid, weights, TODAY)
            assert 0.0 <= profile.score <= 10.0
