"""
Record ingestion and configuration tests
"""

from datetime import date, datetime

import pytest
from conftest import body, milk
from pydantic import ValidationError

from herd_analytics import (
    AnalyticsConfig,
    LactationEvent,
    LactationStatus,
    MeasurementCategory,
    MeasurementEvent,
    Subject,
    collapse_same_day,
    events_by_subject,
    parse_records,
)


class TestSubject:
    @pytest.mark.parametrize("raw", ["", "N/A", "none", "not a date"])
    def test_lenient_birth_date(self, raw):
        assert Subject(subject_id="A", birth_date=raw).birth_date is None

    def test_datetime_birth_date(self):
        s = Subject(subject_id="A", birth_date=datetime(2023, 4, 2, 8, 30))
        assert s.birth_date == date(2023, 4, 2)

    @pytest.mark.parametrize("raw", [0, 0.0, "", None, -1])
    def test_unknown_birth_weight(self, raw):
        assert Subject(subject_id="A", birth_weight=raw).birth_weight is None

    def test_blank_id_rejected(self):
        with pytest.raises(ValidationError):
            Subject(subject_id="")

    def test_frozen(self):
        s = Subject(subject_id="A")
        with pytest.raises(ValidationError):
            s.is_pregnant = True


class TestMeasurementEvent:
    def test_negative_kg_rejected(self):
        with pytest.raises(ValidationError):
            MeasurementEvent(subject_id="A", date=date(2024, 1, 1), kg=-0.1)

    def test_defaults_to_milk(self):
        e = MeasurementEvent(subject_id="A", date="2024-01-01", kg=2.0)
        assert e.category == MeasurementCategory.MILK_YIELD
        assert e.date == date(2024, 1, 1)

    def test_hashable(self):
        assert len({milk("A", 2.0), milk("A", 2.0)}) == 1


class TestParseRecords:
    def test_rows(self):
        rows = [
            {"subject_id": "A", "start_date": "2024-01-10", "status": "drying"},
            {"subject_id": "B", "start_date": "2024-02-01"},
        ]
        lacts = parse_records(LactationEvent, rows)
        assert lacts[0].status == LactationStatus.DRYING
        assert lacts[1].status == LactationStatus.ACTIVE

    def test_bad_row_raises(self):
        with pytest.raises(ValidationError):
            parse_records(MeasurementEvent, [{"subject_id": "A", "date": "2024-01-01", "kg": "lots"}])


class TestEventHelpers:
    def test_collapse_same_day_last_wins(self):
        day = date(2024, 1, 1)
        events = [milk("A", 2.0, day), milk("A", 2.4, day), body("A", 40.0, day), milk("B", 1.0, day)]
        collapsed = collapse_same_day(events)
        assert len(collapsed) == 3
        assert [e.kg for e in collapsed if e.subject_id == "A" and e.category == MeasurementCategory.MILK_YIELD] == [2.4]

    def test_events_by_subject_sorted(self):
        events = [milk("A", 2.0, date(2024, 1, 8)), milk("A", 1.0, date(2024, 1, 1)), body("A", 40.0, date(2024, 1, 3))]
        grouped = events_by_subject(events, MeasurementCategory.MILK_YIELD)
        assert [e.kg for e in grouped["A"]] == [1.0, 2.0]
        assert len(events_by_subject(events)["A"]) == 3


class TestAnalyticsConfig:
    def test_defaults(self):
        cfg = AnalyticsConfig()
        assert cfg.trend_margin_kg == 0.15
        assert cfg.classification_band == 0.4
        assert cfg.dry_off_window == (265, 295)

    def test_window_offsets_validated(self):
        with pytest.raises(ValidationError):
            AnalyticsConfig(dry_off_window_start_offset=5, dry_off_window_end_offset=35)

    def test_band_ratios_validated(self):
        with pytest.raises(ValidationError):
            AnalyticsConfig(growth_alert_ratio=0.99, growth_on_target_ratio=0.95)

    def test_from_env(self):
        env = {
            "HERD_TREND_MARGIN_KG": "0.2",
            "HERD_TARGET_LACTATION_DAYS": "280",
            "HERD_MIN_STD_DEV": " ",
            "UNRELATED": "x",
        }
        cfg = AnalyticsConfig.from_env(env)
        assert cfg.trend_margin_kg == 0.2
        assert cfg.dry_off_window == (245, 275)
        assert cfg.min_std_dev == 0.1

    def test_from_env_rejects_garbage(self):
        with pytest.raises(ValidationError):
            AnalyticsConfig.from_env({"HERD_DECLINE_RUN_LENGTH": "many"})
