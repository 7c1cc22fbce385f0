from datetime import date, timedelta

import pytest

from herd_analytics import (
    LactationEvent,
    LactationStatus,
    MeasurementCategory,
    MeasurementEvent,
)

DAY = date(2024, 6, 1)


def milk(subject_id, kg, day=DAY):
    return MeasurementEvent(subject_id=subject_id, date=day, kg=kg, category=MeasurementCategory.MILK_YIELD)


def body(subject_id, kg, day):
    return MeasurementEvent(subject_id=subject_id, date=day, kg=kg, category=MeasurementCategory.BODY_WEIGHT)


def lactation(subject_id, del_on_day, day=DAY, status=LactationStatus.ACTIVE):
    return LactationEvent(subject_id=subject_id, start_date=day - timedelta(days=del_on_day), status=status)


@pytest.fixture
def day():
    return DAY
