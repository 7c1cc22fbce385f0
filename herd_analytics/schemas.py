from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Type, TypeVar

from dateutil.parser import isoparse
from pydantic import BaseModel, ConfigDict, Field, field_validator

MISSING_DATE_MARKERS = {"", "n/a", "na", "none", "null"}


def parse_day(value: Any) -> Optional[date]:
    """Lenient day parsing: missing markers and garbage become None instead of raising."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or value.strip().lower() in MISSING_DATE_MARKERS:
        return None
    try:
        return isoparse(value.strip()).date()
    except (ValueError, OverflowError, TypeError):
        return None


class Sex(str, Enum):
    FEMALE = "female"
    MALE = "male"


class MeasurementCategory(str, Enum):
    MILK_YIELD = "milk-yield"
    BODY_WEIGHT = "body-weight"


class LactationStatus(str, Enum):
    ACTIVE = "active"
    DRYING = "drying"
    DRY = "dry"
    CLOSED = "closed"


class Subject(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject_id: str = Field(..., min_length=1)
    sex: Sex = Sex.FEMALE
    birth_date: Optional[date] = None
    birth_weight: Optional[float] = Field(default=None, gt=0)
    lifecycle_stage: Optional[str] = None
    is_reference: bool = False  # excluded from production classification
    is_pregnant: bool = False
    weaning_date: Optional[date] = None
    location: Optional[str] = None

    @field_validator("birth_date", "weaning_date", mode="before")
    @classmethod
    def _lenient_date(cls, v: Any) -> Optional[date]:
        return parse_day(v)

    @field_validator("birth_weight", mode="before")
    @classmethod
    def _unknown_weight(cls, v: Any) -> Any:
        # records store 0 or blank for "not weighed at birth"
        if v is None or v == "":
            return None
        try:
            if float(v) <= 0:
                return None
        except (TypeError, ValueError):
            return v
        return v


class MeasurementEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject_id: str = Field(..., min_length=1)
    date: date
    kg: float = Field(..., ge=0)
    category: MeasurementCategory = MeasurementCategory.MILK_YIELD
    event_id: Optional[str] = None


class LactationEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject_id: str = Field(..., min_length=1)
    start_date: date
    status: LactationStatus = LactationStatus.ACTIVE
    lactation_id: Optional[str] = None


M = TypeVar("M", bound=BaseModel)


def parse_records(model: Type[M], rows: Iterable[Mapping[str, Any]]) -> List[M]:
    return [model.model_validate(dict(r)) for r in rows]


def collapse_same_day(events: Iterable[MeasurementEvent]) -> List[MeasurementEvent]:
    """A same-day re-entry supersedes the earlier one (last in input order wins)."""
    latest: Dict[tuple, MeasurementEvent] = {}
    for e in events:
        key = (e.subject_id, e.date, e.category)
        latest.pop(key, None)
        latest[key] = e
    return list(latest.values())


def events_by_subject(
    events: Iterable[MeasurementEvent],
    category: Optional[MeasurementCategory] = None,
) -> Dict[str, List[MeasurementEvent]]:
    grouped: Dict[str, List[MeasurementEvent]] = defaultdict(list)
    for e in events:
        if category is not None and e.category != category:
            continue
        grouped[e.subject_id].append(e)
    for history in grouped.values():
        history.sort(key=lambda e: e.date)
    return dict(grouped)
