"""Herd performance analytics: pure transforms over in-memory herd records."""

from .config import (
    DEFAULT_ANALYTICS_CONFIG,
    DEFAULT_GROWTH_TARGETS,
    AnalyticsConfig,
    GrowthTargetConfig,
    Milestone,
    MilestoneTarget,
)
from .schemas import (
    LactationEvent,
    LactationStatus,
    MeasurementCategory,
    MeasurementEvent,
    Sex,
    Subject,
    collapse_same_day,
    events_by_subject,
    parse_records,
)
from .services.candidates import CandidateSet, drying_off_candidates, weaning_candidates
from .services.classification import (
    Classification,
    CohortClassification,
    classify_cohort,
    classify_daily_gains,
)
from .services.growth import (
    GrowthProfile,
    MilestoneStatus,
    age_in_days,
    average_daily_gain,
    growth_profile,
    growth_score,
    interpolated_weight_at_age,
    milestone_status,
    target_weight_at_age,
)
from .services.rollup import PeriodBucket, rollup_history
from .services.trend import Trend, TrendResult, detect_trend, is_long_trend

__version__ = "0.5.0"
