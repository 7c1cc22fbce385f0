from __future__ import annotations

import os
from enum import Enum
from typing import Dict, List, Mapping, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from .schemas import Sex


class Milestone(str, Enum):
    BIRTH = "birth"
    WEANING = "weaning"
    D90 = "90d"
    D180 = "180d"
    D270 = "270d"
    FIRST_SERVICE = "first-service"


class MilestoneTarget(BaseModel):
    model_config = ConfigDict(frozen=True)

    age_days: float = Field(..., ge=0)
    target_kg: float = Field(..., ge=0)
    target_kg_male: Optional[float] = Field(default=None, ge=0)

    def target_for(self, sex: Sex) -> float:
        if sex == Sex.MALE and self.target_kg_male is not None:
            return self.target_kg_male
        return self.target_kg


class GrowthTargetConfig(BaseModel):
    """Milestone checkpoints of the ideal growth curve, in curve order."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    birth: MilestoneTarget
    weaning: MilestoneTarget
    d90: MilestoneTarget = Field(validation_alias=AliasChoices("d90", "90d"))
    d180: MilestoneTarget = Field(validation_alias=AliasChoices("d180", "180d"))
    d270: MilestoneTarget = Field(validation_alias=AliasChoices("d270", "270d"))
    first_service: MilestoneTarget = Field(
        validation_alias=AliasChoices("first_service", "first-service")
    )

    @model_validator(mode="after")
    def _ages_increase(self) -> "GrowthTargetConfig":
        ages = [t.age_days for _, t in self.milestones()]
        for prev, cur in zip(ages, ages[1:]):
            if cur <= prev:
                raise ValueError(f"milestone ages must strictly increase, got {ages}")
        return self

    def milestones(self) -> List[Tuple[Milestone, MilestoneTarget]]:
        return [
            (Milestone.BIRTH, self.birth),
            (Milestone.WEANING, self.weaning),
            (Milestone.D90, self.d90),
            (Milestone.D180, self.d180),
            (Milestone.D270, self.d270),
            (Milestone.FIRST_SERVICE, self.first_service),
        ]

    def get(self, milestone: Milestone) -> MilestoneTarget:
        return dict(self.milestones())[milestone]


DEFAULT_GROWTH_TARGETS = GrowthTargetConfig(
    birth=MilestoneTarget(age_days=0, target_kg=3.5),
    weaning=MilestoneTarget(age_days=60, target_kg=15.0),
    d90=MilestoneTarget(age_days=90, target_kg=20.0),
    d180=MilestoneTarget(age_days=180, target_kg=28.0),
    d270=MilestoneTarget(age_days=270, target_kg=34.0),
    first_service=MilestoneTarget(age_days=304.4, target_kg=38.0),
)


class AnalyticsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    # trend
    trend_margin_kg: float = Field(default=0.15, ge=0)

    # cohort classification
    classification_band: float = Field(default=0.4, gt=0)
    min_std_dev: float = Field(default=0.1, ge=0)
    daily_gain_min_std_dev: float = Field(default=0.005, ge=0)
    weighting_pivot_del: float = Field(default=50.0, gt=0)

    # growth
    milestone_close_tolerance: float = Field(default=0.10, gt=0, lt=1)
    growth_alert_ratio: float = Field(default=0.85, gt=0)
    growth_on_target_ratio: float = Field(default=0.95, gt=0)
    growth_superior_ratio: float = Field(default=1.05, gt=0)
    service_projection_horizon_days: int = Field(default=30, ge=0)

    # drying off
    target_lactation_days: int = Field(default=300, gt=0)
    dry_off_window_start_offset: int = Field(default=35, ge=0)
    dry_off_window_end_offset: int = Field(default=5, ge=0)
    decline_run_length: int = Field(default=4, ge=2)

    # weaning
    weaning_age_tolerance_days: int = Field(default=10, ge=0)
    weaning_weight_tolerance_kg: float = Field(default=0.2, ge=0)

    @model_validator(mode="after")
    def _check_ranges(self) -> "AnalyticsConfig":
        if self.dry_off_window_start_offset < self.dry_off_window_end_offset:
            raise ValueError("dry-off window start offset must be >= end offset")
        if not self.growth_alert_ratio <= self.growth_on_target_ratio <= self.growth_superior_ratio:
            raise ValueError("growth band ratios must be ordered alert <= on-target <= superior")
        return self

    @property
    def dry_off_window(self) -> Tuple[int, int]:
        return (
            self.target_lactation_days - self.dry_off_window_start_offset,
            self.target_lactation_days - self.dry_off_window_end_offset,
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AnalyticsConfig":
        """Build from HERD_<FIELD> variables, e.g. HERD_TREND_MARGIN_KG=0.2."""
        env = os.environ if environ is None else environ
        overrides: Dict[str, str] = {}
        for name in cls.model_fields:
            raw = env.get(f"HERD_{name.upper()}")
            if raw is not None and raw.strip() != "":
                overrides[name] = raw.strip()
        return cls.model_validate(overrides)


DEFAULT_ANALYTICS_CONFIG = AnalyticsConfig()
