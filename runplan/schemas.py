from pydantic import BaseModel, Field
from datetime import date
from typing import Optional, List, Dict, Any, Tuple

from runplan.services.plan_framework.constants import ExperienceLevel
from runplan.services.plan_framework.models import AthleteProfile, GoalRequest, PlanRequest


class AthleteProfileInput(BaseModel):
    """Athlete statistics computed elsewhere and passed through as-is."""
    baseline_weekly_km: float = Field(0.0, ge=0, le=400, description="Recent average weekly volume")
    longest_recent_run_km: float = Field(0.0, ge=0, le=250, description="Longest run in the last weeks")
    avg_runs_per_week: float = Field(0.0, ge=0, le=14)
    easy_pace_min_per_km: Optional[Tuple[float, float]] = Field(
        None, description="Easy pace range (fast, slow) in min/km"
    )
    estimated_vdot: Optional[float] = Field(None, ge=10, le=90)
    hr_zones: Optional[Dict[str, Tuple[int, int]]] = None
    max_hr: Optional[int] = Field(None, ge=100, le=240)
    resting_hr: Optional[int] = Field(None, ge=25, le=120)
    consistency: ExperienceLevel = ExperienceLevel.INTERMEDIATE
    weekly_km_history: List[float] = Field(default_factory=list, description="Oldest first, up to 12 weeks")

    def to_profile(self) -> AthleteProfile:
        return AthleteProfile(
            baseline_weekly_km=self.baseline_weekly_km,
            longest_recent_run_km=self.longest_recent_run_km,
            avg_runs_per_week=self.avg_runs_per_week,
            easy_pace_min_per_km=self.easy_pace_min_per_km,
            estimated_vdot=self.estimated_vdot,
            hr_zones=self.hr_zones,
            max_hr=self.max_hr,
            resting_hr=self.resting_hr,
            consistency=self.consistency,
            weekly_km_history=tuple(self.weekly_km_history[-12:]),
        )


class GoalInput(BaseModel):
    goal_type: str = Field(..., description="5k, 10k, half_marathon, marathon, 50k, 50_mile, 100k, 100_mile, general_fitness")
    race_date: Optional[date] = None
    target_time_seconds: Optional[int] = Field(None, ge=0)
    priority: Optional[str] = Field(None, description="primary or secondary")
    terrain: Optional[str] = Field(None, description="road, trail or mountain")

    def to_goal_request(self) -> GoalRequest:
        return GoalRequest(
            goal_type=self.goal_type,
            race_date=self.race_date,
            target_time_seconds=self.target_time_seconds,
            priority=self.priority,
            terrain=self.terrain,
        )


class SkeletonRequest(BaseModel):
    """Request for a plan skeleton."""
    goal_type: str = Field("general_fitness", description="Single-goal shorthand")
    race_date: Optional[date] = Field(None, description="Goal race date")
    target_time_seconds: Optional[int] = Field(None, ge=0)
    terrain: Optional[str] = Field(None, description="road, trail or mountain")
    goals: List[GoalInput] = Field(default_factory=list, description="One or two goals (overrides goal_type)")

    # Schedule
    preferred_days: List[str] = Field(default_factory=list, description="Preferred run days, e.g. ['tue', 'thu']")
    days_per_week: int = Field(4, ge=1, le=7, description="Running days per week")
    long_run_day: Optional[str] = None
    include_speedwork: bool = True
    include_long_runs: bool = True

    experience_level: str = ExperienceLevel.INTERMEDIATE.value
    units: str = "km"
    constraints: Optional[str] = Field(None, max_length=2000)

    profile: Optional[AthleteProfileInput] = None
    today: Optional[date] = Field(None, description="Reference date (defaults to today)")
    accept_warnings: bool = Field(False, description="Generate even when hard errors are found")

    def to_plan_request(self) -> PlanRequest:
        return PlanRequest(
            goal_type=self.goal_type,
            race_date=self.race_date,
            target_time_seconds=self.target_time_seconds,
            terrain=self.terrain,
            goals=[g.to_goal_request() for g in self.goals],
            preferred_days=list(self.preferred_days),
            days_per_week=self.days_per_week,
            long_run_day=self.long_run_day,
            include_speedwork=self.include_speedwork,
            include_long_runs=self.include_long_runs,
            experience_level=self.experience_level,
            units=self.units,
            constraints=self.constraints,
        )


class ValidateSkeletonRequest(BaseModel):
    """A (possibly hand-edited) skeleton to run through the guardrails."""
    skeleton: Dict[str, Any]
    profile: Optional[AthleteProfileInput] = None


class ConflictRequest(BaseModel):
    goals: List[GoalInput] = Field(..., min_length=2, max_length=2)
    today: Optional[date] = None
