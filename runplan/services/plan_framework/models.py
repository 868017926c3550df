"""
Plan Framework Models

Value types shared by the skeleton builder, the guardrail pass and the
multi-goal analyzer.

Finished skeletons are immutable (frozen dataclasses holding tuples).
Anything that needs to change a skeleton goes through a draft:

    draft = skeleton.to_draft()
    draft.weeks[0].days[2].distance_km = 8.0
    draft.weeks[0].resync()
    corrected = draft.freeze()      # skeleton is untouched

Single-field edits can use copy_with():

    day = day.copy_with(title="6 x 800m")
"""

from dataclasses import dataclass, field, fields, replace
from datetime import date
from typing import Dict, List, Optional, Tuple, Union, Any

from .constants import (
    GoalType,
    Priority,
    Terrain,
    Phase,
    WorkoutType,
    Intensity,
    Weekday,
    ExperienceLevel,
    ConflictType,
    Severity,
    BlendMode,
    CorrectionType,
    ULTRA_GOALS,
    SPEED_GOALS,
    ENDURANCE_GOALS,
    RACE_DISTANCE_KM,
    DEFAULT_BASELINE_KM,
    DEFAULT_EASY_PACE_MIN_PER_KM,
)


class _CopyWith:
    """copy-with-changes for frozen dataclasses."""

    def copy_with(self, **changes):
        return replace(self, **changes)


# ============ Inputs ============

@dataclass(frozen=True)
class AthleteProfile(_CopyWith):
    """
    Read-only athlete statistics supplied by the profile collaborator.

    Never mutated by the plan framework.
    """
    baseline_weekly_km: float = 0.0
    longest_recent_run_km: float = 0.0
    avg_runs_per_week: float = 0.0
    easy_pace_min_per_km: Optional[Tuple[float, float]] = None  # (fast, slow)
    estimated_vdot: Optional[float] = None
    hr_zones: Optional[Dict[str, Tuple[int, int]]] = None
    max_hr: Optional[int] = None
    resting_hr: Optional[int] = None
    consistency: ExperienceLevel = ExperienceLevel.INTERMEDIATE
    weekly_km_history: Tuple[float, ...] = ()  # last 12 weeks, oldest first

    @property
    def effective_baseline_km(self) -> float:
        if self.baseline_weekly_km and self.baseline_weekly_km > 0:
            return float(self.baseline_weekly_km)
        return DEFAULT_BASELINE_KM

    @property
    def easy_pace(self) -> float:
        """Midpoint of the easy pace range (min/km)."""
        if self.easy_pace_min_per_km:
            fast, slow = self.easy_pace_min_per_km
            if fast > 0 and slow > 0:
                return (fast + slow) / 2
        return DEFAULT_EASY_PACE_MIN_PER_KM

    @property
    def long_run_anchor_km(self) -> float:
        """Where the long-run curve starts."""
        if self.longest_recent_run_km and self.longest_recent_run_km > 0:
            return float(self.longest_recent_run_km)
        return max(8.0, 0.4 * self.effective_baseline_km)


@dataclass(frozen=True)
class GoalConfig(_CopyWith):
    goal_type: GoalType
    race_date: Optional[date] = None
    target_time_seconds: Optional[int] = None
    priority: Priority = Priority.PRIMARY
    terrain: Terrain = Terrain.ROAD

    @property
    def race_distance_km(self) -> float:
        return RACE_DISTANCE_KM[self.goal_type]

    @property
    def is_ultra(self) -> bool:
        return self.goal_type in ULTRA_GOALS

    @property
    def is_speed_goal(self) -> bool:
        return self.goal_type in SPEED_GOALS

    @property
    def is_endurance_goal(self) -> bool:
        return self.goal_type in ENDURANCE_GOALS

    @property
    def has_race(self) -> bool:
        return self.race_date is not None and self.goal_type != GoalType.GENERAL_FITNESS


@dataclass(frozen=True)
class SingleGoal:
    goal: GoalConfig

    @property
    def goals(self) -> Tuple[GoalConfig, ...]:
        return (self.goal,)

    @property
    def primary(self) -> GoalConfig:
        return self.goal

    @property
    def anchor(self) -> GoalConfig:
        return self.goal


@dataclass(frozen=True)
class DualGoal:
    primary: GoalConfig
    secondary: GoalConfig

    @property
    def goals(self) -> Tuple[GoalConfig, ...]:
        return (self.primary, self.secondary)

    @property
    def anchor(self) -> GoalConfig:
        """The goal whose race closes the plan (latest date, else primary)."""
        p, s = self.primary.race_date, self.secondary.race_date
        if p and s and s > p:
            return self.secondary
        if s and not p:
            return self.secondary
        return self.primary

    @property
    def other(self) -> GoalConfig:
        return self.secondary if self.anchor is self.primary else self.primary

    @property
    def by_date(self) -> Tuple[GoalConfig, GoalConfig]:
        """(earlier race, later race). Only meaningful when both have dates."""
        if self.secondary.race_date and self.primary.race_date \
                and self.secondary.race_date < self.primary.race_date:
            return self.secondary, self.primary
        return self.primary, self.secondary


GoalSelection = Union[SingleGoal, DualGoal]


@dataclass
class GoalRequest:
    """One goal as it arrives from the request layer (loosely typed)."""
    goal_type: str
    race_date: Optional[date] = None
    target_time_seconds: Optional[int] = None
    priority: Optional[str] = None
    terrain: Optional[str] = None


@dataclass
class PlanRequest:
    """Input contract from the request-handling layer."""
    goal_type: str = GoalType.GENERAL_FITNESS.value
    race_date: Optional[date] = None
    target_time_seconds: Optional[int] = None
    terrain: Optional[str] = None
    goals: List[GoalRequest] = field(default_factory=list)
    preferred_days: List[str] = field(default_factory=list)
    days_per_week: int = 4
    long_run_day: Optional[str] = None
    include_speedwork: bool = True
    include_long_runs: bool = True
    experience_level: str = ExperienceLevel.INTERMEDIATE.value
    units: str = "km"
    constraints: Optional[str] = None


# ============ Skeleton ============

@dataclass(frozen=True)
class SkeletonDay(_CopyWith):
    date: date
    weekday: Weekday
    workout_type: WorkoutType
    distance_km: Optional[float]
    intensity: Intensity
    # Placeholders filled by the enrichment collaborator
    title: Optional[str] = None
    description: Optional[str] = None
    target_pace: Optional[str] = None
    target_hr_zone: Optional[str] = None
    structure: Optional[str] = None
    # Flags
    is_back_to_back: bool = False
    is_fueling_practice: bool = False
    goal_contribution: Optional[Dict[Priority, int]] = None

    @property
    def km(self) -> float:
        return self.distance_km or 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "weekday": self.weekday.value,
            "workout_type": self.workout_type.value,
            "distance_km": self.distance_km,
            "intensity": self.intensity.value,
            "title": self.title,
            "description": self.description,
            "target_pace": self.target_pace,
            "target_hr_zone": self.target_hr_zone,
            "structure": self.structure,
            "is_back_to_back": self.is_back_to_back,
            "is_fueling_practice": self.is_fueling_practice,
            "goal_contribution": (
                {k.value: v for k, v in self.goal_contribution.items()}
                if self.goal_contribution else None
            ),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SkeletonDay":
        contribution = data.get("goal_contribution")
        day = data["date"]
        return cls(
            date=day if isinstance(day, date) else date.fromisoformat(day),
            weekday=Weekday(data["weekday"]),
            workout_type=WorkoutType(data["workout_type"]),
            distance_km=data.get("distance_km"),
            intensity=Intensity(data.get("intensity", Intensity.LOW.value)),
            title=data.get("title"),
            description=data.get("description"),
            target_pace=data.get("target_pace"),
            target_hr_zone=data.get("target_hr_zone"),
            structure=data.get("structure"),
            is_back_to_back=bool(data.get("is_back_to_back", False)),
            is_fueling_practice=bool(data.get("is_fueling_practice", False)),
            goal_contribution=(
                {Priority(k): int(v) for k, v in contribution.items()}
                if contribution else None
            ),
        )


@dataclass(frozen=True)
class SkeletonWeek(_CopyWith):
    week_number: int
    start_date: date
    end_date: date
    phase: Phase
    quality_level: int
    planned_distance_km: float
    days: Tuple[SkeletonDay, ...]
    vertical_gain_m: Optional[int] = None
    goal_split: Optional[Dict[Priority, int]] = None
    rationale: str = ""

    @property
    def long_run_day(self) -> Optional[SkeletonDay]:
        for day in self.days:
            if day.workout_type == WorkoutType.LONG_RUN:
                return day
        return None

    @property
    def race_days(self) -> List[SkeletonDay]:
        return [d for d in self.days if d.workout_type == WorkoutType.RACE]

    @property
    def training_distance_km(self) -> float:
        """Volume excluding race days."""
        return round(sum(d.km for d in self.days if d.workout_type != WorkoutType.RACE), 1)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week_number": self.week_number,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "phase": self.phase.value,
            "quality_level": self.quality_level,
            "planned_distance_km": self.planned_distance_km,
            "vertical_gain_m": self.vertical_gain_m,
            "goal_split": (
                {k.value: v for k, v in self.goal_split.items()}
                if self.goal_split else None
            ),
            "rationale": self.rationale,
            "days": [d.to_dict() for d in self.days],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SkeletonWeek":
        split = data.get("goal_split")
        start, end = data["start_date"], data["end_date"]
        return cls(
            week_number=int(data["week_number"]),
            start_date=start if isinstance(start, date) else date.fromisoformat(start),
            end_date=end if isinstance(end, date) else date.fromisoformat(end),
            phase=Phase(data["phase"]),
            quality_level=int(data.get("quality_level", 1)),
            planned_distance_km=float(data.get("planned_distance_km") or 0.0),
            days=tuple(SkeletonDay.from_dict(d) for d in data.get("days", [])),
            vertical_gain_m=data.get("vertical_gain_m"),
            goal_split={Priority(k): int(v) for k, v in split.items()} if split else None,
            rationale=data.get("rationale", ""),
        )


@dataclass(frozen=True)
class PlanSettings(_CopyWith):
    goal_type: GoalType
    start_date: date
    total_weeks: int
    days_per_week: int
    preferred_days: Tuple[Weekday, ...]
    long_run_day: Optional[Weekday]
    race_date: Optional[date] = None
    terrain: Terrain = Terrain.ROAD
    include_speedwork: bool = True
    include_long_runs: bool = True
    secondary_goal_type: Optional[GoalType] = None
    secondary_race_date: Optional[date] = None
    blend_mode: BlendMode = BlendMode.SINGLE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "goal_type": self.goal_type.value,
            "start_date": self.start_date.isoformat(),
            "total_weeks": self.total_weeks,
            "days_per_week": self.days_per_week,
            "preferred_days": [d.value for d in self.preferred_days],
            "long_run_day": self.long_run_day.value if self.long_run_day else None,
            "race_date": self.race_date.isoformat() if self.race_date else None,
            "terrain": self.terrain.value,
            "include_speedwork": self.include_speedwork,
            "include_long_runs": self.include_long_runs,
            "secondary_goal_type": (
                self.secondary_goal_type.value if self.secondary_goal_type else None
            ),
            "secondary_race_date": (
                self.secondary_race_date.isoformat() if self.secondary_race_date else None
            ),
            "blend_mode": self.blend_mode.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanSettings":
        def _date(value):
            if value is None or isinstance(value, date):
                return value
            return date.fromisoformat(value)

        secondary = data.get("secondary_goal_type")
        long_run_day = data.get("long_run_day")
        return cls(
            goal_type=GoalType(data["goal_type"]),
            start_date=_date(data["start_date"]),
            total_weeks=int(data["total_weeks"]),
            days_per_week=int(data.get("days_per_week", 4)),
            preferred_days=tuple(Weekday(d) for d in data.get("preferred_days", [])),
            long_run_day=Weekday(long_run_day) if long_run_day else None,
            race_date=_date(data.get("race_date")),
            terrain=Terrain(data.get("terrain", Terrain.ROAD.value)),
            include_speedwork=bool(data.get("include_speedwork", True)),
            include_long_runs=bool(data.get("include_long_runs", True)),
            secondary_goal_type=GoalType(secondary) if secondary else None,
            secondary_race_date=_date(data.get("secondary_race_date")),
            blend_mode=BlendMode(data.get("blend_mode", BlendMode.SINGLE.value)),
        )


@dataclass(frozen=True)
class PlanSkeleton(_CopyWith):
    settings: PlanSettings
    weeks: Tuple[SkeletonWeek, ...]

    @property
    def total_weeks(self) -> int:
        return len(self.weeks)

    @property
    def weekly_volumes(self) -> List[float]:
        return [w.planned_distance_km for w in self.weeks]

    @property
    def long_runs(self) -> List[Optional[float]]:
        return [w.long_run_day.km if w.long_run_day else None for w in self.weeks]

    def to_draft(self) -> "PlanDraft":
        return PlanDraft.from_skeleton(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "settings": self.settings.to_dict(),
            "weeks": [w.to_dict() for w in self.weeks],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanSkeleton":
        return cls(
            settings=PlanSettings.from_dict(data["settings"]),
            weeks=tuple(SkeletonWeek.from_dict(w) for w in data.get("weeks", [])),
        )


# ============ Drafts (mutable builders) ============

@dataclass
class DayDraft:
    date: date
    weekday: Weekday
    workout_type: WorkoutType
    distance_km: Optional[float]
    intensity: Intensity
    title: Optional[str] = None
    description: Optional[str] = None
    target_pace: Optional[str] = None
    target_hr_zone: Optional[str] = None
    structure: Optional[str] = None
    is_back_to_back: bool = False
    is_fueling_practice: bool = False
    goal_contribution: Optional[Dict[Priority, int]] = None

    @property
    def km(self) -> float:
        return self.distance_km or 0.0

    @property
    def is_race(self) -> bool:
        return self.workout_type == WorkoutType.RACE

    @property
    def is_rest(self) -> bool:
        return self.workout_type == WorkoutType.REST

    @classmethod
    def from_day(cls, day: SkeletonDay) -> "DayDraft":
        values = {f.name: getattr(day, f.name) for f in fields(SkeletonDay)}
        if values["goal_contribution"] is not None:
            values["goal_contribution"] = dict(values["goal_contribution"])
        return cls(**values)

    def freeze(self) -> SkeletonDay:
        values = {f.name: getattr(self, f.name) for f in fields(SkeletonDay)}
        if values["goal_contribution"] is not None:
            values["goal_contribution"] = dict(values["goal_contribution"])
        return SkeletonDay(**values)


@dataclass
class WeekDraft:
    week_number: int
    start_date: date
    end_date: date
    phase: Phase
    quality_level: int
    planned_distance_km: float
    days: List[DayDraft]
    vertical_gain_m: Optional[int] = None
    goal_split: Optional[Dict[Priority, int]] = None
    rationale: str = ""

    @property
    def long_run(self) -> Optional[DayDraft]:
        for day in self.days:
            if day.workout_type == WorkoutType.LONG_RUN:
                return day
        return None

    @property
    def races(self) -> List[DayDraft]:
        return [d for d in self.days if d.is_race]

    @property
    def anchor_km(self) -> Optional[float]:
        """Distance of the long run or race day, whichever is longer."""
        candidates = [d.km for d in self.days
                      if d.workout_type in (WorkoutType.LONG_RUN, WorkoutType.RACE)]
        return max(candidates) if candidates else None

    @property
    def training_km(self) -> float:
        return sum(d.km for d in self.days if not d.is_race)

    @property
    def is_recovery_or_taper(self) -> bool:
        return self.phase in (Phase.RECOVERY, Phase.TAPER)

    def resync(self) -> float:
        """Make planned distance the exact sum of the days."""
        self.planned_distance_km = round(sum(d.km for d in self.days), 1)
        return self.planned_distance_km

    @classmethod
    def from_week(cls, week: SkeletonWeek) -> "WeekDraft":
        return cls(
            week_number=week.week_number,
            start_date=week.start_date,
            end_date=week.end_date,
            phase=week.phase,
            quality_level=week.quality_level,
            planned_distance_km=week.planned_distance_km,
            days=[DayDraft.from_day(d) for d in week.days],
            vertical_gain_m=week.vertical_gain_m,
            goal_split=dict(week.goal_split) if week.goal_split else None,
            rationale=week.rationale,
        )

    def freeze(self) -> SkeletonWeek:
        return SkeletonWeek(
            week_number=self.week_number,
            start_date=self.start_date,
            end_date=self.end_date,
            phase=self.phase,
            quality_level=self.quality_level,
            planned_distance_km=self.planned_distance_km,
            days=tuple(d.freeze() for d in self.days),
            vertical_gain_m=self.vertical_gain_m,
            goal_split=dict(self.goal_split) if self.goal_split else None,
            rationale=self.rationale,
        )


@dataclass
class PlanDraft:
    settings: PlanSettings
    weeks: List[WeekDraft]

    @classmethod
    def from_skeleton(cls, skeleton: PlanSkeleton) -> "PlanDraft":
        return cls(
            settings=skeleton.settings,
            weeks=[WeekDraft.from_week(w) for w in skeleton.weeks],
        )

    def freeze(self) -> PlanSkeleton:
        return PlanSkeleton(
            settings=self.settings,
            weeks=tuple(w.freeze() for w in self.weeks),
        )


# ============ Audit / advisory records ============

@dataclass(frozen=True)
class ConflictWarning:
    type: ConflictType
    severity: Severity
    message: str
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class CorrectionAction:
    type: CorrectionType
    week_number: int
    original_value: Any
    corrected_value: Any
    reason: str
    day: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        def _plain(value):
            return value.value if hasattr(value, "value") else value

        return {
            "type": self.type.value,
            "week_number": self.week_number,
            "day": self.day.isoformat() if self.day else None,
            "original_value": _plain(self.original_value),
            "corrected_value": _plain(self.corrected_value),
            "reason": self.reason,
        }


@dataclass
class ValidationResult:
    """Outcome of a guardrail pass."""
    corrected: PlanSkeleton
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    corrections: List[CorrectionAction] = field(default_factory=list)
    sweeps: int = 1

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        lines = [
            f"{len(self.corrections)} corrections, "
            f"{len(self.warnings)} warnings, {len(self.errors)} errors"
        ]
        for c in self.corrections:
            lines.append(f"  [{c.type.value}] week {c.week_number}: {c.reason}")
        for w in self.warnings:
            lines.append(f"  WARNING: {w}")
        for e in self.errors:
            lines.append(f"  ERROR: {e}")
        return "\n".join(lines)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "passed": self.passed,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "corrections": [c.to_dict() for c in self.corrections],
        }
