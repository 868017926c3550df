"""
Weekly Progression Curve Builder

Turns baseline volume, goal peak targets and plan length into two per-week
sequences: target weekly distance and target long-run distance.

Shape:
- Build weeks climb toward the peak. The step is re-planned every growth
  week over the growth weeks that remain, and is capped by the weekly growth
  ceiling.
- Every Nth build week is a recovery week at 80% of the current value. The
  final build week is never a recovery week.
- Taper weeks apply a goal-specific multiplicative factor sequence to the
  achieved peak.
- The long run starts from the athlete's longest recent run (at most the
  goal long run) and climbs toward a goal-specific fraction of race
  distance, within its own growth ceiling and a share of that week's volume.

Usage:
    builder = ProgressionBuilder()
    curves = builder.build_for_goal(goal, profile, total_weeks=16)
    curves.weekly_km      # [33.6, 37.6, 41.6, 33.2, ...]
    curves.long_run_km    # [16.1, 18.5, 20.9, 16.7, ...]
"""

import math
import logging
from dataclasses import dataclass
from typing import List, Optional

from .constants import (
    GoalType,
    TAPER_WEEKS,
    TAPER_FACTORS,
    PEAK_WEEKLY_KM,
    PEAK_BASELINE_MULTIPLIER,
    LONG_RUN_RACE_FRACTION,
    GENERAL_FITNESS_LONG_RUN_KM,
    ULTRA_LONG_RUN_HOURS,
    RACE_DISTANCE_KM,
    DEFAULT_EASY_PACE_MIN_PER_KM,
)
from .config import SkeletonConfig
from .models import AthleteProfile, GoalConfig

logger = logging.getLogger(__name__)


def round_down_km(value: float) -> float:
    """Round DOWN to 0.1 km so ceilings are never tripped by rounding."""
    return round(math.floor(value * 10 + 1e-9) / 10.0, 1)


def round_up_km(value: float) -> float:
    return round(math.ceil(value * 10 - 1e-9) / 10.0, 1)


def peak_weekly_target(goal_type: GoalType, baseline_km: float) -> float:
    """Goal constant, floored at 1.4x baseline so everyone still grows."""
    return round_down_km(max(PEAK_WEEKLY_KM[goal_type], baseline_km * PEAK_BASELINE_MULTIPLIER))


def peak_long_run_target(
    goal_type: GoalType,
    easy_pace: float = DEFAULT_EASY_PACE_MIN_PER_KM,
) -> float:
    """
    Peak long run for a goal.

    A fraction of race distance, rounded UP so race-percentage checks hold.
    Ultras are additionally bounded by time on feet at easy pace.
    """
    if goal_type == GoalType.GENERAL_FITNESS:
        return GENERAL_FITNESS_LONG_RUN_KM

    target = RACE_DISTANCE_KM[goal_type] * LONG_RUN_RACE_FRACTION[goal_type]
    hours = ULTRA_LONG_RUN_HOURS.get(goal_type)
    if hours:
        pace = easy_pace if easy_pace and easy_pace > 0 else DEFAULT_EASY_PACE_MIN_PER_KM
        duration_cap = hours * 60 / pace
        if duration_cap < target:
            return round_down_km(duration_cap)
    return round_up_km(target)


def effective_taper_weeks(goal_type: GoalType, total_weeks: int) -> int:
    """Goal taper length, leaving at least one build week."""
    return max(0, min(TAPER_WEEKS[goal_type], total_weeks - 1))


def taper_sequence(goal_type: GoalType, taper_weeks: int) -> List[float]:
    """
    Factors for the trailing taper weeks.

    A shortened taper keeps the final (steepest) factors so race week
    always sheds the most.
    """
    factors = TAPER_FACTORS[goal_type]
    if taper_weeks <= 0 or not factors:
        return []
    if taper_weeks >= len(factors):
        return list(factors)
    return list(factors[-taper_weeks:])


def recovery_week_flags(build_weeks: int, frequency: int) -> List[bool]:
    """
    Recovery flags for build weeks 1..build_weeks.

    Every Nth build week recovers; if the cadence lands on the final build
    week (the peak) the recovery moves one week earlier.
    """
    flags = [False] * build_weeks
    since = 0
    for i in range(build_weeks):
        since += 1
        if since >= frequency:
            flags[i] = True
            since = 0
    if build_weeks >= 2 and flags[-1]:
        flags[-1] = False
        flags[-2] = True
    return flags


@dataclass
class ProgressionCurves:
    weekly_km: List[float]
    long_run_km: List[float]
    build_weeks: int
    taper_weeks: int
    recovery_weeks: List[int]       # 1-based week numbers
    peak_weekly_km: float           # achieved in the final build week
    peak_long_run_km: float

    @property
    def total_weeks(self) -> int:
        return len(self.weekly_km)

    def is_recovery(self, week_number: int) -> bool:
        return week_number in self.recovery_weeks

    def is_taper(self, week_number: int) -> bool:
        return week_number > self.build_weeks


class ProgressionBuilder:
    """Builds weekly and long-run target curves."""

    def __init__(self, config: Optional[SkeletonConfig] = None):
        self.config = config or SkeletonConfig.from_rules()

    def build_for_goal(
        self,
        goal: GoalConfig,
        profile: AthleteProfile,
        total_weeks: int,
    ) -> ProgressionCurves:
        baseline = profile.effective_baseline_km
        taper_weeks = effective_taper_weeks(goal.goal_type, total_weeks)
        return self.build(
            baseline_km=baseline,
            peak_weekly_km=peak_weekly_target(goal.goal_type, baseline),
            peak_long_run_km=peak_long_run_target(goal.goal_type, profile.easy_pace),
            build_weeks=total_weeks - taper_weeks,
            taper_factors=taper_sequence(goal.goal_type, taper_weeks),
            long_run_anchor_km=profile.long_run_anchor_km,
            long_run_share_cap=self.config.share_cap(goal.goal_type),
        )

    def build(
        self,
        baseline_km: float,
        peak_weekly_km: float,
        peak_long_run_km: float,
        build_weeks: int,
        taper_factors: List[float],
        long_run_anchor_km: float,
        long_run_share_cap: Optional[float] = None,
    ) -> ProgressionCurves:
        """
        Build both curves.

        Args:
            baseline_km: Current weekly volume (week 0)
            peak_weekly_km: Volume to reach in the final build week
            peak_long_run_km: Long run to reach in the final build week
            build_weeks: Plan weeks minus taper weeks (>= 1)
            taper_factors: Fraction of achieved peak for each taper week
            long_run_anchor_km: Athlete's longest recent run
            long_run_share_cap: Long run ceiling as share of weekly volume
        """
        build_weeks = max(1, int(build_weeks))
        baseline_km = max(1.0, float(baseline_km))
        flags = recovery_week_flags(build_weeks, self.config.recovery_week_frequency)

        weekly = self._weekly_curve(baseline_km, peak_weekly_km, flags)
        long_runs = self._long_run_curve(
            long_run_anchor_km, peak_long_run_km, flags, weekly, long_run_share_cap
        )

        achieved_peak = weekly[-1]
        achieved_long = long_runs[-1]
        for factor in taper_factors:
            week_km = round_down_km(achieved_peak * factor)
            weekly.append(week_km)
            long_km = round_down_km(achieved_long * factor)
            if long_run_share_cap:
                long_km = min(long_km, round_down_km(week_km * long_run_share_cap))
            long_runs.append(long_km)

        if achieved_peak < peak_weekly_km:
            logger.debug(
                f"Weekly curve peaks at {achieved_peak} km, short of {peak_weekly_km} km "
                f"(growth ceiling over {build_weeks} build weeks)"
            )

        return ProgressionCurves(
            weekly_km=weekly,
            long_run_km=long_runs,
            build_weeks=build_weeks,
            taper_weeks=len(taper_factors),
            recovery_weeks=[i + 1 for i, flag in enumerate(flags) if flag],
            peak_weekly_km=achieved_peak,
            peak_long_run_km=achieved_long,
        )

    def _weekly_curve(self, baseline: float, peak: float, flags: List[bool]) -> List[float]:
        ceiling = self.config.weekly_increase_percent / 100.0
        remaining = flags.count(False)
        current = round_down_km(baseline)
        volumes = []

        for is_recovery in flags:
            if is_recovery:
                volumes.append(round_down_km(current * self.config.recovery_week_factor))
                continue
            # Re-plan the step over the growth weeks that are left
            step = min((peak - current) / remaining, current * ceiling)
            current = round_down_km(current + step)
            remaining -= 1
            volumes.append(current)

        return volumes

    def _long_run_curve(
        self,
        anchor: float,
        target: float,
        flags: List[bool],
        weekly: List[float],
        share_cap: Optional[float],
    ) -> List[float]:
        ceiling = self.config.long_run_increase_percent / 100.0
        remaining = flags.count(False)
        # An athlete already past the goal long run starts at it
        current = min(round_down_km(max(anchor, 1.0)), target)
        long_runs = []

        for i, is_recovery in enumerate(flags):
            week_cap = round_down_km(weekly[i] * share_cap) if share_cap else float("inf")
            if is_recovery:
                long_runs.append(min(round_down_km(current * self.config.recovery_week_factor), week_cap))
                continue
            step = min((target - current) / remaining, current * ceiling)
            current = min(round_down_km(current + step), week_cap)
            remaining -= 1
            long_runs.append(current)

        return long_runs
