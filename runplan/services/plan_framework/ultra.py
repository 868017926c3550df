"""
Ultra Augmentation

Adds the ultra-specific sessions to an assembled draft:

- Back-to-back long runs on alternating weeks of the specific phase
  (build2_specific and peak), placed the day after the long run.
- Fueling practice on the first easy day of each week, starting part
  way into the specific phase.

Race weeks are left alone. Weeks that change are rebalanced so the
planned distance still matches the weekly target. A back-to-back that
does not fit the target is taken back out and the week keeps its
original sessions.
"""

import logging
from dataclasses import replace
from typing import List, Optional, Sequence

from .constants import Phase, WorkoutType, Intensity
from .config import SkeletonConfig
from .models import DayDraft, GoalConfig, PlanDraft, WeekDraft
from .phase_builder import PhaseBuilder, WeekPhase, fueling_start_week
from .progression import round_down_km
from .volume_allocation import balance_week

logger = logging.getLogger(__name__)

SPECIFIC_PHASES = (Phase.BUILD2_SPECIFIC, Phase.PEAK)


def back_to_back_weeks(week_phases: List[WeekPhase]) -> List[int]:
    """Every other week of the specific phase, starting with its first week."""
    specific = PhaseBuilder.specific_phase_weeks(week_phases)
    if not specific:
        return []
    first = specific[0]
    return [w for w in specific if (w - first) % 2 == 0]


def _add_back_to_back(week: WeekDraft, fraction: float) -> Optional[DayDraft]:
    long_run = week.long_run
    if long_run is None or not long_run.km:
        return None
    follower_index = long_run.weekday.index + 1
    if follower_index >= len(week.days):
        logger.debug(f"Week {week.week_number}: long run on the last day, no back-to-back")
        return None
    follower = week.days[follower_index]
    if follower.workout_type not in (WorkoutType.EASY, WorkoutType.RECOVERY):
        return None

    follower.workout_type = WorkoutType.BACK_TO_BACK_LONG
    follower.distance_km = round_down_km(long_run.km * fraction)
    follower.intensity = Intensity.MODERATE
    follower.is_back_to_back = True
    return follower


def _add_fueling_practice(week: WeekDraft) -> bool:
    for day in week.days:
        if day.workout_type == WorkoutType.EASY:
            day.workout_type = WorkoutType.FUELING_PRACTICE
            day.is_fueling_practice = True
            return True
    return False


def augment_for_ultra(
    draft: PlanDraft,
    goal: GoalConfig,
    week_phases: List[WeekPhase],
    training_targets: Sequence[float],
    config: SkeletonConfig,
) -> PlanDraft:
    """
    Add back-to-back long runs and fueling practice to an ultra draft.

    Args:
        draft: Assembled plan (modified in place and returned)
        goal: The ultra goal the plan closes on
        week_phases: Phase per week, as used to assemble the draft
        training_targets: Non-race volume target per week (index = week - 1)
        config: Skeleton knobs (back-to-back fraction, fueling start)
    """
    if not goal.is_ultra:
        return draft

    b2b_weeks = set(back_to_back_weeks(week_phases))
    fueling_from = fueling_start_week(week_phases, config.fueling_start_fraction)
    added_b2b = 0

    for week in draft.weeks:
        if week.races:
            continue
        target = training_targets[week.week_number - 1]
        fueling = week.week_number >= fueling_from

        if week.week_number in b2b_weeks:
            original_days = [replace(d) for d in week.days]
            follower = _add_back_to_back(week, config.back_to_back_fraction)
            if follower is not None:
                balance_week(week, target, goal.goal_type, config)
                if follower.is_back_to_back:
                    added_b2b += 1
                else:
                    logger.debug(f"Week {week.week_number}: back-to-back does not fit {target} km, skipped")
                    week.days = original_days
                    week.resync()

        if fueling and _add_fueling_practice(week):
            balance_week(week, target, goal.goal_type, config)

    logger.info(
        f"Ultra augmentation ({goal.goal_type.value}): {added_b2b} back-to-back weekends, "
        f"fueling practice from week {fueling_from}"
    )
    return draft
