"""
Volume Allocation

Spreads a week's training target over its days once the fixed sessions
(long run, quality, back-to-back, race) have their distances.

- Easy / recovery / fueling-practice days ("fillers") share what is left
  evenly, between a floor and a ceiling, and always below the long run.
- When the share would fall under the floor, filler days are turned into
  rest days (recovery slots first).
- Leftover rounding is reconciled in small steps. The long run is never
  touched. Quality days absorb whatever the fillers cannot.
- A week never ends up over its target. When the fixed sessions alone
  exceed it, the back-to-back day shortens and quality days are dropped.
"""

import logging
from typing import List, Optional, Tuple

from .constants import (
    GoalType,
    Phase,
    WorkoutType,
    Intensity,
    FILLER_TYPES,
    QUALITY_TYPES,
    RACE_DISTANCE_KM,
    GUARDRAIL_DEFAULTS,
)
from .config import SkeletonConfig
from .models import DayDraft, WeekDraft
from .progression import round_down_km, round_up_km

logger = logging.getLogger(__name__)

QUALITY_ANCHOR_FRACTION = 0.85
HIERARCHY_MARGIN_KM = 0.5
# Share of the easy floor a quality day may shrink to before the last easy day goes
QUALITY_YIELD_FRACTION = 0.5
SHIFT_STEP_KM = 0.5


def easy_run_ceiling_km(
    goal_type: GoalType,
    percent_of_race: float = GUARDRAIL_DEFAULTS["max_easy_run_percent_of_race"],
    min_km: float = GUARDRAIL_DEFAULTS["easy_ceiling_min_km"],
    max_km: float = GUARDRAIL_DEFAULTS["easy_ceiling_max_km"],
    general_km: float = GUARDRAIL_DEFAULTS["general_fitness_easy_ceiling_km"],
) -> float:
    """Race-distance-relative ceiling for a single easy run."""
    if goal_type == GoalType.GENERAL_FITNESS:
        return general_km
    raw = RACE_DISTANCE_KM[goal_type] * percent_of_race / 100.0
    return round_down_km(max(min_km, min(max_km, raw)))


def filler_floor_km(anchor_km: Optional[float], min_easy_km: float, hierarchy: float = 0.7) -> float:
    """Easy-run floor, relaxed under a short long run so the hierarchy holds."""
    if anchor_km:
        return round_down_km(min(min_easy_km, anchor_km * hierarchy))
    return min_easy_km


def filler_bounds(
    anchor_km: Optional[float],
    goal_type: GoalType,
    config: SkeletonConfig,
) -> Tuple[float, float]:
    floor = filler_floor_km(anchor_km, config.min_easy_run_km)
    cap = easy_run_ceiling_km(goal_type)
    if anchor_km:
        cap = min(cap, round_down_km(anchor_km - HIERARCHY_MARGIN_KM))
    return floor, max(cap, floor)


def quality_distance(
    week_target: float,
    phase: Phase,
    prior_km: Optional[float],
    anchor_km: Optional[float],
    config: SkeletonConfig,
) -> float:
    """~20% of the week, clamped, smoothed against the same weekday last week."""
    km = week_target * config.quality_share_of_week
    km = max(config.quality_min_km, min(config.quality_max_km, km))
    if phase != Phase.BASE and prior_km:
        km = max(prior_km - config.quality_smoothing_km,
                 min(prior_km + config.quality_smoothing_km, km))
    if anchor_km:
        km = min(km, anchor_km * QUALITY_ANCHOR_FRACTION)
    return round_down_km(km)


def make_rest(day: DayDraft):
    day.workout_type = WorkoutType.REST
    day.distance_km = None
    day.intensity = Intensity.LOW
    day.is_fueling_practice = False
    day.is_back_to_back = False


def is_back_to_back_day(day: DayDraft) -> bool:
    return day.is_back_to_back or day.workout_type == WorkoutType.BACK_TO_BACK_LONG


def nudge(days: List[DayDraft], target_sum: float, low: float, high: float, step: float) -> float:
    """
    Move distances toward target_sum in steps of at most `step` km,
    round-robin, keeping every day within [low, high].

    Returns the residual that could not be placed.
    """
    diff = round(target_sum - sum(d.km for d in days), 1)
    if not days:
        return diff
    i, stalled = 0, 0
    while abs(diff) >= 0.05 and stalled < len(days):
        day = days[i % len(days)]
        i += 1
        delta = min(step, abs(diff)) * (1 if diff > 0 else -1)
        new_km = round(max(low, min(high, day.km + delta)), 1)
        moved = round(new_km - day.km, 1)
        if moved == 0:
            stalled += 1
            continue
        stalled = 0
        day.distance_km = new_km
        diff = round(diff - moved, 1)
    return diff


def _pick_filler_to_drop(fillers: List[DayDraft]) -> DayDraft:
    for wtype in (WorkoutType.RECOVERY, WorkoutType.EASY, WorkoutType.FUELING_PRACTICE):
        for day in reversed(fillers):
            if day.workout_type == wtype:
                return day
    return fillers[-1]


def _quality_days(week: WeekDraft) -> List[DayDraft]:
    return [d for d in week.days if d.workout_type in QUALITY_TYPES and d.km > 0]


def _quality_ceiling(anchor_km: Optional[float], config: SkeletonConfig) -> float:
    high = config.quality_max_km
    if anchor_km:
        high = min(high, round_down_km(anchor_km * QUALITY_ANCHOR_FRACTION))
    return high


def long_run_floor_km(week: WeekDraft, back_to_back_fraction: float) -> float:
    """Shortest long run that stays above every other run of the week."""
    long_run = week.long_run
    lowest = 0.0
    for day in week.days:
        if day is long_run or day.is_rest or day.is_race or day.km <= 0:
            continue
        if is_back_to_back_day(day):
            lowest = max(lowest, round_up_km(day.km / back_to_back_fraction))
        else:
            lowest = max(lowest, round(day.km + 0.1, 1))
    return lowest


def shift_long_run_excess(
    week: WeekDraft,
    share: float,
    ceiling: float,
    back_to_back_fraction: float,
) -> Optional[float]:
    """
    Cut a long run that is over `share` of the week's training volume back
    to the cap and hand the excess to the easy days.

    All or nothing: when the easy days cannot take the whole excess while
    staying clear of the shortened long run, the week is left alone. The
    week's training volume never changes.

    Returns the original long-run distance when the week was changed.
    """
    long_run = week.long_run
    if long_run is None or not long_run.km:
        return None
    limit = round_down_km(share * week.training_km)
    if long_run.km <= limit + 0.05:
        return None
    if limit < long_run_floor_km(week, back_to_back_fraction):
        return None

    room_cap = min(ceiling, round_down_km(limit - HIERARCHY_MARGIN_KM))
    receivers = [d for d in week.days if d.workout_type in FILLER_TYPES and 0 < d.km < room_cap]
    excess = round(long_run.km - limit, 1)
    if round(sum(room_cap - d.km for d in receivers), 1) < excess:
        return None

    original = long_run.km
    long_run.distance_km = limit
    nudge(receivers, sum(d.km for d in receivers) + excess, 0.0, room_cap, SHIFT_STEP_KM)
    week.resync()
    return original


def balance_week(
    week: WeekDraft,
    training_target: float,
    goal_type: GoalType,
    config: SkeletonConfig,
) -> float:
    """
    Distribute the rest of the week's volume and make the sum exact.

    Quality days give back volume (down to their minimum) before an easy
    day is dropped to rest. Before the last easy day goes they give back
    more, down to half the easy floor, so a short week keeps one easy run
    beside its long run.

    Returns the final planned distance, which is never above the target.
    """
    training_target = max(0.0, training_target)
    anchor = week.anchor_km
    floor, cap = filler_bounds(anchor, goal_type, config)
    long_run = week.long_run
    quality = _quality_days(week)
    q_high = _quality_ceiling(anchor, config)
    for day in quality:
        day.distance_km = min(day.km, q_high)
    back_to_back = [d for d in week.days if is_back_to_back_day(d) and d.km > 0]
    if long_run is not None:
        b2b_cap = round_down_km(long_run.km * config.back_to_back_fraction)
        for day in back_to_back:
            day.distance_km = min(day.km, b2b_cap)
    q_low = min([config.quality_min_km] + [d.km for d in quality])
    q_floor = min(q_low, round_down_km(floor * QUALITY_YIELD_FRACTION))
    step = config.reconcile_step_km

    def fixed_km() -> float:
        return sum(d.km for d in week.days
                   if not d.is_race and d.workout_type not in FILLER_TYPES)

    fillers = [d for d in week.days if d.workout_type in FILLER_TYPES]
    remaining = round(training_target - fixed_km(), 1)

    while fillers:
        need = round(len(fillers) * floor, 1)
        if remaining >= need:
            break
        low = q_low if len(fillers) > 1 else q_floor
        freeable = round(sum(max(0.0, d.km - low) for d in quality), 1)
        if round(remaining + freeable, 1) >= need:
            current = sum(d.km for d in quality)
            nudge(quality, current - (need - remaining), low, max(q_high, q_low), step)
            remaining = round(training_target - fixed_km(), 1)
            break
        victim = _pick_filler_to_drop(fillers)
        make_rest(victim)
        fillers.remove(victim)

    if fillers:
        share = max(floor, min(cap, round_down_km(remaining / len(fillers))))
        for day in fillers:
            day.distance_km = share
        nudge(fillers, remaining, floor, cap, step)

    residual = round(training_target - week.training_km, 1)
    if abs(residual) >= 0.05 and quality:
        current = sum(d.km for d in quality)
        residual = nudge(quality, current + residual, q_floor, max(q_high, q_low), step)

    if residual <= -0.05:
        residual = _shed(week, residual, floor, quality, back_to_back)
        quality = [d for d in quality if not d.is_rest]
        if residual >= 0.05 and quality:
            current = sum(d.km for d in quality)
            residual = nudge(quality, current + residual, q_floor, max(q_high, q_low), step)

    if abs(residual) >= 0.05:
        logger.debug(
            f"Week {week.week_number}: {residual:+.1f} km of the "
            f"{training_target} km target could not be placed"
        )

    return week.resync()


def _shed(
    week: WeekDraft,
    residual: float,
    floor: float,
    quality: List[DayDraft],
    back_to_back: List[DayDraft],
) -> float:
    """Fixed sessions over the target: shorten back-to-backs, then drop sessions."""
    for day in back_to_back:
        cut = min(-residual, max(0.0, round(day.km - floor, 1)))
        if cut > 0:
            day.distance_km = round(day.km - cut, 1)
            residual = round(residual + cut, 1)

    for day in list(reversed(quality)) + back_to_back:
        if residual > -0.05:
            break
        residual = round(residual + day.km, 1)
        logger.debug(f"Week {week.week_number}: {day.workout_type.value} on {day.date} dropped to fit the target")
        make_rest(day)
    return residual
