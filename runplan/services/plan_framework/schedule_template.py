"""
Schedule Template Builder

Maps run-day preferences onto one repeating 7-slot week (Monday..Sunday).

Rules:
- All slots start as rest; chosen run days become easy.
- The long-run day becomes long_run.
- With speedwork: 1 quality slot (2 when running more than 4 days), never on
  the long-run day or the day before it, never next to another quality day.
- The day after a quality or long session is downgraded from easy to
  recovery (the week wraps around).

Quality slots are marked generically here; the assembler picks the
workout type per phase.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .constants import (
    GoalType,
    Weekday,
    WorkoutType,
    WEEKDAYS,
    ULTRA_GOALS,
    DEFAULT_RUN_DAY_ORDER,
)

logger = logging.getLogger(__name__)

MIN_DAYS_PER_WEEK = 2
MAX_DAYS_PER_WEEK = 6   # keeps at least one rest day


@dataclass
class TemplateSlot:
    weekday: Weekday
    workout_type: WorkoutType
    quality_index: Optional[int] = None  # 0 or 1 for quality slots

    @property
    def is_quality(self) -> bool:
        return self.quality_index is not None


@dataclass
class WeekTemplate:
    slots: List[TemplateSlot]
    days_per_week: int
    run_days: List[Weekday]
    long_run_day: Optional[Weekday]

    def slot(self, weekday: Weekday) -> TemplateSlot:
        return self.slots[weekday.index]

    @property
    def quality_days(self) -> List[Weekday]:
        return [s.weekday for s in self.slots if s.is_quality]


def _next(day: Weekday) -> Weekday:
    return WEEKDAYS[(day.index + 1) % 7]


def _prev(day: Weekday) -> Weekday:
    return WEEKDAYS[(day.index - 1) % 7]


def _choose_run_days(days_per_week: int, preferred: Sequence[Weekday]) -> List[Weekday]:
    run_days = []
    for day in preferred:
        if day not in run_days:
            run_days.append(day)
    if len(run_days) > days_per_week:
        logger.debug(f"Trimming preferred days {[d.value for d in run_days]} to {days_per_week}")
        run_days = run_days[:days_per_week]
    for day in DEFAULT_RUN_DAY_ORDER:
        if len(run_days) >= days_per_week:
            break
        if day not in run_days:
            run_days.append(day)
    return sorted(run_days, key=lambda d: d.index)


def _choose_long_run_day(
    run_days: List[Weekday],
    preferred: Optional[Weekday],
    goal_type: GoalType,
) -> Weekday:
    if preferred in run_days:
        return preferred
    both_weekend = Weekday.SATURDAY in run_days and Weekday.SUNDAY in run_days
    if goal_type in ULTRA_GOALS and both_weekend:
        # Saturday long run keeps the back-to-back day inside the week
        return Weekday.SATURDAY
    if Weekday.SUNDAY in run_days:
        return Weekday.SUNDAY
    if Weekday.SATURDAY in run_days:
        return Weekday.SATURDAY
    return run_days[-1]


def build_week_template(
    days_per_week: int,
    preferred_days: Sequence[Weekday] = (),
    long_run_day: Optional[Weekday] = None,
    include_speedwork: bool = True,
    include_long_runs: bool = True,
    goal_type: GoalType = GoalType.GENERAL_FITNESS,
) -> WeekTemplate:
    """Build the repeating weekly template."""
    clamped = max(MIN_DAYS_PER_WEEK, min(MAX_DAYS_PER_WEEK, int(days_per_week or 0)))
    if clamped != days_per_week:
        logger.debug(f"days_per_week {days_per_week} clamped to {clamped}")

    run_days = _choose_run_days(clamped, preferred_days)
    slots = [TemplateSlot(day, WorkoutType.REST) for day in WEEKDAYS]
    for day in run_days:
        slots[day.index].workout_type = WorkoutType.EASY

    long_day = None
    if include_long_runs:
        long_day = _choose_long_run_day(run_days, long_run_day, goal_type)
        slots[long_day.index].workout_type = WorkoutType.LONG_RUN

    if include_speedwork:
        wanted = 2 if clamped > 4 else 1
        blocked = set()
        if long_day is not None:
            blocked = {long_day, _prev(long_day)}
        chosen: List[Weekday] = []
        for day in run_days:
            if len(chosen) >= wanted:
                break
            if day in blocked or slots[day.index].workout_type != WorkoutType.EASY:
                continue
            if any(day in (_next(q), _prev(q)) for q in chosen):
                continue
            slots[day.index].workout_type = WorkoutType.TEMPO
            slots[day.index].quality_index = len(chosen)
            chosen.append(day)

    # Recovery after any hard session
    hard_days = [s.weekday for s in slots
                 if s.is_quality or s.workout_type == WorkoutType.LONG_RUN]
    for day in hard_days:
        follower = slots[_next(day).index]
        if follower.workout_type == WorkoutType.EASY:
            follower.workout_type = WorkoutType.RECOVERY

    return WeekTemplate(
        slots=slots,
        days_per_week=clamped,
        run_days=run_days,
        long_run_day=long_day,
    )
