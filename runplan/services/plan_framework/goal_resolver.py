"""
Goal Resolver

Normalizes a plan request into one or two goal configurations and works
out the plan calendar (start date, number of weeks).

Usage:
    selection = resolve_goals(request)
    start = plan_start_date(today, selection.anchor)
    weeks = plan_weeks(selection.anchor, start)
"""

import logging
import re
from datetime import date, timedelta
from typing import List, Optional

from .constants import (
    GoalType,
    Priority,
    Terrain,
    Weekday,
    DEFAULT_PLAN_WEEKS,
    MAX_PLAN_WEEKS,
)
from .models import (
    GoalConfig,
    GoalRequest,
    PlanRequest,
    SingleGoal,
    DualGoal,
    GoalSelection,
)

logger = logging.getLogger(__name__)


GOAL_ALIASES = {
    "5k": GoalType.FIVE_K,
    "5km": GoalType.FIVE_K,
    "10k": GoalType.TEN_K,
    "10km": GoalType.TEN_K,
    "half": GoalType.HALF_MARATHON,
    "halfmarathon": GoalType.HALF_MARATHON,
    "21k": GoalType.HALF_MARATHON,
    "marathon": GoalType.MARATHON,
    "full": GoalType.MARATHON,
    "42k": GoalType.MARATHON,
    "50k": GoalType.FIFTY_K,
    "50km": GoalType.FIFTY_K,
    "50mile": GoalType.FIFTY_MILE,
    "50mi": GoalType.FIFTY_MILE,
    "50miler": GoalType.FIFTY_MILE,
    "100k": GoalType.HUNDRED_K,
    "100km": GoalType.HUNDRED_K,
    "100mile": GoalType.HUNDRED_MILE,
    "100mi": GoalType.HUNDRED_MILE,
    "100miler": GoalType.HUNDRED_MILE,
    "general": GoalType.GENERAL_FITNESS,
    "fitness": GoalType.GENERAL_FITNESS,
    "generalfitness": GoalType.GENERAL_FITNESS,
}

WEEKDAY_ALIASES = {
    "mon": Weekday.MONDAY,
    "tue": Weekday.TUESDAY,
    "tues": Weekday.TUESDAY,
    "wed": Weekday.WEDNESDAY,
    "thu": Weekday.THURSDAY,
    "thur": Weekday.THURSDAY,
    "thurs": Weekday.THURSDAY,
    "fri": Weekday.FRIDAY,
    "sat": Weekday.SATURDAY,
    "sun": Weekday.SUNDAY,
}


def parse_goal_type(value) -> GoalType:
    """Goal type from enum, value or alias. Unknown -> general fitness."""
    if isinstance(value, GoalType):
        return value
    text = str(value or "").strip().lower()
    try:
        return GoalType(text)
    except ValueError:
        pass
    key = re.sub(r"[\s_\-]+", "", text)
    if key in GOAL_ALIASES:
        return GOAL_ALIASES[key]
    logger.warning(f"Unknown goal type '{value}', using general fitness")
    return GoalType.GENERAL_FITNESS


def parse_terrain(value) -> Terrain:
    if isinstance(value, Terrain):
        return value
    try:
        return Terrain(str(value or Terrain.ROAD.value).strip().lower())
    except ValueError:
        logger.debug(f"Unknown terrain '{value}', using road")
        return Terrain.ROAD


def parse_weekday(value) -> Optional[Weekday]:
    if isinstance(value, Weekday):
        return value
    text = str(value or "").strip().lower()
    try:
        return Weekday(text)
    except ValueError:
        return WEEKDAY_ALIASES.get(text[:5]) or WEEKDAY_ALIASES.get(text[:3])


def parse_weekdays(values) -> List[Weekday]:
    days: List[Weekday] = []
    for value in values or []:
        day = parse_weekday(value)
        if day is None:
            logger.debug(f"Ignoring unknown weekday '{value}'")
        elif day not in days:
            days.append(day)
    return days


def _parse_priority(value) -> Optional[Priority]:
    if value is None:
        return None
    try:
        return Priority(str(value).strip().lower())
    except ValueError:
        return None


def _to_goal(req: GoalRequest, priority: Priority, default_terrain: Terrain) -> GoalConfig:
    goal_type = parse_goal_type(req.goal_type)
    return GoalConfig(
        goal_type=goal_type,
        # A race date on a race-less goal has nothing to taper toward
        race_date=req.race_date if goal_type != GoalType.GENERAL_FITNESS else None,
        target_time_seconds=req.target_time_seconds,
        priority=priority,
        terrain=parse_terrain(req.terrain) if req.terrain else default_terrain,
    )


def resolve_goals(request: PlanRequest) -> GoalSelection:
    """
    Normalize a request into Single(goal) or Dual(primary, secondary).

    Explicit priorities win; otherwise the first listed goal is primary.
    Goals beyond the second are dropped.
    """
    default_terrain = parse_terrain(request.terrain)
    goals = list(request.goals or [])

    if not goals:
        goals = [GoalRequest(
            goal_type=request.goal_type,
            race_date=request.race_date,
            target_time_seconds=request.target_time_seconds,
            priority=Priority.PRIMARY.value,
            terrain=request.terrain,
        )]

    if len(goals) > 2:
        logger.warning(f"{len(goals)} goals requested, keeping the first two")
        goals = goals[:2]

    if len(goals) == 1:
        return SingleGoal(_to_goal(goals[0], Priority.PRIMARY, default_terrain))

    first, second = goals
    if _parse_priority(second.priority) == Priority.PRIMARY \
            and _parse_priority(first.priority) != Priority.PRIMARY:
        first, second = second, first

    return DualGoal(
        primary=_to_goal(first, Priority.PRIMARY, default_terrain),
        secondary=_to_goal(second, Priority.SECONDARY, default_terrain),
    )


def next_monday(today: date) -> date:
    return today + timedelta(days=(7 - today.weekday()) % 7)


def plan_start_date(today: date, anchor: Optional[GoalConfig] = None) -> date:
    """
    Plans start on the next Monday (today if it is Monday).

    When the race is further out than the longest plan, the start moves
    later so the race still lands in the final week.
    """
    start = next_monday(today)
    if anchor is not None and anchor.has_race:
        race_week_monday = anchor.race_date - timedelta(days=anchor.race_date.weekday())
        earliest = race_week_monday - timedelta(weeks=MAX_PLAN_WEEKS - 1)
        if earliest > start:
            start = earliest
    return start


def race_week_index(start: date, race_date: date) -> int:
    """1-based week containing race_date (may be < 1 or beyond the plan)."""
    return (race_date - start).days // 7 + 1


def plan_weeks(anchor: GoalConfig, start: date) -> int:
    """Total plan weeks for the anchor goal."""
    if anchor.has_race:
        weeks = race_week_index(start, anchor.race_date)
        clamped = max(1, min(MAX_PLAN_WEEKS, weeks))
        if clamped != weeks:
            logger.debug(f"Plan length {weeks} clamped to {clamped} weeks")
        return clamped
    return DEFAULT_PLAN_WEEKS[anchor.goal_type]
