"""
Goal Resolver Tests

Request normalization into one or two goals, and the plan calendar.
"""

import pytest
from datetime import date

from runplan.services.plan_framework import (
    DualGoal,
    GoalRequest,
    GoalType,
    PlanRequest,
    Priority,
    SingleGoal,
    Terrain,
    Weekday,
    plan_start_date,
    plan_weeks,
    resolve_goals,
)
from runplan.services.plan_framework.constants import MAX_PLAN_WEEKS
from runplan.services.plan_framework.goal_resolver import (
    parse_goal_type,
    parse_weekday,
    parse_weekdays,
    race_week_index,
)


class TestParsing:
    """Loose request values become enums."""

    @pytest.mark.parametrize("value,expected", [
        ("marathon", GoalType.MARATHON),
        ("Half Marathon", GoalType.HALF_MARATHON),
        ("half", GoalType.HALF_MARATHON),
        ("50 mile", GoalType.FIFTY_MILE),
        ("100K", GoalType.HUNDRED_K),
        ("5km", GoalType.FIVE_K),
        (GoalType.TEN_K, GoalType.TEN_K),
    ])
    def test_goal_aliases(self, value, expected):
        assert parse_goal_type(value) == expected

    def test_unknown_goal_falls_back_to_general_fitness(self):
        assert parse_goal_type("triathlon") == GoalType.GENERAL_FITNESS
        assert parse_goal_type(None) == GoalType.GENERAL_FITNESS

    @pytest.mark.parametrize("value,expected", [
        ("tue", Weekday.TUESDAY),
        ("Thursday", Weekday.THURSDAY),
        ("thurs", Weekday.THURSDAY),
        ("SUN", Weekday.SUNDAY),
    ])
    def test_weekday_aliases(self, value, expected):
        assert parse_weekday(value) == expected

    def test_weekdays_deduplicated_and_unknown_dropped(self):
        days = parse_weekdays(["tue", "Tuesday", "someday", "sat"])
        assert days == [Weekday.TUESDAY, Weekday.SATURDAY]


class TestResolveGoals:

    def test_single_goal_from_shorthand_fields(self):
        request = PlanRequest(goal_type="marathon", race_date=date(2026, 4, 26), terrain="trail")
        selection = resolve_goals(request)

        assert isinstance(selection, SingleGoal)
        assert selection.goal.goal_type == GoalType.MARATHON
        assert selection.goal.priority == Priority.PRIMARY
        assert selection.goal.terrain == Terrain.TRAIL
        assert selection.anchor is selection.goal

    def test_general_fitness_drops_race_date(self):
        selection = resolve_goals(PlanRequest(goal_type="general_fitness", race_date=date(2026, 4, 26)))
        assert selection.goal.race_date is None
        assert not selection.goal.has_race

    def test_first_goal_is_primary_by_default(self):
        request = PlanRequest(goals=[
            GoalRequest("half_marathon", date(2026, 3, 1)),
            GoalRequest("marathon", date(2026, 4, 26)),
        ])
        selection = resolve_goals(request)

        assert isinstance(selection, DualGoal)
        assert selection.primary.goal_type == GoalType.HALF_MARATHON
        assert selection.secondary.priority == Priority.SECONDARY

    def test_explicit_primary_wins_over_order(self):
        request = PlanRequest(goals=[
            GoalRequest("half_marathon", date(2026, 3, 1)),
            GoalRequest("marathon", date(2026, 4, 26), priority="primary"),
        ])
        selection = resolve_goals(request)

        assert selection.primary.goal_type == GoalType.MARATHON
        assert selection.secondary.goal_type == GoalType.HALF_MARATHON

    def test_anchor_is_the_later_race(self):
        request = PlanRequest(goals=[
            GoalRequest("marathon", date(2026, 4, 26)),
            GoalRequest("50k", date(2026, 6, 7)),
        ])
        selection = resolve_goals(request)

        assert selection.anchor.goal_type == GoalType.FIFTY_K, \
            "The plan closes on the later race even when it is the secondary goal"
        assert selection.other.goal_type == GoalType.MARATHON

    def test_extra_goals_are_dropped(self):
        request = PlanRequest(goals=[
            GoalRequest("5k"), GoalRequest("10k"), GoalRequest("marathon"),
        ])
        selection = resolve_goals(request)
        assert [g.goal_type for g in selection.goals] == [GoalType.FIVE_K, GoalType.TEN_K]


class TestCalendar:

    def test_plan_starts_next_monday(self):
        assert plan_start_date(date(2026, 1, 7)) == date(2026, 1, 12)
        assert plan_start_date(date(2026, 1, 11)) == date(2026, 1, 12)

    def test_monday_starts_today(self):
        assert plan_start_date(date(2026, 1, 5)) == date(2026, 1, 5)

    def test_marathon_sixteen_weeks_out(self, marathon_request, today):
        anchor = resolve_goals(marathon_request).anchor
        start = plan_start_date(today, anchor)

        assert start == today
        assert plan_weeks(anchor, start) == 16
        assert race_week_index(start, anchor.race_date) == 16

    def test_distant_race_moves_start_later(self, today):
        anchor = resolve_goals(PlanRequest(goal_type="marathon", race_date=date(2027, 6, 6))).anchor
        start = plan_start_date(today, anchor)

        assert start > today
        assert start.weekday() == 0
        assert plan_weeks(anchor, start) == MAX_PLAN_WEEKS, \
            "A race beyond the longest plan should still land in the final week"

    def test_no_race_uses_default_length(self, today):
        anchor = resolve_goals(PlanRequest(goal_type="10k")).anchor
        assert plan_weeks(anchor, plan_start_date(today, anchor)) == 10

    def test_race_in_the_past_clamps_to_one_week(self, today):
        anchor = resolve_goals(PlanRequest(goal_type="5k", race_date=date(2025, 12, 1))).anchor
        assert plan_weeks(anchor, today) == 1
