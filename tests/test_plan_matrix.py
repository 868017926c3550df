"""
Plan Matrix Tests

Every goal, run-day count, starting volume and plan length, generated and
then validated twice. Both the generated skeleton and the corrected one
must satisfy the structural rules, and the second validation must find
nothing left to correct.
"""

import pytest
from datetime import timedelta

from runplan.services.plan_framework import (
    AthleteProfile,
    GoalType,
    PlanRequest,
    SkeletonGenerator,
    TrainingGuardrails,
)
from tests.plan_validation_helpers import validate_skeleton

RACE_GOALS = [g for g in GoalType if g != GoalType.GENERAL_FITNESS]
DAYS_PER_WEEK = (3, 4, 5, 6)
BASELINES_KM = (0.0, 15.0, 30.0, 60.0)
PLAN_WEEKS = (8, 18)


def _cases():
    for goal in RACE_GOALS:
        for weeks in PLAN_WEEKS:
            for days in DAYS_PER_WEEK:
                for baseline in BASELINES_KM:
                    yield pytest.param(goal, weeks, days, baseline,
                                       id=f"{goal.value}-{weeks}w-{days}d-{baseline:g}km")
    for days in DAYS_PER_WEEK:
        for baseline in BASELINES_KM:
            yield pytest.param(GoalType.GENERAL_FITNESS, None, days, baseline,
                               id=f"general_fitness-{days}d-{baseline:g}km")


def _request(goal, weeks, days, today):
    race_date = today + timedelta(weeks=weeks - 1, days=6) if weeks else None
    return PlanRequest(goal_type=goal.value, race_date=race_date, days_per_week=days)


@pytest.mark.parametrize("goal,weeks,days,baseline", list(_cases()))
class TestPlanMatrix:

    @pytest.fixture
    def plans(self, goal, weeks, days, baseline, today):
        profile = AthleteProfile(baseline_weekly_km=baseline)
        skeleton = SkeletonGenerator().generate(_request(goal, weeks, days, today), profile, today)
        guardrails = TrainingGuardrails()
        first = guardrails.validate(skeleton, profile)
        second = guardrails.validate(first.corrected, profile)
        return skeleton, first, second

    def test_generated_skeleton_is_sound(self, plans):
        skeleton, _, _ = plans
        validation = validate_skeleton(skeleton)
        assert validation.passed, validation.summary()

    def test_corrected_skeleton_is_sound(self, plans):
        _, first, _ = plans
        validation = validate_skeleton(first.corrected)
        assert validation.passed, validation.summary() + "\n" + first.summary()

    def test_second_validation_is_a_no_op(self, plans):
        _, first, second = plans
        assert second.corrections == [], second.summary()
        assert second.corrected == first.corrected

    def test_volumes_do_not_collapse(self, plans):
        skeleton, first, _ = plans
        for before, after in zip(skeleton.weeks, first.corrected.weeks):
            if before.training_distance_km <= 0:
                continue
            assert after.training_distance_km >= 0.5 * before.training_distance_km, \
                f"Week {before.week_number}: {before.training_distance_km} -> {after.training_distance_km} km"
