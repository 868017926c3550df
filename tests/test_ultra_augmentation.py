"""
Ultra Augmentation Tests

50K in 18 weeks, Saturday long run with Sunday back-to-backs and fueling
practice late in the specific block.
"""

import pytest
from datetime import date

from runplan.services.plan_framework import (
    AthleteProfile,
    GoalConfig,
    GoalType,
    Phase,
    PlanRequest,
    SkeletonConfig,
    SkeletonGenerator,
    Weekday,
    WorkoutType,
    augment_for_ultra,
)
from runplan.services.plan_framework.phase_builder import WeekPhase
from runplan.services.plan_framework.ultra import back_to_back_weeks


@pytest.fixture
def ultra_profile():
    return AthleteProfile(baseline_weekly_km=50.0, longest_recent_run_km=20.0)


@pytest.fixture
def ultra_skeleton(ultra_profile, today):
    request = PlanRequest(
        goal_type="50k",
        race_date=date(2026, 5, 10),
        terrain="trail",
        preferred_days=["tue", "thu", "sat", "sun"],
        days_per_week=4,
    )
    return SkeletonGenerator().generate(request, ultra_profile, today)


class TestBackToBackWeeks:

    def test_alternating_specific_weeks(self):
        phases = [WeekPhase(w, Phase.BUILD, 2) for w in range(1, 11)]
        phases += [
            WeekPhase(11, Phase.BUILD2_SPECIFIC, 4),
            WeekPhase(12, Phase.RECOVERY, 1),
            WeekPhase(13, Phase.BUILD2_SPECIFIC, 4),
            WeekPhase(14, Phase.BUILD2_SPECIFIC, 4),
            WeekPhase(15, Phase.PEAK, 5),
        ]
        assert back_to_back_weeks(phases) == [11, 13, 15]

    def test_no_specific_block(self):
        assert back_to_back_weeks([WeekPhase(1, Phase.BASE, 1)]) == []


class TestFiftyKSkeleton:

    def test_saturday_long_run(self, ultra_skeleton):
        assert ultra_skeleton.total_weeks == 18
        assert ultra_skeleton.settings.long_run_day == Weekday.SATURDAY

    def test_back_to_back_after_long_run(self, ultra_skeleton):
        b2b_weeks = []
        for week in ultra_skeleton.weeks:
            sunday = week.days[Weekday.SUNDAY.index]
            if sunday.workout_type != WorkoutType.BACK_TO_BACK_LONG:
                continue
            b2b_weeks.append(week.week_number)
            long_run = week.days[Weekday.SATURDAY.index]

            assert long_run.workout_type == WorkoutType.LONG_RUN
            assert sunday.is_back_to_back
            assert abs(sunday.km - 0.65 * long_run.km) <= 0.1, \
                f"Week {week.week_number}: back-to-back {sunday.km} km is not 65% of {long_run.km} km"

        assert b2b_weeks == [11, 13, 15]

    def test_fueling_practice_from_specific_block(self, ultra_skeleton):
        fueling_weeks = [
            w.week_number for w in ultra_skeleton.weeks
            if any(d.is_fueling_practice for d in w.days)
        ]
        assert fueling_weeks, "Fueling practice should appear in the late specific block"
        assert min(fueling_weeks) >= 13
        for week in ultra_skeleton.weeks:
            for day in week.days:
                if day.is_fueling_practice:
                    assert day.workout_type == WorkoutType.FUELING_PRACTICE

    def test_race_week_untouched(self, ultra_skeleton):
        race_week = ultra_skeleton.weeks[-1]
        assert not any(d.is_back_to_back or d.is_fueling_practice for d in race_week.days)
        race = race_week.days[Weekday.SUNDAY.index]
        assert race.workout_type == WorkoutType.RACE
        assert race.distance_km == pytest.approx(50.0)

    def test_augmented_weeks_stay_balanced(self, ultra_skeleton):
        for week in ultra_skeleton.weeks:
            assert week.planned_distance_km == pytest.approx(round(sum(d.km for d in week.days), 1))

    def test_vertical_gain_for_trail(self, ultra_skeleton):
        specific = [w for w in ultra_skeleton.weeks if w.phase == Phase.BUILD2_SPECIFIC]
        base = [w for w in ultra_skeleton.weeks if w.phase == Phase.BASE]
        assert specific and base
        assert specific[0].vertical_gain_m > base[0].vertical_gain_m


class TestNonUltra:

    def test_road_goal_unchanged(self, marathon_skeleton):
        for week in marathon_skeleton.weeks:
            for day in week.days:
                assert not day.is_back_to_back
                assert not day.is_fueling_practice

    def test_augment_ignores_non_ultra_goal(self, marathon_skeleton):
        draft = marathon_skeleton.to_draft()
        result = augment_for_ultra(draft, GoalConfig(GoalType.MARATHON), [], [], SkeletonConfig())
        assert result is draft
        assert draft.freeze() == marathon_skeleton
