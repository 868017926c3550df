"""
Skeleton Generator Tests

End-to-end assembly for the reference marathon athlete, plus multi-goal,
off-road and race-less plans.
"""

import pytest
from datetime import date, timedelta

from runplan.services.plan_framework import (
    AthleteProfile,
    BlendMode,
    GoalRequest,
    GoalType,
    Intensity,
    Phase,
    PlanRequest,
    PlanSkeleton,
    Priority,
    SkeletonGenerator,
    TrainingGuardrails,
    Weekday,
    WorkoutType,
)
from tests.plan_validation_helpers import validate_skeleton


def _day(week, weekday: Weekday):
    return week.days[weekday.index]


class TestMarathonSkeleton:
    """16 weeks from Monday 2026-01-05 to the race on Sunday 2026-04-26."""

    def test_calendar(self, marathon_skeleton):
        settings = marathon_skeleton.settings
        assert marathon_skeleton.total_weeks == 16
        assert settings.start_date == date(2026, 1, 5)
        assert settings.race_date == date(2026, 4, 26)
        assert settings.blend_mode == BlendMode.SINGLE

        for week in marathon_skeleton.weeks:
            assert len(week.days) == 7
            assert week.days[0].date == week.start_date
            assert week.days[0].weekday == Weekday.MONDAY
            assert week.end_date == week.days[-1].date

    def test_phases(self, marathon_skeleton):
        phases = [w.phase for w in marathon_skeleton.weeks]
        assert [i + 1 for i, p in enumerate(phases) if p == Phase.RECOVERY] == [4, 8, 12]
        assert phases[12] == Phase.PEAK
        assert phases[13:] == [Phase.TAPER] * 3

    def test_first_week(self, marathon_skeleton):
        week = marathon_skeleton.weeks[0]

        assert _day(week, Weekday.MONDAY).workout_type == WorkoutType.REST
        assert _day(week, Weekday.TUESDAY).workout_type == WorkoutType.HILLS
        assert _day(week, Weekday.THURSDAY).workout_type == WorkoutType.FARTLEK
        assert _day(week, Weekday.FRIDAY).workout_type == WorkoutType.REST
        assert _day(week, Weekday.SATURDAY).workout_type == WorkoutType.EASY
        assert _day(week, Weekday.SUNDAY).workout_type == WorkoutType.LONG_RUN

        assert _day(week, Weekday.SUNDAY).distance_km == pytest.approx(16.1)
        assert _day(week, Weekday.SATURDAY).distance_km == pytest.approx(5.0)
        assert _day(week, Weekday.TUESDAY).distance_km == pytest.approx(6.2)
        assert _day(week, Weekday.THURSDAY).distance_km == pytest.approx(6.3)
        assert _day(week, Weekday.WEDNESDAY).workout_type == WorkoutType.REST, \
            "The recovery slot is dropped when the week cannot fund it at the 5 km floor"
        assert week.planned_distance_km == pytest.approx(33.6)

    def test_build_quality_types(self, marathon_skeleton):
        week = marathon_skeleton.weeks[4]
        assert week.phase == Phase.BUILD
        assert _day(week, Weekday.TUESDAY).workout_type == WorkoutType.TEMPO
        assert _day(week, Weekday.THURSDAY).workout_type == WorkoutType.INTERVALS

    def test_peak_long_run(self, marathon_skeleton):
        peak = marathon_skeleton.weeks[12]
        assert peak.long_run_day.km >= 37.9755 - 0.05
        assert max(km for km in marathon_skeleton.long_runs if km) == peak.long_run_day.km

    def test_race_week(self, marathon_skeleton):
        week = marathon_skeleton.weeks[-1]
        race = _day(week, Weekday.SUNDAY)

        assert race.workout_type == WorkoutType.RACE
        assert race.date == date(2026, 4, 26)
        assert race.distance_km == pytest.approx(42.2)
        assert race.intensity == Intensity.HIGH
        assert _day(week, Weekday.SATURDAY).workout_type == WorkoutType.REST, "Rest the day before the race"
        assert week.long_run_day is None
        assert not any(d.workout_type in (WorkoutType.TEMPO, WorkoutType.INTERVALS) for d in week.days)
        assert week.training_distance_km == pytest.approx(11.0)
        assert week.quality_level == 1

    def test_planned_distance_matches_days(self, marathon_skeleton):
        for week in marathon_skeleton.weeks:
            assert week.planned_distance_km == pytest.approx(round(sum(d.km for d in week.days), 1)), \
                f"Week {week.week_number} planned distance out of sync"

    def test_text_placeholders_empty(self, marathon_skeleton):
        for week in marathon_skeleton.weeks:
            for day in week.days:
                assert day.title is None and day.description is None and day.structure is None

    def test_annotations(self, marathon_skeleton):
        week = marathon_skeleton.weeks[0]
        assert week.rationale.startswith("Week 1 of 16")
        assert week.vertical_gain_m is None, "Road plans have no vertical gain target"
        assert week.goal_split is None

    def test_deterministic(self, marathon_request, marathon_profile, today, marathon_skeleton):
        again = SkeletonGenerator().generate(marathon_request, marathon_profile, today)
        assert again == marathon_skeleton

    def test_round_trips_through_dict(self, marathon_skeleton):
        assert PlanSkeleton.from_dict(marathon_skeleton.to_dict()) == marathon_skeleton

    def test_guardrails_pass(self, marathon_skeleton, marathon_profile):
        result = TrainingGuardrails().validate(marathon_skeleton, marathon_profile)
        assert result.passed, result.summary()

        validation = validate_skeleton(result.corrected)
        assert validation.passed, validation.summary()


class TestTrainingRace:
    """Half marathon five weeks before the marathon: run as a B-race."""

    @pytest.fixture
    def skeleton(self, marathon_profile, today):
        request = PlanRequest(
            goals=[
                GoalRequest("marathon", date(2026, 4, 26), priority="primary"),
                GoalRequest("half_marathon", date(2026, 3, 22), priority="secondary"),
            ],
            preferred_days=["tue", "wed", "thu", "sat", "sun"],
            days_per_week=5,
            long_run_day="sun",
        )
        return SkeletonGenerator().generate(request, marathon_profile, today)

    def test_settings(self, skeleton):
        settings = skeleton.settings
        assert settings.goal_type == GoalType.MARATHON
        assert settings.blend_mode == BlendMode.TRAINING_RACE
        assert settings.secondary_goal_type == GoalType.HALF_MARATHON
        assert settings.secondary_race_date == date(2026, 3, 22)
        assert skeleton.total_weeks == 16

    def test_b_race_replaces_long_run(self, skeleton):
        week = skeleton.weeks[10]
        race = _day(week, Weekday.SUNDAY)

        assert race.date == date(2026, 3, 22)
        assert race.workout_type == WorkoutType.RACE
        assert race.distance_km == pytest.approx(21.1)
        assert race.intensity == Intensity.MODERATE, "A training race is run at controlled effort"
        assert week.long_run_day is None

    def test_race_days_credit_the_goal_raced(self, skeleton):
        b_race = _day(skeleton.weeks[10], Weekday.SUNDAY)
        a_race = _day(skeleton.weeks[15], Weekday.SUNDAY)

        assert b_race.goal_contribution == {Priority.PRIMARY: 0, Priority.SECONDARY: 100}
        assert a_race.goal_contribution == {Priority.PRIMARY: 100, Priority.SECONDARY: 0}

    def test_every_day_tagged(self, skeleton):
        for week in skeleton.weeks:
            assert week.goal_split, f"Week {week.week_number} has no goal split"
            for day in week.days:
                assert day.goal_contribution is not None
                assert sum(day.goal_contribution.values()) == 100


class TestOtherPlans:

    def test_general_fitness_without_race(self, today):
        request = PlanRequest(goal_type="general_fitness", days_per_week=4)
        skeleton = SkeletonGenerator().generate(request, AthleteProfile(baseline_weekly_km=25), today)

        assert skeleton.total_weeks == 8
        assert skeleton.settings.race_date is None
        assert all(w.phase != Phase.TAPER for w in skeleton.weeks)
        for week in skeleton.weeks:
            assert not week.race_days
            assert any(d.workout_type == WorkoutType.REST for d in week.days)

    def test_trail_half_marathon(self, marathon_profile, today):
        request = PlanRequest(
            goal_type="half_marathon",
            race_date=date(2026, 3, 29),
            terrain="trail",
            preferred_days=["tue", "wed", "thu", "sat", "sun"],
            days_per_week=5,
            long_run_day="sun",
        )
        skeleton = SkeletonGenerator().generate(request, marathon_profile, today)
        peak = skeleton.weeks[9]

        assert skeleton.total_weeks == 12
        assert peak.phase == Phase.PEAK
        assert _day(peak, Weekday.THURSDAY).workout_type == WorkoutType.HILLS, \
            "Off-road plans swap the second peak-phase session for hills"
        assert all(w.vertical_gain_m and w.vertical_gain_m > 0 for w in skeleton.weeks)

    def test_no_speedwork_no_quality_days(self, marathon_profile, today, marathon_race_date):
        request = PlanRequest(
            goal_type="marathon",
            race_date=marathon_race_date,
            days_per_week=4,
            include_speedwork=False,
        )
        skeleton = SkeletonGenerator().generate(request, marathon_profile, today)
        quality = {WorkoutType.TEMPO, WorkoutType.INTERVALS, WorkoutType.FARTLEK,
                   WorkoutType.HILLS, WorkoutType.PROGRESSION}
        for week in skeleton.weeks:
            assert not any(d.workout_type in quality for d in week.days)


class TestGrowthCeilings:
    """Weeks grow from what the plan actually scheduled, not from the curve."""

    @staticmethod
    def _build_weeks(skeleton):
        return [w for w in skeleton.weeks
                if w.phase not in (Phase.RECOVERY, Phase.TAPER) and not w.race_days]

    def _assert_growth(self, skeleton, baseline):
        previous = baseline
        for week in self._build_weeks(skeleton):
            current = week.training_distance_km
            assert current <= previous * 1.12 + 0.05, \
                f"Week {week.week_number}: {previous} -> {current} km"
            previous = current

    def test_fifty_k_from_low_baseline(self, today):
        request = PlanRequest(
            goal_type="50k",
            race_date=today + timedelta(weeks=15, days=6),
            days_per_week=5,
        )
        skeleton = SkeletonGenerator().generate(request, AthleteProfile(baseline_weekly_km=15), today)

        assert skeleton.total_weeks == 16
        self._assert_growth(skeleton, 15.0)
        validation = validate_skeleton(skeleton)
        assert validation.passed, validation.summary()

    def test_general_fitness_without_baseline(self, today):
        request = PlanRequest(goal_type="general_fitness", days_per_week=5)
        profile = AthleteProfile(baseline_weekly_km=0)
        skeleton = SkeletonGenerator().generate(request, profile, today)

        self._assert_growth(skeleton, profile.effective_baseline_km)
        validation = validate_skeleton(skeleton)
        assert validation.passed, validation.summary()

    def test_long_runs_grow_at_most_fifteen_percent(self, today):
        request = PlanRequest(
            goal_type="50k",
            race_date=today + timedelta(weeks=15, days=6),
            days_per_week=5,
        )
        profile = AthleteProfile(baseline_weekly_km=15)
        skeleton = SkeletonGenerator().generate(request, profile, today)

        previous = profile.long_run_anchor_km
        for week in skeleton.weeks:
            long_run = week.long_run_day
            if long_run is None or not long_run.km:
                continue
            assert long_run.km <= round(previous * 1.15, 1) + 0.05, \
                f"Week {week.week_number}: long run {previous} -> {long_run.km} km"
            if week in self._build_weeks(skeleton):
                previous = long_run.km

    def test_taper_steps_down_from_realized_peak(self, marathon_skeleton):
        weeks = marathon_skeleton.weeks
        peak = weeks[12].training_distance_km
        for week in weeks[13:]:
            assert week.training_distance_km < peak
            peak = week.training_distance_km


class TestThreeDayPlans:
    """Three run days leave little room below the long run; guardrails must not keep cutting."""

    def _validate_twice(self, skeleton, profile):
        guardrails = TrainingGuardrails()
        first = guardrails.validate(skeleton, profile)
        second = guardrails.validate(first.corrected, profile)
        return first, second

    def test_half_marathon_seven_weeks(self, today):
        request = PlanRequest(
            goal_type="half_marathon",
            race_date=today + timedelta(weeks=6, days=6),
            days_per_week=3,
        )
        profile = AthleteProfile(baseline_weekly_km=15)
        skeleton = SkeletonGenerator().generate(request, profile, today)
        first, second = self._validate_twice(skeleton, profile)

        assert skeleton.total_weeks == 7
        assert second.corrections == [], second.summary()
        for before, after in zip(skeleton.weeks, first.corrected.weeks):
            assert after.training_distance_km >= before.training_distance_km - 0.05, \
                f"Week {before.week_number} shrank: {first.summary()}"
        for plan in (skeleton, first.corrected):
            validation = validate_skeleton(plan)
            assert validation.passed, validation.summary()

    def test_general_fitness_high_baseline(self, today):
        request = PlanRequest(goal_type="general_fitness", days_per_week=3)
        profile = AthleteProfile(baseline_weekly_km=60)
        skeleton = SkeletonGenerator().generate(request, profile, today)
        first, second = self._validate_twice(skeleton, profile)

        assert second.corrections == [], second.summary()
        assert second.corrected == first.corrected
        for before, after in zip(skeleton.weeks, first.corrected.weeks):
            assert after.training_distance_km == pytest.approx(before.training_distance_km, abs=0.05)

    def test_hundred_mile_on_a_short_timeline(self, today):
        request = PlanRequest(
            goal_type="100_mile",
            race_date=today + timedelta(weeks=6, days=6),
            days_per_week=3,
        )
        profile = AthleteProfile(baseline_weekly_km=15)
        skeleton = SkeletonGenerator().generate(request, profile, today)
        first, second = self._validate_twice(skeleton, profile)

        assert first.errors, "Seven weeks is too short for a 100 mile race"
        assert second.corrections == [], second.summary()
        race_week = second.corrected.weeks[-1]
        assert race_week.race_days and race_week.race_days[0].km == pytest.approx(160.9, abs=0.5)
