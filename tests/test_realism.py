"""
Realism Check Tests
"""

from runplan.services.plan_framework import (
    AthleteProfile,
    GoalConfig,
    GoalType,
    RealismKind,
    Severity,
    assess_realism,
)


def _by_kind(warnings):
    return {w.kind: w for w in warnings}


class TestAggressiveGoals:

    def test_marathon_from_low_volume(self):
        profile = AthleteProfile(baseline_weekly_km=20.0, longest_recent_run_km=10.0)
        warnings = _by_kind(assess_realism(GoalConfig(GoalType.MARATHON), profile, total_weeks=16))

        volume = warnings[RealismKind.AGGRESSIVE_VOLUME]
        assert volume.severity == Severity.ERROR, "70 km peak is 3.5x a 20 km week"
        assert "3.5x" in volume.message

        long_run = warnings[RealismKind.AGGRESSIVE_LONG_RUN]
        assert long_run.severity == Severity.WARNING
        assert "38.0 km" in long_run.message

        lead_time = warnings[RealismKind.INSUFFICIENT_TIME]
        assert lead_time.severity == Severity.WARNING, "Five weeks short of the 21 recommended"
        assert "Recommended minimum 21 weeks" in lead_time.message

        assert RealismKind.LOW_BASELINE not in warnings, "20 km/week meets the marathon minimum"

    def test_planned_peak_overrides_goal_default(self):
        profile = AthleteProfile(baseline_weekly_km=40.0, longest_recent_run_km=30.0)
        warnings = _by_kind(assess_realism(
            GoalConfig(GoalType.MARATHON), profile, total_weeks=20, peak_weekly_km=90.0,
        ))

        assert warnings[RealismKind.AGGRESSIVE_VOLUME].severity == Severity.WARNING
        assert RealismKind.AGGRESSIVE_LONG_RUN not in warnings

    def test_low_baseline(self):
        profile = AthleteProfile(baseline_weekly_km=12.0, longest_recent_run_km=8.0)
        warnings = _by_kind(assess_realism(GoalConfig(GoalType.HALF_MARATHON), profile, total_weeks=20))

        assert warnings[RealismKind.LOW_BASELINE].severity == Severity.WARNING


class TestRealisticGoals:

    def test_five_k_for_a_regular_runner(self):
        profile = AthleteProfile(baseline_weekly_km=30.0, longest_recent_run_km=10.0)
        assert assess_realism(GoalConfig(GoalType.FIVE_K), profile, total_weeks=8) == []

    def test_slightly_short_plan_is_informational(self):
        profile = AthleteProfile(baseline_weekly_km=70.0)
        warnings = assess_realism(GoalConfig(GoalType.MARATHON), profile, total_weeks=10)

        assert [w.kind for w in warnings] == [RealismKind.INSUFFICIENT_TIME]
        assert warnings[0].severity == Severity.INFO

    def test_to_dict(self):
        profile = AthleteProfile(baseline_weekly_km=70.0)
        data = assess_realism(GoalConfig(GoalType.MARATHON), profile, total_weeks=10)[0].to_dict()

        assert data["kind"] == "insufficient_time"
        assert data["severity"] == "info"
