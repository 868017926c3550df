"""
Pytest configuration and fixtures

The reference athlete throughout the suite: 30 km/week, longest recent
run 14 km, five run days (Tue/Wed/Thu/Sat/Sun), long run on Sunday,
training for a marathon on 2026-04-26 from Monday 2026-01-05 (16 weeks).
"""
import pytest
from datetime import date

from runplan.services.plan_framework import (
    AthleteProfile,
    ConfigService,
    PlanRequest,
    SkeletonGenerator,
)


@pytest.fixture(autouse=True)
def _fresh_config():
    """Every test starts from the packaged plan rules."""
    ConfigService._config = None
    yield
    ConfigService._config = None


@pytest.fixture
def today():
    return date(2026, 1, 5)


@pytest.fixture
def marathon_race_date():
    return date(2026, 4, 26)


@pytest.fixture
def marathon_profile():
    return AthleteProfile(
        baseline_weekly_km=30.0,
        longest_recent_run_km=14.0,
        avg_runs_per_week=4.5,
        easy_pace_min_per_km=(6.0, 6.6),
        estimated_vdot=42.0,
    )


@pytest.fixture
def marathon_request(marathon_race_date):
    return PlanRequest(
        goal_type="marathon",
        race_date=marathon_race_date,
        preferred_days=["tue", "wed", "thu", "sat", "sun"],
        days_per_week=5,
        long_run_day="sunday",
    )


@pytest.fixture
def marathon_skeleton(marathon_request, marathon_profile, today):
    return SkeletonGenerator().generate(marathon_request, marathon_profile, today)
