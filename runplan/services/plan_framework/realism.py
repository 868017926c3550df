"""
Realism Check

Advisory look at whether a goal is realistic for the athlete and the
time available. Nothing here changes a plan; the results are shown to
the athlete next to the skeleton.

Checks:
1. Peak volume against current volume (x2 warns, x2.5 is an error-level advisory)
2. Peak long run against the longest recent run (x2 warns)
3. Plan length against the minimum build time for the goal
4. Starting volume against the goal's minimum
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from .constants import GoalType, Severity, MIN_BASELINE_KM
from .models import AthleteProfile, GoalConfig
from .progression import peak_weekly_target, peak_long_run_target
from .guardrails import minimum_plan_weeks

logger = logging.getLogger(__name__)

VOLUME_RATIO_WARNING = 2.0
VOLUME_RATIO_ERROR = 2.5
LONG_RUN_RATIO_WARNING = 2.0
LEAD_TIME_GRACE_WEEKS = 2


class RealismKind(str, Enum):
    AGGRESSIVE_VOLUME = "aggressive_volume"
    AGGRESSIVE_LONG_RUN = "aggressive_long_run"
    INSUFFICIENT_TIME = "insufficient_time"
    LOW_BASELINE = "low_baseline"


@dataclass(frozen=True)
class RealismWarning:
    kind: RealismKind
    severity: Severity
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "severity": self.severity.value,
            "message": self.message,
        }


def assess_realism(
    goal: GoalConfig,
    profile: AthleteProfile,
    total_weeks: int,
    peak_weekly_km: Optional[float] = None,
    peak_long_run_km: Optional[float] = None,
) -> List[RealismWarning]:
    """
    Flag unrealistic goals.

    Args:
        goal: The goal the plan builds toward
        profile: Athlete statistics
        total_weeks: Plan length
        peak_weekly_km: Planned peak volume (goal default if omitted)
        peak_long_run_km: Planned peak long run (goal default if omitted)
    """
    warnings: List[RealismWarning] = []
    goal_type = goal.goal_type
    baseline = profile.effective_baseline_km

    peak = peak_weekly_km or peak_weekly_target(goal_type, baseline)
    ratio = peak / baseline if baseline else 0.0
    if ratio > VOLUME_RATIO_ERROR:
        warnings.append(RealismWarning(
            RealismKind.AGGRESSIVE_VOLUME, Severity.ERROR,
            f"Peak volume of {peak:.0f} km/week is {ratio:.1f}x your current {baseline:.0f} km/week. "
            f"That jump carries a high injury risk.",
        ))
    elif ratio > VOLUME_RATIO_WARNING:
        warnings.append(RealismWarning(
            RealismKind.AGGRESSIVE_VOLUME, Severity.WARNING,
            f"Peak volume of {peak:.0f} km/week is {ratio:.1f}x your current {baseline:.0f} km/week.",
        ))

    if goal_type != GoalType.GENERAL_FITNESS:
        target_long = peak_long_run_km or peak_long_run_target(goal_type, profile.easy_pace)
        longest = profile.longest_recent_run_km
        if longest and longest > 0 and target_long / longest > LONG_RUN_RATIO_WARNING:
            warnings.append(RealismWarning(
                RealismKind.AGGRESSIVE_LONG_RUN, Severity.WARNING,
                f"The plan builds the long run to {target_long:.1f} km, "
                f"{target_long / longest:.1f}x your longest recent run ({longest:.1f} km).",
            ))

    needed = minimum_plan_weeks(goal_type, baseline)
    if total_weeks < needed:
        short_by = needed - total_weeks
        severity = Severity.INFO if short_by <= LEAD_TIME_GRACE_WEEKS else Severity.WARNING
        warnings.append(RealismWarning(
            RealismKind.INSUFFICIENT_TIME, severity,
            f"Recommended minimum {needed} weeks for {goal_type.value} from {baseline:.0f} km/week. "
            f"You have {total_weeks} weeks.",
        ))

    if goal_type in MIN_BASELINE_KM:
        threshold, severity = MIN_BASELINE_KM[goal_type]
        if baseline < threshold:
            warnings.append(RealismWarning(
                RealismKind.LOW_BASELINE, severity,
                f"Current baseline ({baseline:.1f} km/week) is below the {threshold:.0f} km/week "
                f"recommended before {goal_type.value} training.",
            ))

    if warnings:
        logger.debug(f"Realism check for {goal_type.value}: {[w.kind.value for w in warnings]}")
    return warnings
