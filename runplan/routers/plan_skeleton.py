"""
Plan Skeleton API Router (v2)

Thin HTTP layer over the plan framework.

Endpoints for:
- Skeleton generation (resolve -> analyze -> generate -> guardrails)
- Guardrail validation of an externally edited skeleton
- Multi-goal conflict analysis
"""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from fastapi import APIRouter

from runplan.core.exceptions import PlanRejectedError, ValidationError
from runplan.schemas import ConflictRequest, SkeletonRequest, ValidateSkeletonRequest
from runplan.services.plan_framework import (
    AthleteProfile,
    ConflictType,
    DualGoal,
    GoalConfig,
    MultiGoalAnalysis,
    PlanRequest,
    PlanSkeleton,
    SkeletonGenerator,
    TrainingGuardrails,
    analyze_goals,
    assess_realism,
    plan_start_date,
    plan_weeks,
    resolve_goals,
)
from runplan.services.plan_framework.constants import MIN_BASELINE_KM, MIN_PLAN_WEEKS, Severity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v2/plans", tags=["Plan Skeleton"])


def _hard_errors(
    anchor: GoalConfig,
    profile: AthleteProfile,
    total_weeks: int,
    analysis: Optional[MultiGoalAnalysis],
) -> List[str]:
    """Problems that block generation unless the athlete accepts them."""
    errors = []
    min_weeks = MIN_PLAN_WEEKS[anchor.goal_type]
    if total_weeks < min_weeks:
        errors.append(
            f"Only {total_weeks} weeks until the {anchor.goal_type.value}; "
            f"at least {min_weeks} are recommended."
        )

    if analysis is not None:
        errors.extend(c.message for c in analysis.conflicts if c.type == ConflictType.SAME_DATE)

    if anchor.goal_type in MIN_BASELINE_KM:
        threshold, severity = MIN_BASELINE_KM[anchor.goal_type]
        baseline = profile.effective_baseline_km
        if severity == Severity.ERROR and baseline < threshold:
            errors.append(
                f"Current baseline ({baseline:.1f} km/week) is too low for {anchor.goal_type.value} "
                f"training; build to {threshold:.0f}+ km/week first."
            )
    return errors


@router.post("/skeleton", response_model=Dict[str, Any])
async def create_skeleton(request: SkeletonRequest):
    """
    Generate a plan skeleton and run it through the guardrails.

    Hard errors answer 422 unless accept_warnings is set.
    """
    plan_request: PlanRequest = request.to_plan_request()
    profile = request.profile.to_profile() if request.profile else AthleteProfile()
    today = request.today or date.today()

    selection = resolve_goals(plan_request)
    anchor = selection.anchor
    start = plan_start_date(today, anchor)
    total_weeks = plan_weeks(anchor, start)
    analysis = analyze_goals(selection, start) if isinstance(selection, DualGoal) else None

    hard_errors = _hard_errors(anchor, profile, total_weeks, analysis)
    if hard_errors and not request.accept_warnings:
        logger.info(f"Skeleton request rejected: {hard_errors}")
        raise PlanRejectedError(hard_errors)

    skeleton = SkeletonGenerator().generate(
        plan_request, profile, today, selection=selection, analysis=analysis
    )
    validation = TrainingGuardrails().validate(skeleton, profile)
    corrected = validation.corrected

    long_runs = [km for km in corrected.long_runs if km]
    realism = assess_realism(
        anchor,
        profile,
        corrected.total_weeks,
        peak_weekly_km=max(corrected.weekly_volumes) if corrected.weeks else None,
        peak_long_run_km=max(long_runs) if long_runs else None,
    )

    return {
        "skeleton": corrected.to_dict(),
        "validation": validation.to_dict(),
        "realism": [w.to_dict() for w in realism],
        "conflicts": analysis.to_dict() if analysis else None,
        "accepted_errors": hard_errors,
    }


@router.post("/skeleton/validate", response_model=Dict[str, Any])
async def validate_skeleton(request: ValidateSkeletonRequest):
    """Run the guardrails over an externally modified skeleton."""
    try:
        skeleton = PlanSkeleton.from_dict(request.skeleton)
    except (KeyError, ValueError, TypeError) as e:
        raise ValidationError(f"Invalid skeleton: {e}", field="skeleton")

    profile = request.profile.to_profile() if request.profile else None
    validation = TrainingGuardrails().validate(skeleton, profile)
    return {
        "skeleton": validation.corrected.to_dict(),
        "validation": validation.to_dict(),
    }


@router.post("/conflicts", response_model=Dict[str, Any])
async def analyze_conflicts(request: ConflictRequest):
    """Multi-goal conflict analysis and phase timeline."""
    plan_request = PlanRequest(goals=[g.to_goal_request() for g in request.goals])
    selection = resolve_goals(plan_request)
    if not isinstance(selection, DualGoal):
        raise ValidationError("Two goals are required", field="goals")

    start = plan_start_date(request.today or date.today(), selection.anchor)
    analysis = analyze_goals(selection, start)
    return {
        "start_date": start.isoformat(),
        **analysis.to_dict(),
    }
