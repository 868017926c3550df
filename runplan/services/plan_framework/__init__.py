# Plan Framework
#
# Deterministic, periodized training-plan skeletons.
#
# Architecture:
# - Goal resolution and plan calendar
# - Multi-goal conflict analysis and phase timelines
# - Weekly / long-run progression curves
# - Weekly schedule template and skeleton assembly
# - Independent guardrail pass with automatic correction
# - Config-driven business rules (rules/plan_rules.yaml)
#
# Coaching text is added afterwards through the enrichment contract.

from .config import ConfigService, SkeletonConfig, GuardrailConfig
from .constants import (
    GoalType,
    Priority,
    Terrain,
    Phase,
    WorkoutType,
    Intensity,
    Weekday,
    BlendMode,
    ConflictType,
    CorrectionType,
    Severity,
)
from .models import (
    AthleteProfile,
    GoalConfig,
    GoalRequest,
    PlanRequest,
    SingleGoal,
    DualGoal,
    SkeletonDay,
    SkeletonWeek,
    PlanSettings,
    PlanSkeleton,
    ConflictWarning,
    CorrectionAction,
    ValidationResult,
)
from .goal_resolver import resolve_goals, plan_start_date, plan_weeks
from .multi_goal import MultiGoalAnalysis, TimelinePhase, analyze_goals, tag_workout, week_goal_split
from .progression import ProgressionBuilder, ProgressionCurves
from .phase_builder import PhaseBuilder, TrainingPhase, WeekPhase
from .schedule_template import WeekTemplate, build_week_template
from .skeleton_generator import SkeletonGenerator
from .ultra import augment_for_ultra
from .guardrails import TrainingGuardrails, minimum_plan_weeks
from .realism import RealismWarning, RealismKind, assess_realism
from .enrichment import (
    EnrichmentClient,
    EnrichmentError,
    EnrichmentProgress,
    EnrichedWorkout,
    ProgressChannel,
    Subscription,
    apply_enrichment,
    build_enrichment_request,
    enrich_skeleton,
)

__all__ = [
    # Config
    'ConfigService',
    'SkeletonConfig',
    'GuardrailConfig',

    # Enums
    'GoalType',
    'Priority',
    'Terrain',
    'Phase',
    'WorkoutType',
    'Intensity',
    'Weekday',
    'BlendMode',
    'ConflictType',
    'CorrectionType',
    'Severity',

    # Models
    'AthleteProfile',
    'GoalConfig',
    'GoalRequest',
    'PlanRequest',
    'SingleGoal',
    'DualGoal',
    'SkeletonDay',
    'SkeletonWeek',
    'PlanSettings',
    'PlanSkeleton',
    'ConflictWarning',
    'CorrectionAction',
    'ValidationResult',

    # Generator components
    'resolve_goals',
    'plan_start_date',
    'plan_weeks',
    'MultiGoalAnalysis',
    'TimelinePhase',
    'analyze_goals',
    'tag_workout',
    'week_goal_split',
    'ProgressionBuilder',
    'ProgressionCurves',
    'PhaseBuilder',
    'TrainingPhase',
    'WeekPhase',
    'WeekTemplate',
    'build_week_template',
    'augment_for_ultra',

    # Main generator and guardrails
    'SkeletonGenerator',
    'TrainingGuardrails',
    'minimum_plan_weeks',
    'RealismWarning',
    'RealismKind',
    'assess_realism',

    # Enrichment contract
    'EnrichmentClient',
    'EnrichmentError',
    'EnrichmentProgress',
    'EnrichedWorkout',
    'ProgressChannel',
    'Subscription',
    'apply_enrichment',
    'build_enrichment_request',
    'enrich_skeleton',
]
