"""
Multi-Goal Conflict Analyzer

Blends two race goals into one timeline.

Conflict rules (gap measured in weeks between the two race dates):
- identical dates                       -> same_date error, no timeline
- gap < first taper + first peak + 2    -> too_close error, run the earlier
                                           race as a training race
- gap < first taper + second min build  -> insufficient_rebuild warning
- overlapping taper windows             -> taper_overlap warning

Blend modes:
- dual_peak: two full arcs joined by a 2-week recovery/transition
- primary_secondary: one arc, key workouts split between the goals
- training_race: one arc, the earlier race is run as a hard training day

Usage:
    analysis = analyze_goals(DualGoal(primary, secondary), start=date(2026, 3, 2))
    if analysis.has_errors:
        ...
    phase = phase_for_week(analysis.timeline, 7)
"""

import math
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Any

from .constants import (
    GoalType,
    Phase,
    Priority,
    WorkoutType,
    BlendMode,
    ConflictType,
    Severity,
    TAPER_WEEKS,
    PEAK_WEEKS,
    MIN_BUILD_WEEKS,
)
from .models import ConflictWarning, DualGoal, GoalConfig
from .goal_resolver import plan_weeks, race_week_index

logger = logging.getLogger(__name__)


GOAL_LABELS = {
    GoalType.FIVE_K: "5K",
    GoalType.TEN_K: "10K",
    GoalType.HALF_MARATHON: "Half Marathon",
    GoalType.MARATHON: "Marathon",
    GoalType.FIFTY_K: "50K",
    GoalType.FIFTY_MILE: "50 Mile",
    GoalType.HUNDRED_K: "100K",
    GoalType.HUNDRED_MILE: "100 Mile",
    GoalType.GENERAL_FITNESS: "General Fitness",
}

RECOVERY_TRANSITION_WEEKS = 2


@dataclass
class TimelinePhase:
    phase: Phase
    start_week: int
    end_week: int
    goal_split: Dict[Priority, int]
    focus: Priority
    description: str = ""

    def contains(self, week_number: int) -> bool:
        return self.start_week <= week_number <= self.end_week

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "start_week": self.start_week,
            "end_week": self.end_week,
            "goal_split": {k.value: v for k, v in self.goal_split.items()},
            "focus": self.focus.value,
            "description": self.description,
        }


@dataclass
class MultiGoalAnalysis:
    mode: BlendMode
    total_weeks: int
    gap_weeks: Optional[int] = None
    conflicts: List[ConflictWarning] = field(default_factory=list)
    timeline: Optional[List[TimelinePhase]] = None

    @property
    def has_errors(self) -> bool:
        return any(c.severity == Severity.ERROR for c in self.conflicts)

    @property
    def can_dual_peak(self) -> bool:
        return self.mode == BlendMode.DUAL_PEAK

    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "total_weeks": self.total_weeks,
            "gap_weeks": self.gap_weeks,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "timeline": [p.to_dict() for p in self.timeline] if self.timeline is not None else None,
        }


def gap_in_weeks(first: date, second: date) -> int:
    return int(math.ceil(abs((second - first).days) / 7))


def analyze_goals(goals: DualGoal, start: date) -> MultiGoalAnalysis:
    """Detect conflicts between two goals and pick a blending strategy."""
    primary, secondary = goals.primary, goals.secondary
    total_weeks = plan_weeks(goals.anchor, start)

    if not (primary.has_race and secondary.has_race):
        mode = BlendMode.PRIMARY_SECONDARY
        return MultiGoalAnalysis(
            mode=mode,
            total_weeks=total_weeks,
            timeline=_single_arc_timeline(goals, total_weeks),
        )

    first, second = goals.by_date
    gap = gap_in_weeks(first.race_date, second.race_date)
    conflicts: List[ConflictWarning] = []

    if first.race_date == second.race_date:
        conflicts.append(ConflictWarning(
            type=ConflictType.SAME_DATE,
            severity=Severity.ERROR,
            message="Both goals fall on the same date.",
            recommendation="Choose one race for this date, or move the secondary goal to a different event.",
        ))
        logger.info("Multi-goal analysis: identical race dates")
        return MultiGoalAnalysis(
            mode=BlendMode.SINGLE,
            total_weeks=total_weeks,
            gap_weeks=0,
            conflicts=conflicts,
            timeline=None,
        )

    first_taper = TAPER_WEEKS[first.goal_type]
    first_peak = PEAK_WEEKS[first.goal_type]
    second_taper = TAPER_WEEKS[second.goal_type]
    first_label = GOAL_LABELS[first.goal_type]
    second_label = GOAL_LABELS[second.goal_type]

    min_gap = first_taper + first_peak + 2
    too_close = gap < min_gap
    if too_close:
        conflicts.append(ConflictWarning(
            type=ConflictType.TOO_CLOSE,
            severity=Severity.ERROR,
            message=(
                f"Only {gap} weeks between the {first_label} and the {second_label}; "
                f"at least {min_gap} are needed to taper, race and rebuild."
            ),
            recommendation=(
                f"Run the {first_label} as a training race (B-race) at controlled effort "
                f"and keep the full taper for the {second_label}."
            ),
        ))
    elif gap < first_taper + MIN_BUILD_WEEKS[second.goal_type]:
        conflicts.append(ConflictWarning(
            type=ConflictType.INSUFFICIENT_REBUILD,
            severity=Severity.WARNING,
            message=(
                f"{gap} weeks leaves little room to rebuild for the {second_label} "
                f"after racing the {first_label}."
            ),
            recommendation=(
                f"Expect a compressed build for the {second_label}; "
                f"keep the {first_label} effort conservative."
            ),
        ))

    overlap = first_taper + second_taper - gap
    if overlap > 0 and not too_close:
        conflicts.append(ConflictWarning(
            type=ConflictType.TAPER_OVERLAP,
            severity=Severity.WARNING,
            message=f"The two taper windows overlap by {overlap} week(s).",
            recommendation=f"The {second_label} taper will be shortened.",
        ))

    dual_peak_gap = (
        first_taper + first_peak + MIN_BUILD_WEEKS[second.goal_type] + second_taper + 4
    )
    if gap >= dual_peak_gap:
        mode = BlendMode.DUAL_PEAK
    elif too_close:
        mode = BlendMode.TRAINING_RACE
    else:
        mode = BlendMode.PRIMARY_SECONDARY

    if mode == BlendMode.DUAL_PEAK:
        timeline = _dual_peak_timeline(goals, start, total_weeks)
    else:
        timeline = _single_arc_timeline(goals, total_weeks)

    logger.info(
        f"Multi-goal analysis: {first.goal_type.value} -> {second.goal_type.value}, "
        f"gap {gap}w, mode {mode.value}, {len(conflicts)} conflicts"
    )
    return MultiGoalAnalysis(
        mode=mode,
        total_weeks=total_weeks,
        gap_weeks=gap,
        conflicts=conflicts,
        timeline=timeline,
    )


def _split(goals: DualGoal, first: GoalConfig, first_pct: int) -> Dict[Priority, int]:
    """Express a first-race/second-race split as a priority split."""
    if first is goals.primary:
        return {Priority.PRIMARY: first_pct, Priority.SECONDARY: 100 - first_pct}
    return {Priority.PRIMARY: 100 - first_pct, Priority.SECONDARY: first_pct}


def _dual_peak_timeline(goals: DualGoal, start: date, total_weeks: int) -> List[TimelinePhase]:
    first, second = goals.by_date
    first_race_week = max(1, min(total_weeks, race_week_index(start, first.race_date)))
    second_race_week = max(1, min(total_weeks, race_week_index(start, second.race_date)))

    first_build_end = first_race_week - TAPER_WEEKS[first.goal_type]
    first_peak_start = first_build_end - PEAK_WEEKS[first.goal_type]
    second_build_start = first_race_week + RECOVERY_TRANSITION_WEEKS + 1
    second_build_end = second_race_week - TAPER_WEEKS[second.goal_type]
    base_end = max(2, int(math.floor(first_peak_start * 0.3)))

    first_focus = first.priority
    second_focus = second.priority
    first_label = GOAL_LABELS[first.goal_type]
    second_label = GOAL_LABELS[second.goal_type]

    phases = [TimelinePhase(
        Phase.BASE, 1, base_end, _split(goals, first, 50), first_focus,
        f"Shared base for the {first_label} and {second_label}",
    )]
    if first_peak_start > base_end + 1:
        phases.append(TimelinePhase(
            Phase.BUILD, base_end + 1, first_peak_start, _split(goals, first, 65), first_focus,
            f"Build toward the {first_label} with {second_label} maintenance",
        ))
    phases.append(TimelinePhase(
        Phase.PEAK, first_peak_start + 1, first_build_end, _split(goals, first, 80), first_focus,
        f"Peak training for the {first_label}",
    ))
    phases.append(TimelinePhase(
        Phase.TAPER, first_build_end + 1, first_race_week, _split(goals, first, 90), first_focus,
        f"Taper for the {first_label}",
    ))
    if second_build_start <= second_build_end:
        phases.append(TimelinePhase(
            Phase.RECOVERY, first_race_week + 1, second_build_start - 1,
            _split(goals, first, 10), second_focus,
            f"Recover from the {first_label}, transition to the {second_label}",
        ))
        phases.append(TimelinePhase(
            Phase.BUILD2_SPECIFIC, second_build_start, second_build_end,
            _split(goals, first, 15), second_focus,
            f"Race-specific build for the {second_label}",
        ))
    if second_race_week > second_build_end:
        phases.append(TimelinePhase(
            Phase.TAPER, second_build_end + 1, min(second_race_week, total_weeks),
            _split(goals, first, 5), second_focus,
            f"Taper for the {second_label}",
        ))

    return [p for p in phases if p.start_week <= p.end_week and p.start_week <= total_weeks]


def _single_arc_timeline(goals: DualGoal, total_weeks: int) -> List[TimelinePhase]:
    primary, secondary = goals.primary, goals.secondary
    anchor_type = goals.anchor.goal_type
    taper = min(TAPER_WEEKS[anchor_type], max(total_weeks - 1, 0))
    build_weeks = total_weeks - taper
    base_end = max(2, int(math.floor(build_weeks * 0.2)))
    peak_start = build_weeks - PEAK_WEEKS[anchor_type]

    complementary = (
        (primary.is_speed_goal and secondary.is_endurance_goal)
        or (primary.is_endurance_goal and secondary.is_speed_goal)
    )
    build_primary = 60 if complementary else 65
    label = GOAL_LABELS[primary.goal_type]

    def split(pct: int) -> Dict[Priority, int]:
        return {Priority.PRIMARY: pct, Priority.SECONDARY: 100 - pct}

    phases = [
        TimelinePhase(Phase.BASE, 1, base_end, split(50), Priority.PRIMARY,
                      f"Shared aerobic base for the {label} and {GOAL_LABELS[secondary.goal_type]}"),
        TimelinePhase(Phase.BUILD, base_end + 1, peak_start, split(build_primary), Priority.PRIMARY,
                      "Complementary speed and endurance build" if complementary
                      else f"Progressive build with {label} emphasis"),
    ]
    if peak_start < build_weeks:
        phases.append(TimelinePhase(Phase.PEAK, peak_start + 1, build_weeks, split(75),
                                    Priority.PRIMARY, f"Peak training focused on the {label}"))
    phases.append(TimelinePhase(Phase.TAPER, build_weeks + 1, total_weeks, split(85),
                                Priority.PRIMARY, "Taper"))

    return [p for p in phases if p.start_week <= p.end_week and p.start_week <= total_weeks]


def phase_for_week(timeline: Optional[List[TimelinePhase]], week_number: int) -> Optional[TimelinePhase]:
    if not timeline:
        return None
    for phase in timeline:
        if phase.contains(week_number):
            return phase
    return None


def tag_workout(
    workout_type: WorkoutType,
    phase_split: Optional[Dict[Priority, int]],
    goals: DualGoal,
) -> Dict[Priority, int]:
    """Per-goal contribution of one workout, in percent."""
    primary, secondary = goals.primary, goals.secondary
    default = dict(phase_split) if phase_split else {Priority.PRIMARY: 60, Priority.SECONDARY: 40}

    if workout_type in (WorkoutType.REST, WorkoutType.CROSS_TRAINING):
        return {Priority.PRIMARY: 50, Priority.SECONDARY: 50}

    if workout_type in (WorkoutType.TEMPO, WorkoutType.INTERVALS, WorkoutType.FARTLEK):
        if primary.is_speed_goal:
            return {Priority.PRIMARY: 80, Priority.SECONDARY: 20}
        if secondary.is_speed_goal:
            return {Priority.PRIMARY: 20, Priority.SECONDARY: 80}
        return default

    if workout_type in (WorkoutType.LONG_RUN, WorkoutType.BACK_TO_BACK_LONG):
        if primary.is_endurance_goal:
            return {Priority.PRIMARY: 80, Priority.SECONDARY: 20}
        if secondary.is_endurance_goal:
            return {Priority.PRIMARY: 30, Priority.SECONDARY: 70}
        return default

    if workout_type in (WorkoutType.HILLS, WorkoutType.PROGRESSION):
        return {Priority.PRIMARY: 50, Priority.SECONDARY: 50}

    if workout_type == WorkoutType.FUELING_PRACTICE:
        if primary.is_endurance_goal or not secondary.is_endurance_goal:
            return {Priority.PRIMARY: 90, Priority.SECONDARY: 10}
        return {Priority.PRIMARY: 10, Priority.SECONDARY: 90}

    return default


def week_goal_split(
    phase: Optional[TimelinePhase],
    tags: List[Dict[Priority, int]],
) -> Dict[Priority, int]:
    """Average the workout tags of a week (falls back to the phase split)."""
    if phase is None:
        return {}
    if not tags:
        return dict(phase.goal_split)

    totals: Dict[Priority, float] = {}
    for tag in tags:
        for priority, pct in tag.items():
            totals[priority] = totals.get(priority, 0) + pct
    return {priority: int(round(total / len(tags))) for priority, total in totals.items()}
