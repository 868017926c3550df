"""
Phase Builder

Classifies every plan week into a training phase and assigns a quality
level (1-5).

State machine over the week index (B = build weeks):
- weeks after B          -> taper
- week B                 -> peak
- flagged recovery weeks -> recovery
- first few weeks        -> base
- the interior           -> build (two quality steps), and for ultras the
                            tail of the interior is build2_specific

Quality level only scales how demanding the coached content should read;
it never changes distance.

Usage:
    builder = PhaseBuilder()
    weeks = builder.build_week_phases(
        goal_type=GoalType.MARATHON,
        total_weeks=16,
        taper_weeks=3,
        recovery_weeks=[4, 8, 12],
    )
"""

import math
from typing import List, Iterable
from dataclasses import dataclass

from .constants import GoalType, Phase, ULTRA_GOALS


@dataclass
class WeekPhase:
    week_number: int
    phase: Phase
    quality_level: int


@dataclass
class TrainingPhase:
    """A contiguous run of weeks sharing a phase."""
    name: str
    phase_type: Phase
    weeks: List[int]  # Week numbers (1-indexed)
    focus: str


PHASE_FOCUS = {
    Phase.BASE: "Aerobic foundation and durability",
    Phase.BUILD: "Progressive volume with threshold and VO2 work",
    Phase.BUILD2_SPECIFIC: "Race-specific endurance, terrain and fueling",
    Phase.PEAK: "Highest load before the taper",
    Phase.RECOVERY: "Absorb training, reduced volume",
    Phase.TAPER: "Shed fatigue, keep sharpness",
}


class PhaseBuilder:
    """Build the week-by-week phase structure for a plan."""

    def build_week_phases(
        self,
        goal_type: GoalType,
        total_weeks: int,
        taper_weeks: int,
        recovery_weeks: Iterable[int] = (),
        race_in_final_week: bool = False,
    ) -> List[WeekPhase]:
        build_weeks = max(1, total_weeks - taper_weeks)
        recovery = set(recovery_weeks)

        base_len = min(3, max(1, build_weeks // 4))
        base_end = min(base_len, build_weeks - 1)
        interior = list(range(base_end + 1, build_weeks))

        specific_start = build_weeks  # none
        if goal_type in ULTRA_GOALS and len(interior) >= 2:
            specific_len = max(1, int(round(len(interior) * 0.4)))
            specific_start = interior[-specific_len]

        build_only = [w for w in interior if w < specific_start and w not in recovery]
        split_index = (len(build_only) + 1) // 2
        build_split = build_only[split_index] if split_index < len(build_only) else None

        phases: List[WeekPhase] = []
        for week in range(1, total_weeks + 1):
            if week > build_weeks:
                taper_index = week - build_weeks
                if race_in_final_week and week == total_weeks:
                    level = 1
                else:
                    level = 3 if taper_index == 1 else 2
                phases.append(WeekPhase(week, Phase.TAPER, level))
            elif week == build_weeks:
                phases.append(WeekPhase(week, Phase.PEAK, 5))
            elif week in recovery:
                phases.append(WeekPhase(week, Phase.RECOVERY, 1))
            elif week <= base_end:
                phases.append(WeekPhase(week, Phase.BASE, 1))
            elif week >= specific_start:
                phases.append(WeekPhase(week, Phase.BUILD2_SPECIFIC, 4))
            else:
                level = 3 if build_split is not None and week >= build_split else 2
                phases.append(WeekPhase(week, Phase.BUILD, level))

        return phases

    def build_phases(self, week_phases: List[WeekPhase]) -> List[TrainingPhase]:
        """Group consecutive weeks with the same phase."""
        groups: List[TrainingPhase] = []
        for wp in week_phases:
            if groups and groups[-1].phase_type == wp.phase:
                groups[-1].weeks.append(wp.week_number)
                continue
            groups.append(TrainingPhase(
                name=wp.phase.value.replace("_", " ").title(),
                phase_type=wp.phase,
                weeks=[wp.week_number],
                focus=PHASE_FOCUS[wp.phase],
            ))
        return groups

    def get_phase_for_week(self, week_phases: List[WeekPhase], week: int) -> WeekPhase:
        """Get the phase for a specific week."""
        for wp in week_phases:
            if wp.week_number == week:
                return wp
        return week_phases[-1]  # Default to last week

    @staticmethod
    def specific_phase_weeks(week_phases: List[WeekPhase]) -> List[int]:
        """Weeks in build2_specific or peak (where ultra augmentation applies)."""
        return [
            wp.week_number for wp in week_phases
            if wp.phase in (Phase.BUILD2_SPECIFIC, Phase.PEAK)
        ]


def fueling_start_week(week_phases: List[WeekPhase], start_fraction: float) -> int:
    """First week of fueling practice: a fraction of the way into the specific phase."""
    specific = [wp.week_number for wp in week_phases if wp.phase == Phase.BUILD2_SPECIFIC]
    if not specific:
        peaks = [wp.week_number for wp in week_phases if wp.phase == Phase.PEAK]
        return peaks[0] if peaks else len(week_phases) + 1
    offset = int(math.floor(len(specific) * max(0.0, min(1.0, start_fraction))))
    offset = min(offset, len(specific) - 1)
    return specific[offset]
