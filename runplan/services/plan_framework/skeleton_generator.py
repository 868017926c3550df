"""
Skeleton Generator

Main orchestrator for skeleton generation.
Turns a plan request plus athlete statistics into a week-by-week plan
skeleton: dated days with workout types and distances, no coaching text.

Steps:
1. Resolve goals and the plan calendar
2. Build the weekly and long-run progression curves
3. Classify weeks into phases
4. Lay the weekly template over every week and place races
5. Size long runs, quality sessions and easy days, each week capped by the
   volume and long run the plan actually scheduled before it
6. Ultra augmentation (back-to-backs, fueling practice)
7. Re-apply the growth ceilings to the augmented weeks
8. Multi-goal tagging, vertical gain and rationale

Usage:
    generator = SkeletonGenerator()
    skeleton = generator.generate(request, profile, today=date(2026, 1, 5))

    for week in skeleton.weeks:
        print(week.week_number, week.phase.value, week.planned_distance_km)
"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from .constants import (
    Phase,
    Priority,
    Terrain,
    WorkoutType,
    Intensity,
    BlendMode,
    QUALITY_TYPES,
    DEFAULT_INTENSITY,
    QUALITY_ROTATION,
    VERTICAL_GAIN_PER_KM,
    VERTICAL_GAIN_PHASE_MULTIPLIER,
)
from .config import SkeletonConfig
from .models import (
    AthleteProfile,
    DayDraft,
    DualGoal,
    GoalConfig,
    GoalSelection,
    PlanDraft,
    PlanRequest,
    PlanSettings,
    PlanSkeleton,
    WeekDraft,
)
from .goal_resolver import (
    resolve_goals,
    plan_start_date,
    plan_weeks,
    race_week_index,
    parse_weekday,
    parse_weekdays,
)
from .progression import ProgressionBuilder, ProgressionCurves, round_down_km, taper_sequence
from .phase_builder import PhaseBuilder, WeekPhase, PHASE_FOCUS
from .schedule_template import WeekTemplate, build_week_template
from .multi_goal import (
    MultiGoalAnalysis,
    analyze_goals,
    phase_for_week,
    tag_workout,
    week_goal_split,
)
from .volume_allocation import (
    balance_week,
    easy_run_ceiling_km,
    make_rest,
    quality_distance,
    shift_long_run_excess,
)
from .ultra import augment_for_ultra

logger = logging.getLogger(__name__)


class _VolumeHistory:
    """
    What the plan actually schedules so far, for the growth ceilings.

    Build weeks grow from the previous build week's realized volume and
    long run. Taper weeks step down from the realized peak, each below the
    week before.
    """

    def __init__(self, profile: AthleteProfile, config: SkeletonConfig,
                 taper_factors: List[float], total_weeks: int):
        self.config = config
        self.taper_factors = taper_factors
        self.first_taper = total_weeks - len(taper_factors) + 1
        self.build_km = profile.effective_baseline_km
        self.build_long_km = profile.long_run_anchor_km
        self.last_km: Optional[float] = None
        self.peak_km: Optional[float] = None

    def volume_cap(self, week_number: int, phase: Phase) -> Optional[float]:
        if week_number >= self.first_taper and self.peak_km:
            factor = self.taper_factors[week_number - self.first_taper]
            cap = min(round_down_km(self.peak_km * factor), round_down_km(self.last_km - 0.1))
            return max(0.0, cap)
        if phase in (Phase.RECOVERY, Phase.TAPER) or not self.build_km:
            return None
        return round_down_km(self.build_km * (1 + self.config.weekly_increase_percent / 100.0))

    def long_run_cap(self) -> Optional[float]:
        if not self.build_long_km:
            return None
        return round_down_km(self.build_long_km * (1 + self.config.long_run_increase_percent / 100.0))

    def record(self, week: WeekDraft):
        if week.week_number == self.first_taper - 1:
            self.peak_km = week.training_km
        if week.training_km > 0:
            self.last_km = week.training_km
        if not week.is_recovery_or_taper and not week.races:
            self.build_km = week.training_km
            if week.long_run is not None and week.long_run.km:
                self.build_long_km = week.long_run.km


class SkeletonGenerator:
    """
    Assemble plan skeletons.

    The generator is stateless between calls; the same inputs always
    produce the same skeleton.
    """

    def __init__(self, config: Optional[SkeletonConfig] = None):
        self.config = config or SkeletonConfig.from_rules()
        self.progression = ProgressionBuilder(self.config)
        self.phase_builder = PhaseBuilder()

    def generate(
        self,
        request: PlanRequest,
        profile: Optional[AthleteProfile] = None,
        today: Optional[date] = None,
        selection: Optional[GoalSelection] = None,
        analysis: Optional[MultiGoalAnalysis] = None,
    ) -> PlanSkeleton:
        """
        Generate a skeleton for a request.

        Args:
            request: Plan request from the request layer
            profile: Athlete statistics (defaults used when missing)
            today: Reference date; the plan starts on the following Monday
            selection: Pre-resolved goals (resolved from the request if omitted)
            analysis: Pre-computed multi-goal analysis for two goals

        Returns:
            Frozen PlanSkeleton
        """
        profile = profile or AthleteProfile()
        today = today or date.today()
        selection = selection or resolve_goals(request)
        anchor = selection.anchor

        start = plan_start_date(today, anchor)
        total_weeks = plan_weeks(anchor, start)
        if isinstance(selection, DualGoal) and analysis is None:
            analysis = analyze_goals(selection, start)

        curves = self.progression.build_for_goal(anchor, profile, total_weeks)
        race_in_final_week = (
            anchor.has_race and race_week_index(start, anchor.race_date) == total_weeks
        )
        week_phases = self.phase_builder.build_week_phases(
            goal_type=anchor.goal_type,
            total_weeks=total_weeks,
            taper_weeks=curves.taper_weeks,
            recovery_weeks=curves.recovery_weeks,
            race_in_final_week=race_in_final_week,
        )
        template = build_week_template(
            days_per_week=request.days_per_week,
            preferred_days=parse_weekdays(request.preferred_days),
            long_run_day=parse_weekday(request.long_run_day),
            include_speedwork=request.include_speedwork,
            include_long_runs=request.include_long_runs,
            goal_type=anchor.goal_type,
        )

        settings = self._settings(selection, analysis, start, total_weeks, template, request)
        draft = PlanDraft(settings=settings, weeks=[])
        training_targets: List[float] = []
        race_goals: Dict[date, GoalConfig] = {}

        history = self._history(profile, anchor, curves, total_weeks)
        prior: Optional[WeekDraft] = None
        for wp in week_phases:
            week, target = self._assemble_week(
                wp, start, template, curves, selection, settings.blend_mode, prior, race_goals, history
            )
            history.record(week)
            draft.weeks.append(week)
            training_targets.append(target)
            prior = week

        if anchor.is_ultra:
            augment_for_ultra(draft, anchor, week_phases, training_targets, self.config)
        self._settle_volumes(draft, profile, anchor, curves, total_weeks)

        self._separate_hard_days(draft)
        if isinstance(selection, DualGoal):
            self._tag_goals(draft, selection, analysis, race_goals)
        for week in draft.weeks:
            week.resync()
            week.vertical_gain_m = self._vertical_gain(week, anchor.terrain)
            week.rationale = self._rationale(week, total_weeks)

        skeleton = draft.freeze()
        logger.info(
            f"Generated {anchor.goal_type.value} skeleton: {total_weeks} weeks from {start}, "
            f"peak {curves.peak_weekly_km} km, long run {curves.peak_long_run_km} km"
        )
        return skeleton

    # ============ Assembly ============

    def _settings(
        self,
        selection: GoalSelection,
        analysis: Optional[MultiGoalAnalysis],
        start: date,
        total_weeks: int,
        template: WeekTemplate,
        request: PlanRequest,
    ) -> PlanSettings:
        anchor = selection.anchor
        other = selection.other if isinstance(selection, DualGoal) else None
        if other is None:
            mode = BlendMode.SINGLE
        elif analysis is not None:
            mode = analysis.mode
        else:
            mode = BlendMode.PRIMARY_SECONDARY

        return PlanSettings(
            goal_type=anchor.goal_type,
            start_date=start,
            total_weeks=total_weeks,
            days_per_week=template.days_per_week,
            preferred_days=tuple(template.run_days),
            long_run_day=template.long_run_day,
            race_date=anchor.race_date if anchor.has_race else None,
            terrain=anchor.terrain,
            include_speedwork=request.include_speedwork,
            include_long_runs=request.include_long_runs,
            secondary_goal_type=other.goal_type if other else None,
            secondary_race_date=other.race_date if other and other.has_race else None,
            blend_mode=mode,
        )

    def _assemble_week(
        self,
        wp: WeekPhase,
        start: date,
        template: WeekTemplate,
        curves: ProgressionCurves,
        selection: GoalSelection,
        mode: BlendMode,
        prior: Optional[WeekDraft],
        race_goals: Dict[date, GoalConfig],
        history: _VolumeHistory,
    ) -> Tuple[WeekDraft, float]:
        n = wp.week_number
        week_start = start + timedelta(weeks=n - 1)
        week_end = week_start + timedelta(days=6)
        target = curves.weekly_km[n - 1]
        long_km = curves.long_run_km[n - 1]
        volume_cap = history.volume_cap(n, wp.phase)
        if volume_cap is not None:
            target = min(target, volume_cap)
        long_cap = history.long_run_cap()
        if long_cap is not None:
            long_km = min(long_km, long_cap)
        anchor = selection.anchor

        days = []
        for slot in template.slots:
            wtype = slot.workout_type
            if slot.is_quality:
                wtype = self._quality_type(wp.phase, slot.quality_index, anchor.terrain)
            days.append(DayDraft(
                date=week_start + timedelta(days=slot.weekday.index),
                weekday=slot.weekday,
                workout_type=wtype,
                distance_km=None,
                intensity=DEFAULT_INTENSITY[wtype],
            ))
        week = WeekDraft(
            week_number=n,
            start_date=week_start,
            end_date=week_end,
            phase=wp.phase,
            quality_level=wp.quality_level,
            planned_distance_km=0.0,
            days=days,
        )

        training_target = target
        long_run_replaced = False
        for goal in selection.goals:
            if not goal.has_race or not (week_start <= goal.race_date <= week_end):
                continue
            race_goals[goal.race_date] = goal
            race_day = week.days[goal.race_date.weekday()]
            race_km = round(goal.race_distance_km, 1)
            full_race_week = goal is anchor or mode == BlendMode.DUAL_PEAK

            if full_race_week:
                for day in week.days:
                    if day.workout_type in QUALITY_TYPES or day.workout_type == WorkoutType.LONG_RUN:
                        day.workout_type = WorkoutType.EASY
                        day.intensity = Intensity.LOW
                index = goal.race_date.weekday()
                if index > 0:
                    make_rest(week.days[index - 1])
                training_target = round_down_km(max(
                    target - race_km,
                    target * self.config.race_week_min_training_fraction,
                ))
            elif not long_run_replaced:
                long_day = week.long_run
                if long_day is race_day or (long_day is not None and race_km >= long_km):
                    if long_day is not race_day:
                        long_day.workout_type = WorkoutType.EASY
                        long_day.intensity = Intensity.LOW
                    training_target = round_down_km(max(0.0, training_target - long_km))
                    long_run_replaced = True

            race_day.workout_type = WorkoutType.RACE
            race_day.distance_km = race_km
            race_day.is_fueling_practice = False
            if goal is not anchor and mode == BlendMode.TRAINING_RACE:
                race_day.intensity = Intensity.MODERATE
            else:
                race_day.intensity = Intensity.HIGH

        long_day = week.long_run
        if long_day is not None:
            share = self.config.share_cap(anchor.goal_type)
            long_day.distance_km = min(long_km, round_down_km(training_target * share))

        anchor_km = week.anchor_km
        for i, day in enumerate(week.days):
            if day.workout_type not in QUALITY_TYPES:
                continue
            prior_day = prior.days[i] if prior is not None else None
            prior_km = prior_day.km if prior_day and prior_day.workout_type in QUALITY_TYPES else None
            day.distance_km = quality_distance(target, wp.phase, prior_km, anchor_km, self.config)
            if wp.phase in (Phase.RECOVERY, Phase.TAPER):
                day.intensity = Intensity.MODERATE

        balance_week(week, training_target, anchor.goal_type, self.config)
        self._hold_long_run_share(week, anchor.goal_type)
        return week, training_target

    def _history(
        self,
        profile: AthleteProfile,
        anchor: GoalConfig,
        curves: ProgressionCurves,
        total_weeks: int,
    ) -> _VolumeHistory:
        factors = taper_sequence(anchor.goal_type, curves.taper_weeks)
        return _VolumeHistory(profile, self.config, factors, total_weeks)

    def _hold_long_run_share(self, week: WeekDraft, goal_type):
        """A week that fell short of its target may need a shorter long run."""
        shift_long_run_excess(
            week,
            self.config.share_cap(goal_type),
            easy_run_ceiling_km(goal_type),
            self.config.back_to_back_fraction,
        )

    def _settle_volumes(
        self,
        draft: PlanDraft,
        profile: AthleteProfile,
        anchor: GoalConfig,
        curves: ProgressionCurves,
        total_weeks: int,
    ):
        """
        Re-apply the growth ceilings to the realized weeks.

        Ultra augmentation can move a week off its target after the weeks
        around it were sized. Works forward, so lowering one week only
        tightens the weeks after it.
        """
        history = self._history(profile, anchor, curves, total_weeks)
        share = self.config.share_cap(anchor.goal_type)

        for week in draft.weeks:
            target = week.training_km
            long_run = week.long_run
            refit = False

            volume_cap = history.volume_cap(week.week_number, week.phase)
            if volume_cap is not None and target > volume_cap + 0.05:
                target = volume_cap
                refit = True
            long_cap = history.long_run_cap()
            if long_run is not None and long_cap is not None and long_run.km > long_cap + 0.05:
                long_run.distance_km = long_cap
                refit = True

            if refit:
                logger.debug(f"Week {week.week_number}: refit to {target} km")
                if long_run is not None:
                    long_run.distance_km = min(long_run.km, round_down_km(target * share))
                balance_week(week, target, anchor.goal_type, self.config)
            self._hold_long_run_share(week, anchor.goal_type)
            history.record(week)

    @staticmethod
    def _quality_type(phase: Phase, index: int, terrain: Terrain) -> WorkoutType:
        rotation = QUALITY_ROTATION[phase]
        if terrain != Terrain.ROAD and index == 1 and phase in (Phase.BUILD2_SPECIFIC, Phase.PEAK):
            return WorkoutType.HILLS
        return rotation[index % len(rotation)]

    @staticmethod
    def _separate_hard_days(draft: PlanDraft):
        """No two high-intensity days in a row, across week boundaries too."""
        days = [d for w in draft.weeks for d in w.days]
        for prev, day in zip(days, days[1:]):
            if prev.intensity != Intensity.HIGH or day.intensity != Intensity.HIGH:
                continue
            target = prev if day.is_race else day
            target.intensity = Intensity.MODERATE
            logger.debug(f"{target.date}: {target.workout_type.value} eased next to a hard day")

    # ============ Annotation ============

    @staticmethod
    def _tag_goals(
        draft: PlanDraft,
        goals: DualGoal,
        analysis: Optional[MultiGoalAnalysis],
        race_goals: Dict[date, GoalConfig],
    ):
        timeline = analysis.timeline if analysis else None
        for week in draft.weeks:
            phase = phase_for_week(timeline, week.week_number)
            split = phase.goal_split if phase else None
            tags = []
            for day in week.days:
                if day.is_race and day.date in race_goals:
                    raced = race_goals[day.date].priority
                    tag = {p: (100 if p == raced else 0) for p in (Priority.PRIMARY, Priority.SECONDARY)}
                else:
                    tag = tag_workout(day.workout_type, split, goals)
                day.goal_contribution = tag
                if not day.is_rest:
                    tags.append(tag)
            week.goal_split = week_goal_split(phase, tags) or None

    @staticmethod
    def _vertical_gain(week: WeekDraft, terrain: Terrain) -> Optional[int]:
        per_km = VERTICAL_GAIN_PER_KM.get(terrain)
        if not per_km:
            return None
        multiplier = VERTICAL_GAIN_PHASE_MULTIPLIER.get(week.phase, 1.0)
        return int(round(week.training_km * per_km * multiplier))

    @staticmethod
    def _rationale(week: WeekDraft, total_weeks: int) -> str:
        parts = [
            f"Week {week.week_number} of {total_weeks}, "
            f"{week.phase.value.replace('_', ' ')}: {PHASE_FOCUS[week.phase].lower()}."
        ]
        races = week.races
        if races:
            parts.append(" ".join(f"Race day {d.date.isoformat()} ({d.km} km)." for d in races))
        elif week.long_run is not None:
            parts.append(f"Long run {week.long_run.km} km.")
        if week.phase == Phase.RECOVERY:
            parts.append("Reduced volume to absorb the previous weeks.")
        if any(d.is_back_to_back for d in week.days):
            parts.append("Back-to-back long runs.")
        parts.append(f"{week.planned_distance_km} km planned.")
        return " ".join(parts)
