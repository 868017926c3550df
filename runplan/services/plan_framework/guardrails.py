"""
Training Guardrails

Hard safety rules enforced independently of the generation heuristics.
Every violation is either corrected automatically (and recorded) or
reported as a warning / error.

Checks, in order:
1. Workout caps: hierarchy under the long run, back-to-back, easy-run
   ceiling and floor, absolute workout ceiling
2. Weekly growth: <= 12% over the previous build week
3. Long-run share of the week's training volume, excess moved to easy days
4. Recovery cadence: a recovery week at least every 4th build week
5. Taper: exactly the trailing N weeks, strictly decreasing
6. Intensity: rest days, hard-day count, no back-to-back hard days
7. Timeline and starting volume (errors / warnings only)
8. Peak long run for marathon / half marathon
9. Long-run growth: <= 15% over the previous build long run

The ordered sequence repeats until a sweep makes no corrections, so
validating the output again is a no-op.

Usage:
    guardrails = TrainingGuardrails()
    result = guardrails.validate(skeleton, profile)

    if not result.passed:
        print(result.summary())
    safe_skeleton = result.corrected    # the input skeleton is untouched
"""

import logging
from typing import List, Optional

from .constants import (
    GoalType,
    Phase,
    WorkoutType,
    Intensity,
    CorrectionType,
    Severity,
    FILLER_TYPES,
    PROTECTED_HARD_TYPES,
    RACE_DISTANCE_KM,
    TAPER_WEEKS,
    MIN_PLAN_WEEKS,
    MIN_BASELINE_KM,
    MINIMUM_PLAN_TARGET_KM,
    DEFAULT_EASY_PACE_MIN_PER_KM,
)
from .config import GuardrailConfig
from .models import (
    AthleteProfile,
    CorrectionAction,
    DayDraft,
    PlanDraft,
    PlanSkeleton,
    ValidationResult,
    WeekDraft,
)
from .progression import (
    round_down_km,
    round_up_km,
    peak_long_run_target,
    effective_taper_weeks,
    taper_sequence,
)
from .volume_allocation import (
    easy_run_ceiling_km,
    filler_floor_km,
    is_back_to_back_day,
    make_rest,
    shift_long_run_excess,
)

logger = logging.getLogger(__name__)

TOLERANCE_KM = 0.05
PEAK_LONG_RUN_GOALS = (GoalType.MARATHON, GoalType.HALF_MARATHON)

# Weeks of race-specific work when the athlete already runs the target volume
AT_TARGET_PLAN_WEEKS = {
    GoalType.MARATHON: 12,
    GoalType.HALF_MARATHON: 10,
    GoalType.FIFTY_K: 12,
    GoalType.FIFTY_MILE: 14,
    GoalType.HUNDRED_K: 16,
    GoalType.HUNDRED_MILE: 18,
}


def minimum_plan_weeks(goal_type: GoalType, baseline_km: float) -> int:
    """
    Shortest sensible plan for a goal from the current weekly volume.

    Grows volume 10% per week toward the goal's weekly target, with a
    recovery week every 4th week, then adds the taper.
    """
    target = MINIMUM_PLAN_TARGET_KM[goal_type]
    if baseline_km >= target:
        return AT_TARGET_PLAN_WEEKS.get(goal_type, 6)

    weeks = 0
    volume = max(baseline_km, 10.0)
    while volume < target and weeks < 52:
        volume *= 1.10
        weeks += 1
        if weeks % 4 == 0:
            weeks += 1

    return weeks + max(TAPER_WEEKS[goal_type], 1)


class _Sweep:
    """Collects the outcome of a validation run across sweeps."""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.corrections: List[CorrectionAction] = []

    def error(self, message: str):
        if message not in self.errors:
            self.errors.append(message)

    def warn(self, message: str):
        if message not in self.warnings:
            self.warnings.append(message)

    def correct(self, type: CorrectionType, week: int, original, corrected, reason: str, day=None):
        action = CorrectionAction(
            type=type,
            week_number=week,
            original_value=original,
            corrected_value=corrected,
            reason=reason,
            day=day,
        )
        self.corrections.append(action)
        logger.info(f"Guardrail correction [{type.value}] week {week}: {reason}")


def _changed(original, corrected) -> bool:
    if isinstance(original, (int, float)) and isinstance(corrected, (int, float)):
        return abs(corrected - original) >= TOLERANCE_KM
    return original != corrected


def _is_build_week(week: WeekDraft) -> bool:
    return not week.is_recovery_or_taper and not week.races


class TrainingGuardrails:
    """
    Validate and auto-correct plan skeletons.

    Never raises for unsafe plans; the caller decides what an error means.
    """

    def __init__(self, config: Optional[GuardrailConfig] = None):
        self.config = config or GuardrailConfig.from_rules()

    def validate(
        self,
        skeleton: PlanSkeleton,
        profile: Optional[AthleteProfile] = None,
    ) -> ValidationResult:
        """
        Run all checks and return the corrected copy.

        Args:
            skeleton: Plan to check (not modified)
            profile: Athlete statistics; enables baseline-relative checks

        Returns:
            ValidationResult with the corrected skeleton and its audit trail
        """
        draft = skeleton.to_draft()
        outcome = _Sweep()
        checks = [
            self._check_workout_caps,
            self._check_weekly_growth,
            self._check_long_run_share,
            self._check_recovery_cadence,
            self._check_taper,
            self._check_intensity,
            self._check_timeline_and_baseline,
            self._check_peak_long_run,
            self._check_long_run_growth,
        ]

        sweeps = 0
        for sweeps in range(1, self.config.max_sweeps + 1):
            before = len(outcome.corrections)
            for check in checks:
                check(draft, profile, outcome)
            if len(outcome.corrections) == before:
                break
        else:
            logger.warning(
                f"Guardrails did not settle after {self.config.max_sweeps} sweeps "
                f"({len(outcome.corrections)} corrections)"
            )

        for week in draft.weeks:
            week.resync()

        result = ValidationResult(
            corrected=draft.freeze(),
            errors=outcome.errors,
            warnings=outcome.warnings,
            corrections=outcome.corrections,
            sweeps=sweeps,
        )
        logger.info(
            f"Guardrails: {len(result.corrections)} corrections, {len(result.warnings)} warnings, "
            f"{len(result.errors)} errors in {sweeps} sweep(s)"
        )
        return result

    # ============ Shared helpers ============

    def _easy_ceiling(self, goal_type: GoalType) -> float:
        c = self.config
        return easy_run_ceiling_km(
            goal_type,
            percent_of_race=c.max_easy_run_percent_of_race,
            min_km=c.easy_ceiling_min_km,
            max_km=c.easy_ceiling_max_km,
            general_km=c.general_fitness_easy_ceiling_km,
        )

    def _floor(self, anchor_km: Optional[float]) -> float:
        return filler_floor_km(anchor_km, self.config.min_easy_run_km, self.config.hierarchy_fraction)

    def _set_km(self, day: DayDraft, km: float, week: WeekDraft, outcome: _Sweep,
                type: CorrectionType, reason: str) -> bool:
        original = day.km
        if not _changed(original, km):
            return False
        day.distance_km = km
        outcome.correct(type, week.week_number, original, km,
                        f"{day.weekday.value} {day.workout_type.value}: {reason}", day=day.date)
        return True

    def _scale_training(self, week: WeekDraft, target: float) -> bool:
        """
        Bring the week's non-race volume down to `target`.

        Every session shrinks by the same factor (rounded down) and the
        long run stays the longest run. Easy days stop at their floor; if
        that is not enough, the other sessions give back down to the floor
        and finally the shortest easy days become rest.

        Returns False when there is nothing to scale: the week is within
        the target or has no training volume at all.
        """
        target = max(0.0, round_down_km(target))
        total = week.training_km
        if total <= 0 or total <= target + TOLERANCE_KM:
            return False
        factor = target / total
        days = [d for d in week.days if not d.is_race and d.km > 0]

        long_run = week.long_run
        if long_run is not None and long_run.km > 0:
            long_run.distance_km = round_down_km(long_run.km * factor)
        anchor = week.anchor_km
        floor = self._floor(anchor)
        b2b_cap = round_down_km(long_run.km * self.config.back_to_back_fraction) if long_run else None

        for day in days:
            if day is long_run:
                continue
            new_km = round_down_km(day.km * factor)
            if day.workout_type in FILLER_TYPES:
                new_km = max(new_km, min(day.km, floor))
            if is_back_to_back_day(day) and b2b_cap is not None:
                new_km = min(new_km, b2b_cap)
            elif anchor:
                new_km = min(new_km, round_down_km(anchor - 0.1))
            day.distance_km = new_km

        excess = round(week.training_km - target, 1)
        others = sorted(
            (d for d in days if d is not long_run and d.workout_type not in FILLER_TYPES),
            key=lambda d: -d.km,
        )
        for day in others:
            if excess <= 0:
                break
            cut = min(excess, round(day.km - floor, 1))
            if cut > 0:
                day.distance_km = round(day.km - cut, 1)
                excess = round(excess - cut, 1)

        fillers = sorted((d for d in days if d.workout_type in FILLER_TYPES and d.km > 0), key=lambda d: d.km)
        for day in fillers:
            if excess <= 0:
                break
            excess = round(excess - day.km, 1)
            make_rest(day)

        week.resync()
        return True

    @staticmethod
    def _previous_build_week(draft: PlanDraft, week: WeekDraft) -> Optional[WeekDraft]:
        for candidate in reversed(draft.weeks[:week.week_number - 1]):
            if _is_build_week(candidate):
                return candidate
        return None

    # ============ 1. Workout caps ============

    def _check_workout_caps(self, draft: PlanDraft, profile: Optional[AthleteProfile], outcome: _Sweep):
        c = self.config
        goal_type = draft.settings.goal_type
        ceiling = self._easy_ceiling(goal_type)
        easy_pace = profile.easy_pace if profile else DEFAULT_EASY_PACE_MIN_PER_KM
        peak_target = peak_long_run_target(goal_type, easy_pace)
        absolute_cap = round_down_km(peak_target * c.workout_ceiling_multiplier)

        for week in draft.weeks:
            for day in week.days:
                if day.distance_km is not None and day.distance_km < 0:
                    self._set_km(day, 0.0, week, outcome, CorrectionType.CAP_WORKOUT,
                                 "negative distance zeroed")

            anchor = week.anchor_km
            long_run = week.long_run
            floor = self._floor(anchor)

            for day in week.days:
                if day.is_race or day.is_rest:
                    continue
                wtype = day.workout_type

                if is_back_to_back_day(day):
                    base = long_run.km if long_run else anchor
                    if base:
                        cap = round_down_km(base * c.back_to_back_fraction)
                        if day.km > cap + TOLERANCE_KM:
                            self._set_km(day, cap, week, outcome, CorrectionType.CAP_WORKOUT,
                                         f"back-to-back capped at {int(c.back_to_back_fraction * 100)}% of the long run")
                elif wtype != WorkoutType.LONG_RUN and anchor and day.km >= anchor:
                    self._set_km(day, round_down_km(anchor * c.hierarchy_fraction), week, outcome,
                                 CorrectionType.CAP_WORKOUT,
                                 f"{day.km} km is not shorter than the long run ({anchor} km)")

                if wtype in FILLER_TYPES and day.km > 0:
                    if day.km > ceiling + TOLERANCE_KM:
                        self._set_km(day, ceiling, week, outcome, CorrectionType.CAP_WORKOUT,
                                     f"easy run above the {ceiling} km ceiling")
                    elif day.km < floor - TOLERANCE_KM:
                        self._set_km(day, floor, week, outcome, CorrectionType.CAP_WORKOUT,
                                     f"easy run raised to the {floor} km floor")

                if day.km > absolute_cap + TOLERANCE_KM:
                    self._set_km(day, peak_target, week, outcome, CorrectionType.CAP_WORKOUT,
                                 f"above {c.workout_ceiling_multiplier}x the peak long run target")

            if long_run is None and not week.races:
                longest = max((d.km for d in week.days), default=0.0)
                if longest > ceiling + TOLERANCE_KM:
                    outcome.warn(
                        f"Week {week.week_number} has no long run and its longest run "
                        f"({longest} km) exceeds the {ceiling} km easy ceiling"
                    )
            week.resync()

    # ============ 2. Weekly growth ============

    def _check_weekly_growth(self, draft: PlanDraft, profile: Optional[AthleteProfile], outcome: _Sweep):
        pct = self.config.max_weekly_increase_percent
        previous = profile.effective_baseline_km if profile else None

        for week in draft.weeks:
            if not _is_build_week(week):
                continue
            if previous:
                limit = round_down_km(previous * (1 + pct / 100.0))
                original = week.planned_distance_km
                if self._scale_training(week, limit):
                    outcome.correct(
                        CorrectionType.REDUCE_MILEAGE, week.week_number,
                        original, week.planned_distance_km,
                        f"weekly volume limited to +{pct}% over {previous:.1f} km",
                    )
            previous = week.training_km

    # ============ 3. Long-run share ============

    def _check_long_run_share(self, draft: PlanDraft, profile: Optional[AthleteProfile], outcome: _Sweep):
        goal_type = draft.settings.goal_type
        share = self.config.share_cap(goal_type)
        ceiling = self._easy_ceiling(goal_type)

        for week in draft.weeks:
            long_run = week.long_run
            if long_run is None or not long_run.km:
                continue
            original = shift_long_run_excess(week, share, ceiling, self.config.back_to_back_fraction)
            if original is not None:
                outcome.correct(
                    CorrectionType.REDUCE_LONG_RUN, week.week_number, original, long_run.km,
                    f"long run limited to {int(share * 100)}% of {week.training_km:.1f} km",
                    day=long_run.date,
                )
            elif long_run.km > round_down_km(share * week.training_km) + TOLERANCE_KM:
                outcome.warn(
                    f"Week {week.week_number} long run ({long_run.km} km) is over "
                    f"{int(share * 100)}% of {week.training_km:.1f} km and the easy days "
                    f"cannot take the excess"
                )

    # ============ 4. Recovery cadence ============

    def _check_recovery_cadence(self, draft: PlanDraft, profile: Optional[AthleteProfile], outcome: _Sweep):
        c = self.config
        consecutive = 0

        for week in draft.weeks:
            if week.phase == Phase.RECOVERY or week.races:
                consecutive = 0
                continue
            if week.phase not in (Phase.BASE, Phase.BUILD, Phase.BUILD2_SPECIFIC):
                continue
            if consecutive < c.recovery_week_frequency - 1:
                consecutive += 1
                continue

            original = week.planned_distance_km
            week.phase = Phase.RECOVERY
            week.quality_level = 1
            self._scale_training(week, round_down_km(week.training_km * c.recovery_week_factor))
            for day in week.days:
                if day.intensity == Intensity.HIGH and not day.is_race:
                    day.intensity = Intensity.MODERATE
            outcome.correct(
                CorrectionType.ADD_RECOVERY_WEEK, week.week_number, original, week.planned_distance_km,
                f"recovery week inserted after {consecutive} consecutive build weeks",
            )
            consecutive = 0

    # ============ 5. Taper ============

    def _check_taper(self, draft: PlanDraft, profile: Optional[AthleteProfile], outcome: _Sweep):
        goal_type = draft.settings.goal_type
        total = len(draft.weeks)
        taper_weeks = effective_taper_weeks(goal_type, total)
        factors = taper_sequence(goal_type, taper_weeks)
        first_taper = total - taper_weeks + 1

        for week in draft.weeks:
            if week.week_number >= first_taper and week.phase != Phase.TAPER:
                original = week.phase
                week.phase = Phase.TAPER
                outcome.correct(CorrectionType.ENFORCE_TAPER, week.week_number, original, Phase.TAPER,
                                "trailing weeks must be taper")
            elif week.week_number < first_taper and week.phase == Phase.TAPER:
                week.phase = Phase.BUILD
                outcome.correct(CorrectionType.ENFORCE_TAPER, week.week_number, Phase.TAPER, Phase.BUILD,
                                "taper only in the final weeks")

        if not taper_weeks or first_taper < 2:
            return

        peak = draft.weeks[first_taper - 2].training_km
        if peak <= 0:
            return
        previous = peak
        for i, week in enumerate(draft.weeks[first_taper - 1:]):
            if week.training_km <= 0:
                continue    # race and rest only, nothing to step down
            cap = min(round_down_km(peak * factors[i]), round_down_km(previous - 0.1))
            original = week.planned_distance_km
            if self._scale_training(week, max(0.0, cap)):
                outcome.correct(
                    CorrectionType.ENFORCE_TAPER, week.week_number, original, week.planned_distance_km,
                    f"taper week capped at {int(factors[i] * 100)}% of the {peak:.1f} km peak",
                )
            previous = week.training_km

    # ============ 6. Intensity ============

    def _check_intensity(self, draft: PlanDraft, profile: Optional[AthleteProfile], outcome: _Sweep):
        c = self.config

        for week in draft.weeks:
            rest_days = sum(1 for d in week.days if d.is_rest)
            while rest_days < c.min_rest_days_per_week:
                candidates = [d for d in week.days if d.workout_type in FILLER_TYPES]
                if not candidates:
                    outcome.warn(f"Week {week.week_number} has no rest day and no easy day to convert")
                    break
                day = min(candidates, key=lambda d: d.km)
                original = day.workout_type
                make_rest(day)
                rest_days += 1
                week.resync()
                outcome.correct(CorrectionType.ADD_REST_DAY, week.week_number, original, WorkoutType.REST,
                                f"{day.weekday.value} converted to rest", day=day.date)

            hard = [d for d in week.days if d.intensity == Intensity.HIGH]
            for day in reversed(hard):
                if len(hard) <= c.max_hard_workouts_per_week:
                    break
                if day.workout_type in PROTECTED_HARD_TYPES:
                    continue
                self._ease(day, week, outcome, "too many hard days this week")
                hard.remove(day)
            if len(hard) > c.max_hard_workouts_per_week:
                outcome.warn(
                    f"Week {week.week_number} has {len(hard)} hard days "
                    f"(max {c.max_hard_workouts_per_week})"
                )

        pairs = [(w, d) for w in draft.weeks for d in w.days]
        for (prev_week, prev), (week, day) in zip(pairs, pairs[1:]):
            if prev.intensity != Intensity.HIGH or day.intensity != Intensity.HIGH:
                continue
            if day.workout_type not in PROTECTED_HARD_TYPES:
                self._ease(day, week, outcome, "follows another hard day")
            elif prev.workout_type not in PROTECTED_HARD_TYPES:
                self._ease(prev, prev_week, outcome, "precedes another hard day")
            else:
                outcome.warn(f"Consecutive hard days on {prev.date} and {day.date}")

    @staticmethod
    def _ease(day: DayDraft, week: WeekDraft, outcome: _Sweep, reason: str):
        day.intensity = Intensity.MODERATE
        outcome.correct(CorrectionType.REDUCE_INTENSITY, week.week_number, Intensity.HIGH,
                        Intensity.MODERATE, f"{day.date} {day.workout_type.value}: {reason}", day=day.date)

    # ============ 7. Timeline and baseline ============

    def _check_timeline_and_baseline(self, draft: PlanDraft, profile: Optional[AthleteProfile], outcome: _Sweep):
        goal_type = draft.settings.goal_type
        total = len(draft.weeks)
        min_weeks = MIN_PLAN_WEEKS[goal_type]
        if total < min_weeks:
            outcome.error(
                f"Plan is only {total} weeks for {goal_type.value}. "
                f"Minimum recommended: {min_weeks} weeks."
            )

        if profile is None or goal_type not in MIN_BASELINE_KM:
            return
        threshold, severity = MIN_BASELINE_KM[goal_type]
        baseline = profile.effective_baseline_km
        if baseline < threshold:
            message = (
                f"Current baseline ({baseline:.1f} km/week) is too low for {goal_type.value} "
                f"training. Build base to {threshold:.0f}+ km/week first."
            )
            if severity == Severity.ERROR:
                outcome.error(message)
            else:
                outcome.warn(message)

    # ============ 8. Peak long run ============

    def _check_peak_long_run(self, draft: PlanDraft, profile: Optional[AthleteProfile], outcome: _Sweep):
        c = self.config
        goal_type = draft.settings.goal_type
        if goal_type not in PEAK_LONG_RUN_GOALS:
            return

        total = len(draft.weeks)
        peak_index = total - effective_taper_weeks(goal_type, total) - 1
        if peak_index < 0:
            return
        week = draft.weeks[peak_index]
        needed = round_up_km(RACE_DISTANCE_KM[goal_type] * c.peak_long_run_percent_of_race / 100.0)
        long_run = week.long_run
        if long_run is None:
            outcome.error(f"Peak week {week.week_number} has no long run (needs {needed} km)")
            return
        if long_run.km >= needed - TOLERANCE_KM:
            return

        current = long_run.km
        training = week.training_km
        share = c.share_cap(goal_type)
        bounds = [needed, round_down_km(share * (training - current) / (1 - share))]

        previous_week = self._previous_build_week(draft, week)
        previous_long = previous_week.long_run.km if previous_week and previous_week.long_run else None
        if previous_long is None and profile is not None:
            previous_long = profile.long_run_anchor_km
        if previous_long:
            bounds.append(round_down_km(previous_long * (1 + c.max_long_run_increase_percent / 100.0)))

        previous_volume = previous_week.training_km if previous_week else (
            profile.effective_baseline_km if profile else None
        )
        if previous_volume:
            limit = previous_volume * (1 + c.max_weekly_increase_percent / 100.0)
            bounds.append(round_down_km(limit - training + current))

        # A longer long run raises the easy floor; keep the easy days above it
        shortest = min((d.km for d in week.days if d.workout_type in FILLER_TYPES and d.km > 0), default=None)
        if shortest is not None and shortest < c.min_easy_run_km:
            bounds.append(round_down_km(shortest / c.hierarchy_fraction))

        raised = max(current, min(bounds))
        if _changed(current, raised):
            original_total = week.planned_distance_km
            long_run.distance_km = raised
            week.resync()
            outcome.correct(
                CorrectionType.RAISE_LONG_RUN, week.week_number, current, raised,
                f"peak long run raised toward {needed} km; week {original_total} -> "
                f"{week.planned_distance_km} km",
                day=long_run.date,
            )
        if raised < needed - TOLERANCE_KM:
            outcome.error(
                f"Peak long run is {raised} km; {goal_type.value} preparation needs "
                f"{needed} km ({c.peak_long_run_percent_of_race:.0f}% of race distance). "
                f"Extend the plan or build more base first."
            )

    # ============ 9. Long-run growth ============

    def _check_long_run_growth(self, draft: PlanDraft, profile: Optional[AthleteProfile], outcome: _Sweep):
        pct = self.config.max_long_run_increase_percent
        previous = profile.long_run_anchor_km if profile else None

        for week in draft.weeks:
            long_run = week.long_run
            if long_run is None or not long_run.km:
                continue
            if previous:
                cap = round_down_km(previous * (1 + pct / 100.0))
                if long_run.km > cap + TOLERANCE_KM:
                    original = long_run.km
                    long_run.distance_km = cap
                    week.resync()
                    outcome.correct(
                        CorrectionType.REDUCE_LONG_RUN, week.week_number, original, cap,
                        f"long run limited to +{pct}% over {previous:.1f} km",
                        day=long_run.date,
                    )
            if _is_build_week(week):
                previous = long_run.km
