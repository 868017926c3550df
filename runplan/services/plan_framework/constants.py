"""
Constants for plan skeleton generation.

These are DEFAULTS that can be overridden by config (plan_rules.yaml).
They exist here for type safety and documentation.

All distances are kilometres, all paces minutes per kilometre.
"""

from enum import Enum
from typing import Dict, List, Tuple


class GoalType(str, Enum):
    """Goal races (plus a race-less fitness goal)."""
    FIVE_K = "5k"
    TEN_K = "10k"
    HALF_MARATHON = "half_marathon"
    MARATHON = "marathon"
    FIFTY_K = "50k"
    FIFTY_MILE = "50_mile"
    HUNDRED_K = "100k"
    HUNDRED_MILE = "100_mile"
    GENERAL_FITNESS = "general_fitness"


class Priority(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class Terrain(str, Enum):
    ROAD = "road"
    TRAIL = "trail"
    MOUNTAIN = "mountain"


class Phase(str, Enum):
    """Training phases a week can be tagged with."""
    BASE = "base"
    BUILD = "build"
    BUILD2_SPECIFIC = "build2_specific"   # Ultra-specific second build
    PEAK = "peak"
    RECOVERY = "recovery"
    TAPER = "taper"


class WorkoutType(str, Enum):
    EASY = "easy"
    TEMPO = "tempo"
    INTERVALS = "intervals"
    LONG_RUN = "long_run"
    RECOVERY = "recovery"
    REST = "rest"
    CROSS_TRAINING = "cross_training"
    RACE = "race"
    FARTLEK = "fartlek"
    HILLS = "hills"
    PROGRESSION = "progression"
    BACK_TO_BACK_LONG = "back_to_back_long"
    FUELING_PRACTICE = "fueling_practice"


class Intensity(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @property
    def index(self) -> int:
        """0 = Monday, matching date.weekday()."""
        return WEEKDAYS.index(self)


class ExperienceLevel(str, Enum):
    """Consistency / experience classification from the athlete profile."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class ConflictType(str, Enum):
    SAME_DATE = "same_date"
    TOO_CLOSE = "too_close"
    TAPER_OVERLAP = "taper_overlap"
    INSUFFICIENT_REBUILD = "insufficient_rebuild"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class BlendMode(str, Enum):
    """How two goals share one timeline."""
    SINGLE = "single"
    DUAL_PEAK = "dual_peak"
    PRIMARY_SECONDARY = "primary_secondary"
    TRAINING_RACE = "training_race"


class CorrectionType(str, Enum):
    CAP_WORKOUT = "cap_workout"
    REDUCE_MILEAGE = "reduce_mileage"
    REDUCE_LONG_RUN = "reduce_long_run"
    ADD_RECOVERY_WEEK = "add_recovery_week"
    ENFORCE_TAPER = "enforce_taper"
    REDUCE_INTENSITY = "reduce_intensity"
    ADD_REST_DAY = "add_rest_day"
    RAISE_LONG_RUN = "raise_long_run"


WEEKDAYS: List[Weekday] = [
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
    Weekday.SUNDAY,
]

ULTRA_GOALS = {
    GoalType.FIFTY_K,
    GoalType.FIFTY_MILE,
    GoalType.HUNDRED_K,
    GoalType.HUNDRED_MILE,
}

# Speed vs endurance split used when tagging workouts for two goals
SPEED_GOALS = {GoalType.FIVE_K, GoalType.TEN_K, GoalType.HALF_MARATHON}
ENDURANCE_GOALS = {GoalType.MARATHON} | ULTRA_GOALS

# Workout groupings
QUALITY_TYPES = {
    WorkoutType.TEMPO,
    WorkoutType.INTERVALS,
    WorkoutType.FARTLEK,
    WorkoutType.HILLS,
    WorkoutType.PROGRESSION,
}
FILLER_TYPES = {
    WorkoutType.EASY,
    WorkoutType.RECOVERY,
    WorkoutType.FUELING_PRACTICE,
}
LONG_TYPES = {WorkoutType.LONG_RUN, WorkoutType.BACK_TO_BACK_LONG}
# Never demoted by the intensity guardrail
PROTECTED_HARD_TYPES = {WorkoutType.TEMPO, WorkoutType.INTERVALS, WorkoutType.RACE}

DEFAULT_INTENSITY: Dict[WorkoutType, Intensity] = {
    WorkoutType.REST: Intensity.LOW,
    WorkoutType.EASY: Intensity.LOW,
    WorkoutType.RECOVERY: Intensity.LOW,
    WorkoutType.CROSS_TRAINING: Intensity.LOW,
    WorkoutType.FUELING_PRACTICE: Intensity.LOW,
    WorkoutType.LONG_RUN: Intensity.MODERATE,
    WorkoutType.BACK_TO_BACK_LONG: Intensity.MODERATE,
    WorkoutType.TEMPO: Intensity.HIGH,
    WorkoutType.INTERVALS: Intensity.HIGH,
    WorkoutType.FARTLEK: Intensity.HIGH,
    WorkoutType.HILLS: Intensity.HIGH,
    WorkoutType.PROGRESSION: Intensity.HIGH,
    WorkoutType.RACE: Intensity.HIGH,
}


# Race distances (km)
RACE_DISTANCE_KM: Dict[GoalType, float] = {
    GoalType.FIVE_K: 5.0,
    GoalType.TEN_K: 10.0,
    GoalType.HALF_MARATHON: 21.0975,
    GoalType.MARATHON: 42.195,
    GoalType.FIFTY_K: 50.0,
    GoalType.FIFTY_MILE: 80.467,
    GoalType.HUNDRED_K: 100.0,
    GoalType.HUNDRED_MILE: 160.934,
    GoalType.GENERAL_FITNESS: 0.0,
}

# Plan length when no race date is given (weeks)
DEFAULT_PLAN_WEEKS: Dict[GoalType, int] = {
    GoalType.FIVE_K: 8,
    GoalType.TEN_K: 10,
    GoalType.HALF_MARATHON: 12,
    GoalType.MARATHON: 16,
    GoalType.FIFTY_K: 18,
    GoalType.FIFTY_MILE: 20,
    GoalType.HUNDRED_K: 22,
    GoalType.HUNDRED_MILE: 24,
    GoalType.GENERAL_FITNESS: 8,
}
MAX_PLAN_WEEKS = 30

# Taper length (weeks). General fitness has no race to taper for.
TAPER_WEEKS: Dict[GoalType, int] = {
    GoalType.FIVE_K: 1,
    GoalType.TEN_K: 1,
    GoalType.HALF_MARATHON: 2,
    GoalType.MARATHON: 3,
    GoalType.FIFTY_K: 3,
    GoalType.FIFTY_MILE: 3,
    GoalType.HUNDRED_K: 4,
    GoalType.HUNDRED_MILE: 5,
    GoalType.GENERAL_FITNESS: 0,
}

# Multiplicative taper shape, fraction of achieved peak per taper week.
# Early taper weeks shed less than late ones.
TAPER_FACTORS: Dict[GoalType, List[float]] = {
    GoalType.FIVE_K: [0.60],
    GoalType.TEN_K: [0.60],
    GoalType.HALF_MARATHON: [0.70, 0.50],
    GoalType.MARATHON: [0.75, 0.60, 0.45],
    GoalType.FIFTY_K: [0.75, 0.60, 0.45],
    GoalType.FIFTY_MILE: [0.75, 0.60, 0.45],
    GoalType.HUNDRED_K: [0.80, 0.65, 0.50, 0.40],
    GoalType.HUNDRED_MILE: [0.85, 0.75, 0.60, 0.45, 0.35],
    GoalType.GENERAL_FITNESS: [],
}

# Weeks spent at peak before tapering (multi-goal spacing)
PEAK_WEEKS: Dict[GoalType, int] = {
    GoalType.FIVE_K: 1,
    GoalType.TEN_K: 1,
    GoalType.HALF_MARATHON: 2,
    GoalType.MARATHON: 2,
    GoalType.FIFTY_K: 2,
    GoalType.FIFTY_MILE: 2,
    GoalType.HUNDRED_K: 3,
    GoalType.HUNDRED_MILE: 3,
    GoalType.GENERAL_FITNESS: 1,
}

# Minimum build weeks to rebuild for a goal (multi-goal spacing)
MIN_BUILD_WEEKS: Dict[GoalType, int] = {
    GoalType.FIVE_K: 3,
    GoalType.TEN_K: 4,
    GoalType.HALF_MARATHON: 6,
    GoalType.MARATHON: 8,
    GoalType.FIFTY_K: 8,
    GoalType.FIFTY_MILE: 10,
    GoalType.HUNDRED_K: 12,
    GoalType.HUNDRED_MILE: 14,
    GoalType.GENERAL_FITNESS: 4,
}

# Shortest plan the guardrails accept without an error (weeks)
MIN_PLAN_WEEKS: Dict[GoalType, int] = {
    GoalType.FIVE_K: 6,
    GoalType.TEN_K: 8,
    GoalType.HALF_MARATHON: 12,
    GoalType.MARATHON: 16,
    GoalType.FIFTY_K: 16,
    GoalType.FIFTY_MILE: 18,
    GoalType.HUNDRED_K: 20,
    GoalType.HUNDRED_MILE: 24,
    GoalType.GENERAL_FITNESS: 4,
}

# Peak weekly volume targets (km). Floored at PEAK_BASELINE_MULTIPLIER x baseline.
PEAK_WEEKLY_KM: Dict[GoalType, float] = {
    GoalType.FIVE_K: 35.0,
    GoalType.TEN_K: 45.0,
    GoalType.HALF_MARATHON: 55.0,
    GoalType.MARATHON: 70.0,
    GoalType.FIFTY_K: 80.0,
    GoalType.FIFTY_MILE: 95.0,
    GoalType.HUNDRED_K: 105.0,
    GoalType.HUNDRED_MILE: 120.0,
    GoalType.GENERAL_FITNESS: 30.0,
}
PEAK_BASELINE_MULTIPLIER = 1.4

# Weekly targets used to estimate the minimum sensible plan length
MINIMUM_PLAN_TARGET_KM: Dict[GoalType, float] = {
    GoalType.FIVE_K: 25.0,
    GoalType.TEN_K: 35.0,
    GoalType.HALF_MARATHON: 50.0,
    GoalType.MARATHON: 70.0,
    GoalType.FIFTY_K: 80.0,
    GoalType.FIFTY_MILE: 90.0,
    GoalType.HUNDRED_K: 100.0,
    GoalType.HUNDRED_MILE: 110.0,
    GoalType.GENERAL_FITNESS: 30.0,
}

# Peak long run as a fraction of race distance.
# Short races train long runs well past race distance.
LONG_RUN_RACE_FRACTION: Dict[GoalType, float] = {
    GoalType.FIVE_K: 2.4,
    GoalType.TEN_K: 1.6,
    GoalType.HALF_MARATHON: 0.90,
    GoalType.MARATHON: 0.90,
    GoalType.FIFTY_K: 0.65,
    GoalType.FIFTY_MILE: 0.45,
    GoalType.HUNDRED_K: 0.40,
    GoalType.HUNDRED_MILE: 0.30,
}
GENERAL_FITNESS_LONG_RUN_KM = 16.0

# Ultra long runs are bounded by time on feet (hours at easy pace)
ULTRA_LONG_RUN_HOURS: Dict[GoalType, float] = {
    GoalType.FIFTY_K: 3.5,
    GoalType.FIFTY_MILE: 4.0,
    GoalType.HUNDRED_K: 4.5,
    GoalType.HUNDRED_MILE: 5.0,
}

# Long run ceiling as a share of the week's training volume
LONG_RUN_SHARE_CAP: Dict[GoalType, float] = {
    GoalType.FIVE_K: 0.40,
    GoalType.TEN_K: 0.40,
    GoalType.HALF_MARATHON: 0.42,
    GoalType.MARATHON: 0.55,
    GoalType.FIFTY_K: 0.50,
    GoalType.FIFTY_MILE: 0.50,
    GoalType.HUNDRED_K: 0.50,
    GoalType.HUNDRED_MILE: 0.50,
    GoalType.GENERAL_FITNESS: 0.35,
}

# Starting-volume plausibility (baseline km/week): (threshold, severity)
MIN_BASELINE_KM: Dict[GoalType, Tuple[float, Severity]] = {
    GoalType.HALF_MARATHON: (15.0, Severity.WARNING),
    GoalType.MARATHON: (20.0, Severity.ERROR),
    GoalType.FIFTY_K: (30.0, Severity.ERROR),
    GoalType.FIFTY_MILE: (40.0, Severity.ERROR),
    GoalType.HUNDRED_K: (45.0, Severity.ERROR),
    GoalType.HUNDRED_MILE: (50.0, Severity.ERROR),
}

# Vertical gain targets (metres per km) for off-road goals
VERTICAL_GAIN_PER_KM: Dict[Terrain, float] = {
    Terrain.TRAIL: 20.0,
    Terrain.MOUNTAIN: 40.0,
}
VERTICAL_GAIN_PHASE_MULTIPLIER: Dict[Phase, float] = {
    Phase.BASE: 0.6,
    Phase.BUILD: 0.8,
    Phase.BUILD2_SPECIFIC: 1.0,
    Phase.PEAK: 1.0,
    Phase.RECOVERY: 0.5,
    Phase.TAPER: 0.4,
}

# Quality workout rotation by phase (slot 0, slot 1)
QUALITY_ROTATION: Dict[Phase, List[WorkoutType]] = {
    Phase.BASE: [WorkoutType.HILLS, WorkoutType.FARTLEK],
    Phase.BUILD: [WorkoutType.TEMPO, WorkoutType.INTERVALS],
    Phase.BUILD2_SPECIFIC: [WorkoutType.TEMPO, WorkoutType.PROGRESSION],
    Phase.PEAK: [WorkoutType.INTERVALS, WorkoutType.TEMPO],
    Phase.RECOVERY: [WorkoutType.FARTLEK, WorkoutType.FARTLEK],
    Phase.TAPER: [WorkoutType.TEMPO, WorkoutType.INTERVALS],
}

# Run-day fill order when preferred days are missing or too few
DEFAULT_RUN_DAY_ORDER: List[Weekday] = [
    Weekday.SATURDAY,
    Weekday.TUESDAY,
    Weekday.THURSDAY,
    Weekday.SUNDAY,
    Weekday.WEDNESDAY,
    Weekday.MONDAY,
    Weekday.FRIDAY,
]

DEFAULT_BASELINE_KM = 20.0
DEFAULT_EASY_PACE_MIN_PER_KM = 6.5

# Skeleton defaults
SKELETON_DEFAULTS = {
    "weekly_increase_percent": 12,
    "recovery_week_frequency": 4,
    "recovery_week_factor": 0.80,
    "long_run_increase_percent": 15,
    "quality_share_of_week": 0.20,
    "quality_min_km": 5.0,
    "quality_max_km": 16.0,
    "quality_smoothing_km": 2.0,
    "min_easy_run_km": 5.0,
    "reconcile_step_km": 0.5,
    "back_to_back_fraction": 0.65,
    "fueling_start_fraction": 0.5,
    "race_week_min_training_fraction": 0.35,
}

# Guardrail defaults
GUARDRAIL_DEFAULTS = {
    "max_weekly_increase_percent": 12,
    "max_long_run_increase_percent": 15,
    "recovery_week_frequency": 4,
    "recovery_week_factor": 0.80,
    "min_rest_days_per_week": 1,
    "max_hard_workouts_per_week": 3,
    "hierarchy_fraction": 0.70,
    "back_to_back_fraction": 0.65,
    "peak_long_run_percent_of_race": 90,
    "max_easy_run_percent_of_race": 50,
    "easy_ceiling_min_km": 10.0,
    "easy_ceiling_max_km": 32.0,
    "general_fitness_easy_ceiling_km": 15.0,
    "min_easy_run_km": 5.0,
    "workout_ceiling_multiplier": 1.1,
    "max_sweeps": 4,
}
