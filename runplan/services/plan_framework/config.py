"""
Configuration Service

Loads plan business rules from YAML.
Allows changing thresholds and ceilings without code changes.

Usage:
    ceiling = ConfigService.get("plan_rules.guardrails.max_weekly_increase_percent")

    guardrail_config = GuardrailConfig.from_rules()
    skeleton_config = SkeletonConfig.from_rules()

    # Reload config without restart
    ConfigService.reload()
"""

import yaml
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Optional, Dict
from pathlib import Path
from functools import reduce

from runplan.core.config import settings

from .constants import (
    GoalType,
    LONG_RUN_SHARE_CAP,
    SKELETON_DEFAULTS,
    GUARDRAIL_DEFAULTS,
)

logger = logging.getLogger(__name__)


class ConfigService:
    """
    Load and cache configuration from YAML files.
    """

    _config: Optional[Dict[str, Any]] = None
    _config_dir: Path = Path(__file__).parent / "rules"

    @classmethod
    def get(cls, key: str = None, default: Any = None) -> Any:
        """
        Get configuration value.

        Args:
            key: Dot-separated key (e.g., "plan_rules.guardrails.max_sweeps")
            default: Default value if key not found

        Returns:
            Configuration value or entire config if no key provided
        """
        if cls._config is None:
            cls._load()

        if key is None:
            return cls._config

        try:
            keys = key.split(".")
            value = reduce(lambda d, k: d[k], keys, cls._config)
            return value
        except (KeyError, TypeError):
            return default

    @classmethod
    def reload(cls):
        """Reload configuration from files."""
        cls._config = None
        cls._load()
        logger.info("Configuration reloaded")

    @classmethod
    def _rules_dir(cls) -> Path:
        if settings.PLAN_RULES_DIR:
            return Path(settings.PLAN_RULES_DIR)
        return cls._config_dir

    @classmethod
    def _load(cls):
        """Load all configuration files."""
        cls._config = {}

        filepath = cls._rules_dir() / "plan_rules.yaml"
        if filepath.exists():
            try:
                with open(filepath, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f)
                    if data:
                        cls._config["plan_rules"] = data
                        logger.debug(f"Loaded config: {filepath.name}")
            except (OSError, yaml.YAMLError) as e:
                logger.error(f"Error loading {filepath}: {e}")
        else:
            logger.debug(f"Config file not found: {filepath}")

        if not cls._config:
            cls._load_defaults()

    @classmethod
    def _load_defaults(cls):
        """Load default configuration from constants."""
        cls._config = {
            "plan_rules": {
                "skeleton": dict(SKELETON_DEFAULTS),
                "guardrails": dict(GUARDRAIL_DEFAULTS),
                "long_run_share_cap": {
                    k.value: v for k, v in LONG_RUN_SHARE_CAP.items()
                },
            }
        }

        logger.info("Loaded default configuration from constants")

    @classmethod
    def set(cls, key: str, value: Any):
        """
        Set a configuration value (in memory only).
        Useful for testing.
        """
        if cls._config is None:
            cls._load()

        keys = key.split(".")
        d = cls._config
        for k in keys[:-1]:
            if k not in d:
                d[k] = {}
            d = d[k]
        d[keys[-1]] = value

    # Convenience methods

    @classmethod
    def section(cls, name: str, defaults: Dict[str, Any]) -> Dict[str, Any]:
        """Merge one plan_rules section over its defaults."""
        merged = dict(defaults)
        overrides = cls.get(f"plan_rules.{name}", {}) or {}
        merged.update({k: v for k, v in overrides.items() if k in defaults})
        return merged

    @classmethod
    def get_long_run_share_caps(cls) -> Dict[GoalType, float]:
        caps = dict(LONG_RUN_SHARE_CAP)
        overrides = cls.get("plan_rules.long_run_share_cap", {}) or {}
        for key, value in overrides.items():
            try:
                caps[GoalType(key)] = float(value)
            except ValueError:
                logger.warning(f"Ignoring long-run share cap for unknown goal '{key}'")
        return caps


def _from_section(config_cls, name: str, defaults: Dict[str, Any]):
    values = ConfigService.section(name, defaults)
    names = {f.name for f in fields(config_cls)}
    return config_cls(**{k: v for k, v in values.items() if k in names})


@dataclass
class SkeletonConfig:
    """Numeric knobs used by the curve builder and skeleton assembler."""
    weekly_increase_percent: float = SKELETON_DEFAULTS["weekly_increase_percent"]
    recovery_week_frequency: int = SKELETON_DEFAULTS["recovery_week_frequency"]
    recovery_week_factor: float = SKELETON_DEFAULTS["recovery_week_factor"]
    long_run_increase_percent: float = SKELETON_DEFAULTS["long_run_increase_percent"]
    quality_share_of_week: float = SKELETON_DEFAULTS["quality_share_of_week"]
    quality_min_km: float = SKELETON_DEFAULTS["quality_min_km"]
    quality_max_km: float = SKELETON_DEFAULTS["quality_max_km"]
    quality_smoothing_km: float = SKELETON_DEFAULTS["quality_smoothing_km"]
    min_easy_run_km: float = SKELETON_DEFAULTS["min_easy_run_km"]
    reconcile_step_km: float = SKELETON_DEFAULTS["reconcile_step_km"]
    back_to_back_fraction: float = SKELETON_DEFAULTS["back_to_back_fraction"]
    fueling_start_fraction: float = SKELETON_DEFAULTS["fueling_start_fraction"]
    race_week_min_training_fraction: float = SKELETON_DEFAULTS["race_week_min_training_fraction"]
    long_run_share_cap: Dict[GoalType, float] = field(
        default_factory=lambda: dict(LONG_RUN_SHARE_CAP)
    )

    def __post_init__(self):
        # A cadence of 1 would make every week a recovery week
        self.recovery_week_frequency = max(2, int(self.recovery_week_frequency))

    @classmethod
    def from_rules(cls) -> "SkeletonConfig":
        config = _from_section(cls, "skeleton", SKELETON_DEFAULTS)
        config.long_run_share_cap = ConfigService.get_long_run_share_caps()
        return config

    def share_cap(self, goal_type: GoalType) -> float:
        return self.long_run_share_cap.get(goal_type, 0.35)


@dataclass
class GuardrailConfig:
    """Thresholds enforced by the guardrail pass."""
    max_weekly_increase_percent: float = GUARDRAIL_DEFAULTS["max_weekly_increase_percent"]
    max_long_run_increase_percent: float = GUARDRAIL_DEFAULTS["max_long_run_increase_percent"]
    recovery_week_frequency: int = GUARDRAIL_DEFAULTS["recovery_week_frequency"]
    recovery_week_factor: float = GUARDRAIL_DEFAULTS["recovery_week_factor"]
    min_rest_days_per_week: int = GUARDRAIL_DEFAULTS["min_rest_days_per_week"]
    max_hard_workouts_per_week: int = GUARDRAIL_DEFAULTS["max_hard_workouts_per_week"]
    hierarchy_fraction: float = GUARDRAIL_DEFAULTS["hierarchy_fraction"]
    back_to_back_fraction: float = GUARDRAIL_DEFAULTS["back_to_back_fraction"]
    peak_long_run_percent_of_race: float = GUARDRAIL_DEFAULTS["peak_long_run_percent_of_race"]
    max_easy_run_percent_of_race: float = GUARDRAIL_DEFAULTS["max_easy_run_percent_of_race"]
    easy_ceiling_min_km: float = GUARDRAIL_DEFAULTS["easy_ceiling_min_km"]
    easy_ceiling_max_km: float = GUARDRAIL_DEFAULTS["easy_ceiling_max_km"]
    general_fitness_easy_ceiling_km: float = GUARDRAIL_DEFAULTS["general_fitness_easy_ceiling_km"]
    min_easy_run_km: float = GUARDRAIL_DEFAULTS["min_easy_run_km"]
    workout_ceiling_multiplier: float = GUARDRAIL_DEFAULTS["workout_ceiling_multiplier"]
    max_sweeps: int = GUARDRAIL_DEFAULTS["max_sweeps"]
    long_run_share_cap: Dict[GoalType, float] = field(
        default_factory=lambda: dict(LONG_RUN_SHARE_CAP)
    )

    def __post_init__(self):
        self.recovery_week_frequency = max(2, int(self.recovery_week_frequency))
        self.max_sweeps = max(1, int(self.max_sweeps))

    @classmethod
    def from_rules(cls) -> "GuardrailConfig":
        config = _from_section(cls, "guardrails", GUARDRAIL_DEFAULTS)
        config.long_run_share_cap = ConfigService.get_long_run_share_caps()
        if "max_sweeps" not in (ConfigService.get("plan_rules.guardrails", {}) or {}):
            config.max_sweeps = settings.GUARDRAIL_MAX_SWEEPS
        return config

    def share_cap(self, goal_type: GoalType) -> float:
        return self.long_run_share_cap.get(goal_type, 0.35)
