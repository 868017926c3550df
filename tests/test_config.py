"""
Plan Rules Configuration Tests
"""

import pytest

from runplan.core.config import settings
from runplan.services.plan_framework import (
    ConfigService,
    GoalType,
    GuardrailConfig,
    SkeletonConfig,
)


class TestConfigService:

    def test_packaged_rules_loaded(self):
        assert ConfigService.get("plan_rules.guardrails.max_weekly_increase_percent") == 12
        assert ConfigService.get("plan_rules.long_run_share_cap.marathon") == 0.55

    def test_unknown_key_returns_default(self):
        assert ConfigService.get("plan_rules.guardrails.nope") is None
        assert ConfigService.get("plan_rules.nope.deeper", default=7) == 7

    def test_set_override_is_picked_up(self):
        ConfigService.set("plan_rules.guardrails.max_weekly_increase_percent", 20)
        assert GuardrailConfig.from_rules().max_weekly_increase_percent == 20

    def test_reload_drops_overrides(self):
        ConfigService.set("plan_rules.guardrails.max_weekly_increase_percent", 20)
        ConfigService.reload()
        assert GuardrailConfig.from_rules().max_weekly_increase_percent == 12

    def test_unknown_section_keys_ignored(self):
        ConfigService.set("plan_rules.skeleton.not_a_knob", 3)
        config = SkeletonConfig.from_rules()
        assert not hasattr(config, "not_a_knob")


class TestRulesDirectory:

    def test_custom_rules_file(self, tmp_path, monkeypatch):
        (tmp_path / "plan_rules.yaml").write_text(
            "guardrails:\n"
            "  max_hard_workouts_per_week: 2\n"
            "  max_sweeps: 6\n"
            "long_run_share_cap:\n"
            "  marathon: 0.50\n"
            "  relay: 0.30\n",
            encoding="utf-8",
        )
        monkeypatch.setattr(settings, "PLAN_RULES_DIR", str(tmp_path))
        ConfigService.reload()

        config = GuardrailConfig.from_rules()
        assert config.max_hard_workouts_per_week == 2
        assert config.max_sweeps == 6
        assert config.max_weekly_increase_percent == 12, "Unset keys keep their defaults"
        assert config.share_cap(GoalType.MARATHON) == 0.50
        assert config.share_cap(GoalType.FIFTY_K) == 0.50

    def test_missing_rules_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "PLAN_RULES_DIR", str(tmp_path))
        ConfigService.reload()

        assert ConfigService.get("plan_rules.guardrails.max_sweeps") == 4
        assert ConfigService.get("plan_rules.long_run_share_cap.general_fitness") == 0.35

    def test_invalid_yaml_falls_back_to_defaults(self, tmp_path, monkeypatch):
        (tmp_path / "plan_rules.yaml").write_text("guardrails: [unclosed\n", encoding="utf-8")
        monkeypatch.setattr(settings, "PLAN_RULES_DIR", str(tmp_path))
        ConfigService.reload()

        assert ConfigService.get("plan_rules.skeleton.weekly_increase_percent") == 12


class TestConfigObjects:

    def test_recovery_frequency_floor(self):
        assert SkeletonConfig(recovery_week_frequency=1).recovery_week_frequency == 2
        assert GuardrailConfig(recovery_week_frequency=0).recovery_week_frequency == 2

    def test_max_sweeps_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "GUARDRAIL_MAX_SWEEPS", 7)
        assert GuardrailConfig.from_rules().max_sweeps == 7

    def test_default_share_cap(self):
        config = SkeletonConfig(long_run_share_cap={})
        assert config.share_cap(GoalType.MARATHON) == pytest.approx(0.35)
