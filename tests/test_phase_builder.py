"""
Phase Builder Tests
"""

from runplan.services.plan_framework import GoalType, Phase, PhaseBuilder
from runplan.services.plan_framework.phase_builder import fueling_start_week


class TestMarathonPhases:

    def setup_method(self):
        self.builder = PhaseBuilder()
        self.weeks = self.builder.build_week_phases(
            goal_type=GoalType.MARATHON,
            total_weeks=16,
            taper_weeks=3,
            recovery_weeks=[4, 8, 12],
            race_in_final_week=True,
        )

    def test_one_entry_per_week(self):
        assert [w.week_number for w in self.weeks] == list(range(1, 17))

    def test_phase_sequence(self):
        phases = [w.phase for w in self.weeks]
        assert phases[:3] == [Phase.BASE] * 3
        assert phases[3] == Phase.RECOVERY
        assert phases[4:7] == [Phase.BUILD] * 3
        assert phases[7] == Phase.RECOVERY
        assert phases[8:11] == [Phase.BUILD] * 3
        assert phases[11] == Phase.RECOVERY
        assert phases[12] == Phase.PEAK
        assert phases[13:] == [Phase.TAPER] * 3

    def test_no_specific_phase_for_road_marathon(self):
        assert all(w.phase != Phase.BUILD2_SPECIFIC for w in self.weeks)

    def test_quality_levels(self):
        levels = {w.week_number: w.quality_level for w in self.weeks}
        assert levels[1] == 1
        assert levels[4] == 1, "Recovery weeks are level 1"
        assert levels[5] == 2
        assert levels[9] == 3, "Second half of the build steps up"
        assert levels[13] == 5
        assert (levels[14], levels[15], levels[16]) == (3, 2, 1), "Race week is level 1"

    def test_grouped_phases(self):
        groups = self.builder.build_phases(self.weeks)
        assert groups[0].name == "Base"
        assert groups[0].weeks == [1, 2, 3]
        assert groups[-1].phase_type == Phase.TAPER
        assert groups[-1].weeks == [14, 15, 16]
        assert sum(len(g.weeks) for g in groups) == 16

    def test_get_phase_for_week(self):
        assert self.builder.get_phase_for_week(self.weeks, 13).phase == Phase.PEAK
        assert self.builder.get_phase_for_week(self.weeks, 99).week_number == 16


class TestUltraPhases:

    def setup_method(self):
        self.weeks = PhaseBuilder().build_week_phases(
            goal_type=GoalType.FIFTY_K,
            total_weeks=18,
            taper_weeks=3,
            recovery_weeks=[4, 8, 12],
        )

    def test_specific_block_before_peak(self):
        phases = {w.week_number: w.phase for w in self.weeks}
        assert phases[10] == Phase.BUILD
        assert phases[11] == Phase.BUILD2_SPECIFIC
        assert phases[12] == Phase.RECOVERY, "Recovery weeks keep their place inside the specific block"
        assert phases[13] == Phase.BUILD2_SPECIFIC
        assert phases[14] == Phase.BUILD2_SPECIFIC
        assert phases[15] == Phase.PEAK

    def test_specific_weeks_include_peak(self):
        assert PhaseBuilder.specific_phase_weeks(self.weeks) == [11, 13, 14, 15]

    def test_fueling_starts_part_way_into_specific_block(self):
        assert fueling_start_week(self.weeks, 0.5) == 13
        assert fueling_start_week(self.weeks, 0.0) == 11


class TestShortPlans:

    def test_two_week_plan(self):
        weeks = PhaseBuilder().build_week_phases(GoalType.FIVE_K, total_weeks=2, taper_weeks=1)
        assert [w.phase for w in weeks] == [Phase.PEAK, Phase.TAPER]

    def test_general_fitness_without_taper(self):
        weeks = PhaseBuilder().build_week_phases(
            GoalType.GENERAL_FITNESS, total_weeks=8, taper_weeks=0, recovery_weeks=[4, 7]
        )
        assert weeks[-1].phase == Phase.PEAK
        assert all(w.phase != Phase.TAPER for w in weeks)
