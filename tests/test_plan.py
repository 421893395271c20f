"""
Tests for plan generation and daily coaching.

Run with: python -m pytest tests/test_plan.py -v
"""

import pytest
from datetime import date, timedelta

from engine.config import CoachingParams, PlanParams
from engine.errors import PlanConfigurationError
from engine import plan as plan_module, readiness as readiness_module
from engine.models import (
    AthleteProfile, TrainingFocus, TrainingLoadPoint, TrainingPhase, WorkoutType, round_half_up
)
from engine.plan import (
    WEEKLY_TEMPLATE,
    allocate_phases,
    generate_plan,
    phase_for_days_to_race,
    plan_length_weeks,
    summarize_plan,
    workout_description,
    workout_minutes,
)
from engine.coaching import (
    consecutive_training_days,
    load_risk_assessment,
    recommend_workout,
    weekly_focus,
)


# =============================================================================
# Phase Allocation Tests
# =============================================================================

class TestPhaseAllocation:
    """Tests for splitting a plan into base/build/peak/taper."""

    def test_thirteen_weeks(self):
        allocation = allocate_phases(13)
        assert (allocation.base, allocation.build, allocation.peak, allocation.taper) == (5, 4, 3, 1)

    def test_full_cycle(self):
        """At or above 20 weeks the reference spans apply and base grows."""
        allocation = allocate_phases(30)
        assert (allocation.build, allocation.peak, allocation.taper) == (6, 4, 2)
        assert allocation.base == 18

    def test_one_week_is_taper(self):
        allocation = allocate_phases(1)
        assert allocation.taper == 1
        assert allocation.total == 1

    def test_two_weeks(self):
        allocation = allocate_phases(2)
        assert [allocation.phase_for_week(i) for i in range(2)] == [
            TrainingPhase.PEAK, TrainingPhase.TAPER
        ]

    @pytest.mark.parametrize("weeks", [1, 3, 7, 12, 16, 20, 26, 40])
    def test_spans_cover_plan(self, weeks):
        allocation = allocate_phases(weeks)
        assert allocation.total == weeks
        assert allocation.taper >= 1

    def test_zero_weeks_rejected(self):
        with pytest.raises(PlanConfigurationError):
            allocate_phases(0)

    def test_plan_length(self):
        assert plan_length_weeks(date(2024, 1, 1), date(2024, 4, 1)) == 13
        assert plan_length_weeks(date(2024, 1, 1), date(2024, 1, 1)) == 1
        assert plan_length_weeks(date(2024, 1, 1), date(2024, 1, 9)) == 2

    def test_phase_for_days_to_race(self):
        assert phase_for_days_to_race(100) == TrainingPhase.BASE
        assert phase_for_days_to_race(84) == TrainingPhase.BUILD
        assert phase_for_days_to_race(28) == TrainingPhase.PEAK
        assert phase_for_days_to_race(7) == TrainingPhase.TAPER


# =============================================================================
# Plan Generation Tests
# =============================================================================

class TestPlanGeneration:
    """Tests for the periodized plan."""

    def test_thirteen_week_plan(self):
        """Base first, taper last, long run on the sixth slot."""
        plan = generate_plan('2024-01-01', '2024-04-01')

        assert len(plan.weeks) == 13
        assert plan.weeks[0].phase == TrainingPhase.BASE
        assert plan.weeks[-1].phase == TrainingPhase.TAPER
        assert all(week.days[5].type == WorkoutType.LONG for week in plan.weeks)

    def test_weeks_are_contiguous(self):
        plan = generate_plan(date(2024, 1, 1), date(2024, 4, 1))
        expected = date(2024, 1, 1)
        for week in plan.weeks:
            assert week.start_date == expected
            assert len(week.days) == 7
            for offset, workout in enumerate(week.days):
                assert workout.date == expected + timedelta(days=offset)
                assert workout.type == WEEKLY_TEMPLATE[offset]
            expected += timedelta(days=7)

    def test_phases_never_go_backwards(self):
        plan = generate_plan('2024-01-01', '2024-09-29')
        orders = [week.phase.order for week in plan.weeks]
        assert orders == sorted(orders)

    def test_deterministic(self):
        assert (generate_plan('2024-01-01', '2024-04-01').to_dict()
                == generate_plan('2024-01-01', '2024-04-01').to_dict())

    def test_race_on_start_day(self):
        plan = generate_plan('2024-01-01', '2024-01-01')
        assert len(plan.weeks) == 1
        assert plan.weeks[0].phase == TrainingPhase.TAPER

    def test_race_before_start(self):
        with pytest.raises(PlanConfigurationError):
            generate_plan('2024-04-01', '2024-01-01')

    def test_unparsable_date(self):
        with pytest.raises(PlanConfigurationError):
            generate_plan('not-a-date', '2024-04-01')

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            generate_plan('2024-04-01', '2024-01-01')

    def test_workout_lookup(self):
        plan = generate_plan('2024-01-01', '2024-04-01')
        assert plan.workout_for(date(2024, 1, 6)).type == WorkoutType.LONG
        assert plan.workout_for(date(2023, 12, 31)) is None
        assert plan.workout_for(plan.end_date + timedelta(days=1)) is None

    def test_workout_ids(self):
        plan = generate_plan('2024-01-01', '2024-04-01')
        assert plan.weeks[0].days[1].id == '2024-01-02-interval'

    def test_default_focus_areas(self):
        plan = generate_plan('2024-01-01', '2024-04-01')
        assert plan.focus_areas == ['Consistency', 'Injury prevention', 'Sleep & nutrition']

    def test_focus_from_profile(self):
        profile = AthleteProfile(training_focus=frozenset({TrainingFocus.SPEED}))
        plan = generate_plan('2024-01-01', '2024-04-01', profile)
        assert plan.focus_areas == ['Consistency', 'Speed development']

    def test_summary(self):
        summary = summarize_plan(generate_plan('2024-01-01', '2024-04-01'))
        assert summary['weeks'] == 13
        assert summary['phases']['base']['weeks'] == 5
        assert summary['phases']['taper']['weeks'] == 1

    def test_custom_spans(self):
        params = PlanParams(base_weeks=4, build_weeks=4, peak_weeks=2, taper_weeks=2)
        plan = generate_plan('2024-01-01', '2024-03-25', params=params)
        assert len(plan.weeks) == 12
        assert [w.phase for w in plan.weeks].count(TrainingPhase.TAPER) == 2


class TestWorkouts:
    """Tests for workout durations and descriptions."""

    def test_durations_scale_by_phase(self):
        assert workout_minutes(WorkoutType.LONG, TrainingPhase.BASE) == 90
        assert workout_minutes(WorkoutType.LONG, TrainingPhase.PEAK) == 110
        assert workout_minutes(WorkoutType.LONG, TrainingPhase.TAPER) == 75
        assert workout_minutes(WorkoutType.INTERVAL, TrainingPhase.BUILD) == 60
        assert workout_minutes(WorkoutType.RECOVERY, TrainingPhase.BASE) == 36

    def test_half_minutes_round_up(self):
        assert workout_minutes(WorkoutType.TEMPO, TrainingPhase.TAPER) == 38

    def test_shared_half_up_rounding(self):
        """Plan and readiness round through the same helper."""
        assert round_half_up(37.5) == 38
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2
        assert plan_module.round_half_up is round_half_up
        assert readiness_module.round_half_up is round_half_up

    def test_descriptions(self):
        assert workout_description(WorkoutType.LONG, TrainingPhase.PEAK) == "Long run with fast finish"
        assert workout_description(WorkoutType.LONG, TrainingPhase.BASE) == "Long run at comfortable pace"
        assert workout_description(WorkoutType.INTERVAL, TrainingPhase.BUILD) == \
            "Intervals 6-7x800m w/ 2:00 recovery"
        assert workout_description(WorkoutType.TEMPO, TrainingPhase.PEAK) == "30-40 min tempo at threshold"
        assert workout_description(WorkoutType.EASY, TrainingPhase.TAPER) == "Easy aerobic run + strides"

    def test_peak_weeks_are_longest(self):
        plan = generate_plan('2024-01-01', '2024-05-20')
        by_phase = {w.phase: w.total_minutes for w in plan.weeks}
        assert by_phase[TrainingPhase.PEAK] > by_phase[TrainingPhase.BUILD] > by_phase[TrainingPhase.BASE]
        assert by_phase[TrainingPhase.TAPER] < by_phase[TrainingPhase.BASE]


# =============================================================================
# Coaching Tests
# =============================================================================

def point(ctl, atl):
    return TrainingLoadPoint(date=date(2024, 1, 1), ctl=ctl, atl=atl, tsb=ctl - atl)


class TestWorkoutRecommendation:
    """Tests for the daily decision table."""

    def test_deep_fatigue_rests(self):
        rec = recommend_workout(point(50, 85))
        assert rec.type == 'rest'
        assert rec.reason == "High negative TSB indicates accumulated fatigue"
        assert rec.confidence == 0.9
        assert "High fatigue detected - consider easier training" in rec.warnings

    def test_very_high_fatigue_rests(self):
        rec = recommend_workout(point(90, 95))
        assert rec.type == 'rest'
        assert rec.reason == "Very high acute training load"

    def test_overdue_rest(self):
        rec = recommend_workout(point(50, 45), days_since_rest=7)
        assert rec.type == 'rest'
        assert rec.reason == "Overdue for recovery"
        assert "Overdue for rest day" in rec.warnings

    def test_moderate_fatigue_recovers(self):
        rec = recommend_workout(point(50, 70))
        assert rec.type == 'recovery'
        assert rec.target_duration_minutes == 30
        assert rec.target_intensity == 0.6

    def test_low_fitness_runs_easy(self):
        rec = recommend_workout(point(30, 25))
        assert rec.type == 'easy'
        assert rec.reason == "Building aerobic base with easy effort"
        assert rec.warnings == []

    def test_very_low_fitness_warns(self):
        rec = recommend_workout(point(10, 5))
        assert rec.type == 'easy'
        assert "Building base fitness - focus on consistency over intensity" in rec.warnings

    def test_slight_fatigue_runs_easy(self):
        rec = recommend_workout(point(50, 55))
        assert rec.type == 'easy'
        assert rec.reason == "Slight fatigue - easy pace recommended"

    def test_fresh_and_fit_intervals(self):
        rec = recommend_workout(point(70, 50))
        assert rec.type == 'interval'
        assert rec.target_duration_minutes == 60
        assert rec.target_intensity == 0.9

    def test_good_form_tempo(self):
        rec = recommend_workout(point(50, 40))
        assert rec.type == 'tempo'
        assert rec.target_duration_minutes == 50

    def test_balanced_load_default(self):
        rec = recommend_workout(point(50, 48))
        assert rec.type == 'easy'
        assert rec.reason == "Balanced training load - maintaining aerobic fitness"
        assert rec.confidence == 0.6

    def test_custom_thresholds(self):
        params = CoachingParams(interval_tsb=8.0, interval_fitness=45.0)
        assert recommend_workout(point(50, 40), params=params).type == 'interval'

    def test_to_dict(self):
        data = recommend_workout(point(70, 50)).to_dict()
        assert data['type'] == 'interval'
        assert data['targetDuration'] == 60


class TestCoachingHelpers:
    """Tests for weekly focus, load risk and rest tracking."""

    def test_weekly_focus(self):
        assert weekly_focus(13).startswith("Base building")
        assert weekly_focus(10).startswith("Build")
        assert weekly_focus(6).startswith("Peak")
        assert weekly_focus(3).startswith("Taper")
        assert weekly_focus(1).startswith("Race week")

    def test_load_risk(self):
        assert load_risk_assessment(80, 50).startswith("Elevated injury risk")
        assert load_risk_assessment(30, 50).startswith("Undertraining")
        assert load_risk_assessment(50, 50).startswith("Stable load")
        assert load_risk_assessment(50, 0) == "Insufficient data."

    def test_consecutive_training_days(self):
        days = [date(2024, 1, d) for d in range(1, 6)]
        assert consecutive_training_days(days, date(2024, 1, 5)) == 5
        assert consecutive_training_days(days, date(2024, 1, 6)) == 0
        assert consecutive_training_days(days + [date(2024, 1, 3)], date(2024, 1, 3)) == 3


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
