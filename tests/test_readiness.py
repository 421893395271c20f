"""
Tests for the race readiness assessment.

Run with: python -m pytest tests/test_readiness.py -v
"""

import pytest
import numpy as np
from datetime import date, timedelta

from engine.models import ActivityRecord, AthleteProfile, ExperienceLevel
from engine.readiness import (
    COMPONENTS,
    PHASE_WEIGHTS,
    activities_in_window,
    assess_race_readiness,
    load_jump_risk,
    pace_progression,
    readiness_recommendations,
    stability,
    taper_quality,
    target_weekly_km,
    volume_progression,
    weekly_distances,
)
from data.synthetic import SyntheticRunner, generate_activity_history, generate_steady_runs


def run(day, km, pace=330.0):
    return ActivityRecord(date=day, distance_meters=km * 1000, duration_seconds=km * pace)


# =============================================================================
# Volume Helper Tests
# =============================================================================

class TestWeeklyVolume:
    """Tests for windowing and weekly distance helpers."""

    def test_weekly_distances_are_chronological(self):
        as_of = date(2024, 1, 15)
        runs = [run(as_of, 5), run(as_of - timedelta(days=8), 10)]
        assert list(weekly_distances(runs, as_of, 3)) == [0.0, 10.0, 5.0]

    def test_future_runs_ignored(self):
        as_of = date(2024, 1, 15)
        runs = [run(as_of + timedelta(days=1), 10)]
        assert weekly_distances(runs, as_of, 4).sum() == 0.0
        assert activities_in_window(runs, as_of, 4) == []

    def test_window_is_newest_first(self):
        as_of = date(2024, 1, 15)
        runs = [run(as_of - timedelta(days=d), 5) for d in (3, 0, 10)]
        window = activities_in_window(runs, as_of, 2)
        assert [a.date for a in window] == [as_of, as_of - timedelta(days=3), as_of - timedelta(days=10)]

    def test_no_reference_date(self):
        assert activities_in_window([run(date(2024, 1, 1), 5)], None, 4) == []
        assert weekly_distances([run(date(2024, 1, 1), 5)], None, 4).sum() == 0.0

    def test_stability(self):
        assert stability(np.array([10.0, 10.0, 10.0])) == 1.0
        assert stability(np.array([])) == 0.0
        assert stability(np.zeros(4)) == 0.0

    def test_load_jump_risk(self):
        assert load_jump_risk(np.array([10.0, 13.0])) == pytest.approx(0.5)
        assert load_jump_risk(np.array([10.0, 12.0])) == pytest.approx(0.2)
        assert load_jump_risk(np.array([10.0, 11.0])) == 0.0
        assert load_jump_risk(np.array([0.0, 30.0])) == 0.0

    def test_volume_progression(self):
        assert volume_progression(np.array([10.0, 10.0, 11.0, 11.0])) == 1.0
        assert volume_progression(np.array([10.0, 10.0, 10.0, 10.0])) == 0.7
        assert volume_progression(np.array([10.0, 10.0, 20.0, 20.0])) == 0.3
        assert volume_progression(np.zeros(4)) == 0.3

    def test_taper_quality_without_history(self):
        assert taper_quality([], date(2024, 1, 1)) == 0.3

    def test_taper_quality_ideal(self):
        """Last week at 70% of the weeks before."""
        as_of = date(2024, 3, 31)
        runs = [run(as_of - timedelta(days=7 * w + 1), 50) for w in range(1, 8)]
        runs.append(run(as_of - timedelta(days=1), 35))
        assert taper_quality(runs, as_of) == 1.0

    def test_target_weekly_km(self):
        assert target_weekly_km(ExperienceLevel.BEGINNER) == 40.0
        assert target_weekly_km(ExperienceLevel.ADVANCED) == 80.0


class TestPaceProgression:
    """Tests for the newer-half vs older-half pace comparison."""

    def test_too_few_runs(self):
        runs = generate_steady_runs(3)
        assert pace_progression(runs, fallback=0.3) == 0.3

    def test_getting_faster(self):
        day = date(2024, 1, 1)
        runs = [run(day, 10, pace) for pace in (280, 285, 300, 310)]
        assert pace_progression(runs) == 1.0

    def test_getting_slower(self):
        day = date(2024, 1, 1)
        runs = [run(day, 10, pace) for pace in (310, 300, 285, 280)]
        assert pace_progression(runs) == 0.5


# =============================================================================
# Recommendation Tests
# =============================================================================

class TestRecommendations:
    """Tests for advice attached to low components."""

    def test_all_strong(self):
        recs = readiness_recommendations({name: 80.0 for name in COMPONENTS}, 50)
        assert len(recs) == 2
        assert recs[0].startswith("Excellent preparation!")

    def test_far_from_race(self):
        components = {name: 80.0 for name in COMPONENTS}
        components['neuromuscular_power'] = 50.0
        components['mental_preparation'] = 50.0
        recs = readiness_recommendations(components, 60)
        assert "Include weekly interval training (4-6x 1km at 5K pace)" in recs
        assert "Schedule long runs of 28-32km to build confidence" in recs

    def test_close_to_race(self):
        """Speed advice is dropped inside three weeks."""
        components = {name: 80.0 for name in COMPONENTS}
        components['neuromuscular_power'] = 50.0
        components['mental_preparation'] = 50.0
        recs = readiness_recommendations(components, 20)
        assert "Include weekly interval training (4-6x 1km at 5K pace)" not in recs
        assert "Trust your training and focus on race day execution" in recs

    def test_every_low_component_adds_advice(self):
        recs = readiness_recommendations({name: 0.0 for name in COMPONENTS}, 60)
        assert len(recs) == 10


# =============================================================================
# Assessment Tests
# =============================================================================

class TestAssessment:
    """Tests for the overall readiness score."""

    def test_phase_weights_sum_to_one(self):
        for weights in PHASE_WEIGHTS.values():
            assert sum(weights) == pytest.approx(1.0)

    def test_empty_history(self):
        """Only the consistency and default mental scores remain."""
        score = assess_race_readiness([])
        assert score.as_of is None
        assert score.days_to_race == 90
        assert score.components == {
            'aerobic_base': 0,
            'lactate_threshold': 0,
            'neuromuscular_power': 0,
            'strength_mobility': 36,
            'mental_preparation': 20,
        }
        assert score.overall == 9

    def test_scores_are_bounded_integers(self):
        runner = SyntheticRunner()
        history = generate_activity_history(weeks=16, runner=runner)
        score = assess_race_readiness(history, runner.to_profile())

        assert set(score.components) == set(COMPONENTS)
        for value in list(score.components.values()) + [score.overall]:
            assert isinstance(value, int)
            assert 0 <= value <= 100
        assert score.recommendations

    def test_days_to_race_from_latest_activity(self):
        runner = SyntheticRunner()
        history = generate_activity_history(weeks=16, runner=runner)
        latest = max(a.date for a in history)
        score = assess_race_readiness(history, runner.to_profile(race_date=latest + timedelta(days=70)))
        assert score.as_of == latest
        assert score.days_to_race == 70

    def test_explicit_assessment_date(self):
        profile = AthleteProfile(race_date=date(2024, 9, 1))
        score = assess_race_readiness(
            generate_activity_history(weeks=16), profile, as_of=date(2024, 6, 30)
        )
        assert score.days_to_race == 63

    def test_runs_after_assessment_date_ignored(self):
        score = assess_race_readiness(generate_activity_history(weeks=8), as_of=date(2024, 1, 1))
        assert score.components['aerobic_base'] == 0
        assert score.components['lactate_threshold'] == 0
        assert score.components['neuromuscular_power'] == 0

    def test_consistent_training_beats_sparse(self):
        runner = SyntheticRunner()
        profile = runner.to_profile()
        trained = assess_race_readiness(generate_activity_history(weeks=16, runner=runner), profile)
        sparse = assess_race_readiness(generate_steady_runs(3), profile)
        assert trained.components['aerobic_base'] > sparse.components['aerobic_base']
        assert trained.components['strength_mobility'] > sparse.components['strength_mobility']

    def test_to_dict_keys(self):
        data = assess_race_readiness(generate_activity_history(weeks=8)).to_dict()
        assert set(data['components']) == {
            'aerobicBase', 'lactateThreshold', 'neuromuscularPower',
            'strengthMobility', 'mentalPreparation',
        }
        assert data['asOf'] is not None

    def test_hook_receives_result(self):
        events = []
        assess_race_readiness(
            generate_activity_history(weeks=8),
            hook=lambda event, payload: events.append((event, payload)),
        )
        assessed = [p for e, p in events if e == 'readiness_assessed']
        assert len(assessed) == 1
        assert 0 <= assessed[0]['overall'] <= 100


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
