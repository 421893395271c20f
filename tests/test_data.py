"""
Tests for loading, synthetic data, configuration, reports and the CLI.

Run with: python -m pytest tests/test_data.py -v
"""

import csv
import json
import pytest
import pandas as pd
from datetime import date, timedelta

from engine.config import EngineConfig
from engine.errors import ConfigurationError
from engine.models import ExperienceLevel, TrainingFocus, TrainingLoadPoint, parse_date, parse_hms
from engine.plan import generate_plan
from engine.predictor import predict_marathon_time
from engine.readiness import assess_race_readiness
from engine.metrics import compute_load_series
from engine.coaching import recommend_workout
from engine.records import analyze_record_progress, build_record_histories, find_personal_records
from data.loader import ActivityLoader, load_activities, load_profile, save_activities_csv
from data.synthetic import SyntheticRunner, generate_activity_history, generate_steady_runs
from analysis.reports import (
    export_plan_csv,
    format_hms,
    format_pace,
    generate_coaching_report,
    generate_load_report,
    generate_plan_report,
    generate_prediction_report,
    generate_readiness_report,
    generate_records_report,
)
from analysis.summary import (
    activities_to_dataframe,
    load_series_dataframe,
    training_consistency,
    weekly_summary,
)
from main import main


CSV_EXPORT = """activity_id,date,distance_meters,duration_seconds,avg_heart_rate
a1,2024-03-01,10000,3000,150
a2,2024-03-03,-5,3000,
a3,2024-03-04,abc,3000,
a1,2024-03-05,8000,2400,
a4,,5000,1500,
"""


@pytest.fixture
def activity_csv(tmp_path):
    path = tmp_path / "runs.csv"
    save_activities_csv(generate_activity_history(weeks=12), path)
    return path


# =============================================================================
# Parsing Tests
# =============================================================================

class TestParsing:
    """Tests for date and duration parsing."""

    def test_parse_date(self):
        assert parse_date('2024-03-01') == date(2024, 3, 1)
        assert parse_date('2024-03-01T07:30:00Z') == date(2024, 3, 1)
        assert parse_date('yesterday') is None
        assert parse_date(None) is None

    def test_parse_hms(self):
        assert parse_hms('3:45:00') == 13500
        assert parse_hms('45:30') == 2730
        assert parse_hms('3:75:00') is None
        assert parse_hms('fast') is None
        assert parse_hms('') is None


# =============================================================================
# Loader Tests
# =============================================================================

class TestActivityLoader:
    """Tests for CSV/JSON activity loading."""

    def test_csv_skips_bad_rows(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_text(CSV_EXPORT)

        loader = ActivityLoader(path)
        activities = loader.load()

        assert [a.activity_id for a in activities] == ['a1', 'a4']
        assert activities[0].avg_heart_rate == 150.0
        assert activities[1].date is None

        stats = loader.stats.to_dict()
        assert stats['rows_read'] == 5
        assert stats['rows_loaded'] == 2
        assert stats['rows_skipped'] == 3
        assert stats['skip_reasons'] == {'malformed': 2, 'duplicate_id': 1}

    def test_json_camel_case(self, tmp_path):
        path = tmp_path / "export.json"
        path.write_text(json.dumps([
            {"activityId": "r1", "date": "2024-03-01", "distanceMeters": 10000,
             "durationSeconds": 3000, "avgHeartRate": 150},
            {"activityId": "r2", "date": "2024-03-02", "distanceMeters": 5000,
             "durationSeconds": 1600, "avgHeartRate": None},
        ]))

        activities = load_activities(path)
        assert len(activities) == 2
        assert activities[0].date == date(2024, 3, 1)
        assert activities[0].pace_seconds_per_km == 300.0
        assert activities[1].avg_heart_rate is None

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_activities(tmp_path / "nope.csv")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "runs.txt"
        path.write_text("hello")
        with pytest.raises(ValueError):
            load_activities(path)

    def test_saved_history_loads_back(self, activity_csv):
        history = generate_activity_history(weeks=12)
        loaded = load_activities(activity_csv)

        assert [a.activity_id for a in loaded] == [a.activity_id for a in history]
        assert [a.date for a in loaded] == [a.date for a in history]
        assert loaded[0].distance_meters == pytest.approx(history[0].distance_meters)

    def test_to_dataframe(self, activity_csv):
        df = ActivityLoader(activity_csv).to_dataframe()
        assert 'distanceMeters' in df.columns
        assert len(df) == len(generate_activity_history(weeks=12))


class TestProfileLoader:
    """Tests for athlete profile loading."""

    def test_load_profile(self, tmp_path):
        path = tmp_path / "me.json"
        path.write_text(json.dumps({
            "name": "Test Runner",
            "maxHeartRate": 190,
            "goalTime": "3:15:00",
            "raceDate": "2024-10-13",
            "experienceLevel": "advanced",
            "trainingFocus": ["speed"],
        }))

        profile = load_profile(path)
        assert profile.max_heart_rate == 190.0
        assert profile.goal_seconds == 11700
        assert profile.race_date == date(2024, 10, 13)
        assert profile.experience_level == ExperienceLevel.ADVANCED
        assert profile.training_focus == frozenset({TrainingFocus.SPEED})

    def test_profile_must_be_object(self, tmp_path):
        path = tmp_path / "me.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError):
            load_profile(path)


# =============================================================================
# Synthetic Data Tests
# =============================================================================

class TestSyntheticData:
    """Tests for the synthetic history generator."""

    def test_reproducible(self):
        assert generate_activity_history(seed=7) == generate_activity_history(seed=7)
        assert generate_activity_history(seed=7) != generate_activity_history(seed=8)

    def test_dates_inside_window(self):
        end = date(2024, 6, 30)
        history = generate_activity_history(weeks=10, end_date=end)
        first = end - timedelta(days=69)
        assert all(first <= a.date <= end for a in history)
        assert [a.date for a in history] == sorted(a.date for a in history)

    def test_unique_ids(self):
        history = generate_activity_history(weeks=16)
        assert len({a.activity_id for a in history}) == len(history)

    def test_without_heart_rate(self):
        history = generate_activity_history(weeks=4, with_heart_rate=False)
        assert not any(a.has_heart_rate for a in history)

    def test_runner_profile(self):
        runner = SyntheticRunner(max_heart_rate=190)
        profile = runner.to_profile(goal_time="3:30:00")
        assert profile.max_heart_rate == 190
        assert profile.goal_seconds == 12600
        assert runner.to_dict()['experience_level'] == 'intermediate'

    def test_steady_runs(self):
        runs = generate_steady_runs(4, pace_seconds_per_km=330)
        assert len(runs) == 4
        assert all(r.pace_seconds_per_km == pytest.approx(330) for r in runs)


# =============================================================================
# Configuration Tests
# =============================================================================

class TestEngineConfig:
    """Tests for parameter overrides."""

    def test_defaults_are_valid(self):
        ok, message = EngineConfig().validate()
        assert ok, message

    def test_partial_override(self):
        config = EngineConfig.from_dict({'load': {'ctl_days': 28}})
        assert config.load.ctl_days == 28
        assert config.load.atl_days == 7

    def test_unknown_section(self):
        with pytest.raises(ConfigurationError):
            EngineConfig.from_dict({'weather': {}})

    def test_unknown_key(self):
        with pytest.raises(ConfigurationError):
            EngineConfig.from_dict({'load': {'ctl': 28}})

    def test_invalid_values(self):
        with pytest.raises(ConfigurationError):
            EngineConfig.from_dict({'load': {'atl_days': 50}})

    def test_json_round_trip(self, tmp_path):
        path = tmp_path / "config.json"
        EngineConfig().save_json(path)
        assert EngineConfig.from_json(path) == EngineConfig()


# =============================================================================
# Report Tests
# =============================================================================

class TestReports:
    """Tests for the plain-text reports."""

    def test_formatting(self):
        assert format_hms(3661) == "1:01:01"
        assert format_pace(300) == "5:00/km"
        assert format_pace(299.6) == "5:00/km"

    def test_prediction_report(self):
        report = generate_prediction_report(predict_marathon_time(generate_steady_runs(10)))
        assert "Predicted time" in report
        assert "high" in report

    def test_insufficient_prediction_report(self):
        report = generate_prediction_report(predict_marathon_time([]))
        assert "Not enough data" in report

    def test_load_report(self):
        points = compute_load_series(generate_activity_history(weeks=4))
        assert "CTL" in generate_load_report(points)
        assert "No activities." in generate_load_report([])

    def test_plan_report(self):
        plan = generate_plan('2024-01-01', '2024-04-01')
        report = generate_plan_report(plan, show_days=True)
        assert "Weeks: 13" in report
        assert "Long run at comfortable pace" in report

    def test_readiness_report(self):
        report = generate_readiness_report(assess_race_readiness([]))
        assert "Race Readiness" in report
        assert "RECOMMENDATIONS" in report

    def test_coaching_report(self):
        rec = recommend_workout(TrainingLoadPoint(date(2024, 1, 1), 70.0, 50.0, 20.0))
        report = generate_coaching_report(rec, "Peak: quality workouts", "Stable load")
        assert "interval" in report
        assert "Stable load" in report

    def test_records_report(self):
        histories = build_record_histories(find_personal_records(generate_steady_runs(4, 5000, 300)))
        report = generate_records_report(histories, analyze_record_progress(histories))
        assert "Fastest 5K:" in report
        assert "0:25:00" in report
        assert "5:00/km" in report
        assert "No records yet." in generate_records_report({}, analyze_record_progress({}))

    def test_export_plan_csv(self, tmp_path):
        path = tmp_path / "plan.csv"
        export_plan_csv(generate_plan('2024-01-01', '2024-04-01'), str(path))

        with open(path, newline='') as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 91
        assert rows[0]['week'] == '1'
        assert rows[0]['phase'] == 'base'
        assert rows[5]['type'] == 'long'


# =============================================================================
# Summary Tests
# =============================================================================

class TestSummaries:
    """Tests for the pandas summaries."""

    def test_activities_frame(self):
        history = generate_activity_history(weeks=4)
        df = activities_to_dataframe(history)
        assert len(df) == len(history)
        assert df['date'].is_monotonic_increasing
        assert (df['tss'] > 0).all()

    def test_weekly_summary(self):
        history = generate_activity_history(weeks=8)
        weekly = weekly_summary(history)
        assert weekly['km'].sum() == pytest.approx(sum(a.distance_km for a in history))
        assert (weekly.index.to_series().diff().dropna() == pd.Timedelta(days=7)).all()
        assert 'load_change_pct' in weekly.columns

    def test_weekly_summary_empty(self):
        assert weekly_summary([]).empty

    def test_training_consistency(self):
        stats = training_consistency(generate_steady_runs(10), weeks=4)
        assert stats['weeks_trained'] == 3
        assert stats['consistency'] == 0.75
        assert stats['mean_weekly_km'] == 25.0
        assert stats['longest_gap_days'] == 2

    def test_consistency_without_runs(self):
        assert training_consistency([])['weeks_trained'] == 0

    def test_load_series_frame(self):
        points = compute_load_series(generate_activity_history(weeks=4))
        df = load_series_dataframe(points)
        assert list(df.columns) == ['ctl', 'atl', 'tsb', 'daily_tss']
        assert len(df) == len(points)


# =============================================================================
# CLI Tests
# =============================================================================

class TestCLI:
    """Tests for the command-line entry point."""

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "Available commands" in capsys.readouterr().out

    def test_plan(self, capsys, tmp_path):
        out_csv = tmp_path / "plan.csv"
        assert main(['plan', '--start', '2024-01-01', '--race', '2024-04-01',
                     '--csv', str(out_csv)]) == 0
        assert "Weeks: 13" in capsys.readouterr().out
        assert out_csv.exists()

    def test_plan_with_bad_dates(self):
        assert main(['plan', '--start', '2024-04-01', '--race', '2024-01-01']) == 1

    def test_predict(self, capsys, activity_csv):
        assert main(['predict', '--activities', str(activity_csv)]) == 0
        out = capsys.readouterr().out
        assert "Marathon Prediction" in out
        assert "OTHER DISTANCES" in out

    def test_predict_requires_activities(self):
        with pytest.raises(SystemExit):
            main(['predict'])

    def test_coach(self, capsys, activity_csv):
        assert main(['coach', '--activities', str(activity_csv)]) == 0
        assert "Today's Workout" in capsys.readouterr().out

    def test_records(self, capsys, activity_csv):
        assert main(['records', '--activities', str(activity_csv)]) == 0
        out = capsys.readouterr().out
        assert "Personal Records" in out
        assert "Longest Run:" in out

    def test_bad_config(self, tmp_path):
        config = tmp_path / "config.json"
        config.write_text(json.dumps({'load': {'unknown': 1}}))
        assert main(['plan', '--start', '2024-01-01', '--race', '2024-04-01',
                     '--config', str(config)]) == 1

    def test_demo(self, capsys):
        assert main(['demo', '--weeks', '8']) == 0
        out = capsys.readouterr().out
        assert "Race Readiness" in out
        assert "Training Plan" in out


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
