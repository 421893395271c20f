#!/usr/bin/env python3
"""
Marathon Coach Engine - CLI Entry Point

Usage:
    python main.py predict   --activities runs.csv [--profile me.json]
    python main.py load      --activities runs.csv [--daily] [--start YYYY-MM-DD]
    python main.py paces     --activities runs.csv [--marathon-time H:MM:SS]
    python main.py plan      --start YYYY-MM-DD --race YYYY-MM-DD [--days] [--csv out.csv]
    python main.py readiness --activities runs.csv --profile me.json [--as-of YYYY-MM-DD]
    python main.py coach     --activities runs.csv [--as-of YYYY-MM-DD]
    python main.py records   --activities runs.csv [--as-of YYYY-MM-DD]
    python main.py demo      [--weeks W] [--seed S]

Common options: --config params.json (parameter overrides), --verbose.
"""

import argparse
import logging
import sys
from datetime import timedelta
from typing import List, Optional

from engine import (
    ActivityRecord,
    AthleteProfile,
    EngineConfig,
    PlanConfigurationError,
    ConfigurationError,
    RACE_DISTANCES,
    compute_load_series,
    compute_paces,
    consecutive_training_days,
    fitness_trend,
    generate_plan,
    load_risk_assessment,
    parse_date,
    parse_hms,
    predict_marathon_time,
    predict_race_time,
    recommend_workout,
    rolling_load,
    weekly_focus,
    assess_race_readiness,
    analyze_record_progress,
    build_record_histories,
    find_personal_records,
)
from data.loader import load_activities, load_profile
from data.synthetic import SyntheticRunner, generate_activity_history
from analysis.reports import (
    export_plan_csv,
    generate_coaching_report,
    generate_load_report,
    generate_paces_report,
    generate_plan_report,
    generate_prediction_report,
    generate_readiness_report,
    generate_records_report,
)
from analysis.summary import training_consistency

logger = logging.getLogger(__name__)


def run_predict(activities: List[ActivityRecord], profile: AthleteProfile, config: EngineConfig):
    """Predict marathon and shorter race times."""
    prediction = predict_marathon_time(activities, profile, config.predictor)
    others = {
        name: predict_race_time(activities, meters, profile, config.predictor)
        for name, meters in RACE_DISTANCES.items() if name != 'marathon'
    }
    print(generate_prediction_report(prediction, others))
    return prediction


def run_load(
    activities: List[ActivityRecord],
    profile: AthleteProfile,
    config: EngineConfig,
    daily: bool = False,
    start: Optional[str] = None
):
    """Compute and print the CTL/ATL/TSB series."""
    points = compute_load_series(
        activities, profile,
        start_date=parse_date(start) if start else None,
        daily=daily,
        params=config.load,
        effort_params=config.effort,
    )
    print(generate_load_report(points, fitness_trend(points, config.load)))
    return points


def run_paces(
    activities: List[ActivityRecord],
    profile: AthleteProfile,
    config: EngineConfig,
    marathon_time: Optional[str] = None
):
    """Compute and print training paces."""
    marathon_seconds = parse_hms(marathon_time) if marathon_time else None
    if marathon_time and marathon_seconds is None:
        raise ValueError(f"Invalid marathon time '{marathon_time}', expected H:MM:SS")
    paces = compute_paces(
        activities, profile, marathon_seconds,
        params=config.paces, effort_params=config.effort
    )
    print(generate_paces_report(paces))
    return paces


def run_plan(
    start: str,
    race: str,
    profile: AthleteProfile,
    config: EngineConfig,
    show_days: bool = False,
    csv_path: Optional[str] = None
):
    """Generate and print a training plan."""
    plan = generate_plan(start, race, profile, config.plan)
    print(generate_plan_report(plan, show_days=show_days))
    if csv_path:
        export_plan_csv(plan, csv_path)
        print(f"Exported plan to {csv_path}")
    return plan


def run_readiness(
    activities: List[ActivityRecord],
    profile: AthleteProfile,
    config: EngineConfig,
    as_of: Optional[str] = None
):
    """Score and print race readiness."""
    score = assess_race_readiness(
        activities, profile,
        as_of=parse_date(as_of) if as_of else None,
        params=config.readiness,
        pace_params=config.paces,
        effort_params=config.effort,
    )
    print(generate_readiness_report(score))
    return score


def run_coach(
    activities: List[ActivityRecord],
    profile: AthleteProfile,
    config: EngineConfig,
    as_of: Optional[str] = None
):
    """Recommend today's workout from the current load state."""
    dated = [a.date for a in activities if a.date is not None]
    if not dated:
        print("No dated activities; nothing to recommend.")
        return None

    today = parse_date(as_of) if as_of else max(dated)
    points = compute_load_series(
        activities, profile, end_date=today, daily=True,
        params=config.load, effort_params=config.effort
    )
    if not points:
        print("No activities before the requested date.")
        return None

    recommendation = recommend_workout(
        points[-1], consecutive_training_days(dated, today), config.coaching
    )
    focus = None
    if profile.race_date is not None:
        focus = weekly_focus((profile.race_date - today).days / 7)
    acute, chronic = rolling_load(activities, today)
    print(generate_coaching_report(
        recommendation, focus, load_risk_assessment(acute, chronic, config.coaching)
    ))
    return recommendation


def run_records(
    activities: List[ActivityRecord],
    config: EngineConfig,
    as_of: Optional[str] = None
):
    """Find personal records and summarise recent progress."""
    records = find_personal_records(activities, config.records)
    reference = parse_date(as_of) if as_of else None
    histories = build_record_histories(records, reference, config.records)
    progress = analyze_record_progress(histories, reference, config.records)
    print(generate_records_report(histories, progress))
    return progress


def run_demo(weeks: int = 16, seed: int = 42, config: Optional[EngineConfig] = None):
    """Run every component on a synthetic history."""
    config = config or EngineConfig()
    runner = SyntheticRunner()
    activities = generate_activity_history(weeks=weeks, runner=runner, seed=seed)
    last_day = max(a.date for a in activities)
    race_day = last_day + timedelta(weeks=12)
    profile = runner.to_profile(race_date=race_day, goal_time="3:45:00")

    print(f"Synthetic history: {len(activities)} runs over {weeks} weeks (seed {seed})")
    consistency = training_consistency(activities, weeks=min(weeks, 12))
    print(f"Consistency: {consistency['consistency']:.0%} of weeks, "
          f"{consistency['mean_weekly_km']:.1f} km/week")

    run_predict(activities, profile, config)
    run_load(activities, profile, config)
    run_paces(activities, profile, config)
    run_readiness(activities, profile, config)
    run_coach(activities, profile, config)
    run_records(activities, config)
    run_plan((last_day + timedelta(days=1)).isoformat(), race_day.isoformat(), profile, config)


def _load_inputs(args, parser):
    activities = []
    if getattr(args, 'activities', None):
        activities = load_activities(args.activities)
    elif args.command in ('predict', 'load', 'paces', 'readiness', 'coach', 'records'):
        parser.error(f"'{args.command}' requires --activities")

    profile = load_profile(args.profile) if args.profile else AthleteProfile()
    config = EngineConfig.from_json(args.config) if args.config else EngineConfig()
    return activities, profile, config


def main(argv: Optional[List[str]] = None):
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--profile', help='Athlete profile JSON')
    common.add_argument('--config', help='Parameter overrides JSON')
    common.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    data = argparse.ArgumentParser(add_help=False, parents=[common])
    data.add_argument('--activities', help='Activities CSV or JSON')
    data.add_argument('--as-of', dest='as_of', help='Assessment date (YYYY-MM-DD)')

    parser = argparse.ArgumentParser(description='Marathon Coach Engine')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('predict', parents=[data], help='Predict race times')

    load_parser = subparsers.add_parser('load', parents=[data], help='Training load series')
    load_parser.add_argument('--daily', action='store_true', help='Include rest days')
    load_parser.add_argument('--start', help='First day (YYYY-MM-DD)')

    paces_parser = subparsers.add_parser('paces', parents=[data], help='Training paces')
    paces_parser.add_argument('--marathon-time', dest='marathon_time', help='Target H:MM:SS')

    plan_parser = subparsers.add_parser('plan', parents=[common], help='Generate a training plan')
    plan_parser.add_argument('--start', required=True, help='Start date (YYYY-MM-DD)')
    plan_parser.add_argument('--race', required=True, help='Race date (YYYY-MM-DD)')
    plan_parser.add_argument('--days', action='store_true', help='Show every workout')
    plan_parser.add_argument('--csv', help='Export workouts to CSV')

    subparsers.add_parser('readiness', parents=[data], help='Race readiness score')
    subparsers.add_parser('coach', parents=[data], help="Today's workout")
    subparsers.add_parser('records', parents=[data], help='Personal records')

    demo_parser = subparsers.add_parser('demo', parents=[common], help='Run on synthetic data')
    demo_parser.add_argument('--weeks', type=int, default=16, help='Weeks of history')
    demo_parser.add_argument('--seed', type=int, default=42, help='Random seed')

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    try:
        activities, profile, config = _load_inputs(args, parser)

        if args.command == 'predict':
            run_predict(activities, profile, config)
        elif args.command == 'load':
            run_load(activities, profile, config, args.daily, args.start)
        elif args.command == 'paces':
            run_paces(activities, profile, config, args.marathon_time)
        elif args.command == 'plan':
            run_plan(args.start, args.race, profile, config, args.days, args.csv)
        elif args.command == 'readiness':
            run_readiness(activities, profile, config, args.as_of)
        elif args.command == 'coach':
            run_coach(activities, profile, config, args.as_of)
        elif args.command == 'records':
            run_records(activities, config, args.as_of)
        elif args.command == 'demo':
            run_demo(args.weeks, args.seed, config)
    except (FileNotFoundError, PlanConfigurationError, ConfigurationError, ValueError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
