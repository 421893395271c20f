"""
Plain-text reports for predictions, load, paces, plans, readiness and records.

Every report is a string; the CLI prints it.
"""

from typing import List, Dict, Any, Optional, Sequence
from pathlib import Path
import numpy as np

from engine.coaching import CoachingRecommendation
from engine.models import PredictionResult, TrainingLoadPoint, TrainingPlan
from engine.paces import TrainingPaces
from engine.readiness import ReadinessScore
from engine.records import PersonalRecord, RecordHistory, RecordProgress, RecordType


def format_hms(total_seconds: float) -> str:
    """Format seconds as H:MM:SS."""
    total = int(round(total_seconds))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def format_pace(seconds_per_km: float) -> str:
    """Format a pace as M:SS/km."""
    total = int(round(seconds_per_km))
    minutes, seconds = divmod(total, 60)
    return f"{minutes}:{seconds:02d}/km"


def generate_prediction_report(
    prediction: PredictionResult,
    race_predictions: Optional[Dict[str, PredictionResult]] = None,
    title: str = "Marathon Prediction"
) -> str:
    """
    Format a prediction with its confidence interval.

    Args:
        prediction: Marathon prediction
        race_predictions: Optional predictions for other distances, by name
        title: Report title

    Returns:
        Formatted report string
    """
    report = f"""
{'='*70}
{title}
{'='*70}
"""
    if not prediction.has_prediction:
        report += (
            f"Not enough data: {prediction.based_on_activity_count} qualifying run(s), "
            "at least 2 runs of 2 km or more are needed.\n"
        )
        return report + "=" * 70 + "\n"

    low = prediction.seconds - prediction.confidence_interval_seconds
    high = prediction.seconds + prediction.confidence_interval_seconds
    report += f"""Predicted time:       {format_hms(prediction.seconds):>10}
Range:                {format_hms(low)} - {format_hms(high)}
Reliability:          {prediction.reliability.value:>10}
Based on:             {prediction.based_on_activity_count:>10d} runs
Improving trend:      {'yes' if prediction.improving else 'no':>10}
"""

    if race_predictions:
        report += """
OTHER DISTANCES
---------------
"""
        for name, result in race_predictions.items():
            if result.has_prediction:
                report += f"{name:<10} {format_hms(result.seconds):>10} (±{result.confidence_interval_seconds}s)\n"

    report += "=" * 70 + "\n"
    return report


def generate_paces_report(paces: TrainingPaces) -> str:
    source = "your recent runs" if paces.source == 'history' else "target marathon time"
    return f"""
{'='*70}
Training Paces (from {source})
{'='*70}
Easy:       {format_pace(paces.easy):>10}
Marathon:   {format_pace(paces.marathon):>10}
Tempo:      {format_pace(paces.tempo):>10}
Interval:   {format_pace(paces.interval):>10}
{'='*70}
"""


def generate_load_report(
    points: Sequence[TrainingLoadPoint],
    trend: Optional[Dict[str, Any]] = None,
    last_n: int = 14
) -> str:
    """
    Fitness/fatigue/form table for the latest points.

    Args:
        points: Load series
        trend: Output of fitness_trend()
        last_n: Number of rows to show

    Returns:
        Formatted report string
    """
    report = f"""
{'='*70}
Training Load (CTL / ATL / TSB)
{'='*70}
"""
    if not points:
        return report + "No activities.\n" + "=" * 70 + "\n"

    report += f"{'Date':<12} {'TSS':>7} {'CTL':>8} {'ATL':>8} {'TSB':>8}\n"
    report += "-" * 70 + "\n"
    for p in list(points)[-last_n:]:
        report += f"{p.date.isoformat():<12} {p.daily_tss:>7.1f} {p.ctl:>8.2f} {p.atl:>8.2f} {p.tsb:>8.2f}\n"

    ctl = np.array([p.ctl for p in points])
    report += f"""
Peak CTL:             {ctl.max():>8.2f}
Mean CTL:             {ctl.mean():>8.2f}
"""
    if trend:
        report += f"""Trend:                {trend['trend']:>8}
Form:                 {trend['form_status']:>8}
"""
    report += "=" * 70 + "\n"
    return report


def generate_plan_report(plan: TrainingPlan, show_days: bool = False) -> str:
    """Week-by-week plan overview."""
    report = f"""
{'='*70}
Training Plan: {plan.start_date.isoformat()} → race {plan.race_date.isoformat()}
{'='*70}
Weeks: {len(plan.weeks)}
Focus: {', '.join(plan.focus_areas)}

"""
    report += f"{'Week':<6} {'Start':<12} {'Phase':<8} {'Minutes':>8}\n"
    report += "-" * 70 + "\n"
    for i, week in enumerate(plan.weeks, 1):
        report += f"{i:<6} {week.start_date.isoformat():<12} {week.phase.value:<8} {week.total_minutes:>8d}\n"
        if show_days:
            for w in week.days:
                report += f"       {w.date.isoformat()}  {w.type.value:<9} {w.duration_minutes:>3d} min  {w.description}\n"

    report += "=" * 70 + "\n"
    return report


def generate_readiness_report(score: ReadinessScore) -> str:
    report = f"""
{'='*70}
Race Readiness
{'='*70}
Overall:              {score.overall:>5d} / 100
Days to race:         {score.days_to_race:>5d}

"""
    for name, value in score.components.items():
        label = name.replace('_', ' ').title()
        report += f"{label:<22} {value:>5d}\n"

    report += """
RECOMMENDATIONS
---------------
"""
    for rec in score.recommendations:
        report += f"- {rec}\n"
    report += "=" * 70 + "\n"
    return report


def generate_coaching_report(
    recommendation: CoachingRecommendation,
    focus: Optional[str] = None,
    risk: Optional[str] = None
) -> str:
    report = f"""
{'='*70}
Today's Workout
{'='*70}
Type:                 {recommendation.type}
Why:                  {recommendation.reason}
Confidence:           {recommendation.confidence:.0%}
"""
    if recommendation.target_duration_minutes:
        report += f"Duration:             {recommendation.target_duration_minutes} min\n"
    if recommendation.target_intensity:
        report += f"Intensity:            {recommendation.target_intensity:.0%}\n"
    for warning in recommendation.warnings:
        report += f"Warning:              {warning}\n"
    if focus:
        report += f"\nThis week:            {focus}\n"
    if risk:
        report += f"Load:                 {risk}\n"
    report += "=" * 70 + "\n"
    return report


def format_record_value(record: PersonalRecord) -> str:
    """Time records as H:MM:SS (1K as a pace), the rest in km or m."""
    if record.type == RecordType.FASTEST_1K:
        return format_pace(record.value)
    if record.type.lower_is_better:
        return format_hms(record.value)
    if record.type == RecordType.MOST_ELEVATION_GAIN:
        return f"{record.value:.0f} m"
    return f"{record.value / 1000:.1f} km"


def generate_records_report(
    histories: Dict[RecordType, RecordHistory],
    progress: RecordProgress
) -> str:
    report = f"""
{'='*70}
Personal Records
{'='*70}
"""
    if not histories:
        return report + "No records yet.\n" + "=" * 70 + "\n"

    for record_type in RecordType:
        history = histories.get(record_type)
        if history is None or history.current is None:
            continue
        current = history.current
        report += (f"{record_type.display_name + ':':<22}{format_record_value(current):>10}"
                   f"  {current.date.isoformat()}  ({history.trend})\n")

    report += f"""
Records in 30 days:   {progress.count_recent}
Records in 90 days:   {progress.count_progress}
Mean improvement:     {progress.average_improvement:.1f}%
Injury risk score:    {progress.risk_score}/100
"""
    for warning in progress.warnings:
        report += f"Warning:              {warning}\n"
    report += "=" * 70 + "\n"
    return report


def export_plan_csv(plan: TrainingPlan, filepath: str) -> None:
    """
    Export every workout of a plan to CSV.

    Args:
        plan: Training plan
        filepath: Output file path
    """
    import csv

    rows: List[Dict[str, Any]] = []
    for index, week in enumerate(plan.weeks, 1):
        for workout in week.days:
            rows.append({
                'week': index,
                'phase': week.phase.value,
                **workout.to_dict(),
            })

    with open(Path(filepath), 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=['week', 'phase', 'id', 'date', 'type',
                                               'description', 'durationMinutes', 'completed'])
        writer.writeheader()
        writer.writerows(rows)
