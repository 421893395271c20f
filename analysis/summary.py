"""
Tabular training summaries (pandas).

Weekly volume, training consistency and load-series frames for reports and
ad-hoc analysis.
"""

from datetime import date
from typing import Dict, Any, Optional, Sequence
import numpy as np
import pandas as pd

from engine.config import LoadParams
from engine.effort import PaceReference
from engine.metrics import estimate_tss
from engine.models import ActivityRecord, AthleteProfile, TrainingLoadPoint


WEEKDAYS = ['MON', 'TUE', 'WED', 'THU', 'FRI', 'SAT', 'SUN']


def activities_to_dataframe(
    activities: Sequence[ActivityRecord],
    profile: Optional[AthleteProfile] = None,
    params: Optional[LoadParams] = None
) -> pd.DataFrame:
    """
    One row per dated activity with distance, duration, pace and TSS.

    Returns:
        DataFrame with columns date, distance_km, duration_hours,
        pace_s_per_km, avg_heart_rate, tss (sorted by date)
    """
    columns = ['date', 'distance_km', 'duration_hours', 'pace_s_per_km', 'avg_heart_rate', 'tss']
    dated = [a for a in activities if a.date is not None]
    if not dated:
        return pd.DataFrame(columns=columns)

    reference = PaceReference.from_activities(dated)
    df = pd.DataFrame({
        'date': pd.to_datetime([a.date for a in dated]),
        'distance_km': [a.distance_km for a in dated],
        'duration_hours': [a.duration_hours for a in dated],
        'pace_s_per_km': [a.pace_seconds_per_km for a in dated],
        'avg_heart_rate': [a.avg_heart_rate for a in dated],
        'tss': [estimate_tss(a, profile, reference, params) for a in dated],
    })
    return df.sort_values('date').reset_index(drop=True)


def weekly_summary(
    activities: Sequence[ActivityRecord],
    profile: Optional[AthleteProfile] = None,
    week_start: str = 'MON'
) -> pd.DataFrame:
    """
    Aggregate activities into calendar weeks.

    Args:
        activities: Activity history
        profile: Athlete profile (for TSS)
        week_start: Weekday the weeks start on ('MON', 'SUN', ...)

    Returns:
        DataFrame indexed by week start with runs, km, hours, tss, long_run_km
        and load_change_pct (week-over-week km change)
    """
    df = activities_to_dataframe(activities, profile)
    if df.empty:
        return pd.DataFrame(columns=['runs', 'km', 'hours', 'tss', 'long_run_km', 'load_change_pct'])

    start_weekday = WEEKDAYS.index(week_start.upper())
    shift = (df['date'].dt.weekday - start_weekday) % 7
    df['week'] = df['date'] - pd.to_timedelta(shift, unit='D')

    weekly = df.groupby('week').agg(
        runs=('distance_km', 'count'),
        km=('distance_km', 'sum'),
        hours=('duration_hours', 'sum'),
        tss=('tss', 'sum'),
        long_run_km=('distance_km', 'max'),
    )

    # Weeks without runs appear as zero rows
    all_weeks = pd.date_range(weekly.index.min(), weekly.index.max(), freq='7D')
    weekly = weekly.reindex(all_weeks, fill_value=0)
    weekly.index.name = 'week'

    prev = weekly['km'].shift(1)
    weekly['load_change_pct'] = np.where(prev > 0, (weekly['km'] - prev) / prev * 100, np.nan)
    return weekly


def training_consistency(
    activities: Sequence[ActivityRecord],
    as_of: Optional[date] = None,
    weeks: int = 12
) -> Dict[str, Any]:
    """
    How regularly the athlete has trained over the last ``weeks`` weeks.

    Returns:
        Dictionary with weeks_trained, consistency (0-1), mean_weekly_km,
        weekly_km_cv and longest_gap_days
    """
    dated = sorted(a.date for a in activities if a.date is not None)
    if not dated:
        return {
            'weeks_trained': 0,
            'consistency': 0.0,
            'mean_weekly_km': 0.0,
            'weekly_km_cv': None,
            'longest_gap_days': None,
        }

    as_of = as_of or dated[-1]
    start = pd.Timestamp(as_of) - pd.Timedelta(days=7 * weeks - 1)
    df = activities_to_dataframe(activities)
    window = df[(df['date'] >= start) & (df['date'] <= pd.Timestamp(as_of))]

    offsets = ((pd.Timestamp(as_of) - window['date']).dt.days // 7).astype(int)
    weekly_km = window.groupby(offsets)['distance_km'].sum().reindex(range(weeks), fill_value=0.0)

    mean_km = float(weekly_km.mean())
    cv = float(weekly_km.std(ddof=0) / mean_km) if mean_km > 0 else None

    in_window = sorted(d for d in dated if start.date() <= d <= as_of)
    gaps = np.diff([d.toordinal() for d in in_window]) if len(in_window) > 1 else np.array([])

    return {
        'weeks_trained': int((weekly_km > 0).sum()),
        'consistency': float((weekly_km > 0).mean()),
        'mean_weekly_km': round(mean_km, 2),
        'weekly_km_cv': round(cv, 3) if cv is not None else None,
        'longest_gap_days': int(gaps.max()) if len(gaps) else None,
    }


def load_series_dataframe(points: Sequence[TrainingLoadPoint]) -> pd.DataFrame:
    """Load points as a date-indexed DataFrame."""
    if not points:
        return pd.DataFrame(columns=['ctl', 'atl', 'tsb', 'daily_tss'])
    df = pd.DataFrame([
        {'date': pd.Timestamp(p.date), 'ctl': p.ctl, 'atl': p.atl, 'tsb': p.tsb, 'daily_tss': p.daily_tss}
        for p in points
    ])
    return df.set_index('date')
