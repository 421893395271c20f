"""
Core training-load metrics: TSS, CTL, ATL and TSB.

CTL (chronic training load, "fitness") and ATL (acute training load,
"fatigue") are exponentially weighted averages of daily training stress with
42- and 7-day time constants. TSB = CTL - ATL is "form".

Based on:
- Banister (1975): impulse-response fitness/fatigue model
- Coggan: TSS and the CTL/ATL/TSB performance manager
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import List, Optional, Dict, Sequence, Tuple
import math
import numpy as np

from .config import LoadParams, EffortParams
from .effort import Effort, PaceReference, classify
from .models import ActivityRecord, AthleteProfile, TrainingLoadPoint
from .observability import EventHook, ExclusionLog, emit


def intensity_factor(effort: Effort, params: Optional[LoadParams] = None) -> float:
    """Map an effort label to an intensity factor."""
    params = params or LoadParams()
    return {
        Effort.EASY: params.intensity_easy,
        Effort.MODERATE: params.intensity_moderate,
        Effort.HARD: params.intensity_hard,
        Effort.VERY_HARD: params.intensity_very_hard,
    }[effort]


def estimate_tss(
    activity: ActivityRecord,
    profile: Optional[AthleteProfile] = None,
    reference: Optional[PaceReference] = None,
    params: Optional[LoadParams] = None,
    effort_params: Optional[EffortParams] = None
) -> float:
    """
    Training Stress Score for one activity.

    An explicit score on the record wins. Otherwise:

        TSS = duration_hours × 100 × IF(effort)

    where the effort comes from heart rate when available and from pace
    relative to the athlete's recent runs otherwise.

    Args:
        activity: The run
        profile: Athlete profile (max HR)
        reference: Pace reference for HR-less runs
        params: Load parameters
        effort_params: Effort thresholds

    Returns:
        TSS (arbitrary units, >= 0)
    """
    params = params or LoadParams()
    if activity.training_stress_score is not None:
        return float(activity.training_stress_score)
    if activity.duration_seconds <= 0:
        return 0.0
    result = classify(activity, profile, reference, effort_params)
    return activity.duration_hours * params.tss_per_hour * intensity_factor(result.effort, params)


def daily_tss(
    activities: Sequence[ActivityRecord],
    profile: Optional[AthleteProfile] = None,
    params: Optional[LoadParams] = None,
    effort_params: Optional[EffortParams] = None,
    exclusions: Optional[ExclusionLog] = None
) -> Dict[date, float]:
    """
    Sum TSS per calendar day.

    Undated activities, and activities whose score is not finite, are skipped
    and counted on ``exclusions``.
    """
    params = params or LoadParams()
    reference = PaceReference.from_activities(activities, effort_params)
    totals: Dict[date, float] = defaultdict(float)

    for activity in activities:
        if activity.date is None:
            if exclusions is not None:
                exclusions.exclude('missing_date')
            continue
        tss = estimate_tss(activity, profile, reference, params, effort_params)
        if not math.isfinite(tss) or tss < 0:
            if exclusions is not None:
                exclusions.exclude('invalid_tss')
            continue
        totals[activity.date] += tss

    return dict(totals)


def calculate_ewma(
    values: Sequence[float],
    time_constant: int,
    initial: float = 0.0
) -> np.ndarray:
    """
    Exponentially weighted moving average with a 1/N update.

    Uses the formula: EWMA_t = EWMA_{t-1} + (value_t - EWMA_{t-1}) / N

    Args:
        values: Daily values (e.g., TSS), rest days included as 0
        time_constant: N (42 for chronic, 7 for acute)
        initial: Value before the first day (seed)

    Returns:
        Array of EWMA values, one per input value
    """
    values = np.asarray(values, dtype=float)
    out = np.zeros(len(values))
    current = float(initial)
    for i, value in enumerate(values):
        current = current + (value - current) / time_constant
        out[i] = current
    return out


def compute_load_series(
    activities: Sequence[ActivityRecord],
    profile: Optional[AthleteProfile] = None,
    start_date: Optional[date] = None,
    seed: Optional[TrainingLoadPoint] = None,
    end_date: Optional[date] = None,
    daily: bool = False,
    params: Optional[LoadParams] = None,
    effort_params: Optional[EffortParams] = None,
    hook: Optional[EventHook] = None
) -> List[TrainingLoadPoint]:
    """
    Compute the CTL/ATL/TSB series.

    The walk is day-by-day, not activity-by-activity, so rest days decay the
    load. For each day:

        ctl = ctl_prev + (tss - ctl_prev) / 42
        atl = atl_prev + (tss - atl_prev) / 7
        tsb = ctl - atl

    Args:
        activities: Activity history in any order
        profile: Athlete profile (max HR for effort)
        start_date: First day to return. Without a seed, earlier activities
            are ignored.
        seed: Previously stored point to continue from. Only used when it
            predates the first returned day; the walk then starts the day
            after the seed and uses every activity dated after it, so the
            continuation matches the full series.
        end_date: Last day to compute (default: last activity date)
        daily: Return every day instead of only activity days
        params: Load parameters
        effort_params: Effort thresholds
        hook: Optional observability hook

    Returns:
        Chronologically ordered TrainingLoadPoints (empty for no activities)
    """
    params = params or LoadParams()
    exclusions = ExclusionLog('compute_load_series')

    if start_date is not None:
        first = start_date
    else:
        dated = [a.date for a in activities if a.date is not None]
        first = min(dated) if dated else None

    seeded = seed is not None and first is not None and seed.date < first
    if seeded:
        # Gap days between the seed and start_date still decay the load
        walk_start = seed.date + timedelta(days=1)
        in_range = [a for a in activities if a.date is None or a.date > seed.date]
    elif start_date is not None:
        walk_start = start_date
        in_range = [a for a in activities if a.date is None or a.date >= start_date]
    else:
        walk_start = None
        in_range = list(activities)

    tss_by_day = daily_tss(in_range, profile, params, effort_params, exclusions)
    exclusions.report(hook)

    if not tss_by_day:
        return []

    walk_start = walk_start or min(tss_by_day)
    emit_from = start_date or min(tss_by_day)
    last = end_date or max(tss_by_day)
    if last < emit_from:
        return []

    ctl = atl = 0.0
    if seeded:
        ctl, atl = seed.ctl, seed.atl
        emit(hook, 'load_seeded', date=seed.date.isoformat(), ctl=ctl, atl=atl)

    n_days = (last - walk_start).days + 1
    days = [walk_start + timedelta(days=i) for i in range(n_days)]
    values = [tss_by_day.get(d, 0.0) for d in days]

    ctl_series = calculate_ewma(values, params.ctl_days, initial=ctl)
    atl_series = calculate_ewma(values, params.atl_days, initial=atl)

    points = []
    for day, tss, c, a in zip(days, values, ctl_series, atl_series):
        if day < emit_from:
            continue
        if not daily and day not in tss_by_day:
            continue
        points.append(TrainingLoadPoint(
            date=day,
            ctl=round(float(c), params.rounding),
            atl=round(float(a), params.rounding),
            tsb=round(float(c - a), params.rounding),
            daily_tss=round(float(tss), params.rounding),
        ))

    emit(hook, 'load_series_computed', days=n_days, points=len(points))
    return points


def form_status(tsb: float, params: Optional[LoadParams] = None) -> str:
    """Classify TSB as 'fresh', 'neutral' or 'fatigued'."""
    params = params or LoadParams()
    if tsb > params.fresh_tsb:
        return 'fresh'
    elif tsb < params.fatigued_tsb:
        return 'fatigued'
    return 'neutral'


def fitness_trend(
    points: Sequence[TrainingLoadPoint],
    params: Optional[LoadParams] = None
) -> Dict[str, object]:
    """
    Summarise the direction of fitness over the latest points.

    Compares the mean CTL of the most recent ``trend_window`` points with the
    window before it.

    Returns:
        Dictionary with trend ('improving', 'maintaining', 'declining'),
        peak_fitness, current_fitness and form_status
    """
    params = params or LoadParams()
    if not points:
        return {
            'trend': 'maintaining',
            'peak_fitness': 0.0,
            'current_fitness': 0.0,
            'form_status': 'neutral',
        }

    ordered = sorted(points, key=lambda p: p.date, reverse=True)
    current = ordered[0]
    window = params.trend_window
    recent = np.array([p.ctl for p in ordered[:window]])
    older = np.array([p.ctl for p in ordered[window:2 * window]])

    recent_mean = float(recent.mean())
    older_mean = float(older.mean()) if len(older) else recent_mean

    trend = 'maintaining'
    if older_mean > 0:
        change_pct = (recent_mean - older_mean) / older_mean * 100
        if change_pct > params.trend_change_pct:
            trend = 'improving'
        elif change_pct < -params.trend_change_pct:
            trend = 'declining'
    elif recent_mean > 0:
        trend = 'improving'

    return {
        'trend': trend,
        'peak_fitness': max(p.ctl for p in ordered),
        'current_fitness': current.ctl,
        'form_status': form_status(current.tsb, params),
    }


def acute_chronic_ratio(point: TrainingLoadPoint) -> Optional[float]:
    """ATL / CTL for one point, or None when there is no chronic load."""
    if point.ctl <= 0:
        return None
    return point.atl / point.ctl


def rolling_load(
    activities: Sequence[ActivityRecord],
    as_of: date,
    acute_days: int = 7,
    chronic_days: int = 28
) -> Tuple[float, float]:
    """
    Average weekly distance (km) over an acute and a chronic window.

    Both values are expressed per 7 days so they can be compared directly.
    """
    def window_km(days: int) -> float:
        start = as_of - timedelta(days=days - 1)
        total = sum(
            a.distance_km for a in activities
            if a.date is not None and start <= a.date <= as_of
        )
        return total * 7.0 / days

    return window_km(acute_days), window_km(chronic_days)
