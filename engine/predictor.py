"""
Race time prediction from recent training runs.

Each recent run is scaled to the target distance with Riegel's power law and
the scaled times are combined into a weighted mean. Recent and longer runs
count more; an athlete whose last few runs are faster than the ones before
is treated as improving, and the latest run is then trusted more.

Based on:
- Riegel (1981): "Athletic records and human endurance", T2 = T1 × (D2/D1)^1.06
"""

from dataclasses import asdict
from typing import List, Optional, Dict, Sequence, Tuple
import math
import numpy as np

from .cache import ResultCache, activity_fingerprint
from .config import PredictorParams
from .models import (
    ActivityRecord, AthleteProfile, PredictionResult, Reliability, MARATHON_METERS
)
from .observability import EventHook, ExclusionLog, emit


RACE_DISTANCES: Dict[str, float] = {
    '5k': 5000.0,
    '10k': 10000.0,
    'half': 21097.5,
    'marathon': MARATHON_METERS,
}


def riegel_time(
    seconds: float,
    from_meters: float,
    to_meters: float,
    exponent: float = 1.06
) -> float:
    """
    Scale a performance to another distance.

    Args:
        seconds: Known time
        from_meters: Distance of the known performance
        to_meters: Target distance
        exponent: Fatigue exponent (1.06 classic)

    Returns:
        Equivalent time in seconds, or NaN when the input distance is not positive
    """
    if from_meters <= 0:
        return float('nan')
    return seconds * (to_meters / from_meters) ** exponent


def select_recent_runs(
    activities: Sequence[ActivityRecord],
    params: Optional[PredictorParams] = None,
    exclusions: Optional[ExclusionLog] = None
) -> List[ActivityRecord]:
    """Qualifying runs, newest first, at most ``max_samples``."""
    params = params or PredictorParams()
    valid = []
    for a in activities:
        if a.date is None:
            reason = 'missing_date'
        elif a.distance_meters < params.min_distance:
            reason = 'too_short'
        elif not (a.duration_seconds > 0 and math.isfinite(a.duration_seconds)):
            reason = 'invalid_duration'
        else:
            valid.append(a)
            continue
        if exclusions is not None:
            exclusions.exclude(reason)
    valid.sort(key=lambda a: a.date, reverse=True)
    return valid[:params.max_samples]


def detect_improvement(
    runs: Sequence[ActivityRecord],
    params: Optional[PredictorParams] = None
) -> bool:
    """
    True when the latest runs are faster on average than the ones before.

    Compares the mean pace of the ``trend_group`` most recent runs to the mean
    of the next ``trend_group``. Needs at least one run in the older group.
    """
    params = params or PredictorParams()
    group = params.trend_group
    if len(runs) <= group:
        return False
    recent = [r.pace_seconds_per_km for r in runs[:group]]
    older = [r.pace_seconds_per_km for r in runs[group:2 * group]]
    return float(np.mean(recent)) < float(np.mean(older))


def recency_weight(index: int, improving: bool, params: Optional[PredictorParams] = None) -> float:
    """Linear decay from the latest run (index 0) to the oldest sample slot."""
    params = params or PredictorParams()
    if index == 0 and improving:
        return params.recency_improving_top
    span = max(1, params.max_samples - 1)
    step = (params.recency_top - params.recency_floor) / span
    return max(params.recency_floor, params.recency_top - step * index)


def distance_weight(distance_meters: float, params: Optional[PredictorParams] = None) -> float:
    params = params or PredictorParams()
    for upper, weight in params.distance_bands:
        if distance_meters < upper:
            return weight
    return params.distance_weight_max


def heart_rate_adjustment(
    activity: ActivityRecord,
    profile: Optional[AthleteProfile] = None,
    params: Optional[PredictorParams] = None
) -> float:
    """
    Multiplier for runs at the extremes of effort.

    Only very hard (>92% of max HR) and very easy (<60%) runs are adjusted;
    everything in between is trusted as-is.
    """
    params = params or PredictorParams()
    if not activity.has_heart_rate:
        return 1.0
    max_hr = (profile.estimated_max_heart_rate if profile else None) or activity.max_heart_rate
    if not max_hr:
        return 1.0
    ratio = activity.avg_heart_rate / max_hr
    if ratio > params.hr_hard_ratio:
        return params.hr_hard_factor
    elif ratio < params.hr_easy_ratio:
        return params.hr_easy_factor
    return 1.0


def weighted_samples(
    runs: Sequence[ActivityRecord],
    target_meters: float,
    improving: bool,
    profile: Optional[AthleteProfile] = None,
    params: Optional[PredictorParams] = None,
    exclusions: Optional[ExclusionLog] = None
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Equivalent target-distance times and their weights.

    Non-finite samples are dropped rather than propagated.

    Returns:
        (times, weights) arrays of equal length
    """
    params = params or PredictorParams()
    times, weights = [], []
    for i, run in enumerate(runs):
        exponent = params.improving_exponent if (i == 0 and improving) else params.exponent
        equivalent = riegel_time(run.duration_seconds, run.distance_meters, target_meters, exponent)
        equivalent *= heart_rate_adjustment(run, profile, params)
        if not math.isfinite(equivalent) or equivalent <= 0:
            if exclusions is not None:
                exclusions.exclude('non_finite_sample')
            continue

        d_weight = distance_weight(run.distance_meters, params)
        if i == 0:
            d_weight = max(d_weight, params.latest_distance_floor)
        times.append(equivalent)
        weights.append(recency_weight(i, improving, params) * d_weight)

    return np.asarray(times, dtype=float), np.asarray(weights, dtype=float)


def reliability_for(count: int, params: Optional[PredictorParams] = None) -> Reliability:
    params = params or PredictorParams()
    if count >= params.high_reliability_runs:
        return Reliability.HIGH
    elif count >= params.medium_reliability_runs:
        return Reliability.MEDIUM
    return Reliability.LOW


def predict_race_time(
    activities: Sequence[ActivityRecord],
    target_meters: float,
    profile: Optional[AthleteProfile] = None,
    params: Optional[PredictorParams] = None,
    hook: Optional[EventHook] = None
) -> PredictionResult:
    """
    Predict a finish time for any race distance.

    Args:
        activities: Activity history in any order
        target_meters: Race distance (see RACE_DISTANCES)
        profile: Athlete profile (max HR for the HR adjustment)
        params: Predictor parameters
        hook: Optional observability hook

    Returns:
        PredictionResult; fewer than ``min_samples`` usable runs gives a
        zeroed, low-reliability result
    """
    params = params or PredictorParams()
    if target_meters <= 0:
        raise ValueError(f"target_meters must be positive, got {target_meters}")

    exclusions = ExclusionLog('predict_race_time')
    runs = select_recent_runs(activities, params, exclusions)
    if len(runs) < params.min_samples:
        exclusions.report(hook)
        emit(hook, 'prediction_insufficient_data', runs=len(runs))
        return PredictionResult.insufficient(len(runs))

    improving = detect_improvement(runs, params)
    times, weights = weighted_samples(runs, target_meters, improving, profile, params, exclusions)
    exclusions.report(hook)

    n = len(times)
    if n < params.min_samples:
        emit(hook, 'prediction_insufficient_data', runs=n)
        return PredictionResult.insufficient(n)

    mean = float(np.average(times, weights=weights))
    variance = float(np.average((times - mean) ** 2, weights=weights))
    # Dampened heuristic, not a statistical 95% interval
    ci = params.ci_z * math.sqrt(variance) / math.sqrt(n) * params.ci_dampening

    result = PredictionResult(
        seconds=int(round(mean)),
        confidence_interval_seconds=int(round(ci)),
        reliability=reliability_for(n, params),
        based_on_activity_count=n,
        improving=improving,
    )
    emit(hook, 'prediction_computed', target_meters=target_meters, **result.to_dict())
    return result


def predict_marathon_time(
    activities: Sequence[ActivityRecord],
    profile: Optional[AthleteProfile] = None,
    params: Optional[PredictorParams] = None,
    cache: Optional[ResultCache] = None,
    hook: Optional[EventHook] = None
) -> PredictionResult:
    """
    Predict a marathon finish time.

    When a cache is supplied, an unchanged activity list (same fingerprint,
    profile and parameters) returns the previously computed result.
    """
    params = params or PredictorParams()

    def compute() -> PredictionResult:
        return predict_race_time(activities, MARATHON_METERS, profile, params, hook)

    if cache is None:
        return compute()

    key = (
        'marathon',
        activity_fingerprint(activities, params.max_samples),
        profile,
        repr(asdict(params)),
    )
    return cache.get_or_compute(key, compute)
