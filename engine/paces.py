"""
Personalised training paces (seconds per km).

With enough history the paces come from the athlete's own runs, grouped by
effort with heart-rate-reserve zones. Without it they are derived from a
target marathon time with fixed ratios.
"""

from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Dict, Any, Sequence
import numpy as np

from .config import PaceParams, EffortParams
from .effort import Effort, HeartRateZones, PaceReference, classify
from .models import ActivityRecord, AthleteProfile, MARATHON_KM
from .observability import EventHook, ExclusionLog, emit


@dataclass(frozen=True)
class TrainingPaces:
    """Target paces in s/km. Always ordered easy > marathon > tempo > interval."""
    easy: float
    marathon: float
    tempo: float
    interval: float
    source: str                    # 'history' or 'generic'
    based_on_activity_count: int = 0

    def is_ordered(self) -> bool:
        return self.easy > self.marathon > self.tempo > self.interval

    def to_dict(self) -> Dict[str, Any]:
        return {
            'easy': self.easy,
            'marathon': self.marathon,
            'tempo': self.tempo,
            'interval': self.interval,
            'source': self.source,
            'basedOnActivityCount': self.based_on_activity_count,
        }


def _median(values: List[float]) -> Optional[float]:
    return float(np.median(values)) if values else None


def target_marathon_seconds(
    profile: Optional[AthleteProfile] = None,
    marathon_seconds: Optional[float] = None,
    params: Optional[PaceParams] = None
) -> float:
    """Explicit argument, else the profile's goal time, else the default."""
    params = params or PaceParams()
    if marathon_seconds and marathon_seconds > 0:
        return float(marathon_seconds)
    if profile is not None and profile.goal_seconds:
        return float(profile.goal_seconds)
    return float(params.default_marathon_seconds)


def generic_paces(marathon_seconds: float, params: Optional[PaceParams] = None) -> TrainingPaces:
    """Fixed-ratio paces from a marathon time."""
    params = params or PaceParams()
    mp = marathon_seconds / MARATHON_KM
    return TrainingPaces(
        easy=round(mp * params.easy_factor, 1),
        marathon=round(mp, 1),
        tempo=round(mp * params.tempo_factor, 1),
        interval=round(mp * params.interval_factor, 1),
        source='generic',
    )


def enforce_ordering(
    easy: Optional[float],
    marathon: Optional[float],
    tempo: Optional[float],
    interval: Optional[float],
    params: Optional[PaceParams] = None
) -> Dict[str, float]:
    """
    Fill missing paces and repair out-of-order ones from their neighbours.

    Marathon pace anchors the chain; easy is derived from it, tempo from it,
    and interval from tempo.
    """
    params = params or PaceParams()

    if marathon is None:
        if easy is not None:
            marathon = easy / params.repair_easy
        elif tempo is not None:
            marathon = tempo / params.repair_tempo
        elif interval is not None:
            marathon = interval / (params.repair_tempo * params.repair_interval)
        else:
            marathon = params.default_marathon_seconds / MARATHON_KM
    marathon = round(marathon, 1)

    easy = round(easy, 1) if easy is not None else None
    if easy is None or easy <= marathon:
        easy = round(marathon * params.repair_easy, 1)

    tempo = round(tempo, 1) if tempo is not None else None
    if tempo is None or tempo >= marathon:
        tempo = round(marathon * params.repair_tempo, 1)

    interval = round(interval, 1) if interval is not None else None
    if interval is None or interval >= tempo:
        interval = round(tempo * params.repair_interval, 1)

    return {'easy': easy, 'marathon': marathon, 'tempo': tempo, 'interval': interval}


def compute_paces(
    activities: Sequence[ActivityRecord],
    profile: Optional[AthleteProfile] = None,
    marathon_seconds: Optional[float] = None,
    params: Optional[PaceParams] = None,
    effort_params: Optional[EffortParams] = None,
    hook: Optional[EventHook] = None
) -> TrainingPaces:
    """
    Compute easy, marathon, tempo and interval paces.

    Args:
        activities: Activity history in any order
        profile: Athlete profile (HR, goal time)
        marathon_seconds: Target marathon time; overrides the profile goal
        params: Pace parameters
        effort_params: Effort thresholds for HR-less runs
        hook: Optional observability hook

    Returns:
        TrainingPaces with strictly ordered values
    """
    params = params or PaceParams()
    exclusions = ExclusionLog('compute_paces')

    qualifying = []
    for a in activities:
        if not a.has_valid_pace:
            exclusions.exclude('no_pace')
        elif a.distance_meters < params.min_distance:
            exclusions.exclude('too_short')
        else:
            qualifying.append(a)
    exclusions.report(hook)

    qualifying.sort(key=lambda a: (a.date is not None, a.date or date.min), reverse=True)
    recent = qualifying[:params.window]

    if len(recent) < params.min_runs:
        target = target_marathon_seconds(profile, marathon_seconds, params)
        paces = generic_paces(target, params)
        emit(hook, 'paces_generic', runs=len(recent), marathon_seconds=target)
        return paces

    zones = None
    max_hr = profile.estimated_max_heart_rate if profile else None
    resting_hr = (profile.resting_heart_rate if profile else None) or params.default_resting_hr
    if max_hr and max_hr > resting_hr:
        zones = HeartRateZones.karvonen(max_hr, resting_hr, params)

    reference = PaceReference.from_activities(recent, effort_params)
    groups: Dict[Effort, List[ActivityRecord]] = {effort: [] for effort in Effort}
    for run in recent:
        effort = classify(run, profile, reference, effort_params, zones).effort
        if run.pace_seconds_per_km <= params.tempo_pace_ceiling:
            effort = effort.at_least(Effort.HARD)
        groups[effort].append(run)

    def paces_of(runs: List[ActivityRecord]) -> List[float]:
        return [r.pace_seconds_per_km for r in runs]

    easy = _median(paces_of(groups[Effort.EASY] + groups[Effort.MODERATE]))
    tempo = _median(paces_of(groups[Effort.HARD])) or _median(paces_of(groups[Effort.MODERATE]))

    fast = groups[Effort.HARD] + groups[Effort.VERY_HARD]
    mid_distance = [
        r for r in fast
        if params.interval_min_distance <= r.distance_meters <= params.interval_max_distance
    ]
    interval = min(paces_of(mid_distance or fast), default=None)

    goal = None
    if marathon_seconds and marathon_seconds > 0:
        goal = float(marathon_seconds)
    elif profile is not None and profile.goal_seconds:
        goal = float(profile.goal_seconds)

    if goal is not None:
        marathon = goal / MARATHON_KM
    else:
        long_moderate = [
            r for r in groups[Effort.MODERATE] if r.distance_meters >= params.long_run_distance
        ]
        marathon = _median(paces_of(long_moderate)) or _median(paces_of(groups[Effort.MODERATE]))

    ordered = enforce_ordering(easy, marathon, tempo, interval, params)
    paces = TrainingPaces(source='history', based_on_activity_count=len(recent), **ordered)
    emit(hook, 'paces_computed', **paces.to_dict())
    return paces
