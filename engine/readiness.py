"""
Race readiness assessment across five dimensions.

Each dimension is scored 0-100 from the runs inside its own lookback window:

    aerobic base          16 weeks   volume, stability, long runs, easy share
    strength / mobility   12 weeks   consistency, load jumps, volume trend
    mental preparation     8 weeks   long-run experience, race pace, taper
    lactate threshold      6 weeks   tempo frequency and progression
    neuromuscular power    4 weeks   speed work and intervals

The overall score is a weighted sum whose weights follow the training phase
implied by the days left before the race.

Based on:
- Gabbett (2016): week-to-week load spikes as an injury-risk marker
- Mujika & Padilla (2003): taper volume reductions of roughly 20-40%
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional, Dict, Any, Sequence
import numpy as np

from .config import ReadinessParams, PaceParams, EffortParams
from .effort import Effort, PaceReference, classify
from .models import ActivityRecord, AthleteProfile, ExperienceLevel, TrainingPhase, round_half_up
from .observability import EventHook, emit
from .paces import compute_paces
from .plan import phase_for_days_to_race


COMPONENTS = (
    'aerobic_base',
    'lactate_threshold',
    'neuromuscular_power',
    'strength_mobility',
    'mental_preparation',
)

# Component weights per phase, in COMPONENTS order
PHASE_WEIGHTS = {
    TrainingPhase.BASE: (0.4, 0.2, 0.1, 0.2, 0.1),
    TrainingPhase.BUILD: (0.3, 0.3, 0.2, 0.1, 0.1),
    TrainingPhase.PEAK: (0.2, 0.25, 0.2, 0.15, 0.2),
    TrainingPhase.TAPER: (0.2, 0.2, 0.15, 0.2, 0.25),
}

_CAMEL = {
    'aerobic_base': 'aerobicBase',
    'lactate_threshold': 'lactateThreshold',
    'neuromuscular_power': 'neuromuscularPower',
    'strength_mobility': 'strengthMobility',
    'mental_preparation': 'mentalPreparation',
}


@dataclass(frozen=True)
class ReadinessScore:
    """Overall and per-dimension readiness, 0-100."""
    overall: int
    components: Dict[str, int]
    recommendations: List[str] = field(default_factory=list)
    as_of: Optional[date] = None
    days_to_race: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overall': self.overall,
            'components': {_CAMEL[k]: v for k, v in self.components.items()},
            'recommendations': list(self.recommendations),
            'asOf': self.as_of.isoformat() if self.as_of else None,
            'daysToRace': self.days_to_race,
        }


def _clamp(score: float) -> float:
    return min(100.0, max(0.0, score))


# =============================================================================
# WINDOWS AND WEEKLY VOLUME
# =============================================================================

def activities_in_window(
    activities: Sequence[ActivityRecord],
    as_of: Optional[date],
    weeks: int
) -> List[ActivityRecord]:
    """Dated runs in the ``weeks`` before and including ``as_of``, newest first."""
    if as_of is None:
        return []
    start = as_of - timedelta(days=7 * weeks - 1)
    window = [a for a in activities if a.date is not None and start <= a.date <= as_of]
    return sorted(window, key=lambda a: a.date, reverse=True)


def weekly_distances(
    activities: Sequence[ActivityRecord],
    as_of: Optional[date],
    weeks: int
) -> np.ndarray:
    """
    Kilometres per 7-day block ending on ``as_of``.

    Returns:
        Array of length ``weeks`` in chronological order (last entry is the
        week ending on ``as_of``)
    """
    totals = np.zeros(weeks)
    if as_of is None:
        return totals
    for a in activities:
        if a.date is None or a.date > as_of:
            continue
        index = (as_of - a.date).days // 7
        if index < weeks:
            totals[weeks - 1 - index] += a.distance_km
    return totals


def stability(values: np.ndarray) -> float:
    """1 - coefficient of variation, floored at 0."""
    if len(values) == 0:
        return 0.0
    mean = float(np.mean(values))
    if mean <= 0:
        return 0.0
    return max(0.0, 1.0 - float(np.std(values)) / mean)


def pace_progression(runs: Sequence[ActivityRecord], min_runs: int = 4, fallback: float = 0.0) -> float:
    """
    1.0 when the newer half of ``runs`` (newest first) is faster than the
    older half, otherwise 0.5. ``fallback`` with fewer than ``min_runs``.
    """
    paces = [r.pace_seconds_per_km for r in runs if r.has_valid_pace]
    if len(paces) < min_runs:
        return fallback
    half = len(paces) // 2
    recent = float(np.mean(paces[:half]))
    older = float(np.mean(paces[half:]))
    return 1.0 if older > recent else 0.5


def target_weekly_km(level: ExperienceLevel, params: Optional[ReadinessParams] = None) -> float:
    params = params or ReadinessParams()
    return {
        ExperienceLevel.BEGINNER: params.target_km_beginner,
        ExperienceLevel.INTERMEDIATE: params.target_km_intermediate,
        ExperienceLevel.ADVANCED: params.target_km_advanced,
    }[level]


def load_jump_risk(weekly: np.ndarray, params: Optional[ReadinessParams] = None) -> float:
    """Injury-risk score 0-1 from week-over-week volume increases."""
    params = params or ReadinessParams()
    risk = 0.0
    for previous, current in zip(weekly[:-1], weekly[1:]):
        if previous <= 0:
            continue
        increase = (current - previous) / previous
        if increase > params.risky_increase:
            risk += 0.2
        if increase > params.very_risky_increase:
            risk += 0.3
    return min(1.0, risk)


def volume_progression(weekly: np.ndarray) -> float:
    """1.0 for a 5-15% rise between halves, 0.7 for 0-25%, otherwise 0.3."""
    half = len(weekly) // 2
    first = float(np.mean(weekly[:half])) if half else 0.0
    second = float(np.mean(weekly[half:])) if len(weekly) - half else 0.0
    if first <= 0:
        return 0.3
    change = (second - first) / first
    if 0.05 <= change <= 0.15:
        return 1.0
    if 0.0 <= change <= 0.25:
        return 0.7
    return 0.3


def taper_quality(activities: Sequence[ActivityRecord], as_of: Optional[date]) -> float:
    """Last week's volume against weeks 3-6 back; 60-80% is ideal."""
    weekly = weekly_distances(activities, as_of, 8)
    baseline = float(np.mean(weekly[2:6]))
    if baseline <= 0:
        return 0.3
    ratio = weekly[-1] / baseline
    if 0.6 <= ratio <= 0.8:
        return 1.0
    if 0.5 <= ratio <= 0.9:
        return 0.7
    return 0.3


# =============================================================================
# EFFORT HELPERS
# =============================================================================

class _EffortLookup:
    """Effort per run, classified once against the athlete's recent paces."""

    def __init__(self, activities, profile, params, effort_params, marathon_pace):
        self.params = params
        self.marathon_pace = marathon_pace
        reference = PaceReference.from_activities(activities, effort_params)
        self._efforts = {
            id(a): classify(a, profile, reference, effort_params).effort for a in activities
        }

    def effort(self, a: ActivityRecord) -> Effort:
        return self._efforts.get(id(a), Effort.EASY)

    def is_easy(self, a: ActivityRecord) -> bool:
        return self.effort(a) == Effort.EASY

    def is_tempo(self, a: ActivityRecord) -> bool:
        return self.effort(a) == Effort.HARD

    def is_speed(self, a: ActivityRecord) -> bool:
        effort = self.effort(a)
        if effort == Effort.VERY_HARD:
            return True
        return effort == Effort.HARD and a.distance_meters <= 8000

    def is_marathon_pace(self, a: ActivityRecord) -> bool:
        pace = a.pace_seconds_per_km
        if pace is None or not self.marathon_pace:
            return False
        return abs(pace - self.marathon_pace) / self.marathon_pace <= self.params.marathon_pace_tolerance


# =============================================================================
# COMPONENT SCORES
# =============================================================================

def score_aerobic_base(runs, weekly, profile, lookup, params) -> float:
    if not runs:
        return 0.0
    weeks = len(weekly)
    level = profile.experience_level if profile else ExperienceLevel.INTERMEDIATE

    volume = float(np.mean(weekly)) / target_weekly_km(level, params) * 30
    score = min(40.0, volume + stability(weekly) * 10)

    long_runs = [r for r in runs if r.distance_meters >= params.long_run_distance]
    longest_km = max(r.distance_km for r in runs)
    score += min(1.0, len(long_runs) / weeks) * 15 + min(30.0, longest_km) / 30 * 15

    easy = [r for r in runs if lookup.is_easy(r)]
    score += min(30.0, len(easy) / len(runs) * 40 + pace_progression(easy) * 10)
    return _clamp(score)


def score_lactate_threshold(runs, weeks, lookup) -> float:
    if not runs:
        return 0.0
    tempo = [r for r in runs if lookup.is_tempo(r)]
    score = min(25.0, len(tempo) / weeks * 12.5)
    score += pace_progression(tempo, fallback=0.3) * 30

    marathon_pace = [r for r in runs if lookup.is_marathon_pace(r)]
    score += 20 if len(marathon_pace) >= 4 else len(marathon_pace) * 5
    return _clamp(score)


def score_neuromuscular_power(runs, weeks, lookup) -> float:
    if not runs:
        return 0.0
    speed = [r for r in runs if lookup.is_speed(r)]
    score = min(30.0, len(speed) / weeks * 15)

    intervals = [r for r in speed if 3000 <= r.distance_meters <= 8000]
    if intervals:
        score += pace_progression(intervals, fallback=0.2) * 40
    else:
        score += 10

    speed_endurance = [
        r for r in runs if 5000 <= r.distance_meters <= 10000 and lookup.is_tempo(r)
    ]
    score += min(20.0, len(speed_endurance) * 5)
    return _clamp(score)


def score_strength_mobility(weekly, params) -> float:
    consistency = float(np.count_nonzero(weekly > 0)) / len(weekly)
    score = consistency * 50
    score += (1 - load_jump_risk(weekly[-8:], params)) * 30
    score += volume_progression(weekly) * 20
    return _clamp(score)


def score_mental_preparation(runs, activities, as_of, days_to_race, lookup, params) -> float:
    long_runs = [r for r in runs if r.distance_meters >= params.very_long_run_distance]
    very_long = [r for r in runs if r.distance_meters >= params.ultra_long_run_distance]
    score = min(25.0, len(long_runs) * 3) + min(15.0, len(very_long) * 5)

    race_pace = [
        r for r in runs
        if r.distance_meters >= params.long_run_distance and lookup.is_marathon_pace(r)
    ]
    score += min(30.0, len(race_pace) * 7.5)

    if days_to_race <= 21:
        score += taper_quality(activities, as_of) * 30
    else:
        score += 20
    return _clamp(score)


def readiness_recommendations(
    components: Dict[str, float],
    days_to_race: int,
    params: Optional[ReadinessParams] = None
) -> List[str]:
    """Advice for every component below the threshold."""
    params = params or ReadinessParams()
    threshold = params.recommendation_threshold
    recs = []

    if components['aerobic_base'] < threshold:
        recs.append("Focus on building weekly mileage with easy-paced runs")
        recs.append("Include one long run per week, building by 2-3km each time")
    if components['lactate_threshold'] < threshold:
        recs.append("Add 1-2 tempo runs per week at threshold pace")
        recs.append("Practice marathon pace during long runs")
    if components['neuromuscular_power'] < threshold and days_to_race > 21:
        recs.append("Include weekly interval training (4-6x 1km at 5K pace)")
        recs.append("Add strides to easy runs to maintain leg turnover")
    if components['strength_mobility'] < threshold:
        recs.append("Focus on consistent training without dramatic mileage jumps")
        recs.append("Consider strength training and injury prevention work")
    if components['mental_preparation'] < threshold:
        if days_to_race > 28:
            recs.append("Schedule long runs of 28-32km to build confidence")
            recs.append("Practice race-day nutrition and pacing strategies")
        else:
            recs.append("Trust your training and focus on race day execution")
            recs.append("Visualize race success and prepare mentally for challenges")

    if not recs:
        recs.append("Excellent preparation! Maintain current training approach")
        recs.append("Focus on staying healthy and executing race strategy")
    return recs


def assess_race_readiness(
    activities: Sequence[ActivityRecord],
    profile: Optional[AthleteProfile] = None,
    as_of: Optional[date] = None,
    params: Optional[ReadinessParams] = None,
    pace_params: Optional[PaceParams] = None,
    effort_params: Optional[EffortParams] = None,
    hook: Optional[EventHook] = None
) -> ReadinessScore:
    """
    Score race readiness.

    Args:
        activities: Activity history in any order
        profile: Athlete profile (race date, experience level, HR, goal)
        as_of: Assessment date (default: latest activity date)
        params: Readiness parameters
        pace_params: Pace parameters used to find marathon pace
        effort_params: Effort thresholds
        hook: Optional observability hook

    Returns:
        ReadinessScore with integer scores 0-100
    """
    params = params or ReadinessParams()
    profile = profile or AthleteProfile()

    if as_of is None:
        dated = [a.date for a in activities if a.date is not None]
        as_of = max(dated) if dated else None

    if profile.race_date is not None and as_of is not None:
        days_to_race = (profile.race_date - as_of).days
    else:
        days_to_race = params.default_days_to_race

    marathon_pace = compute_paces(
        activities, profile, params=pace_params, effort_params=effort_params
    ).marathon
    longest = activities_in_window(
        activities, as_of,
        max(params.aerobic_weeks, params.strength_weeks, params.mental_weeks,
            params.threshold_weeks, params.power_weeks)
    )
    lookup = _EffortLookup(longest, profile, params, effort_params, marathon_pace)

    aerobic_runs = activities_in_window(activities, as_of, params.aerobic_weeks)
    raw = {
        'aerobic_base': score_aerobic_base(
            aerobic_runs, weekly_distances(activities, as_of, params.aerobic_weeks),
            profile, lookup, params
        ),
        'lactate_threshold': score_lactate_threshold(
            activities_in_window(activities, as_of, params.threshold_weeks),
            params.threshold_weeks, lookup
        ),
        'neuromuscular_power': score_neuromuscular_power(
            activities_in_window(activities, as_of, params.power_weeks),
            params.power_weeks, lookup
        ),
        'strength_mobility': score_strength_mobility(
            weekly_distances(activities, as_of, params.strength_weeks), params
        ),
        'mental_preparation': score_mental_preparation(
            activities_in_window(activities, as_of, params.mental_weeks),
            activities, as_of, days_to_race, lookup, params
        ),
    }

    weights = PHASE_WEIGHTS[phase_for_days_to_race(days_to_race)]
    overall = sum(raw[name] * w for name, w in zip(COMPONENTS, weights))

    score = ReadinessScore(
        overall=round_half_up(overall),
        components={name: round_half_up(raw[name]) for name in COMPONENTS},
        recommendations=readiness_recommendations(raw, days_to_race, params),
        as_of=as_of,
        days_to_race=days_to_race,
    )
    emit(hook, 'readiness_assessed', overall=score.overall, days_to_race=days_to_race)
    return score
