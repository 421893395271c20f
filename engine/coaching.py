"""
Day-to-day coaching advice from the current training-load state.

The workout recommendation is a decision table over TSB (form), CTL
(fitness) and ATL (fatigue), checked from most to least protective: rest,
recovery, easy, interval, tempo, then easy as the default.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable, List, Optional, Dict, Any

from .config import CoachingParams
from .models import TrainingLoadPoint


@dataclass(frozen=True)
class CoachingRecommendation:
    """Suggested session for today."""
    type: str                      # rest, recovery, easy, tempo, interval
    reason: str
    confidence: float
    target_duration_minutes: Optional[int] = None
    target_intensity: Optional[float] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'reason': self.reason,
            'confidence': self.confidence,
            'targetDuration': self.target_duration_minutes,
            'targetIntensity': self.target_intensity,
            'warnings': list(self.warnings),
        }


def fitness_level(point: TrainingLoadPoint) -> float:
    return min(point.ctl, 100.0)


def fatigue_level(point: TrainingLoadPoint) -> float:
    return min(point.atl, 100.0)


def recommend_workout(
    point: TrainingLoadPoint,
    days_since_rest: int = 0,
    params: Optional[CoachingParams] = None
) -> CoachingRecommendation:
    """
    Recommend today's workout.

    Args:
        point: Latest training-load point
        days_since_rest: Consecutive days trained
        params: Coaching thresholds

    Returns:
        CoachingRecommendation
    """
    params = params or CoachingParams()
    fitness = fitness_level(point)
    fatigue = fatigue_level(point)
    tsb = point.tsb
    overdue = days_since_rest > params.max_days_without_rest

    warnings = []
    if fatigue > params.high_fatigue_warning:
        warnings.append("High fatigue detected - consider easier training")
    if fitness < params.low_fitness_warning:
        warnings.append("Building base fitness - focus on consistency over intensity")
    if overdue:
        warnings.append("Overdue for rest day")

    if tsb < params.rest_tsb or fatigue > params.rest_fatigue or overdue:
        if tsb < params.rest_tsb:
            reason = "High negative TSB indicates accumulated fatigue"
        elif overdue:
            reason = "Overdue for recovery"
        else:
            reason = "Very high acute training load"
        return CoachingRecommendation('rest', reason, 0.9, warnings=warnings)

    if tsb < params.recovery_tsb or fatigue > params.recovery_fatigue:
        return CoachingRecommendation(
            'recovery', "Moderate fatigue - active recovery recommended", 0.8,
            target_duration_minutes=30, target_intensity=0.6, warnings=warnings
        )

    if tsb < 0 or fitness < params.easy_fitness:
        if fitness < params.easy_fitness:
            reason = "Building aerobic base with easy effort"
        else:
            reason = "Slight fatigue - easy pace recommended"
        return CoachingRecommendation(
            'easy', reason, 0.7,
            target_duration_minutes=45, target_intensity=0.7, warnings=warnings
        )

    if tsb > params.interval_tsb and fitness > params.interval_fitness:
        return CoachingRecommendation(
            'interval', "Great form detected - ready for high-intensity work", 0.8,
            target_duration_minutes=60, target_intensity=0.9, warnings=warnings
        )

    if tsb > params.tempo_tsb and fitness > params.tempo_fitness:
        return CoachingRecommendation(
            'tempo', "Good fitness with manageable fatigue - tempo effort appropriate", 0.7,
            target_duration_minutes=50, target_intensity=0.8, warnings=warnings
        )

    return CoachingRecommendation(
        'easy', "Balanced training load - maintaining aerobic fitness", 0.6,
        target_duration_minutes=45, target_intensity=0.7, warnings=warnings
    )


def weekly_focus(weeks_to_race: float) -> str:
    """One-line focus for the current week."""
    if weeks_to_race > 12:
        return "Base building: mileage and easy aerobic runs."
    elif weeks_to_race > 8:
        return "Build: introduce tempo and moderate long runs."
    elif weeks_to_race > 4:
        return "Peak: quality workouts, sharpen intervals."
    elif weeks_to_race > 2:
        return "Taper: reduce volume, maintain intensity."
    return "Race week: rest, hydrate, and trust your training."


def load_risk_assessment(
    acute: float,
    chronic: float,
    params: Optional[CoachingParams] = None
) -> str:
    """
    Injury-risk text from the 7-day vs 28-day load ratio.

    Args:
        acute: Weekly load over the last 7 days
        chronic: Average weekly load over the last 28 days
        params: Coaching thresholds
    """
    params = params or CoachingParams()
    if chronic <= 0:
        return "Insufficient data."
    ratio = acute / chronic
    if ratio > params.cutback_ratio:
        return "Elevated injury risk: consider a cutback week."
    elif ratio < params.undertraining_ratio:
        return "Undertraining: gently increase volume."
    return "Stable load: maintain consistent training."


def consecutive_training_days(training_dates: Iterable[date], as_of: date) -> int:
    """Consecutive days up to and including ``as_of`` with at least one run."""
    trained = set(training_dates)
    count = 0
    day = as_of
    while day in trained:
        count += 1
        day -= timedelta(days=1)
    return count
