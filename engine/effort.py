"""
Effort classification: easy / moderate / hard / very hard.

Heart rate is the primary signal when both an average HR and a maximum HR are
known. Without HR the classifier compares pace to the athlete's own recent
runs, so the same 5:00/km can be easy for one runner and very hard for
another.

Based on:
- Percent-of-max HR intensity bands (65/80/90%)
- Karvonen (1957): heart-rate-reserve zones
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, List, Sequence
import numpy as np

from .config import EffortParams, PaceParams
from .models import ActivityRecord, AthleteProfile


class Effort(Enum):
    """Effort labels, ordered from easiest to hardest."""
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"
    VERY_HARD = "veryHard"

    @property
    def level(self) -> int:
        return list(Effort).index(self)

    def at_least(self, other: 'Effort') -> 'Effort':
        return self if self.level >= other.level else other


@dataclass(frozen=True)
class EffortResult:
    """Classification with the signal it was based on."""
    effort: Effort
    basis: str          # 'heart_rate', 'pace' or 'default'
    reliable: bool = True


@dataclass(frozen=True)
class HeartRateZones:
    """
    Upper bpm boundaries of the easy, moderate and hard bands.

    Anything above ``hard_max`` is very hard.
    """
    easy_max: float
    moderate_max: float
    hard_max: float

    @classmethod
    def from_max(cls, max_hr: float, params: Optional[EffortParams] = None) -> 'HeartRateZones':
        """Percent-of-max boundaries."""
        params = params or EffortParams()
        return cls(
            easy_max=max_hr * params.hr_moderate,
            moderate_max=max_hr * params.hr_hard,
            hard_max=max_hr * params.hr_very_hard,
        )

    @classmethod
    def karvonen(
        cls,
        max_hr: float,
        resting_hr: Optional[float] = None,
        params: Optional[PaceParams] = None
    ) -> 'HeartRateZones':
        """
        Heart-rate-reserve boundaries.

        zone_hr = resting + fraction × (max - resting)

        Args:
            max_hr: Maximum heart rate (bpm)
            resting_hr: Resting heart rate (bpm), default from params
            params: Pace parameters holding the reserve fractions

        Returns:
            HeartRateZones in bpm
        """
        params = params or PaceParams()
        rest = resting_hr or params.default_resting_hr
        if max_hr <= rest:
            raise ValueError(f"max_hr ({max_hr}) must be greater than resting_hr ({rest})")
        reserve = max_hr - rest
        return cls(
            easy_max=rest + reserve * params.reserve_moderate,
            moderate_max=rest + reserve * params.reserve_hard,
            hard_max=rest + reserve * params.reserve_very_hard,
        )

    def classify(self, heart_rate: float) -> Effort:
        if heart_rate < self.easy_max:
            return Effort.EASY
        elif heart_rate < self.moderate_max:
            return Effort.MODERATE
        elif heart_rate <= self.hard_max:
            return Effort.HARD
        return Effort.VERY_HARD


@dataclass(frozen=True)
class PaceReference:
    """Summary of the athlete's recent paces used to calibrate pace bands."""
    median_pace: float
    hard_pace: float      # Pace faster than this beats 80% of recent runs
    sample_size: int

    @classmethod
    def from_paces(
        cls,
        paces: Sequence[float],
        params: Optional[EffortParams] = None
    ) -> Optional['PaceReference']:
        params = params or EffortParams()
        values = np.asarray([p for p in paces if p and np.isfinite(p) and p > 0], dtype=float)
        if len(values) < params.min_reference_runs:
            return None
        return cls(
            median_pace=float(np.median(values)),
            hard_pace=float(np.percentile(values, params.hard_percentile)),
            sample_size=len(values),
        )

    @classmethod
    def from_activities(
        cls,
        activities: Sequence[ActivityRecord],
        params: Optional[EffortParams] = None
    ) -> Optional['PaceReference']:
        """
        Build a reference from the most recent runs with a usable pace.

        Undated runs are only used when no dated runs exist.
        """
        params = params or EffortParams()
        paced = [a for a in activities if a.has_valid_pace]
        dated = sorted((a for a in paced if a.date), key=lambda a: a.date, reverse=True)
        recent = dated[:params.reference_window] if dated else paced[:params.reference_window]
        return cls.from_paces([a.pace_seconds_per_km for a in recent], params)


def classify_by_heart_rate(
    avg_hr: float,
    max_hr: float,
    params: Optional[EffortParams] = None
) -> Effort:
    """Classify by average HR against percent-of-max zones."""
    return HeartRateZones.from_max(max_hr, params).classify(avg_hr)


def classify_by_pace(
    pace: float,
    reference: Optional[PaceReference] = None,
    params: Optional[EffortParams] = None
) -> Effort:
    """
    Classify a pace (s/km) against the athlete's recent paces.

    Falls back to absolute thresholds when there is no reference.
    """
    params = params or EffortParams()

    if reference is None:
        if pace < params.absolute_very_hard_pace:
            return Effort.VERY_HARD
        elif pace < params.absolute_hard_pace:
            return Effort.HARD
        elif pace < params.absolute_moderate_pace:
            return Effort.MODERATE
        return Effort.EASY

    ratio = pace / reference.median_pace
    if ratio <= params.very_hard_ratio:
        return Effort.VERY_HARD
    if pace < reference.hard_pace:
        return Effort.HARD
    if ratio <= params.moderate_ratio:
        return Effort.MODERATE
    return Effort.EASY


def classify(
    activity: ActivityRecord,
    profile: Optional[AthleteProfile] = None,
    reference: Optional[PaceReference] = None,
    params: Optional[EffortParams] = None,
    zones: Optional[HeartRateZones] = None
) -> EffortResult:
    """
    Classify the intensity of one activity.

    When heart rate and pace disagree, pace is preferred for runs shorter
    than 8 km (HR lags on short efforts) and heart rate otherwise.

    Args:
        activity: The run to classify
        profile: Athlete profile (max HR or age)
        reference: Recent pace reference for pace-based classification
        params: Effort thresholds
        zones: Explicit HR zones replacing the percent-of-max bands

    Returns:
        EffortResult; unclassifiable runs are easy with reliable=False
    """
    params = params or EffortParams()

    hr_effort = None
    max_hr = profile.estimated_max_heart_rate if profile else None
    if activity.has_heart_rate and (zones is not None or max_hr):
        if zones is not None:
            hr_effort = zones.classify(activity.avg_heart_rate)
        else:
            hr_effort = classify_by_heart_rate(activity.avg_heart_rate, max_hr, params)

    pace_effort = None
    pace = activity.pace_seconds_per_km
    if pace is not None:
        pace_effort = classify_by_pace(pace, reference, params)

    if hr_effort is not None and pace_effort is not None:
        if hr_effort == pace_effort:
            return EffortResult(hr_effort, 'heart_rate')
        if activity.distance_meters < params.pace_priority_distance:
            return EffortResult(pace_effort, 'pace')
        return EffortResult(hr_effort, 'heart_rate')

    if hr_effort is not None:
        return EffortResult(hr_effort, 'heart_rate')
    if pace_effort is not None:
        return EffortResult(pace_effort, 'pace')
    return EffortResult(Effort.EASY, 'default', reliable=False)


def classify_all(
    activities: Sequence[ActivityRecord],
    profile: Optional[AthleteProfile] = None,
    params: Optional[EffortParams] = None,
    zones: Optional[HeartRateZones] = None
) -> List[EffortResult]:
    """Classify a batch against a pace reference built from the same batch."""
    params = params or EffortParams()
    reference = PaceReference.from_activities(activities, params)
    return [classify(a, profile, reference, params, zones) for a in activities]
