"""
Personal records and how they progress.

Records are found by replaying the history oldest first: each run is
compared with the best mark so far for every record type, and beating it
produces a new PersonalRecord carrying the improvement over the old mark.

Record types:
- Fastest 5K, 10K, half and full marathon: runs whose distance is within a
  tolerance of the race distance, compared by total time
- Fastest 1K: estimated from the average pace of any run of at least 1 km
- Longest run, most elevation gain, most weekly volume: larger is better

Progress analysis looks at the records set in the last 30 and 90 days. A burst
of large improvements raises an injury-risk flag, since fitness rarely
improves that fast.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Dict, Any, Sequence, Tuple
import logging

import numpy as np

from .config import RecordParams
from .models import ActivityRecord, Reliability
from .observability import EventHook, ExclusionLog, emit
from .predictor import RACE_DISTANCES

logger = logging.getLogger(__name__)


class RecordType(Enum):
    FASTEST_1K = "fastest_1k"
    FASTEST_5K = "fastest_5k"
    FASTEST_10K = "fastest_10k"
    FASTEST_HALF_MARATHON = "fastest_half_marathon"
    FASTEST_MARATHON = "fastest_marathon"
    LONGEST_RUN = "longest_run"
    MOST_WEEKLY_VOLUME = "most_weekly_volume"
    MOST_ELEVATION_GAIN = "most_elevation_gain"

    @property
    def lower_is_better(self) -> bool:
        """Time records improve downwards, distance and elevation upwards."""
        return self.value.startswith('fastest')

    @property
    def display_name(self) -> str:
        return {
            'fastest_1k': "Fastest 1K",
            'fastest_5k': "Fastest 5K",
            'fastest_10k': "Fastest 10K",
            'fastest_half_marathon': "Fastest Half Marathon",
            'fastest_marathon': "Fastest Marathon",
            'longest_run': "Longest Run",
            'most_weekly_volume': "Most Weekly Volume",
            'most_elevation_gain': "Most Elevation Gain",
        }[self.value]


def race_record_distances(params: Optional[RecordParams] = None) -> List[Tuple[RecordType, float, float]]:
    """(record type, race distance in metres, tolerance percent) per race."""
    params = params or RecordParams()
    return [
        (RecordType.FASTEST_5K, RACE_DISTANCES['5k'], params.tolerance_5k),
        (RecordType.FASTEST_10K, RACE_DISTANCES['10k'], params.tolerance_10k),
        (RecordType.FASTEST_HALF_MARATHON, RACE_DISTANCES['half'], params.tolerance_half),
        (RecordType.FASTEST_MARATHON, RACE_DISTANCES['marathon'], params.tolerance_marathon),
    ]


@dataclass(frozen=True)
class PersonalRecord:
    """
    A new best mark.

    ``value`` is seconds for time records and metres for distance, volume
    and elevation records.
    """
    type: RecordType
    value: float
    date: date
    activity_id: Optional[str] = None
    pace_seconds_per_km: Optional[float] = None
    previous_value: Optional[float] = None
    improvement: float = 0.0
    improvement_percent: float = 0.0
    confidence: Reliability = Reliability.HIGH

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'value': self.value,
            'date': self.date.isoformat(),
            'activityId': self.activity_id,
            'pace': self.pace_seconds_per_km,
            'previousRecord': self.previous_value,
            'improvement': self.improvement,
            'improvementPercent': self.improvement_percent,
            'confidence': self.confidence.value,
        }


@dataclass
class RecordHistory:
    """All successive records of one type, oldest first."""
    type: RecordType
    records: List[PersonalRecord] = field(default_factory=list)
    improvement_recent: float = 0.0      # Summed improvement %, last 30 days
    improvement_progress: float = 0.0    # Summed improvement %, last 90 days
    trend: str = 'stable'                # improving, stable, declining

    @property
    def current(self) -> Optional[PersonalRecord]:
        return self.records[-1] if self.records else None

    @property
    def previous(self) -> Optional[PersonalRecord]:
        return self.records[-2] if len(self.records) > 1 else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type.value,
            'records': [r.to_dict() for r in self.records],
            'currentPR': self.current.to_dict() if self.current else None,
            'previousPR': self.previous.to_dict() if self.previous else None,
            'improvement30Days': self.improvement_recent,
            'improvement90Days': self.improvement_progress,
            'improvementTrend': self.trend,
        }


@dataclass
class RecordProgress:
    """Recent records and the injury-risk flags derived from them."""
    recent_records: List[PersonalRecord]
    count_recent: int
    count_progress: int
    average_improvement: float
    significant_improvements: List[PersonalRecord]
    rapid_improvement: bool
    frequent_records: bool
    risk_score: int
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'recentPRs': [r.to_dict() for r in self.recent_records],
            'improvements': {
                'count30Days': self.count_recent,
                'count90Days': self.count_progress,
                'averageImprovement': self.average_improvement,
                'significantImprovements': [r.to_dict() for r in self.significant_improvements],
            },
            'injuryRiskFactors': {
                'rapidImprovement': self.rapid_improvement,
                'frequentPRs': self.frequent_records,
                'riskScore': self.risk_score,
                'warnings': list(self.warnings),
            },
        }


# =============================================================================
# DETECTION
# =============================================================================

def is_distance_match(distance_meters: float, race_meters: float, tolerance_percent: float) -> bool:
    tolerance = race_meters * tolerance_percent / 100
    return race_meters - tolerance <= distance_meters <= race_meters + tolerance


def record_confidence(activity: ActivityRecord, params: Optional[RecordParams] = None) -> Reliability:
    """
    Trust in a time record from the quality of the activity data.

    Complete data scores 2, a plausible running pace 2 and heart rate 1;
    all three give HIGH, four points MEDIUM.
    """
    params = params or RecordParams()
    score = 0
    if activity.distance_meters > 0 and activity.duration_seconds > 0 and activity.date:
        score += 2
    pace = activity.pace_seconds_per_km
    if pace is not None and params.plausible_fastest_pace <= pace <= params.plausible_slowest_pace:
        score += 2
    if activity.has_heart_rate:
        score += 1

    if score >= 5:
        return Reliability.HIGH
    elif score >= 4:
        return Reliability.MEDIUM
    return Reliability.LOW


def _improvement(record_type: RecordType, value: float, previous: Optional[PersonalRecord]) -> Tuple[float, float]:
    """Absolute and percent improvement over the previous mark (always >= 0 for a new record)."""
    if previous is None or previous.value <= 0:
        return 0.0, 0.0
    if record_type.lower_is_better:
        improvement = previous.value - value
    else:
        improvement = value - previous.value
    return improvement, improvement / previous.value * 100


def _beats(record_type: RecordType, value: float, previous: Optional[PersonalRecord]) -> bool:
    if previous is None:
        return True
    if record_type.lower_is_better:
        return value < previous.value
    return value > previous.value


def _new_record(
    record_type: RecordType,
    value: float,
    activity: ActivityRecord,
    previous: Optional[PersonalRecord],
    confidence: Reliability,
    pace: Optional[float] = None,
    on: Optional[date] = None
) -> PersonalRecord:
    improvement, percent = _improvement(record_type, value, previous)
    return PersonalRecord(
        type=record_type,
        value=value,
        date=on or activity.date,
        activity_id=activity.activity_id,
        pace_seconds_per_km=pace,
        previous_value=previous.value if previous else None,
        improvement=improvement,
        improvement_percent=percent,
        confidence=confidence,
    )


def detect_activity_records(
    activity: ActivityRecord,
    current: Optional[Dict[RecordType, PersonalRecord]] = None,
    params: Optional[RecordParams] = None
) -> List[PersonalRecord]:
    """
    Records set by a single run.

    Args:
        activity: The run to check
        current: Best mark so far per record type (missing types have none)
        params: Record parameters

    Returns:
        New PersonalRecords, empty when the run has no date, distance or duration
    """
    params = params or RecordParams()
    current = current or {}
    found = []

    if not activity.date or activity.distance_meters <= 0 or activity.duration_seconds <= 0:
        return found

    pace = activity.pace_seconds_per_km
    duration = activity.duration_seconds

    for record_type, meters, tolerance in race_record_distances(params):
        if not is_distance_match(activity.distance_meters, meters, tolerance):
            continue
        previous = current.get(record_type)
        if _beats(record_type, duration, previous):
            found.append(_new_record(
                record_type, duration, activity, previous, record_confidence(activity, params), pace
            ))

    # No splits: the whole run's average pace stands in for its best kilometre
    if activity.distance_meters >= params.min_1k_distance:
        previous = current.get(RecordType.FASTEST_1K)
        if _beats(RecordType.FASTEST_1K, pace, previous):
            confidence = (Reliability.MEDIUM if activity.distance_meters >= params.confident_1k_distance
                          else Reliability.LOW)
            found.append(_new_record(RecordType.FASTEST_1K, pace, activity, previous, confidence, pace))

    previous = current.get(RecordType.LONGEST_RUN)
    if _beats(RecordType.LONGEST_RUN, activity.distance_meters, previous):
        found.append(_new_record(
            RecordType.LONGEST_RUN, activity.distance_meters, activity, previous, Reliability.HIGH
        ))

    elevation = activity.elevation_gain_meters
    if elevation:
        previous = current.get(RecordType.MOST_ELEVATION_GAIN)
        if _beats(RecordType.MOST_ELEVATION_GAIN, elevation, previous):
            found.append(_new_record(
                RecordType.MOST_ELEVATION_GAIN, elevation, activity, previous, Reliability.HIGH
            ))

    return found


def detect_weekly_volume_record(
    week: Sequence[ActivityRecord],
    current: Optional[PersonalRecord] = None
) -> Optional[PersonalRecord]:
    """
    Weekly-volume record for one week of runs.

    The record is dated on the week's last dated run. Returns None for an
    empty week, a week without dated runs, or one that does not beat
    ``current``.
    """
    total = float(sum(a.distance_meters for a in week))
    dated = [a for a in week if a.date is not None]
    if total <= 0 or not dated:
        return None
    if not _beats(RecordType.MOST_WEEKLY_VOLUME, total, current):
        return None

    last = max(dated, key=lambda a: a.date)
    improvement, percent = _improvement(RecordType.MOST_WEEKLY_VOLUME, total, current)
    return PersonalRecord(
        type=RecordType.MOST_WEEKLY_VOLUME,
        value=total,
        date=last.date,
        previous_value=current.value if current else None,
        improvement=improvement,
        improvement_percent=percent,
    )


def find_personal_records(
    activities: Sequence[ActivityRecord],
    params: Optional[RecordParams] = None,
    hook: Optional[EventHook] = None
) -> List[PersonalRecord]:
    """
    Replay a history and return every record it set, oldest first.

    Weekly volume uses Monday-start weeks and is checked once each week is
    complete. Undated runs are excluded and reported through ``hook``.
    """
    params = params or RecordParams()
    exclusions = ExclusionLog('find_personal_records')

    dated = []
    for a in activities:
        if a.date is None:
            exclusions.exclude('missing_date')
        else:
            dated.append(a)
    exclusions.report(hook)
    dated.sort(key=lambda a: (a.date, a.activity_id or ''))

    current: Dict[RecordType, PersonalRecord] = {}
    records = []
    for activity in dated:
        for record in detect_activity_records(activity, current, params):
            current[record.type] = record
            records.append(record)

    weeks: Dict[date, List[ActivityRecord]] = defaultdict(list)
    for activity in dated:
        weeks[activity.date - timedelta(days=activity.date.weekday())].append(activity)
    for week_start in sorted(weeks):
        record = detect_weekly_volume_record(weeks[week_start], current.get(RecordType.MOST_WEEKLY_VOLUME))
        if record is not None:
            current[record.type] = record
            records.append(record)

    records.sort(key=lambda r: r.date)
    logger.debug("Found %d personal record(s) in %d runs", len(records), len(dated))
    emit(hook, 'records_found', count=len(records), types=sorted({r.type.value for r in records}))
    return records


# =============================================================================
# PROGRESS
# =============================================================================

def _as_of(records: Sequence[PersonalRecord], as_of: Optional[date]) -> Optional[date]:
    if as_of is not None:
        return as_of
    return max((r.date for r in records), default=None)


def build_record_histories(
    records: Sequence[PersonalRecord],
    as_of: Optional[date] = None,
    params: Optional[RecordParams] = None
) -> Dict[RecordType, RecordHistory]:
    """
    Group records by type and classify each type's trend.

    The trend compares the summed improvement percent of the last
    ``recent_days`` with ``trend_threshold_percent``.

    Args:
        records: Records in any order
        as_of: Reference date for the windows (default: latest record)
        params: Record parameters

    Returns:
        RecordHistory per record type that has at least one record
    """
    params = params or RecordParams()
    as_of = _as_of(records, as_of)

    histories: Dict[RecordType, RecordHistory] = {}
    for record in sorted(records, key=lambda r: r.date):
        histories.setdefault(record.type, RecordHistory(record.type)).records.append(record)

    for history in histories.values():
        recent_start = as_of - timedelta(days=params.recent_days)
        progress_start = as_of - timedelta(days=params.progress_days)
        history.improvement_recent = float(sum(
            r.improvement_percent for r in history.records if recent_start <= r.date <= as_of
        ))
        history.improvement_progress = float(sum(
            r.improvement_percent for r in history.records if progress_start <= r.date <= as_of
        ))
        if history.improvement_recent > params.trend_threshold_percent:
            history.trend = 'improving'
        elif history.improvement_recent < -params.trend_threshold_percent:
            history.trend = 'declining'
        else:
            history.trend = 'stable'

    return histories


def analyze_record_progress(
    histories: Dict[RecordType, RecordHistory],
    as_of: Optional[date] = None,
    params: Optional[RecordParams] = None,
    hook: Optional[EventHook] = None
) -> RecordProgress:
    """
    Summarise recent records and flag improvement that is suspiciously fast.

    Risk score (capped at 100):
        +40  three or more >5% improvements and two or more records in 30 days
        +30  four or more records in 30 days
        +30  average improvement above 10%
    """
    params = params or RecordParams()
    every = [r for h in histories.values() for r in h.records]
    as_of = _as_of(every, as_of)
    if as_of is None:
        return RecordProgress([], 0, 0, 0.0, [], False, False, 0)

    progress_start = as_of - timedelta(days=params.progress_days)
    recent_start = as_of - timedelta(days=params.recent_days)
    recent = sorted((r for r in every if progress_start <= r.date <= as_of), key=lambda r: r.date)
    last_month = [r for r in recent if r.date >= recent_start]
    significant = [r for r in recent if r.improvement_percent > params.significant_improvement_percent]
    average = float(np.mean([r.improvement_percent for r in recent])) if recent else 0.0

    rapid = (len(significant) >= params.rapid_significant_count
             and len(last_month) >= params.rapid_recent_count)
    frequent = len(last_month) >= params.frequent_recent_count

    risk = 0
    warnings = []
    if rapid:
        risk += params.rapid_improvement_risk
        warnings.append("Multiple significant improvements detected - monitor for overtraining")
    if frequent:
        risk += params.frequent_records_risk
        warnings.append("High frequency of PRs - ensure adequate recovery")
    if average > params.rapid_average_percent:
        risk += params.rapid_average_risk
        warnings.append("Very rapid pace improvements - risk of injury if not managed carefully")

    progress = RecordProgress(
        recent_records=recent,
        count_recent=len(last_month),
        count_progress=len(recent),
        average_improvement=average,
        significant_improvements=significant,
        rapid_improvement=rapid,
        frequent_records=frequent,
        risk_score=min(risk, 100),
        warnings=warnings,
    )
    emit(hook, 'record_progress_analyzed', risk_score=progress.risk_score, recent=len(recent))
    return progress
