"""
Data model shared by every engine component.

Activity records and athlete profiles are supplied by the ingestion and
profile collaborators and are treated as immutable snapshots. Everything the
engine produces (load points, predictions, plans) is a fresh value object with
a ``to_dict()`` view whose field names are stable for persistence and APIs.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Dict, Any, List, FrozenSet
import math


MARATHON_METERS = 42195.0
MARATHON_KM = MARATHON_METERS / 1000.0


class ExperienceLevel(Enum):
    """Runner experience classification."""
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class TrainingFocus(Enum):
    """Areas an athlete wants their training to emphasise."""
    SPEED = "speed"
    ENDURANCE = "endurance"
    STRENGTH = "strength"
    RECOVERY = "recovery"


class Reliability(Enum):
    """Qualitative trust in a prediction."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {'low': 0, 'medium': 1, 'high': 2}[self.value]


class TrainingPhase(Enum):
    """Periodization phase. Declaration order is the only legal progression."""
    BASE = "base"
    BUILD = "build"
    PEAK = "peak"
    TAPER = "taper"

    @property
    def order(self) -> int:
        return list(TrainingPhase).index(self)


class WorkoutType(Enum):
    """Prescribed workout types."""
    EASY = "easy"
    TEMPO = "tempo"
    INTERVAL = "interval"
    LONG = "long"
    RECOVERY = "recovery"


# =============================================================================
# PARSING HELPERS
# =============================================================================

def parse_date(value: Any) -> Optional[date]:
    """
    Coerce an ISO-8601 date or datetime (string or object) to a date.

    Returns None for anything unparsable; callers treat that record as undated.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_hms(value: Optional[str]) -> Optional[int]:
    """
    Parse an ``HH:MM:SS`` (or ``MM:SS``) duration into seconds.

    Args:
        value: Duration string, e.g. "3:45:00"

    Returns:
        Total seconds, or None if the string is missing or malformed
    """
    if not value:
        return None
    parts = str(value).strip().split(':')
    if len(parts) not in (2, 3):
        return None
    try:
        numbers = [int(p) for p in parts]
    except ValueError:
        return None
    if any(n < 0 for n in numbers):
        return None
    if len(numbers) == 2:
        numbers.insert(0, 0)
    hours, minutes, seconds = numbers
    if minutes >= 60 or seconds >= 60:
        return None
    total = hours * 3600 + minutes * 60 + seconds
    return total if total > 0 else None


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def _required_float(value: Any, name: str) -> float:
    try:
        number = float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be numeric, got {value!r}")
    if math.isnan(number):
        number = 0.0
    if number < 0 or math.isinf(number):
        raise ValueError(f"{name} must be a finite value >= 0, got {number}")
    return number


def _pick(d: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in d and d[key] is not None:
            return d[key]
    return None


def round_half_up(value: float) -> int:
    """Round halves up (37.5 -> 38); ``round()`` would round them to even."""
    return int(math.floor(value + 0.5))


# =============================================================================
# INPUTS
# =============================================================================

@dataclass(frozen=True)
class ActivityRecord:
    """
    One completed run.

    Records with zero distance or duration carry no pace; records without a
    date cannot take part in any windowed calculation.
    """
    date: Optional[date]
    distance_meters: float
    duration_seconds: float
    avg_heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None
    elevation_gain_meters: Optional[float] = None
    training_stress_score: Optional[float] = None
    activity_id: Optional[str] = None

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000.0

    @property
    def duration_hours(self) -> float:
        return self.duration_seconds / 3600.0

    @property
    def pace_seconds_per_km(self) -> Optional[float]:
        """Pace in seconds per kilometre, or None when it cannot be derived."""
        if self.distance_meters <= 0 or self.duration_seconds <= 0:
            return None
        pace = self.duration_seconds / self.distance_km
        return pace if math.isfinite(pace) else None

    @property
    def has_valid_pace(self) -> bool:
        return self.pace_seconds_per_km is not None

    @property
    def has_heart_rate(self) -> bool:
        return self.avg_heart_rate is not None and self.avg_heart_rate > 0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'ActivityRecord':
        """
        Build a record from a loosely-typed mapping.

        Accepts both the camelCase field names used by the ingestion service
        (``distanceMeters``) and snake_case names. Raises ValueError for a
        negative or non-numeric distance/duration so loaders can skip the row.
        """
        distance = _required_float(
            _pick(d, 'distance_meters', 'distanceMeters', 'distance'), 'distance_meters'
        )
        duration = _required_float(
            _pick(d, 'duration_seconds', 'durationSeconds', 'duration'), 'duration_seconds'
        )
        activity_id = _pick(d, 'activity_id', 'activityId', 'id')
        return cls(
            date=parse_date(_pick(d, 'date', 'start_date', 'startDate')),
            distance_meters=distance,
            duration_seconds=duration,
            avg_heart_rate=_optional_float(_pick(d, 'avg_heart_rate', 'avgHeartRate', 'avgHr')),
            max_heart_rate=_optional_float(_pick(d, 'max_heart_rate', 'maxHeartRate', 'maxHr')),
            elevation_gain_meters=_optional_float(
                _pick(d, 'elevation_gain_meters', 'elevationGainMeters', 'elevationGain')
            ),
            training_stress_score=_optional_float(
                _pick(d, 'training_stress_score', 'trainingStressScore', 'tss')
            ),
            activity_id=str(activity_id) if activity_id is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'activityId': self.activity_id,
            'date': self.date.isoformat() if self.date else None,
            'distanceMeters': self.distance_meters,
            'durationSeconds': self.duration_seconds,
            'avgHeartRate': self.avg_heart_rate,
            'maxHeartRate': self.max_heart_rate,
            'elevationGainMeters': self.elevation_gain_meters,
            'trainingStressScore': self.training_stress_score,
        }


@dataclass(frozen=True)
class AthleteProfile:
    """
    Static or slowly-changing facts about the runner.

    Read-only to the engine. ``age`` is only used to estimate a maximum heart
    rate when none has been measured.
    """
    max_heart_rate: Optional[float] = None
    resting_heart_rate: Optional[float] = None
    goal_time: Optional[str] = None           # HH:MM:SS
    race_date: Optional[date] = None
    experience_level: ExperienceLevel = ExperienceLevel.INTERMEDIATE
    training_focus: FrozenSet[TrainingFocus] = field(default_factory=frozenset)
    age: Optional[int] = None
    name: str = ""

    @property
    def goal_seconds(self) -> Optional[int]:
        return parse_hms(self.goal_time)

    @property
    def estimated_max_heart_rate(self) -> Optional[float]:
        """Measured max HR, else 220 - age, else None."""
        if self.max_heart_rate:
            return float(self.max_heart_rate)
        if self.age:
            return float(220 - self.age)
        return None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'AthleteProfile':
        level = _pick(d, 'experience_level', 'experienceLevel', 'level') or 'intermediate'
        focus = _pick(d, 'training_focus', 'trainingFocus') or []
        age = _pick(d, 'age')
        return cls(
            max_heart_rate=_optional_float(_pick(d, 'max_heart_rate', 'maxHeartRate')),
            resting_heart_rate=_optional_float(_pick(d, 'resting_heart_rate', 'restingHeartRate')),
            goal_time=_pick(d, 'goal_time', 'goalTime'),
            race_date=parse_date(_pick(d, 'race_date', 'raceDate')),
            experience_level=ExperienceLevel(str(level).lower()),
            training_focus=frozenset(TrainingFocus(str(f).lower()) for f in focus),
            age=int(age) if age is not None else None,
            name=_pick(d, 'name') or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'maxHeartRate': self.max_heart_rate,
            'restingHeartRate': self.resting_heart_rate,
            'goalTime': self.goal_time,
            'raceDate': self.race_date.isoformat() if self.race_date else None,
            'experienceLevel': self.experience_level.value,
            'trainingFocus': sorted(f.value for f in self.training_focus),
            'age': self.age,
        }


# =============================================================================
# OUTPUTS
# =============================================================================

@dataclass(frozen=True)
class TrainingLoadPoint:
    """One date's fitness state. ``tsb`` is always ``ctl - atl``."""
    date: date
    ctl: float
    atl: float
    tsb: float
    daily_tss: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'ctl': self.ctl,
            'atl': self.atl,
            'tsb': self.tsb,
            'dailyTss': self.daily_tss,
        }


@dataclass(frozen=True)
class PredictionResult:
    """Predicted marathon finish time with a ± confidence interval."""
    seconds: int
    confidence_interval_seconds: int
    reliability: Reliability
    based_on_activity_count: int
    improving: bool = False

    @classmethod
    def insufficient(cls, count: int) -> 'PredictionResult':
        """The defined outcome when there is too little data to predict."""
        return cls(
            seconds=0,
            confidence_interval_seconds=0,
            reliability=Reliability.LOW,
            based_on_activity_count=count,
        )

    @property
    def has_prediction(self) -> bool:
        return self.seconds > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'seconds': self.seconds,
            'ci': self.confidence_interval_seconds,
            'reliability': self.reliability.value,
            'basedOnActivityCount': self.based_on_activity_count,
            'improving': self.improving,
        }


@dataclass
class Workout:
    """A single prescribed workout on a calendar day."""
    date: date
    type: WorkoutType
    description: str
    duration_minutes: int
    completed: bool = False

    @property
    def id(self) -> str:
        return f"{self.date.isoformat()}-{self.type.value}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'type': self.type.value,
            'description': self.description,
            'durationMinutes': self.duration_minutes,
            'completed': self.completed,
        }


@dataclass
class Week:
    """Seven contiguous days sharing one training phase."""
    start_date: date
    phase: TrainingPhase
    days: List[Workout] = field(default_factory=list)

    @property
    def end_date(self) -> date:
        return self.start_date + timedelta(days=6)

    @property
    def total_minutes(self) -> int:
        return sum(w.duration_minutes for w in self.days)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'startDate': self.start_date.isoformat(),
            'phase': self.phase.value,
            'days': [w.to_dict() for w in self.days],
        }


@dataclass
class TrainingPlan:
    """
    Periodized plan from a start date up to race day.

    Weeks are contiguous 7-day blocks beginning on the start date's weekday.
    """
    start_date: date
    race_date: date
    weeks: List[Week] = field(default_factory=list)
    focus_areas: List[str] = field(default_factory=list)

    @property
    def end_date(self) -> date:
        return self.weeks[-1].end_date if self.weeks else self.start_date

    def week_index_for(self, day: date) -> Optional[int]:
        """Index of the week containing ``day``, or None if outside the plan."""
        offset = (day - self.start_date).days
        if offset < 0:
            return None
        index = offset // 7
        return index if index < len(self.weeks) else None

    def workout_for(self, day: date) -> Optional[Workout]:
        index = self.week_index_for(day)
        if index is None:
            return None
        return self.weeks[index].days[(day - self.weeks[index].start_date).days]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'startDate': self.start_date.isoformat(),
            'raceDate': self.race_date.isoformat(),
            'focusAreas': list(self.focus_areas),
            'weeks': [w.to_dict() for w in self.weeks],
        }
