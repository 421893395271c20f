"""
Periodized marathon plan generation.

A plan is a run of contiguous 7-day weeks from the start date towards race
day. Each week belongs to exactly one phase (base → build → peak → taper);
the phase sequence is fixed at generation time from the week index and never
goes backwards. Every week follows the same workout template with
phase-specific durations and descriptions.

Based on:
- Classic linear periodization (Lydiard; Daniels' Running Formula)
- Base 8 / build 6 / peak 4 / taper 2 week reference cycle
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Dict, Union
import math
import logging

from .config import PlanParams
from .errors import PlanConfigurationError
from .models import (
    AthleteProfile, TrainingFocus, TrainingPhase, TrainingPlan, Week, Workout,
    WorkoutType, parse_date, round_half_up
)

logger = logging.getLogger(__name__)


# Slot 0 is the start date's weekday
WEEKLY_TEMPLATE = (
    WorkoutType.EASY,
    WorkoutType.INTERVAL,
    WorkoutType.RECOVERY,
    WorkoutType.TEMPO,
    WorkoutType.EASY,
    WorkoutType.LONG,
    WorkoutType.RECOVERY,
)

DEFAULT_FOCUS_AREAS = ['Consistency', 'Injury prevention', 'Sleep & nutrition']

FOCUS_AREA_LABELS = {
    TrainingFocus.SPEED: 'Speed development',
    TrainingFocus.ENDURANCE: 'Aerobic endurance',
    TrainingFocus.STRENGTH: 'Strength & mobility',
    TrainingFocus.RECOVERY: 'Recovery & sleep',
}


@dataclass(frozen=True)
class PhaseAllocation:
    """Number of weeks in each phase, in order."""
    base: int
    build: int
    peak: int
    taper: int

    @property
    def total(self) -> int:
        return self.base + self.build + self.peak + self.taper

    def phase_for_week(self, index: int) -> TrainingPhase:
        """Phase of the zero-based week ``index``."""
        if index < self.base:
            return TrainingPhase.BASE
        elif index < self.base + self.build:
            return TrainingPhase.BUILD
        elif index < self.base + self.build + self.peak:
            return TrainingPhase.PEAK
        return TrainingPhase.TAPER


def plan_length_weeks(start: date, race: date, params: Optional[PlanParams] = None) -> int:
    """ceil(max(min_days, days between) / 7)."""
    params = params or PlanParams()
    total_days = max(params.min_days, (race - start).days)
    return int(math.ceil(total_days / 7))


def allocate_phases(total_weeks: int, params: Optional[PlanParams] = None) -> PhaseAllocation:
    """
    Split ``total_weeks`` into phase spans.

    The reference spans are scaled by min(1, weeks / reference_weeks) and
    rounded half-up with a minimum of one week. Spans are fitted from race
    day backwards, so the taper is always present and base absorbs whatever
    is left. Very short plans lose base, then build, then peak.

    Args:
        total_weeks: Number of weeks in the plan (>= 1)
        params: Plan parameters

    Returns:
        PhaseAllocation whose total equals total_weeks
    """
    params = params or PlanParams()
    if total_weeks < 1:
        raise PlanConfigurationError(f"A plan needs at least one week, got {total_weeks}")

    scale = min(1.0, total_weeks / params.reference_weeks)
    taper = max(1, round_half_up(params.taper_weeks * scale))
    peak = max(1, round_half_up(params.peak_weeks * scale))
    build = max(1, round_half_up(params.build_weeks * scale))

    remaining = total_weeks
    taper = min(taper, remaining)
    remaining -= taper
    peak = min(peak, remaining)
    remaining -= peak
    build = min(build, remaining)
    remaining -= build

    return PhaseAllocation(base=remaining, build=build, peak=peak, taper=taper)


def phase_for_days_to_race(days_to_race: int) -> TrainingPhase:
    """Phase an athlete is in given the days left before the race."""
    if days_to_race > 84:
        return TrainingPhase.BASE
    elif days_to_race > 28:
        return TrainingPhase.BUILD
    elif days_to_race > 7:
        return TrainingPhase.PEAK
    return TrainingPhase.TAPER


# =============================================================================
# WORKOUTS
# =============================================================================

def phase_multiplier(phase: TrainingPhase, params: Optional[PlanParams] = None) -> float:
    params = params or PlanParams()
    return {
        TrainingPhase.BASE: params.base_multiplier,
        TrainingPhase.BUILD: params.build_multiplier,
        TrainingPhase.PEAK: params.peak_multiplier,
        TrainingPhase.TAPER: params.taper_multiplier,
    }[phase]


def workout_minutes(
    workout_type: WorkoutType,
    phase: TrainingPhase,
    params: Optional[PlanParams] = None
) -> int:
    """Base minutes for the workout type scaled by the phase multiplier."""
    params = params or PlanParams()
    base = {
        WorkoutType.LONG: params.long_minutes,
        WorkoutType.INTERVAL: params.interval_minutes,
        WorkoutType.TEMPO: params.tempo_minutes,
    }.get(workout_type, params.default_minutes)
    return round_half_up(base * phase_multiplier(phase, params))


def workout_description(workout_type: WorkoutType, phase: TrainingPhase) -> str:
    """Human-readable session description for a phase."""
    if workout_type == WorkoutType.LONG:
        if phase == TrainingPhase.PEAK:
            return "Long run with fast finish"
        return "Long run at comfortable pace"

    if workout_type == WorkoutType.INTERVAL:
        reps = {
            TrainingPhase.BASE: "4-5",
            TrainingPhase.BUILD: "6-7",
            TrainingPhase.PEAK: "8",
            TrainingPhase.TAPER: "3-4",
        }[phase]
        return f"Intervals {reps}x800m w/ 2:00 recovery"

    if workout_type == WorkoutType.TEMPO:
        if phase == TrainingPhase.PEAK:
            return "30-40 min tempo at threshold"
        elif phase == TrainingPhase.TAPER:
            return "15-20 min tempo at threshold"
        return "20-30 min tempo at threshold"

    if workout_type == WorkoutType.RECOVERY:
        return "Recovery jog or rest day"

    if phase == TrainingPhase.TAPER:
        return "Easy aerobic run + strides"
    return "Easy aerobic run"


def build_week(
    week_start: date,
    phase: TrainingPhase,
    params: Optional[PlanParams] = None
) -> Week:
    days = []
    for offset, workout_type in enumerate(WEEKLY_TEMPLATE):
        days.append(Workout(
            date=week_start + timedelta(days=offset),
            type=workout_type,
            description=workout_description(workout_type, phase),
            duration_minutes=workout_minutes(workout_type, phase, params),
        ))
    return Week(start_date=week_start, phase=phase, days=days)


def focus_areas_for(profile: Optional[AthleteProfile] = None) -> List[str]:
    if profile is None or not profile.training_focus:
        return list(DEFAULT_FOCUS_AREAS)
    areas = ['Consistency']
    areas.extend(FOCUS_AREA_LABELS[f] for f in TrainingFocus if f in profile.training_focus)
    return areas


def _coerce_date(value: Union[str, date], name: str) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise PlanConfigurationError(f"{name} is not a valid ISO-8601 date: {value!r}")
    return parsed


def generate_plan(
    start_date: Union[str, date],
    race_date: Union[str, date],
    profile: Optional[AthleteProfile] = None,
    params: Optional[PlanParams] = None
) -> TrainingPlan:
    """
    Generate a periodized training plan.

    Args:
        start_date: First day of the plan (date or ISO string)
        race_date: Race day (date or ISO string)
        profile: Optional profile; its training focus sets the focus areas
        params: Plan parameters

    Returns:
        TrainingPlan with ceil(max(7, days) / 7) weeks

    Raises:
        PlanConfigurationError: If a date is unparsable or the race is
            before the start
    """
    params = params or PlanParams()
    start = _coerce_date(start_date, 'start_date')
    race = _coerce_date(race_date, 'race_date')
    if race < start:
        raise PlanConfigurationError(
            f"race_date {race.isoformat()} is before start_date {start.isoformat()}"
        )

    total_weeks = plan_length_weeks(start, race, params)
    allocation = allocate_phases(total_weeks, params)

    weeks = [
        build_week(start + timedelta(days=7 * i), allocation.phase_for_week(i), params)
        for i in range(total_weeks)
    ]

    logger.debug(
        "Generated %d-week plan %s → %s (base %d, build %d, peak %d, taper %d)",
        total_weeks, start, race, allocation.base, allocation.build,
        allocation.peak, allocation.taper
    )
    return TrainingPlan(
        start_date=start,
        race_date=race,
        weeks=weeks,
        focus_areas=focus_areas_for(profile),
    )


def summarize_plan(plan: TrainingPlan) -> Dict[str, object]:
    """Weeks and minutes per phase."""
    summary: Dict[str, object] = {'weeks': len(plan.weeks), 'phases': {}}
    for week in plan.weeks:
        phase = summary['phases'].setdefault(week.phase.value, {'weeks': 0, 'minutes': 0})
        phase['weeks'] += 1
        phase['minutes'] += week.total_minutes
    return summary
