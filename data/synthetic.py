"""
Synthetic run histories for demos and tests.

Generates a plausible marathon-training history with:
- A weekly pattern of easy, tempo, interval and long runs
- Gradual fitness improvement (paces get faster week by week)
- Day-to-day pace and heart-rate noise
- Missed sessions (compliance)

All randomness comes from a seeded numpy Generator, so the same arguments
always produce the same history.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Dict, Any, Tuple
import numpy as np

from engine.models import ActivityRecord, AthleteProfile, ExperienceLevel


@dataclass
class SyntheticRunner:
    """Parameters of the simulated athlete."""
    name: str = "Synthetic Runner"
    age: int = 35
    max_heart_rate: float = 185.0
    resting_heart_rate: float = 55.0
    easy_pace: float = 360.0            # s/km at the start of the history
    weekly_improvement: float = 0.004   # Fractional pace gain per week
    compliance_rate: float = 0.9        # Probability a session is completed
    experience_level: ExperienceLevel = ExperienceLevel.INTERMEDIATE

    def to_profile(self, race_date: Optional[date] = None, goal_time: Optional[str] = None) -> AthleteProfile:
        return AthleteProfile(
            max_heart_rate=self.max_heart_rate,
            resting_heart_rate=self.resting_heart_rate,
            goal_time=goal_time,
            race_date=race_date,
            experience_level=self.experience_level,
            age=self.age,
            name=self.name,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'age': self.age,
            'max_heart_rate': self.max_heart_rate,
            'resting_heart_rate': self.resting_heart_rate,
            'easy_pace': self.easy_pace,
            'weekly_improvement': self.weekly_improvement,
            'compliance_rate': self.compliance_rate,
            'experience_level': self.experience_level.value,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# WEEKLY PATTERN
# ═══════════════════════════════════════════════════════════════════════════════

# (day offset, session, distance km, pace factor vs easy pace, HR fraction of max)
WEEKLY_SESSIONS: List[Tuple[int, str, float, float, float]] = [
    (0, 'easy', 8.0, 1.00, 0.70),
    (1, 'interval', 6.0, 0.80, 0.88),
    (3, 'tempo', 10.0, 0.86, 0.84),
    (4, 'easy', 8.0, 1.00, 0.70),
    (5, 'long', 20.0, 1.04, 0.74),
]


def generate_activity_history(
    weeks: int = 16,
    end_date: Optional[date] = None,
    runner: Optional[SyntheticRunner] = None,
    with_heart_rate: bool = True,
    long_run_growth_km: float = 1.0,
    seed: Optional[int] = 42
) -> List[ActivityRecord]:
    """
    Generate a training history ending on ``end_date``.

    Args:
        weeks: Number of weeks of history
        end_date: Last day of the history (default 2024-06-30)
        runner: Simulated athlete
        with_heart_rate: Include average/max heart rate
        long_run_growth_km: Long-run distance added per week (capped at 32 km)
        seed: Random seed for reproducibility

    Returns:
        Chronologically ordered ActivityRecords
    """
    runner = runner or SyntheticRunner()
    end_date = end_date or date(2024, 6, 30)
    rng = np.random.default_rng(seed)

    first_day = end_date - timedelta(days=7 * weeks - 1)
    activities = []

    for week in range(weeks):
        week_start = first_day + timedelta(days=7 * week)
        fitness = (1 - runner.weekly_improvement) ** week

        for offset, session, distance_km, pace_factor, hr_fraction in WEEKLY_SESSIONS:
            if rng.random() > runner.compliance_rate:
                continue

            day = week_start + timedelta(days=offset)
            if day > end_date:
                continue

            if session == 'long':
                distance_km = min(32.0, distance_km - 6 + long_run_growth_km * week)

            distance = distance_km * 1000 * (1 + rng.normal(0, 0.03))
            pace = runner.easy_pace * pace_factor * fitness * (1 + rng.normal(0, 0.02))
            duration = distance / 1000 * pace

            avg_hr = max_hr = None
            if with_heart_rate:
                avg_hr = round(runner.max_heart_rate * hr_fraction + rng.normal(0, 2), 1)
                max_hr = round(min(runner.max_heart_rate, avg_hr + rng.uniform(8, 15)), 1)

            activities.append(ActivityRecord(
                date=day,
                distance_meters=round(distance, 1),
                duration_seconds=round(duration, 1),
                avg_heart_rate=avg_hr,
                max_heart_rate=max_hr,
                elevation_gain_meters=round(float(rng.uniform(10, 120)), 1),
                activity_id=f"syn-{day.isoformat()}-{session}",
            ))

    return activities


def generate_steady_runs(
    n_runs: int = 10,
    distance_meters: float = 10000.0,
    pace_seconds_per_km: float = 300.0,
    end_date: Optional[date] = None,
    spacing_days: int = 2
) -> List[ActivityRecord]:
    """Identical runs at a fixed pace, newest on ``end_date``. No heart rate."""
    end_date = end_date or date(2024, 6, 30)
    duration = distance_meters / 1000 * pace_seconds_per_km
    return [
        ActivityRecord(
            date=end_date - timedelta(days=spacing_days * i),
            distance_meters=distance_meters,
            duration_seconds=duration,
            activity_id=f"steady-{i}",
        )
        for i in range(n_runs)
    ]


def single_spike_history(
    tss: float = 300.0,
    start: Optional[date] = None
) -> List[ActivityRecord]:
    """One run with an explicit training stress score."""
    start = start or date(2024, 1, 1)
    return [ActivityRecord(
        date=start,
        distance_meters=30000.0,
        duration_seconds=3 * 3600.0,
        training_stress_score=tss,
        activity_id="spike",
    )]
