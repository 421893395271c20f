"""
Tunable parameters for every engine component.

All heuristic constants (effort thresholds, weighting factors, phase spans)
live here as named dataclass fields so they can be tuned and tested
independently of the algorithms. Fractions are decimals (0.65 = 65%), paces
are seconds per kilometre, distances are metres.
"""

from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Dict, Any, Tuple, Union
import json

from .errors import ConfigurationError


@dataclass
class EffortParams:
    """Effort classifier thresholds."""

    # ═══════════════════════════════════════════════════════════════════════════
    # HEART RATE (fraction of max HR)
    # ═══════════════════════════════════════════════════════════════════════════

    hr_moderate: float = 0.65      # Below this: easy
    hr_hard: float = 0.80          # Below this: moderate
    hr_very_hard: float = 0.90     # Above this: very hard

    # ═══════════════════════════════════════════════════════════════════════════
    # PACE (relative to the athlete's own recent runs)
    # ═══════════════════════════════════════════════════════════════════════════

    hard_percentile: float = 20.0       # Faster than 80% of recent runs: hard
    very_hard_ratio: float = 0.88       # pace / median at or below: very hard
    moderate_ratio: float = 0.97        # pace / median at or below: moderate
    min_reference_runs: int = 3         # Fewer than this: absolute thresholds
    reference_window: int = 30          # Most recent runs used as reference

    # Absolute fallbacks (s/km) when the athlete has no usable history
    absolute_very_hard_pace: float = 270.0   # 4:30/km
    absolute_hard_pace: float = 315.0        # 5:15/km
    absolute_moderate_pace: float = 360.0    # 6:00/km

    # HR lags on short efforts; below this distance pace wins a disagreement
    pace_priority_distance: float = 8000.0


@dataclass
class LoadParams:
    """Training-load (CTL/ATL/TSB) model."""
    ctl_days: int = 42
    atl_days: int = 7
    rounding: int = 2

    # TSS per hour at intensity factor 1.0
    tss_per_hour: float = 100.0

    # Intensity factor by effort label
    intensity_easy: float = 0.5
    intensity_moderate: float = 0.7
    intensity_hard: float = 1.0
    intensity_very_hard: float = 1.3

    # Form status (TSB)
    fresh_tsb: float = 10.0
    fatigued_tsb: float = -20.0

    # Fitness trend: compare the last N points with the N before
    trend_window: int = 14
    trend_change_pct: float = 5.0


@dataclass
class PredictorParams:
    """Marathon predictor."""
    min_distance: float = 2000.0
    max_samples: int = 10
    min_samples: int = 2
    trend_group: int = 3

    exponent: float = 1.06
    improving_exponent: float = 1.04

    # HR correction applied only at the extremes
    hr_hard_ratio: float = 0.92
    hr_hard_factor: float = 1.03
    hr_easy_ratio: float = 0.60
    hr_easy_factor: float = 0.97

    # Recency weight: linear from recency_top (latest) to recency_floor (10th)
    recency_top: float = 2.0
    recency_improving_top: float = 4.0
    recency_floor: float = 0.3

    # Distance weight bands: (upper bound in metres, weight); >= last bound
    # gets distance_weight_max
    distance_bands: Tuple[Tuple[float, float], ...] = (
        (5000.0, 0.7),
        (10000.0, 1.0),
        (15000.0, 1.3),
        (20000.0, 1.5),
    )
    distance_weight_max: float = 1.8
    latest_distance_floor: float = 1.2

    # CI = z * (weighted std / sqrt(n)) * ci_dampening. The dampening is a
    # heuristic carried over for compatibility, not a statistical 95% CI.
    ci_z: float = 1.96
    ci_dampening: float = 0.5

    high_reliability_runs: int = 5
    medium_reliability_runs: int = 3


@dataclass
class PaceParams:
    """Training-pace calculator."""
    min_runs: int = 3
    window: int = 15
    min_distance: float = 1000.0

    # Generic derivation from marathon pace
    easy_factor: float = 1.20
    tempo_factor: float = 0.92
    interval_factor: float = 0.86
    default_marathon_seconds: int = 4 * 3600

    # Karvonen heart-rate-reserve boundaries
    reserve_moderate: float = 0.50
    reserve_hard: float = 0.70
    reserve_very_hard: float = 0.85
    default_resting_hr: float = 60.0

    # Any run at or faster than this is treated as tempo or harder
    tempo_pace_ceiling: float = 330.0    # 5:30/km

    long_run_distance: float = 15000.0
    interval_min_distance: float = 3000.0
    interval_max_distance: float = 8000.0

    # Ordering repair ratios
    repair_easy: float = 1.10
    repair_tempo: float = 0.95
    repair_interval: float = 0.95


@dataclass
class PlanParams:
    """Plan generator."""
    base_weeks: int = 8
    build_weeks: int = 6
    peak_weeks: int = 4
    taper_weeks: int = 2
    min_days: int = 7

    # Base workout minutes
    long_minutes: float = 100.0
    interval_minutes: float = 60.0
    tempo_minutes: float = 50.0
    default_minutes: float = 40.0

    base_multiplier: float = 0.9
    build_multiplier: float = 1.0
    peak_multiplier: float = 1.1
    taper_multiplier: float = 0.75

    @property
    def reference_weeks(self) -> int:
        return self.base_weeks + self.build_weeks + self.peak_weeks + self.taper_weeks


@dataclass
class ReadinessParams:
    """Race-readiness scorer."""
    aerobic_weeks: int = 16
    strength_weeks: int = 12
    mental_weeks: int = 8
    threshold_weeks: int = 6
    power_weeks: int = 4

    recommendation_threshold: float = 70.0
    default_days_to_race: int = 90

    target_km_beginner: float = 40.0
    target_km_intermediate: float = 60.0
    target_km_advanced: float = 80.0

    long_run_distance: float = 15000.0
    very_long_run_distance: float = 20000.0
    ultra_long_run_distance: float = 28000.0
    marathon_pace_tolerance: float = 0.05

    risky_increase: float = 0.15
    very_risky_increase: float = 0.25


@dataclass
class CoachingParams:
    """Daily workout recommendation. Fitness/fatigue levels are CTL/ATL capped at 100."""
    rest_tsb: float = -30.0
    rest_fatigue: float = 85.0
    max_days_without_rest: int = 6

    recovery_tsb: float = -15.0
    recovery_fatigue: float = 70.0

    easy_fitness: float = 40.0       # Below this: base building, easy only

    interval_tsb: float = 15.0
    interval_fitness: float = 60.0
    tempo_tsb: float = 5.0
    tempo_fitness: float = 45.0

    high_fatigue_warning: float = 80.0
    low_fitness_warning: float = 20.0

    # 7-day vs 28-day load ratio
    cutback_ratio: float = 1.5
    undertraining_ratio: float = 0.8


@dataclass
class RecordParams:
    """Personal-record detection and progress analysis."""
    # Distance match tolerance, percent of the race distance
    tolerance_5k: float = 4.0
    tolerance_10k: float = 4.0
    tolerance_half: float = 2.0
    tolerance_marathon: float = 1.0

    min_1k_distance: float = 1000.0
    confident_1k_distance: float = 5000.0   # Shorter runs give a low-confidence 1K

    # Plausible running pace for record confidence (s/km)
    plausible_fastest_pace: float = 180.0
    plausible_slowest_pace: float = 480.0

    recent_days: int = 30
    progress_days: int = 90
    trend_threshold_percent: float = 2.0
    significant_improvement_percent: float = 5.0

    # Injury-risk flags from record frequency
    rapid_significant_count: int = 3
    rapid_recent_count: int = 2
    frequent_recent_count: int = 4
    rapid_average_percent: float = 10.0
    rapid_improvement_risk: int = 40
    frequent_records_risk: int = 30
    rapid_average_risk: int = 30


@dataclass
class EngineConfig:
    """Every parameter set in one object, serialisable to JSON."""
    effort: EffortParams = field(default_factory=EffortParams)
    load: LoadParams = field(default_factory=LoadParams)
    predictor: PredictorParams = field(default_factory=PredictorParams)
    paces: PaceParams = field(default_factory=PaceParams)
    plan: PlanParams = field(default_factory=PlanParams)
    readiness: ReadinessParams = field(default_factory=ReadinessParams)
    coaching: CoachingParams = field(default_factory=CoachingParams)
    records: RecordParams = field(default_factory=RecordParams)

    def to_dict(self) -> Dict[str, Any]:
        """Convert parameters to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'EngineConfig':
        """
        Create a config from a (possibly partial) dictionary.

        Unknown sections or keys raise ConfigurationError rather than being
        silently ignored.
        """
        sections = {f.name: f for f in fields(cls)}
        kwargs = {}
        for name, values in d.items():
            if name not in sections:
                raise ConfigurationError(f"Unknown config section '{name}'")
            section_cls = sections[name].default_factory
            known = {f.name for f in fields(section_cls)}
            unknown = set(values) - known
            if unknown:
                raise ConfigurationError(
                    f"Unknown keys in '{name}': {', '.join(sorted(unknown))}"
                )
            if name == 'predictor' and 'distance_bands' in values:
                values = dict(values)
                values['distance_bands'] = tuple(
                    (float(upper), float(weight)) for upper, weight in values['distance_bands']
                )
            kwargs[name] = section_cls(**values)
        config = cls(**kwargs)
        ok, message = config.validate()
        if not ok:
            raise ConfigurationError(message)
        return config

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> 'EngineConfig':
        with open(path, 'r', encoding='utf-8') as f:
            return cls.from_dict(json.load(f))

    def save_json(self, path: Union[str, Path]) -> None:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)

    def validate(self) -> Tuple[bool, str]:
        """Validate parameter constraints."""
        issues = []

        e = self.effort
        if not (0 < e.hr_moderate < e.hr_hard < e.hr_very_hard <= 1.0):
            issues.append("Effort HR thresholds must be ascending within (0, 1]")
        if not (0 < e.very_hard_ratio < e.moderate_ratio <= 1.0):
            issues.append("Effort pace ratios: 0 < very_hard < moderate <= 1")
        if not (e.absolute_very_hard_pace < e.absolute_hard_pace < e.absolute_moderate_pace):
            issues.append("Absolute pace thresholds must be ascending")

        ld = self.load
        if not (0 < ld.atl_days < ld.ctl_days):
            issues.append("Load: 0 < atl_days < ctl_days")
        if not (0 < ld.intensity_easy < ld.intensity_moderate
                < ld.intensity_hard < ld.intensity_very_hard):
            issues.append("Load intensity factors must be ascending")

        p = self.predictor
        if p.min_samples < 1 or p.max_samples < p.min_samples:
            issues.append("Predictor: 1 <= min_samples <= max_samples")
        if not (p.recency_floor <= p.recency_top <= p.recency_improving_top):
            issues.append("Predictor: recency_floor <= recency_top <= recency_improving_top")
        bounds = [upper for upper, _ in p.distance_bands]
        if bounds != sorted(bounds):
            issues.append("Predictor distance bands must be ascending")

        pc = self.paces
        if not (pc.interval_factor < pc.tempo_factor < 1.0 < pc.easy_factor):
            issues.append("Pace factors: interval < tempo < 1 < easy")
        if not (0 < pc.reserve_moderate < pc.reserve_hard < pc.reserve_very_hard < 1.0):
            issues.append("Heart-rate reserve boundaries must be ascending within (0, 1)")

        pl = self.plan
        if min(pl.base_weeks, pl.build_weeks, pl.peak_weeks, pl.taper_weeks) < 1:
            issues.append("Plan phase spans must be at least one week")

        c = self.coaching
        if not (c.rest_tsb < c.recovery_tsb < 0 < c.tempo_tsb < c.interval_tsb):
            issues.append("Coaching TSB thresholds: rest < recovery < 0 < tempo < interval")
        if not (0 < c.undertraining_ratio < c.cutback_ratio):
            issues.append("Coaching load ratios: 0 < undertraining < cutback")

        r = self.records
        if min(r.tolerance_5k, r.tolerance_10k, r.tolerance_half, r.tolerance_marathon) < 0:
            issues.append("Record distance tolerances must be >= 0")
        if not (0 < r.recent_days <= r.progress_days):
            issues.append("Records: 0 < recent_days <= progress_days")

        if issues:
            return False, "; ".join(issues)
        return True, "Valid"
