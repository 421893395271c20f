"""
Marathon training computation engine.

This package turns a history of runs into:
- Effort labels (heart rate or pace relative to recent runs)
- Training load (TSS, CTL/ATL/TSB)
- A marathon (or other race) time prediction
- Personalised training paces
- A periodized week-by-week plan
- A race-readiness score
- Daily coaching advice
- Personal records and their progress

Everything is pure computation over immutable inputs; see DESIGN.md.
"""

# Data model
from .models import (
    MARATHON_METERS,
    ActivityRecord,
    AthleteProfile,
    ExperienceLevel,
    TrainingFocus,
    Reliability,
    TrainingPhase,
    WorkoutType,
    TrainingLoadPoint,
    PredictionResult,
    Workout,
    Week,
    TrainingPlan,
    parse_date,
    parse_hms,
)

# Configuration and errors
from .config import (
    EngineConfig,
    EffortParams,
    LoadParams,
    PredictorParams,
    PaceParams,
    PlanParams,
    ReadinessParams,
    CoachingParams,
    RecordParams,
)
from .errors import ConfigurationError, PlanConfigurationError
from .observability import EventHook, ExclusionLog

# Effort classification
from .effort import (
    Effort,
    EffortResult,
    HeartRateZones,
    PaceReference,
    classify,
    classify_all,
)

# Training load
from .metrics import (
    estimate_tss,
    daily_tss,
    calculate_ewma,
    compute_load_series,
    fitness_trend,
    form_status,
    acute_chronic_ratio,
    rolling_load,
)

# Prediction
from .predictor import (
    RACE_DISTANCES,
    riegel_time,
    predict_race_time,
    predict_marathon_time,
)
from .cache import ResultCache, activity_fingerprint

# Paces, plan, readiness, coaching, records
from .paces import TrainingPaces, compute_paces
from .plan import generate_plan, allocate_phases, phase_for_days_to_race
from .readiness import ReadinessScore, assess_race_readiness
from .coaching import (
    CoachingRecommendation,
    recommend_workout,
    weekly_focus,
    load_risk_assessment,
    consecutive_training_days,
)
from .records import (
    RecordType,
    PersonalRecord,
    RecordHistory,
    RecordProgress,
    detect_activity_records,
    detect_weekly_volume_record,
    find_personal_records,
    build_record_histories,
    analyze_record_progress,
)

__all__ = [
    # Data model
    'MARATHON_METERS',
    'ActivityRecord',
    'AthleteProfile',
    'ExperienceLevel',
    'TrainingFocus',
    'Reliability',
    'TrainingPhase',
    'WorkoutType',
    'TrainingLoadPoint',
    'PredictionResult',
    'Workout',
    'Week',
    'TrainingPlan',
    'parse_date',
    'parse_hms',
    # Configuration and errors
    'EngineConfig',
    'EffortParams',
    'LoadParams',
    'PredictorParams',
    'PaceParams',
    'PlanParams',
    'ReadinessParams',
    'CoachingParams',
    'RecordParams',
    'ConfigurationError',
    'PlanConfigurationError',
    'EventHook',
    'ExclusionLog',
    # Effort
    'Effort',
    'EffortResult',
    'HeartRateZones',
    'PaceReference',
    'classify',
    'classify_all',
    # Load
    'estimate_tss',
    'daily_tss',
    'calculate_ewma',
    'compute_load_series',
    'fitness_trend',
    'form_status',
    'acute_chronic_ratio',
    'rolling_load',
    # Prediction
    'RACE_DISTANCES',
    'riegel_time',
    'predict_race_time',
    'predict_marathon_time',
    'ResultCache',
    'activity_fingerprint',
    # Paces, plan, readiness, coaching
    'TrainingPaces',
    'compute_paces',
    'generate_plan',
    'allocate_phases',
    'phase_for_days_to_race',
    'ReadinessScore',
    'assess_race_readiness',
    'CoachingRecommendation',
    'recommend_workout',
    'weekly_focus',
    'load_risk_assessment',
    'consecutive_training_days',
    # Personal records
    'RecordType',
    'PersonalRecord',
    'RecordHistory',
    'RecordProgress',
    'detect_activity_records',
    'detect_weekly_volume_record',
    'find_personal_records',
    'build_record_histories',
    'analyze_record_progress',
]
