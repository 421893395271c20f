"""Reports and tabular summaries."""

from .reports import (
    format_hms,
    format_pace,
    generate_prediction_report,
    generate_paces_report,
    generate_load_report,
    generate_plan_report,
    generate_readiness_report,
    generate_coaching_report,
    export_plan_csv,
)
from .summary import (
    activities_to_dataframe,
    weekly_summary,
    training_consistency,
    load_series_dataframe,
)

__all__ = [
    'format_hms',
    'format_pace',
    'generate_prediction_report',
    'generate_paces_report',
    'generate_load_report',
    'generate_plan_report',
    'generate_readiness_report',
    'generate_coaching_report',
    'export_plan_csv',
    'activities_to_dataframe',
    'weekly_summary',
    'training_consistency',
    'load_series_dataframe',
]
