"""Activity loading and synthetic data utilities."""

from .loader import (
    ActivityLoader,
    LoaderStats,
    load_activities,
    load_profile,
    save_activities_csv,
)
from .synthetic import (
    SyntheticRunner,
    generate_activity_history,
    generate_steady_runs,
    single_spike_history,
)

__all__ = [
    # Loading
    'ActivityLoader',
    'LoaderStats',
    'load_activities',
    'load_profile',
    'save_activities_csv',
    # Synthetic data
    'SyntheticRunner',
    'generate_activity_history',
    'generate_steady_runs',
    'single_spike_history',
]
