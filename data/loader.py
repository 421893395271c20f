"""
Activity and profile loaders for tabular exports.

Reads run summaries from CSV or JSON (one row/object per run) into
ActivityRecords. Column names may be snake_case or camelCase, e.g.:

    date,distance_meters,duration_seconds,avg_heart_rate,max_heart_rate
    2024-03-02,10000,3000,148,

Malformed rows (negative or non-numeric distance/duration) are skipped and
counted; a missing file raises FileNotFoundError.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Dict, Any, Union
import json
import logging

import pandas as pd

from engine.models import ActivityRecord, AthleteProfile
from engine.observability import ExclusionLog

logger = logging.getLogger(__name__)


@dataclass
class LoaderStats:
    """Statistics about one load."""
    source: str
    rows_read: int = 0
    rows_loaded: int = 0
    exclusions: ExclusionLog = field(default_factory=lambda: ExclusionLog('load_activities'))

    @property
    def rows_skipped(self) -> int:
        return self.exclusions.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source': self.source,
            'rows_read': self.rows_read,
            'rows_loaded': self.rows_loaded,
            'rows_skipped': self.rows_skipped,
            'skip_reasons': dict(self.exclusions.reasons),
        }


class ActivityLoader:
    """
    Loader for run-summary exports.

    The file format is taken from the suffix (.csv or .json).
    """

    def __init__(self, data_path: Union[str, Path]):
        """
        Initialize the loader.

        Args:
            data_path: Path to a .csv or .json file
        """
        self.data_path = Path(data_path)
        self.stats: Optional[LoaderStats] = None

    def _read_frame(self) -> pd.DataFrame:
        if not self.data_path.exists():
            raise FileNotFoundError(f"Activity file not found: {self.data_path}")

        suffix = self.data_path.suffix.lower()
        if suffix == '.csv':
            return pd.read_csv(self.data_path, dtype=str)
        elif suffix == '.json':
            return pd.read_json(
                self.data_path, orient='records', dtype=False, convert_dates=False
            )
        raise ValueError(f"Unsupported activity file type '{suffix}' (expected .csv or .json)")

    def load(self) -> List[ActivityRecord]:
        """
        Load all valid activities.

        Returns:
            ActivityRecords in file order, duplicates by activity id removed
        """
        df = self._read_frame()
        stats = LoaderStats(source=str(self.data_path), rows_read=len(df))

        records = []
        seen_ids = set()
        for row in df.to_dict(orient='records'):
            clean = {k: v for k, v in row.items() if not _is_missing(v)}
            try:
                record = ActivityRecord.from_dict(clean)
            except ValueError as e:
                logger.debug("Skipping row %s: %s", row, e)
                stats.exclusions.exclude('malformed')
                continue

            if record.activity_id is not None:
                if record.activity_id in seen_ids:
                    stats.exclusions.exclude('duplicate_id')
                    continue
                seen_ids.add(record.activity_id)

            if record.date is None:
                logger.debug("Row without a usable date: %s", row)
            records.append(record)

        stats.rows_loaded = len(records)
        stats.exclusions.report()
        logger.info(
            "Loaded %d of %d activities from %s",
            stats.rows_loaded, stats.rows_read, self.data_path.name
        )
        self.stats = stats
        return records

    def to_dataframe(self) -> pd.DataFrame:
        """Loaded activities as a DataFrame (camelCase columns)."""
        return pd.DataFrame([a.to_dict() for a in self.load()])


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def load_activities(path: Union[str, Path]) -> List[ActivityRecord]:
    """Convenience wrapper around ActivityLoader."""
    return ActivityLoader(path).load()


def load_profile(path: Union[str, Path]) -> AthleteProfile:
    """
    Load an athlete profile from a JSON object.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the JSON is not an object or has an unknown enum value
    """
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Profile file {path} must contain a JSON object")
    profile = AthleteProfile.from_dict(data)
    logger.info("Loaded profile %s from %s", profile.name or '(unnamed)', path.name)
    return profile


def save_activities_csv(activities: List[ActivityRecord], path: Union[str, Path]) -> None:
    """Write activities to CSV in the format ActivityLoader reads."""
    pd.DataFrame([a.to_dict() for a in activities]).to_csv(path, index=False)
