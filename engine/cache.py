"""
Injected result cache for expensive engine calls.

The engine keeps no module-level state. Callers that want memoization (e.g.
a UI re-rendering the same prediction) create a ResultCache and pass it in.
Keys are activity fingerprints, so a changed history always misses.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence, Tuple
import hashlib
import json
import logging
import time

from .models import ActivityRecord

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Cached value with the time it was stored."""
    data: Any
    timestamp: float


class ResultCache:
    """
    Least-recently-used cache with an optional time-to-live.

    A depth of 1 keeps only the latest result, which is enough to avoid
    recomputing on every re-render of an unchanged activity list.
    """

    def __init__(
        self,
        depth: int = 1,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        if depth < 1:
            raise ValueError(f"depth must be >= 1, got {depth}")
        self.depth = depth
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: 'OrderedDict[Any, CacheEntry]' = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Any) -> bool:
        return self._lookup(key) is not None

    def _lookup(self, key: Any) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.ttl_seconds is not None and self._clock() - entry.timestamp > self.ttl_seconds:
            logger.debug("Cache expired for key %s", key)
            del self._entries[key]
            return None
        return entry

    def get(self, key: Any, default: Any = None) -> Any:
        """Return the cached value, or ``default`` if missing or expired."""
        entry = self._lookup(key)
        if entry is None:
            self.misses += 1
            return default
        self._entries.move_to_end(key)
        self.hits += 1
        return entry.data

    def set(self, key: Any, data: Any) -> None:
        self._entries[key] = CacheEntry(data=data, timestamp=self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self.depth:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("Evicted cache entry %s", evicted)

    def get_or_compute(self, key: Any, compute: Callable[[], Any]) -> Any:
        """Return the cached value for ``key`` or compute, store and return it."""
        entry = self._lookup(key)
        if entry is not None:
            self._entries.move_to_end(key)
            self.hits += 1
            return entry.data
        self.misses += 1
        value = compute()
        self.set(key, value)
        return value

    def clear(self) -> None:
        self._entries.clear()


def activity_fingerprint(
    activities: Sequence[ActivityRecord],
    last_n: int = 10
) -> Tuple[int, str]:
    """
    Cheap identity for an activity list: (count, SHA-1 of the last N records).

    Records are ordered by date (undated first) before hashing so the
    fingerprint does not depend on input order.
    """
    ordered = sorted(
        activities,
        key=lambda a: (a.date is not None, a.date.isoformat() if a.date else '', a.activity_id or '')
    )
    tail = [a.to_dict() for a in ordered[-last_n:]] if last_n > 0 else []
    digest = hashlib.sha1(
        json.dumps(tail, sort_keys=True, default=str).encode('utf-8')
    ).hexdigest()
    return len(activities), digest
