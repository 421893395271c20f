"""
Observability hook and exclusion accounting.

Engine functions accept an optional ``hook(event, payload)`` callable. Every
event is also written to the module logger, so nothing is lost when no hook
is supplied. Results never depend on either side channel.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
import logging

logger = logging.getLogger(__name__)

EventHook = Callable[[str, Dict[str, Any]], None]


def emit(hook: Optional[EventHook], event: str, **payload: Any) -> None:
    """Log an engine event and forward it to the hook, if any."""
    logger.debug("%s %s", event, payload)
    if hook is not None:
        hook(event, payload)


@dataclass
class ExclusionLog:
    """
    Counts records excluded from a computation, grouped by reason.

    One bad record must not break an aggregate view, so callers record the
    exclusion here and carry on.
    """
    operation: str
    reasons: Counter = field(default_factory=Counter)

    def exclude(self, reason: str) -> None:
        self.reasons[reason] += 1

    @property
    def total(self) -> int:
        return sum(self.reasons.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': self.operation,
            'total': self.total,
            'reasons': dict(self.reasons),
        }

    def report(self, hook: Optional[EventHook] = None) -> None:
        """Publish the counts once the computation is done."""
        if self.total == 0:
            return
        logger.info(
            "%s excluded %d record(s): %s",
            self.operation, self.total, dict(self.reasons)
        )
        if hook is not None:
            hook('records_excluded', self.to_dict())
