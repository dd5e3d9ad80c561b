"""
In-memory alert state for threshold rules.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Iterator, Optional

logger = logging.getLogger(__name__)


@dataclass
class AlertState:
    """Last-fire bookkeeping for one metric"""
    metric_name: str
    last_fired_at: Optional[datetime] = None
    fire_count: int = 0

    def cooldown_elapsed(self, now: datetime, cooldown) -> bool:
        """Check if a new alert may fire at ``now``"""
        if self.last_fired_at is None:
            return True
        return (now - self.last_fired_at) > cooldown

    def mark_fired(self, now: datetime):
        """Record a fire at ``now``"""
        if self.last_fired_at is None or now > self.last_fired_at:
            self.last_fired_at = now
        self.fire_count += 1


class AlertStateTable:
    """Per-metric alert states, owned by the caller of the evaluator"""

    def __init__(self, metric_names: Iterable[str] = ()):
        self._states: Dict[str, AlertState] = {}
        for name in metric_names:
            self._states[name] = AlertState(name)

    def __getitem__(self, metric_name: str) -> AlertState:
        state = self._states.get(metric_name)
        if state is None:
            state = AlertState(metric_name)
            self._states[metric_name] = state
        return state

    def __contains__(self, metric_name: str) -> bool:
        return metric_name in self._states

    def __iter__(self) -> Iterator[str]:
        return iter(self._states)

    def __len__(self) -> int:
        return len(self._states)

    def get(self, metric_name: str) -> Optional[AlertState]:
        return self._states.get(metric_name)

    def reset(self):
        """Forget all previous fires"""
        for state in self._states.values():
            state.last_fired_at = None
            state.fire_count = 0
        logger.info(f"Alert state reset for {len(self._states)} metrics")

    def snapshot(self) -> Dict[str, Optional[datetime]]:
        """Get last fire time per metric"""
        return {name: state.last_fired_at for name, state in self._states.items()}
