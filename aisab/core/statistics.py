"""
AisAB - Application Statistics

Fire-and-forget operational counters keyed by (component, label).
Analyses and the track registry count received, processed and dropped
notifications here; nothing on the decision path reads them back.
"""

import logging
import threading
from collections import defaultdict
from datetime import datetime
from typing import Dict

# Configure module logger
logger = logging.getLogger(__name__)


class AppStatistics:
    """
    Thread-safe named counter collection.

    Example:
        >>> stats = AppStatistics()
        >>> stats.increment("SpeedOverGroundAnalysis", "Events received")
        >>> stats.get("SpeedOverGroundAnalysis", "Events received")
        1
    """

    def __init__(self):
        self._counters: Dict[str, Dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._lock = threading.Lock()
        self._start_time = datetime.now()

    def increment(self, component: str, label: str, amount: int = 1) -> None:
        """Increment the counter for (component, label)."""
        with self._lock:
            self._counters[component][label] += amount

    def get(self, component: str, label: str) -> int:
        """Get the current value of a counter (0 if never incremented)."""
        with self._lock:
            if component not in self._counters:
                return 0
            return self._counters[component].get(label, 0)

    def snapshot(self) -> Dict[str, Dict[str, int]]:
        """Get a copy of all counters grouped by component."""
        with self._lock:
            return {
                component: dict(labels)
                for component, labels in self._counters.items()
            }

    @property
    def uptime_seconds(self) -> float:
        return (datetime.now() - self._start_time).total_seconds()

    def log_summary(self) -> None:
        """Write all counters to the log."""
        snapshot = self.snapshot()
        logger.info(f"Statistics after {self.uptime_seconds:.0f}s uptime:")
        for component in sorted(snapshot):
            for label, value in sorted(snapshot[component].items()):
                logger.info(f"  {component}: {label} = {value}")

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._start_time = datetime.now()

    def __repr__(self) -> str:
        return f"AppStatistics(components={len(self._counters)})"
