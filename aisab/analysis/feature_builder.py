"""
AisAB - Feature Statistics Builder

Accumulates ship counts per grid cell from CellChanged notifications
and writes them to the FeatureStore. Used offline (or alongside the
online analyses) to build the statistics the analyses read.

Counts only grow; each flush replaces the stored value of a cell with
the stored counts plus everything observed since.
"""

import logging
import threading
from typing import Dict, Sequence, Tuple

from aisab.analysis.features import ALL_FEATURES, FeatureDefinition
from aisab.context import AnalyzerContext
from aisab.core.dispatcher import NotificationDispatcher
from aisab.stats.feature_data import SHIP_COUNT, FeatureData
from aisab.tracking.track import CellChanged

# Configure module logger
logger = logging.getLogger(__name__)


class FeatureStatisticsBuilder:
    """
    Ship count accumulator.

    Example:
        >>> builder = FeatureStatisticsBuilder(context)
        >>> builder.subscribe(context.dispatcher)
        >>> # ... feed reports ...
        >>> builder.flush()
    """

    COMPONENT = "FeatureStatisticsBuilder"

    def __init__(
        self,
        context: AnalyzerContext,
        features: Sequence[FeatureDefinition] = ALL_FEATURES
    ):
        self._statistics = context.statistics
        self._feature_store = context.feature_store
        self._features = tuple(features)

        self._pending: Dict[Tuple[str, int], FeatureData] = {}
        self._lock = threading.Lock()

        logger.info(
            f"FeatureStatisticsBuilder initialized for {[f.name for f in self._features]}"
        )

    @property
    def pending_cells(self) -> int:
        with self._lock:
            return len(self._pending)

    def subscribe(self, dispatcher: NotificationDispatcher) -> None:
        dispatcher.subscribe(CellChanged, self.on_cell_changed, allow_concurrent=False)

    def on_cell_changed(self, notification: CellChanged) -> None:
        """Count the vessel once in every feature of its new cell."""
        track = notification.track
        if track.cell_id is None:
            return

        for feature in self._features:
            keys = feature.keys(track)
            if keys is None:
                self._statistics.increment(self.COMPONENT, f"Skipped {feature.name}")
                continue

            with self._lock:
                data = self._pending.get((feature.name, track.cell_id))
                if data is None:
                    stored = self._feature_store.get(feature.name, track.cell_id)
                    data = stored.copy() if stored is not None else FeatureData(feature.arity)
                    self._pending[(feature.name, track.cell_id)] = data
                data.increment_statistic(*keys, SHIP_COUNT)

        self._statistics.increment(self.COMPONENT, "Observations")

    def flush(self) -> int:
        """
        Write all accumulated cells to the FeatureStore.

        Returns:
            Number of cells written

        Raises:
            FeatureStoreError: If a write fails; cells not yet written are dropped
        """
        written = 0
        # Held throughout so no observation reloads a cell mid-flush
        with self._lock:
            pending, self._pending = self._pending, {}
            for (feature_name, cell_id), data in pending.items():
                try:
                    self._feature_store.put(feature_name, cell_id, data)
                except Exception as e:
                    logger.error(
                        f"Flush failed at {feature_name}/{cell_id} after {written} of {len(pending)} cells: {e}"
                    )
                    raise
                written += 1

        self._statistics.increment(self.COMPONENT, "Cells flushed", written)
        if written:
            logger.info(f"Flushed {written} feature cells")
        return written
