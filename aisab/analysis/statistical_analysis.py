"""
AisAB - AIS Abnormal Behaviour Analyzer
Statistical Analysis Module

Base class of the analyses that compare a vessel's current bucketed
attributes with the historical distribution of its grid cell.

Flow on CellChanged:
1. Extract cell id, ship type, ship length and the attribute under test;
   a missing value drops the notification with a counter
2. Apply exclusion filters (vessel classes, minimum length)
3. Bucket via the categorizer
4. Estimate the probability of the observed bucket in the cell
5. Deliver an abnormal or normal judgment to the BehaviourManager

On TrackStale a stale judgment is always delivered.
"""

import logging
from typing import Callable, Dict, Optional, Sequence, Tuple

from aisab.analysis.categorizer import (
    BucketKind,
    bucket,
    category_label,
    map_ship_length_to_category,
    map_ship_type_to_category
)
from aisab.analysis.features import FeatureDefinition
from aisab.behaviour.behaviour_manager import Judgment, Transition, Verdict
from aisab.config import AnalysisConfig
from aisab.context import AnalyzerContext
from aisab.core.dispatcher import NotificationDispatcher
from aisab.core.errors import FeatureStoreError
from aisab.events.event_types import EventKind
from aisab.stats.feature_data import SHIP_COUNT
from aisab.tracking.track import CellChanged, TrackSnapshot, TrackStale

# Configure module logger
logger = logging.getLogger(__name__)

Exclusion = Tuple[str, Callable[[TrackSnapshot], bool]]


class StatisticalAnalysis:
    """
    Probability test of one attribute against per-cell statistics.

    Subclasses set KIND, FEATURE and ATTRIBUTE_LABEL, may set EXCLUSIONS,
    and implement describe().

    Attributes:
        config: Thresholds of this analysis
    """

    KIND: EventKind
    FEATURE: FeatureDefinition
    # Label of the attribute under test in drop counters, None if no extra attribute
    ATTRIBUTE_LABEL: Optional[str] = None
    EXCLUSIONS: Sequence[Exclusion] = ()

    def __init__(self, context: AnalyzerContext, config: Optional[AnalysisConfig] = None):
        """
        Initialize the analysis.

        Args:
            context: Shared collaborators
            config: Thresholds (defaults to AnalysisConfig())
        """
        self._context = context
        self._statistics = context.statistics
        self._feature_store = context.feature_store
        self._behaviour_manager = context.behaviour_manager
        self.config = config or AnalysisConfig()

        logger.info(f"{self.name} created ({self})")

    @property
    def name(self) -> str:
        return type(self).__name__

    def subscribe(self, dispatcher: NotificationDispatcher) -> None:
        """Register for CellChanged and TrackStale notifications."""
        dispatcher.subscribe(CellChanged, self.on_cell_changed, allow_concurrent=True)
        dispatcher.subscribe(TrackStale, self.on_track_stale, allow_concurrent=True)

    def unsubscribe(self, dispatcher: NotificationDispatcher) -> None:
        dispatcher.unsubscribe(CellChanged, self.on_cell_changed)
        dispatcher.unsubscribe(TrackStale, self.on_track_stale)

    def _count(self, label: str) -> None:
        self._statistics.increment(self.name, label)

    def on_cell_changed(self, notification: CellChanged) -> Optional[Transition]:
        """
        Analyse a track that moved into a new cell.

        Returns:
            Transition applied by the BehaviourManager, None if no judgment
            was made
        """
        self._count("Events received")
        track = notification.track

        if not self._has_required_attributes(track):
            return None

        for label, excluded in self.EXCLUSIONS:
            if excluded(track):
                self._count(label)
                return None

        if track.ship_length < self.config.ship_length_min:
            self._count(f"LOA < {self.config.ship_length_min}")
            return None

        keys = self.FEATURE.keys(track)

        try:
            probability = self.probability(track.cell_id, keys)
        except FeatureStoreError as e:
            self._count("Feature store failures")
            logger.error(f"{self.name} could not read statistics of cell {track.cell_id}: {e}")
            return None

        self._count("Events processed")
        abnormal = probability < self.config.pd

        if abnormal:
            self._count("Abnormal judgments")
            title, description = self.describe(track)
            judgment = Judgment(
                kind=self.KIND,
                verdict=Verdict.ABNORMAL,
                track=track,
                timestamp=notification.timestamp,
                payload=self.payload(track),
                title=title,
                description=description,
            )
        else:
            judgment = Judgment(
                kind=self.KIND,
                verdict=Verdict.NORMAL,
                track=track,
                timestamp=notification.timestamp,
            )

        logger.debug(
            f"{self.name}: MMSI {track.mmsi} in cell {track.cell_id} keys={keys} "
            f"p={probability:.6f} abnormal={abnormal}"
        )
        return self._behaviour_manager.submit(judgment)

    def on_track_stale(self, notification: TrackStale) -> Transition:
        """Deliver a stale judgment, lowering any ongoing event."""
        return self._behaviour_manager.submit(Judgment(
            kind=self.KIND,
            verdict=Verdict.STALE,
            track=notification.track,
            timestamp=notification.timestamp,
        ))

    def _has_required_attributes(self, track: TrackSnapshot) -> bool:
        if track.mmsi is None:
            self._count("Unknown mmsi")
            return False
        if track.cell_id is None:
            self._count("Unknown cell id")
            return False
        if track.ship_type is None:
            self._count("Unknown ship type")
            return False
        if track.ship_length is None:
            self._count("Unknown ship length")
            return False
        if self.FEATURE.attribute is not None and getattr(track, self.FEATURE.attribute.value) is None:
            self._count(f"Unknown {self.ATTRIBUTE_LABEL}")
            return False
        return True

    def probability(self, cell_id: int, keys: Tuple[int, ...]) -> float:
        """
        Empirical probability of a bucket combination in a cell.

        Cells without data, or whose total ship count does not exceed the
        threshold, are inconclusive and give 1.0.

        Args:
            cell_id: Grid cell
            keys: Feature keys (category - 1)

        Returns:
            shipCount / total, or 1.0 when inconclusive
        """
        data = self._feature_store.get(self.FEATURE.name, cell_id)
        self._count("Analyses performed")

        if data is None:
            return 1.0

        total = data.sum_for(SHIP_COUNT)
        if total <= self.config.total_ship_count_threshold:
            return 1.0

        if self.config.use_aggregated_stats:
            ship_count = data.aggregate_sum_over_key1(*keys[1:], SHIP_COUNT)
        else:
            ship_count = data.get_value(*keys, SHIP_COUNT) or 0

        return ship_count / total

    def is_abnormal(self, cell_id: int, keys: Tuple[int, ...]) -> bool:
        return self.probability(cell_id, keys) < self.config.pd

    def payload(self, track: TrackSnapshot) -> Dict[str, int]:
        """Categories behind a judgment, stored on raised events."""
        payload = {
            "ship_type_category": map_ship_type_to_category(track.ship_type),
            "ship_size_category": map_ship_length_to_category(track.ship_length),
        }
        attribute = self.FEATURE.attribute
        if attribute is not None:
            payload[f"{attribute.value}_category"] = bucket(getattr(track, attribute.value), attribute)
        return payload

    def describe(self, track: TrackSnapshot) -> Tuple[str, str]:
        """Title and description of an event raised on this track."""
        raise NotImplementedError

    def _vessel_summary(self, track: TrackSnapshot) -> str:
        ship_type = category_label(map_ship_type_to_category(track.ship_type), BucketKind.SHIP_TYPE)
        ship_size = category_label(map_ship_length_to_category(track.ship_length), BucketKind.SHIP_LENGTH)
        cog = "?" if track.course_over_ground is None else f"{track.course_over_ground:.0f}"
        sog = "?" if track.speed_over_ground is None else f"{track.speed_over_ground:.1f}"
        return f"cog={cog} sog={sog} type={ship_type} size={ship_size}"

    def _vessel_name(self, track: TrackSnapshot) -> str:
        return track.name.strip() if track.name else str(track.mmsi)

    def __repr__(self) -> str:
        return (
            f"{self.name}(feature={self.FEATURE.name}, "
            f"threshold={self.config.total_ship_count_threshold}, pd={self.config.pd}, "
            f"ship_length_min={self.config.ship_length_min}, "
            f"aggregated={self.config.use_aggregated_stats})"
        )
