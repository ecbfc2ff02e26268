"""
AisAB - Ship Type And Size Analysis

Flags vessels whose combination of type and size is rarely seen in the
current grid cell.
"""

from typing import Tuple

from aisab.analysis.categorizer import (
    BucketKind,
    category_label,
    map_ship_length_to_category,
    map_ship_type_to_category
)
from aisab.analysis.features import SHIP_TYPE_AND_SIZE_FEATURE
from aisab.analysis.statistical_analysis import StatisticalAnalysis
from aisab.events.event_types import EventKind
from aisab.tracking.predicates import is_class_b, is_unknown_type_or_size
from aisab.tracking.track import TrackSnapshot


class ShipTypeAndSizeAnalysis(StatisticalAnalysis):
    """Ship type and size against ShipTypeAndSizeFeature (2 keys)."""

    KIND = EventKind.SHIP_TYPE_AND_SIZE
    FEATURE = SHIP_TYPE_AND_SIZE_FEATURE
    EXCLUSIONS = (
        ("Class B", is_class_b),
        ("Unknown type or size", is_unknown_type_or_size),
    )

    def describe(self, track: TrackSnapshot) -> Tuple[str, str]:
        ship_type = category_label(map_ship_type_to_category(track.ship_type), BucketKind.SHIP_TYPE)
        ship_size = category_label(map_ship_length_to_category(track.ship_length), BucketKind.SHIP_LENGTH)
        title = "Abnormal ship type and size"
        description = (
            f"Abnormal presence of {ship_type} of size {ship_size}: {self._vessel_name(track)} "
            f"on position {track.position} at {track.timestamp.isoformat()}: "
            f"{self._vessel_summary(track)}"
        )
        return title, description
