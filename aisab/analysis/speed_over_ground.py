"""
AisAB - Speed Over Ground Analysis

Flags vessels sailing at a speed rarely seen for their type and size
in the current grid cell.
"""

from typing import Tuple

from aisab.analysis.categorizer import (
    BucketKind,
    category_label,
    map_ship_type_to_category
)
from aisab.analysis.features import SPEED_OVER_GROUND_FEATURE
from aisab.analysis.statistical_analysis import StatisticalAnalysis
from aisab.events.event_types import EventKind
from aisab.tracking.predicates import DEFAULT_EXCLUSIONS, is_position_interpolated
from aisab.tracking.track import TrackSnapshot


class SpeedOverGroundAnalysis(StatisticalAnalysis):
    """
    Speed over ground against SpeedOverGroundStatistic.

    Class B, fishing, towing, special craft, small vessels, vessels of
    unknown type or size and vessels on a predicted position are not
    analysed.
    """

    KIND = EventKind.SPEED_OVER_GROUND
    FEATURE = SPEED_OVER_GROUND_FEATURE
    ATTRIBUTE_LABEL = "speed over ground"
    EXCLUSIONS = DEFAULT_EXCLUSIONS + (("Predicted position", is_position_interpolated),)

    def describe(self, track: TrackSnapshot) -> Tuple[str, str]:
        ship_type = category_label(map_ship_type_to_category(track.ship_type), BucketKind.SHIP_TYPE)
        title = "Abnormal speed over ground"
        description = (
            f"Abnormal speed over ground of {self._vessel_name(track)} ({ship_type}) "
            f"on position {track.position} at {track.timestamp.isoformat()}: "
            f"{self._vessel_summary(track)}"
        )
        return title, description
