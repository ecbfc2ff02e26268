"""
AisAB - Course Over Ground Analysis

Flags vessels sailing a course rarely seen for their type and size in
the current grid cell.
"""

from typing import Tuple

from aisab.analysis.categorizer import (
    BucketKind,
    category_label,
    map_course_over_ground_to_category,
    map_ship_type_to_category
)
from aisab.analysis.features import COURSE_OVER_GROUND_FEATURE
from aisab.analysis.statistical_analysis import StatisticalAnalysis
from aisab.events.event_types import EventKind
from aisab.tracking.track import TrackSnapshot


class CourseOverGroundAnalysis(StatisticalAnalysis):
    """Course over ground against CourseOverGroundFeature."""

    KIND = EventKind.COURSE_OVER_GROUND
    FEATURE = COURSE_OVER_GROUND_FEATURE
    ATTRIBUTE_LABEL = "course over ground"

    def describe(self, track: TrackSnapshot) -> Tuple[str, str]:
        ship_type = category_label(map_ship_type_to_category(track.ship_type), BucketKind.SHIP_TYPE)
        sector = category_label(
            map_course_over_ground_to_category(track.course_over_ground),
            BucketKind.COURSE_OVER_GROUND
        )
        title = "Abnormal course over ground"
        description = (
            f"Abnormal course over ground ({sector} deg) of {self._vessel_name(track)} ({ship_type}) "
            f"on position {track.position} at {track.timestamp.isoformat()}: "
            f"{self._vessel_summary(track)}"
        )
        return title, description
