"""
AisAB - Feature Definitions

Names and key layout of the per-cell statistics. Every feature is keyed
first by ship type and ship size; course and speed features add the
attribute bucket as a third key. Keys are category - 1.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from aisab.analysis.categorizer import (
    BucketKind,
    bucket,
    category_to_key,
    map_ship_length_to_category,
    map_ship_type_to_category
)
from aisab.tracking.track import TrackSnapshot


@dataclass(frozen=True)
class FeatureDefinition:
    """
    Attributes:
        name: Feature name in the FeatureStore
        attribute: Bucketed third key, None for 2-key features
    """
    name: str
    attribute: Optional[BucketKind] = None

    @property
    def arity(self) -> int:
        return 2 if self.attribute is None else 3

    def keys(self, track: TrackSnapshot) -> Optional[Tuple[int, ...]]:
        """Feature keys of a track, None if a needed attribute is unknown."""
        if track.ship_type is None or track.ship_length is None:
            return None

        keys = [
            category_to_key(map_ship_type_to_category(track.ship_type)),
            category_to_key(map_ship_length_to_category(track.ship_length)),
        ]
        if self.attribute is not None:
            # BucketKind values double as TrackSnapshot attribute names
            value = getattr(track, self.attribute.value)
            if value is None:
                return None
            keys.append(category_to_key(bucket(value, self.attribute)))
        return tuple(keys)


SHIP_TYPE_AND_SIZE_FEATURE = FeatureDefinition("ShipTypeAndSizeFeature")
COURSE_OVER_GROUND_FEATURE = FeatureDefinition(
    "CourseOverGroundFeature", BucketKind.COURSE_OVER_GROUND
)
SPEED_OVER_GROUND_FEATURE = FeatureDefinition(
    "SpeedOverGroundStatistic", BucketKind.SPEED_OVER_GROUND
)

ALL_FEATURES = (
    SHIP_TYPE_AND_SIZE_FEATURE,
    COURSE_OVER_GROUND_FEATURE,
    SPEED_OVER_GROUND_FEATURE,
)
