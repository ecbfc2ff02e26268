"""
AisAB - Analysis Module

Categorizer, feature definitions, the statistical analyses and the
builder of the statistics they read.
"""

from aisab.analysis.categorizer import (
    BucketKind,
    bucket,
    category_label,
    category_to_key,
    map_course_over_ground_to_category,
    map_ship_length_to_category,
    map_ship_type_to_category,
    map_speed_over_ground_to_category
)
from aisab.analysis.features import (
    ALL_FEATURES,
    COURSE_OVER_GROUND_FEATURE,
    SHIP_TYPE_AND_SIZE_FEATURE,
    SPEED_OVER_GROUND_FEATURE,
    FeatureDefinition
)
from aisab.analysis.statistical_analysis import StatisticalAnalysis
from aisab.analysis.course_over_ground import CourseOverGroundAnalysis
from aisab.analysis.speed_over_ground import SpeedOverGroundAnalysis
from aisab.analysis.ship_type_and_size import ShipTypeAndSizeAnalysis
from aisab.analysis.feature_builder import FeatureStatisticsBuilder

__all__ = [
    "BucketKind",
    "bucket",
    "category_label",
    "category_to_key",
    "map_course_over_ground_to_category",
    "map_ship_length_to_category",
    "map_ship_type_to_category",
    "map_speed_over_ground_to_category",
    "ALL_FEATURES",
    "COURSE_OVER_GROUND_FEATURE",
    "SHIP_TYPE_AND_SIZE_FEATURE",
    "SPEED_OVER_GROUND_FEATURE",
    "FeatureDefinition",
    "StatisticalAnalysis",
    "CourseOverGroundAnalysis",
    "SpeedOverGroundAnalysis",
    "ShipTypeAndSizeAnalysis",
    "FeatureStatisticsBuilder",
]
