"""
AisAB - AIS Abnormal Behaviour Analyzer
Categorizer Module

Maps raw vessel attributes to small integer categories through fixed
boundary tables. Categories are 1-based; feature data keys use
category - 1. Every function is total: negative, out-of-range and NaN
input lands in a boundary category instead of failing, so a decision
can always be reproduced from stored category values alone.
"""

import math
from enum import Enum
from typing import Dict

import numpy as np


class BucketKind(Enum):
    """Attributes with a category table."""
    SHIP_TYPE = "ship_type"
    SHIP_LENGTH = "ship_length"
    COURSE_OVER_GROUND = "course_over_ground"
    SPEED_OVER_GROUND = "speed_over_ground"


# AIS ship and cargo type code (0-99) -> category
_SHIP_TYPE_TABLE = np.full(100, 8, dtype=np.int16)
_SHIP_TYPE_TABLE[80:90] = 1   # tanker
_SHIP_TYPE_TABLE[70:80] = 2   # cargo
_SHIP_TYPE_TABLE[60:70] = 3   # passenger
_SHIP_TYPE_TABLE[40:50] = 4   # high-speed craft
_SHIP_TYPE_TABLE[20:30] = 4   # wing in ground
_SHIP_TYPE_TABLE[50:60] = 5   # pilot, SAR, tug, port tender, law enforcement
_SHIP_TYPE_TABLE[31:36] = 5   # towing, dredging, diving, military
_SHIP_TYPE_TABLE[30] = 6      # fishing
_SHIP_TYPE_TABLE[36:38] = 7   # sailing, pleasure craft

# Lower bounds of categories 2..n; values below the first bound are category 1
_SHIP_LENGTH_BOUNDS = np.array([1.0, 50.0, 100.0, 200.0, 250.0])
_COURSE_BOUNDS = np.arange(30.0, 360.0, 30.0)
_SPEED_BOUNDS = np.array([1.0, 5.0, 10.0, 15.0, 20.0, 30.0, 50.0])

SHIP_TYPE_LABELS: Dict[int, str] = {
    1: "tanker",
    2: "cargo",
    3: "passenger",
    4: "high-speed craft",
    5: "support",
    6: "fishing",
    7: "pleasure",
    8: "other",
}

SHIP_LENGTH_LABELS: Dict[int, str] = {
    1: "<1m",
    2: "1-50m",
    3: "50-100m",
    4: "100-200m",
    5: "200-250m",
    6: ">250m",
}

SPEED_OVER_GROUND_LABELS: Dict[int, str] = {
    1: "0-1kts",
    2: "1-5kts",
    3: "5-10kts",
    4: "10-15kts",
    5: "15-20kts",
    6: "20-30kts",
    7: "30-50kts",
    8: ">50kts",
}

COURSE_OVER_GROUND_LABELS: Dict[int, str] = {
    category: f"{(category - 1) * 30:03d}-{category * 30:03d}"
    for category in range(1, 13)
}

NUM_SHIP_TYPE_CATEGORIES = len(SHIP_TYPE_LABELS)
NUM_SHIP_LENGTH_CATEGORIES = len(SHIP_LENGTH_LABELS)
NUM_SPEED_OVER_GROUND_CATEGORIES = len(SPEED_OVER_GROUND_LABELS)
NUM_COURSE_OVER_GROUND_CATEGORIES = len(COURSE_OVER_GROUND_LABELS)


def _digitize(value: float, bounds: np.ndarray) -> int:
    # NaN sorts past every bound and lands in the last category
    return int(np.digitize(value, bounds)) + 1


def map_ship_type_to_category(ship_type: int) -> int:
    """Map an AIS ship type code to a category 1-8 ("other" for junk input)."""
    if isinstance(ship_type, float) and not math.isfinite(ship_type):
        return NUM_SHIP_TYPE_CATEGORIES
    index = min(max(int(ship_type), 0), len(_SHIP_TYPE_TABLE) - 1)
    return int(_SHIP_TYPE_TABLE[index])


def map_ship_length_to_category(ship_length: float) -> int:
    """Map a length overall in metres to a category 1-6."""
    return _digitize(float(ship_length), _SHIP_LENGTH_BOUNDS)


def map_course_over_ground_to_category(course_over_ground: float) -> int:
    """Map a course in degrees to one of twelve 30 degree sectors (1-12)."""
    return _digitize(float(course_over_ground), _COURSE_BOUNDS)


def map_speed_over_ground_to_category(speed_over_ground: float) -> int:
    """Map a speed in knots to a category 1-8."""
    return _digitize(float(speed_over_ground), _SPEED_BOUNDS)


_MAPPERS = {
    BucketKind.SHIP_TYPE: map_ship_type_to_category,
    BucketKind.SHIP_LENGTH: map_ship_length_to_category,
    BucketKind.COURSE_OVER_GROUND: map_course_over_ground_to_category,
    BucketKind.SPEED_OVER_GROUND: map_speed_over_ground_to_category,
}

_LABELS = {
    BucketKind.SHIP_TYPE: SHIP_TYPE_LABELS,
    BucketKind.SHIP_LENGTH: SHIP_LENGTH_LABELS,
    BucketKind.COURSE_OVER_GROUND: COURSE_OVER_GROUND_LABELS,
    BucketKind.SPEED_OVER_GROUND: SPEED_OVER_GROUND_LABELS,
}


def bucket(value: float, kind: BucketKind) -> int:
    """
    Map a raw attribute value to its category.

    Args:
        value: Raw attribute value
        kind: Which table to use

    Returns:
        1-based category
    """
    return _MAPPERS[kind](value)


def category_label(category: int, kind: BucketKind) -> str:
    """Human readable label of a category ("undefined" if unknown)."""
    return _LABELS[kind].get(category, "undefined")


def category_to_key(category: int) -> int:
    """Feature data key of a category."""
    return category - 1
