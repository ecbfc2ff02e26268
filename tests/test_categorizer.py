"""Tests for the attribute categorizer."""

import math

import pytest

from aisab.analysis.categorizer import (
    COURSE_OVER_GROUND_LABELS,
    NUM_COURSE_OVER_GROUND_CATEGORIES,
    NUM_SHIP_LENGTH_CATEGORIES,
    NUM_SHIP_TYPE_CATEGORIES,
    NUM_SPEED_OVER_GROUND_CATEGORIES,
    BucketKind,
    bucket,
    category_label,
    category_to_key,
    map_course_over_ground_to_category,
    map_ship_length_to_category,
    map_ship_type_to_category,
    map_speed_over_ground_to_category
)


class TestShipType:

    @pytest.mark.parametrize("ship_type,category", [
        (80, 1), (84, 1), (89, 1),
        (70, 2), (79, 2),
        (60, 3), (69, 3),
        (40, 4), (49, 4), (20, 4), (29, 4),
        (50, 5), (52, 5), (31, 5), (35, 5),
        (30, 6),
        (36, 7), (37, 7),
        (0, 8), (19, 8), (38, 8), (90, 8), (99, 8),
    ])
    def test_table(self, ship_type, category):
        assert map_ship_type_to_category(ship_type) == category

    @pytest.mark.parametrize("ship_type", [-5, 100, 255, 10 ** 6, 1e300, math.inf, -math.inf])
    def test_out_of_range_clamps_to_other(self, ship_type):
        assert map_ship_type_to_category(ship_type) == 8

    def test_nan_is_other(self):
        assert map_ship_type_to_category(math.nan) == NUM_SHIP_TYPE_CATEGORIES


class TestShipLength:

    @pytest.mark.parametrize("length,category", [
        (0, 1), (0.5, 1),
        (1, 2), (49, 2),
        (50, 3), (99.9, 3),
        (100, 4), (199, 4),
        (200, 5), (249, 5),
        (250, 6), (400, 6),
    ])
    def test_boundaries(self, length, category):
        assert map_ship_length_to_category(length) == category

    def test_negative_clamps_to_first(self):
        assert map_ship_length_to_category(-10) == 1

    def test_nan_clamps_to_last(self):
        assert map_ship_length_to_category(math.nan) == NUM_SHIP_LENGTH_CATEGORIES


class TestCourseOverGround:

    @pytest.mark.parametrize("course,category", [
        (0.0, 1), (29.9, 1),
        (30.0, 2), (95.0, 4),
        (180.0, 7), (330.0, 12), (359.9, 12),
    ])
    def test_sectors(self, course, category):
        assert map_course_over_ground_to_category(course) == category

    @pytest.mark.parametrize("course,category", [
        (-10.0, 1), (360.0, 12), (511.0, 12),
    ])
    def test_out_of_range_clamps(self, course, category):
        assert map_course_over_ground_to_category(course) == category

    def test_twelve_sectors(self):
        assert NUM_COURSE_OVER_GROUND_CATEGORIES == 12
        assert COURSE_OVER_GROUND_LABELS[1] == "000-030"
        assert COURSE_OVER_GROUND_LABELS[12] == "330-360"


class TestSpeedOverGround:

    @pytest.mark.parametrize("speed,category", [
        (0.0, 1), (0.9, 1),
        (1.0, 2), (4.9, 2),
        (5.0, 3), (12.0, 4),
        (15.0, 5), (20.0, 6),
        (30.0, 7), (49.9, 7),
        (50.0, 8), (102.3, 8),
    ])
    def test_boundaries(self, speed, category):
        assert map_speed_over_ground_to_category(speed) == category

    def test_negative_clamps_to_first(self):
        assert map_speed_over_ground_to_category(-1.0) == 1

    def test_nan_clamps_to_last(self):
        assert map_speed_over_ground_to_category(math.nan) == NUM_SPEED_OVER_GROUND_CATEGORIES


class TestGeneric:

    def test_bucket_dispatches_by_kind(self):
        assert bucket(12.0, BucketKind.SPEED_OVER_GROUND) == 4
        assert bucket(95.0, BucketKind.COURSE_OVER_GROUND) == 4
        assert bucket(70, BucketKind.SHIP_TYPE) == 2
        assert bucket(120, BucketKind.SHIP_LENGTH) == 4

    def test_keys_are_zero_based(self):
        assert category_to_key(1) == 0
        assert category_to_key(8) == 7

    def test_labels(self):
        assert category_label(2, BucketKind.SHIP_TYPE) == "cargo"
        assert category_label(4, BucketKind.SHIP_LENGTH) == "100-200m"
        assert category_label(8, BucketKind.SPEED_OVER_GROUND) == ">50kts"
        assert category_label(99, BucketKind.SHIP_TYPE) == "undefined"

    @pytest.mark.parametrize("kind", list(BucketKind))
    def test_every_category_has_a_label(self, kind):
        for value in (-1e9, -1.0, 0.0, 1.0, 17.0, 55.0, 1e9):
            assert category_label(bucket(value, kind), kind) != "undefined"
