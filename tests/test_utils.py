"""
Tests for AIRPROX utility functions.
"""

import pytest
from math import pi

from airprox.utils import (
    SpeedVector,
    Averager,
    FlatProjection,
    average_vectors,
    haversine_distance,
    calculate_bearing,
    destination_point,
    get_bounding_box,
    in_bounding_box,
    wrap_radians,
    format_altitude,
    format_duration,
    validate_coordinates,
)


class TestHaversineDistance:
    """Tests for haversine_distance function."""

    def test_same_point(self):
        """Distance between same point should be 0."""
        dist = haversine_distance(49.3508, 8.1364, 49.3508, 8.1364)
        assert dist == 0.0

    def test_one_millidegree_latitude(self):
        """A thousandth of a degree of latitude is about 111 m."""
        dist = haversine_distance(52.0, 13.0, 52.001, 13.0)
        assert dist == pytest.approx(111.2, abs=0.5)

    def test_symmetric(self):
        """Distance does not depend on direction."""
        d1 = haversine_distance(49.35, 8.13, 50.11, 8.68)
        d2 = haversine_distance(50.11, 8.68, 49.35, 8.13)
        assert d1 == pytest.approx(d2)


class TestBearingAndDestination:
    """Tests for bearing and destination helpers."""

    def test_bearing_cardinal(self):
        """Bearings to points due north and east."""
        assert calculate_bearing(52.0, 13.0, 52.1, 13.0) == pytest.approx(0.0, abs=1e-6)
        assert calculate_bearing(0.0, 13.0, 0.0, 13.1) == pytest.approx(90.0, abs=1e-6)

    def test_destination_round_trip(self):
        """Travelling a distance along a bearing ends that far away."""
        lat, lon = destination_point(52.0, 13.0, 45.0, 1500.0)
        assert haversine_distance(52.0, 13.0, lat, lon) == pytest.approx(1500.0, rel=1e-6)
        assert calculate_bearing(52.0, 13.0, lat, lon) == pytest.approx(45.0, abs=0.01)

    def test_zero_distance(self):
        """Zero distance returns the start point."""
        lat, lon = destination_point(52.0, 13.0, 123.0, 0.0)
        assert lat == pytest.approx(52.0)
        assert lon == pytest.approx(13.0)


class TestBoundingBox:
    """Tests for bounding box helpers."""

    def test_box_contains_center(self):
        box = get_bounding_box(52.0, 13.0, 100.0)
        assert in_bounding_box(52.0, 13.0, box)

    def test_box_extent(self):
        """Points just inside and well outside the radius."""
        box = get_bounding_box(52.0, 13.0, 100.0)
        inside = destination_point(52.0, 13.0, 0.0, 90.0)
        outside = destination_point(52.0, 13.0, 90.0, 150.0)
        assert in_bounding_box(*inside, box)
        assert not in_bounding_box(*outside, box)


class TestSpeedVector:
    """Tests for SpeedVector."""

    def test_components(self):
        v = SpeedVector(90.0, 10.0)
        assert v.east == pytest.approx(10.0)
        assert v.north == pytest.approx(0.0, abs=1e-9)

    def test_from_components(self):
        v = SpeedVector.from_components(0.0, -5.0)
        assert v.bearing == pytest.approx(180.0)
        assert v.norm == pytest.approx(5.0)

    def test_zero_vector(self):
        v = SpeedVector.from_components(0.0, 0.0)
        assert v.norm == 0.0
        assert v.bearing == 0.0

    def test_addition(self):
        """Head wind adds to the air-relative speed."""
        track = SpeedVector(0.0, 50.0)
        wind = SpeedVector(0.0, 10.0)
        total = track + wind
        assert total.norm == pytest.approx(60.0)
        assert total.bearing == pytest.approx(0.0, abs=1e-6)

    def test_average_vectors(self):
        avg = average_vectors([SpeedVector(90.0, 10.0), SpeedVector(270.0, 10.0)])
        assert avg.norm == pytest.approx(0.0, abs=1e-9)
        assert average_vectors([]).norm == 0.0


class TestFlatProjection:
    """Tests for FlatProjection."""

    def test_reference_is_origin(self):
        proj = FlatProjection(52.0, 13.0)
        x, y = proj.project(52.0, 13.0)
        assert x == pytest.approx(0.0)
        assert y == pytest.approx(0.0)

    def test_round_trip(self):
        proj = FlatProjection(52.0, 13.0)
        x, y = proj.project(52.01, 13.02)
        lat, lon = proj.unproject(x, y)
        assert lat == pytest.approx(52.01)
        assert lon == pytest.approx(13.02)

    def test_matches_haversine_locally(self):
        """Projected distances agree with great-circle distances over a few km."""
        proj = FlatProjection(52.0, 13.0)
        lat, lon = destination_point(52.0, 13.0, 60.0, 2000.0)
        x, y = proj.project(lat, lon)
        assert (x * x + y * y) ** 0.5 == pytest.approx(2000.0, rel=1e-3)


class TestWrap:
    """Tests for angle wrapping."""

    def test_wrap_radians(self):
        assert wrap_radians(1.5 * pi) == pytest.approx(-0.5 * pi)
        assert wrap_radians(0.25) == pytest.approx(0.25)


class TestFormatting:
    """Tests for formatting functions."""

    def test_format_altitude(self):
        assert format_altitude(1000) == "1000 m (3281 ft)"
        assert format_altitude(1000, include_feet=False) == "1000 m"
        assert format_altitude(None) == "N/A"

    def test_format_duration(self):
        assert format_duration(3665) == "1h 1m 5s"
        assert format_duration(120) == "2m"
        assert format_duration(0) == "0s"
        assert format_duration(-1) == "N/A"

    def test_validate_coordinates(self):
        assert validate_coordinates(52.0, 13.0)
        assert not validate_coordinates(100, 200)


class TestAverager:
    """Tests for Averager."""

    def test_average(self):
        avg = Averager()
        assert avg.empty()
        for x in (1.0, 2.0, 3.0):
            avg.add(x)
        assert avg.calculate()
        assert avg.avg == pytest.approx(2.0)

    def test_empty_calculate(self):
        avg = Averager()
        assert not avg.calculate()
        assert avg.avg == 0.0

    def test_merge(self):
        a, b = Averager(), Averager()
        a.add(1.0)
        b.add(3.0)
        b.add(5.0)
        a.add(b)
        assert a.num == 3
        assert a.calculate()
        assert a.avg == pytest.approx(3.0)
