import pytest

from idp_builder.config import MISSING_DOUBLE
from idp_builder.utils.geo import (
    KM_PER_DEGREE,
    depth_from_pressure,
    distance,
    mean_of,
    pressure_from_depth,
)


def test_meridional_distance():
    assert distance(10.0, 0.0, 10.0, 2.0) == pytest.approx(2 * KM_PER_DEGREE)
    assert distance(10.0, 2.0, 10.0, 0.0) == pytest.approx(2 * KM_PER_DEGREE)


def test_zonal_distance_on_equator():
    assert distance(0.0, 0.0, 1.0, 0.0) == pytest.approx(KM_PER_DEGREE)


def test_zonal_distance_shrinks_with_latitude():
    assert distance(0.0, 60.0, 1.0, 60.0) == pytest.approx(KM_PER_DEGREE * 0.5)


def test_same_position():
    assert distance(-20.0, 30.0, -20.0, 30.0) == 0.0


def test_mean_of():
    assert mean_of(1.0, 3.0) == 2.0
    assert mean_of(MISSING_DOUBLE, 3.0) == 3.0
    assert mean_of(1.0, MISSING_DOUBLE) == 1.0
    assert mean_of(MISSING_DOUBLE, MISSING_DOUBLE) == MISSING_DOUBLE


def test_depth_pressure_conversions_are_consistent():
    for lat in (0.0, 45.0, -70.0):
        pressure = pressure_from_depth(2000.0, lat)
        assert pressure > 2000.0
        assert depth_from_pressure(pressure, lat) == pytest.approx(2000.0, abs=2.0)


def test_surface():
    assert depth_from_pressure(0.0, 30.0) == 0.0
    assert pressure_from_depth(0.0, 30.0) == 0.0


def test_missing_input():
    assert depth_from_pressure(MISSING_DOUBLE, 10.0) == MISSING_DOUBLE
    assert pressure_from_depth(MISSING_DOUBLE, 10.0) == MISSING_DOUBLE
