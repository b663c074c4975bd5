import math

import pytest

from src.app.models.domain import Coordinates, ScanLocation
from src.app.services.geospatial import (
    EARTH_RADIUS_METERS,
    MAX_ZOOM_LEVEL,
    haversine_meters,
    is_at_destination,
    lat_lng_center,
    zoom_level,
)

PARIS = Coordinates(latitude=48.8566, longitude=2.3522)
LONDON = Coordinates(latitude=51.5074, longitude=-0.1278)


def test_haversine_is_zero_for_identical_points():
    assert haversine_meters(PARIS, PARIS) == 0.0


def test_haversine_paris_to_london():
    distance = haversine_meters(PARIS, LONDON)
    assert 340_000 < distance < 346_000


def test_haversine_is_symmetric():
    assert math.isclose(haversine_meters(PARIS, LONDON), haversine_meters(LONDON, PARIS))


def test_haversine_handles_antipodal_points():
    distance = haversine_meters((0.0, 0.0), (0.0, 180.0))
    assert math.isclose(distance, math.pi * EARTH_RADIUS_METERS, rel_tol=1e-9)


def test_haversine_across_date_line():
    distance = haversine_meters({"latitude": 0.0, "longitude": 179.9}, {"latitude": 0.0, "longitude": -179.9})
    assert 22_000 < distance < 23_000


def test_scan_within_tolerance_widened_by_accuracy():
    scan = ScanLocation(latitude=48.9066, longitude=2.3522, accuracy=1000)
    assert is_at_destination(PARIS, scan)


def test_scan_just_outside_tolerance_without_accuracy():
    scan = ScanLocation(latitude=48.9066, longitude=2.3522)
    assert not is_at_destination(PARIS, scan)


@pytest.mark.parametrize("accuracy", [None, "12", True, float("nan")])
def test_non_numeric_accuracy_counts_as_zero(accuracy):
    scan = {"latitude": 48.9066, "longitude": 2.3522, "accuracy": accuracy}
    assert not is_at_destination(PARIS, scan)


@pytest.mark.parametrize("accuracy", [None, 0, 1000, -6000, float("-inf")])
def test_identical_points_are_at_destination_regardless_of_accuracy(accuracy):
    scan = ScanLocation(latitude=PARIS.latitude, longitude=PARIS.longitude, accuracy=accuracy)
    assert is_at_destination(PARIS, scan)
    assert is_at_destination(PARIS, scan, tolerance_meters=0)


def test_negative_accuracy_does_not_shrink_tolerance():
    scan = ScanLocation(latitude=48.8966, longitude=2.3522, accuracy=-2000)
    assert is_at_destination(PARIS, scan)


def test_destination_check_is_symmetric():
    near = Coordinates(latitude=48.87, longitude=2.36)
    assert is_at_destination(PARIS, near) == is_at_destination(near, PARIS)
    assert is_at_destination(PARIS, LONDON) == is_at_destination(LONDON, PARIS)


def test_far_scan_is_not_at_destination():
    assert not is_at_destination(PARIS, LONDON)


def test_center_of_single_point_is_the_point():
    lat, lon = lat_lng_center([(10.0, 20.0)])
    assert math.isclose(lat, 10.0, abs_tol=1e-9)
    assert math.isclose(lon, 20.0, abs_tol=1e-9)


def test_center_of_symmetric_points():
    lat, lon = lat_lng_center([(0.0, -10.0), (0.0, 10.0)])
    assert math.isclose(lat, 0.0, abs_tol=1e-9)
    assert math.isclose(lon, 0.0, abs_tol=1e-9)


def test_center_and_zoom_reject_empty_input():
    with pytest.raises(ValueError):
        lat_lng_center([])
    with pytest.raises(ValueError):
        zoom_level([])


def test_zoom_is_higher_for_closer_points():
    close = zoom_level([(48.85, 2.35), (48.86, 2.36)])
    far = zoom_level([(48.85, 2.35), (51.50, -0.12)])
    assert close > far


def test_zoom_for_identical_points_is_maximal():
    assert zoom_level([(48.85, 2.35), (48.85, 2.35)]) == MAX_ZOOM_LEVEL

