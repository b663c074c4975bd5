"""Geospatial helper functions."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Optional, Sequence

from shapely.geometry import MultiPoint

from ..config import settings

EARTH_RADIUS_METERS = 6_378_137.0
MAX_ZOOM_LEVEL = 20


def _lat_lon(point: Any) -> tuple[float, float]:
    """Extract (lat, lon) from a dataclass, mapping or (lat, lon) pair."""

    if isinstance(point, Mapping):
        return float(point["latitude"]), float(point["longitude"])
    if isinstance(point, (tuple, list)):
        return float(point[0]), float(point[1])
    return float(point.latitude), float(point.longitude)


def _accuracy(point: Any) -> float:
    if isinstance(point, Mapping):
        value = point.get("accuracy")
    else:
        value = getattr(point, "accuracy", None)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        return 0.0
    # a negative radius would shrink the tolerance below the nominal distance
    return max(0.0, float(value))


def haversine_meters(a: Any, b: Any) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    lat1, lon1 = _lat_lon(a)
    lat2, lon2 = _lat_lon(b)

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # rounding can push h a hair past 1 for antipodal points
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_METERS * c


def is_at_destination(
    destination: Any,
    scan_point: Any,
    *,
    tolerance_meters: Optional[float] = None,
) -> bool:
    """Return True when the scan lies within tolerance of the destination.

    The tolerance is widened by the accuracy radius reported with the scan;
    a missing, negative or non-numeric accuracy counts as zero.
    """

    tolerance = settings.destination_tolerance_meters if tolerance_meters is None else tolerance_meters
    threshold = tolerance + _accuracy(scan_point)
    return haversine_meters(destination, scan_point) <= threshold


def lat_lng_center(points: Sequence[Any]) -> tuple[float, float]:
    """Geographic midpoint of the points (mean of their unit vectors)."""

    if not points:
        raise ValueError("At least one coordinate is required to compute a center.")

    sum_x = sum_y = sum_z = 0.0
    for point in points:
        lat, lon = _lat_lon(point)
        lat_r, lon_r = math.radians(lat), math.radians(lon)
        sum_x += math.cos(lat_r) * math.cos(lon_r)
        sum_y += math.cos(lat_r) * math.sin(lon_r)
        sum_z += math.sin(lat_r)

    count = len(points)
    avg_x, avg_y, avg_z = sum_x / count, sum_y / count, sum_z / count
    lon = math.atan2(avg_y, avg_x)
    lat = math.atan2(avg_z, math.hypot(avg_x, avg_y))
    return math.degrees(lat), math.degrees(lon)


def zoom_level(points: Sequence[Any]) -> int:
    """Web-map zoom level that fits the bounding box of the points."""

    if not points:
        raise ValueError("At least one coordinate is required to compute bounds.")

    min_lat, min_lon, max_lat, max_lon = MultiPoint([_lat_lon(point) for point in points]).bounds
    span = math.hypot(max_lat - min_lat, max_lon - min_lon)
    if span == 0:
        return MAX_ZOOM_LEVEL
    return min(MAX_ZOOM_LEVEL, round(math.log2((156543.03392 * 360) / span / 200000)))

