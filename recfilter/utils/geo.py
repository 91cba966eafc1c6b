"""
Geographic helpers: point validation, great-circle distance and
point-in-polygon tests.

Distances use the spherical law of cosines on a sphere of radius
6,371,000 m. All functions are pure.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, Sequence, Tuple

import numpy as np


EARTH_RADIUS_METERS = 6_371_000.0

LAT_RANGE = (-90.0, 90.0)
LNG_RANGE = (-180.0, 180.0)

# (lat, lng)
Coordinates = Tuple[float, float]


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float, np.integer, np.floating))
        and not isinstance(value, bool)
        and bool(np.isfinite(value))
    )


def extract_point(point: Any) -> Optional[Coordinates]:
    """
    Read ``lat``/``lng`` from a mapping or an object.

    Returns:
        (lat, lng) when both are numbers within range, otherwise None
    """
    if isinstance(point, Mapping):
        lat, lng = point.get("lat"), point.get("lng")
    else:
        lat, lng = getattr(point, "lat", None), getattr(point, "lng", None)

    if not (_is_number(lat) and _is_number(lng)):
        return None

    lat, lng = float(lat), float(lng)
    if not (LAT_RANGE[0] <= lat <= LAT_RANGE[1] and LNG_RANGE[0] <= lng <= LNG_RANGE[1]):
        return None

    return lat, lng


def is_valid_geo_point(point: Any) -> bool:
    """True if ``point`` carries in-range numeric lat/lng."""
    return extract_point(point) is not None


def great_circle_distance(a: Coordinates, b: Coordinates) -> float:
    """
    Great-circle distance in meters between two (lat, lng) pairs.

    Formula: R * acos(sin(lat1) sin(lat2) + cos(lat1) cos(lat2) cos(dlng))

    Example:
        >>> round(great_circle_distance((0.0, 0.0), (0.0, 0.01)))
        1112
    """
    lat1, lng1 = np.radians(a)
    lat2, lng2 = np.radians(b)
    cos_angle = (
        np.sin(lat1) * np.sin(lat2)
        + np.cos(lat1) * np.cos(lat2) * np.cos(lng2 - lng1)
    )
    # rounding can push identical points slightly above 1
    central_angle = np.arccos(np.clip(cos_angle, -1.0, 1.0))
    return float(EARTH_RADIUS_METERS * central_angle)


def in_bounding_box(point: Coordinates, southwest: Coordinates, northeast: Coordinates) -> bool:
    """
    Inclusive box test. No antimeridian wraparound: a box whose
    southwest longitude exceeds its northeast longitude contains nothing.
    """
    lat, lng = point
    return (
        southwest[0] <= lat <= northeast[0]
        and southwest[1] <= lng <= northeast[1]
    )


def point_in_polygon(point: Coordinates, vertices: Sequence[Coordinates]) -> bool:
    """
    Ray casting (odd-crossing rule) over an ordered vertex list.

    A point lying exactly on a vertex is reported as outside. Results for
    self-intersecting polygons are unspecified.
    """
    if len(vertices) < 3:
        return False

    lat, lng = point
    for v_lat, v_lng in vertices:
        if v_lat == lat and v_lng == lng:
            return False

    inside = False
    j = len(vertices) - 1
    for i in range(len(vertices)):
        lat_i, lng_i = vertices[i]
        lat_j, lng_j = vertices[j]
        if (lng_i > lng) != (lng_j > lng):
            crossing_lat = (lat_j - lat_i) * (lng - lng_i) / (lng_j - lng_i) + lat_i
            if lat < crossing_lat:
                inside = not inside
        j = i

    return inside
