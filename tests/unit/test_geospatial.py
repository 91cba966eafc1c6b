"""
Unit tests for geographic helpers and the geospatial operators.
"""

import math
from types import SimpleNamespace

import numpy as np
import pytest

from recfilter.core.exceptions import InvalidExpressionError
from recfilter.operators.geospatial import (
    BoundingBox,
    NearQuery,
    PolygonQuery,
    evaluate_geo_box,
    evaluate_geo_polygon,
    evaluate_near,
    validate_geo_box,
    validate_geo_polygon,
    validate_near,
)
from recfilter.query.paths import MISSING
from recfilter.utils.geo import (
    extract_point,
    great_circle_distance,
    in_bounding_box,
    is_valid_geo_point,
    point_in_polygon,
)


SQUARE = ((0.0, 0.0), (0.0, 2.0), (2.0, 2.0), (2.0, 0.0))


class TestGeoPoints:
    """Tests for point extraction."""

    def test_mapping_point(self):
        assert extract_point({"lat": 52.5, "lng": 13}) == (52.5, 13.0)

    def test_object_point(self):
        assert extract_point(SimpleNamespace(lat=1, lng=2)) == (1.0, 2.0)

    def test_numpy_coordinates(self):
        assert extract_point({"lat": np.float64(1.5), "lng": np.int32(2)}) == (1.5, 2.0)

    @pytest.mark.parametrize("point", [
        {"lat": 91, "lng": 0},
        {"lat": 0, "lng": -181},
        {"lat": True, "lng": 0},
        {"lat": "1", "lng": 0},
        {"lat": math.nan, "lng": 0},
        {"lat": 1},
        None,
        MISSING,
        "52.5,13.4",
    ])
    def test_invalid_points(self, point):
        assert extract_point(point) is None
        assert not is_valid_geo_point(point)


class TestDistance:
    """Tests for great-circle distance."""

    def test_zero_distance(self):
        assert great_circle_distance((0.0, 0.0), (0.0, 0.0)) == 0.0
        assert great_circle_distance((10.0, 20.0), (10.0, 20.0)) == pytest.approx(0.0, abs=1.0)

    def test_hundredth_degree_at_equator(self):
        assert round(great_circle_distance((0.0, 0.0), (0.0, 0.01))) == 1112

    def test_berlin_paris(self):
        distance = great_circle_distance((52.52, 13.405), (48.8566, 2.3522))
        assert distance == pytest.approx(878_000, rel=0.01)

    def test_symmetry(self):
        a, b = (52.52, 13.405), (-33.87, 151.21)
        assert great_circle_distance(a, b) == pytest.approx(great_circle_distance(b, a))


class TestBoxAndPolygon:
    """Tests for box and polygon containment."""

    def test_box_is_inclusive(self):
        assert in_bounding_box((1.0, 1.0), (0.0, 0.0), (1.0, 1.0))
        assert not in_bounding_box((1.1, 1.0), (0.0, 0.0), (1.0, 1.0))

    def test_box_without_wraparound(self):
        assert not in_bounding_box((0.0, 175.0), (-10.0, 170.0), (10.0, -170.0))

    def test_point_in_polygon(self):
        assert point_in_polygon((1.0, 1.0), SQUARE)
        assert not point_in_polygon((3.0, 1.0), SQUARE)
        assert not point_in_polygon((-1.0, 1.0), SQUARE)

    def test_vertex_is_outside(self):
        assert not point_in_polygon((0.0, 0.0), SQUARE)

    def test_degenerate_polygon(self):
        assert not point_in_polygon((0.0, 0.0), SQUARE[:2])


class TestGeoOperators:
    """Tests for $near, $geoBox and $geoPolygon."""

    def test_near(self, ctx, places):
        query = NearQuery((0.0, 0.0), 1200.0)
        names = [p["name"] for p in places if evaluate_near(p.get("location", MISSING), query, ctx)]
        assert names == ["origin", "east"]

    def test_near_min_distance(self, ctx):
        query = NearQuery((0.0, 0.0), 1200.0, 10.0)
        assert not evaluate_near({"lat": 0, "lng": 0}, query, ctx)
        assert evaluate_near({"lat": 0, "lng": 0.01}, query, ctx)

    def test_geo_box(self, ctx, places):
        box = BoundingBox((-0.5, -0.5), (0.5, 0.5))
        names = [p["name"] for p in places if evaluate_geo_box(p.get("location", MISSING), box, ctx)]
        assert names == ["origin", "east"]

    def test_geo_polygon(self, ctx):
        polygon = PolygonQuery(SQUARE)
        assert evaluate_geo_polygon({"lat": 1, "lng": 1}, polygon, ctx)
        assert not evaluate_geo_polygon({"lat": 200, "lng": 1}, polygon, ctx)

    def test_validate_near(self):
        query = validate_near(
            {"center": {"lat": 1, "lng": 2}, "maxDistanceMeters": 10, "minDistanceMeters": 1},
            "loc.$near",
        )
        assert query == NearQuery((1.0, 2.0), 10.0, 1.0)

    def test_validate_near_errors(self):
        with pytest.raises(InvalidExpressionError, match="center"):
            validate_near({"maxDistanceMeters": 10}, "loc.$near")
        with pytest.raises(InvalidExpressionError, match="maxDistanceMeters"):
            validate_near({"center": {"lat": 0, "lng": 0}}, "loc.$near")
        with pytest.raises(InvalidExpressionError):
            validate_near([0, 0], "loc.$near")

    def test_validate_geo_box(self):
        box = validate_geo_box(
            {"southwest": {"lat": -1, "lng": -1}, "northeast": {"lat": 1, "lng": 1}}, "b"
        )
        assert box == BoundingBox((-1.0, -1.0), (1.0, 1.0))

    def test_validate_geo_polygon(self):
        points = [{"lat": 0, "lng": 0}, {"lat": 0, "lng": 2}, {"lat": 2, "lng": 2}]
        polygon = validate_geo_polygon({"points": points}, "p")
        assert polygon.vertices == ((0.0, 0.0), (0.0, 2.0), (2.0, 2.0))
        with pytest.raises(InvalidExpressionError, match="points"):
            validate_geo_polygon({"vertices": points}, "p")
        with pytest.raises(InvalidExpressionError):
            validate_geo_polygon({"points": points[:2] + [{"lat": 95, "lng": 0}]}, "p")
