"""
Geospatial operators: $near, $geoBox, $geoPolygon.

Record values are GeoPoints: mappings or objects with numeric ``lat`` and
``lng``. Invalid points never match. Operands are checked and converted
to small immutable query objects at validation time.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional, Tuple, TYPE_CHECKING

from ..core.exceptions import InvalidExpressionError
from ..utils.geo import (
    Coordinates,
    extract_point,
    great_circle_distance,
    in_bounding_box,
    point_in_polygon,
)
from .registry import OperatorFamily, OperatorInfo, OperatorRegistry

if TYPE_CHECKING:
    from ..query.context import EvaluationContext


@dataclass(frozen=True)
class NearQuery:
    center: Coordinates
    max_distance: float
    min_distance: Optional[float] = None


@dataclass(frozen=True)
class BoundingBox:
    southwest: Coordinates
    northeast: Coordinates


@dataclass(frozen=True)
class PolygonQuery:
    vertices: Tuple[Coordinates, ...]


# =============================================================================
# EVALUATION
# =============================================================================

def evaluate_near(actual: Any, operand: NearQuery, ctx: "EvaluationContext") -> bool:
    point = extract_point(actual)
    if point is None:
        return False
    distance = great_circle_distance(point, operand.center)
    if operand.min_distance is not None and distance < operand.min_distance:
        return False
    return distance <= operand.max_distance


def evaluate_geo_box(actual: Any, operand: BoundingBox, ctx: "EvaluationContext") -> bool:
    point = extract_point(actual)
    if point is None:
        return False
    return in_bounding_box(point, operand.southwest, operand.northeast)


def evaluate_geo_polygon(actual: Any, operand: PolygonQuery, ctx: "EvaluationContext") -> bool:
    point = extract_point(actual)
    if point is None:
        return False
    return point_in_polygon(point, operand.vertices)


# =============================================================================
# OPERAND VALIDATORS
# =============================================================================

def _fail(message: str, operand: Any, path: str) -> InvalidExpressionError:
    return InvalidExpressionError(message, expression=operand, path=path)


def _require_mapping(operand: Any, path: str, name: str) -> Mapping:
    if not isinstance(operand, Mapping):
        raise _fail(f"{name} needs an object operand", operand, path)
    return operand


def _require_point(value: Any, operand: Any, path: str, what: str) -> Coordinates:
    point = extract_point(value)
    if point is None:
        raise _fail(
            f"{what} must have numeric lat in [-90, 90] and lng in [-180, 180], got {value!r}",
            operand,
            path,
        )
    return point


def _require_distance(value: Any, operand: Any, path: str, what: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise _fail(f"{what} must be a non-negative number, got {value!r}", operand, path)
    return float(value)


def validate_near(operand: Any, path: str) -> NearQuery:
    """``{"center": GeoPoint, "maxDistanceMeters": n, "minDistanceMeters"?: n}``"""
    shape = _require_mapping(operand, path, "$near")
    if "center" not in shape:
        raise _fail("$near requires 'center'", operand, path)
    if "maxDistanceMeters" not in shape:
        raise _fail("$near requires 'maxDistanceMeters'", operand, path)

    center = _require_point(shape["center"], operand, path, "$near center")
    max_distance = _require_distance(shape["maxDistanceMeters"], operand, path, "maxDistanceMeters")
    min_distance = None
    if shape.get("minDistanceMeters") is not None:
        min_distance = _require_distance(
            shape["minDistanceMeters"], operand, path, "minDistanceMeters"
        )
    return NearQuery(center, max_distance, min_distance)


def validate_geo_box(operand: Any, path: str) -> BoundingBox:
    """``{"southwest": GeoPoint, "northeast": GeoPoint}``"""
    shape = _require_mapping(operand, path, "$geoBox")
    for corner in ("southwest", "northeast"):
        if corner not in shape:
            raise _fail(f"$geoBox requires '{corner}'", operand, path)
    return BoundingBox(
        _require_point(shape["southwest"], operand, path, "$geoBox southwest"),
        _require_point(shape["northeast"], operand, path, "$geoBox northeast"),
    )


def validate_geo_polygon(operand: Any, path: str) -> PolygonQuery:
    """``{"points": [GeoPoint, ...]}`` with at least three vertices."""
    shape = _require_mapping(operand, path, "$geoPolygon")
    points = shape.get("points")
    if not isinstance(points, (list, tuple)):
        raise _fail("$geoPolygon requires a 'points' array", operand, path)
    if len(points) < 3:
        raise _fail("$geoPolygon needs at least 3 points", operand, path)
    return PolygonQuery(
        tuple(_require_point(p, operand, path, "$geoPolygon vertex") for p in points)
    )


def register(registry: OperatorRegistry) -> None:
    """Register the geospatial family."""
    family = OperatorFamily.GEOSPATIAL
    for info in (
        OperatorInfo("$near", family, evaluate_near, validate_near, "NEAR",
                     "within a distance of a center point"),
        OperatorInfo("$geoBox", family, evaluate_geo_box, validate_geo_box, "IN BOX",
                     "inside a lat/lng bounding box"),
        OperatorInfo("$geoPolygon", family, evaluate_geo_polygon, validate_geo_polygon,
                     "IN POLYGON", "inside a polygon"),
    ):
        registry.register(info)
