"""
Utility functions for recfilter.
"""

from .logging import setup_logger, get_logger, set_level, LogContext
from .validation import (
    validate_bool,
    validate_max_depth,
    validate_limit,
    validate_callable,
)
from .geo import (
    EARTH_RADIUS_METERS,
    extract_point,
    is_valid_geo_point,
    great_circle_distance,
    in_bounding_box,
    point_in_polygon,
)
from .dates import system_clock, day_of_week, calculate_age
from .monitoring import PerformanceMonitor, PerformanceMetrics

__all__ = [
    "setup_logger",
    "get_logger",
    "set_level",
    "LogContext",
    "validate_bool",
    "validate_max_depth",
    "validate_limit",
    "validate_callable",
    "EARTH_RADIUS_METERS",
    "extract_point",
    "is_valid_geo_point",
    "great_circle_distance",
    "in_bounding_box",
    "point_in_polygon",
    "system_clock",
    "day_of_week",
    "calculate_age",
    "PerformanceMonitor",
    "PerformanceMetrics",
]
