"""
Pytest fixtures for recfilter tests.
"""

import datetime as dt
from typing import Any, Dict, List

import pytest

from config.settings import Settings
from recfilter.core.engine import FilterEngine
from recfilter.core.options import FilterOptions
from recfilter.operators.registry import OperatorRegistry
from recfilter.cache.regex_cache import RegexCache
from recfilter.query.context import EvaluationContext


# Wednesday
FIXED_NOW = dt.datetime(2024, 6, 12, 14, 30, 0)


def fixed_clock() -> dt.datetime:
    return FIXED_NOW


@pytest.fixture
def now() -> dt.datetime:
    """The instant returned by the test clock."""
    return FIXED_NOW


@pytest.fixture
def registry() -> OperatorRegistry:
    """A private registry with the built-in operators."""
    return OperatorRegistry()


@pytest.fixture
def engine(registry: OperatorRegistry) -> FilterEngine:
    """Engine with default settings, a private registry and a fixed clock."""
    return FilterEngine(Settings(), registry=registry, clock=fixed_clock)


@pytest.fixture
def ctx() -> EvaluationContext:
    """Case-insensitive evaluation context with a fixed clock."""
    return EvaluationContext(FilterOptions(), RegexCache(), fixed_clock)


@pytest.fixture
def ctx_cs() -> EvaluationContext:
    """Case-sensitive evaluation context."""
    return EvaluationContext(FilterOptions(case_sensitive=True), RegexCache(), fixed_clock)


@pytest.fixture
def users() -> List[Dict[str, Any]]:
    """Small user dataset."""
    return [
        {"name": "Alice", "age": 30, "city": "Berlin", "tags": ["admin", "dev"],
         "address": {"city": "Berlin", "zip": "10115"}, "active": True},
        {"name": "Bob", "age": 25, "city": "Paris", "tags": ["dev"],
         "address": {"city": "Paris", "zip": "75001"}, "active": False},
        {"name": "Charlie", "age": 35, "city": "Berlin", "tags": [],
         "address": {"city": "Berlin", "zip": "10117"}, "active": True},
        {"name": "Diana", "age": 28, "city": "London", "tags": ["ops"],
         "active": True},
    ]


@pytest.fixture
def products() -> List[Dict[str, Any]]:
    """Product catalogue with some missing and null fields."""
    return [
        {"id": 1, "name": "Laptop", "price": 1200, "category": "Electronics", "rating": 4.5},
        {"id": 2, "name": "Mouse", "price": 25, "category": "Electronics", "rating": None},
        {"id": 3, "name": "Desk", "price": 300, "category": "Furniture"},
        {"id": 4, "name": "Chair", "price": 150, "category": "Furniture", "rating": 4.0},
        {"id": 5, "name": "Monitor", "price": 300, "category": "Electronics", "rating": 4.8},
    ]


@pytest.fixture
def places() -> List[Dict[str, Any]]:
    """Points around the origin and in Berlin."""
    return [
        {"name": "origin", "location": {"lat": 0.0, "lng": 0.0}},
        {"name": "east", "location": {"lat": 0.0, "lng": 0.01}},
        {"name": "far", "location": {"lat": 0.0, "lng": 1.0}},
        {"name": "berlin", "location": {"lat": 52.52, "lng": 13.405}},
        {"name": "broken", "location": {"lat": 200, "lng": 0}},
        {"name": "nowhere"},
    ]
