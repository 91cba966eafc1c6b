"""
Unit tests for record matching.
"""

from types import SimpleNamespace

import pytest

from recfilter.cache.regex_cache import RegexCache
from recfilter.core.options import FilterOptions
from recfilter.query.context import EvaluationContext
from recfilter.query.matcher import Matcher, record_properties
from recfilter.query.paths import MISSING, get_nested_value, resolve_path
from recfilter.query.validator import validate


def matches(record, expression, ctx, registry=None):
    node = validate(expression, registry=registry)
    return Matcher(registry).matches(record, node, ctx)


ALICE = {
    "name": "Alice",
    "age": 30,
    "city": "Berlin",
    "tags": ["admin", "dev"],
    "address": {"city": "Berlin", "zip": "10115"},
    "active": True,
    "nickname": None,
}


class TestPaths:
    """Tests for dot-path resolution."""

    def test_mapping_path(self):
        assert get_nested_value(ALICE, "address.city") == "Berlin"

    def test_list_index(self):
        assert get_nested_value(ALICE, "tags.1") == "dev"
        assert get_nested_value(ALICE, "tags.5") is MISSING

    def test_attribute_path(self):
        record = SimpleNamespace(address=SimpleNamespace(city="Paris"))
        assert resolve_path(record, ("address", "city")) == "Paris"

    def test_missing_segments(self):
        assert get_nested_value(ALICE, "address.country") is MISSING
        assert get_nested_value(ALICE, "nickname.first") is MISSING
        assert get_nested_value(ALICE, "name.first") is MISSING

    def test_missing_is_falsy_singleton(self):
        assert not MISSING
        assert repr(MISSING) == "MISSING"
        assert type(MISSING)() is MISSING


class TestLiterals:
    """Tests for literal and wildcard conditions."""

    def test_case_insensitive_by_default(self, ctx):
        assert matches(ALICE, {"name": "alice"}, ctx)

    def test_case_sensitive(self, ctx_cs):
        assert not matches(ALICE, {"name": "alice"}, ctx_cs)
        assert matches(ALICE, {"name": "Alice"}, ctx_cs)

    def test_no_type_coercion(self, ctx):
        """Strings never equal numbers and booleans never equal integers."""
        assert not matches(ALICE, {"age": "30"}, ctx)
        assert not matches(ALICE, {"active": 1}, ctx)
        assert matches({"n": 1}, {"n": 1.0}, ctx)

    def test_wildcards(self, ctx):
        assert matches(ALICE, {"name": "Al%"}, ctx)
        assert matches(ALICE, {"name": "%ICE"}, ctx)
        assert matches(ALICE, {"name": "A_ice"}, ctx)
        assert not matches(ALICE, {"name": "A_ce"}, ctx)
        assert not matches(ALICE, {"name": "lic%"}, ctx)

    def test_wildcard_ignores_non_strings(self, ctx):
        assert not matches(ALICE, {"age": "3%"}, ctx)

    def test_regex_characters_are_literal(self, ctx):
        assert matches({"v": "a.b"}, {"v": "a.b"}, ctx)
        assert not matches({"v": "axb"}, {"v": "a.%"}, ctx)
        assert matches({"v": "a.b(c)"}, {"v": "a.%(c)"}, ctx)

    def test_negation(self, ctx):
        assert not matches(ALICE, {"city": "!Berlin"}, ctx)
        assert matches(ALICE, {"city": "!Paris"}, ctx)
        assert not matches(ALICE, {"name": "!A%"}, ctx)

    def test_negation_on_missing_field(self, ctx):
        assert matches(ALICE, {"country": "!Germany"}, ctx)

    def test_none_matches_null_and_missing(self, ctx):
        assert matches(ALICE, {"nickname": None}, ctx)
        assert matches(ALICE, {"country": None}, ctx)
        assert not matches(ALICE, {"name": None}, ctx)

    def test_array_value_traversal(self, ctx):
        assert matches(ALICE, {"tags": "dev"}, ctx)
        assert matches(ALICE, {"tags": "ad%"}, ctx)
        assert not matches(ALICE, {"tags": "ops"}, ctx)

    def test_array_or(self, ctx):
        assert matches(ALICE, {"city": ["Paris", "berlin"]}, ctx)
        assert not matches(ALICE, {"city": ["Paris", "Rome"]}, ctx)
        assert matches(ALICE, {"city": ["Par%", "Ber%"]}, ctx)

    def test_array_or_with_array_value(self, ctx):
        assert matches(ALICE, {"tags": ["ops", "admin"]}, ctx)

    def test_array_or_members_are_not_negated(self, ctx):
        assert matches({"v": "!x"}, {"v": ["!x"]}, ctx)


class TestCustomComparator:
    """Tests for the custom_comparator option."""

    def make_ctx(self, comparator):
        return EvaluationContext(FilterOptions(custom_comparator=comparator), RegexCache())

    def test_replaces_equality(self):
        ctx = self.make_ctx(lambda actual, expected: str(actual) == str(expected))
        assert matches(ALICE, {"age": "30"}, ctx)

    def test_not_called_for_missing_fields(self):
        calls = []

        def comparator(actual, expected):
            calls.append(actual)
            return True

        ctx = self.make_ctx(comparator)
        assert not matches(ALICE, {"country": "Germany"}, ctx)
        assert calls == []

    def test_wildcards_bypass_comparator(self):
        ctx = self.make_ctx(lambda actual, expected: False)
        assert matches(ALICE, {"name": "Al%"}, ctx)


class TestNested:
    """Tests for nested object conditions."""

    def test_nested_object(self, ctx):
        assert matches(ALICE, {"address": {"city": "Berlin"}}, ctx)
        assert not matches(ALICE, {"address": {"city": "Paris"}}, ctx)

    def test_nested_missing_or_primitive(self, ctx):
        assert not matches(ALICE, {"office": {"city": "Berlin"}}, ctx)
        assert not matches(ALICE, {"nickname": {"first": "Al"}}, ctx)
        assert not matches(ALICE, {"name": {"first": "Al"}}, ctx)

    def test_nested_over_list_of_objects(self, ctx):
        order = {"items": [{"sku": "a", "qty": 1}, {"sku": "b", "qty": 5}]}
        assert matches(order, {"items": {"sku": "b", "qty": {"$gt": 2}}}, ctx)
        assert not matches(order, {"items": {"sku": "a", "qty": {"$gt": 2}}}, ctx)

    def test_nested_operators(self, ctx):
        assert matches(ALICE, {"address": {"zip": {"$startsWith": "101"}}}, ctx)

    def test_dot_path(self, ctx):
        assert matches(ALICE, {"address.city": "Berlin"}, ctx)
        assert matches(ALICE, {"tags.0": "admin"}, ctx)

    def test_object_records(self, ctx):
        record = SimpleNamespace(name="Alice", address=SimpleNamespace(city="Berlin"))
        assert matches(record, {"address": {"city": "Berlin"}}, ctx)
        assert matches(record, {"address.city": "Ber%"}, ctx)


class TestLogical:
    """Tests for $and, $or and $not."""

    def test_implicit_and(self, ctx):
        assert matches(ALICE, {"city": "Berlin", "age": {"$gte": 30}}, ctx)
        assert not matches(ALICE, {"city": "Berlin", "age": {"$gt": 30}}, ctx)

    def test_explicit_and_or(self, ctx):
        expression = {"$or": [{"city": "Paris"}, {"$and": [{"age": 30}, {"active": True}]}]}
        assert matches(ALICE, expression, ctx)

    def test_top_level_not(self, ctx):
        assert matches(ALICE, {"$not": {"city": "Paris"}}, ctx)
        assert not matches(ALICE, {"$not": {"city": "Berlin"}}, ctx)

    def test_field_level_not(self, ctx):
        assert matches(ALICE, {"age": {"$not": {"$gt": 40}}}, ctx)
        assert not matches(ALICE, {"age": {"$not": {"$gt": 20}}}, ctx)
        assert matches(ALICE, {"city": {"$not": "Paris"}}, ctx)

    def test_field_level_not_on_missing(self, ctx):
        assert matches(ALICE, {"score": {"$not": {"$gt": 5}}}, ctx)

    def test_empty_junctions(self, ctx):
        """Empty $and matches everything, empty $or nothing."""
        assert matches(ALICE, {"$and": []}, ctx)
        assert not matches(ALICE, {"$or": []}, ctx)

    def test_empty_expression_matches(self, ctx):
        assert matches(ALICE, {}, ctx)

    def test_operator_map_is_conjunction(self, ctx):
        assert matches(ALICE, {"age": {"$gt": 20, "$lt": 40}}, ctx)
        assert not matches(ALICE, {"age": {"$gt": 20, "$lt": 25}}, ctx)


class TestMissingFields:
    """Operators on fields that do not exist."""

    @pytest.mark.parametrize("condition,expected", [
        ({"$eq": None}, True),
        ({"$eq": 1}, False),
        ({"$ne": 1}, True),
        ({"$ne": None}, False),
        ({"$exists": False}, True),
        ({"$exists": True}, False),
        ({"$in": [1, 2]}, False),
        ({"$in": [None]}, True),
        ({"$nin": [1, 2]}, True),
        ({"$gt": 1}, False),
        ({"$lte": 1}, False),
        ({"$size": 0}, False),
        ({"$all": [1]}, False),
        ({"$startsWith": "a"}, False),
        ({"$regex": "a"}, False),
        ({"$isWeekday": True}, False),
    ])
    def test_missing_field(self, ctx, condition, expected):
        assert matches(ALICE, {"score": condition}, ctx) is expected

    def test_exists_on_null(self, ctx):
        assert matches(ALICE, {"nickname": {"$exists": True}}, ctx)


class TestAnyProperty:
    """Top-level scalar expressions."""

    def test_matches_any_property(self, ctx):
        assert matches(ALICE, "berlin", ctx)
        assert matches(ALICE, 30, ctx)
        assert not matches(ALICE, "Tokyo", ctx)

    def test_wildcard_and_negation(self, ctx):
        assert matches(ALICE, "Ali%", ctx)
        assert matches(ALICE, "!Tokyo", ctx)
        assert not matches(ALICE, "!Berlin", ctx)

    def test_array_property(self, ctx):
        assert matches(ALICE, "admin", ctx)

    def test_primitive_records(self, ctx):
        assert matches("Berlin", "ber%", ctx)
        assert matches(42, 42, ctx)
        assert not matches(None, "x", ctx)

    def test_object_record(self, ctx):
        assert matches(SimpleNamespace(city="Paris"), "Paris", ctx)

    def test_record_properties(self):
        assert record_properties({"a": 1, "b": 2}) == [1, 2]
        assert record_properties(SimpleNamespace(a=1)) == [1]
        assert record_properties(object()) == []


class TestPredicates:
    """Callable expressions."""

    def test_predicate(self, ctx):
        assert matches(ALICE, lambda record: record["age"] > 29, ctx)
        assert not matches(ALICE, lambda record: record["age"] > 30, ctx)

    def test_truthy_result(self, ctx):
        assert matches(ALICE, lambda record: record.get("tags"), ctx)


class TestCustomOperators:
    """Operators dispatched through a private registry."""

    def test_custom_operator(self, ctx, registry):
        registry.register_function("$even", lambda actual, operand, c: actual % 2 == 0)
        assert matches(ALICE, {"age": {"$even": True}}, ctx, registry)

    def test_operator_errors_are_no_match(self, ctx, registry):
        def boom(actual, operand, c):
            raise ValueError("bad value")

        registry.register_function("$boom", boom)
        assert not matches(ALICE, {"age": {"$boom": 1}}, ctx, registry)

    def test_operator_type_errors_are_no_match(self, ctx, registry):
        registry.register_function("$even", lambda actual, operand, c: actual % 2 == 0)
        assert not matches(ALICE, {"name": {"$even": True}}, ctx, registry)
        assert not matches(ALICE, {"score": {"$even": True}}, ctx, registry)

    def test_operator_removed_after_validation(self, ctx, registry):
        registry.register_function("$even", lambda actual, operand, c: actual % 2 == 0)
        node = validate({"age": {"$even": True}}, registry=registry)
        matcher = Matcher(registry)
        assert matcher.matches(ALICE, node, ctx)

        registry.unregister("$even")
        assert not matcher.matches(ALICE, node, ctx)
