"""
Unit tests for filter options and result post-processing.
"""

import dataclasses
from decimal import Decimal

import pytest

from recfilter.core.exceptions import InvalidOptionsError
from recfilter.core.options import FilterOptions, resolve_options
from recfilter.query.paths import MISSING
from recfilter.query.sorting import (
    OrderByField,
    SortDirection,
    apply_post_processing,
    compare_values,
    normalize_order_by,
    sort_records,
)


class TestFilterOptions:
    """Tests for FilterOptions."""

    def test_defaults(self):
        options = FilterOptions()
        assert not options.case_sensitive
        assert options.max_depth == 3
        assert options.limit is None
        assert options.order_by == ()
        assert not options.enable_cache

    def test_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            FilterOptions().limit = 5

    @pytest.mark.parametrize("kwargs", [
        {"limit": 0},
        {"limit": True},
        {"limit": 2.5},
        {"max_depth": 0},
        {"max_depth": 11},
        {"case_sensitive": "yes"},
        {"enable_cache": 1},
        {"custom_comparator": 5},
        {"order_by": 5},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(InvalidOptionsError):
            FilterOptions(**kwargs)

    def test_error_names_option(self):
        with pytest.raises(InvalidOptionsError) as exc:
            FilterOptions(limit=-1)
        assert exc.value.option == "limit"
        assert exc.value.to_dict()["code"] == "INVALID_OPTIONS"

    def test_from_dict_wire_names(self):
        options = FilterOptions.from_dict({"caseSensitive": True, "orderBy": "name", "maxDepth": 5})
        assert options.case_sensitive
        assert options.max_depth == 5
        assert options.order_by == (OrderByField("name"),)

    def test_from_dict_unknown_key(self):
        with pytest.raises(InvalidOptionsError) as exc:
            FilterOptions.from_dict({"bogus": 1})
        assert exc.value.option == "bogus"

    def test_from_dict_requires_mapping(self):
        with pytest.raises(InvalidOptionsError):
            FilterOptions.from_dict([("limit", 1)])

    def test_to_dict(self):
        data = FilterOptions(order_by=("price", "desc"), limit=3).to_dict()
        assert data["order_by"] == [{"field": "price", "direction": "desc"}]
        assert data["limit"] == 3
        assert "custom_comparator" not in data

    def test_replace(self):
        options = FilterOptions(limit=3).replace(case_sensitive=True)
        assert options.limit == 3
        assert options.case_sensitive


class TestResolveOptions:
    """Tests for layering call options on engine defaults."""

    def test_none_uses_defaults(self):
        defaults = FilterOptions(case_sensitive=True)
        assert resolve_options(None, defaults) is defaults

    def test_mapping_layers_on_defaults(self):
        defaults = FilterOptions(case_sensitive=True, order_by="name")
        options = resolve_options({"limit": 2}, defaults)
        assert options.case_sensitive
        assert options.limit == 2
        assert options.order_by == (OrderByField("name"),)

    def test_overrides_win(self):
        options = resolve_options(FilterOptions(limit=5), None, limit=1, caseSensitive=True)
        assert options.limit == 1
        assert options.case_sensitive

    def test_rejects_other_types(self):
        with pytest.raises(InvalidOptionsError):
            resolve_options("fast")


class TestOrderBy:
    """Tests for order_by normalization."""

    def test_shapes(self):
        asc = SortDirection.ASC
        desc = SortDirection.DESC
        assert normalize_order_by("price") == (OrderByField("price", asc),)
        assert normalize_order_by(("price", "desc")) == (OrderByField("price", desc),)
        assert normalize_order_by({"field": "price", "direction": "DESC"}) == (
            OrderByField("price", desc),
        )
        assert normalize_order_by(
            ["category", ("price", "desc"), ["rating", "desc"], {"field": "name"}]
        ) == (
            OrderByField("category", asc),
            OrderByField("price", desc),
            OrderByField("rating", desc),
            OrderByField("name", asc),
        )

    def test_tuple_of_fields(self):
        assert normalize_order_by(("city", "name")) == (
            OrderByField("city"),
            OrderByField("name"),
        )

    def test_none(self):
        assert normalize_order_by(None) == ()

    @pytest.mark.parametrize("order_by", [
        [],
        "",
        5,
        {"direction": "asc"},
        {"field": "price", "direction": "up"},
        [("price", "desc", "extra")],
    ])
    def test_invalid(self, order_by):
        with pytest.raises(InvalidOptionsError):
            normalize_order_by(order_by)

    def test_to_dict(self):
        assert OrderByField("a", SortDirection.DESC).to_dict() == {"field": "a", "direction": "desc"}


class TestSorting:
    """Tests for stable multi-key sorting."""

    def test_stable_multi_key(self, products):
        fields = normalize_order_by(["category", ("price", "desc")])
        ids = [p["id"] for p in sort_records(products, fields)]
        assert ids == [1, 5, 2, 3, 4]

    def test_ties_keep_source_order(self, products):
        ids = [p["id"] for p in sort_records(products, normalize_order_by("category"))]
        assert ids == [1, 2, 5, 3, 4]

    def test_missing_and_none_sort_last(self, products):
        for direction in ("asc", "desc"):
            ordered = sort_records(products, normalize_order_by(("rating", direction)))
            assert [p["id"] for p in ordered[-2:]] == [2, 3]

    def test_rating_descending(self, products):
        ordered = sort_records(products, normalize_order_by(("rating", "desc")))
        assert [p["id"] for p in ordered] == [5, 1, 4, 2, 3]

    def test_case_folding(self):
        records = [{"n": "b"}, {"n": "A"}, {"n": "a"}]
        fields = normalize_order_by("n")
        assert [r["n"] for r in sort_records(records, fields)] == ["A", "a", "b"]
        assert [r["n"] for r in sort_records(list(reversed(records)), fields)] == ["a", "A", "b"]
        assert [r["n"] for r in sort_records(records, fields, case_sensitive=True)] == ["A", "a", "b"]

    def test_mixed_types_by_family(self):
        records = [{"v": "x"}, {"v": 2}, {"v": None}, {"v": 1}]
        ordered = sort_records(records, normalize_order_by("v"))
        assert [r["v"] for r in ordered] == [1, 2, "x", None]

    def test_dot_path(self, users):
        ordered = sort_records(users, normalize_order_by(("address.zip", "desc")))
        assert [u["name"] for u in ordered] == ["Bob", "Charlie", "Alice", "Diana"]

    def test_compare_values(self):
        assert compare_values(None, 1, SortDirection.DESC) == 1
        assert compare_values(1, MISSING, SortDirection.ASC) == -1
        assert compare_values(MISSING, None, SortDirection.ASC) == 0
        assert compare_values(2, 1, SortDirection.DESC) == -1

    def test_other_types_use_their_own_ordering(self):
        assert compare_values(Decimal("10"), Decimal("9"), SortDirection.ASC) == 1
        prices = [{"price": Decimal(p)} for p in ("10", "9", "100", "9.5")]
        result = sort_records(prices, [OrderByField("price")])
        assert [r["price"] for r in result] == [Decimal("9"), Decimal("9.5"), Decimal("10"), Decimal("100")]

    def test_unorderable_values_fall_back_to_text(self):
        assert compare_values({"b": 1}, {"a": 1}, SortDirection.ASC) == 1

    def test_limit_after_sort(self, products):
        fields = normalize_order_by(("price", "desc"))
        top = apply_post_processing(products, fields, 2)
        assert [p["id"] for p in top] == [1, 3]

    def test_limit_without_sort(self, products):
        assert apply_post_processing(products, (), 2) == products[:2]
