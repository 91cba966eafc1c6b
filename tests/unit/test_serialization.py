"""
Unit tests for expression serialization and canonical signatures.
"""

import datetime as dt
import json
import re

import numpy as np
import pytest

from recfilter.core.exceptions import SerializationError
from recfilter.query.serialization import (
    expression_from_json,
    expression_to_json,
    pack_expression,
    signature,
    to_canonical,
    unpack_expression,
)
from recfilter.query.validator import validate


class TestCanonicalForm:
    """Tests for the canonical encoding behind cache keys."""

    def test_mapping_order_does_not_matter(self):
        assert signature({"a": 1, "b": [1, 2]}) == signature({"b": [1, 2], "a": 1})

    def test_list_order_matters(self):
        assert signature([1, 2]) != signature([2, 1])

    def test_types_are_distinguished(self):
        assert signature({"a": 1}) != signature({"a": "1"})
        assert signature({"a": 1}) != signature({"a": True})
        assert signature(dt.date(2024, 1, 1)) != signature("2024-01-01")

    def test_tags_do_not_collide_with_strings(self):
        assert signature({"a": 1}) != signature(["map", [["a", 1]]])

    def test_sets_are_order_free(self):
        assert signature({3, 1, 2}) == signature({2, 3, 1})

    def test_numpy_scalars(self):
        assert signature(np.int64(5)) == signature(5)

    def test_big_ints(self):
        assert to_canonical(2 ** 70) == ["\x00int", str(2 ** 70)]

    def test_patterns_and_callables(self):
        assert signature(re.compile("a", re.I)) != signature(re.compile("a"))

        def predicate(record):
            return True

        assert to_canonical(predicate)[0] == "\x00fn"
        assert signature(predicate) == signature(predicate)

    def test_digest_size(self):
        assert len(signature({})) == 32
        assert len(signature({}, digest_size=8)) == 16


class TestMsgpack:
    """Tests for msgpack transport."""

    def test_round_trip_rich_operands(self):
        expression = {
            "created": {"$isAfter": dt.datetime(2024, 1, 1, 12, 30)},
            "birthday": {"$isBefore": dt.date(2000, 1, 1)},
            "name": {"$regex": re.compile("^al", re.IGNORECASE)},
            "age": {"$gte": 18},
        }
        restored = unpack_expression(pack_expression(expression))
        assert restored["created"]["$isAfter"] == dt.datetime(2024, 1, 1, 12, 30)
        assert restored["birthday"]["$isBefore"] == dt.date(2000, 1, 1)
        pattern = restored["name"]["$regex"]
        assert pattern.pattern == "^al"
        assert pattern.flags & re.IGNORECASE
        assert restored["age"] == {"$gte": 18}

    def test_sets_become_lists(self):
        restored = unpack_expression(pack_expression({"d": {"$in": {1}}}))
        assert restored == {"d": {"$in": [1]}}

    def test_callables_refused(self):
        with pytest.raises(SerializationError, match="callables"):
            pack_expression({"$where": lambda r: True})

    def test_garbage(self):
        with pytest.raises(SerializationError):
            unpack_expression(b"\xc1")


class TestJson:
    """Tests for JSON transport."""

    def test_plain_expression(self):
        text = expression_to_json({"age": {"$gte": 18}, "city": ["Berlin", "Paris"]})
        assert json.loads(text) == {"age": {"$gte": 18}, "city": ["Berlin", "Paris"]}

    def test_tagged_values(self):
        expression = {
            "at": {"$gt": dt.datetime(2024, 5, 1, 8, 0)},
            "day": {"$isBefore": dt.date(2024, 5, 1)},
            "name": {"$match": re.compile("x+", re.MULTILINE)},
        }
        text = expression_to_json(expression)
        data = json.loads(text)
        assert data["at"]["$gt"] == {"$date": "2024-05-01T08:00:00"}
        assert data["day"]["$isBefore"] == {"$date": "2024-05-01", "$dateOnly": True}

        restored = expression_from_json(text)
        assert restored["at"]["$gt"] == dt.datetime(2024, 5, 1, 8, 0)
        assert restored["day"]["$isBefore"] == dt.date(2024, 5, 1)
        assert restored["name"]["$match"].flags & re.MULTILINE

    def test_other_objects_untouched(self):
        restored = expression_from_json('{"a": {"$date": "2024-01-01", "b": 1}}')
        assert restored == {"a": {"$date": "2024-01-01", "b": 1}}

    def test_kwargs_forwarded(self):
        assert expression_to_json({"b": 1, "a": 2}, sort_keys=True) == '{"a": 2, "b": 1}'

    def test_errors(self):
        with pytest.raises(SerializationError):
            expression_to_json({"f": print})
        with pytest.raises(SerializationError):
            expression_from_json("{not json")

    def test_restored_expression_validates(self):
        text = expression_to_json({"$or": [{"a": {"$isAfter": dt.date(2024, 1, 1)}}, {"b": 1}]})
        node = validate(expression_from_json(text))
        assert node.kind == "or"
