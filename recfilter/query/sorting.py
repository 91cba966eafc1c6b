"""
Post-processing of matched records: stable multi-key sort and limit.
"""

from __future__ import annotations

import datetime as dt
import functools
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple, Union

from ..core.exceptions import InvalidOptionsError
from .paths import MISSING, get_nested_value


class SortDirection(str, Enum):
    """Sort directions."""
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class OrderByField:
    """A single sort key."""
    field: str
    direction: SortDirection = SortDirection.ASC

    def to_dict(self) -> dict:
        return {"field": self.field, "direction": self.direction.value}


OrderBy = Union[str, Tuple[str, str], Mapping, OrderByField, Sequence]


def _parse_direction(value: Any) -> SortDirection:
    if isinstance(value, SortDirection):
        return value
    if isinstance(value, str):
        try:
            return SortDirection(value.lower())
        except ValueError:
            pass
    raise InvalidOptionsError(
        f"sort direction must be 'asc' or 'desc', got {value!r}",
        option="order_by",
        value=value,
    )


def _parse_field(field: Any) -> str:
    if not isinstance(field, str) or not field:
        raise InvalidOptionsError(
            f"sort field must be a non-empty string, got {field!r}",
            option="order_by",
            value=field,
        )
    return field


def _is_pair(item: Any) -> bool:
    """True for a ("field", "asc"|"desc") pair."""
    if not isinstance(item, (list, tuple)) or len(item) != 2:
        return False
    field, direction = item
    if not isinstance(field, str):
        return False
    if isinstance(direction, SortDirection):
        return True
    return isinstance(direction, str) and direction.lower() in ("asc", "desc")


def _normalize_one(item: Any) -> OrderByField:
    if isinstance(item, OrderByField):
        return item
    if isinstance(item, str):
        return OrderByField(_parse_field(item))
    if isinstance(item, Mapping):
        if "field" not in item:
            raise InvalidOptionsError(
                "sort mapping requires a 'field' key", option="order_by", value=item
            )
        return OrderByField(
            _parse_field(item["field"]), _parse_direction(item.get("direction", "asc"))
        )
    if _is_pair(item):
        return OrderByField(_parse_field(item[0]), _parse_direction(item[1]))
    raise InvalidOptionsError(
        f"unsupported sort key {item!r}", option="order_by", value=item
    )


def normalize_order_by(order_by: Optional[OrderBy]) -> Tuple[OrderByField, ...]:
    """
    Normalize every accepted ``order_by`` shape into a tuple of sort keys.

    Accepted shapes:
        "price"
        ("price", "desc")
        {"field": "price", "direction": "desc"}
        ["category", ("price", "desc"), ["rating", "desc"], {"field": "name"}]

    Raises:
        InvalidOptionsError: If the shape or direction is not recognised
    """
    if order_by is None:
        return ()

    # a top-level list is always a list of keys; only tuples read as pairs
    if isinstance(order_by, list) or (isinstance(order_by, tuple) and not _is_pair(order_by)):
        fields = tuple(_normalize_one(item) for item in order_by)
        if not fields:
            raise InvalidOptionsError("order_by list is empty", option="order_by", value=order_by)
        return fields

    return (_normalize_one(order_by),)


def _type_rank(value: Any) -> int:
    if isinstance(value, bool):
        return 4
    if isinstance(value, (int, float)):
        return 0
    if isinstance(value, str):
        return 1
    if isinstance(value, dt.datetime):
        return 2
    if isinstance(value, dt.date):
        return 3
    return 5


def compare_values(a: Any, b: Any, direction: SortDirection, case_sensitive: bool = False) -> int:
    """
    Compare two sort values.

    Missing and None values always sort last, whatever the direction.
    Values of different types are ordered by type family.
    """
    a_empty = a is None or a is MISSING
    b_empty = b is None or b is MISSING
    if a_empty and b_empty:
        return 0
    if a_empty:
        return 1
    if b_empty:
        return -1

    rank_a, rank_b = _type_rank(a), _type_rank(b)
    if rank_a != rank_b:
        diff = -1 if rank_a < rank_b else 1
    else:
        if rank_a == 1 and not case_sensitive:
            a, b = a.lower(), b.lower()
        try:
            diff = -1 if a < b else (1 if a > b else 0)
        except (TypeError, ValueError):
            # unorderable pair, e.g. naive vs aware datetimes
            a_str, b_str = str(a), str(b)
            diff = -1 if a_str < b_str else (1 if a_str > b_str else 0)

    return diff if direction is SortDirection.ASC else -diff


def sort_records(
    records: Sequence[Any],
    fields: Sequence[OrderByField],
    case_sensitive: bool = False,
) -> List[Any]:
    """
    Stable multi-key sort of records by dot-path fields.

    Records equal on every key keep their original relative order.
    """
    if not records or not fields:
        return list(records)

    def compare(a: Any, b: Any) -> int:
        for order in fields:
            result = compare_values(
                get_nested_value(a, order.field),
                get_nested_value(b, order.field),
                order.direction,
                case_sensitive,
            )
            if result != 0:
                return result
        return 0

    return sorted(records, key=functools.cmp_to_key(compare))


def apply_post_processing(
    records: List[Any],
    order_by: Sequence[OrderByField],
    limit: Optional[int],
    case_sensitive: bool = False,
) -> List[Any]:
    """Sort (if requested), then keep the first ``limit`` records."""
    result = records
    if order_by:
        result = sort_records(result, order_by, case_sensitive)
    if limit is not None:
        result = result[:limit]
    return result
