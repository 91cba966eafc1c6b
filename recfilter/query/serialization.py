"""
Serialization of filter expressions.

Provides:
- Canonical, order-independent encoding used to derive cache keys
- msgpack transport with ext types for datetime, date and regex operands
- JSON transport with tagged ``{"$date": ...}`` and ``{"$pattern": ...}`` objects

Callables (predicate expressions, custom comparators) never serialize for
transport; the receiving side has to reconstruct them.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import json
import re
from collections.abc import Mapping
from typing import Any

import msgpack
import numpy as np

from ..core.exceptions import SerializationError


# msgpack ext type codes
EXT_DATETIME = 1
EXT_DATE = 2
EXT_REGEX = 3

# canonical tags; the NUL prefix keeps them apart from user strings
_TAG_MAP = "\x00map"
_TAG_LIST = "\x00list"
_TAG_SET = "\x00set"
_TAG_DATETIME = "\x00datetime"
_TAG_DATE = "\x00date"
_TAG_REGEX = "\x00re"
_TAG_CALLABLE = "\x00fn"
_TAG_INT = "\x00int"
_TAG_OTHER = "\x00other"

_INT64_MIN = -(2 ** 63)
_UINT64_MAX = 2 ** 64 - 1


# =============================================================================
# CANONICAL FORM (cache keys)
# =============================================================================

def to_canonical(value: Any) -> Any:
    """
    Convert an expression (or any operand) into a msgpack-native structure
    whose encoding does not depend on mapping key order.
    """
    if value is None or isinstance(value, (bool, str, bytes, float)):
        return value

    if isinstance(value, int):
        if _INT64_MIN <= value <= _UINT64_MAX:
            return value
        return [_TAG_INT, str(value)]

    if isinstance(value, np.generic):
        return to_canonical(value.item())

    if isinstance(value, Mapping):
        items = sorted(((str(k), to_canonical(v)) for k, v in value.items()), key=lambda kv: kv[0])
        return [_TAG_MAP, [list(kv) for kv in items]]

    if isinstance(value, (list, tuple)):
        return [_TAG_LIST, [to_canonical(v) for v in value]]

    if isinstance(value, (set, frozenset)):
        return [_TAG_SET, sorted((to_canonical(v) for v in value), key=repr)]

    if isinstance(value, dt.datetime):
        return [_TAG_DATETIME, value.isoformat()]

    if isinstance(value, dt.date):
        return [_TAG_DATE, value.isoformat()]

    if isinstance(value, re.Pattern):
        return [_TAG_REGEX, value.pattern, value.flags]

    if callable(value):
        return [
            _TAG_CALLABLE,
            getattr(value, "__module__", None) or "",
            getattr(value, "__qualname__", type(value).__name__),
            id(value),
        ]

    return [_TAG_OTHER, type(value).__name__, repr(value)]


def canonical_bytes(value: Any) -> bytes:
    """msgpack encoding of the canonical form."""
    return msgpack.packb(to_canonical(value), use_bin_type=True)


def signature(value: Any, digest_size: int = 16) -> str:
    """Stable hex digest of a value's canonical form."""
    return hashlib.blake2b(canonical_bytes(value), digest_size=digest_size).hexdigest()


# =============================================================================
# MSGPACK TRANSPORT
# =============================================================================

def _msgpack_default(obj: Any) -> Any:
    if isinstance(obj, dt.datetime):
        return msgpack.ExtType(EXT_DATETIME, obj.isoformat().encode("utf-8"))
    if isinstance(obj, dt.date):
        return msgpack.ExtType(EXT_DATE, obj.isoformat().encode("utf-8"))
    if isinstance(obj, re.Pattern):
        payload = msgpack.packb([obj.pattern, obj.flags], use_bin_type=True)
        return msgpack.ExtType(EXT_REGEX, payload)
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    if isinstance(obj, np.generic):
        return obj.item()
    if callable(obj):
        raise SerializationError("callables cannot be serialized; rebuild them on the receiving side")
    raise SerializationError(f"cannot serialize value of type {type(obj).__name__}")


def _msgpack_ext_hook(code: int, data: bytes) -> Any:
    if code == EXT_DATETIME:
        return dt.datetime.fromisoformat(data.decode("utf-8"))
    if code == EXT_DATE:
        return dt.date.fromisoformat(data.decode("utf-8"))
    if code == EXT_REGEX:
        pattern, flags = msgpack.unpackb(data, raw=False)
        return re.compile(pattern, flags)
    return msgpack.ExtType(code, data)


def pack_expression(expression: Any) -> bytes:
    """
    Serialize an expression to msgpack bytes.

    Raises:
        SerializationError: If the expression holds a callable or an
            unsupported type
    """
    try:
        return msgpack.packb(expression, default=_msgpack_default, use_bin_type=True)
    except (TypeError, ValueError, OverflowError) as e:
        raise SerializationError(f"cannot pack expression: {e}") from e


def unpack_expression(data: bytes) -> Any:
    """Deserialize msgpack bytes produced by ``pack_expression``."""
    try:
        return msgpack.unpackb(
            data, ext_hook=_msgpack_ext_hook, raw=False, strict_map_key=False
        )
    except (ValueError, TypeError, msgpack.UnpackException) as e:
        raise SerializationError(f"cannot unpack expression: {e}") from e


# =============================================================================
# JSON TRANSPORT
# =============================================================================

def _json_default(obj: Any) -> Any:
    if isinstance(obj, dt.datetime):
        return {"$date": obj.isoformat()}
    if isinstance(obj, dt.date):
        return {"$date": obj.isoformat(), "$dateOnly": True}
    if isinstance(obj, re.Pattern):
        return {"$pattern": obj.pattern, "$flags": obj.flags}
    if isinstance(obj, (set, frozenset)):
        return list(obj)
    if isinstance(obj, np.generic):
        return obj.item()
    if callable(obj):
        raise SerializationError("callables cannot be serialized; rebuild them on the receiving side")
    raise SerializationError(f"cannot serialize value of type {type(obj).__name__}")


def _json_object_hook(obj: dict) -> Any:
    if "$date" in obj and set(obj) <= {"$date", "$dateOnly"}:
        if obj.get("$dateOnly"):
            return dt.date.fromisoformat(obj["$date"])
        return dt.datetime.fromisoformat(obj["$date"])
    if "$pattern" in obj and set(obj) <= {"$pattern", "$flags"}:
        return re.compile(obj["$pattern"], obj.get("$flags", 0))
    return obj


def expression_to_json(expression: Any, **kwargs: Any) -> str:
    """
    Serialize an expression to JSON text.

    Example:
        >>> expression_to_json({"age": {"$gte": 18}})
        '{"age": {"$gte": 18}}'
    """
    try:
        return json.dumps(expression, default=_json_default, **kwargs)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"cannot encode expression as JSON: {e}") from e


def expression_from_json(text: str) -> Any:
    """
    Parse JSON text into an expression, rebuilding tagged dates and regexes.

    Duplicate keys in one JSON object resolve last-key-wins.
    """
    try:
        return json.loads(text, object_hook=_json_object_hook)
    except (json.JSONDecodeError, ValueError, re.error) as e:
        raise SerializationError(f"cannot decode expression JSON: {e}") from e
