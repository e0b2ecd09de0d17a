"""Record serialization helpers.

Records travel to the store as JSON, so values the JSON layer cannot carry are coerced
before they leave the facade. Nested containers are walked recursively.
"""

import datetime
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any, Callable
from uuid import UUID

from sqlbridge._serialization import decode_json, encode_json

__all__ = ("DEFAULT_TYPE_COERCION_MAP", "from_json", "sanitize_record", "sanitize_value", "to_json")


def _bytea_hex(value: "bytes | bytearray | memoryview") -> str:
    """Render binary data in PostgreSQL bytea hex form, e.g. ``\\xffd8``."""
    return "\\x" + bytes(value).hex()


DEFAULT_TYPE_COERCION_MAP: "dict[type, Callable[[Any], Any]]" = {
    datetime.datetime: lambda v: v.isoformat(),
    datetime.date: lambda v: v.isoformat(),
    datetime.time: lambda v: v.isoformat(),
    Decimal: str,
    UUID: str,
    bytes: _bytea_hex,
    bytearray: _bytea_hex,
    memoryview: _bytea_hex,
}


def to_json(data: Any) -> str:
    """Encode data to a JSON string.

    Args:
        data: Data to encode.

    Returns:
        JSON string representation.
    """
    return encode_json(data, as_bytes=False)  # type: ignore[return-value]


def from_json(data: "str | bytes") -> Any:
    """Decode a JSON string or bytes to a Python object."""
    return decode_json(data)


def sanitize_value(value: Any, coercion_map: "Mapping[type, Callable[[Any], Any]] | None" = None) -> Any:
    coercion_map = DEFAULT_TYPE_COERCION_MAP if coercion_map is None else coercion_map
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return sanitize_value(value.value, coercion_map)
    if isinstance(value, Mapping):
        return {str(key): sanitize_value(item, coercion_map) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [sanitize_value(item, coercion_map) for item in value]
    for value_type, converter in coercion_map.items():
        if isinstance(value, value_type):
            return converter(value)
    return value


def sanitize_record(
    record: "Mapping[str, Any]", coercion_map: "Mapping[type, Callable[[Any], Any]] | None" = None
) -> "dict[str, Any]":
    """Prepare a record for the store.

    Args:
        record: Column to value mapping.
        coercion_map: Optional override of the per-type converters.

    Returns:
        A new dict with every value reduced to a JSON-compatible type.
    """
    return {str(column): sanitize_value(value, coercion_map) for column, value in record.items()}
