import datetime
import enum
from decimal import Decimal
from typing import Any
from uuid import UUID

import msgspec

__all__ = ("decode_json", "encode_json")


def _type_to_string(value: Any) -> Any:
    if isinstance(value, datetime.datetime):
        return convert_datetime_to_gmt_iso(value)
    if isinstance(value, datetime.date):
        return convert_date_to_iso(value)
    if isinstance(value, enum.Enum):
        return str(value.value)
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, set):
        return list(value)
    try:
        return str(value)
    except Exception as exc:
        raise TypeError from exc


_encoder = msgspec.json.Encoder(enc_hook=_type_to_string)
_decoder = msgspec.json.Decoder()


def encode_json(data: Any, *, as_bytes: bool = False) -> "str | bytes":
    encoded = _encoder.encode(data)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def decode_json(data: "str | bytes") -> Any:
    if isinstance(data, str):
        data = data.encode("utf-8")
    return _decoder.decode(data)


def convert_datetime_to_gmt_iso(dt: datetime.datetime) -> str:
    """Handle datetime serialization for nested timestamps."""
    if not dt.tzinfo:
        dt = dt.replace(tzinfo=datetime.timezone.utc)
    return dt.isoformat().replace("+00:00", "Z")


def convert_date_to_iso(dt: datetime.date) -> str:
    """Handle datetime serialization for nested timestamps."""
    return dt.isoformat()
