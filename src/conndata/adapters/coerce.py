"""Value encoders that turn backend-native values into ``Row`` byte payloads."""
import datetime
import json
import uuid
from decimal import Decimal
from typing import Any, Optional


def encode_value(value: Any) -> Optional[bytes]:
    """Textual byte form of a SQL driver value. ``None`` stays ``None``."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, memoryview):
        return value.tobytes()
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, bool):
        return b"1" if value else b"0"
    if isinstance(value, (dict, list)):
        return encode_json(value)
    if isinstance(value, Decimal):
        return format(value, "f").encode("utf-8")
    if isinstance(value, datetime.datetime):
        return value.isoformat(sep=" ").encode("utf-8")
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat().encode("utf-8")
    return str(value).encode("utf-8")


def encode_json(value: Any) -> bytes:
    """Compact JSON, non-ASCII kept as UTF-8."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def encode_json_value(value: Any) -> Optional[bytes]:
    """Encodes one decoded JSON-lines field.

    Strings pass through as raw UTF-8 so they are not double quoted, ``null``
    becomes ``None`` and everything else is re-encoded as compact JSON.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value.encode("utf-8")
    return encode_json(value)


def to_rfc3339(value: Any) -> str:
    if isinstance(value, datetime.datetime):
        if value.tzinfo is None or value.utcoffset() == datetime.timedelta(0):
            return value.replace(tzinfo=None).isoformat() + "Z"
        return value.isoformat()
    if isinstance(value, datetime.date):
        return f"{value.isoformat()}T00:00:00Z"
    raise TypeError(f"cannot format {type(value).__name__} as RFC 3339")


def encode_date(value: Any) -> Optional[bytes]:
    """Date column value as RFC 3339 text, e.g. ``2024-01-15T00:00:00Z``."""
    if value is None:
        return None
    if isinstance(value, (bytes, str)):
        text = value.decode("utf-8") if isinstance(value, bytes) else value
        value = datetime.date.fromisoformat(text)
    return to_rfc3339(value).encode("utf-8")


def encode_uuid(value: Any) -> Optional[bytes]:
    """UUID column value as canonical text, decoding the 16-byte binary form."""
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        parsed = value
    elif isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        parsed = uuid.UUID(bytes=raw) if len(raw) == 16 else uuid.UUID(raw.decode("ascii"))
    else:
        parsed = uuid.UUID(str(value))
    return str(parsed).encode("ascii")


def encode_pg_bool(value: Any) -> Optional[bytes]:
    """Postgres text protocol form of booleans."""
    if value is None:
        return None
    return b"t" if value else b"f"
