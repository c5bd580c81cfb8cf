"""
Row Normalizer

Turns driver cells into JSON-safe values. asyncpg hands back plain Python
objects; classify_value() tags each one with a ValueKind so normalize()
can dispatch on a closed set instead of probing types ad hoc.
"""

import math
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Sequence
from uuid import UUID

from models import ColumnDescriptor, RawValue, ValueKind

INTEGER_TYPES = frozenset({"INT2", "INT4", "INT8"})
FLOAT_TYPES = frozenset({"FLOAT4", "FLOAT8"})


def classify_value(value: Any) -> RawValue:
    """Tag a raw driver value with its kind"""
    if value is None:
        return RawValue(kind=ValueKind.NULL)
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return RawValue(kind=ValueKind.BOOL, value=value)
    if isinstance(value, int):
        return RawValue(kind=ValueKind.INTEGER, value=value)
    if isinstance(value, float):
        return RawValue(kind=ValueKind.FLOAT, value=value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return RawValue(kind=ValueKind.BYTES, value=bytes(value))
    if isinstance(value, str):
        return RawValue(kind=ValueKind.TEXT, value=value)
    return RawValue(kind=ValueKind.OPAQUE, value=value)


def _as_integer(raw: RawValue) -> Any:
    if raw.kind == ValueKind.INTEGER:
        return int(raw.value)
    # Driver gave us something else for an integer column; keep it as is
    return raw.value


def non_finite_text(value: float) -> str:
    """JSON has no NaN or Infinity; spell them the way PostgreSQL prints them"""
    if math.isnan(value):
        return "NaN"
    return "Infinity" if value > 0 else "-Infinity"


def _as_float(raw: RawValue) -> Any:
    if raw.kind in (ValueKind.FLOAT, ValueKind.INTEGER):
        value = float(raw.value)
        if not math.isfinite(value):
            return non_finite_text(value)
        return value
    return raw.value


def _as_text_or_passthrough(raw: RawValue) -> Any:
    if raw.kind == ValueKind.BYTES:
        return raw.value.decode("utf-8", errors="replace")
    if raw.kind == ValueKind.FLOAT and not math.isfinite(raw.value):
        return non_finite_text(raw.value)
    return raw.value


def normalize(raw: RawValue, declared_type: str) -> Any:
    """
    Map one tagged cell to a JSON-safe value. Never raises.

    Rules, first match wins:
    1. NULL -> None regardless of declared type
    2. integer-family column -> int, or the raw value if the driver disagrees
    3. float-family column -> float, same fallback; NaN and +/-Infinity
       become the strings "NaN", "Infinity", "-Infinity"
    4. anything else -> bytes decoded as UTF-8, other values unchanged

    Unchanged values may still be opaque (Decimal, datetime, UUID, ...);
    serialize_value() handles those at encode time.
    """
    if raw.kind == ValueKind.NULL:
        return None

    tag = (declared_type or "").upper()
    if tag in INTEGER_TYPES:
        return _as_integer(raw)
    if tag in FLOAT_TYPES:
        return _as_float(raw)
    return _as_text_or_passthrough(raw)


def normalize_row(columns: Sequence[ColumnDescriptor], values: Sequence[Any]) -> dict[str, Any]:
    """
    Build a column-name -> cell mapping for one row, in column order.
    Duplicate column names collapse to the last value.
    """
    row = {}
    for column, value in zip(columns, values):
        row[column.name] = normalize(classify_value(value), column.declared_type)
    return row


def serialize_value(obj: Any) -> Any:
    """json.dumps default= hook for values the normalizer passed through"""
    if isinstance(obj, (datetime, date, time)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, Decimal):
        # Exact database text; NaN and Infinity already print as PostgreSQL does
        if obj.is_nan():
            return "NaN"
        return str(obj)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    return str(obj)
