"""Coerce untrusted filter values to the declared field type."""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from typing import Any, Mapping

from entity_query.domain.common.errors import TypeMismatchError
from entity_query.domain.common.query import FieldType

_TRUE_TOKENS = frozenset({"true", "1", "yes"})
_FALSE_TOKENS = frozenset({"false", "0", "no"})


def _coerce_bool(field: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_TOKENS:
            return True
        if text in _FALSE_TOKENS:
            return False
    raise TypeMismatchError(field, value, FieldType.BOOLEAN.value)


def _coerce_number(field: str, value: Any) -> int | float:
    if isinstance(value, bool):
        raise TypeMismatchError(field, value, FieldType.NUMBER.value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeMismatchError(field, value, FieldType.NUMBER.value)
        return value
    if isinstance(value, str):
        text = value.strip()
        if text and "_" not in text:
            try:
                return int(text)
            except ValueError:
                pass
            try:
                number = float(text)
            except ValueError:
                pass
            else:
                if math.isfinite(number):
                    return number
    raise TypeMismatchError(field, value, FieldType.NUMBER.value)


def _coerce_date(field: str, value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            if "T" not in text and " " not in text and len(text) == 10:
                # Date-only value -> start of that day.
                parsed = datetime.combine(date.fromisoformat(text), time.min)
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise TypeMismatchError(field, value, FieldType.DATE.value) from None
    else:
        raise TypeMismatchError(field, value, FieldType.DATE.value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _coerce_string(field: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise TypeMismatchError(field, value, FieldType.STRING.value)


_COERCERS = {
    FieldType.BOOLEAN: _coerce_bool,
    FieldType.NUMBER: _coerce_number,
    FieldType.DATE: _coerce_date,
    FieldType.STRING: _coerce_string,
}


def coerce_scalar(field: str, value: Any, value_type: FieldType) -> Any:
    """Coerce a single value; raise TypeMismatchError if impossible."""
    if value is None:
        raise TypeMismatchError(field, value, value_type.value)
    return _COERCERS[value_type](field, value)


def coerce_many(field: str, value: Any, value_type: FieldType) -> tuple[Any, ...]:
    """Coerce the operand of an ``in`` clause.

    Accepts a list/tuple or a comma-separated string.
    """
    if isinstance(value, str):
        items = [part.strip() for part in value.split(",")]
        items = [part for part in items if part]
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        raise TypeMismatchError(field, value, f"list of {value_type.value}")
    if not items:
        raise TypeMismatchError(field, value, f"list of {value_type.value}")
    return tuple(coerce_scalar(field, item, value_type) for item in items)


def coerce_bounds(field: str, value: Any, value_type: FieldType) -> tuple[Any, Any]:
    """Coerce the operand of a ``range`` clause to ``(low, high)``.

    Accepts ``[low, high]`` or ``{"from": low, "to": high}``; either bound
    may be empty but not both.
    """
    if isinstance(value, Mapping):
        low, high = value.get("from"), value.get("to")
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        low, high = value
    else:
        raise TypeMismatchError(field, value, f"{value_type.value} range")

    low = None if low in (None, "") else coerce_scalar(field, low, value_type)
    high = None if high in (None, "") else coerce_scalar(field, high, value_type)
    if low is None and high is None:
        raise TypeMismatchError(field, value, f"{value_type.value} range")
    return low, high


def infer_field_type(value: Any) -> FieldType:
    """Best-effort type for entity-internal fields in a baseline filter."""
    if isinstance(value, bool):
        return FieldType.BOOLEAN
    if isinstance(value, (int, float)):
        return FieldType.NUMBER
    if isinstance(value, (date, datetime)):
        return FieldType.DATE
    return FieldType.STRING
