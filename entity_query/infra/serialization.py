"""Normalisation of document values for storage and comparison.

Dates are persisted as fixed-width UTC ISO-8601 strings
(``2024-01-31T09:30:00.000000+00:00``) so that lexical order equals
chronological order, both in SQL JSON paths and in memory.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Mapping

from entity_query.domain.common.query import FieldType
from entity_query.domain.filtering.coercion import coerce_scalar


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utc_isoformat(value: datetime) -> str:
    """Render a datetime as a fixed-width UTC ISO string (naive = UTC)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def to_store_value(value: Any) -> Any:
    """Make ``value`` JSON-safe, recursing into mappings and sequences."""
    if isinstance(value, datetime):
        return utc_isoformat(value)
    if isinstance(value, date):
        return utc_isoformat(datetime.combine(value, time.min))
    if isinstance(value, Mapping):
        return {str(k): to_store_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_store_value(v) for v in value]
    return value


def to_store_document(data: Mapping[str, Any]) -> dict[str, Any]:
    return {str(k): to_store_value(v) for k, v in data.items()}


def normalize_dates(document: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    """Rewrite the date ``fields`` of ``document`` in place to the stored form.

    Accepts anything the DATE filter coercion accepts (``Z`` suffix, offsets,
    date-only).  Other values raise ``TypeMismatchError``; ``None`` is kept.
    """
    for field in fields:
        value = document.get(field)
        if value is not None:
            document[field] = utc_isoformat(coerce_scalar(field, value, FieldType.DATE))
    return document


def encode_operand(value: Any, value_type: FieldType) -> Any:
    """Encode a coerced comparison operand the way documents store it."""
    if isinstance(value, tuple):
        return tuple(encode_operand(v, value_type) for v in value)
    if value_type is FieldType.DATE:
        return to_store_value(value)
    return value


def key_value(value: Any) -> str:
    """String form of a unique-field value used in the key table."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(to_store_value(value))
