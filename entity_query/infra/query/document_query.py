"""SQLAlchemy query builder for entity documents.

Translates domain Predicate / SortKey tuples into SQLAlchemy WHERE and
ORDER BY clauses over the JSON ``body`` column of :class:`DocumentRow`.
The id field reads the indexed ``id`` column; every other field goes
through a JSON path with an accessor matching its declared type.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import and_, asc, desc
from sqlalchemy.orm import Query

from entity_query.domain.common.query import (
    Comparison,
    FieldType,
    Operator,
    Predicate,
    SortKey,
    SortOrder,
)
from entity_query.models import DocumentRow
from entity_query.infra.serialization import encode_operand

_LIKE_ESCAPE = "\\"


# ── Column resolution ───────────────────────────────────────────────────


def field_expression(field: str, value_type: FieldType, id_field: str = "id") -> Any:
    """Column expression for ``field`` on a DocumentRow."""
    if field == id_field:
        return DocumentRow.id
    element = DocumentRow.body[field]
    if value_type is FieldType.NUMBER:
        return element.as_float()
    if value_type is FieldType.BOOLEAN:
        return element.as_boolean()
    # Strings and ISO dates compare as text.
    return element.as_string()


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so client text only ever matches literally."""
    return (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )


# ── Public API ──────────────────────────────────────────────────────────


def compile_comparison(comparison: Comparison, id_field: str = "id"):
    """Build the SQL condition for one comparison."""
    col = field_expression(comparison.field, comparison.value_type, id_field)
    value = encode_operand(comparison.value, comparison.value_type)
    op = comparison.operator

    if op is Operator.EQUALS:
        return col == value
    if op is Operator.CONTAINS:
        return col.ilike(f"%{escape_like(value)}%", escape=_LIKE_ESCAPE)
    if op is Operator.STARTS_WITH:
        return col.ilike(f"{escape_like(value)}%", escape=_LIKE_ESCAPE)
    if op is Operator.GT:
        return col > value
    if op is Operator.GTE:
        return col >= value
    if op is Operator.LT:
        return col < value
    if op is Operator.LTE:
        return col <= value
    if op is Operator.IN:
        return col.in_(list(value))
    if op is Operator.RANGE:
        low, high = value
        return and_(col >= low, col <= high)
    raise ValueError(f"Unsupported operator: {op!r}")


def apply_predicate(query: Query, predicate: Predicate, id_field: str = "id") -> Query:
    """Apply every comparison of ``predicate`` as a WHERE clause."""
    for comparison in predicate:
        query = query.filter(compile_comparison(comparison, id_field))
    return query


def apply_sort(query: Query, sort: tuple[SortKey, ...], id_field: str = "id") -> Query:
    """Apply ORDER BY terms; documents missing a sort field come last."""
    for key in sort:
        col = field_expression(key.field, key.value_type, id_field)
        order_fn = asc if key.order == SortOrder.ASC else desc
        query = query.order_by(order_fn(col).nulls_last())
    return query
