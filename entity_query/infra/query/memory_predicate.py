"""Evaluate domain predicates and sort keys against plain dict documents.

Mirrors the SQL builder's semantics: a missing field never matches,
``contains`` / ``startsWith`` are case-insensitive, and documents
missing a sort field come last.
"""

from __future__ import annotations

from typing import Any, Iterable

from entity_query.domain.common.query import (
    Comparison,
    FieldType,
    Operator,
    Predicate,
    SortKey,
    SortOrder,
)
from entity_query.infra.serialization import encode_operand


def _read(document: dict[str, Any], comparison_field: str, value_type: FieldType) -> Any:
    value = document.get(comparison_field)
    if value is None:
        return None
    if value_type is FieldType.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
    elif value_type is FieldType.BOOLEAN:
        if not isinstance(value, bool):
            return None
    elif not isinstance(value, str):
        # Strings and ISO dates.
        return str(value)
    return value


def evaluate(document: dict[str, Any], comparison: Comparison) -> bool:
    actual = _read(document, comparison.field, comparison.value_type)
    if actual is None:
        return False
    expected = encode_operand(comparison.value, comparison.value_type)
    op = comparison.operator

    if op is Operator.EQUALS:
        return actual == expected
    if op is Operator.CONTAINS:
        return expected.casefold() in actual.casefold()
    if op is Operator.STARTS_WITH:
        return actual.casefold().startswith(expected.casefold())
    if op is Operator.GT:
        return actual > expected
    if op is Operator.GTE:
        return actual >= expected
    if op is Operator.LT:
        return actual < expected
    if op is Operator.LTE:
        return actual <= expected
    if op is Operator.IN:
        return actual in expected
    if op is Operator.RANGE:
        low, high = expected
        return low <= actual <= high
    raise ValueError(f"Unsupported operator: {op!r}")


def matches(document: dict[str, Any], predicate: Predicate) -> bool:
    """True if ``document`` satisfies every comparison."""
    return all(evaluate(document, comparison) for comparison in predicate)


def sort_documents(documents: Iterable[dict[str, Any]], sort: tuple[SortKey, ...]) -> list[dict[str, Any]]:
    """Sort by ``sort`` keys, most significant first."""
    ordered = list(documents)
    # Stable sorts applied from the least significant key up.
    for key in reversed(sort):
        present = [d for d in ordered if _read(d, key.field, key.value_type) is not None]
        missing = [d for d in ordered if _read(d, key.field, key.value_type) is None]
        present.sort(
            key=lambda d, k=key: _read(d, k.field, k.value_type),
            reverse=key.order == SortOrder.DESC,
        )
        ordered = present + missing
    return ordered
