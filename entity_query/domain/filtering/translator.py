"""Translate untrusted filter clauses into a safe, store-agnostic Predicate.

Every clause is checked against the entity's FilterConfig on its own:
the field must be in the allow-list, the operator must be permitted for
that field, and the value must coerce to the field's type.  The first
failing clause aborts translation; no partial predicate is returned.

The result is always ``config.default_filter AND <client clauses>``.
Clients can only narrow the baseline, never widen or replace it.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from entity_query.domain.common.errors import DisallowedOperatorError, UnknownFieldError
from entity_query.domain.common.query import (
    DEFAULT_OPERATOR_BY_TYPE,
    Comparison,
    FieldSpec,
    FilterClause,
    FilterConfig,
    Operator,
    Predicate,
)
from entity_query.domain.filtering.coercion import coerce_bounds, coerce_many, coerce_scalar

logger = logging.getLogger(__name__)


def translate(config: FilterConfig, filters: Iterable[FilterClause]) -> Predicate:
    """Validate ``filters`` against ``config`` and merge in the baseline.

    Raises:
        UnknownFieldError: a clause names a field outside the allow-list.
        DisallowedOperatorError: the operator is unknown or not allowed
            on that field.
        TypeMismatchError: the value does not coerce to the field type.
    """
    leaves: list[Comparison] = []
    for clause in filters:
        leaves.extend(translate_clause(config, clause))

    predicate = config.default_filter.and_(Predicate(clauses=tuple(leaves)))
    logger.debug(
        "Translated %d clause(s) for %s into %d comparison(s)",
        len(leaves),
        config.entity,
        len(predicate),
    )
    return predicate


def translate_clause(config: FilterConfig, clause: FilterClause) -> tuple[Comparison, ...]:
    """Validate and coerce a single clause.

    ``range`` expands into its ``gte`` / ``lte`` bounds so adapters only
    ever see plain comparisons.
    """
    spec = config.field_spec(clause.field)
    if spec is None:
        raise UnknownFieldError(clause.field)

    operator = _parse_operator(spec, clause.operator)

    if operator is Operator.RANGE:
        low, high = coerce_bounds(spec.name, clause.value, spec.value_type)
        bounds = []
        if low is not None:
            bounds.append(_leaf(spec, Operator.GTE, low))
        if high is not None:
            bounds.append(_leaf(spec, Operator.LTE, high))
        return tuple(bounds)

    if operator is Operator.IN:
        return (_leaf(spec, operator, coerce_many(spec.name, clause.value, spec.value_type)),)

    return (_leaf(spec, operator, coerce_scalar(spec.name, clause.value, spec.value_type)),)


def _parse_operator(spec: FieldSpec, raw: Any) -> Operator:
    if raw is None or raw == "":
        return default_operator(spec)
    try:
        operator = Operator(raw)
    except ValueError:
        raise DisallowedOperatorError(spec.name, raw) from None
    if not spec.allows(operator):
        raise DisallowedOperatorError(spec.name, operator.value)
    return operator


def default_operator(spec: FieldSpec) -> Operator:
    """Operator for a clause that names none.

    The type's default (``contains`` for strings, ``equals`` otherwise)
    when the field allows it, else ``equals``.
    """
    preferred = DEFAULT_OPERATOR_BY_TYPE[spec.value_type]
    if spec.allows(preferred):
        return preferred
    if spec.allows(Operator.EQUALS):
        return Operator.EQUALS
    raise DisallowedOperatorError(spec.name, None)


def _leaf(spec: FieldSpec, operator: Operator, value: Any) -> Comparison:
    return Comparison(
        field=spec.target,
        operator=operator,
        value=value,
        value_type=spec.value_type,
    )
