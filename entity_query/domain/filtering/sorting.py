"""Resolve a caller's sort request against an entity's FilterConfig."""

from __future__ import annotations

import logging

from entity_query.domain.common.query import FilterConfig, SortKey, SortOrder, SortRequest

logger = logging.getLogger(__name__)


def resolve_sort(config: FilterConfig, requested: SortRequest | None = None) -> tuple[SortKey, ...]:
    """Return the ORDER BY keys for a query.

    Unknown, non-sortable or malformed requests silently fall back to the
    entity's default sort; this path never raises.  A valid request leads,
    followed by the default sort and the id tie-break so page boundaries
    stay stable when the leading key has duplicates.
    """
    if requested is None:
        return config.default_sort

    spec = config.field_spec(requested.field)
    if spec is None or not spec.sortable:
        logger.debug("Ignoring sort on %r for %s; using default sort", requested.field, config.entity)
        return config.default_sort

    try:
        order = SortOrder(str(requested.direction).lower())
    except ValueError:
        logger.debug("Ignoring sort direction %r for %s", requested.direction, config.entity)
        return config.default_sort

    keys = [SortKey(field=spec.target, order=order, value_type=spec.value_type)]
    keys.extend(key for key in config.default_sort if key.field != spec.target)
    if not any(key.field == config.id_field for key in keys):
        keys.append(config.tie_break)
    return tuple(keys)
