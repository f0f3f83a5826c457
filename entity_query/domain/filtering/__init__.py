"""Declarative filtering, sorting and pagination for entity queries."""

from entity_query.domain.filtering.pagination import fetch_page, paginate
from entity_query.domain.filtering.registry import FilterConfigRegistry, build_filter_config
from entity_query.domain.filtering.sorting import resolve_sort
from entity_query.domain.filtering.translator import translate

__all__ = [
    "FilterConfigRegistry",
    "build_filter_config",
    "fetch_page",
    "paginate",
    "resolve_sort",
    "translate",
]
