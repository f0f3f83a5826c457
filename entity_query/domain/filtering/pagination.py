"""Page/limit resolution and the paired count + data read."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from entity_query.domain.common.deadline import Deadline
from entity_query.domain.common.errors import InvalidPaginationError
from entity_query.domain.common.ports import DocumentRepository
from entity_query.domain.common.query import PageResult, PageWindow, Predicate, SortKey

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _to_int(name: str, value: Any) -> int:
    """Coerce to a non-negative int or raise InvalidPaginationError."""
    if isinstance(value, bool):
        raise InvalidPaginationError(name, value)
    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise InvalidPaginationError(name, value)
        number = int(value)
    elif isinstance(value, str):
        try:
            number = int(value.strip())
        except ValueError:
            raise InvalidPaginationError(name, value) from None
    else:
        raise InvalidPaginationError(name, value)
    if number < 0:
        raise InvalidPaginationError(name, value)
    return number


def paginate(page: Any, limit: Any, max_limit: int, default_limit: int = 20) -> PageWindow:
    """Resolve page/limit into a clamped window.

    Out-of-range values are clamped, not rejected: ``page`` to >= 1 and
    ``limit`` to ``[1, max_limit]``.  Paging past the end of the data is
    a normal condition that yields an empty page.
    """
    resolved_page = 1 if page is None else max(1, _to_int("page", page))
    resolved_limit = default_limit if limit is None else _to_int("limit", limit)
    resolved_limit = max(1, min(max_limit, resolved_limit))
    return PageWindow(page=resolved_page, limit=resolved_limit)


def fetch_page(
    repository: DocumentRepository[T, Any],
    predicate: Predicate,
    sort: tuple[SortKey, ...],
    window: PageWindow,
    *,
    deadline: Deadline | None = None,
) -> PageResult[T]:
    """Run the count read and the data read for one page.

    The two reads are independent and not wrapped in a transaction, so
    ``total`` may disagree with ``data`` by a small margin under
    concurrent writes.
    """
    total = repository.count(predicate, deadline=deadline)
    data = repository.find_many(predicate, sort, window.offset, window.limit, deadline=deadline)
    logger.debug(
        "Fetched page %d (limit %d, offset %d): %d of %d",
        window.page,
        window.limit,
        window.offset,
        len(data),
        total,
    )
    return PageResult(data=tuple(data), total=total, page=window.page, limit=window.limit)
