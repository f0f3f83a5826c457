"""ListEntitiesUseCase — filtered, sorted, paginated query of one entity.

This use case owns the query rules for every entity:
  1. Look up the entity's FilterConfig (unknown entity → UnregisteredEntityError)
  2. Translate client filters into a Predicate AND-ed with the baseline
  3. Resolve the sort (falls back to the default sort, never fails)
  4. Clamp page/limit and run the paired count + data reads

Validation happens before the UoW is opened, so a rejected query never
touches the store.

The use case depends ONLY on domain ports — never on SQLAlchemy,
FastAPI, or any other infrastructure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from entity_query.domain.common.deadline import Deadline, resolve_deadline
from entity_query.domain.common.query import PageResult, QueryRequest
from entity_query.domain.common.uow import UnitOfWork
from entity_query.domain.filtering import (
    FilterConfigRegistry,
    fetch_page,
    paginate,
    resolve_sort,
    translate,
)

logger = logging.getLogger(__name__)


# ── Query (input) ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ListEntitiesQuery:
    """Immutable value object describing what the caller wants to read."""

    entity: str
    request: QueryRequest = field(default_factory=QueryRequest)
    deadline: Deadline | None = None


# ── Result (output) ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class ListEntitiesResult:
    """What the use case returns to the caller."""

    page: PageResult


# ── Use Case ────────────────────────────────────────────────────────────


class ListEntitiesUseCase:
    """Retrieve a filtered, sorted, paginated page of documents."""

    def __init__(self, registry: FilterConfigRegistry, timeout_seconds: float | None = None) -> None:
        self._registry = registry
        self._timeout_seconds = timeout_seconds

    def execute(self, uow: UnitOfWork, query: ListEntitiesQuery) -> ListEntitiesResult:
        config = self._registry.get(query.entity)
        request = query.request

        predicate = translate(config, request.filters)
        sort = resolve_sort(config, request.sort)
        window = paginate(request.page, request.limit, config.max_limit, config.default_limit)
        deadline = resolve_deadline(query.deadline, self._timeout_seconds)

        logger.debug(
            "Listing %s: %d comparison(s), sort %s, page %d, limit %d",
            query.entity,
            len(predicate),
            [(k.field, k.order.value) for k in sort],
            window.page,
            window.limit,
        )

        with uow:
            repo = uow.repository(query.entity)
            page = fetch_page(repo, predicate, sort, window, deadline=deadline)

        return ListEntitiesResult(page=page)
