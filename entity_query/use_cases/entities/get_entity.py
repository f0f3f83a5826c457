"""GetEntityUseCase — fetch one document by id.

A soft-deleted document reads as missing unless the caller asks for it
with ``include_deleted``, so a DELETE is followed by a 404 on every
entity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from entity_query.domain.common.deadline import Deadline, resolve_deadline
from entity_query.domain.common.errors import NotFoundError
from entity_query.domain.common.uow import UnitOfWork


@dataclass(frozen=True)
class GetEntityQuery:
    entity: str
    entity_id: str
    include_deleted: bool = False
    deadline: Deadline | None = None


@dataclass(frozen=True)
class GetEntityResult:
    document: Any


class GetEntityUseCase:
    """Look up a single document or raise NotFoundError."""

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self._timeout_seconds = timeout_seconds

    def execute(self, uow: UnitOfWork, query: GetEntityQuery) -> GetEntityResult:
        deadline = resolve_deadline(query.deadline, self._timeout_seconds)
        with uow:
            repo = uow.repository(query.entity)
            document = repo.find_by_id(query.entity_id, deadline=deadline)
        if document is None:
            raise NotFoundError(query.entity, query.entity_id)
        if not query.include_deleted and repo.collection.is_deleted(document):
            raise NotFoundError(query.entity, query.entity_id)
        return GetEntityResult(document=document)
