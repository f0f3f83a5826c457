"""Soft and hard delete use cases.

Soft delete flips the collection's soft-delete flag, which the entity's
baseline filter then hides from list queries.  Hard delete removes the
document physically.  Both raise NotFoundError for an unknown id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from entity_query.domain.common.deadline import Deadline, resolve_deadline
from entity_query.domain.common.errors import NotFoundError
from entity_query.domain.common.uow import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeleteEntityCommand:
    entity: str
    entity_id: str
    deadline: Deadline | None = None


class SoftDeleteEntityUseCase:
    """Mark a document deleted without removing it."""

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self._timeout_seconds = timeout_seconds

    def execute(self, uow: UnitOfWork, cmd: DeleteEntityCommand) -> None:
        deadline = resolve_deadline(cmd.deadline, self._timeout_seconds)
        with uow:
            found = uow.repository(cmd.entity).soft_delete(cmd.entity_id, deadline=deadline)
            if not found:
                raise NotFoundError(cmd.entity, cmd.entity_id)
            uow.commit()


class HardDeleteEntityUseCase:
    """Remove a document permanently."""

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self._timeout_seconds = timeout_seconds

    def execute(self, uow: UnitOfWork, cmd: DeleteEntityCommand) -> None:
        deadline = resolve_deadline(cmd.deadline, self._timeout_seconds)
        with uow:
            found = uow.repository(cmd.entity).delete(cmd.entity_id, deadline=deadline)
            if not found:
                raise NotFoundError(cmd.entity, cmd.entity_id)
            uow.commit()
        logger.info("Permanently removed %s %s", cmd.entity, cmd.entity_id)
