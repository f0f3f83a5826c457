"""UpdateEntityUseCase — merge fields into an existing document."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from entity_query.domain.common.deadline import Deadline, resolve_deadline
from entity_query.domain.common.uow import UnitOfWork


@dataclass(frozen=True)
class UpdateEntityCommand:
    entity: str
    entity_id: str
    data: Mapping[str, Any] = field(default_factory=dict)
    deadline: Deadline | None = None


@dataclass(frozen=True)
class UpdateEntityResult:
    document: Any


class UpdateEntityUseCase:
    """Apply a partial update; the id and ``createdAt`` never change.

    Raises NotFoundError for an unknown id and ConflictError when the new
    values collide with another document's unique field.
    """

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self._timeout_seconds = timeout_seconds

    def execute(self, uow: UnitOfWork, cmd: UpdateEntityCommand) -> UpdateEntityResult:
        deadline = resolve_deadline(cmd.deadline, self._timeout_seconds)
        with uow:
            document = uow.repository(cmd.entity).update(cmd.entity_id, dict(cmd.data), deadline=deadline)
            uow.commit()
        return UpdateEntityResult(document=document)
