"""CreateEntityUseCase — insert one document and commit.

The repository assigns an id when the caller supplies none, stamps
``createdAt`` / ``updatedAt`` and activates the soft-delete flag.
Duplicate ids or unique-field values surface as ConflictError.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from entity_query.domain.common.deadline import Deadline, resolve_deadline
from entity_query.domain.common.uow import UnitOfWork


# ── Command (input) ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class CreateEntityCommand:
    """Immutable value object describing what the caller wants to create."""

    entity: str
    data: Mapping[str, Any] = field(default_factory=dict)
    deadline: Deadline | None = None


# ── Result (output) ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class CreateEntityResult:
    document: Any


# ── Use Case ─────────────────────────────────────────────────────────────


class CreateEntityUseCase:
    """Persist a new document for ``cmd.entity``."""

    def __init__(self, timeout_seconds: float | None = None) -> None:
        self._timeout_seconds = timeout_seconds

    def execute(self, uow: UnitOfWork, cmd: CreateEntityCommand) -> CreateEntityResult:
        deadline = resolve_deadline(cmd.deadline, self._timeout_seconds)
        with uow:
            document = uow.repository(cmd.entity).create(dict(cmd.data), deadline=deadline)
            uow.commit()
        return CreateEntityResult(document=document)
