"""Unit of Work port.

A use case opens the UoW with ``with uow:``, obtains repositories for the
entities it touches, and commits after each single-document write.
"""

from __future__ import annotations

import abc
from typing import Any, Self

from entity_query.domain.common.ports import Document, DocumentRepository


class UnitOfWork(abc.ABC):
    """Session boundary shared by the repositories of one request."""

    @abc.abstractmethod
    def __enter__(self) -> Self:
        ...

    @abc.abstractmethod
    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        ...

    @abc.abstractmethod
    def repository(self, entity: str) -> DocumentRepository[Document, Any]:
        """Return the repository bound to ``entity``'s collection."""
        ...

    @abc.abstractmethod
    def commit(self) -> None:
        ...

    @abc.abstractmethod
    def rollback(self) -> None:
        ...
