"""Ports (abstract interfaces) for entity persistence.

These define WHAT the engine needs from a document store without
specifying HOW it's provided.  Concrete implementations live in infra/.

Note: No infrastructure types (Session, Engine) appear here.
Repositories receive their session/connection through the UnitOfWork,
not through method parameters.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

from entity_query.domain.common.deadline import Deadline
from entity_query.domain.common.query import Predicate, SortKey

T = TypeVar("T")
ID = TypeVar("ID")

Document = dict[str, Any]


def identity_factory(document: Document) -> Any:
    return document


@dataclass(frozen=True)
class CollectionSpec:
    """Storage identity of one entity.

    Repositories are configured with a CollectionSpec rather than
    subclassed per entity.
    """

    name: str
    id_field: str = "id"
    unique_fields: tuple[str, ...] = ()
    soft_delete_field: str | None = None
    soft_delete_value: Any = False
    timestamps: bool = True
    date_fields: tuple[str, ...] = ()
    factory: Callable[[Document], Any] = field(default=identity_factory, compare=False)

    @property
    def supports_soft_delete(self) -> bool:
        return self.soft_delete_field is not None

    @property
    def active_value(self) -> Any:
        """Flag value new documents get when the caller does not set it."""
        return not self.soft_delete_value

    @property
    def stored_date_fields(self) -> tuple[str, ...]:
        """Fields kept in the fixed-width UTC form, timestamps included."""
        if not self.timestamps:
            return self.date_fields
        return tuple(dict.fromkeys((*self.date_fields, "createdAt", "updatedAt")))

    def is_deleted(self, document: Document) -> bool:
        """True when ``document`` carries the soft-deleted flag value."""
        if self.soft_delete_field is None:
            return False
        return document.get(self.soft_delete_field, self.active_value) == self.soft_delete_value


class DocumentRepository(abc.ABC, Generic[T, ID]):
    """Generic CRUD + query contract over one collection.

    Reads are side-effect free.  Writes touch a single document and are
    atomic at the store level; no multi-document transactions.
    Every method accepts an optional ``deadline``; when it passes the
    adapter raises :class:`~entity_query.domain.common.errors.QueryTimeoutError`
    and leaves no partial mutation behind.
    """

    @property
    @abc.abstractmethod
    def collection(self) -> CollectionSpec:
        """Storage identity this repository was configured with."""
        ...

    @abc.abstractmethod
    def find_by_id(self, id: ID, *, deadline: Deadline | None = None) -> T | None:
        ...

    @abc.abstractmethod
    def find_one(self, predicate: Predicate, *, deadline: Deadline | None = None) -> T | None:
        """Return the first match in id order, or None."""
        ...

    @abc.abstractmethod
    def find_many(
        self,
        predicate: Predicate,
        sort: tuple[SortKey, ...],
        offset: int,
        limit: int,
        *,
        deadline: Deadline | None = None,
    ) -> list[T]:
        ...

    @abc.abstractmethod
    def count(self, predicate: Predicate, *, deadline: Deadline | None = None) -> int:
        ...

    @abc.abstractmethod
    def create(self, data: Document, *, deadline: Deadline | None = None) -> T:
        """Insert a document.

        Raises:
            ConflictError: duplicate id or unique-field value.
        """
        ...

    @abc.abstractmethod
    def update(self, id: ID, data: Document, *, deadline: Deadline | None = None) -> T:
        """Merge ``data`` into an existing document and return it.

        Raises:
            NotFoundError: no document with ``id``.
            ConflictError: the update collides with a unique-field value.
        """
        ...

    @abc.abstractmethod
    def delete(self, id: ID, *, deadline: Deadline | None = None) -> bool:
        """Physically remove a document. Returns True if deleted, False if not found."""
        ...

    @abc.abstractmethod
    def soft_delete(self, id: ID, *, deadline: Deadline | None = None) -> bool:
        """Flip the collection's soft-delete flag. Returns True if found.

        Raises:
            CollectionConfigError: the collection declares no soft-delete flag.
        """
        ...
