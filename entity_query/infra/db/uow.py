"""UnitOfWork over a SQLAlchemy Session.

Opens one session per ``with`` block and hands out one SqlDocumentRepository per
entity, all sharing that session, so a use case reads and writes within
one transaction.
"""

from __future__ import annotations

from typing import Mapping, Self

from sqlalchemy.orm import Session, sessionmaker

from entity_query.domain.common.errors import UnregisteredEntityError
from entity_query.domain.common.ports import CollectionSpec
from entity_query.domain.common.uow import UnitOfWork
from entity_query.infra.db.repositories.document_repo import SqlDocumentRepository


class SqlUnitOfWork(UnitOfWork):
    """Session-scoped repositories sharing one transaction."""

    def __init__(self, session_factory: sessionmaker, collections: Mapping[str, CollectionSpec]) -> None:
        self._session_factory = session_factory
        self._collections = collections

    def __enter__(self) -> Self:
        self.session: Session = self._session_factory()
        self._repositories: dict[str, SqlDocumentRepository] = {}
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None:
            self.rollback()
        self.session.close()

    def repository(self, entity: str) -> SqlDocumentRepository:
        repo = self._repositories.get(entity)
        if repo is None:
            collection = self._collections.get(entity)
            if collection is None:
                raise UnregisteredEntityError(entity)
            repo = SqlDocumentRepository(self.session, collection, entity=entity)
            self._repositories[entity] = repo
        return repo

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()
