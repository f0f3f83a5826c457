"""Fixtures for the SQL repository tests.

Each test gets a fresh in-memory SQLite database with the document
tables created, plus ``count_queries`` for asserting on emitted SQL.
"""

from __future__ import annotations

from contextlib import contextmanager

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import entity_query.models  # noqa: F401  (registers documents / document_keys)
from entity_query.database import Base


@pytest.fixture
def engine():
    """One shared :memory: connection, so every session sees the same data."""
    memory_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(memory_engine)
    yield memory_engine
    memory_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def session(session_factory):
    db = session_factory()
    yield db
    db.close()


@contextmanager
def count_queries(engine):
    """Record the SQL statements ``engine`` executes inside the block.

    ::

        with count_queries(engine) as statements:
            repo.count(predicate)
        assert len(statements) == 1
    """
    statements: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", _record)
    try:
        yield statements
    finally:
        event.remove(engine, "before_cursor_execute", _record)
