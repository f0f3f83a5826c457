"""
SQLAlchemy engine, session factory and declarative base for the document store.
"""
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .config import settings

_SQLITE_PRAGMAS = (
    "PRAGMA busy_timeout=15000",
    "PRAGMA foreign_keys=ON",
)


def _is_memory_sqlite(database_url: str) -> bool:
    return database_url == "sqlite://" or ":memory:" in database_url


def make_engine(database_url: str, *, echo: bool = False) -> Engine:
    """Build an engine for ``database_url``.

    SQLite connections get a busy timeout, and file databases run in WAL
    mode so readers do not block the single writer.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, pool_pre_ping=True)

    sqlite_engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
        echo=echo,
        pool_pre_ping=True,
    )
    use_wal = not _is_memory_sqlite(database_url)

    @event.listens_for(sqlite_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        if use_wal:
            cursor.execute("PRAGMA journal_mode=WAL")
        for pragma in _SQLITE_PRAGMAS:
            cursor.execute(pragma)
        cursor.close()

    return sqlite_engine


engine = make_engine(settings.database_url, echo=settings.sql_echo)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind: Engine | None = None):
    """Create the ``documents`` and ``document_keys`` tables if missing."""
    from . import models  # noqa: F401  (registers the tables on Base)

    Base.metadata.create_all(bind=bind or engine)
