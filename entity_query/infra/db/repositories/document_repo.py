"""SQLAlchemy implementation of DocumentRepository."""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm import Query, Session

from entity_query.domain.common.deadline import Deadline
from entity_query.domain.common.errors import (
    CollectionConfigError,
    ConflictError,
    NotFoundError,
    QueryTimeoutError,
    StoreUnavailableError,
)
from entity_query.domain.common.ports import CollectionSpec, Document, DocumentRepository
from entity_query.domain.common.query import Predicate, SortKey
from entity_query.models import DocumentKey, DocumentRow
from entity_query.infra.query.document_query import apply_predicate, apply_sort
from entity_query.infra.serialization import (
    key_value,
    normalize_dates,
    to_store_document,
    utc_isoformat,
    utcnow,
)

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for "canceling statement due to statement timeout".
_PG_QUERY_CANCELED = "57014"


def _is_statement_timeout(exc: DBAPIError) -> bool:
    if getattr(exc.orig, "pgcode", None) == _PG_QUERY_CANCELED:
        return True
    return "statement timeout" in str(exc.orig).lower()


class SqlDocumentRepository(DocumentRepository[Any, str]):
    """Persist and retrieve one collection's documents via SQLAlchemy.

    Writes flush but never commit; the UnitOfWork owns the transaction.
    """

    def __init__(self, session: Session, collection: CollectionSpec, *, entity: str | None = None) -> None:
        self._session = session
        self._collection = collection
        self._entity = entity or collection.name

    @property
    def collection(self) -> CollectionSpec:
        return self._collection

    # ── Reads ───────────────────────────────────────────────────────────

    def find_by_id(self, id: str, *, deadline: Deadline | None = None) -> Any | None:
        with self._guard("find_by_id", deadline):
            row = self._row(id)
        return None if row is None else self._to_entity(row)

    def find_one(self, predicate: Predicate, *, deadline: Deadline | None = None) -> Any | None:
        with self._guard("find_one", deadline):
            row = (
                self._filtered(predicate)
                .order_by(DocumentRow.id.asc())
                .first()
            )
        return None if row is None else self._to_entity(row)

    def find_many(
        self,
        predicate: Predicate,
        sort: tuple[SortKey, ...],
        offset: int,
        limit: int,
        *,
        deadline: Deadline | None = None,
    ) -> list[Any]:
        with self._guard("find_many", deadline):
            query = apply_sort(self._filtered(predicate), sort, self._collection.id_field)
            rows = query.offset(offset).limit(limit).all()
        return [self._to_entity(row) for row in rows]

    def count(self, predicate: Predicate, *, deadline: Deadline | None = None) -> int:
        with self._guard("count", deadline):
            return self._filtered(predicate).count()

    # ── Writes ──────────────────────────────────────────────────────────

    def create(self, data: Document, *, deadline: Deadline | None = None) -> Any:
        spec = self._collection
        document = normalize_dates(to_store_document(data), spec.stored_date_fields)
        doc_id = document.get(spec.id_field)
        doc_id = uuid.uuid4().hex if doc_id in (None, "") else str(doc_id)
        document[spec.id_field] = doc_id
        if spec.timestamps:
            now = utc_isoformat(utcnow())
            document.setdefault("createdAt", now)
            document["updatedAt"] = now
        if spec.supports_soft_delete:
            document.setdefault(spec.soft_delete_field, spec.active_value)

        with self._guard("create", deadline):
            if self._row(doc_id) is not None:
                raise ConflictError(self._entity, spec.id_field, doc_id)
            for field in spec.unique_fields:
                self._claim_key(doc_id, field, document.get(field))
            self._session.add(DocumentRow(collection=spec.name, id=doc_id, body=document))
            self._flush("create", doc_id, deadline)

        logger.info("Created %s %s", self._entity, doc_id)
        return spec.factory(dict(document))

    def update(self, id: str, data: Document, *, deadline: Deadline | None = None) -> Any:
        spec = self._collection
        changes = to_store_document(data)
        changes.pop(spec.id_field, None)  # ids are immutable
        changes.pop("createdAt", None)
        normalize_dates(changes, spec.stored_date_fields)

        with self._guard("update", deadline):
            row = self._row(id)
            if row is None:
                raise NotFoundError(self._entity, id)
            previous = dict(row.body)
            body = {**previous, **changes}
            if spec.timestamps:
                body["updatedAt"] = utc_isoformat(utcnow())

            for field in spec.unique_fields:
                if field in changes and previous.get(field) != body.get(field):
                    self._release_key(row.id, field)
                    self._claim_key(row.id, field, body.get(field))

            row.body = body
            self._flush("update", row.id, deadline)

        logger.info("Updated %s %s (%s)", self._entity, id, ", ".join(sorted(changes)) or "timestamps only")
        return spec.factory(dict(body))

    def delete(self, id: str, *, deadline: Deadline | None = None) -> bool:
        with self._guard("delete", deadline):
            row = self._row(id)
            if row is None:
                return False
            self._session.query(DocumentKey).filter(
                DocumentKey.collection == self._collection.name,
                DocumentKey.document_id == row.id,
            ).delete(synchronize_session=False)
            self._session.delete(row)
            self._flush("delete", id, deadline)

        logger.info("Deleted %s %s", self._entity, id)
        return True

    def soft_delete(self, id: str, *, deadline: Deadline | None = None) -> bool:
        spec = self._collection
        if not spec.supports_soft_delete:
            raise CollectionConfigError(
                f"Collection {spec.name!r} declares no soft-delete field"
            )

        with self._guard("soft_delete", deadline):
            row = self._row(id)
            if row is None:
                return False
            body = dict(row.body)
            body[spec.soft_delete_field] = spec.soft_delete_value
            if spec.timestamps:
                body["updatedAt"] = utc_isoformat(utcnow())
            row.body = body
            self._flush("soft_delete", id, deadline)

        logger.info("Soft-deleted %s %s", self._entity, id)
        return True

    # ── Private helpers ─────────────────────────────────────────────────

    def _base(self) -> Query:
        return self._session.query(DocumentRow).filter(
            DocumentRow.collection == self._collection.name
        )

    def _filtered(self, predicate: Predicate) -> Query:
        return apply_predicate(self._base(), predicate, self._collection.id_field)

    def _row(self, id: Any) -> DocumentRow | None:
        return self._base().filter(DocumentRow.id == str(id)).first()

    def _to_entity(self, row: DocumentRow) -> Any:
        return self._collection.factory(dict(row.body))

    def _claim_key(self, doc_id: str, field: str, value: Any) -> None:
        """Reserve a unique-field value; absent values are not indexed."""
        if value is None:
            return
        encoded = key_value(value)
        owner = (
            self._session.query(DocumentKey.document_id)
            .filter(
                DocumentKey.collection == self._collection.name,
                DocumentKey.field == field,
                DocumentKey.value == encoded,
            )
            .scalar()
        )
        if owner is not None and owner != doc_id:
            logger.warning("Conflict on %s.%s=%r", self._entity, field, value)
            raise ConflictError(self._entity, field, value)
        if owner is None:
            self._session.add(DocumentKey(
                collection=self._collection.name,
                field=field,
                value=encoded,
                document_id=doc_id,
            ))

    def _release_key(self, doc_id: str, field: str) -> None:
        self._session.query(DocumentKey).filter(
            DocumentKey.collection == self._collection.name,
            DocumentKey.field == field,
            DocumentKey.document_id == doc_id,
        ).delete(synchronize_session=False)

    def _flush(self, operation: str, doc_id: str, deadline: Deadline | None) -> None:
        """Flush pending changes, mapping a lost race to ConflictError.

        If the deadline ran out while the write was in flight the change
        is rolled back and reported as a timeout.
        """
        try:
            self._session.flush()
        except IntegrityError as exc:
            self._session.rollback()
            logger.warning("Integrity violation during %s of %s %s: %s", operation, self._entity, doc_id, exc.orig)
            raise ConflictError(self._entity, self._collection.id_field, doc_id) from exc
        if deadline is not None and deadline.expired():
            self._session.rollback()
            raise QueryTimeoutError(operation, deadline.budget)

    @contextmanager
    def _guard(self, operation: str, deadline: Deadline | None) -> Iterator[None]:
        """Enforce ``deadline`` and translate driver failures to StoreError."""
        if deadline is not None:
            deadline.check(operation)
            self._push_statement_timeout(deadline)
        try:
            yield
        except OperationalError as exc:
            self._session.rollback()
            if (deadline is not None and deadline.expired()) or _is_statement_timeout(exc):
                logger.warning("%s on %s timed out: %s", operation, self._entity, exc.orig)
                raise QueryTimeoutError(operation, deadline.budget if deadline else None) from exc
            logger.error("Store failure during %s on %s: %s", operation, self._entity, exc.orig)
            raise StoreUnavailableError(operation, str(exc.orig)) from exc
        except DBAPIError as exc:
            if not exc.connection_invalidated:
                raise
            self._session.rollback()
            logger.error("Connection lost during %s on %s: %s", operation, self._entity, exc.orig)
            raise StoreUnavailableError(operation, "connection invalidated") from exc

    def _push_statement_timeout(self, deadline: Deadline) -> None:
        """Bound the next statements server-side where the backend allows it."""
        if self._session.get_bind().dialect.name != "postgresql":
            return
        milliseconds = max(1, int(deadline.remaining() * 1000))
        self._session.execute(text(f"SET LOCAL statement_timeout = {milliseconds}"))
