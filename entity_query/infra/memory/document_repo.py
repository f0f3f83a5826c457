"""Dict-backed DocumentRepository.

Evaluates predicates in Python with the same semantics as the SQL
builder.  A per-store lock makes every single-document write atomic
with respect to concurrent callers.
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from typing import Any

from entity_query.domain.common.deadline import Deadline
from entity_query.domain.common.errors import CollectionConfigError, ConflictError, NotFoundError
from entity_query.domain.common.ports import CollectionSpec, Document, DocumentRepository
from entity_query.domain.common.query import FieldType, Predicate, SortKey
from entity_query.infra.query.memory_predicate import matches, sort_documents
from entity_query.infra.serialization import (
    key_value,
    normalize_dates,
    to_store_document,
    utc_isoformat,
    utcnow,
)

logger = logging.getLogger(__name__)


class InMemoryDocumentRepository(DocumentRepository[Any, str]):
    """Single-collection document store held in a dict."""

    def __init__(self, collection: CollectionSpec, *, entity: str | None = None) -> None:
        self._collection = collection
        self._entity = entity or collection.name
        self._documents: dict[str, dict[str, Any]] = {}
        self._lock = threading.RLock()

    @property
    def collection(self) -> CollectionSpec:
        return self._collection

    # ── Reads ───────────────────────────────────────────────────────────

    def find_by_id(self, id: str, *, deadline: Deadline | None = None) -> Any | None:
        self._check(deadline, "find_by_id")
        with self._lock:
            document = self._documents.get(str(id))
            return None if document is None else self._to_entity(document)

    def find_one(self, predicate: Predicate, *, deadline: Deadline | None = None) -> Any | None:
        self._check(deadline, "find_one")
        with self._lock:
            for doc_id in sorted(self._documents):
                document = self._documents[doc_id]
                if matches(document, predicate):
                    return self._to_entity(document)
        return None

    def find_many(
        self,
        predicate: Predicate,
        sort: tuple[SortKey, ...],
        offset: int,
        limit: int,
        *,
        deadline: Deadline | None = None,
    ) -> list[Any]:
        self._check(deadline, "find_many")
        with self._lock:
            selected = [d for d in self._documents.values() if matches(d, predicate)]
            ordered = sort_documents(selected, self._with_id_sort(sort))
            window = ordered[offset : offset + limit]
            return [self._to_entity(d) for d in window]

    def count(self, predicate: Predicate, *, deadline: Deadline | None = None) -> int:
        self._check(deadline, "count")
        with self._lock:
            return sum(1 for d in self._documents.values() if matches(d, predicate))

    # ── Writes ──────────────────────────────────────────────────────────

    def create(self, data: Document, *, deadline: Deadline | None = None) -> Any:
        self._check(deadline, "create")
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

        with self._lock:
            if doc_id in self._documents:
                raise ConflictError(self._entity, spec.id_field, doc_id)
            self._check_unique(doc_id, document)
            self._documents[doc_id] = document

        logger.info("Created %s %s", self._entity, doc_id)
        return self._to_entity(document)

    def update(self, id: str, data: Document, *, deadline: Deadline | None = None) -> Any:
        self._check(deadline, "update")
        spec = self._collection
        changes = to_store_document(data)
        changes.pop(spec.id_field, None)
        changes.pop("createdAt", None)
        normalize_dates(changes, spec.stored_date_fields)

        with self._lock:
            current = self._documents.get(str(id))
            if current is None:
                raise NotFoundError(self._entity, id)
            body = {**current, **changes}
            if spec.timestamps:
                body["updatedAt"] = utc_isoformat(utcnow())
            self._check_unique(str(id), body)
            self._documents[str(id)] = body

        logger.info("Updated %s %s", self._entity, id)
        return self._to_entity(body)

    def delete(self, id: str, *, deadline: Deadline | None = None) -> bool:
        self._check(deadline, "delete")
        with self._lock:
            removed = self._documents.pop(str(id), None)
        if removed is not None:
            logger.info("Deleted %s %s", self._entity, id)
        return removed is not None

    def soft_delete(self, id: str, *, deadline: Deadline | None = None) -> bool:
        spec = self._collection
        if not spec.supports_soft_delete:
            raise CollectionConfigError(
                f"Collection {spec.name!r} declares no soft-delete field"
            )
        self._check(deadline, "soft_delete")
        with self._lock:
            current = self._documents.get(str(id))
            if current is None:
                return False
            body = {**current, spec.soft_delete_field: spec.soft_delete_value}
            if spec.timestamps:
                body["updatedAt"] = utc_isoformat(utcnow())
            self._documents[str(id)] = body
        logger.info("Soft-deleted %s %s", self._entity, id)
        return True

    # ── Private helpers ─────────────────────────────────────────────────

    def _to_entity(self, document: dict[str, Any]) -> Any:
        return self._collection.factory(copy.deepcopy(document))

    def _with_id_sort(self, sort: tuple[SortKey, ...]) -> tuple[SortKey, ...]:
        # Dict order is insertion order; make the last key deterministic.
        id_field = self._collection.id_field
        if any(key.field == id_field for key in sort):
            return sort
        return sort + (SortKey(field=id_field, value_type=FieldType.STRING),)

    def _check_unique(self, doc_id: str, document: dict[str, Any]) -> None:
        for field in self._collection.unique_fields:
            value = document.get(field)
            if value is None:
                continue
            encoded = key_value(value)
            for other_id, other in self._documents.items():
                if other_id != doc_id and other.get(field) is not None and key_value(other[field]) == encoded:
                    logger.warning("Conflict on %s.%s=%r", self._entity, field, value)
                    raise ConflictError(self._entity, field, value)

    @staticmethod
    def _check(deadline: Deadline | None, operation: str) -> None:
        if deadline is not None:
            deadline.check(operation)
