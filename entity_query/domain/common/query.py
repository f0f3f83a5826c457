"""Filter, sort, and pagination specifications for entity queries.

These types express query intent in domain terms, independent of
any persistence mechanism.  Adapters translate them into SQL WHERE
clauses, in-memory predicates, or whatever the infra layer requires.

Canonical location: ``entity_query.domain.common.query``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Generic, Mapping, TypeVar

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class FieldType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"


class Operator(str, Enum):
    EQUALS = "equals"
    CONTAINS = "contains"
    STARTS_WITH = "startsWith"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    RANGE = "range"
    IN = "in"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def from_direction(cls, direction: int) -> SortOrder:
        """Map a ``1`` / ``-1`` declaration value to a SortOrder."""
        if direction == 1:
            return cls.ASC
        if direction == -1:
            return cls.DESC
        raise ValueError(f"sort direction must be 1 or -1, got {direction!r}")


_ORDERED = frozenset({
    Operator.EQUALS,
    Operator.GT,
    Operator.GTE,
    Operator.LT,
    Operator.LTE,
    Operator.RANGE,
    Operator.IN,
})

# Operators each value type can support at all.  A field declared without
# an explicit operator list gets the full set for its type.
OPERATORS_BY_TYPE: Mapping[FieldType, frozenset[Operator]] = MappingProxyType({
    FieldType.STRING: frozenset({
        Operator.EQUALS,
        Operator.CONTAINS,
        Operator.STARTS_WITH,
        Operator.IN,
    }),
    FieldType.NUMBER: _ORDERED,
    FieldType.DATE: _ORDERED,
    FieldType.BOOLEAN: frozenset({Operator.EQUALS, Operator.IN}),
})

# Operator applied when a caller names a field but no operator.
DEFAULT_OPERATOR_BY_TYPE: Mapping[FieldType, Operator] = MappingProxyType({
    FieldType.STRING: Operator.CONTAINS,
    FieldType.NUMBER: Operator.EQUALS,
    FieldType.DATE: Operator.EQUALS,
    FieldType.BOOLEAN: Operator.EQUALS,
})


# ---------------------------------------------------------------------------
# Field declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldSpec:
    """One client-addressable field of an entity."""

    name: str
    value_type: FieldType
    allowed_operators: frozenset[Operator]
    sortable: bool = True
    store_field: str | None = None

    @property
    def target(self) -> str:
        """Name of the stored attribute this field reads from."""
        return self.store_field or self.name

    def allows(self, operator: Operator) -> bool:
        return operator in self.allowed_operators


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Comparison:
    """Leaf condition: ``<field> <operator> <value>`` on a stored attribute.

    ``value`` is already coerced to the Python type matching
    ``value_type`` (``tuple`` of such values for ``IN``).
    """

    field: str
    operator: Operator
    value: Any
    value_type: FieldType


@dataclass(frozen=True)
class Predicate:
    """Conjunction of comparisons.  An empty predicate matches everything."""

    clauses: tuple[Comparison, ...] = ()

    def and_(self, other: Predicate) -> Predicate:
        return Predicate(clauses=self.clauses + other.clauses)

    def is_empty(self) -> bool:
        return not self.clauses

    def fields(self) -> frozenset[str]:
        return frozenset(c.field for c in self.clauses)

    def __iter__(self):
        return iter(self.clauses)

    def __len__(self) -> int:
        return len(self.clauses)


MATCH_ALL = Predicate()


@dataclass(frozen=True)
class SortKey:
    """One ORDER BY term on a stored attribute."""

    field: str
    order: SortOrder = SortOrder.ASC
    value_type: FieldType = FieldType.STRING


# ---------------------------------------------------------------------------
# Per-entity configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FilterConfig:
    """Immutable allow-list and baseline query for one entity.

    Built by :func:`entity_query.domain.filtering.registry.build_filter_config`
    and never mutated afterwards; ``fields`` is a read-only mapping.
    """

    entity: str
    fields: Mapping[str, FieldSpec]
    default_filter: Predicate = MATCH_ALL
    default_sort: tuple[SortKey, ...] = ()
    id_field: str = "id"
    default_limit: int = 20
    max_limit: int = 100

    def __post_init__(self) -> None:
        if not isinstance(self.fields, MappingProxyType):
            object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    def field_spec(self, name: str) -> FieldSpec | None:
        return self.fields.get(name)

    @property
    def tie_break(self) -> SortKey:
        return SortKey(field=self.id_field, order=SortOrder.ASC, value_type=FieldType.STRING)


# ---------------------------------------------------------------------------
# Caller input
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FilterClause:
    """Untrusted ``(field, operator, value)`` triple from a caller.

    A missing ``operator`` means the field type's default operator.
    """

    field: str
    operator: str | None = None
    value: Any = None


@dataclass(frozen=True)
class SortRequest:
    """Untrusted sort request from a caller."""

    field: str
    direction: str = SortOrder.ASC.value


@dataclass(frozen=True)
class QueryRequest:
    """Complete caller query = filters + sort + pagination."""

    filters: tuple[FilterClause, ...] = ()
    sort: SortRequest | None = None
    page: Any = 1
    limit: Any = None


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PageWindow:
    """Resolved pagination bounds."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PageResult(Generic[T]):
    """Paginated result set with metadata.

    ``total`` counts the full matching set and may drift slightly from
    ``data`` under concurrent writes; the two reads are not transactional.
    """

    data: tuple[T, ...]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total + self.limit - 1) // self.limit


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

__all__ = [
    "FieldType",
    "Operator",
    "SortOrder",
    "OPERATORS_BY_TYPE",
    "DEFAULT_OPERATOR_BY_TYPE",
    "FieldSpec",
    "Comparison",
    "Predicate",
    "MATCH_ALL",
    "SortKey",
    "FilterConfig",
    "FilterClause",
    "SortRequest",
    "QueryRequest",
    "PageWindow",
    "PageResult",
]
