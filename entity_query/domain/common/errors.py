"""Domain error taxonomy.

Three families:

* :class:`QueryValidationError` — caller-input problems.  Raised
  immediately, never retried, always naming the offending
  field / operator / value.
* :class:`NotFoundError` / :class:`ConflictError` — expected outcomes of
  normal reads and writes.
* :class:`StoreError` — infrastructure failures surfaced to the caller
  for its own retry decision.

Configuration mistakes (bad FilterConfig declarations, unregistered
entities) are :class:`ConfigurationError` and sit outside
:class:`DomainError`: they are programming errors, not request outcomes.
"""

from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for errors a request can legitimately produce."""


# ---------------------------------------------------------------------------
# Caller input
# ---------------------------------------------------------------------------


class QueryValidationError(DomainError):
    """A query request referenced something it is not allowed to."""


class UnknownFieldError(QueryValidationError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"Unknown filter field: {field!r}")


class DisallowedOperatorError(QueryValidationError):
    def __init__(self, field: str, operator: Any) -> None:
        self.field = field
        self.operator = operator
        super().__init__(f"Operator {operator!r} is not allowed on field {field!r}")


class TypeMismatchError(QueryValidationError):
    def __init__(self, field: str, value: Any, expected: str) -> None:
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(
            f"Value {value!r} for field {field!r} is not a valid {expected}"
        )


class InvalidPaginationError(QueryValidationError):
    def __init__(self, name: str, value: Any) -> None:
        self.name = name
        self.value = value
        super().__init__(f"{name} must be a non-negative integer, got {value!r}")


# ---------------------------------------------------------------------------
# Expected outcomes
# ---------------------------------------------------------------------------


class NotFoundError(DomainError):
    def __init__(self, entity: str, identifier: Any) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} {identifier!r} not found")


class ConflictError(DomainError):
    def __init__(self, entity: str, field: str, value: Any) -> None:
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(f"{entity} with {field}={value!r} already exists")


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------


class StoreError(DomainError):
    """The document store could not complete the operation."""


class QueryTimeoutError(StoreError, TimeoutError):
    def __init__(self, operation: str, timeout: float | None = None) -> None:
        self.operation = operation
        self.timeout = timeout
        detail = f" after {timeout:.3f}s" if timeout is not None else ""
        super().__init__(f"{operation} exceeded its deadline{detail}")


class StoreUnavailableError(StoreError):
    def __init__(self, operation: str, reason: str = "") -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Store unavailable during {operation}" + (f": {reason}" if reason else ""))


# ---------------------------------------------------------------------------
# Configuration (programming errors)
# ---------------------------------------------------------------------------


class ConfigurationError(Exception):
    """Invalid static configuration, detected at startup."""


class FilterConfigError(ConfigurationError):
    pass


class UnregisteredEntityError(ConfigurationError):
    def __init__(self, entity: str) -> None:
        self.entity = entity
        super().__init__(f"No FilterConfig registered for entity {entity!r}")


class CollectionConfigError(ConfigurationError):
    pass
