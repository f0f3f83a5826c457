"""Per-entity FilterConfig registry.

Every entity declares its queryable fields once, at startup, in the
same data shape the services have always used::

    {
        "allowedFields": {
            "name": {"type": "string"},
            "jobCategoryId": {"type": "string", "operators": ["equals"]},
            "isActive": {"type": "boolean", "operators": ["equals"]},
        },
        "defaultFilter": {"isActive": True},
        "defaultSort": {"createdAt": -1},
    }

:func:`build_filter_config` turns such a declaration into an immutable
:class:`FilterConfig`, failing fast on anything inconsistent.  The
:class:`FilterConfigRegistry` then holds one config per entity name and
is sealed before the process starts serving, after which it is
read-only and safe for any number of concurrent readers.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping

from entity_query.domain.common.errors import FilterConfigError, TypeMismatchError, UnregisteredEntityError
from entity_query.domain.common.query import (
    MATCH_ALL,
    OPERATORS_BY_TYPE,
    Comparison,
    FieldSpec,
    FieldType,
    FilterConfig,
    Operator,
    Predicate,
    SortKey,
    SortOrder,
)
from entity_query.domain.filtering.coercion import coerce_scalar, infer_field_type

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


# ── Declaration parsing ─────────────────────────────────────────────────


def build_field_spec(name: str, declaration: Mapping[str, Any]) -> FieldSpec:
    """Build a FieldSpec from one ``allowedFields`` entry."""
    try:
        value_type = FieldType(declaration["type"])
    except KeyError:
        raise FilterConfigError(f"Field {name!r} declares no type") from None
    except ValueError:
        raise FilterConfigError(
            f"Field {name!r} has unknown type {declaration['type']!r}"
        ) from None

    supported = OPERATORS_BY_TYPE[value_type]
    raw_operators = declaration.get("operators")
    if raw_operators is None:
        operators = supported
    else:
        parsed = set()
        for raw in raw_operators:
            try:
                parsed.add(Operator(raw))
            except ValueError:
                raise FilterConfigError(
                    f"Field {name!r} declares unknown operator {raw!r}"
                ) from None
        operators = frozenset(parsed)

    spec = FieldSpec(
        name=name,
        value_type=value_type,
        allowed_operators=operators,
        sortable=bool(declaration.get("sortable", True)),
        store_field=declaration.get("storeField"),
    )
    _check_field_spec(spec)
    return spec


def build_filter_config(entity: str, declaration: Mapping[str, Any]) -> FilterConfig:
    """Build and validate an immutable FilterConfig from a declaration."""
    fields = {
        name: build_field_spec(name, field_decl)
        for name, field_decl in (declaration.get("allowedFields") or {}).items()
    }
    id_field = declaration.get("idField", "id")

    default_filter = _build_default_filter(entity, fields, declaration.get("defaultFilter") or {})
    default_sort = _build_default_sort(entity, fields, id_field, declaration.get("defaultSort") or {})

    default_limit = declaration.get("defaultLimit", DEFAULT_LIMIT)
    max_limit = declaration.get("maxLimit", MAX_LIMIT)
    if not (isinstance(default_limit, int) and isinstance(max_limit, int)):
        raise FilterConfigError(f"{entity}: defaultLimit and maxLimit must be integers")
    if not 1 <= default_limit <= max_limit:
        raise FilterConfigError(
            f"{entity}: need 1 <= defaultLimit ({default_limit}) <= maxLimit ({max_limit})"
        )

    config = FilterConfig(
        entity=entity,
        fields=fields,
        default_filter=default_filter,
        default_sort=default_sort,
        id_field=id_field,
        default_limit=default_limit,
        max_limit=max_limit,
    )
    validate_filter_config(config)
    return config


def _build_default_filter(
    entity: str, fields: Mapping[str, FieldSpec], raw: Mapping[str, Any]
) -> Predicate:
    """Equality conjuncts for the baseline filter.

    Fields outside the allow-list are legal here: they are entity-internal
    attributes (e.g. a soft-delete flag) the client can never address.
    """
    if not raw:
        return MATCH_ALL
    clauses = []
    for name, value in raw.items():
        spec = fields.get(name)
        if spec is None:
            value_type = infer_field_type(value)
            target = name
        else:
            value_type = spec.value_type
            target = spec.target
        try:
            coerced = coerce_scalar(name, value, value_type)
        except TypeMismatchError as exc:
            raise FilterConfigError(f"{entity}: invalid defaultFilter value: {exc}") from None
        clauses.append(Comparison(field=target, operator=Operator.EQUALS, value=coerced, value_type=value_type))
    return Predicate(clauses=tuple(clauses))


def _build_default_sort(
    entity: str,
    fields: Mapping[str, FieldSpec],
    id_field: str,
    raw: Mapping[str, Any],
) -> tuple[SortKey, ...]:
    keys: list[SortKey] = []
    for name, direction in raw.items():
        try:
            order = SortOrder.from_direction(direction)
        except ValueError as exc:
            raise FilterConfigError(f"{entity}: defaultSort on {name!r}: {exc}") from None
        if name == id_field:
            keys.append(SortKey(field=id_field, order=order, value_type=FieldType.STRING))
            continue
        spec = fields.get(name)
        if spec is None:
            raise FilterConfigError(f"{entity}: defaultSort references unknown field {name!r}")
        keys.append(SortKey(field=spec.target, order=order, value_type=spec.value_type))

    # Stable pagination needs a unique last key.
    if not any(key.field == id_field for key in keys):
        keys.append(SortKey(field=id_field, order=SortOrder.ASC, value_type=FieldType.STRING))
    return tuple(keys)


# ── Validation ──────────────────────────────────────────────────────────


def _check_field_spec(spec: FieldSpec) -> None:
    if not spec.allowed_operators:
        raise FilterConfigError(f"Field {spec.name!r} allows no operators")
    invalid = spec.allowed_operators - OPERATORS_BY_TYPE[spec.value_type]
    if invalid:
        names = ", ".join(sorted(op.value for op in invalid))
        raise FilterConfigError(
            f"Field {spec.name!r} ({spec.value_type.value}) cannot use operator(s): {names}"
        )


def validate_filter_config(config: FilterConfig) -> None:
    """Re-check a FilterConfig's invariants (also for hand-built configs)."""
    for spec in config.fields.values():
        _check_field_spec(spec)

    known = {spec.target for spec in config.fields.values()} | {config.id_field}
    for key in config.default_sort:
        if key.field not in known:
            raise FilterConfigError(
                f"{config.entity}: defaultSort references unknown field {key.field!r}"
            )


# ── Registry ────────────────────────────────────────────────────────────


class FilterConfigRegistry:
    """Entity name → FilterConfig, write-once then read-only."""

    def __init__(self) -> None:
        self._configs: dict[str, FilterConfig] = {}
        self._sealed = False

    def register(self, entity: str, config: FilterConfig) -> None:
        if self._sealed:
            raise FilterConfigError(f"Registry is sealed; cannot register {entity!r}")
        if entity in self._configs:
            raise FilterConfigError(f"Entity {entity!r} is already registered")
        validate_filter_config(config)
        self._configs[entity] = config
        logger.debug(
            "Registered FilterConfig for %s (%d fields, default sort %s)",
            entity,
            len(config.fields),
            [(k.field, k.order.value) for k in config.default_sort],
        )

    def register_declaration(self, entity: str, declaration: Mapping[str, Any]) -> FilterConfig:
        config = build_filter_config(entity, declaration)
        self.register(entity, config)
        return config

    def get(self, entity: str) -> FilterConfig:
        try:
            return self._configs[entity]
        except KeyError:
            raise UnregisteredEntityError(entity) from None

    def has(self, entity: str) -> bool:
        return entity in self._configs

    def entities(self) -> tuple[str, ...]:
        return tuple(self._configs)

    def seal(self) -> FilterConfigRegistry:
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def __contains__(self, entity: object) -> bool:
        return entity in self._configs

    def __iter__(self) -> Iterator[str]:
        return iter(self._configs)

    def __len__(self) -> int:
        return len(self._configs)
