"""Pydantic schemas for the generic entity API.

List endpoints take JSON-encoded ``filters`` and ``sort`` query
parameters::

    ?filters=[{"field": "name", "operator": "contains", "value": "py"}]
    &sort={"field": "name", "direction": "asc"}&page=2&limit=20

The table-widget shape (``{"id": ..., "value": ...}`` filters and
``[{"id": ..., "desc": true}]`` sorting) is accepted as well.
"""

import json
from typing import Any, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from ..domain.common.query import FilterClause, PageResult, QueryRequest, SortRequest

MAX_FILTERS = 50
MAX_VALUE_LENGTH = 1000


class InvalidQueryParamsError(ValueError):
    """Query parameters are not well-formed JSON of the expected shape."""


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class FilterClauseIn(BaseModel):
    """One client filter clause."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    field: str = Field(
        ...,
        min_length=1,
        max_length=128,
        validation_alias=AliasChoices("field", "id"),
        description="Public field name from the entity's allow-list",
    )
    operator: Optional[str] = Field(default=None, description="Defaults by field type when omitted")
    value: Any = None

    def to_domain(self) -> FilterClause:
        return FilterClause(field=self.field, operator=self.operator, value=self.value)


class SortIn(BaseModel):
    """Requested sort: ``{field, direction}`` or ``{id, desc}``."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    field: str = Field(..., min_length=1, max_length=128, validation_alias=AliasChoices("field", "id"))
    direction: Optional[str] = None
    desc: Optional[bool] = None

    def to_domain(self) -> SortRequest:
        if self.direction is not None:
            return SortRequest(field=self.field, direction=self.direction)
        return SortRequest(field=self.field, direction="desc" if self.desc else "asc")


class ListParams(BaseModel):
    """Parsed list-endpoint parameters, before the engine validates them."""

    filters: List[FilterClauseIn] = Field(default_factory=list)
    sort: Optional[SortIn] = None
    page: Optional[Union[int, str]] = None
    limit: Optional[Union[int, str]] = None

    @field_validator("filters")
    @classmethod
    def _check_filter_limits(cls, filters: List[FilterClauseIn], info: ValidationInfo) -> List[FilterClauseIn]:
        context = info.context or {}
        max_filters = context.get("max_filters", MAX_FILTERS)
        max_value_length = context.get("max_value_length", MAX_VALUE_LENGTH)
        if len(filters) > max_filters:
            raise ValueError(f"Maximum {max_filters} filters allowed")
        for clause in filters:
            values = clause.value if isinstance(clause.value, (list, tuple)) else [clause.value]
            if isinstance(clause.value, dict):
                values = list(clause.value.values())
            for value in values:
                if isinstance(value, str) and len(value) > max_value_length:
                    raise ValueError(
                        f"Filter value for {clause.field!r} exceeds maximum length of {max_value_length}"
                    )
        return filters

    @field_validator("sort", mode="before")
    @classmethod
    def _first_sort_item(cls, value: Any) -> Any:
        # Table widgets send a list; only the leading key is honoured.
        if isinstance(value, list):
            return value[0] if value else None
        return value

    def to_domain(self) -> QueryRequest:
        return QueryRequest(
            filters=tuple(clause.to_domain() for clause in self.filters),
            sort=self.sort.to_domain() if self.sort else None,
            page=self.page,
            limit=self.limit,
        )


def _load_json(name: str, raw: Optional[str]) -> Any:
    if raw is None or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise InvalidQueryParamsError(f"Invalid {name} format: must be valid JSON") from None


def parse_list_params(
    filters: Optional[str] = None,
    sort: Optional[str] = None,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    *,
    max_filters: int = MAX_FILTERS,
    max_value_length: int = MAX_VALUE_LENGTH,
) -> QueryRequest:
    """Decode raw query-string values into a QueryRequest.

    Raises:
        InvalidQueryParamsError: malformed JSON or a non-array ``filters``.
        pydantic.ValidationError: wrong clause shape or request limits exceeded.
    """
    raw_filters = _load_json("filters", filters)
    if raw_filters is not None and not isinstance(raw_filters, list):
        raise InvalidQueryParamsError("Filters must be an array")

    params = ListParams.model_validate(
        {
            "filters": raw_filters or [],
            "sort": _load_json("sort", sort),
            "page": page,
            "limit": limit,
        },
        context={"max_filters": max_filters, "max_value_length": max_value_length},
    )
    return params.to_domain()


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class EntityPageResponse(BaseModel):
    """Paginated list response."""

    model_config = ConfigDict(populate_by_name=True)

    data: List[dict[str, Any]]
    total: int
    page: int
    limit: int
    total_pages: int = Field(..., serialization_alias="totalPages")

    @classmethod
    def from_page(cls, page: PageResult) -> "EntityPageResponse":
        return cls(
            data=list(page.data),
            total=page.total,
            page=page.page,
            limit=page.limit,
            total_pages=page.total_pages,
        )
