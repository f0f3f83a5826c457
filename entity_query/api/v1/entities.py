"""
API endpoints for generic entity CRUD and filtered listing.

Every registered entity (``applicant``, ``skill``, ...) is served by the
same routes; the entity's FilterConfig decides which fields a client may
filter and sort on.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response
from pydantic import ValidationError

from ...config import settings
from ...domain.common.errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    QueryTimeoutError,
    QueryValidationError,
    StoreError,
)
from ...domain.common.ports import CollectionSpec
from ...domain.filtering import FilterConfigRegistry
from ...infra.db.uow import SqlUnitOfWork
from ...schemas.query import EntityPageResponse, InvalidQueryParamsError, parse_list_params
from ...use_cases.entities import (
    CreateEntityCommand,
    CreateEntityUseCase,
    DeleteEntityCommand,
    GetEntityQuery,
    GetEntityUseCase,
    HardDeleteEntityUseCase,
    ListEntitiesQuery,
    ListEntitiesUseCase,
    SoftDeleteEntityUseCase,
    UpdateEntityCommand,
    UpdateEntityUseCase,
)
from ...wiring.bootstrap import (
    get_collections,
    get_create_entity_use_case,
    get_get_entity_use_case,
    get_hard_delete_entity_use_case,
    get_list_entities_use_case,
    get_registry,
    get_soft_delete_entity_use_case,
    get_uow,
    get_update_entity_use_case,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def known_entity(entity: str, registry: FilterConfigRegistry = Depends(get_registry)) -> str:
    """Path dependency: 404 for entities nobody registered."""
    if entity not in registry:
        raise HTTPException(status_code=404, detail=f"Unknown entity: {entity}")
    return entity


def _http_error(exc: DomainError) -> HTTPException:
    """Map a domain error onto its HTTP status."""
    if isinstance(exc, QueryValidationError):
        return HTTPException(status_code=400, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, QueryTimeoutError):
        return HTTPException(status_code=504, detail=str(exc))
    if isinstance(exc, StoreError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


@router.get("/{entity}", response_model=EntityPageResponse)
def list_entities(
    entity: str = Depends(known_entity),
    filters: Optional[str] = Query(None, description='JSON array, e.g. [{"field":"name","operator":"contains","value":"py"}]'),
    sort: Optional[str] = Query(None, description='JSON object, e.g. {"field":"name","direction":"asc"}'),
    page: Optional[str] = Query(None, description="1-based page number"),
    limit: Optional[str] = Query(None, description="Page size, clamped to the entity's maximum"),
    uow: SqlUnitOfWork = Depends(get_uow),
    use_case: ListEntitiesUseCase = Depends(get_list_entities_use_case),
):
    """List documents of an entity with filters, sort and pagination."""
    try:
        request = parse_list_params(
            filters,
            sort,
            page,
            limit,
            max_filters=settings.max_filters,
            max_value_length=settings.max_filter_value_length,
        )
        result = use_case.execute(uow, ListEntitiesQuery(entity=entity, request=request))
    except (InvalidQueryParamsError, ValidationError) as e:
        logger.warning("Rejected %s query parameters: %s", entity, e)
        raise HTTPException(status_code=400, detail=str(e))
    except QueryValidationError as e:
        logger.warning("Rejected %s query: %s", entity, e)
        raise _http_error(e)
    except DomainError as e:
        raise _http_error(e)

    return EntityPageResponse.from_page(result.page)


@router.get("/{entity}/{entity_id}")
def get_entity(
    entity_id: str,
    include_deleted: bool = Query(False, alias="includeDeleted"),
    entity: str = Depends(known_entity),
    uow: SqlUnitOfWork = Depends(get_uow),
    use_case: GetEntityUseCase = Depends(get_get_entity_use_case),
) -> Dict[str, Any]:
    """Fetch one document by id.

    Soft-deleted documents answer 404 unless ``includeDeleted=true``.
    """
    query = GetEntityQuery(entity=entity, entity_id=entity_id, include_deleted=include_deleted)
    try:
        result = use_case.execute(uow, query)
    except DomainError as e:
        raise _http_error(e)
    return result.document


@router.post("/{entity}", status_code=201)
def create_entity(
    data: Dict[str, Any] = Body(...),
    entity: str = Depends(known_entity),
    uow: SqlUnitOfWork = Depends(get_uow),
    use_case: CreateEntityUseCase = Depends(get_create_entity_use_case),
) -> Dict[str, Any]:
    """Create a document; an id is generated when the body has none."""
    try:
        result = use_case.execute(uow, CreateEntityCommand(entity=entity, data=data))
    except DomainError as e:
        raise _http_error(e)
    return result.document


@router.patch("/{entity}/{entity_id}")
def update_entity(
    entity_id: str,
    data: Dict[str, Any] = Body(...),
    entity: str = Depends(known_entity),
    uow: SqlUnitOfWork = Depends(get_uow),
    use_case: UpdateEntityUseCase = Depends(get_update_entity_use_case),
) -> Dict[str, Any]:
    """Merge the body's fields into an existing document."""
    try:
        result = use_case.execute(uow, UpdateEntityCommand(entity=entity, entity_id=entity_id, data=data))
    except DomainError as e:
        raise _http_error(e)
    return result.document


@router.delete("/{entity}/{entity_id}", status_code=204)
def delete_entity(
    entity_id: str,
    entity: str = Depends(known_entity),
    uow: SqlUnitOfWork = Depends(get_uow),
    collections: Mapping[str, CollectionSpec] = Depends(get_collections),
    soft_delete: SoftDeleteEntityUseCase = Depends(get_soft_delete_entity_use_case),
    hard_delete: HardDeleteEntityUseCase = Depends(get_hard_delete_entity_use_case),
):
    """Soft-delete a document; entities without a soft-delete flag are removed.

    Either way a later GET answers 404.
    """
    cmd = DeleteEntityCommand(entity=entity, entity_id=entity_id)
    use_case = soft_delete if collections[entity].supports_soft_delete else hard_delete
    try:
        use_case.execute(uow, cmd)
    except DomainError as e:
        raise _http_error(e)
    return Response(status_code=204)


@router.delete("/{entity}/{entity_id}/permanent", status_code=204)
def delete_entity_permanently(
    entity_id: str,
    entity: str = Depends(known_entity),
    uow: SqlUnitOfWork = Depends(get_uow),
    use_case: HardDeleteEntityUseCase = Depends(get_hard_delete_entity_use_case),
):
    """Remove a document physically."""
    try:
        use_case.execute(uow, DeleteEntityCommand(entity=entity, entity_id=entity_id))
    except DomainError as e:
        raise _http_error(e)
    return Response(status_code=204)
