import logging

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Request, status
from sqlalchemy.exc import SQLAlchemyError

from resource_search.api.deps import (
    get_current_admin,
    get_current_user,
    get_optional_user,
    get_resource_repository,
    get_result_cache,
    get_search_service,
)
from resource_search.core.config import get_settings
from resource_search.core.rate_limit import limiter
from resource_search.models.user import User
from resource_search.schemas.common import CacheClearResponse, MessageResponse
from resource_search.schemas.resource import (
    ResourceCreate,
    ResourceOut,
    ResourceUpdate,
    SearchPage,
)
from resource_search.services.errors import (
    InvalidSearchParameterError,
    ResourceAccessDeniedError,
    ResourceNotFoundError,
    ResourceValidationError,
)
from resource_search.services.resource import (
    create_resource,
    delete_resource,
    get_resource,
    list_resources_for_owner,
    update_resource,
)
from resource_search.services.resource_repository import ResourceRepository
from resource_search.services.result_cache import ResultCache
from resource_search.services.search import SearchService

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)

SEARCH_UNAVAILABLE = "Resource search is temporarily unavailable"


def _run_search(
    service: SearchService,
    query: str | None,
    limit: str | None,
    cursor_created_before: str | None,
    type_filter: str | None,
) -> SearchPage:
    # Only an absent limit falls back to the default; malformed values are rejected
    raw_limit = settings.search_default_limit if limit is None else limit
    try:
        return service.search(query, raw_limit, cursor_created_before, type_filter)
    except InvalidSearchParameterError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except SQLAlchemyError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=SEARCH_UNAVAILABLE
        ) from e


@router.get("/search", response_model=SearchPage)
@limiter.limit(lambda: f"{settings.search_rate_limit_per_minute}/minute")
def search_resources(
    request: Request,
    query: str | None = Query(default=None, max_length=200),
    limit: str | None = Query(default=None),
    cursor_created_before: str | None = Query(default=None, alias="cursorCreatedBefore"),
    type_filter: str | None = Query(default=None, alias="typeFilter"),
    service: SearchService = Depends(get_search_service),
) -> SearchPage:
    """Ranked search over visible resources, newest first when no query is given."""
    return _run_search(service, query, limit, cursor_created_before, type_filter)


@router.get("", response_model=SearchPage)
@limiter.limit(lambda: f"{settings.search_rate_limit_per_minute}/minute")
def list_resources(
    request: Request,
    limit: str | None = Query(default=None),
    cursor_created_before: str | None = Query(default=None, alias="cursorCreatedBefore"),
    type_filter: str | None = Query(default=None, alias="typeFilter"),
    service: SearchService = Depends(get_search_service),
) -> SearchPage:
    """Browse visible resources newest first (a search without a query term)."""
    return _run_search(service, None, limit, cursor_created_before, type_filter)


@router.get("/mine", response_model=list[ResourceOut])
def list_my_resources(
    current_user: User = Depends(get_current_user),
    repo: ResourceRepository = Depends(get_resource_repository),
) -> list[ResourceOut]:
    """The caller's own resources, hidden ones included."""
    return list_resources_for_owner(repo, current_user)


@router.delete("/cache", response_model=CacheClearResponse)
def clear_resource_cache(
    _admin: User = Depends(get_current_admin),
    cache: ResultCache = Depends(get_result_cache),
) -> CacheClearResponse:
    """Drop every cached search page and resource lookup (admin only)."""
    count = cache.invalidate_all()
    logger.info("Admin %s cleared %d cached entries", _admin.id, count)
    return CacheClearResponse(message=f"Cleared {count} cached entries", cleared=count)


@router.get("/{resource_id}", response_model=ResourceOut)
def read_resource(
    resource_id: int = Path(..., gt=0),
    viewer: User | None = Depends(get_optional_user),
    repo: ResourceRepository = Depends(get_resource_repository),
    cache: ResultCache = Depends(get_result_cache),
) -> ResourceOut:
    try:
        return get_resource(repo, cache, resource_id, viewer=viewer)
    except ResourceNotFoundError:
        raise HTTPException(status_code=404, detail="Resource not found")


@router.post("", response_model=ResourceOut, status_code=status.HTTP_201_CREATED)
def create_new_resource(
    data: ResourceCreate,
    current_user: User = Depends(get_current_user),
    repo: ResourceRepository = Depends(get_resource_repository),
    cache: ResultCache = Depends(get_result_cache),
) -> ResourceOut:
    try:
        resource = create_resource(repo, cache, current_user, data)
    except ResourceValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ResourceOut.model_validate(resource)


@router.patch("/{resource_id}", response_model=ResourceOut)
def update_existing_resource(
    data: ResourceUpdate,
    resource_id: int = Path(..., gt=0),
    current_user: User = Depends(get_current_user),
    repo: ResourceRepository = Depends(get_resource_repository),
    cache: ResultCache = Depends(get_result_cache),
) -> ResourceOut:
    try:
        resource = update_resource(repo, cache, current_user, resource_id, data)
    except ResourceNotFoundError:
        raise HTTPException(status_code=404, detail="Resource not found")
    except ResourceAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except ResourceValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return ResourceOut.model_validate(resource)


@router.delete("/{resource_id}", response_model=MessageResponse)
def delete_existing_resource(
    resource_id: int = Path(..., gt=0),
    current_user: User = Depends(get_current_user),
    repo: ResourceRepository = Depends(get_resource_repository),
    cache: ResultCache = Depends(get_result_cache),
) -> MessageResponse:
    try:
        delete_resource(repo, cache, current_user, resource_id)
    except ResourceNotFoundError:
        raise HTTPException(status_code=404, detail="Resource not found")
    except ResourceAccessDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    return MessageResponse(message="Resource deleted")
