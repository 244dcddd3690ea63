"""Resource create/read/update/delete.

Every successful write clears the whole search cache: a single title,
description or visibility change can reorder or invalidate any cached page.
"""

import logging

from resource_search.core.validation import is_valid_url, normalize_single_line, normalize_text
from resource_search.models.resource import Resource, ResourceType
from resource_search.models.user import User
from resource_search.schemas.resource import ResourceCreate, ResourceOut, ResourceUpdate
from resource_search.services.errors import ResourceNotFoundError, ResourceValidationError
from resource_search.services.permissions import ResourceMutationGuard, mutation_guard
from resource_search.services.resource_repository import ResourceRepository
from resource_search.services.result_cache import ResultCache, make_resource_key
from resource_search.services.text_normalizer import normalize, normalize_optional

logger = logging.getLogger(__name__)

# Fields a client may change; owner_id, star_count and created_at are not among them
UPDATABLE_FIELDS = ("title", "description", "url", "type", "is_visible", "cover_image")


def _clean_title(title: str | None) -> str:
    cleaned = normalize_single_line(title)
    if not cleaned:
        raise ResourceValidationError("Title is required")
    return cleaned


def _clean_url(url: str | None, field: str = "url") -> str:
    cleaned = (url or "").strip()
    if not is_valid_url(cleaned):
        raise ResourceValidationError(f"{field} must be a valid http(s) URL")
    return cleaned


def _clean_optional_url(url: str | None, field: str) -> str | None:
    if url is None or not url.strip():
        return None
    return _clean_url(url, field)


def _clean_type(value: ResourceType | str | None) -> str:
    try:
        return ResourceType(value).value
    except ValueError:
        raise ResourceValidationError("Invalid resource type") from None


def _refresh_normalized(resource: Resource) -> None:
    resource.normalized_title = normalize(resource.title)
    resource.normalized_description = normalize_optional(resource.description)


def _invalidate(cache: ResultCache, resource_id: int) -> None:
    cache.invalidate_all()
    cache.invalidate(make_resource_key(resource_id))


def create_resource(
    repo: ResourceRepository,
    cache: ResultCache,
    actor: User,
    data: ResourceCreate,
) -> Resource:
    """Validate and store a new resource owned by the actor."""
    resource = Resource(
        title=_clean_title(data.title),
        description=normalize_text(data.description) or None,
        url=_clean_url(data.url),
        type=_clean_type(data.type),
        owner_id=actor.id,
        is_visible=data.is_visible,
        cover_image=_clean_optional_url(data.cover_image, "cover_image"),
        star_count=0,
    )
    _refresh_normalized(resource)

    resource = repo.add(resource)
    _invalidate(cache, resource.id)
    logger.info("User %s created resource %s", actor.id, resource.id)
    return resource


def get_resource(
    repo: ResourceRepository,
    cache: ResultCache,
    resource_id: int,
    viewer: User | None = None,
    guard: ResourceMutationGuard = mutation_guard,
) -> ResourceOut:
    """Look up one resource, served from the cache when possible.

    Hidden resources are reported as not found to anyone but their owner or
    an elevated role, so their existence is not leaked.
    """
    key = make_resource_key(resource_id)
    resource_out = cache.get(key)
    if resource_out is None:
        generation = cache.generation()
        resource = repo.get(resource_id)
        if resource is None:
            raise ResourceNotFoundError
        resource_out = ResourceOut.model_validate(resource)
        cache.set(key, resource_out, generation)

    if not resource_out.is_visible and not guard.can_view_hidden(viewer, resource_out):
        raise ResourceNotFoundError
    return resource_out


def _load_for_mutation(
    repo: ResourceRepository,
    actor: User,
    resource_id: int,
    guard: ResourceMutationGuard,
) -> Resource:
    resource = repo.get(resource_id)
    if resource is None:
        raise ResourceNotFoundError
    guard.ensure_can_mutate(actor, resource)
    return resource


def update_resource(
    repo: ResourceRepository,
    cache: ResultCache,
    actor: User,
    resource_id: int,
    changes: ResourceUpdate,
    guard: ResourceMutationGuard = mutation_guard,
) -> Resource:
    """Apply the fields explicitly present in ``changes``."""
    resource = _load_for_mutation(repo, actor, resource_id, guard)
    fields = changes.model_dump(exclude_unset=True)

    # Validate everything before touching the entity so a rejected update leaves it clean
    updates: dict = {}
    if "title" in fields:
        updates["title"] = _clean_title(fields["title"])
    if "description" in fields:
        updates["description"] = normalize_text(fields["description"]) or None
    if "url" in fields:
        updates["url"] = _clean_url(fields["url"])
    if "type" in fields:
        updates["type"] = _clean_type(fields["type"])
    if "is_visible" in fields:
        if fields["is_visible"] is None:
            raise ResourceValidationError("is_visible must be true or false")
        updates["is_visible"] = fields["is_visible"]
    if "cover_image" in fields:
        updates["cover_image"] = _clean_optional_url(fields["cover_image"], "cover_image")

    for field, value in updates.items():
        setattr(resource, field, value)
    _refresh_normalized(resource)

    resource = repo.save(resource)
    _invalidate(cache, resource.id)
    logger.info(
        "User %s updated resource %s (%s)",
        actor.id,
        resource.id,
        ", ".join(f for f in UPDATABLE_FIELDS if f in updates) or "no changes",
    )
    return resource


def delete_resource(
    repo: ResourceRepository,
    cache: ResultCache,
    actor: User,
    resource_id: int,
    guard: ResourceMutationGuard = mutation_guard,
) -> None:
    """Hard-delete a resource."""
    resource = _load_for_mutation(repo, actor, resource_id, guard)
    repo.delete(resource)
    _invalidate(cache, resource_id)
    logger.info("User %s deleted resource %s", actor.id, resource_id)


def list_resources_for_owner(repo: ResourceRepository, actor: User) -> list[ResourceOut]:
    """The actor's own resources, hidden ones included, newest first."""
    return [ResourceOut.model_validate(r) for r in repo.list_by_owner(actor.id)]
