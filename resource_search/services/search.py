"""Ranked resource search with a write-through result cache.

A search either browses (no query: newest first) or ranks (query present:
every visible candidate is scored, weak matches are dropped, the rest are
ordered by relevance). Relevance is a weighted fuzzy measure the store cannot
compute, so a cache miss scans and scores the whole filtered candidate set;
the cache keeps repeated identical queries from paying that cost twice
within the TTL.
"""

import logging
from datetime import datetime

from resource_search.core.time import parse_iso_timestamp, to_naive_utc
from resource_search.models.resource import ResourceType
from resource_search.schemas.resource import ResourceOut, SearchPage
from resource_search.services.errors import InvalidSearchParameterError
from resource_search.services.resource_repository import ResourceRepository
from resource_search.services.result_cache import ResultCache, make_search_key
from resource_search.services.similarity import score
from resource_search.services.text_normalizer import normalize

logger = logging.getLogger(__name__)

RELEVANCE_THRESHOLD = 0.3

_RESOURCE_TYPES = frozenset(t.value for t in ResourceType)


def parse_limit(raw: int | str, max_limit: int | None = None) -> int:
    """Validate a page size: a positive integer or its plain decimal string form.

    Malformed input, including padded strings, is rejected rather than
    replaced with a default or trimmed.
    """
    if isinstance(raw, bool):
        raise InvalidSearchParameterError("limit must be a positive integer")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.isascii() and raw.isdigit():
        value = int(raw)
    else:
        raise InvalidSearchParameterError("limit must be a positive integer")

    if value < 1:
        raise InvalidSearchParameterError("limit must be a positive integer")
    if max_limit is not None and value > max_limit:
        raise InvalidSearchParameterError(f"limit must not exceed {max_limit}")
    return value


def parse_cursor(raw: str | datetime | None) -> datetime | None:
    """Parse the createdBefore cursor into a naive UTC datetime (None if absent)."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return to_naive_utc(raw)
    if not raw.strip():
        return None
    try:
        return parse_iso_timestamp(raw)
    except ValueError:
        raise InvalidSearchParameterError(
            "cursorCreatedBefore must be an ISO-8601 timestamp"
        ) from None


def parse_type_filter(raw: str | ResourceType | None) -> str | None:
    """Validate the resource type filter against the ResourceType enumeration.

    Only the exact lower-case type names are accepted; an empty value means
    no filter.
    """
    if raw is None:
        return None
    if isinstance(raw, ResourceType):
        return raw.value
    if not raw:
        return None
    if raw not in _RESOURCE_TYPES:
        allowed = ", ".join(sorted(_RESOURCE_TYPES))
        raise InvalidSearchParameterError(f"typeFilter must be one of: {allowed}")
    return raw


class SearchService:
    """Orchestrates a search: cache lookup, candidate fetch, ranking, write-through."""

    def __init__(
        self,
        repository: ResourceRepository,
        cache: ResultCache,
        relevance_threshold: float = RELEVANCE_THRESHOLD,
        max_limit: int | None = None,
    ) -> None:
        self.repository = repository
        self.cache = cache
        self.relevance_threshold = relevance_threshold
        self.max_limit = max_limit

    def search(
        self,
        query: str | None,
        limit: int | str,
        cursor_created_before: str | datetime | None = None,
        type_filter: str | ResourceType | None = None,
    ) -> SearchPage:
        """Return one page of visible resources, ranked when a query is given.

        Raises InvalidSearchParameterError for malformed parameters. Repository
        errors propagate unchanged and nothing is cached for the failed call.
        """
        page_size = parse_limit(limit, self.max_limit)
        cursor = parse_cursor(cursor_created_before)
        resource_type = parse_type_filter(type_filter)
        normalized_query = normalize(query or "")

        key = make_search_key(normalized_query, page_size, cursor, resource_type)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Search cache hit: %s", key)
            return cached

        generation = self.cache.generation()
        try:
            candidates = self.repository.list_visible(
                type_filter=resource_type, created_before=cursor
            )
        except Exception:
            logger.exception("Resource repository failed during search")
            raise

        if normalized_query:
            page = self._rank(normalized_query, candidates, page_size)
        else:
            page = self._browse(candidates, page_size)

        # Empty pages are never cached so new resources show up immediately
        if page.results:
            self.cache.set(key, page, generation)
        logger.debug(
            "Search cache miss: %s (%d candidates, %d matched)", key, len(candidates), page.total
        )
        return page

    def _browse(self, candidates, page_size: int) -> SearchPage:
        ordered = sorted(candidates, key=lambda r: (r.created_at, r.id), reverse=True)
        results = [ResourceOut.model_validate(r) for r in ordered[:page_size]]
        return SearchPage(total=len(ordered), results=results)

    def _rank(self, normalized_query: str, candidates, page_size: int) -> SearchPage:
        scored = []
        for resource in candidates:
            relevance = score(
                normalized_query,
                resource.normalized_title or resource.title,
                resource.normalized_description or resource.description,
            )
            if relevance >= self.relevance_threshold:
                scored.append((relevance, resource))

        scored.sort(key=lambda pair: (pair[0], pair[1].created_at, pair[1].id), reverse=True)
        results = []
        for relevance, resource in scored[:page_size]:
            out = ResourceOut.model_validate(resource)
            out.score = relevance
            results.append(out)
        return SearchPage(total=len(scored), results=results)
