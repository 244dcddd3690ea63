"""Persistence boundary for resources.

SearchService and the mutation service only talk to the abstract
ResourceRepository; production wires in SqlResourceRepository, tests can
substitute an in-memory or call-counting fake.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from resource_search.models.resource import Resource

logger = logging.getLogger(__name__)


class ResourceRepository(ABC):
    """Create/read/update/delete and visibility-filtered listing of resources."""

    @abstractmethod
    def get(self, resource_id: int) -> Resource | None:
        """Return the resource with this id, visible or not, or None."""

    @abstractmethod
    def list_visible(
        self,
        type_filter: str | None = None,
        created_before: datetime | None = None,
    ) -> Sequence[Resource]:
        """Visible resources matching the filters, newest first (created_at, then id).

        ``created_before`` is exclusive: only resources created strictly
        before the cursor are returned.
        """

    @abstractmethod
    def list_by_owner(self, owner_id: int) -> Sequence[Resource]:
        """All resources owned by a user, hidden ones included, newest first."""

    @abstractmethod
    def add(self, resource: Resource) -> Resource:
        """Persist a new resource and return it with its id assigned."""

    @abstractmethod
    def save(self, resource: Resource) -> Resource:
        """Persist changes made to an existing resource."""

    @abstractmethod
    def delete(self, resource: Resource) -> None:
        """Hard-delete a resource."""


class SqlResourceRepository(ResourceRepository):
    """ResourceRepository backed by a SQLAlchemy session."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _query(self):
        return self.db.query(Resource).options(joinedload(Resource.owner))

    def get(self, resource_id: int) -> Resource | None:
        return self._query().filter(Resource.id == resource_id).first()

    def list_visible(
        self,
        type_filter: str | None = None,
        created_before: datetime | None = None,
    ) -> list[Resource]:
        query = self._query().filter(Resource.is_visible == True)  # noqa: E712
        if type_filter:
            query = query.filter(Resource.type == type_filter)
        if created_before is not None:
            query = query.filter(Resource.created_at < created_before)
        return query.order_by(Resource.created_at.desc(), Resource.id.desc()).all()

    def list_by_owner(self, owner_id: int) -> list[Resource]:
        return (
            self._query()
            .filter(Resource.owner_id == owner_id)
            .order_by(Resource.created_at.desc(), Resource.id.desc())
            .all()
        )

    def add(self, resource: Resource) -> Resource:
        try:
            self.db.add(resource)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to create resource %r", resource.title)
            raise
        self.db.refresh(resource)
        return resource

    def save(self, resource: Resource) -> Resource:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to update resource %s", resource.id)
            raise
        self.db.refresh(resource)
        return resource

    def delete(self, resource: Resource) -> None:
        try:
            self.db.delete(resource)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception("Failed to delete resource %s", resource.id)
            raise
