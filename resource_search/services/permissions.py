"""Who may modify a resource: its owner, or any elevated role."""

import logging

from resource_search.models.user import ELEVATED_ROLES
from resource_search.services.errors import ResourceAccessDeniedError

logger = logging.getLogger(__name__)


class ResourceMutationGuard:
    """Single definition of the owner-or-elevated-role rule for update/delete."""

    def __init__(self, elevated_roles: frozenset[str] = ELEVATED_ROLES) -> None:
        self.elevated_roles = elevated_roles

    def can_mutate(self, actor, resource) -> bool:
        if actor is None:
            return False
        if actor.id == resource.owner_id:
            return True
        return actor.role in self.elevated_roles

    def ensure_can_mutate(self, actor, resource) -> None:
        """Raise ResourceAccessDeniedError unless can_mutate() allows it."""
        if not self.can_mutate(actor, resource):
            logger.info(
                "User %s denied modifying resource %s (owner %s)",
                getattr(actor, "id", None),
                resource.id,
                resource.owner_id,
            )
            raise ResourceAccessDeniedError(
                "Only the owner or a moderator can modify this resource"
            )

    def can_view_hidden(self, viewer, resource) -> bool:
        """Hidden resources stay visible to the same people who may modify them."""
        return self.can_mutate(viewer, resource)


mutation_guard = ResourceMutationGuard()
