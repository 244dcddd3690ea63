from resource_search.models.base import Base
from resource_search.models.resource import Resource, ResourceType
from resource_search.models.user import User, UserRole

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Resource",
    "ResourceType",
]
