from resource_search.schemas.auth import Token
from resource_search.schemas.resource import (
    ResourceCreate,
    ResourceOut,
    ResourceUpdate,
    SearchPage,
)
from resource_search.schemas.user import UserOut

__all__ = [
    "Token",
    "UserOut",
    "ResourceCreate",
    "ResourceUpdate",
    "ResourceOut",
    "SearchPage",
]
