from datetime import datetime

from pydantic import BaseModel, Field, field_serializer

from resource_search.models.resource import ResourceType


class ResourceCreate(BaseModel):
    title: str = Field(..., max_length=255)
    description: str | None = Field(default=None, max_length=10000)
    url: str = Field(..., max_length=2048)
    type: ResourceType
    is_visible: bool = True
    cover_image: str | None = Field(default=None, max_length=2048)


class ResourceUpdate(BaseModel):
    """Partial update: only fields present in the request body are applied."""

    title: str | None = Field(default=None, max_length=255)
    description: str | None = Field(default=None, max_length=10000)
    url: str | None = Field(default=None, max_length=2048)
    type: ResourceType | None = None
    is_visible: bool | None = None
    cover_image: str | None = Field(default=None, max_length=2048)


class ResourceOut(BaseModel):
    id: int
    title: str
    description: str | None = None
    url: str
    type: ResourceType
    owner_id: int
    owner_display_name: str | None = None
    is_visible: bool
    cover_image: str | None = None
    star_count: int = 0
    created_at: datetime
    # Relevance for ranked searches; None when browsing by recency
    score: float | None = None

    class Config:
        from_attributes = True

    @field_serializer("created_at")
    def serialize_datetime(self, dt: datetime) -> str:
        return dt.isoformat() + "Z"


class SearchPage(BaseModel):
    total: int
    results: list[ResourceOut]
