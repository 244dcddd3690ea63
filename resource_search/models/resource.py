from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from resource_search.core.time import utcnow
from resource_search.models.base import Base


class ResourceType(str, Enum):
    VIDEO = "video"
    DOCUMENT = "document"
    IMAGE = "image"
    LINK = "link"


class Resource(Base):
    __tablename__ = "resources"
    __table_args__ = (
        CheckConstraint("star_count >= 0", name="ck_resources_star_count_non_negative"),
        Index("ix_resources_visible_created", "is_visible", "created_at"),
        # Deleted ids are never handed out again
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    url: Mapped[str] = mapped_column(String(2048))
    type: Mapped[str] = mapped_column(String(20), index=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    is_visible: Mapped[bool] = mapped_column(Boolean, default=True)
    cover_image: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    # Maintained by the rating subsystem; read-only here
    star_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True, onupdate=utcnow)

    # Comparison forms written alongside title/description (see text_normalizer)
    normalized_title: Mapped[str] = mapped_column(Text, default="")
    normalized_description: Mapped[str | None] = mapped_column(Text, nullable=True)

    owner: Mapped["User"] = relationship("User", back_populates="resources")

    @property
    def owner_display_name(self) -> str | None:
        if self.owner is None:
            return None
        return self.owner.public_name
