from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from resource_search.core.time import utcnow
from resource_search.models.base import Base


class UserRole(str, Enum):
    ADMIN = "admin"
    MODERATOR = "moderator"
    MEMBER = "member"


# Roles allowed to edit or delete resources they do not own
ELEVATED_ROLES = frozenset({UserRole.ADMIN.value, UserRole.MODERATOR.value})


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    role: Mapped[str] = mapped_column(String(20), default=UserRole.MEMBER.value, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    resources: Mapped[list["Resource"]] = relationship(
        "Resource", back_populates="owner", cascade="all, delete-orphan"
    )

    @property
    def public_name(self) -> str:
        return self.display_name or self.username
