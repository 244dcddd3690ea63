from datetime import datetime

from pydantic import BaseModel


class UserOut(BaseModel):
    id: int
    username: str
    display_name: str | None = None
    is_active: bool
    role: str
    created_at: datetime

    class Config:
        from_attributes = True
