"""Shared response models for endpoints that return simple JSON dicts."""

from pydantic import BaseModel


class MessageResponse(BaseModel):
    message: str


class CacheClearResponse(BaseModel):
    message: str
    cleared: int
