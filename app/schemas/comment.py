# ============================================================================
# FILE: app/schemas/comment.py
# ============================================================================
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional
from app.schemas.base import CamelModel

class CommentCreate(BaseModel):
    """Schema for posting a comment on an artist page"""
    content: str = Field(..., max_length=2000)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment cannot be empty")
        return value

class CommentResponse(CamelModel):
    id: int
    content: str
    likes: int
    created_at: Optional[datetime] = None
    username: str
    avatar: str

class LikeResponse(BaseModel):
    likes: int
