# ============================================================================
# FILE: app/schemas/user.py
# ============================================================================
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime
from app.schemas.base import CamelModel

class UserCreate(BaseModel):
    """Schema for user registration; password is optional"""
    username: str = Field(..., min_length=1, max_length=255)
    password: Optional[str] = Field(None, min_length=4, max_length=128)

    @field_validator("username")
    @classmethod
    def strip_username(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Username is required")
        return value

class UserLogin(BaseModel):
    """Schema for user login"""
    username: str
    password: Optional[str] = None

class PasswordSet(BaseModel):
    """Schema for setting a password on the current account"""
    password: str = Field(..., min_length=4, max_length=128)

class AvatarUpdate(BaseModel):
    avatar: str

class UserResponse(CamelModel):
    """Public user fields"""
    id: int
    username: str
    avatar: str
    created_at: Optional[datetime] = None

class CurrentUserResponse(CamelModel):
    """Fields the signed-in user sees about their own account"""
    id: int
    username: str
    avatar: str
    has_password: bool = False
    spotify_connected: bool = False

class MeResponse(BaseModel):
    user: Optional[CurrentUserResponse] = None

class AuthResponse(CamelModel):
    """Returned by signup/login; the token is also set as a cookie"""
    user: CurrentUserResponse
    access_token: str
    token_type: str = "bearer"

class UserSearchResult(BaseModel):
    id: int
    username: str
    avatar: str

    model_config = ConfigDict(from_attributes=True)
