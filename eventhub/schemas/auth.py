"""
Pydantic schemas for identity operations.
Defines request/response models for auth and profile endpoints.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _normalize_username(v: str) -> str:
    if not v.replace('_', '').replace('-', '').isalnum():
        raise ValueError('Username must contain only letters, numbers, underscores, and hyphens')
    return v.lower()


class UserBase(BaseModel):
    """Base user schema with common fields."""
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)
    bio: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    profile_photo: Optional[str] = Field(None, max_length=500)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        """Validate username format."""
        return _normalize_username(v)


class UserCreate(UserBase):
    """Schema for user registration."""
    password: str = Field(..., min_length=6, max_length=72)


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserUpdate(BaseModel):
    """Schema for profile updates. The password has its own endpoint."""
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    bio: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    profile_photo: Optional[str] = Field(None, max_length=500)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        """Validate username format."""
        if v is None:
            return v
        return _normalize_username(v)


class PasswordChange(BaseModel):
    """Schema for password change."""
    current_password: str = Field(..., min_length=6)
    new_password: str = Field(..., min_length=6, max_length=72)


class UserProfile(BaseModel):
    """Public projection of a user: everything except credentials."""
    id: int
    username: str
    email: str
    name: str
    bio: Optional[str] = None
    location: Optional[str] = None
    profile_photo: Optional[str] = None
    is_online: bool
    last_seen: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthResponse(BaseModel):
    """Schema returned by register and login."""
    user: UserProfile
    access_token: str
    token_type: str = "bearer"
