"""User and session schemas"""

from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class UserResponse(BaseModel):
    """User response schema"""
    id: int
    email: str
    name: str
    google_id: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class CurrentUserResponse(BaseModel):
    """Authenticated user envelope"""
    user: UserResponse


class RefreshResponse(BaseModel):
    """New access token issued from the refresh cookie"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
