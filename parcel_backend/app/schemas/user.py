"""
User Pydantic schemas.
"""

from pydantic import EmailStr, Field
from datetime import datetime
from typing import Optional, List
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.schemas.common import CamelModel


class UserSignIn(CamelModel):
    """
    Payload posted on every sign-in.
    
    Any ``role`` sent by the client is ignored; new users always start as USER.
    """
    email: EmailStr
    name: Optional[str] = Field(None, max_length=255)
    photo_url: Optional[str] = Field(None, max_length=1024, alias="photoURL")


class UserResponse(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    photo_url: Optional[str] = None
    role: UserRole
    created_at: datetime
    last_login_at: Optional[datetime] = None


class UserSignInResponse(CamelModel):
    success: bool = True
    inserted: bool
    message: str
    user: UserResponse


class UserListResponse(CamelModel):
    users: List[UserResponse]
    total: int


class UserRoleResponse(CamelModel):
    success: bool = True
    role: UserRole


class RoleUpdate(CamelModel):
    """Closed role set; unknown values are rejected with 422."""
    role: UserRole
