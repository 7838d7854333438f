"""
User API Endpoints.

Sign-in upsert, user search, role lookup and admin role changes.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from parcel_backend.app.core.config import settings
from parcel_backend.app.core.dependencies import get_current_user
from parcel_backend.app.core.guards import require_admin
from parcel_backend.app.db.session import get_db
from parcel_backend.app.domain.accounts.role_service import RoleAccessService
from parcel_backend.app.models.user import User
from parcel_backend.app.schemas.user import (
    RoleUpdate, UserListResponse, UserResponse, UserRoleResponse, UserSignIn, UserSignInResponse
)
from parcel_backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserSignInResponse)
async def sign_in_user(
    user_data: UserSignIn,
    response: Response,
    db: AsyncSession = Depends(get_db)
):
    """
    Register the user on first sign-in.
    
    Existing users are left as they are (apart from the last login time).
    The role is always USER for new accounts.
    """
    user, inserted = await RoleAccessService(db).sign_in(user_data)
    response.status_code = status.HTTP_201_CREATED if inserted else status.HTTP_200_OK
    
    return UserSignInResponse(
        inserted=inserted,
        message="User created" if inserted else "User already exists",
        user=UserResponse.model_validate(user)
    )


@router.get("", response_model=UserListResponse)
async def list_users(
    search: Optional[str] = Query(None, max_length=100, description="Match on name or email"),
    limit: int = Query(settings.user_list_limit, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List users, newest first."""
    users, total = await RoleAccessService(db).list_users(search=search, limit=limit)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        total=total
    )


@router.get("/{email}/role", response_model=UserRoleResponse)
async def get_user_role(
    email: str = Path(..., description="User email"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Role of a user; 404 if the email never signed in."""
    role = await RoleAccessService(db).get_role(email)
    return UserRoleResponse(role=role)


@router.patch("/{user_id}/role", response_model=UserResponse)
async def set_user_role(
    role_data: RoleUpdate,
    user_id: str = Path(..., description="User ID"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Change a user's role (admin only)."""
    user, previous_role = await RoleAccessService(db).set_user_role(user_id, role_data.role)
    
    await log_event(
        db=db,
        action=AuditAction.ROLE_CHANGED,
        actor_email=admin.email,
        target_id=user.id,
        metadata={
            "email": user.email,
            "old_role": previous_role.value,
            "new_role": role_data.role.value
        }
    )
    
    return UserResponse.model_validate(user)
