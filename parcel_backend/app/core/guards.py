"""
Security guards for role-based and ownership-based access control.

Roles live in the database, not in the token: every check loads the
caller's User record by verified email.
"""

from typing import Optional
from fastapi import Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from parcel_backend.app.core.dependencies import get_current_user
from parcel_backend.app.core.exceptions import InsufficientPermissionsError
from parcel_backend.app.db.session import get_db
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.user import User


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_current_account(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """User record of the caller, or None if they never signed in."""
    return await get_user_by_email(db, current_user["email"])


async def require_admin(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency for admin-only endpoints.
    
    Usage:
        @router.patch("/riders/{rider_id}")
        async def review_rider(rider_id: str, admin: User = Depends(require_admin)):
            ...
    
    Raises:
        InsufficientPermissionsError: 403 if the caller has no User record
        or their role is not ADMIN
    """
    user = await get_user_by_email(db, current_user["email"])
    
    if user is None or user.role != UserRole.ADMIN:
        raise InsufficientPermissionsError()
    
    return user


def enforce_same_identity(current_user: dict, email: Optional[str]) -> None:
    """
    Ownership check for email-filtered queries.
    
    A filter on someone else's email is forbidden; an omitted filter is allowed.
    """
    if email and email != current_user["email"]:
        raise InsufficientPermissionsError()
