"""
Role & Access Service (Domain Logic).

User sign-in, rider applications and reviews, and role changes.
Role promotion to RIDER happens only through an approved application.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.exceptions import ConflictError, InvalidTransitionError, ResourceNotFoundError
from parcel_backend.app.db.defaults import utcnow
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.rider import Rider
from parcel_backend.app.models.rider_enums import RiderStatus, WorkStatus
from parcel_backend.app.models.user import User
from parcel_backend.app.schemas.rider import RiderApplication, RiderReview
from parcel_backend.app.schemas.user import UserSignIn

logger = logging.getLogger(__name__)


class RoleAccessService:

    def __init__(self, db: AsyncSession):
        self.db = db

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def sign_in(self, data: UserSignIn) -> Tuple[User, bool]:
        """
        Upsert a user by email.

        New users always get role USER whatever the client sent.

        Returns:
            (user, inserted)
        """
        user = await self.get_user_by_email(data.email)
        if user is not None:
            user.last_login_at = utcnow()
            await self.db.commit()
            return user, False

        user = User(
            email=data.email,
            name=data.name,
            photo_url=data.photo_url,
            role=UserRole.USER,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("Registered user %s", user.email)
        return user, True

    async def get_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def list_users(self, search: Optional[str] = None, limit: int = 10) -> Tuple[List[User], int]:
        """Newest first; ``search`` matches name or email case-insensitively."""
        query = select(User)
        count_query = select(func.count(User.id))
        if search:
            pattern = f"%{search}%"
            condition = or_(User.name.ilike(pattern), User.email.ilike(pattern))
            query = query.where(condition)
            count_query = count_query.where(condition)

        total = (await self.db.execute(count_query)).scalar()
        result = await self.db.execute(query.order_by(User.created_at.desc()).limit(limit))
        return list(result.scalars().all()), total

    async def get_role(self, email: str) -> UserRole:
        user = await self.get_user_by_email(email)
        if user is None:
            raise ResourceNotFoundError("User", email)
        return user.role or UserRole.USER

    async def set_user_role(self, user_id: str, role: UserRole) -> Tuple[User, UserRole]:
        """
        Overwrite a user's role (admin only, enforced by the route).

        Returns:
            (user, previous_role)
        """
        user = await self.db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundError("User", user_id)

        previous_role = user.role
        user.role = role
        await self.db.commit()
        logger.info("Role of %s changed %s -> %s", user.email, previous_role.value, role.value)
        return user, previous_role

    # ------------------------------------------------------------------
    # Riders
    # ------------------------------------------------------------------

    async def apply_as_rider(self, email: str, application: RiderApplication) -> Rider:
        """Create a PENDING rider application for the caller."""
        result = await self.db.execute(
            select(Rider).where(Rider.email == email, Rider.status != RiderStatus.REJECTED)
        )
        if result.scalars().first() is not None:
            raise ConflictError("Rider application already exists", details={"email": email})

        rider = Rider(
            **application.model_dump(),
            email=email,
            status=RiderStatus.PENDING,
            work_status=None,
        )
        self.db.add(rider)
        await self.db.commit()
        await self.db.refresh(rider)
        return rider

    async def list_riders(
        self,
        status: Optional[RiderStatus] = None,
        district: Optional[str] = None,
        work_status: Optional[WorkStatus] = None,
    ) -> List[Rider]:
        query = select(Rider).order_by(Rider.created_at.desc())
        if status:
            query = query.where(Rider.status == status)
        if district:
            query = query.where(Rider.district == district)
        if work_status:
            query = query.where(Rider.work_status == work_status)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_rider(self, rider_id: str) -> Rider:
        rider = await self.db.get(Rider, rider_id)
        if rider is None:
            raise ResourceNotFoundError("Rider", rider_id)
        return rider

    async def review_rider(self, rider_id: str, review: RiderReview) -> Rider:
        """
        Apply an admin decision to a rider application.

        APPROVED makes the rider AVAILABLE and promotes the matching user
        (review email, else the rider's email) to RIDER. PENDING/REJECTED
        leave the user's role untouched.
        """
        rider = await self.get_rider(rider_id)

        if review.status == RiderStatus.APPROVED:
            email = review.email or rider.email
            user = await self.get_user_by_email(email)
            if user is None:
                raise ResourceNotFoundError("User", email)

            rider.status = RiderStatus.APPROVED
            if rider.work_status is None:
                rider.work_status = WorkStatus.AVAILABLE
            user.role = UserRole.RIDER
        else:
            if rider.work_status == WorkStatus.IN_DELIVERY:
                raise InvalidTransitionError("rider", rider.status.value, review.status.value)
            rider.status = review.status
            rider.work_status = None

        await self.db.commit()
        await self.db.refresh(rider)
        logger.info("Rider %s reviewed: %s", rider.id, rider.status.value)
        return rider

    async def delete_rider(self, rider_id: str) -> Rider:
        rider = await self.get_rider(rider_id)
        if rider.work_status == WorkStatus.IN_DELIVERY:
            raise ConflictError("Rider is currently delivering a parcel", details={"riderId": rider.id})
        await self.db.delete(rider)
        await self.db.commit()
        return rider
