"""
Rider API Endpoints.

Rider applications, listing, admin review and removal.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from parcel_backend.app.core.dependencies import get_current_user
from parcel_backend.app.core.guards import require_admin
from parcel_backend.app.db.session import get_db
from parcel_backend.app.domain.accounts.role_service import RoleAccessService
from parcel_backend.app.models.rider_enums import RiderStatus, WorkStatus
from parcel_backend.app.models.user import User
from parcel_backend.app.schemas.common import ActionResponse
from parcel_backend.app.schemas.rider import RiderApplication, RiderListResponse, RiderResponse, RiderReview
from parcel_backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/riders", tags=["Riders"])


@router.post("", response_model=RiderResponse, status_code=status.HTTP_201_CREATED)
async def apply_as_rider(
    application: RiderApplication,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Apply to become a rider. The application starts PENDING."""
    rider = await RoleAccessService(db).apply_as_rider(current_user["email"], application)
    
    await log_event(
        db=db,
        action=AuditAction.RIDER_APPLIED,
        actor_email=current_user["email"],
        target_id=rider.id,
        metadata={"district": rider.district}
    )
    
    return RiderResponse.model_validate(rider)


@router.get("", response_model=RiderListResponse)
async def list_riders(
    rider_status: Optional[RiderStatus] = Query(None, alias="status"),
    district: Optional[str] = Query(None, max_length=100),
    work_status: Optional[WorkStatus] = Query(None, alias="workStatus"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    riders = await RoleAccessService(db).list_riders(
        status=rider_status, district=district, work_status=work_status
    )
    return RiderListResponse(
        riders=[RiderResponse.model_validate(r) for r in riders],
        total=len(riders)
    )


@router.patch("/{rider_id}", response_model=RiderResponse)
async def review_rider(
    review: RiderReview,
    rider_id: str = Path(..., description="Rider ID"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Approve, reject or reset a rider application (admin only).
    
    Approval promotes the applicant's user role to RIDER.
    """
    rider = await RoleAccessService(db).review_rider(rider_id, review)
    
    await log_event(
        db=db,
        action=AuditAction.RIDER_REVIEWED,
        actor_email=admin.email,
        target_id=rider.id,
        metadata={"status": rider.status.value, "email": review.email or rider.email}
    )
    
    return RiderResponse.model_validate(rider)


@router.delete("/{rider_id}", response_model=ActionResponse)
async def delete_rider(
    rider_id: str = Path(..., description="Rider ID"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Remove a rider (admin only). Refused while the rider is delivering."""
    rider = await RoleAccessService(db).delete_rider(rider_id)
    
    await log_event(
        db=db,
        action=AuditAction.RIDER_DELETED,
        actor_email=admin.email,
        target_id=rider_id,
        metadata={"email": rider.email}
    )
    
    return ActionResponse(message="Rider deleted")
