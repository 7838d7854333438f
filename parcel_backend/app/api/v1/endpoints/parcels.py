"""
Parcel API Endpoints.

Parcel submission and queries plus the rider assignment and delivery
status transitions.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession
from parcel_backend.app.core.dependencies import get_current_user
from parcel_backend.app.core.guards import get_current_account, require_admin
from parcel_backend.app.db.session import get_db
from parcel_backend.app.domain.parcels.lifecycle_service import ParcelLifecycleService
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.parcel_enums import DeliveryStatus
from parcel_backend.app.models.user import User
from parcel_backend.app.schemas.common import ActionResponse
from parcel_backend.app.schemas.parcel import (
    DeliveryStatusUpdate, ParcelCreate, ParcelListResponse, ParcelResponse, RiderAssignment
)
from parcel_backend.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/parcels", tags=["Parcels"])


@router.post("", response_model=ParcelResponse, status_code=status.HTTP_201_CREATED)
async def create_parcel(
    parcel_data: ParcelCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Submit a new (unpaid) parcel."""
    parcel = await ParcelLifecycleService(db).create_parcel(parcel_data)
    return ParcelResponse.model_validate(parcel)


@router.get("", response_model=ParcelListResponse)
async def list_parcels(
    email: Optional[EmailStr] = Query(None, description="Sender email"),
    delivery_status: Optional[DeliveryStatus] = Query(None, alias="deliveryStatus"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List parcels, newest first."""
    parcels = await ParcelLifecycleService(db).list_parcels(
        sender_email=email, delivery_status=delivery_status
    )
    return ParcelListResponse(
        parcels=[ParcelResponse.model_validate(p) for p in parcels],
        total=len(parcels)
    )


@router.get("/rider", response_model=ParcelListResponse)
async def list_rider_parcels(
    rider_email: EmailStr = Query(..., alias="riderEmail"),
    delivery_status: Optional[DeliveryStatus] = Query(None, alias="deliveryStatus"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Parcels assigned to a rider.
    
    Delivered parcels are excluded unless deliveryStatus=parcel_delivered.
    """
    parcels = await ParcelLifecycleService(db).list_rider_parcels(
        rider_email=rider_email, delivery_status=delivery_status
    )
    return ParcelListResponse(
        parcels=[ParcelResponse.model_validate(p) for p in parcels],
        total=len(parcels)
    )


@router.get("/{parcel_id}", response_model=ParcelResponse)
async def get_parcel(
    parcel_id: str = Path(..., description="Parcel ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    parcel = await ParcelLifecycleService(db).get_parcel(parcel_id)
    return ParcelResponse.model_validate(parcel)


@router.delete("/{parcel_id}", response_model=ActionResponse)
async def delete_parcel(
    parcel_id: str = Path(..., description="Parcel ID"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete a parcel.
    
    Refused while a rider is assigned and the parcel is not delivered.
    """
    await ParcelLifecycleService(db).delete_parcel(parcel_id)
    
    await log_event(
        db=db,
        action=AuditAction.PARCEL_DELETED,
        actor_email=current_user["email"],
        target_id=parcel_id
    )
    
    return ActionResponse(message="Parcel deleted")


@router.patch("/{parcel_id}", response_model=ParcelResponse)
async def assign_rider(
    assignment: RiderAssignment,
    parcel_id: str = Path(..., description="Parcel ID"),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Assign a rider to a paid parcel (admin only).
    
    Validates:
    - Parcel is paid and waiting for pickup
    - Rider is approved and available
    """
    admin_email = admin.email
    parcel = await ParcelLifecycleService(db).assign_rider(parcel_id, assignment)
    
    await log_event(
        db=db,
        action=AuditAction.RIDER_ASSIGNED,
        actor_email=admin_email,
        target_id=parcel.id,
        metadata={"rider_id": parcel.rider_id, "tracking_id": parcel.tracking_id}
    )
    
    return ParcelResponse.model_validate(parcel)


@router.patch("/{parcel_id}/status", response_model=ParcelResponse)
async def update_delivery_status(
    update: DeliveryStatusUpdate,
    parcel_id: str = Path(..., description="Parcel ID"),
    current_user: dict = Depends(get_current_user),
    account: Optional[User] = Depends(get_current_account),
    db: AsyncSession = Depends(get_db)
):
    """
    Report a delivery status (assigned rider or admin).
    
    Delivering the parcel frees the rider for the next assignment.
    """
    is_admin = account is not None and account.role == UserRole.ADMIN
    parcel = await ParcelLifecycleService(db).update_delivery_status(
        parcel_id,
        update,
        actor_email=None if is_admin else current_user["email"]
    )
    return ParcelResponse.model_validate(parcel)
