"""
Tracking API Endpoints.

Public tracking history and admin replay of dead-lettered tracking writes.
"""

from fastapi import APIRouter, Depends, Path
from sqlalchemy.ext.asyncio import AsyncSession
from parcel_backend.app.core.guards import require_admin
from parcel_backend.app.db.session import get_db
from parcel_backend.app.models.user import User
from parcel_backend.app.schemas.tracking import TrackingHistoryResponse, TrackingLogResponse, TrackingRetryResponse
from parcel_backend.app.services.audit import log_event, AuditAction
from parcel_backend.app.services.tracking import get_tracking_history, retry_failed_tracking_events

router = APIRouter(prefix="/trackings", tags=["Tracking"])


@router.get("/{tracking_id}/logs", response_model=TrackingHistoryResponse)
async def tracking_history(
    tracking_id: str = Path(..., min_length=1, description="Tracking ID"),
    db: AsyncSession = Depends(get_db)
):
    """Status history of a parcel, oldest first. No authentication required."""
    logs = await get_tracking_history(db, tracking_id)
    return TrackingHistoryResponse(
        tracking_id=tracking_id,
        logs=[TrackingLogResponse.model_validate(log) for log in logs]
    )


@router.post("/retry-failed", response_model=TrackingRetryResponse)
async def retry_failed(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Replay tracking log writes parked in the dead-letter queue (admin only)."""
    admin_email = admin.email
    retried, processed = await retry_failed_tracking_events(db)
    
    await log_event(
        db=db,
        action=AuditAction.TRACKING_REPLAYED,
        actor_email=admin_email,
        metadata={"retried": retried, "processed": processed}
    )
    
    return TrackingRetryResponse(retried=retried, processed=processed)
