"""
Tracking log service.

Appends status-change records for parcels. The coordinator calls
``record_tracking_event``: a failing append never fails the enclosing
transition; it is logged and parked in the dead-letter queue so
``retry_failed_tracking_events`` can replay it.
"""

import logging
import re
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.config import settings
from parcel_backend.app.db.defaults import utcnow
from parcel_backend.app.models.dlq import DeadLetterQueue, DLQStatus
from parcel_backend.app.models.parcel_enums import DeliveryStatus
from parcel_backend.app.models.tracking_log import TrackingLog

logger = logging.getLogger(__name__)

TRACKING_TASK_NAME = "tracking_log.append"

_SEPARATORS = re.compile(r"[-_]+")


def format_status_detail(status: DeliveryStatus) -> str:
    """Display text for a status code: ``pending-pickup`` -> ``pending pickup``."""
    return _SEPARATORS.sub(" ", status.value).strip()


async def append_tracking_log(db: AsyncSession, tracking_id: str, status: DeliveryStatus) -> TrackingLog:
    """Insert and commit one tracking log row."""
    log = TrackingLog(
        tracking_id=tracking_id,
        status=status,
        details=format_status_detail(status),
    )
    db.add(log)
    await db.commit()
    return log


async def record_tracking_event(
    db: AsyncSession,
    tracking_id: str,
    status: DeliveryStatus,
) -> Optional[TrackingLog]:
    """
    Best-effort tracking append used by lifecycle transitions.
    
    Must run after the transition itself has been committed: on failure the
    session is rolled back, which expires loaded instances.
    
    Returns:
        The new TrackingLog, or None when the write was dead-lettered
    """
    try:
        return await append_tracking_log(db, tracking_id, status)
    except SQLAlchemyError as exc:
        await db.rollback()
        logger.exception("Tracking log append failed for %s (%s)", tracking_id, status.value)
        await _dead_letter(db, tracking_id, status, exc)
        return None


async def _dead_letter(db: AsyncSession, tracking_id: str, status: DeliveryStatus, exc: Exception) -> None:
    item = DeadLetterQueue(
        task_name=TRACKING_TASK_NAME,
        error_message=f"{type(exc).__name__}: {exc}",
        payload={"trackingId": tracking_id, "status": status.value},
        status=DLQStatus.FAILED,
    )
    db.add(item)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.critical(
            "Tracking event lost: could not dead-letter %s (%s)", tracking_id, status.value, exc_info=True
        )


async def get_tracking_history(db: AsyncSession, tracking_id: str) -> List[TrackingLog]:
    result = await db.execute(
        select(TrackingLog)
        .where(TrackingLog.tracking_id == tracking_id)
        .order_by(TrackingLog.created_at.asc())
    )
    return list(result.scalars().all())


async def retry_failed_tracking_events(db: AsyncSession, max_attempts: int = None) -> tuple[int, int]:
    """
    Replay dead-lettered tracking appends.
    
    Args:
        db: Database session
        max_attempts: Retries before an item is ARCHIVED
        
    Returns:
        (retried, processed) counts
    """
    max_attempts = max_attempts or settings.tracking_retry_max_attempts
    result = await db.execute(
        select(DeadLetterQueue)
        .where(
            DeadLetterQueue.task_name == TRACKING_TASK_NAME,
            DeadLetterQueue.status.in_([DLQStatus.FAILED, DLQStatus.RETRYING]),
        )
        .order_by(DeadLetterQueue.created_at.asc())
    )
    # Plain values: a failed replay rolls the session back and expires instances
    items = [(item.id, item.payload or {}) for item in result.scalars().all()]
    
    retried = processed = 0
    for item_id, payload in items:
        retried += 1
        try:
            status = DeliveryStatus(payload.get("status"))
            db.add(TrackingLog(
                tracking_id=payload["trackingId"],
                status=status,
                details=format_status_detail(status),
            ))
            item = await db.get(DeadLetterQueue, item_id)
            item.status = DLQStatus.PROCESSED
            item.last_retry_at = utcnow()
            await db.commit()
            processed += 1
        except (SQLAlchemyError, KeyError, ValueError) as exc:
            await db.rollback()
            await _record_retry_failure(db, item_id, exc, max_attempts)
    
    logger.info("Replayed %d dead-lettered tracking events (%d processed)", retried, processed)
    return retried, processed


async def _record_retry_failure(db: AsyncSession, item_id: str, exc: Exception, max_attempts: int) -> None:
    item = await db.get(DeadLetterQueue, item_id)
    item.retry_count = (item.retry_count or 0) + 1
    item.last_retry_at = utcnow()
    item.error_message = f"{type(exc).__name__}: {exc}"
    if item.retry_count >= max_attempts:
        item.status = DLQStatus.ARCHIVED
        logger.error("Giving up on tracking event %s after %d attempts", item_id, item.retry_count)
    else:
        item.status = DLQStatus.RETRYING
    await db.commit()
