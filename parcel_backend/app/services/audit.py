"""
Audit logging service for privileged actions.

Provides centralized logging for admin decisions.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from parcel_backend.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    ROLE_CHANGED = "ROLE_CHANGED"
    
    RIDER_APPLIED = "RIDER_APPLIED"
    RIDER_REVIEWED = "RIDER_REVIEWED"
    RIDER_DELETED = "RIDER_DELETED"
    RIDER_ASSIGNED = "RIDER_ASSIGNED"
    
    PARCEL_DELETED = "PARCEL_DELETED"
    TRACKING_REPLAYED = "TRACKING_REPLAYED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_email: Optional[str] = None,
    target_id: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Log an admin or lifecycle event to the audit log.
    
    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_email: Verified email of the caller
        target_id: ID of the record acted upon
        metadata: Additional context as JSON
        
    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_email=actor_email,
        action=action,
        target_id=target_id,
        meta_data=metadata,
    )
    
    db.add(audit_log)
    await db.commit()
    
    return audit_log
