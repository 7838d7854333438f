"""
Audit Log Database Model.

Tracks privileged actions (role changes, rider reviews, deletions).
"""

from sqlalchemy import Column, String, DateTime, JSON
from parcel_backend.app.db.session import Base
from parcel_backend.app.db.defaults import generate_id, utcnow


class AuditLog(Base):
    """
    Audit log model for admin actions.
    
    Events logged:
    - ROLE_CHANGED
    - RIDER_APPLIED / RIDER_REVIEWED / RIDER_DELETED
    - RIDER_ASSIGNED
    - PARCEL_DELETED
    """
    __tablename__ = "audit_logs"
    
    id = Column(String(32), primary_key=True, default=generate_id)
    
    # Who performed the action (None for system actions)
    actor_email = Column(String(255), index=True, nullable=True)
    
    action = Column(String(100), nullable=False, index=True)
    
    # Record the action was applied to
    target_id = Column(String(32), index=True, nullable=True)
    
    meta_data = Column(JSON, nullable=True)
    
    timestamp = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    
    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_email}, target={self.target_id})>"
