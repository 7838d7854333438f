"""
Tracking log database model.

Append-only history of a parcel's delivery status changes.
"""

from sqlalchemy import Column, String, DateTime, Enum
from parcel_backend.app.db.session import Base
from parcel_backend.app.db.defaults import generate_id, utcnow
from parcel_backend.app.models.enums import enum_values
from parcel_backend.app.models.parcel_enums import DeliveryStatus


class TrackingLog(Base):
    """One row per lifecycle transition, keyed by the public tracking ID."""
    __tablename__ = "tracking_logs"
    
    id = Column(String(32), primary_key=True, default=generate_id)
    tracking_id = Column(String(32), nullable=False, index=True)
    status = Column(
        Enum(DeliveryStatus, name="tracking_status", values_callable=enum_values),
        nullable=False,
    )
    details = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    
    def __repr__(self):
        return f"<TrackingLog(tracking='{self.tracking_id}', status='{self.status.value}')>"
