"""
Parcel database model.

A parcel is created unpaid, receives its tracking ID when payment is
confirmed, and is then carried by at most one assigned rider.
"""

from sqlalchemy import Column, String, Float, DateTime, Enum
from parcel_backend.app.db.session import Base
from parcel_backend.app.db.defaults import generate_id, utcnow
from parcel_backend.app.models.enums import enum_values
from parcel_backend.app.models.parcel_enums import (
    ACTIVE_ASSIGNMENT_STATUSES, DeliveryStatus, ParcelType, PaymentStatus,
)


class Parcel(Base):
    """
    Parcel model.
    
    Invariant: tracking_id is set if and only if payment_status is PAID.
    """
    __tablename__ = "parcels"
    
    id = Column(String(32), primary_key=True, default=generate_id)
    
    # Parcel description
    parcel_name = Column(String(255), nullable=False)
    parcel_type = Column(Enum(ParcelType, name="parcel_type", values_callable=enum_values), nullable=False)
    parcel_weight = Column(Float, nullable=True)
    
    # Sender
    sender_name = Column(String(255), nullable=False)
    sender_email = Column(String(255), nullable=False, index=True)
    sender_region = Column(String(100), nullable=True)
    sender_district = Column(String(100), nullable=True)
    sender_address = Column(String(500), nullable=True)
    sender_phone = Column(String(50), nullable=True)
    
    # Receiver
    receiver_name = Column(String(255), nullable=False)
    receiver_email = Column(String(255), nullable=True)
    receiver_region = Column(String(100), nullable=True)
    receiver_district = Column(String(100), nullable=True)
    receiver_address = Column(String(500), nullable=False)
    receiver_phone = Column(String(50), nullable=True)
    
    cost = Column(Float, nullable=False)
    
    # Lifecycle
    payment_status = Column(
        Enum(PaymentStatus, name="payment_status", values_callable=enum_values),
        default=PaymentStatus.UNPAID,
        nullable=False,
        index=True,
    )
    delivery_status = Column(
        Enum(DeliveryStatus, name="delivery_status", values_callable=enum_values),
        nullable=True,
        index=True,
    )
    tracking_id = Column(String(32), unique=True, nullable=True, index=True)
    
    # Rider assignment (denormalized for rider dashboards)
    rider_id = Column(String(32), nullable=True, index=True)
    rider_name = Column(String(255), nullable=True)
    rider_email = Column(String(255), nullable=True, index=True)
    
    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    
    @property
    def has_active_assignment(self) -> bool:
        return self.rider_id is not None and self.delivery_status in ACTIVE_ASSIGNMENT_STATUSES
    
    def __repr__(self):
        status = self.delivery_status.value if self.delivery_status else None
        return f"<Parcel(id={self.id}, tracking='{self.tracking_id}', status='{status}')>"
