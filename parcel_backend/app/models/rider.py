"""
Rider database model.

Applications start PENDING; an admin approval makes the rider AVAILABLE.
"""

from sqlalchemy import Column, String, DateTime, Enum
from parcel_backend.app.db.session import Base
from parcel_backend.app.db.defaults import generate_id, utcnow
from parcel_backend.app.models.enums import enum_values
from parcel_backend.app.models.rider_enums import RiderStatus, WorkStatus


class Rider(Base):
    """
    Rider model.
    
    work_status is IN_DELIVERY exactly while one parcel references this rider
    with a non-terminal delivery status.
    """
    __tablename__ = "riders"
    
    id = Column(String(32), primary_key=True, default=generate_id)
    
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    region = Column(String(100), nullable=True)
    district = Column(String(100), nullable=True, index=True)
    nid = Column(String(100), nullable=True)
    bike_model = Column(String(100), nullable=True)
    bike_registration = Column(String(100), nullable=True)
    
    status = Column(
        Enum(RiderStatus, name="rider_status", values_callable=enum_values),
        default=RiderStatus.PENDING,
        nullable=False,
        index=True,
    )
    work_status = Column(
        Enum(WorkStatus, name="work_status", values_callable=enum_values),
        nullable=True,
        index=True,
    )
    
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
    
    def __repr__(self):
        return f"<Rider(id={self.id}, email='{self.email}', status='{self.status.value}')>"
