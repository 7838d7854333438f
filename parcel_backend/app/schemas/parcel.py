"""
Parcel Pydantic schemas.

Defines request and response models for parcel management and the
lifecycle transitions (rider assignment, delivery status updates).
"""

from pydantic import EmailStr, Field
from datetime import datetime
from typing import Optional, List
from parcel_backend.app.models.parcel_enums import ParcelType, PaymentStatus, DeliveryStatus
from parcel_backend.app.schemas.common import CamelModel


class ParcelCreate(CamelModel):
    """Schema for submitting a new parcel."""
    parcel_name: str = Field(..., min_length=1, max_length=255)
    parcel_type: ParcelType
    parcel_weight: Optional[float] = Field(None, gt=0, description="Weight in kilograms")
    
    sender_name: str = Field(..., min_length=1, max_length=255)
    sender_email: EmailStr
    sender_region: Optional[str] = Field(None, max_length=100)
    sender_district: Optional[str] = Field(None, max_length=100)
    sender_address: Optional[str] = Field(None, max_length=500)
    sender_phone: Optional[str] = Field(None, max_length=50)
    
    receiver_name: str = Field(..., min_length=1, max_length=255)
    receiver_email: Optional[EmailStr] = None
    receiver_region: Optional[str] = Field(None, max_length=100)
    receiver_district: Optional[str] = Field(None, max_length=100)
    receiver_address: str = Field(..., min_length=1, max_length=500)
    receiver_phone: Optional[str] = Field(None, max_length=50)
    
    cost: float = Field(..., gt=0)


class ParcelResponse(CamelModel):
    """Schema for parcel response."""
    id: str
    parcel_name: str
    parcel_type: ParcelType
    parcel_weight: Optional[float] = None
    sender_name: str
    sender_email: str
    sender_region: Optional[str] = None
    sender_district: Optional[str] = None
    sender_address: Optional[str] = None
    sender_phone: Optional[str] = None
    receiver_name: str
    receiver_email: Optional[str] = None
    receiver_region: Optional[str] = None
    receiver_district: Optional[str] = None
    receiver_address: str
    receiver_phone: Optional[str] = None
    cost: float
    payment_status: PaymentStatus
    delivery_status: Optional[DeliveryStatus] = None
    tracking_id: Optional[str] = None
    rider_id: Optional[str] = None
    rider_name: Optional[str] = None
    rider_email: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ParcelListResponse(CamelModel):
    parcels: List[ParcelResponse]
    total: int


class RiderAssignment(CamelModel):
    """Schema for assigning an approved rider to a paid parcel."""
    rider_id: str = Field(..., min_length=1)
    rider_email: Optional[EmailStr] = None
    rider_name: Optional[str] = None
    tracking_id: Optional[str] = None


class DeliveryStatusUpdate(CamelModel):
    """Schema for a rider-reported delivery status change."""
    delivery_status: DeliveryStatus
    rider_id: str = Field(..., min_length=1)
    tracking_id: Optional[str] = None
