"""
Rider Pydantic schemas.
"""

from pydantic import EmailStr, Field
from datetime import datetime
from typing import Optional, List
from parcel_backend.app.models.rider_enums import RiderStatus, WorkStatus
from parcel_backend.app.schemas.common import CamelModel


class RiderApplication(CamelModel):
    """Schema for applying as a rider. The email comes from the verified identity."""
    name: str = Field(..., min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    region: Optional[str] = Field(None, max_length=100)
    district: str = Field(..., min_length=1, max_length=100)
    nid: Optional[str] = Field(None, max_length=100)
    bike_model: Optional[str] = Field(None, max_length=100)
    bike_registration: Optional[str] = Field(None, max_length=100)


class RiderReview(CamelModel):
    """Admin decision on a rider application."""
    status: RiderStatus
    email: Optional[EmailStr] = None


class RiderResponse(CamelModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    region: Optional[str] = None
    district: Optional[str] = None
    nid: Optional[str] = None
    bike_model: Optional[str] = None
    bike_registration: Optional[str] = None
    status: RiderStatus
    work_status: Optional[WorkStatus] = None
    created_at: datetime
    updated_at: datetime


class RiderListResponse(CamelModel):
    riders: List[RiderResponse]
    total: int
