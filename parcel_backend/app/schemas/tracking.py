"""
Tracking log Pydantic schemas.
"""

from datetime import datetime
from typing import List
from parcel_backend.app.models.parcel_enums import DeliveryStatus
from parcel_backend.app.schemas.common import CamelModel


class TrackingLogResponse(CamelModel):
    id: str
    tracking_id: str
    status: DeliveryStatus
    details: str
    created_at: datetime


class TrackingHistoryResponse(CamelModel):
    tracking_id: str
    logs: List[TrackingLogResponse]


class TrackingRetryResponse(CamelModel):
    success: bool = True
    retried: int
    processed: int
