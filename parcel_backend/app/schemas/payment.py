"""
Payment and checkout Pydantic schemas.
"""

from pydantic import EmailStr, Field
from datetime import datetime
from typing import Optional, List, Dict
from parcel_backend.app.schemas.common import CamelModel


class CheckoutSessionRequest(CamelModel):
    """
    Schema for starting a hosted checkout.
    
    Amount and names are taken from the stored parcel; the optional fields
    only override the display values sent to the provider.
    """
    parcel_id: str = Field(..., min_length=1)
    parcel_name: Optional[str] = None
    sender_email: Optional[EmailStr] = None


class CheckoutSessionResponse(CamelModel):
    url: str


class CheckoutSession(CamelModel):
    """Provider-neutral view of a checkout session."""
    id: str
    url: Optional[str] = None
    payment_status: str
    transaction_id: Optional[str] = None
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: Dict[str, str] = Field(default_factory=dict)


class PaymentConfirmationResponse(CamelModel):
    success: bool = True
    message: str
    already_processed: Optional[bool] = None
    transaction_id: Optional[str] = None
    tracking_id: Optional[str] = None
    customer_email: Optional[str] = None
    parcel_id: Optional[str] = None
    payment_status: Optional[str] = None


class PaymentResponse(CamelModel):
    id: str
    amount: float
    currency: str
    payer_name: Optional[str] = None
    customer_email: Optional[str] = None
    parcel_id: str
    parcel_name: Optional[str] = None
    transaction_id: str
    payment_status: str
    tracking_id: str
    paid_at: datetime


class PaymentListResponse(CamelModel):
    payments: List[PaymentResponse]
    total: int
