"""
Payment API Endpoints.

Hosted checkout creation, payment confirmation and payment history.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from pydantic import EmailStr
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from parcel_backend.app.core.dependencies import get_confirmation_lock, get_current_user, get_payment_gateway
from parcel_backend.app.core.guards import enforce_same_identity
from parcel_backend.app.db.session import get_db
from parcel_backend.app.domain.parcels.lifecycle_service import ParcelLifecycleService
from parcel_backend.app.models.payment import Payment
from parcel_backend.app.schemas.payment import (
    CheckoutSessionRequest, CheckoutSessionResponse, PaymentConfirmationResponse,
    PaymentListResponse, PaymentResponse
)

router = APIRouter(tags=["Payments"])


@router.post("/create-checkout-session", response_model=CheckoutSessionResponse)
async def create_checkout_session(
    checkout: CheckoutSessionRequest,
    current_user: dict = Depends(get_current_user),
    payment_gateway=Depends(get_payment_gateway),
    db: AsyncSession = Depends(get_db)
):
    """Create a hosted checkout session for a parcel and return its URL."""
    service = ParcelLifecycleService(db, payment_gateway=payment_gateway)
    url = await service.create_checkout_session(checkout)
    return CheckoutSessionResponse(url=url)


@router.patch(
    "/payment-success",
    response_model=PaymentConfirmationResponse,
    response_model_exclude_none=True,
)
async def confirm_payment(
    session_id: str = Query(..., min_length=1),
    current_user: dict = Depends(get_current_user),
    payment_gateway=Depends(get_payment_gateway),
    confirmation_lock=Depends(get_confirmation_lock),
    db: AsyncSession = Depends(get_db)
):
    """
    Confirm a checkout session after the provider redirect.
    
    Idempotent: repeating the call returns the original tracking ID.
    """
    service = ParcelLifecycleService(
        db, payment_gateway=payment_gateway, confirmation_lock=confirmation_lock
    )
    return await service.confirm_payment(session_id)


@router.get("/payments", response_model=PaymentListResponse)
async def list_payments(
    email: Optional[EmailStr] = Query(None, description="Payer email"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Payment history, newest first.
    
    Filtering by an email other than the caller's is forbidden.
    """
    enforce_same_identity(current_user, email)
    
    query = select(Payment).order_by(Payment.paid_at.desc())
    if email:
        query = query.where(Payment.customer_email == email)
    
    result = await db.execute(query)
    payments = result.scalars().all()
    
    return PaymentListResponse(
        payments=[PaymentResponse.model_validate(p) for p in payments],
        total=len(payments)
    )
