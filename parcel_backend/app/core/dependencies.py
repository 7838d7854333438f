"""
Authentication and client dependencies for FastAPI.

Routes declare what they need (verified identity, payment gateway,
confirmation lock) and receive the process-wide instances built at startup.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from parcel_backend.app.core.exceptions import AuthenticationError
from parcel_backend.app.core.jwt import decode_access_token
from parcel_backend.app.core.redis_client import get_redis
from parcel_backend.app.services.confirmation_lock import ConfirmationLock
from parcel_backend.app.services.payment_gateway import StripePaymentGateway

# HTTP Bearer security scheme; errors are raised by us to keep the 401 body stable
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> dict:
    """
    FastAPI dependency verifying the ``Authorization: Bearer <token>`` header.
    
    Returns:
        Decoded token payload; ``payload["email"]`` is the caller identity
        
    Raises:
        AuthenticationError: 401 if the header is missing, not Bearer,
        or the token cannot be verified
    """
    if credentials is None:
        raise AuthenticationError()
    
    payload = decode_access_token(credentials.credentials)
    if payload is None or not payload.get("email"):
        raise AuthenticationError()
    
    return payload


def get_payment_gateway(request: Request) -> StripePaymentGateway:
    """Payment gateway constructed in the application lifespan."""
    return request.app.state.payment_gateway


async def get_confirmation_lock(redis=Depends(get_redis)) -> ConfirmationLock:
    return ConfirmationLock(redis)
