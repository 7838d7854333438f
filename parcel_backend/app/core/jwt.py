"""
Identity token utilities.

Bearer tokens are JWTs minted by the identity provider; the backend only
verifies them and reads the caller's email from the payload.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from parcel_backend.app.core.config import settings


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed identity token.
    
    Used by local tooling and tests to stand in for the identity provider.
    
    Args:
        data: Claims to encode (must include ``email``)
        expires_delta: Optional custom expiration time
        
    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()
    
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.access_token_expire_minutes)
    
    to_encode.update({"exp": expire})
    if settings.token_audience and "aud" not in to_encode:
        to_encode["aud"] = settings.token_audience
    
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate an identity token.
    
    Args:
        token: JWT token string to decode
        
    Returns:
        Decoded payload if the signature, expiry and audience are valid, None otherwise
    """
    options = {"verify_aud": settings.token_audience is not None}
    try:
        return jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
            audience=settings.token_audience,
            options=options,
        )
    except JWTError:
        return None
