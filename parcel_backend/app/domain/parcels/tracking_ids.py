"""
Tracking ID generation.

Format: ``PKG-YYYYMMDD-XXXXXXXX`` (UTC date, 8 uppercase hex characters
drawn from the operating system CSPRNG).
"""

import secrets
from datetime import datetime, timezone
from typing import Optional

TRACKING_ID_PREFIX = "PKG"


def generate_tracking_id(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return f"{TRACKING_ID_PREFIX}-{now:%Y%m%d}-{secrets.token_hex(4).upper()}"
