"""
Column default factories shared by the models.
"""

import uuid
from datetime import datetime, timezone


def generate_id() -> str:
    """Opaque record identifier (32 hex characters)."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
