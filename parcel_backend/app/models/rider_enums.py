"""
Rider Status Enumerations.
"""

import enum


class RiderStatus(str, enum.Enum):
    """Review state of a rider application."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class WorkStatus(str, enum.Enum):
    """Availability of an approved rider."""
    AVAILABLE = "available"
    IN_DELIVERY = "in_delivery"
