"""
User roles enumeration.

Defines the role types for the parcel delivery system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.
    
    Roles:
        USER: Default role given on first sign-in (sends parcels)
        RIDER: Approved delivery rider
        ADMIN: Manages riders, assignments and roles
    """
    USER = "user"
    RIDER = "rider"
    ADMIN = "admin"


def enum_values(enum_cls):
    """Persist enum values (not member names) in Enum columns."""
    return [member.value for member in enum_cls]
