"""
Parcel status enumerations.
"""

import enum


class PaymentStatus(str, enum.Enum):
    UNPAID = "unpaid"
    PAID = "paid"


class ParcelType(str, enum.Enum):
    DOCUMENT = "document"
    NON_DOCUMENT = "non-document"


class DeliveryStatus(str, enum.Enum):
    """
    Delivery status enumeration.
    
    Status flow:
        PENDING_PICKUP → DRIVER_ASSIGNED → RIDER_ARRIVING → PARCEL_PICKED_UP
        → IN_TRANSIT → PARCEL_DELIVERED
    Riders may skip intermediate steps; PARCEL_DELIVERED is terminal.
    """
    PENDING_PICKUP = "pending-pickup"
    DRIVER_ASSIGNED = "driver_assigned"
    RIDER_ARRIVING = "rider_arriving"
    PARCEL_PICKED_UP = "parcel_picked_up"
    IN_TRANSIT = "in-transit"
    PARCEL_DELIVERED = "parcel_delivered"

    @property
    def is_terminal(self) -> bool:
        return self is DeliveryStatus.PARCEL_DELIVERED


# Statuses a rider can report through the status endpoint
RIDER_REPORTED_STATUSES = frozenset({
    DeliveryStatus.RIDER_ARRIVING,
    DeliveryStatus.PARCEL_PICKED_UP,
    DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.PARCEL_DELIVERED,
})

# Statuses during which a rider is bound to the parcel
ACTIVE_ASSIGNMENT_STATUSES = frozenset({
    DeliveryStatus.DRIVER_ASSIGNED,
    DeliveryStatus.RIDER_ARRIVING,
    DeliveryStatus.PARCEL_PICKED_UP,
    DeliveryStatus.IN_TRANSIT,
})
