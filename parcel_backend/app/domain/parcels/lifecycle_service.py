"""
Parcel Lifecycle Service (Domain Logic).

Orchestrates the parcel state machine:

    created (unpaid) -> paid (pending-pickup) -> driver_assigned
        -> rider_arriving / parcel_picked_up / in-transit -> parcel_delivered

Each transition commits its parcel/rider/payment writes first and then
appends a tracking log through the best-effort tracking service.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from parcel_backend.app.core.exceptions import (
    ConflictError,
    InsufficientPermissionsError,
    InvalidTransitionError,
    ResourceNotFoundError,
    ValidationError,
)
from parcel_backend.app.domain.parcels.tracking_ids import generate_tracking_id
from parcel_backend.app.models.parcel import Parcel
from parcel_backend.app.models.parcel_enums import (
    DeliveryStatus,
    PaymentStatus,
    RIDER_REPORTED_STATUSES,
)
from parcel_backend.app.models.payment import Payment
from parcel_backend.app.models.rider import Rider
from parcel_backend.app.models.rider_enums import RiderStatus, WorkStatus
from parcel_backend.app.schemas.parcel import DeliveryStatusUpdate, ParcelCreate, RiderAssignment
from parcel_backend.app.schemas.payment import CheckoutSessionRequest, PaymentConfirmationResponse
from parcel_backend.app.services.tracking import record_tracking_event

logger = logging.getLogger(__name__)

PAID_SESSION_STATUS = "paid"


class ParcelLifecycleService:

    def __init__(self, db: AsyncSession, payment_gateway=None, confirmation_lock=None):
        self.db = db
        self.payment_gateway = payment_gateway
        self.confirmation_lock = confirmation_lock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_parcel(self, parcel_id: str) -> Parcel:
        parcel = await self.db.get(Parcel, parcel_id)
        if parcel is None:
            raise ResourceNotFoundError("Parcel", parcel_id)
        return parcel

    async def list_parcels(
        self,
        sender_email: Optional[str] = None,
        delivery_status: Optional[DeliveryStatus] = None,
    ) -> List[Parcel]:
        query = select(Parcel).order_by(Parcel.created_at.desc())
        if sender_email:
            query = query.where(Parcel.sender_email == sender_email)
        if delivery_status:
            query = query.where(Parcel.delivery_status == delivery_status)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_rider_parcels(
        self,
        rider_email: str,
        delivery_status: Optional[DeliveryStatus] = None,
    ) -> List[Parcel]:
        """
        Parcels assigned to a rider.

        Delivered parcels are hidden unless PARCEL_DELIVERED is asked for.
        """
        query = select(Parcel).where(Parcel.rider_email == rider_email).order_by(Parcel.created_at.desc())
        if delivery_status:
            query = query.where(Parcel.delivery_status == delivery_status)
        else:
            query = query.where(Parcel.delivery_status != DeliveryStatus.PARCEL_DELIVERED)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def create_parcel(self, data: ParcelCreate) -> Parcel:
        """Submit a parcel: unpaid, no tracking ID, no delivery status."""
        parcel = Parcel(
            **data.model_dump(),
            payment_status=PaymentStatus.UNPAID,
            delivery_status=None,
            tracking_id=None,
        )
        self.db.add(parcel)
        await self.db.commit()
        await self.db.refresh(parcel)
        return parcel

    async def create_checkout_session(self, request: CheckoutSessionRequest) -> str:
        """
        Start a hosted checkout for an unpaid parcel.

        Returns:
            The provider's checkout URL
        """
        parcel = await self.get_parcel(request.parcel_id)
        if parcel.payment_status == PaymentStatus.PAID:
            raise ConflictError("Parcel is already paid", details={"parcelId": parcel.id})

        session = await self.payment_gateway.create_checkout_session(
            parcel_id=parcel.id,
            parcel_name=request.parcel_name or parcel.parcel_name,
            amount_cents=int(round(parcel.cost * 100)),
            customer_email=request.sender_email or parcel.sender_email,
            sender_name=parcel.sender_name,
        )
        if not session.url:
            raise ConflictError("Checkout session has no redirect URL", details={"sessionId": session.id})
        return session.url

    async def confirm_payment(self, session_id: str) -> PaymentConfirmationResponse:
        """
        Confirm a checkout session.

        Flow:
        1. Retrieve the session from the payment gateway
        2. Idempotency check on the transaction ID
        3. Ignore sessions that are not paid
        4. Under the confirmation lock: mark the parcel paid and insert the
           Payment in one transaction
        5. Append the ``pending-pickup`` tracking log
        """
        session = await self.payment_gateway.retrieve_checkout_session(session_id)

        existing = await self._find_payment(session.transaction_id)
        if existing is not None:
            return self._already_processed(existing)

        if session.payment_status != PAID_SESSION_STATUS:
            logger.info("Checkout session %s not paid (status=%s)", session_id, session.payment_status)
            return PaymentConfirmationResponse(
                message="Payment not completed",
                payment_status=session.payment_status,
            )

        if not session.transaction_id:
            raise ValidationError("Paid session carries no transaction ID", details={"sessionId": session_id})
        parcel_id = session.metadata.get("parcelId")
        if not parcel_id:
            raise ValidationError("Checkout session is not linked to a parcel", details={"sessionId": session_id})

        async with self.confirmation_lock.hold(session_id):
            # A racing request may have finished before we took the lock
            existing = await self._find_payment(session.transaction_id)
            if existing is not None:
                return self._already_processed(existing)

            parcel = await self.get_parcel(parcel_id)
            if parcel.payment_status == PaymentStatus.PAID:
                # Paid by this same session in a race we lost: still idempotent
                settled = await self._find_parcel_payment(parcel.id)
                if settled is not None and settled.transaction_id == session.transaction_id:
                    return self._already_processed(settled)
                raise ConflictError("Parcel is already paid", details={"parcelId": parcel.id})

            tracking_id = generate_tracking_id()
            parcel.payment_status = PaymentStatus.PAID
            parcel.delivery_status = DeliveryStatus.PENDING_PICKUP
            parcel.tracking_id = tracking_id

            payment = Payment(
                amount=(session.amount_total or 0) / 100,
                currency=session.currency or "",
                payer_name=session.metadata.get("senderName") or parcel.sender_name,
                customer_email=session.customer_email,
                parcel_id=parcel.id,
                parcel_name=session.metadata.get("parcelName") or parcel.parcel_name,
                transaction_id=session.transaction_id,
                payment_status=session.payment_status,
                tracking_id=tracking_id,
            )
            self.db.add(payment)

            try:
                await self.db.commit()
            except IntegrityError:
                await self.db.rollback()
                existing = await self._find_payment(session.transaction_id)
                if existing is None:
                    raise
                logger.info("Concurrent confirmation of %s resolved by unique constraint", session.transaction_id)
                return self._already_processed(existing)

            logger.info(
                "Payment %s confirmed for parcel %s (tracking %s)",
                session.transaction_id, parcel_id, tracking_id,
            )
            await record_tracking_event(self.db, tracking_id, DeliveryStatus.PENDING_PICKUP)

        return PaymentConfirmationResponse(
            message="Payment confirmed",
            already_processed=False,
            transaction_id=session.transaction_id,
            tracking_id=tracking_id,
            customer_email=session.customer_email,
            parcel_id=parcel_id,
            payment_status=session.payment_status,
        )

    async def assign_rider(self, parcel_id: str, assignment: RiderAssignment) -> Parcel:
        """
        Assign an approved, available rider to a paid parcel.

        Validates:
        - Parcel exists, is paid and waiting for pickup
        - Rider exists, is approved and available
        - Supplied rider email / tracking ID match the records
        """
        parcel = await self.get_parcel(parcel_id)
        if parcel.payment_status != PaymentStatus.PAID or parcel.delivery_status != DeliveryStatus.PENDING_PICKUP:
            current = parcel.delivery_status.value if parcel.delivery_status else parcel.payment_status.value
            raise InvalidTransitionError("parcel", current, DeliveryStatus.DRIVER_ASSIGNED.value)
        if assignment.tracking_id and assignment.tracking_id != parcel.tracking_id:
            raise ValidationError("Tracking ID does not match parcel", details={"parcelId": parcel.id})

        rider = await self._get_rider(assignment.rider_id)
        if rider.status != RiderStatus.APPROVED:
            raise ConflictError("Rider is not approved", details={"riderId": rider.id, "status": rider.status.value})
        if rider.work_status != WorkStatus.AVAILABLE:
            raise ConflictError("Rider is not available", details={"riderId": rider.id})
        if assignment.rider_email and assignment.rider_email != rider.email:
            raise ValidationError("Rider email does not match rider", details={"riderId": rider.id})

        parcel.delivery_status = DeliveryStatus.DRIVER_ASSIGNED
        parcel.rider_id = rider.id
        parcel.rider_name = rider.name
        parcel.rider_email = rider.email
        rider.work_status = WorkStatus.IN_DELIVERY
        await self.db.commit()

        logger.info("Rider %s assigned to parcel %s", rider.id, parcel.id)
        await record_tracking_event(self.db, parcel.tracking_id, DeliveryStatus.DRIVER_ASSIGNED)
        await self.db.refresh(parcel)
        return parcel

    async def update_delivery_status(
        self,
        parcel_id: str,
        update: DeliveryStatusUpdate,
        actor_email: Optional[str] = None,
    ) -> Parcel:
        """
        Record a rider-reported delivery status.

        Args:
            parcel_id: Parcel being delivered
            update: New status plus the rider reporting it
            actor_email: When given, must be the assigned rider's email
                (admins pass None)

        On PARCEL_DELIVERED the rider becomes AVAILABLE again.
        """
        if update.delivery_status not in RIDER_REPORTED_STATUSES:
            raise ValidationError(
                f"Status '{update.delivery_status.value}' cannot be reported by a rider",
                details={"allowed": sorted(s.value for s in RIDER_REPORTED_STATUSES)},
            )

        parcel = await self.get_parcel(parcel_id)
        if parcel.rider_id is None:
            current = parcel.delivery_status.value if parcel.delivery_status else None
            raise InvalidTransitionError("parcel", current, update.delivery_status.value)
        if parcel.rider_id != update.rider_id:
            raise ValidationError("Rider is not assigned to this parcel", details={"riderId": update.rider_id})
        if update.tracking_id and update.tracking_id != parcel.tracking_id:
            raise ValidationError("Tracking ID does not match parcel", details={"parcelId": parcel.id})
        if parcel.delivery_status is not None and parcel.delivery_status.is_terminal:
            raise InvalidTransitionError("parcel", parcel.delivery_status.value, update.delivery_status.value)

        rider = await self._get_rider(parcel.rider_id)
        if actor_email is not None and rider.email != actor_email:
            raise InsufficientPermissionsError("Only the assigned rider can update this parcel")

        parcel.delivery_status = update.delivery_status
        if update.delivery_status.is_terminal:
            rider.work_status = WorkStatus.AVAILABLE
        await self.db.commit()

        logger.info("Parcel %s moved to %s", parcel.id, update.delivery_status.value)
        await record_tracking_event(self.db, parcel.tracking_id, update.delivery_status)
        await self.db.refresh(parcel)
        return parcel

    async def delete_parcel(self, parcel_id: str) -> None:
        """
        Delete a parcel.

        Parcels with an active rider assignment cannot be deleted, so the
        rider is never left IN_DELIVERY. Payments and tracking logs are kept.
        """
        parcel = await self.get_parcel(parcel_id)
        if parcel.has_active_assignment:
            raise ConflictError(
                "Parcel has an active rider assignment",
                details={"parcelId": parcel.id, "riderId": parcel.rider_id},
            )
        await self.db.delete(parcel)
        await self.db.commit()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get_rider(self, rider_id: str) -> Rider:
        rider = await self.db.get(Rider, rider_id)
        if rider is None:
            raise ResourceNotFoundError("Rider", rider_id)
        return rider

    async def _find_payment(self, transaction_id: Optional[str]) -> Optional[Payment]:
        if not transaction_id:
            return None
        result = await self.db.execute(select(Payment).where(Payment.transaction_id == transaction_id))
        return result.scalar_one_or_none()

    async def _find_parcel_payment(self, parcel_id: str) -> Optional[Payment]:
        result = await self.db.execute(
            select(Payment).where(Payment.parcel_id == parcel_id).order_by(Payment.paid_at.desc())
        )
        return result.scalars().first()

    @staticmethod
    def _already_processed(payment: Payment) -> PaymentConfirmationResponse:
        return PaymentConfirmationResponse(
            message="Payment already processed",
            already_processed=True,
            transaction_id=payment.transaction_id,
            tracking_id=payment.tracking_id,
            customer_email=payment.customer_email,
            parcel_id=payment.parcel_id,
            payment_status=payment.payment_status,
        )
