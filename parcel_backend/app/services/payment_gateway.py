"""
Payment gateway client (Stripe Checkout).

Wraps the blocking Stripe SDK: calls run in the Starlette thread pool and
pass through a circuit breaker. Provider failures surface as
UpstreamServiceError so handlers answer 502 with a stable body; requests the
provider rejects (unknown session, bad parameter) answer 404/400 and do not
count against the breaker.
"""

import logging
from typing import Any, Dict, Optional

import stripe
from starlette.concurrency import run_in_threadpool

from parcel_backend.app.core.config import settings
from parcel_backend.app.core.exceptions import ResourceNotFoundError, UpstreamServiceError, ValidationError
from parcel_backend.app.core.reliability import CircuitBreaker, CircuitOpenError
from parcel_backend.app.schemas.payment import CheckoutSession

logger = logging.getLogger(__name__)

PAYMENT_SERVICE_NAME = "payment-gateway"

# Rejections of our own request; they say nothing about provider health
CLIENT_ERRORS = (stripe.InvalidRequestError,)


def _metadata(session: Any) -> Dict[str, str]:
    metadata = getattr(session, "metadata", None) or {}
    return {key: str(metadata[key]) for key in metadata.keys()}


def _transaction_id(session: Any) -> Optional[str]:
    payment_intent = getattr(session, "payment_intent", None)
    if payment_intent is None or isinstance(payment_intent, str):
        return payment_intent
    # Expanded PaymentIntent object
    return getattr(payment_intent, "id", None)


def _customer_email(session: Any) -> Optional[str]:
    email = getattr(session, "customer_email", None)
    if email:
        return email
    details = getattr(session, "customer_details", None)
    return getattr(details, "email", None) if details else None


class StripePaymentGateway:
    """
    Hosted checkout sessions on Stripe.
    
    Constructed once at startup and injected into the parcel lifecycle
    service through ``get_payment_gateway``.
    """
    
    def __init__(
        self,
        api_key: str,
        currency: str = "usd",
        site_domain: str = "",
        circuit_breaker: Optional[CircuitBreaker] = None,
    ):
        self.api_key = api_key
        self.currency = currency
        self.site_domain = site_domain.rstrip("/")
        self.circuit_breaker = circuit_breaker or CircuitBreaker(
            PAYMENT_SERVICE_NAME,
            failure_threshold=settings.payment_failure_threshold,
            reset_timeout=settings.payment_reset_timeout,
            excluded_exceptions=CLIENT_ERRORS,
        )

    @classmethod
    def from_settings(cls) -> "StripePaymentGateway":
        return cls(
            api_key=settings.stripe_secret_key,
            currency=settings.payment_currency,
            site_domain=settings.site_domain,
        )

    async def create_checkout_session(
        self,
        parcel_id: str,
        parcel_name: str,
        amount_cents: int,
        customer_email: Optional[str],
        sender_name: Optional[str] = None,
    ) -> CheckoutSession:
        """Create a one-item hosted checkout for a parcel."""
        params = {
            "line_items": [
                {
                    "price_data": {
                        "currency": self.currency,
                        "product_data": {"name": f"Parcel Payment for {parcel_name}"},
                        "unit_amount": amount_cents,
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "metadata": {
                "parcelId": parcel_id,
                "parcelName": parcel_name,
                "senderName": sender_name or "",
            },
            "success_url": f"{self.site_domain}/dashboard/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{self.site_domain}/dashboard/payment-cancelled",
        }
        if customer_email:
            params["customer_email"] = customer_email
        
        session = await self._call(stripe.checkout.Session.create, api_key=self.api_key, **params)
        logger.info("Created checkout session %s for parcel %s", session.id, parcel_id)
        return self._to_checkout_session(session)

    async def retrieve_checkout_session(self, session_id: str) -> CheckoutSession:
        session = await self._call(
            stripe.checkout.Session.retrieve, session_id, api_key=self.api_key, resource_id=session_id
        )
        return self._to_checkout_session(session)

    async def _call(self, func, *args, resource_id: Optional[str] = None, **kwargs):
        try:
            return await self.circuit_breaker.call(run_in_threadpool, func, *args, **kwargs)
        except stripe.InvalidRequestError as exc:
            if exc.http_status == 404:
                raise ResourceNotFoundError("Checkout session", resource_id) from exc
            logger.info("Payment provider rejected request: %s", exc.user_message or exc.__class__.__name__)
            raise ValidationError(
                exc.user_message or "Payment provider rejected the request",
                details={"param": exc.param},
            ) from exc
        except CircuitOpenError:
            logger.warning("Payment gateway circuit open; rejecting call")
            raise UpstreamServiceError(PAYMENT_SERVICE_NAME, "Payment provider temporarily unavailable")
        except stripe.StripeError as exc:
            logger.error("Payment gateway call failed: %s", exc.user_message or exc.__class__.__name__)
            raise UpstreamServiceError(PAYMENT_SERVICE_NAME, "Payment provider request failed") from exc

    @staticmethod
    def _to_checkout_session(session: Any) -> CheckoutSession:
        return CheckoutSession(
            id=session.id,
            url=getattr(session, "url", None),
            payment_status=getattr(session, "payment_status", None) or "unpaid",
            transaction_id=_transaction_id(session),
            amount_total=getattr(session, "amount_total", None),
            currency=getattr(session, "currency", None),
            customer_email=_customer_email(session),
            metadata=_metadata(session),
        )
