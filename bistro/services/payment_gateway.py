# bistro/services/payment_gateway.py
"""
Payment gateway - Stripe Checkout Sessions.

Wrapper na SDK stripe: tworzenie sesji platnosci dla zamowienia
i odczyt jej statusu przy potwierdzeniu. Bledy SDK zamieniane na GatewayError.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable

import stripe

from bistro.domain.errors import GatewayError
from bistro.utils.retry import gateway_retry
from bistro.utils.settings import (
    STRIPE_SECRET_KEY,
    STRIPE_CURRENCY,
    GATEWAY_TIMEOUT_SECONDS,
    FRONTEND_URL,
)
from bistro.utils.logging import get_logger

logger = get_logger(__name__)

#placeholder podmieniany przez stripe na id sesji
SESSION_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


@dataclass(frozen=True)
class CheckoutLine:
    name: str
    unit_price: Decimal
    quantity: int


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str
    payment_intent_id: str | None = None


@dataclass(frozen=True)
class SessionStatus:
    id: str
    paid: bool
    status: str  # open, complete, expired
    payment_intent_id: str | None = None
    order_id: int | None = None

    @property
    def expired(self) -> bool:
        return self.status == "expired"


def to_minor_units(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _metadata_order_id(metadata) -> int | None:
    if not metadata:
        return None
    raw = metadata.get("order_id") if isinstance(metadata, dict) else getattr(metadata, "order_id", None)
    try:
        return int(raw) if raw is not None else None
    except (TypeError, ValueError):
        return None


class PaymentGateway:
    def __init__(
        self,
        api_key: str | None = None,
        currency: str | None = None,
        timeout: int | None = None,
        frontend_url: str | None = None,
    ):
        self.api_key = api_key if api_key is not None else STRIPE_SECRET_KEY
        self.currency = currency or STRIPE_CURRENCY
        self.frontend_url = (frontend_url or FRONTEND_URL).rstrip("/")
        stripe.api_key = self.api_key
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout or GATEWAY_TIMEOUT_SECONDS)

    @property
    def success_url(self) -> str:
        return f"{self.frontend_url}/myorder/verify?success=true&session_id={SESSION_PLACEHOLDER}"

    @property
    def cancel_url(self) -> str:
        return f"{self.frontend_url}/checkout?payment_status=cancel"

    def create_checkout_session(
        self,
        lines: Iterable[CheckoutLine],
        customer_email: str | None = None,
        metadata: dict[str, Any] | None = None,
        idempotency_key: str | None = None,
    ) -> CheckoutSession:
        """
        Tworzy sesje Checkout dla pozycji zamowienia.

        Args:
            lines: pozycje (nazwa, cena jednostkowa, ilosc)
            customer_email: email klienta przekazany do stripe
            metadata: np. order_id
            idempotency_key: ten sam klucz przy ponowieniu nie tworzy drugiej sesji

        Raises:
            GatewayError: blad API stripe albo timeout
        """
        line_items = [
            {
                "price_data": {
                    "currency": self.currency,
                    "product_data": {"name": line.name},
                    "unit_amount": to_minor_units(line.unit_price),
                },
                "quantity": line.quantity,
            }
            for line in lines
        ]

        try:
            session = self._create_session(
                payment_method_types=["card"],
                mode="payment",
                line_items=line_items,
                customer_email=customer_email,
                success_url=self.success_url,
                cancel_url=self.cancel_url,
                metadata={k: str(v) for k, v in (metadata or {}).items()},
                **({"idempotency_key": idempotency_key} if idempotency_key else {}),
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe: nie udalo sie utworzyc sesji: {e}")
            raise GatewayError(
                message=f"Payment gateway error: {e.user_message or e}",
                code=getattr(e, "code", None),
            ) from e

        logger.info(f"Stripe: utworzono sesje {session.id}")
        return CheckoutSession(
            id=session.id,
            url=session.url,
            payment_intent_id=getattr(session, "payment_intent", None),
        )

    def retrieve_session(self, session_id: str) -> SessionStatus:
        """
        Odczytuje status sesji.

        Raises:
            GatewayError: sesja nie istnieje albo blad API
        """
        try:
            session = self._retrieve_session(session_id)
        except stripe.StripeError as e:
            logger.error(f"Stripe: nie udalo sie odczytac sesji {session_id}: {e}")
            raise GatewayError(
                message=f"Payment gateway error: {e.user_message or e}",
                code=getattr(e, "code", None),
            ) from e

        return SessionStatus(
            id=session.id,
            paid=session.payment_status == "paid",
            status=session.status,
            payment_intent_id=getattr(session, "payment_intent", None),
            order_id=_metadata_order_id(getattr(session, "metadata", None)),
        )

    @gateway_retry()
    def _create_session(self, **params) -> stripe.checkout.Session:
        return stripe.checkout.Session.create(**params)

    @gateway_retry()
    def _retrieve_session(self, session_id: str) -> stripe.checkout.Session:
        return stripe.checkout.Session.retrieve(session_id)
