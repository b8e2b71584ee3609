# bistro/services/order_service.py
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bistro.data.models.order import OrderModel
from bistro.data.models.order_line import OrderLineModel
from bistro.repos.order_repo import OrderRepo
from bistro.repos.item_repo import ItemRepo
from bistro.services.notification_service import NotificationService
from bistro.services.payment_gateway import PaymentGateway, CheckoutLine, SessionStatus
from bistro.domain.enums import PaymentMethod, PaymentStatus, OrderStatus
from bistro.domain.errors import (
    AccessDeniedError,
    GatewayError,
    InvalidInputError,
    NotFoundError,
    PaymentDeclinedError,
)
from bistro.domain.schemas import (
    OrderCreate,
    OrderCreatedOut,
    OrderOut,
    OrderUpdate,
    OrderAdminUpdate,
)
from bistro.utils.settings import TAX_RATE, SHIPPING_COST, PENDING_PAYMENT_GRACE_SECONDS
from bistro.utils.logging import get_logger

logger = get_logger(__name__)

CENT = Decimal("0.01")


def money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class OrderTotals:
    subtotal: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


def compute_totals(lines, tax_rate: Decimal = TAX_RATE, shipping: Decimal = SHIPPING_COST) -> OrderTotals:
    """total = subtotal + tax + shipping, kazda kwota zaokraglona do 0.01."""
    subtotal = money(sum((Decimal(l.price) * l.quantity for l in lines), Decimal("0")))
    tax = money(subtotal * tax_rate)
    shipping = money(shipping)
    return OrderTotals(subtotal=subtotal, tax=tax, shipping=shipping, total=subtotal + tax + shipping)


class OrderService:
    """
    Serwis odpowiedzialny za domenę zamówień.

    paymentStatus: pending -> succeeded (potwierdzenie z bramki) albo pending -> failed
    (sesja wygasla po stronie bramki). Gotowka startuje od razu jako succeeded.
    """

    def __init__(
        self,
        db: Session,
        gateway: PaymentGateway,
        notification_service: NotificationService | None = None,
    ):
        self.db = db
        self.repo = OrderRepo(db)
        self.items = ItemRepo(db)
        self.gateway = gateway
        self.notification_service = notification_service or NotificationService()

    def create_order(self, user_id: int, payload: OrderCreate) -> OrderCreatedOut:
        """
        Use Case: Tworzenie zamówienia z zawartosci koszyka.

        1. Waliduje pozycje, bierze ceny z katalogu (nie z requestu)
        2. Liczy subtotal / tax / total po stronie serwera
        3. Zapisuje zamowienie (commit) zanim powstanie jakikolwiek redirect
        4. Dla platnosci online tworzy sesje w bramce i zapisuje jej id
        5. Wysyła powiadomienie (async)
        """
        if not payload.items:
            raise InvalidInputError("Invalid or empty items array")

        for line in payload.items:
            if line.quantity < 1:
                raise InvalidInputError(f"Quantity for item {line.item_id} must be at least 1")

        catalog = self.items.get_items([l.item_id for l in payload.items])
        lines = []
        for line in payload.items:
            item = catalog.get(line.item_id)
            if not item:
                raise NotFoundError(f"Item {line.item_id} not found")
            #snapshot - pozniejsza zmiana ceny w menu nie zmienia zamowienia
            lines.append(
                OrderLineModel(
                    item_id=item.id,
                    name=item.name,
                    price=money(item.price),
                    image_url=item.image_url or "",
                    quantity=line.quantity,
                )
            )

        totals = compute_totals(lines)
        self._warn_on_client_totals(user_id, payload, totals)

        method = PaymentMethod(payload.payment_method)
        order = OrderModel(
            user_id=user_id,
            first_name=payload.first_name,
            last_name=payload.last_name,
            phone=payload.phone,
            email=payload.email.strip().lower(),
            address=payload.address,
            city=payload.city,
            zipcode=payload.zipcode,
            payment_method=method.value,
            payment_status=(PaymentStatus.PENDING if method.is_online else PaymentStatus.SUCCEEDED).value,
            status=OrderStatus.PROCESSING.value,
            subtotal=totals.subtotal,
            tax=totals.tax,
            shipping=totals.shipping,
            total=totals.total,
            items=lines,
        )

        self.repo.add_order(order)
        self.repo.commit(order)
        logger.info(f"Order {order.id} created for user {user_id} ({method.value}, total {order.total})")

        checkout_url = None
        if method.is_online:
            checkout_url = self._open_payment_session(order)

        self.notification_service.send_order_notification(user_id, order.id)

        return OrderCreatedOut(order=OrderOut.model_validate(order), checkout_url=checkout_url)

    def confirm_payment(self, session_id: str | None, user_id: int | None = None) -> OrderOut:
        """
        Use Case: Potwierdzenie platnosci po powrocie z bramki.
        Idempotentne - ponowne wywolanie zwraca to samo zamowienie bez efektow ubocznych.
        """
        if not session_id:
            raise InvalidInputError("session_id required")

        try:
            status = self.gateway.retrieve_session(session_id)
        except GatewayError:
            #nie ponawiamy automatycznie - sesja moze byc juz oplacona
            logger.error(f"Potwierdzenie sesji {session_id} nieudane, wymaga recznej weryfikacji")
            raise

        if not status.paid:
            logger.info(f"Sesja {session_id} nieoplacona (status {status.status})")
            raise PaymentDeclinedError("Payment not complete")

        order = self._find_order_for_session(status)
        if not order:
            logger.error(f"Oplacona sesja {session_id} bez zamowienia, wymaga recznej weryfikacji")
            raise NotFoundError("Order not found")

        if user_id is not None and order.user_id != user_id:
            raise AccessDeniedError("Access Denied")

        return self._apply_paid(order, status)

    def reconcile_pending_payments(self, grace_seconds: int = PENDING_PAYMENT_GRACE_SECONDS) -> dict:
        """
        Use Case: Dociaganie statusu zamowien online, dla ktorych nie przyszlo potwierdzenie.
        Bledy pojedynczych zamowien sa logowane i pomijane.
        """
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=grace_seconds)
        orders = self.repo.list_pending_online(cutoff)
        orphans = self.repo.list_pending_without_session(cutoff)
        result = {"checked": len(orders) + len(orphans), "confirmed": 0, "failed": 0, "errors": 0}

        for order in orders:
            try:
                status = self.gateway.retrieve_session(order.session_id)
            except GatewayError as e:
                logger.warning(f"Reconcile: zamowienie {order.id} pominiete: {e.message}")
                result["errors"] += 1
                continue

            try:
                if status.paid:
                    self._apply_paid(order, status)
                    result["confirmed"] += 1
                elif status.expired:
                    self._mark_failed(order)
                    logger.info(f"Reconcile: sesja zamowienia {order.id} wygasla, platnosc failed")
                    result["failed"] += 1
            except SQLAlchemyError as e:
                self.repo.rollback()
                logger.error(f"Reconcile: zapis zamowienia {order.id} nieudany: {e}")
                result["errors"] += 1

        #zamowienie zapisane, ale proces padl zanim powstala sesja - nikt go juz nie oplaci
        for order in orphans:
            try:
                self._mark_failed(order)
                logger.warning(f"Reconcile: zamowienie {order.id} bez sesji platnosci, platnosc failed")
                result["failed"] += 1
            except SQLAlchemyError as e:
                self.repo.rollback()
                logger.error(f"Reconcile: zapis zamowienia {order.id} nieudany: {e}")
                result["errors"] += 1

        logger.info(f"Reconcile zakonczony: {result}")
        return result

    def _mark_failed(self, order: OrderModel):
        order.payment_status = PaymentStatus.FAILED.value
        self.repo.commit(order)

    #query
    def get_orders(self, user_id: int) -> list[OrderOut]:
        return [OrderOut.model_validate(o) for o in self.repo.list_for_user(user_id)]

    def get_order(self, order_id: int, user_id: int, email: str | None = None) -> OrderOut:
        order = self._owned_order(order_id, user_id, email)
        return OrderOut.model_validate(order)

    def get_all_orders(self) -> list[OrderOut]:
        return [OrderOut.model_validate(o) for o in self.repo.list_all()]

    #commands
    def update_order(self, order_id: int, user_id: int, payload: OrderUpdate, email: str | None = None) -> OrderOut:
        order = self._owned_order(order_id, user_id, email)
        self._merge(order, payload)
        self.repo.commit(order)
        logger.info(f"Order {order_id} updated by owner {user_id}")
        return OrderOut.model_validate(order)

    def update_any_order(self, order_id: int, payload: OrderAdminUpdate) -> OrderOut:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        self._merge(order, payload)
        if order.status == OrderStatus.DELIVERED.value and order.delivered_at is None:
            order.delivered_at = datetime.now(timezone.utc)

        self.repo.commit(order)
        logger.info(f"Order {order_id} updated by admin (status {order.status})")
        return OrderOut.model_validate(order)

    def _open_payment_session(self, order: OrderModel) -> str:
        lines = [CheckoutLine(name=l.name, unit_price=l.price, quantity=l.quantity) for l in order.items]
        try:
            session = self.gateway.create_checkout_session(
                lines,
                customer_email=order.email,
                metadata={"order_id": order.id, "user_id": order.user_id},
                idempotency_key=f"order-{order.id}",
            )
        except GatewayError:
            self._mark_failed(order)
            logger.error(f"Order {order.id}: nie udalo sie utworzyc sesji platnosci")
            raise

        order.session_id = session.id
        order.payment_intent_id = session.payment_intent_id
        self.repo.commit(order)
        logger.info(f"Order {order.id}: sesja platnosci {session.id}")
        return session.url

    def _find_order_for_session(self, status: SessionStatus) -> OrderModel | None:
        order = self.repo.get_by_session_id(status.id)
        if order or status.order_id is None:
            return order

        #zamowienie zapisane, ale id sesji nie zdazylo trafic do bazy
        order = self.repo.get_order(status.order_id)
        if order and order.session_id is None:
            logger.warning(f"Order {order.id}: dopinam sesje {status.id} z metadanych bramki")
            order.session_id = status.id
            return order
        return None

    def _apply_paid(self, order: OrderModel, status: SessionStatus) -> OrderOut:
        if order.payment_status == PaymentStatus.SUCCEEDED.value:
            logger.info(f"Order {order.id} juz oplacone, pomijam")
            return OrderOut.model_validate(order)

        if order.payment_status == PaymentStatus.FAILED.value:
            logger.warning(f"Order {order.id} oznaczone jako failed, bramka raportuje oplacone")

        order.payment_status = PaymentStatus.SUCCEEDED.value
        if status.payment_intent_id:
            order.payment_intent_id = status.payment_intent_id
        self.repo.commit(order)

        logger.info(f"Order {order.id}: platnosc potwierdzona (sesja {status.id})")
        self.notification_service.send_payment_confirmed(order.user_id, order.id)
        return OrderOut.model_validate(order)

    def _owned_order(self, order_id: int, user_id: int, email: str | None) -> OrderModel:
        order = self.repo.get_order(order_id)
        if not order:
            raise NotFoundError("Order not found")

        if order.user_id != user_id:
            raise AccessDeniedError("Access Denied")

        if email and order.email != email.strip().lower():
            raise AccessDeniedError("Access Denied")

        return order

    @staticmethod
    def _merge(order: OrderModel, payload: OrderUpdate):
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            if field == "email":
                value = value.strip().lower()
            elif field == "status":
                value = OrderStatus(value).value
            setattr(order, field, value)

    @staticmethod
    def _warn_on_client_totals(user_id: int, payload: OrderCreate, totals: OrderTotals):
        sent = {"subtotal": payload.subtotal, "tax": payload.tax, "total": payload.total}
        for name, value in sent.items():
            if value is not None and money(value) != getattr(totals, name):
                logger.warning(
                    f"User {user_id}: {name} z klienta {value} != {getattr(totals, name)}, uzywam wartosci serwera"
                )
