from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from bistro.data.models.order import OrderModel
from bistro.domain.errors import (
    AccessDeniedError,
    GatewayError,
    InvalidInputError,
    NotFoundError,
    PaymentDeclinedError,
)
from bistro.domain.schemas import OrderCreate, OrderUpdate, OrderAdminUpdate
from bistro.services.order_service import OrderService, compute_totals


@pytest.fixture
def orders(db, gateway, notifier):
    return OrderService(db=db, gateway=gateway, notification_service=notifier)


@pytest.fixture
def new_order(order_payload):
    def _new(items, payment_method="cod", **overrides) -> OrderCreate:
        return OrderCreate(**order_payload(items, payment_method, **overrides))

    return _new


class TestComputeTotals:
    def test_total_is_sum_of_parts(self):
        lines = [SimpleNamespace(price=Decimal("100.00"), quantity=2)]

        totals = compute_totals(lines, tax_rate=Decimal("0.15"), shipping=Decimal("0"))

        assert totals.subtotal == Decimal("200.00")
        assert totals.tax == Decimal("30.00")
        assert totals.total == Decimal("230.00")

    def test_tax_rounded_to_cents(self):
        lines = [SimpleNamespace(price=Decimal("33.33"), quantity=1)]

        totals = compute_totals(lines, tax_rate=Decimal("0.15"), shipping=Decimal("5"))

        assert totals.tax == Decimal("5.00")
        assert totals.total == totals.subtotal + totals.tax + totals.shipping


class TestCreateOrder:
    def test_cash_order_is_paid_immediately(self, orders, user, item, new_order, gateway, notifier):
        """Gotowka: succeeded od razu, bez sesji w bramce, totals liczone z katalogu."""
        created = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 2}]))

        order = created.order
        assert created.checkout_url is None
        assert order.payment_status == "succeeded"
        assert order.status == "processing"
        assert order.subtotal == Decimal("200.00")
        assert order.tax == Decimal("30.00")
        assert order.total == Decimal("230.00")
        assert order.session_id is None
        assert gateway.created == []
        notifier.send_order_notification.assert_called_once_with(user.id, order.id)

    def test_line_snapshot_from_catalog(self, orders, user, item, new_order):
        created = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}]))

        line = created.order.items[0]
        assert line.item_id == item.id
        assert line.name == "Margherita"
        assert line.price == Decimal("100.00")
        assert line.quantity == 1

    def test_client_totals_overridden(self, orders, user, item, new_order):
        """Sumy z klienta nie wplywaja na zapisane kwoty."""
        payload = new_order([{"item_id": item.id, "quantity": 1}], subtotal="1.00", tax="0", total="1.00")

        created = orders.create_order(user.id, payload)

        assert created.order.total == Decimal("115.00")

    def test_online_order_opens_gateway_session(self, orders, db, user, item, new_order, gateway):
        created = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 2}], "online"))

        assert created.order.payment_status == "pending"
        assert created.checkout_url == "https://checkout.stripe.test/cs_test_1"
        assert created.order.session_id == "cs_test_1"

        call = gateway.created[0]
        assert call["metadata"]["order_id"] == created.order.id
        assert call["email"] == "alice@mail.com"
        assert call["idempotency_key"] == f"order-{created.order.id}"
        assert [(l.name, l.unit_price, l.quantity) for l in call["lines"]] == [
            ("Margherita", Decimal("100.00"), 2)
        ]

    @pytest.mark.parametrize("method", ["card", "upi"])
    def test_card_and_upi_go_through_gateway(self, orders, user, item, new_order, method):
        created = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}], method))

        assert created.checkout_url is not None
        assert created.order.payment_status == "pending"

    def test_gateway_failure_keeps_order_as_failed(self, orders, db, user, item, new_order, gateway):
        """Blad bramki: zamowienie jest juz w bazie, oznaczone jako failed."""
        gateway.fail_create = True

        with pytest.raises(GatewayError):
            orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}], "online"))

        saved = db.query(OrderModel).one()
        assert saved.payment_status == "failed"
        assert saved.session_id is None

    def test_empty_items(self, orders, user, new_order):
        with pytest.raises(InvalidInputError, match="Invalid or empty items array"):
            orders.create_order(user.id, new_order([]))

    def test_unknown_item(self, orders, db, user, new_order):
        with pytest.raises(NotFoundError, match="Item 77 not found"):
            orders.create_order(user.id, new_order([{"item_id": 77, "quantity": 1}]))

        assert db.query(OrderModel).count() == 0

    def test_zero_quantity(self, orders, user, item, new_order):
        with pytest.raises(InvalidInputError):
            orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 0}]))


class TestConfirmPayment:
    def _online_order(self, orders, user, item, new_order):
        return orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 2}], "online")).order

    def test_paid_session_marks_order_succeeded(self, orders, user, item, new_order, gateway, notifier):
        order = self._online_order(orders, user, item, new_order)
        gateway.mark_paid(order.session_id)

        confirmed = orders.confirm_payment(order.session_id, user.id)

        assert confirmed.id == order.id
        assert confirmed.payment_status == "succeeded"
        assert confirmed.status == "processing"
        notifier.send_payment_confirmed.assert_called_once_with(user.id, order.id)

    def test_confirm_is_idempotent(self, orders, user, item, new_order, gateway, notifier):
        """Drugie potwierdzenie zwraca to samo zamowienie bez ponownego powiadomienia."""
        order = self._online_order(orders, user, item, new_order)
        gateway.mark_paid(order.session_id)

        first = orders.confirm_payment(order.session_id, user.id)
        second = orders.confirm_payment(order.session_id, user.id)

        assert first.id == second.id
        assert second.payment_status == "succeeded"
        assert notifier.send_payment_confirmed.call_count == 1

    def test_unpaid_session_declined(self, orders, user, item, new_order):
        order = self._online_order(orders, user, item, new_order)

        with pytest.raises(PaymentDeclinedError, match="Payment not complete"):
            orders.confirm_payment(order.session_id, user.id)

    def test_missing_session_id(self, orders):
        with pytest.raises(InvalidInputError, match="session_id required"):
            orders.confirm_payment(None)

    def test_foreign_order_denied(self, orders, user, other_user, item, new_order, gateway):
        order = self._online_order(orders, user, item, new_order)
        gateway.mark_paid(order.session_id)

        with pytest.raises(AccessDeniedError):
            orders.confirm_payment(order.session_id, other_user.id)

    def test_gateway_error_propagates(self, orders, user, item, new_order, gateway):
        order = self._online_order(orders, user, item, new_order)
        gateway.fail_retrieve = True

        with pytest.raises(GatewayError):
            orders.confirm_payment(order.session_id, user.id)

    def test_session_found_through_metadata(self, orders, db, user, item, new_order, gateway):
        """Id sesji nie trafilo do zamowienia - dopasowanie po order_id z metadanych sesji."""
        order = self._online_order(orders, user, item, new_order)
        saved = db.get(OrderModel, order.id)
        saved.session_id = None
        db.commit()
        gateway.mark_paid(order.session_id)

        confirmed = orders.confirm_payment(order.session_id, user.id)

        assert confirmed.id == order.id
        assert confirmed.session_id == order.session_id
        assert confirmed.payment_status == "succeeded"

    def test_paid_session_without_order(self, orders, user, gateway):
        session = gateway.create_checkout_session([], metadata={})
        gateway.mark_paid(session.id)

        with pytest.raises(NotFoundError):
            orders.confirm_payment(session.id, user.id)


class TestReconcile:
    def _age(self, db, order_id, minutes=60):
        saved = db.get(OrderModel, order_id)
        saved.created_at = datetime.now(timezone.utc) - timedelta(minutes=minutes)
        db.commit()

    def test_reconcile_confirms_paid_and_fails_expired(self, orders, db, user, make_item, new_order, gateway):
        a = make_item(name="A")
        paid = orders.create_order(user.id, new_order([{"item_id": a.id, "quantity": 1}], "online")).order
        expired = orders.create_order(user.id, new_order([{"item_id": a.id, "quantity": 1}], "online")).order
        still_open = orders.create_order(user.id, new_order([{"item_id": a.id, "quantity": 1}], "online")).order
        for o in (paid, expired, still_open):
            self._age(db, o.id)
        gateway.mark_paid(paid.session_id)
        gateway.mark_expired(expired.session_id)

        result = orders.reconcile_pending_payments(grace_seconds=900)

        assert result == {"checked": 3, "confirmed": 1, "failed": 1, "errors": 0}
        db.expire_all()
        assert db.get(OrderModel, paid.id).payment_status == "succeeded"
        assert db.get(OrderModel, expired.id).payment_status == "failed"
        assert db.get(OrderModel, still_open.id).payment_status == "pending"

    def test_recent_orders_skipped(self, orders, user, item, new_order):
        orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}], "online"))

        result = orders.reconcile_pending_payments(grace_seconds=900)

        assert result["checked"] == 0

    def test_gateway_errors_counted(self, orders, db, user, item, new_order, gateway):
        order = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}], "online")).order
        self._age(db, order.id)
        gateway.fail_retrieve = True

        result = orders.reconcile_pending_payments(grace_seconds=900)

        assert result["errors"] == 1
        assert result["confirmed"] == 0

    def test_order_without_session_marked_failed(self, orders, db, user, item, new_order):
        """Zamowienie online zapisane bez sesji (proces padl przed bramka) -> failed po okresie karencji."""
        stranded = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}], "online")).order
        cash = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}], "cod")).order
        saved = db.get(OrderModel, stranded.id)
        saved.session_id = None
        db.commit()
        self._age(db, stranded.id)
        self._age(db, cash.id)

        result = orders.reconcile_pending_payments(grace_seconds=900)

        assert result == {"checked": 1, "confirmed": 0, "failed": 1, "errors": 0}
        db.expire_all()
        assert db.get(OrderModel, stranded.id).payment_status == "failed"
        assert db.get(OrderModel, cash.id).payment_status == "succeeded"

    def test_db_error_skips_only_that_order(self, orders, db, user, make_item, new_order, gateway, monkeypatch):
        a = make_item(name="A")
        first = orders.create_order(user.id, new_order([{"item_id": a.id, "quantity": 1}], "online")).order
        second = orders.create_order(user.id, new_order([{"item_id": a.id, "quantity": 1}], "online")).order
        for o in (first, second):
            self._age(db, o.id)
            gateway.mark_paid(o.session_id)

        real_apply = orders._apply_paid
        calls = []

        def flaky_apply(order, status):
            calls.append(order.id)
            if len(calls) == 1:
                raise OperationalError("UPDATE orders", {}, Exception("database is locked"))
            return real_apply(order, status)

        monkeypatch.setattr(orders, "_apply_paid", flaky_apply)

        result = orders.reconcile_pending_payments(grace_seconds=900)

        assert len(calls) == 2
        assert result == {"checked": 2, "confirmed": 1, "failed": 0, "errors": 1}


class TestOrderQueries:
    def test_owner_sees_own_orders_newest_first(self, orders, user, other_user, item, new_order):
        first = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}])).order
        second = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 3}])).order
        orders.create_order(other_user.id, new_order([{"item_id": item.id, "quantity": 1}]))

        result = orders.get_orders(user.id)

        assert [o.id for o in result] == [second.id, first.id]

    def test_get_foreign_order_denied(self, orders, user, other_user, item, new_order):
        order = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}])).order

        with pytest.raises(AccessDeniedError):
            orders.get_order(order.id, other_user.id)

    def test_get_order_email_must_match(self, orders, user, item, new_order):
        order = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}])).order

        assert orders.get_order(order.id, user.id, email="ALICE@mail.com").id == order.id
        with pytest.raises(AccessDeniedError):
            orders.get_order(order.id, user.id, email="mallory@mail.com")

    def test_get_missing_order(self, orders, user):
        with pytest.raises(NotFoundError):
            orders.get_order(999, user.id)

    def test_owner_updates_address(self, orders, user, item, new_order):
        order = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}])).order

        updated = orders.update_order(order.id, user.id, OrderUpdate(address="2 Side St"))

        assert updated.address == "2 Side St"
        assert updated.total == order.total

    def test_admin_marks_delivered(self, orders, user, item, new_order):
        order = orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}])).order

        updated = orders.update_any_order(order.id, OrderAdminUpdate(status="delivered"))

        assert updated.status == "delivered"
        assert updated.delivered_at is not None

    def test_admin_sees_all_orders(self, orders, user, other_user, item, new_order):
        orders.create_order(user.id, new_order([{"item_id": item.id, "quantity": 1}]))
        orders.create_order(other_user.id, new_order([{"item_id": item.id, "quantity": 1}]))

        assert len(orders.get_all_orders()) == 2
