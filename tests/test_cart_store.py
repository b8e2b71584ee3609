from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from bistro.client.api_client import ApiError, SessionExpiredError, StorefrontClient
from bistro.client.cart_state import ActionType
from bistro.client.cart_store import (
    CartNotReadyError,
    CartStore,
    JsonFileStorage,
    PAYMENT_FAILED_MESSAGE,
    SESSION_EXPIRED_MESSAGE,
)


def entry(entry_id, item_id, quantity, price="100.00"):
    return {
        "id": entry_id,
        "item_id": item_id,
        "quantity": quantity,
        "item": {"id": item_id, "name": f"Item {item_id}", "price": price, "image_url": None},
    }


@pytest.fixture
def api():
    client = MagicMock(spec=StorefrontClient)
    client.get_cart.return_value = {"success": True, "cart_items": [entry(1, 10, 2)]}
    return client


@pytest.fixture
def store(api):
    s = CartStore(api)
    s.hydrate()
    return s


class TestHydrate:
    def test_hydrate_loads_server_cart(self, api):
        store = CartStore(api)

        state = store.hydrate()

        assert store.ready is True
        assert state.total_items == 2
        assert state.total_amount == Decimal("200.00")
        assert state.is_loading is False

    def test_hydrate_skips_malformed_entry(self, api):
        api.get_cart.return_value = {"success": True, "cart_items": [{"id": 9, "quantity": 1}, entry(1, 10, 2)]}
        store = CartStore(api)

        state = store.hydrate()

        assert store.ready is True
        assert [e.id for e in state.entries] == [1]

    def test_mutation_before_hydrate_rejected(self, api):
        """Dopoki hydrate sie nie zakonczy, mutacje sa blokowane."""
        store = CartStore(api)

        with pytest.raises(CartNotReadyError):
            store.add_item(10, 1)

        api.add_to_cart.assert_not_called()

    def test_hydrate_with_expired_session(self, api):
        api.get_cart.side_effect = SessionExpiredError(401, "Token expired")
        store = CartStore(api)

        with pytest.raises(SessionExpiredError):
            store.hydrate()

        assert store.ready is False
        assert store.session_expired is True
        assert store.state.error == SESSION_EXPIRED_MESSAGE
        api.logout.assert_called_once()


class TestMutations:
    def test_add_uses_server_entry(self, store, api):
        """Do stanu trafia kanoniczny wpis z odpowiedzi, nie lokalne zgadywanie."""
        api.add_to_cart.return_value = entry(1, 10, 5)

        state = store.add_item(10, 5)

        api.add_to_cart.assert_called_once_with(10, 5)
        assert len(state.entries) == 1
        assert state.total_items == 5

    def test_add_new_item_appends(self, store, api):
        api.add_to_cart.return_value = entry(2, 11, 1, price="40.00")

        state = store.add_item(11)

        assert state.total_items == 3
        assert state.total_amount == Decimal("240.00")

    def test_server_error_recorded_and_state_kept(self, store, api):
        api.add_to_cart.side_effect = ApiError(404, "Item not found or has been deleted")

        state = store.add_item(99)

        assert state.error == "Item not found or has been deleted"
        assert state.total_items == 2
        assert state.is_loading is False

    def test_error_cleared_after_success(self, store, api):
        api.add_to_cart.side_effect = [ApiError(409, "Cart is being updated, please retry"), entry(1, 10, 3)]

        store.add_item(10, 3)
        state = store.add_item(10, 3)

        assert state.error is None
        assert state.total_items == 3

    def test_remove(self, store, api):
        api.remove_cart_item.return_value = {"success": True, "id": 1, "message": "Cart item deleted successfully"}

        state = store.remove_item(1)

        assert state.entries == ()

    def test_remove_missing_entry_keeps_state(self, store, api):
        api.remove_cart_item.side_effect = ApiError(404, "Cart item not found")

        state = store.remove_item(1)

        assert state.total_items == 2
        assert state.error == "Cart item not found"

    def test_update_quantity(self, store, api):
        api.update_cart_item.return_value = entry(1, 10, 7)

        assert store.update_quantity(1, 7).total_items == 7

    def test_session_expiry_clears_cart(self, store, api):
        api.update_cart_item.side_effect = SessionExpiredError(403, "Token expired")

        with pytest.raises(SessionExpiredError):
            store.update_quantity(1, 3)

        assert store.state.entries == ()
        assert store.state.error == SESSION_EXPIRED_MESSAGE
        assert store.ready is False

    def test_listeners_notified(self, store, api):
        api.clear_cart.return_value = {"success": True, "deleted_count": 1}
        seen = []
        unsubscribe = store.subscribe(lambda action, state: seen.append(action.type))

        store.clear()
        unsubscribe()
        store.clear()

        assert ActionType.CLEAR_CART in seen
        assert seen.count(ActionType.CLEAR_CART) == 1


class TestCheckout:
    ORDER = {"first_name": "Alice", "payment_method": "cod"}

    def test_cash_checkout_clears_cart(self, store, api):
        api.create_order.return_value = {"order": {"id": 1}, "checkout_url": None}
        api.clear_cart.return_value = {"success": True, "deleted_count": 1}

        url = store.checkout(self.ORDER)

        assert url is None
        sent = api.create_order.call_args.args[0]
        assert sent["items"] == [{"item_id": 10, "quantity": 2}]
        api.clear_cart.assert_called_once()
        assert store.state.entries == ()

    def test_online_checkout_keeps_cart_until_confirmed(self, store, api):
        api.create_order.return_value = {"order": {"id": 1}, "checkout_url": "https://pay/cs_1"}

        url = store.checkout({**self.ORDER, "payment_method": "online"})

        assert url == "https://pay/cs_1"
        api.clear_cart.assert_not_called()
        assert store.state.total_items == 2

    def test_checkout_error_recorded(self, store, api):
        api.create_order.side_effect = ApiError(500, "Payment gateway error: timeout")

        assert store.checkout(self.ORDER) is None
        assert store.state.error == "Payment gateway error: timeout"
        assert store.state.total_items == 2

    def test_confirm_payment_clears_cart(self, store, api):
        api.confirm_payment.return_value = {"id": 1, "payment_status": "succeeded"}
        api.clear_cart.return_value = {"success": True, "deleted_count": 1}

        order = store.confirm_payment("cs_1")

        assert order["payment_status"] == "succeeded"
        api.confirm_payment.assert_called_once_with("cs_1")
        assert store.state.entries == ()

    def test_confirm_failure_shows_support_message(self, store, api):
        """Bez automatycznego ponawiania potwierdzenia."""
        api.confirm_payment.side_effect = ApiError(400, "Payment not complete")

        assert store.confirm_payment("cs_1") is None
        assert store.state.error == PAYMENT_FAILED_MESSAGE
        api.confirm_payment.assert_called_once()
        assert store.state.total_items == 2


class TestPersistence:
    def test_cart_survives_restart(self, api, tmp_path):
        storage = JsonFileStorage(str(tmp_path / "cart.json"))
        CartStore(api, storage=storage).hydrate()

        restored = CartStore(api, storage=storage)

        assert restored.state.total_items == 2
        assert restored.ready is False

    def test_teardown_removes_local_copy(self, api, tmp_path):
        path = tmp_path / "cart.json"
        store = CartStore(api, storage=JsonFileStorage(str(path)))
        store.hydrate()

        store.teardown()

        assert not path.exists()
        assert store.state.entries == ()
        api.logout.assert_called_once()

    def test_corrupted_file_ignored(self, tmp_path):
        path = tmp_path / "cart.json"
        path.write_text("{not json")

        assert JsonFileStorage(str(path)).load() == []
