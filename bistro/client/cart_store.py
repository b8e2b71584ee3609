# bistro/client/cart_store.py
import json
import os
from typing import Callable

from bistro.client.api_client import StorefrontClient, ApiError, SessionExpiredError
from bistro.client.cart_state import ActionType, CartAction, CartEntry, CartState, cart_reducer
from bistro.utils.logging import get_logger

logger = get_logger(__name__)

SESSION_EXPIRED_MESSAGE = "Session expired, please log in again"
PAYMENT_FAILED_MESSAGE = "Payment confirmation failed. Please contact support."

Listener = Callable[[CartAction, CartState], None]


class CartNotReadyError(RuntimeError):
    """Mutacja przed zakonczeniem hydrate albo w trakcie innego wywolania."""


class JsonFileStorage:
    """Lokalna kopia wpisow koszyka miedzy uruchomieniami."""

    def __init__(self, path: str):
        self.path = path

    def load(self) -> list[CartEntry]:
        try:
            with open(self.path, encoding="utf-8") as fh:
                return [CartEntry.from_dict(d) for d in json.load(fh)]
        except FileNotFoundError:
            return []
        except (ValueError, TypeError, KeyError) as e:
            logger.warning(f"Uszkodzony plik koszyka {self.path}: {e}")
            return []

    def save(self, entries) -> None:
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump([e.to_dict() for e in entries], fh)

    def clear(self) -> None:
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass


class CartStore:
    """
    Lustro koszyka z serwera.

    cykl zycia: hydrate() (stan z serwera) -> mutacje -> teardown() (logout)
    kazda mutacja najpierw idzie na serwer, do stanu trafia kanoniczny wpis z odpowiedzi
    """

    def __init__(self, client: StorefrontClient, storage: JsonFileStorage | None = None):
        self.client = client
        self.storage = storage
        self.state = CartState()
        self._listeners: list[Listener] = []
        self._ready = False
        self.session_expired = False

        if storage:
            cached = storage.load()
            if cached:
                self.state = cart_reducer(self.state, CartAction(ActionType.SET_CART, cached))

    @property
    def ready(self) -> bool:
        return self._ready

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: CartAction) -> CartState:
        self.state = cart_reducer(self.state, action)
        logger.debug(
            f"cart {action.type.value}: entries={len(self.state.entries)} "
            f"total={self.state.total_amount} error={self.state.error}"
        )
        if self.storage and action.type in (
            ActionType.SET_CART,
            ActionType.ADD_ITEM,
            ActionType.UPDATE_QUANTITY,
            ActionType.REMOVE_ITEM,
            ActionType.CLEAR_CART,
        ):
            self.storage.save(self.state.entries)
        for listener in list(self._listeners):
            listener(action, self.state)
        return self.state

    #lifecycle
    def hydrate(self) -> CartState:
        self.dispatch(CartAction(ActionType.SET_LOADING, True))
        try:
            data = self.client.get_cart()
            self.dispatch(CartAction(ActionType.SET_CART, data.get("cart_items", [])))
            self.dispatch(CartAction(ActionType.CLEAR_ERROR))
            self.session_expired = False
            self._ready = True
        except SessionExpiredError:
            self._expire()
            raise
        except ApiError as e:
            logger.warning(f"Hydrate koszyka nieudany: {e.message}")
            self.dispatch(CartAction(ActionType.SET_ERROR, e.message))
            #po bledzie tez odblokowujemy mutacje - hydrate sie zakonczyl
            self._ready = True
        finally:
            self.dispatch(CartAction(ActionType.SET_LOADING, False))
        return self.state

    def teardown(self) -> CartState:
        self._ready = False
        self.client.logout()
        self.dispatch(CartAction(ActionType.CLEAR_CART))
        if self.storage:
            self.storage.clear()
        return self.state

    #mutations
    def add_item(self, item_id: int, quantity: int = 1) -> CartState:
        return self._mutate(
            lambda: self.client.add_to_cart(item_id, quantity),
            lambda res: CartAction(ActionType.ADD_ITEM, res),
        )

    def update_quantity(self, entry_id: int, quantity: int) -> CartState:
        return self._mutate(
            lambda: self.client.update_cart_item(entry_id, quantity),
            lambda res: CartAction(ActionType.UPDATE_QUANTITY, res),
        )

    def remove_item(self, entry_id: int) -> CartState:
        return self._mutate(
            lambda: self.client.remove_cart_item(entry_id),
            lambda res: CartAction(ActionType.REMOVE_ITEM, int(res.get("id", entry_id))),
        )

    def clear(self) -> CartState:
        return self._mutate(
            self.client.clear_cart,
            lambda res: CartAction(ActionType.CLEAR_CART),
        )

    def checkout(self, order: dict) -> str | None:
        """
        Sklada zamowienie z aktualnego koszyka.
        Gotowka: koszyk czyszczony od razu. Online: zwraca checkout_url,
        koszyk czyszczony dopiero po confirm_payment.
        """
        self._guard()
        payload = {
            **order,
            "items": [{"item_id": e.item_id, "quantity": e.quantity} for e in self.state.entries],
        }

        self.dispatch(CartAction(ActionType.SET_LOADING, True))
        try:
            result = self.client.create_order(payload)
            self.dispatch(CartAction(ActionType.CLEAR_ERROR))
        except SessionExpiredError:
            self._expire()
            raise
        except ApiError as e:
            logger.warning(f"Zamowienie nieudane ({e.status_code}): {e.message}")
            self.dispatch(CartAction(ActionType.SET_ERROR, e.message))
            return None
        finally:
            self.dispatch(CartAction(ActionType.SET_LOADING, False))

        checkout_url = result.get("checkout_url")
        if checkout_url is None:
            self.clear()
        return checkout_url

    def confirm_payment(self, session_id: str) -> dict | None:
        self._guard()
        self.dispatch(CartAction(ActionType.SET_LOADING, True))
        try:
            order = self.client.confirm_payment(session_id)
        except SessionExpiredError:
            self._expire()
            raise
        except ApiError as e:
            #bez automatycznego ponawiania - sesja moze byc juz obciazona
            logger.error(f"Potwierdzenie platnosci {session_id} nieudane: {e.message}")
            self.dispatch(CartAction(ActionType.SET_ERROR, PAYMENT_FAILED_MESSAGE))
            return None
        finally:
            self.dispatch(CartAction(ActionType.SET_LOADING, False))

        self.clear()
        return order

    def _guard(self):
        if not self._ready:
            raise CartNotReadyError("Cart is not hydrated yet")
        if self.state.is_loading:
            raise CartNotReadyError("Another cart operation is in progress")

    def _mutate(self, call, to_action) -> CartState:
        self._guard()
        self.dispatch(CartAction(ActionType.SET_LOADING, True))
        try:
            result = call()
            self.dispatch(to_action(result))
            self.dispatch(CartAction(ActionType.CLEAR_ERROR))
        except SessionExpiredError:
            self._expire()
            raise
        except ApiError as e:
            logger.warning(f"Operacja na koszyku nieudana ({e.status_code}): {e.message}")
            self.dispatch(CartAction(ActionType.SET_ERROR, e.message))
        finally:
            self.dispatch(CartAction(ActionType.SET_LOADING, False))
        return self.state

    def _expire(self):
        logger.info("Sesja wygasla, czyszcze lokalny koszyk")
        self._ready = False
        self.session_expired = True
        self.client.logout()
        self.dispatch(CartAction(ActionType.CLEAR_CART))
        self.dispatch(CartAction(ActionType.SET_ERROR, SESSION_EXPIRED_MESSAGE))
