from bistro.client.api_client import StorefrontClient, ApiError, SessionExpiredError
from bistro.client.cart_state import ActionType, CartAction, CartEntry, CartState, cart_reducer
from bistro.client.cart_store import CartStore, CartNotReadyError, JsonFileStorage

__all__ = [
    "StorefrontClient",
    "ApiError",
    "SessionExpiredError",
    "ActionType",
    "CartAction",
    "CartEntry",
    "CartState",
    "cart_reducer",
    "CartStore",
    "CartNotReadyError",
    "JsonFileStorage",
]
