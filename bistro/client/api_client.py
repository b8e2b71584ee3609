# bistro/client/api_client.py
from typing import Any

import requests

from bistro.utils.retry import http_retry
from bistro.utils.settings import BACKEND_URL
from bistro.utils.logging import get_logger

logger = get_logger(__name__)


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class SessionExpiredError(ApiError):
    """401/403 z dowolnego wywolania z tokenem - trzeba zalogowac sie ponownie."""


class StorefrontClient:
    """
    Klient HTTP backendu dla storefrontu.
    Retry tylko dla odczytow (GET) i tylko przy bledach polaczenia.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: int = 5,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or BACKEND_URL).rstrip("/")
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    #auth
    def register(self, name: str, email: str, password: str) -> dict:
        data = self._request("POST", "/api/user/register", json={"name": name, "email": email, "password": password})
        self.token = data["token"]
        return data

    def login(self, email: str, password: str) -> dict:
        data = self._request("POST", "/api/user/login", json={"email": email, "password": password})
        self.token = data["token"]
        return data

    def logout(self):
        self.token = None

    #katalog
    @http_retry()
    def list_items(self, category: str | None = None) -> list[dict]:
        params = {"category": category} if category else None
        return self._request("GET", "/api/items", params=params)["data"]

    #koszyk
    @http_retry()
    def get_cart(self) -> dict:
        return self._request("GET", "/api/cart")

    def add_to_cart(self, item_id: int, quantity: int = 1) -> dict:
        return self._request("POST", "/api/cart", json={"item_id": item_id, "quantity": quantity})

    def update_cart_item(self, entry_id: int, quantity: int) -> dict:
        return self._request("PUT", f"/api/cart/{entry_id}", json={"quantity": quantity})

    def remove_cart_item(self, entry_id: int) -> dict:
        return self._request("DELETE", f"/api/cart/{entry_id}")

    def clear_cart(self) -> dict:
        return self._request("POST", "/api/cart/clear")

    #zamowienia
    def create_order(self, order: dict) -> dict:
        return self._request("POST", "/api/orders", json=order)

    def confirm_payment(self, session_id: str) -> dict:
        return self._request("GET", "/api/orders/confirm", params={"session_id": session_id})

    @http_retry()
    def get_orders(self) -> list[dict]:
        return self._request("GET", "/api/orders")

    def _request(self, method: str, path: str, **kwargs) -> Any:
        url = f"{self.base_url}{path}"
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        logger.debug(f"StorefrontClient {method} {url}")
        resp = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)

        if resp.status_code in (401, 403):
            raise SessionExpiredError(resp.status_code, self._message(resp, "Session expired"))
        if not resp.ok:
            raise ApiError(resp.status_code, self._message(resp, resp.reason or "Request failed"))
        return resp.json()

    @staticmethod
    def _message(resp: requests.Response, default: str) -> str:
        try:
            body = resp.json()
        except ValueError:
            return default
        if isinstance(body, dict):
            return body.get("message") or default
        return default
