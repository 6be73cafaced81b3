"""Python client for the storefront API.

Wraps a ``requests.Session`` so the session cookie set by ``/api/login`` is
sent on later calls. Any object with the same ``get``/``post``/``put``/
``delete`` interface (e.g. FastAPI's ``TestClient``) can be passed instead.
"""
from typing import List, Optional

import requests

from cart import Cart, build_order


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def _error_message(response) -> str:
    try:
        detail = response.json().get("detail")
    except ValueError:
        return response.text or "Request failed"
    if isinstance(detail, list):
        return "; ".join(f"{error.get('field')}: {error.get('message')}" for error in detail)
    return str(detail or "Request failed")


class StorefrontClient:
    def __init__(self, base_url: str = "http://localhost:5000", session=None, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.user: Optional[dict] = None

    def _request(self, method: str, path: str, **kwargs):
        if isinstance(self.session, requests.Session):
            kwargs.setdefault("timeout", self.timeout)
        response = getattr(self.session, method)(f"{self.base_url}{path}", **kwargs)
        if response.status_code >= 400:
            raise ApiError(response.status_code, _error_message(response))
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    # ========== AUTH ==========
    def register(self, username: str, password: str, role: str = "customer",
                 security_code: Optional[str] = None) -> dict:
        body = {"username": username, "password": password, "role": role}
        if security_code:
            body["securityCode"] = security_code
        self.user = self._request("post", "/api/register", json=body)
        return self.user

    def login(self, username: str, password: str, security_code: Optional[str] = None) -> dict:
        body = {"username": username, "password": password}
        if security_code:
            body["securityCode"] = security_code
        self.user = self._request("post", "/api/login", json=body)
        return self.user

    def logout(self):
        self._request("post", "/api/logout")
        self.user = None

    def current_user(self) -> dict:
        return self._request("get", "/api/user")

    # ========== CATALOG ==========
    def config(self) -> dict:
        return self._request("get", "/api/config")

    def list_products(self) -> List[dict]:
        return self._request("get", "/api/products")

    def get_product(self, product_id: int) -> dict:
        return self._request("get", f"/api/products/{product_id}")

    # ========== CHECKOUT ==========
    def place_order(self, order: dict) -> dict:
        return self._request("post", "/api/orders", json=order)

    def checkout(self, cart: Cart, customer_name: str, customer_phone: str, delivery_address: str,
                 payment_method: str = "cod", coordinates: Optional[dict] = None) -> dict:
        """Validate, submit, and clear the cart once the order is accepted."""
        order = build_order(cart, customer_name, customer_phone, delivery_address,
                            payment_method, coordinates)
        created = self.place_order(order)
        cart.clear()
        return created

    # ========== ADMIN ==========
    def admin_products(self) -> List[dict]:
        return self._request("get", "/api/admin/products")

    def create_product(self, product: dict) -> dict:
        return self._request("post", "/api/products", json=product)

    def update_product(self, product_id: int, product: dict) -> dict:
        return self._request("put", f"/api/products/{product_id}", json=product)

    def delete_product(self, product_id: int):
        self._request("delete", f"/api/products/{product_id}")

    def list_orders(self) -> List[dict]:
        return self._request("get", "/api/orders")

    def update_order_status(self, order_id: int, status: str) -> dict:
        return self._request("put", f"/api/orders/{order_id}/status", json={"status": status})

    def dashboard_stats(self) -> dict:
        return self._request("get", "/api/admin/stats")

    def revenue_summary(self) -> dict:
        return self._request("get", "/api/admin/analytics/revenue")

    def sales_report(self, period: str = "monthly") -> dict:
        return self._request("get", "/api/admin/analytics/sales", params={"period": period})
