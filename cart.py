import re
from decimal import Decimal
from typing import Dict, List, Optional

from schemas import CENT, PAYMENT_METHODS

MIN_PHONE_DIGITS = 10
_PHONE_JUNK = re.compile(r"[^\d+\s()-]")


class CheckoutError(ValueError):
    """Checkout form or cart failed local validation; message is user-facing."""

    def __init__(self, title: str, message: str):
        super().__init__(message)
        self.title = title
        self.message = message


class Cart:
    """Session-scoped shopping cart kept on the client.

    Lines are keyed by product id; prices are kept as the two-decimal strings
    the API returns.
    """

    def __init__(self):
        self._lines: Dict[int, dict] = {}

    def add(self, product: dict, quantity: int = 1):
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        line = self._lines.get(product["id"])
        if line:
            line["quantity"] += quantity
            return
        self._lines[product["id"]] = {
            "id": product["id"],
            "name": product["name"],
            "price": product["price"],
            "quantity": quantity,
            "imageUrl": product.get("imageUrl"),
            "category": product.get("category"),
        }

    def update_quantity(self, product_id: int, change: int):
        line = self._lines.get(product_id)
        if not line:
            return
        new_quantity = line["quantity"] + change
        if new_quantity > 0:
            line["quantity"] = new_quantity
        else:
            del self._lines[product_id]

    def remove(self, product_id: int):
        self._lines.pop(product_id, None)

    def clear(self):
        self._lines.clear()

    @property
    def items(self) -> List[dict]:
        return [dict(line) for line in self._lines.values()]

    @property
    def total(self) -> Decimal:
        total = sum(
            (Decimal(str(line["price"])) * line["quantity"] for line in self._lines.values()),
            Decimal("0"),
        )
        return total.quantize(CENT)

    @property
    def item_count(self) -> int:
        return sum(line["quantity"] for line in self._lines.values())

    def line_items(self) -> List[dict]:
        """Snapshot of the cart as order line items."""
        return [
            {"id": line["id"], "name": line["name"], "price": line["price"], "quantity": line["quantity"]}
            for line in self._lines.values()
        ]

    def __len__(self):
        return len(self._lines)

    def __bool__(self):
        return bool(self._lines)


def sanitize_phone(phone: str) -> str:
    return _PHONE_JUNK.sub("", phone or "").strip()


def build_order(cart: Cart, customer_name: str, customer_phone: str, delivery_address: str,
                payment_method: str = "cod", coordinates: Optional[dict] = None) -> dict:
    """Validate the checkout form and return the order request body."""
    if not customer_name.strip() or not customer_phone.strip() or not delivery_address.strip():
        raise CheckoutError("Missing Information", "Please fill in all required fields")

    if not cart:
        raise CheckoutError("Empty Cart", "Please add items to your cart before checkout")

    clean_phone = sanitize_phone(customer_phone)
    if sum(char.isdigit() for char in clean_phone) < MIN_PHONE_DIGITS:
        raise CheckoutError("Invalid Phone Number", "Please enter a valid phone number")

    if payment_method not in PAYMENT_METHODS:
        raise CheckoutError("Invalid Payment Method", "Please choose cash on delivery, GCash or bank transfer")

    order = {
        "customerName": customer_name.strip(),
        "customerPhone": clean_phone,
        "deliveryAddress": delivery_address.strip(),
        "paymentMethod": payment_method,
        "totalAmount": str(cart.total),
        "items": cart.line_items(),
    }
    if coordinates:
        order["deliveryLatitude"] = str(coordinates["lat"])
        order["deliveryLongitude"] = str(coordinates["lng"])
    return order
