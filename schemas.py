import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Annotated, Any, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

CENT = Decimal("0.01")

PAYMENT_METHODS = ("cod", "gcash", "bank")
ORDER_STATUSES = ("pending", "accepted", "preparing", "ready", "delivered", "cancelled")


# ========== MONEY HELPERS ==========
def parse_money(value: Any) -> Decimal:
    """Parse a price/amount into a non-negative Decimal with at most 2 decimals."""
    if isinstance(value, bool) or value is None:
        raise ValueError("must be a decimal amount")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError("must be a decimal amount")
    if not amount.is_finite():
        raise ValueError("must be a decimal amount")
    if amount < 0:
        raise ValueError("must not be negative")
    if amount != amount.quantize(CENT):
        raise ValueError("must have at most 2 decimal places")
    return amount.quantize(CENT)


def format_money(value: Any) -> str:
    """Render a stored amount (Decimal, float or str) with exactly 2 decimals."""
    return str(Decimal(str(value)).quantize(CENT))


def _money(value: Any) -> str:
    return format_money(parse_money(value))


def _coordinate(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ValueError("must be a decimal coordinate")
    try:
        coordinate = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError("must be a decimal coordinate")
    if not coordinate.is_finite():
        raise ValueError("must be a decimal coordinate")
    return str(value).strip()


Money = Annotated[str, BeforeValidator(_money)]
Coordinate = Annotated[Optional[str], BeforeValidator(_coordinate)]
NonEmptyStr = Annotated[str, Field(min_length=1)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        str_strip_whitespace=True,
    )


# ========== AUTHENTICATION SCHEMAS ==========
class Credentials(BaseModel):
    """Secrets are kept exactly as typed; only the username is trimmed."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    username: NonEmptyStr
    password: NonEmptyStr
    security_code: Optional[str] = None

    @field_validator("username")
    @classmethod
    def strip_username(cls, value):
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class RegisterRequest(Credentials):
    role: Literal["customer", "admin"] = "customer"


class LoginRequest(Credentials):
    pass


class UserPublic(CamelModel):
    id: int
    username: str
    role: str


class MessageResponse(BaseModel):
    message: str


# ========== PRODUCT SCHEMAS ==========
class ProductBase(CamelModel):
    name: NonEmptyStr
    description: str
    price: Money
    category: NonEmptyStr
    image_url: Optional[str] = None
    available: bool = True


class ProductCreate(ProductBase):
    pass


class ProductUpdate(ProductBase):
    """Full replacement of every mutable product field."""


class Product(ProductBase):
    id: int
    created_at: datetime


# ========== ORDER SCHEMAS ==========
class LineItem(CamelModel):
    id: int
    name: str
    price: Money
    quantity: int = Field(ge=1)


class OrderBase(CamelModel):
    customer_name: NonEmptyStr
    customer_phone: NonEmptyStr
    delivery_address: NonEmptyStr
    delivery_latitude: Coordinate = None
    delivery_longitude: Coordinate = None
    payment_method: Literal["cod", "gcash", "bank"]
    total_amount: Money
    items: List[LineItem]


class OrderCreate(OrderBase):
    @field_validator("items", mode="before")
    @classmethod
    def decode_items(cls, value):
        # older clients send the cart as a JSON string
        if isinstance(value, str):
            try:
                return json.loads(value)
            except ValueError:
                raise ValueError("must be a JSON list of line items")
        return value

    @field_validator("items")
    @classmethod
    def items_not_empty(cls, value):
        if not value:
            raise ValueError("order must contain at least one item")
        return value

    @model_validator(mode="after")
    def total_matches_items(self):
        expected = sum(
            (Decimal(item.price) * item.quantity for item in self.items), Decimal("0")
        )
        if Decimal(self.total_amount) != expected.quantize(CENT):
            raise ValueError(
                f"totalAmount {self.total_amount} does not match line items total {format_money(expected)}"
            )
        return self


class OrderStatusUpdate(CamelModel):
    status: NonEmptyStr


class Order(OrderBase):
    id: int
    status: str = "pending"
    created_at: datetime


# ========== CONFIG SCHEMAS ==========
class ClientConfig(BaseModel):
    GOOGLE_MAPS_API_KEY: Optional[str] = None
