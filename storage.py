import abc
import copy
import json
from datetime import datetime
from typing import List, Optional

from databases import Database
from sqlalchemy import select, update, delete

from auth import get_password_hash
from models import User, Product, Order
from schemas import format_money, parse_money


class StorageError(Exception):
    pass


class UsernameTakenError(StorageError):
    def __init__(self, username: str):
        super().__init__(f"Username '{username}' is already taken")
        self.username = username


STARTER_PRODUCTS = [
    {
        "name": "Pandesal",
        "description": "Traditional Filipino bread roll, soft and fluffy",
        "price": "5.00",
        "category": "bread",
        "image_url": "https://images.unsplash.com/photo-1549931319-a545dcf3bc73?ixlib=rb-4.0.3&auto=format&fit=crop&w=300&h=200",
        "available": True,
    },
    {
        "name": "Butter Croissant",
        "description": "Flaky, buttery French pastry",
        "price": "45.00",
        "category": "pastries",
        "image_url": "https://images.unsplash.com/photo-1555507036-ab794f4aaaaa?ixlib=rb-4.0.3&auto=format&fit=crop&w=300&h=200",
        "available": True,
    },
    {
        "name": "Whole Wheat Bread",
        "description": "Healthy whole grain bread with seeds",
        "price": "85.00",
        "category": "bread",
        "image_url": "https://images.unsplash.com/photo-1506976785307-8732e854ad03?ixlib=rb-4.0.3&auto=format&fit=crop&w=300&h=200",
        "available": True,
    },
    {
        "name": "Vanilla Cupcake",
        "description": "Moist vanilla cake with cream frosting",
        "price": "35.00",
        "category": "pastries",
        "image_url": "https://images.unsplash.com/photo-1587668178277-295251f900ce?ixlib=rb-4.0.3&auto=format&fit=crop&w=300&h=200",
        "available": True,
    },
]

PRODUCT_FIELDS = ("name", "description", "price", "category", "image_url", "available")
ORDER_FIELDS = (
    "customer_name",
    "customer_phone",
    "delivery_address",
    "delivery_latitude",
    "delivery_longitude",
    "payment_method",
    "total_amount",
    "items",
)


def _product_values(product: dict) -> dict:
    values = {field: product.get(field) for field in PRODUCT_FIELDS}
    values["price"] = format_money(parse_money(values["price"]))
    values["image_url"] = values["image_url"] or None
    values["available"] = True if values["available"] is None else bool(values["available"])
    return values


def _order_values(order: dict) -> dict:
    values = {field: order.get(field) for field in ORDER_FIELDS}
    values["total_amount"] = format_money(parse_money(values["total_amount"]))
    values["items"] = [
        {
            "id": item["id"],
            "name": item["name"],
            "price": format_money(item["price"]),
            "quantity": item["quantity"],
        }
        for item in values["items"] or []
    ]
    return values


def _order_sort_key(order: dict):
    return (order["created_at"], order["id"])


class Storage(abc.ABC):
    """Operations every persistence backend must provide.

    Lookups by id return ``None`` (or ``False`` for deletes) on a miss instead
    of raising. Products and orders are plain dicts with snake_case keys;
    prices and totals are strings with two decimals and order items are a list.
    """

    # Users
    @abc.abstractmethod
    async def get_user(self, user_id: int) -> Optional[dict]: ...

    @abc.abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[dict]: ...

    @abc.abstractmethod
    async def create_user(self, user: dict) -> dict: ...

    @abc.abstractmethod
    async def update_user_password(self, user_id: int, hashed_password: str) -> None: ...

    # Products
    @abc.abstractmethod
    async def list_products(self, include_unavailable: bool = True) -> List[dict]: ...

    async def get_all_products(self) -> List[dict]:
        return await self.list_products(include_unavailable=False)

    @abc.abstractmethod
    async def get_product(self, product_id: int) -> Optional[dict]: ...

    @abc.abstractmethod
    async def create_product(self, product: dict) -> dict: ...

    @abc.abstractmethod
    async def update_product(self, product_id: int, product: dict) -> Optional[dict]: ...

    @abc.abstractmethod
    async def delete_product(self, product_id: int) -> bool: ...

    # Orders
    @abc.abstractmethod
    async def get_all_orders(self) -> List[dict]: ...

    @abc.abstractmethod
    async def get_order(self, order_id: int) -> Optional[dict]: ...

    @abc.abstractmethod
    async def create_order(self, order: dict) -> dict: ...

    @abc.abstractmethod
    async def update_order_status(self, order_id: int, status: str) -> Optional[dict]: ...

    # Lifecycle
    async def connect(self):
        pass

    async def disconnect(self):
        pass

    # Bootstrap
    async def initialize(self, admin_username: str, admin_password: str, admin_security_code: str):
        """Seed the default admin and starter catalog once."""
        print("\n🔄 Setting up sample data...")

        existing_admin = await self.get_user_by_username(admin_username)
        if not existing_admin:
            await self.create_user({
                "username": admin_username,
                "password": get_password_hash(admin_password),
                "role": "admin",
                "security_code": admin_security_code,
            })
            print(f"✅ Default admin '{admin_username}' created")
        else:
            print("✅ Admin already exists")

        existing_products = await self.get_all_products()
        if not existing_products:
            for product in STARTER_PRODUCTS:
                await self.create_product(product)
            print(f"✅ Created {len(STARTER_PRODUCTS)} sample products")
        else:
            print(f"✅ {len(existing_products)} products already exist")


class MemStorage(Storage):
    """Dict-backed storage for development and tests."""

    def __init__(self):
        self.users = {}
        self.products = {}
        self.orders = {}
        self._next_user_id = 1
        self._next_product_id = 1
        self._next_order_id = 1

    async def get_user(self, user_id: int) -> Optional[dict]:
        user = self.users.get(user_id)
        return dict(user) if user else None

    async def get_user_by_username(self, username: str) -> Optional[dict]:
        for user in self.users.values():
            if user["username"] == username:
                return dict(user)
        return None

    async def create_user(self, user: dict) -> dict:
        if await self.get_user_by_username(user["username"]):
            raise UsernameTakenError(user["username"])
        record = {
            "id": self._next_user_id,
            "username": user["username"],
            "password": user["password"],
            "role": user.get("role") or "customer",
            "security_code": user.get("security_code") or None,
        }
        self.users[record["id"]] = record
        self._next_user_id += 1
        return dict(record)

    async def update_user_password(self, user_id: int, hashed_password: str) -> None:
        user = self.users.get(user_id)
        if user:
            user["password"] = hashed_password

    async def list_products(self, include_unavailable: bool = True) -> List[dict]:
        return [
            dict(product)
            for product in sorted(self.products.values(), key=lambda p: p["id"])
            if include_unavailable or product["available"]
        ]

    async def get_product(self, product_id: int) -> Optional[dict]:
        product = self.products.get(product_id)
        return dict(product) if product else None

    async def create_product(self, product: dict) -> dict:
        record = _product_values(product)
        record["id"] = self._next_product_id
        record["created_at"] = datetime.utcnow()
        self.products[record["id"]] = record
        self._next_product_id += 1
        return dict(record)

    async def update_product(self, product_id: int, product: dict) -> Optional[dict]:
        existing = self.products.get(product_id)
        if not existing:
            return None
        existing.update(_product_values(product))
        return dict(existing)

    async def delete_product(self, product_id: int) -> bool:
        return self.products.pop(product_id, None) is not None

    async def get_all_orders(self) -> List[dict]:
        orders = sorted(self.orders.values(), key=_order_sort_key, reverse=True)
        return [copy.deepcopy(order) for order in orders]

    async def get_order(self, order_id: int) -> Optional[dict]:
        order = self.orders.get(order_id)
        return copy.deepcopy(order) if order else None

    async def create_order(self, order: dict) -> dict:
        record = _order_values(order)
        record["id"] = self._next_order_id
        record["status"] = "pending"
        record["created_at"] = datetime.utcnow()
        self.orders[record["id"]] = record
        self._next_order_id += 1
        return copy.deepcopy(record)

    async def update_order_status(self, order_id: int, status: str) -> Optional[dict]:
        order = self.orders.get(order_id)
        if not order:
            return None
        order["status"] = status
        return copy.deepcopy(order)


class DatabaseStorage(Storage):
    """Relational storage through ``databases`` and SQLAlchemy Core."""

    def __init__(self, db: Database):
        self.db = db

    async def connect(self):
        if not self.db.is_connected:
            await self.db.connect()

    async def disconnect(self):
        if self.db.is_connected:
            await self.db.disconnect()

    # ========== ROW CONVERSION ==========
    @staticmethod
    def _user_dict(result) -> Optional[dict]:
        return dict(result._mapping) if result else None

    @staticmethod
    def _product_dict(result) -> Optional[dict]:
        if not result:
            return None
        product = dict(result._mapping)
        product["price"] = format_money(product["price"])
        product["available"] = bool(product["available"])
        return product

    @staticmethod
    def _order_dict(result) -> Optional[dict]:
        if not result:
            return None
        order = dict(result._mapping)
        order["total_amount"] = format_money(order["total_amount"])
        order["items"] = json.loads(order["items"]) if order["items"] else []
        return order

    # ========== USERS ==========
    async def get_user(self, user_id: int) -> Optional[dict]:
        query = select(User.__table__).where(User.id == user_id)
        return self._user_dict(await self.db.fetch_one(query))

    async def get_user_by_username(self, username: str) -> Optional[dict]:
        query = select(User.__table__).where(User.username == username)
        return self._user_dict(await self.db.fetch_one(query))

    async def create_user(self, user: dict) -> dict:
        if await self.get_user_by_username(user["username"]):
            raise UsernameTakenError(user["username"])
        query = User.__table__.insert().values(
            username=user["username"],
            password=user["password"],
            role=user.get("role") or "customer",
            security_code=user.get("security_code") or None,
        )
        await self.db.execute(query)
        return await self.get_user_by_username(user["username"])

    async def update_user_password(self, user_id: int, hashed_password: str) -> None:
        query = update(User.__table__).where(User.id == user_id).values(password=hashed_password)
        await self.db.execute(query)

    # ========== PRODUCTS ==========
    async def list_products(self, include_unavailable: bool = True) -> List[dict]:
        query = select(Product.__table__).order_by(Product.id)
        if not include_unavailable:
            query = query.where(Product.available == True)  # noqa: E712
        results = await self.db.fetch_all(query)
        return [self._product_dict(product) for product in results]

    async def get_product(self, product_id: int) -> Optional[dict]:
        query = select(Product.__table__).where(Product.id == product_id)
        return self._product_dict(await self.db.fetch_one(query))

    async def create_product(self, product: dict) -> dict:
        values = _product_values(product)
        query = Product.__table__.insert().values(**values, created_at=datetime.utcnow())
        product_id = await self.db.execute(query)
        return await self.get_product(product_id)

    async def update_product(self, product_id: int, product: dict) -> Optional[dict]:
        existing = await self.get_product(product_id)
        if not existing:
            return None

        query = update(Product.__table__).where(Product.id == product_id).values(**_product_values(product))
        await self.db.execute(query)

        return await self.get_product(product_id)

    async def delete_product(self, product_id: int) -> bool:
        existing = await self.get_product(product_id)
        if not existing:
            return False
        query = delete(Product.__table__).where(Product.id == product_id)
        await self.db.execute(query)
        return True

    # ========== ORDERS ==========
    async def get_all_orders(self) -> List[dict]:
        query = select(Order.__table__).order_by(Order.created_at.desc(), Order.id.desc())
        results = await self.db.fetch_all(query)
        return [self._order_dict(order) for order in results]

    async def get_order(self, order_id: int) -> Optional[dict]:
        query = select(Order.__table__).where(Order.id == order_id)
        return self._order_dict(await self.db.fetch_one(query))

    async def create_order(self, order: dict) -> dict:
        values = _order_values(order)
        values["items"] = json.dumps(values["items"])
        query = Order.__table__.insert().values(
            **values, status="pending", created_at=datetime.utcnow()
        )
        order_id = await self.db.execute(query)
        return await self.get_order(order_id)

    async def update_order_status(self, order_id: int, status: str) -> Optional[dict]:
        existing = await self.get_order(order_id)
        if not existing:
            return None

        query = update(Order.__table__).where(Order.id == order_id).values(status=status)
        await self.db.execute(query)

        return await self.get_order(order_id)
